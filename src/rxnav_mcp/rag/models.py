"""Pydantic models for the retrieval/summarization pipeline.

All models are frozen: a chunk never changes after the chunker creates it,
and results are handed to the caller as-is.

Key Components:
    - TextChunk: an overlapping window of a labeled source text
    - RankedChunk: a chunk with its relevance score
    - Citation: traceable pointer back to a selected chunk
    - SummaryContext: header fields and length bound for the summarizer
    - RAGResult: the complete pipeline output returned to the tool layer
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator

MetadataValue = str | int | float | bool | None


class TextChunk(BaseModel):
    """A bounded window of a source text, tagged with provenance.

    Offsets are character offsets into the source text the chunk came from;
    the chunker guarantees end_offset - start_offset == len(text).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Source id suffixed with the zero-based sequence index")
    source_id: str = Field(..., description="Identifier of the source text")
    text: str = Field(..., description="Chunk text")
    start_offset: int = Field(..., ge=0, description="Start offset in the source text")
    end_offset: int = Field(..., ge=0, description="End offset (exclusive) in the source text")
    metadata: dict[str, MetadataValue] = Field(
        default_factory=dict, description="Scalar hints attached by the caller"
    )

    @model_validator(mode="after")
    def validate_offsets(self) -> "TextChunk":
        if self.end_offset < self.start_offset:
            raise ValueError(
                f"end_offset ({self.end_offset}) precedes start_offset ({self.start_offset})"
            )
        return self


class RankedChunk(TextChunk):
    """A chunk with the relevance score assigned by the ranker."""

    score: float = Field(..., ge=0, description="Relevance score (higher is better)")


class Citation(BaseModel):
    """Compact source reference for one selected chunk."""

    model_config = ConfigDict(frozen=True)

    source_id: str = Field(..., description="Identifier of the source text")
    chunk_id: str = Field(..., description="Identifier of the cited chunk")
    snippet: str = Field(..., description="Short preview of the chunk text")
    offset: int = Field(..., ge=0, description="Start offset of the chunk in its source")


class SummaryContext(BaseModel):
    """Context rendered into the summary header, plus the length bound."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Name of the data source, e.g. 'rxnav'")
    query: str | None = Field(None, description="Free-text query")
    drug: str | None = Field(None, description="Drug the summary is about")
    condition: str | None = Field(None, description="Medical condition context")
    max_length: int = Field(1200, description="Maximum summary length before the marker")


class RAGResult(BaseModel):
    """Result of one pipeline invocation."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(..., description="Name of the data source")
    query: str | None = Field(None, description="Free-text query")
    drug: str | None = Field(None, description="Drug name")
    condition: str | None = Field(None, description="Medical condition context")
    top_chunks: list[RankedChunk] = Field(
        default_factory=list, description="Highest scoring chunks, display-truncated"
    )
    summary: str = Field(..., description="Bounded human-readable summary")
    citations: list[Citation] = Field(
        default_factory=list, description="One citation per top chunk, same order"
    )
