"""Retrieval/summarization pipeline over pre-fetched labeled texts.

Sequence: chunk every labeled text -> rank all chunks against the query ->
summarize the top chunks and extract their citations.

The pipeline is synchronous and holds no state between calls; it never
fetches anything itself. Source ids are derived from each label and its
position, so identical inputs always produce identical results.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from rxnav_mcp.exceptions import ConfigurationError, PipelineError, RxNavServerError
from rxnav_mcp.rag.chunker import chunk_text, validate_chunk_parameters
from rxnav_mcp.rag.citations import DEFAULT_PREVIEW_LENGTH, ELLIPSIS, extract_citations
from rxnav_mcp.rag.models import RAGResult, RankedChunk, SummaryContext, TextChunk
from rxnav_mcp.rag.ranker import ChunkScorer, default_scorer, rank_chunks
from rxnav_mcp.rag.summarizer import NO_INFORMATION_SUMMARY, summarize_chunks

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 800
DEFAULT_OVERLAP = 150
DEFAULT_TOP_K = 5
DEFAULT_MAX_SUMMARY_LENGTH = 1200
DEFAULT_CHUNK_DISPLAY_LIMIT = 1000

# Level 5 ATC code, e.g. N02BA01
ATC_CODE_PATTERN = re.compile(r"[A-Z]\d{2}[A-Z]{2}\d{2}")

DEFAULT_EXTRA_KEYWORDS = (
    "rxcui",
    "atc",
    "generic",
    "brand",
    "ingredient",
    "classification",
    "therapeutic",
    "anatomical",
    "chemical",
    "substance",
    "通用名",
    "商品名",
    "成分",
    "分类",
    "治疗",
)


def source_metadata(label: str, text: str, drug: str | None) -> dict[str, str | bool | None]:
    """Hints attached to every chunk of one labeled text."""
    return {
        "type": label,
        "drug_name": drug,
        "has_rxcui": "rxcui" in text.lower(),
        "has_atc": "ATC" in text or bool(ATC_CODE_PATTERN.search(text)),
    }


def truncate_for_display(chunk: RankedChunk, limit: int) -> RankedChunk:
    """Copy of the chunk with its text cut to limit characters plus an ellipsis."""
    if len(chunk.text) <= limit:
        return chunk
    return chunk.model_copy(update={"text": chunk.text[:limit] + ELLIPSIS})


def run_pipeline(
    labeled_texts: Sequence[tuple[str, str]],
    query: str | None = None,
    drug: str | None = None,
    condition: str | None = None,
    top_k: int = DEFAULT_TOP_K,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap: int = DEFAULT_OVERLAP,
    *,
    source: str = "rxnav",
    max_summary_length: int = DEFAULT_MAX_SUMMARY_LENGTH,
    chunk_display_limit: int = DEFAULT_CHUNK_DISPLAY_LIMIT,
    citation_preview_length: int = DEFAULT_PREVIEW_LENGTH,
    extra_keywords: Iterable[str] = DEFAULT_EXTRA_KEYWORDS,
    scorer: ChunkScorer | None = None,
    metadata_drug: str | None = None,
) -> RAGResult:
    """Chunk, rank, summarize and cite a set of labeled texts.

    Args:
        labeled_texts: (label, text) pairs, e.g. ("atc", "=== ATC INFORMATION === ...")
        query: Free-text query
        drug: Drug the texts describe
        condition: Medical condition context
        top_k: Number of chunks to keep
        chunk_size: Chunk window in characters
        overlap: Characters shared by consecutive chunks
        source: Data source name for the result and summary header
        max_summary_length: Summary bound before the truncation marker
        chunk_display_limit: Characters of chunk text kept in top_chunks
        citation_preview_length: Maximum citation snippet length
        extra_keywords: Keywords added to the query tokens for ranking
        scorer: Ranking strategy (defaults to default_scorer())
        metadata_drug: Drug name recorded in chunk metadata (defaults to drug)

    Returns:
        RAGResult; with no usable text the result has no chunks or citations
        and the NO_INFORMATION_SUMMARY sentinel

    Raises:
        ConfigurationError: For invalid parameters, before any processing
        PipelineError: For any other failure, wrapping the original cause
    """
    validate_chunk_parameters(chunk_size, overlap)
    if top_k <= 0:
        raise ConfigurationError(message="top_k must be positive", details={"top_k": top_k})
    if (
        max_summary_length <= 0
        or chunk_display_limit <= 0
        or citation_preview_length <= len(ELLIPSIS)
    ):
        raise ConfigurationError(
            message="Summary, display and citation preview lengths must be positive",
            details={
                "max_summary_length": max_summary_length,
                "chunk_display_limit": chunk_display_limit,
                "citation_preview_length": citation_preview_length,
            },
        )

    try:
        all_chunks: list[TextChunk] = []
        for position, (label, text) in enumerate(labeled_texts):
            if not text or not text.strip():
                logger.debug(f"Skipping empty text for label '{label}'")
                continue
            all_chunks.extend(
                chunk_text(
                    text,
                    chunk_size,
                    overlap,
                    source_id=f"{label}_{position}",
                    metadata=source_metadata(label, text, metadata_drug or drug),
                )
            )

        if not all_chunks:
            logger.info("No text to rank; returning empty pipeline result")
            return RAGResult(
                source=source,
                query=query,
                drug=drug,
                condition=condition,
                summary=NO_INFORMATION_SUMMARY,
            )

        ranking_query = " ".join(part for part in (query, drug, condition) if part)
        top_chunks = rank_chunks(
            all_chunks,
            ranking_query,
            top_k,
            extra_keywords,
            scorer=scorer or default_scorer(),
        )

        summary = summarize_chunks(
            top_chunks,
            SummaryContext(
                source=source,
                query=query,
                drug=drug,
                condition=condition,
                max_length=max_summary_length,
            ),
        )
        citations = extract_citations(top_chunks, citation_preview_length)

        logger.info(
            f"Pipeline ranked {len(all_chunks)} chunks from {len(labeled_texts)} texts, "
            f"kept {len(top_chunks)}"
        )

        return RAGResult(
            source=source,
            query=query,
            drug=drug,
            condition=condition,
            top_chunks=[truncate_for_display(chunk, chunk_display_limit) for chunk in top_chunks],
            summary=summary,
            citations=citations,
        )

    except RxNavServerError:
        raise
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        raise PipelineError(
            message="Retrieval pipeline failed",
            details={"error_type": type(e).__name__, "error": str(e)},
            original_exception=e,
        ) from e
