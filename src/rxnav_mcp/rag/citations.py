"""Citation extraction for selected chunks."""

from collections.abc import Sequence

from rxnav_mcp.exceptions import ConfigurationError
from rxnav_mcp.rag.models import Citation, RankedChunk

DEFAULT_PREVIEW_LENGTH = 120
ELLIPSIS = "..."


def make_snippet(text: str, preview_length: int = DEFAULT_PREVIEW_LENGTH) -> str:
    """Collapse whitespace and cut to preview_length characters, ellipsis included."""
    snippet = " ".join(text.split())
    if len(snippet) <= preview_length:
        return snippet
    return snippet[: preview_length - len(ELLIPSIS)].rstrip() + ELLIPSIS


def extract_citations(
    chunks: Sequence[RankedChunk], preview_length: int = DEFAULT_PREVIEW_LENGTH
) -> list[Citation]:
    """One citation per chunk, in the order given."""
    if preview_length <= len(ELLIPSIS):
        raise ConfigurationError(
            message="Citation preview length must exceed the ellipsis length",
            details={"preview_length": preview_length},
        )

    return [
        Citation(
            source_id=chunk.source_id,
            chunk_id=chunk.id,
            snippet=make_snippet(chunk.text, preview_length),
            offset=chunk.start_offset,
        )
        for chunk in chunks
    ]
