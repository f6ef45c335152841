"""Fixed-size overlapping text chunker."""

import logging
from collections.abc import Mapping

from rxnav_mcp.exceptions import ConfigurationError
from rxnav_mcp.rag.models import MetadataValue, TextChunk

logger = logging.getLogger(__name__)


def validate_chunk_parameters(chunk_size: int, overlap: int) -> None:
    """Raise ConfigurationError unless the window advances on every step."""
    if chunk_size <= 0:
        raise ConfigurationError(
            message="Chunk size must be positive", details={"chunk_size": chunk_size}
        )
    if overlap < 0 or overlap >= chunk_size:
        raise ConfigurationError(
            message="Chunk overlap must be non-negative and smaller than chunk size",
            details={"chunk_size": chunk_size, "overlap": overlap},
        )


def chunk_text(
    text: str,
    chunk_size: int,
    overlap: int,
    source_id: str,
    metadata: Mapping[str, MetadataValue] | None = None,
) -> list[TextChunk]:
    """Split text into windows of chunk_size characters sharing overlap characters.

    The window advances by chunk_size - overlap and stops once it reaches the
    end of the text, so the last chunk may be shorter than chunk_size.

    Args:
        text: Source text
        chunk_size: Window length in characters
        overlap: Characters shared by consecutive chunks
        source_id: Prefix of every chunk id ("<source_id>_<n>")
        metadata: Copied onto every chunk

    Returns:
        Chunks in offset order; empty for empty or whitespace-only text

    Raises:
        ConfigurationError: If chunk_size <= 0 or overlap is not in [0, chunk_size)

    Example:
        >>> [c.start_offset for c in chunk_text("x" * 2000, 800, 150, "atc_0")]
        [0, 650, 1300]
    """
    validate_chunk_parameters(chunk_size, overlap)

    if not text or not text.strip():
        return []

    step = chunk_size - overlap
    text_length = len(text)
    chunks: list[TextChunk] = []
    start = 0

    while True:
        end = min(start + chunk_size, text_length)
        chunks.append(
            TextChunk(
                id=f"{source_id}_{len(chunks)}",
                source_id=source_id,
                text=text[start:end],
                start_offset=start,
                end_offset=end,
                metadata=dict(metadata or {}),
            )
        )
        if end >= text_length:
            break
        start += step

    logger.debug(f"Chunked source '{source_id}' ({text_length} chars) into {len(chunks)} chunks")
    return chunks
