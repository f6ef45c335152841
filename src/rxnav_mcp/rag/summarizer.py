"""Bounded extractive summary of ranked chunks."""

import logging
from collections.abc import Sequence

from rxnav_mcp.exceptions import ConfigurationError
from rxnav_mcp.rag.models import RankedChunk, SummaryContext

logger = logging.getLogger(__name__)

NO_INFORMATION_SUMMARY = "No relevant drug terminology information found."
TRUNCATION_MARKER = "..."
CHUNK_SEPARATOR = "\n\n---\n\n"


def build_header(context: SummaryContext) -> str:
    """One line naming the source and whichever of drug/condition/query are set."""
    parts = [f"Source: {context.source.upper()}"]
    if context.drug:
        parts.append(f"Drug: {context.drug}")
    if context.condition:
        parts.append(f"Condition: {context.condition}")
    if context.query:
        parts.append(f"Query: {context.query}")
    return " | ".join(parts)


def summarize_chunks(chunks: Sequence[RankedChunk], context: SummaryContext) -> str:
    """Concatenate chunk texts under a context header, bounded by context.max_length.

    Text past max_length is cut (str slicing never splits a code point) and
    TRUNCATION_MARKER is appended, so the result is at most
    max_length + len(TRUNCATION_MARKER) characters.

    Raises:
        ConfigurationError: If context.max_length <= 0
    """
    if context.max_length <= 0:
        raise ConfigurationError(
            message="Summary max_length must be positive",
            details={"max_length": context.max_length},
        )

    if not chunks:
        return NO_INFORMATION_SUMMARY

    body = CHUNK_SEPARATOR.join(f"[{chunk.id}] {chunk.text.strip()}" for chunk in chunks)
    summary = f"{build_header(context)}\n\n{body}"

    if len(summary) > context.max_length:
        logger.debug(f"Truncating summary from {len(summary)} to {context.max_length} chars")
        summary = summary[: context.max_length].rstrip() + TRUNCATION_MARKER

    return summary
