"""Retrieval/summarization pipeline over pre-fetched drug terminology text.

Components: chunker -> ranker -> summarizer + citation extractor, sequenced
by run_pipeline().
"""

from .chunker import chunk_text
from .citations import extract_citations
from .models import Citation, RAGResult, RankedChunk, SummaryContext, TextChunk
from .pipeline import run_pipeline
from .ranker import ChunkScorer, KeywordScorer, MetadataBoost, rank_chunks
from .summarizer import NO_INFORMATION_SUMMARY, TRUNCATION_MARKER, summarize_chunks

__all__ = [
    "chunk_text",
    "rank_chunks",
    "summarize_chunks",
    "extract_citations",
    "run_pipeline",
    "ChunkScorer",
    "KeywordScorer",
    "MetadataBoost",
    "TextChunk",
    "RankedChunk",
    "Citation",
    "SummaryContext",
    "RAGResult",
    "NO_INFORMATION_SUMMARY",
    "TRUNCATION_MARKER",
]
