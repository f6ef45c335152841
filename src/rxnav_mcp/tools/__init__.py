"""MCP tools for drug terminology lookups and aggregated retrieval.

This package provides:
- DrugTerminologyTools: name search, generic/brand names, ATC codes, ingredients
- RAGPipelineTools: aggregated lookup + retrieval/summarization pipeline
"""

from .drug_tools import DrugTerminologyTools
from .rag_tools import RAGPipelineTools

__all__ = ["DrugTerminologyTools", "RAGPipelineTools"]
