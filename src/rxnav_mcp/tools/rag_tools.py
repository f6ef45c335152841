"""Aggregated drug terminology retrieval tool (ae_pipeline_rag).

Runs the five lookups for one drug, renders each result to text and hands
the labeled texts to the retrieval pipeline, so a client gets one bounded,
cited answer instead of five raw payloads.
"""

import logging
from collections.abc import Awaitable, Callable

from pydantic import BaseModel

from rxnav_mcp.config.settings import settings
from rxnav_mcp.exceptions import convert_to_server_exception
from rxnav_mcp.rag.models import RAGResult
from rxnav_mcp.rag.pipeline import run_pipeline
from rxnav_mcp.rag.ranker import default_scorer
from rxnav_mcp.rxnav.resolver import TerminologyResolver
from rxnav_mcp.tools.base_tool import BaseTool
from rxnav_mcp.tools.drug_tools import DrugTerminologyTools
from rxnav_mcp.tools.models import AEPipelineRAGRequest
from rxnav_mcp.tools.rendering import render_lookup_text

logger = logging.getLogger(__name__)

RAG_SOURCE = "rxnav"
MAX_SEARCH_RESULTS = 20

MISSING_DRUG_SUMMARY = (
    "Please provide a drug name or a specific query to retrieve RxNav terminology information."
)


class RAGPipelineTools(BaseTool):
    """Fetch, render, chunk, rank and summarize RxNav data for one drug."""

    def __init__(
        self,
        resolver: TerminologyResolver,
        drug_tools: DrugTerminologyTools | None = None,
    ):
        super().__init__(resolver)
        self.drug_tools = drug_tools or DrugTerminologyTools(resolver)

    async def collect_labeled_texts(
        self, drug_name: str, search_limit: int
    ) -> list[tuple[str, str]]:
        """Run every lookup and render the successful ones.

        A failing lookup is logged and left out; the others still count.
        """
        lookups: list[tuple[str, Callable[[], Awaitable[BaseModel]]]] = [
            ("search", lambda: self.drug_tools.search_drug_by_name(drug_name, search_limit)),
            ("generic", lambda: self.drug_tools.get_generic_name(drug_name)),
            ("brand", lambda: self.drug_tools.get_brand_names(drug_name)),
            ("atc", lambda: self.drug_tools.get_atc_classification(drug_name)),
            ("ingredients", lambda: self.drug_tools.get_drug_ingredients(drug_name)),
        ]

        labeled_texts = []
        for label, lookup in lookups:
            try:
                response = await lookup()
            except Exception as e:
                error = convert_to_server_exception(e, context={"lookup": label})
                logger.warning(
                    f"Lookup '{label}' failed for '{drug_name}': {error}",
                    extra={"error_type": error.error_code},
                )
                continue
            labeled_texts.append((label, render_lookup_text(label, response)))

        return labeled_texts

    async def ae_pipeline_rag(self, request: AEPipelineRAGRequest) -> RAGResult:
        """Aggregate all lookups for a drug into one ranked, summarized, cited result.

        The drug is request.drug, or request.query when no drug is given.

        Args:
            request: Validated tool arguments

        Returns:
            RAGResult; a missing drug or a drug with no data yields an empty
            result with an explanatory summary
        """
        drug_name = (request.drug or request.query or "").strip()
        if not drug_name:
            return RAGResult(
                source=RAG_SOURCE,
                query=request.query,
                drug=request.drug,
                condition=request.condition,
                summary=MISSING_DRUG_SUMMARY,
            )

        search_limit = min(request.filters.limit, MAX_SEARCH_RESULTS)
        labeled_texts = await self.collect_labeled_texts(drug_name, search_limit)

        if not labeled_texts:
            logger.warning(f"Every lookup failed for '{drug_name}'")
            return RAGResult(
                source=RAG_SOURCE,
                query=request.query,
                drug=request.drug,
                condition=request.condition,
                summary=(
                    f'No information found for drug "{drug_name}". '
                    "Check the spelling or try another name."
                ),
            )

        return run_pipeline(
            labeled_texts,
            query=request.query,
            drug=request.drug,
            condition=request.condition,
            top_k=request.top_k,
            chunk_size=settings.rag_chunk_size,
            overlap=settings.rag_chunk_overlap,
            source=RAG_SOURCE,
            max_summary_length=settings.rag_max_summary_length,
            chunk_display_limit=settings.rag_chunk_display_limit,
            citation_preview_length=settings.rag_citation_preview_length,
            metadata_drug=drug_name,
            scorer=default_scorer(settings.rag_atc_boost_weight),
        )
