"""RxNav Drug Terminology MCP Server using FastMCP.

This module implements a Model Context Protocol (MCP) server exposing drug
terminology lookups backed by the NLM RxNav REST API, plus an aggregated
retrieval tool that summarizes every lookup for one drug with citations.

Key Features:
    - FastMCP-based server implementation over stdio
    - Five lookup tools and one aggregated retrieval tool
    - Pydantic-based request validation
    - Errors returned to clients as ErrorResponse payloads, never raised

Architecture:
    - Lookup Tools: search_drug_by_name, get_generic_name, get_brand_names,
      get_atc_classification, get_drug_ingredients
    - Retrieval Tool: ae_pipeline_rag

Usage:
    Run `rxnav-mcp` (or `python -m rxnav_mcp.server`) and connect an MCP client.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from pydantic import BaseModel

from rxnav_mcp.config.settings import settings
from rxnav_mcp.exceptions import ConfigurationError, convert_to_server_exception
from rxnav_mcp.rxnav.client import RxNavClient
from rxnav_mcp.rxnav.resolver import TerminologyResolver
from rxnav_mcp.structured_logging import configure_logging, reset_log_context, set_log_context
from rxnav_mcp.tool_prompts import get_system_instructions, get_tool_prompt
from rxnav_mcp.tools.drug_tools import DrugTerminologyTools
from rxnav_mcp.tools.models import (
    AEPipelineRAGRequest,
    BrandNamesRequest,
    DrugIdentifierRequest,
    ErrorResponse,
    SearchDrugByNameRequest,
)
from rxnav_mcp.tools.rag_tools import RAGPipelineTools

logger = logging.getLogger(__name__)

TOOL_NAMES = (
    "search_drug_by_name",
    "get_generic_name",
    "get_brand_names",
    "get_atc_classification",
    "get_drug_ingredients",
    "ae_pipeline_rag",
)


def with_centralized_prompt(tool_name: str):
    """Decorator to set function docstring from centralized prompts."""

    def decorator(func):
        prompt = get_tool_prompt(tool_name)
        if prompt:
            func.__doc__ = prompt
        return func

    return decorator


async def execute_tool(
    operation: str, call: Callable[[], Awaitable[BaseModel]]
) -> dict[str, Any]:
    """Run one tool call and serialize its result.

    Request validation happens inside call, so argument errors are reported
    the same way as RxNav failures.

    Returns:
        The result model as a dict, or an ErrorResponse dict on failure
    """
    token = set_log_context(tool_name=operation)
    try:
        logger.info(f"Executing tool: {operation}")
        result = await call()
        return result.model_dump()
    except Exception as e:
        error = convert_to_server_exception(e, context={"operation": operation})
        logger.error(f"Error in {operation}: {error}", extra={"error_type": error.error_code})
        return ErrorResponse(
            error=f"Failed to execute {operation}: {error.message}",
            details=str(error.details.get("validation_errors") or error.details.get("error") or e),
            operation=operation,
        ).model_dump()
    finally:
        reset_log_context(token)


def create_server(client: RxNavClient | None = None) -> FastMCP:
    """Create and configure the FastMCP server with all drug terminology tools.

    Args:
        client: RxNav client to use (a new one is built from settings by default)

    Returns:
        Configured FastMCP server instance
    """
    system_instructions = get_system_instructions()
    if not system_instructions:
        logger.warning("System instructions not found, using default instructions")
        system_instructions = (
            "You are a drug terminology assistant. Use the available tools to look up "
            "RxNorm concepts, generic and brand names, ATC classifications and ingredients."
        )

    client = client or RxNavClient()
    resolver = TerminologyResolver(client)

    @asynccontextmanager
    async def lifespan(_server: FastMCP) -> AsyncIterator[None]:
        try:
            yield
        finally:
            logger.info("Closing RxNav client")
            await client.close()

    server = FastMCP(
        name=settings.mcp_server_name, instructions=system_instructions, lifespan=lifespan
    )

    drug_tools = DrugTerminologyTools(resolver)
    rag_tools = RAGPipelineTools(resolver, drug_tools)

    # =============================================================================
    # LOOKUP TOOLS REGISTRATION
    # =============================================================================

    @server.tool()
    @with_centralized_prompt("search_drug_by_name")
    async def search_drug_by_name(drug_name: str, limit: int = 10) -> dict[str, Any]:
        async def call():
            request = SearchDrugByNameRequest(drug_name=drug_name, limit=limit)
            return await drug_tools.search_drug_by_name(request.drug_name, request.limit)

        return await execute_tool("search_drug_by_name", call)

    @server.tool()
    @with_centralized_prompt("get_generic_name")
    async def get_generic_name(drug_identifier: str) -> dict[str, Any]:
        async def call():
            request = DrugIdentifierRequest(drug_identifier=drug_identifier)
            return await drug_tools.get_generic_name(request.drug_identifier)

        return await execute_tool("get_generic_name", call)

    @server.tool()
    @with_centralized_prompt("get_brand_names")
    async def get_brand_names(generic_name: str) -> dict[str, Any]:
        async def call():
            request = BrandNamesRequest(generic_name=generic_name)
            return await drug_tools.get_brand_names(request.generic_name)

        return await execute_tool("get_brand_names", call)

    @server.tool()
    @with_centralized_prompt("get_atc_classification")
    async def get_atc_classification(drug_identifier: str) -> dict[str, Any]:
        async def call():
            request = DrugIdentifierRequest(drug_identifier=drug_identifier)
            return await drug_tools.get_atc_classification(request.drug_identifier)

        return await execute_tool("get_atc_classification", call)

    @server.tool()
    @with_centralized_prompt("get_drug_ingredients")
    async def get_drug_ingredients(drug_identifier: str) -> dict[str, Any]:
        async def call():
            request = DrugIdentifierRequest(drug_identifier=drug_identifier)
            return await drug_tools.get_drug_ingredients(request.drug_identifier)

        return await execute_tool("get_drug_ingredients", call)

    # =============================================================================
    # RETRIEVAL TOOL REGISTRATION
    # =============================================================================

    @server.tool()
    @with_centralized_prompt("ae_pipeline_rag")
    async def ae_pipeline_rag(
        query: str | None = None,
        drug: str | None = None,
        condition: str | None = None,
        top_k: int = settings.rag_default_top_k,
        filters: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        async def call():
            request = AEPipelineRAGRequest(
                query=query,
                drug=drug,
                condition=condition,
                top_k=top_k,
                filters=filters or {},
            )
            return await rag_tools.ae_pipeline_rag(request)

        return await execute_tool("ae_pipeline_rag", call)

    return server


def main():
    """Main entry point for the MCP server."""
    configure_logging(settings.log_level, structured=settings.log_json)

    try:
        logger.info("Starting RxNav Drug Terminology MCP Server...")
        settings.validate_configuration()

        server = create_server()

        logger.info("RxNav MCP Server initialized successfully")
        logger.info(f"Available tools: {', '.join(TOOL_NAMES)}")

        server.run()

    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        raise


if __name__ == "__main__":
    main()
