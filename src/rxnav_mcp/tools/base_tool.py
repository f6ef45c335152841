"""Base tool class giving every MCP tool access to the terminology resolver.

Example:
    >>> from rxnav_mcp.tools.base_tool import BaseTool
    >>> class MyTool(BaseTool):
    ...     async def my_operation(self, name):
    ...         return await self.resolver.resolve_rxcui(name)
"""

import logging

from rxnav_mcp.rxnav.resolver import TerminologyResolver

logger = logging.getLogger(__name__)


class BaseTool:
    """Base class for all MCP tools.

    Tools share one resolver (and therefore one pooled httpx client) created
    at server startup.
    """

    def __init__(self, resolver: TerminologyResolver) -> None:
        self.resolver = resolver
        logger.debug(f"Initialized {self.__class__.__name__}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
