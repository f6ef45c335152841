"""RxNav drug-terminology MCP server with a retrieval/summarization pipeline."""

__version__ = "0.1.0"
