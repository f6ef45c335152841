"""Centralized configuration management using Pydantic Settings.

This module provides type-safe configuration with environment variable support,
validation, and clear defaults for the RxNav client, the retrieval pipeline and
logging. It is the single source of truth for application settings.

Configuration can be overridden via environment variables (e.g., RXNAV_BASE_URL,
RAG_CHUNK_SIZE) or a .env file, and is validated at startup.

Example:
    Loading and validating settings:
    >>> from rxnav_mcp.config.settings import settings
    >>> settings.validate_configuration()
    >>> print(settings.rag_chunk_size)
    800
"""

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rxnav_mcp.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables with validation.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file (if present)
    3. Class defaults (lowest priority)

    Attributes:
        RxNav API settings for the HTTP client (URL, timeout, retry policy)
        Retrieval pipeline settings (chunking, ranking, summary bounds)
        MCP server identity
        Logging settings
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # RxNav API Configuration
    # ========================================================================

    rxnav_base_url: str = Field(
        default="https://rxnav.nlm.nih.gov/REST",
        description="Base URL of the RxNav REST API (no trailing slash)",
    )

    rxnav_request_timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds",
        gt=0,
        le=300,
    )

    rxnav_max_retries: int = Field(
        default=3,
        description="Retries after the first attempt for timeouts, transport errors and 5xx responses",
        ge=0,
        le=10,
    )

    rxnav_retry_delay: float = Field(
        default=1.0,
        description="Base backoff delay in seconds, doubled on every retry",
        ge=0,
    )

    rxnav_user_agent: str = Field(
        default="RxNav-MCP-Server/0.1.0",
        description="User-Agent header sent with every RxNav request",
    )

    # ========================================================================
    # Retrieval Pipeline Configuration
    # ========================================================================

    rag_chunk_size: int = Field(
        default=800,
        description="Chunk window size in characters",
        ge=1,
    )

    rag_chunk_overlap: int = Field(
        default=150,
        description="Characters shared by consecutive chunks of one source",
        ge=0,
    )

    rag_default_top_k: int = Field(
        default=5,
        description="Number of chunks returned when the caller does not pass top_k",
        ge=1,
        le=10,
    )

    rag_max_summary_length: int = Field(
        default=1200,
        description="Summary length bound in characters (before the truncation marker)",
        ge=1,
    )

    rag_chunk_display_limit: int = Field(
        default=1000,
        description="Characters of chunk text kept in top_chunks of a pipeline result",
        ge=1,
    )

    rag_citation_preview_length: int = Field(
        default=120,
        description="Maximum snippet length of a citation, ellipsis included",
        ge=4,
    )

    rag_atc_boost_weight: float = Field(
        default=0.5,
        description=(
            "Tie-break boost for classification keywords in chunks that carry ATC codes. "
            "Kept below 1.0 so it never outranks a higher raw keyword count"
        ),
        ge=0.0,
        lt=1.0,
    )

    # ========================================================================
    # MCP Server Configuration
    # ========================================================================

    mcp_server_name: str = Field(
        default="rxnav-drug-terminology",
        description="Name advertised to MCP clients",
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for all server modules",
    )

    log_json: bool = Field(
        default=False,
        description="Emit JSON log lines instead of the plain text format",
    )

    # ========================================================================
    # Field Validators
    # ========================================================================

    @field_validator("rxnav_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Normalize the base URL so endpoint paths can always start with '/'."""
        return value.rstrip("/")

    @field_validator("rag_chunk_overlap")
    @classmethod
    def validate_overlap(cls, overlap: int, info) -> int:
        """Ensure the chunk window always advances.

        Args:
            overlap: Configured overlap
            info: Validation info carrying previously validated fields

        Returns:
            Validated overlap

        Raises:
            ValueError: If overlap is not smaller than the chunk size
        """
        chunk_size = info.data.get("rag_chunk_size")
        if chunk_size is not None and overlap >= chunk_size:
            raise ValueError(
                f"rag_chunk_overlap ({overlap}) must be smaller than rag_chunk_size ({chunk_size})"
            )
        return overlap

    # ========================================================================
    # Validation and Display
    # ========================================================================

    def validate_configuration(self) -> None:
        """Validate the complete configuration at startup.

        Raises:
            ConfigurationError: If a cross-field constraint is violated

        Example:
            >>> from rxnav_mcp.config.settings import settings
            >>> settings.validate_configuration()
        """
        logger.info("Validating application configuration...")

        if self.rag_citation_preview_length > self.rag_chunk_display_limit:
            error_msg = (
                f"Invalid pipeline configuration: citation preview length "
                f"({self.rag_citation_preview_length}) exceeds chunk display limit "
                f"({self.rag_chunk_display_limit})"
            )
            logger.error(error_msg)
            raise ConfigurationError(
                message=error_msg,
                details={
                    "rag_citation_preview_length": self.rag_citation_preview_length,
                    "rag_chunk_display_limit": self.rag_chunk_display_limit,
                },
            )

        if not self.rxnav_base_url.startswith(("http://", "https://")):
            error_msg = f"Invalid RxNav base URL: {self.rxnav_base_url}"
            logger.error(error_msg)
            raise ConfigurationError(
                message=error_msg, details={"rxnav_base_url": self.rxnav_base_url}
            )

        logger.info("Configuration validation passed")

    def print_config(self) -> None:
        """Print the current configuration as a table on stderr.

        stdout is reserved for MCP frames, so the table goes to stderr.

        Example:
            >>> from rxnav_mcp.config.settings import settings
            >>> settings.print_config()
        """
        from rich.console import Console
        from rich.table import Table

        console = Console(stderr=True)
        table = Table(title="RxNav MCP Configuration", show_header=True)
        table.add_column("Setting", style="cyan", no_wrap=False)
        table.add_column("Value", style="magenta", no_wrap=False)

        config_items = {
            "RxNav Base URL": self.rxnav_base_url,
            "Request Timeout": f"{self.rxnav_request_timeout}s",
            "Retries": f"{self.rxnav_max_retries} (base delay {self.rxnav_retry_delay}s)",
            "Chunking": f"{self.rag_chunk_size} chars, overlap {self.rag_chunk_overlap}",
            "Default top_k": str(self.rag_default_top_k),
            "Summary Length": str(self.rag_max_summary_length),
            "ATC Boost Weight": f"{self.rag_atc_boost_weight:.2f}",
            "Server Name": self.mcp_server_name,
            "Log Level": self.log_level,
            "JSON Logs": "✓ Enabled" if self.log_json else "✗ Disabled",
        }

        for key, value in config_items.items():
            table.add_row(key, str(value))

        console.print(table)


# Global settings instance - initialized once at module import
settings = Settings()


def print_config() -> None:
    """Convenience wrapper around settings.print_config()."""
    settings.print_config()


if __name__ == "__main__":
    import sys

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        settings.validate_configuration()
        print_config()
        logger.info("✓ Configuration is valid and ready for use")
        sys.exit(0)
    except ConfigurationError as e:
        logger.error(f"✗ Configuration validation failed: {e}")
        sys.exit(1)
