"""Exception hierarchy for the RxNav drug-terminology MCP server.

All server exceptions inherit from RxNavServerError so callers can catch every
server-specific failure with a single except clause while leaving third-party
errors (httpx, pydantic) distinguishable.

Failure domains:
    - ConfigurationError: invalid settings or pipeline parameters (fail fast)
    - PipelineError: unexpected fault inside the retrieval/summarization core
    - ValidationError: bad tool arguments
    - UpstreamError: RxNav HTTP failures (request errors, timeouts)

Each exception carries structured metadata:
    - error_code: machine-readable identifier (e.g. "PIPELINE_ERROR")
    - message: human-readable description
    - details: additional context (endpoint, identifier, parameters)
    - timestamp / request_id: for correlating log lines
    - original_exception: the underlying cause, if any

Usage Example:
--------------
```python
try:
    response = await client.get(url)
except httpx.TimeoutException as e:
    raise RxNavTimeoutError(
        message="RxNav request timed out",
        details={"endpoint": "/drugs.json", "attempts": 4},
        original_exception=e,
    ) from e
```
"""

import traceback
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

# =============================================================================
# BASE EXCEPTION CLASS
# =============================================================================


@dataclass(frozen=True)
class RxNavServerError(Exception):
    """Base exception for all RxNav MCP server errors.

    Attributes:
    -----------
    message : str
        Human-readable error description for developers and logs
    error_code : str
        Machine-readable error identifier (e.g., "VALIDATION_ERROR")
    details : dict
        Additional context about the error (identifier, endpoint, parameters)
    timestamp : str
        ISO 8601 timestamp when the error occurred
    request_id : str
        Unique identifier for correlating the error across log lines
    http_status_code : int
        Status code equivalent, used when errors are rendered for clients
    original_exception : Optional[Exception]
        The underlying exception that caused this error

    Example:
    --------
    >>> try:
    ...     int("abc")
    ... except ValueError as e:
    ...     raise RxNavServerError(
    ...         message="Could not parse RxCUI",
    ...         error_code="PARSE_ERROR",
    ...         details={"value": "abc"},
    ...         original_exception=e,
    ...     )
    """

    message: str
    error_code: str
    details: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())
    request_id: str = field(default_factory=lambda: str(uuid4()))
    http_status_code: int = 500
    original_exception: Exception | None = None

    def __str__(self) -> str:
        """Human-readable error representation for logs."""
        error_msg = f"[{self.error_code}] {self.message}"
        if self.details:
            error_msg += f" | Details: {self.details}"
        if self.original_exception:
            error_msg += (
                f" | Caused by: {type(self.original_exception).__name__}: {self.original_exception}"
            )
        return error_msg

    def __repr__(self) -> str:
        """Developer-friendly representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"request_id='{self.request_id}', "
            f"timestamp='{self.timestamp}'"
            f")"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON serialization.

        Returns:
        --------
        dict with keys: error, error_code, details, timestamp, request_id,
        http_status_code and, when a cause is attached, original_error
        """
        error_dict = {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details,
            "timestamp": self.timestamp,
            "request_id": self.request_id,
            "http_status_code": self.http_status_code,
        }

        if self.original_exception:
            error_dict["original_error"] = {
                "type": type(self.original_exception).__name__,
                "message": str(self.original_exception),
                "traceback": traceback.format_exception(
                    type(self.original_exception),
                    self.original_exception,
                    self.original_exception.__traceback__,
                ),
            }

        return error_dict


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class ConfigurationError(RxNavServerError):
    """Configuration or parameter errors.

    Use Case:
    ---------
    - Invalid environment settings at startup
    - Chunk overlap not smaller than chunk size
    - Non-positive chunk size, top_k or summary length

    Raised before any processing starts; never caught to continue with
    partial work.

    Example:
    --------
    >>> raise ConfigurationError(
    ...     message="Chunk overlap must be smaller than chunk size",
    ...     details={"chunk_size": 100, "overlap": 100},
    ... )
    """

    error_code: str = "CONFIGURATION_ERROR"
    http_status_code: int = 500


# =============================================================================
# PIPELINE EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class PipelineError(RxNavServerError):
    """Unexpected fault inside the retrieval/summarization pipeline.

    Wraps the original cause (for example malformed chunk metadata rejected
    by the model layer) so the tool boundary sees a single error type.
    """

    error_code: str = "PIPELINE_ERROR"
    http_status_code: int = 500


# =============================================================================
# VALIDATION EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class ValidationError(RxNavServerError):
    """Input validation failures.

    These are client errors, not bugs: do not retry, report the offending
    field back to the caller.

    Example:
    --------
    >>> raise ValidationError(
    ...     message="Parameter validation failed",
    ...     details={"errors": [{"field": "top_k", "error": "must be <= 10"}]},
    ... )
    """

    error_code: str = "VALIDATION_ERROR"
    http_status_code: int = 400


# =============================================================================
# UPSTREAM (RXNAV) EXCEPTIONS
# =============================================================================


@dataclass(frozen=True)
class UpstreamError(RxNavServerError):
    """Base class for failures talking to the RxNav REST API."""

    error_code: str = "UPSTREAM_ERROR"
    http_status_code: int = 502


@dataclass(frozen=True)
class RxNavRequestError(UpstreamError):
    """RxNav returned an error status or the request could not be completed.

    Example:
    --------
    >>> raise RxNavRequestError(
    ...     message="RxNav API error (404)",
    ...     details={"url": "https://rxnav.nlm.nih.gov/REST/rxcui/0/related.json",
    ...              "status_code": 404},
    ... )
    """

    error_code: str = "RXNAV_REQUEST_FAILED"
    http_status_code: int = 502


@dataclass(frozen=True)
class RxNavTimeoutError(UpstreamError):
    """RxNav did not answer within the configured timeout on the final attempt."""

    error_code: str = "RXNAV_TIMEOUT"
    http_status_code: int = 504


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def convert_to_server_exception(
    exception: Exception,
    default_message: str = "An unexpected error occurred",
    context: dict[str, Any] | None = None,
) -> RxNavServerError:
    """Convert any exception to an appropriate server exception.

    Used at the tool boundary so every failure reaching the client has the
    same structure.

    Args:
    -----
    exception : Exception
        The original exception to convert
    default_message : str
        Fallback message if exception type is unknown
    context : dict, optional
        Additional context to include in error details

    Returns:
    --------
    RxNavServerError or subclass

    Example:
    --------
    >>> try:
    ...     DrugIdentifierRequest(drug_identifier="")
    ... except Exception as e:
    ...     raise convert_to_server_exception(e, context={"tool": "get_generic_name"})
    """
    import httpx

    context = context or {}

    if isinstance(exception, RxNavServerError):
        return exception

    # Timeouts first: httpx.TimeoutException is also a TransportError
    if isinstance(exception, httpx.TimeoutException):
        return RxNavTimeoutError(
            message="RxNav request timed out",
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    if isinstance(exception, httpx.HTTPError):
        return RxNavRequestError(
            message="RxNav request failed",
            details={**context, "error": str(exception)},
            original_exception=exception,
        )

    # Pydantic validation errors
    if exception.__class__.__name__ == "ValidationError":
        return ValidationError(
            message="Parameter validation failed",
            details={**context, "validation_errors": str(exception)},
            original_exception=exception,
        )

    return RxNavServerError(
        message=default_message,
        error_code="INTERNAL_ERROR",
        details={**context, "error_type": type(exception).__name__, "error": str(exception)},
        original_exception=exception,
    )
