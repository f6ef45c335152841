"""Unit tests for the exception hierarchy.

Test Coverage:
--------------
1. Exception instantiation and attributes
2. Exception inheritance hierarchy
3. Error code and HTTP status code mapping
4. Exception serialization (to_dict)
5. Exception string representations
6. Conversion of httpx and pydantic errors at the tool boundary
"""

import httpx
import pytest
from pydantic import BaseModel, Field

from rxnav_mcp.exceptions import (
    ConfigurationError,
    PipelineError,
    RxNavRequestError,
    RxNavServerError,
    RxNavTimeoutError,
    UpstreamError,
    ValidationError,
    convert_to_server_exception,
)

# =============================================================================
# BASE EXCEPTION TESTS
# =============================================================================


@pytest.mark.unit
class TestRxNavServerError:
    """Test the base RxNavServerError class."""

    def test_basic_instantiation(self):
        error = RxNavServerError(message="Test error", error_code="TEST_ERROR")

        assert error.message == "Test error"
        assert error.error_code == "TEST_ERROR"
        assert error.http_status_code == 500
        assert isinstance(error.details, dict)
        assert isinstance(error.timestamp, str)
        assert isinstance(error.request_id, str)

    def test_request_ids_are_unique(self):
        first = RxNavServerError(message="a", error_code="A")
        second = RxNavServerError(message="a", error_code="A")

        assert first.request_id != second.request_id

    def test_string_representation(self):
        error = RxNavServerError(
            message="Test error",
            error_code="TEST_ERROR",
            details={"rxcui": "1191"},
            original_exception=ValueError("bad value"),
        )

        error_str = str(error)
        assert error_str.startswith("[TEST_ERROR] Test error")
        assert "rxcui" in error_str
        assert "Caused by: ValueError: bad value" in error_str

    def test_repr_representation(self):
        error = RxNavServerError(message="Test error", error_code="TEST_ERROR")

        error_repr = repr(error)
        assert "RxNavServerError" in error_repr
        assert "TEST_ERROR" in error_repr
        assert "request_id" in error_repr

    def test_to_dict_serialization(self):
        error = RxNavServerError(
            message="Test error", error_code="TEST_ERROR", details={"field": "value"}
        )

        error_dict = error.to_dict()

        assert error_dict["error"] == "Test error"
        assert error_dict["error_code"] == "TEST_ERROR"
        assert error_dict["details"]["field"] == "value"
        assert error_dict["http_status_code"] == 500
        assert "timestamp" in error_dict
        assert "request_id" in error_dict
        assert "original_error" not in error_dict

    def test_to_dict_with_original_exception(self):
        original = ValueError("Original error")
        error = RxNavServerError(
            message="Wrapped error", error_code="WRAPPED_ERROR", original_exception=original
        )

        error_dict = error.to_dict()

        assert error_dict["original_error"]["type"] == "ValueError"
        assert "Original error" in error_dict["original_error"]["message"]

    def test_is_raisable(self):
        with pytest.raises(RxNavServerError) as exc_info:
            raise PipelineError(message="boom")

        assert exc_info.value.error_code == "PIPELINE_ERROR"


# =============================================================================
# SUBCLASS DEFAULTS
# =============================================================================


@pytest.mark.unit
class TestErrorCodes:
    """Each subclass carries its own error code and status."""

    @pytest.mark.parametrize(
        "exception_class, error_code, status_code",
        [
            (ConfigurationError, "CONFIGURATION_ERROR", 500),
            (PipelineError, "PIPELINE_ERROR", 500),
            (ValidationError, "VALIDATION_ERROR", 400),
            (UpstreamError, "UPSTREAM_ERROR", 502),
            (RxNavRequestError, "RXNAV_REQUEST_FAILED", 502),
            (RxNavTimeoutError, "RXNAV_TIMEOUT", 504),
        ],
    )
    def test_defaults(self, exception_class, error_code, status_code):
        error = exception_class(message="failure")

        assert error.error_code == error_code
        assert error.http_status_code == status_code
        assert isinstance(error, RxNavServerError)

    def test_upstream_hierarchy(self):
        assert issubclass(RxNavRequestError, UpstreamError)
        assert issubclass(RxNavTimeoutError, UpstreamError)
        assert not issubclass(ConfigurationError, UpstreamError)


# =============================================================================
# EXCEPTION CONVERSION TESTS
# =============================================================================


class _Limited(BaseModel):
    top_k: int = Field(..., le=10)


@pytest.mark.unit
class TestExceptionConversion:
    """Test converting third-party exceptions to server exceptions."""

    def test_server_exception_returned_unchanged(self):
        original = ValidationError(message="Test error")

        assert convert_to_server_exception(original) is original

    def test_convert_httpx_timeout(self):
        original = httpx.ReadTimeout("timed out")

        converted = convert_to_server_exception(original, context={"operation": "search"})

        assert isinstance(converted, RxNavTimeoutError)
        assert converted.details["operation"] == "search"
        assert converted.original_exception is original

    def test_convert_httpx_error(self):
        original = httpx.ConnectError("connection refused")

        converted = convert_to_server_exception(original)

        assert isinstance(converted, RxNavRequestError)
        assert "connection refused" in converted.details["error"]

    def test_convert_pydantic_validation_error(self):
        with pytest.raises(Exception) as exc_info:
            _Limited(top_k=50)

        converted = convert_to_server_exception(exc_info.value, context={"operation": "rag"})

        assert isinstance(converted, ValidationError)
        assert "top_k" in converted.details["validation_errors"]

    def test_convert_generic_exception(self):
        original = RuntimeError("Unknown error")

        converted = convert_to_server_exception(
            original, default_message="Something went wrong", context={"operation": "test"}
        )

        assert type(converted) is RxNavServerError
        assert converted.message == "Something went wrong"
        assert converted.error_code == "INTERNAL_ERROR"
        assert converted.details["error_type"] == "RuntimeError"
        assert converted.details["operation"] == "test"
        assert converted.original_exception is original
