"""Async HTTP client for the RxNav REST API (National Library of Medicine).

Handles API communication with retry logic: timeouts, transport errors and
5xx responses are retried with exponential backoff; 4xx responses fail
immediately.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from rxnav_mcp.config.settings import settings
from rxnav_mcp.exceptions import RxNavRequestError, RxNavTimeoutError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({500, 502, 503, 504})


class RxNavClient:
    """HTTP client for RxNav API with retry logic.

    Attributes:
        base_url: RxNav REST root, e.g. "https://rxnav.nlm.nih.gov/REST"
        request_timeout: Maximum seconds to wait for a response
        max_retries: Retries after the first attempt
        retry_delay: Base backoff delay in seconds, doubled per retry

    Example:
        >>> async with RxNavClient() as client:
        ...     data = await client.fetch_json("/drugs.json", {"name": "aspirin"})
    """

    def __init__(
        self,
        base_url: str | None = None,
        request_timeout: float | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize HTTP client, defaulting every parameter from settings.

        Args:
            base_url: API root URL
            request_timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
            retry_delay: Base backoff delay in seconds
            transport: Optional httpx transport (tests pass httpx.MockTransport)
            sleep: Coroutine used for backoff delays
        """
        self.base_url = (base_url or settings.rxnav_base_url).rstrip("/")
        self.request_timeout = (
            request_timeout if request_timeout is not None else settings.rxnav_request_timeout
        )
        self.max_retries = max_retries if max_retries is not None else settings.rxnav_max_retries
        self.retry_delay = retry_delay if retry_delay is not None else settings.rxnav_retry_delay
        self._sleep = sleep

        self.client = httpx.AsyncClient(
            timeout=self.request_timeout,
            headers={"Accept": "application/json", "User-Agent": settings.rxnav_user_agent},
            transport=transport,
        )

    async def fetch_json(
        self, endpoint_path: str, query_parameters: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Fetch JSON data from RxNav API with retry logic.

        Args:
            endpoint_path: API endpoint path (e.g., "/drugs.json")
            query_parameters: Optional query parameters dictionary

        Returns:
            JSON response as dictionary (empty dict for an empty body)

        Raises:
            RxNavRequestError: On a non-retryable status or when retries are exhausted
            RxNavTimeoutError: When the final attempt timed out
        """
        url = f"{self.base_url}{endpoint_path}"
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            logger.debug(f"RxNav request {url} params={query_parameters} attempt={attempt + 1}")
            started = time.monotonic()

            try:
                response = await self.client.get(url, params=query_parameters or {})
            except httpx.TransportError as error:
                last_error = error
                logger.warning(f"RxNav request failed (attempt {attempt + 1}): {url}: {error!r}")
            else:
                duration_ms = int((time.monotonic() - started) * 1000)
                logger.info(
                    f"RxNav response {response.status_code} for {endpoint_path} in {duration_ms}ms"
                )

                if response.is_success:
                    if not response.content:
                        return {}
                    try:
                        return response.json()
                    except ValueError as error:
                        raise RxNavRequestError(
                            message="RxNav returned a response that is not valid JSON",
                            details={"url": url, "body": response.text[:200]},
                            original_exception=error,
                        ) from error

                error_message = f"RxNav API error ({response.status_code}): {response.text[:500]}"
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    logger.error(error_message)
                    raise RxNavRequestError(
                        message=error_message,
                        details={
                            "url": url,
                            "params": query_parameters,
                            "status_code": response.status_code,
                        },
                    )

                last_error = httpx.HTTPStatusError(
                    error_message, request=response.request, response=response
                )
                logger.warning(f"{error_message} (attempt {attempt + 1})")

            if attempt < self.max_retries:
                backoff_delay = self.retry_delay * (2**attempt)
                logger.info(f"Retrying {endpoint_path} after {backoff_delay:.2f}s")
                await self._sleep(backoff_delay)

        attempts = self.max_retries + 1
        logger.error(f"RxNav request failed permanently after {attempts} attempts: {url}")

        details = {"url": url, "params": query_parameters, "attempts": attempts}
        if isinstance(last_error, httpx.TimeoutException):
            raise RxNavTimeoutError(
                message=f"RxNav request timed out after {attempts} attempts",
                details=details,
                original_exception=last_error,
            ) from last_error

        raise RxNavRequestError(
            message=f"RxNav API request failed after {attempts} attempts: {last_error}",
            details=details,
            original_exception=last_error,
        ) from last_error

    async def close(self) -> None:
        """Close the HTTP client connection."""
        await self.client.aclose()

    async def __aenter__(self) -> "RxNavClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
