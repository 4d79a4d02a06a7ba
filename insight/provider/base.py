"""Base provider with shared HTTP, retry, and error-mapping logic.

This module provides the abstract base class for model providers. It owns
the httpx client, reads the API key from the environment, retries transient
failures, and turns HTTP failures into ProviderError with the status code
attached. The session uses that status code to recognise token-limit
failures.
"""

from __future__ import annotations

import asyncio
import logging
import os
import random
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any
from urllib.parse import urlparse

import httpx

from insight.config.schema import ProviderConfig
from insight.core.errors import ProviderError
from insight.core.types import StreamEvent, WireMessage

logger = logging.getLogger(__name__)

# Hosts that are considered safe for HTTP (non-HTTPS) connections
_LOOPBACK_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "[::1]"})

# Error bodies are capped so a misbehaving endpoint cannot flood memory or logs
MAX_ERROR_BODY_SIZE: int = 10 * 1024

MAX_RETRY_DELAY = 10.0
RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504, 529}


def validate_base_url(url: str, allow_insecure: bool = False) -> None:
    """Reject base URLs that would send the API key in the clear.

    HTTPS is always accepted. Plain HTTP is accepted for loopback hosts, or
    anywhere when ``allow_insecure`` is set.

    Raises:
        ProviderError: If the URL is empty, has no scheme, or is insecure.
    """
    parsed = urlparse(url or "")
    scheme = parsed.scheme.lower()

    if scheme == "https":
        return
    if scheme == "http" and (allow_insecure or (parsed.hostname or "").lower() in _LOOPBACK_HOSTS):
        return

    if not url:
        raise ProviderError("Provider base_url is empty")
    if not scheme:
        raise ProviderError(f"Provider base_url '{url}' has no scheme; use https://")
    if scheme == "http":
        raise ProviderError(
            f"Refusing plain HTTP base_url '{url}'. Use HTTPS, a loopback host, or set "
            f"allow_insecure_http=true in the provider config."
        )
    raise ProviderError(f"Unsupported base_url scheme '{scheme}' in '{url}'")


class BaseProvider(ABC):
    """Shared HTTP plumbing for streaming model providers.

    The base class reads the API key, owns the httpx client, retries
    transient failures and turns error responses into ProviderError with
    the HTTP status attached. A subclass supplies the endpoint, the request
    body and the stream parser, and may add headers.
    """

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            config: Provider configuration.
            transport: Optional httpx transport (tests use httpx.MockTransport).

        Raises:
            ProviderError: If the API key is not set or base_url is rejected.
        """
        validate_base_url(config.base_url, allow_insecure=config.allow_insecure_http)

        self._config = config
        self._api_key = self._get_api_key()
        self._base_url = config.base_url.rstrip("/")
        self._model = config.model
        self._timeout = config.request_timeout
        self._max_retries = config.max_retries
        self._retry_backoff = config.retry_backoff
        self._transport = transport

        # Lazily created, instance-owned
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_api_key(self) -> str:
        api_key = os.environ.get(self._config.api_key_env)
        if not api_key:
            raise ProviderError(
                f"API key not found. Set the {self._config.api_key_env} environment variable."
            )
        return api_key

    def _build_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        headers.update(self._config.extra_headers)
        return headers

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff using the config multiplier plus 0-1s jitter."""
        delay = (self._retry_backoff ** attempt) + random.uniform(0, 1)
        return min(delay, MAX_RETRY_DELAY)

    @staticmethod
    async def _error_from_response(response: httpx.Response) -> ProviderError:
        body = (await response.aread())[:MAX_ERROR_BODY_SIZE]
        detail = body.decode(errors="replace")
        status = response.status_code

        if status == 401:
            return ProviderError("Authentication failed. Check your API key.", status_code=status)
        if status == 403:
            return ProviderError("Access forbidden. Check your API permissions.", status_code=status)
        if status == 404:
            return ProviderError(
                "API endpoint not found. Check your configuration.", status_code=status
            )
        return ProviderError(f"API request failed ({status}): {detail}", status_code=status)

    async def _make_streaming_request(
        self,
        url: str,
        body: dict[str, Any],
    ) -> AsyncIterator[httpx.Response]:
        """Make a streaming HTTP request with retries.

        Yields:
            The httpx Response object for streaming (exactly once on success).

        Raises:
            ProviderError: On failure after all retries.
        """
        attempts = self._max_retries + 1

        for attempt in range(attempts):
            try:
                client = await self._ensure_client()
                async with client.stream(
                    "POST", url, headers=self._build_headers(), json=body
                ) as response:
                    if response.status_code >= 400:
                        error = await self._error_from_response(response)
                        retryable = response.status_code in RETRYABLE_STATUS_CODES
                        if retryable and attempt < self._max_retries:
                            logger.info(
                                "Retrying after status %d (attempt %d/%d)",
                                response.status_code, attempt + 1, attempts,
                            )
                            await asyncio.sleep(self._calculate_retry_delay(attempt))
                            continue
                        raise error

                    yield response
                    return

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                if attempt < self._max_retries:
                    logger.info("Retrying after %s (attempt %d/%d)", type(e).__name__, attempt + 1, attempts)
                    await asyncio.sleep(self._calculate_retry_delay(attempt))
                    continue
                if isinstance(e, httpx.ConnectError):
                    raise ProviderError(
                        f"Failed to connect to API after {attempts} attempts: {e}"
                    ) from e
                raise ProviderError(f"API request timed out after {attempts} attempts: {e}") from e
            except httpx.HTTPError as e:
                raise ProviderError(f"HTTP error occurred: {e}") from e

    # Abstract methods for subclasses to implement

    @abstractmethod
    def _build_endpoint(self) -> str:
        """Return the full URL for streaming completions."""
        ...

    @abstractmethod
    def _build_request_body(
        self,
        messages: list[WireMessage],
        tools: list[dict[str, Any]] | None,
    ) -> dict[str, Any]:
        """Build the streaming request body in provider-specific format."""
        ...

    @abstractmethod
    def _parse_stream(self, response: httpx.Response) -> AsyncIterator[StreamEvent]:
        """Parse a streaming response into StreamEvents ending in StreamComplete."""
        ...

    async def stream(
        self,
        messages: list[WireMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream one model turn.

        Args:
            messages: The conversation in wire format.
            tools: Optional tool definitions in OpenAI function format.

        Yields:
            StreamEvent subclasses (ContentDelta, ReasoningDelta,
            ToolCallStarted, StreamComplete).

        Raises:
            ProviderError: If the API request fails.
        """
        url = self._build_endpoint()
        body = self._build_request_body(messages, tools)

        async with aclosing(self._make_streaming_request(url, body)) as responses:
            async for response in responses:
                async with aclosing(self._parse_stream(response)) as events:
                    async for event in events:
                        yield event
