"""Typed exception hierarchy for insight."""

from __future__ import annotations

import asyncio

import httpx


class InsightError(Exception):
    """Base class for all insight errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(InsightError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure)."""


class ProviderError(InsightError):
    """Raised for model provider issues (API errors, network issues, auth failure).

    Attributes:
        status_code: HTTP status of the failed request, or None when the
            failure happened before a response was received.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ToolInitError(InsightError):
    """Raised when a session cannot build its tool set."""


class ProtocolError(InsightError):
    """Raised for malformed client messages."""


def describe_error(error: BaseException) -> str:
    """Turn a query failure into a short human-readable message.

    Token-limit failures are handled separately by the session, so this only
    needs to classify the remaining ways a query can fail.

    Args:
        error: The exception that ended the query.

    Returns:
        A message suitable for an error notice.
    """
    message = str(error) or type(error).__name__

    if isinstance(error, ToolInitError):
        return f"Tool initialization failed: {message}"

    status = getattr(error, "status_code", None)
    if status in (401, 403):
        return f"Authentication with the model provider failed: {message}"
    if status == 429:
        return f"Rate limited by the model provider: {message}"

    if isinstance(error, (httpx.TimeoutException, asyncio.TimeoutError, TimeoutError)):
        return f"Request timed out: {message}"

    return message
