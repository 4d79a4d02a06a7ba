"""Recognise model failures caused by an oversized prompt.

The session compacts and retries once when a query fails this way, so the
classification lives here in one place. Providers do not agree on an error
code for it, so detection matches the error message against known phrasings.
When the error carries an HTTP status, the status must also be one the
providers use for the condition.

The phrasings drift as providers change their APIs. Both lists are
configurable (see TokenLimitConfig). A status-matching failure whose message
matches nothing is logged, so missed detections show up in the logs.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIMIT_PATTERNS: tuple[str, ...] = (
    "prompt is too long",
    "context window",
    "context length",
    "max_tokens",
    "maximum context",
    "token limit",
    "tokens exceed",
    "exceeds the maximum",
    "too many tokens",
    "context limit",
    "input too long",
    "request too large",
)

DEFAULT_TOKEN_LIMIT_STATUS_CODES: tuple[int, ...] = (400, 413, 422)

_TOKEN_COUNT_RE = re.compile(r"(\d+)\s*tokens?", re.IGNORECASE)


class TokenLimitClassifier:
    """Decides whether a failure means "the prompt did not fit".

    Example:
        classifier = TokenLimitClassifier()
        if classifier.is_token_limit_error(exc):
            reason = classifier.describe(exc)
    """

    def __init__(
        self,
        patterns: Iterable[str] = DEFAULT_TOKEN_LIMIT_PATTERNS,
        status_codes: Iterable[int] = DEFAULT_TOKEN_LIMIT_STATUS_CODES,
    ) -> None:
        self._patterns = tuple(p.lower() for p in patterns)
        self._status_codes = frozenset(status_codes)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    @property
    def status_codes(self) -> frozenset[int]:
        return self._status_codes

    def _matches_message(self, message: str) -> bool:
        lowered = message.lower()
        return any(pattern in lowered for pattern in self._patterns)

    def is_token_limit_error(self, error: object) -> bool:
        """Check whether ``error`` reports an exceeded context window.

        Errors with a ``status_code`` need both a relevant status and a
        matching message. Errors without one are judged on the message alone.
        Anything that is not an exception is never a token-limit error.
        """
        if not isinstance(error, BaseException):
            return False

        message = str(error)
        status = getattr(error, "status_code", None)

        if status is None:
            return self._matches_message(message)

        if status not in self._status_codes:
            return False

        if self._matches_message(message):
            return True

        logger.warning(
            "Status %s failure did not match any token-limit pattern; "
            "not compacting. If this was a context-window error, add its "
            "phrasing to token_limit.patterns: %.200s",
            status,
            message,
        )
        return False

    def describe(self, error: object) -> str | None:
        """Return a user-facing explanation, or None for other failures."""
        if not self.is_token_limit_error(error):
            return None

        match = _TOKEN_COUNT_RE.search(str(error))
        if match:
            return (
                f"Request exceeded token limit ({match.group(1)} tokens). "
                "Context will be compacted."
            )
        return "Request exceeded the model's context window. Context will be compacted."


_default_classifier = TokenLimitClassifier()


def is_token_limit_error(error: object) -> bool:
    """Classify ``error`` with the default patterns and status codes."""
    return _default_classifier.is_token_limit_error(error)


def get_token_limit_error_description(error: object) -> str | None:
    """Describe ``error`` with the default patterns and status codes."""
    return _default_classifier.describe(error)
