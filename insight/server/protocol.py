"""Client message parsing and notice serialization.

Client frames are JSON objects ``{"type": ..., "payload": {...}}``:

    {"type": "query", "payload": {"content": "...", "sessionId": "...", "history": [...]}}
    {"type": "cancel", "payload": {"sessionId": "..."}}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from insight.core.errors import ProtocolError
from insight.session.events import ClientNotice


@dataclass(frozen=True)
class QueryRequest:
    """Run a query.

    Attributes:
        content: The user's message.
        session_id: Client-chosen session id, if any.
        history: Client-held history (still untyped; the session validates it).
    """

    content: str
    session_id: str | None = None
    history: list[Any] | None = None


@dataclass(frozen=True)
class CancelRequest:
    """Cancel the running query."""

    session_id: str | None = None


ClientRequest = QueryRequest | CancelRequest


def _optional_str(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, str):
        raise ProtocolError(f"{key} must be a string, got: {type(value).__name__}")
    return value


def parse_client_message(raw: str | bytes) -> ClientRequest:
    """Parse one client frame.

    Raises:
        ProtocolError: If the frame is not valid JSON, not an object, has an
            unknown type, or carries an invalid payload.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ProtocolError("Message must be a JSON object")

    message_type = data.get("type")
    if not isinstance(message_type, str):
        raise ProtocolError("Message must have a string 'type' field")

    payload = data.get("payload", {})
    if not isinstance(payload, dict):
        raise ProtocolError(f"payload must be an object, got: {type(payload).__name__}")

    if message_type == "query":
        content = payload.get("content")
        if not isinstance(content, str):
            raise ProtocolError("query content must be a string")
        history = payload.get("history")
        if history is not None and not isinstance(history, list):
            raise ProtocolError(f"history must be an array, got: {type(history).__name__}")
        return QueryRequest(
            content=content,
            session_id=_optional_str(payload, "sessionId"),
            history=history,
        )

    if message_type == "cancel":
        return CancelRequest(session_id=_optional_str(payload, "sessionId"))

    raise ProtocolError(f"Unknown message type: {message_type}")


def serialize_notice(notice: ClientNotice) -> str:
    """Serialize a notice to a compact JSON frame."""
    return json.dumps(notice.to_dict(), separators=(",", ":"), ensure_ascii=False)
