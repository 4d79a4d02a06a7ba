"""Conversation history exchanged with the UI client.

A client may send its own copy of the conversation with a query. That data
is untyped JSON from outside the process, so it is parsed rather than
trusted: each entry must carry a known ``role`` and well-formed content, and
anything else is skipped.

Client JSON uses the UI's camelCase keys:

    {"role": "user", "content": "hi"}
    {"role": "assistant", "content": "text"}
    {"role": "assistant", "content": [
        {"type": "text", "text": "..."},
        {"type": "tool-call", "toolCallId": "c1", "toolName": "x", "args": {...}},
    ]}
    {"role": "tool", "content": [
        {"type": "tool-result", "toolCallId": "c1", "toolName": "x",
         "result": ..., "isError": false},
    ]}
"""

from __future__ import annotations

import logging
from typing import Any

from insight.core.types import (
    AssistantMessage,
    ContentSegment,
    ConversationMessage,
    TextSegment,
    ToolCallSegment,
    ToolMessage,
    ToolResultSegment,
    UserMessage,
)

logger = logging.getLogger(__name__)

CLIENT_ROLES = frozenset({"user", "assistant", "tool"})


class _MalformedEntry(ValueError):
    """Internal: raised while parsing one entry, caught per entry."""


def _require_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise _MalformedEntry(f"'{key}' must be a string")
    return value


def _parse_assistant_part(part: Any) -> ContentSegment:
    if not isinstance(part, dict):
        raise _MalformedEntry("assistant part must be an object")
    match part.get("type"):
        case "text":
            return TextSegment(text=_require_str(part, "text"))
        case "tool-call":
            return ToolCallSegment(
                call_id=_require_str(part, "toolCallId"),
                tool_name=_require_str(part, "toolName"),
                args=part.get("args"),
            )
        case other:
            raise _MalformedEntry(f"unsupported assistant part type {other!r}")


def _parse_tool_part(part: Any) -> ToolResultSegment:
    if not isinstance(part, dict) or part.get("type") != "tool-result":
        raise _MalformedEntry("tool content must be tool-result parts")
    return ToolResultSegment(
        call_id=_require_str(part, "toolCallId"),
        tool_name=_require_str(part, "toolName"),
        result=part.get("result"),
        is_error=bool(part.get("isError", False)),
    )


def deserialize_message(data: Any) -> ConversationMessage:
    """Parse one client history entry.

    Raises:
        ValueError: If the entry is not a well-formed message.
    """
    if not isinstance(data, dict):
        raise _MalformedEntry("message must be an object")

    role = data.get("role")
    content = data.get("content")

    if role == "user":
        return UserMessage(content=_require_str(data, "content"))

    if role == "assistant":
        if isinstance(content, str):
            return AssistantMessage(content=content)
        if isinstance(content, list):
            return AssistantMessage(content=tuple(_parse_assistant_part(p) for p in content))
        raise _MalformedEntry("assistant content must be a string or a list")

    if role == "tool":
        if not isinstance(content, list):
            raise _MalformedEntry("tool content must be a list")
        return ToolMessage(content=tuple(_parse_tool_part(p) for p in content))

    raise _MalformedEntry(f"unknown role {role!r}")


def parse_client_history(data: object) -> list[ConversationMessage]:
    """Parse a client-supplied history, skipping malformed entries.

    Args:
        data: Decoded JSON from the client. Anything but a list yields [].

    Returns:
        The valid messages, in their original order.
    """
    if not isinstance(data, list):
        return []

    messages: list[ConversationMessage] = []
    for index, entry in enumerate(data):
        try:
            messages.append(deserialize_message(entry))
        except _MalformedEntry as e:
            logger.debug("Skipping client history entry %d: %s", index, e)
    return messages


def _serialize_segment(segment: ContentSegment) -> dict[str, Any]:
    if isinstance(segment, TextSegment):
        return {"type": "text", "text": segment.text}
    return {
        "type": "tool-call",
        "toolCallId": segment.call_id,
        "toolName": segment.tool_name,
        "args": segment.args,
    }


def serialize_message(message: ConversationMessage) -> dict[str, Any]:
    """Convert a message to client JSON (the inverse of deserialize_message)."""
    if isinstance(message, UserMessage):
        return {"role": "user", "content": message.content}
    if isinstance(message, AssistantMessage):
        if isinstance(message.content, str):
            return {"role": "assistant", "content": message.content}
        return {
            "role": "assistant",
            "content": [_serialize_segment(s) for s in message.content],
        }
    return {
        "role": "tool",
        "content": [
            {
                "type": "tool-result",
                "toolCallId": r.call_id,
                "toolName": r.tool_name,
                "result": r.result,
                "isError": r.is_error,
            }
            for r in message.content
        ],
    }


def serialize_messages(history: list[ConversationMessage]) -> list[dict[str, Any]]:
    return [serialize_message(m) for m in history]
