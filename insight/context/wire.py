"""Conversion between conversation messages and backend wire messages.

Wire messages are plain JSON dicts in the shape the agent backend consumes:

    {"role": "user", "content": "hi"}
    {"role": "assistant", "content": [
        {"type": "text", "text": "Looking..."},
        {"type": "tool-call", "tool_call_id": "c1", "tool_name": "x", "input": {...}},
    ]}
    {"role": "tool", "content": [
        {"type": "tool-result", "tool_call_id": "c1", "tool_name": "x",
         "output": {"type": "json", "value": ...}},
    ]}

The only semantic transforms are the ``args``/``input`` rename and the error
flag, which travels as the output tag ("json" vs "error-json"). Converting
from the wire side never raises: backend-only parts (reasoning) are dropped
and unknown roles degrade to user messages.
"""

from __future__ import annotations

import logging
from typing import Any

from insight.core.types import (
    AssistantMessage,
    ContentSegment,
    ConversationMessage,
    JSONValue,
    TextSegment,
    ToolCallSegment,
    ToolMessage,
    ToolResultSegment,
    UserMessage,
    WireMessage,
)

logger = logging.getLogger(__name__)

OUTPUT_JSON = "json"
OUTPUT_ERROR_JSON = "error-json"
ERROR_OUTPUT_TYPES = frozenset({"error-json", "error-text"})
TAGGED_OUTPUT_TYPES = frozenset({"json", "text", "error-json", "error-text"})

UNKNOWN_MESSAGE_PLACEHOLDER = "[Unknown message type]"
SYSTEM_MESSAGE_PREFIX = "[System]: "


# --- internal -> wire ---


def _segment_to_wire(segment: ContentSegment) -> dict[str, Any]:
    if isinstance(segment, TextSegment):
        return {"type": "text", "text": segment.text}
    return {
        "type": "tool-call",
        "tool_call_id": segment.call_id,
        "tool_name": segment.tool_name,
        "input": segment.args,
    }


def _result_to_wire(segment: ToolResultSegment) -> dict[str, Any]:
    return {
        "type": "tool-result",
        "tool_call_id": segment.call_id,
        "tool_name": segment.tool_name,
        "output": {
            "type": OUTPUT_ERROR_JSON if segment.is_error else OUTPUT_JSON,
            "value": segment.result,
        },
    }


def to_wire_message(message: ConversationMessage) -> WireMessage:
    """Convert one conversation message to wire format."""
    if isinstance(message, UserMessage):
        return {"role": "user", "content": message.content}
    if isinstance(message, AssistantMessage):
        if isinstance(message.content, str):
            return {"role": "assistant", "content": message.content}
        return {
            "role": "assistant",
            "content": [_segment_to_wire(s) for s in message.content],
        }
    return {"role": "tool", "content": [_result_to_wire(s) for s in message.content]}


def to_wire_messages(history: list[ConversationMessage]) -> list[WireMessage]:
    """Convert a conversation history to wire format (same length, same order)."""
    return [to_wire_message(m) for m in history]


# --- wire -> internal ---


def _text_of_parts(content: Any) -> str:
    if isinstance(content, str):
        return content
    if not isinstance(content, list):
        return ""
    return "".join(
        part.get("text", "")
        for part in content
        if isinstance(part, dict) and part.get("type") == "text"
    )


def _decode_output(output: Any) -> tuple[JSONValue, bool]:
    """Unpack a tagged tool output into (value, is_error).

    Untagged outputs are passed through as the result and count as success.
    """
    if isinstance(output, dict) and output.get("type") in TAGGED_OUTPUT_TYPES and "value" in output:
        return output["value"], output["type"] in ERROR_OUTPUT_TYPES
    return output, False


def _assistant_from_wire(content: Any) -> AssistantMessage:
    if isinstance(content, str):
        return AssistantMessage(content=content)
    if not isinstance(content, list):
        return AssistantMessage(content="")

    segments: list[ContentSegment] = []
    for part in content:
        if not isinstance(part, dict):
            continue
        part_type = part.get("type")
        if part_type == "text":
            segments.append(TextSegment(text=part.get("text", "")))
        elif part_type == "tool-call":
            segments.append(
                ToolCallSegment(
                    call_id=part.get("tool_call_id", ""),
                    tool_name=part.get("tool_name", ""),
                    args=part.get("input"),
                )
            )
        # reasoning and any other backend-only parts are dropped

    if not segments:
        return AssistantMessage(content="")
    if len(segments) == 1 and isinstance(segments[0], TextSegment):
        return AssistantMessage(content=segments[0].text)
    return AssistantMessage(content=tuple(segments))


def _tool_from_wire(content: Any) -> ToolMessage:
    results: list[ToolResultSegment] = []
    if isinstance(content, list):
        for part in content:
            if not isinstance(part, dict) or part.get("type") != "tool-result":
                continue
            value, is_error = _decode_output(part.get("output"))
            results.append(
                ToolResultSegment(
                    call_id=part.get("tool_call_id", ""),
                    tool_name=part.get("tool_name", ""),
                    result=value,
                    is_error=is_error,
                )
            )
    return ToolMessage(content=tuple(results))


def from_wire_message(message: WireMessage) -> ConversationMessage:
    """Convert one wire message back to a conversation message."""
    role = message.get("role") if isinstance(message, dict) else None
    content = message.get("content") if isinstance(message, dict) else None

    match role:
        case "user":
            return UserMessage(content=_text_of_parts(content))
        case "assistant":
            return _assistant_from_wire(content)
        case "tool":
            return _tool_from_wire(content)
        case "system":
            return UserMessage(content=f"{SYSTEM_MESSAGE_PREFIX}{_text_of_parts(content)}")
        case _:
            logger.debug("Unknown wire message role %r, substituting placeholder", role)
            return UserMessage(content=UNKNOWN_MESSAGE_PLACEHOLDER)


def from_wire_messages(wire: list[WireMessage]) -> list[ConversationMessage]:
    """Convert wire messages back to conversation messages (same length, same order)."""
    return [from_wire_message(m) for m in wire]
