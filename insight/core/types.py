"""Core types for insight.

This module defines the conversation message model shared by the session,
the context utilities and the agent backend. All dataclasses are frozen:
history is append-only, and every transformation (compaction, truncation,
history update) builds a new sequence instead of editing a message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypeAlias, TypeGuard

JSONValue: TypeAlias = (
    str | int | float | bool | None | list["JSONValue"] | dict[str, "JSONValue"]
)


# --- Content segments ---


@dataclass(frozen=True)
class TextSegment:
    """A span of assistant text."""

    text: str
    kind: Literal["text"] = "text"


@dataclass(frozen=True)
class ToolCallSegment:
    """A tool invocation requested by the assistant.

    Attributes:
        call_id: Identifier pairing this call with its result.
        tool_name: Name of the tool to execute.
        args: Arguments for the tool, as decoded JSON.
    """

    call_id: str
    tool_name: str
    args: JSONValue
    kind: Literal["tool-call"] = "tool-call"


@dataclass(frozen=True)
class ToolResultSegment:
    """The outcome of a tool invocation.

    Attributes:
        call_id: Identifier of the call this result answers.
        tool_name: Name of the tool that produced the result.
        result: Tool output, as decoded JSON.
        is_error: True when the tool reported a failure.
    """

    call_id: str
    tool_name: str
    result: JSONValue
    is_error: bool = False
    kind: Literal["tool-result"] = "tool-result"


ContentSegment: TypeAlias = TextSegment | ToolCallSegment


# --- Messages ---


@dataclass(frozen=True)
class UserMessage:
    """A user turn. Content is always plain text."""

    content: str
    role: Literal["user"] = "user"


@dataclass(frozen=True)
class AssistantMessage:
    """An assistant turn.

    A plain string is the collapsed form of a single text segment. Anything
    richer (tool calls, several text spans) is a tuple of segments.
    """

    content: str | tuple[ContentSegment, ...]
    role: Literal["assistant"] = "assistant"


@dataclass(frozen=True)
class ToolMessage:
    """Results for the tool calls of the preceding assistant message."""

    content: tuple[ToolResultSegment, ...]
    role: Literal["tool"] = "tool"


ConversationMessage: TypeAlias = UserMessage | AssistantMessage | ToolMessage


def is_user_message(message: ConversationMessage) -> TypeGuard[UserMessage]:
    return message.role == "user"


def is_assistant_message(message: ConversationMessage) -> TypeGuard[AssistantMessage]:
    return message.role == "assistant"


def is_tool_message(message: ConversationMessage) -> TypeGuard[ToolMessage]:
    return message.role == "tool"


def get_assistant_text(message: AssistantMessage) -> str:
    """Return the concatenated text of an assistant message."""
    if isinstance(message.content, str):
        return message.content
    return "".join(
        segment.text for segment in message.content if isinstance(segment, TextSegment)
    )


def get_assistant_tool_calls(message: AssistantMessage) -> list[ToolCallSegment]:
    """Return the tool-call segments of an assistant message, in order."""
    if isinstance(message.content, str):
        return []
    return [s for s in message.content if isinstance(s, ToolCallSegment)]


def has_tool_calls(message: AssistantMessage) -> bool:
    return bool(get_assistant_tool_calls(message))


def create_user_message(content: str) -> UserMessage:
    return UserMessage(content=content)


def create_assistant_message(content: str) -> AssistantMessage:
    return AssistantMessage(content=content)


def create_assistant_message_with_parts(
    parts: list[ContentSegment] | tuple[ContentSegment, ...],
) -> AssistantMessage:
    return AssistantMessage(content=tuple(parts))


def create_tool_message(
    results: list[ToolResultSegment] | tuple[ToolResultSegment, ...],
) -> ToolMessage:
    return ToolMessage(content=tuple(results))


# --- Backend records ---
# Produced by the agent backend for each step of a tool loop, and consumed
# by the response extractor.


@dataclass(frozen=True)
class ToolCall:
    """A tool call as reported by the backend (``input`` not ``args``)."""

    call_id: str
    tool_name: str
    input: JSONValue


@dataclass(frozen=True)
class ToolResult:
    """A tool result as reported by the backend."""

    call_id: str
    tool_name: str
    output: JSONValue
    is_error: bool = False


@dataclass(frozen=True)
class StepResult:
    """Everything one step of the tool loop produced.

    Attributes:
        text: Assistant text for the step (may be empty).
        tool_calls: Calls the model requested during the step.
        tool_results: Results of executing those calls.
    """

    text: str | None = ""
    tool_calls: tuple[ToolCall, ...] | None = ()
    tool_results: tuple[ToolResult, ...] | None = ()


# --- Streaming Types ---
# These types are yielded by provider.stream() to communicate content,
# tool calls, and completion status.


@dataclass(frozen=True)
class ProviderMessage:
    """The accumulated assistant output of one provider stream.

    Attributes:
        text: Concatenated text content.
        tool_calls: Fully parsed tool calls, in stream order.
        reasoning: Concatenated reasoning/thinking text, if any.
    """

    text: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    reasoning: str = ""


@dataclass(frozen=True)
class StreamEvent:
    """Base class for all streaming events."""

    pass


@dataclass(frozen=True)
class ContentDelta(StreamEvent):
    """A chunk of content text from the stream."""

    text: str


@dataclass(frozen=True)
class ReasoningDelta(StreamEvent):
    """A chunk of reasoning/thinking content from the stream."""

    text: str


@dataclass(frozen=True)
class ToolCallStarted(StreamEvent):
    """Notification that a tool call has been detected in the stream.

    Arguments are not known yet; they arrive with StreamComplete.

    Attributes:
        index: The index of this tool call (for multiple calls).
        id: The unique ID of this tool call.
        name: The name of the tool being called.
    """

    index: int
    id: str
    name: str


@dataclass(frozen=True)
class StreamComplete(StreamEvent):
    """Signals the stream has ended.

    Attributes:
        message: The complete assistant output with any tool calls.
    """

    message: ProviderMessage


WireMessage: TypeAlias = dict[str, Any]
"""A backend message in wire format (see insight.context.wire)."""
