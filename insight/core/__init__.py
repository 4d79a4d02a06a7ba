"""Core types and interfaces."""

from insight.core.cancel import CancellationToken
from insight.core.errors import (
    ConfigError,
    InsightError,
    ProtocolError,
    ProviderError,
    ToolInitError,
    describe_error,
)
from insight.core.interfaces import BackendRun, ChatProvider, ClientChannel, ModelBackend
from insight.core.types import (
    AssistantMessage,
    ContentDelta,
    ContentSegment,
    ConversationMessage,
    JSONValue,
    ProviderMessage,
    ReasoningDelta,
    StepResult,
    StreamComplete,
    StreamEvent,
    TextSegment,
    ToolCall,
    ToolCallSegment,
    ToolCallStarted,
    ToolMessage,
    ToolResult,
    ToolResultSegment,
    UserMessage,
    WireMessage,
    create_assistant_message,
    create_assistant_message_with_parts,
    create_tool_message,
    create_user_message,
    get_assistant_text,
    get_assistant_tool_calls,
    has_tool_calls,
    is_assistant_message,
    is_tool_message,
    is_user_message,
)

__all__ = [
    "CancellationToken",
    # Errors
    "InsightError",
    "ConfigError",
    "ProviderError",
    "ToolInitError",
    "ProtocolError",
    "describe_error",
    # Interfaces
    "BackendRun",
    "ChatProvider",
    "ClientChannel",
    "ModelBackend",
    # Message model
    "JSONValue",
    "TextSegment",
    "ToolCallSegment",
    "ToolResultSegment",
    "ContentSegment",
    "UserMessage",
    "AssistantMessage",
    "ToolMessage",
    "ConversationMessage",
    "WireMessage",
    "is_user_message",
    "is_assistant_message",
    "is_tool_message",
    "get_assistant_text",
    "get_assistant_tool_calls",
    "has_tool_calls",
    "create_user_message",
    "create_assistant_message",
    "create_assistant_message_with_parts",
    "create_tool_message",
    # Backend records
    "ToolCall",
    "ToolResult",
    "StepResult",
    # Streaming types
    "StreamEvent",
    "ContentDelta",
    "ReasoningDelta",
    "ToolCallStarted",
    "StreamComplete",
    "ProviderMessage",
]
