"""Session management: the per-connection conversation state machine."""

from insight.session.events import (
    ClientNotice,
    ContextCompactedNotice,
    DoneNotice,
    ErrorNotice,
    ReportNotice,
    TextChunk,
    ToolCallNotice,
    ToolResultNotice,
)
from insight.session.registry import SessionFactory, SessionRegistry
from insight.session.session import (
    ALREADY_EXECUTING_MESSAGE,
    AgentSession,
    SessionState,
    ToolFactory,
    default_tool_factory,
)

__all__ = [
    # Session
    "AgentSession",
    "SessionState",
    "ToolFactory",
    "default_tool_factory",
    "ALREADY_EXECUTING_MESSAGE",
    # Registry
    "SessionRegistry",
    "SessionFactory",
    # Notices
    "ClientNotice",
    "TextChunk",
    "ToolCallNotice",
    "ToolResultNotice",
    "ReportNotice",
    "ErrorNotice",
    "DoneNotice",
    "ContextCompactedNotice",
]
