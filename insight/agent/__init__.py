"""Agent backend: the tool loop a session drives."""

from insight.agent.events import (
    BackendEvent,
    Finish,
    ReasoningChunk,
    StepFinished,
    TextDelta,
    TextEnd,
    ToolCallEvent,
    ToolResultEvent,
)
from insight.agent.result import BackendResponse, BackendResult, RunState
from insight.agent.runner import ToolLoopBackend

__all__ = [
    # Events
    "BackendEvent",
    "TextDelta",
    "TextEnd",
    "ReasoningChunk",
    "ToolCallEvent",
    "ToolResultEvent",
    "StepFinished",
    "Finish",
    # Results
    "BackendResult",
    "BackendResponse",
    "RunState",
    # Backends
    "ToolLoopBackend",
]
