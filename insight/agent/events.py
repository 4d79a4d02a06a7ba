"""Events emitted by a backend run while the tool loop executes.

This is a closed set: the session dispatches on these types and ignores
anything else, so a new kind of event never reaches the client by accident.

Within a step the order is: text/reasoning deltas, TextEnd (if there was
text), one ToolCallEvent per call, then one ToolResultEvent per call, then
StepFinished. A ToolCallEvent is always emitted before its tool runs.
"""

from dataclasses import dataclass

from insight.core.types import JSONValue


@dataclass(frozen=True)
class BackendEvent:
    """Base class for all backend run events."""

    pass


@dataclass(frozen=True)
class TextDelta(BackendEvent):
    """A chunk of assistant text."""

    text: str


@dataclass(frozen=True)
class TextEnd(BackendEvent):
    """The assistant finished a text span for the current step."""

    pass


@dataclass(frozen=True)
class ReasoningChunk(BackendEvent):
    """A chunk of model reasoning. Not shown to the client."""

    text: str


@dataclass(frozen=True)
class ToolCallEvent(BackendEvent):
    """The model requested a tool call; it has not run yet.

    Attributes:
        call_id: Identifier pairing the call with its result.
        tool_name: Name of the requested tool.
        input: Decoded tool arguments.
    """

    call_id: str
    tool_name: str
    input: JSONValue


@dataclass(frozen=True)
class ToolResultEvent(BackendEvent):
    """A tool call finished.

    Attributes:
        call_id: Identifier of the call this result answers.
        tool_name: Name of the tool.
        output: The tool's output as decoded JSON.
        is_error: True if the tool failed or was unknown.
    """

    call_id: str
    tool_name: str
    output: JSONValue
    is_error: bool = False


@dataclass(frozen=True)
class StepFinished(BackendEvent):
    """One model turn (plus its tool executions) completed."""

    step_index: int


@dataclass(frozen=True)
class Finish(BackendEvent):
    """The tool loop ended."""

    step_count: int
