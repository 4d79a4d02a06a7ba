"""Core interfaces (protocols) for insight.

This module defines the Protocol interfaces that components must implement.
Using Protocols enables structural subtyping, so tests and alternative
backends can be plugged in without inheriting from anything.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable
from typing import TYPE_CHECKING, Any, Protocol

from insight.core.types import JSONValue, StepResult, StreamEvent, WireMessage

if TYPE_CHECKING:
    from insight.agent.events import BackendEvent
    from insight.session.events import ClientNotice
    from insight.skill.registry import SkillRegistry


class ChatProvider(Protocol):
    """Protocol for streaming model providers.

    Example:
        class EchoProvider:
            async def stream(self, messages, tools=None):
                yield ContentDelta(text=messages[-1]["content"])
                yield StreamComplete(message=ProviderMessage(text=...))

            async def aclose(self):
                pass
    """

    def stream(
        self,
        messages: list[WireMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Stream one model turn.

        Args:
            messages: The conversation in wire format.
            tools: Optional tool definitions in OpenAI function format.

        Yields:
            ContentDelta, ReasoningDelta, ToolCallStarted and finally one
            StreamComplete carrying the accumulated output.
        """
        ...

    async def aclose(self) -> None:
        """Release any held resources. Safe to call more than once."""
        ...


class BackendRun(Protocol):
    """A running (or finished) backend invocation.

    full_stream is consumed by exactly one reader, which closes it when it
    stops early. response resolves when the tool loop is done; steps may be
    a plain list or an awaitable of one.
    """

    @property
    def full_stream(self) -> AsyncGenerator[BackendEvent, None]: ...

    @property
    def response(self) -> Awaitable[Any]: ...

    @property
    def steps(self) -> Awaitable[list[StepResult]] | list[StepResult] | None: ...


class ModelBackend(Protocol):
    """Protocol for the tool-using model backend a session drives."""

    async def invoke(
        self,
        messages: list[WireMessage] | None,
        prompt: str | None,
        tools: SkillRegistry,
        max_steps: int,
    ) -> BackendRun:
        """Start a tool loop.

        Exactly one of messages and prompt is given: messages when there is
        prior history (the new query already appended), prompt otherwise.
        """
        ...


class ClientChannel(Protocol):
    """Where a session sends its notices (text, tool events, done, ...)."""

    async def __call__(self, notice: ClientNotice) -> None: ...


class ReportCallback(Protocol):
    """Receives validated reports from the report tool."""

    async def __call__(self, content: JSONValue, title: str | None = None) -> None: ...
