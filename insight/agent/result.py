"""Handle on a running backend invocation."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field

from insight.agent.events import BackendEvent
from insight.core.types import StepResult, WireMessage


@dataclass
class RunState:
    """What a run has produced so far. Written only by the tool loop."""

    steps: list[StepResult] = field(default_factory=list)
    response_messages: list[WireMessage] = field(default_factory=list)


@dataclass(frozen=True)
class BackendResponse:
    """Final completion of a run.

    Attributes:
        messages: Assistant and tool wire messages generated by the run.
        step_count: Number of model turns taken.
    """

    messages: tuple[WireMessage, ...]
    step_count: int


class BackendResult:
    """Live view of one tool-loop run.

    ``full_stream`` yields the run's events and may be consumed once.
    ``response`` and ``steps`` are awaitables. Awaiting either one drains
    the stream first if nobody has consumed it, and re-raises any failure
    that ended the run.

    Example:
        result = await backend.invoke(messages, None, tools, max_steps=25)
        async for event in result.full_stream:
            ...
        response = await result.response
        steps = await result.steps
    """

    def __init__(self, events: AsyncGenerator[BackendEvent, None], state: RunState) -> None:
        self._events = events
        self._state = state
        self._consumed = False
        self._finished = False
        self._error: BaseException | None = None

    @property
    def full_stream(self) -> AsyncGenerator[BackendEvent, None]:
        if self._consumed:
            raise RuntimeError("full_stream can only be consumed once")
        self._consumed = True
        return self._iterate()

    async def _iterate(self) -> AsyncGenerator[BackendEvent, None]:
        try:
            async for event in self._events:
                yield event
        except Exception as e:
            self._error = e
            raise
        finally:
            # Reader stopped early or failed: release the tool loop and its HTTP stream
            await self._events.aclose()
        self._finished = True

    async def _wait(self) -> None:
        if not self._consumed:
            async for _ in self.full_stream:
                pass
        if self._error is not None:
            raise self._error
        if not self._finished:
            raise RuntimeError("Backend run was abandoned before it finished")

    async def _response(self) -> BackendResponse:
        await self._wait()
        return BackendResponse(
            messages=tuple(self._state.response_messages),
            step_count=len(self._state.steps),
        )

    async def _steps(self) -> list[StepResult]:
        await self._wait()
        return list(self._state.steps)

    @property
    def response(self):
        """Awaitable BackendResponse."""
        return self._response()

    @property
    def steps(self):
        """Awaitable list of StepResult, one per model turn."""
        return self._steps()
