"""Shared pytest fixtures and configuration for pytest."""

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest

from insight.core.types import (
    ContentDelta,
    ProviderMessage,
    StreamComplete,
    StreamEvent,
    ToolCall,
    ToolCallStarted,
    WireMessage,
)
from insight.session.events import ClientNotice


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "scenario: end-to-end behaviour of a whole query")


class ScriptedProvider:
    """Provider that plays back one scripted turn per stream() call.

    Each turn is either a ProviderMessage (streamed as text deltas followed
    by StreamComplete) or an exception, raised when the stream is read.
    Every request's messages are recorded in ``requests``.
    """

    def __init__(self, turns: list[ProviderMessage | BaseException]) -> None:
        self._turns = list(turns)
        self.requests: list[list[WireMessage]] = []
        self.tools: list[list[dict[str, Any]] | None] = []
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def stream(
        self,
        messages: list[WireMessage],
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        self.requests.append([dict(m) for m in messages])
        self.tools.append(tools)
        if self.gate is not None:
            await self.gate.wait()
        if not self._turns:
            raise AssertionError("ScriptedProvider ran out of turns")

        turn = self._turns.pop(0)
        if isinstance(turn, BaseException):
            raise turn

        if turn.text:
            yield ContentDelta(text=turn.text)
        for index, call in enumerate(turn.tool_calls):
            yield ToolCallStarted(index=index, id=call.call_id, name=call.tool_name)
        yield StreamComplete(message=turn)

    async def aclose(self) -> None:
        self.closed = True


class NoticeCollector:
    """ClientChannel that records every notice it is sent."""

    def __init__(self) -> None:
        self.notices: list[ClientNotice] = []

    async def __call__(self, notice: ClientNotice) -> None:
        self.notices.append(notice)

    @property
    def types(self) -> list[str]:
        return [n.type_name for n in self.notices]

    def of_type(self, type_name: str) -> list[ClientNotice]:
        return [n for n in self.notices if n.type_name == type_name]


@pytest.fixture
def scripted_provider() -> Callable[..., ScriptedProvider]:
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def notices() -> NoticeCollector:
    return NoticeCollector()


@pytest.fixture
def text_turn() -> Callable[[str], ProviderMessage]:
    """Build a turn that only answers with text."""
    return lambda text: ProviderMessage(text=text)


@pytest.fixture
def tool_turn() -> Callable[..., ProviderMessage]:
    """Build a turn that calls one tool, optionally with leading text."""

    def build(call_id: str, tool_name: str, args: dict[str, Any], text: str = "") -> ProviderMessage:
        return ProviderMessage(
            text=text,
            tool_calls=(ToolCall(call_id=call_id, tool_name=tool_name, input=args),),
        )

    return build


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Set the default provider API key for the duration of a test."""
    monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
    return "test-key"
