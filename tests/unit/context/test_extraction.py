"""Tests for turning backend steps into conversation messages."""

import pytest

from insight.context.extraction import extract_messages_from_response, messages_from_step
from insight.core.types import (
    AssistantMessage,
    StepResult,
    TextSegment,
    ToolCall,
    ToolCallSegment,
    ToolMessage,
    ToolResult,
    ToolResultSegment,
)


class _Run:
    def __init__(self, steps):
        self._steps = steps

    @property
    def steps(self):
        return self._steps


class _AwaitableRun:
    def __init__(self, steps):
        self._steps = steps

    @property
    def steps(self):
        async def resolve():
            return self._steps

        return resolve()


class TestMessagesFromStep:
    """Tests for messages_from_step()."""

    def test_text_only_step(self) -> None:
        assert messages_from_step(StepResult(text="done")) == [AssistantMessage("done")]

    def test_empty_step_produces_nothing(self) -> None:
        assert messages_from_step(StepResult()) == []
        assert messages_from_step(StepResult(text=None, tool_calls=None, tool_results=None)) == []

    def test_text_comes_before_tool_calls(self) -> None:
        step = StepResult(
            text="Looking",
            tool_calls=(ToolCall("c1", "bash", {"cmd": "ls"}),),
            tool_results=(ToolResult("c1", "bash", "a.txt"),),
        )
        assert messages_from_step(step) == [
            AssistantMessage((TextSegment("Looking"), ToolCallSegment("c1", "bash", {"cmd": "ls"}))),
            ToolMessage((ToolResultSegment("c1", "bash", "a.txt"),)),
        ]

    def test_error_flag_is_not_carried(self) -> None:
        """The error travels inside the output value."""
        step = StepResult(
            tool_calls=(ToolCall("c1", "bash", {}),),
            tool_results=(ToolResult("c1", "bash", {"error": "exit 1"}, is_error=True),),
        )
        tool_message = messages_from_step(step)[1]
        assert tool_message.content[0].result == {"error": "exit 1"}
        assert tool_message.content[0].is_error is False


class TestExtractMessages:
    """Tests for extract_messages_from_response()."""

    @pytest.mark.asyncio
    async def test_steps_in_order(self) -> None:
        run = _Run([
            StepResult(tool_calls=(ToolCall("c1", "t", {}),), tool_results=(ToolResult("c1", "t", 1),)),
            StepResult(text="answer"),
        ])
        messages = await extract_messages_from_response(run)
        assert [m.role for m in messages] == ["assistant", "tool", "assistant"]
        assert messages[-1] == AssistantMessage("answer")

    @pytest.mark.asyncio
    async def test_awaitable_steps(self) -> None:
        messages = await extract_messages_from_response(_AwaitableRun([StepResult(text="x")]))
        assert messages == [AssistantMessage("x")]

    @pytest.mark.asyncio
    async def test_missing_steps(self) -> None:
        assert await extract_messages_from_response(_Run(None)) == []
        assert await extract_messages_from_response(object()) == []
