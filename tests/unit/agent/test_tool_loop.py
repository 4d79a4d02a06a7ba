"""Tests for the tool-loop backend."""

import asyncio
from typing import Any

import pytest

from insight.agent.events import (
    Finish,
    ReasoningChunk,
    StepFinished,
    TextDelta,
    TextEnd,
    ToolCallEvent,
    ToolResultEvent,
)
from insight.agent.runner import ToolLoopBackend
from insight.core.types import (
    ContentDelta,
    ProviderMessage,
    ReasoningDelta,
    StreamComplete,
    ToolCall,
)
from insight.skill.base import BaseSkill, SkillError
from insight.skill.registry import SkillRegistry

ECHO_PARAMETERS = {
    "type": "object",
    "properties": {"message": {"type": "string"}},
    "required": ["message"],
}


class EchoSkill(BaseSkill):
    def __init__(self, log: list[str] | None = None) -> None:
        super().__init__("echo", "Echo a message", ECHO_PARAMETERS)
        self.log = log if log is not None else []

    async def execute(self, message: str = "", **kwargs: Any):
        self.log.append(message)
        if message == "fail":
            raise SkillError("echo refused")
        if message == "crash":
            raise RuntimeError("kaboom")
        if message == "slow":
            await asyncio.sleep(10)
        return {"echo": message}


def _registry(log: list[str] | None = None) -> SkillRegistry:
    registry = SkillRegistry()
    registry.register("echo", lambda: EchoSkill(log))
    return registry


async def _events(result) -> list:
    return [event async for event in result.full_stream]


class TestInvoke:
    """Tests for invoke() argument handling."""

    @pytest.mark.asyncio
    async def test_requires_exactly_one_of_messages_or_prompt(self, scripted_provider) -> None:
        backend = ToolLoopBackend(scripted_provider([]))
        with pytest.raises(ValueError):
            await backend.invoke(None, None, SkillRegistry(), 5)
        with pytest.raises(ValueError):
            await backend.invoke([{"role": "user", "content": "x"}], "x", SkillRegistry(), 5)

    @pytest.mark.asyncio
    async def test_max_steps_must_be_positive(self, scripted_provider) -> None:
        backend = ToolLoopBackend(scripted_provider([]))
        with pytest.raises(ValueError, match="max_steps"):
            await backend.invoke(None, "x", SkillRegistry(), 0)

    @pytest.mark.asyncio
    async def test_prompt_becomes_user_message(self, scripted_provider, text_turn) -> None:
        provider = scripted_provider([text_turn("hi")])
        backend = ToolLoopBackend(provider, system_prompt="Be brief.")
        result = await backend.invoke(None, "hello", SkillRegistry(), 5)
        await _events(result)

        assert provider.requests[0] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "hello"},
        ]
        assert provider.tools[0] is None

    @pytest.mark.asyncio
    async def test_nothing_sent_until_stream_read(self, scripted_provider, text_turn) -> None:
        provider = scripted_provider([text_turn("hi")])
        await ToolLoopBackend(provider).invoke(None, "hello", SkillRegistry(), 5)
        assert provider.requests == []


class TestToolLoop:
    """Tests for the event stream and tool execution."""

    @pytest.mark.asyncio
    async def test_text_only_turn(self, scripted_provider, text_turn) -> None:
        provider = scripted_provider([text_turn("All good.")])
        result = await ToolLoopBackend(provider).invoke(None, "status?", _registry(), 5)

        assert await _events(result) == [
            TextDelta("All good."),
            TextEnd(),
            StepFinished(step_index=0),
            Finish(step_count=1),
        ]
        response = await result.response
        assert response.messages == ({"role": "assistant", "content": "All good."},)
        assert response.step_count == 1

    @pytest.mark.asyncio
    async def test_tool_call_before_result(self, scripted_provider, tool_turn, text_turn) -> None:
        log: list[str] = []
        provider = scripted_provider([
            tool_turn("c1", "echo", {"message": "ping"}, text="Calling echo."),
            text_turn("Echo said ping."),
        ])
        result = await ToolLoopBackend(provider).invoke(None, "go", _registry(log), 5)
        events = await _events(result)

        call_index = events.index(ToolCallEvent("c1", "echo", {"message": "ping"}))
        result_index = events.index(ToolResultEvent("c1", "echo", {"echo": "ping"}))
        assert call_index < result_index
        assert log == ["ping"]
        assert events[-1] == Finish(step_count=2)

        # Second request carries the call and its result
        second = provider.requests[1]
        assert second[-2]["content"][-1]["type"] == "tool-call"
        assert second[-1]["content"][0]["output"] == {"type": "json", "value": {"echo": "ping"}}

    @pytest.mark.asyncio
    async def test_steps_recorded(self, scripted_provider, tool_turn, text_turn) -> None:
        provider = scripted_provider([
            tool_turn("c1", "echo", {"message": "a"}),
            text_turn("done"),
        ])
        result = await ToolLoopBackend(provider).invoke(None, "go", _registry(), 5)
        steps = await result.steps

        assert len(steps) == 2
        assert steps[0].tool_calls == (ToolCall("c1", "echo", {"message": "a"}),)
        assert steps[0].tool_results[0].output == {"echo": "a"}
        assert steps[1].text == "done"

    @pytest.mark.asyncio
    async def test_unknown_tool_is_error_result(self, scripted_provider, tool_turn, text_turn) -> None:
        provider = scripted_provider([tool_turn("c1", "nope", {}), text_turn("sorry")])
        result = await ToolLoopBackend(provider).invoke(None, "go", _registry(), 5)
        events = await _events(result)

        [tool_result] = [e for e in events if isinstance(e, ToolResultEvent)]
        assert tool_result.is_error
        assert tool_result.output == {"error": "Unknown tool: nope"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("args,expected", [
        ({}, "Invalid arguments for echo"),
        ({"message": "fail"}, "echo refused"),
        ({"message": "crash"}, "Tool execution error: kaboom"),
    ])
    async def test_tool_failures_become_results(
        self, scripted_provider, tool_turn, text_turn, args, expected
    ) -> None:
        provider = scripted_provider([tool_turn("c1", "echo", args), text_turn("ok")])
        result = await ToolLoopBackend(provider).invoke(None, "go", _registry(), 5)
        events = await _events(result)

        [tool_result] = [e for e in events if isinstance(e, ToolResultEvent)]
        assert tool_result.is_error
        assert expected in tool_result.output["error"]

    @pytest.mark.asyncio
    async def test_tool_timeout(self, scripted_provider, tool_turn, text_turn) -> None:
        provider = scripted_provider([tool_turn("c1", "echo", {"message": "slow"}), text_turn("ok")])
        backend = ToolLoopBackend(provider, skill_timeout=0.01)
        events = await _events(await backend.invoke(None, "go", _registry(), 5))

        [tool_result] = [e for e in events if isinstance(e, ToolResultEvent)]
        assert tool_result.output == {"error": "Tool timed out after 0.01s"}

    @pytest.mark.asyncio
    async def test_max_steps_stops_loop(self, scripted_provider, tool_turn) -> None:
        provider = scripted_provider([
            tool_turn("c1", "echo", {"message": "1"}),
            tool_turn("c2", "echo", {"message": "2"}),
            tool_turn("c3", "echo", {"message": "3"}),
        ])
        result = await ToolLoopBackend(provider).invoke(None, "go", _registry(), 2)
        events = await _events(result)

        assert events[-1] == Finish(step_count=2)
        assert len(provider.requests) == 2

    @pytest.mark.asyncio
    async def test_reasoning_relayed_and_kept_in_wire(self, scripted_provider) -> None:
        class ThinkingProvider:
            async def stream(self, messages, tools=None):
                yield ReasoningDelta(text="hmm")
                yield StreamComplete(message=ProviderMessage(text="", reasoning="hmm"))

            async def aclose(self):
                pass

        result = await ToolLoopBackend(ThinkingProvider()).invoke(None, "go", _registry(), 5)
        events = await _events(result)

        assert events[0] == ReasoningChunk("hmm")
        assert TextEnd() not in events
        response = await result.response
        assert response.messages[0]["content"] == [{"type": "reasoning", "text": "hmm"}]

    @pytest.mark.asyncio
    async def test_tool_definitions_sent(self, scripted_provider, text_turn) -> None:
        provider = scripted_provider([text_turn("ok")])
        await _events(await ToolLoopBackend(provider).invoke(None, "go", _registry(), 5))
        [definition] = provider.tools[0]
        assert definition["function"]["name"] == "echo"

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, scripted_provider) -> None:
        provider = scripted_provider([RuntimeError("upstream down")])
        result = await ToolLoopBackend(provider).invoke(None, "go", _registry(), 5)
        with pytest.raises(RuntimeError, match="upstream down"):
            await result.response

    @pytest.mark.asyncio
    async def test_closing_stream_closes_provider_stream(self) -> None:
        closed: list[bool] = []

        class OpenStreamProvider:
            async def stream(self, messages, tools=None):
                try:
                    yield ContentDelta(text="first")
                    yield ContentDelta(text="second")
                    yield StreamComplete(message=ProviderMessage(text="firstsecond"))
                finally:
                    closed.append(True)

            async def aclose(self) -> None:
                pass

        result = await ToolLoopBackend(OpenStreamProvider()).invoke(None, "go", _registry(), 5)
        stream = result.full_stream
        async for event in stream:
            assert event == TextDelta("first")
            break
        await stream.aclose()

        assert closed == [True]
