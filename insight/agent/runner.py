"""Tool-loop backend: drive a provider through multi-step tool use.

Each step streams one model turn. If the model asked for tools, they are run
sequentially, their results are appended to the conversation, and the next
step starts. The loop ends when a turn requests no tools or when max_steps
is reached.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

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
from insight.agent.result import BackendResult, RunState
from insight.core.interfaces import ChatProvider
from insight.core.types import (
    ContentDelta,
    ProviderMessage,
    ReasoningDelta,
    StepResult,
    StreamComplete,
    ToolCall,
    ToolCallStarted,
    ToolResult,
    WireMessage,
)
from insight.skill.base import SkillError
from insight.skill.registry import SkillRegistry
from insight.skill.validation import ValidationError, validate_tool_arguments

logger = logging.getLogger(__name__)

DEFAULT_SKILL_TIMEOUT = 60.0


def _assistant_wire_message(message: ProviderMessage) -> WireMessage:
    if not message.tool_calls and not message.reasoning:
        return {"role": "assistant", "content": message.text}

    parts: list[dict[str, Any]] = []
    if message.reasoning:
        parts.append({"type": "reasoning", "text": message.reasoning})
    if message.text:
        parts.append({"type": "text", "text": message.text})
    for call in message.tool_calls:
        parts.append({
            "type": "tool-call",
            "tool_call_id": call.call_id,
            "tool_name": call.tool_name,
            "input": call.input,
        })
    return {"role": "assistant", "content": parts}


def _tool_wire_message(results: list[ToolResult]) -> WireMessage:
    return {
        "role": "tool",
        "content": [
            {
                "type": "tool-result",
                "tool_call_id": r.call_id,
                "tool_name": r.tool_name,
                "output": {"type": "error-json" if r.is_error else "json", "value": r.output},
            }
            for r in results
        ],
    }


class ToolLoopBackend:
    """Model backend that runs a provider in a tool-use loop.

    Example:
        backend = ToolLoopBackend(provider, system_prompt="You are ...")
        result = await backend.invoke(None, "What changed?", tools, max_steps=25)
        async for event in result.full_stream:
            ...
    """

    def __init__(
        self,
        provider: ChatProvider,
        system_prompt: str | None = None,
        skill_timeout: float = DEFAULT_SKILL_TIMEOUT,
    ) -> None:
        self._provider = provider
        self._system_prompt = system_prompt
        self._skill_timeout = skill_timeout

    async def invoke(
        self,
        messages: list[WireMessage] | None,
        prompt: str | None,
        tools: SkillRegistry,
        max_steps: int,
    ) -> BackendResult:
        """Start a run. Nothing is sent to the provider until the stream is read.

        Raises:
            ValueError: Unless exactly one of messages and prompt is given,
                or if max_steps is less than 1.
        """
        if (messages is None) == (prompt is None):
            raise ValueError("Exactly one of messages or prompt must be given")
        if max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {max_steps}")

        conversation: list[WireMessage] = (
            list(messages) if messages is not None
            else [{"role": "user", "content": prompt}]
        )
        if self._system_prompt:
            conversation.insert(0, {"role": "system", "content": self._system_prompt})

        state = RunState()
        return BackendResult(self._run(conversation, tools, max_steps, state), state)

    async def _run(
        self,
        conversation: list[WireMessage],
        tools: SkillRegistry,
        max_steps: int,
        state: RunState,
    ) -> AsyncIterator[BackendEvent]:
        definitions = tools.get_definitions() or None

        for step_index in range(max_steps):
            final: ProviderMessage | None = None
            streamed_text: list[str] = []

            async with aclosing(self._provider.stream(conversation, definitions)) as stream:
                async for event in stream:
                    if isinstance(event, ContentDelta):
                        if event.text:
                            streamed_text.append(event.text)
                            yield TextDelta(text=event.text)
                    elif isinstance(event, ReasoningDelta):
                        yield ReasoningChunk(text=event.text)
                    elif isinstance(event, ToolCallStarted):
                        logger.debug("Tool call started: %s (%s)", event.name, event.id)
                    elif isinstance(event, StreamComplete):
                        final = event.message

            if final is None:
                logger.warning("Provider stream ended without completion; using streamed text")
                final = ProviderMessage(text="".join(streamed_text))

            if streamed_text or final.text:
                yield TextEnd()

            # Announce every call before any of them runs
            for call in final.tool_calls:
                yield ToolCallEvent(call_id=call.call_id, tool_name=call.tool_name, input=call.input)

            results: list[ToolResult] = []
            for call in final.tool_calls:
                result = await self._execute_tool(call, tools)
                results.append(result)
                yield ToolResultEvent(
                    call_id=result.call_id,
                    tool_name=result.tool_name,
                    output=result.output,
                    is_error=result.is_error,
                )

            generated = [_assistant_wire_message(final)]
            if results:
                generated.append(_tool_wire_message(results))
            conversation.extend(generated)
            state.response_messages.extend(generated)
            state.steps.append(
                StepResult(
                    text=final.text,
                    tool_calls=final.tool_calls,
                    tool_results=tuple(results),
                )
            )
            yield StepFinished(step_index=step_index)

            if not final.tool_calls:
                break
        else:
            logger.info("Tool loop stopped after reaching max_steps=%d", max_steps)

        yield Finish(step_count=len(state.steps))

    async def _execute_tool(self, call: ToolCall, tools: SkillRegistry) -> ToolResult:
        """Run one tool call. Failures become error results, never exceptions."""

        def failed(message: str) -> ToolResult:
            return ToolResult(
                call_id=call.call_id,
                tool_name=call.tool_name,
                output={"error": message},
                is_error=True,
            )

        skill = tools.get(call.tool_name)
        if skill is None:
            logger.warning("Unknown tool requested: %s", call.tool_name)
            return failed(f"Unknown tool: {call.tool_name}")

        arguments = call.input if isinstance(call.input, dict) else {}
        try:
            args = validate_tool_arguments(arguments, skill.parameters, logger=logger)
        except ValidationError as e:
            return failed(f"Invalid arguments for {call.tool_name}: {e.message}")

        try:
            if self._skill_timeout > 0:
                output = await asyncio.wait_for(skill.execute(**args), timeout=self._skill_timeout)
            else:
                output = await skill.execute(**args)
        except TimeoutError:
            logger.warning("Tool '%s' timed out after %ss", call.tool_name, self._skill_timeout)
            return failed(f"Tool timed out after {self._skill_timeout}s")
        except SkillError as e:
            logger.warning("Tool '%s' returned error: %s", call.tool_name, e.message)
            return failed(e.message)
        except Exception as e:
            logger.error("Tool '%s' raised exception: %s", call.tool_name, e, exc_info=True)
            return failed(f"Tool execution error: {e}")

        return ToolResult(call_id=call.call_id, tool_name=call.tool_name, output=output)
