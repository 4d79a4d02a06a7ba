"""Turn a finished backend run into conversation messages."""

from __future__ import annotations

import inspect
from typing import Any

from insight.core.types import (
    AssistantMessage,
    ContentSegment,
    ConversationMessage,
    StepResult,
    TextSegment,
    ToolCallSegment,
    ToolMessage,
    ToolResultSegment,
)


async def _resolve_steps(result: Any) -> list[StepResult]:
    steps = getattr(result, "steps", None)
    if inspect.isawaitable(steps):
        steps = await steps
    return list(steps or [])


def messages_from_step(step: StepResult) -> list[ConversationMessage]:
    """Build the assistant (and tool) messages for a single step.

    Text comes before tool calls in the assistant content. Tool outputs are
    carried over verbatim as results; the error flag is left unset, since a
    failing tool reports its error inside the output value.
    """
    text = step.text or ""
    tool_calls = step.tool_calls or ()
    tool_results = step.tool_results or ()

    messages: list[ConversationMessage] = []

    if tool_calls:
        parts: list[ContentSegment] = []
        if text:
            parts.append(TextSegment(text=text))
        parts.extend(
            ToolCallSegment(call_id=c.call_id, tool_name=c.tool_name, args=c.input)
            for c in tool_calls
        )
        messages.append(AssistantMessage(content=tuple(parts)))
    elif text:
        messages.append(AssistantMessage(content=text))

    if tool_results:
        messages.append(
            ToolMessage(
                content=tuple(
                    ToolResultSegment(
                        call_id=r.call_id,
                        tool_name=r.tool_name,
                        result=r.output,
                    )
                    for r in tool_results
                )
            )
        )

    return messages


async def extract_messages_from_response(result: Any) -> list[ConversationMessage]:
    """Convert every step of a backend run into conversation messages.

    Args:
        result: A backend run whose ``steps`` is a list of StepResult, an
            awaitable resolving to one, or None.

    Returns:
        Messages in step order. Steps that produced nothing are skipped.
    """
    messages: list[ConversationMessage] = []
    for step in await _resolve_steps(result):
        messages.extend(messages_from_step(step))
    return messages
