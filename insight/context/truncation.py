"""Replace the payload of token-heavy tool calls before they are resent.

Report generation calls carry the whole rendered report as arguments. The
client already has the report, so when history goes back to the model only
the title is kept and the content is replaced by a short placeholder.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from insight.core.types import WireMessage
from insight.skill.builtin.report import REPORT_TOOL_NAME

TRUNCATED_REPORT_PLACEHOLDER = "[Report content truncated to save tokens]"
DEFAULT_HEAVY_TOOL_NAMES: frozenset[str] = frozenset({REPORT_TOOL_NAME})


def _truncate_part(part: Any, heavy_tool_names: frozenset[str]) -> Any:
    if not isinstance(part, dict):
        return part
    if part.get("type") != "tool-call" or part.get("tool_name") not in heavy_tool_names:
        return dict(part)

    original = part.get("input")
    truncated_input: dict[str, Any] = {}
    title = original.get("title") if isinstance(original, dict) else None
    if title:
        truncated_input["title"] = title
    truncated_input["content"] = TRUNCATED_REPORT_PLACEHOLDER
    return {**part, "input": truncated_input}


def truncate_heavy_tool_calls(
    wire: list[WireMessage],
    heavy_tool_names: Iterable[str] = DEFAULT_HEAVY_TOOL_NAMES,
) -> list[WireMessage]:
    """Return a copy of ``wire`` with heavy tool-call arguments replaced.

    Only assistant messages with array content are touched; every other
    message, and every other part, is copied unchanged. The input list and
    its messages are never modified.

    Args:
        wire: Messages in wire format.
        heavy_tool_names: Tool names whose arguments should be dropped.

    Returns:
        A new list of new message dicts.
    """
    names = frozenset(heavy_tool_names)
    result: list[WireMessage] = []
    for message in wire:
        content = message.get("content")
        if message.get("role") == "assistant" and isinstance(content, list):
            result.append(
                {**message, "content": [_truncate_part(p, names) for p in content]}
            )
        else:
            result.append(dict(message))
    return result
