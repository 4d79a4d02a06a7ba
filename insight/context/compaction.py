"""Conversation compaction for fitting a model's context window.

When the model rejects a request as too large, the session compacts the
history and retries once. Compaction keeps the opening turns (the original
question and first answer) and the most recent turns verbatim, and strips
the middle down to its prose: tool calls, tool results and reasoning are
removed, and any message left empty is dropped.

Tool call/result pairing is preserved because head and tail are kept whole
and the middle loses both sides of every pair it contains.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from insight.context.wire import from_wire_messages, to_wire_messages
from insight.core.types import ConversationMessage, WireMessage

logger = logging.getLogger(__name__)

PRUNED_PART_TYPES_TOOLS = frozenset(
    {"tool-call", "tool-result", "tool-approval-request", "tool-approval-response"}
)
PRUNED_PART_TYPES_REASONING = frozenset({"reasoning"})


@dataclass(frozen=True)
class CompactionOptions:
    """How much of a conversation survives compaction verbatim.

    Attributes:
        keep_first_n: Messages kept from the start.
        keep_last_n: Messages kept from the end.
    """

    keep_first_n: int = 2
    keep_last_n: int = 6

    def __post_init__(self) -> None:
        if self.keep_first_n < 0 or self.keep_last_n < 0:
            raise ValueError(
                f"Compaction window must be non-negative, got "
                f"keep_first_n={self.keep_first_n}, keep_last_n={self.keep_last_n}"
            )


def _is_empty(content: Any) -> bool:
    return content is None or (isinstance(content, (str, list)) and len(content) == 0)


def prune_wire_messages(
    wire: list[WireMessage],
    reasoning: bool = True,
    tool_calls: bool = True,
    empty_messages: bool = True,
) -> list[WireMessage]:
    """Strip reasoning and tool traffic from wire messages.

    Args:
        wire: Messages in wire format. Not modified.
        reasoning: Remove reasoning parts.
        tool_calls: Remove tool-call and tool-result parts.
        empty_messages: Drop messages whose content ends up empty.

    Returns:
        A new list of new message dicts.
    """
    removed: set[str] = set()
    if reasoning:
        removed |= PRUNED_PART_TYPES_REASONING
    if tool_calls:
        removed |= PRUNED_PART_TYPES_TOOLS

    pruned: list[WireMessage] = []
    for message in wire:
        content = message.get("content")
        if isinstance(content, list) and message.get("role") in ("assistant", "tool"):
            content = [
                part for part in content
                if not (isinstance(part, dict) and part.get("type") in removed)
            ]
        if empty_messages and _is_empty(content):
            continue
        pruned.append({**message, "content": content})
    return pruned


def compact_conversation(
    history: list[ConversationMessage],
    options: CompactionOptions | None = None,
) -> list[ConversationMessage]:
    """Shrink a conversation to its head, tail and a pruned middle.

    A history no longer than keep_first_n + keep_last_n is returned unchanged
    (as a new list). Otherwise the head and tail are returned as-is and the
    middle is pruned of tool calls, tool results and reasoning, with empty
    messages dropped. The input is never modified.

    When keep_last_n is 0 there is no tail, and the middle runs to the end.
    If the tail would begin with a tool message, it is widened backwards to
    take in the matching assistant call, so every surviving result still has
    its call. The last keep_last_n messages are kept either way.

    Args:
        history: The conversation to compact.
        options: Head and tail sizes; defaults to CompactionOptions().

    Returns:
        The compacted conversation.
    """
    opts = options or CompactionOptions()
    first_n, last_n = opts.keep_first_n, opts.keep_last_n

    if len(history) <= first_n + last_n:
        return list(history)

    tail_start = len(history) - last_n
    # A tail must not open with tool results whose calls sit in the middle
    while last_n and tail_start > first_n and history[tail_start].role == "tool":
        tail_start -= 1
    if tail_start == first_n:
        return list(history)

    head = history[:first_n]
    middle = history[first_n:tail_start]
    tail = history[tail_start:]

    pruned_middle = from_wire_messages(
        prune_wire_messages(
            to_wire_messages(middle),
            reasoning=True,
            tool_calls=True,
            empty_messages=True,
        )
    )

    compacted = [*head, *pruned_middle, *tail]
    logger.info(
        "Compacted conversation from %d to %d messages (middle %d -> %d)",
        len(history),
        len(compacted),
        len(middle),
        len(pruned_middle),
    )
    return compacted
