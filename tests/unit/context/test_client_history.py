"""Tests for parsing client-supplied conversation history."""

import pytest

from insight.context.client_history import (
    deserialize_message,
    parse_client_history,
    serialize_message,
    serialize_messages,
)
from insight.core.types import (
    AssistantMessage,
    TextSegment,
    ToolCallSegment,
    ToolMessage,
    ToolResultSegment,
    UserMessage,
)


class TestParseClientHistory:
    """Tests for parse_client_history()."""

    def test_valid_entries(self) -> None:
        data = [
            {"role": "user", "content": "hi"},
            {"role": "assistant", "content": [
                {"type": "text", "text": "checking"},
                {"type": "tool-call", "toolCallId": "c1", "toolName": "bash", "args": {"cmd": "ls"}},
            ]},
            {"role": "tool", "content": [
                {"type": "tool-result", "toolCallId": "c1", "toolName": "bash", "result": "a", "isError": True},
            ]},
        ]
        assert parse_client_history(data) == [
            UserMessage("hi"),
            AssistantMessage((TextSegment("checking"), ToolCallSegment("c1", "bash", {"cmd": "ls"}))),
            ToolMessage((ToolResultSegment("c1", "bash", "a", is_error=True),)),
        ]

    @pytest.mark.parametrize("data", [None, "history", {"role": "user"}, 42])
    def test_non_list_is_empty(self, data) -> None:
        assert parse_client_history(data) == []

    def test_malformed_entries_skipped(self) -> None:
        data = [
            {"role": "user", "content": "keep"},
            {"role": "system", "content": "drop"},
            {"role": "user", "content": 5},
            {"content": "no role"},
            "not an object",
            {"role": "assistant", "content": [{"type": "image"}]},
            {"role": "tool", "content": "not a list"},
            {"role": "tool", "content": [{"type": "tool-result", "toolName": "x"}]},
            {"role": "assistant", "content": "kept too"},
        ]
        assert parse_client_history(data) == [UserMessage("keep"), AssistantMessage("kept too")]

    def test_order_preserved(self) -> None:
        data = [{"role": "user", "content": str(i)} for i in range(5)]
        assert [m.content for m in parse_client_history(data)] == ["0", "1", "2", "3", "4"]


class TestDeserializeMessage:
    """Tests for deserialize_message()."""

    def test_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            deserialize_message({"role": "critic", "content": "x"})


class TestSerialize:
    """serialize_message() is the inverse of deserialize_message()."""

    def test_uses_camel_case_keys(self) -> None:
        data = serialize_message(ToolMessage((ToolResultSegment("c1", "t", 1),)))
        assert data == {
            "role": "tool",
            "content": [
                {"type": "tool-result", "toolCallId": "c1", "toolName": "t", "result": 1, "isError": False}
            ],
        }

    def test_inverse(self) -> None:
        history = [
            UserMessage("q"),
            AssistantMessage((TextSegment("t"), ToolCallSegment("c1", "x", {"a": [1, 2]}))),
            ToolMessage((ToolResultSegment("c1", "x", {"ok": True}),)),
            AssistantMessage("a"),
        ]
        assert parse_client_history(serialize_messages(history)) == history
