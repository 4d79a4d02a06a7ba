"""Tests for the conversation message model."""

from dataclasses import FrozenInstanceError

import pytest

from insight.core.types import (
    AssistantMessage,
    TextSegment,
    ToolCallSegment,
    ToolResultSegment,
    UserMessage,
    create_assistant_message,
    create_assistant_message_with_parts,
    create_tool_message,
    create_user_message,
    get_assistant_text,
    get_assistant_tool_calls,
    has_tool_calls,
    is_assistant_message,
    is_tool_message,
    is_user_message,
)


class TestConstructors:
    """Tests for the message constructors."""

    def test_user_message(self) -> None:
        msg = create_user_message("hello")
        assert msg == UserMessage(content="hello")
        assert msg.role == "user"

    def test_assistant_message_plain_text(self) -> None:
        msg = create_assistant_message("hi there")
        assert msg.content == "hi there"
        assert msg.role == "assistant"

    def test_assistant_message_with_parts_is_tuple(self) -> None:
        """Parts given as a list are stored as a tuple."""
        parts = [TextSegment("a"), ToolCallSegment("c1", "bash", {"cmd": "ls"})]
        msg = create_assistant_message_with_parts(parts)
        assert isinstance(msg.content, tuple)
        assert msg.content == tuple(parts)

    def test_tool_message(self) -> None:
        msg = create_tool_message([ToolResultSegment("c1", "bash", {"out": ""})])
        assert msg.role == "tool"
        assert msg.content[0].call_id == "c1"
        assert msg.content[0].is_error is False

    def test_messages_are_frozen(self) -> None:
        msg = create_user_message("x")
        with pytest.raises(FrozenInstanceError):
            msg.content = "y"  # type: ignore[misc]


class TestRoleGuards:
    """Tests for the role predicates."""

    def test_guards_match_roles(self) -> None:
        user = create_user_message("q")
        assistant = create_assistant_message("a")
        tool = create_tool_message([])

        assert is_user_message(user) and not is_user_message(assistant)
        assert is_assistant_message(assistant) and not is_assistant_message(tool)
        assert is_tool_message(tool) and not is_tool_message(user)


class TestAssistantHelpers:
    """Tests for text and tool-call accessors."""

    def test_text_of_string_content(self) -> None:
        assert get_assistant_text(AssistantMessage("plain")) == "plain"

    def test_text_concatenates_text_segments(self) -> None:
        msg = create_assistant_message_with_parts([
            TextSegment("one "),
            ToolCallSegment("c1", "bash", {}),
            TextSegment("two"),
        ])
        assert get_assistant_text(msg) == "one two"

    def test_tool_calls_in_order(self) -> None:
        msg = create_assistant_message_with_parts([
            ToolCallSegment("c1", "a", {}),
            TextSegment("between"),
            ToolCallSegment("c2", "b", {}),
        ])
        assert [c.call_id for c in get_assistant_tool_calls(msg)] == ["c1", "c2"]
        assert has_tool_calls(msg)

    def test_no_tool_calls_for_string_content(self) -> None:
        msg = AssistantMessage("text only")
        assert get_assistant_tool_calls(msg) == []
        assert not has_tool_calls(msg)
