"""Tests for message helpers and transcript formatting."""

from agentloop.core.messages import (
    assistant_message,
    count_messages_by_role,
    format_messages,
    system_message,
    tool_message,
    user_message,
    validate_messages,
)
from agentloop.types import Message


class TestMessageBuilders:
    """Tests for message builder functions."""

    def test_user_message(self) -> None:
        msg = user_message("Hello")
        assert msg == Message(role="user", content="Hello")

    def test_system_message(self) -> None:
        assert system_message("Be helpful").role == "system"

    def test_assistant_message(self) -> None:
        assert assistant_message("Hi there").role == "assistant"

    def test_tool_message(self) -> None:
        msg = tool_message("calculator", "4", tool_call_id="call_1", arguments="{}")
        assert msg.role == "tool"
        assert msg.tool_name == "calculator"
        assert msg.tool_call_id == "call_1"


class TestFormatMessages:
    """Tests for format_messages."""

    def test_plain_messages_pass_through(self) -> None:
        result = format_messages(
            [system_message("Be brief."), user_message("Hi"), assistant_message("Hello")]
        )
        assert result == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
        ]

    def test_tool_message_expands_to_call_and_response(self) -> None:
        result = format_messages(
            [
                user_message("2+2?"),
                tool_message(
                    "calculator",
                    "4",
                    tool_call_id="call_abc",
                    arguments='{"a": 2, "b": 2, "operation": "add"}',
                ),
            ]
        )

        assert len(result) == 3
        call, response = result[1], result[2]
        assert call["role"] == "assistant"
        assert call["content"] is None
        assert call["tool_calls"] == [
            {
                "id": "call_abc",
                "type": "function",
                "function": {
                    "name": "calculator",
                    "arguments": '{"a": 2, "b": 2, "operation": "add"}',
                },
            }
        ]
        assert response == {
            "role": "tool",
            "tool_call_id": "call_abc",
            "name": "calculator",
            "content": "4",
        }

    def test_missing_call_id_is_synthesized(self) -> None:
        result = format_messages([user_message("Hi"), tool_message("clock", "12:00")])

        call_id = result[1]["tool_calls"][0]["id"]
        assert call_id == "call_1"
        assert result[2]["tool_call_id"] == call_id
        assert result[1]["tool_calls"][0]["function"]["arguments"] == "{}"

    def test_empty(self) -> None:
        assert format_messages([]) == []


class TestValidateMessages:
    """Tests for validate_messages."""

    def test_valid(self) -> None:
        assert validate_messages([user_message("Hi"), tool_message("t", "x")]) == []

    def test_not_a_message(self) -> None:
        errors = validate_messages([{"role": "user", "content": "Hi"}])  # type: ignore[list-item]
        assert len(errors) == 1
        assert "must be a Message" in errors[0]


def test_count_messages_by_role() -> None:
    counts = count_messages_by_role(
        [user_message("a"), user_message("b"), assistant_message("c"), tool_message("t", "d")]
    )
    assert counts == {"user": 2, "assistant": 1, "tool": 1}
