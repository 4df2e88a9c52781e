"""Message construction and transcript formatting utilities."""

from collections.abc import Sequence
from typing import Any

from ..types import VALID_ROLES, Message


def user_message(content: str) -> Message:
    """Create a user message."""
    return Message(role="user", content=content)


def system_message(content: str) -> Message:
    """Create a system message."""
    return Message(role="system", content=content)


def assistant_message(content: str) -> Message:
    """Create an assistant message."""
    return Message(role="assistant", content=content)


def tool_message(
    tool_name: str,
    content: str,
    tool_call_id: str | None = None,
    arguments: str | None = None,
) -> Message:
    """Create a tool result message."""
    return Message(
        role="tool",
        content=content,
        tool_name=tool_name,
        tool_call_id=tool_call_id,
        arguments=arguments,
    )


def format_messages(messages: Sequence[Message]) -> list[dict[str, Any]]:
    """
    Convert conversation entries into the OpenAI chat transcript shape.

    System, user and assistant entries pass through. Each tool entry is
    expanded into an assistant message carrying the originating tool call,
    followed by the tool response that answers it, because providers reject
    tool responses that do not follow a matching call.

    Args:
        messages: Conversation entries in order

    Returns:
        List of message dicts suitable for litellm
    """
    result: list[dict[str, Any]] = []

    for index, msg in enumerate(messages):
        if msg.role != "tool":
            result.append({"role": msg.role, "content": msg.content})
            continue

        call_id = msg.tool_call_id or f"call_{index}"
        result.append(
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": call_id,
                        "type": "function",
                        "function": {
                            "name": msg.tool_name,
                            "arguments": msg.arguments or "{}",
                        },
                    }
                ],
            }
        )
        result.append(
            {
                "role": "tool",
                "tool_call_id": call_id,
                "name": msg.tool_name,
                "content": msg.content,
            }
        )

    return result


def validate_messages(messages: Sequence[Message]) -> list[str]:
    """
    Validate a list of messages.

    Returns list of validation errors (empty if valid).
    """
    errors: list[str] = []

    for i, msg in enumerate(messages):
        if not isinstance(msg, Message):
            errors.append(f"Message {i}: must be a Message, got {type(msg).__name__}")
            continue

        if msg.role not in VALID_ROLES:
            errors.append(
                f"Message {i}: invalid role '{msg.role}', must be one of {sorted(VALID_ROLES)}"
            )

        if msg.role == "tool" and not msg.tool_name:
            errors.append(f"Message {i}: tool message must have 'tool_name'")

    return errors


def count_messages_by_role(messages: Sequence[Message]) -> dict[str, int]:
    """Count messages by role."""
    counts: dict[str, int] = {}
    for msg in messages:
        counts[msg.role] = counts.get(msg.role, 0) + 1
    return counts
