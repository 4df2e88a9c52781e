"""Core conversation helpers."""

from .messages import (
    assistant_message,
    count_messages_by_role,
    format_messages,
    system_message,
    tool_message,
    user_message,
    validate_messages,
)

__all__ = [
    "format_messages",
    "user_message",
    "system_message",
    "assistant_message",
    "tool_message",
    "validate_messages",
    "count_messages_by_role",
]
