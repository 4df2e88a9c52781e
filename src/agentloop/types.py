"""Shared types, conversation ledger and exceptions for agentloop."""

import json
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic_core import PydanticSerializationError, to_jsonable_python

# Type aliases for messages
Role = Literal["system", "user", "assistant", "tool"]

VALID_ROLES: frozenset[str] = frozenset({"system", "user", "assistant", "tool"})


# Exceptions
class AgentError(Exception):
    """Base exception for agentloop errors."""

    stage = "agent"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ModelError(AgentError):
    """The model capability failed or returned a malformed response."""

    stage = "model"

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class ToolError(AgentError):
    """Unknown tool name, or a tool's own logic failed."""

    stage = "tool"

    def __init__(self, message: str, tool_name: str | None = None):
        super().__init__(message)
        self.tool_name = tool_name


class InvalidInputError(AgentError):
    """Tool arguments could not be decoded into the declared parameters."""

    stage = "parameter"

    def __init__(self, message: str, parameter: str | None = None):
        super().__init__(message)
        self.parameter = parameter


class SerializationError(InvalidInputError):
    """Malformed JSON on a parse boundary."""


class ContextError(AgentError):
    """Context or conversation shape violation."""

    stage = "context"


class ConfigurationError(AgentError):
    """Invalid or incomplete configuration."""

    stage = "configuration"


class InternalError(AgentError):
    """Unexpected invariant violation."""

    stage = "internal"


class Context:
    """
    Caller-supplied side data for a run.

    Values are stored in their JSON-compatible form so tools and models can
    serialize them without surprises.

    Example:
        context = Context().with_data("user_id", 42).with_data("locale", "en")
        result = await agent.run("Hi", context)
    """

    def __init__(self, data: Mapping[str, Any] | None = None):
        self._data: dict[str, Any] = {}
        for key, value in (data or {}).items():
            self.with_data(key, value)

    def with_data(self, key: str, value: Any) -> "Context":
        """Store a value under key and return self for chaining."""
        try:
            self._data[key] = to_jsonable_python(value)
        except PydanticSerializationError as e:
            raise ContextError(f"Value for '{key}' is not JSON serializable: {e}") from e
        return self

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def merge(self, other: "Context | Mapping[str, Any]") -> "Context":
        """Return a new context with other's entries layered over this one."""
        other_data = other.to_dict() if isinstance(other, Context) else dict(other)
        return Context({**self._data, **other_data})

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Context):
            return self._data == other._data
        return NotImplemented

    def __repr__(self) -> str:
        return f"Context({self._data!r})"


@dataclass
class Message:
    """A single conversation entry."""

    role: Role
    content: str
    tool_name: str | None = None
    # Set on tool messages so a model can replay the originating call
    tool_call_id: str | None = None
    arguments: str | None = None

    def __post_init__(self) -> None:
        if self.role not in VALID_ROLES:
            raise ContextError(
                f"Invalid role '{self.role}', must be one of {sorted(VALID_ROLES)}"
            )
        if self.role == "tool" and not self.tool_name:
            raise ContextError("Tool message must have a non-empty tool_name")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict, omitting unset optional fields."""
        result: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_name is not None:
            result["tool_name"] = self.tool_name
        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id
        if self.arguments is not None:
            result["arguments"] = self.arguments
        return result


@dataclass
class RunContext:
    """
    State owned by exactly one agent run.

    Holds the caller's base context and the ordered conversation. The agent
    lends it to the model and to one tool invocation at a time.

    Attributes:
        context: Base context supplied by the caller
        messages: Conversation so far, in insertion order
        run_id: Identifier used to correlate log lines
    """

    context: Context = field(default_factory=Context)
    messages: list[Message] = field(default_factory=list)
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def add_message(self, role: Role, content: str) -> Message:
        """Append a system, user or assistant message."""
        if role == "tool":
            raise ContextError("Use add_tool_message() for tool messages")
        message = Message(role=role, content=content)
        self.messages.append(message)
        return message

    def add_tool_message(
        self,
        tool_name: str,
        content: str,
        tool_call_id: str | None = None,
        arguments: str | None = None,
    ) -> Message:
        """Append a tool result message."""
        message = Message(
            role="tool",
            content=content,
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            arguments=arguments,
        )
        self.messages.append(message)
        return message

    @property
    def last_message(self) -> Message | None:
        return self.messages[-1] if self.messages else None

    def tool_messages(self) -> list[Message]:
        """Return only the tool messages, in order."""
        return [m for m in self.messages if m.role == "tool"]


@dataclass(frozen=True)
class Answer:
    """A final text answer from the model."""

    content: str


@dataclass(frozen=True)
class ToolCall:
    """A model request to run one named tool with raw JSON arguments."""

    name: str
    arguments: str = "{}"
    id: str = ""

    @classmethod
    def from_openai(cls, tool_call: dict[str, Any]) -> "ToolCall":
        """Parse from OpenAI tool call format, keeping arguments as raw text."""
        func = tool_call.get("function") or {}
        arguments = func.get("arguments")
        if arguments is None:
            arguments = "{}"
        elif not isinstance(arguments, str):
            # Some providers hand back already-decoded arguments
            arguments = json.dumps(arguments)

        return cls(
            name=func.get("name") or "",
            arguments=arguments,
            id=tool_call.get("id") or "",
        )


ModelResponse = Answer | ToolCall


# Configuration types
@dataclass
class RetryConfig:
    """Configuration for retrying transient model failures."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    # HTTP status codes to retry on
    retry_on_status: tuple[int, ...] = (429, 500, 502, 503, 504)
