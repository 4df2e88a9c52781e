"""Tool contract and the closure-backed tool implementation.

Every invokable action satisfies the ``Tool`` interface: a name, a
description, a JSON Schema for its parameters and an async ``execute`` that
receives the run's ``RunContext`` plus the raw argument text produced by the
model.
"""

import copy
import inspect
import json
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from ..types import ConfigurationError, RunContext

EMPTY_PARAMETERS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {},
    "required": [],
}


@dataclass(frozen=True)
class ToolResult:
    """Result of executing a tool."""

    tool_name: str
    output: str


class Tool(ABC):
    """Abstract base class for model-invokable tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does, for the model."""

    @abstractmethod
    def parameters_schema(self) -> dict[str, Any]:
        """JSON Schema describing the expected arguments."""

    @abstractmethod
    async def execute(self, context: RunContext, raw_args: str) -> ToolResult:
        """
        Execute the tool.

        Args:
            context: The run's context; tools may read and append to it
            raw_args: Argument text exactly as produced by the model

        Returns:
            The tool's result

        Raises:
            InvalidInputError: If the arguments cannot be decoded
            ToolError: If the tool's own logic fails
        """

    def to_openai_tool(self) -> dict[str, Any]:
        """Convert to OpenAI tool format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters_schema(),
            },
        }

    def to_anthropic_tool(self) -> dict[str, Any]:
        """Convert to Anthropic tool format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters_schema(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


FunctionToolFn = Callable[[RunContext, str], "ToolResult | str | Awaitable[ToolResult | str]"]


class FunctionTool(Tool):
    """
    A tool built ad hoc from a function of shape ``(context, raw_args)``.

    The function receives the raw argument text untouched and may be sync or
    async. Returning a plain string wraps it as a ``ToolResult`` under this
    tool's name.

    Example:
        echo = FunctionTool(
            "echo",
            "Echoes the input",
            lambda context, raw_args: f"Echo: {raw_args}",
        )
    """

    def __init__(
        self,
        name: str,
        description: str,
        func: FunctionToolFn,
        parameters_schema: dict[str, Any] | None = None,
    ):
        self._name = name
        self._description = description
        self._func = func
        self._parameters_schema = (
            parameters_schema if parameters_schema is not None else EMPTY_PARAMETERS_SCHEMA
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    def parameters_schema(self) -> dict[str, Any]:
        return copy.deepcopy(self._parameters_schema)

    async def execute(self, context: RunContext, raw_args: str) -> ToolResult:
        result = self._func(context, raw_args)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, ToolResult):
            return result
        return ToolResult(tool_name=self._name, output=format_tool_output(result))


def format_tool_output(result: Any) -> str:
    """
    Render a tool function's return value as message text.

    Args:
        result: The value returned by the tool function

    Returns:
        Text for the tool message
    """
    if isinstance(result, str):
        return result
    if result is None:
        return ""
    if isinstance(result, BaseModel):
        return result.model_dump_json()
    if isinstance(result, (dict, list)):
        return json.dumps(result)
    return str(result)


def as_tool(obj: Tool | Callable[..., Any]) -> Tool:
    """
    Normalize a tool-like object to a ``Tool``.

    Accepts ``Tool`` instances and ``@tool_fn`` decorated functions.
    """
    if isinstance(obj, Tool):
        return obj
    tool_def = getattr(obj, "_tool_definition", None)
    if isinstance(tool_def, Tool):
        return tool_def
    raise ValueError(f"Not a valid tool: {obj}")


class ToolRegistry:
    """Ordered registry of tools with unique names."""

    def __init__(self, tools: Iterable[Tool | Callable[..., Any]] | None = None):
        self._tools: dict[str, Tool] = {}
        for t in tools or ():
            self.register(t)

    def register(self, tool: Tool | Callable[..., Any]) -> Tool:
        """Register a tool, rejecting non-tools and duplicate names."""
        try:
            resolved = as_tool(tool)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if resolved.name in self._tools:
            raise ConfigurationError(f"Duplicate tool name: {resolved.name}")
        self._tools[resolved.name] = resolved
        return resolved

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def to_openai_tools(self) -> list[dict[str, Any]]:
        """Convert all tools to OpenAI format."""
        return [t.to_openai_tool() for t in self._tools.values()]

    def to_anthropic_tools(self) -> list[dict[str, Any]]:
        """Convert all tools to Anthropic format."""
        return [t.to_anthropic_tool() for t in self._tools.values()]

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def tools_to_openai(tools: Iterable[Tool | Callable[..., Any]]) -> list[dict[str, Any]]:
    """
    Convert a list of tools to OpenAI format.

    Accepts both Tool objects and @tool_fn decorated functions.
    """
    return [as_tool(t).to_openai_tool() for t in tools]


def tools_to_anthropic(tools: Iterable[Tool | Callable[..., Any]]) -> list[dict[str, Any]]:
    """
    Convert a list of tools to Anthropic format.

    Accepts both Tool objects and @tool_fn decorated functions.
    """
    return [as_tool(t).to_anthropic_tool() for t in tools]
