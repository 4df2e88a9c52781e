"""Tool definition and dispatch for agentloop.

This package provides:
- The ``Tool`` contract and the closure-backed ``FunctionTool``
- Tool derivation from typed functions (``@tool_fn``, ``derive_tool``)
  or Pydantic models (``tool_from_pydantic``)
- Conversion to OpenAI/Anthropic formats
- Dispatch of a single model tool call

Example:
    from agentloop import AgentBuilder, LiteLLMModel, RunContext
    from agentloop.tools import tool_fn

    @tool_fn(name="calculator", description="Add two numbers")
    def add(context: RunContext, a: float, b: float) -> str:
        return str(a + b)

    agent = (
        AgentBuilder("math")
        .model(LiteLLMModel("gpt-4o-mini"))
        .add_tool(add)
        .build()
    )
    print(await agent.run("What is 2 + 2?"))
"""

from .base import (
    EMPTY_PARAMETERS_SCHEMA,
    FunctionTool,
    Tool,
    ToolRegistry,
    ToolResult,
    as_tool,
    format_tool_output,
    tools_to_anthropic,
    tools_to_openai,
)
from .definitions import (
    DerivedTool,
    ParamKind,
    PydanticTool,
    build_parameters_schema,
    derive_tool,
    extract_argument,
    get_tool_definition,
    parse_arguments,
    tool_fn,
    tool_from_pydantic,
)
from .execution import execute_tool, execute_tool_call, find_tool

__all__ = [
    # Contract
    "Tool",
    "ToolResult",
    "FunctionTool",
    "ToolRegistry",
    "EMPTY_PARAMETERS_SCHEMA",
    "as_tool",
    "format_tool_output",
    "tools_to_openai",
    "tools_to_anthropic",
    # Derivation
    "ParamKind",
    "DerivedTool",
    "PydanticTool",
    "derive_tool",
    "tool_fn",
    "tool_from_pydantic",
    "get_tool_definition",
    "build_parameters_schema",
    "extract_argument",
    "parse_arguments",
    # Dispatch
    "find_tool",
    "execute_tool",
    "execute_tool_call",
]
