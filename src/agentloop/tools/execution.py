"""Tool-call dispatch.

This module resolves a model's tool call against the active tool set and
runs it against the current RunContext.
"""

import logging
from collections.abc import Sequence

from ..types import AgentError, RunContext, ToolCall, ToolError
from .base import Tool, ToolResult

logger = logging.getLogger(__name__)


def find_tool(tools: Sequence[Tool], name: str) -> Tool:
    """
    Look up a tool by name.

    Raises:
        ToolError: If no tool has that name
    """
    for t in tools:
        if t.name == name:
            return t
    raise ToolError(f"Tool not found: {name}", tool_name=name)


async def execute_tool(tool: Tool, context: RunContext, raw_args: str) -> ToolResult:
    """
    Execute a single tool, normalizing failures to AgentError.

    AgentError subclasses raised by the tool (InvalidInputError, ToolError, ...)
    propagate unchanged; anything else is wrapped in ToolError.
    """
    try:
        return await tool.execute(context, raw_args)
    except AgentError:
        raise
    except Exception as e:
        logger.warning(f"Tool {tool.name} failed: {e}")
        raise ToolError(f"Tool {tool.name} failed: {e}", tool_name=tool.name) from e


async def execute_tool_call(
    tools: Sequence[Tool],
    context: RunContext,
    tool_call: ToolCall,
) -> ToolResult:
    """
    Dispatch a tool call and record its result in the conversation.

    Args:
        tools: Tools available to the run
        context: The run's context; receives the tool message on success
        tool_call: The call requested by the model

    Returns:
        The tool's result
    """
    tool = find_tool(tools, tool_call.name)
    result = await execute_tool(tool, context, tool_call.arguments)
    context.add_tool_message(
        result.tool_name,
        result.output,
        tool_call_id=tool_call.id or None,
        arguments=tool_call.arguments,
    )
    return result
