"""
Calculator Agent Example
========================

This example demonstrates the core features of agentloop:
- Deriving a tool from a typed function with @tool_fn
- Deriving a tool from an explicit parameter table with derive_tool
- Hand-built tools with FunctionTool
- Running an agent with hooks and structured logging

To run this example:
    uv run python examples/calculator_agent.py

Note: Requires OPENAI_API_KEY environment variable or .env file.
"""

import asyncio
import logging

from agentloop import (
    AgentBuilder,
    Context,
    FunctionTool,
    LiteLLMModel,
    ParamKind,
    RunContext,
    StructuredLogger,
    ToolCall,
    ToolResult,
    derive_tool,
    load_env_files,
    tool_fn,
)

# ============================================================================
# Tool Definitions
# ============================================================================


@tool_fn(name="calculator", description="A simple calculator")
def calculator(context: RunContext, a: float, b: float, operation: str) -> str:
    """Perform add, subtract, multiply or divide on two numbers."""
    if operation == "add":
        result = a + b
    elif operation == "subtract":
        result = a - b
    elif operation == "multiply":
        result = a * b
    elif operation == "divide":
        if b == 0:
            return "Error: Division by zero"
        result = a / b
    else:
        return f"Error: Unknown operation {operation}"
    return f"{result:g}"


def _power(context: RunContext, base: float, exponent: int) -> str:
    return f"{base**exponent:g}"


power = derive_tool(
    _power,
    name="power",
    description="Raise a number to an integer power",
    parameters={"base": ParamKind.NUMBER, "exponent": ParamKind.INTEGER},
)


def _whoami(context: RunContext, raw_args: str) -> str:
    return context.context.get("user_name", "unknown")


whoami = FunctionTool("whoami", "Name of the current user", _whoami)


# ============================================================================
# Main
# ============================================================================


def log_tool_call(tool_call: ToolCall) -> None:
    print(f"  -> {tool_call.name}({tool_call.arguments})")


def log_tool_result(result: ToolResult) -> None:
    print(f"  <- {result.output}")


async def main() -> None:
    load_env_files()
    logging.basicConfig(level=logging.INFO)

    structured = StructuredLogger(log_file="./logs/runs.jsonl")

    agent = (
        AgentBuilder("math_agent")
        .instructions("You are a helpful math assistant. Use the tools for arithmetic.")
        .model(LiteLLMModel("gpt-4o-mini", temperature=0.2))
        .add_tool(calculator)
        .add_tools([power, whoami])
        .max_tool_calls(5)
        .structured_logger(structured)
        .build()
    )

    context = Context().with_data("user_name", "Ada")

    for question in [
        "What is 15.7 * 9.2?",
        "What is 2 to the power of 10, divided by 0?",
        "What's my name?",
    ]:
        print(f"Q: {question}")
        answer = await agent.run(
            question,
            context,
            on_tool_call=log_tool_call,
            on_tool_result=log_tool_result,
        )
        print(f"A: {answer}\n")

    structured.close()


if __name__ == "__main__":
    asyncio.run(main())
