"""Pytest configuration and fixtures."""

import os
from collections.abc import Sequence
from pathlib import Path

import pytest

from agentloop import Answer, Model, ModelResponse, RunContext, Tool, ToolCall, tool_fn


class ScriptedModel(Model):
    """
    A model that replays a fixed sequence of responses.

    Records the conversation and tool names it was shown on every call so
    tests can assert on what the agent sent.
    """

    def __init__(self, responses: Sequence[ModelResponse | Exception]):
        self._responses = list(responses)
        self.calls: list[dict] = []

    async def generate(self, context: RunContext, tools: Sequence[Tool]) -> ModelResponse:
        self.calls.append(
            {
                "messages": list(context.messages),
                "tools": [t.name for t in tools],
            }
        )
        if not self._responses:
            raise AssertionError("ScriptedModel ran out of responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class LoopingModel(Model):
    """A model that always requests the same tool while tools are offered."""

    def __init__(self, tool_call: ToolCall, final_answer: str | None = None):
        self.tool_call = tool_call
        self.final_answer = final_answer
        self.calls = 0

    async def generate(self, context: RunContext, tools: Sequence[Tool]) -> ModelResponse:
        self.calls += 1
        if not tools and self.final_answer is not None:
            return Answer(self.final_answer)
        return self.tool_call


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clean environment variables before each test."""
    # Remove any AGENTLOOP_ env vars that might interfere
    for key in list(os.environ.keys()):
        if key.startswith("AGENTLOOP_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def calculator():
    """The four-function calculator tool."""

    @tool_fn(name="calculator", description="A simple calculator")
    def calculator(context: RunContext, a: float, b: float, operation: str) -> str:
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

    return calculator


@pytest.fixture
def mock_env_file(tmp_path: Path) -> Path:
    """Create a temporary .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        """
OPENAI_API_KEY=sk-test-key
AGENTLOOP_DEFAULT_MODEL=gpt-4o-mini
AGENTLOOP_LOG_LEVEL=DEBUG
AGENTLOOP_MAX_TOOL_CALLS=5
"""
    )
    return env_file


@pytest.fixture
def scripted_model() -> type[ScriptedModel]:
    """Factory for models that replay a fixed sequence of responses."""
    return ScriptedModel


@pytest.fixture
def looping_model() -> type[LoopingModel]:
    """Factory for models that never stop requesting a tool."""
    return LoopingModel
