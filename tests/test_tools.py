"""Tests for the tool contract, FunctionTool and the registry."""

import json

import pytest
from pydantic import BaseModel

from agentloop.tools import (
    EMPTY_PARAMETERS_SCHEMA,
    FunctionTool,
    Tool,
    ToolRegistry,
    ToolResult,
    as_tool,
    format_tool_output,
    get_tool_definition,
    tool_fn,
    tools_to_anthropic,
    tools_to_openai,
)
from agentloop.types import ConfigurationError, RunContext

# ============================================================================
# Test FunctionTool
# ============================================================================


class TestFunctionTool:
    """Tests for FunctionTool."""

    async def test_echo_receives_raw_args(self) -> None:
        echo = FunctionTool(
            "echo",
            "Echoes the input",
            lambda context, raw_args: f"Echo: {raw_args}",
        )

        result = await echo.execute(RunContext(), "hello")

        assert result == ToolResult(tool_name="echo", output="Echo: hello")

    async def test_async_function(self) -> None:
        async def shout(context: RunContext, raw_args: str) -> str:
            return raw_args.upper()

        tool = FunctionTool("shout", "Shouts", shout)
        result = await tool.execute(RunContext(), "hi")
        assert result.output == "HI"

    async def test_tool_result_passes_through(self) -> None:
        tool = FunctionTool(
            "renamer",
            "Returns its own result",
            lambda context, raw_args: ToolResult(tool_name="other", output="x"),
        )
        result = await tool.execute(RunContext(), "")
        assert result.tool_name == "other"

    async def test_can_read_context(self) -> None:
        def whoami(context: RunContext, raw_args: str) -> str:
            return str(context.context.get("user"))

        run_context = RunContext()
        run_context.context.with_data("user", "ada")

        result = await FunctionTool("whoami", "Current user", whoami).execute(run_context, "")
        assert result.output == "ada"

    def test_default_schema(self) -> None:
        tool = FunctionTool("noop", "Does nothing", lambda context, raw_args: "")
        assert tool.parameters_schema() == EMPTY_PARAMETERS_SCHEMA

    def test_schema_is_a_copy(self) -> None:
        tool = FunctionTool("noop", "Does nothing", lambda context, raw_args: "")
        tool.parameters_schema()["properties"]["x"] = {"type": "string"}
        assert tool.parameters_schema()["properties"] == {}

    def test_custom_schema(self) -> None:
        schema = {"type": "object", "properties": {"q": {"type": "string"}}, "required": ["q"]}
        tool = FunctionTool("search", "Search", lambda context, raw_args: "", schema)
        assert tool.parameters_schema() == schema

    def test_is_tool(self) -> None:
        tool = FunctionTool("noop", "Does nothing", lambda context, raw_args: "")
        assert isinstance(tool, Tool)
        assert repr(tool) == "FunctionTool(name='noop')"


# ============================================================================
# Test Format Conversion
# ============================================================================


class TestFormatConversion:
    """Tests for converting tools to provider formats."""

    def setup_method(self):
        """Set up test tools."""

        @tool_fn()
        def get_weather(context: RunContext, location: str) -> str:
            """Get weather for a location."""
            return ""

        self.get_weather = get_weather
        self.echo = FunctionTool("echo", "Echoes the input", lambda context, raw_args: raw_args)

    def test_tools_to_openai(self):
        """Should convert to OpenAI format."""
        openai_tools = tools_to_openai([self.get_weather, self.echo])

        assert len(openai_tools) == 2
        assert openai_tools[0] == {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Get weather for a location.",
                "parameters": {
                    "type": "object",
                    "properties": {"location": {"type": "string"}},
                    "required": ["location"],
                },
            },
        }
        assert openai_tools[1]["function"]["name"] == "echo"

    def test_tools_to_anthropic(self):
        """Should convert to Anthropic format."""
        anthropic_tools = tools_to_anthropic([self.get_weather, self.echo])

        assert len(anthropic_tools) == 2
        assert anthropic_tools[0]["name"] == "get_weather"
        assert anthropic_tools[0]["input_schema"]["required"] == ["location"]
        assert anthropic_tools[1]["description"] == "Echoes the input"

    def test_as_tool(self):
        """Should resolve decorated functions to their definition."""
        assert as_tool(self.echo) is self.echo
        assert as_tool(self.get_weather) is get_tool_definition(self.get_weather)

    def test_as_tool_rejects_plain_function(self):
        def plain(context, x):
            return x

        with pytest.raises(ValueError, match="Not a valid tool"):
            as_tool(plain)


# ============================================================================
# Test Tool Registry
# ============================================================================


class TestToolRegistry:
    """Tests for ToolRegistry."""

    def test_register_and_get(self):
        """Should register and retrieve tools."""
        registry = ToolRegistry()
        echo = FunctionTool("echo", "Echo", lambda context, raw_args: raw_args)

        assert registry.register(echo) is echo
        assert registry.get("echo") is echo
        assert registry.get("nonexistent") is None
        assert "echo" in registry

    def test_preserves_order(self):
        """Should iterate in registration order."""
        names = ["zeta", "alpha", "mid"]
        registry = ToolRegistry(
            FunctionTool(name, name, lambda context, raw_args: "") for name in names
        )

        assert len(registry) == 3
        assert [t.name for t in registry] == names
        assert registry.names() == names

    def test_duplicate_name_rejected(self):
        """Should reject a second tool with the same name."""
        registry = ToolRegistry([FunctionTool("echo", "one", lambda context, raw_args: "")])

        with pytest.raises(ConfigurationError, match="Duplicate tool name: echo"):
            registry.register(FunctionTool("echo", "two", lambda context, raw_args: ""))

    def test_plain_function_rejected(self):
        """Should reject an undecorated function as a configuration error."""

        def plain(x: int) -> int:
            return x

        with pytest.raises(ConfigurationError, match="Not a valid tool"):
            ToolRegistry([plain])

    def test_provider_formats(self):
        registry = ToolRegistry([FunctionTool("echo", "Echo", lambda context, raw_args: "")])

        assert registry.to_openai_tools()[0]["function"]["name"] == "echo"
        assert registry.to_anthropic_tools()[0]["name"] == "echo"


# ============================================================================
# Test Tool Output Formatting
# ============================================================================


class TestFormatToolOutput:
    """Tests for format_tool_output."""

    def test_string_result(self):
        assert format_tool_output("Weather: 72°F") == "Weather: 72°F"

    def test_none_result(self):
        assert format_tool_output(None) == ""

    def test_dict_result(self):
        """Should JSON encode dict result."""
        assert format_tool_output({"temp": 72, "unit": "F"}) == json.dumps(
            {"temp": 72, "unit": "F"}
        )

    def test_pydantic_result(self):
        """Should JSON encode Pydantic result."""

        class Weather(BaseModel):
            temp: int
            unit: str

        content = json.loads(format_tool_output(Weather(temp=72, unit="F")))
        assert content == {"temp": 72, "unit": "F"}

    def test_other_result(self):
        assert format_tool_output(4.5) == "4.5"
