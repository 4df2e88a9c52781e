"""Agent orchestration loop.

An ``Agent`` binds one model capability to a fixed, ordered tool set. Each
``run`` seeds a fresh RunContext, asks the model for the next step, executes
any requested tool, appends its result to the conversation and asks again,
until the model answers in plain text.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .config import DEFAULT_MAX_TOOL_CALLS, AgentConfig
from .models.base import Model
from .observability.logging import StructuredLogger
from .tools.base import Tool, ToolRegistry, ToolResult
from .tools.execution import execute_tool_call
from .types import (
    AgentError,
    Answer,
    ConfigurationError,
    Context,
    InternalError,
    Message,
    ModelError,
    ModelResponse,
    RunContext,
    ToolCall,
    ToolError,
)

logger = logging.getLogger(__name__)

ToolCallHook = Callable[[ToolCall], Awaitable[None] | None]
ToolResultHook = Callable[[ToolResult], Awaitable[None] | None]


async def _call_hook(hook: Callable[[Any], Any] | None, value: Any) -> None:
    if hook is None:
        return
    result = hook(value)
    if inspect.isawaitable(result):
        await result


@dataclass
class AgentRunResult:
    """Result of a complete agent run."""

    output: str
    messages: list[Message]  # Full conversation, in order
    tool_calls: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    iterations: int = 0  # Number of model calls
    run_id: str = ""


class Agent:
    """
    A tool-using agent.

    Agents are immutable once built and hold no per-run state, so one agent
    can serve many concurrent runs.

    Example:
        agent = (
            AgentBuilder("math_agent")
            .instructions("You are a helpful math assistant.")
            .model(LiteLLMModel("gpt-4o-mini"))
            .add_tool(calculator)
            .build()
        )
        answer = await agent.run("What is 15.7 * 9.2?")
    """

    def __init__(
        self,
        name: str,
        model: Model,
        instructions: str | None = None,
        tools: Iterable[Tool | Callable[..., Any]] = (),
        max_tool_calls: int = DEFAULT_MAX_TOOL_CALLS,
        structured_logger: StructuredLogger | None = None,
    ):
        """
        Initialize an agent.

        Args:
            name: Agent name (used in logs)
            model: Model capability to drive the conversation
            instructions: System prompt seeded at the start of every run
            tools: Tools the model may call, in order; names must be unique
            max_tool_calls: Maximum tool calls per run
            structured_logger: Optional JSONL logger for run events

        Raises:
            ConfigurationError: If the model is missing, tool names collide
                or max_tool_calls is negative
        """
        if model is None:
            raise ConfigurationError("Model not set")
        if max_tool_calls < 0:
            raise ConfigurationError(f"max_tool_calls must be >= 0, got {max_tool_calls}")

        self._name = name
        self._model = model
        self._instructions = instructions
        self._tools: tuple[Tool, ...] = tuple(ToolRegistry(tools))
        self._max_tool_calls = max_tool_calls
        self._structured_logger = structured_logger

    @property
    def name(self) -> str:
        return self._name

    @property
    def instructions(self) -> str | None:
        return self._instructions

    @property
    def model(self) -> Model:
        return self._model

    @property
    def tools(self) -> tuple[Tool, ...]:
        return self._tools

    @property
    def max_tool_calls(self) -> int:
        return self._max_tool_calls

    def _start(self, input: str, context: Context | Mapping[str, Any] | None) -> RunContext:
        """Seed the RunContext for a new run."""
        if context is None:
            context = Context()
        elif not isinstance(context, Context):
            context = Context(context)

        run_context = RunContext(context=context)
        if self._instructions:
            run_context.add_message("system", self._instructions)
        run_context.add_message("user", input)
        return run_context

    async def _generate(
        self,
        run_context: RunContext,
        tools: tuple[Tool, ...],
    ) -> ModelResponse:
        try:
            response = await self._model.generate(run_context, tools)
        except AgentError:
            raise
        except Exception as e:
            raise ModelError(f"Model failed: {e}", response=e) from e

        if not isinstance(response, (Answer, ToolCall)):
            raise InternalError(f"Unexpected model response type: {type(response).__name__}")
        return response

    async def _loop(
        self,
        run_context: RunContext,
        on_tool_call: ToolCallHook | None,
        on_tool_result: ToolResultHook | None,
    ) -> AgentRunResult:
        tag = run_context.run_id[:8]
        tool_calls: list[ToolCall] = []
        tool_results: list[ToolResult] = []
        iterations = 0

        while True:
            budget_exhausted = len(tool_calls) >= self._max_tool_calls
            if budget_exhausted and self._tools:
                logger.warning(
                    f"[{tag}] Reached max tool calls ({self._max_tool_calls}); "
                    f"asking for a final answer without tools"
                )
            tools = () if budget_exhausted else self._tools

            iterations += 1
            try:
                response = await self._generate(run_context, tools)
            except ToolError as e:
                # With no tools offered, any tool request means the budget was overrun
                if budget_exhausted:
                    raise ModelError(
                        f"Maximum tool calls ({self._max_tool_calls}) exceeded"
                    ) from e
                raise

            if isinstance(response, Answer):
                return AgentRunResult(
                    output=response.content,
                    messages=run_context.messages,
                    tool_calls=tool_calls,
                    tool_results=tool_results,
                    iterations=iterations,
                    run_id=run_context.run_id,
                )

            if budget_exhausted:
                raise ModelError(f"Maximum tool calls ({self._max_tool_calls}) exceeded")

            logger.debug(f"[{tag}] Tool call: {response.name}({response.arguments})")
            tool_calls.append(response)
            await _call_hook(on_tool_call, response)
            if self._structured_logger:
                self._structured_logger.log_tool_call(run_context.run_id, response)

            start_time = time.perf_counter()
            result = await execute_tool_call(self._tools, run_context, response)
            latency_ms = (time.perf_counter() - start_time) * 1000

            tool_results.append(result)
            await _call_hook(on_tool_result, result)
            if self._structured_logger:
                self._structured_logger.log_tool_result(
                    run_context.run_id, result.tool_name, result.output, latency_ms
                )

    async def run_with_result(
        self,
        input: str,
        context: Context | Mapping[str, Any] | None = None,
        *,
        on_tool_call: ToolCallHook | None = None,
        on_tool_result: ToolResultHook | None = None,
    ) -> AgentRunResult:
        """
        Run the agent and return the full result.

        Args:
            input: The user's input
            context: Caller-supplied side data (Context or plain mapping)
            on_tool_call: Callback when the model requests a tool
            on_tool_result: Callback when a tool returns

        Returns:
            AgentRunResult with the answer, conversation and tool history

        Raises:
            AgentError: The first failure encountered; runs are never retried
        """
        run_context = self._start(input, context)
        tag = run_context.run_id[:8]
        start_time = time.perf_counter()

        logger.info(f"[{tag}] Starting run: agent={self._name}, tools={len(self._tools)}")
        if self._structured_logger:
            self._structured_logger.log_run_start(
                run_id=run_context.run_id,
                agent=self._name,
                model=repr(self._model),
                tools=[t.name for t in self._tools],
                messages=run_context.messages,
            )

        try:
            result = await self._loop(run_context, on_tool_call, on_tool_result)
        except AgentError as e:
            latency_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"[{tag}] Run failed after {latency_ms:.1f}ms ({e.stage}): {e}")
            if self._structured_logger:
                self._structured_logger.log_error(run_context.run_id, e, latency_ms)
            raise

        latency_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"[{tag}] Completed: {latency_ms:.1f}ms, "
            f"iterations={result.iterations}, tool_calls={len(result.tool_calls)}"
        )
        if self._structured_logger:
            self._structured_logger.log_answer(
                run_context.run_id, result.output, result.iterations, latency_ms
            )
        return result

    async def run(
        self,
        input: str,
        context: Context | Mapping[str, Any] | None = None,
        *,
        on_tool_call: ToolCallHook | None = None,
        on_tool_result: ToolResultHook | None = None,
    ) -> str:
        """
        Run the agent and return its final answer.

        See run_with_result() for full parameter documentation.
        """
        result = await self.run_with_result(
            input,
            context,
            on_tool_call=on_tool_call,
            on_tool_result=on_tool_result,
        )
        return result.output

    def run_sync(
        self,
        input: str,
        context: Context | Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> str:
        """
        Synchronous version of run().

        See run() for full parameter documentation.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # We're in an async context - use thread
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor() as executor:
                future = executor.submit(asyncio.run, self.run(input, context, **kwargs))
                return future.result()
        else:
            return asyncio.run(self.run(input, context, **kwargs))

    def __repr__(self) -> str:
        return f"Agent(name={self._name!r}, tools={[t.name for t in self._tools]})"


class AgentBuilder:
    """
    Fluent builder for agents.

    Example:
        agent = (
            AgentBuilder("helper")
            .instructions("You are helpful.")
            .model(model)
            .add_tool(calculator)
            .build()
        )
    """

    def __init__(self, name: str):
        self._name = name
        self._instructions: str | None = None
        self._model: Model | None = None
        self._tools: list[Tool | Callable[..., Any]] = []
        self._max_tool_calls = DEFAULT_MAX_TOOL_CALLS
        self._structured_logger: StructuredLogger | None = None

    def instructions(self, instructions: str) -> "AgentBuilder":
        """Set the system prompt."""
        self._instructions = instructions
        return self

    def model(self, model: Model) -> "AgentBuilder":
        """Set the model capability."""
        self._model = model
        return self

    def add_tool(self, tool: Tool | Callable[..., Any]) -> "AgentBuilder":
        """Append a tool (a Tool instance or a @tool_fn decorated function)."""
        self._tools.append(tool)
        return self

    def add_tools(self, tools: Iterable[Tool | Callable[..., Any]]) -> "AgentBuilder":
        """Append several tools, in order."""
        self._tools.extend(tools)
        return self

    def max_tool_calls(self, max_tool_calls: int) -> "AgentBuilder":
        """Set the maximum number of tool calls per run."""
        self._max_tool_calls = max_tool_calls
        return self

    def config(self, config: AgentConfig) -> "AgentBuilder":
        """Apply run limits from an AgentConfig.

        With ``log_runs`` set and no structured logger configured, run events
        are written to stdout.
        """
        self._max_tool_calls = config.max_tool_calls
        if config.log_runs and self._structured_logger is None:
            self._structured_logger = StructuredLogger(stdout=True)
        return self

    def structured_logger(self, structured_logger: StructuredLogger) -> "AgentBuilder":
        """Record run events with a StructuredLogger."""
        self._structured_logger = structured_logger
        return self

    def build(self) -> Agent:
        """
        Build the agent.

        Raises:
            ConfigurationError: If no model was set or tool names collide
        """
        if self._model is None:
            raise ConfigurationError("Model not set")

        return Agent(
            name=self._name,
            model=self._model,
            instructions=self._instructions,
            tools=self._tools,
            max_tool_calls=self._max_tool_calls,
            structured_logger=self._structured_logger,
        )
