"""Model capability backed by litellm."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import litellm
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ..config import AgentConfig, load_env_files
from ..core.messages import format_messages
from ..tools.base import Tool, tools_to_openai
from ..types import (
    Answer,
    ConfigurationError,
    ModelError,
    ModelResponse,
    RetryConfig,
    RunContext,
    ToolCall,
    ToolError,
)
from .base import Model

logger = logging.getLogger(__name__)


def _tool_call_to_dict(raw: Any) -> dict[str, Any]:
    """Normalize a provider tool call object to a plain dict."""
    if isinstance(raw, dict):
        return raw
    if hasattr(raw, "model_dump"):
        return raw.model_dump()
    function = getattr(raw, "function", None)
    return {
        "id": getattr(raw, "id", ""),
        "function": {
            "name": getattr(function, "name", ""),
            "arguments": getattr(function, "arguments", "{}"),
        },
    }


class LiteLLMModel(Model):
    """
    Model capability that talks to any provider supported by litellm.

    Converts the conversation to the OpenAI chat shape, offers the tools as
    OpenAI function tools, submits one ``litellm.acompletion`` request and
    interprets the first choice. Transient failures are retried with
    exponential backoff.

    Example:
        model = LiteLLMModel("gpt-4o-mini", temperature=0.2)
        agent = AgentBuilder("helper").model(model).build()
    """

    def __init__(
        self,
        model: str,
        *,
        temperature: float | None = 0.7,
        max_tokens: int | None = None,
        retry: RetryConfig | None = None,
        timeout: float = 600.0,
        **completion_kwargs: Any,
    ):
        """
        Initialize the model.

        Args:
            model: litellm model identifier (e.g. "gpt-4o", "anthropic/claude-3-haiku")
            temperature: Sampling temperature (None to use the provider default)
            max_tokens: Maximum tokens in each response
            retry: Retry configuration for transient failures
            timeout: Request timeout in seconds
            **completion_kwargs: Additional kwargs passed through to litellm
        """
        if not model:
            raise ConfigurationError("Model name must not be empty")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.retry = retry or RetryConfig()
        self.timeout = timeout
        self.completion_kwargs = completion_kwargs

    @classmethod
    def from_config(
        cls,
        config: AgentConfig | None = None,
        env_file: str | Path | None = None,
        **completion_kwargs: Any,
    ) -> "LiteLLMModel":
        """
        Build a model from an AgentConfig (read from the environment by default).

        Args:
            config: Configuration to use instead of the environment
            env_file: .env file to load before reading the environment
            **completion_kwargs: Additional kwargs passed through to litellm
        """
        if config is None:
            load_env_files(env_file)
            config = AgentConfig.from_env()

        if not config.default_model:
            raise ConfigurationError("No model specified and no default_model configured")

        logging.basicConfig(level=getattr(logging, config.log_level))

        return cls(
            config.default_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            retry=config.retry,
            timeout=config.timeout,
            **completion_kwargs,
        )

    def build_request(self, context: RunContext, tools: Sequence[Tool]) -> dict[str, Any]:
        """Build the kwargs for litellm.acompletion()."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": format_messages(context.messages),
            "timeout": self.timeout,
        }
        if self.temperature is not None:
            kwargs["temperature"] = self.temperature
        if self.max_tokens is not None:
            kwargs["max_tokens"] = self.max_tokens
        if tools:
            kwargs["tools"] = tools_to_openai(tools)
            kwargs["tool_choice"] = "auto"

        kwargs.update(self.completion_kwargs)
        return kwargs

    async def _complete_once(self, kwargs: dict[str, Any]) -> Any:
        """Make one litellm call, mapping its exceptions to ModelError."""
        try:
            return await litellm.acompletion(**kwargs)
        except litellm.exceptions.APIConnectionError as e:
            raise ModelError(f"API connection error: {e}", response=e) from e
        except litellm.exceptions.RateLimitError as e:
            raise ModelError(
                f"Rate limit exceeded: {e}",
                status_code=429,
                response=e,
            ) from e
        except litellm.exceptions.APIError as e:
            raise ModelError(
                f"API error: {e}",
                status_code=getattr(e, "status_code", None),
                response=e,
            ) from e
        except Exception as e:
            raise ModelError(
                f"Failed to generate response: {e}",
                status_code=getattr(e, "status_code", None),
                response=e,
            ) from e

    def _should_retry(self, exception: BaseException) -> bool:
        """Determine if an exception should trigger a retry."""
        if isinstance(exception, ModelError):
            if exception.status_code in self.retry.retry_on_status:
                return True
            cause = exception.__cause__
            if isinstance(
                cause,
                (
                    litellm.exceptions.APIConnectionError,
                    litellm.exceptions.Timeout,
                    ConnectionError,
                    TimeoutError,
                    asyncio.TimeoutError,
                ),
            ):
                return True
        return False

    async def _complete(self, kwargs: dict[str, Any]) -> Any:
        """Call litellm with retry logic."""
        try:
            async for attempt_state in AsyncRetrying(
                stop=stop_after_attempt(self.retry.max_attempts),
                wait=wait_exponential_jitter(
                    initial=self.retry.initial_delay,
                    max=self.retry.max_delay,
                    exp_base=self.retry.exponential_base,
                    jitter=self.retry.initial_delay if self.retry.jitter else 0,
                ),
                retry=retry_if_exception(self._should_retry),
                reraise=True,
            ):
                with attempt_state:
                    attempt = attempt_state.retry_state.attempt_number
                    if attempt > 1:
                        logger.info(
                            f"Retry attempt {attempt}/{self.retry.max_attempts} "
                            f"for model={self.model}"
                        )
                    return await self._complete_once(kwargs)

        except RetryError as e:
            if e.last_attempt.failed:
                exc = e.last_attempt.exception()
                if exc is not None:
                    raise exc from e
            raise ModelError("Retry attempts exhausted") from e

        raise ModelError("Retry logic failed unexpectedly")

    def parse_response(self, response: Any, tools: Sequence[Tool]) -> ModelResponse:
        """
        Interpret a litellm response.

        Only the first tool call of the first choice is honored.

        Raises:
            ModelError: If the response has no choices or no message
            ToolError: If the requested tool is not in ``tools``
        """
        choices = getattr(response, "choices", None)
        if not choices:
            raise ModelError("No response from model", response=response)

        message = getattr(choices[0], "message", None)
        if message is None:
            raise ModelError("No response from model", response=response)

        tool_calls = getattr(message, "tool_calls", None)
        if tool_calls:
            tool_call = ToolCall.from_openai(_tool_call_to_dict(tool_calls[0]))
            if len(tool_calls) > 1:
                logger.debug(
                    f"Model requested {len(tool_calls)} tool calls; using the first "
                    f"({tool_call.name})"
                )
            if not any(t.name == tool_call.name for t in tools):
                raise ToolError(f"Tool not found: {tool_call.name}", tool_name=tool_call.name)
            return tool_call

        return Answer(content=getattr(message, "content", None) or "")

    async def generate(self, context: RunContext, tools: Sequence[Tool]) -> ModelResponse:
        kwargs = self.build_request(context, tools)
        response = await self._complete(kwargs)
        return self.parse_response(response, tools)

    def __repr__(self) -> str:
        return f"LiteLLMModel(model={self.model!r})"
