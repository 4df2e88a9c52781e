"""Model capability contract."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..tools.base import Tool
from ..types import ModelResponse, RunContext


class Model(ABC):
    """
    Abstract base class for language-model capabilities.

    A model inspects the conversation held by a RunContext together with the
    active tool set, submits one request to its backing service and returns
    either a final ``Answer`` or a ``ToolCall`` naming exactly one tool.
    Executing the tool is the agent's job, not the model's.
    """

    @abstractmethod
    async def generate(
        self,
        context: RunContext,
        tools: Sequence[Tool],
    ) -> ModelResponse:
        """
        Produce the next step of the conversation.

        Args:
            context: The run's context (conversation and base data)
            tools: Tools the model may call; empty to forbid tool calls

        Returns:
            ``Answer`` with the final text, or ``ToolCall`` for one tool

        Raises:
            ModelError: If the remote call fails or the response is malformed
            ToolError: If the response names a tool absent from ``tools``
        """
