"""
agentloop - Tool-calling agent runtime on top of litellm.

Features:
- Agents that loop between a model and a fixed tool set until an answer
- Tools derived from typed functions, parameter tables or Pydantic models
- One parameter table drives both the JSON Schema and argument decoding
- litellm-backed model with retries and exponential backoff
- Async-first with sync wrappers
- Structured JSONL logging of runs
"""

from .agent import Agent, AgentBuilder, AgentRunResult
from .config import AgentConfig, load_env_files, validate_api_keys
from .core.messages import (
    assistant_message,
    format_messages,
    system_message,
    tool_message,
    user_message,
)
from .models import LiteLLMModel, Model
from .observability import StructuredLogger
from .tools import (
    DerivedTool,
    FunctionTool,
    ParamKind,
    Tool,
    ToolRegistry,
    ToolResult,
    derive_tool,
    tool_fn,
    tool_from_pydantic,
    tools_to_anthropic,
    tools_to_openai,
)
from .types import (
    AgentError,
    Answer,
    ConfigurationError,
    Context,
    ContextError,
    InternalError,
    InvalidInputError,
    Message,
    ModelError,
    ModelResponse,
    RetryConfig,
    Role,
    RunContext,
    SerializationError,
    ToolCall,
    ToolError,
)

__version__ = "0.1.0"

__all__ = [
    # Agents
    "Agent",
    "AgentBuilder",
    "AgentRunResult",
    # Configuration
    "AgentConfig",
    "RetryConfig",
    "load_env_files",
    "validate_api_keys",
    # Models
    "Model",
    "LiteLLMModel",
    "Answer",
    "ToolCall",
    "ModelResponse",
    # Context and messages
    "Context",
    "RunContext",
    "Message",
    "Role",
    "user_message",
    "system_message",
    "assistant_message",
    "tool_message",
    "format_messages",
    # Tools
    "Tool",
    "ToolResult",
    "FunctionTool",
    "DerivedTool",
    "ToolRegistry",
    "ParamKind",
    "derive_tool",
    "tool_fn",
    "tool_from_pydantic",
    "tools_to_openai",
    "tools_to_anthropic",
    # Observability
    "StructuredLogger",
    # Exceptions
    "AgentError",
    "ModelError",
    "ToolError",
    "InvalidInputError",
    "SerializationError",
    "ContextError",
    "ConfigurationError",
    "InternalError",
]
