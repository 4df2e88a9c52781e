"""Configuration management and environment loading."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .types import ConfigurationError, RetryConfig

DEFAULT_MAX_TOOL_CALLS = 10


@dataclass
class AgentConfig:
    """Main configuration for agents and the litellm-backed model."""

    # Model to use when none is given explicitly
    default_model: str | None = None

    # Completion parameters
    temperature: float | None = 0.7
    max_tokens: int | None = None

    # Upper bound on tool calls within a single run
    max_tool_calls: int = DEFAULT_MAX_TOOL_CALLS

    # Retry configuration for transient model failures
    retry: RetryConfig = field(default_factory=RetryConfig)

    # Logging
    log_level: str = "INFO"
    log_runs: bool = False

    # Timeout in seconds for a single model request
    timeout: float = 600.0

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Create config from AGENTLOOP_ prefixed environment variables."""
        config = cls()

        if model := os.getenv("AGENTLOOP_DEFAULT_MODEL"):
            config.default_model = model

        if temp := os.getenv("AGENTLOOP_TEMPERATURE"):
            try:
                config.temperature = float(temp)
            except ValueError:
                raise ConfigurationError(f"Invalid AGENTLOOP_TEMPERATURE: {temp}")

        if max_tokens := os.getenv("AGENTLOOP_MAX_TOKENS"):
            try:
                config.max_tokens = int(max_tokens)
            except ValueError:
                raise ConfigurationError(f"Invalid AGENTLOOP_MAX_TOKENS: {max_tokens}")

        if max_tool_calls := os.getenv("AGENTLOOP_MAX_TOOL_CALLS"):
            try:
                config.max_tool_calls = int(max_tool_calls)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid AGENTLOOP_MAX_TOOL_CALLS: {max_tool_calls}"
                )
            if config.max_tool_calls < 0:
                raise ConfigurationError(
                    f"Invalid AGENTLOOP_MAX_TOOL_CALLS: {max_tool_calls}"
                )

        if log_level := os.getenv("AGENTLOOP_LOG_LEVEL"):
            config.log_level = log_level.upper()

        if os.getenv("AGENTLOOP_LOG_RUNS", "").lower() in ("1", "true", "yes"):
            config.log_runs = True

        if timeout := os.getenv("AGENTLOOP_TIMEOUT"):
            try:
                config.timeout = float(timeout)
            except ValueError:
                raise ConfigurationError(f"Invalid AGENTLOOP_TIMEOUT: {timeout}")

        return config


def load_env_files(
    env_file: str | Path | None = None,
    env_files: list[str | Path] | None = None,
) -> None:
    """
    Load environment variables from .env files.

    Args:
        env_file: Single env file to load
        env_files: Multiple env files to load (later files override earlier)
    """
    files_to_load: list[Path] = []

    if env_files:
        files_to_load.extend(Path(f) for f in env_files)
    elif env_file:
        files_to_load.append(Path(env_file))
    else:
        default_env = Path(".env")
        if default_env.exists():
            files_to_load.append(default_env)

    for file_path in files_to_load:
        if file_path.exists():
            load_dotenv(file_path, override=True)


def validate_api_keys(required_providers: list[str] | None = None) -> dict[str, bool]:
    """
    Check which API keys are configured.

    Args:
        required_providers: If provided, raise error if any are missing

    Returns:
        Dict mapping provider names to whether their key is set
    """
    key_mapping = {
        "openai": "OPENAI_API_KEY",
        "anthropic": "ANTHROPIC_API_KEY",
        "google": "GOOGLE_API_KEY",
        "mistral": "MISTRAL_API_KEY",
        "azure": "AZURE_API_KEY",
        "bedrock": "AWS_ACCESS_KEY_ID",
    }

    results = {provider: bool(os.getenv(env_var)) for provider, env_var in key_mapping.items()}

    if required_providers:
        missing = [p for p in required_providers if not results.get(p)]
        if missing:
            raise ConfigurationError(
                f"Missing API keys for providers: {', '.join(missing)}. "
                f"Set the corresponding environment variables."
            )

    return results
