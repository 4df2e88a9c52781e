"""Structured logging of agent runs."""

import json
import sys
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, TextIO

from ..types import Message, ToolCall


@dataclass
class RunStartEntry:
    """A structured log entry for the start of a run."""

    run_id: str
    timestamp: str
    agent: str
    model: str
    tools: list[str]
    messages: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": "run_start",
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "agent": self.agent,
            "model": self.model,
            "tools": self.tools,
            "messages": self.messages,
        }


@dataclass
class ToolResultEntry:
    """A structured log entry for a completed tool call."""

    run_id: str
    timestamp: str
    tool_name: str
    output: str
    latency_ms: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "type": "tool_result",
            "run_id": self.run_id,
            "timestamp": self.timestamp,
            "tool_name": self.tool_name,
            "output": self.output,
            "latency_ms": self.latency_ms,
        }


class StructuredLogger:
    """
    A structured logger that writes agent run events as JSON lines.

    Can write to a file, stdout, or both.

    Example:
        logger = StructuredLogger(log_file="./logs/runs.jsonl")
        agent = (
            AgentBuilder("helper")
            .model(model)
            .structured_logger(logger)
            .build()
        )
    """

    def __init__(
        self,
        log_file: str | Path | None = None,
        include_messages: bool = True,
        include_content: bool = True,
        max_content_length: int | None = None,
        redact_patterns: list[str] | None = None,
        stdout: bool = False,
    ):
        """
        Initialize the structured logger.

        Args:
            log_file: Path to log file (JSONL format). None disables file logging.
            include_messages: Whether to include the seeded messages in run_start
            include_content: Whether to include tool outputs and answers
            max_content_length: Max length of content to log (None = unlimited)
            redact_patterns: Patterns to redact from logs (e.g., API keys)
            stdout: Whether to also log to stdout
        """
        self._log_file: Path | None = Path(log_file) if log_file else None
        self._include_messages = include_messages
        self._include_content = include_content
        self._max_content_length = max_content_length
        self._redact_patterns = redact_patterns or []
        self._stdout = stdout
        self._file_handle: TextIO | None = None

        if self._log_file:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(self._log_file, "a")

    def _get_timestamp(self) -> str:
        """Get current timestamp in ISO format."""
        return datetime.now(UTC).isoformat()

    def _redact(self, text: str) -> str:
        """Redact sensitive patterns from text."""
        for pattern in self._redact_patterns:
            text = text.replace(pattern, "[REDACTED]")
        return text

    def _truncate(self, text: str) -> str:
        """Truncate text if max length is set."""
        if self._max_content_length and len(text) > self._max_content_length:
            return text[: self._max_content_length] + "... [truncated]"
        return text

    def _clean(self, text: str) -> str:
        return self._truncate(self._redact(text))

    def _write_entry(self, entry: dict[str, Any]) -> None:
        """Write a log entry."""
        json_str = json.dumps(entry, default=str)

        if self._file_handle:
            self._file_handle.write(json_str + "\n")
            self._file_handle.flush()

        if self._stdout:
            print(json_str, file=sys.stdout)

    def log_run_start(
        self,
        run_id: str,
        agent: str,
        model: str,
        tools: list[str],
        messages: list[Message],
    ) -> None:
        """Log the start of a run with its seeded conversation."""
        logged_messages: list[dict[str, Any]] = []
        if self._include_messages:
            for msg in messages:
                msg_dict = msg.to_dict()
                msg_dict["content"] = self._clean(msg.content)
                logged_messages.append(msg_dict)

        entry = RunStartEntry(
            run_id=run_id,
            timestamp=self._get_timestamp(),
            agent=agent,
            model=model,
            tools=tools,
            messages=logged_messages,
        )
        self._write_entry(entry.to_dict())

    def log_tool_call(self, run_id: str, tool_call: ToolCall) -> None:
        """Log a tool call requested by the model."""
        self._write_entry(
            {
                "type": "tool_call",
                "run_id": run_id,
                "timestamp": self._get_timestamp(),
                "tool_name": tool_call.name,
                "tool_call_id": tool_call.id,
                "arguments": self._clean(tool_call.arguments) if self._include_content else "",
            }
        )

    def log_tool_result(
        self,
        run_id: str,
        tool_name: str,
        output: str,
        latency_ms: float,
    ) -> None:
        """Log the output of a completed tool call."""
        entry = ToolResultEntry(
            run_id=run_id,
            timestamp=self._get_timestamp(),
            tool_name=tool_name,
            output=self._clean(output) if self._include_content else "",
            latency_ms=latency_ms,
        )
        self._write_entry(entry.to_dict())

    def log_answer(
        self,
        run_id: str,
        content: str,
        iterations: int,
        latency_ms: float,
    ) -> None:
        """Log the final answer of a run."""
        self._write_entry(
            {
                "type": "answer",
                "run_id": run_id,
                "timestamp": self._get_timestamp(),
                "content": self._clean(content) if self._include_content else "",
                "iterations": iterations,
                "latency_ms": latency_ms,
            }
        )

    def log_error(
        self,
        run_id: str,
        error: Exception,
        latency_ms: float,
    ) -> None:
        """
        Log a failed run.

        Args:
            run_id: The run that failed
            error: The exception that aborted the run
            latency_ms: Time from run start to failure in milliseconds
        """
        self._write_entry(
            {
                "type": "error",
                "run_id": run_id,
                "timestamp": self._get_timestamp(),
                "error": str(error),
                "error_type": type(error).__name__,
                "stage": getattr(error, "stage", None),
                "latency_ms": latency_ms,
            }
        )

    def close(self) -> None:
        """Close the log file."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None
