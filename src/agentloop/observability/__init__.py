"""Observability for agentloop runs."""

from .logging import RunStartEntry, StructuredLogger, ToolResultEntry

__all__ = [
    "StructuredLogger",
    "RunStartEntry",
    "ToolResultEntry",
]
