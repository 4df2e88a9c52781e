"""Model capabilities."""

from .base import Model
from .litellm_model import LiteLLMModel

__all__ = ["Model", "LiteLLMModel"]
