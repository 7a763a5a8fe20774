"""Chat-completion client and its settings."""

from .config import LLMSettings
from .openai_client import (
    ChatCompletionGenerator,
    CompletionText,
    GenerationRequestError,
    MalformedCompletion,
    parse_completion,
)

__all__ = [
    "ChatCompletionGenerator",
    "CompletionText",
    "GenerationRequestError",
    "LLMSettings",
    "MalformedCompletion",
    "parse_completion",
]
