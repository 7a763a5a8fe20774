"""Runtime configuration for the chat-completion client."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping


DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"


@dataclass(frozen=True, slots=True)
class LLMSettings:
    """Validated OpenAI settings used by summarization and notes generation."""

    api_key: str
    model: str = DEFAULT_CHAT_MODEL
    base_url: str = DEFAULT_OPENAI_BASE_URL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "LLMSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        api_key = source.get("OPENAI_API_KEY", "").strip()
        model = source.get("ORAH_CHAT_MODEL", DEFAULT_CHAT_MODEL).strip()
        base_url = source.get("OPENAI_BASE_URL", DEFAULT_OPENAI_BASE_URL).strip()

        if not api_key:
            raise ValueError("Missing required environment variable: OPENAI_API_KEY")
        if not model:
            raise ValueError("ORAH_CHAT_MODEL cannot be empty")
        if not base_url:
            raise ValueError("OPENAI_BASE_URL cannot be empty")
        if not (base_url.startswith("http://") or base_url.startswith("https://")):
            raise ValueError("OPENAI_BASE_URL must start with http:// or https://")

        return cls(api_key=api_key, model=model, base_url=base_url.rstrip("/"))
