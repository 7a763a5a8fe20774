"""OpenAI chat-completion client used for chunk summaries and lecture notes."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any, Callable

from orah.llm.config import LLMSettings


_RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GenerationRequestError(RuntimeError):
    """Domain error raised for failed or malformed text generation requests."""

    model: str
    message: str

    def __str__(self) -> str:
        return f"{self.message} (model={self.model})"


@dataclass(frozen=True, slots=True)
class CompletionText:
    text: str


@dataclass(frozen=True, slots=True)
class MalformedCompletion:
    reason: str


ParsedCompletion = CompletionText | MalformedCompletion


def _build_default_client(settings: LLMSettings) -> Any:
    try:
        from openai import OpenAI
    except Exception as exc:  # pragma: no cover - environment-dependent
        raise GenerationRequestError(
            model=settings.model,
            message=f"OpenAI SDK unavailable: {exc}",
        ) from exc

    return OpenAI(api_key=settings.api_key, base_url=settings.base_url)


def _is_retryable(exc: Exception) -> bool:
    status_code = getattr(exc, "status_code", None)
    if status_code in _RETRYABLE_STATUS_CODES:
        return True

    if isinstance(exc, (TimeoutError, ConnectionError)):
        return True

    return type(exc).__name__ in {
        "RateLimitError",
        "APITimeoutError",
        "APIConnectionError",
        "InternalServerError",
    }


def parse_completion(response: Any) -> ParsedCompletion:
    """Read ``choices[0].message.content`` from an SDK object or a plain dict."""

    choices = getattr(response, "choices", None)
    if choices is None and isinstance(response, dict):
        choices = response.get("choices")
    if not isinstance(choices, list) or not choices:
        return MalformedCompletion(reason="response missing choices")

    first = choices[0]
    message = getattr(first, "message", None)
    content = getattr(message, "content", None) if message is not None else None
    if content is None and isinstance(first, dict):
        message_dict = first.get("message", {})
        if isinstance(message_dict, dict):
            content = message_dict.get("content")

    if isinstance(content, list):
        content = "".join(str(part.get("text", "")) for part in content if isinstance(part, dict))

    if not isinstance(content, str):
        return MalformedCompletion(reason="response message has no text content")

    text = content.strip()
    if not text:
        return MalformedCompletion(reason="response returned empty text")
    return CompletionText(text=text)


class ChatCompletionGenerator:
    """Chat-completions wrapper with response validation and retry semantics."""

    def __init__(
        self,
        settings: LLMSettings,
        *,
        client: Any | None = None,
        max_retries: int = 2,
        retry_base_seconds: float = 0.25,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        if retry_base_seconds < 0:
            raise ValueError("retry_base_seconds cannot be negative")

        self._settings = settings
        self._client = client or _build_default_client(settings)
        self._max_retries = max_retries
        self._retry_base_seconds = retry_base_seconds
        self._sleep = sleep

    @property
    def model(self) -> str:
        return self._settings.model

    def generate_text(
        self,
        *,
        prompt: str,
        system_prompt: str,
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int = 1000,
        response_format: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> str:
        prompt_text = prompt.strip()
        if not prompt_text:
            raise ValueError("prompt cannot be empty")
        model_name = (model or self._settings.model).strip()
        if not model_name:
            raise ValueError("model cannot be empty")
        if max_tokens < 1:
            raise ValueError("max_tokens must be >= 1")

        response = self._request_generation(
            prompt=prompt_text,
            system_prompt=system_prompt,
            model=model_name,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=response_format,
            timeout=timeout,
        )

        parsed = parse_completion(response)
        if isinstance(parsed, MalformedCompletion):
            raise GenerationRequestError(model=model_name, message=f"Malformed completion: {parsed.reason}")
        return parsed.text

    def _request_generation(
        self,
        *,
        prompt: str,
        system_prompt: str,
        model: str,
        temperature: float,
        max_tokens: int,
        response_format: dict[str, str] | None,
        timeout: float | None,
    ) -> Any:
        attempts = self._max_retries + 1
        last_error: Exception | None = None

        request: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format is not None:
            request["response_format"] = response_format
        if timeout is not None:
            request["timeout"] = timeout

        for attempt in range(attempts):
            try:
                return self._client.chat.completions.create(**request)
            except Exception as exc:
                last_error = exc
                should_retry = attempt < self._max_retries and _is_retryable(exc)
                if not should_retry:
                    break
                delay = self._retry_base_seconds * (2**attempt)
                logger.info("Retrying completion for %s in %.2fs after: %s", model, delay, exc)
                self._sleep(delay)

        detail = str(last_error) if last_error is not None else "unknown OpenAI error"
        raise GenerationRequestError(
            model=model,
            message=f"Generation request failed after {attempts} attempt(s): {detail}",
        ) from last_error
