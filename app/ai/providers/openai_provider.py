from __future__ import annotations

import logging
import time
from typing import Any, Optional, Sequence

import httpx
import openai
from openai import OpenAI

from app.ai.types import ChatMessage
from app.core.errors import RemoteServiceError

logger = logging.getLogger(__name__)


def _upstream_message(exc: openai.APIStatusError) -> str:
    body = exc.body
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return f"HTTP {exc.status_code}"


class OpenAIProvider:
    """Single-shot chat completion against an OpenAI-compatible endpoint.

    The SDK's own retry loop is disabled: one request per call, and any
    upstream failure is raised as :class:`RemoteServiceError`.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        temperature: float = 0.3,
        max_output_tokens: int = 4000,
        http_client: Optional[httpx.Client] = None,
    ):
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens

        client_kwargs: dict[str, Any] = {
            "api_key": api_key,
            "base_url": base_url or None,
            "max_retries": 0,
        }
        if timeout_s is not None:
            client_kwargs["timeout"] = timeout_s
        if http_client is not None:
            client_kwargs["http_client"] = http_client
        self._client = OpenAI(**client_kwargs)
        # An injected transport belongs to the caller.
        self._owns_client = http_client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "OpenAIProvider":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def complete(self, messages: Sequence[ChatMessage]) -> str:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        started = time.perf_counter()
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=payload,
                temperature=self._temperature,
                max_tokens=self._max_output_tokens,
            )
        except openai.APIStatusError as exc:
            message = _upstream_message(exc)
            logger.warning("openai_request_failed model=%s status=%s", self._model, exc.status_code)
            raise RemoteServiceError(
                f"OpenAI API error: {message}",
                upstream_status=exc.status_code,
                upstream_message=message,
            ) from exc
        except openai.APIConnectionError as exc:
            logger.warning("openai_request_unreachable model=%s: %s", self._model, exc)
            raise RemoteServiceError(
                f"OpenAI API error: {exc}",
                upstream_status=None,
                upstream_message=str(exc),
            ) from exc

        latency_ms = int((time.perf_counter() - started) * 1000)
        content = response.choices[0].message.content if response.choices else ""
        logger.info(
            "openai_request_completed model=%s latency_ms=%s chars=%s",
            self._model,
            latency_ms,
            len(content or ""),
        )
        return content or ""
