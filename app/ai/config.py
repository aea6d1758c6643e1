from __future__ import annotations

from dataclasses import dataclass

from app.core.config import settings


@dataclass(frozen=True)
class AIConfig:
    model: str
    base_url: str | None
    temperature: float
    max_output_tokens: int
    timeout_s: float | None


def load_ai_config() -> AIConfig:
    return AIConfig(
        model=settings.openai_model,
        base_url=settings.openai_base_url,
        temperature=settings.openai_temperature,
        max_output_tokens=settings.openai_max_output_tokens,
        timeout_s=settings.openai_timeout_s,
    )
