from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


class ExtractedText(BaseModel):
    source_type: str
    text: str
    details: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    @field_validator("source_type")
    @classmethod
    def _validate_source_type(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"pdf", "word", "text"}:
            raise ValueError("source_type must be one of: pdf, word, text")
        return normalized
