from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

import httpx
from pydantic import ValidationError as SchemaValidationError

from app.ai.config import load_ai_config
from app.ai.prompts import build_structuring_prompt
from app.ai.providers.openai_provider import OpenAIProvider
from app.ai.types import ChatMessage, CompletionClient
from app.core.errors import ResponseFormatError
from app.schemas.resume import ResumeRecord

logger = logging.getLogger(__name__)

JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def parse_structured_reply(content: str) -> dict[str, Any]:
    """Decode the model reply, falling back to the outermost ``{...}`` span.

    Models sometimes wrap the object in prose or markdown fences; the span
    runs from the first ``{`` to the last ``}``.
    """
    if not content or not content.strip():
        raise ResponseFormatError("The language model returned an empty response.")

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        match = JSON_OBJECT_RE.search(content)
        if not match:
            raise ResponseFormatError("Failed to parse the language model response as JSON.") from None
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise ResponseFormatError("Failed to parse the language model response as JSON.") from exc

    if not isinstance(parsed, dict):
        raise ResponseFormatError("The language model response is not a JSON object.")
    return parsed


def structure_with_client(client: CompletionClient, raw_text: str) -> ResumeRecord:
    prompt = build_structuring_prompt(raw_text)
    content = client.complete([ChatMessage(role="user", content=prompt)])
    payload = parse_structured_reply(content)
    try:
        record = ResumeRecord.model_validate(payload)
    except SchemaValidationError as exc:
        logger.warning("resume_record_invalid errors=%s", exc.error_count())
        raise ResponseFormatError("The language model response does not match the resume schema.") from exc
    logger.info(
        "resume_structured jobs=%s education=%s",
        len(record.experience or []),
        len(record.education or []),
    )
    return record


def structure_resume(
    api_key: str,
    raw_text: str,
    *,
    http_client: Optional[httpx.Client] = None,
) -> ResumeRecord:
    cfg = load_ai_config()
    with OpenAIProvider(
        api_key=api_key,
        model=cfg.model,
        base_url=cfg.base_url,
        timeout_s=cfg.timeout_s,
        temperature=cfg.temperature,
        max_output_tokens=cfg.max_output_tokens,
        http_client=http_client,
    ) as provider:
        return structure_with_client(provider, raw_text)
