"""Thin async wrapper around the Anthropic SDK.

Every call carries the configured timeout and goes through
``call_with_retry``; SDK errors are mapped onto the service error taxonomy.
"""

import json
import re
from typing import Any

import anthropic
import structlog
from anthropic import AsyncAnthropic

from incidentlens.config import settings
from incidentlens.errors import (
    ExternalServiceError,
    FatalServiceError,
    RetryableServiceError,
    is_retryable_status,
)
from incidentlens.retry import call_with_retry

logger = structlog.get_logger()

_client: AsyncAnthropic | None = None


def _get_client() -> AsyncAnthropic:
    global _client
    if _client is None:
        _client = AsyncAnthropic(
            api_key=settings.ANTHROPIC_API_KEY,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            max_retries=0,
        )
    return _client


_MD_BOLD = re.compile(r"\*\*(.+?)\*\*")
_MD_ITALIC = re.compile(r"\*(.+?)\*")
_MD_HEADING = re.compile(r"^#{1,6}\s+", re.MULTILINE)
_MD_BULLET = re.compile(r"^[ \t]*[-*]\s+", re.MULTILINE)
_CODE_BLOCK = re.compile(r"```(?:json)?\s*\n?(.*?)```", re.DOTALL)
_BARE_ARRAY = re.compile(r"\[.*\]", re.DOTALL)
_BARE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def strip_markdown(text: str) -> str:
    """Remove common markdown formatting from LLM output."""
    text = _MD_BOLD.sub(r"\1", text)
    text = _MD_ITALIC.sub(r"\1", text)
    text = _MD_HEADING.sub("", text)
    text = _MD_BULLET.sub("", text)
    return text.strip()


def parse_json(raw: str) -> Any | None:
    """Extract JSON from model output: direct parse, fenced block, then bare array/object."""
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        pass

    code_match = _CODE_BLOCK.search(raw or "")
    if code_match:
        try:
            return json.loads(code_match.group(1).strip())
        except json.JSONDecodeError:
            pass

    for pattern in (_BARE_ARRAY, _BARE_OBJECT):
        match = pattern.search(raw or "")
        if match:
            try:
                return json.loads(match.group())
            except json.JSONDecodeError:
                continue

    logger.warning("llm_json_parse_failed", raw_output=(raw or "")[:500])
    return None


def _map_sdk_error(exc: anthropic.APIError) -> ExternalServiceError:
    if isinstance(exc, anthropic.APIConnectionError):
        return RetryableServiceError("llm", f"{type(exc).__name__}: {exc}")
    if isinstance(exc, anthropic.APIStatusError):
        if is_retryable_status(exc.status_code):
            return RetryableServiceError("llm", str(exc), status_code=exc.status_code)
        return FatalServiceError("llm", str(exc), status_code=exc.status_code)
    return FatalServiceError("llm", f"{type(exc).__name__}: {exc}")


async def complete(
    system_prompt: str | None,
    user_prompt: str,
    model: str | None = None,
    temperature: float = 0.2,
    max_tokens: int = 1024,
    plain_text: bool = True,
) -> str:
    """Single LLM call; returns the text of the first content block.

    With ``plain_text`` the answer is stripped of markdown; pass ``False``
    when the caller expects JSON.
    """
    if not settings.ANTHROPIC_API_KEY:
        raise FatalServiceError("llm", "ANTHROPIC_API_KEY is not configured")

    model = model or settings.ANTHROPIC_MODEL
    kwargs: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": [{"role": "user", "content": user_prompt}],
    }
    if system_prompt:
        kwargs["system"] = system_prompt

    async def _call():
        try:
            return await _get_client().messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise _map_sdk_error(exc) from exc

    response = await call_with_retry(_call, name="llm_complete")
    texts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
    if not texts:
        raise FatalServiceError("llm", "response contained no text content")

    logger.info(
        "llm_completed",
        model=model,
        input_tokens=getattr(response.usage, "input_tokens", None),
        output_tokens=getattr(response.usage, "output_tokens", None),
    )
    text = texts[0]
    return strip_markdown(text) if plain_text else text.strip()
