"""Batch classification of cleaned post texts through the LLM.

One call per batch.  The answer must be a JSON array with exactly one entry
per input text, in input order; anything else is rejected as a whole.
"""

import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from incidentlens.errors import ClassifierContractError, FatalServiceError
from incidentlens.llm import client as llm

logger = structlog.get_logger()

VALID_SENTIMENTS = {"positive", "negative", "neutral"}

# Column widths of the incident fields these values are stored in.
FIELD_MAX_LENGTHS = {"service": 100, "subservice": 255, "category": 100}

_SYSTEM_PROMPT = (
    "You are an analyst for a public transportation operator. You receive a "
    "JSON array of short social-media posts (mostly Spanish, Mexico City). "
    "For EACH post produce one JSON object with the keys:\n"
    '- "service": transport service mentioned (e.g. "metro", "metrobus", "bus", '
    '"trolebus", "tren ligero") or null\n'
    '- "subservice": line, route or station mentioned (e.g. "Linea 3") or null\n'
    '- "category": short incident category in kebab-case (e.g. "delay", '
    '"service-interruption", "overcrowding", "accident", "complaint") or null '
    "when the post is not about an incident\n"
    '- "priority": integer 1 (minor) to 5 (critical)\n'
    '- "sentiment_analysis": one of "positive", "negative", "neutral"\n'
    '- "summary": one sentence in English\n'
    '- "keywords": up to 5 lowercase keywords\n\n'
    "Return ONLY a JSON array with exactly as many objects as input posts, in "
    "the same order. Use null for a post you cannot classify. No prose, no "
    "markdown."
)


class Classification(BaseModel):
    service: str | None = None
    subservice: str | None = None
    category: str | None = None
    priority: int | None = Field(None, ge=1, le=5)
    sentiment_analysis: str | None = None
    summary: str | None = None
    keywords: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _clamp_priority(cls, value):
        if value is None or isinstance(value, bool):
            return None
        try:
            number = int(float(value))
        except (TypeError, ValueError):
            return None
        return min(5, max(1, number))

    @field_validator("service", "subservice", "category", mode="before")
    @classmethod
    def _drop_unstorable_labels(cls, value, info):
        if not isinstance(value, str):
            return None
        value = value.strip()
        if not value or len(value) > FIELD_MAX_LENGTHS[info.field_name]:
            return None
        return value

    @field_validator("sentiment_analysis", mode="before")
    @classmethod
    def _normalize_sentiment(cls, value):
        if not isinstance(value, str):
            return None
        value = value.strip().lower()
        return value if value in VALID_SENTIMENTS else None

    @field_validator("keywords", mode="before")
    @classmethod
    def _coerce_keywords(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, list):
            return []
        return [str(k).strip().lower() for k in value if k is not None and str(k).strip()][:10]


CompleteFn = Callable[..., Awaitable[str]]


class TweetClassifier:
    def __init__(self, complete: CompleteFn | None = None, model: str | None = None):
        self._complete = complete
        self.model = model

    async def classify(self, texts: list[str]) -> list[Classification | None]:
        """Classify *texts*; returns one entry per text, ``None`` where the item was unusable.

        Raises ``ClassifierContractError`` on a result count mismatch and
        ``FatalServiceError`` when the answer is not a JSON array.
        """
        if not texts:
            return []

        complete = self._complete or llm.complete
        user_prompt = (
            f"Classify these {len(texts)} posts:\n"
            + json.dumps(texts, ensure_ascii=False)
        )
        raw = await complete(
            _SYSTEM_PROMPT,
            user_prompt,
            model=self.model,
            temperature=0.0,
            max_tokens=min(8192, 256 + 200 * len(texts)),
            plain_text=False,
        )

        parsed = llm.parse_json(raw)
        if isinstance(parsed, dict) and isinstance(parsed.get("results"), list):
            parsed = parsed["results"]
        if not isinstance(parsed, list):
            raise FatalServiceError("classifier", "response is not a JSON array")
        if len(parsed) != len(texts):
            logger.error("classifier_count_mismatch", expected=len(texts), received=len(parsed))
            raise ClassifierContractError(expected=len(texts), received=len(parsed))

        results = [_to_classification(index, item) for index, item in enumerate(parsed)]
        logger.info(
            "tweets_classified",
            count=len(results),
            unclassified=sum(1 for r in results if r is None),
        )
        return results


def _to_classification(index: int, item: Any) -> Classification | None:
    if item is None:
        return None
    if not isinstance(item, dict):
        logger.warning("classifier_item_invalid", index=index, item_type=type(item).__name__)
        return None
    try:
        return Classification.model_validate(item)
    except ValidationError as exc:
        logger.warning("classifier_item_invalid", index=index, error=str(exc))
        return None
