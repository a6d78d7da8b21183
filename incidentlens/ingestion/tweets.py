"""Normalization of raw search results into ``TweetEntity`` records."""

import re
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from incidentlens.grouping.engine import parse_timestamp

# e.g. "Tue Dec 10 07:00:30 +0000 2024"
TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class TweetEntity:
    text: str
    created_at: str | None
    parsed_date: datetime | None


def parse_tweet_date(value: Any) -> datetime | None:
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), TWITTER_DATE_FORMAT)
        except ValueError:
            pass
    return parse_timestamp(value)


def map_to_entities(tweets: Iterable[Any]) -> list[TweetEntity]:
    """Map raw posts to entities; posts without text are dropped."""
    entities: list[TweetEntity] = []
    for raw in tweets:
        if not isinstance(raw, dict):
            continue
        text = raw.get("text")
        if not isinstance(text, str) or not text.strip():
            continue
        created_at = raw.get("createdAt")
        entities.append(TweetEntity(
            text=text,
            created_at=str(created_at) if created_at is not None else None,
            parsed_date=parse_tweet_date(created_at),
        ))
    return entities


def filter_and_sort(entities: Iterable[TweetEntity]) -> list[TweetEntity]:
    """Drop duplicate (text, created_at) pairs and sort newest first; undated posts go last."""
    seen: set[tuple[str, str | None]] = set()
    unique: list[TweetEntity] = []
    for entity in entities:
        marker = (entity.text, entity.created_at)
        if marker in seen:
            continue
        seen.add(marker)
        unique.append(entity)

    return sorted(
        unique,
        key=lambda e: (e.parsed_date is None, -e.parsed_date.timestamp() if e.parsed_date else 0.0),
    )


def clean_text(text: str) -> str:
    """Keep Unicode letters, numbers and whitespace; collapse whitespace runs; trim.

    Text is NFC-normalized before filtering so decomposed accents (``e`` +
    combining acute) survive as a single letter, and again afterwards since
    dropping a format character can leave a newly composable pair.  Applying
    it twice changes nothing.
    """
    if not text:
        return ""
    text = unicodedata.normalize("NFC", text)
    kept = "".join(
        ch for ch in text
        if ch.isspace() or unicodedata.category(ch)[0] in ("L", "N")
    )
    return unicodedata.normalize("NFC", _WHITESPACE.sub(" ", kept).strip())
