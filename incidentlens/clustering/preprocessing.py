"""Text preprocessing for clustering: normalization, tokens, TF-IDF vectors."""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import numpy as np
import structlog
from sklearn.feature_extraction.text import TfidfVectorizer

from incidentlens.grouping.engine import parse_timestamp

logger = structlog.get_logger()

STOPWORDS = frozenset({
    # english
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
    "to", "was", "will", "with", "this", "but", "they", "have", "had",
    "what", "when", "where", "who", "which", "why", "how",
    # spanish
    "los", "las", "del", "que", "por", "para", "con", "una", "uno", "unos",
    "unas", "como", "pero", "mas", "más", "este", "esta", "esto", "estos",
    "estas", "son", "hay", "muy", "sin", "sobre", "ya", "todo", "todos",
})

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str | None) -> str:
    """Lowercase, punctuation to spaces, collapse whitespace."""
    text = _NON_WORD.sub(" ", (text or "").lower())
    return _WHITESPACE.sub(" ", text).strip()


def tokenize(text: str | None) -> list[str]:
    return [t for t in normalize_text(text).split(" ") if len(t) > 2 and t not in STOPWORDS]


@dataclass(eq=False)
class ClusterIncident:
    id: str
    time: datetime
    service: str
    source: str
    subservice: str
    priority: int
    category: str
    sentiment: str
    summary: str
    keywords: list[str]
    vector: np.ndarray | None = None


def assign_tfidf_vectors(incidents: list[ClusterIncident]) -> None:
    """Fit TF-IDF over the incident summaries and store each L2-normalized row on its incident."""
    if not incidents:
        return
    vectorizer = TfidfVectorizer(tokenizer=tokenize, lowercase=False, token_pattern=None, norm="l2")
    try:
        matrix = vectorizer.fit_transform([i.summary for i in incidents]).toarray()
    except ValueError:
        # every summary was empty or made only of stopwords
        logger.info("clustering_empty_vocabulary", incident_count=len(incidents))
        matrix = np.zeros((len(incidents), 1))
    for incident, row in zip(incidents, matrix):
        incident.vector = row


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _keywords(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(k) for k in value if k is not None and str(k).strip()]


def preprocess_incident(item: Any) -> ClusterIncident | None:
    """Normalize an incident row or mapping; returns ``None`` when it has no usable time."""
    if isinstance(item, Mapping):
        get = item.get
    else:
        def get(name, _obj=item):
            return getattr(_obj, name, None)

    time = parse_timestamp(get("time"))
    if time is None:
        return None

    priority = get("priority")
    summary = _text(get("summary")) or _text(get("original"))
    return ClusterIncident(
        id=str(get("id")),
        time=time,
        service=_text(get("service")),
        source=_text(get("source")),
        subservice=_text(get("subservice")),
        priority=priority if isinstance(priority, int) and not isinstance(priority, bool) else 0,
        category=_text(get("category")),
        sentiment=_text(get("sentiment_analysis") or get("sentimentAnalysis")),
        summary=summary,
        keywords=_keywords(get("keywords")),
    )
