"""Turn a cluster of incidents into a human-readable pattern record."""

import math
from collections import Counter
from datetime import datetime

from incidentlens.clustering.preprocessing import ClusterIncident
from incidentlens.clustering.schemas import GeneratedPattern

GENERIC_KEYWORDS = {"issue", "problem", "service", "help", "please"}
NEGATIVE_MARKERS = ("negative", "angry", "frustrated")
MAX_FILTER_KEYWORDS = 20


def round_half_up(value: float) -> int:
    """Round .5 upwards (2.5 -> 3); ``round`` would give 2."""
    return math.floor(value + 0.5)


def _clean_keyword(keyword: str) -> str:
    return str(keyword).translate(str.maketrans("", "", "[]\"'")).strip()


def count_keywords(incidents: list[ClusterIncident]) -> Counter[str]:
    freq: Counter[str] = Counter()
    for incident in incidents:
        for keyword in incident.keywords:
            cleaned = _clean_keyword(keyword)
            if cleaned:
                freq[cleaned.lower()] += 1
    return freq


def _most_common(values: list[str]) -> str:
    counts = Counter(values)
    return counts.most_common(1)[0][0] if counts else ""


def _format_category(category: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in category.split("-"))


def _capitalize(text: str) -> str:
    return text[:1].upper() + text[1:]


def time_range(incidents: list[ClusterIncident]) -> tuple[datetime, datetime]:
    times = [i.time for i in incidents]
    return min(times), max(times)


def generate_title(incidents: list[ClusterIncident], top_keywords: list[str], max_keywords: int = 5) -> str:
    services = {i.service for i in incidents}
    top_service = _most_common([i.service for i in incidents]) or "Unknown"
    top_category = _most_common([i.category for i in incidents]) or "Unknown"
    avg_priority = sum(i.priority for i in incidents) / len(incidents)

    if avg_priority >= 4:
        title = "Critical - "
    elif avg_priority >= 3:
        title = "High Priority - "
    elif len(incidents) >= 15:
        title = "Recurring - "
    else:
        title = ""

    if len(services) > 1:
        title += f"Cross-Service {_format_category(top_category)} Issues"
    else:
        title += f"{_capitalize(top_service)} {_format_category(top_category)}"

    specific = [
        kw for kw in (_clean_keyword(k) for k in top_keywords[: min(3, max_keywords)])
        if kw and kw.lower() not in GENERIC_KEYWORDS
    ]
    if len(specific) == 1:
        title += f": {_capitalize(specific[0])}"
    elif len(specific) == 2:
        title += f": {_capitalize(specific[0])} and {specific[1]}"
    elif specific:
        title += f": {_capitalize(' & '.join(specific[:2]))}"
    return title


def generate_description(incidents: list[ClusterIncident]) -> str:
    count = len(incidents)
    start, end = time_range(incidents)
    start_date, end_date = start.date().isoformat(), end.date().isoformat()
    duration_days = math.ceil((end - start).total_seconds() / 86400)

    services = list(dict.fromkeys(i.service for i in incidents))
    categories = list(dict.fromkeys(i.category for i in incidents))
    sources = list(dict.fromkeys(i.source for i in incidents))
    priorities = [i.priority for i in incidents]
    avg_priority = sum(priorities) / count
    critical = sum(1 for p in priorities if p >= 4)
    negative = sum(1 for i in incidents if any(m in i.sentiment.lower() for m in NEGATIVE_MARKERS))
    negative_rate = round_half_up(negative / count * 100)

    parts = [f"This pattern represents {count} incident{'s' if count > 1 else ''} "]
    if duration_days == 0:
        parts.append(f"occurring on {start_date}")
    elif duration_days == 1:
        parts.append(f"occurring over one day from {start_date} to {end_date}")
    else:
        parts.append(f"occurring over {duration_days} days from {start_date} to {end_date}")

    if len(services) == 1:
        parts.append(f" in the {services[0]} service")
    else:
        others = " and others" if len(services) > 3 else ""
        parts.append(f" across {len(services)} services including {', '.join(services[:3])}{others}")

    if len(categories) == 1:
        parts.append(f", all categorized as {categories[0]}. ")
    else:
        parts.append(f", spanning {len(categories)} different categories. ")

    parts.append(f"The average priority level is {avg_priority:.1f} out of 5")
    if critical:
        parts.append(
            f", with {critical} critical incident{'s' if critical > 1 else ''} requiring immediate attention"
        )
    parts.append(". ")

    if negative:
        parts.append(
            f"User sentiment analysis indicates that {negative_rate}% of reports contain negative "
            "feedback, suggesting significant user frustration. "
        )
    if len(sources) > 1:
        parts.append(
            f"These issues have been reported across {len(sources)} different channels "
            f"({', '.join(sources)}), indicating widespread visibility and impact. "
        )

    recommendations: list[str] = []
    if critical >= count * 0.5:
        recommendations.append("immediate attention is required due to the high proportion of critical incidents")
    if duration_days <= 1 and count >= 5:
        recommendations.append(
            "this appears to be an acute issue with rapid incident clustering that may suggest "
            "a new problem or recent deployment issue"
        )
    elif duration_days >= 7:
        recommendations.append(
            "this is a chronic issue with a long-term pattern that likely indicates a systemic "
            "problem requiring architectural review"
        )
    if len(services) > 1:
        recommendations.append(
            "cross-service investigation is recommended to check for shared dependencies or "
            "infrastructure issues"
        )
    if negative_rate >= 50:
        recommendations.append(
            "proactive customer communication should be considered given the high level of negative sentiment"
        )
    if recommendations:
        parts.append(f"Based on the pattern characteristics, {', and '.join(recommendations)}.")

    return "".join(parts).strip()


def build_filters(incidents: list[ClusterIncident]) -> dict:
    keywords = list(dict.fromkeys(k.lower() for i in incidents for k in i.keywords))
    priorities = [i.priority for i in incidents]
    start, end = time_range(incidents)
    return {
        "services": list(dict.fromkeys(i.service for i in incidents)),
        "categories": list(dict.fromkeys(i.category for i in incidents)),
        "sources": list(dict.fromkeys(i.source for i in incidents)),
        "keywords": keywords[:MAX_FILTER_KEYWORDS],
        "priority_range": {"min": min(priorities), "max": max(priorities)},
        "sentiments": list(dict.fromkeys(i.sentiment for i in incidents)),
        "time_range": {"start": start.isoformat(), "end": end.isoformat()},
    }


def weighted_priority(incidents: list[ClusterIncident]) -> int:
    """Recency-weighted mean priority: the newest incident weighs most."""
    if not incidents:
        return 0
    newest_first = sorted(incidents, key=lambda i: i.time, reverse=True)
    n = len(newest_first)
    weights = [math.exp(-index / n) for index in range(n)]
    total = sum(w * i.priority for w, i in zip(weights, newest_first))
    return round_half_up(total / sum(weights))


def generate_pattern(incidents: list[ClusterIncident], max_keywords_in_title: int = 5) -> GeneratedPattern:
    if not incidents:
        raise ValueError("Cannot generate a pattern from an empty cluster")

    top_keywords = [kw for kw, _ in count_keywords(incidents).most_common(max_keywords_in_title)]
    start, end = time_range(incidents)
    return GeneratedPattern(
        title=generate_title(incidents, top_keywords, max_keywords_in_title),
        description=generate_description(incidents),
        filters=build_filters(incidents),
        priority=weighted_priority(incidents),
        frequency=len(incidents),
        time_range_start=start,
        time_range_end=end,
        incident_ids=[i.id for i in incidents],
    )
