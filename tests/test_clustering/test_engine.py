from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from incidentlens.clustering.engine import cluster_incidents
from incidentlens.clustering.patterns import generate_description, generate_title, round_half_up, weighted_priority
from incidentlens.clustering.preprocessing import preprocess_incident, tokenize
from incidentlens.clustering.schemas import ClusteringOptions
from incidentlens.clustering.similarity import cosine_similarity, jaccard_similarity, temporal_proximity

BASE = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


def make_incident(index: int, hours: float = 0, **overrides) -> dict:
    incident = {
        "id": f"inc-{index}",
        "time": (BASE + timedelta(hours=hours)).isoformat(),
        "service": "metro",
        "source": "twitter",
        "subservice": "Linea 3",
        "priority": 4,
        "category": "delay",
        "sentiment_analysis": "negative",
        "summary": "Line 3 trains stopped between stations",
        "keywords": ["stopped", "linea 3"],
    }
    incident.update(overrides)
    return incident


def bus_incident(index: int, hours: float = 0) -> dict:
    return make_incident(
        index,
        hours,
        service="bus",
        category="accident",
        priority=2,
        sentiment_analysis="neutral",
        summary="Minor collision reported on route",
        keywords=["collision"],
    )


def test_similar_incidents_form_one_pattern():
    incidents = [make_incident(1, 0), make_incident(2, 1), make_incident(3, 2), bus_incident(4, 1.5)]

    patterns = cluster_incidents(incidents)

    assert [p.frequency for p in patterns] == [3, 1]
    metro = patterns[0]
    assert metro.incident_ids == ["inc-1", "inc-2", "inc-3"]
    assert metro.priority == 4
    assert metro.title.startswith("Critical - Metro Delay")
    assert metro.filters["services"] == ["metro"]
    assert metro.time_range_start == BASE
    assert metro.time_range_end == BASE + timedelta(hours=2)


def test_incidents_outside_time_window_split():
    incidents = [make_incident(1, 0), make_incident(2, 48)]
    patterns = cluster_incidents(incidents, ClusteringOptions(time_window_hours=24))
    assert len(patterns) == 2


def test_min_cluster_size_drops_small_clusters():
    incidents = [make_incident(1, 0), make_incident(2, 1), bus_incident(3, 1)]
    patterns = cluster_incidents(incidents, ClusteringOptions(min_cluster_size=2))
    assert len(patterns) == 1
    assert patterns[0].frequency == 2


def test_undated_incidents_are_skipped():
    patterns = cluster_incidents([make_incident(1, 0), make_incident(2, time=None)])
    assert sum(p.frequency for p in patterns) == 1
    assert cluster_incidents([make_incident(1, time="bad")]) == []


def test_tokenize_drops_stopwords_and_short_tokens():
    assert tokenize("The trains on Línea 3 están detenidos, por favor!") == [
        "trains", "línea", "están", "detenidos", "favor",
    ]


def test_similarity_primitives():
    assert jaccard_similarity(["a", "B"], ["b", "c"]) == pytest.approx(1 / 3)
    assert jaccard_similarity([], []) == 0.0
    assert cosine_similarity(np.array([1.0, 0.0]), np.array([2.0, 0.0])) == pytest.approx(1.0)
    assert cosine_similarity(np.array([1.0, 0.0]), np.zeros(2)) == 0.0
    assert cosine_similarity(None, np.array([1.0])) == 0.0

    a = preprocess_incident(make_incident(1, 0))
    b = preprocess_incident(make_incident(2, 30))
    assert temporal_proximity(a, b, window_hours=24) == 0.0
    assert temporal_proximity(a, a, window_hours=24) == 1.0


def test_weighted_priority_favours_recent_incidents():
    older = preprocess_incident(make_incident(1, 0, priority=1))
    newer = preprocess_incident(make_incident(2, 1, priority=5))
    assert weighted_priority([older, newer]) >= 3


@pytest.mark.parametrize("value,expected", [(0.5, 1), (2.5, 3), (3.5, 4), (2.49, 2), (12.5, 13), (4.0, 4)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_weighted_priority_of_single_incident_is_its_priority():
    assert weighted_priority([preprocess_incident(make_incident(1, 0, priority=3))]) == 3


def test_negative_rate_rounds_half_up():
    incidents = [preprocess_incident(make_incident(0, 0))] + [
        preprocess_incident(make_incident(i, i, sentiment_analysis="neutral")) for i in range(1, 8)
    ]
    assert "13% of reports contain negative feedback" in generate_description(incidents)


def test_generate_title_cross_service():
    incidents = [preprocess_incident(make_incident(1, 0, priority=2)), preprocess_incident(bus_incident(2, 1))]
    title = generate_title(incidents, ["collision", "issue"])
    assert "Cross-Service" in title
    assert title.endswith(": Collision")
