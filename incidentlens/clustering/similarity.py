import math

import numpy as np

from incidentlens.clustering.preprocessing import ClusterIncident
from incidentlens.clustering.schemas import SimilarityWeights


def jaccard_similarity(keywords_a: list[str], keywords_b: list[str]) -> float:
    set_a = {k.lower() for k in keywords_a}
    set_b = {k.lower() for k in keywords_b}
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def exact_match(value_a: str, value_b: str) -> float:
    return 1.0 if value_a.lower() == value_b.lower() else 0.0


def temporal_proximity(incident_a: ClusterIncident, incident_b: ClusterIncident, window_hours: float = 24) -> float:
    """Exponential decay inside the window, zero outside it."""
    diff_hours = abs((incident_a.time - incident_b.time).total_seconds()) / 3600
    if diff_hours > window_hours:
        return 0.0
    return math.exp(-diff_hours / window_hours)


def cosine_similarity(vector_a: np.ndarray | None, vector_b: np.ndarray | None) -> float:
    if vector_a is None or vector_b is None:
        return 0.0
    magnitude = float(np.linalg.norm(vector_a) * np.linalg.norm(vector_b))
    if magnitude == 0:
        return 0.0
    return float(np.dot(vector_a, vector_b)) / magnitude


def priority_similarity(priority_a: int, priority_b: int, max_priority: int = 10) -> float:
    return 1 - abs(priority_a - priority_b) / max_priority


def compute_similarity(
    incident_a: ClusterIncident,
    incident_b: ClusterIncident,
    weights: SimilarityWeights,
    time_window_hours: float,
) -> float:
    """Weighted sum of the per-feature similarities, roughly in [0, 1]."""
    category_service = (
        exact_match(incident_a.category, incident_b.category)
        + exact_match(incident_a.service, incident_b.service)
    ) / 2

    return (
        weights.keyword * jaccard_similarity(incident_a.keywords, incident_b.keywords)
        + weights.category * category_service
        + weights.temporal * temporal_proximity(incident_a, incident_b, time_window_hours)
        + weights.semantic * cosine_similarity(incident_a.vector, incident_b.vector)
        + weights.priority * priority_similarity(incident_a.priority, incident_b.priority)
        + weights.sentiment * exact_match(incident_a.sentiment, incident_b.sentiment)
    )


def compute_cluster_similarity(
    incident: ClusterIncident,
    members: list[ClusterIncident],
    weights: SimilarityWeights,
    time_window_hours: float,
) -> float:
    """Average similarity between *incident* and every cluster member."""
    scores = [compute_similarity(incident, m, weights, time_window_hours) for m in members]
    return sum(scores) / len(scores)
