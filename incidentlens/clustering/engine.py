"""Incremental similarity clustering of incidents into patterns.

Incidents are visited in time order.  Each one joins the most similar open
cluster whose newest member lies within ``time_window_hours`` before it, if
the average similarity reaches ``similarity_threshold``; otherwise it opens
a new cluster.
"""

from collections.abc import Sequence
from typing import Any

import structlog

from incidentlens.clustering.patterns import generate_pattern
from incidentlens.clustering.preprocessing import ClusterIncident, assign_tfidf_vectors, preprocess_incident
from incidentlens.clustering.schemas import ClusteringOptions, GeneratedPattern
from incidentlens.clustering.similarity import compute_cluster_similarity

logger = structlog.get_logger()


def incremental_clustering(
    incidents: list[ClusterIncident],
    options: ClusteringOptions,
) -> list[list[ClusterIncident]]:
    assign_tfidf_vectors(incidents)

    window_seconds = options.time_window_hours * 3600
    clusters: list[list[ClusterIncident]] = []

    for incident in sorted(incidents, key=lambda i: i.time):
        best: list[ClusterIncident] | None = None
        best_score = -1.0
        for members in clusters:
            gap = (incident.time - max(m.time for m in members)).total_seconds()
            if not 0 <= gap <= window_seconds:
                continue
            score = compute_cluster_similarity(
                incident, members, options.weights, options.time_window_hours,
            )
            if score > best_score:
                best, best_score = members, score

        if best is not None and best_score >= options.similarity_threshold:
            best.append(incident)
        else:
            clusters.append([incident])

    return [c for c in clusters if len(c) >= options.min_cluster_size]


def cluster_incidents(
    incidents: Sequence[Any],
    options: ClusteringOptions | None = None,
) -> list[GeneratedPattern]:
    """Cluster incident rows or mappings into patterns, highest priority first."""
    options = options or ClusteringOptions()

    prepared: list[ClusterIncident] = []
    skipped = 0
    for item in incidents:
        incident = preprocess_incident(item)
        if incident is None:
            skipped += 1
            continue
        prepared.append(incident)

    if skipped:
        logger.warning("clustering_skipped_undated", skipped=skipped)
    if not prepared:
        return []

    clusters = incremental_clustering(prepared, options)
    patterns = [generate_pattern(c, options.max_keywords_in_title) for c in clusters]
    patterns.sort(key=lambda p: (-p.priority, -p.frequency))

    logger.info(
        "incidents_clustered",
        incident_count=len(prepared),
        cluster_count=len(patterns),
        threshold=options.similarity_threshold,
    )
    return patterns
