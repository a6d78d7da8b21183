import random
from datetime import datetime, timezone

import pytest

from incidentlens.grouping.engine import (
    UNKNOWN,
    group_incidents,
    normalize_key_value,
    parse_timestamp,
    to_groupable,
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


SCENARIO = [
    {"category": "delay", "transportationMean": "bus", "time": "2024-01-01T10:00:00Z"},
    {"category": "delay", "transportationMean": "bus", "time": "2024-01-02T08:00:00Z"},
    {"category": "accident", "transportationMean": "metro", "time": "2024-01-01T09:00:00Z"},
]


def test_reference_scenario():
    reports = group_incidents(SCENARIO)

    assert len(reports) == 2
    first, second = reports
    assert (first.type, first.transportation_mean, first.frequency) == ("delay", "bus", 2)
    assert first.time_range.start == utc(2024, 1, 1, 10)
    assert first.time_range.end == utc(2024, 1, 2, 8)
    assert (second.type, second.transportation_mean, second.frequency) == ("accident", "metro", 1)
    assert second.time_range.start == second.time_range.end == utc(2024, 1, 1, 9)


def test_reference_scenario_serializes_with_camel_case_and_z_suffix():
    payload = group_incidents(SCENARIO)[0].model_dump(mode="json", by_alias=True)
    assert payload["transportationMean"] == "bus"
    assert payload["timeRange"] == {"start": "2024-01-01T10:00:00Z", "end": "2024-01-02T08:00:00Z"}


def test_empty_input():
    assert group_incidents([]) == []


@pytest.mark.parametrize("bad_input", [None, "delay", {"category": "delay"}, 42])
def test_non_sequence_input_raises(bad_input):
    with pytest.raises(TypeError):
        group_incidents(bad_input)


def test_frequency_sum_equals_input_length():
    incidents = [
        {"category": random.choice(["delay", "accident", None, ""]), "service": random.choice(["bus", "metro"])}
        for _ in range(50)
    ]
    reports = group_incidents(incidents)
    assert sum(r.frequency for r in reports) == 50
    assert all(r.frequency >= 1 for r in reports)


def test_same_input_same_output():
    incidents = [
        {"id": i, "category": c, "service": s, "time": f"2024-01-0{d}T00:00:00Z"}
        for i, (c, s, d) in enumerate([
            ("delay", "bus", 1), ("accident", "metro", 2), ("delay", "bus", 3),
            ("accident", "metro", 4), ("crowding", "metro", 5),
        ])
    ]
    assert group_incidents(incidents) == group_incidents(list(incidents))


def test_ties_keep_first_seen_order():
    incidents = [
        {"category": "b", "service": "metro"},
        {"category": "a", "service": "metro"},
        {"category": "c", "service": "metro"},
        {"category": "c", "service": "metro"},
    ]
    assert [r.type for r in group_incidents(incidents)] == ["c", "b", "a"]


def test_missing_and_blank_values_collapse_to_unknown():
    incidents = [
        {"category": None, "transportationMean": "bus"},
        {"category": "", "transportationMean": "bus"},
        {"category": "   ", "transportationMean": "bus"},
        {"transportationMean": "bus"},
    ]
    reports = group_incidents(incidents)
    assert len(reports) == 1
    assert reports[0].type == UNKNOWN
    assert reports[0].frequency == 4


def test_absent_and_empty_subdivision_share_a_bucket():
    reports = group_incidents([
        {"category": "delay", "transportationMean": "bus"},
        {"category": "delay", "transportationMean": "bus", "subdivision": ""},
    ])
    assert len(reports) == 1
    assert reports[0].frequency == 2
    assert reports[0].subdivision is None


def test_bucket_without_timestamps_uses_null_range():
    reports = group_incidents([{"category": "delay", "time": "not a date"}, {"category": "delay"}])
    assert reports[0].frequency == 2
    assert reports[0].time_range.start is None
    assert reports[0].time_range.end is None


def test_unparseable_timestamps_counted_but_ignored_for_range():
    reports = group_incidents([
        {"category": "delay", "time": "2024-03-01T12:00:00Z"},
        {"category": "delay", "time": "garbage"},
    ])
    assert reports[0].frequency == 2
    assert reports[0].time_range.start == reports[0].time_range.end == utc(2024, 3, 1, 12)


def test_time_range_bounds_every_member():
    times = ["2024-01-05T00:00:00Z", "2024-01-01T00:00:00Z", "2024-01-03T00:00:00Z"]
    report = group_incidents([{"category": "delay", "time": t} for t in times])[0]
    parsed = [parse_timestamp(t) for t in times]
    assert all(report.time_range.start <= t <= report.time_range.end for t in parsed)


def test_subdivision_is_part_of_the_key():
    reports = group_incidents([
        {"category": "delay", "service": "metro", "subservice": "Linea 1"},
        {"category": "delay", "service": "metro", "subservice": "Linea 2"},
    ])
    assert {r.subdivision for r in reports} == {"Linea 1", "Linea 2"}


def test_incident_ids_are_collected():
    reports = group_incidents([
        {"id": "a", "category": "delay"},
        {"id": "b", "category": "delay"},
    ])
    assert reports[0].incident_ids == ["a", "b"]


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2024-01-01T10:00:00Z", utc(2024, 1, 1, 10)),
        ("2024-01-01T10:00:00", utc(2024, 1, 1, 10)),
        (1704103200, utc(2024, 1, 1, 10)),
        ("1704103200000", utc(2024, 1, 1, 10)),
        (datetime(2024, 1, 1, 10), utc(2024, 1, 1, 10)),
        ("", None),
        ("12345", None),
        (True, None),
        (float("nan"), None),
        (None, None),
    ],
)
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


def test_normalize_key_value():
    assert normalize_key_value(None) == UNKNOWN
    assert normalize_key_value("  ") == UNKNOWN
    assert normalize_key_value(" bus ") == "bus"


def test_to_groupable_reads_objects_and_fallbacks():
    class Row:
        id = 7
        category = "delay"
        service = "metro"
        subservice = "Linea 3"
        time = "2024-01-01T00:00:00Z"

    incident = to_groupable(Row())
    assert incident.key == ("delay", "metro", "Linea 3")
    assert incident.id == 7
