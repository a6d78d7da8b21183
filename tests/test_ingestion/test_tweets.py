from datetime import datetime, timezone

import pytest

from incidentlens.ingestion.tweets import (
    TweetEntity,
    clean_text,
    filter_and_sort,
    map_to_entities,
    parse_tweet_date,
)


def test_parse_tweet_date_twitter_format():
    assert parse_tweet_date("Tue Dec 10 07:00:30 +0000 2024") == datetime(2024, 12, 10, 7, 0, 30, tzinfo=timezone.utc)


def test_parse_tweet_date_falls_back_to_iso_and_none():
    assert parse_tweet_date("2024-12-10T07:00:30Z") == datetime(2024, 12, 10, 7, 0, 30, tzinfo=timezone.utc)
    assert parse_tweet_date("yesterday") is None
    assert parse_tweet_date(None) is None


def test_map_to_entities_drops_posts_without_text():
    entities = map_to_entities([
        {"text": "Metro Linea 3 detenido", "createdAt": "Tue Dec 10 07:00:30 +0000 2024"},
        {"text": "   "},
        {"createdAt": "Tue Dec 10 07:00:30 +0000 2024"},
        "not a dict",
    ])
    assert len(entities) == 1
    assert entities[0].text == "Metro Linea 3 detenido"
    assert entities[0].parsed_date is not None


def test_filter_and_sort_dedupes_and_orders_newest_first():
    older = TweetEntity("a", "1", datetime(2024, 1, 1, tzinfo=timezone.utc))
    newer = TweetEntity("b", "2", datetime(2024, 1, 2, tzinfo=timezone.utc))
    undated = TweetEntity("c", None, None)

    result = filter_and_sort([older, undated, newer, older])
    assert result == [newer, older, undated]


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("¡Retraso en la Línea 3!!! 😡 #metro", "Retraso en la Línea 3 metro"),
        ("  muchos   espacios\n\ty saltos ", "muchos espacios y saltos"),
        ("https://t.co/abc", "httpstcoabc"),
        ("", ""),
    ],
)
def test_clean_text(raw, expected):
    assert clean_text(raw) == expected


def test_clean_text_keeps_decomposed_accents():
    assert clean_text("Line\u0301a") == "Lin\u00e9a"


def test_clean_text_is_idempotent():
    raw = "¿Qué pasa con el @MetroCDMX?? ¡¡20 min!! 🚇"
    once = clean_text(raw)
    assert clean_text(once) == once


@pytest.mark.parametrize("raw", ["\u1100\u200d\u1161", "e\u200b\u0301", "Metro\u200d Linea 3"])
def test_clean_text_is_idempotent_across_dropped_format_characters(raw):
    once = clean_text(raw)
    assert clean_text(once) == once


def test_clean_text_composes_jamo_joined_by_zero_width_joiner():
    assert clean_text("\u1100\u200d\u1161") == "\uac00"
