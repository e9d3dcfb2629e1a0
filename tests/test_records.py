from datetime import datetime, timedelta, timezone

from lexi.core.records import (
    EPOCH,
    format_timestamp,
    identity_key,
    normalize_difficulty,
    normalize_record,
    parse_timestamp,
    record_timestamp,
)


def test_identity_key():
    assert identity_key("  Serendipity ") == "serendipity"
    assert identity_key(None) == ""


def test_parse_timestamp_forms():
    assert parse_timestamp("2024-06-01T10:00:00Z") == datetime(2024, 6, 1, 10, 0, 0)
    assert parse_timestamp("2024-06-01T10:00:00.500Z") == datetime(2024, 6, 1, 10, 0, 0, 500000)
    assert parse_timestamp("2024-06-01T12:00:00+02:00") == datetime(2024, 6, 1, 10, 0, 0)
    assert parse_timestamp("2024-06-01") == datetime(2024, 6, 1)

    aware = datetime(2024, 6, 1, 12, tzinfo=timezone(timedelta(hours=2)))
    assert parse_timestamp(aware) == datetime(2024, 6, 1, 10)


def test_parse_timestamp_rejects_garbage():
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(12345) is None


def test_format_timestamp():
    assert format_timestamp(datetime(2024, 6, 1, 10, 0, 0)) == "2024-06-01T10:00:00Z"
    assert format_timestamp(None) is None


def test_normalize_difficulty():
    assert normalize_difficulty("Difficult") == "hard"
    assert normalize_difficulty("EASY") == "easy"
    assert normalize_difficulty("impossible") == "medium"
    assert normalize_difficulty(None) == "medium"


def test_normalize_record_fills_defaults():
    record = normalize_record({"word": " cat "})

    assert record["word"] == "cat"
    assert record["partOfSpeech"] == "noun"
    assert record["examples"] == []
    assert record["difficulty"] == "medium"
    assert record["mastered"] is False
    assert record["createdAt"] is None
    assert record["updatedAt"] is None


def test_normalize_record_splits_text_lists():
    record = normalize_record(
        {
            "word": "quick",
            "examples": "A quick fox.\n\nA quick look.",
            "synonyms": "fast, rapid ,",
            "antonyms": ["slow", None, " "],
        }
    )

    assert record["examples"] == ["A quick fox.", "A quick look."]
    assert record["synonyms"] == ["fast", "rapid"]
    assert record["antonyms"] == ["slow"]


def test_normalize_record_without_word():
    assert normalize_record({"definition": "nothing"}) is None
    assert normalize_record({"word": ""}) is None
    assert normalize_record(["cat"]) is None


def test_unparseable_timestamps_are_dropped():
    record = normalize_record({"word": "cat", "updatedAt": "not a date"})

    assert record["updatedAt"] is None
    assert record_timestamp(record) == EPOCH


def test_record_timestamp_prefers_updated_at():
    assert record_timestamp(
        {"createdAt": "2024-01-01T00:00:00Z", "updatedAt": "2024-02-01T00:00:00Z"}
    ) == datetime(2024, 2, 1)
    assert record_timestamp({"createdAt": "2024-01-01T00:00:00Z"}) == datetime(2024, 1, 1)
    assert record_timestamp({}) == EPOCH


def test_mastered_strings_are_read_as_booleans():
    assert normalize_record({"word": "a", "mastered": "false"})["mastered"] is False
    assert normalize_record({"word": "a", "mastered": "False "})["mastered"] is False
    assert normalize_record({"word": "a", "mastered": "0"})["mastered"] is False
    assert normalize_record({"word": "a", "mastered": "true"})["mastered"] is True
    assert normalize_record({"word": "a", "mastered": 1})["mastered"] is True
    assert normalize_record({"word": "a", "mastered": None})["mastered"] is False
