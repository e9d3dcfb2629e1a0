from datetime import datetime

from conftest import add_local

from lexi.core.word_store import find_by_text, list_records, merge_remote_words, query_words, word_stats
from lexi.models import Word

NOW = datetime(2024, 7, 1, 12, 0, 0)


def test_merge_overwrites_content_and_keeps_id(db):
    cat = add_local(db, "cat", definition="old")

    result = merge_remote_words(
        db,
        [{"word": "Cat", "definition": "a small feline", "updatedAt": "2024-06-01T00:00:00Z"}],
        now=NOW,
    )

    assert result.updated == ["Cat"]
    stored = db.get(Word, cat.id)
    assert stored.definition == "a small feline"
    assert stored.word_key == "cat"
    assert db.query(Word).count() == 1


def test_merge_adds_missing_words(db):
    result = merge_remote_words(db, [{"word": "dog"}], now=NOW)

    assert result.added == ["dog"]
    dog = find_by_text(db, "DOG")
    assert dog is not None
    assert dog.source == "Sync"
    assert dog.created_at == NOW


def test_merge_twice_changes_nothing_the_second_time(db):
    add_local(db, "cat")
    remote = [
        {"word": "cat", "definition": "feline", "updatedAt": "2024-06-01T00:00:00Z"},
        {"word": "dog", "updatedAt": "2024-06-02T00:00:00Z"},
    ]

    first = merge_remote_words(db, remote, now=NOW)
    before = list_records(db)
    second = merge_remote_words(db, remote, now=NOW)

    assert first.changed
    assert not second.changed
    assert list_records(db) == before


def test_merge_never_removes_or_ages_local_words(db):
    add_local(db, "cat", updated="2024-05-01T00:00:00")
    add_local(db, "owl", updated="2024-05-01T00:00:00")
    before = {r["word"]: r["updatedAt"] for r in list_records(db)}

    merge_remote_words(
        db,
        [
            {"word": "cat", "updatedAt": "2020-01-01T00:00:00Z"},
            {"word": "eel", "updatedAt": "2024-06-01T00:00:00Z"},
        ],
        now=NOW,
    )

    after = {r["word"]: r["updatedAt"] for r in list_records(db)}
    assert set(before) <= set(after)
    for word, updated in before.items():
        assert after[word] >= updated


def test_word_deleted_locally_comes_back_from_remote(db):
    cat = add_local(db, "cat")
    remote = [r for r in list_records(db)]
    db.delete(cat)
    db.commit()

    result = merge_remote_words(db, remote, now=NOW)

    assert result.added == ["cat"]
    assert find_by_text(db, "cat") is not None


def test_query_words_search_and_filters(db):
    add_local(db, "Zephyr", definition="a gentle breeze", difficulty="hard")
    add_local(db, "apple", definition="a fruit", mastered=True)
    add_local(db, "Breeze", notes="light wind", updated="2024-06-28T00:00:00")

    assert [w.word for w in query_words(db, now=NOW)] == ["apple", "Breeze", "Zephyr"]
    assert [w.word for w in query_words(db, search="breeze", now=NOW)] == ["Breeze", "Zephyr"]
    assert [w.word for w in query_words(db, filter_name="mastered", now=NOW)] == ["apple"]
    assert [w.word for w in query_words(db, filter_name="learning", now=NOW)] == ["Breeze", "Zephyr"]
    assert [w.word for w in query_words(db, filter_name="difficult", now=NOW)] == ["Zephyr"]
    assert [w.word for w in query_words(db, filter_name="recent", now=NOW)] == ["Breeze"]


def test_word_stats(db):
    add_local(db, "one", difficulty="difficult")
    add_local(db, "two", mastered=True)
    add_local(db, "three", updated="2024-06-30T00:00:00")

    stats = word_stats(db, recent_days=7, now=NOW)

    assert stats == {"total": 3, "mastered": 1, "learning": 2, "recent": 1, "difficult": 1}


def test_merge_with_only_created_at_keeps_updated_at_set(db):
    cat = add_local(db, "cat", source="Manual Entry")

    merge_remote_words(
        db,
        [{"word": "cat", "definition": "feline", "createdAt": "2024-06-01T00:00:00Z"}],
        now=NOW,
    )

    db.expire_all()
    stored = db.get(Word, cat.id)
    assert stored.definition == "feline"
    assert stored.updated_at == datetime(2024, 6, 1)
    assert stored.updated_at >= stored.created_at
    assert stored.source == "Manual Entry"
