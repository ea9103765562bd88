from __future__ import annotations

import json
from itertools import count

import pytest

from fixtures import make_question, make_quiz_question
from knowit.cache import (
    MAX_ITEMS,
    STORAGE_KEY,
    AnswerCache,
    CachedAnswer,
    MemoryStorage,
    StorageUnavailable,
    hash_string,
    identity_key,
)


def _cache(storage=None, *, start: int = 1_000, **kwargs) -> AnswerCache:
    ticks = count(start)
    return AnswerCache(
        storage if storage is not None else MemoryStorage(),
        clock=lambda: next(ticks),
        **kwargs,
    )


def test_hash_string_matches_reference_values():
    assert hash_string("") == "1505"
    assert hash_string("a") == "2b5c4"
    assert hash_string("é") == format(((5381 * 33) ^ 0xE9) & 0xFFFFFFFF, "x")


def test_identity_key_prefers_stable_id():
    assert identity_key(make_question(qid="abc")) == "id:abc"
    assert identity_key(make_question(qid="  ")).startswith("h:")


def test_identity_key_is_deterministic_on_content():
    a = make_question("Q", category="sport", difficulty="normal")
    b = make_question("Q", category="sport", difficulty="normal", answer="X")
    c = make_question("Q", category="sport", difficulty="facile")

    assert identity_key(a) == identity_key(b)
    assert identity_key(a) != identity_key(c)
    assert identity_key(a) == "h:" + hash_string("sport|normal|Q")


def test_save_then_load_round_trips_fields():
    cache = _cache()
    question = make_quiz_question(qid="q1")

    result = cache.save(question)

    assert result.is_ok
    [record] = cache.load_all()
    assert record == CachedAnswer(
        id="q1",
        category="geographie",
        difficulty="facile",
        question=question.question,
        correct_answer="Paris",
        incorrect_answers=["Lyon", "Marseille", "Nice"],
        options=["Lyon", "Paris", "Marseille", "Nice"],
        saved_at=1_000,
    )


def test_persisted_layout_uses_saved_at_camel_case():
    storage = MemoryStorage()
    cache = _cache(storage)

    cache.save(make_question(difficulty=None), ["Paris", "Lyon"])

    [payload] = json.loads(storage.get(STORAGE_KEY))
    assert payload["savedAt"] == 1_000
    assert payload["options"] == ["Paris", "Lyon"]
    assert "id" not in payload
    assert "difficulty" not in payload


def test_saving_twice_keeps_one_record_with_latest_timestamp():
    cache = _cache()
    question = make_question("Dedup me")

    cache.save(question)
    cache.save(make_question("Other"))
    cache.save(question)

    records = cache.load_all()
    assert [r.question for r in records] == ["Dedup me", "Other"]
    assert records[0].saved_at == 1_002


def test_cache_is_capped_and_sorted_newest_first():
    cache = _cache()

    for i in range(MAX_ITEMS + 15):
        cache.save(make_question(f"Q{i}"))

    records = cache.load_all()
    assert len(records) == MAX_ITEMS
    stamps = [r.saved_at for r in records]
    assert stamps == sorted(stamps, reverse=True)
    assert records[0].question == f"Q{MAX_ITEMS + 14}"
    assert records[-1].question == "Q15"


def test_custom_key_and_cap():
    storage = MemoryStorage()
    cache = _cache(storage, key="custom.key", max_items=2)

    for i in range(4):
        cache.save(make_question(f"Q{i}"))

    assert STORAGE_KEY not in storage
    assert [r.question for r in cache.load_all()] == ["Q3", "Q2"]


def test_load_all_sorts_unordered_storage():
    raw = [
        {"question": "old", "category": "sport", "savedAt": 1},
        {"question": "new", "category": "sport", "savedAt": 3},
        {"question": "mid", "category": "sport", "savedAt": 2},
    ]
    cache = _cache(MemoryStorage({STORAGE_KEY: json.dumps(raw)}))

    assert [r.question for r in cache.load_all()] == ["new", "mid", "old"]


@pytest.mark.parametrize(
    "raw",
    ["not json", json.dumps({"question": "x"}), json.dumps("text"), ""],
)
def test_malformed_storage_reads_as_empty(raw):
    cache = _cache(MemoryStorage({STORAGE_KEY: raw}))

    assert cache.load_all() == []


def test_invalid_elements_are_dropped():
    raw = [
        "junk",
        {"category": "sport"},
        {"question": "kept", "savedAt": "yesterday"},
    ]
    cache = _cache(MemoryStorage({STORAGE_KEY: json.dumps(raw)}))

    [record] = cache.load_all()
    assert record.question == "kept"
    assert record.saved_at == 0


def test_save_over_corrupt_storage_starts_fresh():
    storage = MemoryStorage({STORAGE_KEY: "{broken"})
    cache = _cache(storage)

    assert cache.save(make_question()).is_ok
    assert len(cache.load_all()) == 1


def test_clear_then_load_is_empty():
    cache = _cache()
    cache.save(make_question())

    assert cache.clear().is_ok
    assert cache.load_all() == []


def test_missing_storage_degrades_without_raising():
    cache = AnswerCache(None)

    result = cache.save(make_question())

    assert not result.is_ok
    assert result.status == "unavailable"
    assert cache.load_all() == []
    assert not cache.clear().is_ok


class _BrokenStorage:
    def get(self, key):
        raise StorageUnavailable("disk offline")

    def set(self, key, value):
        raise OSError("read-only file system")

    def remove(self, key):
        raise OSError("read-only file system")


def test_failing_storage_reports_unavailable(caplog):
    cache = AnswerCache(_BrokenStorage())

    with caplog.at_level("WARNING", logger="knowit.cache.answers"):
        result = cache.save(make_question())

    assert result.status == "unavailable"
    assert "disk offline" in result.reason
    assert cache.load_all() == []
    assert cache.clear().reason == "read-only file system"
    assert any(r.event == "cache_unavailable" for r in caplog.records)


def test_save_prefers_explicit_options_over_quiz_question():
    cache = _cache()

    cache.save(make_quiz_question(), ["Paris"])

    assert cache.load_all()[0].options == ["Paris"]


def test_max_items_must_be_positive():
    with pytest.raises(ValueError):
        AnswerCache(MemoryStorage(), max_items=0)


@pytest.mark.parametrize("stamp", ["Infinity", "-Infinity", "NaN"])
def test_non_finite_saved_at_reads_as_zero(stamp):
    raw = '[{"question": "x", "category": "sport", "savedAt": %s}]' % stamp
    cache = _cache(MemoryStorage({STORAGE_KEY: raw}))

    [record] = cache.load_all()
    assert record.saved_at == 0

    assert cache.save(make_question("y")).is_ok
    assert [r.question for r in cache.load_all()] == ["y", "x"]


def test_deeply_nested_storage_reads_as_empty():
    storage = MemoryStorage({STORAGE_KEY: "[" * 100_000 + "]" * 100_000})
    cache = _cache(storage)

    assert cache.load_all() == []
    assert cache.save(make_question()).is_ok
    assert len(cache.load_all()) == 1


class _CrashingStorage:
    def get(self, key):
        raise RuntimeError("backend down")

    def set(self, key, value):
        raise RuntimeError("backend down")

    def remove(self, key):
        raise RuntimeError("backend down")


def test_unexpected_backend_errors_degrade():
    cache = AnswerCache(_CrashingStorage())

    assert cache.load_all() == []
    saved = cache.save(make_question())
    cleared = cache.clear()

    assert saved.status == cleared.status == "unavailable"
    assert saved.reason == "backend down"


def test_equal_timestamps_keep_latest_save_first():
    cache = AnswerCache(MemoryStorage(), clock=lambda: 5)

    cache.save(make_question("a"))
    cache.save(make_question("b"))

    assert [r.question for r in cache.load_all()] == ["b", "a"]
