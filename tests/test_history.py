"""Snapshot store: dedup, eviction, persistence."""

import json
import threading
from datetime import timedelta

import pytest

from copilot_quota import HistoryStore, QuotaInsights
from copilot_quota.history import MAX_HISTORY_ENTRIES

from conftest import NOW, make_snapshot


@pytest.fixture
def store(list_store):
    return HistoryStore(list_store, "premium_interactions")


class TestRecord:
    def test_identical_remaining_is_deduplicated(self, store):
        assert store.record(100, 200) is True
        assert store.record(100, 200) is False
        assert store.size() == 1

    def test_new_value_is_prepended(self, store):
        store.record(100, 200, observed_at=NOW - timedelta(hours=2))
        store.record(90, 200, observed_at=NOW)

        history = store.load()
        assert [entry.remaining for entry in history] == [90, 100]
        assert history[0].observed_at == NOW

    def test_dedup_only_compares_with_head(self, store):
        store.record(100, 200)
        store.record(90, 200)
        store.record(100, 200)
        assert [entry.remaining for entry in store.load()] == [100, 90, 100]

    def test_eviction_keeps_most_recent(self, store):
        for i in range(15):
            store.record(1000 - i, 2000, observed_at=NOW + timedelta(hours=i))

        history = store.load()
        assert len(history) == MAX_HISTORY_ENTRIES
        assert history[0].remaining == 986
        assert history[-1].remaining == 995

    @pytest.mark.parametrize("remaining", [0, -5])
    def test_non_positive_remaining_is_ignored(self, store, remaining):
        assert store.record(remaining, 200) is False
        assert store.size() == 0

    def test_capture_filters_unlimited_and_exhausted(self, store):
        assert store.capture(make_snapshot(0)) is False
        assert store.capture(make_snapshot(50, unlimited=True)) is False
        assert store.capture(make_snapshot(50)) is True
        assert store.latest().observed_at == NOW

    def test_load_returns_immutable_copy(self, store):
        store.record(100, 200)
        history = store.load()
        store.record(80, 200)
        assert len(history) == 1
        assert isinstance(history, tuple)


class TestPersistence:
    def test_history_survives_reload(self, list_store):
        HistoryStore(list_store, "premium_interactions").record(120, 300, observed_at=NOW)

        reloaded = HistoryStore(list_store, "premium_interactions")
        assert reloaded.size() == 1
        entry = reloaded.latest()
        assert entry.remaining == 120
        assert entry.entitlement == 300
        assert entry.observed_at == NOW

    def test_quotas_are_kept_apart(self, list_store):
        HistoryStore(list_store, "premium_interactions").record(120, 300)
        assert HistoryStore(list_store, "chat").size() == 0

    def test_corrupt_file_loads_empty(self, list_store):
        path = list_store.path("premium_interactions")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("{not json", encoding="utf-8")

        assert HistoryStore(list_store, "premium_interactions").size() == 0

    def test_malformed_entries_are_dropped(self, list_store):
        list_store.save(
            "premium_interactions",
            [
                {"timestamp": NOW.isoformat(), "remaining": 80, "entitlement": 300},
                {"timestamp": "yesterday", "remaining": 90, "entitlement": 300},
                {"remaining": 95},
            ],
        )
        store = HistoryStore(list_store, "premium_interactions")
        assert [entry.remaining for entry in store.load()] == [80]

    def test_saved_file_is_newest_first(self, store, list_store):
        store.record(100, 200, observed_at=NOW - timedelta(hours=1))
        store.record(90, 200, observed_at=NOW)

        raw = json.loads(list_store.path("premium_interactions").read_text(encoding="utf-8"))
        assert [item["remaining"] for item in raw["items"]] == [90, 100]

    def test_clear_removes_file(self, store, list_store):
        store.record(100, 200)
        store.clear()
        assert store.size() == 0
        assert not list_store.path("premium_interactions").exists()


def _record_concurrently(store, values):
    barrier = threading.Barrier(len(values))

    def worker(value):
        barrier.wait()
        store.record(value, 2000)

    threads = [threading.Thread(target=worker, args=(value,)) for value in values]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def _assert_consistent(history, expected_size):
    assert len(history) == expected_size
    times = [entry.observed_at for entry in history]
    assert times == sorted(times, reverse=True)
    for newer, older in zip(history, history[1:]):
        assert newer.remaining != older.remaining


class TestConcurrentRecord:
    @pytest.mark.parametrize("count", [4, 16])
    def test_parallel_records_on_one_store(self, store, list_store, count):
        _record_concurrently(store, list(range(1, count + 1)))

        history = store.load()
        _assert_consistent(history, min(count, MAX_HISTORY_ENTRIES))
        assert HistoryStore(list_store, "premium_interactions").load() == history

    def test_parallel_records_through_insights(self, list_store):
        insights = QuotaInsights(list_store)
        values = list(range(1, 17))
        barrier = threading.Barrier(len(values))

        def worker(value):
            barrier.wait()
            insights.history("premium_interactions").record(value, 2000)

        threads = [threading.Thread(target=worker, args=(value,)) for value in values]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        _assert_consistent(insights.history("premium_interactions").load(), MAX_HISTORY_ENTRIES)
