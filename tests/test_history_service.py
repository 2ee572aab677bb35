from datetime import datetime, timedelta, timezone

from schemas import AnalysisMetrics, AnalysisRecord, SleepMetrics
from services.history_service import AnalysisHistory
from services.storage_service import ANALYSIS_HISTORY_KEY, ANALYSIS_KEY


def make_record(hours, timestamp=None):
    return AnalysisRecord(
        timestamp=timestamp or datetime.now(timezone.utc),
        metrics=AnalysisMetrics(sleep=SleepMetrics(average=hours, quality=50)),
    )


def test_append_prepends_and_sets_latest(store):
    history = AnalysisHistory(store)
    history.append(make_record(6))
    records = history.append(make_record(7))

    assert [r.metrics.sleep.average for r in records] == [7, 6]
    assert history.latest().metrics.sleep.average == 7
    assert store.get(ANALYSIS_KEY)["metrics"]["sleep"]["average"] == 7


def test_capacity_evicts_oldest_insert_regardless_of_timestamp(store):
    history = AnalysisHistory(store, capacity=3)
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    # Inserted out of chronological order on purpose
    for i, offset in enumerate([5, 1, 3, 2]):
        history.append(make_record(i, base + timedelta(days=offset)))

    assert len(history) == 3
    assert [r.metrics.sleep.average for r in history.all()] == [3, 2, 1]


def test_malformed_records_are_skipped(store):
    store.set(ANALYSIS_HISTORY_KEY, [{"bogus": True}, make_record(8).to_json_dict()])
    records = AnalysisHistory(store).all()
    assert len(records) == 1
    assert records[0].metrics.sleep.average == 8


def test_latest_falls_back_to_history(store):
    history = AnalysisHistory(store)
    assert history.latest() is None
    store.set(ANALYSIS_HISTORY_KEY, [make_record(5).to_json_dict()])
    assert history.latest().metrics.sleep.average == 5


def test_non_list_history_is_reset(store):
    store.set(ANALYSIS_HISTORY_KEY, {"not": "a list"})
    history = AnalysisHistory(store)
    assert history.all() == []
    history.append(make_record(4))
    assert len(history) == 1


def test_clear(store):
    history = AnalysisHistory(store)
    history.append(make_record(6))
    history.clear()
    assert history.latest() is None
    assert len(history) == 0
