import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import init_db
from services.storage_service import (
    ChangeFeed,
    MemoryKeyValueStore,
    SQLKeyValueStore,
    StorageError,
    UserStore,
)


@pytest.fixture
def sql_backend():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    return SQLKeyValueStore(sessionmaker(bind=engine))


@pytest.fixture(params=["memory", "sql"])
def backend(request, sql_backend):
    return MemoryKeyValueStore() if request.param == "memory" else sql_backend


def test_round_trip_and_overwrite(backend):
    assert backend.get("u1", "journalEntries") is None
    assert backend.get("u1", "journalEntries", []) == []

    backend.set("u1", "journalEntries", [{"text": "hello"}])
    backend.set("u1", "journalEntries", [{"text": "hello again"}])
    assert backend.get("u1", "journalEntries") == [{"text": "hello again"}]


def test_namespaces_are_isolated(backend):
    backend.set("u1", "goalsData", {"goals": [1]})
    backend.set("u2", "goalsData", {"goals": [2]})
    assert backend.get("u1", "goalsData") == {"goals": [1]}
    assert backend.keys("u2") == ["goalsData"]


def test_delete(backend):
    backend.set("u1", "a", 1)
    backend.set("u1", "b", 2)
    backend.delete("u1", "a")
    backend.delete("u1", "missing")
    assert backend.keys("u1") == ["b"]


def test_user_store_requires_user_id():
    with pytest.raises(ValueError):
        UserStore(MemoryKeyValueStore(), "")


def test_user_store_publishes_changes():
    feed = ChangeFeed()
    seen = []
    unsubscribe = feed.subscribe("u1", seen.append)
    other = []
    feed.subscribe("u2", other.append)

    store = UserStore(MemoryKeyValueStore(), "u1", feed)
    store.set("journalAnalysis", {"x": 1})
    store.delete("journalAnalysis")
    assert [e.key for e in seen] == ["journalAnalysis", "journalAnalysis"]
    assert seen[0].user_id == "u1"
    assert other == []

    unsubscribe()
    store.set("journalAnalysis", {"x": 2})
    assert len(seen) == 2


def test_failing_subscriber_does_not_break_writes():
    feed = ChangeFeed()
    received = []

    def broken(event):
        raise RuntimeError("listener failed")

    feed.subscribe("u1", broken)
    feed.subscribe("u1", received.append)
    store = UserStore(MemoryKeyValueStore(), "u1", feed)
    store.set("k", 1)
    assert store.get("k") == 1
    assert len(received) == 1


def test_clear_removes_every_key():
    store = UserStore(MemoryKeyValueStore(), "u1")
    store.set("a", 1)
    store.set("b", 2)
    store.clear()
    assert store.backend.keys("u1") == []


def test_sql_errors_surface_as_storage_error():
    class BrokenSession:
        def query(self, *args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        def rollback(self):
            pass

        def close(self):
            pass

    backend = SQLKeyValueStore(BrokenSession)
    with pytest.raises(StorageError):
        backend.get("u1", "journalEntries")
    with pytest.raises(StorageError):
        backend.set("u1", "journalEntries", [])
