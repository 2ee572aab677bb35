"""
storage_service.py — Per-User Key/Value Persistence
JSON documents stored per (user namespace, key). The namespace is an opaque
user identifier injected once into a UserStore, so callers never build
prefixed keys themselves. Writes publish ChangeEvents on a ChangeFeed that
interested callers subscribe to.
"""

import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from models.user_record import UserRecord

logger = logging.getLogger(__name__)

JOURNAL_ENTRIES_KEY = "journalEntries"
ANALYSIS_KEY = "journalAnalysis"
ANALYSIS_HISTORY_KEY = "journalAnalysisHistory"
GOALS_KEY = "goalsData"
NUTRITION_KEY = "nutritionData"


class StorageError(Exception):
    """Raised when the backing store cannot read or write a document."""


@dataclass(frozen=True)
class ChangeEvent:
    user_id: str
    key: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ChangeFeed:
    """In-process pub/sub for storage writes, keyed by user."""

    def __init__(self):
        self._subscribers: dict[str, list[Callable[[ChangeEvent], None]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, user_id: str, callback: Callable[[ChangeEvent], None]) -> Callable[[], None]:
        """Register *callback* for *user_id*; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.setdefault(user_id, []).append(callback)

        def unsubscribe():
            with self._lock:
                callbacks = self._subscribers.get(user_id, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def publish(self, event: ChangeEvent):
        with self._lock:
            callbacks = list(self._subscribers.get(event.user_id, []))
        for callback in callbacks:
            try:
                callback(event)
            except Exception:
                logger.exception("Change subscriber failed for key %s", event.key)


# ------------------------------------------------------------------
class KeyValueStore(ABC):
    """Backend contract: JSON-serializable values per (namespace, key)."""

    @abstractmethod
    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, namespace: str, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, namespace: str, key: str) -> None:
        ...

    @abstractmethod
    def keys(self, namespace: str) -> list[str]:
        ...


class MemoryKeyValueStore(KeyValueStore):
    """Process-local store. Values are round-tripped through JSON like the SQL store."""

    def __init__(self):
        self._data: dict[str, dict[str, str]] = {}
        self._lock = threading.Lock()

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        with self._lock:
            raw = self._data.get(namespace, {}).get(key)
        return json.loads(raw) if raw is not None else default

    def set(self, namespace: str, key: str, value: Any) -> None:
        raw = json.dumps(value)
        with self._lock:
            self._data.setdefault(namespace, {})[key] = raw

    def delete(self, namespace: str, key: str) -> None:
        with self._lock:
            self._data.get(namespace, {}).pop(key, None)

    def keys(self, namespace: str) -> list[str]:
        with self._lock:
            return sorted(self._data.get(namespace, {}))


class SQLKeyValueStore(KeyValueStore):
    """SQLAlchemy-backed store over the user_records table. Last writer wins."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        db = self.session_factory()
        try:
            row = db.query(UserRecord).filter_by(namespace=namespace, key=key).first()
            if row is None or row.value is None:
                return default
            return json.loads(row.value)
        except SQLAlchemyError as e:
            logger.error(f"Failed to read {key} for {namespace}: {e}")
            raise StorageError(str(e)) from e
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable {key} for {namespace}: {e}")
            return default
        finally:
            db.close()

    def set(self, namespace: str, key: str, value: Any) -> None:
        db = self.session_factory()
        try:
            row = db.query(UserRecord).filter_by(namespace=namespace, key=key).first()
            if row is None:
                row = UserRecord(namespace=namespace, key=key)
                db.add(row)
            row.value = json.dumps(value)
            row.updated_at = datetime.now(timezone.utc)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to write {key} for {namespace}: {e}")
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def delete(self, namespace: str, key: str) -> None:
        db = self.session_factory()
        try:
            db.query(UserRecord).filter_by(namespace=namespace, key=key).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError(str(e)) from e
        finally:
            db.close()

    def keys(self, namespace: str) -> list[str]:
        db = self.session_factory()
        try:
            rows = db.query(UserRecord.key).filter_by(namespace=namespace).order_by(UserRecord.key).all()
            return [r.key for r in rows]
        except SQLAlchemyError as e:
            raise StorageError(str(e)) from e
        finally:
            db.close()


# ------------------------------------------------------------------
class UserStore:
    """A KeyValueStore view bound to one user's namespace."""

    def __init__(self, backend: KeyValueStore, user_id: str, feed: ChangeFeed | None = None):
        if not user_id:
            raise ValueError("user_id is required")
        self.backend = backend
        self.user_id = str(user_id)
        self.feed = feed

    def get(self, key: str, default: Any = None) -> Any:
        return self.backend.get(self.user_id, key, default)

    def set(self, key: str, value: Any) -> None:
        self.backend.set(self.user_id, key, value)
        if self.feed is not None:
            self.feed.publish(ChangeEvent(user_id=self.user_id, key=key))

    def delete(self, key: str) -> None:
        self.backend.delete(self.user_id, key)
        if self.feed is not None:
            self.feed.publish(ChangeEvent(user_id=self.user_id, key=key))

    def clear(self) -> None:
        for key in self.backend.keys(self.user_id):
            self.delete(key)
