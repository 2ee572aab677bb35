"""
history_service.py — Bounded Analysis History
Newest-first list of AnalysisRecords per user, capped at a fixed capacity.
The oldest inserted record is dropped first, regardless of its timestamp.
"""

import logging

from pydantic import ValidationError

from config import ANALYSIS_HISTORY_LIMIT
from schemas import AnalysisRecord
from services.storage_service import ANALYSIS_HISTORY_KEY, ANALYSIS_KEY, UserStore

logger = logging.getLogger(__name__)


class AnalysisHistory:
    def __init__(self, store: UserStore, capacity: int = ANALYSIS_HISTORY_LIMIT):
        self.store = store
        self.capacity = max(1, capacity)

    def _load_raw(self) -> list:
        raw = self.store.get(ANALYSIS_HISTORY_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Stored analysis history is not a list; resetting it")
            return []
        return raw

    def all(self) -> list[AnalysisRecord]:
        records = []
        for item in self._load_raw():
            try:
                records.append(AnalysisRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed analysis record: {e}")
        return records

    def latest(self) -> AnalysisRecord | None:
        raw = self.store.get(ANALYSIS_KEY)
        if raw is None:
            records = self.all()
            return records[0] if records else None
        try:
            return AnalysisRecord.model_validate(raw)
        except ValidationError:
            return None

    def append(self, record: AnalysisRecord) -> list[AnalysisRecord]:
        """Prepend *record*, evicting the oldest entries beyond capacity."""
        data = record.to_json_dict()
        history = [data] + self._load_raw()
        history = history[:self.capacity]
        self.store.set(ANALYSIS_KEY, data)
        self.store.set(ANALYSIS_HISTORY_KEY, history)
        return self.all()

    def clear(self):
        self.store.delete(ANALYSIS_KEY)
        self.store.delete(ANALYSIS_HISTORY_KEY)

    def __len__(self) -> int:
        return len(self._load_raw())
