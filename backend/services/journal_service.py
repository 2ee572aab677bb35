"""
journal_service.py — Journal Entries & Snapshots
Creates, lists and soft-deletes journal entries, and reads/writes the goals
and nutrition snapshots the report layer consumes. Everything lives in the
calling user's namespaced store, newest entry first.
"""

import logging

from pydantic import ValidationError

from schemas import GoalsSnapshot, JournalEntry, NutritionSnapshot, utcnow
from services.storage_service import GOALS_KEY, JOURNAL_ENTRIES_KEY, NUTRITION_KEY, UserStore

logger = logging.getLogger(__name__)


class JournalService:
    @staticmethod
    def _load(store: UserStore) -> list[JournalEntry]:
        entries = []
        for item in store.get(JOURNAL_ENTRIES_KEY, []) or []:
            try:
                entries.append(JournalEntry.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed journal entry: {e}")
        return entries

    @staticmethod
    def _save(store: UserStore, entries: list[JournalEntry]):
        store.set(JOURNAL_ENTRIES_KEY, [e.to_json_dict() for e in entries])

    @staticmethod
    def create(store: UserStore, text: str, created_at=None) -> JournalEntry:
        entry = JournalEntry(text=text, created_at=created_at or utcnow())
        entries = JournalService._load(store)
        JournalService._save(store, [entry] + entries)
        logger.info(f"Saved journal entry {entry.id} ({len(entries) + 1} total)")
        return entry

    @staticmethod
    def get_all(store: UserStore, include_deleted: bool = False) -> list[JournalEntry]:
        entries = JournalService._load(store)
        if not include_deleted:
            entries = [e for e in entries if not e.deleted]
        return sorted(entries, key=lambda e: e.created_at, reverse=True)

    @staticmethod
    def get_recent(store: UserStore, count: int) -> list[JournalEntry]:
        return JournalService.get_all(store)[:max(0, count)]

    @staticmethod
    def soft_delete(store: UserStore, entry_id: str) -> bool:
        entries = JournalService._load(store)
        found = False
        updated = []
        for e in entries:
            if e.id == entry_id and not e.deleted:
                e = e.model_copy(update={"deleted": True})
                found = True
            updated.append(e)
        if found:
            JournalService._save(store, updated)
        return found

    # ------------------------------------------------------------------
    @staticmethod
    def get_goals(store: UserStore) -> GoalsSnapshot:
        try:
            return GoalsSnapshot.model_validate(store.get(GOALS_KEY) or {})
        except ValidationError as e:
            logger.warning(f"Ignoring malformed goals snapshot: {e}")
            return GoalsSnapshot()

    @staticmethod
    def save_goals(store: UserStore, snapshot: GoalsSnapshot) -> GoalsSnapshot:
        snapshot = snapshot.model_copy(update={"timestamp": utcnow()})
        store.set(GOALS_KEY, snapshot.to_json_dict())
        return snapshot

    @staticmethod
    def get_nutrition(store: UserStore) -> NutritionSnapshot:
        try:
            return NutritionSnapshot.model_validate(store.get(NUTRITION_KEY) or {})
        except ValidationError as e:
            logger.warning(f"Ignoring malformed nutrition snapshot: {e}")
            return NutritionSnapshot()

    @staticmethod
    def save_nutrition(store: UserStore, snapshot: NutritionSnapshot) -> NutritionSnapshot:
        snapshot = snapshot.model_copy(update={"timestamp": utcnow()})
        store.set(NUTRITION_KEY, snapshot.to_json_dict())
        return snapshot
