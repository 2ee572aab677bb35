"""
key_manager.py — API Key Rotation Manager
Manages multiple API keys per LLM provider with round-robin rotation,
exhaustion tracking, and automatic daily resets.
"""

from datetime import datetime, timezone, date

from config import OPENAI_API_KEYS, GROQ_API_KEYS


class KeyManager:
    """Round-robin API key rotation with exhaustion tracking."""

    def __init__(self, provider_keys: dict[str, list[str]] | None = None):
        self._current_index: dict[str, int] = {}
        self._last_reset: date = date.today()
        self.keys: dict[str, list[dict]] = {}

        if provider_keys is None:
            provider_keys = {
                "openai": OPENAI_API_KEYS,
                "groq": GROQ_API_KEYS,
            }

        for provider, raw_keys in provider_keys.items():
            self.keys[provider] = [
                {
                    "key": k,
                    "is_exhausted": False,
                    "requests_today": 0,
                    "last_used": None,
                    "exhausted_at": None,
                }
                for k in raw_keys if k
            ]
            self._current_index[provider] = 0

    # ------------------------------------------------------------------
    def has_credentials(self) -> bool:
        return any(self.keys.values())

    # ------------------------------------------------------------------
    def _maybe_reset(self):
        """Auto-reset all keys if the day has rolled over."""
        today = date.today()
        if today != self._last_reset:
            self.reset_daily()
            self._last_reset = today

    # ------------------------------------------------------------------
    def get_next_key(self, provider: str) -> str | None:
        """Return the next non-exhausted key for *provider* (round-robin).
        Returns None if every key is exhausted or no keys exist."""
        self._maybe_reset()
        entries = self.keys.get(provider, [])
        if not entries:
            return None

        total = len(entries)
        start = self._current_index.get(provider, 0) % total
        for offset in range(total):
            idx = (start + offset) % total
            entry = entries[idx]
            if not entry["is_exhausted"]:
                entry["requests_today"] += 1
                entry["last_used"] = datetime.now(timezone.utc).isoformat()
                self._current_index[provider] = (idx + 1) % total
                return entry["key"]
        return None

    # ------------------------------------------------------------------
    def mark_exhausted_by_value(self, provider: str, key_value: str):
        """Mark a key as exhausted (e.g. after a 429 response)."""
        for entry in self.keys.get(provider, []):
            if entry["key"] == key_value:
                entry["is_exhausted"] = True
                entry["exhausted_at"] = datetime.now(timezone.utc).isoformat()
                break

    # ------------------------------------------------------------------
    def reset_daily(self):
        """Reset all exhaustion flags and daily counters."""
        for provider_entries in self.keys.values():
            for entry in provider_entries:
                entry["is_exhausted"] = False
                entry["requests_today"] = 0
                entry["exhausted_at"] = None

    # ------------------------------------------------------------------
    def get_key_stats(self) -> dict:
        """Return usage statistics per provider (never the keys themselves)."""
        stats: dict = {}
        for provider, entries in self.keys.items():
            stats[provider] = {
                "total_keys": len(entries),
                "active_keys": sum(1 for e in entries if not e["is_exhausted"]),
                "total_requests_today": sum(e["requests_today"] for e in entries),
            }
        return stats

    # ------------------------------------------------------------------
    def get_active_key_count(self, provider: str) -> int:
        """How many non-exhausted keys remain for a provider."""
        return sum(1 for e in self.keys.get(provider, []) if not e["is_exhausted"])
