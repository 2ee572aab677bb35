"""
llm_router.py — Multi-LLM Router
Routes AI requests to the best available provider with automatic fallback,
key rotation, bounded retries, caching and per-provider scoring.
Construct one router per process and hand it to the services that need it.
"""

import logging
import time
from datetime import datetime, timezone

from config import LLM_MAX_RETRIES
from services.key_manager import KeyManager
from services.cache_service import ResponseCache

# Provider imports — each exposes an async chat(messages, model, json_mode) method
from providers.openai_provider import OpenAIProvider
from providers.groq_provider import GroqProvider

logger = logging.getLogger(__name__)

NO_CREDENTIALS_ERROR = "No API credential configured"

# Default priority order (lower = tried first)
_DEFAULT_PROVIDERS = [
    {"name": "openai", "provider_class": OpenAIProvider, "priority": 1},
    {"name": "groq",   "provider_class": GroqProvider,   "priority": 2},
]


def _split_messages(messages: list) -> tuple[str, str]:
    system_prompt = ""
    user_message = ""
    for m in messages:
        if m.get("role") == "system":
            system_prompt = m.get("content", "")
        elif m.get("role") == "user":
            user_message = m.get("content", "")
    return system_prompt, user_message


class LLMRouter:
    """Route AI requests to the best available LLM provider."""

    def __init__(
        self,
        key_manager: KeyManager | None = None,
        cache: ResponseCache | None = None,
        max_retries: int = LLM_MAX_RETRIES,
        provider_specs: list[dict] | None = None,
        transport=None,
    ):
        self.key_manager = key_manager or KeyManager()
        self.cache = cache if cache is not None else ResponseCache()
        self.max_retries = max(0, max_retries)
        self.transport = transport

        # Build mutable provider registry
        self.providers: list[dict] = []
        for p in provider_specs or _DEFAULT_PROVIDERS:
            # Only include providers that have at least one key configured
            if self.key_manager.keys.get(p["name"]):
                self.providers.append({
                    "name": p["name"],
                    "provider_class": p["provider_class"],
                    "priority": p["priority"],
                    "failure_count": 0,
                    "avg_response_time": 0.0,
                    "total_calls": 0,
                    "last_used": None,
                })

    # ------------------------------------------------------------------
    @property
    def has_credentials(self) -> bool:
        return bool(self.providers)

    # ------------------------------------------------------------------
    def _score(self, entry: dict) -> float:
        """Score a provider — lower is better."""
        return (
            entry["priority"]
            + (entry["failure_count"] * 5)
            + (entry["avg_response_time"] * 0.1)
        )

    @staticmethod
    def _error(message: str) -> dict:
        return {
            "text": None,
            "provider": None,
            "model": None,
            "status": "error",
            "error": message,
            "response_time": 0,
            "cached": False,
        }

    # ------------------------------------------------------------------
    async def route(
        self,
        messages: list,
        preferred_provider: str | None = None,
        model: str | None = None,
        cache_ttl: int = 0,
        json_mode: bool = False,
    ) -> dict:
        """Route a chat request through available providers with fallback.

        Parameters
        ----------
        messages : list
            OpenAI-style list of {role, content} dicts.
        preferred_provider : str, optional
            If set, this provider is tried first regardless of score.
        model : str, optional
            Model override passed to the provider.
        cache_ttl : int
            Seconds to cache the response (0 = no cache).
        json_mode : bool
            Ask providers for a JSON-object reply.

        Returns
        -------
        dict  with keys: text, provider, model, status, error, response_time, cached
        """
        if not self.providers:
            return self._error(NO_CREDENTIALS_ERROR)

        system_prompt, user_message = _split_messages(messages)

        # --- 1. Cache check ----
        if cache_ttl > 0:
            cached = self.cache.get(system_prompt, user_message, model or "")
            if cached is not None:
                return {**cached, "cached": True}

        # --- 2. Sort providers by score ---
        ordered = sorted(self.providers, key=self._score)

        # --- 3. Preferred provider first ---
        if preferred_provider:
            preferred = [p for p in ordered if p["name"] == preferred_provider]
            others = [p for p in ordered if p["name"] != preferred_provider]
            ordered = preferred + others

        # --- 4. Try each provider, at most 1 + max_retries attempts apiece ---
        last_error = "All providers failed"
        for entry in ordered:
            provider_name = entry["name"]

            for attempt in range(self.max_retries + 1):
                api_key = self.key_manager.get_next_key(provider_name)
                if api_key is None:
                    break  # all keys exhausted for this provider

                provider_instance = entry["provider_class"](api_key=api_key, transport=self.transport)
                t0 = time.time()
                result = await provider_instance.chat(messages, model, json_mode=json_mode)
                elapsed = round(time.time() - t0, 3)

                if result.get("status") == "success":
                    # Update running averages
                    entry["total_calls"] += 1
                    entry["avg_response_time"] = round(
                        (entry["avg_response_time"] * (entry["total_calls"] - 1) + elapsed)
                        / entry["total_calls"],
                        3,
                    )
                    entry["failure_count"] = max(0, entry["failure_count"] - 1)
                    entry["last_used"] = datetime.now(timezone.utc).isoformat()

                    response = {
                        "text": result.get("text", ""),
                        "provider": result.get("provider", provider_name),
                        "model": result.get("model", model),
                        "status": "success",
                        "error": None,
                        "response_time": elapsed,
                        "cached": False,
                    }
                    if cache_ttl > 0:
                        self.cache.set(system_prompt, user_message, model or "", response, cache_ttl)
                    return response

                error_msg = result.get("error") or f"{provider_name} returned an error"
                last_error = f"{provider_name}: {error_msg}"
                logger.warning(f"LLM call failed ({provider_name}, attempt {attempt + 1}): {error_msg}")

                # Rate-limited (429): retire this key, the next attempt rotates
                if result.get("status_code") == 429 or "rate" in str(error_msg).lower():
                    self.key_manager.mark_exhausted_by_value(provider_name, api_key)
                    continue

                entry["failure_count"] += 1

        return self._error(last_error)

    # ------------------------------------------------------------------
    def get_provider_status(self) -> list:
        """Return current runtime status of every provider."""
        result = []
        for entry in self.providers:
            result.append({
                "name": entry["name"],
                "available_keys": self.key_manager.get_active_key_count(entry["name"]),
                "failure_count": entry["failure_count"],
                "avg_response_time": entry["avg_response_time"],
                "last_used": entry["last_used"],
                "priority": entry["priority"],
            })
        return result
