import httpx
from abc import ABC, abstractmethod

from config import LLM_TEMPERATURE, LLM_TIMEOUT_SECONDS


class BaseProvider(ABC):
    """Abstract base class for all AI providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The name of this provider (e.g. 'openai', 'groq')."""
        ...

    @abstractmethod
    async def chat(self, messages: list[dict], model: str | None = None, json_mode: bool = False) -> dict:
        """
        Send a chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content' keys.
            model: Optional model identifier. Provider uses its default if None.
            json_mode: Ask the provider to constrain the reply to a JSON object.

        Returns:
            dict with keys:
                - text: str | None  — the generated text
                - provider: str     — provider name
                - model: str        — model used
                - status: "success" | "failed"
                - error: str | None — error message on failure
                - status_code: int | None — HTTP status on HTTP failures
        """
        ...


class ChatCompletionsProvider(BaseProvider):
    """Shared httpx client for OpenAI-compatible /chat/completions endpoints."""

    endpoint: str = ""
    default_model: str = ""

    def __init__(self, api_key: str, timeout: float = LLM_TIMEOUT_SECONDS,
                 transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _result(self, model: str, text=None, error=None, status_code=None) -> dict:
        return {
            "text": text,
            "provider": self.name,
            "model": model,
            "status": "failed" if error else "success",
            "error": error,
            "status_code": status_code,
        }

    async def chat(self, messages: list[dict], model: str | None = None, json_mode: bool = False) -> dict:
        used_model = model or self.default_model
        try:
            headers = {
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json"
            }
            body = {
                "model": used_model,
                "messages": messages,
                "temperature": LLM_TEMPERATURE,
                "max_tokens": 1024,
            }
            if json_mode:
                body["response_format"] = {"type": "json_object"}

            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.endpoint, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
                text = data["choices"][0]["message"]["content"] if "choices" in data and data["choices"] else None

            if not text:
                return self._result(used_model, error="Empty response")
            return self._result(used_model, text=text)
        except httpx.TimeoutException:
            return self._result(used_model, error="Timeout")
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            return self._result(used_model, error=f"HTTP {code}", status_code=code)
        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            return self._result(used_model, error=str(e) or e.__class__.__name__)
