from config import OPENAI_BASE_URL, OPENAI_MODEL
from providers.base import ChatCompletionsProvider


class OpenAIProvider(ChatCompletionsProvider):
    """Provider for the OpenAI chat completions API (or any compatible base URL)."""

    endpoint = f"{OPENAI_BASE_URL.rstrip('/')}/chat/completions"
    default_model = OPENAI_MODEL

    @property
    def name(self) -> str:
        return "openai"
