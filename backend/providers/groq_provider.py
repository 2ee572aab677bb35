from config import GROQ_MODEL
from providers.base import ChatCompletionsProvider


class GroqProvider(ChatCompletionsProvider):
    """Provider for Groq inference API, used when OpenAI keys are exhausted or failing."""

    endpoint = "https://api.groq.com/openai/v1/chat/completions"
    default_model = GROQ_MODEL

    @property
    def name(self) -> str:
        return "groq"
