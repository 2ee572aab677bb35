from providers.base import BaseProvider, ChatCompletionsProvider
from providers.openai_provider import OpenAIProvider
from providers.groq_provider import GroqProvider


__all__ = [
    "BaseProvider",
    "ChatCompletionsProvider",
    "OpenAIProvider",
    "GroqProvider",
]
