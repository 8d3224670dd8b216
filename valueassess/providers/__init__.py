from .base import LLMTransport
from .openai_provider import OpenAIChatProvider

__all__ = ["LLMTransport", "OpenAIChatProvider"]
