from __future__ import annotations

from abc import ABC, abstractmethod


class LLMTransport(ABC):
    """Abstract base for anything that can answer a prompt with text."""

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the assistant's raw text reply."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Verify the LLM endpoint is reachable and authenticated."""
        ...

    async def aclose(self) -> None:
        """Release any underlying connections."""
        return None
