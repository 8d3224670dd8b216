"""OpenAI-compatible chat-completions transport."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from valueassess.config.settings import Settings
from valueassess.errors import LLMTimeoutError, StageError, TransportError
from valueassess.parsing import parse_json
from valueassess.prompts.system_prompt import CONNECTIVITY_PROBE_PROMPT, SYSTEM_PROMPT

from .base import LLMTransport

logger = logging.getLogger(__name__)


class OpenAIChatProvider(LLMTransport):
    """Posts ``{model, messages}`` to a chat-completions endpoint over httpx."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or Settings()
        self._client = client or httpx.AsyncClient(timeout=self._settings.request_timeout)

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._settings.openai_model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }
        if self._settings.max_completion_tokens is not None:
            payload["max_tokens"] = self._settings.max_completion_tokens
        if self._settings.temperature is not None:
            payload["temperature"] = self._settings.temperature
        return payload

    async def complete(self, prompt: str) -> str:
        try:
            resp = await self._client.post(
                self._settings.openai_api_url,
                json=self._build_payload(prompt),
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._settings.openai_api_key}",
                },
            )
        except httpx.TimeoutException as e:
            raise LLMTimeoutError(f"OpenAI request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"OpenAI request failed: {e}") from e

        if resp.status_code != 200:
            raise TransportError(
                f"OpenAI API error: {resp.status_code} {resp.reason_phrase} - {resp.text}",
                status_code=resp.status_code,
            )

        try:
            payload = resp.json()
        except ValueError as e:
            raise TransportError("OpenAI API returned a non-JSON body", status_code=resp.status_code) from e

        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise TransportError("Empty response content from OpenAI API.", status_code=resp.status_code)

        return content

    async def health_check(self) -> bool:
        try:
            parse_json(await self.complete(CONNECTIVITY_PROBE_PROMPT))
            return True
        except StageError as e:
            logger.error(f"OpenAI connectivity check failed: {e}")
            return False

    async def aclose(self) -> None:
        await self._client.aclose()
