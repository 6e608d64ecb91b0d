"""
LLM client -- OpenAI-compatible chat completions for message and issue generation.

Any OpenAI-compatible provider works: set LLM_API_KEY, LLM_BASE_URL, LLM_MODEL.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Request
from openai import AsyncOpenAI

from dealtracker.config import LLM_API_KEY, LLM_BASE_URL, LLM_MODEL, LLM_TIMEOUT

logger = logging.getLogger(__name__)


class LLMClient:
    """Thin async wrapper around ``AsyncOpenAI.chat.completions``."""

    def __init__(
        self,
        api_key: str = LLM_API_KEY,
        base_url: str = LLM_BASE_URL,
        model_name: str = LLM_MODEL,
        client=None,
    ):
        self.model_name = model_name
        self.client: Optional[AsyncOpenAI] = client
        if self.client is None and api_key:
            self._initialize_client(api_key, base_url)

    def _initialize_client(self, api_key: str, base_url: str):
        try:
            self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=LLM_TIMEOUT)
            logger.info("LLM client initialised: %s via %s", self.model_name, base_url)
        except Exception as e:
            logger.error("LLM client initialisation failed (%s): %s", self.model_name, e)
            self.client = None

    @property
    def is_ready(self) -> bool:
        return self.client is not None

    async def complete(
        self,
        prompt: str,
        system: str = "",
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ) -> str:
        """Run one chat completion and return the stripped text ("" if none)."""
        if not self.client:
            raise RuntimeError("LLM client is not configured (set LLM_API_KEY)")

        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = await self.client.chat.completions.create(
            model=self.model_name,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

    async def aclose(self):
        if self.client is not None:
            await self.client.close()


def get_llm_client(request: Request) -> LLMClient:
    """The client built in the app lifespan."""
    return request.app.state.llm_client
