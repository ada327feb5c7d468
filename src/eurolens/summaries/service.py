"""Streaming summary generation over an OpenAI-compatible chat endpoint."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx
import openai
import structlog
from openai import AsyncOpenAI

logger = structlog.get_logger()

STREAM_ERROR_MARKER = "\n\n[error]\n"


class SummaryProviderError(Exception):
    """The provider refused or failed the request before streaming began."""

    def __init__(self, message: str, *, rate_limited: bool = False) -> None:
        super().__init__(message)
        self.rate_limited = rate_limited


class SummaryGenerator:
    """Relays provider text chunks verbatim, in emission order."""

    def __init__(self, client: AsyncOpenAI, model: str) -> None:
        self.client = client
        self.model = model

    async def stream(self, system_prompt: str, user_prompt: str) -> AsyncIterator[str]:
        """
        Start a generation and return an iterator over its text chunks.

        Raises:
            SummaryProviderError: If the provider rejects the request
                (``rate_limited`` is set for provider-side throttling).
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                stream=True,
            )
        except openai.RateLimitError as e:
            logger.warning("summary_provider_rate_limited", error=str(e))
            msg = "Summary provider is rate limited"
            raise SummaryProviderError(msg, rate_limited=True) from e
        except openai.OpenAIError as e:
            logger.error("summary_provider_failed", error=str(e))
            msg = "Failed to generate summary"
            raise SummaryProviderError(msg) from e

        return self._relay(response)

    async def _relay(self, response: Any) -> AsyncIterator[str]:
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                content = chunk.choices[0].delta.content
                if content:
                    yield content
        except (openai.OpenAIError, httpx.HTTPError) as e:
            logger.warning("summary_stream_interrupted", error=str(e))
            yield STREAM_ERROR_MARKER
