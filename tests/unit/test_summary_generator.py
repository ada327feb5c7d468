"""Streaming relay over an OpenAI-compatible client."""

from types import SimpleNamespace

import httpx
import openai
import pytest

from eurolens.summaries.service import STREAM_ERROR_MARKER, SummaryGenerator, SummaryProviderError

REQUEST = httpx.Request("POST", "https://llm.test/v1/chat/completions")


def chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeCompletions:
    def __init__(self, chunks=None, error=None, fail_after=None):
        self.chunks = chunks or []
        self.error = error
        self.fail_after = fail_after
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self._stream()

    async def _stream(self):
        for i, item in enumerate(self.chunks):
            if self.fail_after is not None and i == self.fail_after:
                raise openai.APIConnectionError(request=REQUEST)
            yield item


def make_generator(completions):
    client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return SummaryGenerator(client, "test-model")


async def collect(iterator):
    return [piece async for piece in iterator]


class TestStream:
    @pytest.mark.asyncio
    async def test_relays_text_in_order(self):
        completions = FakeCompletions([chunk("## What"), chunk(None), SimpleNamespace(choices=[]), chunk(" is it?")])
        generator = make_generator(completions)

        pieces = await collect(await generator.stream("system", "user"))

        assert pieces == ["## What", " is it?"]
        assert completions.kwargs["model"] == "test-model"
        assert completions.kwargs["stream"] is True
        assert completions.kwargs["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    async def test_provider_rate_limit(self):
        error = openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None)
        generator = make_generator(FakeCompletions(error=error))
        with pytest.raises(SummaryProviderError) as exc_info:
            await generator.stream("system", "user")
        assert exc_info.value.rate_limited is True

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        generator = make_generator(FakeCompletions(error=openai.APIConnectionError(request=REQUEST)))
        with pytest.raises(SummaryProviderError) as exc_info:
            await generator.stream("system", "user")
        assert exc_info.value.rate_limited is False

    @pytest.mark.asyncio
    async def test_mid_stream_failure_appends_marker(self):
        generator = make_generator(FakeCompletions([chunk("partial"), chunk("never")], fail_after=1))
        pieces = await collect(await generator.stream("system", "user"))
        assert pieces == ["partial", STREAM_ERROR_MARKER]
