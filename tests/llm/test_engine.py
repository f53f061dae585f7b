"""Tests for the local engine wrapper."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from relaychat.config.schema import LocalModelConfig
from relaychat.errors import BackendError
from relaychat.llm.engine import LocalEngine, create_engine


def make_chunk(content):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


def _client(models=("Llama-3.2-1B-Instruct-q4f32_1-MLC",), chunks=()):
    client = MagicMock()
    client.models.list = AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(id=m) for m in models])
    )

    async def stream():
        for chunk in chunks:
            yield chunk

    client.chat.completions.create = AsyncMock(return_value=stream())
    client.close = AsyncMock()
    return client


class TestLocalEngine:
    @pytest.mark.asyncio
    async def test_stream_records_its_message(self):
        client = _client(chunks=[make_chunk("Hi"), make_chunk(None), make_chunk(" there")])
        engine = LocalEngine(LocalModelConfig(), client=client)

        stream = engine.stream(
            [{"role": "user", "content": "hello"}], temperature=0.7, max_tokens=100
        )
        chunks = [chunk async for chunk in stream]

        assert len(chunks) == 3
        assert await stream.get_message() == "Hi there"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["model"] == "Llama-3.2-1B-Instruct-q4f32_1-MLC"
        assert kwargs["max_tokens"] == 100

    @pytest.mark.asyncio
    async def test_interleaved_streams_keep_separate_messages(self):
        client = _client()

        async def chunks(prompt):
            yield make_chunk(f"{prompt}-a ")
            await asyncio.sleep(0)
            yield make_chunk(f"{prompt}-b")

        client.chat.completions.create = AsyncMock(
            side_effect=lambda **kwargs: chunks(kwargs["messages"][-1]["content"])
        )
        engine = LocalEngine(LocalModelConfig(), client=client)

        async def run(prompt):
            stream = engine.stream(
                [{"role": "user", "content": prompt}], temperature=0.7, max_tokens=100
            )
            async for _ in stream:
                await asyncio.sleep(0)
            return await stream.get_message()

        assert await asyncio.gather(run("one"), run("two")) == ["one-a one-b", "two-a two-b"]

    @pytest.mark.asyncio
    async def test_stream_api_error_becomes_backend_error(self):
        client = _client()
        request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=request)
        )
        engine = LocalEngine(LocalModelConfig(), client=client)

        with pytest.raises(BackendError):
            async for _ in engine.stream([], temperature=0.7, max_tokens=100):
                pass

    @pytest.mark.asyncio
    async def test_create_passes_response_format(self):
        client = _client()
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content='{"score": 2}'))]
        )
        client.chat.completions.create = AsyncMock(return_value=response)
        engine = LocalEngine(LocalModelConfig(), client=client)

        text = await engine.create(
            [{"role": "user", "content": "rate"}],
            temperature=0.1,
            max_tokens=200,
            response_format={"type": "json_object"},
        )

        assert text == '{"score": 2}'
        assert client.chat.completions.create.call_args.kwargs["response_format"] == {
            "type": "json_object"
        }

    @pytest.mark.asyncio
    async def test_api_error_becomes_backend_error(self):
        client = _client()
        request = httpx.Request("POST", "http://localhost:11434/v1/chat/completions")
        client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=request)
        )
        engine = LocalEngine(LocalModelConfig(), client=client)

        with pytest.raises(BackendError):
            await engine.create([], temperature=0.1, max_tokens=10)


class TestCreateEngine:
    @pytest.mark.asyncio
    async def test_reports_progress(self):
        reports = []

        with patch("relaychat.llm.engine.has_enough_vram", return_value=True):
            engine = await create_engine(LocalModelConfig(), reports.append, client=_client())

        assert isinstance(engine, LocalEngine)
        assert [r.progress for r in reports] == [0.0, 0.3, 1.0]
        assert reports[-1].text.startswith("Finish loading")
        assert all(r.time_elapsed >= 0 for r in reports)

    @pytest.mark.asyncio
    async def test_low_vram_warns(self, caplog):
        with patch("relaychat.llm.engine.has_enough_vram", return_value=False):
            await create_engine(LocalModelConfig(), client=_client())

        assert "below the" in caplog.text

    @pytest.mark.asyncio
    async def test_unlisted_model_warns(self, caplog):
        with patch("relaychat.llm.engine.has_enough_vram", return_value=True):
            await create_engine(LocalModelConfig(), client=_client(models=("other",)))

        assert "not listed" in caplog.text

    @pytest.mark.asyncio
    async def test_unreachable_runtime(self):
        client = _client()
        request = httpx.Request("GET", "http://localhost:11434/v1/models")
        client.models.list = AsyncMock(side_effect=openai.APIConnectionError(request=request))

        with (
            patch("relaychat.llm.engine.has_enough_vram", return_value=True),
            pytest.raises(BackendError, match="Local runtime unavailable"),
        ):
            await create_engine(LocalModelConfig(), client=client)
