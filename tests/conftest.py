"""Pytest configuration and shared fixtures."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from relaychat.config.schema import RelayConfig
from relaychat.llm.local import LocalBackend


def make_chunk(content: str | None) -> SimpleNamespace:
    """Build an object shaped like an SDK ``ChatCompletionChunk``."""
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeStream:
    """Stands in for ``EngineStream``: fixed chunks and a fixed final message."""

    def __init__(self, deltas: list[str | None], final: str) -> None:
        self.deltas = deltas
        self.final = final

    async def __aiter__(self):
        for delta in self.deltas:
            yield make_chunk(delta)

    async def get_message(self) -> str:
        return self.final


@pytest.fixture
def make_engine():
    """Factory for fake local engines streaming fixed deltas."""

    def factory(deltas: list[str | None] | None = None, final: str | None = None) -> MagicMock:
        chunks = deltas or []
        message = final if final is not None else "".join(d or "" for d in chunks)
        engine = MagicMock()
        engine.stream = MagicMock(side_effect=lambda *args, **kwargs: FakeStream(chunks, message))
        engine.create = AsyncMock(return_value="{}")
        engine.close = AsyncMock()
        return engine

    return factory


@pytest.fixture
def default_config() -> RelayConfig:
    """Provide a default configuration for tests."""
    return RelayConfig()


@pytest.fixture
def mock_local() -> MagicMock:
    """Ready LocalBackend double whose structured calls return an empty object."""
    local = MagicMock(spec=LocalBackend)
    local.ready = True
    local.complete_json = AsyncMock(return_value={})
    local.complete = AsyncMock(return_value="local response")
    return local
