"""In-process handle on the locally executed model.

The engine talks to a local OpenAI-compatible runtime (Ollama, llama.cpp,
MLC serve) through the OpenAI SDK. Each streamed reply is an
:class:`EngineStream` that yields raw completion chunks and keeps its own
record of the message, so callers can fetch the authoritative final text
once the stream ends without seeing text from concurrent streams.
"""

import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any

import openai
from openai import AsyncOpenAI

from relaychat.config.schema import LocalModelConfig
from relaychat.errors import BackendError
from relaychat.hardware.detect import has_enough_vram

logger = logging.getLogger(__name__)


@dataclass
class InitProgress:
    """Engine initialization progress report."""

    progress: float  # 0.0 .. 1.0
    time_elapsed: float  # seconds since initialization started
    text: str


InitProgressCallback = Callable[[InitProgress], None]


class EngineStream:
    """One streamed completion and the text it has produced so far."""

    def __init__(self, client: AsyncOpenAI, params: dict[str, Any]) -> None:
        self._client = client
        self._params = params
        self._message = ""

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._chunks()

    async def _chunks(self) -> AsyncIterator[Any]:
        self._message = ""
        try:
            stream = await self._client.chat.completions.create(**self._params, stream=True)
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    self._message += chunk.choices[0].delta.content
                yield chunk
        except openai.APIError as e:
            raise BackendError(f"Local completion failed: {e}") from e

    async def get_message(self) -> str:
        """Return the full text of this reply."""
        return self._message


class LocalEngine:
    """Chat completions against the local runtime."""

    def __init__(self, config: LocalModelConfig, client: AsyncOpenAI | None = None) -> None:
        """Initialize the engine.

        Args:
            config: Local model configuration
            client: Preconfigured SDK client (mainly for tests)
        """
        self.config = config
        # Local runtimes ignore the key but the SDK requires one
        self.client = client or AsyncOpenAI(
            base_url=config.base_url,
            api_key="local",
            timeout=config.timeout,
        )

    async def list_models(self) -> list[str]:
        """List model identifiers served by the runtime."""
        try:
            page = await self.client.models.list()
        except openai.APIError as e:
            raise BackendError(f"Local runtime unavailable: {e}") from e
        return [model.id for model in page.data]

    async def create(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
        response_format: dict[str, Any] | None = None,
    ) -> str:
        """Run a non-streaming completion and return the reply text."""
        params: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if response_format:
            params["response_format"] = response_format

        try:
            response = await self.client.chat.completions.create(**params)
        except openai.APIError as e:
            raise BackendError(f"Local completion failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    def stream(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> EngineStream:
        """Start a streamed completion.

        Returns:
            An async iterable of raw ``ChatCompletionChunk`` objects that also
            holds the reply text
        """
        return EngineStream(
            self.client,
            {
                "model": self.config.model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )

    async def close(self) -> None:
        await self.client.close()


async def create_engine(
    config: LocalModelConfig,
    progress_callback: InitProgressCallback | None = None,
    client: AsyncOpenAI | None = None,
) -> LocalEngine:
    """Create a local engine and confirm the runtime is reachable.

    Args:
        config: Local model configuration
        progress_callback: Receives progress reports while initializing
        client: Preconfigured SDK client (mainly for tests)

    Returns:
        A ready engine

    Raises:
        BackendError: If the local runtime cannot be reached
    """
    started = time.monotonic()

    def report(progress: float, text: str) -> None:
        if progress_callback is not None:
            progress_callback(
                InitProgress(progress=progress, time_elapsed=time.monotonic() - started, text=text)
            )

    report(0.0, f"Checking hardware for {config.model}")
    if not has_enough_vram(config.vram_required_mb):
        logger.warning(
            "Detected VRAM is below the %.0f MB recommended for %s",
            config.vram_required_mb,
            config.model,
        )

    report(0.3, f"Connecting to local runtime at {config.base_url}")
    engine = LocalEngine(config, client=client)
    available = await engine.list_models()
    if config.model not in available:
        logger.warning(
            "Model %s is not listed by the local runtime (available: %s)",
            config.model,
            ", ".join(available) or "none",
        )
        if config.model_url:
            logger.info("Model artifacts for %s: %s", config.model, config.model_url)
        if config.model_lib:
            logger.info("Model library for %s: %s", config.model, config.model_lib)

    report(1.0, f"Finish loading {config.model}")
    return engine
