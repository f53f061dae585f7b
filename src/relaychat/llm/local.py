"""Backend adapter for the locally executed model."""

import logging
import math
from typing import Any

from pydantic import BaseModel

from relaychat.config.schema import LocalModelConfig
from relaychat.errors import EngineNotReady, StructuredOutputError
from relaychat.llm.client import Message, PartialCallback
from relaychat.llm.engine import InitProgressCallback, LocalEngine, create_engine
from relaychat.llm.structured import extract_json, schema_response_format

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Rough token estimate from the word count (about 4 tokens per 3 words)."""
    return math.ceil(len(text.split()) * 4 / 3)


class LocalBackend:
    """Streams replies from the local engine and serves structured calls.

    The adapter is not ready until :meth:`initialize` succeeds; every call
    made before that raises :class:`EngineNotReady`.
    """

    def __init__(
        self,
        config: LocalModelConfig,
        system_prompt: str = "You are a helpful AI assistant.",
        engine: LocalEngine | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            config: Local model configuration
            system_prompt: Preamble prepended to every chat completion
            engine: Already initialized engine (skips :meth:`initialize`)
        """
        self.config = config
        self.system_prompt = system_prompt
        self._engine = engine

    @property
    def ready(self) -> bool:
        return self._engine is not None

    @property
    def max_tokens(self) -> int:
        if self.config.low_resource:
            return max(1, self.config.max_tokens // 2)
        return self.config.max_tokens

    async def initialize(self, progress_callback: InitProgressCallback | None = None) -> bool:
        """Create the engine. Failures are logged and leave the adapter not ready.

        Args:
            progress_callback: Receives progress reports while initializing

        Returns:
            True if the engine is ready
        """
        if self._engine is not None and self.config.use_cache:
            return True

        try:
            self._engine = await create_engine(self.config, progress_callback)
        except Exception:
            logger.exception("Error initializing local engine for %s", self.config.model)
            self._engine = None
            return False

        logger.info("Local engine initialized (%s)", self.config.model)
        return True

    def _require_engine(self) -> LocalEngine:
        if self._engine is None:
            raise EngineNotReady()
        return self._engine

    def _fit_context(self, history: list[Message]) -> list[Message]:
        """Drop the oldest turns until the prompt fits the context window.

        The newest turn is always kept, even if it alone exceeds the budget.
        """
        budget = self.config.context_window_size - self.max_tokens
        budget -= estimate_tokens(self.system_prompt)

        kept: list[Message] = []
        used = 0
        for msg in reversed(history):
            cost = estimate_tokens(msg.content)
            if kept and used + cost > budget:
                break
            kept.append(msg)
            used += cost

        dropped = len(history) - len(kept)
        if dropped:
            logger.debug("Trimmed %d oldest turns to fit the local context window", dropped)
        return list(reversed(kept))

    async def complete(self, history: list[Message], on_partial: PartialCallback) -> str:
        """Stream a reply from the local engine.

        Args:
            history: Ordered user/assistant turns, newest last
            on_partial: Called with the accumulated reply after every chunk

        Returns:
            The engine's authoritative final reply
        """
        engine = self._require_engine()

        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend(msg.to_dict() for msg in self._fit_context(history))

        stream = engine.stream(
            messages,
            temperature=self.config.temperature,
            max_tokens=self.max_tokens,
        )
        streamed = ""
        async for chunk in stream:
            delta = chunk.choices[0].delta.content if chunk.choices else None
            streamed += delta or ""
            on_partial(streamed)

        final = await stream.get_message()
        on_partial(final)
        return final

    async def complete_json(
        self,
        messages: list[Message],
        schema: type[BaseModel],
        *,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        """Run a structured-output call and decode the JSON object.

        Args:
            messages: Full prompt including any system message
            schema: Pydantic model describing the expected shape
            temperature: Sampling temperature
            max_tokens: Output budget

        Returns:
            The decoded JSON object (not validated against ``schema``)

        Raises:
            EngineNotReady: If the engine is not initialized
            StructuredOutputError: If no JSON object could be extracted
        """
        engine = self._require_engine()

        text = await engine.create(
            [msg.to_dict() for msg in messages],
            temperature=temperature,
            max_tokens=max_tokens,
            response_format=schema_response_format(schema),
        )

        data = extract_json(text)
        if data is None:
            raise StructuredOutputError(f"No JSON object in model output: {text[:80]!r}")
        return data

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.close()
