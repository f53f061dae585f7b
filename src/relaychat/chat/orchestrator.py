"""Chat orchestrator: routes each turn and folds streamed text into the conversation."""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from relaychat.errors import RedactionError
from relaychat.llm.client import Message, StreamingBackend
from relaychat.llm.local import LocalBackend
from relaychat.llm.remote import RemoteBackend
from relaychat.privacy.redactor import PrivacyRedactionService
from relaychat.routing.classifier import ComplexityClassifier
from relaychat.routing.models import RoutingDecision
from relaychat.routing.router import ModelRouter

from .models import ChatMessage, MessageSource

if TYPE_CHECKING:
    from relaychat.config.schema import RelayConfig

logger = logging.getLogger(__name__)

Listener = Callable[[list[ChatMessage]], None]

# Messages that never go back to a backend as context
_EXCLUDED_SOURCES = (MessageSource.ANALYZING, MessageSource.ERROR)


class ChatOrchestrator:
    """Owns the conversation and drives one task per user turn.

    Each turn appends a user message and a reply placeholder, resolves a
    routing decision, redacts names before remote calls and streams the
    reply into the placeholder. Placeholders are always addressed by id,
    so turns started concurrently never write into each other.
    """

    def __init__(
        self,
        local: StreamingBackend,
        remote: StreamingBackend,
        router: ModelRouter,
        redactor: PrivacyRedactionService | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            local: Local model adapter
            remote: Remote model adapter
            router: Per-turn routing
            redactor: Name redaction for remote calls (None disables it)
        """
        self.local = local
        self.remote = remote
        self.router = router
        self.redactor = redactor
        self.messages: list[ChatMessage] = []
        self._pending: set[str] = set()
        self._listeners: list[Listener] = []

    @property
    def is_loading(self) -> bool:
        return bool(self._pending)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback invoked with the message list after every change.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.messages)

    def _append(self, message: ChatMessage) -> None:
        self.messages.append(message)
        self._notify()

    def _update(
        self,
        message_id: str,
        *,
        text: str | None = None,
        source: MessageSource | None = None,
    ) -> None:
        for message in self.messages:
            if message.id == message_id:
                break
        else:
            logger.debug("Dropping update for unknown message %s", message_id)
            return

        if text is not None:
            message.text = text
        if source is not None:
            message.source = source
        self._notify()

    def _history(self) -> list[Message]:
        """Completed turns, excluding placeholders and error replies."""
        return [
            Message(role=msg.role, content=msg.text)
            for msg in self.messages
            if msg.source not in _EXCLUDED_SOURCES and msg.id not in self._pending
        ]

    async def send_message(self, raw_text: str) -> str | None:
        """Run one user turn to completion.

        The user message and an ``Analyzing`` placeholder are appended
        before the first suspension point. Failures are written into the
        placeholder as error text; they never propagate.

        Args:
            raw_text: Text as typed by the user, possibly with a backend tag

        Returns:
            The placeholder's id, or None if the input was blank
        """
        if not raw_text.strip():
            return None

        history = self._history()
        placeholder = ChatMessage(text="", is_user=False, source=MessageSource.ANALYZING)
        self._pending.add(placeholder.id)
        self._append(ChatMessage(text=raw_text, is_user=True, source=MessageSource.USER))
        self._append(placeholder)

        try:
            decision, outgoing = await self.router.route(raw_text)
            self._update(placeholder.id, source=self._source_for(decision))

            if decision.use_remote:
                final = await self._complete_remote(placeholder.id, outgoing, history)
            else:
                final = await self._complete_local(placeholder.id, outgoing, history)

            self._update(placeholder.id, text=final)
        except Exception as e:
            logger.exception("Turn %s failed", placeholder.id)
            self._update(
                placeholder.id,
                text=str(e) or "Unknown error",
                source=MessageSource.ERROR,
            )
        finally:
            self._pending.discard(placeholder.id)
            self._notify()

        return placeholder.id

    @staticmethod
    def _source_for(decision: RoutingDecision) -> MessageSource:
        return MessageSource.REMOTE if decision.use_remote else MessageSource.LOCAL

    async def _complete_local(self, message_id: str, text: str, history: list[Message]) -> str:
        def on_partial(partial: str) -> None:
            self._update(message_id, text=partial)

        return await self.local.complete([*history, Message(role="user", content=text)], on_partial)

    async def _complete_remote(self, message_id: str, text: str, history: list[Message]) -> str:
        outgoing_text = text
        outgoing_history = history
        macro_map: dict[str, str] = {}

        if self.redactor is not None:
            try:
                redaction = await self.redactor.redact_for_remote(text, history)
            except RedactionError as e:
                logger.warning("Sending unredacted text to the remote model: %s", e)
            else:
                outgoing_text = redaction.message
                outgoing_history = redaction.history
                macro_map = redaction.macro_map

        redactor = self.redactor

        def on_partial(partial: str) -> None:
            if redactor is not None and macro_map:
                partial = redactor.restore_partial(partial, macro_map)
            self._update(message_id, text=partial)

        final = await self.remote.complete(
            [*outgoing_history, Message(role="user", content=outgoing_text)],
            on_partial,
        )
        if redactor is not None and macro_map:
            final = redactor.restore_text(final, macro_map)
        return final

    def clear(self) -> None:
        """Drop the conversation and start a fresh redaction session."""
        self.messages.clear()
        if self.redactor is not None:
            self.redactor.clear_session()
        self._notify()


def create_orchestrator(config: "RelayConfig") -> ChatOrchestrator:
    """Wire adapters, router and redaction from configuration.

    The local engine is not started here; call
    ``orchestrator.local.initialize()`` before the first turn.

    Args:
        config: RelayConfig instance

    Returns:
        A ChatOrchestrator with its own redaction session
    """
    system_prompt = config.chat.system_prompt
    local = LocalBackend(config.local, system_prompt=system_prompt)
    remote = RemoteBackend(config.remote, system_prompt=system_prompt)
    router = ModelRouter(ComplexityClassifier(local, config.routing), config.routing)

    redactor = None
    if config.privacy.redact_remote:
        redactor = PrivacyRedactionService(local, config=config.privacy)

    return ChatOrchestrator(local=local, remote=remote, router=router, redactor=redactor)
