"""Backend protocol and message types shared by both adapters."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

# Receives the full text streamed so far, never just the latest delta.
PartialCallback = Callable[[str], None]


@dataclass
class Message:
    """A role-tagged turn sent to a model backend."""

    role: str  # "system", "user", "assistant"
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class StreamingBackend(Protocol):
    """Protocol implemented by the local and remote adapters."""

    async def complete(self, history: list[Message], on_partial: PartialCallback) -> str:
        """Stream a reply for the conversation.

        The adapter prepends its own system preamble to ``history``.

        Args:
            history: Ordered user/assistant turns, newest last
            on_partial: Called with the accumulated reply after every chunk

        Returns:
            The complete reply text
        """
        ...
