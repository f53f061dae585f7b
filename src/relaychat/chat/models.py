"""Conversation message types."""

import uuid
from dataclasses import dataclass, field
from enum import StrEnum


class MessageSource(StrEnum):
    """Who produced a message, or where its reply is in the pipeline."""

    USER = "User"
    LOCAL = "Local"
    REMOTE = "Remote"
    ANALYZING = "Analyzing"  # reply placeholder while the route is decided
    ERROR = "Error"


@dataclass
class ChatMessage:
    """A message in the visible conversation."""

    text: str
    is_user: bool
    source: MessageSource
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def role(self) -> str:
        return "user" if self.is_user else "assistant"
