"""Routing decision types."""

from dataclasses import dataclass
from enum import StrEnum


class Backend(StrEnum):
    """Which model handles a turn."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class ExplicitRoute:
    """The user named a backend with an inline tag."""

    backend: Backend

    @property
    def use_remote(self) -> bool:
        return self.backend == Backend.REMOTE

    @property
    def reason(self) -> str:
        return f"User requested the {self.backend.value} model"


@dataclass(frozen=True)
class ClassifiedRoute:
    """The backend was chosen by the word-count rule or the complexity classifier."""

    backend: Backend
    explanation: str
    score: float | None = None

    @property
    def use_remote(self) -> bool:
        return self.backend == Backend.REMOTE

    @property
    def reason(self) -> str:
        return self.explanation


RoutingDecision = ExplicitRoute | ClassifiedRoute


@dataclass
class ComplexityResult:
    """Outcome of scoring a prompt with the local model."""

    use_remote: bool
    explanation: str
    score: float | None = None
