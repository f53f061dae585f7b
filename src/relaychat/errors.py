"""Exception types shared across relaychat.

Only :class:`ConfigurationError`, :class:`EngineNotReady` and
:class:`BackendError` are meant to reach the user. The remaining kinds are
absorbed by the component that raised them with a deterministic fallback.
"""


class RelayChatError(Exception):
    """Base class for relaychat errors."""


class ConfigurationError(RelayChatError):
    """Missing or invalid configuration (e.g. no remote API key)."""


class EngineNotReady(RelayChatError):
    """The local engine was used before initialization completed."""

    def __init__(self, message: str = "Local engine not initialized") -> None:
        super().__init__(message)


class BackendError(RelayChatError):
    """Network failure or non-success response from a model backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClassificationError(RelayChatError):
    """Complexity classification failed; callers fall back to a default route."""


class RedactionError(RelayChatError):
    """Redaction failed; callers fall back to sending unredacted text."""


class StreamParseError(RelayChatError):
    """A single streamed frame could not be decoded."""


class StructuredOutputError(RelayChatError):
    """The local model returned no parseable JSON object."""
