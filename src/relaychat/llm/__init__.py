"""Model backends: the local engine adapter and the remote SSE adapter."""

from .client import Message, PartialCallback, StreamingBackend
from .engine import InitProgress, LocalEngine, create_engine
from .local import LocalBackend
from .remote import RemoteBackend

__all__ = [
    "InitProgress",
    "LocalBackend",
    "LocalEngine",
    "Message",
    "PartialCallback",
    "RemoteBackend",
    "StreamingBackend",
    "create_engine",
]
