"""Session-scoped reversible redaction of person and organization names.

Components:

- :class:`PrivacyRedactionService` - Detects names with the local model and pseudonymizes them
- :class:`RedactionSession` - Pseudonym maps and per-type counters for one session
"""

from .models import (
    EntityType,
    PIIEntity,
    RedactionResult,
    RedactionSession,
    RemoteRedaction,
)
from .redactor import PrivacyRedactionService

__all__ = [
    "EntityType",
    "PIIEntity",
    "PrivacyRedactionService",
    "RedactionResult",
    "RedactionSession",
    "RemoteRedaction",
]
