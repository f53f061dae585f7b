"""Conversation state and the per-turn chat orchestrator."""

from .models import ChatMessage, MessageSource
from .orchestrator import ChatOrchestrator, create_orchestrator

__all__ = ["ChatMessage", "ChatOrchestrator", "MessageSource", "create_orchestrator"]
