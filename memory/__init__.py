"""Conversation memory, context building and persistence."""

from .entity_memory import ConversationMemory, MemoryRole, pronoun_number
from .models import (
    Conversation, ConversationTurn, TurnPair, ClientSnapshot,
    ConversationSession, ConversationContext,
)
from .sqlite_store import SQLiteMemoryStore
from .context_manager import ContextBuilder

__all__ = [
    "ConversationMemory",
    "MemoryRole",
    "pronoun_number",
    "Conversation",
    "ConversationTurn",
    "TurnPair",
    "ClientSnapshot",
    "ConversationSession",
    "ConversationContext",
    "SQLiteMemoryStore",
    "ContextBuilder",
]
