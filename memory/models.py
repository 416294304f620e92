"""Memory data models."""

from collections import deque
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from schemas.actions import PendingAction
from schemas.context import Identity, Language
from .entity_memory import ConversationMemory


class ConversationTurn(BaseModel):
    """A single logged message in a conversation."""
    turn_id: int
    role: str  # "user" or "assistant"
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: Optional[Dict[str, Any]] = None  # response type, tool name, ...


class Conversation(BaseModel):
    """A complete logged conversation."""
    conversation_id: str
    company_id: str
    user_id: str
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    turns: List[ConversationTurn] = Field(default_factory=list)


class TurnPair(BaseModel):
    """One user utterance and the assistant's reply."""
    user: str
    assistant: str
    timestamp: datetime = Field(default_factory=datetime.now)


class ClientSnapshot(BaseModel):
    """The active client as shown in the prompt."""
    id: str
    name: str
    wedding_date: Optional[str] = None
    venue: Optional[str] = None
    budget: Optional[float] = None
    guest_count: Optional[int] = None
    wedding_type: Optional[str] = None
    status: Optional[str] = None
    guests_total: int = 0
    guests_confirmed: int = 0
    guests_pending: int = 0
    guests_declined: int = 0
    budget_paid: float = 0.0


class ConversationSession(BaseModel):
    """Mutable per-session state owned by the dialogue controller."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    session_id: str
    identity: Identity
    active_client_id: Optional[str] = None
    max_recent_turns: int = 10
    recent_turns: Deque[TurnPair] = Field(default_factory=deque)
    memory: ConversationMemory = Field(default_factory=ConversationMemory)
    pending_action: Optional[PendingAction] = None
    last_expired: Optional[PendingAction] = None
    turn_count: int = 0
    language: Language = Language.ENGLISH
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def company_id(self) -> str:
        return self.identity.company_id

    @property
    def user_id(self) -> str:
        return self.identity.user_id

    def add_turn(self, user: str, assistant: str):
        """Append a turn, dropping the oldest pairs beyond the cap (FIFO)."""
        self.recent_turns.append(TurnPair(user=user, assistant=assistant))
        while len(self.recent_turns) > self.max_recent_turns:
            self.recent_turns.popleft()


class ConversationContext(BaseModel):
    """Bounded snapshot of a session injected into every prompt."""
    company_id: str
    user_id: str
    active_client_id: Optional[str] = None
    active_client: Optional[ClientSnapshot] = None
    recent_turns: List[TurnPair] = Field(default_factory=list)
    entity_memory: List[str] = Field(default_factory=list)
    pending_tool: Optional[str] = None
