"""Pending actions, previews and execution results."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from .entities import EntityRef, ResolvedEntity
from utils.errors import InvalidTransitionError


class ActionState(str, Enum):
    """Lifecycle of a proposed mutation."""
    PROPOSED = "proposed"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    EXPIRED = "expired"
    EXECUTED = "executed"


_TRANSITIONS = {
    ActionState.PROPOSED: {ActionState.CONFIRMED, ActionState.REJECTED, ActionState.EXPIRED},
    ActionState.CONFIRMED: {ActionState.EXECUTED},
    ActionState.REJECTED: set(),
    ActionState.EXPIRED: set(),
    ActionState.EXECUTED: set(),
}


class PreviewField(BaseModel):
    """One argument as shown in a confirmation preview."""
    name: str
    value: Any = None
    display_value: str


class ActionPreview(BaseModel):
    """Human-readable preview of a mutation."""
    tool_name: str
    description: str
    fields: List[PreviewField] = Field(default_factory=list)
    cascade_effects: List[str] = Field(default_factory=list)
    details: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class PendingAction(BaseModel):
    """A mutation awaiting explicit confirmation."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tool_name: str
    resolved_args: Dict[str, Any] = Field(default_factory=dict)
    resolved_entities: Dict[str, List[ResolvedEntity]] = Field(default_factory=dict)
    preview: ActionPreview
    preview_text: str = ""
    state: ActionState = ActionState.PROPOSED
    proposed_at: datetime = Field(default_factory=datetime.now)
    proposed_turn: int = 0

    @property
    def cascade_preview(self) -> List[str]:
        return self.preview.cascade_effects

    @property
    def is_open(self) -> bool:
        return self.state in (ActionState.PROPOSED, ActionState.CONFIRMED)

    def transition(self, new_state: ActionState) -> None:
        """Move to ``new_state`` or raise if the transition is illegal."""
        if new_state not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"{self.tool_name}: {self.state.value} -> {new_state.value}"
            )
        self.state = new_state

    def is_expired(self, now: datetime, current_turn: int, ttl_seconds: int, max_turns: int) -> bool:
        if (now - self.proposed_at).total_seconds() > ttl_seconds:
            return True
        return current_turn - self.proposed_turn > max_turns


class CascadeRecord(BaseModel):
    """A secondary record written (or flagged) by a cascade."""
    action: str
    entity_type: str
    entity_id: str


class ExecutionResult(BaseModel):
    """Structured outcome of a tool execution."""
    tool_name: str
    success: bool = True
    message: str
    data: Any = None
    primary: Optional[EntityRef] = None
    affected: List[EntityRef] = Field(default_factory=list)
    cascade_results: List[CascadeRecord] = Field(default_factory=list)
