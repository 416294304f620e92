"""Assistant response schemas."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from .actions import ActionPreview, ExecutionResult
from .context import Language
from .entities import ResolvedEntity


class ResponseType(str, Enum):
    """Kind of reply surfaced to the conversation."""
    TEXT = "text"
    CLARIFICATION = "clarification"
    CONFIRMATION_REQUIRED = "confirmation_required"
    RESULT = "result"
    ERROR = "error"


class AssistantResponse(BaseModel):
    """Reply to a single user utterance."""
    type: ResponseType
    content: str
    language: Language = Language.ENGLISH
    tool_name: Optional[str] = None
    pending_action_id: Optional[str] = None
    preview: Optional[ActionPreview] = None
    result: Optional[ExecutionResult] = None
    options: list[ResolvedEntity] = Field(default_factory=list)
    missing_field: Optional[str] = None
