"""Pydantic schemas for the WeddingFlow assistant."""

from .entities import (
    EntityType, Scope, EntityRef, ResolvedEntity,
    ResolvedMatch, AmbiguousMatch, NoMatch, Resolution,
)
from .context import Language, Identity
from .tools import ToolKind, ToolCategory, ToolDefinition, ToolCallRequest
from .actions import (
    ActionState, PendingAction, ActionPreview, PreviewField,
    CascadeRecord, ExecutionResult,
)
from .responses import ResponseType, AssistantResponse

__all__ = [
    "EntityType",
    "Scope",
    "EntityRef",
    "ResolvedEntity",
    "ResolvedMatch",
    "AmbiguousMatch",
    "NoMatch",
    "Resolution",
    "Language",
    "Identity",
    "ToolKind",
    "ToolCategory",
    "ToolDefinition",
    "ToolCallRequest",
    "ActionState",
    "PendingAction",
    "ActionPreview",
    "PreviewField",
    "CascadeRecord",
    "ExecutionResult",
    "ResponseType",
    "AssistantResponse",
]
