"""Entity references and resolution outcomes."""

from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class EntityType(str, Enum):
    """Business record types the assistant can reference."""
    CLIENT = "client"
    GUEST = "guest"
    VENDOR = "vendor"
    EVENT = "event"
    BUDGET_ITEM = "budget_item"
    HOTEL_BOOKING = "hotel_booking"
    GIFT = "gift"
    TIMELINE_ITEM = "timeline_item"

    @property
    def client_scoped(self) -> bool:
        """Whether records of this type belong to a single client."""
        return self not in (EntityType.CLIENT, EntityType.VENDOR)


class Scope(BaseModel):
    """Tenant scope applied to every store read and write."""
    model_config = ConfigDict(frozen=True)

    company_id: str
    client_id: Optional[str] = None

    def for_client(self, client_id: Optional[str]) -> "Scope":
        return Scope(company_id=self.company_id, client_id=client_id)


class EntityRef(BaseModel):
    """Lightweight pointer to a stored record."""
    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    id: str
    display_name: str


class ResolvedEntity(EntityRef):
    """An entity produced by the resolver, with its match confidence."""
    match_confidence: float = Field(1.0, ge=0.0, le=1.0)

    def to_ref(self) -> EntityRef:
        return EntityRef(
            entity_type=self.entity_type,
            id=self.id,
            display_name=self.display_name,
        )


class ResolvedMatch(BaseModel):
    """Exactly one candidate cleared the confidence threshold."""
    entity: ResolvedEntity


class AmbiguousMatch(BaseModel):
    """Several candidates tie within the ambiguity margin."""
    query: str
    entity_type: EntityType
    candidates: list[ResolvedEntity] = Field(default_factory=list)


class NoMatch(BaseModel):
    """No candidate cleared the confidence threshold."""
    query: str
    entity_type: EntityType


Resolution = Union[ResolvedMatch, AmbiguousMatch, NoMatch]
