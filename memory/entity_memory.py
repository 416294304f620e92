"""Short-term entity memory used for pronoun and ellipsis resolution."""

import itertools
import logging
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from schemas.entities import EntityType, ResolvedEntity

logger = logging.getLogger(__name__)


class MemoryRole(str, Enum):
    """Semantic slot an entity occupies in the conversation."""
    LAST_CLIENT = "lastClient"
    LAST_GUEST = "lastGuest"
    LAST_PLURAL_GUESTS = "lastPluralGuests"
    LAST_VENDOR = "lastVendor"
    LAST_PLURAL_VENDORS = "lastPluralVendors"
    LAST_EVENT = "lastEvent"
    LAST_BUDGET_ITEM = "lastBudgetItem"
    LAST_PLURAL_BUDGET_ITEMS = "lastPluralBudgetItems"
    LAST_HOTEL_BOOKING = "lastHotelBooking"
    LAST_GIFT = "lastGift"
    LAST_TIMELINE_ITEM = "lastTimelineItem"
    LAST_PLURAL_TIMELINE_ITEMS = "lastPluralTimelineItems"

    @property
    def plural(self) -> bool:
        return self.value.startswith("lastPlural")

    @property
    def entity_type(self) -> EntityType:
        return _ROLE_TYPES[self]

    @classmethod
    def for_type(cls, entity_type: EntityType, plural: bool = False) -> Optional["MemoryRole"]:
        """Role that stores entities of ``entity_type``, if one exists."""
        for role, role_type in _ROLE_TYPES.items():
            if role_type == entity_type and role.plural == plural:
                return role
        return None


_ROLE_TYPES = {
    MemoryRole.LAST_CLIENT: EntityType.CLIENT,
    MemoryRole.LAST_GUEST: EntityType.GUEST,
    MemoryRole.LAST_PLURAL_GUESTS: EntityType.GUEST,
    MemoryRole.LAST_VENDOR: EntityType.VENDOR,
    MemoryRole.LAST_PLURAL_VENDORS: EntityType.VENDOR,
    MemoryRole.LAST_EVENT: EntityType.EVENT,
    MemoryRole.LAST_BUDGET_ITEM: EntityType.BUDGET_ITEM,
    MemoryRole.LAST_PLURAL_BUDGET_ITEMS: EntityType.BUDGET_ITEM,
    MemoryRole.LAST_HOTEL_BOOKING: EntityType.HOTEL_BOOKING,
    MemoryRole.LAST_GIFT: EntityType.GIFT,
    MemoryRole.LAST_TIMELINE_ITEM: EntityType.TIMELINE_ITEM,
    MemoryRole.LAST_PLURAL_TIMELINE_ITEMS: EntityType.TIMELINE_ITEM,
}

SINGULAR_PRONOUNS = {"it", "that", "this", "he", "him", "his", "she", "her", "hers"}
PLURAL_PRONOUNS = {"those", "these", "the others", "all of them", "everyone"}
# Singular "they" is common, so these follow the slot the argument expects
EITHER_PRONOUNS = {"they", "them", "their", "theirs"}


def pronoun_number(text: str) -> Optional[str]:
    """Return "singular", "plural" or "either" when ``text`` is a pronoun."""
    word = (text or "").strip().lower()
    if word in SINGULAR_PRONOUNS:
        return "singular"
    if word in PLURAL_PRONOUNS:
        return "plural"
    if word in EITHER_PRONOUNS:
        return "either"
    return None


class MemoryEntry(BaseModel):
    """A remembered entity (or plural snapshot) for one role."""
    role: MemoryRole
    entities: List[ResolvedEntity] = Field(default_factory=list)
    sequence: int


class ConversationMemory:
    """Last-write-wins mapping from semantic roles to resolved entities.

    Plural roles keep the list snapshot taken when they were written; later
    changes to the underlying records are not reflected.
    """

    def __init__(self):
        self._entries: Dict[MemoryRole, MemoryEntry] = {}
        self._counter = itertools.count(1)

    def remember(self, role: MemoryRole, entity: Union[ResolvedEntity, List[ResolvedEntity]]):
        """Overwrite ``role`` with ``entity`` (a list for plural roles)."""
        entities = list(entity) if isinstance(entity, (list, tuple)) else [entity]
        if not entities:
            return
        if not role.plural and len(entities) != 1:
            raise ValueError(f"{role.value} holds exactly one entity")
        for item in entities:
            if item.entity_type != role.entity_type:
                raise ValueError(f"{role.value} cannot hold a {item.entity_type.value}")
        self._entries[role] = MemoryEntry(role=role, entities=entities, sequence=next(self._counter))
        logger.debug(f"Remembered {role.value}: {[e.display_name for e in entities]}")

    def remember_entities(self, entities: List[ResolvedEntity]):
        """Fold resolved entities into memory under their natural roles.

        One entity updates the singular role for its type; several of the
        same type update the plural role.
        """
        by_type: Dict[EntityType, List[ResolvedEntity]] = {}
        for entity in entities:
            by_type.setdefault(entity.entity_type, []).append(entity)
        for entity_type, items in by_type.items():
            if len(items) == 1:
                role = MemoryRole.for_type(entity_type)
                if role:
                    self.remember(role, items[0])
            else:
                role = MemoryRole.for_type(entity_type, plural=True)
                if role:
                    self.remember(role, items)

    def recall(self, role: MemoryRole) -> Optional[ResolvedEntity]:
        entry = self._entries.get(role)
        if entry is None or role.plural:
            return None
        return entry.entities[0]

    def recall_plural(self, role: MemoryRole) -> Optional[List[ResolvedEntity]]:
        entry = self._entries.get(role)
        if entry is None or not role.plural:
            return None
        return list(entry.entities)

    def _latest(self, plural: bool, entity_type: Optional[EntityType] = None) -> Optional[MemoryEntry]:
        entries = [
            e for e in self._entries.values()
            if e.role.plural == plural and (entity_type is None or e.role.entity_type == entity_type)
        ]
        return max(entries, key=lambda e: e.sequence) if entries else None

    def resolve_pronoun(
        self,
        pronoun: str,
        entity_type: Optional[EntityType] = None,
        expects_list: bool = False
    ) -> Optional[List[ResolvedEntity]]:
        """
        Map a pronoun to remembered entities.

        Singular pronouns take the most recent singular entry and plural
        pronouns the most recent plural entry. When the caller knows which
        entity type the argument needs, only entries of that type are
        considered. "they/them/their" follow the argument's shape.

        Returns:
            The matching entities, or None when nothing suitable is
            remembered (the caller should ask rather than guess)
        """
        number = pronoun_number(pronoun)
        if number is None:
            return None

        if number == "either":
            if entity_type is None:
                number = "plural"
            else:
                number = "plural" if expects_list else "singular"

        if number == "singular":
            entry = self._latest(False, entity_type)
            if entry is None and entity_type is not None:
                plural_entry = self._latest(True, entity_type)
                if plural_entry and len(plural_entry.entities) == 1:
                    entry = plural_entry
        else:
            entry = self._latest(True, entity_type)
            if entry is None and entity_type is not None and expects_list:
                entry = self._latest(False, entity_type)

        return list(entry.entities) if entry else None

    def recency(self, entity_id: str) -> int:
        """Sequence number of the latest entry mentioning ``entity_id`` (0 if none)."""
        best = 0
        for entry in self._entries.values():
            if any(e.id == entity_id for e in entry.entities):
                best = max(best, entry.sequence)
        return best

    def is_empty(self) -> bool:
        return not self._entries

    def summary(self) -> List[str]:
        """One line per role, most recent first."""
        lines = []
        for entry in sorted(self._entries.values(), key=lambda e: e.sequence, reverse=True):
            names = ", ".join(f"{e.display_name} ({e.id})" for e in entry.entities)
            lines.append(f"{entry.role.value}: {names}")
        return lines
