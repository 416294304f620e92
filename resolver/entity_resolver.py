"""Entity resolver: maps free-text references to scoped entity records."""

import re
import logging
from typing import Dict, List, Optional, Tuple

from rapidfuzz import fuzz, process

from schemas.entities import (
    EntityType, Scope, ResolvedEntity,
    ResolvedMatch, AmbiguousMatch, NoMatch, Resolution,
)
from store.entity_store import EntityStore
from store.records import display_name, searchable_names
from utils.errors import EntityNotFoundError

logger = logging.getLogger(__name__)

FUZZY_CUTOFF = 88
RECENCY_BOOST = 0.02


def normalize(text: str) -> str:
    """Lowercase, drop punctuation (keeping & and -) and collapse whitespace."""
    text = re.sub(r"[^\w\s&'-]", " ", (text or "").lower())
    return re.sub(r"\s+", " ", text).strip()


def structural_score(query: str, name: str) -> float:
    """
    Score a normalized query against a normalized name without fuzzing.

    Exact matches score 1.0; token-subset matches ("priya" in "priya
    sharma") 0.7-1.0 and prefix/substring matches 0.55-0.85, both weighted
    by how much of the name the query covers. Anything else scores 0.
    """
    if not query or not name:
        return 0.0
    if query == name:
        return 1.0
    coverage = len(query) / len(name)
    if set(query.split()) <= set(name.split()):
        return 0.7 + 0.3 * coverage
    if name.startswith(query) or query in name:
        return 0.55 + 0.3 * coverage
    return 0.0


class EntityResolver:
    """Resolves names and ids to entities within a company/client scope."""

    def __init__(
        self,
        store: EntityStore,
        threshold: float = 0.5,
        ambiguity_margin: float = 0.1
    ):
        """
        Initialize resolver.

        Args:
            store: Entity store to search
            threshold: Minimum confidence for a candidate to count
            ambiguity_margin: Candidates within this distance of the best
                score make the reference ambiguous
        """
        self.store = store
        self.threshold = threshold
        self.ambiguity_margin = ambiguity_margin

    async def resolve(
        self,
        query_text: str,
        entity_type: Optional[EntityType],
        scope: Scope,
        memory=None
    ) -> Resolution:
        """
        Resolve a reference to a single entity, an ambiguity, or no match.

        Args:
            query_text: Name, partial name or id as the user wrote it
            entity_type: Narrows the search when the argument's type is known
            scope: Caller's tenant scope; nothing outside it is considered
            memory: Optional ConversationMemory used to rank recent mentions

        Returns:
            ResolvedMatch, AmbiguousMatch or NoMatch
        """
        types = [entity_type] if entity_type else list(EntityType)
        query = normalize(query_text)
        fallback_type = entity_type or EntityType.GUEST

        if not query:
            return NoMatch(query=query_text or "", entity_type=fallback_type)

        direct = await self._lookup_id(query_text.strip(), types, scope)
        if direct:
            return ResolvedMatch(entity=direct)

        scored: List[Tuple[float, ResolvedEntity]] = []
        for current_type in types:
            records = await self.store.query(current_type, scope)
            for record in records:
                if not self._within_scope(current_type, record, scope):
                    logger.warning(f"Store returned out-of-scope {current_type.value} {record.get('id')}")
                    continue
                score = self._score_record(query, current_type, record)
                if score >= self.threshold:
                    scored.append((score, ResolvedEntity(
                        entity_type=current_type,
                        id=record["id"],
                        display_name=display_name(current_type, record),
                        match_confidence=round(min(score, 1.0), 4),
                    )))

        if not scored:
            logger.info(f"No {fallback_type.value} match for '{query_text}'")
            return NoMatch(query=query_text, entity_type=fallback_type)

        exact = [entity for score, entity in scored if score >= 1.0]
        if len(exact) == 1:
            return ResolvedMatch(entity=exact[0])

        # Recency orders candidates but never decides between near-ties
        scored.sort(key=lambda item: (item[0] + self._recency_boost(item[1].id, memory), item[1].display_name), reverse=True)
        best = max(score for score, _ in scored)
        contenders = [entity for score, entity in scored if best - score <= self.ambiguity_margin]

        if len(contenders) == 1:
            logger.info(f"Resolved '{query_text}' to {contenders[0].entity_type.value} {contenders[0].id}")
            return ResolvedMatch(entity=contenders[0])

        logger.info(f"'{query_text}' is ambiguous between {[c.id for c in contenders]}")
        return AmbiguousMatch(
            query=query_text,
            entity_type=contenders[0].entity_type if entity_type is None else entity_type,
            candidates=contenders,
        )

    async def _lookup_id(self, text: str, types: List[EntityType], scope: Scope) -> Optional[ResolvedEntity]:
        if " " in text:
            return None
        for current_type in types:
            try:
                record = await self.store.get(current_type, text, scope)
            except EntityNotFoundError:
                continue
            if self._within_scope(current_type, record, scope):
                return ResolvedEntity(
                    entity_type=current_type,
                    id=record["id"],
                    display_name=display_name(current_type, record),
                    match_confidence=1.0,
                )
        return None

    @staticmethod
    def _within_scope(entity_type: EntityType, record: Dict, scope: Scope) -> bool:
        if record.get("company_id") != scope.company_id:
            return False
        if entity_type.client_scoped and scope.client_id is not None:
            return record.get("client_id") == scope.client_id
        return True

    def _score_record(self, query: str, entity_type: EntityType, record: Dict) -> float:
        names = [normalize(n) for n in searchable_names(entity_type, record)]
        best = max((structural_score(query, n) for n in names), default=0.0)
        if best > 0:
            return best

        # Typo tolerance: only near-identical spellings count
        fuzzy = process.extractOne(query, names, scorer=fuzz.WRatio, score_cutoff=FUZZY_CUTOFF)
        if fuzzy:
            return 0.3 + 0.4 * (fuzzy[1] / 100.0)
        return 0.0

    @staticmethod
    def _recency_boost(entity_id: str, memory) -> float:
        if memory is None:
            return 0.0
        return RECENCY_BOOST if memory.recency(entity_id) else 0.0
