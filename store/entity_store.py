"""Tenant-scoped entity store interface and in-memory implementation."""

import copy
import uuid
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from schemas.entities import EntityType, Scope
from utils.errors import EntityNotFoundError, ScopeViolationError, ConstraintViolationError
from .records import ID_PREFIXES, REQUIRED_FIELDS

logger = logging.getLogger(__name__)

_PROTECTED_FIELDS = ("id", "company_id", "client_id")


class EntityStore(ABC):
    """Abstract entity store. Every call is restricted to ``scope``."""

    @abstractmethod
    async def get(self, entity_type: EntityType, entity_id: str, scope: Scope) -> Dict[str, Any]:
        """Fetch one record, raising EntityNotFoundError outside scope."""
        pass

    @abstractmethod
    async def query(
        self,
        entity_type: EntityType,
        scope: Scope,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """Return every in-scope record matching ``filters``."""
        pass

    @abstractmethod
    async def create(self, entity_type: EntityType, fields: Dict[str, Any], scope: Scope) -> Dict[str, Any]:
        """Insert a record and return it with its new id."""
        pass

    @abstractmethod
    async def update(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: Dict[str, Any],
        scope: Scope
    ) -> Dict[str, Any]:
        """Apply ``fields`` to a record and return the updated record."""
        pass

    @abstractmethod
    async def delete(self, entity_type: EntityType, entity_id: str, scope: Scope) -> None:
        """Remove a record."""
        pass


class InMemoryEntityStore(EntityStore):
    """Dictionary-backed store used by the CLI demo and tests.

    Records are plain dicts carrying ``company_id`` and, for client-scoped
    types, ``client_id``. Reads return copies so callers cannot mutate
    stored state behind the store's back. Every successful write is appended
    to ``write_log`` as ``(operation, entity_type, id)``. Timestamps come
    from ``clock`` so they agree with the controller's notion of now.
    """

    def __init__(
        self,
        id_factory: Optional[Callable[[EntityType], str]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self._records: Dict[EntityType, Dict[str, Dict[str, Any]]] = {t: {} for t in EntityType}
        self._id_factory = id_factory or self._default_id
        self._clock = clock or datetime.now
        self.write_log: List[Tuple[str, str, str]] = []

    @staticmethod
    def _default_id(entity_type: EntityType) -> str:
        return f"{ID_PREFIXES[entity_type]}-{uuid.uuid4().hex[:8]}"

    def load(self, entity_type: EntityType, records: List[Dict[str, Any]]):
        """Bulk-insert seed records without scope checks or write logging."""
        for record in records:
            if "id" not in record or "company_id" not in record:
                raise ConstraintViolationError(f"Seed {entity_type.value} record needs id and company_id")
            self._records[entity_type][record["id"]] = copy.deepcopy(record)

    def count(self, entity_type: EntityType) -> int:
        return len(self._records[entity_type])

    def _in_scope(self, entity_type: EntityType, record: Dict[str, Any], scope: Scope) -> bool:
        if record.get("company_id") != scope.company_id:
            return False
        if entity_type.client_scoped and scope.client_id is not None:
            return record.get("client_id") == scope.client_id
        return True

    def _require_write_scope(self, entity_type: EntityType, scope: Scope):
        if entity_type.client_scoped and scope.client_id is None:
            raise ScopeViolationError(
                f"Writing {entity_type.value} records requires an active client"
            )

    def _find(self, entity_type: EntityType, entity_id: str, scope: Scope) -> Dict[str, Any]:
        record = self._records[entity_type].get(entity_id)
        if record is None or not self._in_scope(entity_type, record, scope):
            # Out-of-scope records are reported as missing so ids do not leak across tenants
            raise EntityNotFoundError(entity_type.value, entity_id)
        return record

    async def get(self, entity_type: EntityType, entity_id: str, scope: Scope) -> Dict[str, Any]:
        return copy.deepcopy(self._find(entity_type, entity_id, scope))

    async def query(
        self,
        entity_type: EntityType,
        scope: Scope,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        results = []
        for record in self._records[entity_type].values():
            if not self._in_scope(entity_type, record, scope):
                continue
            if all(self._matches(record.get(key), value) for key, value in filters.items()):
                results.append(copy.deepcopy(record))
        return results

    @staticmethod
    def _matches(actual: Any, expected: Any) -> bool:
        if isinstance(expected, (list, tuple, set)):
            return actual in expected
        return actual == expected

    async def create(self, entity_type: EntityType, fields: Dict[str, Any], scope: Scope) -> Dict[str, Any]:
        self._require_write_scope(entity_type, scope)
        for key in ("company_id", "client_id"):
            if key in fields and fields[key] != getattr(scope, key):
                raise ScopeViolationError(f"{key} {fields[key]} is outside the caller's scope")

        missing = [f for f in REQUIRED_FIELDS[entity_type] if fields.get(f) in (None, "")]
        if missing:
            raise ConstraintViolationError(
                f"{entity_type.value} requires {', '.join(missing)}"
            )

        entity_id = fields.get("id") or self._id_factory(entity_type)
        if entity_id in self._records[entity_type]:
            raise ConstraintViolationError(f"{entity_type.value} {entity_id} already exists")

        now = self._clock().isoformat(timespec="seconds")
        record = dict(fields)
        record.update({"id": entity_id, "company_id": scope.company_id, "created_at": now, "updated_at": now})
        if entity_type.client_scoped:
            record["client_id"] = scope.client_id

        self._records[entity_type][entity_id] = record
        self.write_log.append(("create", entity_type.value, entity_id))
        logger.debug(f"Created {entity_type.value} {entity_id}")
        return copy.deepcopy(record)

    async def update(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: Dict[str, Any],
        scope: Scope
    ) -> Dict[str, Any]:
        record = self._find(entity_type, entity_id, scope)
        for key in _PROTECTED_FIELDS:
            if key in fields and fields[key] != record.get(key):
                raise ScopeViolationError(f"Cannot change {key} of {entity_type.value} {entity_id}")

        record.update(fields)
        record["updated_at"] = self._clock().isoformat(timespec="seconds")
        self.write_log.append(("update", entity_type.value, entity_id))
        logger.debug(f"Updated {entity_type.value} {entity_id}: {sorted(fields)}")
        return copy.deepcopy(record)

    async def delete(self, entity_type: EntityType, entity_id: str, scope: Scope) -> None:
        self._find(entity_type, entity_id, scope)
        del self._records[entity_type][entity_id]
        self.write_log.append(("delete", entity_type.value, entity_id))
        logger.debug(f"Deleted {entity_type.value} {entity_id}")
