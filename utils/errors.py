"""Exception taxonomy for the assistant core."""

from typing import List, Optional


class ChatbotError(Exception):
    """Base exception for assistant errors."""
    pass


class AmbiguousEntityError(ChatbotError):
    """More than one entity plausibly matches a reference."""

    def __init__(self, query: str, entity_type: str, candidates: list):
        self.query = query
        self.entity_type = entity_type
        self.candidates = candidates
        super().__init__(
            f"{len(candidates)} {entity_type} records match '{query}'"
        )


class NoMatchError(ChatbotError):
    """No entity matches a reference."""

    def __init__(self, query: str, entity_type: str):
        self.query = query
        self.entity_type = entity_type
        super().__init__(f"No {entity_type} matches '{query}'")


class DateParseError(ChatbotError):
    """A natural-language date or time could not be parsed."""

    def __init__(self, text: str, field: Optional[str] = None):
        self.text = text
        self.field = field
        super().__init__(f"Could not parse date/time '{text}'")


class UnknownToolError(ChatbotError):
    """The model referenced a tool that is not in the catalog."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class SchemaValidationError(ChatbotError):
    """Resolved arguments do not satisfy the tool's input schema."""

    def __init__(self, tool_name: str, field: str, reason: str):
        self.tool_name = tool_name
        self.field = field
        self.reason = reason
        super().__init__(f"{tool_name}.{field}: {reason}")


class ExecutionError(ChatbotError):
    """An entity-store operation failed while executing a tool.

    ``completed`` lists the records that were written before the failure,
    so callers can report partial completion.
    """

    def __init__(self, tool_name: str, message: str, completed: Optional[List] = None):
        self.tool_name = tool_name
        self.message = message
        self.completed = completed or []
        super().__init__(f"{tool_name} failed: {message}")


class ExpiredActionError(ChatbotError):
    """The user answered a pending action that has already expired."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Pending {tool_name} expired")


class InvalidTransitionError(ChatbotError):
    """Illegal pending-action state transition."""
    pass


class SessionNotFoundError(ChatbotError):
    """No session exists for the given id and no identity was supplied."""
    pass


class StoreError(Exception):
    """Base exception for entity-store failures."""
    pass


class EntityNotFoundError(StoreError):
    """Record does not exist within the caller's scope."""

    def __init__(self, entity_type: str, entity_id: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found")


class ScopeViolationError(StoreError):
    """Operation attempted outside the caller's company/client scope."""
    pass


class ConstraintViolationError(StoreError):
    """Write rejected by a store constraint."""
    pass
