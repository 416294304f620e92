"""Tool definition schemas."""

from enum import Enum
from typing import Any, Dict, Optional, Set, Tuple, Type, get_args, get_origin
from pydantic import BaseModel, ConfigDict, Field

from .entities import EntityType


class ToolKind(str, Enum):
    """Whether a tool reads (auto-executes) or writes (confirm first)."""
    QUERY = "query"
    MUTATION = "mutation"


class ToolCategory(str, Enum):
    """Grouping used for prompts and memory topics."""
    CLIENT = "client"
    GUEST = "guest"
    EVENT = "event"
    TIMELINE = "timeline"
    VENDOR = "vendor"
    HOTEL = "hotel"
    BUDGET = "budget"
    GIFT = "gift"
    SEARCH = "search"


def _accepts_list(annotation) -> bool:
    if get_origin(annotation) is list:
        return True
    return any(_accepts_list(arg) for arg in get_args(annotation))


class ToolDefinition(BaseModel):
    """A named operation the language model may request.

    ``arguments_model`` is the declared input schema; it is validated after
    entity resolution and before the executor ever sees the arguments.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    kind: ToolKind
    category: ToolCategory
    description: str
    arguments_model: Type[BaseModel]
    cascade_effects: Tuple[str, ...] = ()

    @property
    def requires_confirmation(self) -> bool:
        return self.kind == ToolKind.MUTATION

    @property
    def client_scoped(self) -> bool:
        """Whether the tool operates on a single client's records."""
        return "client" in self.arguments_model.model_fields

    def entity_fields(self) -> Dict[str, EntityType]:
        """Argument fields whose values are entity references."""
        fields = {}
        for name, info in self.arguments_model.model_fields.items():
            extra = info.json_schema_extra or {}
            if isinstance(extra, dict) and "x-entity" in extra:
                fields[name] = EntityType(extra["x-entity"])
        return fields

    def list_fields(self) -> Set[str]:
        """Argument fields that take a list of values."""
        return {
            name for name, info in self.arguments_model.model_fields.items()
            if _accepts_list(info.annotation)
        }

    def parse_fields(self) -> Dict[str, str]:
        """Argument fields holding natural-language dates or times."""
        fields = {}
        for name, info in self.arguments_model.model_fields.items():
            extra = info.json_schema_extra or {}
            if isinstance(extra, dict) and "x-parse" in extra:
                fields[name] = extra["x-parse"]
        return fields

    def input_schema(self) -> Dict[str, Any]:
        """JSON schema of the arguments, as shown to the model."""
        schema = self.arguments_model.model_json_schema()
        schema.pop("title", None)
        injected = set()
        for name, prop in schema.get("properties", {}).items():
            prop.pop("title", None)
            prop.pop("x-entity", None)
            prop.pop("x-parse", None)
            if prop.pop("x-inject", None):
                injected.add(name)
        # Injected fields are filled from the session, the model may omit them
        if "required" in schema:
            schema["required"] = [r for r in schema["required"] if r not in injected]
        return schema

    def get_definition(self) -> Dict:
        """Get OpenAI-compatible tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema(),
            }
        }


class ToolCallRequest(BaseModel):
    """A tool invocation parsed from the model's response."""
    id: Optional[str] = None
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
