"""Entity store collaborator."""

from .entity_store import EntityStore, InMemoryEntityStore
from .records import display_name, searchable_names
from .seed import load_seed

__all__ = [
    "EntityStore",
    "InMemoryEntityStore",
    "display_name",
    "searchable_names",
    "load_seed",
]
