"""Load demo records from YAML into an in-memory store."""

import logging
from pathlib import Path
from typing import Optional

import yaml

from schemas.entities import EntityType
from .entity_store import InMemoryEntityStore

logger = logging.getLogger(__name__)


def load_seed(path: str, store: Optional[InMemoryEntityStore] = None) -> InMemoryEntityStore:
    """
    Populate an in-memory store from a YAML seed file.

    The file maps entity type names (``client``, ``guest``, ...) to lists of
    records. Every record needs an ``id`` and ``company_id``; client-scoped
    records also carry ``client_id``.

    Args:
        path: Path to the YAML file
        store: Optional store to populate (a new one is created otherwise)

    Returns:
        The populated store
    """
    store = store or InMemoryEntityStore()
    seed_file = Path(path)
    if not seed_file.exists():
        logger.warning(f"Seed file not found: {path}")
        return store

    with open(seed_file, "r") as f:
        data = yaml.safe_load(f) or {}

    for type_name, records in data.items():
        try:
            entity_type = EntityType(type_name)
        except ValueError:
            logger.warning(f"Skipping unknown entity type in seed: {type_name}")
            continue
        store.load(entity_type, records or [])
        logger.info(f"Loaded {len(records or [])} {type_name} records")

    return store
