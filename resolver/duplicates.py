"""Potential-duplicate detection for new guests and vendors."""

import re
from typing import Dict, List, Optional

from pydantic import BaseModel
from rapidfuzz import fuzz

from schemas.entities import EntityType, Scope
from store.entity_store import EntityStore
from store.records import display_name

DUPLICATE_SIMILARITY_THRESHOLD = 0.75


class DuplicateCandidate(BaseModel):
    """An existing record that may be the one being added."""
    id: str
    display_name: str
    match_type: str  # exact_name, similar_name, same_email, same_phone
    similarity: float
    details: str


def _digits(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", phone or "")


def _compare(name: str, email: Optional[str], phone: Optional[str], record: Dict, existing_name: str, extra: str) -> Optional[DuplicateCandidate]:
    candidate_name = name.strip().lower()
    existing = existing_name.strip().lower()
    if not existing:
        return None

    if candidate_name == existing:
        return DuplicateCandidate(
            id=record["id"], display_name=existing_name, match_type="exact_name",
            similarity=1.0, details=extra or "Existing record",
        )

    similarity = fuzz.ratio(candidate_name, existing) / 100.0
    if similarity >= DUPLICATE_SIMILARITY_THRESHOLD:
        details = f"{round(similarity * 100)}% name match"
        return DuplicateCandidate(
            id=record["id"], display_name=existing_name, match_type="similar_name",
            similarity=similarity, details=f"{details}, {extra}" if extra else details,
        )

    if email and record.get("email") and email.lower() == record["email"].lower():
        return DuplicateCandidate(
            id=record["id"], display_name=existing_name, match_type="same_email",
            similarity=1.0, details=f"Same email: {record['email']}",
        )

    new_digits, old_digits = _digits(phone), _digits(record.get("phone"))
    if len(new_digits) >= 10 and len(old_digits) >= 10 and new_digits[-10:] == old_digits[-10:]:
        return DuplicateCandidate(
            id=record["id"], display_name=existing_name, match_type="same_phone",
            similarity=1.0, details=f"Same phone: {record['phone']}",
        )
    return None


async def find_duplicates(
    store: EntityStore,
    entity_type: EntityType,
    name: str,
    scope: Scope,
    email: Optional[str] = None,
    phone: Optional[str] = None
) -> List[DuplicateCandidate]:
    """
    Check in-scope records of ``entity_type`` for likely duplicates.

    Matches on exact name, similar name, same email, or same phone number
    (compared on the last ten digits).
    """
    candidates = []
    for record in await store.query(entity_type, scope):
        extra = ""
        if entity_type == EntityType.GUEST and record.get("group_name"):
            extra = f"Group: {record['group_name']}"
        elif entity_type == EntityType.VENDOR and record.get("category"):
            extra = f"Category: {record['category']}"
        candidate = _compare(name, email, phone, record, display_name(entity_type, record), extra)
        if candidate:
            candidates.append(candidate)
    candidates.sort(key=lambda c: c.similarity, reverse=True)
    return candidates
