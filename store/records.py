"""Record conventions shared by the store, resolver and executor."""

from typing import Dict, List

from schemas.entities import EntityType

ID_PREFIXES = {
    EntityType.CLIENT: "c",
    EntityType.GUEST: "g",
    EntityType.VENDOR: "v",
    EntityType.EVENT: "e",
    EntityType.BUDGET_ITEM: "b",
    EntityType.HOTEL_BOOKING: "h",
    EntityType.GIFT: "gf",
    EntityType.TIMELINE_ITEM: "t",
}

# Fields a record must carry before the store accepts it
REQUIRED_FIELDS = {
    EntityType.CLIENT: ("partner1_first_name",),
    EntityType.GUEST: ("first_name",),
    EntityType.VENDOR: ("name", "category"),
    EntityType.EVENT: ("title",),
    EntityType.BUDGET_ITEM: ("category",),
    EntityType.HOTEL_BOOKING: ("guest_id",),
    EntityType.GIFT: ("description",),
    EntityType.TIMELINE_ITEM: ("title",),
}


def _full_name(first, last) -> str:
    return " ".join(part for part in (first, last) if part)


def display_name(entity_type: EntityType, record: Dict) -> str:
    """Human-readable name for a record."""
    if entity_type == EntityType.CLIENT:
        partner1 = _full_name(record.get("partner1_first_name"), record.get("partner1_last_name"))
        partner2 = _full_name(record.get("partner2_first_name"), record.get("partner2_last_name"))
        return f"{partner1} & {partner2}" if partner2 else partner1
    if entity_type == EntityType.GUEST:
        return _full_name(record.get("first_name"), record.get("last_name"))
    if entity_type == EntityType.VENDOR:
        return record.get("name", "")
    if entity_type in (EntityType.EVENT, EntityType.TIMELINE_ITEM):
        return record.get("title", "")
    if entity_type == EntityType.BUDGET_ITEM:
        return record.get("item_name") or record.get("category", "")
    if entity_type == EntityType.HOTEL_BOOKING:
        guest = record.get("guest_name") or record.get("guest_id", "")
        hotel = record.get("hotel_name")
        return f"{guest} @ {hotel}" if hotel else f"{guest} (hotel pending)"
    if entity_type == EntityType.GIFT:
        return record.get("description", "")
    return record.get("id", "")


def searchable_names(entity_type: EntityType, record: Dict) -> List[str]:
    """Names a free-text reference may match against."""
    names = [display_name(entity_type, record)]
    if entity_type == EntityType.CLIENT:
        names.append(_full_name(record.get("partner1_first_name"), record.get("partner1_last_name")))
        names.append(_full_name(record.get("partner2_first_name"), record.get("partner2_last_name")))
    elif entity_type == EntityType.VENDOR:
        names.append(record.get("contact_name"))
    elif entity_type == EntityType.BUDGET_ITEM:
        names.append(record.get("category"))
    elif entity_type == EntityType.HOTEL_BOOKING:
        names.extend([record.get("guest_name"), record.get("hotel_name")])
    elif entity_type == EntityType.GIFT:
        names.append(record.get("giver_name"))
    seen = []
    for name in names:
        if name and name not in seen:
            seen.append(name)
    return seen
