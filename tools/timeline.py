"""Timeline selection and time arithmetic shared by previews and execution."""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from schemas.entities import EntityType, Scope
from store.entity_store import EntityStore

_PLACEHOLDER_DATE = "2000-01-01"


def shift_clock(date_text: Optional[str], time_text: Optional[str], minutes: int) -> Tuple[Optional[str], Optional[str]]:
    """
    Shift a (date, HH:MM) pair by ``minutes``.

    The date rolls over when the shift crosses midnight. A missing time is
    left untouched.
    """
    if not time_text:
        return date_text, time_text
    moment = datetime.strptime(f"{date_text or _PLACEHOLDER_DATE} {time_text}", "%Y-%m-%d %H:%M")
    moved = moment + timedelta(minutes=minutes)
    new_date = moved.date().isoformat() if date_text else None
    return new_date, moved.strftime("%H:%M")


def _sort_key(item: Dict[str, Any]) -> Tuple[str, str]:
    return item.get("date") or "", item.get("start_time") or ""


async def select_timeline_items(store: EntityStore, args: Dict[str, Any], scope: Scope) -> List[Dict[str, Any]]:
    """Timeline items a shift_timeline call applies to, in chronological order."""
    filters = {}
    if args.get("event"):
        filters["event_id"] = args["event"]
    if args.get("phase"):
        filters["phase"] = args["phase"]

    items = await store.query(EntityType.TIMELINE_ITEM, scope, filters)
    if args.get("start_from"):
        reference = await store.get(EntityType.TIMELINE_ITEM, args["start_from"], scope)
        items = [i for i in items if _sort_key(i) >= _sort_key(reference)]
    return sorted(items, key=_sort_key)


def plan_shift(items: List[Dict[str, Any]], minutes: int) -> List[Dict[str, Any]]:
    """Before/after times for every item, without writing anything."""
    plan = []
    for item in items:
        new_date, new_start = shift_clock(item.get("date"), item.get("start_time"), minutes)
        _, new_end = shift_clock(item.get("date"), item.get("end_time"), minutes)
        plan.append({
            "id": item["id"],
            "title": item.get("title", item["id"]),
            "date": item.get("date"),
            "new_date": new_date,
            "start_time": item.get("start_time"),
            "end_time": item.get("end_time"),
            "new_start_time": new_start,
            "new_end_time": new_end,
        })
    return plan


async def event_day_items(store: EntityStore, event: Dict[str, Any], scope: Scope) -> List[Dict[str, Any]]:
    """Timeline items on an event's date (or undated) that move when the event does."""
    items = await store.query(EntityType.TIMELINE_ITEM, scope, {"event_id": event["id"]})
    return sorted(
        (item for item in items if not item.get("date") or item["date"] == event.get("date")),
        key=_sort_key,
    )
