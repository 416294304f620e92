"""Guest selection shared by previews and execution of group guest tools."""

from typing import Any, Dict, List

from schemas.entities import EntityType, Scope
from store.entity_store import EntityStore

SELECTION_FILTERS = ("group_name", "side", "rsvp_status", "table_number")


async def select_guests(
    store: EntityStore,
    args: Dict[str, Any],
    scope: Scope,
    needs_hotel_only: bool = False
) -> List[Dict[str, Any]]:
    """
    Guests a group tool applies to.

    Named guests (``args["guests"]``) are taken as given. Otherwise every
    guest matching the filter arguments is selected, and ``last_name``
    selects a whole family case-insensitively.
    """
    if args.get("guests"):
        return [await store.get(EntityType.GUEST, guest_id, scope) for guest_id in args["guests"]]

    filters = {key: args[key] for key in SELECTION_FILTERS if args.get(key) is not None}
    if needs_hotel_only:
        filters["needs_hotel"] = True
    guests = await store.query(EntityType.GUEST, scope, filters)

    if args.get("last_name"):
        family = args["last_name"].strip().lower()
        guests = [g for g in guests if (g.get("last_name") or "").strip().lower() == family]
    return guests


def describe_selection(args: Dict[str, Any], names: Dict[str, str]) -> str:
    """Short phrase for who a group tool applies to."""
    if names.get("guests"):
        return names["guests"]
    if args.get("last_name"):
        return f"the {args['last_name']} family"
    if args.get("group_name"):
        return f"everyone in {args['group_name']}"
    if args.get("side"):
        return f"{args['side']} side guests"
    if args.get("rsvp_status"):
        return f"guests with RSVP {args['rsvp_status']}"
    if args.get("table_number"):
        return f"table {args['table_number']}"
    return "guests who need a hotel"
