"""Human-readable previews for proposed mutations."""

import logging
from datetime import date
from typing import Any, Dict, List

from schemas.actions import ActionPreview, PreviewField
from schemas.entities import EntityType, ResolvedEntity, Scope
from schemas.tools import ToolDefinition
from store.entity_store import EntityStore
from store.records import display_name
from resolver.duplicates import find_duplicates
from utils.formatting import format_money, format_value, humanize_field
from .guests import describe_selection, select_guests
from .timeline import select_timeline_items, plan_shift, event_day_items

logger = logging.getLogger(__name__)

MONEY_FIELDS = {"budget", "estimated_cost", "actual_cost", "paid_amount", "value"}


def _guest_name(args: Dict[str, Any]) -> str:
    return " ".join(p for p in (args.get("first_name"), args.get("last_name")) if p)


def _couple(args: Dict[str, Any]) -> str:
    partner1 = " ".join(p for p in (args.get("partner1_first_name"), args.get("partner1_last_name")) if p)
    partner2 = " ".join(p for p in (args.get("partner2_first_name"), args.get("partner2_last_name")) if p)
    return f"{partner1} & {partner2}" if partner2 else partner1


def _shift_phrase(args: Dict[str, Any]) -> str:
    minutes = args.get("shift_minutes", 0)
    return f"{abs(minutes)} minutes {'later' if minutes > 0 else 'earlier'}"


DESCRIPTIONS = {
    "create_client": lambda a, n: f"Create a new wedding client for {_couple(a)}",
    "update_client": lambda a, n: f"Update client {n.get('client', 'details')}",
    "add_guest": lambda a, n: f"Add {_guest_name(a)} to the guest list",
    "update_guest_rsvp": lambda a, n: f"Set {n.get('guest')}'s RSVP to {a.get('rsvp_status')}",
    "bulk_update_guests": lambda a, n: (
        f"Update guests: {n['guests']}" if n.get("guests") else f"Update every guest in {a.get('group_name')}"
    ),
    "check_in_guest": lambda a, n: f"Check in {n.get('guest')}",
    "assign_guests_to_events": lambda a, n: (
        f"{'Set' if a.get('replace_existing') else 'Add'} {describe_selection(a, n)} "
        f"{'to attend only' if a.get('replace_existing') else 'to'} {n.get('events')}"
    ),
    "update_table_dietary": lambda a, n: f"Set meal preference for table {a.get('table_number')} to {a.get('meal_preference')}",
    "update_event": lambda a, n: f"Update event {n.get('event')}",
    "bulk_add_hotel_bookings": lambda a, n: f"Book {a.get('hotel_name')} for {describe_selection(a, n)}",
    "create_event": lambda a, n: f"Create event {a.get('title')} on {a.get('date')}",
    "add_timeline_item": lambda a, n: f"Add {a.get('title')} to the timeline at {a.get('start_time')}",
    "shift_timeline": lambda a, n: f"Shift timeline items {_shift_phrase(a)}",
    "add_vendor": lambda a, n: f"Add {a.get('name')} as a {a.get('category')} vendor",
    "update_vendor": lambda a, n: f"Update vendor {n.get('vendor')}",
    "add_hotel_booking": lambda a, n: f"Book {a.get('hotel_name')} for {n.get('guest')}",
    "update_budget_item": lambda a, n: f"Update budget item {n.get('budget_item')}",
    "add_gift": lambda a, n: f"Record gift: {a.get('description')}",
    "update_gift": lambda a, n: f"Update gift {n.get('gift')}",
}


def _cost(record: Dict[str, Any]) -> float:
    return float(record.get("actual_cost") or 0) or float(record.get("estimated_cost") or 0)


class PreviewBuilder:
    """Builds ActionPreviews: fields, declared cascades, details and warnings."""

    def __init__(self, store: EntityStore):
        self.store = store

    async def build(
        self,
        tool: ToolDefinition,
        args: Dict[str, Any],
        resolved_entities: Dict[str, List[ResolvedEntity]],
        scope: Scope,
        today: date
    ) -> ActionPreview:
        """
        Build the preview for a proposed mutation. Reads only, never writes.

        Args:
            tool: The tool being proposed
            args: Validated arguments (entity fields hold ids)
            resolved_entities: Entities behind each entity field
            scope: Tenant scope the action will run in
            today: Reference date for past-date warnings
        """
        names = {field: ", ".join(e.display_name for e in entities) for field, entities in resolved_entities.items()}
        describe = DESCRIPTIONS.get(tool.name)
        description = describe(args, names) if describe else tool.description

        fields = []
        for name, value in args.items():
            if value is None or (value is False and name not in ("thank_you_sent",)):
                continue
            fields.append(PreviewField(name=name, value=value, display_value=self._display(name, value, names)))

        preview = ActionPreview(
            tool_name=tool.name,
            description=description,
            fields=fields,
            cascade_effects=list(tool.cascade_effects),
        )
        preview.warnings.extend(self._date_warnings(tool, args, today))

        if tool.name == "shift_timeline":
            preview.details.extend(await self._shift_details(args, scope))
        elif tool.name == "bulk_update_guests" and not args.get("guests"):
            guests = await self.store.query(EntityType.GUEST, scope, {"group_name": args.get("group_name")})
            preview.details.append(f"{len(guests)} guests in {args.get('group_name')}")
            if not guests:
                preview.warnings.append(f"No guests are in the group {args.get('group_name')}")
        elif tool.name == "update_event" and args.get("date"):
            preview.details.extend(await self._event_move_details(args, scope))
        elif tool.name in ("assign_guests_to_events", "bulk_add_hotel_bookings", "update_table_dietary"):
            await self._selection_details(tool.name, args, scope, preview)
        elif tool.name == "update_guest_rsvp" and args.get("rsvp_status") == "declined":
            preview.warnings.append(
                f"{names.get('guest', 'This guest')} will no longer count toward confirmed headcount; meal counts and seating may change"
            )
        elif tool.name == "update_budget_item":
            preview.warnings.extend(await self._budget_warnings(args, scope))
        elif tool.name in ("add_guest", "add_vendor"):
            preview.warnings.extend(await self._duplicate_warnings(tool.name, args, scope))

        return preview

    @staticmethod
    def _display(name: str, value: Any, names: Dict[str, str]) -> str:
        if name in names:
            return names[name]
        if name in MONEY_FIELDS:
            return format_money(value)
        return format_value(value)

    @staticmethod
    def _date_warnings(tool: ToolDefinition, args: Dict[str, Any], today: date) -> List[str]:
        warnings = []
        for name, kind in tool.parse_fields().items():
            if kind != "date" or not args.get(name):
                continue
            try:
                value = date.fromisoformat(args[name])
            except ValueError:
                continue
            if value < today:
                warnings.append(f"{humanize_field(name)} {value.isoformat()} is in the past")
        return warnings

    async def _shift_details(self, args: Dict[str, Any], scope: Scope) -> List[str]:
        items = await select_timeline_items(self.store, args, scope)
        if not items:
            return ["No timeline items match; nothing would change"]
        details = []
        for entry in plan_shift(items, args["shift_minutes"]):
            before = entry["start_time"] or "no time"
            after = entry["new_start_time"] or "no time"
            if entry["end_time"]:
                before += f"-{entry['end_time']}"
                after += f"-{entry['new_end_time']}"
            day = f" on {entry['new_date']}" if entry["new_date"] and entry["new_date"] != entry["date"] else ""
            details.append(f"{entry['title']}: {before} -> {after}{day}")
        return details

    async def _event_move_details(self, args: Dict[str, Any], scope: Scope) -> List[str]:
        event = await self.store.get(EntityType.EVENT, args["event"], scope)
        if event.get("date") == args["date"]:
            return []
        items = await event_day_items(self.store, event, scope)
        return [f"{item.get('title')} moves to {args['date']}" for item in items]

    async def _selection_details(self, tool_name: str, args: Dict[str, Any], scope: Scope, preview: ActionPreview):
        if tool_name == "update_table_dietary":
            guests = await select_guests(self.store, {"table_number": args["table_number"]}, scope)
        else:
            guests = await select_guests(
                self.store, args, scope,
                needs_hotel_only=tool_name == "bulk_add_hotel_bookings" and args.get("needs_hotel_only", True),
            )
            if tool_name == "bulk_add_hotel_bookings" and args.get("room_count"):
                guests = guests[:args["room_count"]]
        if not guests:
            preview.warnings.append("No guests match this selection; nothing would change")
            return
        names = ", ".join(display_name(EntityType.GUEST, g) for g in guests)
        preview.details.append(f"{len(guests)} guests: {names}")

    async def _budget_warnings(self, args: Dict[str, Any], scope: Scope) -> List[str]:
        item = await self.store.get(EntityType.BUDGET_ITEM, args["budget_item"], scope)
        merged = {**item, **{k: v for k, v in args.items() if v is not None}}
        estimated = float(merged.get("estimated_cost") or 0)
        actual = float(merged.get("actual_cost") or 0)
        paid = float(merged.get("paid_amount") or 0)

        warnings = []
        if estimated and actual > estimated:
            warnings.append(
                f"Actual cost {format_money(actual)} exceeds the estimate {format_money(estimated)} "
                f"by {format_money(actual - estimated)}"
            )
        ceiling = actual or estimated
        if ceiling and paid > ceiling:
            warnings.append(f"Paid amount {format_money(paid)} is more than the cost {format_money(ceiling)}")

        client = await self.store.get(EntityType.CLIENT, scope.client_id, scope)
        budget = float(client.get("budget") or 0)
        if budget:
            items = await self.store.query(EntityType.BUDGET_ITEM, scope)
            committed = sum(_cost(merged) if i["id"] == item["id"] else _cost(i) for i in items)
            if committed > budget:
                warnings.append(
                    f"Committed costs {format_money(committed)} would exceed the total budget {format_money(budget)}"
                )
        return warnings

    async def _duplicate_warnings(self, tool_name: str, args: Dict[str, Any], scope: Scope) -> List[str]:
        if tool_name == "add_guest":
            entity_type, name = EntityType.GUEST, _guest_name(args)
        else:
            entity_type, name = EntityType.VENDOR, args.get("name", "")
            scope = scope.for_client(None)
        candidates = await find_duplicates(
            self.store, entity_type, name, scope, email=args.get("email"), phone=args.get("phone")
        )
        if candidates:
            logger.info(f"{len(candidates)} potential duplicates for {tool_name} '{name}'")
        return [
            f"Possible duplicate: {c.display_name} ({c.details})"
            for c in candidates
        ]
