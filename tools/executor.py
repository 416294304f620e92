"""Tool executor: performs entity-store operations for confirmed tool calls."""

import logging
from collections import Counter
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from schemas.actions import CascadeRecord, ExecutionResult
from schemas.entities import EntityRef, EntityType, Scope
from store.entity_store import EntityStore
from store.records import display_name
from resolver.entity_resolver import normalize, structural_score
from utils.errors import ExecutionError, StoreError
from utils.formatting import format_money
from .arguments import EVENT_UPDATE_FIELDS
from .guests import select_guests
from .timeline import select_timeline_items, plan_shift, event_day_items

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_PATH = Path(__file__).resolve().parent.parent / "data" / "budget_templates.yaml"

DEFAULT_TIMELINE = (
    ("Getting Ready", "13:00", "15:30", "preparation"),
    ("Ceremony", "16:00", "17:00", "ceremony"),
    ("Cocktail Hour", "17:00", "18:00", "reception"),
    ("Reception", "18:00", "23:00", "reception"),
)

CLIENT_FIELDS = (
    "partner1_first_name", "partner1_last_name", "partner1_email", "partner1_phone",
    "partner2_first_name", "partner2_last_name", "partner2_email",
    "wedding_date", "venue", "budget", "guest_count", "wedding_type", "status",
)


def load_budget_templates(path: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
    """Load per-wedding-type budget allocations from YAML."""
    with open(path or DEFAULT_TEMPLATES_PATH, "r") as f:
        return yaml.safe_load(f) or {}


def _ref(entity_type: EntityType, record: Dict[str, Any]) -> EntityRef:
    return EntityRef(entity_type=entity_type, id=record["id"], display_name=display_name(entity_type, record))


def _pick(args: Dict[str, Any], fields) -> Dict[str, Any]:
    return {f: args[f] for f in fields if args.get(f) is not None}


class _Run:
    """Bookkeeping for one execution: every write is recorded as it happens."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        self.cascades: List[CascadeRecord] = []
        self.completed: List[CascadeRecord] = []

    def primary(self, action: str, entity_type: EntityType, entity_id: str):
        self.completed.append(CascadeRecord(action=action, entity_type=entity_type.value, entity_id=entity_id))

    def cascade(self, action: str, entity_type: str, entity_id: str):
        record = CascadeRecord(action=action, entity_type=entity_type, entity_id=entity_id)
        self.cascades.append(record)
        self.completed.append(record)


class ToolExecutor:
    """Maps tool names to ordered entity-store operations.

    The primary record is always written before any cascade record, and every
    cascade write is listed in the result. When a store call fails the
    ExecutionError carries the writes that had already succeeded.
    """

    def __init__(
        self,
        store: EntityStore,
        budget_templates: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.budget_templates = budget_templates if budget_templates is not None else load_budget_templates()
        self.clock = clock or datetime.now
        self._handlers = {
            "get_client_summary": self._get_client_summary,
            "get_guest_stats": self._get_guest_stats,
            "get_budget_overview": self._get_budget_overview,
            "search_entities": self._search_entities,
            "sync_hotel_guests": self._sync_hotel_guests,
            "create_client": self._create_client,
            "update_client": self._update_client,
            "add_guest": self._add_guest,
            "update_guest_rsvp": self._update_guest_rsvp,
            "bulk_update_guests": self._bulk_update_guests,
            "check_in_guest": self._check_in_guest,
            "assign_guests_to_events": self._assign_guests_to_events,
            "update_table_dietary": self._update_table_dietary,
            "create_event": self._create_event,
            "add_timeline_item": self._add_timeline_item,
            "shift_timeline": self._shift_timeline,
            "update_event": self._update_event,
            "add_vendor": self._add_vendor,
            "update_vendor": self._update_vendor,
            "add_hotel_booking": self._add_hotel_booking,
            "bulk_add_hotel_bookings": self._bulk_add_hotel_bookings,
            "update_budget_item": self._update_budget_item,
            "add_gift": self._add_gift,
            "update_gift": self._update_gift,
        }

    def supports(self, tool_name: str) -> bool:
        return tool_name in self._handlers

    async def execute(self, tool_name: str, args: Dict[str, Any], scope: Scope) -> ExecutionResult:
        """
        Execute a tool with validated, resolved arguments.

        Args:
            tool_name: Catalog name of the tool
            args: Arguments after entity resolution and schema validation
            scope: Caller's tenant scope (client set for client-scoped tools)

        Returns:
            ExecutionResult listing the primary record and every cascade record

        Raises:
            ExecutionError: If the tool is not implemented or a store call fails
        """
        handler = self._handlers.get(tool_name)
        if handler is None:
            raise ExecutionError(tool_name, "No executor registered for this tool")

        run = _Run(tool_name)
        logger.info(f"Executing {tool_name} for company {scope.company_id} client {scope.client_id}")
        try:
            if scope.client_id:
                # Ownership check before any read or write on the client's records
                await self.store.get(EntityType.CLIENT, scope.client_id, Scope(company_id=scope.company_id))
            result = await handler(args, scope, run)
        except StoreError as e:
            logger.error(f"{tool_name} failed after {len(run.completed)} writes: {e}")
            raise ExecutionError(tool_name, str(e), completed=run.completed) from e

        result.cascade_results = run.cascades
        return result

    # ---- Queries ----

    async def _get_client_summary(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        client = await self.store.get(EntityType.CLIENT, scope.client_id, scope)
        guests = (await self._get_guest_stats(args, scope, run)).data
        budget = (await self._get_budget_overview(args, scope, run)).data
        events = sorted(await self.store.query(EntityType.EVENT, scope), key=lambda e: e.get("date") or "")
        vendor_ids = {b.get("vendor_id") for b in await self.store.query(EntityType.BUDGET_ITEM, scope) if b.get("vendor_id")}

        today = self.clock().date().isoformat()
        upcoming = [e for e in events if (e.get("date") or "") >= today]
        name = display_name(EntityType.CLIENT, client)
        data = {
            "client": client,
            "guests": guests,
            "budget": budget,
            "events": {
                "total": len(events),
                "upcoming": len(upcoming),
                "next": upcoming[0]["title"] if upcoming else None,
            },
            "vendors": len(vendor_ids),
        }
        message = (
            f"{name}: wedding on {client.get('wedding_date') or 'an unset date'}"
            f"{' at ' + client['venue'] if client.get('venue') else ''}. "
            f"{guests['total']} guests ({guests['confirmed']} confirmed), "
            f"budget {format_money(budget['total_budget'])} ({format_money(budget['paid'])} paid), "
            f"{len(events)} events, {len(vendor_ids)} vendors."
        )
        return ExecutionResult(tool_name="get_client_summary", message=message, data=data,
                               primary=_ref(EntityType.CLIENT, client))

    async def _get_guest_stats(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        guests = await self.store.query(EntityType.GUEST, scope)
        rsvp = Counter(g.get("rsvp_status") or "pending" for g in guests)
        meals = Counter((g.get("meal_preference") or "").lower() for g in guests)
        stats = {
            "total": len(guests),
            "confirmed": rsvp["confirmed"],
            "pending": rsvp["pending"],
            "declined": rsvp["declined"],
            "maybe": rsvp["maybe"],
            "hotel_required": sum(1 for g in guests if g.get("needs_hotel")),
            "needs_transport": sum(1 for g in guests if g.get("needs_transport")),
            "checked_in": sum(1 for g in guests if g.get("checked_in")),
            "vegetarian": meals["vegetarian"],
            "vegan": meals["vegan"],
            "gluten_free": meals["gluten_free"],
        }
        message = (
            f"Found {stats['total']} guests: {stats['confirmed']} confirmed, "
            f"{stats['pending']} pending, {stats['declined']} declined"
        )
        return ExecutionResult(tool_name="get_guest_stats", message=message, data=stats)

    async def _get_budget_overview(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        client = await self.store.get(EntityType.CLIENT, scope.client_id, scope)
        items = await self.store.query(EntityType.BUDGET_ITEM, scope)

        def total(field, rows):
            return round(sum(float(r.get(field) or 0) for r in rows), 2)

        by_category = {}
        for item in items:
            by_category.setdefault(item.get("category") or "other", []).append(item)

        total_budget = float(client.get("budget") or 0)
        paid = total("paid_amount", items)
        remaining = round(total_budget - paid, 2)
        data = {
            "total_budget": total_budget,
            "estimated": total("estimated_cost", items),
            "actual": total("actual_cost", items),
            "paid": paid,
            "remaining": remaining,
            "percent_used": round(paid / total_budget * 100) if total_budget > 0 else 0,
            "item_count": len(items),
            "by_category": [
                {
                    "category": category,
                    "estimated": total("estimated_cost", rows),
                    "actual": total("actual_cost", rows),
                    "paid": total("paid_amount", rows),
                }
                for category, rows in sorted(by_category.items())
            ],
        }
        message = (
            f"Budget: {format_money(total_budget)} total, {format_money(paid)} paid, "
            f"{format_money(remaining)} remaining ({data['percent_used']}% used)"
        )
        return ExecutionResult(tool_name="get_budget_overview", message=message, data=data)

    async def _search_entities(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        query = normalize(args["query"])
        types = [EntityType(t) for t in args.get("entity_types") or []] or list(EntityType)
        matches = []
        for entity_type in types:
            for record in await self.store.query(entity_type, scope):
                name = display_name(entity_type, record)
                score = structural_score(query, normalize(name))
                if score > 0:
                    matches.append((score, _ref(entity_type, record)))

        matches.sort(key=lambda m: (-m[0], m[1].display_name))
        refs = [ref for _, ref in matches[:args.get("limit", 10)]]
        if refs:
            listing = ", ".join(f"{r.display_name} ({r.entity_type.value})" for r in refs)
            message = f"Found {len(refs)} matches for '{args['query']}': {listing}"
        else:
            message = f"No matches found for '{args['query']}'"
        return ExecutionResult(
            tool_name="search_entities", message=message,
            data=[r.model_dump(mode="json") for r in refs], affected=refs,
        )

    async def _sync_hotel_guests(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        bookings = await self.store.query(EntityType.HOTEL_BOOKING, scope)
        hotels: Dict[str, Dict[str, Any]] = {}
        for booking in bookings:
            name = booking.get("hotel_name") or "Hotel not yet chosen"
            entry = hotels.setdefault(name, {"hotel_name": name, "guest_count": 0, "total_nights": 0})
            entry["guest_count"] += 1
            entry["total_nights"] += self._nights(booking)

        summary = sorted(hotels.values(), key=lambda h: h["hotel_name"])
        total_guests = sum(h["guest_count"] for h in summary)
        return ExecutionResult(
            tool_name="sync_hotel_guests",
            message=f"Found {len(summary)} hotels with {total_guests} guests",
            data={
                "hotels": summary,
                "total_guests": total_guests,
                "total_nights": sum(h["total_nights"] for h in summary),
            },
        )

    @staticmethod
    def _nights(booking: Dict[str, Any]) -> int:
        try:
            check_in = date.fromisoformat(booking["check_in_date"])
            check_out = date.fromisoformat(booking["check_out_date"])
        except (KeyError, TypeError, ValueError):
            return 1
        return max((check_out - check_in).days, 1)

    # ---- Clients ----

    async def _create_client(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        company_scope = Scope(company_id=scope.company_id)
        fields = _pick(args, CLIENT_FIELDS)
        fields.setdefault("wedding_type", "traditional")
        fields["status"] = "planning"
        client = await self.store.create(EntityType.CLIENT, fields, company_scope)
        run.primary("Created client", EntityType.CLIENT, client["id"])

        client_scope = company_scope.for_client(client["id"])
        couple = args["partner1_first_name"]
        if args.get("partner2_first_name"):
            couple += f" & {args['partner2_first_name']}"

        event_id = None
        if args.get("wedding_date"):
            title = f"{couple}'s Wedding"
            event = await self.store.create(EntityType.EVENT, {
                "title": title,
                "event_type": "Wedding",
                "date": args["wedding_date"],
                "location": args.get("venue"),
                "guest_count": args.get("guest_count"),
                "status": "planned",
                "description": f"Main wedding ceremony for {title}",
            }, client_scope)
            run.cascade(f"Created main wedding event: {title}", "event", event["id"])
            event_id = event["id"]

        budget = args.get("budget") or 0
        if budget > 0:
            wedding_type = fields["wedding_type"]
            template = self.budget_templates.get(wedding_type) or self.budget_templates.get("traditional", [])
            for line in template:
                item = await self.store.create(EntityType.BUDGET_ITEM, {
                    "category": line["category"],
                    "item_name": line["item"],
                    "estimated_cost": round(budget * line["percentage"] / 100, 2),
                    "actual_cost": 0,
                    "paid_amount": 0,
                    "payment_status": "pending",
                    "notes": f"Auto-generated based on {wedding_type} wedding budget allocation",
                }, client_scope)
                run.cascade(f"Created budget category: {line['item']}", "budget_item", item["id"])

        if event_id:
            for title, start, end, phase in DEFAULT_TIMELINE:
                item = await self.store.create(EntityType.TIMELINE_ITEM, {
                    "title": title,
                    "event_id": event_id,
                    "date": args["wedding_date"],
                    "start_time": start,
                    "end_time": end,
                    "phase": phase,
                }, client_scope)
                run.cascade(f"Created timeline item: {title} at {start}", "timeline_item", item["id"])

        primary = _ref(EntityType.CLIENT, client)
        return ExecutionResult(
            tool_name="create_client",
            message=f"Created wedding client: {couple}",
            data=client,
            primary=primary,
            affected=[primary],
        )

    async def _update_client(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, CLIENT_FIELDS)
        client = await self.store.update(EntityType.CLIENT, scope.client_id, fields, Scope(company_id=scope.company_id))
        run.primary("Updated client", EntityType.CLIENT, client["id"])

        event_fields = {}
        if "wedding_date" in fields:
            event_fields["date"] = fields["wedding_date"]
        if "venue" in fields:
            event_fields["location"] = fields["venue"]
        if "guest_count" in fields:
            event_fields["guest_count"] = fields["guest_count"]

        if event_fields:
            main_events = await self.store.query(EntityType.EVENT, scope, {"event_type": "Wedding"})
            if main_events:
                event = await self.store.update(EntityType.EVENT, main_events[0]["id"], event_fields, scope)
                run.cascade("Synced wedding details to main event", "event", event["id"])
            elif client.get("wedding_date"):
                title = f"{client['partner1_first_name']}"
                if client.get("partner2_first_name"):
                    title += f" & {client['partner2_first_name']}"
                title += "'s Wedding"
                event = await self.store.create(EntityType.EVENT, {
                    "title": title,
                    "event_type": "Wedding",
                    "date": client["wedding_date"],
                    "location": client.get("venue"),
                    "guest_count": client.get("guest_count"),
                    "status": "planned",
                }, scope)
                run.cascade(f"Created main wedding event: {title}", "event", event["id"])

        primary = _ref(EntityType.CLIENT, client)
        changed = ", ".join(sorted(fields)) or "nothing"
        return ExecutionResult(
            tool_name="update_client",
            message=f"Updated {primary.display_name}: {changed}",
            data=client, primary=primary, affected=[primary],
        )

    # ---- Guests ----

    async def _add_guest(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, (
            "first_name", "last_name", "email", "phone", "group_name", "side", "rsvp_status",
            "meal_preference", "dietary_restrictions", "table_number",
        ))
        fields.update({
            "plus_one_allowed": bool(args.get("plus_one")),
            "needs_hotel": bool(args.get("needs_hotel")),
            "needs_transport": bool(args.get("needs_transport")),
            "side": args.get("side") or "mutual",
            "checked_in": False,
        })
        if args.get("event"):
            fields["attending_events"] = [args["event"]]

        guest = await self.store.create(EntityType.GUEST, fields, scope)
        run.primary("Created guest", EntityType.GUEST, guest["id"])
        primary = _ref(EntityType.GUEST, guest)

        if guest["needs_hotel"]:
            booking = await self.store.create(EntityType.HOTEL_BOOKING, {
                "guest_id": guest["id"],
                "guest_name": primary.display_name,
                "hotel_name": None,
                "status": "pending",
            }, scope)
            run.cascade("Created pending hotel booking (add hotel details when known)", "hotel_booking", booking["id"])

        if guest["needs_transport"]:
            run.cascade("Transportation marked as needed", "transport_flag", guest["id"])

        return ExecutionResult(
            tool_name="add_guest",
            message=f"Added guest: {primary.display_name}",
            data=guest, primary=primary, affected=[primary],
        )

    async def _update_guest_rsvp(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        guest = await self.store.update(EntityType.GUEST, args["guest"], {"rsvp_status": args["rsvp_status"]}, scope)
        run.primary("Updated RSVP", EntityType.GUEST, guest["id"])
        primary = _ref(EntityType.GUEST, guest)
        return ExecutionResult(
            tool_name="update_guest_rsvp",
            message=f"Updated RSVP status to {args['rsvp_status']} for {primary.display_name}",
            data=guest, primary=primary, affected=[primary],
        )

    async def _bulk_update_guests(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        if args.get("guests"):
            targets = [await self.store.get(EntityType.GUEST, guest_id, scope) for guest_id in args["guests"]]
        else:
            targets = await self.store.query(EntityType.GUEST, scope, {"group_name": args["group_name"]})
        if not targets:
            raise ExecutionError("bulk_update_guests", "No guests found matching criteria")

        updates = _pick(args, ("rsvp_status", "table_number", "needs_hotel", "needs_transport"))
        affected = []
        for target in targets:
            guest = await self.store.update(EntityType.GUEST, target["id"], updates, scope)
            run.primary("Updated guest", EntityType.GUEST, guest["id"])
            affected.append(_ref(EntityType.GUEST, guest))

        if updates.get("needs_hotel"):
            booked = {b.get("guest_id") for b in await self.store.query(EntityType.HOTEL_BOOKING, scope)}
            for ref in affected:
                if ref.id in booked:
                    continue
                booking = await self.store.create(EntityType.HOTEL_BOOKING, {
                    "guest_id": ref.id,
                    "guest_name": ref.display_name,
                    "hotel_name": None,
                    "status": "pending",
                }, scope)
                run.cascade(f"Created pending hotel booking for {ref.display_name}", "hotel_booking", booking["id"])

        return ExecutionResult(
            tool_name="bulk_update_guests",
            message=f"Updated {len(affected)} guests",
            data={"updated_count": len(affected), "updates": updates},
            affected=affected,
        )

    async def _check_in_guest(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        guest = await self.store.get(EntityType.GUEST, args["guest"], scope)
        primary = _ref(EntityType.GUEST, guest)
        if guest.get("checked_in"):
            return ExecutionResult(
                tool_name="check_in_guest",
                message=f"{primary.display_name} was already checked in at {guest.get('checked_in_at', 'an earlier time')}",
                data=guest, primary=primary, affected=[primary],
            )

        now = self.clock().strftime("%H:%M")
        guest = await self.store.update(EntityType.GUEST, guest["id"], {"checked_in": True, "checked_in_at": now}, scope)
        run.primary("Checked in guest", EntityType.GUEST, guest["id"])

        details = [f"{primary.display_name} checked in at {now}."]
        if guest.get("table_number"):
            details.append(f"Table {guest['table_number']}.")
        if guest.get("dietary_restrictions") and guest["dietary_restrictions"] != "none":
            details.append(f"Dietary: {guest['dietary_restrictions']}.")
        return ExecutionResult(
            tool_name="check_in_guest", message=" ".join(details),
            data=guest, primary=primary, affected=[primary],
        )

    async def _assign_guests_to_events(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        events = [await self.store.get(EntityType.EVENT, event_id, scope) for event_id in args["events"]]
        event_ids = [event["id"] for event in events]
        guests = await select_guests(self.store, args, scope)
        if not guests:
            raise ExecutionError("assign_guests_to_events", "No guests found matching the criteria")

        affected = []
        unchanged = 0
        for guest in guests:
            current = list(guest.get("attending_events") or [])
            if args.get("replace_existing"):
                attending = list(event_ids)
            else:
                attending = current + [e for e in event_ids if e not in current]
            affected.append(_ref(EntityType.GUEST, guest))
            if attending == current:
                unchanged += 1
                continue
            await self.store.update(EntityType.GUEST, guest["id"], {"attending_events": attending}, scope)
            run.primary("Updated attending events", EntityType.GUEST, guest["id"])

        titles = " and ".join(display_name(EntityType.EVENT, event) for event in events)
        updated = len(affected) - unchanged
        message = f"Added {updated} guests to {titles}"
        if args.get("replace_existing"):
            message += " (replaced existing assignments)"
        if unchanged:
            message += f"; {unchanged} were already attending"
        return ExecutionResult(
            tool_name="assign_guests_to_events",
            message=message,
            data={"updated_count": updated, "event_ids": event_ids, "guest_ids": [ref.id for ref in affected]},
            affected=affected,
        )

    async def _update_table_dietary(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        table = args["table_number"]
        updates = _pick(args, ("meal_preference", "dietary_restrictions"))
        affected = []
        for guest in await select_guests(self.store, {"table_number": table}, scope):
            guest = await self.store.update(EntityType.GUEST, guest["id"], updates, scope)
            run.primary("Updated meal preference", EntityType.GUEST, guest["id"])
            affected.append(_ref(EntityType.GUEST, guest))

        if affected:
            message = f"Updated {len(affected)} guests at table {table} to {args['meal_preference']}"
        else:
            message = f"No guests found at table {table}"
        return ExecutionResult(
            tool_name="update_table_dietary",
            message=message,
            data={"table_number": table, "updated_count": len(affected), "updates": updates},
            affected=affected,
        )

    # ---- Events and timeline ----

    async def _create_event(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, ("title", "event_type", "date", "start_time", "end_time", "location", "guest_count", "notes"))
        fields["status"] = "planned"
        event = await self.store.create(EntityType.EVENT, fields, scope)
        run.primary("Created event", EntityType.EVENT, event["id"])

        if args.get("start_time"):
            item = await self.store.create(EntityType.TIMELINE_ITEM, {
                "title": args["title"],
                "event_id": event["id"],
                "date": args["date"],
                "start_time": args["start_time"],
                "end_time": args.get("end_time"),
                "location": args.get("location"),
            }, scope)
            run.cascade(f"Created timeline item: {args['title']} at {args['start_time']}", "timeline_item", item["id"])

        primary = _ref(EntityType.EVENT, event)
        return ExecutionResult(
            tool_name="create_event",
            message=f"Created event: {primary.display_name} on {args['date']}",
            data=event, primary=primary, affected=[primary],
        )

    async def _add_timeline_item(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, ("title", "start_time", "end_time", "date", "phase", "location", "responsible"))
        if args.get("event"):
            fields["event_id"] = args["event"]
            if not fields.get("date"):
                event = await self.store.get(EntityType.EVENT, args["event"], scope)
                if event.get("date"):
                    fields["date"] = event["date"]
        if args.get("vendor"):
            fields["vendor_id"] = args["vendor"]

        item = await self.store.create(EntityType.TIMELINE_ITEM, fields, scope)
        run.primary("Created timeline item", EntityType.TIMELINE_ITEM, item["id"])
        primary = _ref(EntityType.TIMELINE_ITEM, item)
        return ExecutionResult(
            tool_name="add_timeline_item",
            message=f"Added {primary.display_name} to the timeline at {item['start_time']}",
            data=item, primary=primary, affected=[primary],
        )

    async def _shift_timeline(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        minutes = args["shift_minutes"]
        items = await select_timeline_items(self.store, args, scope)
        plan = plan_shift(items, minutes)
        affected = []
        for entry in plan:
            fields = {"start_time": entry["new_start_time"], "end_time": entry["new_end_time"]}
            if entry["new_date"]:
                fields["date"] = entry["new_date"]
            item = await self.store.update(EntityType.TIMELINE_ITEM, entry["id"], fields, scope)
            run.cascade(
                f"Rescheduled {entry['title']}: {entry['start_time']} -> {entry['new_start_time']}",
                "timeline_item", item["id"],
            )
            affected.append(_ref(EntityType.TIMELINE_ITEM, item))

        direction = "later" if minutes > 0 else "earlier"
        return ExecutionResult(
            tool_name="shift_timeline",
            message=f"Shifted {len(plan)} timeline items {abs(minutes)} minutes {direction}",
            data={"shifted_count": len(plan), "shift_minutes": minutes, "items": plan},
            affected=affected,
        )

    async def _update_event(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        event = await self.store.get(EntityType.EVENT, args["event"], scope)
        fields = _pick(args, EVENT_UPDATE_FIELDS)
        updated = await self.store.update(EntityType.EVENT, event["id"], fields, scope)
        run.primary("Updated event", EntityType.EVENT, updated["id"])
        primary = _ref(EntityType.EVENT, updated)

        new_date = fields.get("date")
        if new_date and new_date != event.get("date"):
            for item in await event_day_items(self.store, event, scope):
                moved = await self.store.update(EntityType.TIMELINE_ITEM, item["id"], {"date": new_date}, scope)
                run.cascade(f"Moved {item.get('title', item['id'])} to {new_date}", "timeline_item", moved["id"])

        return ExecutionResult(
            tool_name="update_event",
            message=f"Updated event {primary.display_name}: {', '.join(sorted(fields))}",
            data=updated, primary=primary, affected=[primary],
        )

    # ---- Vendors ----

    async def _add_vendor(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, ("name", "category", "contact_name", "email", "phone", "website"))
        fields["status"] = "inquiry"
        vendor = await self.store.create(EntityType.VENDOR, fields, Scope(company_id=scope.company_id))
        run.primary("Created vendor", EntityType.VENDOR, vendor["id"])
        primary = _ref(EntityType.VENDOR, vendor)

        if args.get("estimated_cost") is not None:
            item = await self.store.create(EntityType.BUDGET_ITEM, {
                "category": args["category"],
                "item_name": args["name"],
                "vendor_id": vendor["id"],
                "estimated_cost": args["estimated_cost"],
                "actual_cost": 0,
                "paid_amount": 0,
                "payment_status": "pending",
            }, scope)
            run.cascade(f"Created budget item for {args['name']}", "budget_item", item["id"])

        if args.get("service_date"):
            item = await self.store.create(EntityType.TIMELINE_ITEM, {
                "title": f"{args['name']} ({args['category']})",
                "date": args["service_date"],
                "vendor_id": vendor["id"],
            }, scope)
            run.cascade(f"Created timeline entry for {args['name']} on {args['service_date']}", "timeline_item", item["id"])

        return ExecutionResult(
            tool_name="add_vendor",
            message=f"Added vendor: {primary.display_name} ({args['category']})",
            data=vendor, primary=primary, affected=[primary],
        )

    async def _update_vendor(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, ("category", "contact_name", "email", "phone", "status", "notes"))
        vendor = await self.store.update(EntityType.VENDOR, args["vendor"], fields, Scope(company_id=scope.company_id))
        run.primary("Updated vendor", EntityType.VENDOR, vendor["id"])
        primary = _ref(EntityType.VENDOR, vendor)
        return ExecutionResult(
            tool_name="update_vendor",
            message=f"Updated vendor {primary.display_name}: {', '.join(sorted(fields)) or 'nothing'}",
            data=vendor, primary=primary, affected=[primary],
        )

    # ---- Hotels, budget, gifts ----

    async def _add_hotel_booking(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        guest = await self.store.get(EntityType.GUEST, args["guest"], scope)
        guest_name = display_name(EntityType.GUEST, guest)
        fields = _pick(args, ("hotel_name", "room_type", "check_in_date", "check_out_date", "confirmation_number"))
        fields.update({"guest_id": guest["id"], "guest_name": guest_name, "status": "confirmed"})

        pending = [
            b for b in await self.store.query(EntityType.HOTEL_BOOKING, scope, {"guest_id": guest["id"]})
            if not b.get("hotel_name")
        ]
        if pending:
            booking = await self.store.update(EntityType.HOTEL_BOOKING, pending[0]["id"], fields, scope)
            run.primary("Completed pending hotel booking", EntityType.HOTEL_BOOKING, booking["id"])
        else:
            booking = await self.store.create(EntityType.HOTEL_BOOKING, fields, scope)
            run.primary("Created hotel booking", EntityType.HOTEL_BOOKING, booking["id"])

        if not guest.get("needs_hotel"):
            await self.store.update(EntityType.GUEST, guest["id"], {"needs_hotel": True}, scope)
            run.cascade(f"Marked {guest_name} as needing a hotel", "guest", guest["id"])

        primary = _ref(EntityType.HOTEL_BOOKING, booking)
        return ExecutionResult(
            tool_name="add_hotel_booking",
            message=f"Booked {args['hotel_name']} for {guest_name}",
            data=booking, primary=primary,
            affected=[primary, EntityRef(entity_type=EntityType.GUEST, id=guest["id"], display_name=guest_name)],
        )

    async def _bulk_add_hotel_bookings(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        hotel = args["hotel_name"]
        guests = await select_guests(self.store, args, scope, needs_hotel_only=args.get("needs_hotel_only", True))
        if args.get("room_count"):
            guests = guests[:args["room_count"]]

        fields = _pick(args, ("check_in_date", "check_out_date", "room_rate", "notes"))
        fields.update({"hotel_name": hotel, "room_type": args.get("room_type") or "Standard", "status": "confirmed"})
        bookings = await self.store.query(EntityType.HOTEL_BOOKING, scope)

        booked = []
        already = []
        for guest in guests:
            guest_name = display_name(EntityType.GUEST, guest)
            existing = [b for b in bookings if b.get("guest_id") == guest["id"]]
            if any(normalize(b.get("hotel_name") or "") == normalize(hotel) for b in existing):
                already.append(guest_name)
                continue

            record = {**fields, "guest_id": guest["id"], "guest_name": guest_name}
            pending = [b for b in existing if not b.get("hotel_name")]
            if pending:
                booking = await self.store.update(EntityType.HOTEL_BOOKING, pending[0]["id"], record, scope)
                run.primary(f"Completed pending hotel booking for {guest_name}", EntityType.HOTEL_BOOKING, booking["id"])
            else:
                booking = await self.store.create(EntityType.HOTEL_BOOKING, record, scope)
                run.primary(f"Booked room for {guest_name}", EntityType.HOTEL_BOOKING, booking["id"])
            booked.append(_ref(EntityType.HOTEL_BOOKING, booking))

            if not guest.get("needs_hotel"):
                await self.store.update(EntityType.GUEST, guest["id"], {"needs_hotel": True}, scope)
                run.cascade(f"Marked {guest_name} as needing a hotel", "guest", guest["id"])

        if not guests:
            message = "No matching guests found for hotel booking"
        else:
            message = f"Created {len(booked)} hotel bookings at {hotel}"
            if already:
                message += f"; already booked there: {', '.join(already)}"
        return ExecutionResult(
            tool_name="bulk_add_hotel_bookings",
            message=message,
            data={"hotel_name": hotel, "bookings_created": len(booked), "already_booked": already},
            affected=booked,
        )

    async def _update_budget_item(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, ("estimated_cost", "actual_cost", "paid_amount", "payment_status", "notes"))
        item = await self.store.update(EntityType.BUDGET_ITEM, args["budget_item"], fields, scope)
        run.primary("Updated budget item", EntityType.BUDGET_ITEM, item["id"])
        primary = _ref(EntityType.BUDGET_ITEM, item)
        return ExecutionResult(
            tool_name="update_budget_item",
            message=(
                f"Updated {primary.display_name}: estimated {format_money(item.get('estimated_cost'))}, "
                f"actual {format_money(item.get('actual_cost'))}, paid {format_money(item.get('paid_amount'))}"
            ),
            data=item, primary=primary, affected=[primary],
        )

    async def _add_gift(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, ("description", "giver_name", "value", "received_date"))
        if args.get("guest"):
            fields["guest_id"] = args["guest"]
            if not fields.get("giver_name"):
                guest = await self.store.get(EntityType.GUEST, args["guest"], scope)
                fields["giver_name"] = display_name(EntityType.GUEST, guest)
        fields["thank_you_sent"] = False

        gift = await self.store.create(EntityType.GIFT, fields, scope)
        run.primary("Recorded gift", EntityType.GIFT, gift["id"])
        primary = _ref(EntityType.GIFT, gift)
        giver = f" from {gift['giver_name']}" if gift.get("giver_name") else ""
        return ExecutionResult(
            tool_name="add_gift",
            message=f"Recorded gift: {primary.display_name}{giver}",
            data=gift, primary=primary, affected=[primary],
        )

    async def _update_gift(self, args, scope: Scope, run: _Run) -> ExecutionResult:
        fields = _pick(args, ("thank_you_sent", "thank_you_sent_date", "notes"))
        if fields.get("thank_you_sent") and not fields.get("thank_you_sent_date"):
            fields["thank_you_sent_date"] = self.clock().date().isoformat()
        gift = await self.store.update(EntityType.GIFT, args["gift"], fields, scope)
        run.primary("Updated gift", EntityType.GIFT, gift["id"])
        primary = _ref(EntityType.GIFT, gift)
        return ExecutionResult(
            tool_name="update_gift",
            message=f"Updated gift {primary.display_name}: {', '.join(sorted(fields)) or 'nothing'}",
            data=gift, primary=primary, affected=[primary],
        )
