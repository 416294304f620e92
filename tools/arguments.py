"""Typed argument models for every tool.

Entity-reference fields carry ``x-entity`` (the type the resolver should
search) and date/time fields carry ``x-parse``. The client field is
``x-inject``-ed from the active client when the model leaves it out. The
same models are validated after resolution, so by then entity fields hold
ids and date fields hold ISO strings.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from schemas.entities import EntityType

RsvpStatus = Literal["pending", "confirmed", "declined", "maybe"]
GuestSide = Literal["bride", "groom", "mutual"]
WeddingType = Literal[
    "traditional", "destination", "intimate", "elopement", "multi_day", "cultural",
    "modern", "rustic", "bohemian", "religious", "luxury",
]
TimelinePhase = Literal["preparation", "ceremony", "reception", "post_event"]
PaymentStatus = Literal["pending", "partial", "paid", "overdue"]
VendorStatus = Literal["inquiry", "booked", "confirmed", "cancelled"]
EventStatus = Literal["planned", "confirmed", "completed", "cancelled"]
ClientStatus = Literal["planning", "confirmed", "completed", "cancelled"]
SearchableType = Literal[
    "client", "guest", "vendor", "event", "budget_item", "hotel_booking", "gift", "timeline_item",
]

EVENT_UPDATE_FIELDS = (
    "title", "event_type", "date", "start_time", "end_time", "location", "guest_count", "status", "notes",
)


def entity_field(entity_type: EntityType, description: str, default=..., **kwargs):
    """A field holding an entity reference (name, pronoun or id)."""
    return Field(default, description=description, json_schema_extra={"x-entity": entity_type.value}, **kwargs)


def date_field(description: str, default=None, kind: str = "date"):
    """A field holding a natural-language date ("next Saturday") or time ("3pm")."""
    return Field(default, description=description, json_schema_extra={"x-parse": kind})


def client_field():
    return Field(
        None,
        description="Client name or id. Defaults to the client currently in focus.",
        json_schema_extra={"x-entity": EntityType.CLIENT.value, "x-inject": True},
    )


class ToolArguments(BaseModel):
    """Base for argument models; unknown keys from the model are ignored."""
    model_config = ConfigDict(extra="ignore")


# ---- Queries ----

class ClientScopedQueryArgs(ToolArguments):
    client: Optional[str] = client_field()


class SearchEntitiesArgs(ToolArguments):
    query: str = Field(..., min_length=1, description="Name or keyword to search for")
    entity_types: Optional[List[SearchableType]] = Field(None, description="Restrict to these record types")
    limit: int = Field(10, ge=1, le=50, description="Maximum results")


# ---- Clients ----

class CreateClientArgs(ToolArguments):
    partner1_first_name: str = Field(..., min_length=1, description="First partner's first name")
    partner1_last_name: Optional[str] = None
    partner1_email: Optional[str] = None
    partner1_phone: Optional[str] = None
    partner2_first_name: Optional[str] = None
    partner2_last_name: Optional[str] = None
    partner2_email: Optional[str] = None
    wedding_date: Optional[str] = date_field("Wedding date, e.g. 2026-12-12 or 'next June 5'")
    venue: Optional[str] = None
    budget: Optional[float] = Field(None, ge=0, description="Total budget in dollars")
    guest_count: Optional[int] = Field(None, ge=0)
    wedding_type: Optional[WeddingType] = Field(None, description="Drives the budget template")


class UpdateClientArgs(ToolArguments):
    client: Optional[str] = client_field()
    partner1_first_name: Optional[str] = None
    partner1_last_name: Optional[str] = None
    partner1_email: Optional[str] = None
    partner2_first_name: Optional[str] = None
    partner2_last_name: Optional[str] = None
    wedding_date: Optional[str] = date_field("New wedding date")
    venue: Optional[str] = None
    budget: Optional[float] = Field(None, ge=0)
    guest_count: Optional[int] = Field(None, ge=0)
    status: Optional[ClientStatus] = None


# ---- Guests ----

class AddGuestArgs(ToolArguments):
    client: Optional[str] = client_field()
    first_name: str = Field(..., min_length=1, description="Guest first name")
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    group_name: Optional[str] = Field(None, description="e.g. Bride's Family")
    side: Optional[GuestSide] = None
    rsvp_status: RsvpStatus = "pending"
    meal_preference: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    plus_one: bool = False
    table_number: Optional[int] = Field(None, ge=1)
    needs_hotel: bool = Field(False, description="Guest needs hotel accommodation")
    needs_transport: bool = Field(False, description="Guest needs transportation")
    event: Optional[str] = entity_field(EntityType.EVENT, "Event the guest attends", default=None)


class UpdateGuestRsvpArgs(ToolArguments):
    client: Optional[str] = client_field()
    guest: str = entity_field(EntityType.GUEST, "Guest name, pronoun or id")
    rsvp_status: RsvpStatus = Field(..., description="New RSVP status")


class BulkUpdateGuestsArgs(ToolArguments):
    client: Optional[str] = client_field()
    guests: Optional[List[str]] = entity_field(EntityType.GUEST, "Guest names, pronouns or ids", default=None)
    group_name: Optional[str] = Field(None, description="Update every guest in this group")
    rsvp_status: Optional[RsvpStatus] = None
    table_number: Optional[int] = Field(None, ge=1)
    needs_hotel: Optional[bool] = None
    needs_transport: Optional[bool] = None

    @model_validator(mode="after")
    def check_selection(self):
        if not self.guests and not self.group_name:
            raise ValueError("Either guests or group_name is required")
        if all(getattr(self, f) is None for f in ("rsvp_status", "table_number", "needs_hotel", "needs_transport")):
            raise ValueError("At least one field to update is required")
        return self


class CheckInGuestArgs(ToolArguments):
    client: Optional[str] = client_field()
    guest: str = entity_field(EntityType.GUEST, "Guest name, pronoun or id")


class AssignGuestsToEventsArgs(ToolArguments):
    client: Optional[str] = client_field()
    events: List[str] = entity_field(EntityType.EVENT, "Event names or ids, e.g. Mehndi and Reception", min_length=1)
    guests: Optional[List[str]] = entity_field(EntityType.GUEST, "Guest names, pronouns or ids", default=None)
    last_name: Optional[str] = Field(None, description="Select a whole family by last name")
    group_name: Optional[str] = None
    side: Optional[GuestSide] = None
    rsvp_status: Optional[RsvpStatus] = None
    replace_existing: bool = Field(False, description="Replace the guests' event list instead of adding to it")

    @model_validator(mode="after")
    def check_selection(self):
        if not self.guests and not any((self.last_name, self.group_name, self.side, self.rsvp_status)):
            raise ValueError("Select guests by name, last_name, group_name, side or rsvp_status")
        return self


class UpdateTableDietaryArgs(ToolArguments):
    client: Optional[str] = client_field()
    table_number: int = Field(..., ge=1)
    meal_preference: str = Field(..., min_length=1, description="e.g. vegetarian, vegan, chicken")
    dietary_restrictions: Optional[str] = None


# ---- Events and timeline ----

class CreateEventArgs(ToolArguments):
    client: Optional[str] = client_field()
    title: str = Field(..., min_length=1)
    event_type: Optional[str] = Field(None, description="e.g. Sangeet, Rehearsal Dinner")
    date: str = date_field("Event date", default=...)
    start_time: Optional[str] = date_field("Start time, e.g. 6pm", kind="time")
    end_time: Optional[str] = date_field("End time", kind="time")
    location: Optional[str] = None
    guest_count: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class AddTimelineItemArgs(ToolArguments):
    client: Optional[str] = client_field()
    title: str = Field(..., min_length=1)
    start_time: str = date_field("Start time, e.g. 4pm", default=..., kind="time")
    end_time: Optional[str] = date_field("End time", kind="time")
    date: Optional[str] = date_field("Date of the item")
    event: Optional[str] = entity_field(EntityType.EVENT, "Event this item belongs to", default=None)
    phase: Optional[TimelinePhase] = None
    location: Optional[str] = None
    responsible: Optional[str] = None
    vendor: Optional[str] = entity_field(EntityType.VENDOR, "Vendor responsible", default=None)


class ShiftTimelineArgs(ToolArguments):
    client: Optional[str] = client_field()
    shift_minutes: int = Field(..., description="Minutes to shift; positive is later, negative earlier")
    event: Optional[str] = entity_field(EntityType.EVENT, "Only shift this event's items", default=None)
    start_from: Optional[str] = entity_field(
        EntityType.TIMELINE_ITEM, "Only shift items starting at or after this one", default=None
    )
    phase: Optional[TimelinePhase] = None

    @model_validator(mode="after")
    def check_shift(self):
        if self.shift_minutes == 0:
            raise ValueError("shift_minutes must not be zero")
        return self


class UpdateEventArgs(ToolArguments):
    client: Optional[str] = client_field()
    event: str = entity_field(EntityType.EVENT, "Event name or id")
    title: Optional[str] = None
    event_type: Optional[str] = None
    date: Optional[str] = date_field("New event date; the event's timeline items move with it")
    start_time: Optional[str] = date_field("New start time", kind="time")
    end_time: Optional[str] = date_field("New end time", kind="time")
    location: Optional[str] = None
    guest_count: Optional[int] = Field(None, ge=0)
    status: Optional[EventStatus] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_changes(self):
        if all(getattr(self, f) is None for f in EVENT_UPDATE_FIELDS):
            raise ValueError("At least one field to update is required")
        return self


# ---- Vendors ----

class AddVendorArgs(ToolArguments):
    client: Optional[str] = client_field()
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1, description="e.g. florals, photography, catering")
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    estimated_cost: Optional[float] = Field(None, ge=0, description="Creates a budget item when given")
    service_date: Optional[str] = date_field("Service date; creates a timeline entry when given")


class UpdateVendorArgs(ToolArguments):
    vendor: str = entity_field(EntityType.VENDOR, "Vendor name or id")
    category: Optional[str] = None
    contact_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[VendorStatus] = None
    notes: Optional[str] = None


# ---- Hotels, budget, gifts ----

class AddHotelBookingArgs(ToolArguments):
    client: Optional[str] = client_field()
    guest: str = entity_field(EntityType.GUEST, "Guest the room is for")
    hotel_name: str = Field(..., min_length=1)
    room_type: Optional[str] = None
    check_in_date: Optional[str] = date_field("Check-in date")
    check_out_date: Optional[str] = date_field("Check-out date")
    confirmation_number: Optional[str] = None


class BulkAddHotelBookingsArgs(ToolArguments):
    client: Optional[str] = client_field()
    hotel_name: str = Field(..., min_length=1)
    guests: Optional[List[str]] = entity_field(EntityType.GUEST, "Guest names, pronouns or ids", default=None)
    group_name: Optional[str] = None
    side: Optional[GuestSide] = None
    needs_hotel_only: bool = Field(True, description="When selecting by group or side, only guests who need a hotel")
    room_type: Optional[str] = None
    check_in_date: Optional[str] = date_field("Check-in date")
    check_out_date: Optional[str] = date_field("Check-out date")
    room_rate: Optional[float] = Field(None, ge=0, description="Nightly rate in dollars")
    room_count: Optional[int] = Field(None, ge=1, description="Book at most this many rooms")
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_selection(self):
        if not self.guests and not self.group_name and not self.side and not self.needs_hotel_only:
            raise ValueError("Select guests by name, group_name or side")
        return self


class UpdateBudgetItemArgs(ToolArguments):
    client: Optional[str] = client_field()
    budget_item: str = entity_field(EntityType.BUDGET_ITEM, "Budget item or category name")
    estimated_cost: Optional[float] = Field(None, ge=0)
    actual_cost: Optional[float] = Field(None, ge=0)
    paid_amount: Optional[float] = Field(None, ge=0)
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = None


class AddGiftArgs(ToolArguments):
    client: Optional[str] = client_field()
    description: str = Field(..., min_length=1)
    giver_name: Optional[str] = None
    guest: Optional[str] = entity_field(EntityType.GUEST, "Guest who gave the gift", default=None)
    value: Optional[float] = Field(None, ge=0)
    received_date: Optional[str] = date_field("Date received")


class UpdateGiftArgs(ToolArguments):
    client: Optional[str] = client_field()
    gift: str = entity_field(EntityType.GIFT, "Gift description or id")
    thank_you_sent: Optional[bool] = None
    thank_you_sent_date: Optional[str] = date_field("Date the thank-you note was sent")
    notes: Optional[str] = None
