"""Tool definitions for the wedding planning assistant."""

from schemas.tools import ToolDefinition, ToolKind, ToolCategory
from .arguments import (
    ClientScopedQueryArgs, SearchEntitiesArgs,
    CreateClientArgs, UpdateClientArgs,
    AddGuestArgs, UpdateGuestRsvpArgs, BulkUpdateGuestsArgs, CheckInGuestArgs,
    AssignGuestsToEventsArgs, UpdateTableDietaryArgs,
    CreateEventArgs, AddTimelineItemArgs, ShiftTimelineArgs, UpdateEventArgs,
    AddVendorArgs, UpdateVendorArgs,
    AddHotelBookingArgs, BulkAddHotelBookingsArgs, UpdateBudgetItemArgs, AddGiftArgs, UpdateGiftArgs,
)
from .catalog import ToolCatalog

QUERY = ToolKind.QUERY
MUTATION = ToolKind.MUTATION

DEFAULT_TOOLS = (
    # Queries
    ToolDefinition(
        name="get_client_summary",
        kind=QUERY,
        category=ToolCategory.CLIENT,
        description="Get client overview with wedding details, guest, budget, vendor and event statistics",
        arguments_model=ClientScopedQueryArgs,
    ),
    ToolDefinition(
        name="get_guest_stats",
        kind=QUERY,
        category=ToolCategory.GUEST,
        description="Get guest statistics (confirmed, pending, declined, hotel, transport, dietary)",
        arguments_model=ClientScopedQueryArgs,
    ),
    ToolDefinition(
        name="get_budget_overview",
        kind=QUERY,
        category=ToolCategory.BUDGET,
        description="Get budget overview with totals spent, paid, remaining and a per-category breakdown",
        arguments_model=ClientScopedQueryArgs,
    ),
    ToolDefinition(
        name="search_entities",
        kind=QUERY,
        category=ToolCategory.SEARCH,
        description="Search clients, guests, vendors, events, budget items, hotel bookings, gifts and timeline items by name",
        arguments_model=SearchEntitiesArgs,
    ),
    ToolDefinition(
        name="sync_hotel_guests",
        kind=QUERY,
        category=ToolCategory.HOTEL,
        description="Get hotel accommodation summary grouped by hotel",
        arguments_model=ClientScopedQueryArgs,
    ),
    # Client mutations
    ToolDefinition(
        name="create_client",
        kind=MUTATION,
        category=ToolCategory.CLIENT,
        description="Create a new wedding client",
        arguments_model=CreateClientArgs,
        cascade_effects=(
            "Auto-creates main wedding event if wedding_date provided",
            "Auto-generates budget categories based on wedding type if budget provided",
            "Creates default timeline template if wedding_date provided",
        ),
    ),
    ToolDefinition(
        name="update_client",
        kind=MUTATION,
        category=ToolCategory.CLIENT,
        description="Update an existing client's details",
        arguments_model=UpdateClientArgs,
        cascade_effects=("Syncs wedding details to main event (date, venue, guest count)",),
    ),
    # Guest mutations
    ToolDefinition(
        name="add_guest",
        kind=MUTATION,
        category=ToolCategory.GUEST,
        description="Add a new guest to a wedding",
        arguments_model=AddGuestArgs,
        cascade_effects=(
            "Auto-creates hotel booking if needs_hotel=true (hotel details can be added once provided)",
            "Marks transportation as needed if needs_transport=true",
        ),
    ),
    ToolDefinition(
        name="update_guest_rsvp",
        kind=MUTATION,
        category=ToolCategory.GUEST,
        description="Update a guest's RSVP status",
        arguments_model=UpdateGuestRsvpArgs,
        cascade_effects=("Updates guest count aggregations", "May affect meal counts and seating"),
    ),
    ToolDefinition(
        name="bulk_update_guests",
        kind=MUTATION,
        category=ToolCategory.GUEST,
        description="Update several guests at once, by name list or by group",
        arguments_model=BulkUpdateGuestsArgs,
        cascade_effects=("Auto-creates hotel bookings for guests newly marked needs_hotel=true",),
    ),
    ToolDefinition(
        name="check_in_guest",
        kind=MUTATION,
        category=ToolCategory.GUEST,
        description="Fast check-in for day-of event management",
        arguments_model=CheckInGuestArgs,
    ),
    ToolDefinition(
        name="assign_guests_to_events",
        kind=MUTATION,
        category=ToolCategory.GUEST,
        description="Invite guests to one or more events, selected by name, family, group, side or RSVP status",
        arguments_model=AssignGuestsToEventsArgs,
        cascade_effects=("Updates attending events for each selected guest", "May affect event guest counts"),
    ),
    ToolDefinition(
        name="update_table_dietary",
        kind=MUTATION,
        category=ToolCategory.GUEST,
        description="Set the meal preference for every guest seated at a table",
        arguments_model=UpdateTableDietaryArgs,
        cascade_effects=("Updates meal preference for all guests at the table",),
    ),
    # Events and timeline
    ToolDefinition(
        name="create_event",
        kind=MUTATION,
        category=ToolCategory.EVENT,
        description="Create a new event (ceremony, sangeet, reception, etc.)",
        arguments_model=CreateEventArgs,
        cascade_effects=("Creates a timeline entry for the event start if start_time provided",),
    ),
    ToolDefinition(
        name="add_timeline_item",
        kind=MUTATION,
        category=ToolCategory.TIMELINE,
        description="Add an item to the wedding day timeline",
        arguments_model=AddTimelineItemArgs,
    ),
    ToolDefinition(
        name="shift_timeline",
        kind=MUTATION,
        category=ToolCategory.TIMELINE,
        description="Shift timeline items later (positive minutes) or earlier (negative minutes)",
        arguments_model=ShiftTimelineArgs,
        cascade_effects=("Updates start/end times for all affected items", "May affect vendor schedules"),
    ),
    ToolDefinition(
        name="update_event",
        kind=MUTATION,
        category=ToolCategory.EVENT,
        description="Update an event's title, date, times, location, guest count or status",
        arguments_model=UpdateEventArgs,
        cascade_effects=("Moves the event's timeline items to the new date if the date changes",),
    ),
    # Vendors
    ToolDefinition(
        name="add_vendor",
        kind=MUTATION,
        category=ToolCategory.VENDOR,
        description="Add a new vendor",
        arguments_model=AddVendorArgs,
        cascade_effects=(
            "Auto-creates budget item for vendor if estimated_cost provided",
            "Auto-creates timeline entry if service_date provided",
        ),
    ),
    ToolDefinition(
        name="update_vendor",
        kind=MUTATION,
        category=ToolCategory.VENDOR,
        description="Update vendor contact details or status",
        arguments_model=UpdateVendorArgs,
    ),
    # Hotels, budget, gifts
    ToolDefinition(
        name="add_hotel_booking",
        kind=MUTATION,
        category=ToolCategory.HOTEL,
        description="Add a hotel booking for a guest",
        arguments_model=AddHotelBookingArgs,
        cascade_effects=("Links to guest record (marks the guest as needing a hotel)",),
    ),
    ToolDefinition(
        name="bulk_add_hotel_bookings",
        kind=MUTATION,
        category=ToolCategory.HOTEL,
        description="Book rooms at one hotel for several guests, by name list, group or side",
        arguments_model=BulkAddHotelBookingsArgs,
        cascade_effects=(
            "Creates a booking per guest, completing pending bookings where they exist",
            "Marks each booked guest as needing a hotel",
        ),
    ),
    ToolDefinition(
        name="update_budget_item",
        kind=MUTATION,
        category=ToolCategory.BUDGET,
        description="Update a budget item's costs, payments or status",
        arguments_model=UpdateBudgetItemArgs,
    ),
    ToolDefinition(
        name="add_gift",
        kind=MUTATION,
        category=ToolCategory.GIFT,
        description="Record a gift received",
        arguments_model=AddGiftArgs,
    ),
    ToolDefinition(
        name="update_gift",
        kind=MUTATION,
        category=ToolCategory.GIFT,
        description="Update a gift, e.g. mark the thank-you note as sent",
        arguments_model=UpdateGiftArgs,
    ),
)


def build_default_catalog() -> ToolCatalog:
    """Build the catalog of every tool the assistant offers."""
    return ToolCatalog(DEFAULT_TOOLS)
