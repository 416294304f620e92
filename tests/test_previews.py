"""Tests for mutation previews."""

import asyncio
from datetime import date

from fakes import build_demo_store
from schemas.entities import EntityType, ResolvedEntity, Scope
from tools.definitions import build_default_catalog
from tools.previews import PreviewBuilder

TODAY = date(2026, 10, 19)
SCOPE = Scope(company_id="co-1", client_id="c-100")
RAJ = ResolvedEntity(entity_type=EntityType.GUEST, id="g-42", display_name="Raj Kumar")


class TestPreviewBuilder:
    """Test descriptions, details and warnings."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = build_demo_store()
        self.catalog = build_default_catalog()
        self.builder = PreviewBuilder(self.store)

    def preview(self, tool_name, args, resolved=None):
        return asyncio.run(self.builder.build(
            self.catalog.get(tool_name), args, resolved or {}, SCOPE, TODAY
        ))

    def test_fields_use_display_names_and_formats(self):
        preview = self.preview("create_client", {
            "partner1_first_name": "Nina", "partner2_first_name": "Rohan", "budget": 40000,
        })
        shown = {f.name: f.display_value for f in preview.fields}

        assert preview.description == "Create a new wedding client for Nina & Rohan"
        assert shown["budget"] == "$40,000"
        assert preview.cascade_effects == list(self.catalog.get("create_client").cascade_effects)

    def test_entity_fields_show_names_not_ids(self):
        preview = self.preview(
            "update_guest_rsvp",
            {"client": "c-100", "guest": "g-42", "rsvp_status": "confirmed"},
            {"guest": [RAJ]},
        )
        shown = {f.name: f.display_value for f in preview.fields}

        assert preview.description == "Set Raj Kumar's RSVP to confirmed"
        assert shown["guest"] == "Raj Kumar"
        assert preview.warnings == []

    def test_false_flags_are_hidden(self):
        preview = self.preview("add_guest", {
            "client": "c-100", "first_name": "Kavya", "needs_hotel": True, "needs_transport": False,
        })
        shown = {f.name: f.display_value for f in preview.fields}

        assert shown["needs_hotel"] == "Yes"
        assert "needs_transport" not in shown

    def test_declined_rsvp_warns_about_headcount(self):
        preview = self.preview(
            "update_guest_rsvp",
            {"client": "c-100", "guest": "g-42", "rsvp_status": "declined"},
            {"guest": [RAJ]},
        )

        assert preview.warnings[0].startswith("Raj Kumar will no longer count toward confirmed headcount")

    def test_past_date_warning(self):
        preview = self.preview("create_event", {"client": "c-100", "title": "Engagement", "date": "2026-01-01"})

        assert preview.warnings == ["Date 2026-01-01 is in the past"]

    def test_future_date_has_no_warning(self):
        preview = self.preview("create_event", {"client": "c-100", "title": "Sangeet", "date": "2026-12-10"})

        assert preview.warnings == []

    def test_overpayment_warnings(self):
        preview = self.preview("update_budget_item", {"client": "c-100", "budget_item": "b-3", "paid_amount": 6000})

        assert preview.warnings == [
            "Actual cost $5,200 exceeds the estimate $5,000 by $200",
            "Paid amount $6,000 is more than the cost $5,200",
        ]

    def test_committed_costs_over_budget(self):
        preview = self.preview("update_budget_item", {"client": "c-100", "budget_item": "b-4", "actual_cost": 15000})

        assert "Committed costs $52,700 would exceed the total budget $50,000" in preview.warnings

    def test_duplicate_guest_warning(self):
        preview = self.preview("add_guest", {"client": "c-100", "first_name": "Raj", "last_name": "Kumar"})

        assert preview.warnings == ["Possible duplicate: Raj Kumar (Group: Groom's Family)"]

    def test_duplicate_vendor_checks_own_company_only(self):
        preview = self.preview("add_vendor", {"client": "c-100", "name": "Lensworks Studio", "category": "photography"})

        assert preview.warnings == ["Possible duplicate: Lensworks Studio (Category: photography)"]

    def test_shift_details_list_every_item_without_writing(self):
        preview = self.preview("shift_timeline", {"client": "c-100", "shift_minutes": 30})

        assert preview.details == [
            "Getting Ready: 13:00-15:30 -> 13:30-16:00",
            "Ceremony: 16:00-17:00 -> 16:30-17:30",
            "Cocktail Hour: 17:00-18:00 -> 17:30-18:30",
            "Reception Dinner: 18:30-22:30 -> 19:00-23:00",
        ]
        assert self.store.write_log == []

    def test_shift_end_time_wraps_past_midnight(self):
        preview = self.preview("shift_timeline", {
            "client": "c-100", "shift_minutes": 120, "start_from": "t-4",
        })

        assert preview.details == ["Reception Dinner: 18:30-22:30 -> 20:30-00:30"]

    def test_shift_with_no_matching_items(self):
        preview = self.preview("shift_timeline", {"client": "c-100", "shift_minutes": 30, "phase": "post_event"})

        assert preview.details == ["No timeline items match; nothing would change"]

    def test_empty_group_warns(self):
        preview = self.preview("bulk_update_guests", {
            "client": "c-100", "group_name": "Nobody", "rsvp_status": "confirmed",
        })

        assert preview.details == ["0 guests in Nobody"]
        assert preview.warnings == ["No guests are in the group Nobody"]

    def test_event_date_change_lists_moving_items(self):
        wedding = ResolvedEntity(entity_type=EntityType.EVENT, id="e-1", display_name="Priya & Arjun's Wedding")
        preview = self.preview("update_event", {"client": "c-100", "event": "e-1", "date": "2026-12-13"}, {"event": [wedding]})

        assert preview.description == "Update event Priya & Arjun's Wedding"
        assert preview.details[0] == "Getting Ready moves to 2026-12-13"
        assert len(preview.details) == 4
        assert self.store.write_log == []

    def test_assign_preview_lists_selected_guests(self):
        mehndi = ResolvedEntity(entity_type=EntityType.EVENT, id="e-2", display_name="Mehndi Night")
        preview = self.preview(
            "assign_guests_to_events",
            {"client": "c-100", "events": ["e-2"], "last_name": "Kumar", "replace_existing": False},
            {"events": [mehndi]},
        )

        assert preview.description == "Add the Kumar family to Mehndi Night"
        assert preview.details == ["1 guests: Raj Kumar"]
        assert "replace_existing" not in {f.name for f in preview.fields}

    def test_bulk_booking_preview_warns_when_nobody_matches(self):
        preview = self.preview("bulk_add_hotel_bookings", {
            "client": "c-100", "hotel_name": "Oberoi Udaivilas", "side": "bride", "needs_hotel_only": True,
        })

        assert preview.description == "Book Oberoi Udaivilas for bride side guests"
        assert preview.warnings == ["No guests match this selection; nothing would change"]
