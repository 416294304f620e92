"""Tests for the in-memory entity store."""

import asyncio

import pytest

from fakes import SEED_PATH, FakeClock, build_demo_store, sequential_ids
from schemas.entities import EntityType, Scope
from store.entity_store import InMemoryEntityStore
from store.records import display_name, searchable_names
from store.seed import load_seed
from utils.errors import ConstraintViolationError, EntityNotFoundError, ScopeViolationError

COMPANY = Scope(company_id="co-1")
PRIYA_ARJUN = COMPANY.for_client("c-100")


class TestInMemoryEntityStore:
    """Test tenant scoping, constraints and the write log."""

    def setup_method(self):
        """Set up test fixtures."""
        self.store = build_demo_store()

    def run(self, coroutine):
        return asyncio.run(coroutine)

    def test_query_is_client_scoped(self):
        guests = self.run(self.store.query(EntityType.GUEST, PRIYA_ARJUN))

        assert {g["id"] for g in guests} == {"g-42", "g-43", "g-44", "g-45", "g-46"}

    def test_company_scope_sees_every_client(self):
        guests = self.run(self.store.query(EntityType.GUEST, COMPANY))

        assert "g-200" in {g["id"] for g in guests}
        assert "g-900" not in {g["id"] for g in guests}

    def test_query_filters(self):
        guests = self.run(self.store.query(EntityType.GUEST, PRIYA_ARJUN, {"rsvp_status": ["confirmed", "declined"]}))

        assert {g["id"] for g in guests} == {"g-43", "g-44", "g-45"}

    def test_other_tenant_record_reads_as_missing(self):
        with pytest.raises(EntityNotFoundError):
            self.run(self.store.get(EntityType.GUEST, "g-900", PRIYA_ARJUN))
        with pytest.raises(EntityNotFoundError):
            self.run(self.store.get(EntityType.GUEST, "g-200", PRIYA_ARJUN))

    def test_reads_are_copies(self):
        guest = self.run(self.store.get(EntityType.GUEST, "g-42", PRIYA_ARJUN))
        guest["first_name"] = "Changed"

        assert self.run(self.store.get(EntityType.GUEST, "g-42", PRIYA_ARJUN))["first_name"] == "Raj"

    def test_create_stamps_scope_and_logs(self):
        guest = self.run(self.store.create(EntityType.GUEST, {"first_name": "Kavya"}, PRIYA_ARJUN))

        assert guest["id"] == "g-new-1"
        assert guest["company_id"] == "co-1"
        assert guest["client_id"] == "c-100"
        assert self.store.write_log == [("create", "guest", "g-new-1")]

    def test_client_scoped_write_needs_client(self):
        with pytest.raises(ScopeViolationError):
            self.run(self.store.create(EntityType.GUEST, {"first_name": "Kavya"}, COMPANY))
        assert self.store.write_log == []

    def test_required_fields(self):
        with pytest.raises(ConstraintViolationError):
            self.run(self.store.create(EntityType.VENDOR, {"name": "Mehfil Musicians"}, COMPANY))

    def test_cross_tenant_fields_rejected(self):
        with pytest.raises(ScopeViolationError):
            self.run(self.store.create(EntityType.GUEST, {"first_name": "Kavya", "client_id": "c-200"}, PRIYA_ARJUN))

    def test_update_cannot_move_record(self):
        with pytest.raises(ScopeViolationError):
            self.run(self.store.update(EntityType.GUEST, "g-42", {"client_id": "c-200"}, PRIYA_ARJUN))

    def test_update_and_delete_are_logged(self):
        self.run(self.store.update(EntityType.GUEST, "g-42", {"rsvp_status": "confirmed"}, PRIYA_ARJUN))
        self.run(self.store.delete(EntityType.GIFT, "gf-1", PRIYA_ARJUN))

        assert self.store.write_log == [("update", "guest", "g-42"), ("delete", "gift", "gf-1")]
        assert self.store.count(EntityType.GIFT) == 0

    def test_timestamps_follow_the_clock(self):
        clock = FakeClock()
        store = InMemoryEntityStore(id_factory=sequential_ids(), clock=clock)

        guest = self.run(store.create(EntityType.GUEST, {"first_name": "Kavya"}, PRIYA_ARJUN))
        clock.advance(60)
        updated = self.run(store.update(EntityType.GUEST, guest["id"], {"rsvp_status": "confirmed"}, PRIYA_ARJUN))

        assert guest["created_at"] == "2026-10-19T10:00:00"
        assert updated["created_at"] == "2026-10-19T10:00:00"
        assert updated["updated_at"] == "2026-10-19T10:01:00"

    def test_seed_records_need_ids(self):
        with pytest.raises(ConstraintViolationError):
            InMemoryEntityStore().load(EntityType.GUEST, [{"company_id": "co-1", "first_name": "Nobody"}])


class TestSeedAndRecords:
    """Test seed loading and record naming."""

    def test_seed_counts(self):
        store = load_seed(str(SEED_PATH))

        assert store.count(EntityType.CLIENT) == 3
        assert store.count(EntityType.TIMELINE_ITEM) == 4

    def test_missing_seed_file_gives_empty_store(self, tmp_path):
        store = load_seed(str(tmp_path / "missing.yaml"))

        assert store.count(EntityType.GUEST) == 0

    def test_display_names(self):
        client = {"partner1_first_name": "Priya", "partner1_last_name": "Sharma", "partner2_first_name": "Arjun"}
        booking = {"guest_name": "Raj Kapoor", "hotel_name": None}

        assert display_name(EntityType.CLIENT, client) == "Priya Sharma & Arjun"
        assert display_name(EntityType.HOTEL_BOOKING, booking) == "Raj Kapoor (hotel pending)"

    def test_searchable_names_include_partners(self):
        client = {"partner1_first_name": "Emma", "partner1_last_name": "Wilson", "partner2_first_name": "James"}

        assert searchable_names(EntityType.CLIENT, client) == ["Emma Wilson & James", "Emma Wilson", "James"]
