"""Tests for the conversation context builder."""

import asyncio

from fakes import build_demo_store
from memory.context_manager import ContextBuilder
from memory.entity_memory import MemoryRole
from memory.models import ConversationSession
from schemas.actions import ActionPreview, PendingAction
from schemas.context import Identity
from schemas.entities import EntityType, ResolvedEntity


class TestContextBuilder:
    """Test context snapshots and their prompt rendering."""

    def setup_method(self):
        """Set up test fixtures."""
        self.builder = ContextBuilder(build_demo_store(), max_turns=3)
        self.session = ConversationSession(
            session_id="s-1",
            identity=Identity(user_id="planner-1", company_id="co-1"),
            active_client_id="c-100",
        )

    def build(self):
        return asyncio.run(self.builder.build(self.session))

    def test_active_client_snapshot(self):
        context = self.build()

        client = context.active_client
        assert client.name == "Priya Sharma & Arjun Mehta"
        assert client.guests_total == 5
        assert client.guests_confirmed == 2
        assert client.guests_pending == 2
        assert client.guests_declined == 1
        assert client.budget_paid == 14000

    def test_format_lists_wedding_details(self):
        text = self.builder.format(self.build())

        assert "## Current Wedding: Priya Sharma & Arjun Mehta (client id: c-100)" in text
        assert "- Wedding Date: 2026-12-12" in text
        assert "- Total Budget: $50,000" in text
        assert "- Remaining: $36,000" in text

    def test_format_is_deterministic(self):
        context = self.build()

        assert self.builder.format(context) == self.builder.format(context)

    def test_no_client_selected(self):
        self.session.active_client_id = None

        text = self.builder.format(self.build())

        assert text.startswith("No client selected.")

    def test_client_of_another_company_is_not_shown(self):
        self.session.active_client_id = "c-900"

        context = self.build()

        assert context.active_client is None

    def test_recent_turns_are_bounded(self):
        for i in range(5):
            self.session.add_turn(f"question {i}", f"answer {i}")

        context = self.build()

        assert [t.user for t in context.recent_turns] == ["question 2", "question 3", "question 4"]
        assert "- USER: question 4" in self.builder.format(context)
        assert "question 1" not in self.builder.format(context)

    def test_memory_and_pending_action_are_included(self):
        self.session.memory.remember(MemoryRole.LAST_GUEST, ResolvedEntity(
            entity_type=EntityType.GUEST, id="g-42", display_name="Raj Kumar"
        ))
        self.session.pending_action = PendingAction(
            tool_name="shift_timeline",
            preview=ActionPreview(tool_name="shift_timeline", description="Shift timeline items 30 minutes later"),
        )

        text = self.builder.format(self.build())

        assert "- lastGuest: Raj Kumar (g-42)" in text
        assert "### Awaiting Confirmation: shift_timeline" in text
