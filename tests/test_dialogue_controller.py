"""Tests for the dialogue controller and its confirmation state machine."""

import asyncio
from collections import Counter

import pytest

from fakes import (
    FakeClock, FakeLLMClient, build_demo_store, make_controller, sequential_ids, text_reply, tool_call,
)
from agents.localization import translate
from llm.base_client import LLMResponse, MalformedResponseError, ToolCall
from memory.entity_memory import MemoryRole
from memory.sqlite_store import SQLiteMemoryStore
from schemas.actions import ActionState
from schemas.context import Identity, Language
from schemas.entities import EntityType, ResolvedEntity, Scope
from schemas.responses import ResponseType
from store.entity_store import InMemoryEntityStore
from utils.errors import ConstraintViolationError, SessionNotFoundError

RAJ_KUMAR = ResolvedEntity(entity_type=EntityType.GUEST, id="g-42", display_name="Raj Kumar")
ANITA = ResolvedEntity(entity_type=EntityType.GUEST, id="g-44", display_name="Anita Desai")
OLIVER = ResolvedEntity(entity_type=EntityType.GUEST, id="g-200", display_name="Oliver Brown")


class HotelOutageStore(InMemoryEntityStore):
    """Accepts every write except hotel bookings."""

    async def create(self, entity_type, fields, scope):
        if entity_type == EntityType.HOTEL_BOOKING:
            raise ConstraintViolationError("hotel bookings are unavailable")
        return await super().create(entity_type, fields, scope)


class OutageStore(InMemoryEntityStore):
    """Loses its connection once ``down`` is set."""

    down = False

    async def query(self, entity_type, scope, filters=None):
        if self.down:
            raise ConnectionError("entity store unreachable")
        return await super().query(entity_type, scope, filters)

    async def create(self, entity_type, fields, scope):
        if self.down:
            raise ConnectionError("entity store unreachable")
        return await super().create(entity_type, fields, scope)


class TestDialogueController:
    """End-to-end conversation flows through the controller."""

    def setup_method(self):
        """Set up test fixtures."""
        self.clock = FakeClock()
        self.store = build_demo_store(clock=self.clock)
        self.identity = Identity(user_id="planner-1", company_id="co-1")

    def start(self, llm_client=None, client_id="c-100", **kwargs):
        self.controller = make_controller(llm_client=llm_client, store=self.store, clock=self.clock, **kwargs)
        self.session = self.controller.open_session(self.identity, client_id=client_id)
        return self.session

    def say(self, text):
        return asyncio.run(self.controller.handle_user_message(self.session.session_id, text, self.identity))

    def get(self, entity_type, entity_id, client_id="c-100"):
        return asyncio.run(self.store.get(entity_type, entity_id, Scope(company_id="co-1", client_id=client_id)))

    # ---- Walkthroughs ----

    def test_add_guest_with_hotel_previews_then_executes_on_yes(self):
        """Test a new guest is previewed, confirmed, created and remembered."""
        self.start()

        proposal = self.say("Add Raj Kumar to the wedding, he needs a hotel")

        assert proposal.type == ResponseType.CONFIRMATION_REQUIRED
        assert proposal.tool_name == "add_guest"
        assert proposal.content.startswith("I'll add Raj Kumar to the guest list.")
        assert proposal.content.endswith("Would you like me to proceed?")
        fields = {f.name: f.display_value for f in proposal.preview.fields}
        assert fields["first_name"] == "Raj"
        assert fields["last_name"] == "Kumar"
        assert fields["needs_hotel"] == "Yes"
        assert fields["client"] == "Priya Sharma & Arjun Mehta"
        assert any("hotel booking" in effect for effect in proposal.preview.cascade_effects)
        assert "Possible duplicate: Raj Kumar (Group: Groom's Family)" in proposal.preview.warnings
        assert self.store.write_log == []

        result = self.say("yes")

        assert result.type == ResponseType.RESULT
        assert result.pending_action_id == proposal.pending_action_id
        assert result.content.startswith("Done! Added guest: Raj Kumar")
        guest_id = result.result.primary.id
        assert guest_id == "g-new-1"
        assert self.get(EntityType.GUEST, guest_id)["needs_hotel"] is True
        assert [c.entity_type for c in result.result.cascade_results] == ["hotel_booking"]
        assert self.session.memory.recall(MemoryRole.LAST_GUEST).id == guest_id
        assert self.session.pending_action is None

    def test_budget_question_runs_immediately(self):
        """Test a query answers in the same turn without a confirmation step."""
        self.start()

        response = self.say("How much have we spent so far?")

        assert response.type == ResponseType.RESULT
        assert response.tool_name == "get_budget_overview"
        assert response.content == "Budget: $50,000 total, $14,000 paid, $36,000 remaining (28% used)"
        assert response.result.data["paid"] == 14000
        assert self.session.pending_action is None
        assert self.store.write_log == []

    def test_timeline_shift_lists_every_item_and_no_discards_it(self):
        """Test a shift preview shows before/after times and "no" writes nothing."""
        self.start()

        proposal = self.say("Push everything back 30 minutes")

        assert proposal.type == ResponseType.CONFIRMATION_REQUIRED
        assert proposal.tool_name == "shift_timeline"
        assert proposal.preview.details == [
            "Getting Ready: 13:00-15:30 -> 13:30-16:00",
            "Ceremony: 16:00-17:00 -> 16:30-17:30",
            "Cocktail Hour: 17:00-18:00 -> 17:30-18:30",
            "Reception Dinner: 18:30-22:30 -> 19:00-23:00",
        ]
        pending = self.session.pending_action

        response = self.say("no")

        assert response.type == ResponseType.TEXT
        assert response.content == translate("cancelled", Language.ENGLISH)
        assert pending.state == ActionState.REJECTED
        assert self.session.pending_action is None
        assert self.store.write_log == []
        assert self.get(EntityType.TIMELINE_ITEM, "t-2")["start_time"] == "16:00"

    # ---- Confirmation ----

    def test_mutation_writes_only_after_confirmation(self):
        """Test no store write happens between proposal and confirmation."""
        self.start(FakeLLMClient([tool_call("update_guest_rsvp", guest="Raj Kumar", rsvp_status="confirmed")]))

        proposal = self.say("Raj Kumar is coming")
        assert proposal.type == ResponseType.CONFIRMATION_REQUIRED
        assert self.store.write_log == []
        assert self.get(EntityType.GUEST, "g-42")["rsvp_status"] == "pending"

        result = self.say("Yes, go ahead")

        assert result.type == ResponseType.RESULT
        assert self.store.write_log == [("update", "guest", "g-42")]
        assert self.get(EntityType.GUEST, "g-42")["rsvp_status"] == "confirmed"
        assert "Updated RSVP status to confirmed for Raj Kumar" in result.content

    def test_query_never_enters_proposed_state(self):
        """Test a query tool runs without creating a pending action."""
        self.start(FakeLLMClient([tool_call("get_guest_stats")]))

        response = self.say("Guest numbers please")

        assert response.type == ResponseType.RESULT
        assert response.content == "Found 5 guests: 2 confirmed, 2 pending, 1 declined"
        assert response.pending_action_id is None
        assert self.session.pending_action is None

    def test_unclear_reply_abandons_pending_action(self):
        """Test a change of topic rejects the proposal and is handled fresh."""
        self.start()
        self.say("Push everything back 30 minutes")
        pending = self.session.pending_action

        response = self.say("How many guests are there?")

        assert pending.state == ActionState.REJECTED
        assert response.type == ResponseType.RESULT
        assert response.tool_name == "get_guest_stats"
        assert self.store.write_log == []

    def test_qualified_yes_does_not_confirm(self):
        """Test "yes, but ..." never executes the proposal."""
        self.start()
        self.say("Push everything back 30 minutes")
        pending = self.session.pending_action

        self.say("yes but make it 45 minutes instead")

        assert pending.state == ActionState.REJECTED
        assert self.store.write_log == []

    def test_question_containing_not_is_routed_as_new_request(self):
        """Test a new question mentioning "not" is answered rather than read as "no"."""
        self.start()
        self.say("Push everything back 30 minutes")
        pending = self.session.pending_action

        response = self.say("How many guests have not replied yet?")

        assert pending.state == ActionState.REJECTED
        assert response.type == ResponseType.RESULT
        assert response.tool_name == "get_guest_stats"
        assert response.content == "Found 5 guests: 2 confirmed, 2 pending, 1 declined"
        assert self.store.write_log == []

    def test_expired_action_is_not_executed_by_late_yes(self):
        """Test a proposal past its time limit expires and a later yes does nothing."""
        self.start()
        self.say("Push everything back 30 minutes")
        pending = self.session.pending_action

        self.clock.advance(301)
        response = self.say("yes")

        assert pending.state == ActionState.EXPIRED
        assert response.type == ResponseType.TEXT
        assert response.content == translate("expired", Language.ENGLISH)
        assert self.store.write_log == []

        again = self.say("yes")
        assert again.type == ResponseType.TEXT
        assert self.store.write_log == []

    def test_new_request_after_expiry_is_processed(self):
        """Test an unrelated utterance after expiry is not swallowed."""
        self.start()
        self.say("Push everything back 30 minutes")
        self.clock.advance(600)

        response = self.say("How much have we spent so far?")

        assert response.type == ResponseType.RESULT
        assert response.tool_name == "get_budget_overview"

    def test_confirmation_within_time_limit_executes(self):
        """Test a yes just inside the time limit still executes."""
        self.start()
        self.say("Push everything back 30 minutes")
        self.clock.advance(299)

        response = self.say("ok")

        assert response.type == ResponseType.RESULT
        assert response.result.message == "Shifted 4 timeline items 30 minutes later"
        assert self.get(EntityType.TIMELINE_ITEM, "t-4")["end_time"] == "23:00"

    def test_create_client_reports_every_cascade_record(self):
        """Test create_client lists the client and each scaffold record it wrote."""
        self.start(FakeLLMClient([tool_call(
            "create_client",
            partner1_first_name="Nina",
            partner1_last_name="Patel",
            partner2_first_name="Rohan",
            wedding_date="2027-05-15",
            budget=40000,
            wedding_type="traditional",
        )]), client_id=None)

        proposal = self.say("New wedding for Nina Patel and Rohan, May 15 2027, $40k")
        tool = self.controller.catalog.get("create_client")
        assert proposal.preview.cascade_effects == list(tool.cascade_effects)
        assert self.store.write_log == []

        result = self.say("yes")

        client_id = result.result.primary.id
        assert result.result.primary.entity_type == EntityType.CLIENT
        assert self.store.write_log[0] == ("create", "client", client_id)
        cascades = result.result.cascade_results
        assert Counter(c.entity_type for c in cascades) == {"event": 1, "budget_item": 8, "timeline_item": 4}
        for record in cascades:
            assert self.get(EntityType(record.entity_type), record.entity_id, client_id=client_id)
        assert len(self.store.write_log) == 1 + len(cascades)
        assert "**Also created:**" in result.content
        assert self.session.active_client_id == client_id

    def test_family_invitation_previews_guests_then_assigns(self):
        """Test a group guest tool previews who it selects and writes only on yes."""
        self.start()

        proposal = self.say("Invite the Kumar family to the Mehndi Night")

        assert proposal.type == ResponseType.CONFIRMATION_REQUIRED
        assert proposal.content.startswith("I'll add the Kumar family to Mehndi Night.")
        assert proposal.preview.details == ["1 guests: Raj Kumar"]
        assert self.store.write_log == []

        result = self.say("yes")

        assert result.content.startswith("Done! Added 1 guests to Mehndi Night")
        assert self.get(EntityType.GUEST, "g-42")["attending_events"] == ["e-2"]

    def test_single_name_for_list_field_is_resolved_as_list(self):
        """Test an event given as one name still fills a list argument."""
        self.start(FakeLLMClient([tool_call("assign_guests_to_events", events="Mehndi Night", side="bride")]))

        response = self.say("put the bride's side on the mehndi list")

        assert response.type == ResponseType.CONFIRMATION_REQUIRED
        assert self.session.pending_action.resolved_args["events"] == ["e-2"]

    def test_partial_failure_reports_completed_writes(self):
        """Test a failed cascade reports the writes that did happen."""
        self.store = build_demo_store(HotelOutageStore(id_factory=sequential_ids(), clock=self.clock))
        self.start()
        self.say("Add Kavya Nair to the wedding, she needs a hotel")

        response = self.say("yes")

        assert response.type == ResponseType.ERROR
        assert "hotel bookings are unavailable" in response.content
        assert "Created guest (g-new-1)" in response.content
        assert self.store.write_log == [("create", "guest", "g-new-1")]

    def test_store_outage_while_resolving_returns_generic_error(self):
        """Test a store failure during a fresh request becomes the generic error."""
        self.store = build_demo_store(OutageStore(id_factory=sequential_ids(), clock=self.clock))
        self.start()
        self.store.down = True

        response = self.say("Mark Raj Kumar as confirmed")

        assert response.type == ResponseType.ERROR
        assert response.content == translate("generic_error", Language.ENGLISH)
        assert self.session.pending_action is None
        assert self.session.recent_turns[-1].assistant == response.content

    def test_store_outage_on_confirmation_returns_generic_error(self):
        """Test a store failure while executing a confirmed action is reported, not raised."""
        self.store = build_demo_store(OutageStore(id_factory=sequential_ids(), clock=self.clock))
        self.start()
        proposal = self.say("Add Kavya Nair to the wedding")
        assert proposal.type == ResponseType.CONFIRMATION_REQUIRED
        pending = self.session.pending_action
        self.store.down = True

        response = self.say("yes")

        assert response.type == ResponseType.ERROR
        assert response.content == translate("generic_error", Language.ENGLISH)
        assert pending.state == ActionState.CONFIRMED
        assert self.session.pending_action is None
        assert self.store.write_log == []

        self.store.down = False
        recovered = self.say("How much have we spent so far?")
        assert recovered.type == ResponseType.RESULT

    def test_created_records_use_the_controller_clock(self):
        """Test store timestamps follow the same clock as expiry."""
        self.start()
        self.say("Add Kavya Nair to the wedding")
        self.clock.advance(90)

        result = self.say("yes")

        guest = self.get(EntityType.GUEST, result.result.primary.id)
        assert guest["created_at"] == "2026-10-19T10:01:30"

    # ---- References ----

    def test_pronoun_resolves_to_remembered_guest(self):
        """Test "their" after mentioning Raj Kumar resolves without re-asking."""
        self.start(FakeLLMClient([
            tool_call("search_entities", query="Raj Kumar"),
            tool_call("update_guest_rsvp", guest="their", rsvp_status="confirmed"),
        ]))

        self.say("Find Raj Kumar")
        assert self.session.memory.recall(MemoryRole.LAST_GUEST).id == "g-42"

        response = self.say("update their RSVP to confirmed")

        assert response.type == ResponseType.CONFIRMATION_REQUIRED
        assert self.session.pending_action.resolved_args["guest"] == "g-42"
        assert "Raj Kumar" in response.content

    def test_offline_pronoun_update(self):
        """Test the offline router passes pronouns through for resolution."""
        self.start()
        self.session.memory.remember(MemoryRole.LAST_GUEST, RAJ_KUMAR)

        response = self.say("Update their RSVP to confirmed")

        assert response.tool_name == "update_guest_rsvp"
        assert self.session.pending_action.resolved_args["guest"] == "g-42"

    def test_ambiguous_name_asks_instead_of_guessing(self):
        """Test "Raj" with two matching guests returns a clarifying question."""
        self.start(FakeLLMClient([tool_call("update_guest_rsvp", guest="Raj", rsvp_status="confirmed")]))

        response = self.say("Raj is coming")

        assert response.type == ResponseType.CLARIFICATION
        assert response.content.startswith('I found more than one guest matching "Raj"')
        assert [o.id for o in response.options] == ["g-42", "g-43"]
        assert "1. Raj Kumar" in response.content
        assert "2. Raj Kapoor" in response.content
        assert self.session.pending_action is None
        assert self.store.write_log == []

    def test_other_company_guest_is_never_matched(self):
        """Test another tenant's guest is reported as not found, by name or id."""
        self.start(FakeLLMClient([
            tool_call("update_guest_rsvp", guest="Raj Malhotra", rsvp_status="declined"),
            tool_call("update_guest_rsvp", guest="g-900", rsvp_status="declined"),
        ]))

        by_name = self.say("Raj Malhotra declined")
        by_id = self.say("g-900 declined")

        assert by_name.type == ResponseType.CLARIFICATION
        assert by_name.content.startswith('I couldn\'t find a guest matching "Raj Malhotra"')
        assert by_id.type == ResponseType.CLARIFICATION
        assert self.store.write_log == []

    def test_other_company_client_is_never_matched(self):
        """Test naming another tenant's client does not change focus."""
        self.start(FakeLLMClient([tool_call("get_client_summary", client="c-900")]))

        response = self.say("Summary for c-900")

        assert response.type == ResponseType.CLARIFICATION
        assert self.session.active_client_id == "c-100"

    def test_pronoun_without_memory_asks(self):
        """Test a pronoun with nothing remembered asks which entity is meant."""
        self.start(FakeLLMClient([tool_call("update_guest_rsvp", guest="him", rsvp_status="confirmed")]))

        response = self.say("He is coming")

        assert response.type == ResponseType.CLARIFICATION
        assert response.content.startswith('Which guest do you mean by "him"?')

    def test_remembered_guest_from_other_client_is_rejected(self):
        """Test memory never leaks a guest from outside the active client."""
        self.start(FakeLLMClient([tool_call("update_guest_rsvp", guest="him", rsvp_status="confirmed")]))
        self.session.memory.remember(MemoryRole.LAST_GUEST, OLIVER)

        response = self.say("He is coming")

        assert response.type == ResponseType.CLARIFICATION
        assert self.session.pending_action is None

    def test_missing_required_reference_is_filled_from_memory(self):
        """Test an omitted guest argument falls back to the last guest mentioned."""
        self.start(FakeLLMClient([tool_call("check_in_guest")]))
        self.session.memory.remember(MemoryRole.LAST_GUEST, ANITA)

        response = self.say("Check her in")

        assert response.type == ResponseType.CONFIRMATION_REQUIRED
        assert self.session.pending_action.resolved_args["guest"] == "g-44"

    # ---- Client focus ----

    def test_client_scoped_tool_without_client_asks_for_one(self):
        """Test a client-scoped tool with no client in focus asks which wedding."""
        self.start(FakeLLMClient([tool_call("get_guest_stats")]), client_id=None)

        response = self.say("How many guests?")

        assert response.type == ResponseType.CLARIFICATION
        assert response.missing_field == "client"
        assert response.content == translate("no_client", Language.ENGLISH)

    def test_naming_a_client_puts_it_in_focus(self):
        """Test an explicit client reference becomes the active client."""
        self.start(FakeLLMClient([tool_call("get_guest_stats", client="Emma")]), client_id=None)

        response = self.say("How many guests does Emma have?")

        assert response.type == ResponseType.RESULT
        assert response.result.data["total"] == 1
        assert self.session.active_client_id == "c-200"

    # ---- Validation and model failures ----

    def test_missing_field_asks_for_it(self):
        """Test a missing required argument becomes a follow-up question."""
        self.start(FakeLLMClient([tool_call("add_guest")]))

        response = self.say("Add a guest")

        assert response.type == ResponseType.CLARIFICATION
        assert response.missing_field == "first_name"
        assert response.content == "What should I use for First name?"

    def test_unparseable_date_asks_for_clarification(self):
        """Test a date the parser cannot read is surfaced, never guessed."""
        self.start(FakeLLMClient([tool_call("create_event", title="Sangeet", date="someday soon")]))

        response = self.say("Add a sangeet someday soon")

        assert response.type == ResponseType.CLARIFICATION
        assert response.missing_field == "date"
        assert '"someday soon"' in response.content

    def test_natural_dates_are_resolved_before_preview(self):
        """Test relative dates and times reach the preview as ISO values."""
        self.start(FakeLLMClient([tool_call("create_event", title="Sangeet", date="next Saturday", start_time="7pm")]))

        response = self.say("Add a sangeet next Saturday at 7pm")

        args = self.session.pending_action.resolved_args
        assert response.type == ResponseType.CONFIRMATION_REQUIRED
        assert args["date"] == "2026-10-24"
        assert args["start_time"] == "19:00"

    def test_unknown_tool_gets_an_apology(self):
        """Test a hallucinated tool name is never executed."""
        self.start(FakeLLMClient([tool_call("delete_everything")]))

        response = self.say("Delete everything")

        assert response.type == ResponseType.TEXT
        assert response.content == translate("apology", Language.ENGLISH)
        assert self.store.write_log == []

    def test_malformed_model_output_gets_an_apology(self):
        """Test unparseable tool arguments produce an apology."""
        self.start(FakeLLMClient([MalformedResponseError("arguments were not JSON")]))

        response = self.say("Add Raj")

        assert response.content == translate("apology", Language.ENGLISH)

    def test_model_outage_returns_generic_error(self):
        """Test a failing model call does not propagate."""
        self.start(FakeLLMClient([RuntimeError("connection reset")]))

        response = self.say("How many guests?")

        assert response.type == ResponseType.ERROR
        assert response.content == translate("generic_error", Language.ENGLISH)

    def test_plain_text_reply_is_returned(self):
        """Test a model reply without tool calls is passed through."""
        self.start(FakeLLMClient([text_reply("Happy to help with seating ideas!")]))

        response = self.say("Any seating tips?")

        assert response.type == ResponseType.TEXT
        assert response.content == "Happy to help with seating ideas!"

    def test_only_first_tool_call_is_acted_on(self):
        """Test a reply requesting several tools runs just the first."""
        self.start(FakeLLMClient([LLMResponse(content="", tool_calls=[
            ToolCall(id="call_1", name="get_guest_stats", arguments={}),
            ToolCall(id="call_2", name="get_budget_overview", arguments={}),
        ])]))

        response = self.say("Guests and budget?")

        assert response.tool_name == "get_guest_stats"

    # ---- Narration and language ----

    def test_query_result_is_narrated_by_model(self):
        """Test the model phrases query results when narration is enabled."""
        llm = FakeLLMClient([tool_call("get_budget_overview"), text_reply("You've paid $14,000 of $50,000 so far.")])
        self.start(llm, narrate_query_results=True)

        response = self.say("How much have we spent so far?")

        assert response.content == "You've paid $14,000 of $50,000 so far."
        follow_up = llm.calls[1]["messages"]
        assert follow_up[-2].tool_calls[0].name == "get_budget_overview"
        assert follow_up[-1].role == "tool"

    def test_empty_narration_falls_back_to_summary(self):
        """Test an empty narration uses the executor summary."""
        self.start(FakeLLMClient([tool_call("get_budget_overview")]), narrate_query_results=True)

        response = self.say("How much have we spent so far?")

        assert response.content.startswith("Budget: $50,000 total")

    def test_reply_language_follows_the_user(self):
        """Test previews and replies are rendered in the user's language."""
        self.start(FakeLLMClient([tool_call("shift_timeline", shift_minutes=30)]))

        proposal = self.say("Retrasa todo 30 minutos, por favor")
        assert proposal.language == Language.SPANISH
        assert proposal.content.endswith(translate("proceed", Language.SPANISH))

        response = self.say("no")
        assert response.language == Language.SPANISH
        assert response.content == translate("cancelled", Language.SPANISH)

    def test_query_summary_is_localized(self):
        """Test a query answered without narration is summarized in the user's language."""
        self.start(FakeLLMClient([tool_call("get_budget_overview")]))

        response = self.say("अब तक कितना खर्च हुआ है?")

        assert response.language == Language.HINDI
        assert response.content == "बजट: कुल $50,000, $14,000 का भुगतान हुआ, $36,000 शेष (28% उपयोग हुआ)"

    def test_system_prompt_carries_context(self):
        """Test the prompt includes the active client and recent turns."""
        llm = FakeLLMClient([text_reply("Hello!"), text_reply("Sure.")])
        self.start(llm)

        self.say("Hi there")
        self.say("What can you do?")

        system_prompt = llm.calls[1]["messages"][0].content
        assert "## Current Wedding: Priya Sharma & Arjun Mehta (client id: c-100)" in system_prompt
        assert "- USER: Hi there" in system_prompt

    # ---- Sessions ----

    def test_unknown_session_without_identity_raises(self):
        """Test a session id is never adopted without an identity."""
        self.start()

        with pytest.raises(SessionNotFoundError):
            asyncio.run(self.controller.handle_user_message("missing", "hello"))

    def test_session_of_another_identity_raises(self):
        """Test a caller cannot continue someone else's session."""
        self.start()
        intruder = Identity(user_id="planner-9", company_id="co-2")

        with pytest.raises(SessionNotFoundError):
            asyncio.run(self.controller.handle_user_message(self.session.session_id, "hello", intruder))

    def test_new_session_id_with_identity_opens_session(self):
        """Test a fresh session id with an identity starts a conversation."""
        self.start()

        asyncio.run(self.controller.handle_user_message("fresh", "hello", self.identity))

        assert self.controller.sessions["fresh"].turn_count == 1

    def test_turns_are_logged_when_store_configured(self, tmp_path):
        """Test user and assistant turns land in the conversation log."""
        log = SQLiteMemoryStore(db_path=str(tmp_path / "conversations.db"))
        self.start(conversation_store=log)

        self.say("How much have we spent so far?")

        conversation = log.get_conversation(self.session.session_id, "co-1")
        assert [t.role for t in conversation.turns] == ["user", "assistant"]
        assert conversation.turns[1].metadata == {"type": "result", "tool": "get_budget_overview"}

    def test_logged_session_resumes_recent_turns(self, tmp_path):
        """Test a known session id picks up its logged history in a new controller."""
        log = SQLiteMemoryStore(db_path=str(tmp_path / "conversations.db"))
        self.start(conversation_store=log)
        self.say("How much have we spent so far?")
        session_id = self.session.session_id

        llm = FakeLLMClient([text_reply("Sure.")])
        restarted = make_controller(llm_client=llm, store=self.store, clock=self.clock, conversation_store=log)
        asyncio.run(restarted.handle_user_message(session_id, "What can you do?", self.identity))

        resumed = restarted.sessions[session_id]
        assert resumed.turn_count == 2
        assert [t.user for t in resumed.recent_turns] == ["How much have we spent so far?", "What can you do?"]
        assert "- USER: How much have we spent so far?" in llm.calls[0]["messages"][0].content
        assert [c.conversation_id for c in restarted.list_sessions(self.identity)] == [session_id]

    def test_logged_session_of_another_caller_is_not_resumed(self, tmp_path):
        """Test a logged conversation id cannot be taken over by another user or company."""
        log = SQLiteMemoryStore(db_path=str(tmp_path / "conversations.db"))
        self.start(conversation_store=log)
        self.say("How much have we spent so far?")
        restarted = make_controller(store=self.store, clock=self.clock, conversation_store=log)

        for intruder in (Identity(user_id="planner-2", company_id="co-1"), Identity(user_id="planner-1", company_id="co-2")):
            with pytest.raises(SessionNotFoundError):
                asyncio.run(restarted.handle_user_message(self.session.session_id, "hello", intruder))
        assert restarted.list_sessions(Identity(user_id="planner-9", company_id="co-2")) == []
