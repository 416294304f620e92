"""Tests for the offline rule-based model client."""

import asyncio

import pytest

from llm.base_client import Message
from llm.factory import LLMProvider, create_llm_client
from llm.offline_client import HELP_TEXT, RuleBasedLLMClient
from tools.definitions import build_default_catalog

TOOLS = build_default_catalog().schemas()


class TestRuleBasedLLMClient:
    """Test command routing without an API key."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = RuleBasedLLMClient()

    def ask(self, text, tools=TOOLS):
        messages = [Message(role="system", content="You are a planner assistant."), Message(role="user", content=text)]
        return asyncio.run(self.client.chat(messages, tools=tools))

    def call(self, text):
        response = self.ask(text)
        assert response.tool_calls, f"no tool call for {text!r}"
        return response.tool_calls[0].name, response.tool_calls[0].arguments

    @pytest.mark.parametrize("text,expected", [
        ("How much have we spent so far?", ("get_budget_overview", {})),
        ("How many guests have RSVP'd?", ("get_guest_stats", {})),
        ("Give me the wedding summary", ("get_client_summary", {})),
        ("Push everything back 30 minutes", ("shift_timeline", {"shift_minutes": 30})),
        ("Move the reception earlier by 1 hour", ("shift_timeline", {"shift_minutes": -60})),
        ("Mark Raj Kumar as confirmed", ("update_guest_rsvp", {"guest": "Raj Kumar", "rsvp_status": "confirmed"})),
        ("Update Raj's RSVP to declined", ("update_guest_rsvp", {"guest": "Raj", "rsvp_status": "declined"})),
        ("Add Lensworks Studio as our photography vendor", (
            "add_vendor", {"name": "Lensworks Studio", "category": "photography"},
        )),
        ("Search for Lensworks", ("search_entities", {"query": "Lensworks"})),
        ("Make table 3 vegetarian", ("update_table_dietary", {"table_number": 3, "meal_preference": "vegetarian"})),
        ("Invite the Kumar family to the Mehndi Night", (
            "assign_guests_to_events", {"last_name": "Kumar", "events": ["Mehndi Night"]},
        )),
    ])
    def test_routes(self, text, expected):
        assert self.call(text) == expected

    def test_add_guest_with_hotel(self):
        name, arguments = self.call("Add Raj Kumar to the wedding, he needs a hotel")

        assert name == "add_guest"
        assert arguments == {"first_name": "Raj", "last_name": "Kumar", "needs_hotel": True}

    def test_create_client_splits_couple(self):
        name, arguments = self.call("Create a new client for Nina Patel & Rohan Shah")

        assert name == "create_client"
        assert arguments == {
            "partner1_first_name": "Nina", "partner1_last_name": "Patel",
            "partner2_first_name": "Rohan", "partner2_last_name": "Shah",
        }

    def test_unrecognised_text_gets_help(self):
        response = self.ask("Tell me a joke")

        assert response.tool_calls is None
        assert response.content == HELP_TEXT

    def test_unavailable_tool_is_not_called(self):
        response = self.ask("How much have we spent so far?", tools=[t for t in TOOLS if t["function"]["name"] != "get_budget_overview"])

        assert response.tool_calls is None

    def test_tool_result_gets_empty_narration(self):
        messages = [
            Message(role="user", content="How much have we spent so far?"),
            Message(role="tool", content='{"paid": 14000}', tool_call_id="call_1"),
        ]

        response = asyncio.run(self.client.chat(messages, tools=TOOLS))

        assert response.content == ""
        assert response.tool_calls is None


class TestFactory:
    """Test provider selection."""

    def test_offline_provider(self):
        client = create_llm_client(LLMProvider.OFFLINE)

        assert client.get_provider_name() == "offline"
        assert client.get_model_name() == "rule-based"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_llm_client("bard")
