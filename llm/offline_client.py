"""Rule-based stand-in for a language model.

Maps a handful of common planner commands to tool calls with regular
expressions, so the assistant can run without an API key. Anything it does
not recognise gets a short help reply.
"""

import re
import uuid
import logging
from typing import Optional, List, Dict, Any

from .base_client import BaseLLMClient, Message, LLMResponse, ToolCall

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I can help with guests, RSVPs, vendors, the budget and the timeline. "
    "Try \"Add Raj Kumar to the wedding\", \"How much have we spent so far?\" "
    "or \"Push everything back 30 minutes\"."
)

RSVP_WORDS = {
    "confirmed": "confirmed",
    "confirm": "confirmed",
    "attending": "confirmed",
    "coming": "confirmed",
    "declined": "declined",
    "not coming": "declined",
    "pending": "pending",
    "maybe": "maybe",
}


class RuleBasedLLMClient(BaseLLMClient):
    """Offline intent router implementing the LLM client interface."""

    def __init__(self):
        """Initialize router with command patterns."""
        self.budget_patterns = [
            r"how much (have we|did we|has been) spen[dt]",
            r"budget (overview|summary|status|breakdown)",
            r"what('s| is) (left|remaining) (in|of) the budget",
        ]
        self.guest_stats_patterns = [
            r"how many guests",
            r"guest (stats|statistics|count|numbers)",
            r"rsvp (stats|summary|count)",
        ]
        self.summary_patterns = [
            r"(wedding|client) (summary|overview)",
            r"how (is|are) (the|this) wedding",
        ]
        self.shift_pattern = re.compile(
            r"\b(?:push|move|shift|delay)\b.*?\b(?P<direction>back|forward|later|earlier)?\b"
            r"(?:\s+by)?\s+(?P<amount>\d+)\s*(?P<unit>minutes?|mins?|hours?|hrs?)\b"
            r"(?:\s+(?P<direction2>later|earlier|back|forward))?",
            re.IGNORECASE,
        )
        self.add_guest_pattern = re.compile(
            r"\badd\s+(?P<name>.+?)\s+(?:to\s+(?:the\s+)?(?:wedding|guest\s*list|guests)|as\s+a\s+guest)",
            re.IGNORECASE,
        )
        self.add_vendor_pattern = re.compile(
            r"\badd\s+(?P<name>.+?)\s+as\s+(?:our|the|a|an)\s+(?P<category>[a-z ]+?)(?:\s+vendor)?[.!]?$",
            re.IGNORECASE,
        )
        self.table_meal_pattern = re.compile(
            r"\b(?:make|set|switch|change)\s+table\s+(?P<table>\d+)\s+(?:to\s+)?(?P<meal>[a-z-]+)[.!]?$",
            re.IGNORECASE,
        )
        self.invite_family_pattern = re.compile(
            r"\b(?:invite|add)\s+the\s+(?P<family>[a-z'-]+)\s+family\s+to\s+(?:the\s+)?(?P<event>.+?)[.!]?$",
            re.IGNORECASE,
        )
        self.rsvp_pattern = re.compile(
            r"\b(?:update|set|mark|change)\s+(?P<who>.+?)(?:'s)?\s+(?:rsvp\s+)?(?:to|as)\s+"
            r"(?P<status>confirmed|confirm|attending|coming|not coming|declined|pending|maybe)\b",
            re.IGNORECASE,
        )
        self.create_client_pattern = re.compile(
            r"\b(?:create|add|new)\s+(?:a\s+)?(?:new\s+)?(?:client|wedding)\s+(?:for\s+)?(?P<names>.+)$",
            re.IGNORECASE,
        )
        self.search_pattern = re.compile(
            r"\b(?:search|find|look up|lookup)\s+(?:for\s+)?(?P<query>.+)$",
            re.IGNORECASE,
        )

    async def chat(
        self,
        messages: List[Message],
        tools: Optional[List[Dict]] = None,
        temperature: float = 0.3,
        max_tokens: int = 2000
    ) -> LLMResponse:
        """Route the latest user message to a tool call or a help reply."""
        if not messages:
            return LLMResponse(content=HELP_TEXT)

        # Narration follow-up: let the caller fall back to its own summary
        if messages[-1].role == "tool":
            return LLMResponse(content="")

        user_messages = [m for m in messages if m.role == "user"]
        if not user_messages or not tools:
            return LLMResponse(content=HELP_TEXT)

        text = user_messages[-1].content.strip()
        available = {t["function"]["name"] for t in tools if t.get("type") == "function"}

        routed = self._route(text)
        if routed and routed[0] in available:
            name, arguments = routed
            logger.debug(f"Offline router matched {name} with {arguments}")
            return LLMResponse(
                content="",
                tool_calls=[ToolCall(id=f"call_{uuid.uuid4().hex[:12]}", name=name, arguments=arguments)],
                finish_reason="tool_calls",
            )

        return LLMResponse(content=HELP_TEXT, finish_reason="stop")

    def _route(self, text: str) -> Optional[tuple]:
        """Return (tool_name, arguments) for a recognised command."""
        lower = text.lower()

        for pattern in self.budget_patterns:
            if re.search(pattern, lower):
                return "get_budget_overview", {}

        for pattern in self.guest_stats_patterns:
            if re.search(pattern, lower):
                return "get_guest_stats", {}

        for pattern in self.summary_patterns:
            if re.search(pattern, lower):
                return "get_client_summary", {}

        match = self.shift_pattern.search(text)
        if match:
            return "shift_timeline", {"shift_minutes": self._shift_minutes(match)}

        match = self.table_meal_pattern.search(text)
        if match:
            return "update_table_dietary", {
                "table_number": int(match.group("table")),
                "meal_preference": match.group("meal").lower(),
            }

        match = self.invite_family_pattern.search(text)
        if match:
            return "assign_guests_to_events", {
                "last_name": match.group("family"),
                "events": [match.group("event").strip()],
            }

        match = self.rsvp_pattern.search(text)
        if match:
            return "update_guest_rsvp", {
                "guest": self._strip_rsvp_subject(match.group("who")),
                "rsvp_status": RSVP_WORDS[match.group("status").lower()],
            }

        match = self.add_guest_pattern.search(text)
        if match:
            return "add_guest", self._guest_arguments(match.group("name"), lower)

        match = self.add_vendor_pattern.search(text)
        if match:
            return "add_vendor", {
                "name": match.group("name").strip(),
                "category": match.group("category").strip().lower(),
            }

        match = self.create_client_pattern.search(text)
        if match:
            return "create_client", self._client_arguments(match.group("names"))

        match = self.search_pattern.search(text)
        if match:
            return "search_entities", {"query": match.group("query").strip(" ?.!")}

        return None

    def _shift_minutes(self, match: re.Match) -> int:
        amount = int(match.group("amount"))
        if match.group("unit").lower().startswith("h"):
            amount *= 60
        direction = (match.group("direction") or match.group("direction2") or "later").lower()
        if direction in ("forward", "earlier"):
            amount = -amount
        return amount

    def _strip_rsvp_subject(self, who: str) -> str:
        who = re.sub(r"\brsvp\b", "", who, flags=re.IGNORECASE).strip()
        return re.sub(r"'s$", "", who).strip()

    def _guest_arguments(self, name: str, lower: str) -> Dict[str, Any]:
        parts = name.strip().split()
        arguments: Dict[str, Any] = {"first_name": parts[0]}
        if len(parts) > 1:
            arguments["last_name"] = " ".join(parts[1:])
        if "hotel" in lower or "room" in lower or "accommodation" in lower:
            arguments["needs_hotel"] = True
        if "transport" in lower or "pickup" in lower or "shuttle" in lower:
            arguments["needs_transport"] = True
        return arguments

    def _client_arguments(self, names: str) -> Dict[str, Any]:
        couple = re.split(r"\s*(?:&|\band\b)\s*", names.strip(" .!"), maxsplit=1)
        first = couple[0].split()
        arguments: Dict[str, Any] = {"partner1_first_name": first[0]}
        if len(first) > 1:
            arguments["partner1_last_name"] = " ".join(first[1:])
        if len(couple) > 1 and couple[1]:
            second = couple[1].split()
            arguments["partner2_first_name"] = second[0]
            if len(second) > 1:
                arguments["partner2_last_name"] = " ".join(second[1:])
        return arguments

    def get_provider_name(self) -> str:
        """Get the provider name."""
        return "offline"

    def get_model_name(self) -> str:
        """Get the model name."""
        return "rule-based"
