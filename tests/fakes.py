"""Shared test doubles: scripted model, fixed clock and the demo store."""

import itertools
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, List, Optional

from config.settings import Settings
from llm.base_client import BaseLLMClient, LLMResponse, Message, ToolCall
from llm.offline_client import RuleBasedLLMClient
from orchestrator import DialogueController
from schemas.entities import EntityType
from store.entity_store import InMemoryEntityStore
from store.records import ID_PREFIXES
from store.seed import load_seed

SEED_PATH = Path(__file__).resolve().parent.parent / "data" / "demo_seed.yaml"


class FakeLLMClient(BaseLLMClient):
    """Returns scripted responses in order and records every request."""

    def __init__(self, responses: Optional[List] = None):
        self.responses = list(responses or [])
        self.calls: List[Dict] = []

    async def chat(
        self,
        messages: List[Message],
        tools: Optional[List[Dict]] = None,
        temperature: float = 0.3,
        max_tokens: int = 2000
    ) -> LLMResponse:
        self.calls.append({"messages": list(messages), "tools": tools})
        if not self.responses:
            return LLMResponse(content="")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get_provider_name(self) -> str:
        return "fake"

    def get_model_name(self) -> str:
        return "scripted"


def tool_call(name: str, **arguments) -> LLMResponse:
    return LLMResponse(
        content="",
        tool_calls=[ToolCall(id=f"call_{name}", name=name, arguments=arguments)],
        finish_reason="tool_calls",
    )


def text_reply(text: str) -> LLMResponse:
    return LLMResponse(content=text, finish_reason="stop")


def sequential_ids():
    counters = {entity_type: itertools.count(1) for entity_type in EntityType}

    def next_id(entity_type: EntityType) -> str:
        return f"{ID_PREFIXES[entity_type]}-new-{next(counters[entity_type])}"

    return next_id


def build_demo_store(store: Optional[InMemoryEntityStore] = None, clock=None) -> InMemoryEntityStore:
    """The YAML demo data, with predictable ids for new records."""
    store = store or InMemoryEntityStore(id_factory=sequential_ids(), clock=clock)
    return load_seed(str(SEED_PATH), store=store)


class FakeClock:
    """Callable stand-in for datetime.now that only moves when told to."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2026, 10, 19, 10, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float):
        self.now += timedelta(seconds=seconds)


def make_controller(llm_client=None, store=None, clock=None, conversation_store=None, **overrides) -> DialogueController:
    settings = {"llm_provider": "offline", "narrate_query_results": False}
    settings.update(overrides)
    clock = clock or FakeClock()
    return DialogueController(
        settings=Settings(**settings),
        llm_client=llm_client or RuleBasedLLMClient(),
        store=store if store is not None else build_demo_store(clock=clock),
        clock=clock,
        conversation_store=conversation_store,
    )
