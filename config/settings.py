"""Application settings."""

import os
from typing import Optional
from pydantic import BaseModel


class Settings(BaseModel):
    """Application configuration settings."""

    # LLM Provider settings
    llm_provider: str = "openai"  # "openai", "anthropic" or "offline"
    llm_model: Optional[str] = None  # Override default model
    temperature: float = 0.3
    max_tokens: int = 2000

    # API Keys
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Conversation settings
    max_recent_turns: int = 10  # user/assistant pairs kept in context
    pending_action_ttl_seconds: int = 300
    pending_action_max_turns: int = 1
    narrate_query_results: bool = True

    # Entity resolution
    match_threshold: float = 0.5
    ambiguity_margin: float = 0.1

    # Conversation log
    memory_enabled: bool = False
    db_path: str = "data/conversations.db"

    # Demo data
    seed_path: str = "data/demo_seed.yaml"

    # Logging
    verbose: bool = False

    def __init__(self, **data):
        # Auto-load API keys from environment if not provided
        if "openai_api_key" not in data or data["openai_api_key"] is None:
            data["openai_api_key"] = os.environ.get("OPENAI_API_KEY")

        if "anthropic_api_key" not in data or data["anthropic_api_key"] is None:
            data["anthropic_api_key"] = os.environ.get("ANTHROPIC_API_KEY")

        super().__init__(**data)

    def get_llm_api_key(self) -> Optional[str]:
        """Get the API key for the configured LLM provider."""
        if self.llm_provider == "openai":
            return self.openai_api_key
        elif self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return None
