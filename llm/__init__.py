"""LLM client abstraction layer."""

from .base_client import BaseLLMClient, Message, LLMResponse, ToolCall, MalformedResponseError
from .factory import create_llm_client, LLMProvider

__all__ = [
    "BaseLLMClient",
    "Message",
    "LLMResponse",
    "ToolCall",
    "MalformedResponseError",
    "create_llm_client",
    "LLMProvider",
]
