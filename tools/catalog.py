"""Immutable tool registry."""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List

from schemas.tools import ToolDefinition, ToolKind
from utils.errors import UnknownToolError

logger = logging.getLogger(__name__)


class ToolCatalog:
    """Registry of tool definitions, built once and passed by reference.

    Membership and each tool's kind are fixed at construction; there is no
    way to register or replace a tool afterwards.
    """

    def __init__(self, tools: Iterable[ToolDefinition]):
        registry: Dict[str, ToolDefinition] = {}
        for tool in tools:
            if tool.name in registry:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            if not isinstance(tool.kind, ToolKind):
                raise ValueError(f"Tool {tool.name} must declare a kind")
            registry[tool.name] = tool
        self._tools = MappingProxyType(registry)
        logger.info(f"Tool catalog initialized with {len(registry)} tools")

    def list(self) -> List[ToolDefinition]:
        return list(self._tools.values())

    def get(self, name: str) -> ToolDefinition:
        """Look up a tool, raising UnknownToolError if it is not registered."""
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def names(self, kind: ToolKind = None) -> List[str]:
        return [t.name for t in self._tools.values() if kind is None or t.kind == kind]

    def schemas(self) -> List[Dict]:
        """OpenAI-compatible function definitions for every tool."""
        return [tool.get_definition() for tool in self._tools.values()]
