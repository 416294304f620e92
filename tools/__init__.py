"""Tool catalog, argument models, previews and execution."""

from .catalog import ToolCatalog
from .definitions import build_default_catalog, DEFAULT_TOOLS
from .executor import ToolExecutor, load_budget_templates
from .previews import PreviewBuilder

__all__ = [
    "ToolCatalog",
    "build_default_catalog",
    "DEFAULT_TOOLS",
    "ToolExecutor",
    "load_budget_templates",
    "PreviewBuilder",
]
