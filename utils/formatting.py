"""Display helpers shared by prompts, previews and results."""

from typing import Any


def format_money(amount: Any) -> str:
    """Format a number as whole-dollar currency, e.g. ``$12,500``."""
    try:
        value = float(amount or 0)
    except (TypeError, ValueError):
        return str(amount)
    if value == int(value):
        return f"${int(value):,}"
    return f"${value:,.2f}"


def format_value(value: Any) -> str:
    """Format an argument value for display."""
    if value is None:
        return "Not set"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(format_value(v) for v in value) if value else "None"
    return str(value)


def humanize_field(name: str) -> str:
    """``needs_hotel`` -> ``Needs hotel``."""
    return name.replace("_", " ").strip().capitalize()
