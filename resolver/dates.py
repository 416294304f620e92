"""Natural-language date and time parsing relative to a reference "now"."""

import re
import calendar
from datetime import date, datetime, timedelta
from typing import Union

from utils.errors import DateParseError

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

MONTHS = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}
MONTHS.update({name.lower(): i for i, name in enumerate(calendar.month_abbr) if name})
MONTHS["sept"] = 9

NUMBER_WORDS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
}

_MONTH_NAMES = "|".join(sorted(MONTHS, key=len, reverse=True))
_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_RELATIVE = re.compile(
    r"^(?:in\s+)?(?P<n>\d+|" + "|".join(NUMBER_WORDS) + r")\s+(?P<unit>day|week|month|year)s?(?:\s+from\s+(?:now|today))?$"
)
_WEEKDAY = re.compile(r"^(?P<mod>next|this|coming)?\s*(?P<day>" + "|".join(WEEKDAYS) + r")$")
_MONTH_DAY = re.compile(
    r"^(?P<month>" + _MONTH_NAMES + r")\.?\s+(?P<day>\d{1,2})(?:st|nd|rd|th)?(?:,?\s+(?P<year>\d{4}))?$"
)
_DAY_MONTH = re.compile(
    r"^(?P<day>\d{1,2})(?:st|nd|rd|th)?\s+(?:of\s+)?(?P<month>" + _MONTH_NAMES + r")\.?(?:,?\s+(?P<year>\d{4}))?$"
)
_NUMERIC = re.compile(r"^(?P<month>\d{1,2})/(?P<day>\d{1,2})(?:/(?P<year>\d{2}|\d{4}))?$")
_TIME_24 = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})$")
_TIME_12 = re.compile(r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<ampm>a\.?m\.?|p\.?m\.?)$")


def _as_date(now: Union[date, datetime]) -> date:
    return now.date() if isinstance(now, datetime) else now


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic, clamping to the last day of the month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _build(text: str, year: int, month: int, day: int) -> date:
    try:
        return date(year, month, day)
    except ValueError:
        raise DateParseError(text)


def parse_natural_date(text: str, now: Union[date, datetime]) -> date:
    """
    Parse a natural-language date expression.

    Supported forms: ISO ``YYYY-MM-DD``, today/tomorrow/yesterday,
    ``[next|this] <weekday>``, ``next week|month|year``, ``in N days|weeks|
    months|years``, ``<Month> <day>[, <year>]`` and ``<day> <Month> [<year>]``
    (rolled forward a year when the date has already passed), and numeric
    ``M/D[/Y]``.

    Args:
        text: The expression to parse
        now: Reference date the expression is relative to

    Returns:
        The resolved calendar date

    Raises:
        DateParseError: If the expression is empty, ambiguous or unsupported
    """
    if not text or not text.strip():
        raise DateParseError(text or "")

    today = _as_date(now)
    cleaned = re.sub(r"\s+", " ", text.strip().lower()).rstrip(".")
    cleaned = re.sub(r"^(on|the)\s+", "", cleaned)

    match = _ISO.match(cleaned)
    if match:
        return _build(text, int(match.group(1)), int(match.group(2)), int(match.group(3)))

    if cleaned == "today":
        return today
    if cleaned == "tomorrow":
        return today + timedelta(days=1)
    if cleaned == "yesterday":
        return today - timedelta(days=1)
    if cleaned == "next week":
        return today + timedelta(weeks=1)
    if cleaned == "next month":
        return add_months(today, 1)
    if cleaned == "next year":
        return add_months(today, 12)

    match = _RELATIVE.match(cleaned)
    if match:
        raw = match.group("n")
        n = int(raw) if raw.isdigit() else NUMBER_WORDS[raw]
        unit = match.group("unit")
        if unit == "day":
            return today + timedelta(days=n)
        if unit == "week":
            return today + timedelta(weeks=n)
        if unit == "month":
            return add_months(today, n)
        return add_months(today, 12 * n)

    match = _WEEKDAY.match(cleaned)
    if match:
        target = WEEKDAYS.index(match.group("day"))
        ahead = (target - today.weekday()) % 7
        # "next saturday" on a saturday means a week out, never today
        if ahead == 0 and match.group("mod") in ("next", "coming"):
            ahead = 7
        return today + timedelta(days=ahead)

    for pattern in (_MONTH_DAY, _DAY_MONTH):
        match = pattern.match(cleaned)
        if match:
            month = MONTHS[match.group("month")]
            day = int(match.group("day"))
            if match.group("year"):
                return _build(text, int(match.group("year")), month, day)
            candidate = _build(text, today.year, month, day)
            if candidate < today:
                candidate = _build(text, today.year + 1, month, day)
            return candidate

    match = _NUMERIC.match(cleaned)
    if match:
        month, day = int(match.group("month")), int(match.group("day"))
        year_text = match.group("year")
        if year_text:
            year = int(year_text)
            if year < 100:
                year += 2000
            return _build(text, year, month, day)
        candidate = _build(text, today.year, month, day)
        if candidate < today:
            candidate = _build(text, today.year + 1, month, day)
        return candidate

    raise DateParseError(text)


def parse_time(text: str) -> str:
    """
    Parse a clock time into ``HH:MM`` (24-hour).

    Accepts ``15:30``, ``3pm``, ``3:30 pm``, ``noon`` and ``midnight``.

    Raises:
        DateParseError: If the time cannot be parsed
    """
    if not text or not text.strip():
        raise DateParseError(text or "")

    cleaned = text.strip().lower()
    if cleaned == "noon":
        return "12:00"
    if cleaned == "midnight":
        return "00:00"

    match = _TIME_24.match(cleaned)
    if match:
        hour, minute = int(match.group("hour")), int(match.group("minute"))
    else:
        match = _TIME_12.match(cleaned)
        if not match:
            raise DateParseError(text)
        hour, minute = int(match.group("hour")), int(match.group("minute") or 0)
        if not 1 <= hour <= 12:
            raise DateParseError(text)
        is_pm = match.group("ampm").startswith("p")
        hour = hour % 12 + (12 if is_pm else 0)

    if hour > 23 or minute > 59:
        raise DateParseError(text)
    return f"{hour:02d}:{minute:02d}"
