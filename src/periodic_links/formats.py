"""Moment-style date format patterns for periodic note names.

Periodic note plugins describe note names with moment.js tokens
(``YYYY-MM-DD``, ``gggg-[W]ww``, ``YYYY-[Q]Q``). This module compiles such a
pattern into a strict whole-string matcher, decodes matching names back into a
date, and renders dates into names.

Supported tokens:
- Years: ``YYYY``, ``YY``; locale week-years ``gggg``, ``gg``; ISO week-years ``GGGG``, ``GG``
- Weeks: locale ``ww``, ``w``; ISO ``WW``, ``W``
- Months: ``MMMM``, ``MMM``, ``MM``, ``M``; quarter ``Q``
- Days: ``DD``, ``D``, ``Do``; day of year ``DDDD``
- Weekdays: ``dddd``, ``ddd``, ``dd``, ``d``, ``e`` (Sunday=0), ``E`` (ISO, Monday=1)
- ``[literal]`` segments; every other character is a literal.

Locale weeks follow the en-US convention: weeks start on Sunday and week 1 is
the week containing January 1.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from functools import lru_cache
from typing import Callable, Optional

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
# Sunday first, matching moment's day() numbering
WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")

_TOKEN_RE = re.compile(
    r"\[[^\]]*\]|gggg|GGGG|YYYY|DDDD|MMMM|dddd|MMM|ddd|Do|YY|gg|GG|ww|WW|MM|DD|dd|w|W|M|D|Q|d|e|E|.",
    re.DOTALL,
)


def _alternation(names: tuple[str, ...]) -> str:
    # Longest first so "May" never shadows a longer alternative
    return "((?i:" + "|".join(sorted((re.escape(n) for n in names), key=len, reverse=True)) + "))"


def _two_digit_year(raw: str) -> int:
    value = int(raw)
    return value + (2000 if value < 69 else 1900)


def _month_from_name(raw: str) -> int:
    lowered = raw.lower()
    for index, name in enumerate(MONTH_NAMES, start=1):
        if lowered in (name.lower(), name[:3].lower()):
            return index
    raise ValueError(f"Unknown month name: {raw}")


def _weekday_from_name(raw: str) -> int:
    lowered = raw.lower()
    for index, name in enumerate(WEEKDAY_NAMES):
        if lowered in (name.lower(), name[:3].lower(), name[:2].lower()):
            return index
    raise ValueError(f"Unknown weekday name: {raw}")


def _ordinal_suffix(day: int) -> str:
    if 11 <= day % 100 <= 13:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")


@dataclass(frozen=True)
class _TokenSpec:
    regex: str
    field: str
    convert: Callable[[str], int]


_PARSE_TOKENS: dict[str, _TokenSpec] = {
    "YYYY": _TokenSpec(r"(\d{4})", "year", int),
    "YY": _TokenSpec(r"(\d{2})", "year", _two_digit_year),
    "gggg": _TokenSpec(r"(\d{4})", "week_year", int),
    "gg": _TokenSpec(r"(\d{2})", "week_year", _two_digit_year),
    "GGGG": _TokenSpec(r"(\d{4})", "iso_week_year", int),
    "GG": _TokenSpec(r"(\d{2})", "iso_week_year", _two_digit_year),
    "ww": _TokenSpec(r"(\d{2})", "week", int),
    "w": _TokenSpec(r"(\d{1,2})", "week", int),
    "WW": _TokenSpec(r"(\d{2})", "iso_week", int),
    "W": _TokenSpec(r"(\d{1,2})", "iso_week", int),
    "MMMM": _TokenSpec(_alternation(MONTH_NAMES), "month", _month_from_name),
    "MMM": _TokenSpec(_alternation(tuple(n[:3] for n in MONTH_NAMES)), "month", _month_from_name),
    "MM": _TokenSpec(r"(\d{2})", "month", int),
    "M": _TokenSpec(r"(\d{1,2})", "month", int),
    "DDDD": _TokenSpec(r"(\d{3})", "day_of_year", int),
    "DD": _TokenSpec(r"(\d{2})", "day", int),
    "D": _TokenSpec(r"(\d{1,2})", "day", int),
    "Do": _TokenSpec(r"(\d{1,2}(?:st|nd|rd|th))", "day", lambda raw: int(raw[:-2])),
    "Q": _TokenSpec(r"([1-4])", "quarter", int),
    "dddd": _TokenSpec(_alternation(WEEKDAY_NAMES), "weekday", _weekday_from_name),
    "ddd": _TokenSpec(_alternation(tuple(n[:3] for n in WEEKDAY_NAMES)), "weekday", _weekday_from_name),
    "dd": _TokenSpec(_alternation(tuple(n[:2] for n in WEEKDAY_NAMES)), "weekday", _weekday_from_name),
    "d": _TokenSpec(r"([0-6])", "weekday", int),
    "e": _TokenSpec(r"([0-6])", "weekday", int),
    "E": _TokenSpec(r"([1-7])", "weekday", lambda raw: int(raw) % 7),
}


# ---------------------------------------------------------------------------
# Week arithmetic
# ---------------------------------------------------------------------------


def locale_week_start(week_year: int) -> date:
    """Sunday that starts week 1 of a locale week-year."""
    jan1 = date(week_year, 1, 1)
    return jan1 - timedelta(days=(jan1.weekday() + 1) % 7)


def locale_weeks_in_year(week_year: int) -> int:
    return (locale_week_start(week_year + 1) - locale_week_start(week_year)).days // 7


def locale_week(value: date) -> tuple[int, int]:
    """Return (week_year, week) for the Sunday-start, Jan-1 convention."""
    week_year = value.year
    if value >= locale_week_start(week_year + 1):
        week_year += 1
    return week_year, (value - locale_week_start(week_year)).days // 7 + 1


def iso_weeks_in_year(iso_year: int) -> int:
    return date(iso_year, 12, 28).isocalendar()[1]


def quarter_of(value: date) -> int:
    return (value.month - 1) // 3 + 1


def moment_weekday(value: date) -> int:
    """Weekday numbered like moment's day(): Sunday=0 ... Saturday=6."""
    return (value.weekday() + 1) % 7


# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------


def _tokenize(pattern: str) -> list[str]:
    return _TOKEN_RE.findall(pattern)


def _segment_count(tokens: list[str]) -> int:
    return 1 + sum(1 for token in tokens if token == "/")


class DateFormat:
    """A compiled moment-style pattern.

    ``matches`` is strict: the whole candidate must fit the pattern and the
    captured fields must describe a real calendar date.
    """

    def __init__(self, pattern: str):
        if not pattern:
            raise ValueError("Format pattern must not be empty")
        self.pattern = pattern
        self.tokens = _tokenize(pattern)
        self.segments = _segment_count(self.tokens)

        parts: list[str] = []
        self._fields: list[_TokenSpec] = []
        for token in self.tokens:
            token_spec = _PARSE_TOKENS.get(token)
            if token_spec is not None:
                parts.append(token_spec.regex)
                self._fields.append(token_spec)
            elif token.startswith("[") and token.endswith("]") and len(token) >= 2:
                parts.append(re.escape(token[1:-1]))
            else:
                parts.append(re.escape(token))
        if not self._fields:
            raise ValueError(f"Format pattern has no date tokens: {pattern!r}")
        self._regex = re.compile("".join(parts))

    def __repr__(self) -> str:
        return f"DateFormat({self.pattern!r})"

    @property
    def has_path_segments(self) -> bool:
        return self.segments > 1

    def parse(self, value: str) -> Optional[date]:
        """Decode a name into the first day of the period it describes."""
        match = self._regex.fullmatch(value)
        if match is None:
            return None

        fields: dict[str, int] = {}
        try:
            for token_spec, raw in zip(self._fields, match.groups()):
                converted = token_spec.convert(raw)
                # Repeated tokens (YYYY/MM/YYYY-MM-DD) must agree
                if fields.setdefault(token_spec.field, converted) != converted:
                    return None
            return _build_date(fields)
        except ValueError:
            return None

    def matches(self, value: str) -> bool:
        return self.parse(value) is not None

    def render(self, value: date) -> str:
        return "".join(_render_token(token, value) for token in self.tokens)


def _build_date(fields: dict[str, int]) -> Optional[date]:
    weekday = fields.get("weekday")
    year = fields.get("year")

    if "iso_week" in fields:
        iso_year = fields.get("iso_week_year", year)
        if iso_year is None or not 1 <= fields["iso_week"] <= iso_weeks_in_year(iso_year):
            return None
        iso_weekday = 7 if weekday == 0 else (weekday or 1)
        return date.fromisocalendar(iso_year, fields["iso_week"], iso_weekday)

    if "week" in fields:
        week_year = fields.get("week_year", year)
        if week_year is None or not 1 <= fields["week"] <= locale_weeks_in_year(week_year):
            return None
        start = locale_week_start(week_year) + timedelta(weeks=fields["week"] - 1)
        return start + timedelta(days=weekday or 0)

    if year is None:
        year = fields.get("week_year", fields.get("iso_week_year"))
    if year is None:
        return None

    if "month" in fields:
        month = fields["month"]
        if "quarter" in fields and (month - 1) // 3 + 1 != fields["quarter"]:
            return None
        result = date(year, month, fields.get("day", 1))
    elif "day_of_year" in fields:
        result = date(year, 1, 1) + timedelta(days=fields["day_of_year"] - 1)
        if result.year != year:
            return None
    elif "quarter" in fields:
        result = date(year, 3 * (fields["quarter"] - 1) + 1, 1)
    elif "day" in fields:
        return None
    else:
        result = date(year, 1, 1)

    if weekday is not None and "day" in fields and moment_weekday(result) != weekday:
        return None
    return result


def _render_token(token: str, value: date) -> str:
    if token.startswith("[") and token.endswith("]") and len(token) >= 2:
        return token[1:-1]
    if token in ("YYYY", "YY"):
        return f"{value.year:04d}" if token == "YYYY" else f"{value.year % 100:02d}"
    if token in ("gggg", "gg", "ww", "w"):
        week_year, week = locale_week(value)
        return {
            "gggg": f"{week_year:04d}",
            "gg": f"{week_year % 100:02d}",
            "ww": f"{week:02d}",
            "w": str(week),
        }[token]
    if token in ("GGGG", "GG", "WW", "W"):
        iso_year, iso_week, _ = value.isocalendar()
        return {
            "GGGG": f"{iso_year:04d}",
            "GG": f"{iso_year % 100:02d}",
            "WW": f"{iso_week:02d}",
            "W": str(iso_week),
        }[token]

    renderers: dict[str, Callable[[date], str]] = {
        "MMMM": lambda d: MONTH_NAMES[d.month - 1],
        "MMM": lambda d: MONTH_NAMES[d.month - 1][:3],
        "MM": lambda d: f"{d.month:02d}",
        "M": lambda d: str(d.month),
        "DDDD": lambda d: f"{d.timetuple().tm_yday:03d}",
        "DD": lambda d: f"{d.day:02d}",
        "D": lambda d: str(d.day),
        "Do": lambda d: f"{d.day}{_ordinal_suffix(d.day)}",
        "Q": lambda d: str(quarter_of(d)),
        "dddd": lambda d: WEEKDAY_NAMES[moment_weekday(d)],
        "ddd": lambda d: WEEKDAY_NAMES[moment_weekday(d)][:3],
        "dd": lambda d: WEEKDAY_NAMES[moment_weekday(d)][:2],
        "d": lambda d: str(moment_weekday(d)),
        "e": lambda d: str(moment_weekday(d)),
        "E": lambda d: str(d.isoweekday()),
    }
    renderer = renderers.get(token)
    return renderer(value) if renderer else token


@lru_cache(maxsize=128)
def compile_format(pattern: str) -> DateFormat:
    """Compile and cache a pattern. Raises ValueError for unusable patterns."""
    return DateFormat(pattern)


def format_date(value: date, pattern: str) -> str:
    """Render a date with a moment-style pattern."""
    return compile_format(pattern).render(value)


def parse_date(value: str, pattern: str) -> Optional[date]:
    """Strictly decode a name with a moment-style pattern, or None."""
    try:
        return compile_format(pattern).parse(value)
    except ValueError:
        return None
