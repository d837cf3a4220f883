"""Shared vocabulary for recognizing and resolving time phrases."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from .models.periodic import Granularity

WRITTEN_NUMBERS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14, "fifteen": 15,
    "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19, "twenty": 20,
    "thirty": 30, "forty": 40, "fifty": 50, "sixty": 60, "seventy": 70,
    "eighty": 80, "ninety": 90,
}

# Sunday=0, matching formats.moment_weekday
WEEKDAYS = {
    "sunday": 0, "monday": 1, "tuesday": 2, "wednesday": 3,
    "thursday": 4, "friday": 5, "saturday": 6,
}

UNITS = {
    "day": Granularity.DAY,
    "week": Granularity.WEEK,
    "month": Granularity.MONTH,
    "quarter": Granularity.QUARTER,
    "year": Granularity.YEAR,
}

WEEKDAY_PATTERN = "(?:" + "|".join(WEEKDAYS) + ")"
UNIT_PATTERN = r"(?:days?|weeks?|months?|quarters?|years?)"
DELIMITER_CHARS = r"""\s.,;:!?"'"""


@lru_cache(maxsize=2)
def number_pattern(enable_written_numbers: bool = True) -> str:
    if not enable_written_numbers:
        return r"(?:\d+)"
    return r"(?:\d+|" + "|".join(WRITTEN_NUMBERS) + ")"


def parse_count(word: str, enable_written_numbers: bool = True) -> Optional[int]:
    """Digits or a spelled-out number; zero and unknown words give None."""
    lowered = word.strip().lower()
    if lowered.isdigit():
        value = int(lowered)
    elif enable_written_numbers and lowered in WRITTEN_NUMBERS:
        value = WRITTEN_NUMBERS[lowered]
    else:
        return None
    return value or None


def unit_granularity(word: str) -> Optional[Granularity]:
    lowered = word.lower()
    return UNITS.get(lowered[:-1] if lowered.endswith("s") else lowered)


def weekday_number(word: str) -> Optional[int]:
    lowered = word.lower()
    if lowered not in WEEKDAYS and lowered.endswith("s"):
        lowered = lowered[:-1]
    return WEEKDAYS.get(lowered)


def is_valid_plural(count: int, unit_word: str) -> bool:
    """A count of one takes either spelling; any other count needs the plural."""
    return count == 1 or unit_word.lower().endswith("s")


@dataclass(frozen=True)
class StaticPhrase:
    """A fixed idiom and where it leads.

    ``ceiling`` is the coarsest note granularity the phrase may be typed in
    when links are limited to the current note type.
    """

    target: Granularity
    offset: int
    ceiling: Granularity
    weekday: Optional[int] = None
    extended: bool = False


STATIC_PHRASES: dict[str, StaticPhrase] = {
    "yesterday": StaticPhrase(Granularity.DAY, -1, Granularity.DAY),
    "tomorrow": StaticPhrase(Granularity.DAY, 1, Granularity.DAY),
    "last week": StaticPhrase(Granularity.WEEK, -1, Granularity.WEEK),
    "next week": StaticPhrase(Granularity.WEEK, 1, Granularity.WEEK),
    "this week": StaticPhrase(Granularity.WEEK, 0, Granularity.DAY),
    "last month": StaticPhrase(Granularity.MONTH, -1, Granularity.MONTH),
    "next month": StaticPhrase(Granularity.MONTH, 1, Granularity.MONTH),
    "this month": StaticPhrase(Granularity.MONTH, 0, Granularity.WEEK),
    "last quarter": StaticPhrase(Granularity.QUARTER, -1, Granularity.QUARTER),
    "previous quarter": StaticPhrase(Granularity.QUARTER, -1, Granularity.QUARTER, extended=True),
    "next quarter": StaticPhrase(Granularity.QUARTER, 1, Granularity.QUARTER),
    "this quarter": StaticPhrase(Granularity.QUARTER, 0, Granularity.MONTH),
    "last year": StaticPhrase(Granularity.YEAR, -1, Granularity.YEAR),
    "previous year": StaticPhrase(Granularity.YEAR, -1, Granularity.YEAR, extended=True),
    "next year": StaticPhrase(Granularity.YEAR, 1, Granularity.YEAR),
    "this year": StaticPhrase(Granularity.YEAR, 0, Granularity.QUARTER),
}
STATIC_PHRASES.update(
    {
        f"this {name}": StaticPhrase(Granularity.DAY, 0, Granularity.DAY, weekday=number, extended=True)
        for name, number in WEEKDAYS.items()
    }
)


def normalize_phrase(phrase: str) -> str:
    """Lowercase and collapse inner whitespace."""
    return " ".join(phrase.lower().split())


def phrase_regex(phrase: str) -> str:
    """Regex for a static phrase allowing any run of whitespace between words."""
    return r"\s+".join(re.escape(word) for word in phrase.split())
