"""Find a time phrase that ends right before the cursor.

Recognition is a fixed, ordered list of independent strategies. Static idioms
come first so a shorter dynamic match never shadows them, then weekday
grammars, then generic durations. Only the text before the cursor is looked
at, and a phrase must be followed by at least one delimiter character
(whitespace or punctuation) that runs up to the cursor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from .grammar import (
    DELIMITER_CHARS,
    STATIC_PHRASES,
    UNIT_PATTERN,
    WEEKDAY_PATTERN,
    number_pattern,
    phrase_regex,
)
from .models.periodic import PhraseMatch


@dataclass(frozen=True)
class PhraseStrategy:
    """One grammar, anchored so that phrase + delimiter ends at the cursor."""

    name: str
    body: str

    @property
    def regex(self) -> re.Pattern[str]:
        return _compile(self.body)

    def match(self, line: str, cursor: int) -> Optional[PhraseMatch]:
        found = self.regex.search(line[:cursor])
        if found is None:
            return None
        return PhraseMatch(
            text=found.group("phrase"),
            trailing=found.group("trailing"),
            start=found.start("phrase"),
            end=cursor,
        )


@lru_cache(maxsize=256)
def _compile(body: str) -> re.Pattern[str]:
    return re.compile(
        rf"\b(?P<phrase>{body})(?P<trailing>[{DELIMITER_CHARS}]+)$",
        re.IGNORECASE,
    )


@lru_cache(maxsize=2)
def build_strategies(enable_written_numbers: bool = True) -> tuple[PhraseStrategy, ...]:
    """Strategies in priority order for the given number vocabulary."""
    number = number_pattern(enable_written_numbers)
    static = tuple(PhraseStrategy(f"static:{p}", phrase_regex(p)) for p in STATIC_PHRASES)
    weekday = (
        PhraseStrategy("next-last-weekday", rf"(?:next|last)\s+{WEEKDAY_PATTERN}"),
        PhraseStrategy("counted-weekday", rf"{number}\s+{WEEKDAY_PATTERN}s?\s+(?:from\s+now|ago)"),
        PhraseStrategy("in-weekday", rf"in\s+{number}\s+{WEEKDAY_PATTERN}s?"),
    )
    duration = (
        PhraseStrategy("duration-ago", rf"{number}\s+{UNIT_PATTERN}\s+ago"),
        PhraseStrategy("duration-in", rf"in\s+{number}\s+{UNIT_PATTERN}"),
        PhraseStrategy("duration-from-now", rf"{number}\s+{UNIT_PATTERN}\s+from\s+now"),
    )
    return static + weekday + duration


def find_phrase(
    line: str,
    cursor: int,
    *,
    enable_written_numbers: bool = True,
) -> Optional[PhraseMatch]:
    """Return the first phrase, in strategy order, ending at the cursor."""
    if cursor <= 0:
        return None
    cursor = min(cursor, len(line))
    for strategy in build_strategies(enable_written_numbers):
        match = strategy.match(line, cursor)
        if match is not None:
            return match
    return None
