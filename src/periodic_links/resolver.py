"""Resolve a recognized time phrase into a periodic note target.

Resolution is a pure function of its arguments: the phrase, the granularity of
the note it was typed in (or None), the anchor date, the phrase toggles and the
work scope. Anything that does not apply yields None; nothing here raises.

Scope gating uses the coarseness ladder day < week < month < quarter < year.
Under "current-type" a phrase is allowed only when the current note is at or
finer than the phrase's ceiling (e.g. "last week" works in daily and weekly
notes, "tomorrow" only in daily notes). "all-periodic" and "everywhere" allow
every granularity, as does a missing context.
"""

from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from functools import lru_cache
from typing import Callable, Optional

from dateutil.relativedelta import relativedelta

from .formats import moment_weekday
from .grammar import (
    STATIC_PHRASES,
    UNIT_PATTERN,
    WEEKDAY_PATTERN,
    is_valid_plural,
    normalize_phrase,
    number_pattern,
    parse_count,
    unit_granularity,
    weekday_number,
)
from .models.periodic import Granularity, LinkTarget, ResolverFlags, WorkScope

logger = logging.getLogger(__name__)


def is_permitted(
    ceiling: Granularity,
    context: Optional[Granularity],
    scope: WorkScope,
) -> bool:
    """Whether a phrase with the given ceiling may be used from ``context``."""
    if scope != "current-type" or context is None:
        return True
    return context.rank <= ceiling.rank


def shift(anchor: date, granularity: Granularity, amount: int) -> date:
    """Move a date by whole calendar units of a granularity."""
    if granularity is Granularity.DAY:
        return anchor + timedelta(days=amount)
    if granularity is Granularity.WEEK:
        return anchor + timedelta(weeks=amount)
    if granularity is Granularity.MONTH:
        return anchor + relativedelta(months=amount)
    if granularity is Granularity.QUARTER:
        return anchor + relativedelta(months=3 * amount)
    return anchor + relativedelta(years=amount)


def weekday_occurrence(reference: date, weekday: int, count: int = 1, forward: bool = True) -> date:
    """The count-th occurrence of a weekday after (or before) the reference.

    The reference day itself never counts: asking for the next Tuesday on a
    Tuesday gives the Tuesday a week later.
    """
    current = moment_weekday(reference)
    if forward:
        days = (weekday - current) % 7 or 7
        days += (count - 1) * 7
    else:
        days = -((current - weekday) % 7 or 7)
        days -= (count - 1) * 7
    return reference + timedelta(days=days)


def weekday_this_week(reference: date, weekday: int) -> date:
    """The given weekday inside the reference's Monday-to-Sunday week."""
    monday = reference - timedelta(days=reference.weekday())
    return monday + timedelta(days=(weekday - 1) % 7)


@lru_cache(maxsize=2)
def _dynamic_patterns(enable_written_numbers: bool) -> dict[str, re.Pattern[str]]:
    number = number_pattern(enable_written_numbers)
    return {
        "next-last-weekday": re.compile(
            rf"(?P<direction>next|last)\s+(?P<weekday>{WEEKDAY_PATTERN})"
        ),
        "counted-weekday": re.compile(
            rf"(?P<count>{number})\s+(?P<weekday>{WEEKDAY_PATTERN}s?)\s+(?P<direction>from\s+now|ago)"
        ),
        "in-weekday": re.compile(rf"in\s+(?P<count>{number})\s+(?P<weekday>{WEEKDAY_PATTERN}s?)"),
        "duration-ago": re.compile(rf"(?P<count>{number})\s+(?P<unit>{UNIT_PATTERN})\s+ago"),
        "duration-in": re.compile(rf"in\s+(?P<count>{number})\s+(?P<unit>{UNIT_PATTERN})"),
        "duration-from-now": re.compile(rf"(?P<count>{number})\s+(?P<unit>{UNIT_PATTERN})\s+from\s+now"),
    }


class PhraseResolver:
    """Stateless resolver; ``today`` supplies the wall clock for "from now"."""

    def __init__(self, today: Callable[[], date] = date.today):
        self.today = today

    def resolve(
        self,
        phrase: str,
        context: Optional[Granularity],
        anchor: date,
        flags: Optional[ResolverFlags] = None,
        scope: WorkScope = "current-type",
    ) -> Optional[LinkTarget]:
        flags = flags or ResolverFlags()
        if not flags.enable_natural_language:
            return None

        try:
            return self._resolve(phrase, context, anchor, flags, scope)
        except (OverflowError, ValueError) as e:
            # Counts large enough to leave the calendar's year range
            logger.debug(f"Rejecting {phrase!r}: date out of range ({e})")
            return None

    def _resolve(
        self,
        phrase: str,
        context: Optional[Granularity],
        anchor: date,
        flags: ResolverFlags,
        scope: WorkScope,
    ) -> Optional[LinkTarget]:
        normalized = normalize_phrase(phrase)
        static = STATIC_PHRASES.get(normalized)
        if static is not None:
            if static.extended and not flags.enable_extended_phrases:
                return None
            if not is_permitted(static.ceiling, context, scope):
                return None
            if static.weekday is not None:
                return LinkTarget(granularity=Granularity.DAY, date=weekday_this_week(anchor, static.weekday))
            return LinkTarget(granularity=static.target, date=shift(anchor, static.target, static.offset))

        if not flags.enable_extended_phrases:
            return None
        return self._resolve_dynamic(normalized, context, anchor, flags, scope)

    def _resolve_dynamic(
        self,
        phrase: str,
        context: Optional[Granularity],
        anchor: date,
        flags: ResolverFlags,
        scope: WorkScope,
    ) -> Optional[LinkTarget]:
        patterns = _dynamic_patterns(flags.enable_written_numbers)

        for name in ("next-last-weekday", "counted-weekday", "in-weekday"):
            found = patterns[name].fullmatch(phrase)
            if found is None:
                continue
            groups = found.groupdict()
            count = parse_count(groups["count"], flags.enable_written_numbers) if groups.get("count") else 1
            weekday = weekday_number(groups["weekday"])
            if count is None or weekday is None:
                return None
            if not is_permitted(Granularity.DAY, context, scope):
                return None
            direction = groups.get("direction") or "in"
            forward = direction in ("next", "in") or direction.startswith("from")
            return LinkTarget(
                granularity=Granularity.DAY,
                date=weekday_occurrence(anchor, weekday, count, forward),
            )

        for name in ("duration-ago", "duration-in", "duration-from-now"):
            found = patterns[name].fullmatch(phrase)
            if found is None:
                continue
            count = parse_count(found.group("count"), flags.enable_written_numbers)
            unit_word = found.group("unit")
            granularity = unit_granularity(unit_word)
            if count is None or granularity is None:
                return None
            if not is_valid_plural(count, unit_word):
                logger.debug(f"Rejecting {phrase!r}: count {count} needs a plural unit")
                return None
            if not is_permitted(granularity, context, scope):
                return None
            if name == "duration-ago":
                resolved = shift(anchor, granularity, -count)
            elif name == "duration-in":
                resolved = shift(anchor, granularity, count)
            else:
                # "from now" always counts from the wall clock, not the note's date
                resolved = shift(self.today(), granularity, count)
            return LinkTarget(granularity=granularity, date=resolved)

        return None


def resolve(
    phrase: str,
    context: Optional[Granularity],
    anchor: date,
    flags: Optional[ResolverFlags] = None,
    scope: WorkScope = "current-type",
    *,
    today: Callable[[], date] = date.today,
) -> Optional[LinkTarget]:
    """Module-level shortcut for ``PhraseResolver(today).resolve(...)``."""
    return PhraseResolver(today).resolve(phrase, context, anchor, flags, scope)
