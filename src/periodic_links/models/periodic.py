"""Pydantic models for periodic note granularities, phrases and link targets."""

from datetime import date
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field


class Granularity(str, Enum):
    """Period a periodic note represents, ordered finest to coarsest."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def rank(self) -> int:
        """Position on the coarseness ladder (day=0 ... year=4)."""
        return LADDER.index(self)

    @property
    def legacy_key(self) -> str:
        """Key used by the periodic notes plugin ("daily", "weekly", ...)."""
        return _LEGACY_KEYS[self]

    @classmethod
    def from_name(cls, value: str) -> Optional["Granularity"]:
        """Accept both "week" and "weekly" spellings."""
        candidate = (value or "").strip().lower()
        for granularity in LADDER:
            if candidate in (granularity.value, granularity.legacy_key):
                return granularity
        return None


LADDER: tuple[Granularity, ...] = (
    Granularity.DAY,
    Granularity.WEEK,
    Granularity.MONTH,
    Granularity.QUARTER,
    Granularity.YEAR,
)

_LEGACY_KEYS = {
    Granularity.DAY: "daily",
    Granularity.WEEK: "weekly",
    Granularity.MONTH: "monthly",
    Granularity.QUARTER: "quarterly",
    Granularity.YEAR: "yearly",
}

DEFAULT_FORMATS = {
    Granularity.DAY: "YYYY-MM-DD",
    Granularity.WEEK: "gggg-[W]ww",
    Granularity.MONTH: "YYYY-MM",
    Granularity.QUARTER: "YYYY-[Q]Q",
    Granularity.YEAR: "YYYY",
}


WorkScope = Literal["current-type", "all-periodic", "everywhere"]


class GranularityConfig(BaseModel):
    """How notes of one granularity are named and where they live."""

    granularity: Granularity = Field(..., description="Granularity this config describes")
    format: str = Field(..., description="Moment-style format pattern for note names")
    folder: str = Field(default="", description="Vault-relative folder, possibly empty")
    template: str | None = Field(default=None, description="Template note reference")

    model_config = {"frozen": True}


class PhraseMatch(BaseModel):
    """A recognized time expression ending at the cursor."""

    text: str = Field(..., description="Matched phrase with original casing")
    trailing: str = Field(default="", description="Delimiter characters after the phrase")
    start: int = Field(..., ge=0, description="Offset of the first phrase character")
    end: int = Field(..., ge=0, description="Offset just past the trailing delimiter")

    model_config = {"frozen": True}


class LinkTarget(BaseModel):
    """Resolved periodic note: which granularity and which date."""

    granularity: Granularity
    date: date

    model_config = {"frozen": True}


class ResolverFlags(BaseModel):
    """Phrase toggles passed explicitly into recognition and resolution."""

    enable_natural_language: bool = Field(default=True, description="Basic phrases (yesterday, next week)")
    enable_written_numbers: bool = Field(default=True, description="Spelled-out counts (two, twenty)")
    enable_extended_phrases: bool = Field(default=True, description="Durations, weekdays, previous quarter/year")

    model_config = {"frozen": True}
