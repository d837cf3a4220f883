"""Pydantic models for periodic-links."""

from .ledger import LedgerEvent, LedgerEventType
from .linking import CleanupResult, LineEdit
from .periodic import (
    DEFAULT_FORMATS,
    LADDER,
    Granularity,
    GranularityConfig,
    LinkTarget,
    PhraseMatch,
    ResolverFlags,
    WorkScope,
)

__all__ = [
    "LedgerEvent",
    "LedgerEventType",
    # Periodic notes
    "DEFAULT_FORMATS",
    "LADDER",
    "Granularity",
    "GranularityConfig",
    "LinkTarget",
    "PhraseMatch",
    "ResolverFlags",
    "WorkScope",
    # Linking
    "CleanupResult",
    "LineEdit",
]
