"""Pydantic models for ledger events."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

LedgerEventType = Literal[
    "NOTE_CREATED",
    "NOTE_CREATE_FAILED",
    "LINK_INSERTED",
    "BROKEN_LINK_REMOVED",
]


class LedgerEvent(BaseModel):
    """Append-only ledger event record.

    Written as JSONL to <vault>/.obsidian/plugins/periodic-links/ledger.jsonl.
    Never mutate or delete; only append.
    """

    event_id: str = Field(description="Unique event identifier (uuid4)")
    run_id: str = Field(description="Run/session identifier (uuid4)")
    ts: datetime = Field(description="Event timestamp (ISO8601 UTC)")
    event_type: LedgerEventType = Field(description="Event type")
    note_path: str | None = Field(default=None, description="Vault-relative note the event concerns")
    payload: dict = Field(default_factory=dict, description="Event-specific data")

    model_config = {"frozen": True}
