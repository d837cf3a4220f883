"""Pydantic models for line edits and vault cleanup results."""

from pathlib import Path

from pydantic import BaseModel, Field

from .periodic import LinkTarget


class LineEdit(BaseModel):
    """Replacement of a recognized phrase by a wikilink within one line."""

    line: str = Field(..., description="Line text after the replacement")
    start: int = Field(..., description="Start offset of the replaced span")
    end: int = Field(..., description="End offset of the replaced span in the original line")
    cursor: int = Field(..., description="Cursor offset after the replacement")
    link: str = Field(..., description="Inserted wikilink")
    target: LinkTarget


class CleanupResult(BaseModel):
    """Outcome of a broken-link cleanup pass over a vault."""

    files_scanned: int = Field(default=0)
    files_modified: list[Path] = Field(default_factory=list)
    links_removed: int = Field(default=0)
    dry_run: bool = Field(default=False)
