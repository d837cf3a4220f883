"""Unwrap periodic note links that point at notes which were never created."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from .detector import GranularityDetector
from .ledger import LedgerWriter
from .models.linking import CleanupResult
from .paths import VaultPaths

logger = logging.getLogger(__name__)

_WIKILINK_RE = re.compile(r"\[\[([^\]]+)\]\]")
_DATE_LIKE_PATTERNS = [
    re.compile(r"\d{4}-\d{2}-\d{2}"),
    re.compile(r"\d{4}-W\d{2}"),
    re.compile(r"\d{4}-\d{2}"),
    re.compile(r"\d{4}-Q\d"),
    re.compile(r"\d{4}"),
]


def looks_like_periodic_link(link_target: str) -> bool:
    """Heuristic: any date-shaped fragment in the link target."""
    return any(p.search(link_target) for p in _DATE_LIKE_PATTERNS)


class _NoteIndex:
    def __init__(self, paths: VaultPaths, files: list[Path]):
        self.rel_paths = {paths.relative(f).lower() for f in files}
        self.names = {f.name.lower() for f in files}

    def exists(self, link_target: str) -> bool:
        target = link_target.split("#", 1)[0].replace("\\", "/").strip().strip("/").lower()
        if not target:
            # Same-note heading links always resolve
            return True
        if not target.endswith(".md"):
            target = f"{target}.md"
        return target in self.rel_paths or target.rsplit("/", 1)[-1] in self.names


def _unwrap_broken(line: str, index: _NoteIndex) -> tuple[str, int]:
    removed = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal removed
        inner = match.group(1)
        target, _, alias = inner.partition("|")
        if index.exists(target) or not looks_like_periodic_link(target):
            return match.group(0)
        removed += 1
        return alias or target

    return _WIKILINK_RE.sub(_replace, line), removed


def cleanup_broken_links(
    vault_root: Path,
    detector: GranularityDetector,
    *,
    dry_run: bool = False,
    ledger_writer: Optional[LedgerWriter] = None,
) -> CleanupResult:
    """Replace broken date-like links in periodic notes with their visible text.

    Only periodic notes are touched; other notes keep every link.

    Args:
        vault_root: Root of the Obsidian vault
        detector: Detector used to decide which notes are periodic
        dry_run: Count what would change without writing
        ledger_writer: Optional ledger for BROKEN_LINK_REMOVED events
    """
    paths = VaultPaths(vault_root)
    files = paths.markdown_files()
    index = _NoteIndex(paths, files)
    result = CleanupResult(files_scanned=len(files), dry_run=dry_run)

    for note_file in files:
        rel_path = paths.relative(note_file)
        if detector.detect(note_file.stem, rel_path) is None:
            continue

        content = note_file.read_text(encoding="utf-8")
        lines = content.split("\n")
        removed_here = 0
        for i, line in enumerate(lines):
            lines[i], removed = _unwrap_broken(line, index)
            removed_here += removed

        if not removed_here:
            continue

        result.links_removed += removed_here
        result.files_modified.append(note_file)
        if dry_run:
            logger.info(f"Would remove {removed_here} broken link(s) from {rel_path}")
            continue

        note_file.write_text("\n".join(lines), encoding="utf-8")
        logger.info(f"Removed {removed_here} broken link(s) from {rel_path}")
        if ledger_writer:
            ledger_writer.append_event(
                event_type="BROKEN_LINK_REMOVED",
                payload={"links_removed": removed_here},
                note_path=rel_path,
            )

    return result
