"""The edit-time pipeline: phrase before the cursor -> wikilink in the line."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from .config import PeriodicLinksSettings, load_settings
from .detector import GranularityDetector
from .ledger import LedgerWriter
from .links import NoteMaterializer, replacement_for
from .models.linking import LineEdit
from .models.periodic import Granularity
from .paths import VaultPaths
from .recognizer import find_phrase
from .resolver import PhraseResolver
from .sources import ConfigAggregator

logger = logging.getLogger(__name__)


class PeriodicLinker:
    """Wires detector, recognizer, resolver and materializer together.

    One instance serves one editing session; call ``reload()`` after the
    periodic note plugins' settings change.
    """

    def __init__(
        self,
        vault_root: Path,
        settings: PeriodicLinksSettings,
        *,
        aggregator: Optional[ConfigAggregator] = None,
        ledger_writer: Optional[LedgerWriter] = None,
        today: Callable[[], date] = date.today,
    ):
        self.paths = VaultPaths(vault_root)
        self.settings = settings
        self.aggregator = aggregator or ConfigAggregator.from_vault(vault_root)
        self.detector = GranularityDetector(
            self.aggregator,
            strict_folder=settings.strict_folder_check,
            today=today,
        )
        self.resolver = PhraseResolver(today)
        self.ledger_writer = ledger_writer
        self.materializer = NoteMaterializer(
            vault_root,
            self.detector,
            auto_create=settings.auto_create_notes,
            ledger_writer=ledger_writer,
        )

    @classmethod
    def for_vault(cls, vault_root: Path, *, with_ledger: bool = True) -> "PeriodicLinker":
        ledger_writer = LedgerWriter(VaultPaths(vault_root).ledger_file) if with_ledger else None
        return cls(vault_root, load_settings(vault_root), ledger_writer=ledger_writer)

    def reload(self) -> None:
        """Re-read the plugins' settings; cached detections expire with the old version."""
        self.aggregator.load_vault(self.paths.root)

    def context_for(self, note_path: str) -> Optional[Granularity]:
        name = note_path.replace("\\", "/").rsplit("/", 1)[-1]
        return self.detector.detect_cached(name, note_path)

    def process_line(self, note_path: str, line: str, cursor: int) -> Optional[LineEdit]:
        """Replace the phrase ending at ``cursor`` with a link, if one applies.

        Args:
            note_path: Vault-relative path of the note being edited
            line: Current line text
            cursor: Cursor offset within the line

        Returns:
            The edit to apply, or None when nothing should change
        """
        if not self.settings.enable_natural_language:
            return None

        context = self.context_for(note_path)
        if context is None and self.settings.work_scope != "everywhere":
            return None

        match = find_phrase(line, cursor, enable_written_numbers=self.settings.enable_written_numbers)
        if match is None:
            return None

        name = note_path.replace("\\", "/").rsplit("/", 1)[-1]
        anchor = self.detector.anchor_date(name, note_path, context)
        target = self.resolver.resolve(
            match.text,
            context,
            anchor,
            self.settings.flags,
            self.settings.work_scope,
        )
        if target is None:
            return None

        link = self.materializer.create_link(target, match.text)
        if link is None:
            return None

        replacement = replacement_for(link, match.trailing)
        new_line = line[: match.start] + replacement + line[match.end :]
        logger.debug(f"Linked {match.text!r} in {note_path} -> {link}")
        return LineEdit(
            line=new_line,
            start=match.start,
            end=match.end,
            cursor=match.start + len(replacement),
            link=link,
            target=target,
        )

    def process_note(self, note_file: Path, line_no: int, cursor: Optional[int] = None) -> Optional[LineEdit]:
        """Apply ``process_line`` to one line of a note on disk.

        Args:
            note_file: Note to edit
            line_no: Zero-based line index
            cursor: Cursor offset; defaults to the end of the line

        Raises:
            FileNotFoundError: If the note does not exist
            ValueError: If the line number is out of range
        """
        if not note_file.exists():
            raise FileNotFoundError(f"Note does not exist: {note_file}")
        lines = note_file.read_text(encoding="utf-8").split("\n")
        if not 0 <= line_no < len(lines):
            raise ValueError(f"Line {line_no} out of range (note has {len(lines)} lines)")

        line = lines[line_no]
        rel_path = self.paths.relative(note_file)
        edit = self.process_line(rel_path, line, len(line) if cursor is None else cursor)
        if edit is None:
            return None

        lines[line_no] = edit.line
        note_file.write_text("\n".join(lines), encoding="utf-8")
        if self.ledger_writer:
            self.ledger_writer.append_event(
                event_type="LINK_INSERTED",
                payload={
                    "line": line_no,
                    "link": edit.link,
                    "granularity": edit.target.granularity.value,
                    "date": edit.target.date.isoformat(),
                },
                note_path=rel_path,
            )
        return edit
