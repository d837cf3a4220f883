"""Turn resolved targets into wikilinks and, when asked, into notes on disk."""

from __future__ import annotations

import logging
import re
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

from .detector import GranularityDetector
from .formats import format_date, moment_weekday, quarter_of
from .ledger import LedgerWriter
from .models.periodic import Granularity, GranularityConfig, LinkTarget
from .paths import VaultPaths

logger = logging.getLogger(__name__)

_SPACED_PUNCTUATION = re.compile(r"[.,;:!?]")


def note_filename(target: LinkTarget, config: GranularityConfig) -> str:
    """Note name for a target: its granularity's format applied to the date."""
    return format_date(target.date, config.format)


def note_rel_path(target: LinkTarget, config: GranularityConfig) -> str:
    folder = config.folder.replace("\\", "/").strip("/")
    filename = f"{note_filename(target, config)}.md"
    return f"{folder}/{filename}" if folder else filename


def render_link(filename: str, phrase: str) -> str:
    """Wikilink to the note, aliased to the phrase as the user typed it."""
    return f"[[{filename}|{phrase}]]"


def replacement_for(link: str, trailing: str) -> str:
    """Link plus the spacing the original trailing delimiter called for.

    A space or sentence punctuation gets one trailing space; quotes alone get
    nothing.
    """
    if " " in trailing or "\t" in trailing or _SPACED_PUNCTUATION.search(trailing):
        return link + " "
    return link


def _week_sunday(value: date) -> date:
    return value - timedelta(days=moment_weekday(value))


def note_title(value: date, granularity: Granularity) -> str:
    """Heading used for notes created without a template."""
    if granularity is Granularity.DAY:
        return format_date(value, "dddd, MMMM Do, YYYY")
    if granularity is Granularity.WEEK:
        sunday = _week_sunday(value)
        start = sunday + timedelta(days=1)
        end = sunday + timedelta(days=7)
        return f"Week of {format_date(start, 'MMMM Do')} - {format_date(end, 'MMMM Do, YYYY')}"
    if granularity is Granularity.MONTH:
        return format_date(value, "MMMM YYYY")
    if granularity is Granularity.QUARTER:
        return f"Q{quarter_of(value)} {value.year}"
    return format_date(value, "YYYY")


def process_template(template: str, value: date, granularity: Granularity) -> str:
    """Substitute the template variables periodic note templates use."""
    iso = value.isoformat()
    processed = template.replace("{{date}}", iso)
    # Targets carry no time of day
    processed = processed.replace("{{time}}", "00:00")
    processed = processed.replace("{{title}}", note_title(value, granularity))

    if granularity is Granularity.DAY:
        processed = processed.replace("{{yesterday}}", (value - timedelta(days=1)).isoformat())
        processed = processed.replace("{{tomorrow}}", (value + timedelta(days=1)).isoformat())
    elif granularity is Granularity.WEEK:
        sunday = _week_sunday(value)
        for offset, name in enumerate(
            ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
        ):
            processed = processed.replace(f"{{{{{name}}}}}", (sunday + timedelta(days=offset)).isoformat())
    elif granularity is Granularity.MONTH:
        processed = processed.replace("{{date:MMMM YYYY}}", format_date(value, "MMMM YYYY"))
    elif granularity is Granularity.QUARTER:
        processed = processed.replace("{{date:YYYY [Q]Q}}", f"Q{quarter_of(value)}")
    else:
        processed = processed.replace("{{date:YYYY}}", format_date(value, "YYYY"))

    return processed


def resolve_note_reference(vault_root: Path, reference: str) -> Optional[Path]:
    """Find the note a link or template reference points at.

    Tries the vault-relative path first, then any note with that basename.
    """
    cleaned = reference.replace("\\", "/").strip().strip("/")
    if not cleaned:
        return None
    if not cleaned.lower().endswith(".md"):
        cleaned = f"{cleaned}.md"
    direct = vault_root / cleaned
    if direct.is_file():
        return direct

    basename = cleaned.rsplit("/", 1)[-1]
    for candidate in VaultPaths(vault_root).markdown_files():
        if candidate.name == basename:
            return candidate
    return None


class NoteMaterializer:
    """Produces the link text for a target and creates missing notes.

    Args:
        vault_root: Root of the Obsidian vault
        detector: Detector giving access to the aggregated configs
        auto_create: Create missing notes immediately instead of leaving
            an unresolved link
        ledger_writer: Optional ledger for NOTE_CREATED events
    """

    def __init__(
        self,
        vault_root: Path,
        detector: GranularityDetector,
        *,
        auto_create: bool = True,
        ledger_writer: Optional[LedgerWriter] = None,
    ):
        self.vault_root = vault_root
        self.detector = detector
        self.auto_create = auto_create
        self.ledger_writer = ledger_writer

    def _initial_content(self, config: GranularityConfig, target: LinkTarget) -> str:
        content = ""
        if config.template:
            template_path = resolve_note_reference(self.vault_root, config.template)
            if template_path is None:
                logger.warning(f"Template not found: {config.template}")
            else:
                try:
                    raw = template_path.read_text(encoding="utf-8")
                    content = process_template(raw, target.date, target.granularity)
                except OSError as e:
                    logger.warning(f"Failed to read template {template_path}: {e}")
        if not content.strip():
            content = f"# {note_title(target.date, target.granularity)}\n\n"
        return content

    def create_link(self, target: LinkTarget, phrase: str) -> Optional[str]:
        """Return ``[[name|phrase]]`` for the target, creating the note if configured.

        Returns None when the target's granularity has no configuration.
        """
        config = self.detector.get_config(target.granularity)
        if config is None:
            logger.debug(f"No {target.granularity.value} config; not linking {phrase!r}")
            return None

        filename = note_filename(target, config)
        rel_path = note_rel_path(target, config)
        link = render_link(filename, phrase)
        note_path = self.vault_root / rel_path

        if note_path.exists() or not self.auto_create:
            return link

        try:
            note_path.parent.mkdir(parents=True, exist_ok=True)
            note_path.write_text(self._initial_content(config, target), encoding="utf-8")
        except OSError as e:
            # Still return the link; the note can be created on click
            logger.error(f"Failed to create periodic note {rel_path}: {e}")
            if self.ledger_writer:
                self.ledger_writer.append_event(
                    event_type="NOTE_CREATE_FAILED",
                    payload={"error": str(e), "granularity": target.granularity.value},
                    note_path=rel_path,
                )
            return link

        logger.info(f"Created {target.granularity.value} note {rel_path}")
        if self.ledger_writer:
            self.ledger_writer.append_event(
                event_type="NOTE_CREATED",
                payload={
                    "granularity": target.granularity.value,
                    "date": target.date.isoformat(),
                    "template": config.template,
                },
                note_path=rel_path,
            )
        return link
