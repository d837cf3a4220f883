"""Tests for the line-editing pipeline."""

import json
from datetime import date

import pytest

from periodic_links.config import PeriodicLinksSettings
from periodic_links.ledger import LedgerWriter
from periodic_links.linker import PeriodicLinker
from periodic_links.models.periodic import Granularity
from periodic_links.paths import VaultPaths

# Tuesday
TODAY = date(2025, 6, 10)


@pytest.fixture
def linker(configured_vault):
    return PeriodicLinker(configured_vault, PeriodicLinksSettings(), today=lambda: TODAY)


def test_links_phrase_in_daily_note(configured_vault, linker):
    line = "See you tomorrow "
    edit = linker.process_line("Daily/2025-06-10.md", line, len(line))

    assert edit.link == "[[2025-06-11|tomorrow]]"
    assert edit.line == "See you [[2025-06-11|tomorrow]] "
    assert edit.start == 8
    assert edit.end == len(line)
    assert edit.cursor == len(edit.line)
    assert edit.target.granularity is Granularity.DAY
    assert (configured_vault / "Daily" / "2025-06-11.md").exists()


def test_text_after_cursor_is_preserved(linker):
    line = "tomorrow, then more"
    edit = linker.process_line("Daily/2025-06-10.md", line, 10)

    assert edit.line == "[[2025-06-11|tomorrow]] then more"
    assert edit.cursor == len("[[2025-06-11|tomorrow]] ")


def test_anchor_is_the_notes_own_date(linker):
    line = "3 days ago."
    edit = linker.process_line("Daily/2025-01-02.md", line, len(line))

    assert edit.link == "[[2024-12-30|3 days ago]]"
    assert edit.line == "[[2024-12-30|3 days ago]] "


def test_links_coarser_target(configured_vault, linker):
    line = "Recap of last week "
    edit = linker.process_line("Daily/2025-06-10.md", line, len(line))

    assert edit.link == "[[2025-W23|last week]]"
    assert (configured_vault / "Weekly" / "2025-W23.md").read_text(encoding="utf-8").startswith("# Week of")


def test_phrase_not_allowed_in_coarser_note(linker):
    line = "tomorrow "
    assert linker.process_line("Weekly/2025-W24.md", line, len(line)) is None


def test_unconfigured_target_granularity(linker):
    # Quarterly notes are disabled in the configured vault
    line = "next quarter "
    assert linker.process_line("Daily/2025-06-10.md", line, len(line)) is None


def test_non_periodic_note_requires_everywhere_scope(configured_vault):
    line = "tomorrow "
    current_type = PeriodicLinker(configured_vault, PeriodicLinksSettings(), today=lambda: TODAY)
    everywhere = PeriodicLinker(
        configured_vault,
        PeriodicLinksSettings(work_scope="everywhere"),
        today=lambda: TODAY,
    )

    assert current_type.process_line("Projects/Plan.md", line, len(line)) is None
    edit = everywhere.process_line("Projects/Plan.md", line, len(line))
    assert edit.link == "[[2025-06-11|tomorrow]]"


def test_natural_language_disabled(configured_vault):
    linker = PeriodicLinker(
        configured_vault,
        PeriodicLinksSettings(enable_natural_language=False),
        today=lambda: TODAY,
    )
    assert linker.process_line("Daily/2025-06-10.md", "tomorrow ", 9) is None


def test_auto_create_disabled_leaves_link_unresolved(configured_vault):
    linker = PeriodicLinker(
        configured_vault,
        PeriodicLinksSettings(auto_create_notes=False),
        today=lambda: TODAY,
    )
    edit = linker.process_line("Daily/2025-06-10.md", "tomorrow ", 9)

    assert edit.link == "[[2025-06-11|tomorrow]]"
    assert not (configured_vault / "Daily" / "2025-06-11.md").exists()


def test_no_phrase(linker):
    assert linker.process_line("Daily/2025-06-10.md", "just text ", 10) is None
    assert linker.process_line("Daily/2025-06-10.md", "2 day ago ", 10) is None


def test_out_of_range_count_leaves_line_unchanged(linker):
    line = "9999999999 days ago "
    assert linker.process_line("Daily/2025-06-10.md", line, len(line)) is None


def test_reload_picks_up_new_configuration(configured_vault, linker):
    vault_paths = VaultPaths(configured_vault)
    data = json.loads(vault_paths.periodic_notes_file.read_text(encoding="utf-8"))
    data["quarterly"]["enabled"] = True
    vault_paths.periodic_notes_file.write_text(json.dumps(data), encoding="utf-8")

    linker.reload()

    edit = linker.process_line("Daily/2025-06-10.md", "next quarter ", 13)
    assert edit.link == "[[2025-Q3|next quarter]]"


class TestProcessNote:
    def test_rewrites_line_and_records_event(self, configured_vault):
        note = configured_vault / "Daily" / "2025-06-10.md"
        note.parent.mkdir(parents=True, exist_ok=True)
        note.write_text("# Today\nSee you tomorrow \nEnd", encoding="utf-8")
        ledger_path = VaultPaths(configured_vault).ledger_file
        linker = PeriodicLinker(
            configured_vault,
            PeriodicLinksSettings(),
            ledger_writer=LedgerWriter(ledger_path),
            today=lambda: TODAY,
        )

        edit = linker.process_note(note, 1)

        assert edit is not None
        assert note.read_text(encoding="utf-8") == "# Today\nSee you [[2025-06-11|tomorrow]] \nEnd"
        events = [json.loads(line) for line in ledger_path.read_text(encoding="utf-8").splitlines()]
        assert [e["event_type"] for e in events] == ["NOTE_CREATED", "LINK_INSERTED"]
        assert events[1]["note_path"] == "Daily/2025-06-10.md"

    def test_unchanged_note_is_not_rewritten(self, configured_vault, linker):
        note = configured_vault / "Daily" / "2025-06-10.md"
        note.parent.mkdir(parents=True, exist_ok=True)
        note.write_text("nothing here", encoding="utf-8")

        assert linker.process_note(note, 0) is None
        assert note.read_text(encoding="utf-8") == "nothing here"

    def test_errors(self, configured_vault, linker):
        with pytest.raises(FileNotFoundError):
            linker.process_note(configured_vault / "missing.md", 0)

        note = configured_vault / "Daily" / "2025-06-10.md"
        note.parent.mkdir(parents=True, exist_ok=True)
        note.write_text("one line", encoding="utf-8")
        with pytest.raises(ValueError):
            linker.process_note(note, 5)
