"""Tests for the periodic-links CLI."""

from typer.testing import CliRunner

from periodic_links.cli import app

runner = CliRunner()


def test_resolve_command():
    result = runner.invoke(app, ["resolve", "3 days ago", "--context", "day", "--anchor", "2025-06-10"])

    assert result.exit_code == 0
    assert "day 2025-06-07" in result.output


def test_resolve_rejects_bad_plural():
    result = runner.invoke(app, ["resolve", "2 day ago", "--context", "day", "--anchor", "2025-06-10"])

    assert result.exit_code == 1
    assert "No target" in result.output


def test_resolve_with_note_uses_its_date(configured_vault):
    result = runner.invoke(
        app,
        ["resolve", "next week", "--note", "Daily/2025-06-10.md", "--vault", str(configured_vault)],
    )

    assert result.exit_code == 0
    assert "week 2025-06-17" in result.output
    assert "2025-W25" in result.output


def test_resolve_invalid_options():
    assert runner.invoke(app, ["resolve", "tomorrow", "--scope", "galaxy"]).exit_code == 1
    assert runner.invoke(app, ["resolve", "tomorrow", "--context", "decade"]).exit_code == 1
    assert runner.invoke(app, ["resolve", "tomorrow", "--anchor", "June 10"]).exit_code == 1


def test_find_command():
    result = runner.invoke(app, ["find", "see you tomorrow. "])

    assert result.exit_code == 0
    assert "tomorrow" in result.output
    assert runner.invoke(app, ["find", "see you tomorrow"]).exit_code == 1


def test_detect_command(configured_vault):
    result = runner.invoke(app, ["detect", "Weekly/2025-W24.md", "--vault", str(configured_vault)])

    assert result.exit_code == 0
    assert "week" in result.output
    assert "2025-06-08" in result.output

    missing = runner.invoke(app, ["detect", "Projects/Plan.md", "--vault", str(configured_vault)])
    assert missing.exit_code == 1


def test_link_command(configured_vault):
    note = configured_vault / "Daily" / "2025-06-10.md"
    note.parent.mkdir(parents=True, exist_ok=True)
    note.write_text("# Tuesday\nSee you tomorrow ", encoding="utf-8")

    dry = runner.invoke(app, ["link", "Daily/2025-06-10.md", "--line", "2", "--dry-run", "--vault", str(configured_vault)])
    assert dry.exit_code == 0
    assert "Would link" in dry.output
    assert note.read_text(encoding="utf-8") == "# Tuesday\nSee you tomorrow "
    assert not (configured_vault / "Daily" / "2025-06-11.md").exists()

    result = runner.invoke(app, ["link", "Daily/2025-06-10.md", "--line", "2", "--vault", str(configured_vault)])
    assert result.exit_code == 0
    assert note.read_text(encoding="utf-8") == "# Tuesday\nSee you [[2025-06-11|tomorrow]] "
    assert (configured_vault / "Daily" / "2025-06-11.md").exists()

    out_of_range = runner.invoke(app, ["link", "Daily/2025-06-10.md", "--line", "9", "--vault", str(configured_vault)])
    assert out_of_range.exit_code == 1


def test_types_command(configured_vault):
    result = runner.invoke(app, ["types", "--vault", str(configured_vault)])

    assert result.exit_code == 0
    assert "gggg-[W]ww" in result.output
    assert "quarter" not in result.output


def test_cleanup_and_ledger_tail(configured_vault):
    note = configured_vault / "Daily" / "2025-06-10.md"
    note.parent.mkdir(parents=True, exist_ok=True)
    note.write_text("See [[2025-06-11|tomorrow]]", encoding="utf-8")

    result = runner.invoke(app, ["cleanup", "--vault", str(configured_vault)])
    assert result.exit_code == 0
    assert "Cleaned up 1 broken link(s)" in result.output
    assert note.read_text(encoding="utf-8") == "See tomorrow"

    tail = runner.invoke(app, ["ledger", "tail", "--full", "--vault", str(configured_vault)])
    assert tail.exit_code == 0
    assert "BROKEN_LINK_REMOVED" in tail.output
