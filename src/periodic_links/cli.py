"""Typer-based CLI for periodic-links."""

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .cleanup import cleanup_broken_links
from .config import PeriodicLinksSettings, load_settings, resolve_vault_root
from .detector import GranularityDetector
from .ledger import LedgerWriter, read_ledger_tail
from .links import note_filename
from .linker import PeriodicLinker
from .models.periodic import LADDER, Granularity
from .paths import VaultPaths
from .recognizer import find_phrase
from .resolver import PhraseResolver
from .sources import ConfigAggregator

app = typer.Typer(
    name="periodic-links",
    help="periodic-links - turn typed time phrases into links to periodic notes",
    add_completion=False,
)

console = Console()

_SCOPES = ("current-type", "all-periodic", "everywhere")


def _load_vault(vault_path: Optional[str]) -> Path:
    try:
        return resolve_vault_root(vault_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def _parse_anchor(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Error: Invalid anchor date '{value}' (expected YYYY-MM-DD)[/red]")
        raise typer.Exit(code=1)


def _note_name(note: str) -> str:
    return note.replace("\\", "/").rsplit("/", 1)[-1]


@app.command()
def detect(
    note: str = typer.Argument(..., help="Vault-relative path of the note"),
    vault_path: str = typer.Option(
        None,
        "--vault",
        "-v",
        help="Path to vault directory (default: PERIODIC_LINKS_VAULT env or auto-discovery)",
    ),
):
    """Show which periodic granularity a note represents."""
    vault_root = _load_vault(vault_path)
    settings = load_settings(vault_root)
    detector = GranularityDetector(
        ConfigAggregator.from_vault(vault_root),
        strict_folder=settings.strict_folder_check,
    )

    granularity = detector.detect(_note_name(note), note)
    if granularity is None:
        console.print(f"[yellow]Not a periodic note:[/yellow] {escape(note)}")
        raise typer.Exit(code=1)

    decoded = detector.decode_date(_note_name(note), note, granularity)
    console.print(f"[green]{granularity.value}[/green] {escape(note)}")
    if decoded:
        console.print(f"  [dim]Date:[/dim] {decoded.isoformat()}")


@app.command()
def resolve(
    phrase: str = typer.Argument(..., help="Time phrase, e.g. 'next thursday'"),
    note: str = typer.Option(
        None,
        "--note",
        "-n",
        help="Vault-relative note the phrase is typed in (sets context and anchor)",
    ),
    context: str = typer.Option(
        None,
        "--context",
        "-c",
        help="Granularity of the current note: day, week, month, quarter or year",
    ),
    anchor: str = typer.Option(
        None,
        "--anchor",
        "-a",
        help="Anchor date (YYYY-MM-DD, default: the note's date or today)",
    ),
    scope: str = typer.Option(
        None,
        "--scope",
        "-s",
        help="Work scope: current-type, all-periodic or everywhere",
    ),
    no_written_numbers: bool = typer.Option(
        False,
        "--no-written-numbers",
        help="Only accept digit counts",
    ),
    vault_path: str = typer.Option(
        None,
        "--vault",
        "-v",
        help="Path to vault directory (needed with --note)",
    ),
):
    """Resolve a phrase to a periodic note target without touching any file."""
    settings = PeriodicLinksSettings()
    detector: Optional[GranularityDetector] = None
    if note or vault_path:
        vault_root = _load_vault(vault_path)
        settings = load_settings(vault_root)
        detector = GranularityDetector(
            ConfigAggregator.from_vault(vault_root),
            strict_folder=settings.strict_folder_check,
        )

    if scope is not None and scope not in _SCOPES:
        console.print(f"[red]Error: Invalid scope '{scope}'. Must be one of: {', '.join(_SCOPES)}[/red]")
        raise typer.Exit(code=1)

    current: Optional[Granularity] = None
    if context:
        current = Granularity.from_name(context)
        if current is None:
            console.print(f"[red]Error: Unknown granularity '{context}'[/red]")
            raise typer.Exit(code=1)
    elif note and detector:
        current = detector.detect(_note_name(note), note)

    if anchor:
        anchor_date = _parse_anchor(anchor)
    elif note and detector:
        anchor_date = detector.anchor_date(_note_name(note), note, current)
    else:
        anchor_date = date.today()

    flags = settings.flags.model_copy(
        update={"enable_written_numbers": settings.enable_written_numbers and not no_written_numbers}
    )
    target = PhraseResolver().resolve(phrase, current, anchor_date, flags, scope or settings.work_scope)
    if target is None:
        console.print(f"[yellow]No target for[/yellow] '{escape(phrase)}'")
        raise typer.Exit(code=1)

    console.print(f"[green]{target.granularity.value}[/green] {target.date.isoformat()}")
    config = detector.get_config(target.granularity) if detector else None
    if config:
        console.print(f"  [dim]Note:[/dim] {escape(note_filename(target, config))}")


@app.command("find")
def find_command(
    line: str = typer.Argument(..., help="Line of text"),
    cursor: int = typer.Option(
        None,
        "--cursor",
        help="Cursor offset (default: end of line)",
    ),
    no_written_numbers: bool = typer.Option(
        False,
        "--no-written-numbers",
        help="Only accept digit counts",
    ),
):
    """Show the time phrase ending at the cursor, if any."""
    match = find_phrase(
        line,
        len(line) if cursor is None else cursor,
        enable_written_numbers=not no_written_numbers,
    )
    if match is None:
        console.print("[yellow]No phrase before the cursor[/yellow]")
        raise typer.Exit(code=1)
    trailing = escape(repr(match.trailing))
    console.print(f"[green]{escape(match.text)}[/green] [dim]({match.start}-{match.end}, trailing {trailing})[/dim]")


@app.command()
def link(
    note: str = typer.Argument(..., help="Vault-relative path of the note to edit"),
    line: int = typer.Option(
        ...,
        "--line",
        "-l",
        help="Line number (1-based)",
    ),
    cursor: int = typer.Option(
        None,
        "--cursor",
        help="Cursor offset within the line (default: end of line)",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show the edit without writing the note or creating targets",
    ),
    vault_path: str = typer.Option(
        None,
        "--vault",
        "-v",
        help="Path to vault directory (default: PERIODIC_LINKS_VAULT env or auto-discovery)",
    ),
):
    """Replace the phrase before the cursor on one line with a periodic note link."""
    vault_root = _load_vault(vault_path)
    note_file = vault_root / note

    try:
        if dry_run:
            settings = load_settings(vault_root).model_copy(update={"auto_create_notes": False})
            linker = PeriodicLinker(vault_root, settings)
            if not note_file.exists():
                raise FileNotFoundError(f"Note does not exist: {note_file}")
            lines = note_file.read_text(encoding="utf-8").split("\n")
            if not 1 <= line <= len(lines):
                raise ValueError(f"Line {line} out of range (note has {len(lines)} lines)")
            text = lines[line - 1]
            edit = linker.process_line(note, text, len(text) if cursor is None else cursor)
        else:
            linker = PeriodicLinker.for_vault(vault_root)
            edit = linker.process_note(note_file, line - 1, cursor)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    if edit is None:
        console.print("[dim]Nothing to link[/dim]")
        return

    prefix = "[yellow]Would link[/yellow]" if dry_run else "[green]Linked[/green]"
    console.print(f"{prefix} {escape(edit.link)}")
    console.print(f"  [dim]Line:[/dim] {escape(edit.line)}")


@app.command()
def types(
    vault_path: str = typer.Option(
        None,
        "--vault",
        "-v",
        help="Path to vault directory (default: PERIODIC_LINKS_VAULT env or auto-discovery)",
    ),
):
    """List the periodic note types configured in the vault."""
    vault_root = _load_vault(vault_path)
    detector = GranularityDetector(ConfigAggregator.from_vault(vault_root))
    enabled = detector.get_all_enabled_types()

    if not enabled:
        console.print("[dim]No periodic note types configured[/dim]")
        return

    table = Table(title="Periodic note types")
    table.add_column("Granularity", style="cyan", no_wrap=True)
    table.add_column("Format", style="magenta")
    table.add_column("Folder")
    table.add_column("Template", style="dim")

    for granularity in LADDER:
        if granularity not in enabled:
            continue
        config = detector.get_config(granularity)
        if config is None:
            continue
        table.add_row(
            granularity.value,
            escape(config.format),
            escape(config.folder or "/"),
            escape(config.template or "-"),
        )

    console.print(table)


@app.command()
def cleanup(
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Report broken links without editing notes",
    ),
    vault_path: str = typer.Option(
        None,
        "--vault",
        "-v",
        help="Path to vault directory (default: PERIODIC_LINKS_VAULT env or auto-discovery)",
    ),
):
    """Unwrap broken periodic note links in periodic notes."""
    vault_root = _load_vault(vault_path)
    settings = load_settings(vault_root)
    detector = GranularityDetector(
        ConfigAggregator.from_vault(vault_root),
        strict_folder=settings.strict_folder_check,
    )
    ledger_writer = None if dry_run else LedgerWriter(VaultPaths(vault_root).ledger_file)

    result = cleanup_broken_links(vault_root, detector, dry_run=dry_run, ledger_writer=ledger_writer)

    verb = "Would clean" if dry_run else "Cleaned"
    console.print(
        f"{verb} up {result.links_removed} broken link(s) in {len(result.files_modified)} file(s) "
        f"[dim](scanned {result.files_scanned})[/dim]"
    )
    for path in result.files_modified:
        console.print(f"  [dim]-[/dim] {escape(VaultPaths(vault_root).relative(path))}")


ledger_app = typer.Typer(help="Ledger commands")
app.add_typer(ledger_app, name="ledger")


@ledger_app.command("tail")
def ledger_tail(
    n: int = typer.Option(
        20,
        "--n",
        help="Number of recent events to display",
    ),
    full: bool = typer.Option(
        False,
        "--full",
        help="Show full payloads with JSON pretty-print",
    ),
    vault_path: str = typer.Option(
        None,
        "--vault",
        "-v",
        help="Path to vault directory (default: PERIODIC_LINKS_VAULT env or auto-discovery)",
    ),
):
    """Display the last N events from the ledger."""
    vault_root = _load_vault(vault_path)
    events = read_ledger_tail(VaultPaths(vault_root).ledger_file, n=n)

    if not events:
        console.print("[dim]No events in ledger[/dim]")
        return

    if full:
        console.print(f"[bold]Last {len(events)} Ledger Event(s)[/bold]\n")
        for i, event in enumerate(events, 1):
            console.print(f"[cyan]Event {i}/{len(events)}[/cyan]")
            console.print(f"  [dim]Timestamp:[/dim]   {event.ts.strftime('%Y-%m-%d %H:%M:%S')} UTC")
            console.print(f"  [dim]Event Type:[/dim]  [magenta]{event.event_type}[/magenta]")
            console.print(f"  [dim]Note:[/dim]        {escape(event.note_path or '-')}")
            console.print("  [dim]Payload:[/dim]")
            for payload_line in json.dumps(event.payload, indent=2).split("\n"):
                console.print(f"    {escape(payload_line)}")
            console.print()
        return

    table = Table(title=f"Last {len(events)} Ledger Event(s)")
    table.add_column("Timestamp (UTC)", style="cyan", no_wrap=True)
    table.add_column("Event Type", style="magenta")
    table.add_column("Note", style="yellow")
    table.add_column("Payload", style="dim")

    for event in events:
        payload_str = str(event.payload)
        if len(payload_str) > 60:
            payload_str = payload_str[:57] + "..."
        table.add_row(
            event.ts.strftime("%Y-%m-%d %H:%M:%S"),
            event.event_type,
            escape(event.note_path or "-"),
            escape(payload_str),
        )

    console.print(table)


if __name__ == "__main__":
    app()
