"""Pytest fixtures for periodic-links tests."""

import json
from datetime import date
from pathlib import Path

import pytest

from periodic_links.detector import GranularityDetector
from periodic_links.paths import VaultPaths
from periodic_links.sources import ConfigAggregator, DailyNotesSource, PeriodicNotesSource

# Tuesday
ANCHOR = date(2025, 6, 10)


def _write_json(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def temp_vault(tmp_path):
    """Create an empty Obsidian vault (just the .obsidian folder).

    Args:
        tmp_path: pytest's built-in temporary directory fixture

    Returns:
        Path to temporary vault root
    """
    vault_root = tmp_path / "vault"
    (vault_root / ".obsidian").mkdir(parents=True)
    return vault_root


@pytest.fixture
def vault_paths(temp_vault):
    return VaultPaths(temp_vault)


@pytest.fixture
def configured_vault(temp_vault, vault_paths):
    """Vault with core daily notes in Daily/ and weekly/monthly periodic notes.

    Returns:
        Path to vault root
    """
    _write_json(vault_paths.core_plugins_file, ["file-explorer", "daily-notes"])
    _write_json(vault_paths.daily_notes_file, {"format": "YYYY-MM-DD", "folder": "Daily"})
    _write_json(vault_paths.community_plugins_file, ["periodic-notes"])
    _write_json(
        vault_paths.periodic_notes_file,
        {
            "weekly": {"enabled": True, "format": "gggg-[W]ww", "folder": "Weekly"},
            "monthly": {"enabled": True, "format": "YYYY-MM", "folder": "Monthly"},
            "quarterly": {"enabled": False, "format": "YYYY-[Q]Q", "folder": "Quarterly"},
            "yearly": {"enabled": True, "format": "YYYY", "folder": "Yearly"},
        },
    )
    return temp_vault


@pytest.fixture
def aggregator():
    """Aggregator with a core daily config and legacy periodic settings."""
    agg = ConfigAggregator(
        DailyNotesSource(enabled=True, options={"format": "YYYY-MM-DD", "folder": "Daily"}),
        PeriodicNotesSource(
            loaded=True,
            settings={
                "weekly": {"enabled": True, "format": "gggg-[W]ww", "folder": "Weekly"},
                "monthly": {"enabled": True, "format": "YYYY-MM", "folder": "Monthly"},
                "quarterly": {"enabled": True, "format": "YYYY-[Q]Q", "folder": "Quarterly"},
                "yearly": {"enabled": True, "format": "YYYY", "folder": "Yearly"},
            },
        ),
    )
    agg.load()
    return agg


@pytest.fixture
def detector(aggregator):
    return GranularityDetector(aggregator, today=lambda: ANCHOR)


@pytest.fixture
def write_json():
    """Helper for writing Obsidian JSON config files."""
    return _write_json
