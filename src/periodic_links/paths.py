"""Path management for the Obsidian vault files periodic-links reads and writes."""

from pathlib import Path


class VaultPaths:
    """Manages paths within an Obsidian vault."""

    def __init__(self, vault_root: Path):
        """Initialize vault paths from root directory.

        Args:
            vault_root: Root directory of the Obsidian vault
        """
        self.root = vault_root

        # Obsidian configuration directory
        self.obsidian = vault_root / ".obsidian"
        self.plugins = self.obsidian / "plugins"

        # Core plugin files
        self.core_plugins_file = self.obsidian / "core-plugins.json"
        self.community_plugins_file = self.obsidian / "community-plugins.json"
        self.daily_notes_file = self.obsidian / "daily-notes.json"

        # Community plugin data
        self.periodic_notes_dir = self.plugins / "periodic-notes"
        self.periodic_notes_file = self.periodic_notes_dir / "data.json"
        self.periodic_links_dir = self.plugins / "periodic-links"
        self.settings_file = self.periodic_links_dir / "data.json"
        self.ledger_file = self.periodic_links_dir / "ledger.jsonl"

    def relative(self, path: Path) -> str:
        """Vault-relative POSIX path used as the note's identity."""
        try:
            return path.resolve().relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    def markdown_files(self) -> list[Path]:
        """All markdown notes in the vault, skipping the .obsidian directory."""
        return sorted(
            p for p in self.root.rglob("*.md")
            if self.obsidian not in p.parents
        )
