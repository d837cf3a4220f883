"""Configuration management for periodic-links."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from .models.periodic import ResolverFlags, WorkScope
from .paths import VaultPaths

try:
    import tomllib  # Python 3.11+
except ImportError:
    import tomli as tomllib  # Python < 3.11

logger = logging.getLogger(__name__)

_SCOPES = ("current-type", "all-periodic", "everywhere")


def _find_repo_root(start_dir: Path) -> Path:
    """Find repository root by walking upward looking for .git or pyproject.toml."""
    current_dir = start_dir

    while True:
        if (current_dir / ".git").exists() or (current_dir / "pyproject.toml").exists():
            return current_dir

        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            # No repo found, return original directory
            return start_dir

        current_dir = parent_dir


def _load_repo_config_data(repo_root: Path) -> Optional[dict]:
    """Load repo config data from .periodic_links/config.toml if it exists."""
    config_file = repo_root / ".periodic_links" / "config.toml"

    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as f:
            return tomllib.load(f)
    except Exception:
        # If config file is malformed, ignore it
        return None


def _is_vault(path: Path) -> bool:
    """An Obsidian vault is any directory holding a .obsidian folder."""
    return (path / ".obsidian").is_dir()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def resolve_vault_root(cli_vault_path: Optional[str] = None) -> Path:
    """Resolve vault root path with the following precedence:

    1. CLI --vault option (if provided)
    2. repo-local .periodic_links/config.toml (walk upward from CWD)
    3. PERIODIC_LINKS_VAULT environment variable
    4. Auto-discovery by walking up from cwd looking for .obsidian
    5. Error with helpful message

    Raises:
        FileNotFoundError: If no vault can be found
    """
    if cli_vault_path:
        vault_path = Path(cli_vault_path).expanduser().resolve()
        if not vault_path.exists():
            raise FileNotFoundError(f"Specified vault path does not exist: {vault_path}")
        return vault_path

    repo_root = _find_repo_root(Path.cwd())
    data = _load_repo_config_data(repo_root)
    vault_root_str = data.get("vault_root") if data else None
    if isinstance(vault_root_str, str) and vault_root_str:
        vault_path = Path(vault_root_str).expanduser().resolve()
        if not vault_path.exists():
            raise FileNotFoundError(f"Vault path from .periodic_links/config.toml does not exist: {vault_path}")
        return vault_path

    env_vault = os.environ.get("PERIODIC_LINKS_VAULT")
    if env_vault:
        vault_path = Path(env_vault).expanduser().resolve()
        if not vault_path.exists():
            raise FileNotFoundError(f"PERIODIC_LINKS_VAULT path does not exist: {vault_path}")
        return vault_path

    current_dir = Path.cwd()
    while True:
        if _is_vault(current_dir):
            return current_dir
        parent_dir = current_dir.parent
        if parent_dir == current_dir:
            break
        current_dir = parent_dir

    raise FileNotFoundError(
        "Vault not found. Searched for:\n"
        f"  - .obsidian upward from {Path.cwd()}\n"
        f"  - .periodic_links/config.toml in repo at {repo_root}\n"
        "  - PERIODIC_LINKS_VAULT environment variable\n"
        "Try one of:\n"
        "  • periodic-links --vault \"/path/to/vault\" <command>\n"
        "  • export PERIODIC_LINKS_VAULT=\"/path/to/vault\"\n"
        "  • cd into the vault directory (auto-discovery)"
    )


class PeriodicLinksSettings(BaseModel):
    """User settings, as persisted by the editor plugin (camelCase keys)."""

    auto_create_notes: bool = Field(default=True, alias="autoCreateNotes")
    enable_natural_language: bool = Field(default=True, alias="enableNaturalLanguage")
    enable_written_numbers: bool = Field(default=True, alias="enableWrittenNumbers")
    enable_extended_phrases: bool = Field(default=True, alias="enableExtendedPhrases")
    work_scope: WorkScope = Field(default="current-type", alias="workScope")
    strict_folder_check: bool = Field(default=False, alias="strictFolderCheck")

    model_config = {"populate_by_name": True, "frozen": False}

    @property
    def flags(self) -> ResolverFlags:
        return ResolverFlags(
            enable_natural_language=self.enable_natural_language,
            enable_written_numbers=self.enable_written_numbers,
            enable_extended_phrases=self.enable_extended_phrases,
        )

    @classmethod
    def from_data(cls, data: Optional[dict]) -> "PeriodicLinksSettings":
        """Build settings from persisted data, dropping invalid values."""
        if not isinstance(data, dict):
            return cls()
        cleaned = dict(data)
        scope = cleaned.get("workScope", cleaned.get("work_scope"))
        if scope is not None and scope not in _SCOPES:
            logger.warning(f"Ignoring unknown work scope {scope!r}")
            cleaned.pop("workScope", None)
            cleaned.pop("work_scope", None)
        try:
            return cls.model_validate(cleaned)
        except ValidationError as e:
            logger.warning(f"Invalid periodic-links settings, using defaults: {e}")
            return cls()

    def with_env_overrides(self) -> "PeriodicLinksSettings":
        """Apply PERIODIC_LINKS_* environment overrides."""
        scope = os.environ.get("PERIODIC_LINKS_SCOPE", self.work_scope)
        return PeriodicLinksSettings(
            auto_create_notes=_env_bool("PERIODIC_LINKS_AUTO_CREATE", self.auto_create_notes),
            enable_natural_language=_env_bool("PERIODIC_LINKS_NATURAL_LANGUAGE", self.enable_natural_language),
            enable_written_numbers=_env_bool("PERIODIC_LINKS_WRITTEN_NUMBERS", self.enable_written_numbers),
            enable_extended_phrases=_env_bool("PERIODIC_LINKS_EXTENDED_PHRASES", self.enable_extended_phrases),
            work_scope=scope if scope in _SCOPES else self.work_scope,
            strict_folder_check=_env_bool("PERIODIC_LINKS_STRICT_FOLDER", self.strict_folder_check),
        )


def load_settings(vault_root: Path) -> PeriodicLinksSettings:
    """Load plugin settings from the vault, then apply environment overrides."""
    settings_file = VaultPaths(vault_root).settings_file
    data = None
    if settings_file.exists():
        try:
            data = json.loads(settings_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {settings_file}: {e}")
    return PeriodicLinksSettings.from_data(data).with_env_overrides()
