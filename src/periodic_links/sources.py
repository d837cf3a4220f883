"""Configuration sources for periodic note granularities.

Two independent sources describe how periodic notes are named:

- the core daily notes plugin (day only), and
- the periodic notes plugin (any granularity), whose settings come in three
  historical shapes: a calendar-set accessor, legacy ``{"weekly": {...}}``
  records, and ``{"weeklyNotes": {...}}`` settings objects.

Each shape is mapped onto ``GranularityConfig`` by a pure function, chosen by
probing what the external object can do. Lookup failures mean "no
configuration from this source" and are never raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional

from .models.periodic import DEFAULT_FORMATS, LADDER, Granularity, GranularityConfig
from .paths import VaultPaths

logger = logging.getLogger(__name__)

DAILY_NOTES_PLUGIN_ID = "daily-notes"
PERIODIC_NOTES_PLUGIN_ID = "periodic-notes"


def _lookup(obj: Any, key: str) -> Any:
    """Read a key from a mapping or an attribute from an object."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass
class DailyNotesSource:
    """Core daily notes plugin: enablement flag plus its options."""

    enabled: bool
    options: Any = None


@dataclass
class PeriodicNotesSource:
    """Periodic notes plugin: loaded flag, settings, optional calendar sets."""

    loaded: bool
    settings: Any = None
    calendar_set_manager: Any = None


class CalendarSetManager:
    """Calendar-set accessor built from the periodic notes plugin's JSON data.

    Mirrors the plugin's runtime object: ``get_active_config(granularity)``
    and ``get_format(granularity)``.
    """

    def __init__(self, data: Mapping[str, Any]):
        self._sets = [s for s in data.get("calendarSets") or [] if isinstance(s, Mapping)]
        self._active_id = data.get("activeCalendarSet")

    def _active_set(self) -> Optional[Mapping[str, Any]]:
        for calendar_set in self._sets:
            if calendar_set.get("id") == self._active_id:
                return calendar_set
        return self._sets[0] if self._sets else None

    def get_active_config(self, granularity: str) -> Optional[dict]:
        active = self._active_set()
        config = active.get(granularity) if active else None
        if not isinstance(config, Mapping):
            return None
        return {
            "enabled": bool(config.get("enabled")),
            "folder": _as_str(config.get("folder")),
            "format": _as_str(config.get("format")),
        }

    def get_format(self, granularity: str) -> str:
        config = self.get_active_config(granularity)
        if config and config["format"]:
            return config["format"]
        parsed = Granularity.from_name(granularity)
        return DEFAULT_FORMATS[parsed] if parsed else DEFAULT_FORMATS[Granularity.DAY]


# ---------------------------------------------------------------------------
# Shape mappers
# ---------------------------------------------------------------------------


def daily_config_from_options(options: Any) -> GranularityConfig:
    """Core daily notes options -> day config."""
    template = _as_str(_lookup(options, "template")) or None
    return GranularityConfig(
        granularity=Granularity.DAY,
        format=_as_str(_lookup(options, "format")) or DEFAULT_FORMATS[Granularity.DAY],
        folder=_as_str(_lookup(options, "folder")),
        template=template,
    )


def template_from_settings(settings: Any, granularity: Granularity) -> Optional[str]:
    """Template reference from either ``<g>Notes`` or legacy ``<g>`` settings."""
    modern = _lookup(_lookup(settings, _settings_key(granularity)), "template")
    legacy = _lookup(_lookup(settings, granularity.legacy_key), "template")
    return _as_str(modern) or _as_str(legacy) or None


def configs_from_calendar_sets(manager: Any, settings: Any = None) -> dict[Granularity, GranularityConfig]:
    """Calendar-set accessor -> configs for every enabled granularity."""
    configs: dict[Granularity, GranularityConfig] = {}
    for granularity in LADDER:
        try:
            active = manager.get_active_config(granularity.value)
            if not active or not _lookup(active, "enabled"):
                continue
            configs[granularity] = GranularityConfig(
                granularity=granularity,
                format=manager.get_format(granularity.value) or DEFAULT_FORMATS[granularity],
                folder=_as_str(_lookup(active, "folder")),
                template=template_from_settings(settings, granularity),
            )
        except Exception as e:
            logger.debug(f"Calendar set lookup failed for {granularity.value}: {e}")
    return configs


def configs_from_settings(settings: Any) -> dict[Granularity, GranularityConfig]:
    """Legacy ``{"weekly": {...}}`` or ``{"weeklyNotes": {...}}`` settings -> configs."""
    configs: dict[Granularity, GranularityConfig] = {}
    for granularity in LADDER:
        try:
            legacy = _lookup(settings, granularity.legacy_key)
            modern = _lookup(settings, _settings_key(granularity))
            if legacy is not None and _lookup(legacy, "enabled"):
                record = legacy
            elif legacy is None and modern is not None and _lookup(modern, "enabled") is not False:
                record = modern
            else:
                continue
            configs[granularity] = GranularityConfig(
                granularity=granularity,
                format=_as_str(_lookup(record, "format")) or DEFAULT_FORMATS[granularity],
                folder=_as_str(_lookup(record, "folder")),
                template=template_from_settings(settings, granularity),
            )
        except Exception as e:
            logger.debug(f"Periodic notes settings lookup failed for {granularity.value}: {e}")
    return configs


def _settings_key(granularity: Granularity) -> str:
    return f"{granularity.legacy_key}Notes"


# ---------------------------------------------------------------------------
# Aggregator
# ---------------------------------------------------------------------------


class ConfigAggregator:
    """Merges both sources into one granularity -> config table.

    The periodic notes entry for a granularity wins over the core daily notes
    config; the core plugin is the only source for "day" otherwise.
    ``version`` increases on every load so callers can key caches on it.
    """

    def __init__(
        self,
        daily_source: Optional[DailyNotesSource] = None,
        periodic_source: Optional[PeriodicNotesSource] = None,
    ):
        self.daily_source = daily_source
        self.periodic_source = periodic_source
        self.version = 0
        self.daily_config: Optional[GranularityConfig] = None
        self.periodic_configs: dict[Granularity, GranularityConfig] = {}

    @classmethod
    def from_vault(cls, vault_root: Path) -> "ConfigAggregator":
        aggregator = cls()
        aggregator.load_vault(vault_root)
        return aggregator

    def load_vault(self, vault_root: Path) -> dict[Granularity, GranularityConfig]:
        """Re-read both sources from the vault's plugin files, then load."""
        paths = VaultPaths(vault_root)
        self.daily_source = read_daily_notes_source(paths)
        self.periodic_source = read_periodic_notes_source(paths)
        return self.load()

    def load(self) -> dict[Granularity, GranularityConfig]:
        self.daily_config = self._load_daily()
        self.periodic_configs = self._load_periodic()
        self.version += 1

        periodic_day = self.periodic_configs.get(Granularity.DAY)
        if periodic_day is not None and self.daily_config is not None and self.daily_config.template:
            # Day templates come from the core plugin first
            self.periodic_configs[Granularity.DAY] = periodic_day.model_copy(
                update={"template": self.daily_config.template}
            )

        merged: dict[Granularity, GranularityConfig] = {}
        if self.daily_config is not None:
            merged[Granularity.DAY] = self.daily_config
        merged.update(self.periodic_configs)
        logger.debug(
            f"Loaded periodic note configs v{self.version}: "
            f"{', '.join(g.value for g in merged) or 'none'}"
        )
        return merged

    def _load_daily(self) -> Optional[GranularityConfig]:
        source = self.daily_source
        try:
            if source is None or not source.enabled or source.options is None:
                return None
            return daily_config_from_options(source.options)
        except Exception as e:
            logger.debug(f"Core daily notes config unavailable: {e}")
            return None

    def _load_periodic(self) -> dict[Granularity, GranularityConfig]:
        source = self.periodic_source
        try:
            if source is None or not source.loaded:
                return {}
            manager = source.calendar_set_manager
            if manager is not None and callable(getattr(manager, "get_active_config", None)):
                return configs_from_calendar_sets(manager, source.settings)
            return configs_from_settings(source.settings)
        except Exception as e:
            logger.debug(f"Periodic notes config unavailable: {e}")
            return {}


# ---------------------------------------------------------------------------
# Vault readers
# ---------------------------------------------------------------------------


def _read_json(path: Path) -> Any:
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"Ignoring unreadable JSON {path}: {e}")
        return None


def _plugin_enabled(data: Any, plugin_id: str) -> Optional[bool]:
    """core-plugins.json is either a list of ids or an id -> bool mapping."""
    if isinstance(data, list):
        return plugin_id in data
    if isinstance(data, dict):
        return bool(data.get(plugin_id))
    return None


def read_daily_notes_source(paths: VaultPaths) -> Optional[DailyNotesSource]:
    options = _read_json(paths.daily_notes_file)
    enabled = _plugin_enabled(_read_json(paths.core_plugins_file), DAILY_NOTES_PLUGIN_ID)
    if enabled is None:
        # No core-plugins.json: Obsidian enables daily notes by default
        enabled = paths.daily_notes_file.exists()
    if not enabled:
        return DailyNotesSource(enabled=False)
    return DailyNotesSource(enabled=True, options=options if isinstance(options, dict) else {})


def read_periodic_notes_source(paths: VaultPaths) -> Optional[PeriodicNotesSource]:
    data = _read_json(paths.periodic_notes_file)
    if not isinstance(data, dict):
        return None
    enabled = _plugin_enabled(_read_json(paths.community_plugins_file), PERIODIC_NOTES_PLUGIN_ID)
    if enabled is False:
        return PeriodicNotesSource(loaded=False)
    manager = CalendarSetManager(data) if data.get("calendarSets") else None
    return PeriodicNotesSource(loaded=True, settings=data, calendar_set_manager=manager)
