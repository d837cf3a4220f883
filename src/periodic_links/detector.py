"""Detect which periodic granularity a note represents."""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Callable, Optional

from .formats import compile_format
from .models.periodic import DEFAULT_FORMATS, Granularity, GranularityConfig
from .sources import ConfigAggregator

logger = logging.getLogger(__name__)

# Canonical names recognized when no configured format matches
_FALLBACK_PATTERNS: list[tuple[re.Pattern[str], Granularity]] = [
    (re.compile(r"\d{4}"), Granularity.YEAR),
    (re.compile(r"\d{4}-\d{2}"), Granularity.MONTH),
    (re.compile(r"\d{4}-W\d{2}"), Granularity.WEEK),
    (re.compile(r"\d{4}-Q[1-4]"), Granularity.QUARTER),
    (re.compile(r"\d{4}-\d{2}-\d{2}"), Granularity.DAY),
]


def strip_extension(value: str) -> str:
    return value[:-3] if value.lower().endswith(".md") else value


def _normalize_path(path: str) -> str:
    return strip_extension(path.replace("\\", "/")).strip("/")


def _parent_folder(path: str) -> str:
    normalized = path.replace("\\", "/")
    return normalized.rsplit("/", 1)[0] if "/" in normalized else ""


def _tail_segments(path: str, count: int) -> str:
    return "/".join(_normalize_path(path).split("/")[-count:])


class GranularityDetector:
    """Classifies notes by name/path against the aggregated configs.

    Args:
        aggregator: Loaded configuration sources
        strict_folder: Also require the note to live under the config's folder
        today: Wall-clock date provider used when a name cannot be decoded
    """

    def __init__(
        self,
        aggregator: ConfigAggregator,
        *,
        strict_folder: bool = False,
        today: Callable[[], date] = date.today,
    ):
        self.aggregator = aggregator
        self.strict_folder = strict_folder
        self.today = today
        self._cache: dict[tuple[str, int], Optional[Granularity]] = {}

    def _candidates(self) -> list[tuple[GranularityConfig, bool]]:
        """Configs to try in order, paired with whether path segments apply."""
        candidates: list[tuple[GranularityConfig, bool]] = []
        if self.aggregator.daily_config is not None:
            # The core plugin's separators are literal filename characters
            candidates.append((self.aggregator.daily_config, False))
        candidates.extend((config, True) for config in self.aggregator.periodic_configs.values())
        return candidates

    def _candidate_string(self, name: str, path: str, config: GranularityConfig, allow_segments: bool) -> str:
        fmt = compile_format(config.format)
        if allow_segments and fmt.has_path_segments and path:
            return _tail_segments(path, fmt.segments)
        return strip_extension(name)

    def _folder_matches(self, path: str, config: GranularityConfig) -> bool:
        folder = config.folder.replace("\\", "/").strip("/")
        if not folder:
            return True
        return _parent_folder(path).startswith(folder)

    def _matches(self, name: str, path: str, config: GranularityConfig, allow_segments: bool) -> bool:
        if self.strict_folder and not self._folder_matches(path, config):
            return False
        try:
            candidate = self._candidate_string(name, path, config, allow_segments)
            return compile_format(config.format).matches(candidate)
        except (ValueError, re.error) as e:
            logger.debug(f"Skipping unusable {config.granularity.value} format {config.format!r}: {e}")
            return False

    def detect(self, name: str, path: str = "") -> Optional[Granularity]:
        """Return the granularity a note represents, or None."""
        for config, allow_segments in self._candidates():
            if self._matches(name, path, config, allow_segments):
                return config.granularity

        stem = strip_extension(name)
        for pattern, granularity in _FALLBACK_PATTERNS:
            if pattern.fullmatch(stem):
                return granularity
        return None

    def detect_cached(self, name: str, path: str = "") -> Optional[Granularity]:
        """detect() memoized per (path, config version)."""
        key = (path or name, self.aggregator.version)
        if key not in self._cache:
            self._cache[key] = self.detect(name, path)
        return self._cache[key]

    def get_config(self, granularity: Granularity) -> Optional[GranularityConfig]:
        """Periodic notes config first, then the core daily notes config."""
        config = self.aggregator.periodic_configs.get(granularity)
        if config is None and granularity is Granularity.DAY:
            config = self.aggregator.daily_config
        return config

    def get_all_enabled_types(self) -> set[Granularity]:
        types = set(self.aggregator.periodic_configs)
        if self.aggregator.daily_config is not None:
            types.add(Granularity.DAY)
        return types

    def decode_date(self, name: str, path: str, granularity: Granularity) -> Optional[date]:
        """Decode the date a note of the given granularity stands for."""
        config = self.get_config(granularity)
        if config is not None:
            allow_segments = config is not self.aggregator.daily_config
            try:
                candidate = self._candidate_string(name, path, config, allow_segments)
                decoded = compile_format(config.format).parse(candidate)
            except (ValueError, re.error):
                decoded = None
            if decoded is not None:
                return decoded
        return compile_format(DEFAULT_FORMATS[granularity]).parse(strip_extension(name))

    def anchor_date(self, name: str, path: str, granularity: Optional[Granularity]) -> date:
        """Reference date for relative phrases typed in a note.

        The note's own date when it is a periodic note that decodes, else today.
        """
        if granularity is not None:
            decoded = self.decode_date(name, path, granularity)
            if decoded is not None:
                return decoded
            logger.debug(f"Could not decode {granularity.value} date from {name!r}; using today")
        return self.today()
