"""Tests for periodic note granularity detection."""

from datetime import date

import pytest

from periodic_links.detector import GranularityDetector
from periodic_links.formats import format_date
from periodic_links.models.periodic import Granularity
from periodic_links.sources import ConfigAggregator, DailyNotesSource, PeriodicNotesSource

ANCHOR = date(2025, 6, 10)


def _detector(daily_options=None, periodic_settings=None, **kwargs):
    agg = ConfigAggregator(
        DailyNotesSource(enabled=True, options=daily_options) if daily_options is not None else None,
        PeriodicNotesSource(loaded=True, settings=periodic_settings) if periodic_settings is not None else None,
    )
    agg.load()
    return GranularityDetector(agg, **kwargs)


def test_detect_configured_names(detector):
    assert detector.detect("2025-06-10.md", "Daily/2025-06-10.md") is Granularity.DAY
    assert detector.detect("2025-W24", "Weekly/2025-W24.md") is Granularity.WEEK
    assert detector.detect("2025-06", "Monthly/2025-06.md") is Granularity.MONTH
    assert detector.detect("2025-Q2", "Quarterly/2025-Q2.md") is Granularity.QUARTER
    assert detector.detect("2025", "Yearly/2025.md") is Granularity.YEAR


def test_detect_non_periodic_names(detector):
    assert detector.detect("Project plan", "Projects/Project plan.md") is None
    assert detector.detect("2025-06-10 standup", "Meetings/2025-06-10 standup.md") is None


def test_week_number_note():
    """A weekly note named like 2025-W24 is a week note."""
    det = _detector(periodic_settings={"weekly": {"enabled": True, "format": "gggg-[W]ww"}})
    assert det.detect("2025-W24") is Granularity.WEEK


def test_fallback_without_configuration():
    det = _detector()
    assert det.detect("2025-06-10") is Granularity.DAY
    assert det.detect("2025-W24") is Granularity.WEEK
    assert det.detect("2025-06") is Granularity.MONTH
    assert det.detect("2025-Q2") is Granularity.QUARTER
    assert det.detect("2025") is Granularity.YEAR
    assert det.detect("notes") is None
    assert det.detect("2025-Q5") is None


def test_custom_daily_format():
    det = _detector(daily_options={"format": "DD.MM.YYYY"})
    assert det.detect("10.06.2025") is Granularity.DAY
    assert det.detect("31.02.2025") is None


def test_path_segments_apply_only_to_periodic_configs():
    """Slash-separated formats match folder segments for periodic notes only."""
    fmt = "YYYY/MM/DD-MM-YYYY"
    path = "Journal/2025/06/10-06-2025.md"

    periodic = _detector(periodic_settings={"daily": {"enabled": True, "format": fmt, "folder": "Journal"}})
    assert periodic.detect("10-06-2025.md", path) is Granularity.DAY
    assert periodic.decode_date("10-06-2025.md", path, Granularity.DAY) == date(2025, 6, 10)
    # Segments that disagree with the filename
    assert periodic.detect("10-06-2025.md", "Journal/2024/06/10-06-2025.md") is None

    core = _detector(daily_options={"format": fmt, "folder": "Journal"})
    assert core.detect("10-06-2025.md", path) is None


def test_strict_folder_check():
    settings = {"weekly": {"enabled": True, "format": "[Week] ww, gggg", "folder": "Periodic/Weekly"}}
    loose = _detector(periodic_settings=settings)
    strict = _detector(periodic_settings=settings, strict_folder=True)

    assert loose.detect("Week 24, 2025", "Inbox/Week 24, 2025.md") is Granularity.WEEK
    assert strict.detect("Week 24, 2025", "Inbox/Week 24, 2025.md") is None
    assert strict.detect("Week 24, 2025", "Periodic/Weekly/Week 24, 2025.md") is Granularity.WEEK
    assert strict.detect("Week 24, 2025", "Periodic/Weekly/2025/Week 24, 2025.md") is Granularity.WEEK


def test_strict_folder_check_still_falls_back_to_canonical_names():
    settings = {"weekly": {"enabled": True, "format": "gggg-[W]ww", "folder": "Weekly"}}
    strict = _detector(periodic_settings=settings, strict_folder=True)

    assert strict.detect("2025-06", "Inbox/2025-06.md") is Granularity.MONTH
    assert strict.detect("2025-W24", "Inbox/2025-W24.md") is Granularity.WEEK
    assert strict.detect("Plan", "Inbox/Plan.md") is None


def test_unusable_format_is_skipped():
    det = _detector(periodic_settings={"weekly": {"enabled": True, "format": "[Inbox]"}})
    assert det.detect("Inbox") is None
    # Canonical names still fall back
    assert det.detect("2025-W24") is Granularity.WEEK


def test_get_config_precedence():
    det = _detector(
        daily_options={"format": "YYYY-MM-DD", "folder": "Core"},
        periodic_settings={"daily": {"enabled": True, "format": "YYYYMMDD", "folder": "Periodic"}},
    )
    assert det.get_config(Granularity.DAY).folder == "Periodic"
    assert det.get_config(Granularity.WEEK) is None

    core_only = _detector(daily_options={"folder": "Core"})
    assert core_only.get_config(Granularity.DAY).folder == "Core"


def test_get_all_enabled_types(detector):
    assert detector.get_all_enabled_types() == set(Granularity)
    assert _detector().get_all_enabled_types() == set()
    assert _detector(daily_options={}).get_all_enabled_types() == {Granularity.DAY}


def test_decode_and_anchor_dates(detector):
    assert detector.decode_date("2025-W24", "Weekly/2025-W24.md", Granularity.WEEK) == date(2025, 6, 8)
    assert detector.decode_date("2025-Q3", "", Granularity.QUARTER) == date(2025, 7, 1)
    assert detector.anchor_date("2025-06-01", "Daily/2025-06-01.md", Granularity.DAY) == date(2025, 6, 1)
    # Non-periodic notes anchor on today
    assert detector.anchor_date("Ideas", "Ideas.md", None) == ANCHOR


def test_decode_falls_back_to_default_format():
    det = _detector(today=lambda: ANCHOR)
    assert det.decode_date("2025-06", "", Granularity.MONTH) == date(2025, 6, 1)
    assert det.anchor_date("garbage", "", Granularity.MONTH) == ANCHOR


def test_detect_cached_follows_config_version():
    source = PeriodicNotesSource(loaded=True, settings={"weekly": {"enabled": True, "format": "[Week] w, gggg"}})
    agg = ConfigAggregator(periodic_source=source)
    agg.load()
    det = GranularityDetector(agg)

    assert det.detect_cached("Week 24, 2025", "Week 24, 2025.md") is Granularity.WEEK

    source.settings = {}
    assert det.detect_cached("Week 24, 2025", "Week 24, 2025.md") is Granularity.WEEK
    agg.load()
    assert det.detect_cached("Week 24, 2025", "Week 24, 2025.md") is None


@pytest.mark.parametrize("granularity", list(Granularity))
def test_generated_names_detect_back(detector, granularity):
    """Names produced from a config are detected as that config's granularity."""
    config = detector.get_config(granularity)
    for value in (date(2024, 12, 30), date(2025, 6, 10), date(2026, 3, 31)):
        name = format_date(value, config.format)
        assert detector.detect(name, f"{config.folder}/{name}.md") is granularity
