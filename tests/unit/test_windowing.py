"""Tests for date resolution, cutoff filtering and dedup keys."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from snobify.analysis.windowing import (
    activity_by_month,
    apply_cutoff,
    discovery_by_month,
    effective_date,
    iso_utc,
    parse_timestamp,
    play_counts,
    time_window,
    unique_plays,
    unique_tracks,
)


# =============================================================================
# Parsing
# =============================================================================

class TestParseTimestamp:
    """Accepted timestamp shapes."""

    @pytest.mark.parametrize("raw,expected", [
        ("2021-03-04T12:30:00Z", datetime(2021, 3, 4, 12, 30, tzinfo=timezone.utc)),
        ("2021-03-04T14:30:00+02:00", datetime(2021, 3, 4, 12, 30, tzinfo=timezone.utc)),
        ("2021-03-04 12:30:00", datetime(2021, 3, 4, 12, 30, tzinfo=timezone.utc)),
        ("2021-03-04", datetime(2021, 3, 4, tzinfo=timezone.utc)),
        ("2021-03", datetime(2021, 3, 1, tzinfo=timezone.utc)),
        ("1999", datetime(1999, 1, 1, tzinfo=timezone.utc)),
    ])
    def test_formats(self, raw, expected):
        assert parse_timestamp(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", None, "yesterday", "2021-13-40"])
    def test_unparsable(self, raw):
        assert parse_timestamp(raw) is None

    @pytest.mark.parametrize("raw", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:00:00-05:00"])
    def test_offset_past_datetime_range(self, raw):
        assert parse_timestamp(raw) is None

    def test_iso_utc_format(self):
        assert iso_utc(datetime(2021, 3, 4, 12, 30, tzinfo=timezone.utc)) == "2021-03-04T12:30:00.000Z"


class TestEffectiveDate:
    """played_at > added_at > release_date."""

    def test_priority(self, make_record):
        rec = make_record(played_at=None, added_at="2020-01-05", release_date="1990")
        assert effective_date(rec).year == 2020

    def test_falls_back_to_release(self, make_record):
        rec = make_record(played_at=None, added_at=None, release_date="1990-05-01")
        assert effective_date(rec).year == 1990

    def test_unparsable_first_value_means_no_date(self, make_record):
        rec = make_record(played_at="garbage", added_at="2020-01-05")
        assert effective_date(rec) is None


# =============================================================================
# Cutoff and dedup
# =============================================================================

class TestCutoff:
    def test_drops_pre_cutoff_and_undated(self, make_record):
        records = [
            make_record("a", played_at="2008-09-30T00:00:00Z"),
            make_record("b", played_at="2008-10-01T00:00:00Z"),
            make_record("c", played_at="not a date"),
        ]
        kept = apply_cutoff(records, "2008-10", True)
        assert [d.record.track_id for d in kept] == ["b"]
        assert kept[0].month == "2008-10"

    def test_keep_pre_cutoff(self, make_record):
        records = [make_record("a", played_at="2001-01-01"), make_record("b", played_at="bad")]
        kept = apply_cutoff(records, "2008-10", drop_pre_cutoff=False)
        assert [d.record.track_id for d in kept] == ["a"]


class TestDedup:
    def _dated(self, make_record):
        return apply_cutoff([
            make_record("a", played_at="2022-01-01T10:00:00Z"),
            make_record("a", played_at="2022-01-01T10:00:00Z"),  # exact duplicate play
            make_record("a", played_at="2022-02-01T10:00:00Z"),
            make_record("b", played_at="2022-02-03T10:00:00Z"),
        ])

    def test_unique_tracks_first_wins(self, make_record):
        tracks = unique_tracks(self._dated(make_record))
        assert [d.record.track_id for d in tracks] == ["a", "b"]
        assert tracks[0].month == "2022-01"

    def test_unique_plays(self, make_record):
        plays = unique_plays(self._dated(make_record))
        assert len(plays) == 3
        assert play_counts(plays) == {"a": 2, "b": 1}

    def test_trends(self, make_record):
        plays = unique_plays(self._dated(make_record))
        activity = [(p.month, p.count) for p in activity_by_month(plays)]
        discovery = [(p.month, p.count) for p in discovery_by_month(plays)]
        assert activity == [("2022-01", 1), ("2022-02", 2)]
        assert discovery == [("2022-01", 1), ("2022-02", 1)]

    def test_discovery_ignores_input_order(self, make_record):
        plays = list(reversed(unique_plays(self._dated(make_record))))
        discovery = [(p.month, p.count) for p in discovery_by_month(plays)]
        assert discovery == [("2022-01", 1), ("2022-02", 1)]

    def test_time_window(self, make_record):
        start, end = time_window(unique_plays(self._dated(make_record)))
        assert start == "2022-01-01T10:00:00.000Z"
        assert end == "2022-02-03T10:00:00.000Z"
        assert time_window([]) == ("", "")
