"""
Temporal windowing: date resolution, cutoff filtering and deduplication.

Two dedup keys are in play:
- unique track: first record per track_id (track-level aggregates)
- unique play: first record per (track_id, exact timestamp) (activity and
  discovery, since one track can be played many times)

All timestamps are normalized to timezone-aware UTC datetimes; month keys and
window bounds are computed in UTC.
"""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, Iterable, List, NamedTuple, Optional, Set, Tuple

from snobify.models import PlayRecord, TrendPoint

logger = logging.getLogger(__name__)

DEFAULT_CUTOFF_MONTH = "2008-10"


class DatedRecord(NamedTuple):
    """A record paired with its resolved effective date."""
    record: PlayRecord
    date: datetime
    month: str


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an export timestamp into an aware UTC datetime.

    Accepts ISO-8601 datetimes (with "Z", an offset, or naive meaning UTC),
    plain dates, "YYYY-MM" and "YYYY". Returns None for anything else.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in ("%Y-%m", "%Y", "%Y-%m-%dT%H:%M:%S.%f%z"):
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None

    # Offsets at the edge of the datetime range cannot be shifted to UTC
    try:
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)
    except (OverflowError, ValueError):
        logger.debug(f"Timestamp out of range: {text!r}")
        return None


def month_key(dt: datetime) -> str:
    """YYYY-MM bucket of a datetime."""
    return f"{dt.year:04d}-{dt.month:02d}"


def iso_utc(dt: datetime) -> str:
    """Format as 2021-03-04T12:00:00.000Z."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def effective_date(record: PlayRecord) -> Optional[datetime]:
    """
    Resolve the record's effective date.

    The first non-empty of played_at, added_at, release_date is parsed. If
    that value does not parse, the record has no effective date; later
    fields are not consulted.
    """
    for raw in (record.played_at, record.added_at, record.release_date):
        if raw and str(raw).strip():
            return parse_timestamp(raw)
    return None


def listen_date(record: PlayRecord) -> Optional[datetime]:
    """When the owner listened to or saved the track: played_at else added_at."""
    for raw in (record.played_at, record.added_at):
        if raw and str(raw).strip():
            return parse_timestamp(raw)
    return None


def apply_cutoff(
    records: Iterable[PlayRecord],
    cutoff_month: str = DEFAULT_CUTOFF_MONTH,
    drop_pre_cutoff: bool = True,
) -> List[DatedRecord]:
    """
    Attach effective dates and drop undated (and optionally pre-cutoff) records.

    Args:
        records: Input records, any order
        cutoff_month: Earliest month kept, "YYYY-MM"
        drop_pre_cutoff: When False only undated records are dropped

    Returns:
        DatedRecord list in input order
    """
    kept: List[DatedRecord] = []
    undated = 0
    early = 0
    for record in records:
        dt = effective_date(record)
        if dt is None:
            undated += 1
            continue
        month = month_key(dt)
        if drop_pre_cutoff and month < cutoff_month:
            early += 1
            continue
        kept.append(DatedRecord(record, dt, month))

    if undated or early:
        logger.debug(f"Windowing dropped {undated} undated and {early} pre-{cutoff_month} records")
    return kept


def unique_tracks(dated: Iterable[DatedRecord]) -> List[DatedRecord]:
    """First occurrence per track_id, input order preserved."""
    seen: Set[str] = set()
    out: List[DatedRecord] = []
    for item in dated:
        track_id = item.record.track_id
        if not track_id or track_id in seen:
            continue
        seen.add(track_id)
        out.append(item)
    return out


def unique_plays(dated: Iterable[DatedRecord]) -> List[DatedRecord]:
    """First occurrence per (track_id, exact timestamp), input order preserved."""
    seen: Set[Tuple[str, datetime]] = set()
    out: List[DatedRecord] = []
    for item in dated:
        key = (item.record.track_id, item.date)
        if not item.record.track_id or key in seen:
            continue
        seen.add(key)
        out.append(item)
    return out


def play_counts(plays: Iterable[DatedRecord]) -> Counter:
    """Number of unique plays per track_id."""
    return Counter(item.record.track_id for item in plays)


def _trend(months: Iterable[str]) -> List[TrendPoint]:
    counts = Counter(months)
    return [TrendPoint(month, counts[month]) for month in sorted(counts)]


def discovery_by_month(plays: Iterable[DatedRecord]) -> List[TrendPoint]:
    """
    Count first plays per month.

    Plays are sorted ascending by time and only each track's earliest play
    is kept, so a track is "discovered" exactly once.
    """
    first_seen: Dict[str, datetime] = {}
    for item in sorted(plays, key=lambda p: p.date):
        first_seen.setdefault(item.record.track_id, item.date)
    return _trend(month_key(dt) for dt in first_seen.values())


def activity_by_month(plays: Iterable[DatedRecord]) -> List[TrendPoint]:
    """Unique-play count per month, chronological."""
    return _trend(item.month for item in plays)


def time_window(dated: Iterable[DatedRecord]) -> Tuple[str, str]:
    """(earliest, latest) effective date as ISO strings; empty strings when no data."""
    dates = [item.date for item in dated]
    if not dates:
        return "", ""
    return iso_utc(min(dates)), iso_utc(max(dates))
