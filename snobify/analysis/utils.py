"""
Shared record helpers for the analytics components.

Pure functions over PlayRecord; nothing here keeps state between calls.
"""
import re
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from snobify.models import PlayRecord
from snobify.string_utils import artist_key

UNKNOWN = "unknown"

_YEAR_RE = re.compile(r"^\s*(\d{4})")


def release_year(record: PlayRecord) -> Optional[int]:
    """
    Release year of a record, from the leading four digits of release_date.

    Exports carry "1994", "1994-03" or "1994-03-18"; anything else is None.
    Year 0 counts as missing.
    """
    match = _YEAR_RE.match(record.release_date or "")
    if not match:
        return None
    year = int(match.group(1))
    return year or None


def credit_key(record: PlayRecord) -> str:
    """Artist key of the full credit string, e.g. "drake, rihanna"."""
    return artist_key(record.artist)


def source_name(record: PlayRecord, default: str = UNKNOWN) -> str:
    return (record.source or "").strip() or default


def group_by_source(records: Iterable[PlayRecord], default: str = UNKNOWN) -> Dict[str, List[PlayRecord]]:
    """
    Group records by originating playlist/file, keeping first-seen group order.

    Records with no source land in the default group.
    """
    groups: Dict[str, List[PlayRecord]] = OrderedDict()
    for record in records:
        groups.setdefault(source_name(record, default), []).append(record)
    return groups


def safe_float(value, default: float = 0.0) -> float:
    """
    Convert to float with a default for None/blank/unparsable input.

    Args:
        value: Raw value (string, number or None)
        default: Returned when conversion fails or the value is not finite

    Returns:
        Finite float
    """
    if value is None:
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if result != result or result in (float("inf"), float("-inf")):
        return default
    return result
