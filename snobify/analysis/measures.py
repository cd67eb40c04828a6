"""
Numeric building blocks shared by the analytics components.

All scores leave this module as integers clamped to [0, 100]. Rounding is
half-up (2.5 -> 3) rather than Python's banker's rounding so that scores are
stable across the dashboard and the API.
"""
import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, value))


def clamp_score(value: float) -> int:
    """Round half-up and clamp to [0, 100]."""
    if not math.isfinite(value):
        return 0
    return int(clamp(round_half_up(value)))


def normalized_entropy(counts: Iterable[float]) -> float:
    """
    Shannon entropy of a count distribution, normalized to [0, 1].

    0 means everything sits in one category, 1 means perfectly even.
    Fewer than two non-zero categories yield 0.

    Args:
        counts: Category totals (order does not matter)
    """
    arr = np.asarray([c for c in counts if c > 0], dtype=float)
    if arr.size < 2:
        return 0.0
    p = arr / arr.sum()
    h = float(-(p * np.log(p)).sum())
    return float(clamp(h / math.log(arr.size), 0.0, 1.0))


def weighted_mean(values: Sequence[float], weights: Optional[Sequence[float]] = None, default: float = 0.0) -> float:
    """Weighted arithmetic mean; default when there is no weight at all."""
    if len(values) == 0:
        return default
    vals = np.asarray(values, dtype=float)
    if weights is None:
        return float(vals.mean())
    w = np.asarray(weights, dtype=float)
    total = w.sum()
    if total <= 0:
        return default
    return float((vals * w).sum() / total)


def top_counts(counts: Mapping[str, float], limit: Optional[int] = None) -> List[Tuple[str, float]]:
    """
    Sort a name -> count table by count descending, then name ascending.

    The name tie-break keeps the output independent of input order.
    """
    ordered = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return ordered if limit is None else ordered[:limit]


def by_decade(years: Iterable[int]) -> List[Dict[str, object]]:
    """Histogram of years by decade, chronologically ordered."""
    buckets: Dict[int, int] = {}
    for year in years:
        decade = (int(year) // 10) * 10
        buckets[decade] = buckets.get(decade, 0) + 1
    return [{"decade": str(d), "count": buckets[d]} for d in sorted(buckets)]


def five_year_band(year: int) -> str:
    base = ((int(year) - 1900) // 5) * 5 + 1900
    return f"{base}-{base + 4}"


def by_5y(years: Iterable[int], weights: Optional[Iterable[float]] = None) -> List[Dict[str, object]]:
    """Histogram of years in 5-year bands anchored at 1900, chronologically ordered."""
    buckets: Dict[int, float] = {}
    if weights is None:
        pairs = ((y, 1) for y in years)
    else:
        pairs = zip(years, weights)
    for year, weight in pairs:
        base = ((int(year) - 1900) // 5) * 5 + 1900
        buckets[base] = buckets.get(base, 0) + weight
    return [{"band": f"{b}-{b + 4}", "count": buckets[b]} for b in sorted(buckets)]


def jaccard_contrast(a: Set[str], b: Set[str]) -> int:
    """(1 - Jaccard similarity) * 100, rounded. Two empty sets contrast at 100."""
    union = len(a | b) or 1
    similarity = len(a & b) / union
    return clamp_score((1 - similarity) * 100)
