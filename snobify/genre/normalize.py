"""
Genre Normalization
===================
Deterministic normalization and splitting of raw genre strings from
playlist exports.

Rules:
- Split on pipe and comma
- Case-fold + trim
- Collapse internal whitespace
- Map known spellings to one canonical token (e.g. "hip hop" -> "hip-hop")
- Drop empty tokens
- Dedupe, keeping the first occurrence (the first token is the primary genre)

Normalization is idempotent: every canonical token is a fixed point of the
synonym map, so re-normalizing a normalized list returns the same list.
"""
import re
from collections import Counter
from typing import Iterable, List, Optional, Sequence

# Synonym normalization for atomic tokens, applied after splitting.
# Targets must never appear as keys.
SYNONYM_MAP = {
    # Hip-hop variants
    "hip hop": "hip-hop",
    "hiphop": "hip-hop",
    # Lo-fi variants
    "lo fi": "lo-fi",
    "lofi": "lo-fi",
    "lo-fi beats": "lo-fi",
    # Drill scenes
    "brooklyn drill": "drill - brooklyn",
    "new york drill": "drill - ny",
    "ny drill": "drill - ny",
    "chicago drill": "drill - chicago",
    # Synth-pop
    "synthpop": "synth-pop",
    "synth pop": "synth-pop",
    # Drum and bass
    "dnb": "drum and bass",
    "drum n bass": "drum and bass",
    "drum & bass": "drum and bass",
    # Post-genres
    "post rock": "post-rock",
    "post punk": "post-punk",
    # R&B
    "rnb": "r&b",
    "r & b": "r&b",
    "rhythm and blues": "r&b",
}

_DELIMITERS = re.compile(r"[|,]")
_WHITESPACE = re.compile(r"\s+")


def normalize_genre_token(token: Optional[str]) -> Optional[str]:
    """
    Normalize a single genre token to its canonical form.

    Does NOT split - use split_genres for raw multi-genre strings.

    Returns None if the token is empty after cleanup.
    """
    if not token:
        return None

    text = _WHITESPACE.sub(" ", token.casefold()).strip()
    if not text:
        return None

    return SYNONYM_MAP.get(text, text)


def normalize_genre_set(tokens: Iterable[Optional[str]]) -> List[str]:
    """
    Normalize already-split tokens and dedupe them, preserving order.

    Applying this to its own output returns the same list.
    """
    seen = set()
    result: List[str] = []
    for token in tokens:
        canonical = normalize_genre_token(token)
        if canonical and canonical not in seen:
            seen.add(canonical)
            result.append(canonical)
    return result


def split_genres(raw: Optional[str]) -> List[str]:
    """
    Normalize a raw genre string and split it into canonical tokens.

    This is the main entry point for genre normalization.

    Examples:
        "Hip Hop|Trap"            -> ["hip-hop", "trap"]
        "lofi, Lo Fi, chillhop"   -> ["lo-fi", "chillhop"]
        ""                        -> []
    """
    if not raw:
        return []
    return normalize_genre_set(_DELIMITERS.split(str(raw)))


def primary_genre(raw: Optional[str], fallback: str = "unknown") -> str:
    """Return the first canonical genre of a raw string, or fallback."""
    tokens = split_genres(raw)
    return tokens[0] if tokens else fallback


def count_unique_genres(raw_genres: Iterable[Optional[str]]) -> Counter:
    """
    Count genres once per track.

    Each raw string is one track; a genre repeated inside the same string
    counts once. Used for "top genres" style breakdowns.
    """
    counts: Counter = Counter()
    for raw in raw_genres:
        counts.update(split_genres(raw))
    return counts


def count_genre_occurrences(
    raw_genres: Iterable[Optional[str]],
    weights: Optional[Sequence[float]] = None,
) -> Counter:
    """
    Count every genre mention across tracks, optionally weighted per track.

    Repeated tracks of a genre increase its weight, which is what the
    entropy-based cohesion metrics want. Accumulation goes into a
    name -> total table, so the result does not depend on input order.

    Args:
        raw_genres: Raw genre strings, one per record
        weights: Optional per-record weights (same length as raw_genres)

    Returns:
        Counter of genre -> (weighted) mention total. Genres whose total
        weight is zero are omitted.
    """
    counts: Counter = Counter()
    if weights is None:
        for raw in raw_genres:
            counts.update(split_genres(raw))
        return counts

    for raw, weight in zip(raw_genres, weights):
        if weight <= 0:
            continue
        for genre in split_genres(raw):
            counts[genre] += weight
    return counts
