"""
Shared string normalization for artist names and free text.

Every component compares artists through artist_key(), so the origin table,
the mainstream cluster lists and per-playlist counts agree on identity.
"""
import re
import unicodedata
from typing import List, Optional

# Curly quotes and dash variants fold to their ASCII forms
_TYPOGRAPHY = str.maketrans(
    "\u2018\u2019\u201c\u201d\u2010\u2011\u2013\u2014",
    "''\"\"----",
)

DEFAULT_ARTIST_DELIMITERS = ","


def normalize_text(text: Optional[str], lowercase: bool = True, strip: bool = True) -> str:
    """
    Normalize text for consistent comparisons.

    Applies Unicode NFC, optional case folding and trimming.
    """
    if text is None:
        return ""

    text = unicodedata.normalize('NFC', str(text))
    if lowercase:
        text = text.casefold()
    if strip:
        text = text.strip()
    return text


def artist_key(name: Optional[str]) -> str:
    """
    Normalize an artist name to a stable comparison key.

    Steps:
    - Normalize typography variants (curly quotes, dashes)
    - Unicode NFKD + remove combining marks ("Tiësto" -> "tiesto")
    - Casefold
    - Collapse whitespace
    """
    if not name:
        return ""

    text = str(name).translate(_TYPOGRAPHY)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    return " ".join(text.casefold().split())


def split_artists(raw: Optional[str], delimiters: str = DEFAULT_ARTIST_DELIMITERS) -> List[str]:
    """
    Split a raw artist credit into normalized artist keys.

    The first entry is the primary artist; the rest are features.

    Args:
        raw: Artist credit, e.g. "Drake, Rihanna"
        delimiters: Characters that separate artists

    Returns:
        Artist keys in credit order, empties dropped
    """
    if not raw:
        return []
    if not delimiters:
        key = artist_key(raw)
        return [key] if key else []

    pattern = "[" + re.escape(delimiters) + "]"
    keys = (artist_key(part) for part in re.split(pattern, str(raw)))
    return [k for k in keys if k]
