"""
Genre normalization
===================
Splitting, aliasing and counting of raw genre strings.
"""

from .normalize import (
    SYNONYM_MAP,
    count_genre_occurrences,
    count_unique_genres,
    normalize_genre_set,
    normalize_genre_token,
    primary_genre,
    split_genres,
)

__all__ = [
    'SYNONYM_MAP',
    'count_genre_occurrences',
    'count_unique_genres',
    'normalize_genre_set',
    'normalize_genre_token',
    'primary_genre',
    'split_genres',
]
