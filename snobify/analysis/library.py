"""
Library analyzer: time depth and vintage-vs-modern genre contrast.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from snobify.analysis.config import LibraryConfig
from snobify.analysis.measures import by_decade, jaccard_contrast, top_counts
from snobify.analysis.utils import credit_key, release_year
from snobify.analysis.windowing import listen_date
from snobify.genre import count_unique_genres, split_genres
from snobify.models import GenreFavorites, LibraryAnalysis, NamedCount, PlayRecord, TimeDepth

logger = logging.getLogger(__name__)


def _named(counts: Counter, limit: int) -> List[NamedCount]:
    return [NamedCount(name, count) for name, count in top_counts(counts, limit)]


def time_depth(records: Sequence[PlayRecord], min_listen_year: int) -> TimeDepth:
    """Earliest/latest listen year (from min_listen_year on) and a decade histogram."""
    years = []
    for record in records:
        dt = listen_date(record)
        if dt is not None and dt.year >= min_listen_year:
            years.append(dt.year)
    if not years:
        return TimeDepth(earliest_year=None, latest_year=None, span_years=0, decades=[])
    earliest, latest = min(years), max(years)
    return TimeDepth(
        earliest_year=earliest,
        latest_year=latest,
        span_years=latest - earliest + 1,
        decades=by_decade(years),
    )


def favorites_per_genre(
    records: Sequence[PlayRecord],
    genre_limit: int = 8,
    artists_per_genre: int = 5,
) -> List[GenreFavorites]:
    """
    Top artists for each of the most common genres.

    Genres are ranked by track count; within a genre, artists (full credit)
    are ranked by how many of that genre's tracks they appear on.
    """
    genre_counts = count_unique_genres(r.genres for r in records)
    top_genres = [g for g, _ in top_counts(genre_counts, genre_limit)]
    wanted = set(top_genres)

    per_genre: Dict[str, Counter] = defaultdict(Counter)
    for record in records:
        artist = credit_key(record)
        if not artist:
            continue
        for genre in split_genres(record.genres):
            if genre in wanted:
                per_genre[genre][artist] += 1

    return [GenreFavorites(genre, _named(per_genre[genre], artists_per_genre)) for genre in top_genres]


def analyze_library(
    records: Sequence[PlayRecord],
    config: Optional[LibraryConfig] = None,
    now: Optional[datetime] = None,
) -> LibraryAnalysis:
    """
    Analyze the depth and era split of a library.

    Args:
        records: Validated play records
        config: Analyzer settings (defaults when None)
        now: Reference time for the vintage cutoff (current UTC time when None)

    Returns:
        LibraryAnalysis
    """
    config = config or LibraryConfig()
    now = now or datetime.now(timezone.utc)

    if config.history_only:
        records = [r for r in records if (r.played_at or "").strip()]

    vintage: List[PlayRecord] = []
    modern: List[PlayRecord] = []
    for record in records:
        year = release_year(record)
        if year is None:
            continue
        if now.year - year >= config.vintage_age_years:
            vintage.append(record)
        else:
            modern.append(record)

    top_all = _named(count_unique_genres(r.genres for r in records), config.top_genres_all)
    top_vintage = _named(count_unique_genres(r.genres for r in vintage), config.top_genres_bucket)
    top_modern = _named(count_unique_genres(r.genres for r in modern), config.top_genres_bucket)

    contrast = jaccard_contrast({g.name for g in top_vintage}, {g.name for g in top_modern})

    analysis = LibraryAnalysis(
        time_depth=time_depth(records, config.min_listen_year),
        top_genres_all=top_all,
        vintage_genres_top=top_vintage,
        top_genres_modern=top_modern,
        genre_contrast=contrast,
        favorites_per_genre=favorites_per_genre(records, config.favorite_genres, config.favorite_artists),
    )
    logger.info(
        f"Library: {len(records)} records, {len(vintage)} vintage / {len(modern)} modern, "
        f"contrast {contrast}"
    )
    return analysis
