"""
Per-playlist debug ratings.

A cohesion-heavy rating for each named playlist, used by the library debug
view. Kept separate from the library-wide rater and the playlist scorer:
each has its own weight schedule and its numbers are not interchangeable.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from typing import List, Optional, Sequence

from snobify.analysis.config import PlaylistRatingsConfig
from snobify.analysis.measures import clamp_score, top_counts
from snobify.analysis.utils import credit_key, group_by_source
from snobify.genre import split_genres
from snobify.models import GenreCount, NamedCount, PlayRecord, PlaylistRating

logger = logging.getLogger(__name__)


def rate_playlist(name: str, tracks: Sequence[PlayRecord], config: PlaylistRatingsConfig) -> PlaylistRating:
    """
    Rate one playlist.

    cohesion   = 0.55 top-artist share + 0.45 top-genre share
    variety    = unique artists / unique tracks
    rarity     = 100 - mean popularity
    creativity = 0.6 cross-genre spread + 0.4 deep-cut share
    overall    = 0.45 cohesion + 0.15 variety + 0.25 rarity + 0.15 creativity
    """
    size = len(tracks)
    denom = max(1, size)

    artist_counts: Counter = Counter()
    genre_counts: Counter = Counter()
    pop_sum = 0.0
    deep_cuts = 0
    for track in tracks:
        artist_counts[credit_key(track)] += 1
        genre_counts.update(split_genres(track.genres))
        pop_sum += track.popularity
        if track.popularity <= config.deep_cut_popularity:
            deep_cuts += 1

    top_artist = max(artist_counts.values(), default=0)
    top_genre = max(genre_counts.values(), default=0)
    cohesion = clamp_score((top_artist / denom * 0.55 + top_genre / denom * 0.45) * 100)

    unique_tracks = len({t.track_id for t in tracks})
    variety = clamp_score(len(artist_counts) / max(1, unique_tracks) * 100)
    rarity = clamp_score(100 - min(100.0, pop_sum / denom))

    cross_genre = clamp_score(len(genre_counts) / math.sqrt(denom) * config.cross_genre_scale)
    deep_cut_boost = clamp_score(deep_cuts / denom * config.deep_cut_scale)
    creativity = clamp_score(0.6 * cross_genre + 0.4 * deep_cut_boost)

    overall = clamp_score(0.45 * cohesion + 0.15 * variety + 0.25 * rarity + 0.15 * creativity)

    return PlaylistRating(
        name=name,
        tracks=size,
        unique_artists=len(artist_counts),
        cohesion=cohesion,
        variety=variety,
        rarity=rarity,
        creativity=creativity,
        overall=overall,
        top_artists=[NamedCount(a, c) for a, c in top_counts(artist_counts, config.top_n)],
        top_genres=[GenreCount(g, c) for g, c in top_counts(genre_counts, config.top_n)],
    )


def compute_playlist_ratings(
    records: Sequence[PlayRecord],
    config: Optional[PlaylistRatingsConfig] = None,
) -> List[PlaylistRating]:
    """
    Rate every playlist with at least min_tracks tracks, best first.

    Records are grouped by source; records without one fall into "unknown".
    """
    config = config or PlaylistRatingsConfig()
    ratings = []
    skipped = 0
    for name, tracks in group_by_source(records).items():
        if len(tracks) < config.min_tracks:
            skipped += 1
            continue
        ratings.append(rate_playlist(name, tracks, config))

    ratings.sort(key=lambda r: r.overall, reverse=True)
    logger.info(f"Rated {len(ratings)} playlists ({skipped} below {config.min_tracks} tracks)")
    return ratings
