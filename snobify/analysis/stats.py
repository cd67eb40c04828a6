"""
Library-wide stats aggregator.

compute_stats() turns a record list into the dashboard summary: top genres,
discovery and activity trends, the rarest tracks, an audio-feature taste
vector and the library-wide playlist rater.

Pipeline:
1. Resolve effective dates and apply the launch-month cutoff
2. Dedupe into unique tracks (per id) and unique plays (per id + timestamp)
3. Aggregate each output from the appropriate set
"""
from __future__ import annotations

import base64
import logging
import random
from typing import List, Optional, Sequence

from snobify.analysis.config import StatsConfig
from snobify.analysis.measures import clamp_score, normalized_entropy, top_counts, weighted_mean
from snobify.analysis.utils import credit_key
from snobify.analysis.windowing import (
    DatedRecord,
    activity_by_month,
    apply_cutoff,
    discovery_by_month,
    play_counts,
    time_window,
    unique_plays,
    unique_tracks,
)
from snobify.genre import count_unique_genres
from snobify.models import (
    GenreCount,
    PlayRecord,
    PlaylistRaterResult,
    RareTrack,
    Stats,
    StatsMeta,
    TasteVector,
)

logger = logging.getLogger(__name__)

SNOB_LINES = (
    "Your library oozes underground cred. Algorithms tried, failed, and cried. Gorgeous chaos.",
    "This playlist smells like vintage vinyl and questionable life choices. I approve.",
    "You mainline instrumentals like oxygen. Lyrics are optional; taste isn't.",
)


def select_rare_tracks(tracks: Sequence[PlayRecord], config: StatsConfig) -> List[RareTrack]:
    """
    Pick the least popular tracks.

    Tracks with popularity 0 carry no popularity data and are skipped. The
    rest are sorted ascending (stable) and cut to rare_n, or to the lowest
    rare_percentile percent (at least one track) in percentile mode.
    """
    candidates = sorted((t for t in tracks if t.popularity > 0), key=lambda t: t.popularity)
    if config.rare_mode == "percentile":
        if not candidates:
            return []
        limit = max(1, int(len(candidates) * config.rare_percentile / 100))
    else:
        limit = config.rare_n
    return [RareTrack(t.track_name, t.artist, t.popularity) for t in candidates[:limit]]


def _taste_vector(tracks: Sequence[PlayRecord], weights: Sequence[float]) -> TasteVector:
    def avg(attr: str) -> float:
        return round(weighted_mean([getattr(t, attr) for t in tracks], weights), 3)

    return TasteVector(
        avg_valence=avg("valence"),
        avg_energy=avg("energy"),
        avg_danceability=avg("danceability"),
        acoustic_bias=avg("acousticness"),
        instrumental_bias=avg("instrumentalness"),
    )


def rate_library(tracks: Sequence[PlayRecord], weights: Sequence[float]) -> PlaylistRaterResult:
    """
    Library-wide playlist rater.

    variety    = unique artists / unique tracks (capped at 100)
    rarity     = 100 - weighted mean popularity
    cohesion   = (1 - normalized genre entropy) * 100
    creativity = 0.6 variety + 0.4 rarity
    overall    = 0.35 rarity + 0.35 cohesion + 0.15 variety + 0.15 creativity
    """
    artists = {credit_key(t) for t in tracks}
    track_ids = {t.track_id for t in tracks}
    variety = clamp_score(len(artists) / max(1, len(track_ids)) * 100)

    avg_pop = weighted_mean([t.popularity for t in tracks], weights)
    rarity = clamp_score(100 - min(100.0, avg_pop))

    genre_counts = count_unique_genres(t.genres for t in tracks)
    cohesion = clamp_score((1 - normalized_entropy(genre_counts.values())) * 100)

    creativity = clamp_score(0.6 * variety + 0.4 * rarity)
    overall = clamp_score(0.35 * rarity + 0.35 * cohesion + 0.15 * variety + 0.15 * creativity)
    return PlaylistRaterResult(
        variety=variety, rarity=rarity, cohesion=cohesion, creativity=creativity, overall=overall,
    )


def stats_hash(rows: int, start: str, end: str) -> str:
    """Short cache key for a stats payload: URL-safe base64 of rows:start:end."""
    raw = f"{rows}:{start}:{end}".encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def _input_hash(records: Sequence[PlayRecord]) -> str:
    """Hash over every input row: dated span before cutoff filtering and dedup."""
    start, end = time_window(apply_cutoff(records, drop_pre_cutoff=False))
    return stats_hash(len(records), start, end)


def compute_stats(
    records: Sequence[PlayRecord],
    config: Optional[StatsConfig] = None,
    rng: Optional[random.Random] = None,
) -> Stats:
    """
    Compute the library-wide summary.

    Args:
        records: Validated play records
        config: Aggregator settings (defaults when None)
        rng: Source of randomness for the snob remark

    Returns:
        Stats; empty lists and neutral scores when nothing survives windowing
    """
    config = config or StatsConfig()
    rng = rng or random.Random()

    dated: List[DatedRecord] = apply_cutoff(records, config.cutoff_month, config.drop_pre_cutoff)
    tracks = [d.record for d in unique_tracks(dated)]
    plays = unique_plays(dated)
    counts = play_counts(plays)

    if config.weighted_averages:
        weights = [counts.get(t.track_id, 0) or 1 for t in tracks]
    else:
        weights = [1] * len(tracks)

    top_genres = [
        GenreCount(genre, count)
        for genre, count in top_counts(count_unique_genres(t.genres for t in tracks), config.top_genres_limit)
    ]

    start, end = time_window(plays)
    stats = Stats(
        top_unique_genres=top_genres,
        discovery_trend=discovery_by_month(plays),
        rare_tracks=select_rare_tracks(tracks, config),
        taste=_taste_vector(tracks, weights),
        playlist_rater=rate_library(tracks, weights),
        activity_trend=activity_by_month(plays),
        snob=rng.choice(SNOB_LINES),
        meta=StatsMeta(hash=_input_hash(records), rows=len(plays), window_start=start, window_end=end),
        unique_tracks=len(tracks),
        unique_plays=len(plays),
    )
    logger.info(
        f"Stats: {len(records)} records -> {len(tracks)} unique tracks, {len(plays)} unique plays "
        f"(cutoff {config.cutoff_month}, drop_pre={config.drop_pre_cutoff})"
    )
    return stats
