"""
Playlist Scorer
===============
Curation-quality score for a single playlist, and the rare-eligibility gate
built on top of it.

Only the first `track_cap` tracks feed the metrics, so a huge dump of a
playlist cannot outweigh a carefully sized one. The reported size is still
the full track count.

Metrics (integers unless noted):
- flow: inverted mean audio distance between consecutive tracks
- consistency: share of tracks on the most common primary genre
- genre_diversity: log-scaled distinct genre count (first two genres per track)
- era_diversity: distinct eras touched, 18 points each
- mainstream/niche share: popularity at/above or below the thresholds
- megastar_share: largest weighted single-artist share (features weigh less)
- replay_penalty: flat penalty when any track+artist pair repeats
- international_bonus (float): small bonus for non-primary-country tracks
- dampener_penalty: fixed penalties for dominating big-name clusters

Every adjustment that fires adds a human-readable line to `reasons`.
"""
from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from snobify.analysis.config import PlaylistScoreConfig, RareGateConfig
from snobify.analysis.measures import clamp, clamp_score, round_half_up
from snobify.analysis.origin import OriginResolver
from snobify.analysis.utils import group_by_source, release_year
from snobify.genre import primary_genre, split_genres
from snobify.models import PlayRecord, PlaylistScore, PlaylistScoreMetrics, RareEligibility
from snobify.string_utils import split_artists

logger = logging.getLogger(__name__)

NEUTRAL_FLOW = 50
NEUTRAL_STEP_DISTANCE = 0.5
ERA_POINTS = 18
UNKNOWN_ERA = "unknown"


# =============================================================================
# Component metrics
# =============================================================================

def flow_score(tracks: Sequence[PlayRecord], distance_scale: float = 80) -> int:
    """
    Inverted mean (danceability, energy, valence) distance between neighbours.

    Fewer than two tracks score a neutral 50. A step whose distance is not
    finite counts as 0.5.
    """
    if len(tracks) < 2:
        return NEUTRAL_FLOW
    vectors = np.array([[t.danceability, t.energy, t.valence] for t in tracks], dtype=float)
    steps = np.linalg.norm(np.diff(vectors, axis=0), axis=1)
    steps = np.where(np.isfinite(steps), steps, NEUTRAL_STEP_DISTANCE)
    avg = float(steps.mean())
    return clamp_score(max(0.0, 100 - avg * distance_scale))


def consistency_percent(tracks: Sequence[PlayRecord]) -> int:
    """Share of tracks whose primary genre is the playlist's most common one."""
    counts = Counter(primary_genre(t.genres) for t in tracks)
    top = max(counts.values(), default=0)
    return clamp_score(100 * top / max(1, len(tracks)))


def genre_diversity(tracks: Sequence[PlayRecord]) -> int:
    """
    Log-scaled distinct genre count over each track's first two genres.

    1 genre = 10, 2 = 30, 4 = 50, 8 = 70; 23 or more caps at 100.
    """
    distinct = set()
    for track in tracks:
        distinct.update(split_genres(track.genres)[:2])
    return clamp_score(10 + math.log2(max(1, len(distinct))) * 20)


def era_of(record: PlayRecord, config: PlaylistScoreConfig) -> str:
    """First configured era containing the release year, else "unknown"."""
    year = release_year(record)
    if year is None:
        return UNKNOWN_ERA
    for era in config.eras:
        if era.contains(year):
            return era.id
    return UNKNOWN_ERA


def era_diversity(tracks: Sequence[PlayRecord], config: PlaylistScoreConfig) -> int:
    return clamp_score(len({era_of(t, config) for t in tracks}) * ERA_POINTS)


def weighted_artist_counts(tracks: Sequence[PlayRecord], config: PlaylistScoreConfig) -> Counter:
    """
    Artist appearance weights: the primary artist counts 1, each feature
    counts feature_artist_weight.
    """
    counts: Counter = Counter()
    for track in tracks:
        for idx, artist in enumerate(split_artists(track.artist, config.artist_delimiters)):
            counts[artist] += 1.0 if idx == 0 else config.feature_artist_weight
    return counts


def popularity_shares(tracks: Sequence[PlayRecord], config: PlaylistScoreConfig) -> Tuple[int, int]:
    """(mainstream share, niche share) as integer percentages."""
    n = max(1, len(tracks))
    mainstream = sum(1 for t in tracks if t.popularity >= config.mainstream_threshold)
    niche = sum(1 for t in tracks if t.popularity < config.niche_threshold)
    return clamp_score(100 * mainstream / n), clamp_score(100 * niche / n)


def megastar_share(artist_counts: Counter) -> int:
    total = sum(artist_counts.values()) or 1
    top = max(artist_counts.values(), default=0)
    return clamp_score(100 * top / total)


def replay_penalty(tracks: Sequence[PlayRecord], config: PlaylistScoreConfig) -> int:
    """
    Flat penalty when any (track name, artist) pair appears more than once.

    The penalty is applied once no matter how many duplicates there are.
    """
    seen = set()
    for track in tracks:
        key = (track.track_name or "", track.artist or "")
        if key in seen:
            return config.replay_penalty
        seen.add(key)
    return 0


def track_country(
    record: PlayRecord,
    config: PlaylistScoreConfig,
    origins: Optional[OriginResolver] = None,
) -> Optional[str]:
    """
    Country of a track: the export's value, else the primary artist's origin.

    Returns None when unknown.
    """
    country = (record.country or "").strip().upper()
    if country:
        return country
    if origins is None:
        return None
    artists = split_artists(record.artist, config.artist_delimiters)
    if not artists:
        return None
    origin = origins.lookup(artists[0])
    if origin is None or not origin.country:
        return None
    return origin.country.upper()


def international_bonus(
    tracks: Sequence[PlayRecord],
    config: PlaylistScoreConfig,
    origins: Optional[OriginResolver] = None,
) -> float:
    """
    Small additive bonus for tracks from outside the primary country, plus a
    flat lenient bonus when any track's country is unknown.
    """
    if not tracks:
        return 0.0
    foreign = 0
    unknown = 0
    for track in tracks:
        country = track_country(track, config, origins)
        if country is None:
            unknown += 1
        elif country != config.primary_country:
            foreign += 1

    bonus = 0.0
    if foreign:
        bonus += min(config.intl_bonus_cap, round_half_up(foreign * config.intl_bonus_per_track))
    if unknown:
        bonus += config.intl_unknown_bonus
    return float(bonus)


def dampener_penalty(artist_counts: Counter, config: PlaylistScoreConfig) -> Tuple[int, List[str]]:
    """
    Sum of cluster penalties whose members dominate the playlist.

    A cluster fires once when any one of its artists holds more than
    dampener_share of the weighted artist total.

    Returns:
        (penalty points, labels of clusters that fired)
    """
    total = sum(artist_counts.values()) or 1
    penalty = 0
    fired: List[str] = []
    for cluster in config.dampeners:
        if any(artist_counts.get(a, 0) / total > config.dampener_share for a in cluster.artists):
            penalty += cluster.penalty
            fired.append(cluster.label)
    return penalty, fired


# =============================================================================
# Scoring
# =============================================================================

def score_playlist(
    name: str,
    records: Sequence[PlayRecord],
    config: Optional[PlaylistScoreConfig] = None,
    origins: Optional[OriginResolver] = None,
) -> PlaylistScore:
    """
    Score one playlist.

    Args:
        name: Playlist name
        records: Tracks in playlist order
        config: Scorer knobs (defaults when None)
        origins: Optional artist origin lookup for tracks without a country

    Returns:
        PlaylistScore with the final score clamped to [0, 100]
    """
    config = config or PlaylistScoreConfig()
    size = len(records)
    window = list(records[: config.track_cap])

    flow = flow_score(window, config.flow_distance_scale)
    consistency = consistency_percent(window)
    genre_div = genre_diversity(window)
    era_div = era_diversity(window, config)
    mainstream, niche = popularity_shares(window, config)
    artist_counts = weighted_artist_counts(window, config)
    megastar = megastar_share(artist_counts)
    replay = replay_penalty(window, config)
    intl = international_bonus(window, config, origins)
    damp, fired = dampener_penalty(artist_counts, config)

    reasons: List[str] = []
    score = (
        flow * 0.30
        + min(consistency, 100) * 0.20
        + genre_div * 0.18
        + era_div * 0.12
        + (100 - mainstream) * 0.10
        + niche * 0.10
    )

    if megastar >= config.megastar_max_share:
        score -= config.megastar_penalty
        reasons.append(f"Megastar domination: {megastar}% from one artist")

    if replay > 0:
        score -= replay
        reasons.append(f"Replay penalty (dupes): -{replay}")

    if damp > 0:
        score -= damp
        reasons.append(f"Mainstream cluster dampener: -{damp}")
        logger.debug(f"Playlist {name!r}: dampener clusters fired: {', '.join(fired)}")

    if intl > 0:
        score += intl
        reasons.append(f"Internationality bonus: +{intl:.1f}")

    if size < config.min_playlist_size:
        reasons.append(f"Too small to judge fully (<{config.min_playlist_size})")
        score = min(score, config.small_playlist_cap)

    final = int(clamp(round_half_up(score)))

    if flow >= config.flow_target and consistency >= config.min_consistency:
        reasons.append(f"Strong flow ({flow}) with on-theme consistency ({consistency}%)")
    else:
        if flow < config.flow_target:
            reasons.append(f"Flow below target ({flow} < {config.flow_target})")
        if consistency < config.min_consistency:
            reasons.append(f"Consistency below target ({consistency}% < {config.min_consistency}%)")
    if genre_div >= config.min_genre_diversity:
        reasons.append(f"Good genre diversity ({genre_div})")

    metrics = PlaylistScoreMetrics(
        flow=flow,
        consistency=consistency,
        genre_diversity=genre_div,
        era_diversity=era_div,
        mainstream_share=mainstream,
        niche_share=niche,
        megastar_share=megastar,
        replay_penalty=replay,
        international_bonus=intl,
        dampener_penalty=damp,
    )
    return PlaylistScore(name=name, size=size, score=final, reasons=reasons, metrics=metrics)


def score_playlists(
    records: Sequence[PlayRecord],
    config: Optional[PlaylistScoreConfig] = None,
    origins: Optional[OriginResolver] = None,
) -> List[PlaylistScore]:
    """Score every source playlist in the record set, best first."""
    config = config or PlaylistScoreConfig()
    groups: Dict[str, List[PlayRecord]] = group_by_source(records)
    scores = [score_playlist(name, tracks, config, origins) for name, tracks in groups.items()]
    scores.sort(key=lambda s: s.score, reverse=True)
    logger.info(f"Scored {len(scores)} playlists from {len(records)} records")
    return scores


# =============================================================================
# Rare-eligibility gate
# =============================================================================

def rare_eligibility(
    scores: Sequence[PlaylistScore],
    config: Optional[RareGateConfig] = None,
) -> RareEligibility:
    """
    Decide whether the rare feature unlocks.

    Eligible when at least min_playlists playlists each have min_tracks
    tracks and a score of at least min_score. The three best playlists are
    always suggested, eligible or not.
    """
    config = config or RareGateConfig()
    qualifying = [
        s.name for s in scores
        if s.size >= config.min_tracks and s.score >= config.min_score
    ]
    eligible = len(qualifying) >= config.min_playlists
    top3 = [s.name for s in sorted(scores, key=lambda s: s.score, reverse=True)[:3]]
    logger.debug(f"Rare gate: {len(qualifying)}/{config.min_playlists} qualifying playlists -> {eligible}")
    return RareEligibility(eligible=eligible, suggested_top3=top3, qualifying=qualifying)
