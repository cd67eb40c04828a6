"""
Taste Profile Builder
=====================
A weighted personal taste profile with a persona label.

Each record gets an influence weight:

    weight = (1 + recency_boost) * owner_factor, or 0 past the source cap

- recency_boost decays exponentially with listen age, capped at
  recency_boost_max
- owner_factor is not_owner_downweight when owner aliases are configured and
  the record was added by someone else, otherwise 1
- once a source has contributed source_cap_pct percent of all records, its
  remaining records get weight 0 (they still appear in the breakdowns)

Metrics are computed from records with positive weight. Breakdowns describe
every row. Libraries below min_rows get a provisional profile with zeroed
metrics instead of a score.
"""
from __future__ import annotations

import logging
import math
import random
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from snobify.analysis.config import TasteProfileConfig
from snobify.analysis.measures import (
    by_5y,
    by_decade,
    clamp_score,
    five_year_band,
    normalized_entropy,
    round_half_up,
    top_counts,
    weighted_mean,
)
from snobify.analysis.origin import EMPTY_ORIGINS, UNKNOWN_ORIGIN, OriginResolver
from snobify.analysis.utils import release_year
from snobify.analysis.windowing import listen_date
from snobify.genre import count_genre_occurrences, split_genres
from snobify.models import (
    GenreFavorites,
    NamedCount,
    PlayRecord,
    TasteBreakdowns,
    TasteMetrics,
    TasteProfile,
)
from snobify.string_utils import normalize_text, split_artists

logger = logging.getLogger(__name__)

PROVISIONAL_LABEL = "Insufficient Data (Provisional)"
DEFAULT_LABEL = "Balanced Explorer"

RUDE_MESSAGES = (
    "Come back when your library isn't a kiddie pool. I need at least {min_rows} real plays to judge you properly.",
    "{rows} plays? That's a teaser, not a taste. Bring me at least {min_rows} and we'll talk.",
    "I don't do readings off a handful of songs. Feed me {min_rows} plays, then ask again.",
)

SECONDS_PER_YEAR = 365.25 * 24 * 3600


@dataclass(frozen=True)
class _LabelInputs:
    metrics: TasteMetrics
    earliest_decade: Optional[int]
    recent_band_share: float


# Ordered persona rules; the first match wins.
PERSONA_RULES: Tuple[Tuple[str, Callable[[_LabelInputs], bool]], ...] = (
    ("Deep-Cut Connoisseur", lambda x: x.metrics.rarity >= 60 and x.metrics.exploration >= 60),
    ("Global Genre Hopper", lambda x: x.metrics.internationality >= 35 and x.metrics.variety >= 60),
    ("Cohesive Devotee", lambda x: x.metrics.cohesion >= 70 and x.metrics.variety <= 40),
    ("Retro Faithful", lambda x: x.earliest_decade is not None and x.earliest_decade <= 2000 and x.metrics.cohesion >= 55),
    ("Modern Maximizer", lambda x: x.recent_band_share >= 0.7),
)


def choose_label(inputs: _LabelInputs) -> str:
    for label, rule in PERSONA_RULES:
        if rule(inputs):
            return label
    return DEFAULT_LABEL


# =============================================================================
# Weights
# =============================================================================

def recency_boost(
    played: Optional[datetime],
    now: datetime,
    boost_max: float = 0.10,
    decay_years: float = 1.5,
) -> float:
    """Exponentially decaying boost in [0, boost_max]; 0 when undated."""
    if played is None:
        return 0.0
    years = (now - played).total_seconds() / SECONDS_PER_YEAR
    boost = boost_max * math.exp(-years / decay_years)
    return min(boost_max, max(0.0, boost))


def record_weights(
    records: Sequence[PlayRecord],
    config: TasteProfileConfig,
    now: datetime,
) -> List[float]:
    """
    Influence weight of each record, in input order.

    The source cap counts records, not weight: a source may contribute at
    most max(1, round(total * source_cap_pct / 100)) weighted records.
    Records without a source are never capped.
    """
    total = len(records)
    cap = max(1, round_half_up(total * config.source_cap_pct / 100))
    aliases = set(config.owner_aliases)
    used: Counter = Counter()
    weights: List[float] = []
    capped = 0

    for record in records:
        weight = 1.0 + recency_boost(
            listen_date(record), now, config.recency_boost_max, config.recency_decay_years,
        )
        if aliases and normalize_text(record.added_by) not in aliases:
            weight *= config.not_owner_downweight

        source = (record.source or "").strip()
        if source:
            if used[source] >= cap:
                weight = 0.0
                capped += 1
            else:
                used[source] += 1
        weights.append(weight)

    if capped:
        logger.debug(f"Source cap ({cap} records per source) zeroed {capped} records")
    return weights


# =============================================================================
# Metrics
# =============================================================================

def _origin_names(artist: str, origins: OriginResolver) -> Tuple[str, str]:
    origin = origins.lookup(artist)
    if origin is None:
        return UNKNOWN_ORIGIN, UNKNOWN_ORIGIN
    country = origin.country.upper() if origin.country else UNKNOWN_ORIGIN
    return country, origin.continent or UNKNOWN_ORIGIN


def exploration_score(
    records: Sequence[PlayRecord],
    window: float,
) -> int:
    """
    Share of distinct artists first heard in the most recent part of the
    observed listening span.

    The recent part is the last `window` fraction of [earliest, latest]
    listen time. A zero-length span scores 0.
    """
    first_seen: Dict[str, datetime] = {}
    artists = set()
    for record in records:
        heard = listen_date(record)
        for artist in split_artists(record.artist):
            artists.add(artist)
            if heard is not None and (artist not in first_seen or heard < first_seen[artist]):
                first_seen[artist] = heard

    if not first_seen:
        return 0
    earliest = min(first_seen.values())
    latest = max(first_seen.values())
    span = (latest - earliest).total_seconds()
    if span <= 0:
        return 0
    threshold = latest.timestamp() - window * span
    recent = sum(1 for dt in first_seen.values() if dt.timestamp() >= threshold)
    return clamp_score(100 * recent / max(1, len(artists)))


def replay_rate(records: Sequence[PlayRecord]) -> int:
    """Repeat artist appearances as a share of records."""
    hits = Counter()
    for record in records:
        hits.update(split_artists(record.artist))
    repeats = sum(n - 1 for n in hits.values() if n > 1)
    return clamp_score(100 * repeats / max(1, len(records)))


def favorites_per_genre(records: Sequence[PlayRecord], config: TasteProfileConfig) -> List[GenreFavorites]:
    """
    Favourite artists per genre.

    An artist qualifies for a genre with at least
    max(favorite_min_count, favorite_min_share * genre mentions) mentions;
    the top favorite_top_share of qualifying artists (at least one) are kept.
    Genres with no qualifying artist are left out. Output is ordered by
    genre mention total, descending.
    """
    per_genre: Dict[str, Counter] = defaultdict(Counter)
    totals: Counter = Counter()
    for record in records:
        artists = split_artists(record.artist)
        if not artists:
            continue
        for genre in split_genres(record.genres):
            per_genre[genre].update(artists)
            totals[genre] += len(artists)

    out: List[GenreFavorites] = []
    for genre, total in top_counts(totals):
        min_count = max(config.favorite_min_count, round_half_up(total * config.favorite_min_share))
        qualifying = [(a, c) for a, c in top_counts(per_genre[genre]) if c >= min_count]
        if not qualifying:
            continue
        keep = max(1, round_half_up(len(qualifying) * config.favorite_top_share))
        out.append(GenreFavorites(genre, [NamedCount(a, c) for a, c in qualifying[:keep]]))
    return out


def _breakdowns(
    records: Sequence[PlayRecord],
    config: TasteProfileConfig,
    origins: OriginResolver,
) -> TasteBreakdowns:
    years = [y for y in (release_year(r) for r in records) if y is not None]
    countries: Counter = Counter()
    continents: Counter = Counter()
    for record in records:
        for artist in split_artists(record.artist):
            country, continent = _origin_names(artist, origins)
            countries[country] += 1
            continents[continent] += 1

    genres = count_genre_occurrences(r.genres for r in records)
    return TasteBreakdowns(
        by_decade=by_decade(years),
        by_5y=by_5y(years),
        countries=[NamedCount(n, c) for n, c in top_counts(countries, 8)],
        continents=[NamedCount(n, c) for n, c in top_counts(continents)],
        top_genres=[NamedCount(n, c) for n, c in top_counts(genres, 5)],
        favorites_per_genre=favorites_per_genre(records, config),
    )


def _provisional(rows: int, config: TasteProfileConfig, rng: random.Random) -> TasteProfile:
    message = rng.choice(RUDE_MESSAGES).format(rows=rows, min_rows=config.min_rows)
    return TasteProfile(
        label=PROVISIONAL_LABEL,
        score=0,
        metrics=TasteMetrics(),
        breakdowns=TasteBreakdowns(),
        evidence=[],
        provisional=True,
        rude_message=message,
    )


def build_taste_profile(
    records: Sequence[PlayRecord],
    config: Optional[TasteProfileConfig] = None,
    origins: Optional[OriginResolver] = None,
    now: Optional[datetime] = None,
    rng: Optional[random.Random] = None,
) -> TasteProfile:
    """
    Build the weighted taste profile.

    Args:
        records: Validated play records
        config: Profile settings (defaults when None)
        origins: Artist origin lookup (every artist Unknown when None)
        now: Reference time for recency decay (current UTC time when None)
        rng: Source of randomness for the provisional message

    Returns:
        TasteProfile; provisional when fewer than config.min_rows records
    """
    config = config or TasteProfileConfig()
    origins = origins or EMPTY_ORIGINS
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()

    total = len(records)
    if total < config.min_rows:
        logger.info(f"Taste profile provisional: {total} rows < {config.min_rows}")
        return _provisional(total, config, rng)

    weights = record_weights(records, config, now)
    active = [(r, w) for r, w in zip(records, weights) if w > 0]
    active_records = [r for r, _ in active]
    active_weights = [w for _, w in active]

    # Genre spread and concentration over weighted mentions
    genre_weights = count_genre_occurrences((r.genres for r in active_records), active_weights)
    mentions = sum(genre_weights.values())
    variety = clamp_score(100 * len(genre_weights) / max(10.0, mentions / 10))
    cohesion = clamp_score((1 - normalized_entropy(genre_weights.values())) * 100)

    avg_pop = weighted_mean([r.popularity for r in active_records], active_weights)
    rarity = clamp_score(100 - avg_pop)
    niche_weight = sum(w for r, w in active if r.popularity < config.niche_popularity_threshold)
    niche_pct = clamp_score(100 * niche_weight / sum(active_weights)) if active_weights else 0

    exploration = exploration_score(active_records, config.exploration_window)

    # Artist attributions: unknown origins count as outside the primary country
    attributed = 0.0
    foreign = 0.0
    for record, weight in active:
        for artist in split_artists(record.artist):
            country, _ = _origin_names(artist, origins)
            attributed += weight
            if country != config.primary_country:
                foreign += weight
    internationality = clamp_score(100 * foreign / attributed) if attributed > 0 else 0

    band_weights: Counter = Counter()
    for record, weight in active:
        year = release_year(record)
        if year is not None:
            band_weights[five_year_band(year)] += weight
    era_balance = clamp_score(normalized_entropy(band_weights.values()) * 100)

    metrics = TasteMetrics(
        variety=variety,
        rarity=rarity,
        cohesion=cohesion,
        exploration=exploration,
        internationality=internationality,
        era_balance=era_balance,
        replay_rate=replay_rate(active_records),
    )
    score = clamp_score(
        cohesion * 0.30 + rarity * 0.25 + variety * 0.15
        + exploration * 0.15 + internationality * 0.10 + era_balance * 0.05
    )

    breakdowns = _breakdowns(records, config, origins)
    release_total = sum(b["count"] for b in breakdowns.by_5y)
    recent_share = sum(b["count"] for b in breakdowns.by_5y[-2:]) / max(1, release_total)
    earliest_decade = int(breakdowns.by_decade[0]["decade"]) if breakdowns.by_decade else None
    label = choose_label(_LabelInputs(metrics, earliest_decade, recent_share))

    leading_country = breakdowns.countries[0].name if breakdowns.countries else UNKNOWN_ORIGIN
    evidence = [
        f"Top genres: {', '.join(g.name for g in breakdowns.top_genres)}",
        f"Avg track popularity ~{round_half_up(avg_pop)} -> rarity {rarity}; "
        f"{niche_pct}% niche plays (popularity < {config.niche_popularity_threshold:g})",
        f"Exploration {exploration} (recent new-artist share) vs replay rate {metrics.replay_rate}",
        f"Internationality {internationality} with {leading_country} leading",
        f"Cohesion {cohesion} (genre concentration); Variety {variety}",
    ]

    logger.info(
        f"Taste profile: {label} ({score}) from {len(active_records)}/{total} weighted records"
    )
    return TasteProfile(
        label=label,
        score=score,
        metrics=metrics,
        breakdowns=breakdowns,
        evidence=evidence,
    )
