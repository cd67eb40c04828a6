"""
Record and result types for the Snobify analytics core.

PlayRecord is the validated input row. Everything else is a derived,
request-scoped result: built fresh on each computation call and never
mutated afterwards. Result types expose to_dict() producing the camelCase
JSON shapes served to the dashboard.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class PlayRecord:
    """
    One track play/add event from a playlist or history export.

    Attributes:
        track_id: Unique track identifier (dedup key, never empty)
        artist: Raw artist string; may list several comma-separated artists
        genres: Raw genre string, pipe- or comma-delimited
        release_date / added_at / played_at: Raw date strings, parsed lazily
        added_by: Username of the contributor who added the track
        country: ISO country code from the export, if present
        source: Originating file or playlist name
    """
    track_id: str
    track_name: str = ""
    artist: str = ""
    album: str = ""
    genres: str = ""
    release_date: str = ""
    added_at: Optional[str] = None
    played_at: Optional[str] = None
    added_by: Optional[str] = None
    popularity: float = 0.0
    valence: float = 0.0
    energy: float = 0.0
    danceability: float = 0.0
    acousticness: float = 0.0
    instrumentalness: float = 0.0
    tempo: float = 0.0
    country: Optional[str] = None
    source: Optional[str] = None


@dataclass(frozen=True)
class GenreCount:
    genre: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"genre": self.genre, "count": self.count}


@dataclass(frozen=True)
class NamedCount:
    name: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "count": self.count}


@dataclass(frozen=True)
class TrendPoint:
    month: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"month": self.month, "count": self.count}


@dataclass(frozen=True)
class RareTrack:
    name: str
    artist: str
    pop: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "artist": self.artist, "pop": self.pop}


@dataclass(frozen=True)
class TasteVector:
    """Mean audio features over unique tracks (rounded to 3 decimals)."""
    avg_valence: float
    avg_energy: float
    avg_danceability: float
    acoustic_bias: float
    instrumental_bias: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avgValence": self.avg_valence,
            "avgEnergy": self.avg_energy,
            "avgDanceability": self.avg_danceability,
            "acousticBias": self.acoustic_bias,
            "instrumentalBias": self.instrumental_bias,
        }


@dataclass(frozen=True)
class PlaylistRaterResult:
    """Library-wide rater scores, integers in [0, 100]."""
    variety: int
    rarity: int
    cohesion: int
    creativity: int
    overall: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variety": self.variety,
            "rarityScore": self.rarity,
            "cohesion": self.cohesion,
            "creativity": self.creativity,
            "overall": self.overall,
        }


@dataclass(frozen=True)
class StatsMeta:
    hash: str
    rows: int
    window_start: str
    window_end: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "rows": self.rows,
            "window": {"start": self.window_start, "end": self.window_end},
        }


@dataclass(frozen=True)
class Stats:
    top_unique_genres: List[GenreCount]
    discovery_trend: List[TrendPoint]
    rare_tracks: List[RareTrack]
    taste: TasteVector
    playlist_rater: PlaylistRaterResult
    activity_trend: List[TrendPoint]
    snob: str
    meta: StatsMeta
    unique_tracks: int = 0
    unique_plays: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topUniqueGenres": [g.to_dict() for g in self.top_unique_genres],
            "discoveryTrend": [p.to_dict() for p in self.discovery_trend],
            "rareTracks": [t.to_dict() for t in self.rare_tracks],
            "taste": self.taste.to_dict(),
            "playlistRater": self.playlist_rater.to_dict(),
            "activityTrend": [p.to_dict() for p in self.activity_trend],
            "snob": self.snob,
            "_counters": {"uniqueTracks": self.unique_tracks, "uniquePlays": self.unique_plays},
            "meta": self.meta.to_dict(),
        }


@dataclass(frozen=True)
class GenreFavorites:
    """Favourite artists for one genre."""
    genre: str
    artists: List[NamedCount]

    def to_dict(self) -> Dict[str, Any]:
        return {"genre": self.genre, "artists": [a.to_dict() for a in self.artists]}


@dataclass(frozen=True)
class TimeDepth:
    earliest_year: Optional[int]
    latest_year: Optional[int]
    span_years: int
    decades: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "earliestYear": self.earliest_year,
            "latestYear": self.latest_year,
            "spanYears": self.span_years,
            "decades": list(self.decades),
        }


@dataclass(frozen=True)
class LibraryAnalysis:
    time_depth: TimeDepth
    top_genres_all: List[NamedCount]
    vintage_genres_top: List[NamedCount]
    top_genres_modern: List[NamedCount]
    genre_contrast: int
    favorites_per_genre: List[GenreFavorites]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeDepth": self.time_depth.to_dict(),
            "topGenresAll": [g.to_dict() for g in self.top_genres_all],
            "vintageGenresTop": [g.to_dict() for g in self.vintage_genres_top],
            "topGenresModern": [g.to_dict() for g in self.top_genres_modern],
            "genreContrast": self.genre_contrast,
            "favoritesPerGenre": [f.to_dict() for f in self.favorites_per_genre],
        }


@dataclass(frozen=True)
class PlaylistRating:
    """Per-playlist debug rating (cohesion-heavy weighting)."""
    name: str
    tracks: int
    unique_artists: int
    cohesion: int
    variety: int
    rarity: int
    creativity: int
    overall: int
    top_artists: List[NamedCount] = field(default_factory=list)
    top_genres: List[GenreCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tracks": self.tracks,
            "uniqueArtists": self.unique_artists,
            "cohesion": self.cohesion,
            "variety": self.variety,
            "rarity": self.rarity,
            "creativity": self.creativity,
            "overall": self.overall,
            "topArtists": [a.to_dict() for a in self.top_artists],
            "topGenres": [g.to_dict() for g in self.top_genres],
        }


@dataclass(frozen=True)
class PlaylistScoreMetrics:
    """
    Component metrics of a playlist score.

    All shares are integer percentages. replay_penalty is a positive number of
    points subtracted; international_bonus may be fractional.
    """
    flow: int
    consistency: int
    genre_diversity: int
    era_diversity: int
    mainstream_share: int
    niche_share: int
    megastar_share: int
    replay_penalty: int
    international_bonus: float
    dampener_penalty: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flow": self.flow,
            "consistency": self.consistency,
            "genreDiversity": self.genre_diversity,
            "eraDiversity": self.era_diversity,
            "mainstreamShare": self.mainstream_share,
            "nicheShare": self.niche_share,
            "megastarShare": self.megastar_share,
            "replayPenalty": self.replay_penalty,
            "internationalBonus": self.international_bonus,
            "dampenerPenalty": self.dampener_penalty,
        }


@dataclass(frozen=True)
class PlaylistScore:
    name: str
    size: int
    score: int
    reasons: List[str]
    metrics: PlaylistScoreMetrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "size": self.size,
            "score": self.score,
            "reasons": list(self.reasons),
            "metrics": self.metrics.to_dict(),
        }


@dataclass(frozen=True)
class RareEligibility:
    eligible: bool
    suggested_top3: List[str]
    qualifying: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "eligible": self.eligible,
            "suggestedTop3": list(self.suggested_top3),
            "qualifying": list(self.qualifying),
        }


@dataclass(frozen=True)
class TasteMetrics:
    variety: int = 0
    rarity: int = 0
    cohesion: int = 0
    exploration: int = 0
    internationality: int = 0
    era_balance: int = 0
    replay_rate: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "variety": self.variety,
            "rarity": self.rarity,
            "cohesion": self.cohesion,
            "exploration": self.exploration,
            "internationality": self.internationality,
            "eraBalance": self.era_balance,
            "replayRate": self.replay_rate,
        }


@dataclass(frozen=True)
class TasteBreakdowns:
    by_decade: List[Dict[str, Any]] = field(default_factory=list)
    by_5y: List[Dict[str, Any]] = field(default_factory=list)
    countries: List[NamedCount] = field(default_factory=list)
    continents: List[NamedCount] = field(default_factory=list)
    top_genres: List[NamedCount] = field(default_factory=list)
    favorites_per_genre: List[GenreFavorites] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "byDecade": list(self.by_decade),
            "by5y": list(self.by_5y),
            "countries": [c.to_dict() for c in self.countries],
            "continents": [c.to_dict() for c in self.continents],
            "topGenres": [g.to_dict() for g in self.top_genres],
            "favoritesPerGenre": [f.to_dict() for f in self.favorites_per_genre],
        }


@dataclass(frozen=True)
class TasteProfile:
    label: str
    score: int
    metrics: TasteMetrics
    breakdowns: TasteBreakdowns
    evidence: List[str] = field(default_factory=list)
    provisional: bool = False
    rude_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "label": self.label,
            "score": self.score,
            "metrics": self.metrics.to_dict(),
            "breakdowns": self.breakdowns.to_dict(),
            "evidence": list(self.evidence),
        }
        if self.provisional:
            out["provisional"] = True
            out["rudeMessage"] = self.rude_message
        return out
