"""
Analysis Configuration
======================

Immutable configuration values for each analytics component. A config is
passed into every computation call; nothing reads module-level tunables, so
parallel requests can run with different settings.

Every config class has defaults matching the shipped heuristics and a
from_dict() constructor that accepts a YAML section (unknown keys are logged
and ignored).
"""
from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Literal, Mapping, Optional, Tuple, Type, TypeVar

from snobify.exceptions import ConfigError
from snobify.string_utils import artist_key, normalize_text

logger = logging.getLogger(__name__)

RareMode = Literal["top_n", "percentile"]

_MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")

T = TypeVar("T")


@dataclass(frozen=True)
class Era:
    """A named release-year range used for era diversity."""
    id: str
    label: str
    start: int
    end: int
    genre_hints: Tuple[str, ...] = ()

    def contains(self, year: int) -> bool:
        return self.start <= year <= self.end


@dataclass(frozen=True)
class DampenerCluster:
    """A set of big-name artists whose dominance costs a playlist a few points."""
    label: str
    artists: FrozenSet[str]
    penalty: int

    def __post_init__(self):
        # Store artist keys so lookups match split_artists() output
        object.__setattr__(self, "artists", frozenset(artist_key(a) for a in self.artists))
        if self.penalty < 0:
            raise ConfigError(f"Dampener penalty must be >= 0, got {self.penalty}")


# Ranges overlap on purpose: the first matching era wins.
DEFAULT_ERAS: Tuple[Era, ...] = (
    Era("roots", "Blues & Roots", 1900, 1959, ("blues", "delta", "ragtime")),
    Era("hippie", "Hippie / Psychedelic", 1967, 1975, ("psychedelic", "hippie", "acid rock")),
    Era("soulfunk", "Classic Soul & Funk", 1965, 1979, ("soul", "funk", "motown")),
    Era("goldhip", "Golden-Age Hip-Hop", 1986, 1996, ("hip hop", "rap", "boom bap")),
    Era("rnb90s", "90s R&B", 1990, 1999, ("r&b", "new jack", "neo soul")),
    Era("indie00s", "2000s Indie/Blog", 2000, 2009, ("indie", "blog", "garage revival")),
    Era("pop10s", "Streaming Pop 2010s", 2010, 2019, ("pop", "edm", "trap pop")),
    Era("now20s", "Current 2020s", 2020, 2100, ("all",)),
)

DEFAULT_DAMPENERS: Tuple[DampenerCluster, ...] = (
    DampenerCluster(
        "mainstream pop",
        frozenset({
            "taylor swift", "dua lipa", "ed sheeran", "justin bieber", "olivia rodrigo",
            "katy perry", "ariana grande", "maroon 5", "bruno mars", "the weeknd",
        }),
        4,
    ),
    DampenerCluster(
        "top-tier EDM",
        frozenset({
            "david guetta", "martin garrix", "calvin harris", "tiesto", "avicii",
            "zedd", "kygo", "alan walker", "marshmello", "hardwell",
            "armin van buuren", "diplo", "afrojack", "skrillex", "deadmau5",
        }),
        4,
    ),
    DampenerCluster(
        "modern country",
        frozenset({
            "morgan wallen", "luke combs", "kane brown", "luke bryan",
            "jason aldean", "thomas rhett",
        }),
        3,
    ),
)


def _check_range(name: str, value: float, lo: float, hi: float) -> None:
    if not (lo <= value <= hi):
        raise ConfigError(f"{name} must be in [{lo}, {hi}], got {value}")


_SCALAR_TYPES = {
    "bool": (bool,),
    "int": (int,),
    "float": (int, float),
    "str": (str,),
}


def _checked(key: str, value: Any, annotation: Any) -> Any:
    """Reject a scalar option whose YAML type does not match the field."""
    name = annotation if isinstance(annotation, str) else getattr(annotation, "__name__", "")
    accepted = _SCALAR_TYPES.get(name)
    if accepted is None:
        return value
    if not isinstance(value, accepted) or (name != "bool" and isinstance(value, bool)):
        raise ConfigError(f"{key} must be {name}, got {value!r}")
    return value


def _from_mapping(cls: Type[T], overrides: Optional[Mapping[str, Any]], converters=None) -> T:
    """
    Build a frozen config from a mapping, ignoring unknown keys.

    Raises:
        ConfigError: a value has the wrong type or shape
    """
    if not overrides:
        return cls()
    converters = converters or {}
    types = {f.name: f.type for f in dataclasses.fields(cls)}
    kwargs: Dict[str, Any] = {}
    try:
        for key, value in overrides.items():
            if key not in types:
                logger.warning(f"Ignoring unknown {cls.__name__} option: {key}")
                continue
            convert = converters.get(key)
            kwargs[key] = convert(value) if convert else _checked(key, value, types[key])
        return cls(**kwargs)
    except ConfigError:
        raise
    except (TypeError, ValueError, KeyError) as exc:
        raise ConfigError(f"Invalid {cls.__name__} option: {exc}") from exc


@dataclass(frozen=True)
class StatsConfig:
    """Configuration for the library-wide stats aggregator."""
    cutoff_month: str = "2008-10"  # public launch month of the streaming service
    drop_pre_cutoff: bool = True
    top_genres_limit: int = 15
    weighted_averages: bool = True
    rare_mode: RareMode = "top_n"
    rare_n: int = 25
    rare_percentile: float = 5.0

    def __post_init__(self):
        if not _MONTH_RE.match(self.cutoff_month):
            raise ConfigError(f"cutoff_month must look like YYYY-MM, got {self.cutoff_month!r}")
        if self.rare_mode not in ("top_n", "percentile"):
            raise ConfigError(f"Unsupported rare_mode {self.rare_mode!r}")
        if self.top_genres_limit < 0 or self.rare_n < 0:
            raise ConfigError("top_genres_limit and rare_n must be >= 0")
        _check_range("rare_percentile", self.rare_percentile, 0, 100)

    @classmethod
    def from_dict(cls, overrides: Optional[Mapping[str, Any]] = None) -> "StatsConfig":
        return _from_mapping(cls, overrides, {"cutoff_month": str})


@dataclass(frozen=True)
class LibraryConfig:
    """Configuration for the time-depth / vintage-vs-modern library view."""
    min_listen_year: int = 2008
    vintage_age_years: int = 10
    top_genres_all: int = 15
    top_genres_bucket: int = 10
    favorite_genres: int = 8
    favorite_artists: int = 5
    history_only: bool = False

    @classmethod
    def from_dict(cls, overrides: Optional[Mapping[str, Any]] = None) -> "LibraryConfig":
        return _from_mapping(cls, overrides)


@dataclass(frozen=True)
class PlaylistRatingsConfig:
    """Configuration for the per-playlist debug ratings."""
    min_tracks: int = 5
    deep_cut_popularity: float = 20
    cross_genre_scale: float = 25
    deep_cut_scale: float = 50
    top_n: int = 5

    def __post_init__(self):
        if self.min_tracks < 1:
            raise ConfigError(f"min_tracks must be >= 1, got {self.min_tracks}")

    @classmethod
    def from_dict(cls, overrides: Optional[Mapping[str, Any]] = None) -> "PlaylistRatingsConfig":
        return _from_mapping(cls, overrides)


def _eras_from_list(items) -> Tuple[Era, ...]:
    return tuple(
        item if isinstance(item, Era) else Era(
            id=str(item["id"]),
            label=str(item.get("label", item["id"])),
            start=int(item["start"]),
            end=int(item["end"]),
            genre_hints=tuple(item.get("genre_hints", ())),
        )
        for item in items
    )


def _dampeners_from_list(items) -> Tuple[DampenerCluster, ...]:
    return tuple(
        item if isinstance(item, DampenerCluster) else DampenerCluster(
            label=str(item["label"]),
            artists=frozenset(item.get("artists", ())),
            penalty=int(item.get("penalty", 0)),
        )
        for item in items
    )


@dataclass(frozen=True)
class PlaylistScoreConfig:
    """
    Tunable knobs for the playlist scorer.

    Popularity thresholds: >= mainstream_threshold is mainstream,
    < niche_threshold is niche. Shares are percentages.
    """
    flow_target: int = 60
    min_consistency: int = 75
    min_genre_diversity: int = 55
    min_playlist_size: int = 12
    small_playlist_cap: int = 65
    mainstream_threshold: float = 71
    niche_threshold: float = 35
    feature_artist_weight: float = 0.25
    track_cap: int = 80
    replay_penalty: int = 5
    megastar_max_share: int = 25
    megastar_penalty: int = 12
    primary_country: str = "US"
    intl_bonus_per_track: float = 0.5
    intl_bonus_cap: float = 3
    intl_unknown_bonus: float = 0.5
    dampener_share: float = 0.18
    dampeners: Tuple[DampenerCluster, ...] = DEFAULT_DAMPENERS
    eras: Tuple[Era, ...] = DEFAULT_ERAS
    flow_distance_scale: float = 80
    artist_delimiters: str = ",&"

    def __post_init__(self):
        if self.track_cap < 1:
            raise ConfigError(f"track_cap must be >= 1, got {self.track_cap}")
        if self.replay_penalty < 0 or self.megastar_penalty < 0:
            raise ConfigError("Penalties must be >= 0")
        _check_range("feature_artist_weight", self.feature_artist_weight, 0.0, 1.0)
        _check_range("dampener_share", self.dampener_share, 0.0, 1.0)
        _check_range("megastar_max_share", self.megastar_max_share, 0, 100)

    @classmethod
    def from_dict(cls, overrides: Optional[Mapping[str, Any]] = None) -> "PlaylistScoreConfig":
        return _from_mapping(cls, overrides, {
            "eras": _eras_from_list,
            "dampeners": _dampeners_from_list,
            "primary_country": lambda v: str(v).upper(),
        })


@dataclass(frozen=True)
class RareGateConfig:
    """Thresholds for unlocking the rare feature."""
    min_playlists: int = 3
    min_tracks: int = 10
    min_score: int = 82

    def __post_init__(self):
        if self.min_playlists < 1:
            raise ConfigError(f"min_playlists must be >= 1, got {self.min_playlists}")
        _check_range("min_score", self.min_score, 0, 100)

    @classmethod
    def from_dict(cls, overrides: Optional[Mapping[str, Any]] = None) -> "RareGateConfig":
        return _from_mapping(cls, overrides)


@dataclass(frozen=True)
class TasteProfileConfig:
    """
    Configuration for the weighted taste profile.

    owner_aliases: lowercase usernames treated as the library owner. When
    empty, the not-owner downweight is disabled.
    """
    niche_popularity_threshold: float = 31
    recency_boost_max: float = 0.10
    recency_decay_years: float = 1.5
    not_owner_downweight: float = 0.5
    owner_aliases: Tuple[str, ...] = ()
    source_cap_pct: float = 35
    min_rows: int = 300
    exploration_window: float = 0.2
    primary_country: str = "US"
    favorite_min_count: int = 3
    favorite_min_share: float = 0.05
    favorite_top_share: float = 0.2

    def __post_init__(self):
        object.__setattr__(self, "owner_aliases", tuple(normalize_text(a) for a in self.owner_aliases if a))
        _check_range("recency_boost_max", self.recency_boost_max, 0.0, 1.0)
        _check_range("not_owner_downweight", self.not_owner_downweight, 0.0, 1.0)
        _check_range("source_cap_pct", self.source_cap_pct, 0, 100)
        _check_range("exploration_window", self.exploration_window, 0.0, 1.0)
        if self.recency_decay_years <= 0:
            raise ConfigError(f"recency_decay_years must be > 0, got {self.recency_decay_years}")
        if self.min_rows < 0:
            raise ConfigError(f"min_rows must be >= 0, got {self.min_rows}")

    @classmethod
    def from_dict(cls, overrides: Optional[Mapping[str, Any]] = None) -> "TasteProfileConfig":
        return _from_mapping(cls, overrides, {
            "owner_aliases": lambda v: tuple([v] if isinstance(v, str) else v),
            "primary_country": lambda v: str(v).upper(),
        })
