"""
Analytics components.

Each entry point is a pure function over a record list plus an immutable
config; none depends on another's output.
"""

from .config import (
    DEFAULT_DAMPENERS,
    DEFAULT_ERAS,
    DampenerCluster,
    Era,
    LibraryConfig,
    PlaylistRatingsConfig,
    PlaylistScoreConfig,
    RareGateConfig,
    StatsConfig,
    TasteProfileConfig,
)
from .library import analyze_library
from .origin import EMPTY_ORIGINS, Origin, OriginResolver, OriginTable
from .playlist_ratings import compute_playlist_ratings
from .playlist_score import rare_eligibility, score_playlist, score_playlists
from .stats import compute_stats
from .taste_profile import build_taste_profile

__all__ = [
    'DEFAULT_DAMPENERS',
    'DEFAULT_ERAS',
    'DampenerCluster',
    'EMPTY_ORIGINS',
    'Era',
    'LibraryConfig',
    'Origin',
    'OriginResolver',
    'OriginTable',
    'PlaylistRatingsConfig',
    'PlaylistScoreConfig',
    'RareGateConfig',
    'StatsConfig',
    'TasteProfileConfig',
    'analyze_library',
    'build_taste_profile',
    'compute_playlist_ratings',
    'compute_stats',
    'rare_eligibility',
    'score_playlist',
    'score_playlists',
]
