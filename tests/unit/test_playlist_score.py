"""Unit tests for the playlist scorer and the rare-eligibility gate.

Coverage:
- Component metrics (flow, consistency, diversity, shares)
- Penalties, dampeners and bonuses
- Size soft cap and track cap
- Rare gate thresholds
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from snobify.analysis.config import PlaylistScoreConfig, RareGateConfig
from snobify.analysis.origin import Origin, OriginTable
from snobify.analysis.playlist_score import (
    consistency_percent,
    flow_score,
    genre_diversity,
    international_bonus,
    rare_eligibility,
    score_playlist,
    score_playlists,
    weighted_artist_counts,
    megastar_share,
)
from snobify.models import PlaylistScore, PlaylistScoreMetrics

ERA_YEARS = ["1950", "1970", "1988", "2005", "2015"]  # five distinct default eras


def curated(make_record, name, size, **overrides):
    """Smooth, on-theme, niche playlist touching five eras with distinct artists."""
    return [
        make_record(
            f"{name}:{i}",
            track_name=f"{name} {i}",
            artist=f"Artist {name} {i}",
            genres="ambient",
            popularity=10,
            release_date=ERA_YEARS[i % len(ERA_YEARS)],
            source=name,
            **overrides,
        )
        for i in range(size)
    ]


# =============================================================================
# Component metrics
# =============================================================================

class TestFlow:
    """Inverted audio-distance flow."""

    def test_neutral_for_short_lists(self, make_record):
        assert flow_score([]) == 50
        assert flow_score([make_record()]) == 50

    def test_identical_features_are_perfect(self, make_record):
        assert flow_score([make_record("a"), make_record("b")]) == 100

    def test_distance_scaled(self, make_record):
        tracks = [
            make_record("a", danceability=0.0, energy=0.0, valence=0.0),
            make_record("b", danceability=0.5, energy=0.5, valence=0.5),
        ]
        # 100 - sqrt(0.75) * 80 = 30.7
        assert flow_score(tracks) == 31

    def test_non_finite_step_counts_as_half(self, make_record):
        tracks = [make_record("a", energy=float("nan")), make_record("b")]
        assert flow_score(tracks) == 60


class TestGenreMetrics:
    def test_consistency(self, make_record):
        tracks = [make_record(str(i), genres=g) for i, g in enumerate(["rock|pop", "rock", "Rock", "jazz|rock"])]
        assert consistency_percent(tracks) == 75

    def test_diversity_uses_first_two_genres(self, make_record):
        tracks = [make_record("a", genres="a|b|c"), make_record("b", genres="c")]
        # 10 + log2(3) * 20 = 41.7
        assert genre_diversity(tracks) == 42

    def test_diversity_floor(self, make_record):
        assert genre_diversity([make_record("a", genres="")]) == 10


class TestArtistShares:
    def test_features_weigh_a_quarter(self, make_record):
        tracks = [
            make_record("1", artist="A, B"),
            make_record("2", artist="C"),
            make_record("3", artist="D"),
            make_record("4", artist="E"),
        ]
        counts = weighted_artist_counts(tracks, PlaylistScoreConfig())
        assert counts["a"] == 1.0
        assert counts["b"] == 0.25
        # 1 / 4.25
        assert megastar_share(counts) == 24

    def test_ampersand_splits_credits(self, make_record):
        counts = weighted_artist_counts([make_record(artist="Simon & Garfunkel")], PlaylistScoreConfig())
        assert set(counts) == {"simon", "garfunkel"}


class TestInternationalBonus:
    def test_foreign_tracks(self, make_record):
        tracks = [make_record(str(i), country="SE" if i < 4 else "US") for i in range(10)]
        assert international_bonus(tracks, PlaylistScoreConfig()) == 2.0

    def test_capped_plus_unknown(self, make_record):
        tracks = [make_record(str(i), country="JP") for i in range(9)] + [make_record("x", country=None)]
        assert international_bonus(tracks, PlaylistScoreConfig()) == 3.5

    def test_origin_lookup_for_missing_country(self, make_record):
        origins = OriginTable({"Björk": Origin("IS", "EU")})
        tracks = [make_record("a", artist="Bjork", country=None), make_record("b", country="US")]
        assert international_bonus(tracks, PlaylistScoreConfig(), origins) == 1.0

    def test_empty(self):
        assert international_bonus([], PlaylistScoreConfig()) == 0.0


# =============================================================================
# Full score
# =============================================================================

class TestScorePlaylist:
    """End-to-end scoring."""

    def test_single_theme_playlist(self, make_record):
        tracks = [
            make_record(f"t{i}", track_name=f"T{i}", artist=f"Artist {i}", genres="ambient", popularity=10)
            for i in range(15)
        ]
        result = score_playlist("Ambient", tracks)
        m = result.metrics
        assert m.consistency == 100
        assert m.genre_diversity == 10
        assert m.flow == 100
        assert m.niche_share == 100
        assert m.mainstream_share == 0
        # 30 + 20 + 1.8 + 2.16 + 10 + 10 + 0.5 unknown-country bonus
        assert result.score == 74
        assert "Strong flow (100) with on-theme consistency (100%)" in result.reasons

    def test_megastar_penalty(self, make_record):
        tracks = [make_record(f"t{i}", track_name=f"T{i}", artist="Solo") for i in range(12)]
        result = score_playlist("Solo", tracks)
        assert result.metrics.megastar_share == 100
        assert "Megastar domination: 100% from one artist" in result.reasons

    @pytest.mark.parametrize("repeats", [1, 5])
    def test_replay_penalty_applied_once(self, make_record, repeats):
        base = curated(make_record, "Loop", 20)
        tracks = base + [base[0]] * repeats
        config = PlaylistScoreConfig()
        result = score_playlist("Loop", tracks, config)
        clean = score_playlist("Loop", base + [make_record("extra", track_name="Extra", artist="Extra", genres="ambient",
                                                           popularity=10, release_date="1950")], config)
        assert result.metrics.replay_penalty == config.replay_penalty
        assert sum(r.startswith("Replay penalty") for r in result.reasons) == 1
        assert clean.metrics.replay_penalty == 0

    def test_dampeners(self, make_record):
        tracks = [make_record(f"t{i}", track_name=f"T{i}", artist=f"Indie {i}") for i in range(6)]
        tracks += [make_record(f"ts{i}", track_name=f"TS{i}", artist="Taylor Swift") for i in range(2)]
        tracks += [make_record(f"ti{i}", track_name=f"TI{i}", artist="Tiësto") for i in range(2)]
        result = score_playlist("Mixed", tracks)
        assert result.metrics.dampener_penalty == 8
        assert "Mainstream cluster dampener: -8" in result.reasons

    def test_small_playlist_soft_cap(self, make_record):
        small = score_playlist("Small", curated(make_record, "Small", 5))
        assert small.score == 65
        assert "Too small to judge fully (<12)" in small.reasons
        full = score_playlist("Full", curated(make_record, "Full", 12))
        assert full.score == 83

    def test_track_cap(self, make_record):
        tracks = [make_record(f"a{i}", track_name=f"A{i}", genres="rock") for i in range(80)]
        tracks += [make_record(f"b{i}", track_name=f"B{i}", genres="jazz") for i in range(20)]
        result = score_playlist("Big", tracks)
        assert result.size == 100
        assert result.metrics.consistency == 100

    def test_scores_bounded(self, make_record):
        tracks = [
            make_record(f"t{i}", track_name="Same", artist="Taylor Swift", popularity=100,
                        danceability=float(i % 2), energy=float(i % 2), valence=float(i % 2))
            for i in range(3)
        ]
        result = score_playlist("Worst", tracks)
        assert 0 <= result.score <= 100
        for value in result.metrics.to_dict().values():
            assert 0 <= value <= 100

    def test_to_dict_shape(self, make_record):
        payload = score_playlist("X", curated(make_record, "X", 12)).to_dict()
        assert set(payload) == {"name", "size", "score", "reasons", "metrics"}
        assert set(payload["metrics"]) >= {
            "flow", "consistency", "genreDiversity", "eraDiversity", "mainstreamShare",
            "nicheShare", "megastarShare", "replayPenalty", "internationalBonus",
        }

    def test_score_playlists_sorted(self, make_record):
        records = curated(make_record, "Good", 12) + [
            make_record(f"bad{i}", track_name=f"Bad {i}", artist="Solo", popularity=90, source="Bad")
            for i in range(12)
        ]
        scores = score_playlists(records)
        assert [s.name for s in scores] == ["Good", "Bad"]


# =============================================================================
# Rare-eligibility gate
# =============================================================================

def _score(name, size, score):
    metrics = PlaylistScoreMetrics(
        flow=0, consistency=0, genre_diversity=0, era_diversity=0, mainstream_share=0,
        niche_share=0, megastar_share=0, replay_penalty=0, international_bonus=0.0,
    )
    return PlaylistScore(name=name, size=size, score=score, reasons=[], metrics=metrics)


class TestRareEligibility:
    def test_exact_thresholds_eligible(self):
        scores = [_score("a", 10, 82), _score("b", 10, 82), _score("c", 10, 82)]
        result = rare_eligibility(scores, RareGateConfig())
        assert result.eligible is True
        assert result.qualifying == ["a", "b", "c"]

    def test_two_qualifying_not_eligible(self):
        scores = [_score("a", 10, 82), _score("b", 10, 82), _score("c", 9, 99), _score("d", 20, 81)]
        result = rare_eligibility(scores)
        assert result.eligible is False
        assert result.suggested_top3 == ["c", "a", "b"]

    def test_top3_always_returned(self):
        scores = [_score("low", 3, 10), _score("high", 3, 40)]
        result = rare_eligibility(scores)
        assert result.eligible is False
        assert result.suggested_top3 == ["high", "low"]

    def test_configurable(self):
        scores = [_score("a", 5, 50)]
        config = RareGateConfig(min_playlists=1, min_tracks=5, min_score=50)
        assert rare_eligibility(scores, config).eligible is True

    def test_curated_playlists_unlock(self, make_record):
        records = []
        for name in ("One", "Two", "Three"):
            records += curated(make_record, name, 12)
        result = rare_eligibility(score_playlists(records))
        assert result.eligible is True
        assert sorted(result.suggested_top3) == ["One", "Three", "Two"]

    def test_to_dict(self):
        payload = rare_eligibility([]).to_dict()
        assert payload == {"eligible": False, "suggestedTop3": [], "qualifying": []}
