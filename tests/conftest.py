"""Test configuration and fixtures."""

import sys
from pathlib import Path
from typing import List

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from snobify.models import PlayRecord


def _build_record(track_id: str = "spotify:track:1", **overrides) -> PlayRecord:
    """Build a PlayRecord with sensible defaults for testing."""
    fields = dict(
        track_name=f"Song {track_id}",
        artist="Some Artist",
        album="Some Album",
        genres="ambient",
        release_date="2015-06-01",
        played_at="2022-03-01T12:00:00Z",
        popularity=50.0,
        valence=0.5,
        energy=0.5,
        danceability=0.5,
        source="Mix",
    )
    fields.update(overrides)
    return PlayRecord(track_id=track_id, **fields)


def _build_playlist(name: str, size: int, **overrides) -> List[PlayRecord]:
    """Build `size` distinct tracks (distinct names and ids) in one source."""
    return [
        _build_record(
            track_id=f"{name}:{i}",
            track_name=f"{name} track {i}",
            source=name,
            **overrides,
        )
        for i in range(size)
    ]


@pytest.fixture()
def make_record():
    """Factory for PlayRecord objects."""
    return _build_record


@pytest.fixture()
def make_playlist():
    """Factory for a list of distinct tracks sharing one source."""
    return _build_playlist
