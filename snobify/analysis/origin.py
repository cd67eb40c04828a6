"""
Artist origin lookup.

An offline JSON table maps artist names to a country code and a continent:

    {"bjork": {"country": "IS", "continent": "EU"}, ...}

The table is loaded once and never mutated, so a single instance can be
shared by concurrent computations. Components receive a resolver as an
argument; a missing table simply means every artist is "Unknown".
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional, Union

from snobify.string_utils import artist_key

logger = logging.getLogger(__name__)

UNKNOWN_ORIGIN = "Unknown"


@dataclass(frozen=True)
class Origin:
    country: Optional[str] = None
    continent: Optional[str] = None


class OriginResolver:
    """Read-only artist -> Origin lookup. Subclass or duck-type for tests."""

    def lookup(self, artist: str) -> Optional[Origin]:
        raise NotImplementedError


class OriginTable(OriginResolver):
    """
    In-memory origin table keyed by artist_key().

    Args:
        entries: artist name -> Origin (names are normalized on load)
    """

    def __init__(self, entries: Optional[Mapping[str, Origin]] = None):
        table = {}
        for name, origin in (entries or {}).items():
            key = artist_key(name)
            if key:
                table[key] = origin
        self._table = MappingProxyType(table)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, artist: str) -> bool:
        return artist_key(artist) in self._table

    def lookup(self, artist: str) -> Optional[Origin]:
        if not artist:
            return None
        return self._table.get(artist_key(artist))

    @classmethod
    def from_dict(cls, raw: Mapping[str, Mapping[str, str]]) -> "OriginTable":
        entries = {}
        for name, info in raw.items():
            if not isinstance(info, Mapping):
                logger.debug(f"Skipping malformed origin entry for {name!r}")
                continue
            country = info.get("country")
            continent = info.get("continent")
            entries[name] = Origin(
                country=str(country).upper() if country else None,
                continent=str(continent) if continent else None,
            )
        return cls(entries)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "OriginTable":
        """
        Load a table from a JSON file.

        A missing file yields an empty table. An unreadable or malformed file
        is logged and also yields an empty table.
        """
        path = Path(path)
        if not path.exists():
            logger.info(f"No origin table at {path}; artist origins will be Unknown")
            return cls()
        try:
            with open(path, "r", encoding="utf-8") as handle:
                raw = json.load(handle)
        except (OSError, ValueError) as exc:
            logger.warning(f"Could not read origin table {path}: {exc}")
            return cls()
        if not isinstance(raw, dict):
            logger.warning(f"Origin table {path} is not a JSON object; ignoring it")
            return cls()

        table = cls.from_dict(raw)
        logger.info(f"Loaded {len(table)} artist origins from {path}")
        return table


EMPTY_ORIGINS = OriginTable()
