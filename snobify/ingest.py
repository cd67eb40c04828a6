"""
CSV ingestion for playlist exports.

Turns Exportify-style CSV files into validated PlayRecord objects. This is
the only place that touches the filesystem for track data; the analytics
components never see raw rows.

Expected columns (only "Track URI" is required):
    Track URI, Track Name, Artist Name(s), Album Name, Genres, Release Date,
    Added At, Added By, Played At, Popularity, Valence, Energy, Danceability,
    Acousticness, Instrumentalness, Tempo, Country
"""
import csv
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from snobify.analysis.utils import safe_float
from snobify.exceptions import CsvSchemaError, DataNotFoundError
from snobify.models import PlayRecord

logger = logging.getLogger(__name__)

ID_COLUMN = "Track URI"

_TEXT_COLUMNS = {
    "track_name": "Track Name",
    "artist": "Artist Name(s)",
    "album": "Album Name",
    "genres": "Genres",
    "release_date": "Release Date",
}
_OPTIONAL_COLUMNS = {
    "added_at": "Added At",
    "added_by": "Added By",
    "played_at": "Played At",
    "country": "Country",
}
_NUMERIC_COLUMNS = {
    "popularity": "Popularity",
    "valence": "Valence",
    "energy": "Energy",
    "danceability": "Danceability",
    "acousticness": "Acousticness",
    "instrumentalness": "Instrumentalness",
    "tempo": "Tempo",
}


def _text(row: Dict[str, Optional[str]], column: str) -> str:
    return (row.get(column) or "").strip()


def row_to_record(row: Dict[str, Optional[str]], source: Optional[str] = None) -> Optional[PlayRecord]:
    """
    Convert one CSV row into a PlayRecord.

    Returns None when the row has no track identifier. Missing or
    unparsable numbers default to 0.
    """
    track_id = _text(row, ID_COLUMN)
    if not track_id:
        return None

    kwargs = {field: _text(row, column) for field, column in _TEXT_COLUMNS.items()}
    kwargs.update({field: (_text(row, column) or None) for field, column in _OPTIONAL_COLUMNS.items()})
    kwargs.update({field: safe_float(row.get(column)) for field, column in _NUMERIC_COLUMNS.items()})
    return PlayRecord(track_id=track_id, source=source, **kwargs)


def read_csv(path: Union[str, Path], source: Optional[str] = None) -> List[PlayRecord]:
    """
    Read one export file.

    Args:
        path: CSV file
        source: Source name attached to every record (defaults to the file stem)

    Returns:
        Records in file order; rows without an identifier are dropped

    Raises:
        DataNotFoundError: path does not exist, or is not UTF-8 CSV
        CsvSchemaError: the header lacks the "Track URI" column
    """
    path = Path(path)
    if not path.is_file():
        raise DataNotFoundError(f"CSV not found at {path}", hint="Check the --data path")
    source = source or path.stem

    records: List[PlayRecord] = []
    dropped = 0
    try:
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                logger.debug(f"{path.name}: empty file")
                return records
            headers = {h.strip() for h in reader.fieldnames if h}
            if ID_COLUMN not in headers:
                raise CsvSchemaError(f"{path.name}: missing required column '{ID_COLUMN}'")
            for row in reader:
                row = {(k or "").strip(): v for k, v in row.items()}
                record = row_to_record(row, source)
                if record is None:
                    dropped += 1
                    continue
                records.append(record)
    except (UnicodeDecodeError, csv.Error) as exc:
        raise DataNotFoundError(f"Could not read {path.name}: {exc}", hint="Save the export as UTF-8 CSV") from exc

    if dropped:
        logger.debug(f"{path.name}: dropped {dropped} rows without '{ID_COLUMN}'")
    logger.debug(f"{path.name}: {len(records)} records")
    return records


def read_playlist_dir(directory: Union[str, Path]) -> List[PlayRecord]:
    """
    Read every *.csv in a directory, one playlist per file.

    Unreadable or malformed files are logged and skipped.

    Raises:
        DataNotFoundError: no CSV files, or none could be read
    """
    directory = Path(directory)
    files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".csv")
    if not files:
        raise DataNotFoundError(
            f"No CSV files found in {directory}",
            hint="Export your playlists (e.g. with Exportify) into this folder",
        )

    records: List[PlayRecord] = []
    loaded = 0
    for path in files:
        try:
            records.extend(read_csv(path))
            loaded += 1
        except (CsvSchemaError, DataNotFoundError, OSError) as exc:
            logger.warning(f"Skipping {path.name}: {exc}")

    if loaded == 0:
        raise DataNotFoundError(f"None of the {len(files)} CSV files in {directory} could be read")
    logger.info(f"Loaded {len(records)} records from {loaded}/{len(files)} CSV files in {directory}")
    return records


def load_records(path: Union[str, Path]) -> List[PlayRecord]:
    """Load records from a single CSV file or a directory of them."""
    path = Path(path)
    if path.is_dir():
        return read_playlist_dir(path)
    if path.is_file():
        return read_csv(path)
    raise DataNotFoundError(
        f"No data at {path}",
        hint="Pass --data or set SNOBIFY_DATA_PATH to a CSV file or folder",
    )
