"""
Snobify command line.

Loads playlist exports, runs one analytics component and writes its JSON
report to stdout (or --out). Logs go to stderr.

Examples:
    snobify --data ./exports stats
    snobify --config config.yaml --data ./exports taste --seed 7
    snobify --data ./exports playlists --out scores.json
"""
import argparse
import json
import logging
import random
import sys
import uuid
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from snobify import __version__
from snobify.analysis import (
    OriginTable,
    analyze_library,
    build_taste_profile,
    compute_playlist_ratings,
    compute_stats,
    rare_eligibility,
    score_playlists,
)
from snobify.config_loader import Config
from snobify.exceptions import DataNotFoundError, SnobifyError
from snobify.ingest import load_records
from snobify.logging_utils import (
    RunSummary,
    add_logging_args,
    configure_logging,
    format_count,
    resolve_log_level,
    stage_timer,
    truncate_list,
)
from snobify.models import PlayRecord

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_DATA = 2


class RunContext:
    """Everything a command needs: records, settings, lookups, randomness."""

    def __init__(self, records: List[PlayRecord], config: Config, origins: OriginTable, rng: random.Random):
        self.records = records
        self.config = config
        self.origins = origins
        self.rng = rng


def run_stats(ctx: RunContext, summary: RunSummary) -> Dict[str, Any]:
    stats = compute_stats(ctx.records, ctx.config.stats_config(), rng=ctx.rng)
    summary.add("unique_tracks", stats.unique_tracks)
    summary.add("unique_plays", stats.unique_plays)
    return stats.to_dict()


def run_library(ctx: RunContext, summary: RunSummary) -> Dict[str, Any]:
    analysis = analyze_library(ctx.records, ctx.config.library_config())
    summary.add("genre_contrast", analysis.genre_contrast)
    return analysis.to_dict()


def run_ratings(ctx: RunContext, summary: RunSummary) -> Dict[str, Any]:
    ratings = compute_playlist_ratings(ctx.records, ctx.config.playlist_ratings_config())
    summary.add("playlists_rated", len(ratings))
    return {"playlists": [r.to_dict() for r in ratings]}


def run_playlists(ctx: RunContext, summary: RunSummary) -> Dict[str, Any]:
    scores = score_playlists(ctx.records, ctx.config.playlist_score_config(), ctx.origins)
    gate = rare_eligibility(scores, ctx.config.rare_gate_config())
    summary.add("playlists_scored", len(scores))
    summary.add("rare_eligible", str(gate.eligible))
    logger.info(f"Top playlists: {truncate_list(gate.suggested_top3)}")
    return {"playlists": [s.to_dict() for s in scores], "rare": gate.to_dict()}


def run_taste(ctx: RunContext, summary: RunSummary) -> Dict[str, Any]:
    profile = build_taste_profile(
        ctx.records, ctx.config.taste_profile_config(), origins=ctx.origins, rng=ctx.rng,
    )
    summary.add("label", profile.label)
    summary.add("score", profile.score)
    return profile.to_dict()


COMMANDS: Dict[str, Callable[[RunContext, RunSummary], Dict[str, Any]]] = {
    "stats": run_stats,
    "library": run_library,
    "ratings": run_ratings,
    "playlists": run_playlists,
    "taste": run_taste,
}

_COMMAND_HELP = {
    "stats": "Library-wide summary: top genres, trends, rare tracks, taste vector",
    "library": "Time depth and vintage vs modern genre contrast",
    "ratings": "Per-playlist debug ratings",
    "playlists": "Playlist curation scores and the rare-eligibility gate",
    "taste": "Weighted taste profile with persona label",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snobify",
        description="Judge a music library from its playlist exports",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=str,
        metavar="PATH",
        help="YAML configuration file (default: built-in settings)",
    )
    parser.add_argument(
        "--data",
        type=str,
        metavar="PATH",
        help="CSV file or folder of CSV exports (default: config data.path or SNOBIFY_DATA_PATH)",
    )
    parser.add_argument(
        "--origin-table",
        type=str,
        metavar="PATH",
        help="Artist origin JSON table (default: config data.origin_table)",
    )
    parser.add_argument(
        "--out",
        type=str,
        metavar="FILE",
        help="Write the JSON report to FILE instead of stdout",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Seed for the canned remarks (makes output reproducible)",
    )
    add_logging_args(parser)

    sub = parser.add_subparsers(dest="command", metavar="command")
    sub.required = True
    for name in COMMANDS:
        sub.add_parser(name, help=_COMMAND_HELP[name])
    return parser


def _write_json(payload: Dict[str, Any], out: Optional[str]) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if out:
        out_path = Path(out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text + "\n", encoding="utf-8")
        logger.info(f"Wrote report to {out_path}")
    else:
        sys.stdout.write(text + "\n")


def _error_payload(kind: str, exc: Exception) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": kind, "message": str(exc)}
    hint = getattr(exc, "hint", "")
    if hint:
        payload["hint"] = hint
    return payload


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config(args.config)
    except (FileNotFoundError, SnobifyError) as exc:
        configure_logging(level=resolve_log_level(args), log_file=args.log_file)
        logger.error(f"Could not load configuration: {exc}")
        _write_json(_error_payload("Config", exc), None)
        return EXIT_ERROR

    explicit_level = args.debug or args.quiet or args.log_level != "INFO"
    configure_logging(
        level=resolve_log_level(args) if explicit_level else config.log_level,
        log_file=args.log_file or config.log_file,
        run_id=uuid.uuid4().hex[:8],
        show_run_id=args.show_run_id,
    )

    summary = RunSummary(f"snobify {args.command}", logger)
    rng = random.Random(args.seed)
    data_path = args.data or config.data_path

    try:
        with stage_timer("Load records", logger) as loading:
            records = load_records(data_path)
        summary.add("records", len(records))
        summary.add("load_ms", loading.ms)
        logger.info(f"Loaded {format_count(len(records), 'record')} from {data_path}")

        origins = OriginTable.from_json(args.origin_table or config.origin_table_path)
        ctx = RunContext(records, config, origins, rng)

        with stage_timer(f"Command '{args.command}'", logger) as computing:
            payload = COMMANDS[args.command](ctx, summary)
        summary.add("compute_ms", computing.ms)
        _write_json(payload, args.out)
    except DataNotFoundError as exc:
        logger.error(f"No data: {exc}")
        _write_json(_error_payload("DataNotFound", exc), None)
        return EXIT_NO_DATA
    except SnobifyError as exc:
        logger.error(f"{args.command} failed: {exc}")
        _write_json(_error_payload("Unknown", exc), None)
        return EXIT_ERROR

    summary.log()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
