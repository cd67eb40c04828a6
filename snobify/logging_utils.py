"""
Logging utilities for Snobify.

The CLI calls configure_logging() once per process. Analytics modules only
hold a module-level logger; they never add handlers or pick levels, so they
stay quiet when embedded in another application.

JSON reports own stdout. Every handler installed here writes to stderr or a
file.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Union

LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')

_logging_configured = False
_run_id: Optional[str] = None

# Marks handlers owned by this module so a forced reconfigure only removes ours
_HANDLER_TAG = "_snobify_handler"

_CONSOLE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s | %(message)s'
_CONSOLE_RUN_FMT = '%(asctime)s | %(levelname)-5s | [%(run_id)s] %(name)s | %(message)s'
_FILE_FMT = '%(asctime)s | %(levelname)-5s | run_id=%(run_id)s | %(name)s:%(lineno)d | %(message)s'


class RunIdFilter(logging.Filter):
    """Stamp the current run_id ("-" when unset) on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id or "-"
        return True


def set_run_id(run_id: Optional[str]) -> None:
    global _run_id
    _run_id = run_id


def _level_number(name: str, fallback: int) -> int:
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else fallback


def _own(handler: logging.Handler, level: int, fmt: str, datefmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    handler.addFilter(RunIdFilter())
    setattr(handler, _HANDLER_TAG, True)
    return handler


def _remove_own_handlers(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()


def configure_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    file_level: str = 'DEBUG',
    force: bool = False,
    run_id: Optional[str] = None,
    console: bool = True,
    show_run_id: bool = False,
) -> None:
    """
    Install Snobify's console and file handlers on the root logger.

    Only the first call takes effect unless force=True. A forced call
    replaces the handlers installed earlier and leaves foreign ones alone.

    Args:
        level: Console level name
        log_file: Also write to this file (parent folders are created)
        file_level: Level for the file handler
        force: Reconfigure even when already configured
        run_id: Identifier stamped on every record for this run
        console: Attach a stderr handler
        show_run_id: Put the run_id in console lines (implied at DEBUG)

    The LOG_LEVEL and LOG_FILE environment variables take precedence over
    level and an unset log_file.
    """
    global _logging_configured

    if run_id:
        set_run_id(run_id)
    if _logging_configured and not force:
        return

    level = os.getenv('LOG_LEVEL') or level
    level = str(level).upper()
    log_file = log_file or os.getenv('LOG_FILE')

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    _remove_own_handlers(root)
    if not any(isinstance(f, RunIdFilter) for f in root.filters):
        root.addFilter(RunIdFilter())

    if console:
        fmt = _CONSOLE_RUN_FMT if (show_run_id or level == 'DEBUG') else _CONSOLE_FMT
        handler = logging.StreamHandler(sys.stderr)
        root.addHandler(_own(handler, _level_number(level, logging.INFO), fmt, '%H:%M:%S'))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding='utf-8')
        root.addHandler(_own(handler, _level_number(file_level, logging.DEBUG), _FILE_FMT, '%Y-%m-%d %H:%M:%S'))

    _logging_configured = True
    logging.getLogger(__name__).debug(
        f"Logging ready (console={level if console else 'off'}, file={log_file or 'off'}, run_id={_run_id or '-'})"
    )


class StageTiming:
    """Elapsed time of a stage_timer block, filled in when the block exits."""

    def __init__(self, name: str):
        self.name = name
        self.seconds: Optional[float] = None

    @property
    def ms(self) -> int:
        return int(round((self.seconds or 0.0) * 1000))

    def describe(self) -> str:
        if self.seconds is None:
            return f"{self.name} still running"
        if self.seconds < 1:
            return f"{self.name} completed in {self.ms}ms"
        return f"{self.name} completed in {self.seconds:.1f}s"


@contextmanager
def stage_timer(stage_name: str, logger: Optional[logging.Logger] = None) -> Iterator[StageTiming]:
    """
    Time one computation stage.

    Logs the start at DEBUG and the elapsed time at INFO, also when the
    block raises. The yielded StageTiming can be read after the block.

        with stage_timer("Taste profile", logger) as timing:
            profile = build_taste_profile(records)
        summary.add("taste_ms", timing.ms)
    """
    log = logger or logging.getLogger(__name__)
    timing = StageTiming(stage_name)
    log.debug(f"{stage_name} started")
    started = time.perf_counter()
    try:
        yield timing
    finally:
        timing.seconds = time.perf_counter() - started
        log.info(timing.describe())


def format_count(n: int, singular: str, plural: Optional[str] = None) -> str:
    """Count with its noun: "1 record", "1,204 records"."""
    noun = singular if n == 1 else (plural or f"{singular}s")
    return f"{n:,} {noun}"


def truncate_list(items: Sequence[Any], max_items: int = 3, format_fn: Callable[[Any], str] = str) -> str:
    """Short display form of a list, e.g. "rock, pop, jazz (+5 more)"."""
    if not items:
        return "(none)"
    shown = [format_fn(item) for item in items[:max_items]]
    hidden = len(items) - len(shown)
    text = ', '.join(shown)
    return f"{text} (+{hidden} more)" if hidden > 0 else text


# (flags, argparse options)
_LOGGING_FLAGS = (
    (('--log-level',), dict(choices=LEVELS, default='INFO', help='Console log level (default: INFO)')),
    (('--debug',), dict(action='store_true', help='Same as --log-level DEBUG')),
    (('--quiet',), dict(action='store_true', help='Same as --log-level WARNING')),
    (('--log-file',), dict(metavar='PATH', help='Also write a DEBUG log to PATH')),
    (('--show-run-id',), dict(action='store_true', help='Prefix console lines with the run id')),
)


def add_logging_args(parser) -> None:
    """Attach the shared logging flags to an argparse parser."""
    group = parser.add_argument_group('logging')
    for flags, options in _LOGGING_FLAGS:
        group.add_argument(*flags, **options)


def resolve_log_level(args) -> str:
    """--debug beats --quiet, which beats --log-level."""
    if getattr(args, 'debug', False):
        return 'DEBUG'
    if getattr(args, 'quiet', False):
        return 'WARNING'
    return getattr(args, 'log_level', 'INFO')


class RunSummary:
    """
    Key figures of a CLI run, logged as one block when the run ends.

    Fields keep insertion order. Floats are shown with two decimals.
    """

    def __init__(self, title: str, logger: Optional[logging.Logger] = None):
        self.title = title
        self.logger = logger or logging.getLogger(__name__)
        self.metrics: Dict[str, Union[int, float, str]] = {}
        self._started = time.perf_counter()

    def add(self, key: str, value: Union[int, float, str]) -> None:
        self.metrics[key] = value

    def increment(self, key: str, amount: int = 1) -> None:
        current = self.metrics.get(key, 0)
        self.metrics[key] = (current if isinstance(current, (int, float)) else 0) + amount

    def lines(self) -> List[str]:
        rows = [f"{self.title.upper()} SUMMARY"]
        for key, value in self.metrics.items():
            shown = f"{value:.2f}" if isinstance(value, float) else str(value)
            rows.append(f"  {key.replace('_', ' ').title()}: {shown}")
        rows.append(f"  Elapsed: {time.perf_counter() - self._started:.1f}s")
        return rows

    def log(self, level: int = logging.INFO) -> None:
        rule = "-" * 48
        for line in [rule, *self.lines(), rule]:
            self.logger.log(level, line)
