"""Tests for logging utilities."""
import argparse
import io
import logging
from pathlib import Path

import pytest

import sys
ROOT_DIR = Path(__file__).resolve().parent.parent.parent
sys.path.insert(0, str(ROOT_DIR))

import snobify.logging_utils as logging_utils
from snobify.logging_utils import (
    RunSummary,
    add_logging_args,
    configure_logging,
    format_count,
    resolve_log_level,
    set_run_id,
    stage_timer,
    truncate_list,
)


@pytest.fixture()
def fresh_logging(monkeypatch):
    """Reset the configured flag and run id around a test."""
    monkeypatch.setattr(logging_utils, "_logging_configured", False)
    yield
    set_run_id(None)


def _capture(name):
    buf = io.StringIO()
    handler = logging.StreamHandler(buf)
    handler.setLevel(logging.DEBUG)
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    return logger, handler, buf


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_basic(self, fresh_logging):
        configure_logging(level='DEBUG', force=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert any(getattr(h, logging_utils._HANDLER_TAG, False) for h in root.handlers)

    def test_configure_logging_with_file(self, fresh_logging, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        configure_logging(level='INFO', log_file=str(log_file), force=True, run_id="abc123")
        logging.getLogger('test_file').info('Test message')

        for handler in logging.getLogger().handlers[:]:
            handler.flush()
            if getattr(handler, 'baseFilename', None) == str(log_file):
                handler.close()
                logging.getLogger().removeHandler(handler)

        content = log_file.read_text(encoding='utf-8')
        assert 'Test message' in content
        assert 'run_id=abc123' in content

    def test_configure_logging_idempotent(self, fresh_logging):
        configure_logging(level='INFO', force=True)
        handler_count = len(logging.getLogger().handlers)

        # Second call should not add handlers
        configure_logging(level='DEBUG')
        assert len(logging.getLogger().handlers) == handler_count

    def test_force_replaces_own_handlers(self, fresh_logging):
        configure_logging(level='INFO', force=True)
        configure_logging(level='INFO', force=True)
        tagged = [h for h in logging.getLogger().handlers if getattr(h, logging_utils._HANDLER_TAG, False)]
        assert len(tagged) == 1

    def test_console_goes_to_stderr(self, fresh_logging, monkeypatch):
        out, err = io.StringIO(), io.StringIO()
        monkeypatch.setattr(logging_utils.sys, "stdout", out)
        monkeypatch.setattr(logging_utils.sys, "stderr", err)
        configure_logging(level="INFO", force=True)

        logging.getLogger("stderr_test").info("hello stderr")
        assert "hello stderr" in err.getvalue()
        assert out.getvalue() == ""

    def test_env_level_override(self, fresh_logging, monkeypatch):
        err = io.StringIO()
        monkeypatch.setattr(logging_utils.sys, "stderr", err)
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        configure_logging(level="DEBUG", force=True)

        logging.getLogger("env_test").warning("not shown")
        assert "not shown" not in err.getvalue()


class TestStageTimer:
    """Tests for stage_timer context manager."""

    def test_stage_timer_completes_normally(self):
        logger, handler, buf = _capture('test_stage_timer_norm')
        with stage_timer("Test stage", logger=logger):
            pass
        logger.removeHandler(handler)

        assert 'Test stage started' in buf.getvalue()
        assert 'Test stage completed' in buf.getvalue()

    def test_stage_timer_completes_on_exception(self):
        logger, handler, buf = _capture('test_stage_timer_exc')
        with pytest.raises(ValueError):
            with stage_timer("Failing stage", logger=logger):
                raise ValueError("Test error")
        logger.removeHandler(handler)

        assert 'Failing stage completed' in buf.getvalue()

    def test_timing_is_readable_after_block(self):
        with stage_timer("Quick stage", logger=logging.getLogger('test_stage_timing')) as timing:
            assert timing.seconds is None
        assert timing.seconds is not None
        assert timing.ms >= 0
        assert timing.describe().startswith("Quick stage completed in ")


class TestFormatting:
    def test_format_count(self):
        assert format_count(1, "track") == "1 track"
        assert format_count(1204, "track") == "1,204 tracks"
        assert format_count(2, "genre", "genres!") == "2 genres!"

    def test_truncate_list(self):
        assert truncate_list([]) == "(none)"
        assert truncate_list(["rock", "pop"]) == "rock, pop"
        assert truncate_list(list("abcde"), max_items=2) == "a, b (+3 more)"


class TestLoggingArgs:
    def _parse(self, argv):
        parser = argparse.ArgumentParser()
        add_logging_args(parser)
        return parser.parse_args(argv)

    def test_default(self):
        assert resolve_log_level(self._parse([])) == 'INFO'

    def test_debug_wins(self):
        assert resolve_log_level(self._parse(['--debug', '--quiet'])) == 'DEBUG'

    def test_quiet(self):
        assert resolve_log_level(self._parse(['--quiet', '--log-level', 'ERROR'])) == 'WARNING'

    def test_explicit_level(self):
        args = self._parse(['--log-level', 'ERROR', '--log-file', 'x.log'])
        assert resolve_log_level(args) == 'ERROR'
        assert args.log_file == 'x.log'


class TestRunSummary:
    def test_logs_metrics(self):
        logger, handler, buf = _capture('test_run_summary')
        summary = RunSummary("Taste Profile", logger=logger)
        summary.add("rows", 1200)
        summary.add("avg_popularity", 41.256)
        summary.increment("playlists_scored")
        summary.increment("playlists_scored", 2)
        summary.log()
        logger.removeHandler(handler)

        output = buf.getvalue()
        assert "TASTE PROFILE SUMMARY" in output
        assert "Rows: 1200" in output
        assert "Avg Popularity: 41.26" in output
        assert "Playlists Scored: 3" in output
        assert "Elapsed:" in output

    def test_increment_replaces_text(self):
        summary = RunSummary("Run")
        summary.add("label", "Balanced Explorer")
        summary.increment("label")
        assert summary.metrics["label"] == 1
