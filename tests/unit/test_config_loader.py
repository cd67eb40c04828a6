"""Tests for the YAML configuration loader."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from snobify.config_loader import DEFAULT_DATA_PATH, Config
from snobify.exceptions import ConfigError


def write_yaml(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestLoading:
    def test_no_path_uses_defaults(self, monkeypatch):
        monkeypatch.delenv("SNOBIFY_DATA_PATH", raising=False)
        config = Config()
        assert config.data_path == DEFAULT_DATA_PATH
        assert config.log_level == "INFO"
        assert config.stats_config().rare_n == 25

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config(str(tmp_path / "missing.yaml"))

    def test_empty_file(self, tmp_path):
        config = Config(write_yaml(tmp_path, ""))
        assert config.config == {}

    def test_non_mapping_document(self, tmp_path):
        with pytest.raises(ConfigError):
            Config(write_yaml(tmp_path, "- a\n- b\n"))

    def test_non_mapping_section(self, tmp_path):
        with pytest.raises(ConfigError, match="stats"):
            Config(write_yaml(tmp_path, "stats: 5\n"))

    @pytest.mark.parametrize("text", ["stats: [unclosed\n", "stats: {rare_n: 1\n"])
    def test_malformed_yaml(self, tmp_path, text):
        with pytest.raises(ConfigError, match="Could not parse"):
            Config(write_yaml(tmp_path, text))

    def test_non_utf8_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_bytes(b"stats:\n  cutoff_month: \"\xff\"\n")
        with pytest.raises(ConfigError):
            Config(str(path))


class TestSections:
    YAML = """
data:
  path: exports
  origin_table: origins.json
logging:
  level: debug
stats:
  rare_mode: percentile
  rare_percentile: 10
playlist_score:
  primary_country: se
  track_cap: 40
rare_gate:
  min_score: 75
taste_profile:
  owner_aliases: [Alice]
  min_rows: 50
"""

    def test_component_configs(self, tmp_path):
        config = Config(write_yaml(tmp_path, self.YAML))
        assert config.stats_config().rare_mode == "percentile"
        assert config.playlist_score_config().primary_country == "SE"
        assert config.playlist_score_config().track_cap == 40
        assert config.rare_gate_config().min_score == 75
        assert config.taste_profile_config().owner_aliases == ("alice",)
        assert config.library_config().min_listen_year == 2008
        assert config.playlist_ratings_config().min_tracks == 5
        assert config.log_level == "DEBUG"

    def test_env_overrides(self, tmp_path, monkeypatch):
        config = Config(write_yaml(tmp_path, self.YAML))
        monkeypatch.delenv("SNOBIFY_DATA_PATH", raising=False)
        monkeypatch.delenv("SNOBIFY_ORIGIN_TABLE", raising=False)
        assert config.data_path == "exports"
        assert config.origin_table_path == "origins.json"
        monkeypatch.setenv("SNOBIFY_DATA_PATH", "/elsewhere")
        monkeypatch.setenv("SNOBIFY_ORIGIN_TABLE", "/tmp/o.json")
        assert config.data_path == "/elsewhere"
        assert config.origin_table_path == "/tmp/o.json"

    def test_invalid_values_raise(self, tmp_path):
        config = Config(write_yaml(tmp_path, "stats:\n  cutoff_month: '2008-13'\n"))
        with pytest.raises(ConfigError):
            config.stats_config()

    def test_get_default(self):
        assert Config().get("nothing", "here", 7) == 7
