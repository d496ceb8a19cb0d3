"""Tests for configuration loading."""

import logging

import pytest

from config import FractalParams, LoggingParams, ScannerConfig, load_config, setup_logging


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("FRACTALS_LOG_LEVEL", raising=False)
    monkeypatch.delenv("FRACTALS_DATA_FILE", raising=False)


class TestLoadConfig:
    """Test YAML loading, defaults and environment overrides."""

    def test_defaults_when_missing(self, tmp_path):
        cfg = load_config(tmp_path / "nope.yaml")
        assert isinstance(cfg, ScannerConfig)
        assert cfg.fractals == FractalParams()
        assert cfg.fractals.min_size == 2
        assert cfg.fractals.max_count == 5
        assert cfg.logging.level == "INFO"
        assert cfg.data_file == ""

    def test_yaml_sections(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "fractals:\n"
            "  min_size: 4\n"
            "  require_right_min_size: true\n"
            "  unknown_key: 1\n"
            "logging:\n"
            "  level: DEBUG\n"
            "data_file: bars.csv\n"
        )
        cfg = load_config(path)
        assert cfg.fractals.min_size == 4
        assert cfg.fractals.require_right_min_size is True
        assert cfg.fractals.check_left is True
        assert not hasattr(cfg.fractals, "unknown_key")
        assert cfg.logging.level == "DEBUG"
        assert cfg.data_file == "bars.csv"

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).fractals == FractalParams()

    def test_section_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("fractals: 3\n")
        assert load_config(path).fractals == FractalParams()

    def test_env_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: DEBUG\n")
        monkeypatch.setenv("FRACTALS_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("FRACTALS_DATA_FILE", "/tmp/bars.json")
        cfg = load_config(path)
        assert cfg.logging.level == "WARNING"
        assert cfg.data_file == "/tmp/bars.json"


class TestSetupLogging:

    def test_unknown_level_falls_back(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
        setup_logging(LoggingParams(level="chatty"))
        assert calls["level"] == logging.INFO

    def test_level_name(self, monkeypatch):
        calls = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.update(kw))
        setup_logging(LoggingParams(level="debug"))
        assert calls["level"] == logging.DEBUG
        assert "%(message)s" in calls["format"]
