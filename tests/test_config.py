"""Test engine configuration loading.

Tests for plotgraph.configs.loader:
    - Shipped engine.yaml loads and matches the dataclass defaults
    - Missing sections fall back to defaults
    - Invalid values raise ConfigError
    - Missing and empty files
    - LoggingConfig.as_kwargs() feeds setup_logging

Run:
    pytest tests/test_config.py -v
"""

from __future__ import annotations

from pathlib import Path

import pytest

from plotgraph.configs.loader import (
    ConfigError,
    EngineConfig,
    default_config_path,
    load_config,
    parse_config,
)


class TestLoadConfig:
    def test_default_file_exists(self) -> None:
        assert default_config_path().exists()

    def test_default_matches_dataclass_defaults(self) -> None:
        cfg = load_config()
        defaults = EngineConfig()
        assert cfg.cache_enabled == defaults.cache_enabled
        assert cfg.limits == defaults.limits
        assert cfg.sandbox == defaults.sandbox
        assert cfg.logging.log_level == "INFO"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "engine.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigError, match="Empty"):
            load_config(path)

    def test_custom_file(self, tmp_path: Path) -> None:
        path = tmp_path / "engine.yaml"
        path.write_text(
            "engine:\n  cache_enabled: false\nsandbox:\n  seed: 99\n", encoding="utf-8"
        )
        cfg = load_config(path)
        assert cfg.cache_enabled is False
        assert cfg.sandbox.seed == 99
        assert cfg.limits.max_lsystem_length == 50000


class TestParseConfig:
    def test_empty_mapping_gives_defaults(self) -> None:
        assert parse_config({}) == EngineConfig()

    def test_root_must_be_mapping(self) -> None:
        with pytest.raises(ConfigError, match="mapping"):
            parse_config(["not", "a", "mapping"])  # type: ignore[arg-type]

    def test_bad_number(self) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration value"):
            parse_config({"limits": {"max_lsystem_length": "lots"}})

    def test_non_positive_budget(self) -> None:
        with pytest.raises(ConfigError, match="time_budget_s"):
            parse_config({"sandbox": {"time_budget_s": 0}})

    def test_non_positive_startup_timeout(self) -> None:
        with pytest.raises(ConfigError, match="startup_timeout_s"):
            parse_config({"sandbox": {"startup_timeout_s": 0}})

    def test_inline_sandbox(self) -> None:
        cfg = parse_config({"sandbox": {"isolate": False}})
        assert cfg.sandbox.isolate is False
        assert cfg.sandbox.startup_timeout_s == 30.0

    def test_bad_log_level(self) -> None:
        with pytest.raises(ConfigError, match="log_level"):
            parse_config({"logging": {"log_level": "LOUD"}})

    def test_logging_kwargs(self) -> None:
        cfg = parse_config({"logging": {"log_level": "DEBUG", "quiet_libs": ["PIL"]}})
        kwargs = cfg.logging.as_kwargs()
        assert kwargs["log_level"] == "DEBUG"
        assert kwargs["quiet_libs"] == ["PIL"]

    def test_frozen(self) -> None:
        cfg = EngineConfig()
        with pytest.raises(AttributeError):
            cfg.cache_enabled = False  # type: ignore[misc]
