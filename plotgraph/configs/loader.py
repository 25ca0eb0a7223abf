"""Configuration loader for the evaluation engine.

Loads and validates ``engine.yaml`` into typed, frozen dataclasses.
Resource ceilings (L-system growth, stamp counts, attractor iterations)
and the custom-code budget come from the config -- evaluators never
hardcode them.

Usage::

    from plotgraph.configs.loader import load_config
    cfg = load_config()                      # default path
    cfg = load_config("/custom/engine.yaml") # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from plotgraph.utils.fs import load_yaml

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LimitsConfig:
    """Ceilings on generator output size."""

    max_lsystem_length: int = 50000
    max_stamped_paths: int = 5000
    max_attractor_iterations: int = 100000
    attractor_divergence: float = 1.0e6


@dataclass(frozen=True)
class SandboxConfig:
    """Custom-code execution budget.

    With ``isolate`` each script runs in a worker process that is killed
    once ``time_budget_s`` has passed, which also stops long calls into C
    code.  ``startup_timeout_s`` bounds the worker start before the
    script clock begins.  Without ``isolate`` only the in-process line
    trace enforces the budget.
    """

    time_budget_s: float = 2.0
    max_steps: int = 5_000_000
    seed: int = 12345
    isolate: bool = True
    startup_timeout_s: float = 30.0


@dataclass(frozen=True)
class LoggingConfig:
    """Arguments forwarded to ``setup_logging``."""

    log_level: str = "INFO"
    log_file: str | None = None
    json: bool = False
    color: bool = True
    quiet_libs: tuple[str, ...] = ()

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "log_level": self.log_level,
            "log_file": self.log_file,
            "json": self.json,
            "color": self.color,
            "quiet_libs": list(self.quiet_libs),
        }


@dataclass(frozen=True)
class EngineConfig:
    """Top-level configuration handed to ``Engine``."""

    cache_enabled: bool = True
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    sandbox: SandboxConfig = field(default_factory=SandboxConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate(cfg: EngineConfig) -> None:
    lim = cfg.limits
    if lim.max_lsystem_length < 1:
        raise ConfigError(
            f"limits.max_lsystem_length must be >= 1, got {lim.max_lsystem_length}"
        )
    if lim.max_stamped_paths < 1:
        raise ConfigError(
            f"limits.max_stamped_paths must be >= 1, got {lim.max_stamped_paths}"
        )
    if lim.max_attractor_iterations < 100:
        raise ConfigError(
            "limits.max_attractor_iterations must be >= 100, "
            f"got {lim.max_attractor_iterations}"
        )
    if lim.attractor_divergence <= 0:
        raise ConfigError(
            f"limits.attractor_divergence must be > 0, got {lim.attractor_divergence}"
        )

    sb = cfg.sandbox
    if sb.time_budget_s <= 0:
        raise ConfigError(f"sandbox.time_budget_s must be > 0, got {sb.time_budget_s}")
    if sb.max_steps < 1:
        raise ConfigError(f"sandbox.max_steps must be >= 1, got {sb.max_steps}")
    if sb.startup_timeout_s <= 0:
        raise ConfigError(
            f"sandbox.startup_timeout_s must be > 0, got {sb.startup_timeout_s}"
        )

    if cfg.logging.log_level.upper() not in _LOG_LEVELS:
        raise ConfigError(
            f"logging.log_level must be one of {_LOG_LEVELS}, "
            f"got {cfg.logging.log_level!r}"
        )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def default_config_path() -> Path:
    """Path of the ``engine.yaml`` shipped alongside this module."""
    return Path(__file__).parent / "engine.yaml"


def parse_config(data: dict[str, Any]) -> EngineConfig:
    """Build and validate an ``EngineConfig`` from a parsed mapping.

    Parameters
    ----------
    data : dict
        Mapping with the ``engine.yaml`` structure.  Missing sections
        fall back to the dataclass defaults.

    Returns
    -------
    EngineConfig

    Raises
    ------
    ConfigError
        If a value has the wrong type or fails validation.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping, got {type(data).__name__}")

    try:
        engine_data = data.get("engine") or {}
        lim_data = data.get("limits") or {}
        sb_data = data.get("sandbox") or {}
        log_data = data.get("logging") or {}

        limits = LimitsConfig(
            max_lsystem_length=int(lim_data.get("max_lsystem_length", 50000)),
            max_stamped_paths=int(lim_data.get("max_stamped_paths", 5000)),
            max_attractor_iterations=int(lim_data.get("max_attractor_iterations", 100000)),
            attractor_divergence=float(lim_data.get("attractor_divergence", 1.0e6)),
        )
        sandbox = SandboxConfig(
            time_budget_s=float(sb_data.get("time_budget_s", 2.0)),
            max_steps=int(sb_data.get("max_steps", 5_000_000)),
            seed=int(sb_data.get("seed", 12345)),
            isolate=bool(sb_data.get("isolate", True)),
            startup_timeout_s=float(sb_data.get("startup_timeout_s", 30.0)),
        )
        logging_cfg = LoggingConfig(
            log_level=str(log_data.get("log_level", "INFO")),
            log_file=log_data.get("log_file"),
            json=bool(log_data.get("json", False)),
            color=bool(log_data.get("color", True)),
            quiet_libs=tuple(str(x) for x in log_data.get("quiet_libs") or ()),
        )
        cfg = EngineConfig(
            cache_enabled=bool(engine_data.get("cache_enabled", True)),
            limits=limits,
            sandbox=sandbox,
            logging=logging_cfg,
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc

    _validate(cfg)
    return cfg


def load_config(path: str | Path | None = None) -> EngineConfig:
    """Load and validate engine configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``engine.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    EngineConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If the file is empty or any field fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = default_config_path() if path is None else Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    cfg = parse_config(data)
    logger.debug(
        "Config: cache=%s max_lsystem_length=%d sandbox=%.2fs/%d steps",
        cfg.cache_enabled,
        cfg.limits.max_lsystem_length,
        cfg.sandbox.time_budget_s,
        cfg.sandbox.max_steps,
    )
    return cfg
