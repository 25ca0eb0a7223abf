"""Engine configuration (``engine.yaml`` + loader)."""

from .loader import (
    ConfigError,
    EngineConfig,
    LimitsConfig,
    LoggingConfig,
    SandboxConfig,
    load_config,
    parse_config,
)

__all__ = [
    "ConfigError",
    "EngineConfig",
    "LimitsConfig",
    "LoggingConfig",
    "SandboxConfig",
    "load_config",
    "parse_config",
]
