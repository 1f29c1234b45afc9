"""Converter configuration loading and validation."""

from epl_render.configs.loader import (
    CanvasConfig,
    ConfigError,
    LabelConfig,
    LoggingConfig,
    Pdf417Config,
    TextConfig,
    UnitSettings,
    load_config,
)

__all__ = [
    "CanvasConfig",
    "ConfigError",
    "LabelConfig",
    "LoggingConfig",
    "Pdf417Config",
    "TextConfig",
    "UnitSettings",
    "load_config",
]
