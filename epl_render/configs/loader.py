"""Configuration loader for the label converter.

Loads and validates ``label.yaml`` into typed, frozen dataclasses.
Resolution ratios, canvas size, fonts and PDF417 defaults come from the
config; every section is optional and falls back to the values the
converter has always used (203 dpi printer, 96 dpi screen, 1.5x scale,
565x565 px canvas).

Usage::

    from epl_render.configs.loader import load_config
    cfg = load_config()                     # default path
    cfg = load_config("/custom/label.yaml") # explicit path
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from epl_render.utils.fs import load_yaml

logger = logging.getLogger(__name__)

Color = tuple[int, int, int, int]


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
class UnitSettings:
    """Printer-dot to output-pixel conversion ratio.

    ``scale_factor`` is a cosmetic enlargement on top of the DPI ratio.
    Barcode module sizes are converted with ``scale_factor=1``.
    """

    printer_dpi: float = 203.0
    screen_dpi: float = 96.0
    scale_factor: float = 1.5

    def with_overrides(self, overrides: dict[str, Any] | None) -> UnitSettings:
        """Return a copy where keys present in *overrides* win."""
        if not overrides:
            return self
        return UnitSettings(
            printer_dpi=float(overrides.get("printer_dpi", self.printer_dpi)),
            screen_dpi=float(overrides.get("screen_dpi", self.screen_dpi)),
            scale_factor=float(overrides.get("scale_factor", self.scale_factor)),
        )


@dataclass(frozen=True)
class CanvasConfig:
    """Raster target size in pixels and its initial fill (RGBA)."""

    width_px: int = 565
    height_px: int = 565
    background: Color = (0, 0, 0, 0)


@dataclass(frozen=True)
class TextConfig:
    """Font selection for text directives.

    ``None`` paths fall back to Pillow's bundled scalable font.
    ``baseline_ratio`` places the baseline that fraction of the font size
    below the text origin.
    """

    font_path: str | None = None
    bold_font_path: str | None = None
    baseline_ratio: float = 0.8


@dataclass(frozen=True)
class Pdf417Config:
    """Defaults for PDF417 parameters a label leaves unset."""

    default_columns: int = 6
    default_security_level: int = 2
    default_scale: int = 3
    default_ratio: int = 3


@dataclass(frozen=True)
class LoggingConfig:
    """Logging defaults for the CLI entrypoint."""

    level: str = "WARNING"
    json: bool = False


@dataclass(frozen=True)
class LabelConfig:
    """Top-level converter configuration."""

    units: UnitSettings = field(default_factory=UnitSettings)
    canvas: CanvasConfig = field(default_factory=CanvasConfig)
    text: TextConfig = field(default_factory=TextConfig)
    pdf417: Pdf417Config = field(default_factory=Pdf417Config)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _parse_color(name: str, raw: Any) -> Color:
    """Parse an RGBA colour given as a 4-element list of 0-255 ints."""
    if not isinstance(raw, (list, tuple)) or len(raw) != 4:
        raise ConfigError(f"{name} must be a 4-element RGBA list, got {raw!r}")
    values = tuple(int(v) for v in raw)
    for v in values:
        if not 0 <= v <= 255:
            raise ConfigError(f"{name} channels must be in [0, 255], got {list(values)}")
    return values  # type: ignore[return-value]


def _parse_units(data: dict[str, Any]) -> UnitSettings:
    return UnitSettings().with_overrides(data)


def _parse_canvas(data: dict[str, Any]) -> CanvasConfig:
    defaults = CanvasConfig()
    return CanvasConfig(
        width_px=int(data.get("width_px", defaults.width_px)),
        height_px=int(data.get("height_px", defaults.height_px)),
        background=_parse_color(
            "canvas.background", data.get("background", defaults.background)
        ),
    )


def _parse_text(data: dict[str, Any]) -> TextConfig:
    font_path = data.get("font_path")
    bold_font_path = data.get("bold_font_path")
    return TextConfig(
        font_path=str(font_path) if font_path else None,
        bold_font_path=str(bold_font_path) if bold_font_path else None,
        baseline_ratio=float(data.get("baseline_ratio", 0.8)),
    )


def _parse_pdf417(data: dict[str, Any]) -> Pdf417Config:
    defaults = Pdf417Config()
    return Pdf417Config(
        default_columns=int(data.get("default_columns", defaults.default_columns)),
        default_security_level=int(
            data.get("default_security_level", defaults.default_security_level)
        ),
        default_scale=int(data.get("default_scale", defaults.default_scale)),
        default_ratio=int(data.get("default_ratio", defaults.default_ratio)),
    )


def _parse_logging(data: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(
        level=str(data.get("level", "WARNING")).upper(),
        json=bool(data.get("json", False)),
    )


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: LabelConfig) -> None:
    """Validate cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid combination.
    """
    u = cfg.units
    if u.printer_dpi <= 0 or u.screen_dpi <= 0:
        raise ConfigError(
            f"DPI values must be > 0, got printer_dpi={u.printer_dpi}, "
            f"screen_dpi={u.screen_dpi}"
        )
    if u.scale_factor <= 0:
        raise ConfigError(f"scale_factor must be > 0, got {u.scale_factor}")

    c = cfg.canvas
    if c.width_px <= 0 or c.height_px <= 0:
        raise ConfigError(
            f"Canvas size must be positive, got {c.width_px}x{c.height_px}"
        )

    if not 0.0 < cfg.text.baseline_ratio <= 1.0:
        raise ConfigError(
            f"text.baseline_ratio must be in (0, 1], got {cfg.text.baseline_ratio}"
        )

    p = cfg.pdf417
    if not 1 <= p.default_columns <= 30:
        raise ConfigError(f"pdf417.default_columns must be in [1, 30], got {p.default_columns}")
    if not 0 <= p.default_security_level <= 8:
        raise ConfigError(
            f"pdf417.default_security_level must be in [0, 8], "
            f"got {p.default_security_level}"
        )
    if p.default_scale < 1 or p.default_ratio < 1:
        raise ConfigError(
            f"pdf417 scale and ratio must be >= 1, got "
            f"scale={p.default_scale}, ratio={p.default_ratio}"
        )

    if cfg.logging.level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"Unknown logging.level '{cfg.logging.level}'")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> LabelConfig:
    """Load and validate converter configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``label.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    LabelConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If any field fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "label.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.debug("Loading configuration from %s", path)

    try:
        data: dict[str, Any] = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc

    try:
        config = LabelConfig(
            units=_parse_units(data.get("units") or {}),
            canvas=_parse_canvas(data.get("canvas") or {}),
            text=_parse_text(data.get("text") or {}),
            pdf417=_parse_pdf417(data.get("pdf417") or {}),
            logging=_parse_logging(data.get("logging") or {}),
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc

    _validate_config(config)
    logger.debug("Configuration loaded successfully")
    return config
