"""Load, validate, and hot-reload the BBT analysis configuration.

The config lives in ``analysis_config.yaml`` alongside this module.  At
startup it is loaded once and cached.  Call ``reload_analysis_config()`` to
re-read from disk after an edit, with no restart required.

Usage::

    from src.bbt.config_loader import get_analysis_config

    config = get_analysis_config()
    config.fertile_window.min_readings_per_month   # 14
    config.cycle_length.clamp(40)                  # 35
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger("bbt.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "analysis_config.yaml"


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass
class TemperatureConfig:
    """Accepted temperature range in °F (inclusive)."""

    min_f: float = 95.0
    max_f: float = 105.0


@dataclass
class FertileWindowConfig:
    """Fertile window detection settings."""

    window_days: int = 7
    min_readings_per_month: int = 14


@dataclass
class CycleLengthConfig:
    """Cycle length heuristic settings.

    A window starting on ``reference_day`` of its month corresponds to a
    ``baseline_days`` cycle; every day of offset shifts the estimate by one
    day, clamped to ``[min_days, max_days]``.
    """

    baseline_days: int = 28
    reference_day: int = 14
    min_days: int = 21
    max_days: int = 35

    def clamp(self, days: int) -> int:
        return max(self.min_days, min(self.max_days, days))


@dataclass
class AnalysisConfig:
    """Complete, validated analysis configuration.

    Attributes:
        version:        Config schema version string.
        temperature:    Accepted reading range.
        fertile_window: Detector settings.
        cycle_length:   Predictor heuristic settings.
    """

    version: str = "1.0"
    temperature: TemperatureConfig = field(default_factory=TemperatureConfig)
    fertile_window: FertileWindowConfig = field(default_factory=FertileWindowConfig)
    cycle_length: CycleLengthConfig = field(default_factory=CycleLengthConfig)
    _raw: dict = field(default_factory=dict, repr=False)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when analysis_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Analysis config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> AnalysisConfig:
    """Validate the raw YAML dict and construct an AnalysisConfig.

    Missing keys fall back to the dataclass defaults; every invalid value is
    collected before raising so the error lists all problems at once.

    Raises:
        ConfigValidationError: If any value is invalid.
    """
    errors: list[str] = []

    def _number(section: dict, key: str, name: str, default, cast):
        value = section.get(key, default)
        if isinstance(value, bool):
            errors.append(f"{name}.{key} must be a number, got {value!r}")
            return default
        try:
            result = cast(value)
        except (TypeError, ValueError):
            errors.append(f"{name}.{key} must be a number, got {value!r}")
            return default
        if cast is int and result != value:
            errors.append(f"{name}.{key} must be a whole number, got {value!r}")
            return default
        return result

    def _section(key: str) -> dict:
        value = raw.get(key) or {}
        if not isinstance(value, dict):
            errors.append(f"'{key}' must be a mapping")
            return {}
        return value

    if not isinstance(raw, dict):
        raise ConfigValidationError("analysis_config.yaml must contain a mapping")

    version = str(raw.get("version", "1.0"))

    # ── Temperature range ──
    t_raw = _section("temperature")
    temperature = TemperatureConfig(
        min_f=_number(t_raw, "min_f", "temperature", 95.0, float),
        max_f=_number(t_raw, "max_f", "temperature", 105.0, float),
    )
    if temperature.min_f >= temperature.max_f:
        errors.append(
            f"temperature.min_f ({temperature.min_f}) must be below "
            f"temperature.max_f ({temperature.max_f})"
        )

    # ── Fertile window ──
    fw_raw = _section("fertile_window")
    fertile_window = FertileWindowConfig(
        window_days=_number(fw_raw, "window_days", "fertile_window", 7, int),
        min_readings_per_month=_number(
            fw_raw, "min_readings_per_month", "fertile_window", 14, int
        ),
    )
    if fertile_window.window_days < 1:
        errors.append("fertile_window.window_days must be at least 1")
    if fertile_window.min_readings_per_month < fertile_window.window_days:
        errors.append(
            "fertile_window.min_readings_per_month must be >= window_days "
            f"({fertile_window.min_readings_per_month} < {fertile_window.window_days})"
        )

    # ── Cycle length ──
    cl_raw = _section("cycle_length")
    cycle_length = CycleLengthConfig(
        baseline_days=_number(cl_raw, "baseline_days", "cycle_length", 28, int),
        reference_day=_number(cl_raw, "reference_day", "cycle_length", 14, int),
        min_days=_number(cl_raw, "min_days", "cycle_length", 21, int),
        max_days=_number(cl_raw, "max_days", "cycle_length", 35, int),
    )
    if cycle_length.min_days > cycle_length.max_days:
        errors.append(
            f"cycle_length.min_days ({cycle_length.min_days}) must not exceed "
            f"cycle_length.max_days ({cycle_length.max_days})"
        )
    if not (1 <= cycle_length.reference_day <= 31):
        errors.append(
            f"cycle_length.reference_day = {cycle_length.reference_day} "
            "is out of range [1, 31]"
        )

    if errors:
        raise ConfigValidationError(
            f"analysis_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return AnalysisConfig(
        version=version,
        temperature=temperature,
        fertile_window=fertile_window,
        cycle_length=cycle_length,
        _raw=raw,
    )


def load_analysis_config(path: Path | None = None) -> AnalysisConfig:
    """Load and validate the analysis config from disk.

    Args:
        path: Override path to YAML. Uses the bundled analysis_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded analysis config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: AnalysisConfig | None = None
_config_lock = threading.Lock()


def get_analysis_config() -> AnalysisConfig:
    """Return the global AnalysisConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_analysis_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_analysis_config()
    return _config


def reload_analysis_config(path: Path | None = None) -> AnalysisConfig:
    """Reload the analysis config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_analysis_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info(
        "Reloaded analysis config: %s → %s",
        old_version,
        new_config.version,
    )
    return new_config
