"""Statistical Band Settings Manager - load, migrate and persist the band configuration.

Persisted configs have gone through three schema shapes:

1. legacy: flat sigma-named levels (``sigma1``, ``sigma2``, ``sigma2_5``, ``sigma3``)
2. unversioned intermediate: canonical level names, but levels may lack
   ``sigma_multiplier`` and the top level may lack ``use_cumulative_mode``
3. current: complete, tagged with ``schema_version``

Configs written by this module always carry ``schema_version``. Untagged
configs are classified by inspecting their keys.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from basket_chart.core.config import BAND_NAMES, LINE_STYLES
from basket_chart.services.json_storage import JsonStorage
from basket_chart.utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_VERSION = 3

BAND_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "mean": {"enabled": True, "sigma_multiplier": 0.0, "color": "#ffffff", "opacity": 0.6, "line_weight": 1, "line_style": "dotted"},
    "band1": {"enabled": True, "sigma_multiplier": 1.0, "color": "#4169e1", "opacity": 0.3, "line_weight": 1, "line_style": "solid"},
    "band2": {"enabled": True, "sigma_multiplier": 2.0, "color": "#ff6b35", "opacity": 0.3, "line_weight": 1, "line_style": "solid"},
    "band3": {"enabled": True, "sigma_multiplier": 2.5, "color": "#ffd23f", "opacity": 0.3, "line_weight": 1, "line_style": "solid"},
    "band4": {"enabled": True, "sigma_multiplier": 3.0, "color": "#ee4266", "opacity": 0.3, "line_weight": 1, "line_style": "solid"},
}

CONFIG_DEFAULTS: Dict[str, Any] = {
    "enabled": False,
    "use_cumulative_mode": False,
    "show_filled_areas": True,
}

# Legacy level keys per canonical band, by fixed positional correspondence
LEGACY_LEVEL_KEYS: Dict[str, Tuple[str, ...]] = {
    "band1": ("sigma1",),
    "band2": ("sigma2",),
    "band3": ("sigma2_5", "sigma2.5"),
    "band4": ("sigma3",),
}
_ALL_LEGACY_KEYS = {key for keys in LEGACY_LEVEL_KEYS.values() for key in keys}

# Legacy levels only ever carried these fields
_LEGACY_LEVEL_FIELDS = ("enabled", "color", "opacity")

# Older exports spelled fields in camelCase or under previous names
_CONFIG_ALIASES = {
    "useVwapStyle": "use_cumulative_mode",
    "use_vwap_style": "use_cumulative_mode",
    "useCumulativeMode": "use_cumulative_mode",
    "showFilledAreas": "show_filled_areas",
    "schemaVersion": "schema_version",
}
_LEVEL_ALIASES = {
    "sigmaValue": "sigma_multiplier",
    "sigma_value": "sigma_multiplier",
    "sigmaMultiplier": "sigma_multiplier",
    "lineWeight": "line_weight",
    "lineStyle": "line_style",
}


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def _valid_field(name: str, value: Any) -> bool:
    if name == "enabled":
        return isinstance(value, bool)
    if name in ("sigma_multiplier", "line_weight"):
        return _is_number(value) and value >= 0
    if name == "opacity":
        return _is_number(value) and 0 <= value <= 1
    if name == "color":
        return isinstance(value, str) and bool(value.strip())
    if name == "line_style":
        return value in LINE_STYLES
    return False


@dataclass(frozen=True)
class BandLevelConfig:
    """Appearance and sigma multiplier of one band level."""

    enabled: bool
    sigma_multiplier: float
    color: str
    opacity: float
    line_weight: float
    line_style: str

    @classmethod
    def default(cls, name: str) -> "BandLevelConfig":
        return cls(**BAND_DEFAULTS[name])

    @classmethod
    def from_dict(cls, data: Any, default: "BandLevelConfig") -> "BandLevelConfig":
        """Build a level from stored fields; missing or invalid fields use the default's."""
        if not isinstance(data, dict):
            return default

        values = {}
        for name in BAND_DEFAULTS["mean"]:
            value = data.get(name)
            if name in data and _valid_field(name, value):
                if name in ("sigma_multiplier", "opacity"):
                    value = float(value)
                values[name] = value
            else:
                values[name] = getattr(default, name)
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "sigma_multiplier": self.sigma_multiplier,
            "color": self.color,
            "opacity": self.opacity,
            "line_weight": self.line_weight,
            "line_style": self.line_style,
        }


def _default_levels() -> Dict[str, BandLevelConfig]:
    return {name: BandLevelConfig.default(name) for name in BAND_NAMES}


@dataclass(frozen=True)
class StatisticalBandConfig:
    """Resolved band configuration; always holds every level in BAND_NAMES."""

    enabled: bool = False
    use_cumulative_mode: bool = False
    levels: Dict[str, BandLevelConfig] = field(default_factory=_default_levels)
    show_filled_areas: bool = True

    def level(self, name: str) -> BandLevelConfig:
        return self.levels.get(name) or BandLevelConfig.default(name)

    def with_level(self, name: str, **changes: Any) -> "StatisticalBandConfig":
        """Return a copy with one level's fields replaced."""
        levels = dict(self.levels)
        levels[name] = replace(self.level(name), **changes)
        return replace(self, levels=levels)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "enabled": self.enabled,
            "use_cumulative_mode": self.use_cumulative_mode,
            "show_filled_areas": self.show_filled_areas,
            "levels": {name: self.level(name).to_dict() for name in BAND_NAMES},
        }


def default_config() -> StatisticalBandConfig:
    return StatisticalBandConfig()


def _apply_aliases(data: Dict[str, Any], aliases: Dict[str, str]) -> Dict[str, Any]:
    """Rename aliased keys; a key already present under its canonical name wins."""
    normalized = {}
    for key, value in data.items():
        canonical = aliases.get(key)
        if canonical is None:
            normalized[key] = value
        elif canonical not in data:
            normalized[canonical] = value
    return normalized


def detect_schema_version(data: Dict[str, Any], levels: Dict[str, Any]) -> int:
    """Schema version of a normalized persisted config."""
    tag = data.get("schema_version")
    if isinstance(tag, int) and not isinstance(tag, bool) and tag >= 1:
        return min(tag, SCHEMA_VERSION)

    if any(key in levels for key in _ALL_LEGACY_KEYS):
        return 1

    if "use_cumulative_mode" not in data:
        return 2
    for name in BAND_NAMES:
        level = levels.get(name)
        if not isinstance(level, dict) or "sigma_multiplier" not in level:
            return 2

    return SCHEMA_VERSION


def _migrate_legacy_levels(data: Dict[str, Any], levels: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Version 1 -> 2: map sigma-named levels onto canonical band names."""
    migrated_levels: Dict[str, Any] = {"mean": dict(BAND_DEFAULTS["mean"])}

    for band, legacy_keys in LEGACY_LEVEL_KEYS.items():
        level = dict(BAND_DEFAULTS[band])
        legacy = next((levels[key] for key in legacy_keys if key in levels), None)
        if isinstance(legacy, dict):
            for name in _LEGACY_LEVEL_FIELDS:
                if name in legacy:
                    level[name] = legacy[name]
        migrated_levels[band] = level

    migrated = {
        "enabled": data.get("enabled", CONFIG_DEFAULTS["enabled"]),
        "use_cumulative_mode": False,
        "show_filled_areas": data.get("show_filled_areas", CONFIG_DEFAULTS["show_filled_areas"]),
    }
    return migrated, migrated_levels


def _fill_missing_fields(data: Dict[str, Any], levels: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Version 2 -> 3: merge each present level over its default, add absent levels."""
    filled_levels = {}
    for name in BAND_NAMES:
        level = dict(BAND_DEFAULTS[name])
        present = levels.get(name)
        if isinstance(present, dict):
            level.update(present)
        filled_levels[name] = level

    filled = dict(data)
    filled.setdefault("use_cumulative_mode", CONFIG_DEFAULTS["use_cumulative_mode"])
    return filled, filled_levels


def _build_config(data: Dict[str, Any], levels: Dict[str, Any]) -> StatisticalBandConfig:
    """Merge over defaults at the top level and per level; invalid values fall back."""
    top = {}
    for name, default in CONFIG_DEFAULTS.items():
        value = data.get(name, default)
        top[name] = value if isinstance(value, bool) else default

    resolved_levels = {
        name: BandLevelConfig.from_dict(levels.get(name), BandLevelConfig.default(name))
        for name in BAND_NAMES
    }
    return StatisticalBandConfig(levels=resolved_levels, **top)


def migrate_config(persisted: Any) -> Tuple[StatisticalBandConfig, bool]:
    """
    Resolve a persisted config to the current schema.

    Returns (config, migrated) where migrated tells whether the stored
    value should be rewritten: it was in an older schema, or resolving it
    filled in or replaced fields so it differs from the canonical form.

    Raises:
        TypeError: persisted value is not a config mapping
    """
    if not isinstance(persisted, dict):
        raise TypeError(f"Expected a mapping, got {type(persisted).__name__}")

    data = _apply_aliases(persisted, _CONFIG_ALIASES)
    raw_levels = data.get("levels", {})
    if not isinstance(raw_levels, dict):
        raise TypeError(f"Expected 'levels' mapping, got {type(raw_levels).__name__}")

    levels = {
        key: _apply_aliases(value, _LEVEL_ALIASES) if isinstance(value, dict) else value
        for key, value in raw_levels.items()
    }

    version = detect_schema_version(data, levels)
    outdated = version < SCHEMA_VERSION

    if version == 1:
        data, levels = _migrate_legacy_levels(data, levels)
        version = 2
    if version == 2:
        data, levels = _fill_missing_fields(data, levels)

    config = _build_config(data, levels)
    return config, outdated or config.to_dict() != persisted


class StatisticalBandSettingsManager:
    """
    ConfigStore for the statistical band configuration.

    resolve() never raises: anything it cannot interpret yields the default
    configuration. Configs migrated from an older schema, or resolved with
    filled-in fields, are written back immediately so this only runs once.
    """

    SETTINGS_KEY = "statistical_band_config"

    def __init__(self, storage: Optional[JsonStorage] = None):
        self._storage = storage if storage is not None else JsonStorage()

    def load(self) -> StatisticalBandConfig:
        """Read the stored config and resolve it."""
        return self.resolve(self._storage.get_item(self.SETTINGS_KEY))

    def resolve(self, persisted: Any) -> StatisticalBandConfig:
        if persisted is None:
            return default_config()

        try:
            config, migrated = migrate_config(persisted)
        except (TypeError, ValueError, ArithmeticError, AttributeError, KeyError) as e:
            logger.warning("Falling back to default band config: %s", e)
            return default_config()

        if migrated:
            logger.info("Rewriting statistical band config as schema version %d", SCHEMA_VERSION)
            self.persist(config)
        return config

    def persist(self, config: StatisticalBandConfig) -> None:
        """Overwrite the stored config with the complete resolved object."""
        self._storage.set_item(self.SETTINGS_KEY, config.to_dict())
