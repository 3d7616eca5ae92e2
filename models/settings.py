"""Threshold configuration shared by the evaluator, notifier and settings editor."""
import logging
import math
from dataclasses import dataclass, asdict, fields, replace

from utils.coerce import to_bool, to_float
from utils.units import normalize_salinity_bound

logger = logging.getLogger("reefmonitor.models.settings")

# wire key -> attribute name
SETTINGS_FIELDS = {
    "tempMin": "temp_min",
    "tempMax": "temp_max",
    "tempSetpoint": "temp_setpoint",
    "tempHysteresis": "temp_hysteresis",
    "phMin": "ph_min",
    "phMax": "ph_max",
    "phAlertEnabled": "ph_alert_enabled",
    "salinityMin": "salinity_min",
    "salinityMax": "salinity_max",
    "salinityAlertEnabled": "salinity_alert_enabled",
    "tdsMin": "tds_min",
    "tdsMax": "tds_max",
    "tdsAlertEnabled": "tds_alert_enabled",
    "refreshInterval": "refresh_interval",
    "alertsEnabled": "alerts_enabled",
    "soundEnabled": "sound_enabled",
    "autoModeEnabled": "auto_mode_enabled",
}
_ATTR_TO_KEY = {v: k for k, v in SETTINGS_FIELDS.items()}
_SALINITY_ATTRS = {"salinity_min", "salinity_max"}
# ppm bounds are whole numbers on the wire when they are integral
_PPM_ATTRS = {"tds_min", "tds_max"}


@dataclass(frozen=True)
class ThresholdConfig:
    temp_min: float = 24.0
    temp_max: float = 27.0
    temp_setpoint: float = 25.5
    temp_hysteresis: float = 0.5
    ph_min: float = 8.0
    ph_max: float = 8.4
    ph_alert_enabled: bool = True
    salinity_min: float = 1.022  # SG
    salinity_max: float = 1.028  # SG
    salinity_alert_enabled: bool = True
    tds_min: float = 100  # ppm
    tds_max: float = 400  # ppm
    tds_alert_enabled: bool = True
    refresh_interval: int = 3  # seconds
    alerts_enabled: bool = True
    sound_enabled: bool = False
    auto_mode_enabled: bool = True

    @classmethod
    def field_types(cls):
        return {f.name: f.type for f in fields(cls)}

    @classmethod
    def attr_name(cls, key):
        """Resolve a wire key (tempMin) or attribute name (temp_min); None if unknown."""
        if key in SETTINGS_FIELDS:
            return SETTINGS_FIELDS[key]
        if key in _ATTR_TO_KEY:
            return key
        return None

    @classmethod
    def coerce_value(cls, attr, value, default):
        """Coerce one raw value for `attr`, falling back to `default`."""
        kind = cls.field_types()[attr]
        if kind is bool:
            return to_bool(value, default)
        if attr in _SALINITY_ATTRS:
            return normalize_salinity_bound(value, default)
        number = to_float(value)
        if not math.isfinite(number):
            return default
        if kind is int:
            number = int(number)
            return number if number >= 1 else default
        return number

    @classmethod
    def from_dict(cls, data):
        """Build a fully populated config from a stored dict.

        Missing or malformed fields take their defaults, legacy salinity
        bounds stored as SG x 1000 are scaled down, and unknown keys are
        ignored. Never raises.
        """
        defaults = cls()
        if not isinstance(data, dict):
            return defaults

        values = {}
        for key, raw in data.items():
            attr = cls.attr_name(key)
            if attr is None:
                logger.debug(f"Ignoring unknown settings key: {key}")
                continue
            values[attr] = cls.coerce_value(attr, raw, getattr(defaults, attr))
        return replace(defaults, **values)

    def to_dict(self):
        """JSON wire form with camelCase keys."""
        data = {}
        for attr, value in asdict(self).items():
            if attr in _PPM_ATTRS and float(value).is_integer():
                value = int(value)
            data[_ATTR_TO_KEY[attr]] = value
        return data

    def updated(self, **changes):
        """Return a copy with `changes` applied (attribute names)."""
        return replace(self, **changes)
