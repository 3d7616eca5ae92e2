"""Enums for monitored parameters and alert kinds."""
from enum import Enum


class Parameter(str, Enum):
    TEMPERATURE = "temperature"
    PH = "ph"
    SALINITY = "salinity"
    TDS = "tds"


class AlertKind(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @classmethod
    def parse(cls, value):
        """Accept an AlertKind or its string value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown alert kind: {value!r}") from None


class ConditionKey(str, Enum):
    TEMP_LOW = "temp-low"
    TEMP_HIGH = "temp-high"
    PH_LOW = "ph-low"
    PH_HIGH = "ph-high"
    SAL_LOW = "sal-low"
    SAL_HIGH = "sal-high"
    TDS_LOW = "tds-low"
    TDS_HIGH = "tds-high"
