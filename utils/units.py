"""Salinity unit normalization.

Salinity is compared in specific gravity (SG, ~1.025 for reef water).
Refractometers and older configs also report SG x 1000 (e.g. 1025); any
finite value >= 1000 is treated as that convention and scaled down.
"""
import math

from utils.coerce import to_float

SG_SCALE = 1000.0


def normalize_salinity(value):
    """Return salinity in SG. Idempotent; non-finite input is passed through."""
    value = to_float(value)
    if not math.isfinite(value):
        return value
    while value >= SG_SCALE:
        value /= SG_SCALE
    return value


def normalize_salinity_bound(value, default):
    """Config variant: never fails, falls back to `default` on bad input."""
    normalized = normalize_salinity(value)
    if not math.isfinite(normalized):
        return default
    return normalized
