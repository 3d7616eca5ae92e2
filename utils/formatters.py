"""Formatting utilities for alert messages and display."""
import math


def format_number(value):
    """Shortest plain form of a configured bound: 24.0 -> '24', 1.022 -> '1.022'."""
    if value is None:
        return "N/A"
    value = float(value)
    if not math.isfinite(value):
        return str(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_fixed(value, decimals):
    if value is None:
        return "N/A"
    return f"{float(value):.{decimals}f}"


def format_reading(value, unit="", decimals=2):
    """Format a sensor reading for tables, N/A for missing values."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "N/A"
    text = format_fixed(value, decimals)
    return f"{text} {unit}".strip()

