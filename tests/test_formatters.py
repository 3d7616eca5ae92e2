"""Tests for display and message formatters."""
import math
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils.formatters import format_number, format_fixed, format_reading


def test_format_number():
    assert format_number(24.0) == "24"
    assert format_number(8) == "8"
    assert format_number(1.022) == "1.022"
    assert format_number(26.5) == "26.5"
    assert format_number(None) == "N/A"


def test_format_fixed():
    assert format_fixed(23.5, 1) == "23.5"
    assert format_fixed(7.849, 2) == "7.85"
    assert format_fixed(450, 0) == "450"


def test_format_reading():
    assert format_reading(25.46, "°C", 1) == "25.5 °C"
    assert format_reading(math.nan) == "N/A"
    assert format_reading(None, "ppm") == "N/A"
    assert format_reading(8.2) == "8.20"
