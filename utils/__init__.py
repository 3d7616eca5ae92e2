"""Utility modules for Reef Monitor."""
from utils.logger import setup_logging
from utils.formatters import format_number, format_fixed, format_reading
from utils.units import normalize_salinity, normalize_salinity_bound
from utils.coerce import to_float, to_bool, is_finite
from utils.http_client import HTTPClient, APIError
