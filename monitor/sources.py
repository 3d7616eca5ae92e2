"""Snapshot sources: the aquarium controller over HTTP, or a simulator."""
import logging
import math
import random

from models.parameters import ParameterSnapshot
from utils.coerce import to_float
from utils.http_client import HTTPClient, APIError

logger = logging.getLogger("reefmonitor.monitor.sources")


class DeviceSource:
    """Poll the controller's JSON API.

    Temperature and salinity come from `/api/sensors`; pH and TDS are
    measured by hand and stored on the device under `/api/data/parameters`.
    A missing parameters document is not an error, those readings are NaN.
    """

    SENSORS_PATH = "/api/sensors"
    PARAMETERS_PATH = "/api/data/parameters"

    def __init__(self, base_url, client=None, timeout=5, max_retries=2):
        self.client = client or HTTPClient(base_url, timeout=timeout, max_retries=max_retries)

    def _manual_parameters(self):
        try:
            data = self.client.get(self.PARAMETERS_PATH)
        except APIError as e:
            logger.debug(f"No manual parameters from device: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def fetch(self):
        sensors = self.client.get(self.SENSORS_PATH)
        if not isinstance(sensors, dict):
            raise APIError("Unexpected sensor payload", source=self.client.base_url)
        manual = self._manual_parameters()

        def pick(name):
            value = to_float(sensors.get(name))
            if math.isnan(value):
                value = to_float(manual.get(name))
            return value

        return ParameterSnapshot(
            temperature=pick("temperature"),
            ph=pick("ph"),
            salinity=pick("salinity"),
            tds=pick("tds"),
        )


class SimulatedSource:
    """Mean-reverting random walk around typical reef values."""

    TARGETS = {"temperature": 25.5, "ph": 8.2, "salinity": 1.025, "tds": 250.0}
    NOISE = {"temperature": 0.1, "ph": 0.02, "salinity": 0.0005, "tds": 5.0}
    DECIMALS = {"temperature": 1, "ph": 2, "salinity": 3, "tds": 0}

    def __init__(self, seed=None, start=None):
        self._rng = random.Random(seed)
        self._state = dict(self.TARGETS)
        if start:
            self._state.update(start)

    def fetch(self):
        for name, target in self.TARGETS.items():
            current = self._state[name]
            step = (target - current) * 0.1 + self._rng.uniform(-1, 1) * self.NOISE[name]
            self._state[name] = round(current + step, self.DECIMALS[name])
        return ParameterSnapshot(**self._state)


class FallbackSource:
    """Use `primary` while it works, `fallback` while it fails."""

    def __init__(self, primary, fallback):
        self.primary = primary
        self.fallback = fallback
        self.using_fallback = False

    def fetch(self):
        try:
            snapshot = self.primary.fetch()
        except APIError as e:
            if not self.using_fallback:
                logger.warning(f"Device unreachable ({e}), switching to simulated readings")
                self.using_fallback = True
            return self.fallback.fetch()
        if self.using_fallback:
            logger.info("Device reachable again, leaving simulation")
            self.using_fallback = False
        return snapshot
