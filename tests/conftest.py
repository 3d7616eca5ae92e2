"""Shared test fixtures."""
import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from alerts.lifecycle import AlertLifecycleManager
from config.store import ConfigStore, MemoryBackend
from models.parameters import ParameterSnapshot
from models.settings import ThresholdConfig
from monitor.monitor import AquariumMonitor


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start=1_700_000_000_000):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms
        return self.now


class RecordingNotifier:
    def __init__(self):
        self.calls = []

    def notify(self, kind, message):
        self.calls.append((kind, message))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def manager(clock, notifier):
    return AlertLifecycleManager(notifier=notifier, clock=clock)


@pytest.fixture
def default_config():
    return ThresholdConfig()


@pytest.fixture
def memory_store():
    return ConfigStore(MemoryBackend())


@pytest.fixture
def monitor(memory_store, manager):
    m = AquariumMonitor(memory_store, manager)
    yield m
    m.close()


@pytest.fixture
def healthy_snapshot():
    """All parameters inside the default limits."""
    return ParameterSnapshot(temperature=25.5, ph=8.2, salinity=1.025, tds=250)
