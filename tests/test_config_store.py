"""Tests for the settings store, its backends and change notification."""
import json
import time
import pytest

from config.store import ConfigStore, JsonFileBackend, MemoryBackend, DEFAULT_NAMESPACE
from models.settings import ThresholdConfig


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "data" / "settings.json"


@pytest.fixture
def file_store(settings_path):
    return ConfigStore(JsonFileBackend(settings_path))


# ── Load / save ─────────────────────────────────────────

def test_load_missing_file_gives_defaults(file_store, settings_path):
    assert file_store.load() == ThresholdConfig()
    assert not settings_path.exists()


def test_save_then_load(file_store, settings_path):
    config = ThresholdConfig(temp_min=23.0, sound_enabled=True)
    file_store.save(config)
    assert file_store.load() == config

    data = json.loads(settings_path.read_text())
    assert data[DEFAULT_NAMESPACE]["tempMin"] == 23.0
    assert data[DEFAULT_NAMESPACE]["soundEnabled"] is True


def test_save_preserves_other_namespaces(settings_path):
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text(json.dumps({"esp32_url": "http://10.0.0.7"}))
    ConfigStore(JsonFileBackend(settings_path)).save(ThresholdConfig())
    data = json.loads(settings_path.read_text())
    assert data["esp32_url"] == "http://10.0.0.7"
    assert DEFAULT_NAMESPACE in data


def test_corrupt_file_gives_defaults(file_store, settings_path):
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text("{not json")
    assert file_store.load() == ThresholdConfig()


def test_oversized_integer_loads_defaults():
    store = ConfigStore(MemoryBackend({DEFAULT_NAMESPACE: {"tempMin": 10 ** 400, "phMax": 8.3}}))
    config = store.load()
    assert config.temp_min == 24.0
    assert config.ph_max == 8.3


def test_corrupt_file_overwritten_on_save(file_store, settings_path):
    settings_path.parent.mkdir(parents=True)
    settings_path.write_text("[1, 2, 3]")
    file_store.save(ThresholdConfig(ph_min=7.9))
    assert file_store.load().ph_min == 7.9


def test_load_normalizes_legacy_without_writing(file_store, settings_path):
    settings_path.parent.mkdir(parents=True)
    stored = {DEFAULT_NAMESPACE: {"salinityMin": 1022, "salinityMax": 1028, "orpMin": 300}}
    settings_path.write_text(json.dumps(stored))

    config = file_store.load()
    assert config.salinity_min == pytest.approx(1.022)
    assert json.loads(settings_path.read_text()) == stored


def test_reset(memory_store):
    memory_store.save(ThresholdConfig(temp_max=30))
    assert memory_store.reset() == ThresholdConfig()
    assert memory_store.load() == ThresholdConfig()


def test_namespaces_are_isolated():
    shared = {}
    a = ConfigStore(MemoryBackend(shared), namespace="tank-a")
    b = ConfigStore(MemoryBackend(shared), namespace="tank-b")
    a.save(ThresholdConfig(temp_min=20))
    assert b.load() == ThresholdConfig()


# ── Change notification ────────────────────────────────

def test_save_notifies_subscribers(memory_store):
    seen = []
    memory_store.subscribe(seen.append)
    config = ThresholdConfig(temp_min=22)
    memory_store.save(config)
    assert seen == [config]


def test_unsubscribe(memory_store):
    seen = []
    unsubscribe = memory_store.subscribe(seen.append)
    unsubscribe()
    unsubscribe()
    memory_store.save(ThresholdConfig())
    assert seen == []


def test_poll_detects_external_change():
    shared = {}
    ours = ConfigStore(MemoryBackend(shared))
    theirs = ConfigStore(MemoryBackend(shared))
    ours.load()
    seen = []
    ours.subscribe(seen.append)

    assert ours.poll() is None
    theirs.save(ThresholdConfig(ph_alert_enabled=False))
    changed = ours.poll()
    assert changed.ph_alert_enabled is False
    assert seen == [changed]
    assert ours.poll() is None


def test_poll_after_own_save_is_quiet(memory_store):
    memory_store.load()
    seen = []
    memory_store.subscribe(seen.append)
    memory_store.save(ThresholdConfig(temp_min=21))
    assert memory_store.poll() is None
    assert len(seen) == 1


def test_subscriber_error_does_not_break_others(memory_store):
    def broken(config):
        raise RuntimeError("bad subscriber")

    seen = []
    memory_store.subscribe(broken)
    memory_store.subscribe(seen.append)
    memory_store.save(ThresholdConfig())
    assert len(seen) == 1


def test_watch_picks_up_file_edit_within_a_second(settings_path):
    ours = ConfigStore(JsonFileBackend(settings_path))
    ours.load()
    seen = []
    ours.subscribe(seen.append)
    ours.watch(interval=0.1)
    try:
        ConfigStore(JsonFileBackend(settings_path)).save(ThresholdConfig(temp_max=28.5))
        deadline = time.time() + 1.0
        while not seen and time.time() < deadline:
            time.sleep(0.02)
    finally:
        ours.stop()
    assert seen and seen[-1].temp_max == 28.5
