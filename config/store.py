"""Threshold settings persistence with change notification.

The store keeps a ThresholdConfig under a fixed namespace in a backend
(a JSON file shared between processes, or an in-memory dict). Loading is
total: corrupt or missing data yields defaults, never an exception. External
edits are picked up by `poll()`, which `watch()` runs once per second.
"""
import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path

from models.settings import ThresholdConfig

logger = logging.getLogger("reefmonitor.config.store")

DEFAULT_NAMESPACE = "aquarium-settings"
POLL_INTERVAL = 1.0  # seconds
_UNSEEN = object()


class MemoryBackend:
    """In-process backend. Several stores may share one dict."""

    def __init__(self, data=None):
        self._data = data if data is not None else {}
        self._lock = threading.Lock()

    def read(self, namespace):
        with self._lock:
            return copy.deepcopy(self._data.get(namespace))

    def write(self, namespace, value):
        with self._lock:
            self._data[namespace] = copy.deepcopy(value)


class JsonFileBackend:
    """One JSON document holding any number of namespaces, replaced atomically on write."""

    def __init__(self, path):
        self.path = Path(path)

    def _read_all(self):
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def read(self, namespace):
        return self._read_all().get(namespace)

    def write(self, namespace, value):
        try:
            data = self._read_all()
        except ValueError as e:
            logger.warning(f"Overwriting unreadable settings file {self.path}: {e}")
            data = {}
        data[namespace] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(self.path.parent), prefix=".settings-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


def _fingerprint(raw):
    return json.dumps(raw, sort_keys=True, default=str)


class ConfigStore:
    def __init__(self, backend, namespace=DEFAULT_NAMESPACE):
        self.backend = backend
        self.namespace = namespace
        self._subscribers = []
        self._last_seen = _UNSEEN
        self._lock = threading.Lock()
        self._thread = None
        self._stop = threading.Event()

    def _read_raw(self):
        try:
            return self.backend.read(self.namespace)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read settings, using defaults: {e}")
            return None

    def load(self):
        """Return the stored config, with defaults filled in. Never raises."""
        raw = self._read_raw()
        with self._lock:
            self._last_seen = _fingerprint(raw)
        if raw is None:
            return ThresholdConfig()
        return ThresholdConfig.from_dict(raw)

    def save(self, config):
        """Persist `config` and notify local subscribers."""
        payload = config.to_dict()
        self.backend.write(self.namespace, payload)
        with self._lock:
            self._last_seen = _fingerprint(payload)
        logger.info("Settings saved")
        self._notify(config)
        return config

    def reset(self):
        return self.save(ThresholdConfig())

    def subscribe(self, callback):
        """Register `callback(config)` for changes. Returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def poll(self):
        """Check the backend once. Returns the new config if it changed, else None."""
        raw = self._read_raw()
        marker = _fingerprint(raw)
        with self._lock:
            previous = self._last_seen
            self._last_seen = marker
        if previous is _UNSEEN or previous == marker:
            return None
        config = ThresholdConfig.from_dict(raw) if raw is not None else ThresholdConfig()
        logger.info("Settings changed externally, reloading")
        self._notify(config)
        return config

    def _notify(self, config):
        with self._lock:
            subscribers = list(self._subscribers)
        for cb in subscribers:
            try:
                cb(config)
            except Exception as e:
                logger.warning(f"Settings subscriber error: {e}")

    def watch(self, interval=POLL_INTERVAL):
        """Poll in a daemon thread until stop() is called."""
        if self._thread is not None:
            return
        self._stop.clear()
        if self._last_seen is _UNSEEN:
            self.load()

        def run():
            while not self._stop.wait(interval):
                self.poll()

        self._thread = threading.Thread(target=run, name="settings-watch", daemon=True)
        self._thread.start()
        logger.debug(f"Watching settings every {interval}s")

    def stop(self):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
