"""AquariumMonitor - wires settings, evaluation and the alert lifecycle together.

This is the surface the dashboard talks to: the live alert list, the
dismiss/clear/add actions and the current settings.
"""
import logging
import threading

from alerts.evaluator import AlertEvaluator
from alerts.lifecycle import AlertLifecycleManager
from models.enums import AlertKind
from models.settings import ThresholdConfig

logger = logging.getLogger("reefmonitor.monitor")


class SettingsError(ValueError):
    """Invalid settings update (unknown key or bad value)."""


class AquariumMonitor:
    def __init__(self, store, manager=None, evaluator=None):
        self.store = store
        self.evaluator = evaluator or AlertEvaluator()
        self.manager = manager or AlertLifecycleManager()
        self._settings = store.load()
        self._settings_lock = threading.Lock()
        self._last_snapshot = None
        self._unsubscribe = store.subscribe(self._on_settings_changed)

    # ─── Settings ─────────────────────────────────────────

    @property
    def settings(self):
        return self._settings

    def _on_settings_changed(self, config):
        with self._settings_lock:
            self._settings = config
        logger.debug("Settings swapped")

    def reload_settings(self):
        self._on_settings_changed(self.store.load())
        return self._settings

    def update_settings(self, **changes):
        """Validate and persist a partial update. Keys may be camelCase or snake_case."""
        current = self._settings
        values = {}
        for key, raw in changes.items():
            attr = ThresholdConfig.attr_name(key)
            if attr is None:
                raise SettingsError(f"Unknown setting: {key}")
            sentinel = object()
            value = ThresholdConfig.coerce_value(attr, raw, sentinel)
            if value is sentinel:
                raise SettingsError(f"Invalid value for {key}: {raw!r}")
            values[attr] = value
        config = current.updated(**values)
        self.store.save(config)
        # save() notifies subscribers; set directly too in case this monitor was detached
        self._on_settings_changed(config)
        return config

    def reset_settings(self):
        config = self.store.reset()
        self._on_settings_changed(config)
        return config

    # ─── Evaluation ───────────────────────────────────────

    @property
    def last_snapshot(self):
        return self._last_snapshot

    def evaluate(self, snapshot):
        """Condition results for `snapshot` without touching alert state."""
        return self.evaluator.evaluate(snapshot, self._settings)

    def process(self, snapshot, now=None):
        """One tick: evaluate the snapshot and reconcile alerts. Returns raised alerts."""
        self._last_snapshot = snapshot
        results = self.evaluate(snapshot)
        raised = self.manager.reconcile(results, now=now)
        logger.debug(
            f"Tick: T={snapshot.temperature} pH={snapshot.ph} sal={snapshot.salinity} "
            f"TDS={snapshot.tds} -> {len(raised)} raised, {len(self.manager.alerts)} live"
        )
        return raised

    # ─── Alerts ───────────────────────────────────────────

    @property
    def alerts(self):
        return self.manager.alerts

    def dismiss_alert(self, alert_id):
        return self.manager.dismiss(alert_id)

    def clear_all_alerts(self):
        return self.manager.clear_all()

    def add_alert(self, kind, message, now=None):
        kind = AlertKind.parse(kind)
        message = (message or "").strip()
        if not message:
            raise ValueError("Alert message must not be empty")
        return self.manager.add_manual(kind, message, now=now)

    def close(self):
        self._unsubscribe()
