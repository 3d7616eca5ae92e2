"""Alert lifecycle: cooldown, deduplication, auto-clear and retention."""
import itertools
import logging
import threading
import time
from datetime import datetime, timezone

from models.alerts import Alert
from models.enums import AlertKind

logger = logging.getLogger("reefmonitor.alerts.lifecycle")

COOLDOWN_MS = 30_000
MAX_ALERTS = 20
MANUAL_PREFIX = "manual"


def now_ms():
    return int(time.time() * 1000)


class AlertLifecycleManager:
    """Owns the live alert list (most recent first) and per-condition cooldowns.

    All public methods take the internal lock, so ticks driven from a
    scheduler thread and user actions from the web layer can interleave
    safely. Nothing here raises for unknown ids or keys.
    """

    def __init__(self, notifier=None, clock=now_ms, cooldown_ms=COOLDOWN_MS, max_alerts=MAX_ALERTS):
        self.notifier = notifier
        self.clock = clock
        self.cooldown_ms = cooldown_ms
        self.max_alerts = max_alerts
        self._alerts = []
        self._cooldowns = {}
        self._manual_seq = itertools.count(1)
        self._lock = threading.RLock()

    @property
    def alerts(self):
        with self._lock:
            return list(self._alerts)

    @property
    def cooldowns(self):
        with self._lock:
            return dict(self._cooldowns)

    def get(self, alert_id):
        with self._lock:
            for a in self._alerts:
                if a.id == alert_id:
                    return a
        return None

    def _cooldown_expired(self, key, now):
        last = self._cooldowns.get(key)
        return last is None or now - last >= self.cooldown_ms

    def cooldown_remaining(self, key, now=None):
        """Milliseconds until `key` may be raised again (0 if it may now)."""
        now = self.clock() if now is None else now
        with self._lock:
            last = self._cooldowns.get(key)
        if last is None:
            return 0
        return max(0, self.cooldown_ms - (now - last))

    def _remove_key(self, key):
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.condition_key != key]
        return before - len(self._alerts)

    def _insert(self, key, kind, message, now):
        try:
            kind = AlertKind.parse(kind)
        except ValueError:
            logger.warning(f"Unknown alert kind {kind!r} for {key}, using info")
            kind = AlertKind.INFO
        alert = Alert(
            id=f"{key}-{now}",
            condition_key=key,
            kind=kind,
            message=message,
            created_at=datetime.fromtimestamp(now / 1000, tz=timezone.utc),
        )
        self._remove_key(key)
        self._alerts.insert(0, alert)
        dropped = self._alerts[self.max_alerts:]
        if dropped:
            del self._alerts[self.max_alerts:]
            logger.debug(f"Evicted {len(dropped)} old alert(s): {[a.id for a in dropped]}")
        return alert

    def reconcile(self, results, now=None):
        """Apply one tick of evaluated conditions. Returns newly raised alerts."""
        now = self.clock() if now is None else now
        raised = []
        with self._lock:
            for result in results:
                key = result.condition_key
                if not result.is_active:
                    if self._remove_key(key):
                        logger.info(f"Auto-cleared {key}")
                    continue
                if not self._cooldown_expired(key, now):
                    continue
                self._cooldowns[key] = now
                alert = self._insert(key, result.kind, result.message, now)
                logger.info(f"Raised [{alert.kind.value}] {alert.message}")
                raised.append(alert)

        for alert in raised:
            self._dispatch(alert)
        return raised

    def add_manual(self, kind, message, now=None):
        """Raise an alert outside the threshold pipeline (never deduplicated or auto-cleared)."""
        now = self.clock() if now is None else now
        with self._lock:
            key = f"{MANUAL_PREFIX}-{next(self._manual_seq)}"
            alert = self._insert(key, kind, message, now)
        self._dispatch(alert)
        return alert

    def dismiss(self, alert_id):
        with self._lock:
            before = len(self._alerts)
            self._alerts = [a for a in self._alerts if a.id != alert_id]
            return len(self._alerts) != before

    def clear_all(self):
        """Drop every alert. Cooldowns are kept, so a cleared condition stays throttled."""
        with self._lock:
            count = len(self._alerts)
            self._alerts = []
        if count:
            logger.info(f"Cleared {count} alert(s)")
        return count

    def _dispatch(self, alert):
        if self.notifier is None:
            return
        try:
            self.notifier.notify(alert.kind, alert.message)
        except Exception as e:
            logger.warning(f"Notification dispatch error: {e}")
