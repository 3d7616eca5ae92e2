"""Background scheduler: periodic snapshot ticks and settings sync."""
import logging
import threading
import schedule
import time

logger = logging.getLogger("reefmonitor.scheduler")

SETTINGS_POLL_SECONDS = 1
MAX_CONSECUTIVE_FAILURES = 5


class MonitorScheduler:
    """Drive an AquariumMonitor from a snapshot source.

    Ticks run every `settings.refresh_interval` seconds and the settings
    store is polled every second. Both jobs run on the same thread, so ticks
    never overlap.
    """

    def __init__(self, monitor, source, store=None, settings_poll=SETTINGS_POLL_SECONDS):
        self.monitor = monitor
        self.source = source
        self.store = store
        self.settings_poll = settings_poll
        self._scheduler = schedule.Scheduler()
        self._tick_job = None
        self._interval = None
        self._thread = None
        self._running = False
        self._callbacks = []
        self.consecutive_failures = 0

    def on_tick(self, callback):
        """Register callback(snapshot, raised_alerts) called after each successful tick."""
        self._callbacks.append(callback)

    def start(self):
        """Start background ticking."""
        if self._running:
            return
        self._running = True

        self._schedule_tick()
        if self.store is not None:
            self._scheduler.every(self.settings_poll).seconds.do(self._poll_settings)

        self._thread = threading.Thread(target=self._run_loop, name="reefmonitor-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"Scheduler started (every {self._interval}s)")

    def stop(self):
        """Stop background ticking."""
        self._running = False
        self._scheduler.clear()
        self._tick_job = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("Scheduler stopped")

    def _schedule_tick(self):
        interval = max(1, int(self.monitor.settings.refresh_interval))
        if self._tick_job is not None:
            self._scheduler.cancel_job(self._tick_job)
        self._tick_job = self._scheduler.every(interval).seconds.do(self.tick)
        self._interval = interval

    def sync_interval(self):
        """Reschedule the tick job if refresh_interval changed."""
        interval = max(1, int(self.monitor.settings.refresh_interval))
        if self._tick_job is not None and interval != self._interval:
            logger.info(f"Refresh interval changed: {self._interval}s -> {interval}s")
            self._schedule_tick()

    def _run_loop(self):
        # Do an initial tick immediately
        self.tick()
        while self._running:
            self._scheduler.run_pending()
            self.sync_interval()
            time.sleep(0.25)

    def _poll_settings(self):
        try:
            self.store.poll()
        except Exception as e:
            logger.warning(f"Settings poll error: {e}")

    def tick(self):
        """Fetch one snapshot and feed it to the monitor. Returns raised alerts or None."""
        try:
            snapshot = self.source.fetch()
        except Exception as e:
            self.consecutive_failures += 1
            logger.error(f"Fetch failed ({self.consecutive_failures} consecutive): {e}")
            if self.consecutive_failures >= MAX_CONSECUTIVE_FAILURES:
                logger.critical(f"{MAX_CONSECUTIVE_FAILURES}+ consecutive fetch failures!")
            return None

        self.consecutive_failures = 0
        raised = self.monitor.process(snapshot)
        for cb in self._callbacks:
            try:
                cb(snapshot, raised)
            except Exception as e:
                logger.warning(f"Callback error: {e}")
        return raised
