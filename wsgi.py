"""WSGI entry point for production deployment."""
import atexit
import sys
import os
import logging
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).parent))

# Ensure data directory exists
Path("data").mkdir(exist_ok=True)

from main import _init_components, build_source
from monitor.scheduler import MonitorScheduler
from web.app import create_app

logger = logging.getLogger("reefmonitor.wsgi")

components = _init_components(os.environ.get("REEF_MONITOR_CONFIG"), interactive=False)
config = components["config"]

scheduler = MonitorScheduler(components["monitor"], build_source(config), components["store"])
app = create_app(config, {"monitor": components["monitor"], "scheduler": scheduler})

# Start polling so the API has live alerts to serve
try:
    scheduler.start()
except Exception as e:
    logger.warning(f"Scheduler start failed (API still serves manual alerts): {e}")


@atexit.register
def _shutdown():
    scheduler.stop()
    components["notifier"].close()
