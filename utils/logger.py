"""Logging configuration."""
import logging
import os

from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level="INFO", log_file=None):
    """Send `reefmonitor.*` records to a rich console handler and optionally a file.

    Safe to call more than once: handlers are only attached the first time,
    later calls just change the level.
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    root = logging.getLogger("reefmonitor")
    root.setLevel(numeric_level)
    if root.handlers:
        for handler in root.handlers:
            handler.setLevel(numeric_level)
        return root

    # Alert messages contain brackets, so no rich markup in log records
    root.addHandler(RichHandler(level=numeric_level, rich_tracebacks=True, markup=False))

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    return root
