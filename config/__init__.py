"""Application configuration (device, storage, channels, web, logging).

Alert thresholds are user settings and live in `config.store`, not here.
"""
import os
import yaml
from pathlib import Path

_config = None
_DEFAULT_CONFIG = Path(__file__).parent / "default_config.yaml"

REQUIRED_SECTIONS = ("device", "settings", "alerts", "web", "logging")

# env var -> (section, key)
ENV_OVERRIDES = {
    "REEF_MONITOR_DEVICE_URL": ("device", "base_url"),
    "REEF_MONITOR_SETTINGS_PATH": ("settings", "path"),
    "REEF_MONITOR_LOG_LEVEL": ("logging", "level"),
}


def _read_yaml(path):
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(path=None):
    """Defaults, then the optional YAML at `path`, then environment overrides."""
    global _config

    config = _read_yaml(_DEFAULT_CONFIG)
    if path and Path(path).exists():
        config = _deep_merge(config, _read_yaml(path))

    for env_key, (section, key) in ENV_OVERRIDES.items():
        val = os.environ.get(env_key)
        if val:
            config.setdefault(section, {})[key] = val

    _validate_config(config)
    _config = config
    return config


def get_config():
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _deep_merge(base, override):
    """Recursively merge override into base dict."""
    result = dict(base)
    for key, val in override.items():
        current = result.get(key)
        result[key] = _deep_merge(current, val) if isinstance(current, dict) and isinstance(val, dict) else val
    return result


def _validate_config(config):
    missing = [s for s in REQUIRED_SECTIONS if not isinstance(config.get(s), dict)]
    if missing:
        raise ValueError(f"Missing config section(s): {', '.join(missing)}")

    if not config["device"].get("base_url"):
        raise ValueError("device.base_url is required")
    if config["device"].get("timeout", 5) <= 0:
        raise ValueError("device.timeout must be positive")
    # Settings edits must reach a running monitor within a second
    if not 0 < config["settings"].get("poll_interval", 1) <= 1:
        raise ValueError("settings.poll_interval must be in (0, 1] seconds")
    if not config["settings"].get("path"):
        raise ValueError("settings.path is required")
