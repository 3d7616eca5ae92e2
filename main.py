#!/usr/bin/env python3
"""Reef Monitor - CLI Entry Point."""
import math
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

import click
from rich.console import Console
from rich.table import Table

from __version__ import __version__

console = Console()

KIND_STYLES = {"error": "bold red", "warning": "bold yellow", "info": "bold blue"}


def build_source(config, simulate=False):
    from monitor.sources import DeviceSource, SimulatedSource, FallbackSource

    if simulate:
        return SimulatedSource()
    device_cfg = config["device"]
    device = DeviceSource(
        device_cfg["base_url"],
        timeout=device_cfg.get("timeout", 5),
        max_retries=device_cfg.get("max_retries", 2),
    )
    if device_cfg.get("simulate_on_failure", True):
        return FallbackSource(device, SimulatedSource())
    return device


def _init_components(config_path=None, verbose=False, interactive=True):
    """Lazy initialization of all components."""
    from utils.logger import setup_logging
    from config import load_config
    from config.store import ConfigStore, JsonFileBackend
    from alerts.channels import ConsoleChannel, FileChannel, SoundChannel, NotificationSink
    from alerts.lifecycle import AlertLifecycleManager
    from monitor.monitor import AquariumMonitor

    config = load_config(config_path)
    setup_logging("DEBUG" if verbose else config["logging"].get("level", "INFO"),
                  config["logging"].get("file"))

    settings_cfg = config["settings"]
    store = ConfigStore(JsonFileBackend(settings_cfg["path"]), settings_cfg.get("namespace", "aquarium-settings"))

    manager = AlertLifecycleManager()
    monitor = AquariumMonitor(store, manager)

    alerts_cfg = config["alerts"]
    channels = [FileChannel(alerts_cfg["log_path"])] if alerts_cfg.get("log_path") else []
    # Console toasts only when someone is watching
    if interactive and alerts_cfg.get("console", True) and sys.stdout.isatty():
        channels.append(ConsoleChannel())
    sound = SoundChannel() if alerts_cfg.get("sound", True) else None
    notifier = NotificationSink(lambda: monitor.settings, channels, sound)
    manager.notifier = notifier

    return {"config": config, "store": store, "manager": manager, "monitor": monitor, "notifier": notifier}


@click.group()
@click.option("--config", "config_path", default=None, help="Path to config YAML")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="reefmonitor")
@click.pass_context
def cli(ctx, config_path, verbose):
    """Reef Monitor - Aquarium parameter alerts, thresholds & notifications."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _get_components(ctx):
    if "_components" not in ctx.obj:
        ctx.obj["_components"] = _init_components(ctx.obj.get("config_path"), ctx.obj.get("verbose"))
    return ctx.obj["_components"]


def _snapshot_from_options(c, temperature, ph, salinity, tds):
    """Readings from the command line, or one fetch from the device if none were given."""
    from models.parameters import ParameterSnapshot
    from utils.http_client import APIError

    given = [v for v in (temperature, ph, salinity, tds) if v is not None]
    if given:
        return ParameterSnapshot(
            temperature=math.nan if temperature is None else temperature,
            ph=math.nan if ph is None else ph,
            salinity=math.nan if salinity is None else salinity,
            tds=math.nan if tds is None else tds,
        )
    source = build_source(c["config"])
    try:
        return source.fetch()
    except APIError as e:
        console.print(f"[red]✗[/red] Could not read the controller: {e}")
        sys.exit(1)


def reading_options(f):
    f = click.option("--tds", type=float, default=None, help="TDS (ppm)")(f)
    f = click.option("--salinity", type=float, default=None, help="Salinity (SG or SG x 1000)")(f)
    f = click.option("--ph", type=float, default=None, help="pH")(f)
    f = click.option("--temperature", "-t", type=float, default=None, help="Water temperature (°C)")(f)
    return f


# ──────────────────────────────────────────────────────
# ALERTS
# ──────────────────────────────────────────────────────
@cli.group()
def alerts():
    """Alert evaluation and monitoring."""
    pass


@alerts.command("check")
@reading_options
@click.pass_context
def alerts_check(ctx, temperature, ph, salinity, tds):
    """Evaluate readings against the thresholds and raise alerts."""
    c = _get_components(ctx)
    snapshot = _snapshot_from_options(c, temperature, ph, salinity, tds)
    raised = c["monitor"].process(snapshot)
    if raised:
        console.print(f"[bold yellow]{len(raised)} alert(s) raised:[/bold yellow]")
        for a in raised:
            style = KIND_STYLES.get(a.kind.value, "")
            console.print(f"  [{style}]\\[{a.kind.value.upper()}][/{style}] {a.message}")
    else:
        console.print("[green]All clear - all parameters within limits[/green]")
    c["notifier"].close()


@alerts.command("test")
@reading_options
@click.pass_context
def alerts_test(ctx, temperature, ph, salinity, tds):
    """Show every condition and whether it would fire (no alerts are raised)."""
    c = _get_components(ctx)
    snapshot = _snapshot_from_options(c, temperature, ph, salinity, tds)
    results = c["monitor"].evaluate(snapshot)

    table = Table(title="Alert Conditions", show_header=True)
    table.add_column("Condition", style="dim")
    table.add_column("Type")
    table.add_column("Would Fire")
    table.add_column("Message")
    for r in results:
        style = KIND_STYLES.get(r.kind.value, "")
        table.add_row(
            r.condition_key,
            f"[{style}]{r.kind.value}[/{style}]",
            "[red]YES[/red]" if r.is_active else "[green]no[/green]",
            r.message,
        )
    console.print(table)


@alerts.command("watch")
@click.option("--simulate", is_flag=True, help="Use simulated readings instead of the controller")
@click.pass_context
def alerts_watch(ctx, simulate):
    """Poll the controller and raise alerts until Ctrl+C."""
    from monitor.scheduler import MonitorScheduler
    from utils.formatters import format_reading

    c = _get_components(ctx)
    source = build_source(c["config"], simulate=simulate)
    scheduler = MonitorScheduler(c["monitor"], source, c["store"],
                                 settings_poll=c["config"]["settings"].get("poll_interval", 1))

    def show(snapshot, raised):
        console.print(
            f"[dim]T={format_reading(snapshot.temperature, '°C', 1)} "
            f"pH={format_reading(snapshot.ph)} "
            f"sal={format_reading(snapshot.salinity, decimals=3)} "
            f"TDS={format_reading(snapshot.tds, 'ppm', 0)} "
            f"| {len(c['monitor'].alerts)} live alert(s)[/dim]"
        )

    scheduler.on_tick(show)
    console.print(f"[bold cyan]Reef Monitor[/bold cyan] watching (every {c['monitor'].settings.refresh_interval}s). "
                  "Press Ctrl+C to stop.\n")
    scheduler.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
        c["notifier"].close()


# ──────────────────────────────────────────────────────
# SETTINGS
# ──────────────────────────────────────────────────────
@cli.group()
def settings():
    """Threshold settings."""
    pass


@settings.command("show")
@click.pass_context
def settings_show(ctx):
    """Show current threshold settings."""
    c = _get_components(ctx)
    table = Table(title="Settings", show_header=True)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    for key, value in c["monitor"].settings.to_dict().items():
        if isinstance(value, bool):
            value = "[green]✓[/green]" if value else "[red]✗[/red]"
        table.add_row(key, str(value))
    console.print(table)


@settings.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def settings_set(ctx, key, value):
    """Change one setting, e.g. `settings set tempMin 24.5`."""
    from monitor.monitor import SettingsError

    c = _get_components(ctx)
    try:
        updated = c["monitor"].update_settings(**{key: value})
    except SettingsError as e:
        console.print(f"[red]✗[/red] {e}")
        sys.exit(1)
    attr = updated.attr_name(key)
    console.print(f"[green]✓[/green] {key} = {getattr(updated, attr)}")


@settings.command("reset")
@click.confirmation_option(prompt="Restore all settings to defaults?")
@click.pass_context
def settings_reset(ctx):
    """Restore default settings."""
    c = _get_components(ctx)
    c["monitor"].reset_settings()
    console.print("[green]✓[/green] Settings restored to defaults")


# ──────────────────────────────────────────────────────
# WEB
# ──────────────────────────────────────────────────────
@cli.command()
@click.option("--port", default=None, type=int, help="Port (default from config)")
@click.option("--host", default=None, help="Host (default from config)")
@click.option("--poll/--no-poll", default=True, help="Poll the controller in the background")
@click.option("--simulate", is_flag=True, help="Use simulated readings")
@click.pass_context
def web(ctx, port, host, poll, simulate):
    """Launch the JSON API for the dashboard."""
    from web.app import create_app
    from monitor.scheduler import MonitorScheduler

    c = _get_components(ctx)
    web_cfg = c["config"]["web"]
    port = port or web_cfg.get("port", 5000)
    host = host or web_cfg.get("host", "127.0.0.1")

    scheduler = None
    if poll:
        scheduler = MonitorScheduler(c["monitor"], build_source(c["config"], simulate=simulate), c["store"])
        scheduler.start()
    else:
        c["store"].watch()

    app = create_app(c["config"], {"monitor": c["monitor"], "scheduler": scheduler})
    console.print(f"\n[bold cyan]Reef Monitor -- API[/bold cyan]\n")
    console.print(f"  http://{host}:{port}/api/alerts")
    console.print(f"\n  Press Ctrl+C to stop.\n")
    try:
        app.run(host=host, port=port, debug=False)
    finally:
        if scheduler:
            scheduler.stop()
        c["store"].stop()
        c["notifier"].close()


if __name__ == "__main__":
    cli()
