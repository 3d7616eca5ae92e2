"""Alert notification channels and the sink that fans raised alerts out to them."""
import json
import logging
import os
import shutil
import subprocess
import sys
import tempfile
import wave
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

import numpy as np

from models.enums import AlertKind

logger = logging.getLogger("reefmonitor.alerts.channels")


@runtime_checkable
class AlertChannel(Protocol):
    def send(self, kind: AlertKind, message: str) -> None: ...


class ConsoleChannel:
    """Print alerts to terminal as toast-style lines with rich formatting."""

    STYLES = {
        AlertKind.ERROR: "bold white on red",
        AlertKind.WARNING: "bold yellow",
        AlertKind.INFO: "bold blue",
    }

    def __init__(self, console=None):
        if console is None:
            from rich.console import Console
            console = Console(stderr=True)
        self.console = console

    def send(self, kind, message):
        kind = AlertKind.parse(kind)
        style = self.STYLES.get(kind, "")
        self.console.print(f"[{kind.value.upper()}] {message}", style=style, markup=False)


class FileChannel:
    """Append alerts to a JSON lines log file."""

    def __init__(self, log_path="data/alerts.jsonl"):
        self.log_path = log_path

    def send(self, kind, message):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": AlertKind.parse(kind).value,
            "message": message,
        }
        try:
            directory = os.path.dirname(self.log_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.warning(f"Failed to write alert to file: {e}")


# Hz per tone, played back to back
TONE_SEQUENCES = {
    AlertKind.ERROR: [880, 660, 880],   # high-low-high
    AlertKind.WARNING: [660, 880],      # low-high
    AlertKind.INFO: [440],
}
TONE_DURATION = 0.15  # seconds
SAMPLE_RATE = 22050


def synthesize_tones(frequencies, duration=TONE_DURATION, sample_rate=SAMPLE_RATE, volume=0.3):
    """Render a tone sequence as 16-bit mono PCM with a decaying envelope."""
    t = np.arange(int(sample_rate * duration)) / sample_rate
    signal = np.concatenate([np.sin(2 * np.pi * f * t) for f in frequencies])
    envelope = np.geomspace(volume, 0.01, num=len(signal))
    return (signal * envelope * 32767).astype(np.int16)


def write_wav(path, samples, sample_rate=SAMPLE_RATE):
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(sample_rate)
        w.writeframes(samples.tobytes())


class SoundChannel:
    """Audible alert tones via the platform audio player.

    Tones are rendered once per kind into a temp directory and played
    without waiting. Any failure (no player, no audio device) is logged and
    swallowed; after a missing player is detected the channel stays silent.
    """

    def __init__(self, player=None):
        self._player = player
        self._available = True
        self._tone_dir = None
        self._tone_files = {}
        self._procs = []

    def _find_player(self):
        if self._player:
            return self._player
        if sys.platform == "darwin":
            candidates = ["afplay"]
        else:
            candidates = ["paplay", "aplay"]
        for name in candidates:
            path = shutil.which(name)
            if path:
                return [path]
        return None

    def _tone_file(self, kind):
        path = self._tone_files.get(kind)
        if path and os.path.exists(path):
            return path
        if self._tone_dir is None:
            self._tone_dir = tempfile.mkdtemp(prefix="reefmonitor-tones-")
        path = os.path.join(self._tone_dir, f"{kind.value}.wav")
        write_wav(path, synthesize_tones(TONE_SEQUENCES[kind]))
        self._tone_files[kind] = path
        return path

    def play(self, kind) -> bool:
        """Start playing the tone for `kind`. Returns False if nothing was played."""
        if not self._available:
            return False
        try:
            kind = AlertKind.parse(kind)
            player = self._find_player()
            if not player:
                logger.debug("No audio player found, disabling alert sounds")
                self._available = False
                return False
            path = self._tone_file(kind)
            # reap players that already finished
            self._procs = [p for p in self._procs if p.poll() is None]
            self._procs.append(subprocess.Popen(
                list(player) + [path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            ))
            return True
        except FileNotFoundError:
            logger.debug("Audio player not found, disabling alert sounds")
            self._available = False
            return False
        except Exception as e:
            logger.debug(f"Audio not supported: {e}")
            return False

    def close(self):
        """Wait briefly for running players, then delete the rendered tones."""
        for proc in self._procs:
            try:
                proc.wait(timeout=1)
            except subprocess.TimeoutExpired:
                proc.kill()
        self._procs = []
        if self._tone_dir is not None:
            shutil.rmtree(self._tone_dir, ignore_errors=True)
            self._tone_dir = None
            self._tone_files = {}


class NotificationSink:
    """Dispatch a raised alert to visible channels and the sound channel.

    `settings_provider` is called on every notification so a swapped
    ThresholdConfig takes effect immediately. Visible delivery is gated by
    `alerts_enabled`, sound by `sound_enabled`.
    """

    def __init__(self, settings_provider, channels=None, sound=None):
        self.settings_provider = settings_provider
        self.channels = channels or []
        self.sound = sound

    def notify(self, kind, message):
        try:
            kind = AlertKind.parse(kind)
        except ValueError:
            kind = AlertKind.INFO
        settings = self.settings_provider()

        if settings.alerts_enabled:
            for channel in self.channels:
                try:
                    channel.send(kind, message)
                except Exception as e:
                    logger.warning(f"Channel dispatch error: {e}")

        if settings.sound_enabled and self.sound is not None:
            try:
                self.sound.play(kind)
            except Exception as e:
                logger.debug(f"Alert sound failed: {e}")

    def close(self):
        if self.sound is not None:
            self.sound.close()
