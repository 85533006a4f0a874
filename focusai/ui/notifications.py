import atexit
import io
import math
import platform
import shutil
import subprocess
import sys
import tempfile
import threading
import time
import wave
from array import array
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from focusai.logger import logger

if sys.platform == "win32":
    import winsound

    from win10toast import ToastNotifier  # type: ignore[import-untyped, unused-ignore]

SAMPLE_RATE = 22_050
TONE_HZ = 660.0
TONE_SECONDS = 0.2
RAMP_SECONDS = 0.05
GAIN_START = 0.0001
GAIN_PEAK = 0.2

LINUX_PLAYERS = (["paplay"], ["aplay", "-q"])


class NotificationLevel(Enum):
    """Notification severity levels used by the service."""

    INFO = "info"
    WARNING = "warning"
    URGENT = "urgent"


@dataclass
class NotificationConfig:
    """Configuration for :class:`NotificationService`."""

    sound: bool = True
    toast: bool = True
    toast_duration: int = 5


def build_alert_tone() -> bytes:
    """Render the alert as a mono 16-bit WAV.

    A 660 Hz sine whose gain rises exponentially from 0.0001 to 0.2 over the
    first 50 ms and then holds until the tone stops at 200 ms.
    """
    total = int(SAMPLE_RATE * TONE_SECONDS)
    ramp = int(SAMPLE_RATE * RAMP_SECONDS)
    samples = array("h")
    for n in range(total):
        if n < ramp:
            gain = GAIN_START * (GAIN_PEAK / GAIN_START) ** (n / ramp)
        else:
            gain = GAIN_PEAK
        value = gain * math.sin(2 * math.pi * TONE_HZ * n / SAMPLE_RATE)
        samples.append(int(value * 32767))

    if sys.byteorder == "big":
        samples.byteswap()

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(SAMPLE_RATE)
        wav.writeframes(samples.tobytes())
    return buffer.getvalue()


class NotificationService:
    """Plays the alert tone and shows the blocking reminder, with history."""

    def __init__(self, config: NotificationConfig | None = None) -> None:
        self.platform = platform.system()
        self.config = config or NotificationConfig()
        self._history: list[dict[str, Any]] = []
        self._tone_path: Path | None = None
        self._cleanup_registered = False

    def _tone_file(self) -> Path:
        if self._tone_path is None or not self._tone_path.exists():
            fd, name = tempfile.mkstemp(prefix="focusai-alert-", suffix=".wav")
            with open(fd, "wb") as f:
                f.write(build_alert_tone())
            if not self._cleanup_registered:
                atexit.register(self.cleanup)
                self._cleanup_registered = True
            self._tone_path = Path(name)
        return self._tone_path

    def cleanup(self) -> None:
        """Delete the rendered tone file, if any."""
        if self._tone_path is not None:
            self._tone_path.unlink(missing_ok=True)
            self._tone_path = None

    def _play_tone(self) -> bool:
        path = self._tone_file()
        if self.platform == "Windows":
            winsound.PlaySound(
                str(path), winsound.SND_FILENAME | winsound.SND_ASYNC
            )
            return True
        if self.platform == "Darwin":
            subprocess.Popen(  # noqa: S603
                ["afplay", str(path)],  # noqa: S607
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            return True
        for cmd in LINUX_PLAYERS:
            if shutil.which(cmd[0]):
                subprocess.Popen(  # noqa: S603
                    [*cmd, str(path)],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                return True
        return False

    def _show_toast(self, title: str, message: str) -> bool:
        if self.platform != "Windows":
            return False
        notifier = ToastNotifier()
        notifier.show_toast(  # pyright: ignore[reportUnknownMemberType]
            title, message, duration=self.config.toast_duration, threaded=True
        )
        return True

    def notify(
        self,
        title: str,
        message: str,
        level: NotificationLevel = NotificationLevel.INFO,
        *,
        sound: bool | None = None,
    ) -> bool:
        """Show a notification, optionally with the alert tone, and record it.

        Delivery is best effort: any failure to play audio or show a toast
        is logged at debug level and reported as ``False``.
        """
        sound = self.config.sound if sound is None else sound

        played = False
        if sound:
            try:
                played = self._play_tone()
            except (OSError, RuntimeError):
                logger.debug("Alert tone unavailable", exc_info=True)

        delivered = False
        if self.config.toast:
            try:
                delivered = self._show_toast(title, message)
            except Exception:  # noqa: BLE001
                logger.debug("Toast unavailable", exc_info=True)

        log = logger.warning if level is NotificationLevel.URGENT else logger.info
        log("%s: %s", title, message)

        self._history.append(
            {
                "title": title,
                "message": message,
                "level": level.value,
                "sound": played,
                "timestamp": time.time(),
                "delivered": delivered,
            },
        )
        return delivered or played

    def get_notification_history(self) -> list[dict[str, Any]]:
        """Return a copy of the notification history."""
        return list(self._history)


_default_service: NotificationService | None = None
_default_lock = threading.Lock()


def get_notification_service() -> NotificationService:
    """Process-wide default service."""
    global _default_service  # noqa: PLW0603
    with _default_lock:
        if _default_service is None:
            _default_service = NotificationService()
        return _default_service


def notify_blocked(target_title: str) -> bool:
    """This isn't helping your goal: remind the user where to go back to."""
    return get_notification_service().notify(
        "FocusAI - This isn't helping your goal.",
        f"Return to: {target_title or 'your main work'}",
        NotificationLevel.URGENT,
        sound=True,
    )


def notify_session_ended(goal: str) -> bool:
    """Quiet notice when a session closes."""
    return get_notification_service().notify(
        "FocusAI",
        f"Focus session ended: {goal}",
        NotificationLevel.INFO,
        sound=False,
    )
