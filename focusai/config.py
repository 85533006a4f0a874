"""Settings loaded from the environment (and ``.env.local`` when present)."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_BACKEND_URL = "http://localhost:8000"
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_IDLE_THRESHOLD_MS = 60_000


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the monitor."""

    backend_url: str = DEFAULT_BACKEND_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    idle_threshold_ms: int = DEFAULT_IDLE_THRESHOLD_MS
    state_file: Path = Path.home() / ".focusai" / "state.json"
    log_dir: Path = Path("log")


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = float(raw)
    if value <= 0:
        msg = f"{name} must be positive, got {raw!r}"
        raise ValueError(msg)
    return value


def load_local_env(env_file: Path = Path(".env.local")) -> None:
    """Load ``.env.local`` without overriding variables already set."""
    load_dotenv(dotenv_path=env_file, override=False)


def load_settings(env_file: Path = Path(".env.local")) -> Settings:
    """Build :class:`Settings` from environment variables.

    Recognised variables:
    - FOCUSAI_BACKEND_URL
    - FOCUSAI_POLL_INTERVAL (seconds)
    - FOCUSAI_REQUEST_TIMEOUT (seconds)
    - FOCUSAI_IDLE_THRESHOLD_MS
    - FOCUSAI_STATE_FILE
    - FOCUSAI_LOG_DIR
    """
    load_local_env(env_file)
    defaults = Settings()
    state_file = os.getenv("FOCUSAI_STATE_FILE")
    log_dir = os.getenv("FOCUSAI_LOG_DIR")
    return Settings(
        backend_url=(os.getenv("FOCUSAI_BACKEND_URL") or DEFAULT_BACKEND_URL).rstrip(
            "/"
        ),
        poll_interval=_positive_float("FOCUSAI_POLL_INTERVAL", DEFAULT_POLL_INTERVAL),
        request_timeout=_positive_float(
            "FOCUSAI_REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT
        ),
        idle_threshold_ms=int(
            _positive_float("FOCUSAI_IDLE_THRESHOLD_MS", DEFAULT_IDLE_THRESHOLD_MS)
        ),
        state_file=Path(state_file).expanduser() if state_file else defaults.state_file,
        log_dir=Path(log_dir) if log_dir else defaults.log_dir,
    )
