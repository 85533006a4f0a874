import asyncio
import itertools
import threading
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from focusai.errors import NetworkFailure
from focusai.model.models import (
    ActivitySnapshot,
    Decision,
    SessionSpec,
    SessionSummary,
)
from focusai.session.controller import SessionController
from focusai.session.identity import DeviceIdentityStore
from focusai.watchers.poller import Context

TEST_INTERVAL = 0.01


class FakeBackend:
    """In-process stand-in for the HTTP backend."""

    def __init__(self) -> None:
        self.user_id = "user-1"
        self.decisions: list[Decision | Exception] = []
        self.default_decision = Decision.RELEVANT
        self.fail_register = False
        self.fail_start = False
        self.fail_end = False
        self.summary = SessionSummary()
        self.registered: list[str] = []
        self.started: list[tuple[SessionSpec, str | None]] = []
        self.ended: list[str] = []
        self.activity: list[ActivitySnapshot] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def register_user(self, device_id: str) -> str:
        self.registered.append(device_id)
        if self.fail_register:
            msg = "connection refused"
            raise NetworkFailure(msg)
        return self.user_id

    def start_session(self, spec: SessionSpec, user_id: str | None) -> str:
        if self.fail_start:
            msg = "connection refused"
            raise NetworkFailure(msg)
        self.started.append((spec, user_id))
        return f"session-{next(self._ids)}"

    def report_activity(self, snapshot: ActivitySnapshot) -> Decision:
        with self._lock:
            self.activity.append(snapshot)
            result = self.decisions.pop(0) if self.decisions else self.default_decision
        if isinstance(result, Exception):
            raise result
        return result

    def end_session(self, session_id: str) -> None:
        self.ended.append(session_id)
        if self.fail_end:
            msg = "connection reset"
            raise NetworkFailure(msg)

    def fetch_summary(self, user_id: str) -> SessionSummary:
        return self.summary

    def activity_for(self, session_id: str) -> list[ActivitySnapshot]:
        with self._lock:
            return [s for s in self.activity if s["session_id"] == session_id]


def fixed_context() -> Context:
    return {"title": "essay.docx - Word", "url": "", "idle": False}


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until ``predicate`` holds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            msg = "condition not met in time"
            raise AssertionError(msg)
        await asyncio.sleep(0.005)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def state_file(tmp_path: Path) -> Path:
    return tmp_path / "state" / "state.json"


@pytest.fixture
def alerts() -> list[str]:
    return []


@pytest.fixture
def make_controller(
    backend: FakeBackend, state_file: Path, alerts: list[str]
) -> Callable[..., SessionController]:
    """Build a controller with a fast poll interval (call inside the loop)."""

    def _make(
        *, use_backend: FakeBackend | None = None, **kwargs: object
    ) -> SessionController:
        options: dict[str, object] = {
            "poll_interval": TEST_INTERVAL,
            "context_provider": fixed_context,
            "alert": alerts.append,
            "expire_sessions": False,
        }
        options.update(kwargs)
        return SessionController(
            use_backend or backend,
            DeviceIdentityStore(state_file),
            **options,  # type: ignore[arg-type]
        )

    return _make


@pytest.fixture
def essay_spec() -> SessionSpec:
    return SessionSpec(
        goal="Write essay",
        duration_minutes=45,
        categories=frozenset({"social"}),
        voice="Cluely",
    )
