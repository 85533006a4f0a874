"""Session lifecycle: registration, start, end and the polling license.

All state lives on one asyncio loop. Network calls run in worker threads
and are the only suspension points, so each transition below is atomic
with respect to everything else on the loop.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Protocol

from focusai.errors import FocusError, PreconditionMissing, SessionAlreadyActive
from focusai.logger import logger
from focusai.model.models import (
    ActivitySnapshot,
    Decision,
    OverlayState,
    SessionHandle,
    SessionSpec,
)
from focusai.session.identity import DeviceIdentityStore
from focusai.session.overlay import OverlayMapper
from focusai.watchers.poller import ActivityPoller, Context, collect_context


class SessionBackend(Protocol):
    def register_user(self, device_id: str) -> str: ...

    def start_session(self, spec: SessionSpec, user_id: str | None) -> str: ...

    def report_activity(self, snapshot: ActivitySnapshot) -> Decision: ...

    def end_session(self, session_id: str) -> None: ...


class SessionStatus(Enum):
    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    ENDING = "ending"


@dataclass
class ActiveSession:
    """Everything that exists only while a session is live."""

    handle: SessionHandle
    poll_task: "asyncio.Task[None]"
    expiry: asyncio.TimerHandle | None = None
    _disposed: bool = field(default=False, repr=False)

    def dispose(self) -> None:
        """Cancel the poll loop and the expiry timer."""
        if self._disposed:
            return
        self._disposed = True
        self.poll_task.cancel()
        if self.expiry is not None:
            self.expiry.cancel()


class SessionController:
    """Owns the single live session and the overlay derived from it."""

    def __init__(
        self,
        backend: SessionBackend,
        identity_store: DeviceIdentityStore,
        *,
        poll_interval: float = 5.0,
        context_provider: Callable[[], Context] = collect_context,
        alert: Callable[[str], object] | None = None,
        expire_sessions: bool = True,
    ) -> None:
        self.backend = backend
        self.identity_store = identity_store
        self.user_id: str | None = None
        self.expire_sessions = expire_sessions

        self._status = SessionStatus.IDLE
        self._active: ActiveSession | None = None
        self._epoch = 0
        self._ends_in_flight = 0
        self._mapper = OverlayMapper(alert)
        self._poller = ActivityPoller(
            backend,
            self.handle_decision,
            interval=poll_interval,
            context_provider=context_provider,
        )
        self._idle = asyncio.Event()
        self._idle.set()
        self._background: set[asyncio.Task[object]] = set()

    # --- read-only views ---

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def session(self) -> SessionHandle | None:
        return self._active.handle if self._active else None

    @property
    def overlay(self) -> OverlayState:
        return self._mapper.state

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def poller(self) -> ActivityPoller:
        return self._poller

    @property
    def polling(self) -> bool:
        """True while a poll loop is scheduled."""
        return self._active is not None and not self._active.poll_task.done()

    async def wait_until_idle(self) -> None:
        """Block until no session is live and no end request is in flight."""
        await self._idle.wait()

    # --- transitions ---

    async def register(self) -> str | None:
        """Resolve the user for this device; failures leave ``user_id`` unset."""
        device = self.identity_store.get_or_create_device_id()
        try:
            user_id = await asyncio.to_thread(
                self.backend.register_user, str(device.id)
            )
        except FocusError as e:
            logger.warning("Registration failed, continuing without a user: %s", e)
            return None
        self.user_id = user_id
        logger.info("Registered device %s as user %s", device.id, user_id)
        return user_id

    async def start(self, spec: SessionSpec) -> SessionHandle:
        """Open a session and start polling for it.

        Raises:
            SessionAlreadyActive: a session is starting or active.
            PreconditionMissing: registration has not produced a user id.
            NetworkFailure, InvalidResponse: the backend call failed; the
                controller stays idle.

        """
        if self._status in (SessionStatus.STARTING, SessionStatus.ACTIVE):
            msg = "a focus session is already active"
            raise SessionAlreadyActive(msg)
        if self.user_id is None:
            msg = "cannot start a session without a registered user"
            raise PreconditionMissing(msg)

        self._status = SessionStatus.STARTING
        try:
            session_id = await asyncio.to_thread(
                self.backend.start_session, spec, self.user_id
            )
        except (FocusError, asyncio.CancelledError):
            # 終了リクエストが残っていれば ENDING に戻す
            self._status = (
                SessionStatus.ENDING if self._ends_in_flight else SessionStatus.IDLE
            )
            raise

        self._epoch += 1
        handle = SessionHandle(
            session_id=session_id,
            spec=spec,
            started_at=datetime.now(timezone.utc),
            epoch=self._epoch,
        )
        self._mapper.reset()
        active = ActiveSession(
            handle=handle, poll_task=self._poller.start(handle, self.user_id)
        )
        if self.expire_sessions:
            active.expiry = asyncio.get_running_loop().call_later(
                spec.duration_minutes * 60, self._expire, handle.epoch
            )
        self._active = active
        self._status = SessionStatus.ACTIVE
        self._idle.clear()
        logger.info(
            "Session %s started: %r for %d min",
            session_id,
            spec.goal,
            spec.duration_minutes,
        )
        return handle

    async def end(self) -> bool:
        """End the live session.

        Local state is cleared before the backend is told, so polling stops
        and the overlay hides even if the request fails. Returns ``True``
        when the backend acknowledged; ``False`` when it did not or when
        there was nothing to end.
        """
        active = self._active
        if active is None:
            return False

        self._active = None
        self._epoch += 1
        active.dispose()
        self._mapper.reset()
        self._status = SessionStatus.ENDING
        self._ends_in_flight += 1
        session_id = active.handle.session_id

        acknowledged = False
        try:
            await asyncio.to_thread(self.backend.end_session, session_id)
            acknowledged = True
        except FocusError as e:
            logger.warning("End request for %s failed: %s", session_id, e)
        finally:
            self._ends_in_flight -= 1
            if self._status is SessionStatus.ENDING and not self._ends_in_flight:
                self._status = SessionStatus.IDLE
            if self._active is None:
                self._idle.set()
        logger.info("Session %s ended", session_id)
        return acknowledged

    def handle_decision(self, epoch: int, decision: Decision) -> None:
        """Apply a poll decision if it belongs to the live session."""
        active = self._active
        if active is None or active.handle.epoch != epoch:
            logger.info(
                "Discarding stale decision %s (epoch %d)", decision.value, epoch
            )
            return
        self._mapper.apply(decision, active.handle.spec.goal)

    def dismiss_overlay(self) -> OverlayState:
        """Hide the reminder ("go back") without ending the session."""
        return self._mapper.hide()

    def _expire(self, epoch: int) -> None:
        active = self._active
        if active is None or active.handle.epoch != epoch:
            return
        logger.info("Session %s reached its duration", active.handle.session_id)
        task = asyncio.ensure_future(self.end())
        self._background.add(task)
        task.add_done_callback(self._background.discard)
