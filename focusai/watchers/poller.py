"""Periodic activity reporting for the live session."""

import asyncio
import time
from collections.abc import Callable
from typing import Any, Protocol, TypedDict

from focusai.errors import FocusError
from focusai.logger import logger
from focusai.model.models import ActivitySnapshot, Decision, SessionHandle
from focusai.watchers.active_window import get_active_window
from focusai.watchers.idle import is_idle


class Context(TypedDict):
    """What the user is looking at right now."""

    title: str
    url: str
    idle: bool


class ActivityReporter(Protocol):
    def report_activity(self, snapshot: ActivitySnapshot) -> Decision: ...


def collect_context(idle_threshold_ms: int = 60_000) -> Context:
    """前面ウィンドウとアイドル状態からコンテキストを収集.

    ウィンドウタイトルが空のときはプロセス名をタイトルとして使う。
    ブラウザのURLは取得できないため ``url`` は常に空文字。
    """
    window = get_active_window()
    return {
        "title": window.get("title") or window.get("app") or "",
        "url": "",
        "idle": is_idle(idle_threshold_ms),
    }


class ActivityPoller:
    """Runs one reporting loop per session.

    :meth:`start` returns the loop's task; cancelling that task is the only
    way to stop it. Each tick waits for its own response before the next
    sleep, so at most one request is outstanding and decisions arrive in
    the order they were requested.
    """

    def __init__(
        self,
        reporter: ActivityReporter,
        on_decision: Callable[[int, Decision], None],
        *,
        interval: float = 5.0,
        context_provider: Callable[[], Context] = collect_context,
    ) -> None:
        self.reporter = reporter
        self.on_decision = on_decision
        self.interval = interval
        self.context_provider = context_provider
        self.stats: dict[str, Any] = {
            "ticks": 0,
            "errors_total": 0,
            "last_tick_time": None,
        }

    def start(
        self, handle: SessionHandle, user_id: str | None
    ) -> "asyncio.Task[None]":
        """Schedule the loop for ``handle``; the first tick comes after one interval."""
        return asyncio.create_task(
            self._run(handle, user_id), name=f"poll-{handle.session_id}"
        )

    def build_snapshot(
        self, handle: SessionHandle, user_id: str | None
    ) -> ActivitySnapshot:
        context = self.context_provider()
        return {
            "session_id": handle.session_id,
            "user_id": user_id,
            "title": context["title"],
            "url": context["url"],
            "idle": context["idle"],
        }

    async def run_once(self, handle: SessionHandle, user_id: str | None) -> bool:
        """1回の収集・送信サイクルを実行.

        どの段階で失敗してもティック失敗として数えるだけで、例外は送出しない。

        Returns:
            bool: 判定を受け取れた場合True

        """
        self.stats["ticks"] += 1
        self.stats["last_tick_time"] = time.time()
        try:
            snapshot = await asyncio.to_thread(self.build_snapshot, handle, user_id)
            decision = await asyncio.to_thread(self.reporter.report_activity, snapshot)
        except FocusError as e:
            self.stats["errors_total"] += 1
            logger.warning("Poll tick failed for %s: %s", handle.session_id, e)
            return False
        except Exception:
            # ウィンドウ情報の取得失敗などもティック失敗として扱う
            self.stats["errors_total"] += 1
            logger.exception("Poll tick errored for %s", handle.session_id)
            return False

        self.on_decision(handle.epoch, decision)
        return True

    async def _run(self, handle: SessionHandle, user_id: str | None) -> None:
        logger.info("Polling %s every %.1fs", handle.session_id, self.interval)
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    await self.run_once(handle, user_id)
                except Exception:
                    # キャンセル以外ではループを止めない
                    self.stats["errors_total"] += 1
                    logger.exception("Poll tick crashed for %s", handle.session_id)
        finally:
            logger.info("Polling stopped for %s", handle.session_id)
