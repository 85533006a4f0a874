"""On-demand session statistics."""

import asyncio
from typing import Protocol

from focusai.errors import FocusError
from focusai.logger import logger
from focusai.model.models import SessionSummary


class SummaryBackend(Protocol):
    def fetch_summary(self, user_id: str) -> SessionSummary: ...


class SummaryRequester:
    """Single-attempt, uncached fetch of :class:`SessionSummary`."""

    def __init__(self, backend: SummaryBackend) -> None:
        self.backend = backend

    async def fetch(self, user_id: str | None) -> SessionSummary | None:
        """Return the summary, or ``None`` when it is unavailable."""
        if user_id is None:
            return None
        try:
            return await asyncio.to_thread(self.backend.fetch_summary, user_id)
        except FocusError as e:
            logger.warning("Summary unavailable for %s: %s", user_id, e)
            return None


def format_summary(summary: SessionSummary | None) -> str:
    """作業サマリーの表示用テキスト."""
    if summary is None:
        return "Summary unavailable"
    minutes = round(summary.total_focus_seconds / 60)
    return (
        f"Total Focus: {minutes} min\n"
        f"Distractions Blocked: {summary.distractions_blocked}\n"
        f"Streak: {summary.streak_days} days"
    )
