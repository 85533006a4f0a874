import pytest

from focusai.errors import InvalidResponse
from focusai.model.models import SessionSummary
from focusai.session.summary import SummaryRequester, format_summary


class TestSummaryRequester:
    """サマリー取得のテスト"""

    @pytest.mark.asyncio
    async def test_new_user_gets_zeroes(self, backend):
        summary = await SummaryRequester(backend).fetch("user-1")

        assert summary == SessionSummary(
            total_focus_seconds=0, distractions_blocked=0, streak_days=0
        )

    @pytest.mark.asyncio
    async def test_missing_user_is_unavailable(self, backend):
        assert await SummaryRequester(backend).fetch(None) is None

    @pytest.mark.asyncio
    async def test_failure_is_unavailable(self, backend):
        def broken(user_id: str) -> SessionSummary:
            msg = "bad body"
            raise InvalidResponse(msg)

        backend.fetch_summary = broken

        assert await SummaryRequester(backend).fetch("user-1") is None


class TestFormatSummary:
    def test_minutes_are_rounded(self):
        text = format_summary(
            SessionSummary(
                total_focus_seconds=2730, distractions_blocked=4, streak_days=3
            )
        )

        assert "Total Focus: 46 min" in text
        assert "Distractions Blocked: 4" in text
        assert "Streak: 3 days" in text

    def test_unavailable(self):
        assert format_summary(None) == "Summary unavailable"
