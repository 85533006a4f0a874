from unittest.mock import Mock, patch

import pytest
import requests

from focusai.api.client import BackendClient
from focusai.errors import InvalidResponse, NetworkFailure
from focusai.model.models import Decision, SessionSpec, SessionSummary


def make_response(status_code: int = 200, body: object = None) -> Mock:
    response = Mock()
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


class TestBackendClient:
    """バックエンドクライアントのテスト"""

    @pytest.fixture
    def client(self):
        return BackendClient("http://localhost:8000/", timeout=3.0)

    def test_register_payload(self, client):
        with patch(
            "requests.post", return_value=make_response(body={"user_id": "u-42"})
        ) as mock_post:
            user_id = client.register_user("device-1")

        assert user_id == "u-42"
        args, kwargs = mock_post.call_args
        assert args[0] == "http://localhost:8000/api/user/register"
        assert kwargs["json"] == {
            "device_id": "device-1",
            "name": None,
            "email": None,
            "voice": "Cluely",
        }
        assert kwargs["timeout"] == 3.0
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_start_payload(self, client):
        spec = SessionSpec(
            goal="Write essay",
            duration_minutes=45,
            categories=frozenset({"social", "games"}),
            voice="Calm",
        )
        with patch(
            "requests.post", return_value=make_response(body={"session_id": "s-1"})
        ) as mock_post:
            session_id = client.start_session(spec, "u-42")

        assert session_id == "s-1"
        assert mock_post.call_args.kwargs["json"] == {
            "user_id": "u-42",
            "goal": "Write essay",
            "duration_minutes": 45,
            "categories": ["games", "social"],
            "voice": "Calm",
        }

    def test_report_activity_decisions(self, client):
        snapshot = {
            "session_id": "s-1",
            "user_id": "u-42",
            "title": "YouTube",
            "url": "https://youtube.com",
            "idle": False,
        }
        cases = [
            ("irrelevant", Decision.IRRELEVANT),
            ("relevant", Decision.RELEVANT),
            ("nudge", Decision.RELEVANT),
        ]
        for tag, expected in cases:
            with patch(
                "requests.post", return_value=make_response(body={"decision": tag})
            ) as mock_post:
                assert client.report_activity(snapshot) is expected
            assert mock_post.call_args.kwargs["json"] == snapshot

    def test_end_ignores_body(self, client):
        with patch(
            "requests.post", return_value=make_response(body=ValueError("empty"))
        ) as mock_post:
            client.end_session("s-1")

        assert mock_post.call_args.kwargs["json"] == {"session_id": "s-1"}

    def test_summary_defaults_missing_fields(self, client):
        with patch(
            "requests.get",
            return_value=make_response(body={"total_focus_seconds": 120}),
        ) as mock_get:
            summary = client.fetch_summary("u-42")

        assert mock_get.call_args.args[0] == (
            "http://localhost:8000/api/session/u-42/summary"
        )
        assert summary == SessionSummary(total_focus_seconds=120)

    def test_timeout_is_network_failure(self, client):
        with (
            patch("requests.post", side_effect=requests.exceptions.Timeout()),
            pytest.raises(NetworkFailure, match="timed out"),
        ):
            client.register_user("device-1")

    def test_connection_error_is_network_failure(self, client):
        with (
            patch("requests.post", side_effect=requests.ConnectionError("refused")),
            pytest.raises(NetworkFailure),
        ):
            client.end_session("s-1")

    def test_http_error_is_network_failure(self, client):
        with (
            patch("requests.post", return_value=make_response(500, {})),
            pytest.raises(NetworkFailure) as excinfo,
        ):
            client.register_user("device-1")

        assert excinfo.value.status_code == 500

    def test_non_json_is_invalid_response(self, client):
        with (
            patch("requests.post", return_value=make_response(body=ValueError())),
            pytest.raises(InvalidResponse),
        ):
            client.register_user("device-1")

    def test_missing_field_is_invalid_response(self, client):
        with (
            patch("requests.post", return_value=make_response(body={"ok": True})),
            pytest.raises(InvalidResponse),
        ):
            client.start_session(SessionSpec(goal="Write essay"), "u-42")

    def test_empty_session_id_is_invalid_response(self, client):
        with (
            patch("requests.post", return_value=make_response(body={"session_id": ""})),
            pytest.raises(InvalidResponse),
        ):
            client.start_session(SessionSpec(goal="Write essay"), "u-42")
