"""HTTP/JSON client for the FocusAI backend."""

from typing import Any, TypeVar

import requests
from pydantic import BaseModel, ValidationError

from focusai.errors import InvalidResponse, NetworkFailure
from focusai.model.models import (
    ActivityResponse,
    ActivitySnapshot,
    Decision,
    RegisterResponse,
    SessionSpec,
    SessionSummary,
    StartResponse,
    Voice,
)

HTTP_OK_MIN = 200
HTTP_OK_MAX = 300

ModelT = TypeVar("ModelT", bound=BaseModel)


class BackendClient:
    """Blocking client for the registration, session and summary endpoints.

    Every call either returns a parsed value or raises
    :class:`~focusai.errors.NetworkFailure` /
    :class:`~focusai.errors.InvalidResponse`; the caller decides how to
    degrade.
    """

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        """初期化

        Args:
        base_url: バックエンドのベースURL（例: http://localhost:8000）
        timeout: 各リクエストのタイムアウト(秒)

        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"Content-Type": "application/json"}

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _check(self, response: requests.Response, path: str) -> None:
        status_code = int(getattr(response, "status_code", 0))
        if not HTTP_OK_MIN <= status_code < HTTP_OK_MAX:
            msg = f"{path} returned HTTP {status_code}"
            raise NetworkFailure(msg, status_code=status_code)

    def _parse(
        self, response: requests.Response, path: str, model: type[ModelT]
    ) -> ModelT:
        try:
            body = response.json()
        except ValueError as e:
            msg = f"{path} returned a non-JSON body"
            raise InvalidResponse(msg) from e
        try:
            return model.model_validate(body)
        except ValidationError as e:
            msg = f"{path} returned an unexpected body: {e.error_count()} error(s)"
            raise InvalidResponse(msg) from e

    def _post(self, path: str, payload: dict[str, Any]) -> requests.Response:
        try:
            response = requests.post(
                self._url(path),
                json=payload,
                headers=self.headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            msg = f"{path} timed out after {self.timeout}s"
            raise NetworkFailure(msg) from e
        except requests.RequestException as e:
            msg = f"{path} failed: {e}"
            raise NetworkFailure(msg) from e
        self._check(response, path)
        return response

    def _get(self, path: str) -> requests.Response:
        try:
            response = requests.get(
                self._url(path), headers=self.headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            msg = f"{path} timed out after {self.timeout}s"
            raise NetworkFailure(msg) from e
        except requests.RequestException as e:
            msg = f"{path} failed: {e}"
            raise NetworkFailure(msg) from e
        self._check(response, path)
        return response

    # --- endpoints ---

    def register_user(
        self,
        device_id: str,
        name: str | None = None,
        email: str | None = None,
        voice: Voice = Voice.CLUELY,
    ) -> str:
        """Register this device and return the backend's user id."""
        path = "/api/user/register"
        payload = {
            "device_id": device_id,
            "name": name,
            "email": email,
            "voice": voice.value,
        }
        return self._parse(self._post(path, payload), path, RegisterResponse).user_id

    def start_session(self, spec: SessionSpec, user_id: str | None) -> str:
        """Open a session and return its id."""
        path = "/api/session/start"
        response = self._post(path, spec.to_payload(user_id))
        return self._parse(response, path, StartResponse).session_id

    def report_activity(self, snapshot: ActivitySnapshot) -> Decision:
        """Submit one activity snapshot for classification."""
        path = "/api/session/activity"
        response = self._post(path, dict(snapshot))
        return Decision.parse(self._parse(response, path, ActivityResponse).decision)

    def end_session(self, session_id: str) -> None:
        """Close a session; the response body is ignored."""
        self._post("/api/session/end", {"session_id": session_id})

    def fetch_summary(self, user_id: str) -> SessionSummary:
        """Aggregate statistics for ``user_id``."""
        path = f"/api/session/{user_id}/summary"
        return self._parse(self._get(path), path, SessionSummary)
