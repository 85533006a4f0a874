"""Error kinds raised across the client."""

__all__ = [
    "FocusError",
    "InvalidResponse",
    "NetworkFailure",
    "PreconditionMissing",
    "SessionAlreadyActive",
]


class FocusError(Exception):
    """Base class for every error the client raises on purpose."""


class NetworkFailure(FocusError):
    """The request could not complete (connection, timeout, HTTP status)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidResponse(FocusError):
    """The backend answered with a malformed or unexpected body."""


class PreconditionMissing(FocusError):
    """An operation was attempted without a required prerequisite."""


class SessionAlreadyActive(FocusError):
    """A session is already starting or active."""
