from typing import Optional


class AdminApiError(Exception):
    """Base class for failures talking to the admin API."""


class AuthenticationError(AdminApiError):
    """No token in the session, or the admin API rejected it (401)."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class TransportError(AdminApiError):
    """The admin API could not be reached or returned an unreadable body."""


class RemoteError(AdminApiError):
    """The admin API answered with success=false or a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
