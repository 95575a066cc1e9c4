"""Gateway exceptions for error handling."""

from typing import Optional


class GatewayError(Exception):
    """Base exception for music API calls.

    Covers network failures, non-success statuses and malformed payloads.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        self.status_code = status_code
        self.reason = reason  # The API's own "error" text, when it sent one
        super().__init__(message)


class UnauthorizedError(GatewayError):
    """Raised when the API rejects the bearer credential (HTTP 401)."""

    pass


class MalformedResponseError(GatewayError):
    """Raised when a response body is not the JSON shape we expected."""

    pass


class AuthenticationError(GatewayError):
    """Raised when register/login/profile update fails.

    The message is a human-readable reason suitable for showing the user.
    """

    pass
