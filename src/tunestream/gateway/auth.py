"""
Authentication and profile endpoints.

Every failure is reported as AuthenticationError carrying a reason the user
can read: the API's own message when it sent one, a generic one otherwise.
"""

from typing import Any, Optional

from loguru import logger

from tunestream.domain.library.models import User

from .client import GatewayClient
from .exceptions import AuthenticationError, GatewayError, MalformedResponseError
from .schemas import to_user

REGISTER_PATH = "/api/auth/register"
LOGIN_PATH = "/api/auth/login"
PROFILE_PATH = "/api/user/update"

REGISTERED_MESSAGE = "Registration successful, please log in"


def _auth_error(e: GatewayError, default: str) -> AuthenticationError:
    if e.status_code is None and not isinstance(e, MalformedResponseError):
        # Network failure: say what happened instead of a generic reason
        reason = str(e)
    else:
        reason = e.reason or default
    return AuthenticationError(reason, e.status_code, e.reason)


def register(client: GatewayClient, username: str, email: str, password: str) -> str:
    """Create an account. Does not log in.

    Returns:
        Confirmation message for the user

    Raises:
        AuthenticationError: Registration was refused or failed
    """
    try:
        client.post(
            REGISTER_PATH,
            json={"username": username, "email": email, "password": password},
        )
    except GatewayError as e:
        raise _auth_error(e, "Registration failed") from e

    logger.info(f"Registered account for {email}")
    return REGISTERED_MESSAGE


def login(client: GatewayClient, email: str, password: str) -> tuple[str, User]:
    """Exchange credentials for a bearer token.

    Returns:
        (token, user)

    Raises:
        AuthenticationError: Credentials rejected or the response was unusable
    """
    try:
        data = client.post(LOGIN_PATH, json={"email": email, "password": password})
        if not isinstance(data, dict) or not data.get("token"):
            raise MalformedResponseError("Login response has no token")
        user = to_user(data.get("user"))
    except GatewayError as e:
        raise _auth_error(e, "Login failed") from e

    logger.info(f"Logged in as {user.username or user.email}")
    return data["token"], user


def update_profile(
    client: GatewayClient, token: Optional[str], changes: dict[str, Any]
) -> User:
    """Update the logged-in user's profile.

    Raises:
        AuthenticationError: No token, or the update failed
    """
    if not token:
        raise AuthenticationError("Unauthorized: No token found")

    try:
        data = client.put(PROFILE_PATH, json=changes, protected=True)
        user = to_user(data)
    except GatewayError as e:
        raise _auth_error(e, "Profile update failed") from e

    logger.info(f"Profile updated for {user.id}")
    return user
