"""
HTTP client for the music API.

One GatewayClient is shared by every endpoint module. It owns the requests
session, attaches the bearer credential to protected calls and turns every
failure into a GatewayError.
"""

from typing import Any, Callable, Optional

import requests
from loguru import logger

from .exceptions import GatewayError, MalformedResponseError, UnauthorizedError

AUTH_HEADER = "auth-token"


class GatewayClient:
    """Thin wrapper around ``requests.Session`` for the music API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_provider = token_provider
        self.session = session or requests.Session()
        # Called when a protected request is rejected with 401
        self.on_unauthorized: Optional[Callable[[], None]] = None

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _auth_headers(self) -> dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        return {AUTH_HEADER: token} if token else {}

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
        protected: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method
            path: Path below the base URL, e.g. ``/api/songs``
            json: JSON body
            data: Form fields (multipart when ``files`` is given)
            files: Multipart file fields
            protected: Attach the bearer credential

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            UnauthorizedError: Credential rejected on a protected call
            MalformedResponseError: Body is not valid JSON
            GatewayError: Network failure or any other non-success status
        """
        url = self.url(path)
        headers = self._auth_headers() if protected else {}

        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(
                method,
                url,
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code
            reason = api_reason(e.response)
            message = reason or f"HTTP {status} {e.response.reason or ''}".strip()
            logger.warning(f"{method} {url} failed: HTTP {status} ({message})")
            if status == 401 and protected:
                if self.on_unauthorized:
                    self.on_unauthorized()
                raise UnauthorizedError(message, status, reason) from e
            raise GatewayError(message, status, reason) from e
        except requests.RequestException as e:
            logger.warning(f"{method} {url} network error: {e}")
            raise GatewayError(f"Network error: {e}") from e

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Malformed response from {url}", response.status_code
            ) from e

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        self.session.close()


def api_reason(response: requests.Response) -> Optional[str]:
    """Human-readable reason the API gave for a failed response.

    The API reports failures as ``{"error": "..."}``; returns None when the
    body says nothing useful.
    """
    try:
        body = response.json()
    except ValueError:
        return None

    if isinstance(body, dict):
        for key in ("error", "message"):
            if isinstance(body.get(key), str) and body[key]:
                return body[key]

    return None
