from __future__ import annotations

import json
import logging
import threading
from typing import Any, Dict, Optional

import requests

from .errors import AuthRefreshError, ProtocolViolationError, body_snippet

logger = logging.getLogger("cf-token-refresher")

TOKEN_PATH = "/oauth/token"


class Credentials:
    """Token pair plus the UAA client identity used to refresh it.

    The client id/secret never change. The access/refresh tokens are only
    swapped together through :meth:`replace_tokens`.
    """

    def __init__(
        self,
        *,
        access_token: str,
        refresh_token: str,
        client_id: str,
        client_secret: str = "",
    ) -> None:
        self._access_token = access_token
        self._refresh_token = refresh_token
        self._client_id = client_id
        self._client_secret = client_secret
        self._lock = threading.Lock()

    @property
    def access_token(self) -> str:
        return self._access_token

    @property
    def refresh_token(self) -> str:
        return self._refresh_token

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def client_secret(self) -> str:
        return self._client_secret

    def authorization_header(self) -> str:
        return self._access_token

    def replace_tokens(self, access_token: str, refresh_token: str) -> None:
        with self._lock:
            self._access_token = access_token
            self._refresh_token = refresh_token

    def __repr__(self) -> str:
        return f"Credentials(client_id={self._client_id!r})"


class TokenRefresher:
    """Exchanges the refresh token for a new token pair at the UAA."""

    def __init__(
        self,
        auth_base_url: str,
        session: requests.Session,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._token_url = auth_base_url.rstrip("/") + TOKEN_PATH
        self._session = session
        self._timeout = timeout
        self._lock = threading.Lock()

    @property
    def token_url(self) -> str:
        return self._token_url

    def _request_refresh(self, credentials: Credentials) -> Dict[str, Any]:
        try:
            response = self._session.post(
                self._token_url,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": credentials.refresh_token,
                    "client_id": credentials.client_id,
                    "client_secret": credentials.client_secret,
                },
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("Refresh request to %s failed: %s", self._token_url, exc)
            raise AuthRefreshError("Token refresh request failed") from exc

        if response.status_code // 100 != 2:
            logger.error("Refresh request failed (%s): %s", response.status_code, response.text)
            raise AuthRefreshError(
                f"UAA answered {response.status_code} to the token refresh",
                status_code=response.status_code,
            )

        try:
            payload = json.loads(response.content)
        except ValueError as exc:
            raise ProtocolViolationError(
                "Token endpoint returned a body that is not JSON",
                body_snippet=body_snippet(response.text),
            ) from exc

        if not isinstance(payload, dict):
            raise ProtocolViolationError(
                "Token endpoint returned JSON that is not an object",
                body_snippet=body_snippet(response.text),
            )
        for key in ("access_token", "refresh_token"):
            if not payload.get(key):
                raise ProtocolViolationError(
                    f"Token endpoint response has no {key}",
                    body_snippet=body_snippet(response.text),
                )
        return payload

    def refresh(self, credentials: Credentials, *, stale_access_token: Optional[str] = None) -> None:
        """Refresh ``credentials`` in place.

        When ``stale_access_token`` is given and the credentials have already
        moved past it, another caller refreshed first and nothing is sent.
        """

        with self._lock:
            if stale_access_token is not None and credentials.access_token != stale_access_token:
                logger.info("Access token already refreshed by another request; skipping")
                return
            logger.info("Refreshing access token via %s", self._token_url)
            payload = self._request_refresh(credentials)
            credentials.replace_tokens(
                f"bearer {payload['access_token']}",
                payload["refresh_token"],
            )
            logger.info("Access token refreshed")
