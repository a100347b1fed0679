"""Authenticated GET execution against the Cloud Controller API.

A request that comes back 401/403 triggers exactly one token refresh and one
retry. A second authorization failure is final.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlsplit

import requests

from .credentials import Credentials, TokenRefresher
from .errors import (
    APIError,
    AuthenticationError,
    ResponseDecodeError,
    TransportError,
    body_snippet,
)

logger = logging.getLogger("cf-resource-executor")

MAX_AUTH_RETRIES = 1
AUTH_FAILURE_STATUSES = (401, 403)


@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: bytes
    url: str


class RequestExecutor:
    def __init__(
        self,
        api_base_url: str,
        credentials: Credentials,
        refresher: TokenRefresher,
        session: requests.Session,
        *,
        timeout: Optional[float] = None,
    ) -> None:
        self._api_base_url = api_base_url.rstrip("/")
        self._credentials = credentials
        self._refresher = refresher
        self._session = session
        self._timeout = timeout

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            target = urlsplit(path)
            base = urlsplit(self._api_base_url)
            if (target.scheme, target.netloc) != (base.scheme, base.netloc):
                raise ResponseDecodeError(
                    f"Refusing to send credentials to {target.scheme}://{target.netloc}",
                    url=path,
                )
            return path
        if not path.startswith("/"):
            path = "/" + path
        return self._api_base_url + path

    def _send(self, url: str, token: str) -> requests.Response:
        try:
            return self._session.get(
                url,
                headers={"Authorization": token, "Accept": "application/json"},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("GET %s failed: %s", url, exc)
            raise TransportError(f"GET {url} failed: {exc}", url=url) from exc

    def execute_get(self, path: str) -> RawResponse:
        """Issue an authenticated GET and return the 2xx body verbatim."""

        url = self.build_url(path)
        for attempt in range(MAX_AUTH_RETRIES + 1):
            token = self._credentials.authorization_header()
            logger.debug("GET %s (attempt %d)", url, attempt + 1)
            response = self._send(url, token)

            if 200 <= response.status_code <= 299:
                return RawResponse(response.status_code, response.content, url)

            if response.status_code in AUTH_FAILURE_STATUSES:
                if attempt < MAX_AUTH_RETRIES:
                    logger.info("GET %s answered %s; refreshing token", url, response.status_code)
                    self._refresher.refresh(self._credentials, stale_access_token=token)
                    continue
                raise AuthenticationError(
                    f"GET {url} still answered {response.status_code} after a token refresh",
                    status_code=response.status_code,
                    url=url,
                )

            snippet = body_snippet(response.text)
            logger.error("GET %s answered %s: %s", url, response.status_code, snippet)
            raise APIError(response.status_code, snippet, url=url)

        # the loop always returns or raises
        raise AssertionError("unreachable")

    def get_json(self, path: str) -> Any:
        raw = self.execute_get(path)
        try:
            return json.loads(raw.body)
        except ValueError as exc:
            raise ResponseDecodeError(f"GET {raw.url} returned a body that is not JSON", url=raw.url) from exc
