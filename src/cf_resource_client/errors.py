"""Exceptions raised by the Cloud Controller client.

Everything derives from :class:`CFClientError` so callers can abort on the
first failure with a single ``except`` clause.
"""

from __future__ import annotations

from typing import Optional

BODY_SNIPPET_LIMIT = 512


def body_snippet(text: Optional[str], limit: int = BODY_SNIPPET_LIMIT) -> str:
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class CFClientError(Exception):
    """Base class for every error surfaced by this package."""


class ConfigError(CFClientError):
    def __init__(self, msg: str, path: Optional[str] = None) -> None:
        super().__init__(msg)
        self.path = path


class TransportError(CFClientError):
    """Connection, DNS or timeout failure. Never retried."""

    def __init__(self, msg: str, url: Optional[str] = None) -> None:
        super().__init__(msg)
        self.url = url


class AuthRefreshError(CFClientError):
    """The UAA token endpoint rejected the refresh or could not be reached."""

    def __init__(self, msg: str, status_code: Optional[int] = None) -> None:
        super().__init__(msg)
        self.status_code = status_code


class AuthenticationError(CFClientError):
    """The API still refuses the request after one token refresh."""

    def __init__(self, msg: str, status_code: int, url: Optional[str] = None) -> None:
        super().__init__(msg)
        self.status_code = status_code
        self.url = url


class ProtocolViolationError(CFClientError):
    """The token endpoint answered 2xx with a body we cannot use."""

    def __init__(self, msg: str, body_snippet: str = "") -> None:
        super().__init__(msg)
        self.body_snippet = body_snippet


class APIError(CFClientError):
    """Any non-2xx answer that is not an authorization failure."""

    def __init__(self, status_code: int, body_snippet: str = "", url: Optional[str] = None) -> None:
        super().__init__(f"API request failed with status {status_code}: {body_snippet}")
        self.status_code = status_code
        self.body_snippet = body_snippet
        self.url = url


class ResponseDecodeError(CFClientError):
    """A successful API response could not be decoded into a page or record."""

    def __init__(self, msg: str, url: Optional[str] = None) -> None:
        super().__init__(msg)
        self.url = url
