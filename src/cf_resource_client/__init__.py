"""Read-only Cloud Foundry Cloud Controller client with token refresh and pagination."""

from .client import CFClient, SpaceSummary
from .config_loader import ClientConfig, load_config
from .credentials import Credentials, TokenRefresher
from .decoders import register_decoder
from .errors import (
    APIError,
    AuthenticationError,
    AuthRefreshError,
    CFClientError,
    ConfigError,
    ProtocolViolationError,
    ResponseDecodeError,
    TransportError,
)
from .executor import RawResponse, RequestExecutor
from .pagination import Page, PageWalker, parse_page

__all__ = [
    "CFClient",
    "SpaceSummary",
    "ClientConfig",
    "load_config",
    "Credentials",
    "TokenRefresher",
    "register_decoder",
    "RequestExecutor",
    "RawResponse",
    "Page",
    "PageWalker",
    "parse_page",
    "CFClientError",
    "ConfigError",
    "TransportError",
    "AuthRefreshError",
    "AuthenticationError",
    "ProtocolViolationError",
    "APIError",
    "ResponseDecodeError",
]
