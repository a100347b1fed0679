from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

import requests
import urllib3

from .config_loader import ClientConfig
from .credentials import Credentials, TokenRefresher
from .decoders import App, Decoder, Event, Organization, ServiceBinding, Space, decode_space, get_decoder
from .errors import ResponseDecodeError
from .executor import RawResponse, RequestExecutor
from .pagination import PageWalker

logger = logging.getLogger("cf-resource-client")

API_VERSION_PREFIX = "/v2"

APP_CREATE = "audit.app.create"
APP_START = "audit.app.start"
APP_UPDATE = "audit.app.update"
SPACE_CREATE = "audit.space.create"

Params = Sequence[Tuple[str, str]]


@dataclass
class SpaceSummary:
    """Everything gathered about one space for reporting."""

    space: Space
    apps: List[App] = field(default_factory=list)
    app_creates: List[Event] = field(default_factory=list)
    app_starts: List[Event] = field(default_factory=list)
    app_updates: List[Event] = field(default_factory=list)
    space_creates: List[Event] = field(default_factory=list)
    service_bindings: List[ServiceBinding] = field(default_factory=list)


def build_session(*, allow_insecure_tls: bool = False) -> requests.Session:
    session = requests.Session()
    session.verify = not allow_insecure_tls
    if allow_insecure_tls:
        logger.warning("TLS certificate verification is disabled for this client")
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    return session


def with_params(endpoint: str, params: Optional[Params]) -> str:
    if not params:
        return endpoint
    separator = "&" if "?" in endpoint else "?"
    return endpoint + separator + urlencode(list(params))


class CFClient:
    """Read-only Cloud Controller client.

    Example:
        >>> with CFClient(load_config()) as client:
        ...     for org in client.get_organizations():
        ...         print(org.name)
    """

    def __init__(self, config: ClientConfig, *, session: Optional[requests.Session] = None) -> None:
        self._owns_session = session is None
        self._session = session or build_session(allow_insecure_tls=config.allow_insecure_tls)
        self.credentials = Credentials(
            access_token=config.access_token,
            refresh_token=config.refresh_token,
            client_id=config.uaa_client_id,
            client_secret=config.uaa_client_secret.get_secret_value(),
        )
        refresher = TokenRefresher(config.uaa_endpoint, self._session, timeout=config.request_timeout)
        self.executor = RequestExecutor(
            config.target,
            self.credentials,
            refresher,
            self._session,
            timeout=config.request_timeout,
        )
        self.walker = PageWalker(self.executor)

    def __enter__(self) -> "CFClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def execute_get(self, path: str) -> RawResponse:
        return self.executor.execute_get(path)

    def fetch_all_pages(self, endpoint: str, decoder: Optional[Decoder] = None) -> List[Any]:
        return self.walker.fetch_all_pages(endpoint, decoder=decoder)

    def list_resources(
        self,
        kind: str,
        endpoint: Optional[str] = None,
        *,
        params: Optional[Params] = None,
    ) -> List[Any]:
        """Walk a listing and decode it with the decoder registered for ``kind``."""

        start = with_params(endpoint or f"{API_VERSION_PREFIX}/{kind}", params)
        return self.fetch_all_pages(start, decoder=get_decoder(kind))

    def get_organizations(self) -> List[Organization]:
        return self.list_resources("organizations")

    def get_spaces(self) -> List[Space]:
        return self.list_resources("spaces")

    def get_space(self, guid: str) -> Space:
        path = f"{API_VERSION_PREFIX}/spaces/{guid}"
        raw = self.executor.get_json(path)
        try:
            return decode_space(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ResponseDecodeError(f"Could not decode space from {path}: {exc!r}", url=path) from exc

    def get_apps(self, space_guid: Optional[str] = None) -> List[App]:
        params = [("q", f"space_guid:{space_guid}")] if space_guid else None
        return self.list_resources("apps", params=params)

    def get_service_bindings(self, app_guid: Optional[str] = None) -> List[ServiceBinding]:
        endpoint = f"{API_VERSION_PREFIX}/apps/{app_guid}/service_bindings" if app_guid else None
        return self.list_resources("service_bindings", endpoint)

    def get_events(self, event_type: str, *, space_guid: Optional[str] = None) -> List[Event]:
        params = [("q", f"type:{event_type}")]
        if space_guid:
            params.append(("q", f"space_guid:{space_guid}"))
        return self.list_resources("events", params=params)

    def summarize_space(self, space: Space) -> SpaceSummary:
        logger.info("Summarizing space %s (%s)", space.name, space.guid)
        apps = self.get_apps(space.guid)
        bindings: List[ServiceBinding] = []
        for app in apps:
            bindings.extend(self.get_service_bindings(app.guid))
        return SpaceSummary(
            space=space,
            apps=apps,
            app_creates=self.get_events(APP_CREATE, space_guid=space.guid),
            app_starts=self.get_events(APP_START, space_guid=space.guid),
            app_updates=self.get_events(APP_UPDATE, space_guid=space.guid),
            space_creates=self.get_events(SPACE_CREATE, space_guid=space.guid),
            service_bindings=bindings,
        )
