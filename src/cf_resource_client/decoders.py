"""Per-endpoint projections of raw Cloud Controller records.

v2 records carry ``metadata.guid`` plus an ``entity`` dict; v3 records are
flat with ``relationships.<name>.data.guid`` links. Each decoder accepts both.
New resource kinds are added with :func:`register_decoder`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

Decoder = Callable[[Dict[str, Any]], Any]


@dataclass(frozen=True)
class Organization:
    guid: str
    name: str


@dataclass(frozen=True)
class Space:
    guid: str
    name: str
    organization_guid: Optional[str] = None


@dataclass(frozen=True)
class App:
    guid: str
    name: str
    space_guid: Optional[str] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class ServiceBinding:
    guid: str
    app_guid: Optional[str] = None
    service_instance_guid: Optional[str] = None


@dataclass(frozen=True)
class Event:
    guid: str
    type: str
    actee: Optional[str] = None
    actee_name: Optional[str] = None
    timestamp: Optional[str] = None
    space_guid: Optional[str] = None


def _guid(raw: Dict[str, Any]) -> str:
    if "metadata" in raw:
        return raw["metadata"]["guid"]
    return raw["guid"]


def _field(raw: Dict[str, Any], name: str) -> Any:
    entity = raw.get("entity")
    if isinstance(entity, dict):
        return entity.get(name)
    return raw.get(name)


def _related_guid(raw: Dict[str, Any], name: str) -> Optional[str]:
    """``entity.<name>_guid`` (v2) or ``relationships.<name>.data.guid`` (v3)."""

    entity = raw.get("entity")
    if isinstance(entity, dict):
        return entity.get(f"{name}_guid")
    data = (raw.get("relationships") or {}).get(name, {}).get("data") or {}
    return data.get("guid")


def decode_organization(raw: Dict[str, Any]) -> Organization:
    return Organization(guid=_guid(raw), name=_field(raw, "name"))


def decode_space(raw: Dict[str, Any]) -> Space:
    return Space(
        guid=_guid(raw),
        name=_field(raw, "name"),
        organization_guid=_related_guid(raw, "organization"),
    )


def decode_app(raw: Dict[str, Any]) -> App:
    return App(
        guid=_guid(raw),
        name=_field(raw, "name"),
        space_guid=_related_guid(raw, "space"),
        state=_field(raw, "state"),
    )


def decode_service_binding(raw: Dict[str, Any]) -> ServiceBinding:
    return ServiceBinding(
        guid=_guid(raw),
        app_guid=_related_guid(raw, "app"),
        service_instance_guid=_related_guid(raw, "service_instance"),
    )


def decode_event(raw: Dict[str, Any]) -> Event:
    entity = raw.get("entity")
    if isinstance(entity, dict):
        return Event(
            guid=_guid(raw),
            type=entity["type"],
            actee=entity.get("actee"),
            actee_name=entity.get("actee_name"),
            timestamp=entity.get("timestamp") or raw["metadata"].get("created_at"),
            space_guid=entity.get("space_guid"),
        )
    target = raw.get("target") or {}
    space = raw.get("space") or {}
    return Event(
        guid=raw["guid"],
        type=raw["type"],
        actee=target.get("guid"),
        actee_name=target.get("name"),
        timestamp=raw.get("created_at"),
        space_guid=space.get("guid"),
    )


DECODERS: Dict[str, Decoder] = {
    "organizations": decode_organization,
    "spaces": decode_space,
    "apps": decode_app,
    "service_bindings": decode_service_binding,
    "events": decode_event,
}


def register_decoder(kind: str, decoder: Decoder) -> None:
    DECODERS[kind] = decoder


def get_decoder(kind: str) -> Optional[Decoder]:
    return DECODERS.get(kind)
