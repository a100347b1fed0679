"""Configuration for the Cloud Controller client.

Values come from the CF CLI ``config.json`` (the file ``cf login`` writes),
and any field can also be supplied through ``CF_CLIENT_*`` environment
variables or a ``.env`` file when it is absent from the CLI config.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

logger = logging.getLogger("cf-config")

# CF CLI config.json key -> ClientConfig field
CF_CLI_KEYS = {
    "Target": "target",
    "UAAEndpoint": "uaa_endpoint",
    "AccessToken": "access_token",
    "RefreshToken": "refresh_token",
    "UAAOAuthClient": "uaa_client_id",
    "UAAOAuthClientSecret": "uaa_client_secret",
}


class ClientConfig(BaseSettings):
    """Connection settings consumed by :class:`~cf_resource_client.client.CFClient`.

    Attributes:
        target: Cloud Controller API base URL
        uaa_endpoint: UAA base URL hosting ``/oauth/token``
        access_token: current access token, already prefixed with ``bearer``
        refresh_token: UAA refresh token
        uaa_client_id: OAuth client used for refreshes
        uaa_client_secret: secret of that client (usually empty for ``cf``)
        allow_insecure_tls: skip TLS certificate verification
        request_timeout: per-request timeout in seconds; None blocks
    """

    model_config = SettingsConfigDict(
        env_prefix="CF_CLIENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    target: str
    uaa_endpoint: str
    access_token: str
    refresh_token: str
    uaa_client_id: str = "cf"
    uaa_client_secret: SecretStr = SecretStr("")
    allow_insecure_tls: bool = Field(
        default=False,
        description="Skip TLS certificate verification. Only for self-signed internal endpoints.",
    )
    request_timeout: Optional[float] = Field(default=None, gt=0)

    @field_validator("target", "uaa_endpoint")
    @classmethod
    def _validate_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"expected an http(s) URL, got {value!r}")
        return value.rstrip("/")


def default_cf_config_path() -> Path:
    home = os.environ.get("CF_HOME") or str(Path.home())
    return Path(home).expanduser() / ".cf" / "config.json"


def read_cf_cli_config(path: Path) -> Dict[str, Any]:
    """Map a CF CLI ``config.json`` onto ``ClientConfig`` field names."""

    try:
        raw = json.loads(path.read_text())
    except FileNotFoundError as exc:
        raise ConfigError(f"CF CLI config not found at {path}; run 'cf login' first", path=str(path)) from exc
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Could not read CF CLI config {path}: {exc}", path=str(path)) from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"CF CLI config {path} is not a JSON object", path=str(path))

    values: Dict[str, Any] = {}
    for cli_key, field_name in CF_CLI_KEYS.items():
        value = raw.get(cli_key)
        if value:
            values[field_name] = value
    if "uaa_endpoint" not in values and raw.get("AuthorizationEndpoint"):
        values["uaa_endpoint"] = raw["AuthorizationEndpoint"]
    if raw.get("SSLDisabled"):
        values["allow_insecure_tls"] = True
    return values


def load_config(
    *,
    config_path: Optional[str] = None,
    allow_insecure_tls: Optional[bool] = None,
    request_timeout: Optional[float] = None,
) -> ClientConfig:
    """Build a ClientConfig from the CF CLI config plus explicit overrides."""

    path = Path(config_path).expanduser() if config_path else default_cf_config_path()
    values = read_cf_cli_config(path)
    if allow_insecure_tls is not None:
        values["allow_insecure_tls"] = allow_insecure_tls
    if request_timeout is not None:
        values["request_timeout"] = request_timeout

    try:
        config = ClientConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration from {path}: {exc}", path=str(path)) from exc

    logger.debug("Loaded configuration for %s from %s", config.target, path)
    return config
