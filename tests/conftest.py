"""Shared fixtures: mocked requests sessions and canned responses."""

import json
from unittest.mock import Mock

import pytest
import requests

from cf_resource_client.config_loader import ClientConfig
from cf_resource_client.credentials import Credentials, TokenRefresher
from cf_resource_client.executor import RequestExecutor
from cf_resource_client.pagination import PageWalker

API_URL = "https://api.cf.example.com"
UAA_URL = "https://uaa.cf.example.com"


def _response(status_code=200, payload=None, body=None):
    if body is None:
        body = json.dumps({} if payload is None else payload).encode("utf-8")
    response = Mock(spec=requests.Response)
    response.status_code = status_code
    response.content = body
    response.text = body.decode("utf-8", errors="replace")
    return response


@pytest.fixture
def make_response():
    """Factory for fake ``requests.Response`` objects."""
    return _response


@pytest.fixture
def session():
    return Mock(spec=requests.Session)


@pytest.fixture
def credentials():
    return Credentials(
        access_token="bearer old-access",
        refresh_token="old-refresh",
        client_id="cf",
        client_secret="",
    )


@pytest.fixture
def refresher(session):
    return TokenRefresher(UAA_URL, session)


@pytest.fixture
def executor(session, credentials, refresher):
    return RequestExecutor(API_URL, credentials, refresher, session)


@pytest.fixture
def walker(executor):
    return PageWalker(executor)


@pytest.fixture
def client_config():
    return ClientConfig(
        target=API_URL,
        uaa_endpoint=UAA_URL,
        access_token="bearer old-access",
        refresh_token="old-refresh",
    )


@pytest.fixture
def cf_cli_config(tmp_path):
    """Write a CF CLI config.json and return its path."""
    path = tmp_path / ".cf" / "config.json"
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps(
            {
                "ConfigVersion": 3,
                "Target": API_URL + "/",
                "UAAEndpoint": UAA_URL,
                "AccessToken": "bearer file-access",
                "RefreshToken": "file-refresh",
                "UAAOAuthClient": "cf",
                "UAAOAuthClientSecret": "",
                "SSLDisabled": False,
            }
        )
    )
    return path
