from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest
import requests
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from fastapi import FastAPI
from fastapi.testclient import TestClient
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from earlybadge.client.client import BadgeClient
from earlybadge.common.config import Config
from earlybadge.server.core import DEFAULT_REGISTRY_ID, RegistryServer

REPLICA_URL = "http://replica.test"


class ASGIAdapter(BaseAdapter):
    """Routes a requests session into an ASGI app, recording every call."""

    def __init__(self, app: FastAPI) -> None:
        super().__init__()
        self.client = TestClient(app)
        self.calls: list[tuple[str, str]] = []

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self.calls.append((request.method or "GET", request.path_url))
        resp = self.client.request(
            request.method or "GET",
            request.path_url,
            content=request.body,
            headers={"content-type": request.headers.get("Content-Type", "application/json")},
        )
        response = requests.Response()
        response.status_code = resp.status_code
        response.reason = resp.reason_phrase
        response._content = resp.content
        response.headers = CaseInsensitiveDict(resp.headers)
        response.url = request.url or ""
        response.request = request
        response.encoding = "utf-8"
        return response

    def close(self) -> None:
        pass


class UnreachableAdapter(BaseAdapter):
    """Fails every request as if the network were down."""

    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, str]] = []

    def send(self, request: requests.PreparedRequest, **kwargs: Any) -> requests.Response:
        self.calls.append((request.method or "GET", request.path_url))
        raise requests.ConnectionError("replica unreachable")

    def close(self) -> None:
        pass


@pytest.fixture
def replica_url() -> str:
    return REPLICA_URL


@pytest.fixture
def root_key() -> Ed25519PrivateKey:
    return Ed25519PrivateKey.generate()


@pytest.fixture
def server(root_key: Ed25519PrivateKey) -> RegistryServer:
    """Replica with a fresh registry capped at 100 badges."""
    return RegistryServer(Config(), root_key=root_key, supply_cap=100)


@pytest.fixture
def adapter(server: RegistryServer) -> ASGIAdapter:
    return ASGIAdapter(server.app)


@pytest.fixture
def http(adapter: ASGIAdapter) -> requests.Session:
    session = requests.Session()
    session.mount(REPLICA_URL, adapter)
    return session


@pytest.fixture
def unreachable() -> UnreachableAdapter:
    return UnreachableAdapter()


@pytest.fixture
def offline_http(unreachable: UnreachableAdapter) -> requests.Session:
    session = requests.Session()
    session.mount(REPLICA_URL, unreachable)
    return session


@pytest.fixture
def make_client(http: requests.Session) -> Callable[..., BadgeClient]:
    """Build clients talking to the replica; keyword arguments override settings."""

    def factory(**overrides: Any) -> BadgeClient:
        settings: dict[str, Any] = {
            "network_url": REPLICA_URL,
            "registry_id": DEFAULT_REGISTRY_ID.to_text(),
            "identity_provider_url": REPLICA_URL,
            "network": "local",
            "supply_cap": 100,
            "http": http,
        }
        settings.update(overrides)
        return BadgeClient(**settings)

    return factory
