from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from nova_wallet.api import NovaApiClient
from nova_wallet.endpoints import get_network_endpoints
from nova_wallet.manager import WalletManager
from nova_wallet.session import SessionHandshake
from nova_wallet.store import MemoryStore

# A JSON body, or a callable building one from the request.
Body = Any


class FakeServer:
    """Routes requests by method and path suffix and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], tuple[int, Body]] = {}
        self.requests: list[httpx.Request] = []

    def route(self, method: str, suffix: str, status: int = 200, body: Body = None) -> None:
        self.routes[(method, suffix)] = (status, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for (method, suffix), (status, body) in self.routes.items():
            if request.method == method and request.url.path.endswith(suffix):
                if callable(body):
                    body = body(request)
                return httpx.Response(status, json=body)
        return httpx.Response(404, json={"code": 404, "contents": {}})

    def api_factory(self, network: str) -> NovaApiClient:
        return NovaApiClient(
            get_network_endpoints(network),
            transport=httpx.MockTransport(self.handler),
        )

    def calls(self, suffix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith(suffix)]

    def bodies(self, suffix: str) -> list[dict]:
        return [json.loads(r.content) for r in self.calls(suffix)]


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def handshake(store: MemoryStore, server: FakeServer) -> SessionHandshake:
    return SessionHandshake(store, server.api_factory)


@pytest.fixture
def manager(handshake: SessionHandshake) -> WalletManager:
    return WalletManager(handshake)
