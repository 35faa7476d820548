"""Service endpoints for the supported Nova networks."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from nova_wallet.config import EndpointOverride


@dataclass(frozen=True)
class NetworkEndpoints:
    """Base URLs of the auth, accounts and address services on one network."""

    name: str
    auth_url: str
    accounts_url: str
    address_url: str

    @property
    def origin(self) -> str:
        """Scheme and host of the accounts service, used for claim links."""
        parts = urlsplit(self.accounts_url)
        return f"{parts.scheme}://{parts.netloc}"


NETWORKS: dict[str, NetworkEndpoints] = {
    "local": NetworkEndpoints(
        name="local",
        auth_url="http://127.0.0.1:3036/api/auth",
        accounts_url="http://127.0.0.1:3037/api/accounts",
        address_url="http://127.0.0.1:3015/api/address",
    ),
    "testnet": NetworkEndpoints(
        name="testnet",
        auth_url="https://preview.mynth.ai/api/auth",
        accounts_url="https://preview.mynth.ai/api/accounts",
        address_url="https://preview.mynth.ai/api/address",
    ),
    "mainnet": NetworkEndpoints(
        name="mainnet",
        auth_url="https://www.mynth.ai/api/auth",
        accounts_url="https://www.mynth.ai/api/accounts",
        address_url="https://www.mynth.ai/api/address",
    ),
}


def get_network_endpoints(
    name: str, overrides: dict[str, EndpointOverride] | None = None
) -> NetworkEndpoints:
    """Get the endpoints of a network, applying config overrides.

    Raises ``KeyError`` if the network is unknown.
    """
    if name not in NETWORKS:
        raise KeyError(f"Unknown network '{name}'. Available: {list_network_names()}")
    endpoints = NETWORKS[name]
    override = (overrides or {}).get(name)
    if override is None:
        return endpoints
    return replace(
        endpoints,
        auth_url=override.auth or endpoints.auth_url,
        accounts_url=override.accounts or endpoints.accounts_url,
        address_url=override.address or endpoints.address_url,
    )


def list_network_names() -> list[str]:
    """Return the names of all supported networks."""
    return list(NETWORKS.keys())
