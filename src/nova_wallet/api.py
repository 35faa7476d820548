"""HTTP client for the Nova auth, accounts and address services.

Every method returns a :class:`~nova_wallet.result.Result`; failures from
the server are mapped by :func:`parse_error` and never retried.
"""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from nova_wallet.endpoints import NetworkEndpoints
from nova_wallet.errors import RateLimitedError, RemoteValidationError, UnknownRemoteError
from nova_wallet.responses import (
    AddressContents,
    AddressResponse,
    BalanceResponse,
    GenerateResponse,
    LinkCreatedResponse,
    RateLimited,
    TokenCreatedResponse,
    ValidationErrorResponse,
)
from nova_wallet.result import Err, Ok, Result

logger = logging.getLogger("nova_wallet.api")

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class ClaimLink:
    """A claimable transfer target created by the accounts service."""

    address: str
    url: str


def parse_error(data: Any, status_code: int | None = None) -> Err:
    """Map an error body to the matching remote error."""
    try:
        rate_limited = RateLimited.model_validate(data)
    except ValidationError:
        pass
    else:
        return Err(RateLimitedError(rate_limited.contents.retryAfterSeconds))

    try:
        invalid = ValidationErrorResponse.model_validate(data)
    except ValidationError:
        pass
    else:
        return Err(RemoteValidationError([e.message for e in invalid.contents.errors]))

    return Err(UnknownRemoteError("Unknown " + json.dumps(data, default=str), status_code))


def _body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class NovaApiClient:
    """Async client bound to one network's endpoints.

    Parameters
    ----------
    endpoints:
        Base URLs for the network.
    transport:
        Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        endpoints: NetworkEndpoints,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoints = endpoints
        self._http = httpx.AsyncClient(transport=transport)

    async def __aenter__(self) -> NovaApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _fail(self, response: httpx.Response) -> Err:
        err = parse_error(_body(response), response.status_code)
        logger.info(
            f"{response.request.method} {response.request.url.path} failed "
            f"({response.status_code}): {err.error.kind}"
        )
        return err

    def _validated(self, response: httpx.Response, model: type[M]) -> Result[M]:
        if response.is_success:
            try:
                return Ok(model.model_validate(_body(response)))
            except ValidationError:
                pass
        return self._fail(response)

    # ------------------------------------------------------------------
    # Auth service
    # ------------------------------------------------------------------

    async def login(self, email: str, public_key: str) -> Result[None]:
        """Ask the server to email a login code for *public_key* (hex)."""
        response = await self._http.post(
            f"{self.endpoints.auth_url}/login",
            json={"email": email, "publicKey": public_key},
        )
        if not response.is_success:
            return self._fail(response)
        return Ok(None)

    async def auth(self, email: str, code: str) -> Result[None]:
        """Confirm the emailed code."""
        response = await self._http.post(
            f"{self.endpoints.auth_url}/auth",
            json={"email": email, "code": code},
        )
        if not response.is_success:
            return self._fail(response)
        return Ok(None)

    async def create_token(self, email: str, nonce: str, signature: str) -> Result[str]:
        """Exchange a signed nonce for a bearer token."""
        response = await self._http.post(
            f"{self.endpoints.auth_url}/create-token",
            json={"email": email, "nonce": nonce, "signature": signature},
        )
        validated = self._validated(response, TokenCreatedResponse)
        if not validated.ok:
            return validated
        return Ok(validated.value.contents.token)

    # ------------------------------------------------------------------
    # Accounts service
    # ------------------------------------------------------------------

    async def get_address_via_token(self, token: str) -> Result[AddressContents]:
        response = await self._http.get(
            f"{self.endpoints.accounts_url}/address",
            headers={"Authorization": f"Bearer {token}"},
        )
        validated = self._validated(response, AddressResponse)
        if not validated.ok:
            return validated
        return Ok(validated.value.contents)

    async def get_address_via_address(self, address: str) -> Result[AddressContents]:
        response = await self._http.get(
            f"{self.endpoints.accounts_url}/address",
            params={"address": address},
        )
        validated = self._validated(response, AddressResponse)
        if not validated.ok:
            return validated
        return Ok(validated.value.contents)

    async def get_balance(self, address: str) -> Result[Decimal]:
        response = await self._http.get(
            f"{self.endpoints.accounts_url}/balance",
            params={"address": address},
        )
        validated = self._validated(response, BalanceResponse)
        if not validated.ok:
            return validated
        return Ok(validated.value.contents.balance)

    async def resolve(self, email: str) -> Result[str]:
        """Look up the account address registered for *email*."""
        response = await self._http.get(
            f"{self.endpoints.accounts_url}/resolve",
            params={"email": email},
        )
        validated = self._validated(response, AddressResponse)
        if not validated.ok:
            return validated
        return Ok(validated.value.contents.address)

    async def create_link(self) -> Result[ClaimLink]:
        response = await self._http.post(f"{self.endpoints.accounts_url}/create-link")
        validated = self._validated(response, LinkCreatedResponse)
        if not validated.ok:
            return validated
        contents = validated.value.contents
        return Ok(
            ClaimLink(
                address=contents.address,
                url=f"{self.endpoints.origin}/c/{contents.token}",
            )
        )

    async def transfer_with_token(self, token: str, amount: Decimal, to: str) -> Result[None]:
        response = await self._http.post(
            f"{self.endpoints.accounts_url}/transfer",
            headers={"Authorization": f"Bearer {token}"},
            json={
                "amount": str(amount),
                "nonce": secrets.token_bytes(32).hex(),
                "to": to,
            },
        )
        if response.status_code != 200:
            return self._fail(response)
        return Ok(None)

    async def transfer_signed(
        self, nonce: str, signature: str, amount: Decimal, to: str
    ) -> Result[None]:
        """Transfer authorized by an envelope over the msgpack intent."""
        response = await self._http.post(
            f"{self.endpoints.accounts_url}/transfer",
            json={
                "amount": str(amount),
                "nonce": nonce,
                "signature": signature,
                "to": to,
            },
        )
        if response.status_code != 200:
            return self._fail(response)
        return Ok(None)

    # ------------------------------------------------------------------
    # Address service
    # ------------------------------------------------------------------

    async def generate(self, target: dict[str, str], amount: Decimal) -> Result[str]:
        """Create a deposit address that swaps into *target*; returns it."""
        response = await self._http.post(
            f"{self.endpoints.address_url}/generate",
            json={
                "source": {"blockchain": "mynth", "token": "usd"},
                "target": target,
                "amount": str(amount),
                "providerId": "novaswap",
            },
        )
        validated = self._validated(response, GenerateResponse)
        if not validated.ok:
            return validated
        return Ok(validated.value.contents.address)
