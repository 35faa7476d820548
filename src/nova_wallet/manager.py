"""High-level wallet flows used by the CLI.

Every flow first resolves the active identity for the network: a logged-in
session acts through bearer tokens, an imported raw secret signs its own
requests.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

import msgpack
from mnemonic import Mnemonic

from nova_wallet.address import address_from_secret
from nova_wallet.api import NovaApiClient
from nova_wallet.endpoints import list_network_names
from nova_wallet.envelope import sign_payload, verify_signed_payload
from nova_wallet.errors import FormatError, NoIdentityError, StateConflictError
from nova_wallet.keys import normalize_secret, parse_secret_hex
from nova_wallet.responses import AddressContents
from nova_wallet.result import Err, Ok, Result
from nova_wallet.session import RawSecretIdentity, SessionHandshake, SessionIdentity
from nova_wallet.stablecoins import resolve_stablecoin
from nova_wallet.store import PRIVATE_KEY

logger = logging.getLogger("nova_wallet.manager")

_NO_IDENTITY = (
    "No wallet identity. Run `nova login request <email>` or `nova import key` first."
)


@dataclass(frozen=True)
class SendReceipt:
    amount: Decimal
    to: str
    claim_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"sent": True, "amount": str(self.amount)}
        if self.claim_url:
            result["claimUrl"] = self.claim_url
        else:
            result["to"] = self.to
        return result


@dataclass(frozen=True)
class WithdrawReceipt:
    amount: Decimal
    stablecoin: str
    blockchain: str
    to: str
    deposit_address: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "amount": str(self.amount),
            "blockchain": self.blockchain,
            "stablecoin": self.stablecoin,
            "to": self.to,
            "depositAddress": self.deposit_address,
        }


class WalletManager:
    """Orchestrates identity resolution, signing and the remote services."""

    def __init__(self, handshake: SessionHandshake) -> None:
        self.handshake = handshake
        self.store = handshake.store

    def _api(self, network: str) -> NovaApiClient:
        return self.handshake.api_factory(network)

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------

    async def address(self, network: str) -> Result[str]:
        """The account address of the active identity."""
        identity = self.handshake.resolve_identity(network)
        if isinstance(identity, SessionIdentity):
            token = await self.handshake.mint_token(network)
            if not token.ok:
                return token
            async with self._api(network) as api:
                contents = await api.get_address_via_token(token.value)
            if not contents.ok:
                return contents
            return Ok(contents.value.address)
        if isinstance(identity, RawSecretIdentity):
            return address_from_secret(identity.secret)
        return Err(NoIdentityError(_NO_IDENTITY))

    async def lookup(self, address: str, network: str) -> Result[AddressContents]:
        """Deposit addresses on external chains for a Nova account."""
        async with self._api(network) as api:
            return await api.get_address_via_address(address)

    async def balance(self, network: str) -> Result[Decimal]:
        address = await self.address(network)
        if not address.ok:
            return address
        async with self._api(network) as api:
            return await api.get_balance(address.value)

    async def mint_token(self, network: str) -> Result[str]:
        return await self.handshake.mint_token(network)

    # ------------------------------------------------------------------
    # Transfers
    # ------------------------------------------------------------------

    async def _resolve_destination(
        self, api: NovaApiClient, destination: str | None
    ) -> Result[tuple[str, Optional[str]]]:
        if not destination:
            link = await api.create_link()
            if not link.ok:
                return link
            return Ok((link.value.address, link.value.url))
        if "@" not in destination:
            return Ok((destination, None))
        resolved = await api.resolve(destination)
        if not resolved.ok:
            return resolved
        return Ok((resolved.value, None))

    async def send(
        self, amount: Decimal, destination: str | None, network: str
    ) -> Result[SendReceipt]:
        """Send balance to an address, an email, or a new claim link.

        A session sends with a bearer token; a raw secret signs a msgpack
        ``{amount, nonce, to}`` intent into an envelope.
        """
        identity = self.handshake.resolve_identity(network)
        if identity is None:
            return Err(NoIdentityError(_NO_IDENTITY))

        token: str | None = None
        seed: bytes | None = None
        if isinstance(identity, SessionIdentity):
            minted = await self.handshake.mint_token(network)
            if not minted.ok:
                return minted
            token = minted.value
        else:
            normalized = normalize_secret(identity.secret)
            if not normalized.ok:
                return normalized
            seed = normalized.value

        async with self._api(network) as api:
            resolved = await self._resolve_destination(api, destination)
            if not resolved.ok:
                return resolved
            to, claim_url = resolved.value

            if token is not None:
                sent = await api.transfer_with_token(token, amount, to)
            else:
                nonce = secrets.token_bytes(32).hex()
                payload = msgpack.packb({"amount": str(amount), "nonce": nonce, "to": to})
                sent = await api.transfer_signed(nonce, sign_payload(payload, seed), amount, to)
        if not sent.ok:
            return sent

        logger.info(f"Sent {amount} on {network}")
        return Ok(SendReceipt(amount=amount, to=to, claim_url=claim_url))

    async def withdraw(
        self,
        amount: Decimal,
        stablecoin: str,
        address: str,
        blockchain: str,
        network: str,
    ) -> Result[WithdrawReceipt]:
        """Withdraw to an external chain through a generated deposit address."""
        token = resolve_stablecoin(stablecoin, blockchain, network)
        if token is None:
            return Err(FormatError(f"{stablecoin} does not exist for {blockchain}"))

        async with self._api(network) as api:
            generated = await api.generate(
                {"address": address, "blockchain": blockchain, "token": token}, amount
            )
        if not generated.ok:
            return generated

        sent = await self.send(amount, generated.value, network)
        if not sent.ok:
            return sent
        return Ok(
            WithdrawReceipt(
                amount=amount,
                stablecoin=stablecoin,
                blockchain=blockchain,
                to=address,
                deposit_address=generated.value,
            )
        )

    # ------------------------------------------------------------------
    # Raw secret import / export
    # ------------------------------------------------------------------

    def _has_sessions(self) -> bool:
        return any(
            self.handshake.session_identity(n) or self.handshake.pending_login(n)
            for n in list_network_names()
        )

    def import_key(self, value: str, force: bool = False) -> Result[str]:
        """Store a hex secret as the wallet key; returns its address."""
        parsed = parse_secret_hex(value)
        if not parsed.ok:
            return parsed
        if not force:
            if self.handshake.raw_secret() is not None:
                return Err(
                    StateConflictError(
                        "A private key is already imported. Export it first, "
                        "or re-run with --force to replace it."
                    )
                )
            if self._has_sessions():
                return Err(
                    StateConflictError(
                        "Importing a key logs you out on every network. Re-run with --force to continue."
                    )
                )

        address = address_from_secret(parsed.value)
        if not address.ok:
            return address
        remove = self.handshake.session_keys() if force else ()
        self.store.update({PRIVATE_KEY: parsed.value}, remove=remove)
        logger.info("Private key imported")
        return address

    def import_phrase(self, phrase: str, force: bool = False) -> Result[str]:
        """Import a 12 or 24 word BIP-39 phrase as the wallet key."""
        words = " ".join(phrase.split()).lower()
        mnemo = Mnemonic("english")
        if not mnemo.check(words):
            return Err(FormatError("must be valid mnemonic seed phrase"))
        entropy = bytes(mnemo.to_entropy(words))
        if len(entropy) not in (16, 32):
            return Err(FormatError("phrase must be 12 or 24 words"))
        return self.import_key(entropy.hex(), force=force)

    def export_key(self) -> Result[str]:
        identity = self.handshake.raw_secret()
        if identity is None:
            return Err(NoIdentityError("Private key isn't set"))
        return parse_secret_hex(identity.secret)

    def export_phrase(self) -> Result[str]:
        key = self.export_key()
        if not key.ok:
            return key
        return Ok(Mnemonic("english").to_mnemonic(bytes.fromhex(key.value)))

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def sign(self, message: bytes) -> Result[str]:
        """Sign *message* with the imported key into an envelope."""
        identity = self.handshake.raw_secret()
        if identity is None:
            return Err(NoIdentityError("Private key isn't set. Run `nova import key` first."))
        if not message:
            return Err(FormatError("message must not be empty"))
        seed = normalize_secret(identity.secret)
        if not seed.ok:
            return seed
        return Ok(sign_payload(message, seed.value))

    def verify(self, message: bytes, envelope: str) -> Result[Optional[str]]:
        if not message:
            return Err(FormatError("message must not be empty"))
        return verify_signed_payload(message, envelope)
