"""Two-step email login and bearer token minting.

Per network the handshake moves through three states:

* unauthenticated: neither a pending login nor a session identity;
* pending: ``request_login`` generated an Ed25519 key, registered its
  public half with the auth service and stored ``{email, PEM}``;
* authenticated: ``confirm_login`` promoted the pending record to the
  network's session identity.

Store writes only happen after the matching remote call succeeded, so an
interrupted handshake leaves either the old state or the new one.
"""

from __future__ import annotations

import base64
import logging
import re
import secrets
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from nova_wallet.api import NovaApiClient
from nova_wallet.endpoints import list_network_names
from nova_wallet.errors import (
    FormatError,
    NoIdentityError,
    NoPendingLoginError,
    StateConflictError,
)
from nova_wallet.result import Err, Ok, Result
from nova_wallet.store import (
    PRIVATE_KEY,
    IdentityStore,
    email_key,
    pending_email_key,
    pending_key,
    session_key,
)

logger = logging.getLogger("nova_wallet.session")

_CODE_RE = re.compile(r"^[A-Z0-9]{6}$")
NONCE_LENGTH = 32


# ---------------------------------------------------------------------------
# Identity records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PendingLogin:
    network: str
    email: str
    private_key: str = field(repr=False)


@dataclass(frozen=True)
class SessionIdentity:
    """Long-lived signing identity established by a confirmed login."""

    network: str
    email: str
    private_key: str = field(repr=False)
    kind: ClassVar[str] = "session"


@dataclass(frozen=True)
class RawSecretIdentity:
    """An imported hex secret (32 or 64 hex characters)."""

    secret: str = field(repr=False)
    kind: ClassVar[str] = "raw_secret"


ActiveIdentity = Union[SessionIdentity, RawSecretIdentity, None]


# ---------------------------------------------------------------------------
# Session keys
# ---------------------------------------------------------------------------


def generate_session_keys() -> tuple[str, str]:
    """Create a fresh Ed25519 keypair.

    Returns ``(public key hex, private key PKCS#8 PEM)``.
    """
    private_key = Ed25519PrivateKey.generate()
    public_hex = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    ).hex()
    pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    return public_hex, pem


def sign_with_session_key(payload: bytes, private_key_pem: str) -> Result[str]:
    """Raw Ed25519 signature over *payload*, standard base64."""
    try:
        key = serialization.load_pem_private_key(private_key_pem.encode("ascii"), password=None)
    except (ValueError, TypeError):
        key = None
    if not isinstance(key, Ed25519PrivateKey):
        return Err(
            StateConflictError(
                "Stored session key is unreadable. Log in again with `nova login request <email> --force`"
            )
        )
    return Ok(base64.b64encode(key.sign(payload)).decode("ascii"))


def normalize_code(code: str) -> Result[str]:
    """Trim and uppercase an emailed code, checking the 6-character grammar."""
    normalized = code.strip().upper()
    if not _CODE_RE.match(normalized):
        return Err(FormatError("code must be exactly 6 alphanumeric characters"))
    return Ok(normalized)


# ---------------------------------------------------------------------------
# Handshake
# ---------------------------------------------------------------------------


class SessionHandshake:
    """Runs the login handshake against a store and a per-network API client.

    Parameters
    ----------
    store:
        Where pending logins, session identities and the raw secret live.
    api_factory:
        Returns a :class:`NovaApiClient` for a network name.
    """

    def __init__(self, store: IdentityStore, api_factory: Callable[[str], NovaApiClient]) -> None:
        self.store = store
        self.api_factory = api_factory

    # ------------------------------------------------------------------
    # State lookups
    # ------------------------------------------------------------------

    def pending_login(self, network: str) -> PendingLogin | None:
        email = self.store.get(pending_email_key(network))
        key = self.store.get(pending_key(network))
        if not email or not key:
            return None
        return PendingLogin(network=network, email=email, private_key=key)

    def session_identity(self, network: str) -> SessionIdentity | None:
        email = self.store.get(email_key(network))
        key = self.store.get(session_key(network))
        if not email or not key:
            return None
        return SessionIdentity(network=network, email=email, private_key=key)

    def raw_secret(self) -> RawSecretIdentity | None:
        secret = self.store.get(PRIVATE_KEY)
        if not secret:
            return None
        return RawSecretIdentity(secret=secret)

    def resolve_identity(self, network: str) -> ActiveIdentity:
        """The identity flows on *network* should act as.

        A session identity wins over an imported raw secret.
        """
        return self.session_identity(network) or self.raw_secret()

    def session_keys(self) -> tuple[str, ...]:
        """Store keys of the session identities and pending logins on every network."""
        keys: list[str] = []
        for network in list_network_names():
            keys += [email_key(network), session_key(network), pending_email_key(network), pending_key(network)]
        return tuple(keys)

    # ------------------------------------------------------------------
    # Handshake steps
    # ------------------------------------------------------------------

    async def request_login(self, email: str, network: str, force: bool = False) -> Result[PendingLogin]:
        """Step 1: register a fresh public key and have a code emailed."""
        if self.raw_secret() is not None and not force:
            return Err(
                StateConflictError(
                    "By logging in, your private key will be erased. Re-run with --force to continue."
                )
            )
        if self.pending_login(network) is not None and not force:
            return Err(
                StateConflictError(
                    "A login is already pending for this network. Run `nova login confirm <CODE>` "
                    "to finish, or re-run `nova login request <email> --force` to overwrite."
                )
            )

        public_key, private_pem = generate_session_keys()
        async with self.api_factory(network) as api:
            sent = await api.login(email, public_key)
        if not sent.ok:
            return sent

        self.store.update({pending_email_key(network): email, pending_key(network): private_pem})
        logger.info(f"Login requested on {network}; awaiting code confirmation")
        return Ok(PendingLogin(network=network, email=email, private_key=private_pem))

    async def confirm_login(self, code: str, network: str) -> Result[SessionIdentity]:
        """Step 2: confirm the emailed code and promote the pending key."""
        normalized = normalize_code(code)
        if not normalized.ok:
            return normalized

        pending = self.pending_login(network)
        if pending is None:
            return Err(
                NoPendingLoginError(
                    "No pending login found for this network. Run `nova login request <email>` first."
                )
            )

        async with self.api_factory(network) as api:
            accepted = await api.auth(pending.email, normalized.value)
        if not accepted.ok:
            return accepted

        self.store.update(
            {email_key(network): pending.email, session_key(network): pending.private_key},
            remove=(pending_email_key(network), pending_key(network), PRIVATE_KEY),
        )
        logger.info(f"Login confirmed on {network}")
        return Ok(SessionIdentity(network=network, email=pending.email, private_key=pending.private_key))

    async def mint_token(self, network: str) -> Result[str]:
        """Sign a fresh random nonce with the session key for a bearer token."""
        identity = self.session_identity(network)
        if identity is None:
            return Err(
                NoIdentityError(f"Not logged in on {network}. Run `nova login request <email>` first.")
            )

        nonce = secrets.token_bytes(NONCE_LENGTH)
        signature = sign_with_session_key(nonce, identity.private_key)
        if not signature.ok:
            return signature

        async with self.api_factory(network) as api:
            token = await api.create_token(identity.email, nonce.hex(), signature.value)
        if token.ok:
            logger.info(f"Bearer token minted on {network}")
        return token
