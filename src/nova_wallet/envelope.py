"""Signature envelopes.

An envelope is ``public_key (32 bytes) || ed25519 signature (64 bytes)``
encoded as unpadded base64url, i.e. exactly 128 characters. Verifying an
envelope both authenticates the payload and tells the caller which account
signed it.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from nova_wallet.address import address_from_public_key
from nova_wallet.errors import EnvelopeFormatError, PreconditionViolation
from nova_wallet.keys import to_signing_seed
from nova_wallet.result import Err, Ok, Result

logger = logging.getLogger("nova_wallet.envelope")

PUBLIC_KEY_LENGTH = 32
SIGNATURE_LENGTH = 64
ENVELOPE_BYTES = PUBLIC_KEY_LENGTH + SIGNATURE_LENGTH
ENVELOPE_LENGTH = 128

# Returned inside ``Ok`` when the envelope is well formed but the signature
# does not match the payload.
NOT_VERIFIED = None

_ENVELOPE_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _require_payload(payload: bytes) -> None:
    if len(payload) < 1:
        raise PreconditionViolation("payload must not be empty")


def sign_payload(payload: bytes, private_key: bytes) -> str:
    """Sign *payload* and return the envelope text.

    *private_key* may be any length of at least 16 bytes; keys that are not
    already a 32-byte seed are compressed first.

    Raises
    ------
    PreconditionViolation
        If the key is shorter than 16 bytes or the payload is empty.
    """
    seed = to_signing_seed(private_key)
    _require_payload(payload)

    signing_key = SigningKey(seed)
    signature = signing_key.sign(payload).signature
    combined = bytes(signing_key.verify_key) + signature
    return base64.urlsafe_b64encode(combined).rstrip(b"=").decode("ascii")


def decode_envelope(envelope: str) -> Result[tuple[bytes, bytes]]:
    """Split envelope text into ``(public_key, signature)``."""
    if len(envelope) != ENVELOPE_LENGTH:
        return Err(
            EnvelopeFormatError(
                f"signature must be exactly {ENVELOPE_LENGTH} characters (was {len(envelope)})"
            )
        )
    if not _ENVELOPE_RE.match(envelope):
        return Err(EnvelopeFormatError("signature must be base64url encoded"))
    try:
        raw = base64.urlsafe_b64decode(envelope)
    except (binascii.Error, ValueError):
        return Err(EnvelopeFormatError("signature must be base64url encoded"))
    if len(raw) != ENVELOPE_BYTES:
        return Err(EnvelopeFormatError(f"signature must decode to {ENVELOPE_BYTES} bytes"))
    return Ok((raw[:PUBLIC_KEY_LENGTH], raw[PUBLIC_KEY_LENGTH:]))


def verify_signed_payload(payload: bytes, envelope: str) -> Result[Optional[str]]:
    """Verify an envelope over *payload*.

    Returns ``Ok(address)`` of the signer when the signature checks out,
    ``Ok(NOT_VERIFIED)`` when it does not, and ``Err`` with an
    :class:`EnvelopeFormatError` when the envelope text is malformed.
    """
    _require_payload(payload)

    decoded = decode_envelope(envelope)
    if not decoded.ok:
        return decoded
    public_key, signature = decoded.value

    try:
        VerifyKey(public_key).verify(payload, signature)
    except BadSignatureError:
        logger.debug("Envelope signature rejected")
        return Ok(NOT_VERIFIED)
    return Ok(address_from_public_key(public_key))
