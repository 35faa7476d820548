"""Key normalization: raw hex secrets to 32-byte Ed25519 signing seeds.

Users may import either a native seed (32 bytes) or a longer secret, for
example entropy recovered from a mnemonic phrase. Anything that is not
already 32 bytes is compressed to a seed with BLAKE3 (32-byte output).
The same :func:`to_signing_seed` step is used by the envelope signer, so a
seed that is already 32 bytes is never hashed twice.
"""

from __future__ import annotations

import re

from blake3 import blake3
from nacl.signing import SigningKey

from nova_wallet.errors import FormatError, PreconditionViolation
from nova_wallet.result import Err, Ok, Result

SEED_LENGTH = 32
MIN_KEY_LENGTH = 16

_SECRET_HEX_RE = re.compile(r"^(?:[0-9a-fA-F]{32}|[0-9a-fA-F]{64})$")


def blake3_digest(data: bytes, length: int) -> bytes:
    """BLAKE3 hash of *data* truncated/extended to *length* bytes."""
    return blake3(data).digest(length=length)


def to_signing_seed(key: bytes) -> bytes:
    """Return the signing seed for *key*.

    Raises
    ------
    PreconditionViolation
        If *key* holds fewer than 16 bytes.
    """
    if len(key) < MIN_KEY_LENGTH:
        raise PreconditionViolation("not enough entropy in private key")
    if len(key) == SEED_LENGTH:
        return bytes(key)
    return blake3_digest(bytes(key), SEED_LENGTH)


def parse_secret_hex(value: str) -> Result[str]:
    """Check the 32/64 hex character grammar and return the lowercased hex."""
    candidate = value.strip()
    if not _SECRET_HEX_RE.match(candidate):
        return Err(FormatError("private key must be a hex string of 32 or 64 characters"))
    return Ok(candidate.lower())


def normalize_secret(value: str) -> Result[bytes]:
    """Turn a hex secret into a 32-byte signing seed.

    Weak (16-byte) secrets are accepted here; entropy is only enforced when
    signing.
    """
    parsed = parse_secret_hex(value)
    if not parsed.ok:
        return parsed
    return Ok(to_signing_seed(bytes.fromhex(parsed.value)))


def derive_public_key(seed: bytes) -> bytes:
    """The 32-byte Ed25519 public key for a signing seed."""
    return bytes(SigningKey(to_signing_seed(seed)).verify_key)
