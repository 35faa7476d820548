"""Nova account addresses.

An address is the Bech32 encoding (HRP ``m``) of witness version 0
followed by a 20-byte BLAKE3 hash of the Ed25519 public key. Users only
ever see the part after ``m1q``: the HRP, the separator and the version
character are constant and get reattached before decoding.
"""

from __future__ import annotations

import logging
from enum import Enum

from bech32 import CHARSET, bech32_decode, bech32_encode, bech32_hrp_expand, bech32_polymod, convertbits

from nova_wallet.errors import FormatError
from nova_wallet.keys import blake3_digest, derive_public_key, normalize_secret
from nova_wallet.result import Err, Ok, Result

logger = logging.getLogger("nova_wallet.address")

HRP = "m"
WITNESS_VERSION = 0
PROGRAM_LENGTH = 20
ADDRESS_PREFIX = f"{HRP}1{CHARSET[WITNESS_VERSION]}"
ADDRESS_LENGTH = 38


class AddressCheck(str, Enum):
    """Outcome of decoding an address."""

    VALID = "valid"
    NOT_BECH32 = "not_bech32"
    BAD_CHECKSUM = "bad_checksum"
    WRONG_HRP = "wrong_hrp"
    WRONG_VERSION = "wrong_witness_version"
    BAD_PADDING = "bad_padding"
    WRONG_LENGTH = "wrong_program_length"


def _checksum_mismatch(encoded: str) -> bool:
    """True if *encoded* is well-formed Bech32 apart from its checksum."""
    pos = encoded.rfind("1")
    if pos < 1 or pos + 7 > len(encoded) or len(encoded) > 90:
        return False
    if any(ord(c) < 33 or ord(c) > 126 for c in encoded[:pos]):
        return False
    data_part = encoded[pos + 1:]
    if any(c not in CHARSET for c in data_part):
        return False
    data = [CHARSET.find(c) for c in data_part]
    return bech32_polymod(bech32_hrp_expand(encoded[:pos]) + data) != 1


def _decode_program(encoded: str) -> tuple[AddressCheck, bytes | None]:
    hrp, words = bech32_decode(encoded)
    if hrp is None:
        if _checksum_mismatch(encoded):
            return AddressCheck.BAD_CHECKSUM, None
        return AddressCheck.NOT_BECH32, None

    if hrp != HRP:
        return AddressCheck.WRONG_HRP, None
    if len(words) < 2:
        return AddressCheck.WRONG_LENGTH, None
    if words[0] != WITNESS_VERSION:
        return AddressCheck.WRONG_VERSION, None

    program = convertbits(words[1:], 5, 8, False)
    if program is None:
        return AddressCheck.BAD_PADDING, None
    if len(program) != PROGRAM_LENGTH:
        return AddressCheck.WRONG_LENGTH, None
    return AddressCheck.VALID, bytes(program)


def check_encoded(encoded: str) -> AddressCheck:
    """Classify a full Bech32 string (including ``m1``)."""
    return _decode_program(encoded.lower())[0]


def check_address(address: str) -> AddressCheck:
    """Classify a user-facing address (without the ``m1q`` prefix)."""
    return check_encoded(ADDRESS_PREFIX + address.lower())


def validate_address(address: str) -> bool:
    """``True`` iff *address* decodes to a version-0, 20-byte program. Never raises."""
    return check_address(address) is AddressCheck.VALID


def encode_address(program: bytes) -> str:
    """Encode a 20-byte identifier hash as a user-facing address."""
    if len(program) != PROGRAM_LENGTH:
        raise ValueError(f"address program must be {PROGRAM_LENGTH} bytes, got {len(program)}")
    encoded = bech32_encode(HRP, [WITNESS_VERSION] + convertbits(program, 8, 5))
    return encoded[len(ADDRESS_PREFIX):]


def decode_address(address: str) -> Result[bytes]:
    """Recover the 20-byte identifier hash from a user-facing address."""
    check, program = _decode_program(ADDRESS_PREFIX + address.lower())
    if program is None:
        return Err(FormatError(f"invalid address ({check.value})"))
    return Ok(program)


def address_from_public_key(public_key: bytes) -> str:
    """Derive the account address for an Ed25519 public key.

    Raises ``RuntimeError`` if the encoder produced something the validator
    rejects.
    """
    address = encode_address(blake3_digest(bytes(public_key), PROGRAM_LENGTH))
    if not validate_address(address):
        raise RuntimeError("address encoder and validator disagree")
    return address


def address_from_seed(seed: bytes) -> str:
    return address_from_public_key(derive_public_key(seed))


def address_from_secret(secret_hex: str) -> Result[str]:
    """Normalize a hex secret and derive its address."""
    seed = normalize_secret(secret_hex)
    if not seed.ok:
        return seed
    return Ok(address_from_seed(seed.value))


def self_check() -> None:
    """Assert that encoder and validator agree on a fixed key.

    Run once at CLI start-up.
    """
    address = address_from_seed(bytes(31) + b"\x01")
    if len(address) != ADDRESS_LENGTH:
        raise RuntimeError(f"unexpected address length {len(address)}")
    logger.debug("Address codec self-check passed")
