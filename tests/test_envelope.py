from __future__ import annotations

import base64
import re

import pytest

from nova_wallet.address import address_from_seed
from nova_wallet.envelope import (
    ENVELOPE_LENGTH,
    NOT_VERIFIED,
    decode_envelope,
    sign_payload,
    verify_signed_payload,
)
from nova_wallet.errors import EnvelopeFormatError, PreconditionViolation
from nova_wallet.keys import blake3_digest

SEED = bytes(31) + b"\x01"
PAYLOAD = b"hello nova"


def _flip(envelope: str, index: int) -> str:
    raw = bytearray(base64.urlsafe_b64decode(envelope))
    raw[index] ^= 0x01
    return base64.urlsafe_b64encode(bytes(raw)).rstrip(b"=").decode("ascii")


def test_envelope_is_128_base64url_characters():
    envelope = sign_payload(PAYLOAD, SEED)
    assert len(envelope) == ENVELOPE_LENGTH
    assert re.fullmatch(r"[A-Za-z0-9_-]+", envelope)


def test_verification_returns_the_signer_address():
    envelope = sign_payload(PAYLOAD, SEED)
    verified = verify_signed_payload(PAYLOAD, envelope)
    assert verified.ok
    assert verified.value == address_from_seed(SEED)


def test_signing_is_deterministic():
    assert sign_payload(PAYLOAD, SEED) == sign_payload(PAYLOAD, SEED)


def test_long_keys_sign_with_their_compressed_seed():
    key = bytes(range(64))
    assert sign_payload(PAYLOAD, key) == sign_payload(PAYLOAD, blake3_digest(key, 32))


@pytest.mark.parametrize("index", [40, 64, 95])
def test_tampered_signature_is_not_verified(index):
    envelope = _flip(sign_payload(PAYLOAD, SEED), index)
    verified = verify_signed_payload(PAYLOAD, envelope)
    assert verified.ok
    assert verified.value is NOT_VERIFIED


def test_different_payload_is_not_verified():
    envelope = sign_payload(PAYLOAD, SEED)
    assert verify_signed_payload(b"hello novA", envelope).value is NOT_VERIFIED


def test_swapped_public_key_is_not_verified():
    envelope = sign_payload(PAYLOAD, SEED)
    other = sign_payload(PAYLOAD, bytes(32))
    mixed = base64.urlsafe_b64decode(other)[:32] + base64.urlsafe_b64decode(envelope)[32:]
    mixed_text = base64.urlsafe_b64encode(mixed).rstrip(b"=").decode("ascii")
    assert verify_signed_payload(PAYLOAD, mixed_text).value is NOT_VERIFIED


@pytest.mark.parametrize(
    "envelope",
    ["", "A" * 127, "A" * 129, "+" * 128, "A" * 127 + "="],
)
def test_malformed_envelopes_are_format_errors(envelope):
    verified = verify_signed_payload(PAYLOAD, envelope)
    assert not verified.ok
    assert isinstance(verified.error, EnvelopeFormatError)
    assert verified.error.kind == "malformed_envelope"


def test_decode_envelope_splits_key_and_signature():
    public_key, signature = decode_envelope(sign_payload(PAYLOAD, SEED)).value
    assert len(public_key) == 32
    assert len(signature) == 64


def test_empty_payload_is_a_precondition_violation():
    with pytest.raises(PreconditionViolation):
        sign_payload(b"", SEED)
    with pytest.raises(PreconditionViolation):
        verify_signed_payload(b"", "A" * 128)


def test_weak_key_is_a_precondition_violation():
    with pytest.raises(PreconditionViolation):
        sign_payload(PAYLOAD, bytes(15))
