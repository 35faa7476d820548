from __future__ import annotations

from decimal import Decimal

import msgpack
import pytest

from nova_wallet.address import address_from_secret, address_from_seed
from nova_wallet.envelope import verify_signed_payload
from nova_wallet.errors import FormatError, NoIdentityError, StateConflictError
from nova_wallet.manager import WalletManager
from nova_wallet.session import SessionHandshake, generate_session_keys
from nova_wallet.stablecoins import STABLECOINS
from nova_wallet.store import PRIVATE_KEY, MemoryStore

EMAIL = "alice@example.com"
SECRET = "00" * 31 + "01"
PHRASE_12 = " ".join(["abandon"] * 11 + ["about"])
PHRASE_24 = " ".join(["abandon"] * 23 + ["art"])


def _address_contents(address: str) -> dict:
    return {
        "code": 200,
        "contents": {
            "address": address,
            "cardano": "addr1",
            "evm": "0x1",
            "solana": "So1",
            "sui": "0x2",
            "tron": "T1",
        },
    }


def _log_in(store, server, network="testnet"):
    _, pem = generate_session_keys()
    store.update({f"{network}Email": EMAIL, f"{network}Key": pem})
    server.route("POST", "/auth/create-token", 201, {"code": 201, "contents": {"token": "tok"}})


@pytest.fixture
def destination():
    return address_from_seed(bytes(32))


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


def test_import_key_returns_address(manager, store):
    imported = manager.import_key(SECRET.upper())
    assert imported.value == address_from_seed(bytes.fromhex(SECRET))
    assert store.get(PRIVATE_KEY) == SECRET


def test_import_key_rejects_bad_hex(manager, store):
    imported = manager.import_key("xyz")
    assert isinstance(imported.error, FormatError)
    assert store.data == {}


def test_import_key_refuses_to_replace_a_key(manager, store):
    manager.import_key(SECRET)
    again = manager.import_key("22" * 32)
    assert isinstance(again.error, StateConflictError)
    assert store.get(PRIVATE_KEY) == SECRET

    assert manager.import_key("22" * 32, force=True).ok
    assert store.get(PRIVATE_KEY) == "22" * 32


def test_import_key_refuses_to_drop_sessions(manager, store):
    store.update({"mainnetPendingEmail": EMAIL, "mainnetPendingKey": "pem"})
    blocked = manager.import_key(SECRET)
    assert isinstance(blocked.error, StateConflictError)
    assert store.get(PRIVATE_KEY) is None

    assert manager.import_key(SECRET, force=True).ok
    assert store.data == {PRIVATE_KEY: SECRET}



class CountingStore(MemoryStore):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = 0

    def set(self, key, value):
        self.writes += 1
        super().set(key, value)

    def delete(self, key):
        self.writes += 1
        super().delete(key)

    def update(self, values, remove=()):
        self.writes += 1
        self.data.update(values)
        for key in remove:
            self.data.pop(key, None)


def test_forced_import_is_a_single_write(server):
    store = CountingStore(
        {PRIVATE_KEY: "22" * 32, "testnetEmail": EMAIL, "testnetKey": "pem", "localPendingKey": "pem"}
    )
    manager = WalletManager(SessionHandshake(store, server.api_factory))

    assert manager.import_key(SECRET, force=True).ok
    assert store.writes == 1
    assert store.data == {PRIVATE_KEY: SECRET}


def test_plain_import_is_a_single_write(server):
    store = CountingStore()
    manager = WalletManager(SessionHandshake(store, server.api_factory))

    assert manager.import_key(SECRET).ok
    assert store.writes == 1


def test_phrase_round_trip(manager):
    assert manager.import_phrase(f"  {PHRASE_12.upper()} ").ok
    assert manager.export_key().value == "00" * 16
    assert manager.export_phrase().value == PHRASE_12


def test_24_word_phrase(manager):
    assert manager.import_phrase(PHRASE_24).ok
    assert manager.export_key().value == "00" * 32
    assert manager.export_phrase().value == PHRASE_24


def test_invalid_phrase(manager, store):
    imported = manager.import_phrase(" ".join(["abandon"] * 12))
    assert isinstance(imported.error, FormatError)
    assert store.data == {}


def test_phrase_length_is_restricted(manager):
    phrase_15 = " ".join(["abandon"] * 14 + ["address"])
    imported = manager.import_phrase(phrase_15)
    assert not imported.ok


def test_export_without_key(manager):
    exported = manager.export_key()
    assert isinstance(exported.error, NoIdentityError)
    assert exported.message == "Private key isn't set"
    assert not manager.export_phrase().ok


# ---------------------------------------------------------------------------
# Sign / verify
# ---------------------------------------------------------------------------


def test_sign_and_verify(manager):
    manager.import_key(SECRET)
    envelope = manager.sign(b"hello").value
    assert manager.verify(b"hello", envelope).value == address_from_secret(SECRET).value
    assert manager.verify(b"hellO", envelope).value is None


def test_sign_requires_a_key(manager):
    assert isinstance(manager.sign(b"hello").error, NoIdentityError)


def test_empty_messages_are_format_errors(manager):
    manager.import_key(SECRET)
    assert isinstance(manager.sign(b"").error, FormatError)
    assert isinstance(manager.verify(b"", "A" * 128).error, FormatError)


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


async def test_address_without_identity(manager, server):
    result = await manager.address("testnet")
    assert isinstance(result.error, NoIdentityError)
    assert server.requests == []


async def test_address_from_raw_secret_is_local(manager, server):
    manager.import_key(SECRET)
    result = await manager.address("testnet")
    assert result.value == address_from_secret(SECRET).value
    assert server.requests == []


async def test_address_from_session(manager, server, store):
    _log_in(store, server)
    server.route("GET", "/accounts/address", 200, _address_contents("sessionaddr"))
    result = await manager.address("testnet")
    assert result.value == "sessionaddr"
    assert server.calls("/accounts/address")[0].headers["Authorization"] == "Bearer tok"


async def test_balance(manager, server):
    manager.import_key(SECRET)
    server.route("GET", "/accounts/balance", 200, {"code": 200, "contents": {"balance": 42}})
    balance = await manager.balance("testnet")
    assert balance.value == Decimal(42)
    assert server.calls("/accounts/balance")[0].url.params["address"] == address_from_secret(SECRET).value


async def test_lookup(manager, server, destination):
    server.route("GET", "/accounts/address", 200, _address_contents(destination))
    contents = await manager.lookup(destination, "mainnet")
    assert contents.value.evm == "0x1"
    assert str(server.requests[0].url).startswith("https://www.mynth.ai/api/accounts/address")


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------


async def test_send_with_raw_secret_signs_the_intent(manager, server, destination):
    manager.import_key(SECRET)
    server.route("POST", "/accounts/transfer", 200, {"code": 200})

    receipt = await manager.send(Decimal("5"), destination, "testnet")
    assert receipt.value.to_dict() == {"sent": True, "amount": "5", "to": destination}

    body = server.bodies("/accounts/transfer")[0]
    assert set(body) == {"amount", "nonce", "signature", "to"}
    payload = msgpack.packb({"amount": "5", "nonce": body["nonce"], "to": destination})
    signer = verify_signed_payload(payload, body["signature"])
    assert signer.value == address_from_secret(SECRET).value
    assert "Authorization" not in server.calls("/accounts/transfer")[0].headers


async def test_send_with_session_uses_a_bearer_token(manager, server, store, destination):
    _log_in(store, server)
    server.route("POST", "/accounts/transfer", 200, {"code": 200})

    receipt = await manager.send(Decimal("1.5"), destination, "testnet")
    assert receipt.ok
    request = server.calls("/accounts/transfer")[0]
    assert request.headers["Authorization"] == "Bearer tok"
    body = server.bodies("/accounts/transfer")[0]
    assert body["amount"] == "1.5"
    assert body["to"] == destination
    assert "signature" not in body


async def test_send_to_email_resolves_the_account(manager, server, destination):
    manager.import_key(SECRET)
    server.route("GET", "/accounts/resolve", 200, _address_contents(destination))
    server.route("POST", "/accounts/transfer", 200, {"code": 200})

    receipt = await manager.send(Decimal("2"), "bob@example.com", "testnet")
    assert receipt.value.to == destination
    assert server.calls("/accounts/resolve")[0].url.params["email"] == "bob@example.com"


async def test_send_without_destination_creates_a_claim_link(manager, server):
    manager.import_key(SECRET)
    server.route(
        "POST", "/accounts/create-link", 200, {"code": 200, "contents": {"address": "linkaddr", "token": "T0K"}}
    )
    server.route("POST", "/accounts/transfer", 200, {"code": 200})

    receipt = await manager.send(Decimal("3"), None, "testnet")
    assert receipt.value.to_dict() == {
        "sent": True,
        "amount": "3",
        "claimUrl": "https://preview.mynth.ai/c/T0K",
    }
    assert server.bodies("/accounts/transfer")[0]["to"] == "linkaddr"


async def test_failed_transfer_is_reported(manager, server, destination):
    manager.import_key(SECRET)
    server.route(
        "POST", "/accounts/transfer", 400, {"code": 400, "contents": {"errors": [{"message": "Insufficient balance"}]}}
    )
    receipt = await manager.send(Decimal("3"), destination, "testnet")
    assert receipt.message == "Insufficient balance"


async def test_send_without_identity(manager, server, destination):
    receipt = await manager.send(Decimal("3"), destination, "testnet")
    assert isinstance(receipt.error, NoIdentityError)
    assert server.requests == []


async def test_withdraw(manager, server):
    manager.import_key(SECRET)
    server.route("POST", "/address/generate", 200, {"code": 200, "contents": {"address": "depositaddr"}})
    server.route("POST", "/accounts/transfer", 200, {"code": 200})

    receipt = await manager.withdraw(Decimal("10"), "USDC", "0xabc", "base", "testnet")
    assert receipt.value.deposit_address == "depositaddr"
    assert receipt.value.to_dict()["depositAddress"] == "depositaddr"
    assert server.bodies("/address/generate")[0]["target"] == {
        "address": "0xabc",
        "blockchain": "base",
        "token": STABLECOINS["preview"]["base"]["USDC"],
    }
    assert server.bodies("/accounts/transfer")[0]["to"] == "depositaddr"


async def test_withdraw_unknown_route(manager, server):
    manager.import_key(SECRET)
    receipt = await manager.withdraw(Decimal("10"), "USDA", "0xabc", "base", "mainnet")
    assert isinstance(receipt.error, FormatError)
    assert receipt.message == "USDA does not exist for base"
    assert server.requests == []
