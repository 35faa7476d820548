"""Persistent key-value store for identity material.

Holds the selected network, the imported raw secret, and per-network
session and pending-login records. On disk the whole mapping is one JSON
document sealed with AES-256-GCM under a key derived from the machine id.

There is no file locking: one CLI process reads and writes the store at a
time.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import secrets
from abc import ABC, abstractmethod
from pathlib import Path

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger("nova_wallet.store")

AES_IV_SIZE = 12
SECURE_FILE_MODE = 0o600
DEFAULT_MACHINE_ID = "e9f3edf961051d02"

_MACHINE_ID_PATHS = (Path("/etc/machine-id"), Path("/var/lib/dbus/machine-id"))


# ---------------------------------------------------------------------------
# Key names
# ---------------------------------------------------------------------------

NETWORK_KEY = "network"
PRIVATE_KEY = "privateKey"


def email_key(network: str) -> str:
    return f"{network}Email"


def session_key(network: str) -> str:
    return f"{network}Key"


def pending_email_key(network: str) -> str:
    return f"{network}PendingEmail"


def pending_key(network: str) -> str:
    return f"{network}PendingKey"


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class IdentityStore(ABC):
    """Key-value interface every store implements."""

    @abstractmethod
    def get(self, key: str) -> str | None: ...

    @abstractmethod
    def set(self, key: str, value: str) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    def update(self, values: dict[str, str], remove: tuple[str, ...] = ()) -> None:
        """Apply several writes and deletes as one persisted change."""
        for key, value in values.items():
            self.set(key, value)
        for key in remove:
            self.delete(key)


class MemoryStore(IdentityStore):
    """In-process store, used by tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


def read_machine_id() -> str | None:
    """Return the host's machine id, or ``None`` if it cannot be read."""
    for path in _MACHINE_ID_PATHS:
        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError:
            continue
        if value:
            return value
    return None


def machine_encryption_key(machine_id: str | None = None) -> bytes:
    """SHA-256 of the machine id bytes (the constant fallback when unknown)."""
    identifier = machine_id or read_machine_id() or DEFAULT_MACHINE_ID
    try:
        material = bytes.fromhex(identifier.replace("-", ""))
    except ValueError:
        material = identifier.encode("utf-8")
    return hashlib.sha256(material).digest()


class EncryptedFileStore(IdentityStore):
    """Identity store sealed at rest with AES-256-GCM.

    The file is ``iv (12 bytes) || ciphertext || tag``. A file that cannot
    be decrypted or parsed (another machine, corruption) is treated as
    empty and replaced on the next write.
    """

    def __init__(self, path: Path, key: bytes | None = None) -> None:
        self.path = path
        self._aesgcm = AESGCM(key if key is not None else machine_encryption_key())
        self._data: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._data is not None:
            return self._data
        self._data = {}
        if not self.path.exists():
            return self._data

        blob = self.path.read_bytes()
        try:
            plaintext = self._aesgcm.decrypt(blob[:AES_IV_SIZE], blob[AES_IV_SIZE:], None)
            data = json.loads(plaintext.decode("utf-8"))
        except (InvalidTag, ValueError) as exc:
            logger.warning(f"Identity store at {self.path} is unreadable, starting empty: {exc!r}")
            return self._data

        if isinstance(data, dict):
            self._data = {str(k): str(v) for k, v in data.items() if v is not None}
        logger.debug(f"Identity store loaded from {self.path}")
        return self._data

    def _save(self) -> None:
        iv = secrets.token_bytes(AES_IV_SIZE)
        plaintext = json.dumps(self._load(), sort_keys=True).encode("utf-8")
        blob = iv + self._aesgcm.encrypt(iv, plaintext, None)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_bytes(blob)
        if os.name == "posix":
            os.chmod(tmp_path, SECURE_FILE_MODE)
        os.replace(tmp_path, self.path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._load()[key] = value
        self._save()

    def delete(self, key: str) -> None:
        if self._load().pop(key, None) is not None:
            self._save()

    def update(self, values: dict[str, str], remove: tuple[str, ...] = ()) -> None:
        data = self._load()
        data.update(values)
        for key in remove:
            data.pop(key, None)
        self._save()
