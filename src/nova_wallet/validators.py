"""Argument parsers for the CLI.

Each parser raises :class:`typer.BadParameter` with a message naming the
argument, so click prints it as a usage error.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

import typer
from pydantic import EmailStr, TypeAdapter, ValidationError

from nova_wallet.address import ADDRESS_LENGTH, validate_address
from nova_wallet.endpoints import list_network_names
from nova_wallet.stablecoins import SUPPORTED_BLOCKCHAINS, SUPPORTED_STABLECOINS

_EMAIL = TypeAdapter(EmailStr)
_ADDRESS_RE = re.compile(rf"^[qpzry9x8gf2tvdw0s3jn54khce6mua7l]{{{ADDRESS_LENGTH}}}$", re.IGNORECASE)


def _email(value: str) -> str | None:
    try:
        return _EMAIL.validate_python(value.strip()).lower()
    except ValidationError:
        return None


def parse_email(value: str) -> str:
    email = _email(value)
    if email is None:
        raise typer.BadParameter(f"email must be a valid email address (was {value!r})")
    return email


def parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value.strip())
    except InvalidOperation:
        raise typer.BadParameter(f"amount must be a number (was {value!r})") from None
    if not amount.is_finite() or amount <= 0:
        raise typer.BadParameter(f"amount must be positive (was {value!r})")
    return amount


def parse_address(value: str) -> str:
    if not _ADDRESS_RE.match(value) or not validate_address(value):
        raise typer.BadParameter(f"address must be a valid address (was {value!r})")
    return value.lower()


def parse_destination(value: str | None) -> str | None:
    """An email address or a Nova account address; ``None`` passes through."""
    if value is None:
        return None
    if "@" in value:
        email = _email(value)
        if email is None:
            raise typer.BadParameter(f"destination must be a valid email address (was {value!r})")
        return email
    if not _ADDRESS_RE.match(value) or not validate_address(value):
        raise typer.BadParameter(f"destination must be a valid address (was {value!r})")
    return value.lower()


def parse_network(value: str) -> str:
    if value not in list_network_names():
        raise typer.BadParameter(f"network must be one of {', '.join(list_network_names())} (was {value!r})")
    return value


def parse_stablecoin(value: str) -> str:
    if value not in SUPPORTED_STABLECOINS:
        raise typer.BadParameter(f"stablecoin must be one of {', '.join(SUPPORTED_STABLECOINS)} (was {value!r})")
    return value


def parse_blockchain(value: str) -> str:
    if value not in SUPPORTED_BLOCKCHAINS:
        raise typer.BadParameter(f"blockchain must be one of {', '.join(SUPPORTED_BLOCKCHAINS)} (was {value!r})")
    return value
