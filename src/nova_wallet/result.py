"""Success/failure values returned by wallet operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Generic, TypeVar, Union

from nova_wallet.errors import WalletError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: ClassVar[bool] = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: WalletError
    ok: ClassVar[bool] = False

    def unwrap(self):
        raise self.error

    @property
    def message(self) -> str:
        return self.error.message


Result = Union[Ok[T], Err]
