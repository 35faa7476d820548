"""Error taxonomy shared by the core, the remote client and the CLI.

Every user-facing failure is a :class:`WalletError` carrying a machine
readable ``kind`` and a single-line ``message``. Broken callers get a
:class:`PreconditionViolation` instead, which is always raised.
"""

from __future__ import annotations


class WalletError(Exception):
    """Base class for recoverable wallet failures."""

    kind = "error"

    def __init__(self, message: str) -> None:
        self.message = " ".join(message.split())
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind, "message": self.message}


# ---------------------------------------------------------------------------
# Local input errors (no network call was made)
# ---------------------------------------------------------------------------


class FormatError(WalletError):
    kind = "format"


class EnvelopeFormatError(FormatError):
    """Envelope text is not 128 base64url characters decoding to 96 bytes."""

    kind = "malformed_envelope"


# ---------------------------------------------------------------------------
# Identity state errors
# ---------------------------------------------------------------------------


class StateConflictError(WalletError):
    kind = "conflict"


class NoPendingLoginError(StateConflictError):
    kind = "no_pending_login"


class NoIdentityError(StateConflictError):
    kind = "no_identity"


# ---------------------------------------------------------------------------
# Remote errors
# ---------------------------------------------------------------------------


class RemoteError(WalletError):
    kind = "remote"


class RateLimitedError(RemoteError):
    kind = "rate_limited"

    def __init__(self, retry_after_seconds: float) -> None:
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Try again in {retry_after_seconds:g} seconds")


class RemoteValidationError(RemoteError):
    kind = "remote_validation"

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


class UnknownRemoteError(RemoteError):
    kind = "remote_unknown"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


# ---------------------------------------------------------------------------
# Fatal
# ---------------------------------------------------------------------------


class PreconditionViolation(RuntimeError):
    """Raised when a caller hands the core input it must never produce."""
