"""Error types raised by the atomic group subsystem.

Every failure surfaced to callers is a subclass of AvmAtomicError and
carries a machine-readable code from constants. Validation failures also
derive from ValueError, so code that catches ValueError around argument
checks keeps working.
"""

from __future__ import annotations

from typing import Any

from .constants import (
    ERR_ARGUMENT_MISMATCH,
    ERR_COMPOSER_STATE,
    ERR_DECODE_FAILED,
    ERR_GROUP_TOO_LARGE,
    ERR_INVALID_GROUP,
    ERR_INVALID_SIGNATURE,
    ERR_MULTISIG_CONFLICT,
    ERR_MULTISIG_MISMATCH,
    ERR_SIGNER_FAILED,
    ERR_VALIDATION,
    MSG_MULTISIG_CONFLICT,
    MSG_MULTISIG_MISMATCH,
)


class AvmAtomicError(Exception):
    """Base class for all atomic group errors.

    Attributes:
        message: Human readable description.
        code: Error code string (see constants.ERR_*).
        details: Additional structured context.
    """

    code = ERR_VALIDATION

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary representation."""
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(AvmAtomicError, ValueError):
    """Invalid argument: negative integer, bad length, out-of-range value."""


class DecodeError(ValidationError):
    """Malformed canonical bytes or textual ABI value."""

    code = ERR_DECODE_FAILED


class ProtocolError(ValidationError):
    """Operation would violate an Algorand protocol rule."""


class GroupSizeError(ProtocolError):
    """Atomic group would exceed the maximum size."""

    code = ERR_GROUP_TOO_LARGE


class ArgumentError(ProtocolError):
    """Method argument count or kind does not match the method."""

    code = ERR_ARGUMENT_MISMATCH


class ComposerStateError(AvmAtomicError):
    """Composer operation attempted in the wrong status."""

    code = ERR_COMPOSER_STATE


class CryptoError(AvmAtomicError):
    """Base class for cryptographic failures."""

    code = ERR_INVALID_SIGNATURE


class InvalidSignatureError(CryptoError, ValueError):
    """Signature has the wrong length or does not verify."""


class ConsistencyError(AvmAtomicError):
    """Base class for inconsistent inputs across independently built values."""


class MultisigMismatchError(ConsistencyError):
    """Partially signed transactions do not belong to the same multisig."""

    code = ERR_MULTISIG_MISMATCH

    def __init__(self, message: str = MSG_MULTISIG_MISMATCH, details: dict[str, Any] | None = None):
        super().__init__(message, details=details)


class MultisigConflictError(ConsistencyError):
    """Two envelopes carry different signatures for the same key."""

    code = ERR_MULTISIG_CONFLICT

    def __init__(self, message: str = MSG_MULTISIG_CONFLICT, details: dict[str, Any] | None = None):
        super().__init__(message, details=details)


class InvalidGroupError(ConsistencyError):
    """A run of transactions does not carry its recomputed group ID.

    Attributes:
        start: Index of the first transaction of the run.
        end: Index one past the last transaction of the run.
    """

    code = ERR_INVALID_GROUP

    def __init__(self, start: int, end: int):
        super().__init__(
            f"The transactions in range [{start}:{end}] form an invalid group",
            details={"start": start, "end": end},
        )
        self.start = start
        self.end = end


class SignerError(AvmAtomicError):
    """A transaction signer failed or returned a malformed result."""

    code = ERR_SIGNER_FAILED
