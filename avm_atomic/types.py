"""AVM atomic group types - dataclasses and enums shared across modules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING

from algosdk import transaction

from .errors import ValidationError

if TYPE_CHECKING:
    from .signer import TransactionSigner


class ComposerStatus(IntEnum):
    """Lifecycle status of an AtomicTransactionComposer.

    Values only ever increase for a given composer.
    """

    BUILDING = 0
    BUILT = 1
    SIGNED = 2


class SignerKind(str, Enum):
    """Tag identifying the authorization variant of a signer."""

    BASIC = "basic"
    MULTISIG = "multisig"
    LOGICSIG = "logicsig"
    EXTERNAL = "external"


@dataclass(frozen=True)
class TransactionWithSigner:
    """A transaction paired with the signer that authorizes it.

    Attributes:
        txn: Unsigned algosdk transaction.
        signer: Signer responsible for this transaction.
    """

    txn: transaction.Transaction
    signer: TransactionSigner


@dataclass(frozen=True)
class BoxReference:
    """Box storage slot declared by an application call.

    Attributes:
        app_id: Application owning the box (0 means the called application).
        name: Box name bytes.
    """

    app_id: int
    name: bytes = b""

    def __post_init__(self) -> None:
        if self.app_id < 0:
            raise ValidationError(f"box app_id must be >= 0, got {self.app_id}")
        # Own a private copy of the name
        object.__setattr__(self, "name", bytes(self.name))

    def to_tuple(self) -> tuple[int, bytes]:
        """Convert to the (app_id, name) form accepted by algosdk."""
        return (self.app_id, bytes(self.name))


@dataclass(frozen=True)
class MultisigSubsig:
    """One slot of a multisig envelope.

    Attributes:
        public_key: 32-byte Ed25519 public key of the slot.
        signature: 64-byte signature, or None when the slot is empty.
    """

    public_key: bytes
    signature: bytes | None = None

    @property
    def is_filled(self) -> bool:
        """Whether the slot carries a signature."""
        return self.signature is not None
