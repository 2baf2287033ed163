"""Multisig accounts and partial signature aggregation.

A multisig account is described by (version, threshold, ordered public
keys); its address is a hash of the whole triple, so the same keys in a
different order form a different account. Partially signed transactions
carry an envelope with one slot per key. Envelopes produced independently
are combined with merge_multisig_transactions, which never silently picks
between two different signatures for the same slot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from algosdk import encoding, transaction

from .constants import (
    MAX_MULTISIG_KEYS,
    MSG_SIGNER_NOT_IN_MULTISIG,
    MULTISIG_VERSION,
    PUBLIC_KEY_LENGTH,
    SIGNATURE_LENGTH,
)
from .errors import (
    DecodeError,
    InvalidSignatureError,
    MultisigConflictError,
    MultisigMismatchError,
    ValidationError,
)
from .types import MultisigSubsig
from .utils import (
    TransactionLike,
    address_to_public_key,
    as_transaction,
    bytes_to_sign,
    canonical_encode,
    decode_signed_transaction,
    encode_transaction,
    public_key_from_secret_key,
    public_key_to_address,
    secret_key_bytes,
    sign_bytes,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MultisigAccount:
    """Threshold account descriptor.

    Attributes:
        version: Multisig version (currently always 1).
        threshold: Number of signatures required.
        public_keys: Ordered 32-byte Ed25519 public keys.
    """

    version: int
    threshold: int
    public_keys: tuple[bytes, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "public_keys", tuple(bytes(pk) for pk in self.public_keys))
        self.validate()

    def validate(self) -> None:
        """Check the descriptor invariants.

        Raises:
            ValidationError: If version, threshold or keys are out of range.
        """
        if not 0 <= self.version <= 255:
            raise ValidationError(f"version {self.version} out of range")
        if not 0 <= self.threshold <= 255:
            raise ValidationError(f"threshold {self.threshold} out of range")
        if self.version != MULTISIG_VERSION:
            raise ValidationError(f"unknown multisig version: {self.version}")
        if len(self.public_keys) > MAX_MULTISIG_KEYS:
            raise ValidationError(
                f"multisig accounts hold at most {MAX_MULTISIG_KEYS} keys, got {len(self.public_keys)}"
            )
        if self.threshold == 0 or not self.public_keys or self.threshold > len(self.public_keys):
            raise ValidationError(
                f"invalid threshold {self.threshold} for {len(self.public_keys)} keys"
            )
        for pk in self.public_keys:
            if len(pk) != PUBLIC_KEY_LENGTH:
                raise ValidationError(
                    f"public key should be {PUBLIC_KEY_LENGTH} bytes, got {len(pk)}"
                )

    @classmethod
    def from_addresses(
        cls, version: int, threshold: int, addresses: Iterable[str]
    ) -> "MultisigAccount":
        """Create a descriptor from contributing addresses (order matters)."""
        return cls(version, threshold, tuple(address_to_public_key(a) for a in addresses))

    def to_multisig(self) -> transaction.Multisig:
        """Return an algosdk Multisig for this account with every slot empty."""
        return transaction.Multisig(self.version, self.threshold, self.contributing_addresses())

    def raw_address(self) -> bytes:
        """Return the 32-byte address digest of this account."""
        return encoding.decode_address(self.address())

    def address(self) -> str:
        """Return the Algorand address of this account."""
        return self.to_multisig().address()

    def contributing_addresses(self) -> list[str]:
        """Return the contributing addresses in descriptor order."""
        return [public_key_to_address(pk) for pk in self.public_keys]

    def index_of(self, public_key: bytes) -> int:
        """Return the slot of a public key.

        Raises:
            ValidationError: If the key is not part of this account.
        """
        try:
            return self.public_keys.index(bytes(public_key))
        except ValueError:
            raise ValidationError(MSG_SIGNER_NOT_IN_MULTISIG) from None

    def blank_signature(self) -> "MultisigSignature":
        """Return an envelope with every slot empty."""
        return MultisigSignature(
            version=self.version,
            threshold=self.threshold,
            subsigs=tuple(MultisigSubsig(pk) for pk in self.public_keys),
        )


@dataclass(frozen=True)
class MultisigSignature:
    """Multisig envelope: one slot per descriptor key, filled or empty.

    Attributes:
        version: Multisig version.
        threshold: Number of signatures required.
        subsigs: Slots in descriptor key order.
    """

    version: int
    threshold: int
    subsigs: tuple[MultisigSubsig, ...]

    def descriptor(self) -> MultisigAccount:
        """Return the account this envelope belongs to."""
        return MultisigAccount(self.version, self.threshold, tuple(s.public_key for s in self.subsigs))

    def signature_count(self) -> int:
        """Number of filled slots."""
        return sum(1 for s in self.subsigs if s.is_filled)

    def with_signature(self, index: int, signature: bytes) -> "MultisigSignature":
        """Return a copy with the slot at index filled."""
        if len(signature) != SIGNATURE_LENGTH:
            raise InvalidSignatureError(
                f"incorrect signature length expected {SIGNATURE_LENGTH}, got {len(signature)}"
            )
        subsigs = list(self.subsigs)
        subsigs[index] = MultisigSubsig(subsigs[index].public_key, bytes(signature))
        return MultisigSignature(self.version, self.threshold, tuple(subsigs))

    def same_account(self, other: "MultisigSignature") -> bool:
        """Whether both envelopes reference a byte-identical descriptor."""
        return (
            self.version == other.version
            and self.threshold == other.threshold
            and [s.public_key for s in self.subsigs] == [s.public_key for s in other.subsigs]
        )

    def merge(self, other: "MultisigSignature") -> "MultisigSignature":
        """Return the slot-wise union of two envelopes.

        Raises:
            MultisigMismatchError: If the descriptors differ in any way.
            MultisigConflictError: If a slot is filled with different signatures.
        """
        if not self.same_account(other):
            raise MultisigMismatchError()

        merged = []
        for mine, theirs in zip(self.subsigs, other.subsigs):
            if mine.is_filled and theirs.is_filled and mine.signature != theirs.signature:
                raise MultisigConflictError(
                    details={"public_key": public_key_to_address(mine.public_key)}
                )
            merged.append(mine if mine.is_filled else theirs)
        return MultisigSignature(self.version, self.threshold, tuple(merged))

    def verify(self, message: bytes) -> bool:
        """Check the envelope against a signed message.

        Valid when every filled slot verifies and at least threshold slots
        are filled.
        """
        try:
            self.descriptor()
        except ValidationError:
            return False
        return self.to_multisig().verify(message)

    def dictify(self) -> dict[str, Any]:
        """Convert to the canonical wire map."""
        return self.to_multisig().dictify()

    @classmethod
    def undictify(cls, d: dict[str, Any]) -> "MultisigSignature":
        """Create from the canonical wire map.

        Raises:
            DecodeError: If the map is not a well-formed envelope.
        """
        try:
            msig = transaction.Multisig.undictify(d)
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"malformed multisig signature: {e}") from e
        return cls.from_multisig(msig)

    def to_multisig(self) -> transaction.Multisig:
        """Return the algosdk Multisig carrying this envelope's slots."""
        msig = transaction.Multisig(self.version, self.threshold, [])
        msig.subsigs = [transaction.MultisigSubsig(s.public_key, s.signature) for s in self.subsigs]
        return msig

    @classmethod
    def from_multisig(cls, msig: transaction.Multisig) -> "MultisigSignature":
        """Create from an algosdk Multisig.

        Raises:
            DecodeError: If a key or signature has the wrong length.
        """
        subsigs = []
        for s in msig.subsigs:
            if len(s.public_key) != PUBLIC_KEY_LENGTH:
                raise DecodeError("malformed multisig signature: bad public key length")
            if s.signature and len(s.signature) != SIGNATURE_LENGTH:
                raise DecodeError("malformed multisig signature: bad signature length")
            subsigs.append(
                MultisigSubsig(bytes(s.public_key), bytes(s.signature) if s.signature else None)
            )
        return cls(version=int(msig.version), threshold=int(msig.threshold), subsigs=tuple(subsigs))


def encode_multisig_transaction(envelope: MultisigSignature, txn: TransactionLike) -> bytes:
    """Encode a multisig signed transaction.

    The auth address is set when the sender is not the multisig account.
    """
    mtx = transaction.MultisigTransaction(as_transaction(txn), envelope.to_multisig())
    return canonical_encode(mtx)


def sign_multisig_transaction(
    private_key: str | bytes,
    account: MultisigAccount,
    txn: TransactionLike,
) -> bytes:
    """Contribute one signature to a transaction from a multisig account.

    The key must belong to one of the account's contributing addresses.

    Args:
        private_key: Base64 algosdk private key or raw 64-byte secret key.
        account: Multisig account descriptor.
        txn: Transaction to sign.

    Returns:
        Encoded signed transaction with exactly the signer's slot filled.

    Raises:
        ValidationError: If the key is malformed or not part of the account.
    """
    secret_key = secret_key_bytes(private_key)
    index = account.index_of(public_key_from_secret_key(secret_key))
    txn = as_transaction(txn)
    signature = sign_bytes(secret_key, bytes_to_sign(txn))
    envelope = account.blank_signature().with_signature(index, signature)
    return encode_multisig_transaction(envelope, txn)


def attach_multisig_signature(
    signer_address: str,
    signature: bytes,
    account: MultisigAccount,
    txn: TransactionLike,
) -> bytes:
    """Attach an externally produced signature to a multisig transaction.

    Args:
        signer_address: Contributing address that produced the signature.
        signature: 64-byte Ed25519 signature of the transaction.
        account: Multisig account descriptor.
        txn: Transaction that was signed.

    Returns:
        Encoded signed transaction with exactly the signer's slot filled.

    Raises:
        InvalidSignatureError: If the signature has the wrong length.
        ValidationError: If the address is not part of the account.
    """
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"incorrect signature length expected {SIGNATURE_LENGTH}, got {len(signature)}"
        )
    index = account.index_of(address_to_public_key(signer_address))
    envelope = account.blank_signature().with_signature(index, signature)
    return encode_multisig_transaction(envelope, txn)


def _decode_multisig_transaction(signed_txn: bytes) -> transaction.MultisigTransaction:
    stxn = decode_signed_transaction(signed_txn)
    if not isinstance(stxn, transaction.MultisigTransaction) or not stxn.multisig:
        raise ValidationError("transaction is not signed by a multisig account")
    return stxn


def merge_multisig_transactions(first: bytes, second: bytes, *rest: bytes) -> bytes:
    """Merge partially signed multisig transactions.

    All inputs must carry envelopes for the same account, the same
    transaction and the same auth address. The result holds the slot-wise
    union of signatures; merging is commutative and idempotent.

    Args:
        first: Encoded partially signed transaction.
        second: Encoded partially signed transaction.
        *rest: Further encoded partially signed transactions.

    Returns:
        Encoded signed transaction.

    Raises:
        MultisigMismatchError: If the inputs belong to different accounts,
            transactions or auth addresses.
        MultisigConflictError: If two inputs disagree on a filled slot.
    """
    decoded = [_decode_multisig_transaction(stxn) for stxn in (first, second, *rest)]

    base = decoded[0]
    merged = MultisigSignature.from_multisig(base.multisig)
    base_txn = encode_transaction(base.transaction)

    for stxn in decoded[1:]:
        merged = merged.merge(MultisigSignature.from_multisig(stxn.multisig))
        if encode_transaction(stxn.transaction) != base_txn:
            raise MultisigMismatchError("transactions to merge do not match")
        if stxn.auth_addr != base.auth_addr:
            raise MultisigMismatchError("auth addresses of transactions to merge do not match")

    logger.debug(
        f"Merged {len(decoded)} multisig transactions, "
        f"{merged.signature_count()}/{merged.threshold} signatures"
    )

    out = transaction.MultisigTransaction(base.transaction, merged.to_multisig())
    out.auth_addr = base.auth_addr
    return canonical_encode(out)


def extract_multisig_account(signed_txn: bytes) -> MultisigAccount | None:
    """Return the multisig account that signed a transaction, if any.

    Args:
        signed_txn: Encoded signed transaction.

    Returns:
        The account descriptor, or None if the transaction has no multisig.
    """
    stxn = decode_signed_transaction(signed_txn)
    if not isinstance(stxn, transaction.MultisigTransaction) or not stxn.multisig:
        return None
    return MultisigSignature.from_multisig(stxn.multisig).descriptor()


def multisig_verify(signed_txn: bytes) -> bool:
    """Check that an encoded multisig transaction meets its threshold."""
    stxn = decode_signed_transaction(signed_txn)
    if not isinstance(stxn, transaction.MultisigTransaction) or not stxn.multisig:
        return False
    envelope = MultisigSignature.from_multisig(stxn.multisig)
    return envelope.verify(bytes_to_sign(stxn.transaction))
