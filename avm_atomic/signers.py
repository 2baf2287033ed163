"""Concrete signer implementations.

Provides ready-to-use implementations of TransactionSigner:
- BasicAccountSigner: single Ed25519 key.
- MultisigAccountSigner: one or more member keys of a multisig account.
- LogicSigAccountSigner: escrow or delegated logic signature.
- ExternalSignerAdapter: wraps an ExternalTransactionSigner.
"""

from __future__ import annotations

import copy
import logging
from typing import Sequence

from algosdk import account, transaction
from algosdk import mnemonic as mn

from .errors import AvmAtomicError, SignerError, ValidationError
from .logicsig import LogicSigAccount, sign_logicsig_transaction
from .multisig import MultisigAccount, encode_multisig_transaction
from .signer import ExternalTransactionSigner
from .signing import sign_transaction
from .types import SignerKind
from .utils import (
    as_transaction,
    bytes_to_sign,
    encode_transaction,
    public_key_from_secret_key,
    public_key_to_address,
    secret_key_bytes,
    sign_bytes,
)

logger = logging.getLogger(__name__)


def _check_indexes(txn_group: Sequence[transaction.Transaction], indexes: Sequence[int]) -> None:
    for idx in indexes:
        if not 0 <= idx < len(txn_group):
            raise ValidationError(
                f"index {idx} out of range for group of {len(txn_group)} transactions"
            )


class BasicAccountSigner:
    """Signer holding a single Ed25519 secret key.

    Implements TransactionSigner protocol. Produces a bare signature when the
    key's address is the sender, otherwise a signature plus auth address
    (for rekeyed accounts).

    Example:
        ```python
        signer = BasicAccountSigner.from_mnemonic("word1 word2 ... word25")
        atc.add_transaction(txn, signer)
        ```
    """

    kind = SignerKind.BASIC

    def __init__(self, private_key: str | bytes):
        """Create signer from private key.

        Args:
            private_key: Base64-encoded Algorand private key or raw 64-byte
                secret key.
        """
        self._secret_key = secret_key_bytes(private_key)
        self._public_key = public_key_from_secret_key(self._secret_key)
        self._address = public_key_to_address(self._public_key)

    @classmethod
    def from_mnemonic(cls, mnemonic: str) -> "BasicAccountSigner":
        """Create signer from a 25-word Algorand mnemonic.

        Raises:
            ValidationError: If the mnemonic is invalid.
        """
        try:
            private_key = mn.to_private_key(mnemonic)
        except Exception as e:
            raise ValidationError(f"invalid mnemonic: {e}") from e
        return cls(private_key)

    @classmethod
    def generate(cls) -> tuple["BasicAccountSigner", str]:
        """Generate a new random signer.

        Returns:
            Tuple of (signer, mnemonic).
        """
        private_key, _ = account.generate_account()
        return cls(private_key), mn.from_private_key(private_key)

    @property
    def address(self) -> str:
        """Get the signer's Algorand address."""
        return self._address

    @property
    def public_key(self) -> bytes:
        """Get the signer's 32-byte public key."""
        return self._public_key

    def sign_transactions(
        self,
        txn_group: Sequence[transaction.Transaction],
        indexes: Sequence[int],
    ) -> list[bytes]:
        """Sign the transactions at the given indexes."""
        _check_indexes(txn_group, indexes)
        return [self._sign(txn_group[idx]) for idx in indexes]

    def _sign(self, txn: transaction.Transaction) -> bytes:
        return sign_transaction(self._secret_key, txn)

    def equals(self, other: object) -> bool:
        """Whether other holds the same secret key."""
        return isinstance(other, BasicAccountSigner) and other._secret_key == self._secret_key

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((self.kind, self._public_key))

    def __repr__(self) -> str:
        return f"BasicAccountSigner(address={self._address!r})"


class MultisigAccountSigner:
    """Signer contributing member signatures for a multisig account.

    Implements TransactionSigner protocol. Each signed transaction carries
    one envelope holding exactly the slots of the supplied keys.
    """

    kind = SignerKind.MULTISIG

    def __init__(self, multisig_account: MultisigAccount, private_keys: Sequence[str | bytes]):
        """Create signer from a multisig descriptor and member keys.

        Args:
            multisig_account: Multisig account descriptor.
            private_keys: Member secret keys (base64 strings or raw bytes).

        Raises:
            ValidationError: If a key is not a member, two keys resolve to the
                same slot, or there are fewer distinct keys than the threshold.
        """
        slots: dict[int, bytes] = {}
        for private_key in private_keys:
            secret_key = secret_key_bytes(private_key)
            public_key = public_key_from_secret_key(secret_key)
            index = multisig_account.index_of(public_key)
            if index in slots:
                raise ValidationError(
                    f"duplicate private key for public key {public_key_to_address(public_key)}"
                )
            slots[index] = secret_key

        if len(slots) < multisig_account.threshold:
            raise ValidationError(
                f"not enough private keys to meet multisig threshold. "
                f"Have {len(slots)}, need {multisig_account.threshold}"
            )

        self._account = multisig_account
        self._slots = dict(sorted(slots.items()))

    @property
    def multisig_account(self) -> MultisigAccount:
        """Get the multisig account descriptor."""
        return self._account

    @property
    def address(self) -> str:
        """Get the multisig account address."""
        return self._account.address()

    def sign_transactions(
        self,
        txn_group: Sequence[transaction.Transaction],
        indexes: Sequence[int],
    ) -> list[bytes]:
        """Sign the transactions at the given indexes with every member key."""
        _check_indexes(txn_group, indexes)
        return [self._sign(txn_group[idx]) for idx in indexes]

    def _sign(self, txn: transaction.Transaction) -> bytes:
        txn = as_transaction(txn)
        message = bytes_to_sign(txn)
        envelope = self._account.blank_signature()
        for index, secret_key in self._slots.items():
            envelope = envelope.with_signature(index, sign_bytes(secret_key, message))
        return encode_multisig_transaction(envelope, txn)

    def equals(self, other: object) -> bool:
        """Whether other signs for the same account with the same keys."""
        return (
            isinstance(other, MultisigAccountSigner)
            and other._account == self._account
            and other._slots == self._slots
        )

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((self.kind, self._account, tuple(self._slots)))

    def __repr__(self) -> str:
        return f"MultisigAccountSigner(address={self.address!r}, slots={list(self._slots)})"


class LogicSigAccountSigner:
    """Signer attaching a logic signature.

    Implements TransactionSigner protocol. No secret key is needed; the
    account is copied so later changes by the caller have no effect.
    """

    kind = SignerKind.LOGICSIG

    def __init__(self, lsig_account: LogicSigAccount):
        self._account = copy.deepcopy(lsig_account)

    @property
    def lsig_account(self) -> LogicSigAccount:
        """Get a copy of the logic signature account."""
        return copy.deepcopy(self._account)

    @property
    def address(self) -> str:
        """Get the address this signer has authority over."""
        return self._account.address()

    def sign_transactions(
        self,
        txn_group: Sequence[transaction.Transaction],
        indexes: Sequence[int],
    ) -> list[bytes]:
        """Attach the logic signature to the transactions at the given indexes."""
        _check_indexes(txn_group, indexes)
        return [sign_logicsig_transaction(self._account, txn_group[idx]) for idx in indexes]

    def equals(self, other: object) -> bool:
        """Whether other attaches an identical logic signature."""
        return isinstance(other, LogicSigAccountSigner) and other._account == self._account

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((self.kind, self._account.program))

    def __repr__(self) -> str:
        return f"LogicSigAccountSigner(address={self.address!r})"


class ExternalSignerAdapter:
    """Adapts an ExternalTransactionSigner to the TransactionSigner protocol.

    Transactions are handed over encoded. Two adapters are equal only when
    they wrap the same external object.
    """

    kind = SignerKind.EXTERNAL

    def __init__(self, external: ExternalTransactionSigner):
        self._external = external

    @property
    def external(self) -> ExternalTransactionSigner:
        """Get the wrapped signer."""
        return self._external

    def sign_transactions(
        self,
        txn_group: Sequence[transaction.Transaction],
        indexes: Sequence[int],
    ) -> list[bytes]:
        """Sign through the wrapped signer and pick the requested results.

        Raises:
            SignerError: If the wrapped signer fails, returns a list of the
                wrong length, or returns None at a requested index.
        """
        _check_indexes(txn_group, indexes)
        unsigned = [encode_transaction(txn) for txn in txn_group]

        try:
            results = self._external.sign_transactions(unsigned, list(indexes))
        except AvmAtomicError:
            raise
        except Exception as e:
            raise SignerError(f"external signer failed: {e}") from e

        if len(results) != len(unsigned):
            raise SignerError(
                f"external signer returned {len(results)} results for {len(unsigned)} transactions"
            )

        signed: list[bytes] = []
        for idx in indexes:
            result = results[idx]
            if result is None:
                raise SignerError(f"external signer returned no signature for transaction {idx}")
            signed.append(bytes(result))
        logger.debug(f"External signer produced {len(signed)} signed transactions")
        return signed

    def equals(self, other: object) -> bool:
        """Whether other wraps the same external signer object."""
        return isinstance(other, ExternalSignerAdapter) and other._external is self._external

    def __eq__(self, other: object) -> bool:
        return self.equals(other)

    def __hash__(self) -> int:
        return hash((self.kind, id(self._external)))
