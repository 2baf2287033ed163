"""Signer protocol definitions.

Defines the interfaces for signing operations:
- TransactionSigner: Authority attached to each composer entry.
- ExternalTransactionSigner: Caller-supplied signer working on encoded bytes
  (wallets, hardware devices, remote key services).
"""

from typing import Protocol, Sequence

from algosdk import transaction

from .types import SignerKind


class TransactionSigner(Protocol):
    """Protocol for signing selected transactions of a group.

    Every variant is tagged with a SignerKind. The composer calls each
    distinct signer once per group, so implementations must compare equal
    (via equals) exactly when they would produce the same authorization.
    """

    @property
    def kind(self) -> SignerKind:
        """Get the authorization variant of this signer."""
        ...

    def sign_transactions(
        self,
        txn_group: Sequence[transaction.Transaction],
        indexes: Sequence[int],
    ) -> list[bytes]:
        """Sign the transactions at the given indexes.

        Args:
            txn_group: Complete ordered group (group IDs already assigned).
            indexes: Positions this signer is responsible for.

        Returns:
            Encoded signed transactions, one per index and in index order.

        Raises:
            ValidationError: If an index is out of range.
        """
        ...

    def equals(self, other: object) -> bool:
        """Whether other would produce the same authorization.

        Returns:
            True if both signers are the same variant with equal contents.
        """
        ...


class ExternalTransactionSigner(Protocol):
    """Protocol for caller-supplied signers working on encoded transactions.

    The signer is responsible for:
    - Decoding the transactions it is asked to sign
    - Returning signed bytes only at the requested positions
    """

    def sign_transactions(
        self,
        unsigned_txns: list[bytes],
        indexes_to_sign: list[int],
    ) -> list[bytes | None]:
        """Sign specified transactions in a group.

        Only signs transactions at the specified indexes.
        Returns None for transactions that should not be signed by this signer.

        Args:
            unsigned_txns: List of unsigned transaction bytes (msgpack encoded).
            indexes_to_sign: Indexes of transactions this signer should sign.

        Returns:
            List parallel to unsigned_txns, with signed transaction bytes
            at indexes_to_sign and None elsewhere.
        """
        ...
