"""Atomic transaction composer.

Collects up to MAX_GROUP_SIZE transactions with their signers, assigns the
group ID and gathers signatures. The composer moves through
BUILDING -> BUILT -> SIGNED and never goes back; only a clone starts over.

Example:
    ```python
    atc = AtomicTransactionComposer()
    atc.add_transaction(payment, BasicAccountSigner(private_key))
    atc.add_method_call(params)
    signed = atc.gather_signatures()
    ```
"""

from __future__ import annotations

import copy
import logging

from algosdk import abi, transaction

from .constants import ERR_EMPTY_GROUP, MAX_GROUP_SIZE
from .errors import AvmAtomicError, ComposerStateError, GroupSizeError, SignerError, ValidationError
from .group import assign_group_id
from .method_call import MethodCallParams
from .signer import TransactionSigner
from .types import ComposerStatus, TransactionWithSigner
from .utils import TransactionLike, decode_transaction, encode_transaction_group, get_txid

logger = logging.getLogger(__name__)


class AtomicTransactionComposer:
    """Builds, groups and signs an atomic transaction group.

    Attributes:
        method_calls: Index of each method's application call -> abi.Method.
    """

    def __init__(self) -> None:
        self._status = ComposerStatus.BUILDING
        self._txn_list: list[TransactionWithSigner] = []
        self.method_calls: dict[int, abi.Method] = {}
        self._signed_txns: list[bytes] = []

    def get_status(self) -> ComposerStatus:
        """Get the current lifecycle status."""
        return self._status

    def count(self) -> int:
        """Get the number of transactions added so far."""
        return len(self._txn_list)

    def _require_building(self, action: str) -> None:
        if self._status != ComposerStatus.BUILDING:
            raise ComposerStateError(
                f"cannot {action} when composer status is {self._status.name}"
            )

    def _require_room(self, additional: int) -> None:
        if self.count() + additional > MAX_GROUP_SIZE:
            raise GroupSizeError(
                f"adding {additional} transactions to a group of {self.count()} "
                f"would exceed the maximum group size of {MAX_GROUP_SIZE}"
            )

    @staticmethod
    def _copy_ungrouped(txn: TransactionLike) -> transaction.Transaction:
        if isinstance(txn, (bytes, bytearray)):
            txn = decode_transaction(bytes(txn))
        if txn.group:
            raise ValidationError("cannot add a transaction with nonempty group ID")
        return copy.deepcopy(txn)

    def add_transaction(
        self, txn: TransactionLike, signer: TransactionSigner
    ) -> "AtomicTransactionComposer":
        """Add a transaction with the signer that authorizes it.

        The transaction is copied; later changes by the caller have no effect.

        Args:
            txn: Unsigned transaction without a group ID, as an algosdk
                object or canonical msgpack bytes.
            signer: Signer for the transaction.

        Returns:
            Self for chaining.

        Raises:
            ComposerStateError: If the composer is not BUILDING.
            GroupSizeError: If the group would exceed MAX_GROUP_SIZE.
            ValidationError: If the transaction already has a group ID.
            DecodeError: If encoded bytes are not an unsigned transaction.
        """
        self._require_building("add transactions")
        self._require_room(1)
        self._txn_list.append(TransactionWithSigner(self._copy_ungrouped(txn), signer))
        return self

    def add_method_call(self, params: MethodCallParams) -> "AtomicTransactionComposer":
        """Add the transactions of an ARC-4 method call.

        Transaction arguments are added before the application call. Either
        every transaction of the call is added or none is.

        Args:
            params: Method call parameters.

        Returns:
            Self for chaining.

        Raises:
            ComposerStateError: If the composer is not BUILDING.
            GroupSizeError: If the group would exceed MAX_GROUP_SIZE.
            ArgumentError: If the arguments do not match the method.
        """
        self._require_building("add method calls")
        built = params.build_transactions()
        self._require_room(len(built))
        entries = [TransactionWithSigner(self._copy_ungrouped(t.txn), t.signer) for t in built]

        self._txn_list.extend(entries)
        self.method_calls[len(self._txn_list) - 1] = params.method
        return self

    def build_group(self) -> list[TransactionWithSigner]:
        """Finalize the group, assigning the group ID when it holds several transactions.

        Calling it again returns the same finalized group.

        Returns:
            Entries in group order.

        Raises:
            ComposerStateError: If the composer is empty.
        """
        if self._status >= ComposerStatus.BUILT:
            return list(self._txn_list)

        if not self._txn_list:
            raise ComposerStateError(
                "attempting to build a group with zero transactions", code=ERR_EMPTY_GROUP
            )

        if len(self._txn_list) > 1:
            assign_group_id([entry.txn for entry in self._txn_list])

        self._status = ComposerStatus.BUILT
        logger.debug(f"Built group of {len(self._txn_list)} transactions")
        return list(self._txn_list)

    def get_txids(self) -> list[str]:
        """Get the transaction IDs of the finalized group.

        Raises:
            ComposerStateError: If the group has not been built.
        """
        if self._status < ComposerStatus.BUILT:
            raise ComposerStateError("cannot get transaction IDs before the group is built")
        return [get_txid(entry.txn) for entry in self._txn_list]

    def gather_signatures(self) -> list[bytes]:
        """Sign the group, building it first if needed.

        Entries are grouped by signer equality and each distinct signer is
        called once with all of its indexes. Results are cached; a failure
        leaves the composer BUILT with nothing cached.

        Returns:
            Encoded signed transactions in group order.

        Raises:
            SignerError: If a signer fails or returns a malformed result.
        """
        if self._status >= ComposerStatus.SIGNED:
            return list(self._signed_txns)

        entries = self.build_group()
        txn_group = [entry.txn for entry in entries]
        signed: list[bytes | None] = [None] * len(entries)
        visited = [False] * len(entries)

        for i, entry in enumerate(entries):
            if visited[i]:
                continue
            indexes = [
                j
                for j in range(i, len(entries))
                if not visited[j] and entry.signer.equals(entries[j].signer)
            ]
            for j in indexes:
                visited[j] = True

            logger.debug(f"Dispatching {entry.signer.kind.value} signer for indexes {indexes}")
            try:
                results = entry.signer.sign_transactions(txn_group, indexes)
            except AvmAtomicError:
                raise
            except Exception as e:
                raise SignerError(f"signer failed for indexes {indexes}: {e}") from e

            if len(results) != len(indexes):
                raise SignerError(
                    f"signer returned {len(results)} signed transactions for {len(indexes)} indexes"
                )
            for j, result in zip(indexes, results):
                if not result:
                    raise SignerError(f"signer returned an empty result for transaction {j}")
                signed[j] = bytes(result)

        self._signed_txns = [stxn for stxn in signed if stxn is not None]
        self._status = ComposerStatus.SIGNED
        logger.debug(f"Gathered {len(self._signed_txns)} signed transactions")
        return list(self._signed_txns)

    def encode_signed_group(self) -> list[str]:
        """Get the signed group as base64 strings, signing first if needed."""
        return encode_transaction_group(self.gather_signatures())

    def clone(self) -> "AtomicTransactionComposer":
        """Create an independent BUILDING composer with the same entries.

        Group IDs are cleared on the copied transactions; signers are shared.
        """
        cloned = AtomicTransactionComposer()
        for entry in self._txn_list:
            txn = copy.deepcopy(entry.txn)
            txn.group = None
            cloned._txn_list.append(TransactionWithSigner(txn, entry.signer))
        cloned.method_calls = dict(self.method_calls)
        return cloned
