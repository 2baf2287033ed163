"""Group ID engine.

Computes, assigns and verifies atomic group identifiers over ordered
transaction lists. Every function accepts algosdk Transaction objects or
their canonical msgpack bytes. The group ID is the algosdk group hash of
the transactions with their group field cleared, so an ID already stored
on an input never feeds into the result.
"""

from __future__ import annotations

import copy
import logging
from typing import Sequence

from algosdk import transaction

from .constants import MAX_GROUP_SIZE
from .errors import GroupSizeError, InvalidGroupError, ValidationError
from .utils import TransactionLike, as_transaction, encode_transaction

logger = logging.getLogger(__name__)


def _check_group_size(txns: Sequence[TransactionLike]) -> None:
    if len(txns) == 0:
        raise ValidationError("Input transaction group has 0 elements")
    if len(txns) > MAX_GROUP_SIZE:
        raise GroupSizeError(
            f"{len(txns)} transactions exceed the maximum group size of {MAX_GROUP_SIZE}"
        )


def _ungrouped(txns: Sequence[TransactionLike]) -> list[transaction.Transaction]:
    result = []
    for txn in txns:
        ungrouped = copy.copy(as_transaction(txn))
        ungrouped.group = None
        result.append(ungrouped)
    return result


def _stored_group(txn: TransactionLike) -> bytes:
    group = as_transaction(txn).group
    return bytes(group) if group else b""


def compute_group_id(txns: Sequence[TransactionLike]) -> bytes:
    """Compute the group ID for an ordered list of transactions.

    Any group field already present on the inputs is ignored.

    Args:
        txns: Transactions in group order.

    Returns:
        32-byte group ID.

    Raises:
        ValidationError: If the list is empty.
        GroupSizeError: If the list holds more than MAX_GROUP_SIZE transactions.
    """
    _check_group_size(txns)
    return transaction.calculate_group_id(_ungrouped(txns))


def assign_group_id(txns: Sequence[TransactionLike]) -> list[TransactionLike]:
    """Assign a group ID to every transaction in an ordered list.

    Transaction objects are updated in place. Encoded transactions are not
    modified; re-encoded copies carrying the group field are returned instead.

    Args:
        txns: Transactions in group order (a single transaction is allowed).

    Returns:
        The transactions with their group field set, in input order.
    """
    _check_group_size(txns)
    objects = [as_transaction(txn) for txn in txns]
    for obj in objects:
        obj.group = None
    transaction.assign_group_id(objects)
    logger.debug(f"Assigned group ID to {len(txns)} transactions")

    return [
        obj if isinstance(txn, transaction.Transaction) else encode_transaction(obj)
        for txn, obj in zip(txns, objects)
    ]


def verify_group_id(txns: Sequence[TransactionLike]) -> bool:
    """Verify that a list of transactions forms a correctly grouped unit.

    A single transaction is valid with an empty group field or with the
    group ID computed over itself. Two or more transactions are valid when
    they all carry one non-empty group ID equal to the recomputed one.
    Inputs are never modified.

    Args:
        txns: Transactions in group order.

    Returns:
        True if the group is valid.

    Raises:
        ValidationError: If the list is empty.
    """
    if len(txns) == 0:
        raise ValidationError("Input transaction group has 0 elements")

    groups = [_stored_group(txn) for txn in txns]

    # a group of size 1 may have an empty group ID
    if len(txns) == 1 and not groups[0]:
        return True

    expected = groups[0]
    if not expected or any(group != expected for group in groups):
        return False
    if len(txns) > MAX_GROUP_SIZE:
        return False

    return compute_group_id(txns) == expected


def find_and_verify_groups(txns: Sequence[TransactionLike]) -> list[int]:
    """Find and verify consecutive transactions that claim to be atomic groups.

    A new segment starts whenever the group field differs from the previous
    transaction's, and at every transaction with an empty group field, so
    ungrouped transactions are always singletons.

    Args:
        txns: Ordered transactions, possibly several groups back to back.

    Returns:
        List parallel to txns; equal values mark transactions in the same
        group. Values start at 0 and increase by one per segment.

    Raises:
        ValidationError: If the list is empty.
        InvalidGroupError: On the first segment whose group ID is wrong.
    """
    if len(txns) == 0:
        raise ValidationError("Input transaction group has 0 elements")

    assignment: list[int] = []
    starts: list[int] = []
    previous = b""
    for i, txn in enumerate(txns):
        group = _stored_group(txn)
        if group != previous or not group:
            starts.append(i)
        assignment.append(len(starts) - 1)
        previous = group

    bounds = starts[1:] + [len(txns)]
    for start, end in zip(starts, bounds):
        if not verify_group_id(txns[start:end]):
            logger.debug(f"Group verification failed for range [{start}:{end}]")
            raise InvalidGroupError(start, end)

    return assignment
