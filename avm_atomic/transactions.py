"""Transaction construction helpers.

Thin wrappers over algosdk.transaction that validate caller supplied
integers before they reach the codec. Suggested parameters are consumed
verbatim; nothing here talks to the network.
"""

from __future__ import annotations

from typing import Sequence

from algosdk import transaction

from .constants import (
    ACCOUNT_MIN_BALANCE,
    ASSET_METADATA_HASH_LENGTH,
    ASSET_OPT_IN_MIN_BALANCE,
    MIN_TXN_FEE,
)
from .errors import ValidationError
from .group import assign_group_id
from .types import BoxReference
from .utils import is_valid_address, require_non_negative


def make_suggested_params(
    fee: int,
    first_valid: int,
    last_valid: int,
    genesis_hash: str,
    genesis_id: str | None = None,
    flat_fee: bool = False,
    min_fee: int = MIN_TXN_FEE,
) -> transaction.SuggestedParams:
    """Create suggested parameters from caller supplied values.

    Args:
        fee: Fee per byte, or the total fee when flat_fee is set (microalgos).
        first_valid: First valid round.
        last_valid: Last valid round.
        genesis_hash: Base64-encoded genesis hash.
        genesis_id: Genesis ID string (e.g., "testnet-v1.0").
        flat_fee: Whether fee is the total fee.
        min_fee: Network minimum fee.

    Returns:
        algosdk SuggestedParams.

    Raises:
        ValidationError: If any integer is negative or the round window is empty.
    """
    sp = transaction.SuggestedParams(
        fee=fee,
        first=first_valid,
        last=last_valid,
        gh=genesis_hash,
        gen=genesis_id,
        flat_fee=flat_fee,
        min_fee=min_fee,
    )
    validate_suggested_params(sp)
    return sp


def validate_suggested_params(sp: transaction.SuggestedParams) -> None:
    """Check that suggested parameters are usable.

    Raises:
        ValidationError: If any integer field is negative, the genesis hash
            is missing, or last_valid precedes first_valid.
    """
    require_non_negative(
        fee=sp.fee,
        first_valid=sp.first,
        last_valid=sp.last,
        min_fee=getattr(sp, "min_fee", None),
    )
    if not sp.gh:
        raise ValidationError("suggested params must include a genesis hash")
    if sp.last < sp.first:
        raise ValidationError(
            f"last valid round {sp.last} precedes first valid round {sp.first}"
        )


def _require_address(name: str, address: str | None) -> None:
    if address is not None and not is_valid_address(address):
        raise ValidationError(f"invalid {name} address: {address!r}")


def make_payment_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    receiver: str,
    amount: int,
    close_remainder_to: str | None = None,
    note: bytes | None = None,
    lease: bytes | None = None,
    rekey_to: str | None = None,
) -> transaction.PaymentTxn:
    """Create a payment transaction."""
    require_non_negative(amount=amount)
    validate_suggested_params(sp)
    _require_address("sender", sender)
    _require_address("receiver", receiver)
    _require_address("close remainder to", close_remainder_to)
    _require_address("rekey to", rekey_to)
    return transaction.PaymentTxn(
        sender,
        sp,
        receiver,
        amount,
        close_remainder_to=close_remainder_to,
        note=note,
        lease=lease,
        rekey_to=rekey_to,
    )


def make_rekey_txn(
    sender: str,
    rekey_to: str,
    sp: transaction.SuggestedParams,
) -> transaction.PaymentTxn:
    """Create a zero-amount self payment that rekeys the sender.

    The fee is computed on the payment before the rekey field is set.
    """
    _require_address("rekey to", rekey_to)
    txn = make_payment_txn(sender, sp, sender, 0)
    txn.rekey_to = rekey_to
    return txn


def make_asset_transfer_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    receiver: str,
    amount: int,
    index: int,
    close_assets_to: str | None = None,
    note: bytes | None = None,
) -> transaction.AssetTransferTxn:
    """Create an asset transfer transaction."""
    require_non_negative(amount=amount, index=index)
    validate_suggested_params(sp)
    _require_address("sender", sender)
    _require_address("receiver", receiver)
    _require_address("close assets to", close_assets_to)
    return transaction.AssetTransferTxn(
        sender,
        sp,
        receiver,
        amount,
        index,
        close_assets_to=close_assets_to,
        note=note,
    )


def make_asset_opt_in_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    index: int,
    note: bytes | None = None,
) -> transaction.AssetTransferTxn:
    """Create a zero-amount asset transfer to self (asset opt-in)."""
    return make_asset_transfer_txn(sender, sp, sender, 0, index, note=note)


def make_application_call_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    app_id: int,
    on_complete: transaction.OnComplete = transaction.OnComplete.NoOpOC,
    app_args: Sequence[bytes] | None = None,
    accounts: Sequence[str] | None = None,
    foreign_apps: Sequence[int] | None = None,
    foreign_assets: Sequence[int] | None = None,
    boxes: Sequence[BoxReference] | None = None,
    approval_program: bytes | None = None,
    clear_program: bytes | None = None,
    global_schema: transaction.StateSchema | None = None,
    local_schema: transaction.StateSchema | None = None,
    extra_pages: int = 0,
    note: bytes | None = None,
    lease: bytes | None = None,
    rekey_to: str | None = None,
) -> transaction.ApplicationCallTxn:
    """Create an application call transaction.

    Foreign lists are copied; the caller's sequences are never modified.
    Box references are translated against foreign_apps by algosdk.
    """
    require_non_negative(app_id=app_id, extra_pages=extra_pages)
    require_non_negative(**{f"foreign_app_{i}": a for i, a in enumerate(foreign_apps or [])})
    require_non_negative(**{f"foreign_asset_{i}": a for i, a in enumerate(foreign_assets or [])})
    validate_suggested_params(sp)
    _require_address("sender", sender)
    for account in accounts or []:
        _require_address("foreign account", account)

    return transaction.ApplicationCallTxn(
        sender=sender,
        sp=sp,
        index=app_id,
        on_complete=on_complete,
        local_schema=local_schema,
        global_schema=global_schema,
        approval_program=approval_program,
        clear_program=clear_program,
        app_args=list(app_args) if app_args else None,
        accounts=list(accounts) if accounts else None,
        foreign_apps=list(foreign_apps) if foreign_apps else None,
        foreign_assets=list(foreign_assets) if foreign_assets else None,
        note=note,
        lease=lease,
        rekey_to=rekey_to,
        extra_pages=extra_pages,
        boxes=[box.to_tuple() for box in boxes] if boxes else None,
    )


def _require_program(name: str, program: bytes | None) -> bytes:
    if not program:
        raise ValidationError(f"{name} program must not be empty")
    return bytes(program)


def make_application_create_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    approval_program: bytes,
    clear_program: bytes,
    global_schema: transaction.StateSchema,
    local_schema: transaction.StateSchema,
    opt_in: bool = False,
    app_args: Sequence[bytes] | None = None,
    accounts: Sequence[str] | None = None,
    foreign_apps: Sequence[int] | None = None,
    foreign_assets: Sequence[int] | None = None,
    boxes: Sequence[BoxReference] | None = None,
    extra_pages: int = 0,
    note: bytes | None = None,
) -> transaction.ApplicationCallTxn:
    """Create an application creation transaction.

    Args:
        opt_in: Opt the creator in on completion instead of a plain call.

    Raises:
        ValidationError: If a program is empty, a schema count or any other
            integer is negative, or an address is invalid.
    """
    require_non_negative(
        global_uints=global_schema.num_uints,
        global_byte_slices=global_schema.num_byte_slices,
        local_uints=local_schema.num_uints,
        local_byte_slices=local_schema.num_byte_slices,
    )
    on_complete = transaction.OnComplete.OptInOC if opt_in else transaction.OnComplete.NoOpOC
    return make_application_call_txn(
        sender,
        sp,
        0,
        on_complete=on_complete,
        app_args=app_args,
        accounts=accounts,
        foreign_apps=foreign_apps,
        foreign_assets=foreign_assets,
        boxes=boxes,
        approval_program=_require_program("approval", approval_program),
        clear_program=_require_program("clear", clear_program),
        global_schema=global_schema,
        local_schema=local_schema,
        extra_pages=extra_pages,
        note=note,
    )


def make_application_update_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    app_id: int,
    approval_program: bytes,
    clear_program: bytes,
    app_args: Sequence[bytes] | None = None,
    accounts: Sequence[str] | None = None,
    foreign_apps: Sequence[int] | None = None,
    foreign_assets: Sequence[int] | None = None,
    boxes: Sequence[BoxReference] | None = None,
    note: bytes | None = None,
) -> transaction.ApplicationCallTxn:
    """Create a transaction replacing an application's programs."""
    return make_application_call_txn(
        sender,
        sp,
        app_id,
        on_complete=transaction.OnComplete.UpdateApplicationOC,
        app_args=app_args,
        accounts=accounts,
        foreign_apps=foreign_apps,
        foreign_assets=foreign_assets,
        boxes=boxes,
        approval_program=_require_program("approval", approval_program),
        clear_program=_require_program("clear", clear_program),
        note=note,
    )


def _make_application_action_txn(
    on_complete: transaction.OnComplete,
    sender: str,
    sp: transaction.SuggestedParams,
    app_id: int,
    app_args: Sequence[bytes] | None,
    accounts: Sequence[str] | None,
    foreign_apps: Sequence[int] | None,
    foreign_assets: Sequence[int] | None,
    boxes: Sequence[BoxReference] | None,
    note: bytes | None,
) -> transaction.ApplicationCallTxn:
    return make_application_call_txn(
        sender,
        sp,
        app_id,
        on_complete=on_complete,
        app_args=app_args,
        accounts=accounts,
        foreign_apps=foreign_apps,
        foreign_assets=foreign_assets,
        boxes=boxes,
        note=note,
    )


def make_application_delete_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    app_id: int,
    app_args: Sequence[bytes] | None = None,
    accounts: Sequence[str] | None = None,
    foreign_apps: Sequence[int] | None = None,
    foreign_assets: Sequence[int] | None = None,
    boxes: Sequence[BoxReference] | None = None,
    note: bytes | None = None,
) -> transaction.ApplicationCallTxn:
    """Create a transaction deleting an application."""
    return _make_application_action_txn(
        transaction.OnComplete.DeleteApplicationOC,
        sender, sp, app_id, app_args, accounts, foreign_apps, foreign_assets, boxes, note,
    )


def make_application_opt_in_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    app_id: int,
    app_args: Sequence[bytes] | None = None,
    accounts: Sequence[str] | None = None,
    foreign_apps: Sequence[int] | None = None,
    foreign_assets: Sequence[int] | None = None,
    boxes: Sequence[BoxReference] | None = None,
    note: bytes | None = None,
) -> transaction.ApplicationCallTxn:
    """Create a transaction opting the sender in to an application."""
    return _make_application_action_txn(
        transaction.OnComplete.OptInOC,
        sender, sp, app_id, app_args, accounts, foreign_apps, foreign_assets, boxes, note,
    )


def make_application_close_out_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    app_id: int,
    app_args: Sequence[bytes] | None = None,
    accounts: Sequence[str] | None = None,
    foreign_apps: Sequence[int] | None = None,
    foreign_assets: Sequence[int] | None = None,
    boxes: Sequence[BoxReference] | None = None,
    note: bytes | None = None,
) -> transaction.ApplicationCallTxn:
    """Create a transaction closing the sender out of an application."""
    return _make_application_action_txn(
        transaction.OnComplete.CloseOutOC,
        sender, sp, app_id, app_args, accounts, foreign_apps, foreign_assets, boxes, note,
    )


def make_application_clear_state_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    app_id: int,
    app_args: Sequence[bytes] | None = None,
    accounts: Sequence[str] | None = None,
    foreign_apps: Sequence[int] | None = None,
    foreign_assets: Sequence[int] | None = None,
    boxes: Sequence[BoxReference] | None = None,
    note: bytes | None = None,
) -> transaction.ApplicationCallTxn:
    """Create a transaction clearing the sender's application state."""
    return _make_application_action_txn(
        transaction.OnComplete.ClearStateOC,
        sender, sp, app_id, app_args, accounts, foreign_apps, foreign_assets, boxes, note,
    )


def make_asset_create_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    total: int,
    decimals: int,
    default_frozen: bool,
    manager: str | None = None,
    reserve: str | None = None,
    freeze: str | None = None,
    clawback: str | None = None,
    unit_name: str = "",
    asset_name: str = "",
    url: str = "",
    metadata_hash: bytes | None = None,
    note: bytes | None = None,
) -> transaction.AssetConfigTxn:
    """Create an asset creation transaction.

    Raises:
        ValidationError: If total or decimals is negative, an address is
            invalid, or the metadata hash is not 32 bytes.
    """
    require_non_negative(total=total, decimals=decimals)
    validate_suggested_params(sp)
    _require_address("sender", sender)
    for name, address in (
        ("manager", manager),
        ("reserve", reserve),
        ("freeze", freeze),
        ("clawback", clawback),
    ):
        _require_address(name, address or None)
    if metadata_hash and len(metadata_hash) != ASSET_METADATA_HASH_LENGTH:
        raise ValidationError(
            f"metadata hash must be {ASSET_METADATA_HASH_LENGTH} bytes, got {len(metadata_hash)}"
        )
    return transaction.AssetCreateTxn(
        sender,
        sp,
        total,
        decimals,
        default_frozen,
        manager=manager or None,
        reserve=reserve or None,
        freeze=freeze or None,
        clawback=clawback or None,
        unit_name=unit_name,
        asset_name=asset_name,
        url=url,
        metadata_hash=metadata_hash or None,
        note=note,
    )


def make_asset_config_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    index: int,
    manager: str | None,
    reserve: str | None,
    freeze: str | None,
    clawback: str | None,
    note: bytes | None = None,
) -> transaction.AssetConfigTxn:
    """Create a transaction reconfiguring an asset's role addresses.

    Every role is written; an empty address clears that role for good, so
    pass the current address to keep a role unchanged.
    """
    require_non_negative(index=index)
    validate_suggested_params(sp)
    _require_address("sender", sender)
    for name, address in (
        ("manager", manager),
        ("reserve", reserve),
        ("freeze", freeze),
        ("clawback", clawback),
    ):
        _require_address(name, address or None)
    return transaction.AssetConfigTxn(
        sender,
        sp,
        index=index,
        manager=manager or None,
        reserve=reserve or None,
        freeze=freeze or None,
        clawback=clawback or None,
        note=note,
        strict_empty_address_check=False,
    )


def make_asset_destroy_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    index: int,
    note: bytes | None = None,
) -> transaction.AssetConfigTxn:
    """Create a transaction destroying an asset."""
    require_non_negative(index=index)
    validate_suggested_params(sp)
    _require_address("sender", sender)
    return transaction.AssetDestroyTxn(sender, sp, index, note=note)


def make_asset_freeze_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    index: int,
    target: str,
    new_freeze_state: bool,
    note: bytes | None = None,
) -> transaction.AssetFreezeTxn:
    """Create a transaction freezing or unfreezing an account's holding."""
    require_non_negative(index=index)
    validate_suggested_params(sp)
    _require_address("sender", sender)
    _require_address("freeze target", target)
    return transaction.AssetFreezeTxn(sender, sp, index, target, new_freeze_state, note=note)


def make_asset_revocation_txn(
    sender: str,
    sp: transaction.SuggestedParams,
    target: str,
    amount: int,
    receiver: str,
    index: int,
    note: bytes | None = None,
) -> transaction.AssetTransferTxn:
    """Create a clawback moving amount of an asset from target to receiver."""
    require_non_negative(amount=amount, index=index)
    validate_suggested_params(sp)
    _require_address("sender", sender)
    _require_address("revocation target", target)
    _require_address("receiver", receiver)
    return transaction.AssetTransferTxn(
        sender, sp, receiver, amount, index, revocation_target=target, note=note
    )


def make_opt_in_and_asset_transfer_txns(
    sender: str,
    receiver: str,
    amount: int,
    index: int,
    sender_algo_amount: int,
    sender_min_balance: int,
    receiver_algo_amount: int,
    receiver_min_balance: int,
    sp: transaction.SuggestedParams,
) -> list[tuple[str, transaction.Transaction]]:
    """Create a grouped asset opt-in for receiver followed by a transfer to it.

    When the receiver cannot pay for the opt-in itself, the group starts
    with a payment from sender covering the shortfall. Every transaction
    uses the same suggested params.

    Args:
        sender: Asset holder sending the asset.
        receiver: Account opting in and receiving the asset.
        amount: Asset units to transfer.
        index: Asset ID.
        sender_algo_amount: Sender's current balance in microalgos.
        sender_min_balance: Sender's current minimum balance.
        receiver_algo_amount: Receiver's current balance in microalgos.
        receiver_min_balance: Receiver's current minimum balance.
        sp: Suggested parameters.

    Returns:
        (signer address, transaction) pairs in group order, with the group
        ID assigned.

    Raises:
        ValidationError: If an integer is negative, or the sender cannot
            fund the receiver.
    """
    require_non_negative(
        sender_algo_amount=sender_algo_amount,
        sender_min_balance=sender_min_balance,
        receiver_algo_amount=receiver_algo_amount,
        receiver_min_balance=receiver_min_balance,
    )
    fee = sp.fee if sp.fee > 0 else MIN_TXN_FEE
    opt_in_cost = ASSET_OPT_IN_MIN_BALANCE + fee
    receiver_spendable = max(receiver_algo_amount - receiver_min_balance, 0)

    pairs: list[tuple[str, transaction.Transaction]] = []
    if receiver_spendable < opt_in_cost:
        if receiver_algo_amount == 0:
            funding = ACCOUNT_MIN_BALANCE + opt_in_cost
        else:
            funding = opt_in_cost - receiver_spendable
        sender_spendable = sender_algo_amount - sender_min_balance
        if sender_spendable < funding + 2 * fee:
            raise ValidationError("sender does not have enough algo to cover receiver's needs")
        pairs.append((sender, make_payment_txn(sender, sp, receiver, funding)))

    pairs.append((receiver, make_asset_opt_in_txn(receiver, sp, index)))
    pairs.append((sender, make_asset_transfer_txn(sender, sp, receiver, amount, index)))

    assign_group_id([txn for _, txn in pairs])
    return pairs
