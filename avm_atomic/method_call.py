"""ARC-4 method call builder.

Lowers a structured smart contract method call into the transactions that
perform it: any transaction arguments first, then one application call
whose arguments are the 4-byte method selector followed by the ABI encoded
method arguments. Reference arguments (account, asset, application) are
resolved to uint8 indexes into the call's foreign arrays.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence, Union

from algosdk import abi, transaction

from .abi_json import from_text
from .constants import ABI_TXN_ANY, MAX_APP_ARGS, MAX_METHOD_ARGS_BEFORE_TUPLE
from .errors import ArgumentError, DecodeError, ValidationError
from .signer import TransactionSigner
from .transactions import make_application_call_txn
from .types import BoxReference, TransactionWithSigner
from .utils import require_non_negative

logger = logging.getLogger(__name__)

MethodLike = Union[abi.Method, str]


def resolve_method(method: MethodLike) -> abi.Method:
    """Return an abi.Method from a Method, a signature or method JSON.

    Raises:
        DecodeError: If the signature or JSON is invalid.
    """
    if isinstance(method, abi.Method):
        return method
    try:
        if method.lstrip().startswith("{"):
            return abi.Method.from_json(method)
        return abi.Method.from_signature(method)
    except Exception as e:
        raise DecodeError(f"invalid method {method!r}: {e}") from e


def _reference_proxy_type(arg_type: str) -> abi.ABIType:
    if arg_type == abi.ABIReferenceType.ACCOUNT:
        return abi.AddressType()
    return abi.UintType(64)


def _matches_transaction_slot(arg_type: str, txn: transaction.Transaction) -> bool:
    return arg_type == ABI_TXN_ANY or arg_type == txn.type


class MethodCallParams:
    """Parameters of a single ARC-4 method call.

    Arguments are either passed as method_args (Python values and
    TransactionWithSigner entries in declared order) or appended one at a
    time with add_method_argument / add_method_argument_transaction.

    Example:
        ```python
        params = MethodCallParams(app_id, "add(uint64,uint64)uint64", sender, sp, signer)
        params.add_method_argument("1")
        params.add_method_argument("2")
        atc.add_method_call(params)
        ```
    """

    def __init__(
        self,
        app_id: int,
        method: MethodLike,
        sender: str,
        sp: transaction.SuggestedParams,
        signer: TransactionSigner,
        on_complete: transaction.OnComplete = transaction.OnComplete.NoOpOC,
        accounts: Sequence[str] | None = None,
        foreign_apps: Sequence[int] | None = None,
        foreign_assets: Sequence[int] | None = None,
        boxes: Sequence[BoxReference] | None = None,
        note: bytes | None = None,
        lease: bytes | None = None,
        rekey_to: str | None = None,
        method_args: Sequence[Any] | None = None,
    ):
        require_non_negative(app_id=app_id)
        require_non_negative(**{f"foreign_app_{i}": a for i, a in enumerate(foreign_apps or [])})
        require_non_negative(**{f"foreign_asset_{i}": a for i, a in enumerate(foreign_assets or [])})
        try:
            on_complete = transaction.OnComplete(on_complete)
        except ValueError as e:
            raise ValidationError(f"invalid on_complete value: {on_complete!r}") from e

        self.app_id = app_id
        self.method = resolve_method(method)
        self.sender = sender
        self.sp = sp
        self.signer = signer
        self.on_complete = on_complete
        self.accounts = list(accounts or [])
        self.foreign_apps = list(foreign_apps or [])
        self.foreign_assets = list(foreign_assets or [])
        self.boxes = list(boxes or [])
        self.note = note
        self.lease = lease
        self.rekey_to = rekey_to
        self.method_args: list[Any] = list(method_args or [])

        self.approval_program: bytes | None = None
        self.clear_program: bytes | None = None
        self.global_schema: transaction.StateSchema | None = None
        self.local_schema: transaction.StateSchema | None = None
        self.extra_pages = 0

    def _next_slot(self) -> tuple[int, Any]:
        index = len(self.method_args)
        if index >= len(self.method.args):
            raise ArgumentError(
                f"too many arguments for method {self.method.get_signature()}: "
                f"expected {len(self.method.args)}"
            )
        return index, self.method.args[index].type

    def add_method_argument(self, text: str) -> None:
        """Decode JSON text into the next basic or reference argument.

        Reference arguments are decoded through their proxy type: an address
        for account, a uint64 for asset and application.

        Raises:
            ArgumentError: If the next slot is a transaction or all slots are filled.
            DecodeError: If the text does not fit the slot's type.
        """
        index, arg_type = self._next_slot()
        if abi.is_abi_transaction_type(arg_type):
            raise ArgumentError(f"argument {index} must be a transaction of type {arg_type}")
        proxy = _reference_proxy_type(arg_type) if abi.is_abi_reference_type(arg_type) else arg_type
        self.method_args.append(from_text(proxy, text))

    def add_method_argument_transaction(
        self, txn: transaction.Transaction, signer: TransactionSigner
    ) -> None:
        """Supply the next argument as a transaction with its signer.

        Raises:
            ArgumentError: If the next slot is not a transaction slot, its type
                does not match the transaction, or all slots are filled.
        """
        index, arg_type = self._next_slot()
        if not abi.is_abi_transaction_type(arg_type):
            raise ArgumentError(f"argument {index} is of type {arg_type}, not a transaction")
        if not _matches_transaction_slot(arg_type, txn):
            raise ArgumentError(
                f"argument {index} expects a {arg_type} transaction, got {txn.type}"
            )
        self.method_args.append(TransactionWithSigner(txn, signer))

    def add_programs(self, approval_program: bytes, clear_program: bytes) -> None:
        """Set the approval and clear programs (creation and update)."""
        self.approval_program = bytes(approval_program)
        self.clear_program = bytes(clear_program)

    def add_app_schema(
        self,
        global_uints: int,
        global_byte_slices: int,
        local_uints: int,
        local_byte_slices: int,
        extra_pages: int = 0,
    ) -> None:
        """Set state schemas and extra program pages for app creation."""
        require_non_negative(
            global_uints=global_uints,
            global_byte_slices=global_byte_slices,
            local_uints=local_uints,
            local_byte_slices=local_byte_slices,
            extra_pages=extra_pages,
        )
        self.global_schema = transaction.StateSchema(global_uints, global_byte_slices)
        self.local_schema = transaction.StateSchema(local_uints, local_byte_slices)
        self.extra_pages = extra_pages

    def _resolve_reference(
        self,
        arg_type: str,
        value: Any,
        accounts: list[str],
        foreign_apps: list[int],
        foreign_assets: list[int],
    ) -> int:
        if arg_type == abi.ABIReferenceType.ACCOUNT:
            if value == self.sender:
                return 0
            if value in accounts:
                return accounts.index(value) + 1
            accounts.append(value)
            return len(accounts)

        require_non_negative(reference=value)
        if arg_type == abi.ABIReferenceType.APPLICATION:
            if value == self.app_id:
                return 0
            if value in foreign_apps:
                return foreign_apps.index(value) + 1
            foreign_apps.append(value)
            return len(foreign_apps)

        if value in foreign_assets:
            return foreign_assets.index(value)
        foreign_assets.append(value)
        return len(foreign_assets) - 1

    def build_transactions(self) -> list[TransactionWithSigner]:
        """Lower the call into transactions.

        Returns:
            Transaction arguments in declared order, then the application call.

        Raises:
            ArgumentError: If the number or kind of arguments does not match.
            ValidationError: If creation or update lacks a program.
        """
        if len(self.method_args) != len(self.method.args):
            raise ArgumentError(
                f"incorrect number of arguments for method {self.method.get_signature()}: "
                f"expected {len(self.method.args)}, got {len(self.method_args)}"
            )

        if self.app_id == 0 or self.on_complete == transaction.OnComplete.UpdateApplicationOC:
            if not self.approval_program or not self.clear_program:
                raise ValidationError(
                    "approval and clear programs are required for application creation or update"
                )

        accounts = list(self.accounts)
        foreign_apps = list(self.foreign_apps)
        foreign_assets = list(self.foreign_assets)

        txn_args: list[TransactionWithSigner] = []
        arg_types: list[abi.ABIType] = []
        arg_values: list[Any] = []

        for index, (arg, value) in enumerate(zip(self.method.args, self.method_args)):
            arg_type = arg.type
            if abi.is_abi_transaction_type(arg_type):
                if not isinstance(value, TransactionWithSigner):
                    raise ArgumentError(f"argument {index} must be a transaction of type {arg_type}")
                if not _matches_transaction_slot(arg_type, value.txn):
                    raise ArgumentError(
                        f"argument {index} expects a {arg_type} transaction, got {value.txn.type}"
                    )
                txn_args.append(value)
                continue

            if isinstance(value, TransactionWithSigner):
                raise ArgumentError(f"argument {index} is of type {arg_type}, not a transaction")

            if abi.is_abi_reference_type(arg_type):
                arg_types.append(abi.UintType(8))
                arg_values.append(
                    self._resolve_reference(arg_type, value, accounts, foreign_apps, foreign_assets)
                )
            else:
                arg_types.append(arg_type)
                arg_values.append(value)

        if len(arg_types) > MAX_APP_ARGS - 1:
            packed_types = arg_types[MAX_METHOD_ARGS_BEFORE_TUPLE:]
            packed_values = arg_values[MAX_METHOD_ARGS_BEFORE_TUPLE:]
            arg_types = arg_types[:MAX_METHOD_ARGS_BEFORE_TUPLE] + [abi.TupleType(packed_types)]
            arg_values = arg_values[:MAX_METHOD_ARGS_BEFORE_TUPLE] + [packed_values]

        app_args = [self.method.get_selector()]
        for arg_type, value in zip(arg_types, arg_values):
            try:
                app_args.append(arg_type.encode(value))
            except Exception as e:
                raise ArgumentError(f"cannot encode {value!r} as {arg_type}: {e}") from e

        app_call = make_application_call_txn(
            sender=self.sender,
            sp=self.sp,
            app_id=self.app_id,
            on_complete=self.on_complete,
            app_args=app_args,
            accounts=accounts,
            foreign_apps=foreign_apps,
            foreign_assets=foreign_assets,
            boxes=self.boxes,
            approval_program=self.approval_program,
            clear_program=self.clear_program,
            global_schema=self.global_schema,
            local_schema=self.local_schema,
            extra_pages=self.extra_pages,
            note=self.note,
            lease=self.lease,
            rekey_to=self.rekey_to,
        )
        logger.debug(
            f"Built method call {self.method.get_signature()} with "
            f"{len(app_args)} app args and {len(txn_args)} transaction args"
        )
        return txn_args + [TransactionWithSigner(app_call, self.signer)]
