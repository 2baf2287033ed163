"""Atomic transaction groups for the Algorand Virtual Machine (AVM).

This package composes up to 16 Algorand transactions into one atomic group,
attaches a signing authority to each and produces the fully signed group.

Features:
- Group ID computation, assignment and verification
- Single key, multisig and logic signature signers
- Signature attachment for keys held elsewhere
- Partial multisig signing and merging
- ARC-4 method calls with textual arguments
- Composer lifecycle: BUILDING -> BUILT -> SIGNED

Environment Variables:
    AVM_VERIFY_LOCAL_SIGNATURES: Set to "0" to skip verifying every produced
        signature before it is returned (default: "1").
    AVM_ATOMIC_LOG_LEVEL: Log level for the package logger (e.g. "DEBUG").

Usage:
    ```python
    from avm_atomic import (
        AtomicTransactionComposer,
        BasicAccountSigner,
        MethodCallParams,
        make_payment_txn,
        make_suggested_params,
    )

    signer = BasicAccountSigner.from_mnemonic(os.environ["AVM_MNEMONIC"])
    sp = make_suggested_params(0, first_valid, first_valid + 1000, genesis_hash, "testnet-v1.0")

    atc = AtomicTransactionComposer()
    atc.add_transaction(make_payment_txn(signer.address, sp, receiver, 1_000_000), signer)

    params = MethodCallParams(app_id, "add(uint64,uint64)uint64", signer.address, sp, signer)
    params.add_method_argument("1")
    params.add_method_argument("2")
    atc.add_method_call(params)

    signed_group = atc.gather_signatures()
    ```
"""

import logging

# Constants
from .constants import (
    LOG_LEVEL,
    MAX_APP_ARGS,
    MAX_GROUP_SIZE,
    MAX_MULTISIG_KEYS,
    MIN_TXN_FEE,
    MULTISIG_VERSION,
    VERIFY_LOCAL_SIGNATURES,
)

# Errors
from .errors import (
    ArgumentError,
    AvmAtomicError,
    ComposerStateError,
    ConsistencyError,
    CryptoError,
    DecodeError,
    GroupSizeError,
    InvalidGroupError,
    InvalidSignatureError,
    MultisigConflictError,
    MultisigMismatchError,
    ProtocolError,
    SignerError,
    ValidationError,
)

# Types
from .types import (
    BoxReference,
    ComposerStatus,
    MultisigSubsig,
    SignerKind,
    TransactionWithSigner,
)

# Signer protocols
from .signer import (
    ExternalTransactionSigner,
    TransactionSigner,
)

# Signer implementations
from .signers import (
    BasicAccountSigner,
    ExternalSignerAdapter,
    LogicSigAccountSigner,
    MultisigAccountSigner,
)

# Group ID engine
from .group import (
    assign_group_id,
    compute_group_id,
    find_and_verify_groups,
    verify_group_id,
)

# Multisig
from .multisig import (
    MultisigAccount,
    MultisigSignature,
    attach_multisig_signature,
    extract_multisig_account,
    merge_multisig_transactions,
    multisig_verify,
    sign_multisig_transaction,
)

# Logic signatures
from .logicsig import (
    LogicSigAccount,
    extract_logicsig_account,
    program_for_signing,
    sign_logicsig_transaction,
)

# ABI
from .abi_json import (
    decode_text,
    encode_text,
    from_text,
    to_text,
)
from .method_call import MethodCallParams

# Single-key signing
from .signing import (
    attach_signature,
    attach_signature_with_signer,
    sign_transaction,
)

# Composer
from .composer import AtomicTransactionComposer

# Transactions
from .transactions import (
    make_application_call_txn,
    make_application_clear_state_txn,
    make_application_close_out_txn,
    make_application_create_txn,
    make_application_delete_txn,
    make_application_opt_in_txn,
    make_application_update_txn,
    make_asset_config_txn,
    make_asset_create_txn,
    make_asset_destroy_txn,
    make_asset_freeze_txn,
    make_asset_opt_in_txn,
    make_asset_revocation_txn,
    make_asset_transfer_txn,
    make_opt_in_and_asset_transfer_txns,
    make_payment_txn,
    make_rekey_txn,
    make_suggested_params,
)

# Utilities
from .utils import (
    address_from_program,
    decode_signed_transaction,
    decode_transaction,
    encode_transaction,
    encode_transaction_group,
    get_txid,
    is_valid_address,
)

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())
if LOG_LEVEL:
    _logger.setLevel(LOG_LEVEL.upper())

__all__ = [
    # Constants
    "MAX_APP_ARGS",
    "MAX_GROUP_SIZE",
    "MAX_MULTISIG_KEYS",
    "MIN_TXN_FEE",
    "MULTISIG_VERSION",
    "VERIFY_LOCAL_SIGNATURES",
    # Errors
    "ArgumentError",
    "AvmAtomicError",
    "ComposerStateError",
    "ConsistencyError",
    "CryptoError",
    "DecodeError",
    "GroupSizeError",
    "InvalidGroupError",
    "InvalidSignatureError",
    "MultisigConflictError",
    "MultisigMismatchError",
    "ProtocolError",
    "SignerError",
    "ValidationError",
    # Types
    "BoxReference",
    "ComposerStatus",
    "MultisigSubsig",
    "SignerKind",
    "TransactionWithSigner",
    # Signers
    "ExternalTransactionSigner",
    "TransactionSigner",
    "BasicAccountSigner",
    "ExternalSignerAdapter",
    "LogicSigAccountSigner",
    "MultisigAccountSigner",
    # Group
    "assign_group_id",
    "compute_group_id",
    "find_and_verify_groups",
    "verify_group_id",
    # Multisig
    "MultisigAccount",
    "MultisigSignature",
    "attach_multisig_signature",
    "extract_multisig_account",
    "merge_multisig_transactions",
    "multisig_verify",
    "sign_multisig_transaction",
    # Logic signatures
    "LogicSigAccount",
    "extract_logicsig_account",
    "program_for_signing",
    "sign_logicsig_transaction",
    # ABI
    "decode_text",
    "encode_text",
    "from_text",
    "to_text",
    "MethodCallParams",
    # Single-key signing
    "attach_signature",
    "attach_signature_with_signer",
    "sign_transaction",
    # Composer
    "AtomicTransactionComposer",
    # Transactions
    "make_application_call_txn",
    "make_application_clear_state_txn",
    "make_application_close_out_txn",
    "make_application_create_txn",
    "make_application_delete_txn",
    "make_application_opt_in_txn",
    "make_application_update_txn",
    "make_asset_config_txn",
    "make_asset_create_txn",
    "make_asset_destroy_txn",
    "make_asset_freeze_txn",
    "make_asset_opt_in_txn",
    "make_asset_revocation_txn",
    "make_asset_transfer_txn",
    "make_opt_in_and_asset_transfer_txns",
    "make_payment_txn",
    "make_rekey_txn",
    "make_suggested_params",
    # Utilities
    "address_from_program",
    "decode_signed_transaction",
    "decode_transaction",
    "encode_transaction",
    "encode_transaction_group",
    "get_txid",
    "is_valid_address",
]
