"""AVM atomic group constants - protocol limits, prefixes, error codes."""

import os

# Maximum transactions in an atomic group
MAX_GROUP_SIZE = 16

# Maximum application call arguments (selector included)
MAX_APP_ARGS = 16

# Method arguments past this position are packed into a trailing tuple
MAX_METHOD_ARGS_BEFORE_TUPLE = MAX_APP_ARGS - 2

# Minimum transaction fee on Algorand (in microalgos)
MIN_TXN_FEE = 1000

# Minimum balance increments (in microalgos)
ACCOUNT_MIN_BALANCE = 100_000
ASSET_OPT_IN_MIN_BALANCE = 100_000

# Asset metadata hash length
ASSET_METADATA_HASH_LENGTH = 32

# Multisig account limits
MULTISIG_VERSION = 1
MAX_MULTISIG_KEYS = 255

# Ed25519 sizes
PUBLIC_KEY_LENGTH = 32
SECRET_KEY_LENGTH = 64
SIGNATURE_LENGTH = 64

# Algorand address validation regex (58 character base32 with checksum)
AVM_ADDRESS_REGEX = r"^[A-Z2-7]{58}$"

# Domain separation prefixes for hashing and signing
TXID_PREFIX = b"TX"
LOGIC_PREFIX = b"Program"

# Transaction type identifiers
TXN_TYPE_PAYMENT = "pay"
TXN_TYPE_ASSET_TRANSFER = "axfer"
TXN_TYPE_KEY_REGISTRATION = "keyreg"
TXN_TYPE_ASSET_CONFIG = "acfg"
TXN_TYPE_ASSET_FREEZE = "afrz"
TXN_TYPE_APPLICATION_CALL = "appl"

# ABI transaction argument type matching any transaction
ABI_TXN_ANY = "txn"

# ============================================================================
# Runtime configuration
# ============================================================================

# Verify every produced Ed25519 signature before returning it.
# Set AVM_VERIFY_LOCAL_SIGNATURES=0 to skip (e.g. for hardware-backed keys).
VERIFY_LOCAL_SIGNATURES = os.environ.get("AVM_VERIFY_LOCAL_SIGNATURES", "1") != "0"

# Optional log level applied to the package logger on import (e.g. "DEBUG")
LOG_LEVEL = os.environ.get("AVM_ATOMIC_LOG_LEVEL")

# Error codes
ERR_VALIDATION = "invalid_argument"
ERR_NEGATIVE_ARGUMENT = "invalid_argument_negative"
ERR_DECODE_FAILED = "decode_failed"
ERR_GROUP_TOO_LARGE = "group_too_large"
ERR_EMPTY_GROUP = "empty_group"
ERR_INVALID_GROUP = "group_id_mismatch"
ERR_ARGUMENT_MISMATCH = "method_argument_mismatch"
ERR_COMPOSER_STATE = "composer_state"
ERR_INVALID_SIGNATURE = "invalid_signature"
ERR_MULTISIG_MISMATCH = "multisig_parameters_mismatch"
ERR_MULTISIG_CONFLICT = "multisig_conflicting_signatures"
ERR_SIGNER_FAILED = "signer_failed"

# Error messages shared across modules
MSG_NEGATIVE_ARGUMENT = "all integer arguments must be >= 0"
MSG_MULTISIG_MISMATCH = "multisig parameters do not match"
MSG_MULTISIG_CONFLICT = "mismatched duplicate signatures"
MSG_SIGNER_NOT_IN_MULTISIG = (
    "signer address does not match any of the addresses in the multisig account"
)
