"""AVM atomic group utility functions.

Provides encoding, decoding, key handling, and validation helpers
for working with Algorand transactions.
"""

from __future__ import annotations

import base64
import re
from typing import Any, Union

import msgpack
from algosdk import encoding, transaction
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .constants import (
    AVM_ADDRESS_REGEX,
    ERR_NEGATIVE_ARGUMENT,
    LOGIC_PREFIX,
    MSG_NEGATIVE_ARGUMENT,
    PUBLIC_KEY_LENGTH,
    SECRET_KEY_LENGTH,
    SIGNATURE_LENGTH,
    TXID_PREFIX,
    VERIFY_LOCAL_SIGNATURES,
)
from .errors import DecodeError, InvalidSignatureError, ValidationError

# A transaction given either as an algosdk object or as canonical msgpack bytes
TransactionLike = Union[transaction.Transaction, bytes]

SignedTransactionLike = Union[
    transaction.SignedTransaction,
    transaction.MultisigTransaction,
    transaction.LogicSigTransaction,
]

SIGNED_TRANSACTION_TYPES = (
    transaction.SignedTransaction,
    transaction.MultisigTransaction,
    transaction.LogicSigTransaction,
)


def is_valid_address(address: str) -> bool:
    """Validate an Algorand address format.

    Args:
        address: String to validate.

    Returns:
        True if valid Algorand address format.
    """
    if not address or not isinstance(address, str):
        return False

    if not re.match(AVM_ADDRESS_REGEX, address):
        return False

    try:
        encoding.decode_address(address)
        return True
    except Exception:
        return False


def address_to_public_key(address: str) -> bytes:
    """Decode an Algorand address to its 32-byte public key.

    Raises:
        ValidationError: If the address is malformed or its checksum is wrong.
    """
    if not is_valid_address(address):
        raise ValidationError(f"invalid address: {address!r}")
    return encoding.decode_address(address)


def public_key_to_address(public_key: bytes) -> str:
    """Encode a 32-byte public key as an Algorand address."""
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise ValidationError(
            f"public key should be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}"
        )
    return encoding.encode_address(bytes(public_key))


def secret_key_bytes(private_key: str | bytes) -> bytes:
    """Normalize a secret key to its raw 64-byte form (seed || public key).

    Args:
        private_key: Base64-encoded algosdk private key, or raw bytes.

    Returns:
        64-byte Ed25519 secret key.

    Raises:
        ValidationError: If the key cannot be decoded or has the wrong length.
    """
    if isinstance(private_key, str):
        try:
            raw = base64.b64decode(private_key, validate=True)
        except Exception as e:
            raise ValidationError(f"invalid base64 private key: {e}") from e
    else:
        raw = bytes(private_key)

    if len(raw) != SECRET_KEY_LENGTH:
        raise ValidationError(
            f"Incorrect privateKey length expected {SECRET_KEY_LENGTH}, got {len(raw)}"
        )
    return raw


def public_key_from_secret_key(secret_key: bytes) -> bytes:
    """Return the public half of a 64-byte secret key."""
    return secret_key[PUBLIC_KEY_LENGTH:]


def require_non_negative(**values: int | None) -> None:
    """Reject negative integer arguments.

    Args:
        **values: Named integer values; None entries are ignored.

    Raises:
        ValidationError: If any value is negative.
    """
    negative = {name: value for name, value in values.items() if value is not None and value < 0}
    if negative:
        raise ValidationError(MSG_NEGATIVE_ARGUMENT, code=ERR_NEGATIVE_ARGUMENT, details=negative)


def sign_bytes(secret_key: bytes, message: bytes) -> bytes:
    """Sign a message with an Ed25519 secret key.

    Args:
        secret_key: 64-byte secret key (seed || public key).
        message: Bytes to sign, including any domain separation prefix.

    Returns:
        64-byte signature.

    Raises:
        InvalidSignatureError: If local verification is enabled and fails.
    """
    signing_key = SigningKey(secret_key[:32])
    signature = signing_key.sign(message).signature

    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"Signature should be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )

    if VERIFY_LOCAL_SIGNATURES and not verify_bytes(
        bytes(signing_key.verify_key), message, signature
    ):
        raise InvalidSignatureError("Local signature verification failed")

    return signature


def verify_bytes(public_key: bytes, message: bytes, signature: bytes) -> bool:
    """Verify an Ed25519 signature.

    Returns:
        True if the signature is valid for the message and key.
    """
    if len(signature) != SIGNATURE_LENGTH or len(public_key) != PUBLIC_KEY_LENGTH:
        return False
    try:
        VerifyKey(bytes(public_key)).verify(message, signature)
        return True
    except BadSignatureError:
        return False


def canonical_encode(obj: Any) -> bytes:
    """Encode a wire map or an algosdk object as canonical msgpack.

    Keys are sorted and zero values are omitted, as the network expects.

    Args:
        obj: Map of wire field names to values, or an object with dictify().

    Returns:
        Msgpack bytes.
    """
    # msgpack_encode returns a base64 string
    return base64.b64decode(encoding.msgpack_encode(obj))


def decode_msgpack(raw: bytes) -> dict[str, Any]:
    """Decode canonical msgpack bytes into a wire map.

    Raises:
        DecodeError: If the bytes are not a msgpack map.
    """
    try:
        decoded = msgpack.unpackb(bytes(raw), raw=False)
    except Exception as e:
        raise DecodeError(f"Failed to decode msgpack: {e}") from e
    if not isinstance(decoded, dict):
        raise DecodeError(f"Expected msgpack map, got {type(decoded).__name__}")
    return decoded


def encode_transaction(txn: transaction.Transaction) -> bytes:
    """Encode an unsigned transaction to canonical msgpack bytes."""
    return canonical_encode(txn)


def decode_transaction(txn_bytes: bytes) -> transaction.Transaction:
    """Decode canonical msgpack bytes to an unsigned transaction.

    Args:
        txn_bytes: Msgpack-encoded unsigned transaction.

    Returns:
        algosdk Transaction.

    Raises:
        DecodeError: If decoding fails or the bytes hold a signed transaction.
    """
    fields = decode_msgpack(txn_bytes)
    if "type" not in fields:
        raise DecodeError("Encoded value is not an unsigned transaction")
    try:
        decoded = encoding.msgpack_decode(fields)
    except Exception as e:
        raise DecodeError(f"Failed to decode transaction: {e}") from e

    if isinstance(decoded, transaction.Transaction):
        return decoded
    raise DecodeError(f"Unknown transaction format: {type(decoded).__name__}")


def as_transaction(txn: TransactionLike) -> transaction.Transaction:
    """Return a transaction object for an object or its msgpack bytes.

    Objects are returned as they are; bytes decode to a fresh object.
    """
    if isinstance(txn, transaction.Transaction):
        return txn
    if isinstance(txn, (bytes, bytearray)):
        return decode_transaction(bytes(txn))
    raise TypeError(f"Unexpected transaction type: {type(txn).__name__}")


def decode_signed_transaction(stxn_bytes: bytes) -> SignedTransactionLike:
    """Decode canonical msgpack bytes to a signed transaction.

    Args:
        stxn_bytes: Msgpack-encoded signed transaction.

    Returns:
        SignedTransaction, MultisigTransaction or LogicSigTransaction,
        depending on how the transaction is authorized.

    Raises:
        DecodeError: If decoding fails or the bytes hold no signed transaction.
    """
    fields = decode_msgpack(stxn_bytes)
    if "txn" not in fields:
        raise DecodeError("Encoded value is not a signed transaction")
    try:
        decoded = encoding.msgpack_decode(fields)
    except Exception as e:
        raise DecodeError(f"Failed to decode signed transaction: {e}") from e

    if isinstance(decoded, SIGNED_TRANSACTION_TYPES):
        return decoded
    raise DecodeError(f"Unknown signed transaction format: {type(decoded).__name__}")


def bytes_to_sign(txn: TransactionLike) -> bytes:
    """Return the bytes an account signs to authorize a transaction."""
    return TXID_PREFIX + encode_transaction(as_transaction(txn))


def get_txid(txn: TransactionLike) -> str:
    """Compute the base32 transaction ID.

    Args:
        txn: algosdk Transaction or its msgpack bytes.

    Returns:
        52-character transaction ID.
    """
    return as_transaction(txn).get_txid()


def address_from_program(program: bytes) -> str:
    """Compute the escrow address of a logic program."""
    return encoding.encode_address(encoding.checksum(LOGIC_PREFIX + bytes(program)))

def encode_transaction_group(
    txn_bytes_list: list[bytes],
) -> list[str]:
    """Encode a list of transaction bytes to base64 strings.

    Args:
        txn_bytes_list: List of msgpack-encoded transaction bytes.

    Returns:
        List of base64-encoded strings.
    """
    return [base64.b64encode(txn_bytes).decode("utf-8") for txn_bytes in txn_bytes_list]
