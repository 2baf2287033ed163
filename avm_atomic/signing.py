"""Single-key transaction signing.

Signs encoded transactions with an Ed25519 key, or wraps a signature that
was produced elsewhere (a hardware wallet, a remote KMS) into a signed
transaction. The result is the canonical msgpack of an algosdk
SignedTransaction, carrying an auth address when the signer is not the
sender.
"""

from __future__ import annotations

import base64

from algosdk import transaction

from .constants import SIGNATURE_LENGTH
from .errors import InvalidSignatureError
from .utils import (
    TransactionLike,
    address_to_public_key,
    as_transaction,
    bytes_to_sign,
    canonical_encode,
    public_key_from_secret_key,
    public_key_to_address,
    secret_key_bytes,
    sign_bytes,
)


def _check_signature_length(signature: bytes) -> None:
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"incorrect signature length expected {SIGNATURE_LENGTH}, got {len(signature)}"
        )


def encode_signed_transaction(
    txn: transaction.Transaction,
    signature: bytes,
    authorizing_address: str | None = None,
) -> bytes:
    """Encode a transaction with its single signature.

    Args:
        txn: Transaction that was signed.
        signature: 64-byte Ed25519 signature.
        authorizing_address: Address that signed, when it is not the sender.

    Returns:
        Encoded signed transaction.
    """
    stxn = transaction.SignedTransaction(
        txn, base64.b64encode(signature).decode("utf-8"), authorizing_address
    )
    return canonical_encode(stxn)


def sign_transaction(private_key: str | bytes, txn: TransactionLike) -> bytes:
    """Sign a transaction with a single key.

    Args:
        private_key: Base64 algosdk private key or raw 64-byte secret key.
        txn: Transaction object or its msgpack bytes.

    Returns:
        Encoded signed transaction. Carries the key's address as auth
        address when the key is not the sender's (rekeyed accounts).

    Raises:
        ValidationError: If the key has the wrong length.
    """
    secret_key = secret_key_bytes(private_key)
    txn = as_transaction(txn)
    signature = sign_bytes(secret_key, bytes_to_sign(txn))

    signer = public_key_to_address(public_key_from_secret_key(secret_key))
    authorizing_address = signer if txn.sender != signer else None
    return encode_signed_transaction(txn, signature, authorizing_address)


def attach_signature(signature: bytes, txn: TransactionLike) -> bytes:
    """Wrap an externally produced sender signature into a signed transaction.

    The signature is not checked against the transaction.

    Raises:
        InvalidSignatureError: If the signature is not 64 bytes.
    """
    _check_signature_length(signature)
    return encode_signed_transaction(as_transaction(txn), bytes(signature))


def attach_signature_with_signer(signature: bytes, txn: TransactionLike, signer: str) -> bytes:
    """Wrap an externally produced signature made by a given address.

    Args:
        signature: 64-byte Ed25519 signature of the transaction.
        txn: Transaction object or its msgpack bytes.
        signer: Address whose key produced the signature.

    Returns:
        Encoded signed transaction, with signer as auth address when it is
        not the sender.

    Raises:
        InvalidSignatureError: If the signature is not 64 bytes.
        ValidationError: If signer is not a valid address.
    """
    _check_signature_length(signature)
    address_to_public_key(signer)
    txn = as_transaction(txn)
    authorizing_address = signer if txn.sender != signer else None
    return encode_signed_transaction(txn, bytes(signature), authorizing_address)
