"""Logic signature accounts.

A logic signature authorizes transactions with a program instead of a key.
Without a delegation proof the program controls its own escrow address
(a hash of the program). With a proof, a plain signature or a multisig
envelope over b"Program" + program, it acts for the delegating account.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from algosdk import error, transaction

from .constants import LOGIC_PREFIX, SIGNATURE_LENGTH
from .errors import DecodeError, InvalidSignatureError, ValidationError
from .multisig import MultisigAccount, MultisigSignature
from .utils import (
    TransactionLike,
    address_from_program,
    address_to_public_key,
    as_transaction,
    canonical_encode,
    decode_signed_transaction,
    public_key_from_secret_key,
    public_key_to_address,
    secret_key_bytes,
    sign_bytes,
    verify_bytes,
)

logger = logging.getLogger(__name__)


def program_for_signing(program: bytes) -> bytes:
    """Return the bytes a delegating account signs for a program."""
    return LOGIC_PREFIX + bytes(program)


def _check_signature_length(signature: bytes) -> None:
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"incorrect signature length expected {SIGNATURE_LENGTH}, got {len(signature)}"
        )


@dataclass
class LogicSigAccount:
    """Program plus arguments plus an optional delegation proof.

    Attributes:
        program: Compiled program bytes.
        args: Program arguments.
        signature: Delegating signature over program_for_signing(program).
        signing_key: Public key that produced signature.
        msig: Delegating multisig envelope over program_for_signing(program).
    """

    program: bytes
    args: list[bytes] = field(default_factory=list)
    signature: bytes | None = None
    signing_key: bytes | None = None
    msig: MultisigSignature | None = None

    def __post_init__(self) -> None:
        if not self.program:
            raise ValidationError("LogicSig program must not be empty")
        self.program = bytes(self.program)
        try:
            transaction.LogicSig(self.program)
        except error.InvalidProgram as e:
            raise ValidationError(f"invalid LogicSig program: {e}") from e
        if self.signature is not None and self.msig is not None:
            raise ValidationError("LogicSig cannot carry both a signature and a multisig")
        self.args = [bytes(a) for a in self.args or []]

    @classmethod
    def escrow(cls, program: bytes, args: Sequence[bytes] | None = None) -> "LogicSigAccount":
        """Create an escrow account controlled by the program alone."""
        return cls(program=program, args=list(args or []))

    @classmethod
    def delegated_sign(
        cls,
        program: bytes,
        args: Sequence[bytes] | None,
        private_key: str | bytes,
    ) -> "LogicSigAccount":
        """Create a delegated account by signing the program with a key.

        Args:
            program: Compiled program bytes.
            args: Program arguments.
            private_key: Base64 algosdk private key or raw 64-byte secret key
                of the delegating account.

        Returns:
            Delegated LogicSigAccount.
        """
        secret_key = secret_key_bytes(private_key)
        signature = sign_bytes(secret_key, program_for_signing(program))
        return cls(
            program=program,
            args=list(args or []),
            signature=signature,
            signing_key=public_key_from_secret_key(secret_key),
        )

    @classmethod
    def delegated_attach(
        cls,
        program: bytes,
        args: Sequence[bytes] | None,
        signer_address: str,
        signature: bytes,
    ) -> "LogicSigAccount":
        """Create a delegated account from an externally produced signature.

        Raises:
            InvalidSignatureError: If the signature has the wrong length or
                does not verify against the signer's key.
        """
        _check_signature_length(signature)
        public_key = address_to_public_key(signer_address)
        if not verify_bytes(public_key, program_for_signing(program), signature):
            raise InvalidSignatureError("invalid signature provided")
        return cls(
            program=program,
            args=list(args or []),
            signature=bytes(signature),
            signing_key=public_key,
        )

    @classmethod
    def delegated_multisig(
        cls,
        program: bytes,
        args: Sequence[bytes] | None,
        account: MultisigAccount,
    ) -> "LogicSigAccount":
        """Create an account delegated by a multisig account.

        Signatures are added afterwards with append_sign_multisig or
        append_attach_multisig.
        """
        return cls(program=program, args=list(args or []), msig=account.blank_signature())

    def _require_msig(self) -> MultisigSignature:
        if self.msig is None:
            raise ValidationError("empty multisig in logicsig")
        return self.msig

    def append_sign_multisig(self, private_key: str | bytes) -> None:
        """Sign the program with one member key of the delegating multisig."""
        msig = self._require_msig()
        secret_key = secret_key_bytes(private_key)
        index = msig.descriptor().index_of(public_key_from_secret_key(secret_key))
        signature = sign_bytes(secret_key, program_for_signing(self.program))
        self.msig = msig.with_signature(index, signature)

    def append_attach_multisig(self, signer_address: str, signature: bytes) -> None:
        """Attach a member's externally produced signature over the program."""
        _check_signature_length(signature)
        public_key = address_to_public_key(signer_address)
        msig = self._require_msig()
        index = msig.descriptor().index_of(public_key)
        self.msig = msig.with_signature(index, signature)

    def is_delegated(self) -> bool:
        """Whether the account acts for a delegating account."""
        return self.signature is not None or self.msig is not None

    def address(self) -> str:
        """Return the address this account has authority over.

        The delegating account's address when delegated, otherwise the
        escrow address of the program.
        """
        if self.signature is not None:
            if self.signing_key is None:
                raise ValidationError("delegated LogicSig is missing its signing key")
            return public_key_to_address(self.signing_key)
        if self.msig is not None:
            return self.msig.descriptor().address()
        return address_from_program(self.program)

    def verify(self) -> bool:
        """Check the delegation proof.

        An escrow is always valid here; the program itself is evaluated by
        the network. A multisig proof is valid only once its threshold is met.
        """
        message = program_for_signing(self.program)
        if self.signature is not None:
            return self.signing_key is not None and verify_bytes(
                self.signing_key, message, self.signature
            )
        if self.msig is not None:
            return self.msig.verify(message)
        return True

    def to_algosdk(self) -> transaction.LogicSigAccount:
        """Return the equivalent algosdk LogicSigAccount.

        A multisig proof is attached over b"Program" + program, the form the
        network verifies for multisig delegation.
        """
        lsa = transaction.LogicSigAccount(self.program, list(self.args) or None)
        if self.signature is not None:
            lsa.lsig.sig = base64.b64encode(self.signature).decode("utf-8")
            lsa.sigkey = self.signing_key
        elif self.msig is not None:
            lsa.lsig.msig = self.msig.to_multisig()
        return lsa

    @classmethod
    def from_logicsig(
        cls, lsig: transaction.LogicSig, signing_key: bytes | None = None
    ) -> "LogicSigAccount":
        """Create from an algosdk LogicSig and the key that delegated it.

        Raises:
            DecodeError: If the LogicSig carries a delegation form other than
                a plain signature or a multisig envelope.
        """
        if getattr(lsig, "lmsig", None) or getattr(lsig, "pqsig", None):
            raise DecodeError("unsupported LogicSig delegation format")
        return cls(
            program=lsig.logic,
            args=list(lsig.args or []),
            signature=base64.b64decode(lsig.sig) if lsig.sig else None,
            signing_key=bytes(signing_key) if signing_key else None,
            msig=MultisigSignature.from_multisig(lsig.msig) if lsig.msig else None,
        )

    def dictify(self) -> dict[str, Any]:
        """Convert to a map holding the logic signature and signing key."""
        return self.to_algosdk().dictify()

    @classmethod
    def undictify(cls, d: dict[str, Any]) -> "LogicSigAccount":
        """Create from the map produced by dictify.

        Raises:
            DecodeError: If the map is malformed.
        """
        lsig = d.get("lsig")
        if not isinstance(lsig, dict) or not lsig.get("l"):
            raise DecodeError("LogicSig account is missing its program")
        try:
            lsa = transaction.LogicSigAccount.undictify(d)
        except error.InvalidProgram as e:
            raise DecodeError(f"invalid LogicSig program: {e}") from e
        except (KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"malformed LogicSig account: {e}") from e
        return cls.from_logicsig(lsa.lsig, lsa.sigkey)

    def to_json(self) -> str:
        """Serialize to JSON with byte fields in base64."""
        return json.dumps(_to_json_value(self.dictify()), sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "LogicSigAccount":
        """Deserialize from the JSON produced by to_json.

        Raises:
            DecodeError: If the text is not a valid LogicSig account.
        """
        try:
            data = json.loads(text)
            lsig = data["lsig"]
            decoded: dict[str, Any] = {
                "lsig": {
                    "l": base64.b64decode(lsig["l"]),
                    "arg": [base64.b64decode(a) for a in lsig.get("arg", [])],
                }
            }
            if "sig" in lsig:
                decoded["lsig"]["sig"] = base64.b64decode(lsig["sig"])
            if "msig" in lsig:
                msig = lsig["msig"]
                decoded["lsig"]["msig"] = {
                    "subsig": [
                        {k: base64.b64decode(v) for k, v in s.items()} for s in msig["subsig"]
                    ],
                    "thr": msig["thr"],
                    "v": msig["v"],
                }
            if "sigkey" in data:
                decoded["sigkey"] = base64.b64decode(data["sigkey"])
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise DecodeError(f"Failed to decode LogicSig account JSON: {e}") from e
        return cls.undictify(decoded)


def _to_json_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(value).decode("utf-8")
    if isinstance(value, dict):
        return {k: _to_json_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_json_value(v) for v in value]
    return value


def sign_logicsig_transaction(account: LogicSigAccount, txn: TransactionLike) -> bytes:
    """Authorize a transaction with a logic signature.

    The network still evaluates the program; any transaction can be
    attached here.

    Args:
        account: Logic signature account.
        txn: Transaction to authorize.

    Returns:
        Encoded signed transaction. Carries an auth address when the
        account's address differs from the sender.

    Raises:
        InvalidSignatureError: If a delegation signature does not verify.
    """
    message = program_for_signing(account.program)
    if account.signature is not None and not account.verify():
        raise InvalidSignatureError("LogicSig delegation signature is invalid")
    if account.msig is not None:
        filled = [s for s in account.msig.subsigs if s.is_filled]
        if not all(verify_bytes(s.public_key, message, s.signature) for s in filled):
            raise InvalidSignatureError("LogicSig multisig delegation signature is invalid")
        if len(filled) < account.msig.threshold:
            logger.warning(
                f"Delegated LogicSig carries {len(filled)} of "
                f"{account.msig.threshold} required multisig signatures"
            )

    lstx = transaction.LogicSigTransaction(as_transaction(txn), account.to_algosdk())
    return canonical_encode(lstx)


def extract_logicsig_account(signed_txn: bytes) -> LogicSigAccount | None:
    """Return the logic signature account that signed a transaction, if any.

    For a singly delegated signature the signing key is the auth address
    when present, otherwise the sender.

    Args:
        signed_txn: Encoded signed transaction.

    Returns:
        The account, or None if the transaction carries no logic signature.
    """
    stxn = decode_signed_transaction(signed_txn)
    if not isinstance(stxn, transaction.LogicSigTransaction) or not stxn.lsig:
        return None

    signing_key = None
    if stxn.lsig.sig:
        signer = stxn.auth_addr or stxn.transaction.sender
        if not signer:
            raise DecodeError("delegated LogicSig transaction has no signer")
        signing_key = address_to_public_key(signer)
    return LogicSigAccount.from_logicsig(stxn.lsig, signing_key)
