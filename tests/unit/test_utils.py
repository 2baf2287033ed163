"""Unit tests for encoding and key utilities."""

import base64

import pytest

from algosdk import encoding, transaction

from avm_atomic.errors import DecodeError, ValidationError
from avm_atomic.transactions import make_application_call_txn, make_application_create_txn
from avm_atomic.types import BoxReference
from avm_atomic.utils import (
    address_from_program,
    address_to_public_key,
    as_transaction,
    bytes_to_sign,
    canonical_encode,
    decode_msgpack,
    decode_signed_transaction,
    decode_transaction,
    encode_transaction,
    encode_transaction_group,
    get_txid,
    is_valid_address,
    public_key_from_secret_key,
    public_key_to_address,
    require_non_negative,
    secret_key_bytes,
    sign_bytes,
    verify_bytes,
)

SENDER = "2RQ7JAZ4YXJ5SNBP7PDG6QW2QSQK2BWXDMJX23LQSCERD6AHYDRH4N4MXY"
ZERO_ADDRESS = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAY5HFKQ"
PROGRAM = bytes([1, 32, 1, 1, 34])


class TestAddressValidation:
    """Tests for address validation and conversion."""

    def test_valid_address(self):
        """Test valid Algorand addresses."""
        assert is_valid_address(ZERO_ADDRESS)
        assert is_valid_address(SENDER)

    def test_invalid_address(self):
        """Test invalid addresses."""
        assert not is_valid_address("A" * 58)
        assert not is_valid_address(SENDER.lower())
        assert not is_valid_address("")
        assert not is_valid_address(None)  # type: ignore

    def test_round_trip(self):
        """Test converting between address and public key."""
        public_key = address_to_public_key(SENDER)
        assert len(public_key) == 32
        assert public_key_to_address(public_key) == SENDER
        assert address_to_public_key(ZERO_ADDRESS) == bytes(32)

    def test_invalid_conversion(self):
        """Test that malformed inputs are rejected."""
        with pytest.raises(ValidationError):
            address_to_public_key("NOTANADDRESS")
        with pytest.raises(ValidationError):
            public_key_to_address(bytes(31))


class TestKeys:
    """Tests for key handling."""

    def test_secret_key_forms(self, sender_key):
        """Test that base64 and raw keys normalize to the same bytes."""
        raw = secret_key_bytes(sender_key)
        assert len(raw) == 64
        assert secret_key_bytes(raw) == raw
        assert public_key_to_address(public_key_from_secret_key(raw)) == SENDER

    def test_invalid_secret_key(self):
        """Test that malformed keys are rejected."""
        with pytest.raises(ValidationError, match="base64"):
            secret_key_bytes("not base64!")
        with pytest.raises(ValidationError, match="length"):
            secret_key_bytes(bytes(32))

    def test_sign_and_verify(self, sender_key):
        """Test signing and verifying a message."""
        raw = secret_key_bytes(sender_key)
        public_key = public_key_from_secret_key(raw)
        signature = sign_bytes(raw, b"message")

        assert len(signature) == 64
        assert verify_bytes(public_key, b"message", signature)
        assert not verify_bytes(public_key, b"other", signature)
        assert not verify_bytes(public_key, b"message", signature[:63])


class TestRequireNonNegative:
    """Tests for require_non_negative."""

    def test_accepts(self):
        """Test that zero, positive and None values pass."""
        require_non_negative(a=0, b=5, c=None)

    def test_rejects(self):
        """Test that negative values are reported by name."""
        with pytest.raises(ValidationError) as exc_info:
            require_non_negative(a=1, b=-2, c=-3)
        assert exc_info.value.details == {"b": -2, "c": -3}


class TestMsgpack:
    """Tests for canonical msgpack helpers."""

    def test_sorted_keys(self):
        """Test that keys are sorted at every level."""
        encoded = canonical_encode({"b": 1, "a": {"d": 2, "c": 3}})
        assert encoded == canonical_encode({"a": {"c": 3, "d": 2}, "b": 1})
        assert list(decode_msgpack(encoded)) == ["a", "b"]
        assert list(decode_msgpack(encoded)["a"]) == ["c", "d"]

    def test_bytes_are_binary(self):
        """Test that bytes use the msgpack bin type."""
        assert canonical_encode({"k": b"\x01"}) == b"\x81\xa1k\xc4\x01\x01"

    def test_zero_values_omitted(self):
        """Test that zero values are left out of the encoding."""
        encoded = canonical_encode({"a": 0, "b": b"", "c": 1, "d": {"e": 0, "f": 2}})
        assert decode_msgpack(encoded) == {"c": 1, "d": {"f": 2}}

    def test_decode_errors(self):
        """Test that non-map or malformed input is rejected."""
        with pytest.raises(DecodeError, match="Expected msgpack map"):
            decode_msgpack(b"\x91\x01")
        with pytest.raises(DecodeError):
            decode_msgpack(b"\xc1")


class TestTransactions:
    """Tests for transaction encoding helpers."""

    def test_encode_decode(self, payment_txn):
        """Test that decoding restores an equivalent transaction."""
        encoded = encode_transaction(payment_txn)
        assert encode_transaction(decode_transaction(encoded)) == encoded

    def test_as_transaction(self, payment_txn):
        """Test that objects pass through and bytes decode."""
        assert as_transaction(payment_txn) is payment_txn
        decoded = as_transaction(encode_transaction(payment_txn))
        assert decoded.get_txid() == payment_txn.get_txid()

    def test_as_transaction_rejects_signed(self):
        """Test that a signed transaction is not accepted as unsigned."""
        with pytest.raises(DecodeError):
            as_transaction(canonical_encode({"sig": bytes(64), "txn": {"type": "pay"}}))
        with pytest.raises(TypeError):
            as_transaction("not a transaction")  # type: ignore

    def test_bytes_to_sign(self, payment_txn):
        """Test the signed message is the prefixed canonical encoding."""
        expected = b"TX" + base64.b64decode(encoding.msgpack_encode(payment_txn))
        assert bytes_to_sign(payment_txn) == expected
        assert bytes_to_sign(encode_transaction(payment_txn)) == expected

    def test_decode_signed(self, payment_txn, sender_key):
        """Test decoding a signed transaction into its algosdk type."""
        signature = sign_bytes(secret_key_bytes(sender_key), bytes_to_sign(payment_txn))
        stxn = transaction.SignedTransaction(payment_txn, base64.b64encode(signature).decode())
        decoded = decode_signed_transaction(canonical_encode(stxn))

        assert isinstance(decoded, transaction.SignedTransaction)
        assert base64.b64decode(decoded.signature) == signature
        assert decoded.transaction.get_txid() == payment_txn.get_txid()

        with pytest.raises(DecodeError, match="not a signed transaction"):
            decode_signed_transaction(encode_transaction(payment_txn))

    def test_decode_invalid(self):
        """Test that garbage bytes are rejected."""
        with pytest.raises(DecodeError):
            decode_transaction(b"\xc1\xc1")

    def test_txid(self, payment_txn):
        """Test that the transaction ID matches algosdk."""
        assert get_txid(payment_txn) == payment_txn.get_txid()
        assert get_txid(encode_transaction(payment_txn)) == payment_txn.get_txid()

    def test_encode_group(self):
        """Test base64 encoding of a list of transactions."""
        assert encode_transaction_group([b"\x01", b"\x02\x03"]) == ["AQ==", "AgM="]


class TestApplicationCallEncoding:
    """Tests that application calls hash and sign like algosdk."""

    @pytest.fixture(
        params=["noop", "create", "boxes"],
    )
    def app_call(self, request, testnet_sp):
        """Application calls whose dictify() output carries zero values."""
        if request.param == "noop":
            return make_application_call_txn(SENDER, testnet_sp, 4, app_args=[b"x"])
        if request.param == "create":
            schema = transaction.StateSchema(num_uints=0, num_byte_slices=1)
            return make_application_create_txn(
                SENDER, testnet_sp, PROGRAM, PROGRAM, schema, schema, extra_pages=0
            )
        return make_application_call_txn(
            SENDER,
            testnet_sp,
            4,
            foreign_apps=[10],
            boxes=[BoxReference(0, b"own"), BoxReference(10, b"foreign")],
        )

    def test_zero_on_complete_omitted(self, testnet_sp):
        """Test that a NoOp call carries no on-completion field."""
        noop = make_application_call_txn(SENDER, testnet_sp, 4)
        assert "apan" in noop.dictify()
        assert "apan" not in decode_msgpack(encode_transaction(noop))

    def test_txid_matches_algosdk(self, app_call):
        """Test the transaction ID against algosdk's."""
        assert get_txid(app_call) == app_call.get_txid()
        assert get_txid(encode_transaction(app_call)) == app_call.get_txid()

    def test_bytes_to_sign_matches_txid(self, app_call):
        """Test that the signed message hashes to the transaction ID."""
        digest = encoding.checksum(bytes_to_sign(app_call))
        assert base64.b32encode(digest).decode().rstrip("=") == app_call.get_txid()

    def test_signature_verifies(self, app_call, sender_key):
        """Test that a signature over the message verifies for the sender."""
        raw = secret_key_bytes(sender_key)
        signature = sign_bytes(raw, bytes_to_sign(app_call))
        assert verify_bytes(address_to_public_key(SENDER), bytes_to_sign(app_call), signature)


class TestAddressFromProgram:
    """Tests for address_from_program."""

    @pytest.mark.parametrize(
        "program,address",
        [
            ("BIEBQw==", "5QWQ3DPBFLTOT64LVXBRL2SDL7ESJD2WTRURRGXK5GHPIOOJQCENC3AOUA"),
            ("BYEB", "LDVQXDDKSFHPAEEZA2HES6V5GGHT4LZJAGJBBTZT7CA2VOKSZ6CTV3XIA4"),
        ],
    )
    def test_address(self, program, address):
        """Test escrow addresses of known programs."""
        assert address_from_program(base64.b64decode(program)) == address
