"""Unit tests for transaction construction helpers."""

import base64

import pytest
from algosdk import transaction

from avm_atomic.errors import ValidationError
from avm_atomic.transactions import (
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
    validate_suggested_params,
)
from avm_atomic.types import BoxReference
from avm_atomic.utils import decode_msgpack, encode_transaction

FROM_ADDRESS = "47YPQTIGQEO7T4Y4RWDYWEKV6RTR2UNBQXBABEEGM72ESWDQNCQ52OPASU"
TO_ADDRESS = "PNWOET7LLOWMBMLE4KOCELCX6X3D3Q4H2Q4QJASYIEOF7YIPPQBG3YQ5YI"
CLOSE_TO = "IDUTJEUIEVSMXTU4LGTJWZ2UE2E6TIODUKU6UW3FU3UKIQQ77RLUBBBFLA"
DEVNET_GENESIS_HASH = "JgsgCaCTqIaLeVhyL6XlRu3n7Rfk2FxMeK+wRSaQ7dI="

PAYMENT = (
    "i6NhbXTNA+ilY2xvc2XEIEDpNJKIJWTLzpxZpptnVCaJ6aHDoqnqW2Wm6KRCH/xXo2ZlZc0EmKJmds0wsqNn"
    "ZW6sZGV2bmV0LXYzMy4womdoxCAmCyAJoJOohot5WHIvpeVG7eftF+TYXEx4r7BFJpDt0qJsds00mqRub3Rl"
    "xAjqABVHQ2y/lqNyY3bEIHts4k/rW6zAsWTinCIsV/X2PcOH1DkEglhBHF/hD3wCo3NuZMQg5/D4TQaBHfnz"
    "HI2HixFV9GcdUaGFwgCQhmf0SVhwaKGkdHlwZaNwYXk="
)
REKEY = (
    "iaNmZWXNA+iiZnbNMLKjZ2VurGRldm5ldC12MzMuMKJnaMQgJgsgCaCTqIaLeVhyL6XlRu3n7Rfk2FxMeK+w"
    "RSaQ7dKibHbNNJqjcmN2xCDn8PhNBoEd+fMcjYeLEVX0Zx1RoYXCAJCGZ/RJWHBooaVyZWtlecQge2ziT+tb"
    "rMCxZOKcIixX9fY9w4fUOQSCWEEcX+EPfAKjc25kxCDn8PhNBoEd+fMcjYeLEVX0Zx1RoYXCAJCGZ/RJWHBo"
    "oaR0eXBlo3BheQ=="
)


@pytest.fixture
def devnet_sp():
    """Per-byte fee parameters for devnet."""
    return make_suggested_params(4, 12466, 13466, DEVNET_GENESIS_HASH, "devnet-v33.0")


class TestSuggestedParams:
    """Tests for make_suggested_params."""

    def test_values(self):
        """Test that values are carried verbatim."""
        sp = make_suggested_params(1000, 10, 20, DEVNET_GENESIS_HASH, "devnet-v33.0", flat_fee=True)

        assert sp.fee == 1000
        assert sp.first == 10
        assert sp.last == 20
        assert sp.gh == DEVNET_GENESIS_HASH
        assert sp.gen == "devnet-v33.0"
        assert sp.flat_fee

    @pytest.mark.parametrize(
        "fee,first,last",
        [(-1, 1, 2), (0, -1, 2), (0, 1, -2)],
    )
    def test_negative(self, fee, first, last):
        """Test that negative integers are rejected."""
        with pytest.raises(ValidationError, match=">= 0"):
            make_suggested_params(fee, first, last, DEVNET_GENESIS_HASH)

    def test_empty_window(self):
        """Test that last valid before first valid is rejected."""
        with pytest.raises(ValidationError, match="precedes"):
            make_suggested_params(0, 20, 10, DEVNET_GENESIS_HASH)

    def test_missing_genesis_hash(self):
        """Test that a genesis hash is required."""
        sp = transaction.SuggestedParams(fee=0, first=1, last=2, gh=None)
        with pytest.raises(ValidationError, match="genesis hash"):
            validate_suggested_params(sp)


class TestMakePaymentTxn:
    """Tests for make_payment_txn and make_rekey_txn."""

    def test_payment(self, devnet_sp):
        """Test a payment with note and close-to address."""
        txn = make_payment_txn(
            FROM_ADDRESS,
            devnet_sp,
            TO_ADDRESS,
            1000,
            close_remainder_to=CLOSE_TO,
            note=base64.b64decode("6gAVR0Nsv5Y="),
        )
        assert encode_transaction(txn) == base64.b64decode(PAYMENT)

    def test_rekey(self, devnet_sp):
        """Test a rekey transaction."""
        txn = make_rekey_txn(FROM_ADDRESS, TO_ADDRESS, devnet_sp)
        assert encode_transaction(txn) == base64.b64decode(REKEY)

    def test_rekey_fee_excludes_rekey_field(self):
        """Test that the per-byte fee is computed without the rekey address."""
        sp = make_suggested_params(10, 12466, 13466, DEVNET_GENESIS_HASH, "devnet-v33.0")
        plain = make_payment_txn(FROM_ADDRESS, sp, FROM_ADDRESS, 0)
        txn = make_rekey_txn(FROM_ADDRESS, TO_ADDRESS, sp)

        assert txn.rekey_to == TO_ADDRESS
        assert txn.fee == plain.fee
        assert txn.fee < 10 * len(encode_transaction(txn))

    def test_negative_amount(self, devnet_sp):
        """Test that a negative amount is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            make_payment_txn(FROM_ADDRESS, devnet_sp, TO_ADDRESS, -1)
        assert exc_info.value.details == {"amount": -1}

    def test_invalid_receiver(self, devnet_sp):
        """Test that a malformed address is rejected."""
        with pytest.raises(ValidationError, match="receiver"):
            make_payment_txn(FROM_ADDRESS, devnet_sp, "NOTANADDRESS", 1)


class TestMakeAssetTransferTxn:
    """Tests for asset transfer helpers."""

    def test_transfer(self, devnet_sp):
        """Test an asset transfer."""
        txn = make_asset_transfer_txn(FROM_ADDRESS, devnet_sp, TO_ADDRESS, 10, 31566704)

        assert txn.type == "axfer"
        assert txn.amount == 10
        assert txn.index == 31566704
        assert txn.receiver == TO_ADDRESS

    def test_opt_in(self, devnet_sp):
        """Test that an opt-in is a zero transfer to self."""
        txn = make_asset_opt_in_txn(FROM_ADDRESS, devnet_sp, 31566704)

        assert txn.receiver == FROM_ADDRESS
        assert txn.amount == 0
        assert txn.index == 31566704

    def test_negative_asset(self, devnet_sp):
        """Test that a negative asset ID is rejected."""
        with pytest.raises(ValidationError):
            make_asset_transfer_txn(FROM_ADDRESS, devnet_sp, TO_ADDRESS, 1, -5)


class TestMakeApplicationCallTxn:
    """Tests for make_application_call_txn."""

    def test_call(self, devnet_sp):
        """Test an application call with foreign references and boxes."""
        foreign_apps = [10]
        txn = make_application_call_txn(
            FROM_ADDRESS,
            devnet_sp,
            4,
            app_args=[b"123", b"456"],
            accounts=[TO_ADDRESS],
            foreign_apps=foreign_apps,
            foreign_assets=[10],
            boxes=[BoxReference(0, b"box_name"), BoxReference(10, b"box_name2")],
        )

        assert txn.type == "appl"
        assert txn.index == 4
        assert txn.on_complete == transaction.OnComplete.NoOpOC
        assert txn.app_args == [b"123", b"456"]
        assert txn.accounts == [TO_ADDRESS]
        assert txn.foreign_apps == [10]
        assert txn.foreign_assets == [10]
        assert [box.app_index for box in txn.boxes] == [0, 1]
        assert txn.foreign_apps is not foreign_apps

    def test_negative_foreign_app(self, devnet_sp):
        """Test that a negative foreign app is rejected."""
        with pytest.raises(ValidationError):
            make_application_call_txn(FROM_ADDRESS, devnet_sp, 4, foreign_apps=[-1])

    def test_invalid_foreign_account(self, devnet_sp):
        """Test that a malformed foreign account is rejected."""
        with pytest.raises(ValidationError, match="foreign account"):
            make_application_call_txn(FROM_ADDRESS, devnet_sp, 4, accounts=["bad"])


class TestBoxReference:
    """Tests for BoxReference."""

    def test_negative_app(self):
        """Test that a negative app ID is rejected."""
        with pytest.raises(ValidationError):
            BoxReference(-1, b"name")

    def test_name_copied(self):
        """Test that the name is stored as immutable bytes."""
        name = bytearray(b"box")
        box = BoxReference(1, name)
        name[0] = ord("x")
        assert box.to_tuple() == (1, b"box")


ZERO_ADDRESS = "AAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAY5HFKQ"
PROGRAM = bytes([1, 32, 1, 1, 34])
APP_CREATE = (
    "3gARpGFwYWGSxAMxMjPEAzQ1NqRhcGFwxAUBIAEBIqRhcGFzkQqkYXBhdJHEIOfw+E0GgR358xyNh4sRVfRn"
    "HVGhhcIAkIZn9ElYcGihpGFwYniTgaFuxAhib3hfbmFtZYKhaQGhbsQIYm94X25hbWWCoWkBoW7ECWJveF9u"
    "YW1lMqRhcGVwAqRhcGZhkQqkYXBnc4KjbmJzAaNudWkBpGFwbHOCo25icwGjbnVpAaRhcHN1xAUBIAEBIqNm"
    "ZWXNA+iiZnbOAB97IaNnZW6rZGV2bmV0LXYxLjCiZ2jEILAtz+3tknW6iiStLW4gnSvbXUqW3ul3ghinaDc5"
    "pY9Bomx2zgAffwmkbm90ZcQI8xMCTuLQ812kdHlwZaRhcHBs"
)


class TestApplicationLifecycle:
    """Tests for application create, update and on-completion helpers."""

    def test_create_matches_known_encoding(self):
        """Test an application creation against a known encoding."""
        sp = make_suggested_params(
            1000,
            2063137,
            2064137,
            "sC3P7e2SdbqKJK0tbiCdK9tdSpbe6XeCGKdoNzmlj0E=",
            "devnet-v1.0",
            flat_fee=True,
        )
        schema = transaction.StateSchema(num_uints=1, num_byte_slices=1)
        txn = make_application_create_txn(
            ZERO_ADDRESS,
            sp,
            PROGRAM,
            PROGRAM,
            schema,
            schema,
            app_args=[b"123", b"456"],
            accounts=[FROM_ADDRESS],
            foreign_apps=[10],
            foreign_assets=[10],
            boxes=[
                BoxReference(0, b"box_name"),
                BoxReference(10, b"box_name"),
                BoxReference(10, b"box_name2"),
            ],
            extra_pages=2,
            note=base64.b64decode("8xMCTuLQ810="),
        )

        fields = decode_msgpack(encode_transaction(txn))
        assert fields.pop("snd") == bytes(32)
        assert fields == decode_msgpack(base64.b64decode(APP_CREATE))

    def test_create_opt_in(self, devnet_sp):
        """Test that the creator can opt in on creation."""
        schema = transaction.StateSchema(num_uints=0, num_byte_slices=0)
        txn = make_application_create_txn(
            FROM_ADDRESS, devnet_sp, PROGRAM, PROGRAM, schema, schema, opt_in=True
        )
        assert txn.index == 0
        assert txn.on_complete == transaction.OnComplete.OptInOC

    def test_create_requires_programs(self, devnet_sp):
        """Test that empty programs are rejected."""
        schema = transaction.StateSchema(num_uints=0, num_byte_slices=0)
        with pytest.raises(ValidationError, match="clear program"):
            make_application_create_txn(FROM_ADDRESS, devnet_sp, PROGRAM, b"", schema, schema)

    def test_create_negative_schema(self, devnet_sp):
        """Test that negative schema counts are rejected."""
        schema = transaction.StateSchema(num_uints=0, num_byte_slices=0)
        bad = transaction.StateSchema(num_uints=-1, num_byte_slices=0)
        with pytest.raises(ValidationError) as exc_info:
            make_application_create_txn(FROM_ADDRESS, devnet_sp, PROGRAM, PROGRAM, bad, schema)
        assert exc_info.value.details == {"global_uints": -1}

    def test_update(self, devnet_sp):
        """Test an update carries both programs."""
        txn = make_application_update_txn(FROM_ADDRESS, devnet_sp, 7, PROGRAM, PROGRAM)

        assert txn.index == 7
        assert txn.on_complete == transaction.OnComplete.UpdateApplicationOC
        assert txn.approval_program == PROGRAM
        assert txn.clear_program == PROGRAM

    @pytest.mark.parametrize(
        "builder,on_complete",
        [
            (make_application_delete_txn, transaction.OnComplete.DeleteApplicationOC),
            (make_application_opt_in_txn, transaction.OnComplete.OptInOC),
            (make_application_close_out_txn, transaction.OnComplete.CloseOutOC),
            (make_application_clear_state_txn, transaction.OnComplete.ClearStateOC),
        ],
    )
    def test_on_completion(self, devnet_sp, builder, on_complete):
        """Test the on-completion action of each helper."""
        txn = builder(FROM_ADDRESS, devnet_sp, 7, app_args=[b"arg"], foreign_assets=[3])

        assert txn.index == 7
        assert txn.on_complete == on_complete
        assert txn.app_args == [b"arg"]
        assert txn.foreign_assets == [3]
        assert txn.approval_program is None


class TestAssetManagement:
    """Tests for asset create, config, destroy, freeze and revocation helpers."""

    def test_create(self, devnet_sp):
        """Test an asset creation."""
        txn = make_asset_create_txn(
            FROM_ADDRESS,
            devnet_sp,
            100,
            2,
            False,
            manager=FROM_ADDRESS,
            clawback=TO_ADDRESS,
            unit_name="tst",
            asset_name="test",
            url="https://example.com",
            metadata_hash=bytes(range(32)),
        )

        assert txn.type == "acfg"
        assert txn.index == 0
        assert txn.total == 100
        assert txn.decimals == 2
        assert txn.manager == FROM_ADDRESS
        assert txn.clawback == TO_ADDRESS
        assert txn.reserve is None
        assert txn.unit_name == "tst"
        assert txn.metadata_hash == bytes(range(32))

    def test_create_bad_metadata_hash(self, devnet_sp):
        """Test that a metadata hash of the wrong length is rejected."""
        with pytest.raises(ValidationError, match="metadata hash"):
            make_asset_create_txn(FROM_ADDRESS, devnet_sp, 1, 0, False, metadata_hash=b"short")

    def test_create_invalid_role(self, devnet_sp):
        """Test that a malformed role address is rejected."""
        with pytest.raises(ValidationError, match="reserve"):
            make_asset_create_txn(FROM_ADDRESS, devnet_sp, 1, 0, False, reserve="bad")

    def test_config_clears_empty_roles(self, devnet_sp):
        """Test that empty roles are cleared rather than rejected."""
        txn = make_asset_config_txn(FROM_ADDRESS, devnet_sp, 31566704, TO_ADDRESS, "", "", "")

        assert txn.index == 31566704
        assert txn.manager == TO_ADDRESS
        assert txn.reserve is None
        assert txn.freeze is None
        assert txn.clawback is None

    def test_destroy(self, devnet_sp):
        """Test an asset destroy."""
        txn = make_asset_destroy_txn(FROM_ADDRESS, devnet_sp, 31566704)

        assert txn.type == "acfg"
        assert txn.index == 31566704
        assert txn.manager is None

    def test_freeze(self, devnet_sp):
        """Test freezing a holding."""
        txn = make_asset_freeze_txn(FROM_ADDRESS, devnet_sp, 31566704, TO_ADDRESS, True)

        assert txn.type == "afrz"
        assert txn.index == 31566704
        assert txn.target == TO_ADDRESS
        assert txn.new_freeze_state

    def test_revocation(self, devnet_sp):
        """Test a clawback from a target account."""
        txn = make_asset_revocation_txn(FROM_ADDRESS, devnet_sp, TO_ADDRESS, 5, CLOSE_TO, 31566704)

        assert txn.type == "axfer"
        assert txn.sender == FROM_ADDRESS
        assert txn.revocation_target == TO_ADDRESS
        assert txn.receiver == CLOSE_TO
        assert txn.amount == 5

    def test_negative_index(self, devnet_sp):
        """Test that negative asset IDs are rejected."""
        with pytest.raises(ValidationError):
            make_asset_destroy_txn(FROM_ADDRESS, devnet_sp, -1)


class TestOptInAndAssetTransfer:
    """Tests for make_opt_in_and_asset_transfer_txns."""

    @pytest.fixture
    def flat_sp(self):
        """Flat 1000 microalgo fee."""
        return make_suggested_params(1000, 12466, 13466, DEVNET_GENESIS_HASH, flat_fee=True)

    def test_receiver_can_pay(self, flat_sp):
        """Test that a funded receiver gets no payment."""
        pairs = make_opt_in_and_asset_transfer_txns(
            FROM_ADDRESS, TO_ADDRESS, 10, 31566704, 5_000_000, 100_000, 1_000_000, 100_000, flat_sp
        )

        assert [signer for signer, _ in pairs] == [TO_ADDRESS, FROM_ADDRESS]
        opt_in, transfer = (txn for _, txn in pairs)
        assert opt_in.sender == opt_in.receiver == TO_ADDRESS
        assert opt_in.amount == 0
        assert transfer.receiver == TO_ADDRESS
        assert transfer.amount == 10
        assert opt_in.group and opt_in.group == transfer.group

    @pytest.mark.parametrize(
        "receiver_algo,receiver_min,funding",
        [(0, 0, 201_000), (150_000, 100_000, 51_000)],
    )
    def test_receiver_funded(self, flat_sp, receiver_algo, receiver_min, funding):
        """Test that the sender covers the receiver's opt-in shortfall."""
        pairs = make_opt_in_and_asset_transfer_txns(
            FROM_ADDRESS,
            TO_ADDRESS,
            10,
            31566704,
            5_000_000,
            100_000,
            receiver_algo,
            receiver_min,
            flat_sp,
        )

        assert [signer for signer, _ in pairs] == [FROM_ADDRESS, TO_ADDRESS, FROM_ADDRESS]
        payment = pairs[0][1]
        assert payment.type == "pay"
        assert payment.receiver == TO_ADDRESS
        assert payment.amt == funding
        assert len({txn.group for _, txn in pairs}) == 1

    def test_sender_cannot_fund(self, flat_sp):
        """Test that an underfunded sender is rejected."""
        with pytest.raises(ValidationError, match="enough algo"):
            make_opt_in_and_asset_transfer_txns(
                FROM_ADDRESS, TO_ADDRESS, 10, 31566704, 300_000, 100_000, 0, 0, flat_sp
            )
