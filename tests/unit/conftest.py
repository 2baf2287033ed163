"""Shared fixtures: testnet known-answer transaction and keys."""

import pytest

from algosdk import account, mnemonic

from avm_atomic.transactions import make_payment_txn, make_suggested_params

SENDER = "2RQ7JAZ4YXJ5SNBP7PDG6QW2QSQK2BWXDMJX23LQSCERD6AHYDRH4N4MXY"
RECEIVER = "S64XU5HQEY2XLHVUSO6RI3JL6NHC32I4LJHM32ZOM5VC4QPON7BZZRCU2E"
SENDER_MNEMONIC = (
    "carbon another pair valley ride lumber exhibit chunk forget select nerve topic "
    "refuse ball bomb draw chunk toward motor detect process smile envelope abstract rule"
)
TESTNET_GENESIS_HASH = "SGO1GKSzyE7IEPItTxCByw9x8FmnrCDexi9/cOUJOiI="


@pytest.fixture
def testnet_sp():
    """Suggested params used by the known-answer vectors."""
    return make_suggested_params(0, 2, 1002, TESTNET_GENESIS_HASH, "testnet-v1.0")


@pytest.fixture
def payment_txn(testnet_sp):
    """1 ALGO payment from SENDER to RECEIVER."""
    return make_payment_txn(SENDER, testnet_sp, RECEIVER, 1_000_000)


@pytest.fixture
def sender_key():
    """Base64 private key of SENDER."""
    return mnemonic.to_private_key(SENDER_MNEMONIC)


@pytest.fixture
def random_keys():
    """Three freshly generated (private_key, address) pairs."""
    return [account.generate_account() for _ in range(3)]
