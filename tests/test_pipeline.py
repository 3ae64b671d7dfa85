from decimal import Decimal

import pytest
from web3 import Web3

from conftest import GAS_PRICE, RECIPIENT, SENDER, SENDER_KEY, TX_HASH
from eth_wallet_service.wallet.errors import (
    InsufficientBalanceError,
    KeyRecoveryError,
    NoAvailableEndpointError,
    RpcError,
    SubmissionError,
    ValidationError,
)
from eth_wallet_service.wallet.models import WalletRecord
from eth_wallet_service.wallet.pipeline import (
    FAILURE_PATTERNS,
    STANDARD_TRANSFER_GAS,
    classify_failure,
)

FEE = STANDARD_TRANSFER_GAS * GAS_PRICE


def _fund(client, wei):
    client.balances[SENDER.lower()] = wei


def test_send_succeeds_with_exact_balance(service, client):
    amount_wei = Web3.to_wei(Decimal("1.5"), "ether")
    _fund(client, amount_wei + FEE)

    outcome = service.send(SENDER, RECIPIENT, "1.5", SENDER_KEY)

    assert outcome.transaction_hash == TX_HASH
    assert outcome.from_address == SENDER
    assert outcome.to_address == RECIPIENT
    assert outcome.amount == "1.5"
    assert client.submitted == [{
        "private_key": SENDER_KEY,
        "to_address": RECIPIENT,
        "value_wei": amount_wei,
        "gas": STANDARD_TRANSFER_GAS,
        "gas_price": GAS_PRICE,
    }]


def test_send_one_wei_short(service, client):
    amount_wei = Web3.to_wei(Decimal("1.5"), "ether")
    _fund(client, amount_wei + FEE - 1)

    with pytest.raises(InsufficientBalanceError) as info:
        service.send(SENDER, RECIPIENT, "1.5", SENDER_KEY)

    err = info.value
    assert err.required > err.available
    assert str(err.required) in err.message
    assert str(err.available) in err.message
    assert client.submitted == []


@pytest.mark.parametrize("amount", ["0", "-1", "abc", "NaN", "Infinity", "0.0000000000000000001"])
def test_invalid_amounts(service, client, amount):
    _fund(client, 10**30)
    with pytest.raises(ValidationError) as info:
        service.send(SENDER, RECIPIENT, amount, SENDER_KEY)
    assert info.value.field == "amount"


@pytest.mark.parametrize(
    "sender, recipient, field",
    [
        (SENDER[2:], RECIPIENT, "fromAddress"),
        (SENDER[:-1], RECIPIENT, "fromAddress"),
        (SENDER, RECIPIENT[2:], "toAddress"),
        (SENDER, RECIPIENT + "00", "toAddress"),
        (SENDER, "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAeD", "toAddress"),
    ],
)
def test_invalid_addresses_name_the_field(service, sender, recipient, field):
    with pytest.raises(ValidationError) as info:
        service.send(sender, recipient, "1", SENDER_KEY)
    assert info.value.field == field
    label = "sender" if field == "fromAddress" else "recipient"
    assert label in info.value.message


@pytest.mark.parametrize(
    "sender, recipient, amount, key",
    [
        ("", RECIPIENT, "1", SENDER_KEY),
        (SENDER, None, "1", SENDER_KEY),
        (SENDER, RECIPIENT, "", SENDER_KEY),
        (SENDER, RECIPIENT, "1", None),
    ],
)
def test_missing_fields(service, sender, recipient, amount, key):
    with pytest.raises(ValidationError) as info:
        service.send(sender, recipient, amount, key)
    assert "Missing" in info.value.message


@pytest.mark.parametrize("key", ["11" * 32, "0x" + "11" * 31, "0x" + "zz" * 32])
def test_invalid_key_format(service, key):
    with pytest.raises(ValidationError) as info:
        service.send(SENDER, RECIPIENT, "1", key)
    assert info.value.message == "Invalid private key format"


def test_key_for_other_account(service):
    with pytest.raises(ValidationError) as info:
        service.send(SENDER, RECIPIENT, "1", "0x" + "22" * 32)
    assert info.value.field == "privateKey"


def test_held_wallet_uses_stored_key(service, client):
    record = service.create_wallet()
    client.balances[record.address.lower()] = 10**20

    outcome = service.send(record.address.lower(), RECIPIENT, "0.1", "0x" + "99" * 32)

    assert outcome.transaction_hash == TX_HASH
    used = client.submitted[0]["private_key"]
    assert used == service.cipher.decrypt(record.encrypted_private_key)


def test_held_wallet_needs_no_caller_key(service, client):
    record = service.create_wallet()
    client.balances[record.address.lower()] = 10**20
    assert service.send(record.address, RECIPIENT, "0.1").transaction_hash == TX_HASH


def test_undecryptable_stored_key(service):
    service.store.put(SENDER, WalletRecord(
        address=SENDER,
        encrypted_private_key="00" * 16 + ":" + "00" * 48,
        public_key="0x04",
    ))
    with pytest.raises(KeyRecoveryError):
        service.send(SENDER, RECIPIENT, "1", SENDER_KEY)


def test_no_endpoint(service, client):
    client.alive = False
    with pytest.raises(NoAvailableEndpointError):
        service.send(SENDER, RECIPIENT, "1", SENDER_KEY)


def test_balance_fetch_failure(service, client):
    def boom(address):
        raise ValueError("bad response")

    client.get_balance = boom
    with pytest.raises(RpcError):
        service.send(SENDER, RECIPIENT, "1", SENDER_KEY)


@pytest.mark.parametrize(
    "error, category",
    [
        (ValueError("insufficient funds for gas * price + value"), "insufficient_funds"),
        (ValueError("nonce too low"), "nonce_error"),
        (ValueError("could not detect network"), "network_error"),
        (ConnectionError("reset by peer"), "network_error"),
        (TimeoutError(), "network_error"),
        (ValueError("replacement transaction underpriced"), "generic"),
    ],
)
def test_submission_failures_are_classified(service, client, error, category):
    _fund(client, 10**30)
    client.submit_error = error

    with pytest.raises(SubmissionError) as info:
        service.send(SENDER, RECIPIENT, "1", SENDER_KEY)
    assert info.value.category == category


def test_generic_failure_keeps_description(service, client):
    _fund(client, 10**30)
    client.submit_error = ValueError("replacement transaction underpriced")
    with pytest.raises(SubmissionError) as info:
        service.send(SENDER, RECIPIENT, "1", SENDER_KEY)
    assert "underpriced" in info.value.message


def test_json_rpc_error_message_is_preferred():
    class RPCFailure(Exception):
        rpc_response = {"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "nonce too low"}}

    assert classify_failure(RPCFailure("{'code': -32000}")) == "nonce_error"


def test_pattern_table_order():
    assert [category for _, category in FAILURE_PATTERNS] == [
        "insufficient_funds",
        "network_error",
        "nonce_error",
    ]
    assert classify_failure(ValueError("insufficient funds; network nonce")) == "insufficient_funds"


def test_out_of_range_key(service):
    with pytest.raises(ValidationError) as info:
        service.send(SENDER, RECIPIENT, "1", "0x" + "00" * 32)
    assert info.value.message == "Invalid private key format"
