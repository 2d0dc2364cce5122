"""
Unit tests for the ERC20-style payment token contract.
"""

import pytest

from nftsale.core.contracts import PaymentTokenContract
from nftsale.core.contracts.erc20 import balance_of
from nftsale.core.exceptions import (
    InsufficientFundsError,
    InvalidZeroAmountError,
    MessageDecodeError,
)
from nftsale.core.messages import Deps, Env, MessageInfo, WasmExecute, encode_binary
from nftsale.core.storage import MemoryStorage

TOKEN = "wasm1token"


@pytest.fixture
def deps():
    return Deps(storage=MemoryStorage())


@pytest.fixture
def token(deps):
    contract = PaymentTokenContract()
    contract.instantiate(
        deps,
        Env(contract_address=TOKEN),
        MessageInfo(sender="treasury"),
        {
            "name": "Payment",
            "symbol": "PAY",
            "initial_balances": [
                {"address": "alice", "amount": "100"},
                {"address": "bob", "amount": "5"},
                {"address": "alice", "amount": "1"},
            ],
        },
    )
    return contract


def _execute(token, deps, sender, msg):
    return token.execute(deps, Env(contract_address=TOKEN), MessageInfo(sender=sender), msg)


def test_instantiate_sums_initial_balances(token, deps):
    info = token.query(deps, Env(contract_address=TOKEN), {"token_info": {}})

    assert info == {"name": "Payment", "symbol": "PAY", "decimals": 6, "total_supply": "106"}
    assert balance_of(deps.storage, "alice") == 101
    assert balance_of(deps.storage, "nobody") == 0


@pytest.mark.parametrize(
    "msg",
    [
        {"name": "P", "symbol": "P", "decimals": 19},
        {"name": "P", "symbol": "P", "initial_balances": {"alice": "1"}},
        {"name": "P", "symbol": "P", "initial_balances": [{"address": "a", "amount": 1}]},
        {
            "name": "P",
            "symbol": "P",
            "initial_balances": [
                {"address": "a", "amount": str(2**128 - 1)},
                {"address": "b", "amount": "1"},
            ],
        },
    ],
)
def test_invalid_instantiate_rejected(msg):
    with pytest.raises(MessageDecodeError):
        PaymentTokenContract().instantiate(
            Deps(storage=MemoryStorage()), Env(contract_address=TOKEN), MessageInfo(sender="t"), msg
        )


def test_transfer_moves_balance(token, deps):
    _execute(token, deps, "alice", {"transfer": {"recipient": "carol", "amount": "40"}})

    assert balance_of(deps.storage, "alice") == 61
    assert balance_of(deps.storage, "carol") == 40


def test_transfer_beyond_balance_rejected(token, deps):
    with pytest.raises(InsufficientFundsError):
        _execute(token, deps, "bob", {"transfer": {"recipient": "carol", "amount": "6"}})

    assert balance_of(deps.storage, "bob") == 5


def test_zero_transfer_rejected(token, deps):
    with pytest.raises(InvalidZeroAmountError):
        _execute(token, deps, "alice", {"transfer": {"recipient": "carol", "amount": "0"}})


def test_send_moves_funds_and_notifies_receiver(token, deps):
    payload = encode_binary(b'{"note": "hi"}')

    response = _execute(
        token, deps, "alice", {"send": {"contract": "wasm1sale", "amount": "3", "msg": payload}}
    )

    assert balance_of(deps.storage, "alice") == 98
    assert balance_of(deps.storage, "wasm1sale") == 3
    assert [sub.msg for sub in response.messages] == [
        WasmExecute(
            contract_addr="wasm1sale",
            msg={"receive": {"sender": "alice", "amount": "3", "msg": payload}},
        )
    ]


def test_send_with_malformed_payload_moves_nothing(token, deps):
    with pytest.raises(MessageDecodeError):
        _execute(token, deps, "alice", {"send": {"contract": "wasm1sale", "amount": "3", "msg": "%%"}})

    assert balance_of(deps.storage, "alice") == 101


def test_balance_query_uses_strings(token, deps):
    result = token.query(deps, Env(contract_address=TOKEN), {"balance": {"address": "bob"}})

    assert result == {"balance": "5"}
