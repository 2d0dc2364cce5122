import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Make `nftsale` importable without installation.
project_root = Path(__file__).resolve().parents[2]
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

from nftsale.core.messages import Deps, Env, MessageInfo, Reply, SubMsgResult
from nftsale.core.node import build_host
from nftsale.core.sale import FixedPriceSale
from nftsale.core.storage import MemoryStorage

PAYMENT_TOKEN = "wasm1paymenttoken"
OWNER = "owner"
BUYER = "buyer"
SALE_ADDRESS = "wasm1sale"


@pytest.fixture
def setup_msg():
    """Factory for the sale instantiate message; keyword overrides replace fields."""

    def make(**overrides):
        msg = {
            "payment_token_address": PAYMENT_TOKEN,
            "unit_price": "3",
            "max_tokens": 5,
            "name": "FirstFT",
            "symbol": "FFT",
            "token_uri": "Sample",
            "extension": None,
            "collection_code_id": 2,
        }
        msg.update(overrides)
        return msg

    return make


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def deps(storage):
    return Deps(storage=storage)


@pytest.fixture
def sale_env():
    return Env(contract_address=SALE_ADDRESS)


@pytest.fixture
def sale():
    return FixedPriceSale()


@pytest.fixture
def configured_sale(sale, deps, sale_env, setup_msg):
    """A sale instantiated directly against storage, still unlinked."""

    def make(**overrides):
        sale.instantiate(deps, sale_env, MessageInfo(sender=OWNER), setup_msg(**overrides))
        return sale

    return make


@pytest.fixture
def link():
    """Deliver the collection instantiate reply for ``address``."""

    def deliver(sale, deps, env, address="collectionA", reply_id=1):
        return sale.reply(deps, env, Reply(id=reply_id, result=SubMsgResult(contract_address=address)))

    return deliver


@pytest.fixture
def pay():
    """Deliver a payment notification as if sent by ``paying_contract``."""

    def deliver(sale, deps, env, amount, sender=BUYER, paying_contract=PAYMENT_TOKEN):
        msg = {"receive": {"sender": sender, "amount": str(amount), "msg": ""}}
        return sale.execute(deps, env, MessageInfo(sender=paying_contract), msg)

    return deliver


@pytest.fixture
def marketplace(setup_msg):
    """
    Host with a payment token (buyer holds 100) and a linked sale
    (unit price 3, max 5 tokens).
    """
    host, code_ids = build_host(storage=MemoryStorage())
    token = host.instantiate(
        "treasury",
        code_ids["erc20"],
        {
            "name": "Payment",
            "symbol": "PAY",
            "decimals": 6,
            "initial_balances": [{"address": BUYER, "amount": "100"}],
        },
        label="payment token",
    ).contract_address
    sale_address = host.instantiate(
        OWNER,
        code_ids["fixed_price_sale"],
        setup_msg(payment_token_address=token, collection_code_id=code_ids["erc721"]),
        label="sale",
    ).contract_address
    collection = host.query(sale_address, {"get_config": {}})["collection_address"]
    return SimpleNamespace(
        host=host,
        code_ids=code_ids,
        token=token,
        sale=sale_address,
        collection=collection,
    )
