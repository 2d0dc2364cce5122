"""
Unit tests for FixedPriceSale entry point dispatch and message decoding.
"""

import pytest

from nftsale.core.exceptions import MessageDecodeError, NotFoundError
from nftsale.core.messages import MessageInfo
from nftsale.core.sale import CONFIG

OWNER = "owner"
PAYMENT_TOKEN = "wasm1paymenttoken"


class TestSetupDecoding:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"unit_price": 3},  # uint128 must be a string
            {"unit_price": "-3"},
            {"unit_price": "3.5"},
            {"unit_price": str(2**128)},
            {"max_tokens": "five"},
            {"max_tokens": -1},
            {"max_tokens": True},
            {"payment_token_address": ""},
            {"name": None},
            {"collection_code_id": "abc"},
        ],
    )
    def test_malformed_setup_rejected_before_anything_is_saved(
        self, sale, deps, sale_env, setup_msg, storage, overrides
    ):
        with pytest.raises(MessageDecodeError):
            sale.instantiate(deps, sale_env, MessageInfo(sender=OWNER), setup_msg(**overrides))

        assert CONFIG.may_load(storage) is None

    def test_empty_token_uri_allowed(self, sale, deps, sale_env, setup_msg, storage):
        sale.instantiate(deps, sale_env, MessageInfo(sender=OWNER), setup_msg(token_uri=""))

        assert CONFIG.load(storage).token_uri == ""

    def test_max_uint128_price_accepted(self, sale, deps, sale_env, setup_msg, storage):
        price = str(2**128 - 1)
        sale.instantiate(deps, sale_env, MessageInfo(sender=OWNER), setup_msg(unit_price=price))

        assert CONFIG.load(storage).unit_price == 2**128 - 1


class TestExecuteDecoding:
    @pytest.mark.parametrize(
        "msg",
        [
            {"mint": {}},
            {"receive": {"sender": "buyer", "amount": "3"}, "extra": {}},
            {"receive": {"amount": "3"}},
            {"receive": {"sender": "buyer", "amount": 3}},
            {"receive": {"sender": "buyer", "amount": "3", "msg": "not base64!"}},
            {"receive": "buyer"},
            [],
        ],
    )
    def test_malformed_receive_rejected(
        self, configured_sale, deps, sale_env, link, storage, msg
    ):
        sale = configured_sale()
        link(sale, deps, sale_env)

        with pytest.raises(MessageDecodeError):
            sale.execute(deps, sale_env, MessageInfo(sender=PAYMENT_TOKEN), msg)

        assert CONFIG.load(storage).next_token_id == 0

    def test_opaque_payload_is_ignored(self, configured_sale, deps, sale_env, link, storage):
        sale = configured_sale()
        link(sale, deps, sale_env)
        msg = {"receive": {"sender": "buyer", "amount": "3", "msg": "eyJub3RlIjogImhpIn0="}}

        sale.execute(deps, sale_env, MessageInfo(sender=PAYMENT_TOKEN), msg)

        assert CONFIG.load(storage).next_token_id == 1


class TestQuery:
    def test_get_config_projects_every_field(self, configured_sale, deps, sale_env, link, pay):
        sale = configured_sale(extension={"trait": "gold"})
        link(sale, deps, sale_env, "collectionA")
        pay(sale, deps, sale_env, 3)

        view = sale.query(deps, sale_env, {"get_config": {}})

        assert view == {
            "owner": OWNER,
            "payment_token_address": PAYMENT_TOKEN,
            "collection_address": "collectionA",
            "unit_price": "3",
            "max_tokens": 5,
            "name": "FirstFT",
            "symbol": "FFT",
            "token_uri": "Sample",
            "extension": {"trait": "gold"},
            "next_token_id": 1,
            "link_state": "linked",
        }

    def test_get_config_has_no_side_effects(self, configured_sale, deps, sale_env, storage):
        sale = configured_sale()
        before = dict(storage.items())

        sale.query(deps, sale_env, {"get_config": {}})
        sale.query(deps, sale_env, {"get_config": {}})

        assert dict(storage.items()) == before

    def test_get_config_uninitialized(self, sale, deps, sale_env):
        with pytest.raises(NotFoundError):
            sale.query(deps, sale_env, {"get_config": {}})

    def test_unknown_query_rejected(self, configured_sale, deps, sale_env):
        sale = configured_sale()

        with pytest.raises(MessageDecodeError):
            sale.query(deps, sale_env, {"get_state": {}})
