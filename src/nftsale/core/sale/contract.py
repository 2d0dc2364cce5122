"""
Fixed-price sale controller contract.

Entry points map one-to-one onto the sale components:

- instantiate -> LinkageManager.deploy
- reply       -> LinkageManager.capture
- execute     -> {"receive": ...} -> MintWorkflow.purchase
- query       -> {"get_config": {}} -> QueryFacade.get_config

Messages are decoded here, before any component runs, so a malformed message
never touches the configuration.
"""

from __future__ import annotations

from typing import Any, Dict

from nftsale.core.contracts.base import Contract
from nftsale.core.messages import (
    Deps,
    Env,
    MessageInfo,
    Reply,
    Response,
    decode_binary,
    parse_uint,
    require_str,
    split_variant,
)
from nftsale.core.sale.linkage import LinkageManager
from nftsale.core.sale.minting import MintWorkflow
from nftsale.core.sale.query import QueryFacade
from nftsale.core.sale.state import ConfigStore, SaleParams

EXECUTE_VARIANTS = ("receive",)
QUERY_VARIANTS = ("get_config",)


def decode_setup(msg: Dict[str, Any]) -> SaleParams:
    return SaleParams(
        payment_token_address=require_str(msg, "payment_token_address"),
        unit_price=parse_uint(msg.get("unit_price"), "unit_price"),
        max_tokens=parse_uint(msg.get("max_tokens"), "max_tokens", bits=32),
        name=require_str(msg, "name"),
        symbol=require_str(msg, "symbol"),
        token_uri=require_str(msg, "token_uri", allow_empty=True),
        collection_code_id=parse_uint(msg.get("collection_code_id"), "collection_code_id", bits=64),
        extension=msg.get("extension"),
    )


class FixedPriceSale(Contract):
    """Sells sequentially numbered NFTs for an exact amount of one fungible token."""

    CONTRACT_NAME = "nftsale:fixed-price"
    CONTRACT_VERSION = "0.1.0"

    def instantiate(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        params = decode_setup(msg)
        return LinkageManager(ConfigStore(deps.storage)).deploy(env, info, params)

    def reply(self, deps: Deps, env: Env, reply: Reply) -> Response:
        config = LinkageManager(ConfigStore(deps.storage)).capture(reply)
        return (
            Response()
            .add_attribute("action", "link_collection")
            .add_attribute("collection", config.collection_address)
        )

    def execute(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        _, body = split_variant(msg, EXECUTE_VARIANTS)
        sender = require_str(body, "sender")
        amount = parse_uint(body.get("amount"), "amount")
        # opaque to the sale, decoded only to reject malformed payloads
        decode_binary(body.get("msg"), "msg")

        receipt = MintWorkflow(ConfigStore(deps.storage)).purchase(info.sender, sender, amount)
        return (
            Response()
            .add_message(receipt.message)
            .add_attribute("action", "mint")
            .add_attribute("token_id", receipt.token_id)
            .add_attribute("owner", receipt.owner)
        )

    def query(self, deps: Deps, env: Env, msg: Dict[str, Any]) -> Dict[str, Any]:
        split_variant(msg, QUERY_VARIANTS)
        return QueryFacade(ConfigStore(deps.storage)).get_config().to_dict()
