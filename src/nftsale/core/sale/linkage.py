"""
Two-step linkage between the sale controller and its collection contract.

The collection's address only exists once its instantiation has settled, so
linkage is split in two operations correlated by a fixed reply id:

1. ``deploy``: persist the unlinked configuration and ask the host to
   instantiate the collection, with this controller as its only minter.
2. ``capture``: on the instantiate reply, record the new address. The
   instance is linked from then on and never changes collection.
"""

from __future__ import annotations

import logging

from nftsale.core.exceptions import AlreadyLinkedError, InvalidCorrelationError
from nftsale.core.messages import (
    Env,
    MessageInfo,
    Reply,
    Response,
    SubMsg,
    WasmInstantiate,
    parse_instantiate_reply,
)
from nftsale.core.sale.state import Config, ConfigStore, SaleParams

logger = logging.getLogger(__name__)

INSTANTIATE_COLLECTION_REPLY_ID = 1
COLLECTION_LABEL = "Instantiate fixed price NFT contract"


class LinkageManager:
    """Drives the Unlinked -> Linked transition of one controller instance."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    def deploy(self, env: Env, info: MessageInfo, params: SaleParams) -> Response:
        """
        Persist the initial configuration and request the collection deployment.

        Args:
            env: Environment of this controller (its address becomes the minter)
            info: Caller, recorded as the sale owner
            params: Decoded setup parameters

        Returns:
            Response with exactly one reply-on-success instantiate submessage
        """
        config = self.store.create(info.sender, params)
        self.store.save(config)

        instantiate = WasmInstantiate(
            code_id=params.collection_code_id,
            msg={
                "name": params.name,
                "symbol": params.symbol,
                "minter": env.contract_address,
            },
            label=COLLECTION_LABEL,
        )

        logger.info(
            "Sale configured",
            extra={
                "event": "sale.configured",
                "contract": env.contract_address,
                "owner": info.sender,
                "unit_price": params.unit_price,
                "max_tokens": params.max_tokens,
                "collection_code_id": params.collection_code_id,
            },
        )

        return (
            Response()
            .add_submessage(SubMsg.reply_on_success(instantiate, INSTANTIATE_COLLECTION_REPLY_ID))
            .add_attribute("action", "instantiate")
            .add_attribute("owner", info.sender)
        )

    def capture(self, reply: Reply) -> Config:
        """
        Record the collection address carried by the instantiate reply.

        Raises:
            InvalidCorrelationError: If the reply id is not the instantiate id
            AlreadyLinkedError: If a collection is already recorded
            ReplyDecodeError: If the reply carries no usable address
        """
        if reply.id != INSTANTIATE_COLLECTION_REPLY_ID:
            raise InvalidCorrelationError(
                details={"reply_id": reply.id, "expected": INSTANTIATE_COLLECTION_REPLY_ID}
            )

        config = self.store.load()
        if config.collection_address is not None:
            raise AlreadyLinkedError(details={"collection": config.collection_address})

        collection_address = parse_instantiate_reply(reply)
        config = config.linked_to(collection_address)
        self.store.save(config)

        logger.info(
            "Collection linked",
            extra={"event": "sale.linked", "collection": collection_address},
        )
        return config
