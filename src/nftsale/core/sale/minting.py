"""
Purchase-and-mint workflow.

A purchase is a payment notification forwarded by the payment token
contract. Preconditions are checked in a fixed order and the configuration
is saved only after all of them pass, together with the outbound mint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from nftsale.core.exceptions import (
    SoldOutError,
    UnauthorizedTokenContractError,
    UninitializedError,
    WrongPaymentAmountError,
)
from nftsale.core.messages import WasmExecute
from nftsale.core.sale.state import Config, ConfigStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MintReceipt:
    """Result of a successful purchase."""

    token_id: str
    owner: str
    collection_address: str
    message: WasmExecute


def build_mint_message(config: Config, token_id: str, owner: str) -> WasmExecute:
    return WasmExecute(
        contract_addr=config.collection_address,
        msg={
            "mint": {
                "token_id": token_id,
                "owner": owner,
                "token_uri": config.token_uri,
                "extension": config.extension,
            }
        },
    )


class MintWorkflow:
    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    def purchase(self, paying_contract: str, sender: str, amount: int) -> MintReceipt:
        """
        Validate a payment and mint the next token to the buyer.

        Args:
            paying_contract: Contract that delivered the payment notification
            sender: Buyer, receives the token
            amount: Amount paid, in payment token base units

        Returns:
            MintReceipt with the mint message to emit

        Raises:
            UnauthorizedTokenContractError: Payment from another token contract
            UninitializedError: Collection not linked yet
            SoldOutError: Every token has been minted
            WrongPaymentAmountError: Amount differs from the unit price
        """
        config = self.store.load()

        try:
            self._check(config, paying_contract, amount)
        except (
            UnauthorizedTokenContractError,
            UninitializedError,
            SoldOutError,
            WrongPaymentAmountError,
        ) as exc:
            logger.warning(
                "Purchase rejected",
                extra={
                    "event": "sale.purchase_rejected",
                    "reason": exc.code,
                    "paying_contract": paying_contract,
                    "sender": sender,
                    "amount": amount,
                },
            )
            raise

        token_id = str(config.next_token_id)
        message = build_mint_message(config, token_id, sender)
        self.store.save(config.advanced())

        logger.info(
            "Token minted",
            extra={
                "event": "sale.minted",
                "collection": config.collection_address,
                "token_id": token_id,
                "owner": sender,
                "remaining": config.max_tokens - config.next_token_id - 1,
            },
        )

        return MintReceipt(
            token_id=token_id,
            owner=sender,
            collection_address=config.collection_address,
            message=message,
        )

    @staticmethod
    def _check(config: Config, paying_contract: str, amount: int) -> None:
        if paying_contract != config.payment_token_address:
            raise UnauthorizedTokenContractError(
                details={"paying_contract": paying_contract}
            )
        if config.collection_address is None:
            raise UninitializedError()
        if config.sold_out:
            raise SoldOutError(details={"max_tokens": config.max_tokens})
        if amount != config.unit_price:
            raise WrongPaymentAmountError(
                details={"amount": str(amount), "unit_price": str(config.unit_price)}
            )
