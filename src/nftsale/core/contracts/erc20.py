"""
ERC20-style fungible token contract.

Funds sale purchases. Besides plain transfers it supports ``send``: move
tokens to a contract and notify it with a ``receive`` message in the same
operation. The notified contract sees this token as ``info.sender``, which is
how the sale knows which token paid.

Security features:
- Balance underflow prevention
- Zero amount rejection
- Supply kept within uint128
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from nftsale.core.contracts.base import Contract
from nftsale.core.exceptions import (
    InsufficientFundsError,
    InvalidZeroAmountError,
    MessageDecodeError,
)
from nftsale.core.messages import (
    UINT128_MAX,
    Deps,
    Env,
    MessageInfo,
    Response,
    WasmExecute,
    decode_binary,
    encode_binary,
    parse_uint,
    require_str,
    split_variant,
)
from nftsale.core.storage import Item, Storage

logger = logging.getLogger(__name__)

TOKEN_INFO: Item[Dict[str, Any]] = Item("token_info")
TOTAL_SUPPLY: Item[int] = Item("total_supply", str, int)
BALANCE_PREFIX = "balances/"

EXECUTE_VARIANTS = ("transfer", "send")
QUERY_VARIANTS = ("balance", "token_info")


def balance_of(storage: Storage, address: str) -> int:
    raw = storage.get(f"{BALANCE_PREFIX}{address}")
    return int(raw) if raw is not None else 0


def _set_balance(storage: Storage, address: str, amount: int) -> None:
    storage.set(f"{BALANCE_PREFIX}{address}", str(amount))


def _move(storage: Storage, sender: str, recipient: str, amount: int) -> None:
    if amount == 0:
        raise InvalidZeroAmountError()
    sender_balance = balance_of(storage, sender)
    if sender_balance < amount:
        raise InsufficientFundsError(
            f"ERC20: transfer amount exceeds balance ({amount} > {sender_balance})",
            details={"balance": str(sender_balance), "amount": str(amount)},
        )
    _set_balance(storage, sender, sender_balance - amount)
    _set_balance(storage, recipient, balance_of(storage, recipient) + amount)


class PaymentTokenContract(Contract):
    """Fungible token with transfer and send-with-notification."""

    CONTRACT_NAME = "nftsale:erc20-token"
    CONTRACT_VERSION = "0.1.0"

    def instantiate(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        name = require_str(msg, "name")
        symbol = require_str(msg, "symbol")
        decimals = parse_uint(msg.get("decimals", 6), "decimals", bits=8)
        if decimals > 18:
            raise MessageDecodeError("decimals must not exceed 18", details={"field": "decimals"})

        initial = msg.get("initial_balances") or []
        if not isinstance(initial, list):
            raise MessageDecodeError("initial_balances must be a list", details={"field": "initial_balances"})

        total = 0
        for entry in initial:
            if not isinstance(entry, dict):
                raise MessageDecodeError("initial balance must be an object", details={"field": "initial_balances"})
            address = require_str(entry, "address")
            amount = parse_uint(entry.get("amount"), "amount")
            _set_balance(deps.storage, address, balance_of(deps.storage, address) + amount)
            total += amount
        if total > UINT128_MAX:
            raise MessageDecodeError("initial supply exceeds uint128", details={"field": "initial_balances"})

        TOKEN_INFO.save(deps.storage, {"name": name, "symbol": symbol, "decimals": decimals})
        TOTAL_SUPPLY.save(deps.storage, total)

        logger.info(
            "ERC20 token created",
            extra={
                "event": "erc20.created",
                "address": env.contract_address,
                "symbol": symbol,
                "total_supply": str(total),
            },
        )
        return Response().add_attribute("action", "instantiate")

    def execute(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        tag, body = split_variant(msg, EXECUTE_VARIANTS)
        amount = parse_uint(body.get("amount"), "amount")

        if tag == "transfer":
            recipient = require_str(body, "recipient")
            _move(deps.storage, info.sender, recipient, amount)
            logger.debug(
                "ERC20 transfer",
                extra={"event": "erc20.transfer", "from": info.sender, "to": recipient, "amount": str(amount)},
            )
            return (
                Response()
                .add_attribute("action", "transfer")
                .add_attribute("from", info.sender)
                .add_attribute("to", recipient)
                .add_attribute("amount", amount)
            )

        contract = require_str(body, "contract")
        payload = encode_binary(decode_binary(body.get("msg"), "msg"))
        _move(deps.storage, info.sender, contract, amount)

        logger.info(
            "ERC20 send",
            extra={"event": "erc20.send", "from": info.sender, "to": contract, "amount": str(amount)},
        )
        return (
            Response()
            .add_message(
                WasmExecute(
                    contract_addr=contract,
                    msg={"receive": {"sender": info.sender, "amount": str(amount), "msg": payload}},
                )
            )
            .add_attribute("action", "send")
            .add_attribute("from", info.sender)
            .add_attribute("to", contract)
            .add_attribute("amount", amount)
        )

    def query(self, deps: Deps, env: Env, msg: Dict[str, Any]) -> Dict[str, Any]:
        tag, body = split_variant(msg, QUERY_VARIANTS)
        if tag == "balance":
            return {"balance": str(balance_of(deps.storage, require_str(body, "address")))}
        info = TOKEN_INFO.load(deps.storage)
        return {**info, "total_supply": str(TOTAL_SUPPLY.load(deps.storage))}
