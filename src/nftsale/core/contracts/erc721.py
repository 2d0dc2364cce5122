"""
ERC721-style NFT collection contract.

The collection deployed by the sale controller. Supports:
- Minting by a single minter fixed at instantiation
- Per-token URI and opaque extension metadata
- Ownership and enumeration queries

Security features:
- Minter verification on every mint
- Duplicate token id rejection
- No entry point can change the minter
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from nftsale.core.contracts.base import Contract
from nftsale.core.exceptions import (
    MessageDecodeError,
    NotFoundError,
    TokenClaimedError,
    UnauthorizedError,
)
from nftsale.core.messages import (
    Deps,
    Env,
    MessageInfo,
    Response,
    parse_uint,
    require_str,
    split_variant,
)
from nftsale.core.storage import Item, Storage

logger = logging.getLogger(__name__)

COLLECTION_INFO: Item[Dict[str, str]] = Item("collection_info")
MINTER: Item[str] = Item("minter")
TOKEN_COUNT: Item[int] = Item("num_tokens")
TOKEN_PREFIX = "tokens/"

EXECUTE_VARIANTS = ("mint",)
QUERY_VARIANTS = ("contract_info", "minter", "num_tokens", "owner_of", "nft_info", "tokens")
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _token_key(token_id: str) -> str:
    return f"{TOKEN_PREFIX}{token_id}"


def _load_token(storage: Storage, token_id: str) -> Dict[str, Any]:
    token = storage.get(_token_key(token_id))
    if token is None:
        raise NotFoundError(f"ERC721: token {token_id} does not exist", details={"token_id": token_id})
    return token


class CollectionContract(Contract):
    """NFT collection with a single, immutable minter."""

    CONTRACT_NAME = "nftsale:erc721-collection"
    CONTRACT_VERSION = "0.1.0"

    # ==================== Entry Points ====================

    def instantiate(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        name = require_str(msg, "name")
        symbol = require_str(msg, "symbol")
        minter = require_str(msg, "minter")

        COLLECTION_INFO.save(deps.storage, {"name": name, "symbol": symbol})
        MINTER.save(deps.storage, minter)
        TOKEN_COUNT.save(deps.storage, 0)

        logger.info(
            "ERC721 collection created",
            extra={
                "event": "erc721.created",
                "address": env.contract_address,
                "collection_name": name,
                "symbol": symbol,
                "minter": minter,
            },
        )
        return Response().add_attribute("action", "instantiate").add_attribute("minter", minter)

    def execute(
        self, deps: Deps, env: Env, info: MessageInfo, msg: Dict[str, Any]
    ) -> Response:
        _, body = split_variant(msg, EXECUTE_VARIANTS)
        return self.mint(
            deps.storage,
            caller=info.sender,
            token_id=require_str(body, "token_id"),
            owner=require_str(body, "owner"),
            token_uri=body.get("token_uri"),
            extension=body.get("extension"),
        )

    def query(self, deps: Deps, env: Env, msg: Dict[str, Any]) -> Dict[str, Any]:
        tag, body = split_variant(msg, QUERY_VARIANTS)
        storage = deps.storage

        if tag == "contract_info":
            return COLLECTION_INFO.load(storage)
        if tag == "minter":
            return {"minter": MINTER.load(storage)}
        if tag == "num_tokens":
            return {"count": TOKEN_COUNT.load(storage)}
        if tag == "owner_of":
            token = _load_token(storage, require_str(body, "token_id"))
            return {"owner": token["owner"]}
        if tag == "nft_info":
            token = _load_token(storage, require_str(body, "token_id"))
            return {"token_uri": token["token_uri"], "extension": token["extension"]}
        return {"tokens": self.tokens(storage, body)}

    # ==================== Minting ====================

    def mint(
        self,
        storage: Storage,
        caller: str,
        token_id: str,
        owner: str,
        token_uri: Any = None,
        extension: Any = None,
    ) -> Response:
        """
        Mint a new NFT.

        Args:
            storage: Collection storage
            caller: Message sender (must be the minter)
            token_id: Token id, unique within the collection
            owner: Recipient address
            token_uri: Optional metadata URI
            extension: Optional opaque metadata

        Raises:
            UnauthorizedError: If caller is not the minter
            TokenClaimedError: If token_id is already minted
        """
        if caller != MINTER.load(storage):
            raise UnauthorizedError("ERC721: caller is not the minter", details={"caller": caller})
        if token_uri is not None and not isinstance(token_uri, str):
            raise MessageDecodeError("field 'token_uri' must be a string", details={"field": "token_uri"})

        key = _token_key(token_id)
        if storage.get(key) is not None:
            raise TokenClaimedError(
                f"ERC721: token {token_id} already minted", details={"token_id": token_id}
            )

        storage.set(key, {"owner": owner, "token_uri": token_uri, "extension": extension})
        TOKEN_COUNT.save(storage, TOKEN_COUNT.load(storage) + 1)

        logger.info(
            "ERC721 mint",
            extra={"event": "erc721.mint", "token_id": token_id, "to": owner},
        )
        return (
            Response()
            .add_attribute("action", "mint")
            .add_attribute("minter", caller)
            .add_attribute("owner", owner)
            .add_attribute("token_id", token_id)
        )

    # ==================== Views ====================

    def tokens(self, storage: Storage, body: Dict[str, Any]) -> list[str]:
        """Token ids held by ``owner``, in storage key order, paginated by ``start_after``/``limit``."""
        owner = require_str(body, "owner")
        start_after = require_str(body, "start_after") if body.get("start_after") is not None else None
        limit = min(parse_uint(body.get("limit", DEFAULT_LIMIT), "limit", bits=32), MAX_LIMIT)

        found: list[str] = []
        if limit == 0:
            return found
        for key, token in storage.items(TOKEN_PREFIX):
            token_id = key[len(TOKEN_PREFIX):]
            if start_after is not None and token_id <= start_after:
                continue
            if token["owner"] == owner:
                found.append(token_id)
                if len(found) >= limit:
                    break
        return found
