"""
Sale configuration record and its store.

The controller keeps exactly one record per instance, under the ``config``
key of its own storage. All writers load, modify and save the full record.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional

from nftsale.core.exceptions import InvalidMaxTokensError, InvalidUnitPriceError
from nftsale.core.storage import Item, Storage

CONFIG_KEY = "config"


class LinkState(Enum):
    """Linkage between the controller and its collection contract."""

    UNLINKED = "unlinked"
    LINKED = "linked"


@dataclass(frozen=True)
class SaleParams:
    """Setup parameters, as decoded from the instantiate message."""

    payment_token_address: str
    unit_price: int
    max_tokens: int
    name: str
    symbol: str
    token_uri: str
    collection_code_id: int
    extension: Any = None


@dataclass(frozen=True)
class Config:
    owner: str
    payment_token_address: str
    unit_price: int
    max_tokens: int
    name: str
    symbol: str
    token_uri: str
    extension: Any = None
    collection_address: Optional[str] = None
    next_token_id: int = 0

    @property
    def link_state(self) -> LinkState:
        return LinkState.UNLINKED if self.collection_address is None else LinkState.LINKED

    @property
    def sold_out(self) -> bool:
        return self.next_token_id >= self.max_tokens

    def linked_to(self, collection_address: str) -> "Config":
        return replace(self, collection_address=collection_address)

    def advanced(self) -> "Config":
        return replace(self, next_token_id=self.next_token_id + 1)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        # uint128 travels as a decimal string
        data["unit_price"] = str(self.unit_price)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        return cls(
            owner=data["owner"],
            payment_token_address=data["payment_token_address"],
            unit_price=int(data["unit_price"]),
            max_tokens=int(data["max_tokens"]),
            name=data["name"],
            symbol=data["symbol"],
            token_uri=data["token_uri"],
            extension=data.get("extension"),
            collection_address=data.get("collection_address"),
            next_token_id=int(data["next_token_id"]),
        )


CONFIG: Item[Config] = Item(CONFIG_KEY, Config.to_dict, Config.from_dict)


class ConfigStore:
    """Single-record store for the sale configuration, bound to one contract's storage."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    @staticmethod
    def create(owner: str, params: SaleParams) -> Config:
        """
        Build the initial, unlinked configuration.

        Nothing is persisted here; callers save once every check has passed.

        Raises:
            InvalidUnitPriceError: If unit_price is zero
            InvalidMaxTokensError: If max_tokens is zero
        """
        if params.unit_price == 0:
            raise InvalidUnitPriceError()
        if params.max_tokens == 0:
            raise InvalidMaxTokensError()
        return Config(
            owner=owner,
            payment_token_address=params.payment_token_address,
            unit_price=params.unit_price,
            max_tokens=params.max_tokens,
            name=params.name,
            symbol=params.symbol,
            token_uri=params.token_uri,
            extension=params.extension,
        )

    def load(self) -> Config:
        """Load the record. Raises NotFoundError on an uninitialized instance."""
        return CONFIG.load(self.storage)

    def may_load(self) -> Optional[Config]:
        return CONFIG.may_load(self.storage)

    def save(self, config: Config) -> None:
        CONFIG.save(self.storage, config)
