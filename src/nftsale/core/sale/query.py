"""Read-only projection of the sale configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from nftsale.core.sale.state import ConfigStore, LinkState


@dataclass(frozen=True)
class ConfigView:
    owner: str
    payment_token_address: str
    collection_address: Optional[str]
    unit_price: int
    max_tokens: int
    name: str
    symbol: str
    token_uri: str
    extension: Any
    next_token_id: int
    link_state: LinkState

    def to_dict(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "payment_token_address": self.payment_token_address,
            "collection_address": self.collection_address,
            "unit_price": str(self.unit_price),
            "max_tokens": self.max_tokens,
            "name": self.name,
            "symbol": self.symbol,
            "token_uri": self.token_uri,
            "extension": self.extension,
            "next_token_id": self.next_token_id,
            "link_state": self.link_state.value,
        }


class QueryFacade:
    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    def get_config(self) -> ConfigView:
        """Project every configuration field. Raises NotFoundError when uninitialized."""
        config = self.store.load()
        return ConfigView(
            owner=config.owner,
            payment_token_address=config.payment_token_address,
            collection_address=config.collection_address,
            unit_price=config.unit_price,
            max_tokens=config.max_tokens,
            name=config.name,
            symbol=config.symbol,
            token_uri=config.token_uri,
            extension=config.extension,
            next_token_id=config.next_token_id,
            link_state=config.link_state,
        )
