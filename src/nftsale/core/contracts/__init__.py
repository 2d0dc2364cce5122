"""
nftsale hosted contracts.

- ERC20: payment token with send-and-notify
- ERC721: NFT collection with a fixed minter
"""

from .base import Contract
from .erc20 import PaymentTokenContract
from .erc721 import CollectionContract

__all__ = [
    "Contract",
    "PaymentTokenContract",
    "CollectionContract",
]
