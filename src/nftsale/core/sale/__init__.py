"""
Fixed-price NFT sale controller.

- state: configuration record and its single-record store
- linkage: deploy/capture handshake with the collection contract
- minting: purchase validation and mint emission
- query: read-only configuration view
- contract: entry point dispatch
"""

from .contract import FixedPriceSale
from .linkage import INSTANTIATE_COLLECTION_REPLY_ID, LinkageManager
from .minting import MintReceipt, MintWorkflow
from .query import ConfigView, QueryFacade
from .state import CONFIG, Config, ConfigStore, LinkState, SaleParams

__all__ = [
    "FixedPriceSale",
    "LinkageManager",
    "INSTANTIATE_COLLECTION_REPLY_ID",
    "MintWorkflow",
    "MintReceipt",
    "QueryFacade",
    "ConfigView",
    "CONFIG",
    "Config",
    "ConfigStore",
    "LinkState",
    "SaleParams",
]
