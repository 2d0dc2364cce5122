"""
Node assembly: storage backend, contract host and the stored contract codes.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from nftsale.core import config
from nftsale.core.contracts import CollectionContract, PaymentTokenContract
from nftsale.core.host import ContractHost
from nftsale.core.metrics import SaleMetrics
from nftsale.core.sale import FixedPriceSale
from nftsale.core.storage import MemoryStorage, SQLiteStorage, Storage

logger = logging.getLogger(__name__)

# Stored in this order, so code ids are stable across restarts: erc20=1, erc721=2, sale=3
DEFAULT_CODES = (
    ("erc20", PaymentTokenContract),
    ("erc721", CollectionContract),
    ("fixed_price_sale", FixedPriceSale),
)


def open_storage(backend: Optional[str] = None, path: Optional[str] = None) -> Storage:
    """Open the configured storage backend."""
    backend = backend or config.STORAGE_BACKEND
    if backend == "sqlite":
        return SQLiteStorage(path or config.STORAGE_PATH)
    if backend == "memory":
        return MemoryStorage()
    raise config.ConfigurationError(f"unknown storage backend {backend!r}")


def build_host(
    storage: Optional[Storage] = None,
    metrics: Optional[SaleMetrics] = None,
) -> Tuple[ContractHost, Dict[str, int]]:
    """
    Create a host with the default contract codes stored.

    Returns:
        The host and a mapping of code name to code id
    """
    host = ContractHost(storage=storage if storage is not None else open_storage(), metrics=metrics)
    code_ids = {name: host.store_code(contract_cls()) for name, contract_cls in DEFAULT_CODES}
    logger.info("Contract host ready", extra={"event": "node.ready", "code_ids": code_ids})
    return host, code_ids
