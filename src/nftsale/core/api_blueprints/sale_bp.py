"""
Sale API Blueprint

Read-only convenience endpoints for fixed-price sale contracts.
"""

from __future__ import annotations

from typing import Any, Dict, Tuple

from flask import Blueprint

from nftsale.core.api_blueprints.base import (
    contract_error_response,
    error_response,
    get_host,
    success_response,
)
from nftsale.core.exceptions import ContractError
from nftsale.core.sale import FixedPriceSale

sale_bp = Blueprint("sale", __name__, url_prefix="/sale")


@sale_bp.route("/<address>/config", methods=["GET"])
def get_sale_config(address: str) -> Tuple[Dict[str, Any], int]:
    """Current sale configuration, including link state and next token id."""
    host = get_host()
    try:
        info = host.contract_info(address)
        if info["contract"] != FixedPriceSale.CONTRACT_NAME:
            return error_response(
                f"{address} is not a fixed-price sale", status=404, code="not_a_sale"
            )
        config = host.query(address, {"get_config": {}})
    except ContractError as exc:
        return contract_error_response(exc)
    return success_response({"config": config})
