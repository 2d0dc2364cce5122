"""
Contracts API Blueprint

Deploys contracts, executes messages and runs queries against the host.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint

from nftsale.core.api_blueprints.base import (
    contract_error_response,
    error_response,
    get_api_context,
    get_host,
    get_json_body,
    success_response,
)
from nftsale.core.exceptions import ContractError

logger = logging.getLogger(__name__)

contracts_bp = Blueprint("contracts", __name__, url_prefix="/contracts")


def _require_sender(payload: Dict[str, Any]) -> str | None:
    sender = payload.get("sender")
    return sender.strip() if isinstance(sender, str) and sender.strip() else None


@contracts_bp.route("", methods=["GET"])
def list_contracts() -> Tuple[Dict[str, Any], int]:
    """List deployed contracts and the stored code ids."""
    ctx = get_api_context()
    return success_response({"contracts": get_host().list_contracts(), "code_ids": ctx["code_ids"]})


@contracts_bp.route("/instantiate", methods=["POST"])
def instantiate_contract() -> Tuple[Dict[str, Any], int]:
    """Deploy a contract: {sender, code_id, msg, label, admin?}."""
    payload, failure = get_json_body()
    if failure:
        return failure

    sender = _require_sender(payload)
    code_id = payload.get("code_id")
    label = payload.get("label") or ""
    if not sender:
        return error_response("sender is required", code="invalid_payload")
    if not isinstance(code_id, int) or isinstance(code_id, bool):
        return error_response("code_id must be an integer", code="invalid_payload")
    if not isinstance(payload.get("msg"), dict):
        return error_response("msg must be an object", code="invalid_payload")

    try:
        result = get_host().instantiate(
            sender, code_id, payload["msg"], str(label), admin=payload.get("admin")
        )
    except ContractError as exc:
        return contract_error_response(exc)

    logger.info(
        "Contract deployed via API",
        extra={"event": "api.instantiate", "address": result.contract_address, "code_id": code_id},
    )
    return success_response(result.to_dict(), status=201)


@contracts_bp.route("/<address>/execute", methods=["POST"])
def execute_contract(address: str) -> Tuple[Dict[str, Any], int]:
    """Execute a message: {sender, msg}."""
    payload, failure = get_json_body()
    if failure:
        return failure

    sender = _require_sender(payload)
    if not sender:
        return error_response("sender is required", code="invalid_payload")
    if not isinstance(payload.get("msg"), dict):
        return error_response("msg must be an object", code="invalid_payload")

    try:
        result = get_host().execute(sender, address, payload["msg"])
    except ContractError as exc:
        return contract_error_response(exc)
    return success_response(result.to_dict())


@contracts_bp.route("/<address>/query", methods=["POST"])
def query_contract(address: str) -> Tuple[Dict[str, Any], int]:
    """Run a query: {msg}."""
    payload, failure = get_json_body()
    if failure:
        return failure
    if not isinstance(payload.get("msg"), dict):
        return error_response("msg must be an object", code="invalid_payload")

    try:
        data = get_host().query(address, payload["msg"])
    except ContractError as exc:
        return contract_error_response(exc)
    return success_response({"data": data})


@contracts_bp.route("/<address>", methods=["GET"])
def get_contract(address: str) -> Tuple[Dict[str, Any], int]:
    """Host metadata of a deployed contract."""
    try:
        info = get_host().contract_info(address)
    except ContractError as exc:
        return contract_error_response(exc)
    return success_response({"contract": info})
