"""
Shared helpers for the nftsale API blueprints.

Every response body carries ``success``. Failures add ``error`` (message) and
``code`` (the ContractError code, or an HTTP-level code such as
``invalid_payload``).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from flask import g, jsonify, request

from nftsale.core.exceptions import ContractError, NotFoundError, UnknownContractError

logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = (NotFoundError, UnknownContractError)


def get_api_context() -> Dict[str, Any]:
    """Get the API context (host, code ids).

    The context is stored in Flask's g object during request setup.
    """
    return g.get("api_context", {})


def get_host() -> Any:
    return get_api_context()["host"]


def success_response(payload: Dict[str, Any], status: int = 200) -> Tuple[Any, int]:
    return jsonify({"success": True, **payload}), status


def error_response(
    message: str,
    status: int = 400,
    code: str = "bad_request",
    context: Optional[Dict[str, Any]] = None,
) -> Tuple[Any, int]:
    """Return an error payload and log it."""
    level = logging.ERROR if status >= 500 else logging.WARNING
    logger.log(
        level,
        "API request failed",
        extra={"event": "api.error", "code": code, "status": status, "path": request.path, **(context or {})},
    )
    return jsonify({"success": False, "error": message, "code": code}), status


def contract_error_response(error: ContractError) -> Tuple[Any, int]:
    status = 404 if isinstance(error, NOT_FOUND_ERRORS) else 400
    return error_response(error.message, status=status, code=error.code)


def get_json_body() -> Tuple[Optional[Dict[str, Any]], Optional[Tuple[Any, int]]]:
    """Parse the JSON object body. Returns (payload, None) or (None, error response)."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None, error_response("Request body must be a JSON object", code="invalid_payload")
    return payload, None
