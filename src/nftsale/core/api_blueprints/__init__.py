"""
nftsale API Blueprints

Usage:
    from nftsale.core.api_blueprints import register_blueprints
    register_blueprints(app, host, code_ids)
"""

from __future__ import annotations

from typing import Dict

from flask import Flask, g

from nftsale.core.api_blueprints.contracts_bp import contracts_bp
from nftsale.core.api_blueprints.sale_bp import sale_bp
from nftsale.core.host import ContractHost

__all__ = [
    "contracts_bp",
    "sale_bp",
    "register_blueprints",
]


def register_blueprints(app: Flask, host: ContractHost, code_ids: Dict[str, int]) -> None:
    """
    Register all API blueprints with the Flask app.

    Args:
        app: Flask application instance
        host: Contract host serving every request
        code_ids: Stored code ids by name, reported by ``GET /contracts``
    """
    api_context = {"host": host, "code_ids": dict(code_ids)}

    @app.before_request
    def inject_api_context() -> None:
        """Inject API context into Flask's g object for blueprint access."""
        g.api_context = api_context

    app.register_blueprint(contracts_bp)
    app.register_blueprint(sale_bp)
