"""
nftsale Node API

Flask application exposing the contract host over HTTP, plus the
``nftsale-node`` entry point.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest
from werkzeug.exceptions import HTTPException

from nftsale.core import config
from nftsale.core.api_blueprints import register_blueprints
from nftsale.core.api_blueprints.base import error_response
from nftsale.core.host import ContractHost
from nftsale.core.logging_config import setup_logging
from nftsale.core.metrics import SaleMetrics
from nftsale.core.node import build_host

logger = logging.getLogger(__name__)


def create_app(
    host: Optional[ContractHost] = None,
    code_ids: Optional[Dict[str, int]] = None,
    registry: Optional[CollectorRegistry] = None,
) -> Flask:
    """
    Build the Flask app.

    Args:
        host: Host to serve; a new one with the default codes is built if omitted
        code_ids: Code ids of ``host``; required when ``host`` is given
        registry: Prometheus registry for metrics (default: global registry)
    """
    registry = registry or REGISTRY
    if host is None:
        host, code_ids = build_host(metrics=SaleMetrics(registry))

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.API_MAX_JSON_BYTES
    register_blueprints(app, host, code_ids or {})

    @app.route("/health", methods=["GET"])
    def health() -> Tuple[Dict[str, Any], int]:
        return {"status": "ok", "height": host.block_height}, 200

    @app.route("/metrics", methods=["GET"])
    def metrics() -> Response:
        return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException) -> Tuple[Any, int]:
        return error_response(
            error.description or error.name,
            status=error.code or 500,
            code=error.name.lower().replace(" ", "_"),
        )

    return app


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the nftsale node API")
    parser.add_argument("--host", default=config.API_HOST)
    parser.add_argument("--port", type=int, default=config.API_PORT)
    args = parser.parse_args(argv)

    config.validate_config()
    setup_logging(
        name="nftsale",
        log_file=config.LOG_FILE,
        level=config.LOG_LEVEL,
        environment=config.ENVIRONMENT,
    )

    app = create_app()
    logger.info(
        "Starting node API",
        extra={"event": "node.start", "bind": f"{args.host}:{args.port}", "backend": config.STORAGE_BACKEND},
    )
    app.run(host=args.host, port=args.port)


if __name__ == "__main__":
    main()
