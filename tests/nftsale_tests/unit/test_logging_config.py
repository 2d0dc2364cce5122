"""
Unit tests for structured JSON logging setup.
"""

import json
import logging

import pytest

from nftsale.core.logging_config import CustomJsonFormatter, setup_logging


@pytest.fixture
def json_logger(tmp_path):
    log_file = tmp_path / "logs" / "node.json"
    logger = setup_logging(
        name="nftsale_logtest",
        log_file=str(log_file),
        level="DEBUG",
        environment="staging",
        enable_console=False,
    )
    yield logger, log_file
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _records(log_file):
    return [json.loads(line) for line in log_file.read_text().splitlines() if line.strip()]


def test_file_handler_writes_json_with_extra_fields(json_logger):
    logger, log_file = json_logger

    logger.info("Token minted", extra={"event": "sale.minted", "token_id": "0"})
    for handler in logger.handlers:
        handler.flush()

    (record,) = _records(log_file)
    assert record["message"] == "Token minted"
    assert record["event"] == "sale.minted"
    assert record["token_id"] == "0"
    assert record["level"] == "info"
    assert record["environment"] == "staging"
    assert record["service"] == "nftsale_logtest"
    assert record["source"]["function"] == "test_file_handler_writes_json_with_extra_fields"
    assert "timestamp" in record


def test_setup_is_idempotent(json_logger, tmp_path):
    logger, _ = json_logger

    again = setup_logging(name="nftsale_logtest", log_file=str(tmp_path / "other.json"), enable_console=False)

    assert again is logger
    assert len(logger.handlers) == 1


def test_console_only_by_default():
    logger = setup_logging(name="nftsale_console_test")
    try:
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert isinstance(logger.handlers[0].formatter, CustomJsonFormatter)
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
