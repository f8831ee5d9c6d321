"""Tests for logging configuration."""

import logging

from macro_ledger.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("macro_ledger")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1


def test_configure_logging_debug_level() -> None:
    logger = logging.getLogger("macro_ledger")

    configure_logging(debug=True)
    assert logger.level == logging.DEBUG

    configure_logging()
    assert logger.level == logging.INFO


def test_http_client_logs_follow_developer_mode() -> None:
    configure_logging()
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(debug=True)
    assert logging.getLogger("httpx").level == logging.DEBUG
    configure_logging()
