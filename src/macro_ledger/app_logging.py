"""Logging configuration helpers."""

import logging

_LIBRARY_LOGGERS = ("httpx", "httpcore")


def configure_logging(debug: bool = False) -> None:
    """Configure the ``macro_ledger`` logger with a single stream handler.

    Developer mode turns on debug output, including per-request logs of the
    webhook HTTP client, which are otherwise limited to warnings.
    """
    logger = logging.getLogger("macro_ledger")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
