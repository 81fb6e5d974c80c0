"""
Logging configuration for FrameSlicer.
"""
from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO/DEBUG.
_QUIET_LOGGERS = ("urllib3", "google", "google.auth", "httpcore", "httpx", "multipart")

_HANDLER_NAME = "frameslicer-stdout"


def setup_logging(level: str = "INFO") -> None:
    """Configure application-wide logging.

    Safe to call more than once: the stdout handler is installed only once
    and later calls just update the level.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # Requests are already logged by the HTTP middleware.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
