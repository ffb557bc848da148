"""Logging configuration.

Dependencies: logging (stdlib)
"""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
_NOISY = ("LiteLLM", "litellm", "httpx", "httpcore", "uvicorn.access")


def configure_logging(level: str = "INFO") -> None:
    """Install a single stdout handler on the root logger at *level*."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT))

    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)
