from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def configure_logging(config: LoggingConfig) -> None:
    """
    Configure the root logger. Never logs to stdout, which carries protocol
    traffic; ``warnings`` are routed through logging for the same reason.
    """
    handler: logging.Handler
    if config.file:
        handler = logging.FileHandler(config.file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)

    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )
    logging.captureWarnings(True)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name if name else "simple_mcp")
