"""
Logging setup shared by the terminal and web entry points.

Library modules only call logging.getLogger("chessduel.<module>"); handlers
are installed here, once, by whichever entry point is running.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from chessduel.config import LoggingConfig

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def setup_logging(cfg: LoggingConfig, *, console: bool = True) -> logging.Logger:
    """Configure the `chessduel` logger tree and return its root."""
    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler())
    if cfg.file:
        log_file = Path(cfg.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                log_file, maxBytes=2 * 1024 * 1024, backupCount=3,  # 2 MB × 3 files
                encoding="utf-8",
            )
        )

    logger = logging.getLogger("chessduel")
    logger.setLevel(cfg.level_number)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False
    return logger
