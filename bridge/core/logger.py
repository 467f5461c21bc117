from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Union

LOGGER_NAME = "bridge"
FILE_FORMAT = "%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s"


def setup_logging(
    log_dir: str = "logs",
    *,
    level: Union[int, str] = logging.INFO,
    filename: str = "bridge.log",
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    console_level: Union[int, str] = logging.WARNING,
) -> logging.Logger:
    """
    Configure the `bridge` logger tree: a rotating file under `log_dir` and
    a console handler for warnings. Calling it again only updates the level.
    """
    os.makedirs(log_dir, exist_ok=True)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    files = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    if not files:
        fh = RotatingFileHandler(
            os.path.join(log_dir, filename), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
        fh.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(fh)

    if not any(type(h) is logging.StreamHandler for h in logger.handlers):
        sh = logging.StreamHandler()
        sh.setLevel(console_level)
        sh.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        logger.addHandler(sh)

    return logger
