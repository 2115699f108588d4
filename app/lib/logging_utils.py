from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    base_dir: Path,
    *,
    level: Union[int, str] = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """
    Attach handlers to the ``alertgenius`` logger tree.

    Every module logger (``alertgenius.engine``, ``alertgenius.dispatcher`` ...)
    writes to logs/alertgenius.log below ``base_dir`` and, when ``console`` is
    set, to stderr. Safe to call multiple times; handlers are added once.
    """
    log_dir = base_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("alertgenius")
    if not logger.handlers:
        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)
        file_handler = logging.FileHandler(log_dir / "alertgenius.log", encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        if console:
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(formatter)
            logger.addHandler(stream_handler)
    logger.setLevel(_resolve_level(level))
    logger.propagate = False
    return logger


def setup_debug_logging(base_dir: Path, *, level: int = logging.DEBUG) -> logging.Logger:
    """
    Configure the separate debug logger that feeds logs/debug.log.
    It does not propagate, so its records stay out of alertgenius.log.
    """
    log_dir = base_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger("alertgenius.debug")
    if not logger.handlers:
        handler = logging.FileHandler(log_dir / "debug.log", encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger
