"""File logging for the ``evoblob`` logger hierarchy."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..config import settings

__all__ = ["initialise_logger"]


def initialise_logger(log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach the debug file handler to ``evoblob`` once and return it."""

    log_dir = log_dir if log_dir is not None else settings.LOG_DIRECTORY
    if not isinstance(log_dir, Path):
        log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / settings.DEBUG_LOG_FILE

    logger = logging.getLogger("evoblob")
    if logger.handlers:
        return logger

    level_name = str(settings.DEBUG_LOG_LEVEL).upper()
    level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)

    file_handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    file_handler.setLevel(level)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    logger.propagate = False

    logger.info("Debug logging initialised at %s", log_path)
    return logger
