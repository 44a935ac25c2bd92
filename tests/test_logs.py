from __future__ import annotations

import logging

import pytest

from evoblob.config import settings
from evoblob.systems.logs import initialise_logger


@pytest.fixture()
def clean_logger():
    logger = logging.getLogger("evoblob")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_initialise_logger_writes_to_log_directory(tmp_path, clean_logger) -> None:
    logger = initialise_logger(tmp_path)
    logging.getLogger("evoblob.body").warning("segment trouble")
    for handler in logger.handlers:
        handler.flush()

    content = (tmp_path / settings.DEBUG_LOG_FILE).read_text(encoding="utf-8")
    assert "[INFO] Debug logging initialised" in content
    assert "[WARNING] segment trouble" in content


def test_initialise_logger_is_idempotent(tmp_path, clean_logger) -> None:
    first = initialise_logger(tmp_path)
    second = initialise_logger(tmp_path)

    assert first is second
    assert len(first.handlers) == 1


def test_initialise_logger_uses_configured_level(tmp_path, clean_logger, monkeypatch) -> None:
    monkeypatch.setattr(settings, "DEBUG_LOG_LEVEL", "WARNING")

    logger = initialise_logger(tmp_path)

    assert logger.level == logging.WARNING
