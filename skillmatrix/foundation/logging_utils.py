"""Operational logging for CLI runs."""

from __future__ import annotations

import logging
import os
from datetime import datetime

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"
LOGGER_NAMES = ("skillmatrix", "matrixkit")


def setup_operational_logger(
    level: str = "INFO",
    log_dir: str | None = None,
    *,
    run_id: str | None = None,
) -> tuple[logging.Logger, str | None]:
    """
    Configure the `skillmatrix` and `matrixkit` loggers.

    Records go to stderr at `level` and, when `log_dir` is set, to a UTF-8 file
    at DEBUG so wizard transitions are kept for later inspection.
    """

    numeric_level = logging.getLevelName(str(level).strip().upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid logging.level: {level!r}")

    formatter = logging.Formatter(LOG_FORMAT)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(numeric_level)
    stream_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [stream_handler]

    log_file = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = os.path.join(log_dir, f"skillmatrix_{run_id}.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in LOGGER_NAMES:
        named = logging.getLogger(name)
        named.setLevel(logging.DEBUG if log_file else numeric_level)
        for handler in list(named.handlers):
            named.removeHandler(handler)
            handler.close()
        for handler in handlers:
            named.addHandler(handler)
        named.propagate = False

    logger = logging.getLogger("skillmatrix")
    logger.debug("Operational logging initialized (level=%s)", level)
    if log_file:
        logger.debug("Operational log file: %s", log_file)
    return logger, log_file
