"""Logging setup for the ``asyncassist`` logger tree.

Every module logs through ``py_logging.getLogger(__name__)``, so all records
land under :data:`LOGGER_NAME`. :func:`configure_logging` takes either a level
name or a loaded :class:`~asyncassist.config.AsyncAssistConfig`.
"""

from __future__ import annotations

import logging as py_logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, TextIO, Union

if TYPE_CHECKING:
    from asyncassist.config import AsyncAssistConfig

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
LOGGER_NAME = "asyncassist"
_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d %(message)s"

LoggingSource = Union[str, "AsyncAssistConfig", None]


def resolve_level(name: str | None) -> int:
    """Map a level name to its numeric value, defaulting to INFO."""
    if not name:
        return py_logging.INFO
    return LOG_LEVELS.get(name.strip().upper(), py_logging.INFO)


def _split_source(source: LoggingSource) -> tuple[str | None, str | None]:
    if source is None or isinstance(source, str):
        return source, None
    return source.log_level, source.log_file or None


def _file_handler(log_file: str | Path, formatter: py_logging.Formatter) -> py_logging.Handler | None:
    log_path = Path(log_file).expanduser()
    if not log_path.is_absolute():
        log_path = log_path.resolve()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = py_logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        return None
    handler.setLevel(py_logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    source: LoggingSource = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """Point the package logger at ``stream`` and optionally a debug log file.

    ``source`` is a level name or a config object; a config also supplies the
    log file unless ``log_file`` is passed. Calling it again replaces the
    handlers installed by the previous call.
    """
    level_name, config_file = _split_source(source)
    level = resolve_level(level_name)
    target_file = log_file or config_file

    logger = py_logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    formatter = py_logging.Formatter(_FORMAT)

    console = py_logging.StreamHandler(stream or sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if target_file:
        file_handler = _file_handler(target_file, formatter)
        if file_handler is not None:
            logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug("Logging configured level=%s file=%s", py_logging.getLevelName(level), target_file)
    return logger
