"""Logging helpers for the application.

`get_logger` hands out loggers that share one stream handler and one
rotating file handler. `LOG_LEVEL`, `LOG_DIR` and `LOG_TO_FILE` tune the
setup; `set_level` changes the level of every logger handed out so far
(the import CLI uses it for `--log-level`).
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Dict, Optional, Union

LOG_DIR = os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "..", "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "1") not in ("0", "false", "False")

_formatter = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
_loggers: Dict[str, logging.Logger] = {}

_stream_handler = logging.StreamHandler()
_stream_handler.setFormatter(_formatter)

_file_handler: Optional[RotatingFileHandler] = None
if LOG_TO_FILE:
    os.makedirs(LOG_DIR, exist_ok=True)
    _file_handler = RotatingFileHandler(os.path.join(LOG_DIR, "app.log"), maxBytes=5 * 1024 * 1024, backupCount=3)
    _file_handler.setFormatter(_formatter)


def _resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = LOG_LEVEL
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def get_logger(name: str = __name__, level: Union[int, str, None] = None) -> logging.Logger:
    """Return a configured logger with stream and rotating file handlers.

    Handlers are attached once per logger name. The level defaults to
    `LOG_LEVEL`.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(_resolve_level(level))
        logger.addHandler(_stream_handler)
        if _file_handler is not None:
            logger.addHandler(_file_handler)
    _loggers[name] = logger
    return logger


def set_level(level: Union[int, str]) -> None:
    """Set the level of every logger returned by `get_logger`."""
    resolved = _resolve_level(level)
    for logger in _loggers.values():
        logger.setLevel(resolved)
