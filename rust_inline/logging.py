"""Logging helpers for rust_inline."""

from __future__ import annotations

import logging
from typing import Optional, Union

_LOGGER_NAME = "rust_inline"
_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a child of it.

    Parameters
    ----------
    name : Optional[str]
        Dotted suffix (or full module name under ``rust_inline``) of the child logger.

    Returns
    -------
    logging.Logger
        The requested logger.
    """
    if not name or name == _LOGGER_NAME:
        return logging.getLogger(_LOGGER_NAME)
    if name.startswith(_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Attach a stream handler to the package logger. Repeated calls only update the level.

    Parameters
    ----------
    level : Union[int, str]
        Logging level, as a number or a name such as ``"DEBUG"``.

    Returns
    -------
    logging.Logger
        The configured package logger.
    """
    if isinstance(level, str):
        level = level.upper()
    logger = get_logger()
    logger.setLevel(level)
    if not any(getattr(h, "_rust_inline", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._rust_inline = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
