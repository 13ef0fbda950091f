"""
Logging for the intake engine.

Every module logs through ``get_logger(__name__)``. Records under the
``intake`` namespace go to a single stdout handler; the level is set once by
the caller (``INTAKE_LOG_LEVEL`` or ``--verbose``) through :func:`set_level`.

    from intake.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Legacy receipts: %d rows had no matching policyholder", dropped)
"""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LEVEL = logging.INFO

ROOT_LOGGER_NAME = "intake"

_handler: Optional[logging.Handler] = None


def resolve_level(level: Union[int, str, None]) -> int:
    """
    ``"debug"``, ``"WARNING"``, ``"10"`` or ``logging.DEBUG`` to a numeric level.

    Raises:
        ValueError: unknown level name
    """
    if level is None or level == "":
        return DEFAULT_LEVEL
    if isinstance(level, int):
        return level
    text = str(level).strip()
    if text.isdigit():
        return int(text)
    numeric = logging.getLevelName(text.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"unknown log level {level!r}")
    return numeric


def _intake_handler() -> logging.Handler:
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(sys.stdout)
        _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(DEFAULT_LEVEL)
        root.addHandler(_handler)
        root.propagate = False
    return _handler


def get_logger(name: str, level: Union[int, str, None] = None) -> logging.Logger:
    """Logger for *name*; names outside ``intake`` keep the host's configuration."""
    _intake_handler()
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(resolve_level(level))
    return logger


def set_level(level: Union[int, str], logger_name: Optional[str] = None) -> int:
    """
    Set the level of one logger, or of the whole ``intake`` tree.

    The tree-wide call also moves the stdout handler, so ``set_level("debug")``
    is all a caller needs. Returns the numeric level applied.
    """
    numeric = resolve_level(level)
    logging.getLogger(logger_name or ROOT_LOGGER_NAME).setLevel(numeric)
    if logger_name is None:
        _intake_handler().setLevel(numeric)
    return numeric
