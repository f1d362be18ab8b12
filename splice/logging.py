"""
splice.logging - Centralized logging configuration.

All modules log through the ``splice`` logger; the CLI decides how loud it is.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("splice")


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger, e.g. ``splice.edits``."""
    return logger.getChild(name)


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the splice package.

    Args:
        verbose: If True, enable DEBUG level logging; otherwise WARNING level
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logger.setLevel(level)
