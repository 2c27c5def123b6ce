"""Logging setup for diskmap.

Library modules only call ``logging.getLogger(__name__)``; the CLI and TUI
call :func:`configure_logging` once to route those records to the terminal.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "diskmap"

_HANDLER_ATTR = "_diskmap_handler"


def configure_logging(
    level: str = "WARNING",
    console: Optional[Console] = None,
    force: bool = False,
) -> logging.Logger:
    """
    Attach a RichHandler to the package logger.

    Calling this again is a no-op unless ``force`` is set, in which case the
    previous handler is replaced.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console: Console to write to (default: a new stderr console)
        force: Replace an existing handler

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    existing = [h for h in logger.handlers if getattr(h, _HANDLER_ATTR, False)]

    if existing and not force:
        logger.setLevel(level.upper())
        return logger

    for handler in existing:
        logger.removeHandler(handler)
        handler.close()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    setattr(handler, _HANDLER_ATTR, True)

    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
