"""Logging setup for the pressline CLI."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

DEBUG_ENV_VAR = "PRESSLINE_DEBUG"

console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the ``pressline`` logger tree.

    Log levels:
    - Normal: Only warnings/errors shown
    - Verbose (-v): INFO level - shows generator and plugin activity
    - Debug (PRESSLINE_DEBUG=1): DEBUG level - shows everything
    """
    debug = bool(os.environ.get(DEBUG_ENV_VAR))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("pressline")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False
