"""Logging setup for testnet-deploy.

Library modules log through ``logging.getLogger(__name__)``; the CLI calls
:func:`setup_logging` once, which routes every record under the
``testnet_deploy`` namespace to a rich handler on stderr.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "testnet_deploy"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(level: str) -> int:
    """Map a config level name to a logging level"""
    try:
        return _LEVELS[str(level).lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


def setup_logging(level: str = "info", console: Optional[Console] = None) -> logging.Logger:
    """Install a rich handler on the package logger"""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(parse_level(level))

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
