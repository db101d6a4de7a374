"""Console logging for the code_battles_build logger."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str | int = "INFO", logger: logging.Logger | None = None) -> None:
    """Send log records to stderr through Rich.

    Safe to call more than once, earlier Rich handlers are replaced.
    """
    if logger is None:
        logger = logging.getLogger("code_battles_build")

    handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.setLevel(level)
    for existing in logger.handlers[:]:
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False
