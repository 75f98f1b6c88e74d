import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "llmbridge"


def configure_logging(
    level: Union[int, str] = logging.WARNING,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Route llmbridge log records through a rich handler.

    Only the package logger is touched; the root logger and other libraries
    keep their configuration. Calling this again replaces the handler.

    Args:
        level: Logging level name or number.
        console: Console to write to. Defaults to stderr.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
