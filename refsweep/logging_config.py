"""Logger configuration for the refsweep CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(debug: bool = False, console: Console | None = None) -> logging.Logger:
    """
    Configure the "refsweep" logger.

    Warnings and errors are always shown; --debug also shows the git
    commands being run and batch fallbacks.

    Args:
        debug: Log at DEBUG instead of WARNING.
        console: Rich console to log to, shared with the CLI output.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger("refsweep")
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    handler = RichHandler(
        console=console,
        show_path=debug,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
