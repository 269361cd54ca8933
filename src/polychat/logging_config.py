import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(log_level: str = "INFO", console: Console | None = None) -> None:
    """Set up logging configuration.

    Library modules only create loggers; entry points call this once.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR). Defaults to INFO.
        console: Optional Rich console to log to (defaults to stderr)
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in list(root_logger.handlers):
        if isinstance(handler, RichHandler):
            root_logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        log_time_format="%H:%M:%S",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    root_logger.addHandler(handler)

    # Set levels for specific loggers
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("polychat").setLevel(level)
