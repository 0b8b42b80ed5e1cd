"""
Logging setup with Rich integration.

Installs a single ``RichHandler`` on the root logger and applies the level
chosen on the command line. ``GOTESTCRAFT_LOG_LEVEL`` overrides both flags.
"""

import logging
import os
import threading

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

LOG_LEVEL_ENV = "GOTESTCRAFT_LOG_LEVEL"

GOTESTCRAFT_THEME = Theme(
    {
        "info": "cyan",
        "success": "bold green",
        "warning": "yellow",
        "error": "bold red",
        "muted": "dim",
    }
)


class LoggerManager:
    """Configures process-wide logging once."""

    _console: Console | None = None
    _setup_complete: bool = False
    _setup_lock: threading.Lock = threading.Lock()

    @classmethod
    def setup_global_logging(
        cls, console: Console | None = None, level: int = logging.INFO
    ) -> Console:
        """Set up global logging configuration; later calls only adjust the level."""
        with cls._setup_lock:
            root_logger = logging.getLogger()
            if cls._setup_complete:
                root_logger.setLevel(level)
                return cls._console  # type: ignore[return-value]

            cls._console = console or Console(theme=GOTESTCRAFT_THEME, stderr=True)

            for handler in list(root_logger.handlers):
                if isinstance(handler, RichHandler):
                    root_logger.removeHandler(handler)

            rich_handler = RichHandler(
                console=cls._console,
                show_time=True,
                show_path=False,
                markup=False,
                rich_tracebacks=True,
            )
            rich_handler.setFormatter(logging.Formatter(fmt="%(message)s"))

            root_logger.addHandler(rich_handler)
            root_logger.setLevel(level)
            cls._setup_complete = True
            return cls._console

    @classmethod
    def reset(cls) -> None:
        with cls._setup_lock:
            cls._console = None
            cls._setup_complete = False


def resolve_log_level(
    verbose: bool = False, quiet: bool = False, default: str = "INFO"
) -> int:
    """
    Pick the root log level.

    Precedence: ``GOTESTCRAFT_LOG_LEVEL`` > quiet > verbose > ``default``.
    Unknown level names fall back to INFO.
    """
    override = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    if override:
        return logging.getLevelName(override) if _is_level(override) else logging.INFO
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    name = default.upper()
    return logging.getLevelName(name) if _is_level(name) else logging.INFO


def _is_level(name: str) -> bool:
    return isinstance(logging.getLevelName(name), int)
