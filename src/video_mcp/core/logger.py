"""Logging setup for video_mcp.

Log records go to a Rich console on stderr and to a size-rotated file.
Stdout is never used for logging, since the CLI writes tool responses
there and ``serve`` speaks a JSON-lines protocol over it.

Example:
    >>> from video_mcp.core.logger import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", file_output=False)
    >>> logger = get_logger(__name__)
    >>> logger.info("Probing %s", "clip.mp4")
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

ROOT_LOGGER_NAME = "video_mcp"
LOG_FILE_NAME = "video_mcp.log"

DEFAULT_LOG_DIR = Path.home() / ".local" / "share" / "video_mcp" / "logs"
DEFAULT_LOG_LEVEL = logging.INFO
FILE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [pid %(process)d]: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

LOG_THEME = Theme(
    {
        "logging.level.debug": "bright_black",
        "logging.level.info": "cyan",
        "logging.level.warning": "bold yellow",
        "logging.level.error": "red",
        "logging.level.critical": "reverse red",
    }
)

_log_dir: Path = DEFAULT_LOG_DIR
_log_level: int = DEFAULT_LOG_LEVEL
_configured: bool = False
_console: Console | None = None


def _resolve_level(level: int | str) -> int:
    """Turn a level name or number into a logging level number."""
    if isinstance(level, str):
        return getattr(logging, level.upper(), DEFAULT_LOG_LEVEL)
    return level


def _stderr_console() -> Console:
    global _console
    if _console is None:
        _console = Console(theme=LOG_THEME, stderr=True)
    return _console


def _build_file_handler() -> RotatingFileHandler:
    _log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(_log_dir / LOG_FILE_NAME),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    handler.setLevel(_log_level)
    return handler


def _build_console_handler() -> RichHandler:
    handler = RichHandler(
        console=_stderr_console(),
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(_log_level)
    return handler


def configure_logging(
    level: int | str = DEFAULT_LOG_LEVEL,
    log_dir: Path | None = None,
    console_output: bool = True,
    file_output: bool = True,
) -> None:
    """Configure the ``video_mcp`` logger tree.

    Calling this again replaces the previously installed handlers.

    Args:
        level: Level name or number.
        log_dir: Directory for the rotating log file.
        console_output: Attach the Rich stderr handler.
        file_output: Attach the rotating file handler.
    """
    global _log_dir, _log_level, _configured

    _log_level = _resolve_level(level)
    if log_dir is not None:
        _log_dir = Path(log_dir)

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(_log_level)
    root.propagate = False

    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    if console_output:
        root.addHandler(_build_console_handler())
    if file_output:
        root.addHandler(_build_file_handler())

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``video_mcp`` namespace.

    Logging is configured with defaults on first use if nothing else
    configured it yet.
    """
    if not _configured:
        configure_logging(file_output=False)

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_log_level(level: int | str) -> None:
    """Change the level of the logger tree and all its handlers."""
    global _log_level

    _log_level = _resolve_level(level)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(_log_level)
    for handler in root.handlers:
        handler.setLevel(_log_level)


def get_log_file_path() -> Path:
    """Return the path of the rotating log file."""
    return _log_dir / LOG_FILE_NAME


__all__ = [
    "configure_logging",
    "get_logger",
    "get_log_file_path",
    "set_log_level",
    "DEFAULT_LOG_DIR",
    "DEFAULT_LOG_LEVEL",
    "ROOT_LOGGER_NAME",
]
