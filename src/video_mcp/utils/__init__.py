"""Utility modules for video-mcp.

This package provides subprocess execution, engine availability checks
and shared constants.
"""

from video_mcp.utils.command_runner import (
    CommandError,
    CommandExecutionError,
    CommandNotFoundError,
    CommandResult,
    CommandRunner,
    CommandTimeoutError,
    FFprobeRunner,
)
from video_mcp.utils.dependency_checker import (
    EngineStatus,
    check_engine,
    ensure_engine_available,
)

__all__ = [
    # Command execution
    "CommandError",
    "CommandExecutionError",
    "CommandNotFoundError",
    "CommandResult",
    "CommandRunner",
    "CommandTimeoutError",
    "FFprobeRunner",
    # Engine checks
    "EngineStatus",
    "check_engine",
    "ensure_engine_available",
]
