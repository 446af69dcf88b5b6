"""Startup check for the ffmpeg binary.

The service refuses to start when ffmpeg is missing or when
``ffmpeg -version`` does not exit cleanly within the timeout.

Example:
    >>> status = check_engine("ffmpeg")
    >>> status.available, status.version
    (True, '6.1')
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from video_mcp.core.errors import EngineUnavailableError
from video_mcp.utils.command_runner import (
    CommandNotFoundError,
    CommandRunner,
    CommandTimeoutError,
)
from video_mcp.utils.constants import ENGINE_VERSION_CHECK_TIMEOUT

logger = logging.getLogger(__name__)

INSTALL_GUIDE = "https://ffmpeg.org/download.html"

_VERSION_PATTERN = re.compile(r"ffmpeg version (\S+)")


@dataclass(frozen=True)
class EngineStatus:
    """Result of the ffmpeg availability check.

    Attributes:
        path: The ffmpeg executable that was checked.
        available: Whether ffmpeg ran successfully.
        version: Reported version string, if parsed.
        message: Reason when not available.
    """

    path: str
    available: bool
    version: str | None = None
    message: str | None = None


def check_engine(
    ffmpeg_path: str = "ffmpeg",
    timeout: float = ENGINE_VERSION_CHECK_TIMEOUT,
    runner: CommandRunner | None = None,
) -> EngineStatus:
    """Run ``ffmpeg -version`` and report whether the engine is usable."""
    runner = runner or CommandRunner()
    try:
        result = runner.run([ffmpeg_path, "-version"], timeout=timeout)
    except CommandNotFoundError:
        return EngineStatus(ffmpeg_path, False, message=f"ffmpeg not found at '{ffmpeg_path}'")
    except CommandTimeoutError:
        return EngineStatus(ffmpeg_path, False, message="ffmpeg version check timed out")

    if not result.success:
        return EngineStatus(
            ffmpeg_path,
            False,
            message=f"ffmpeg -version exited with code {result.returncode}",
        )

    match = _VERSION_PATTERN.search(result.stdout)
    version = match.group(1) if match else None
    logger.debug("Detected ffmpeg version: %s", version)
    return EngineStatus(ffmpeg_path, True, version=version)


def ensure_engine_available(
    ffmpeg_path: str = "ffmpeg",
    timeout: float = ENGINE_VERSION_CHECK_TIMEOUT,
    runner: CommandRunner | None = None,
) -> EngineStatus:
    """Like ``check_engine`` but raise when ffmpeg is unusable.

    Raises:
        EngineUnavailableError: If the check failed.
    """
    status = check_engine(ffmpeg_path, timeout, runner)
    if not status.available:
        raise EngineUnavailableError(
            f"FFmpeg is not available: {status.message}. "
            f"Install it and add it to PATH, see {INSTALL_GUIDE}"
        )
    return status


__all__ = ["EngineStatus", "check_engine", "ensure_engine_available"]
