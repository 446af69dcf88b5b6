"""Execution of external commands (ffmpeg, ffprobe).

All failures derive from ``CommandError`` and carry the name of the
command, so callers can catch the whole family at once.

Example:
    >>> runner = FFprobeRunner(ffprobe_path="ffprobe")
    >>> data = await runner.probe_async(Path("clip.mp4"))
    >>> data["format"]["format_name"]
    'mov,mp4,m4a,3gp,3g2,mj2'
"""

from __future__ import annotations

import asyncio
import json
import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_FFMPEG_INSTALL = "Install FFmpeg (https://ffmpeg.org/download.html)"


@dataclass
class CommandResult:
    """Captured outcome of a finished command.

    Attributes:
        returncode: Process exit status.
        stdout: Decoded standard output.
        stderr: Decoded standard error.
        elapsed: Wall-clock seconds the command took.
    """

    returncode: int
    stdout: str
    stderr: str
    elapsed: float = 0.0

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandError(Exception):
    """Base class for failures of an external command.

    Attributes:
        command: Name or path of the command.
    """

    def __init__(self, command: str, message: str) -> None:
        self.command = command
        super().__init__(message)


class CommandNotFoundError(CommandError):
    """The executable does not resolve on PATH."""

    # Keyed by executable stem so absolute paths get the hint too
    INSTALL_HINTS = {
        "ffmpeg": f"{_FFMPEG_INSTALL} or set VIDEO_MCP_ENGINE__FFMPEG_PATH.",
        "ffprobe": f"{_FFMPEG_INSTALL} or set VIDEO_MCP_ENGINE__FFPROBE_PATH.",
    }

    def __init__(self, command: str) -> None:
        parts = [f"Command '{command}' not found."]
        hint = self.INSTALL_HINTS.get(Path(command).stem)
        if hint:
            parts.append(hint)
        super().__init__(command, " ".join(parts))


class CommandTimeoutError(CommandError):
    """The command outlived its timeout and was stopped.

    Attributes:
        timeout: Allowed seconds.
    """

    def __init__(self, command: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(command, f"Command '{command}' timed out after {timeout:.1f} seconds.")


class CommandExecutionError(CommandError):
    """The command exited non-zero, or its output was unusable.

    Attributes:
        returncode: Exit status.
        stderr: Error output, as printed.
    """

    def __init__(self, command: str, returncode: int, stderr: str) -> None:
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or "no error output"
        super().__init__(command, f"Command '{command}' failed with code {returncode}: {detail}")


class CommandRunner:
    """Run external commands, blocking or from a coroutine.

    Both entry points resolve the executable first, so a missing binary
    surfaces as ``CommandNotFoundError`` before any process is spawned.
    """

    @staticmethod
    def check_command_exists(command: str) -> bool:
        return shutil.which(command) is not None

    @staticmethod
    def ensure_command_exists(command: str) -> None:
        if not CommandRunner.check_command_exists(command):
            raise CommandNotFoundError(command)

    def _resolve(self, args: list[str]) -> str:
        name = args[0] if args else ""
        self.ensure_command_exists(name)
        logger.debug("Running %s", " ".join(args))
        return name

    @staticmethod
    def _finish(name: str, result: CommandResult, check: bool) -> CommandResult:
        logger.debug("%s exited with %d in %.2fs", name, result.returncode, result.elapsed)
        if check and not result.success:
            raise CommandExecutionError(name, result.returncode, result.stderr)
        return result

    def run(
        self,
        args: list[str],
        *,
        timeout: float | None = 60.0,
        check: bool = False,
    ) -> CommandResult:
        """Run ``args`` and block until it exits.

        Args:
            args: Executable followed by its arguments.
            timeout: Seconds before the process is killed, None for no limit.
            check: Raise ``CommandExecutionError`` on a non-zero exit.

        Raises:
            CommandNotFoundError: The executable is missing.
            CommandTimeoutError: The timeout expired.
            CommandExecutionError: ``check`` is set and the command failed.
        """
        name = self._resolve(args)
        started = time.monotonic()
        try:
            completed = subprocess.run(args, timeout=timeout, capture_output=True, text=True)
        except FileNotFoundError as e:
            raise CommandNotFoundError(name) from e
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(name, timeout or 0.0) from e

        return self._finish(
            name,
            CommandResult(
                completed.returncode,
                completed.stdout,
                completed.stderr,
                time.monotonic() - started,
            ),
            check,
        )

    async def run_async(
        self,
        args: list[str],
        *,
        timeout: float | None = 60.0,
        check: bool = False,
    ) -> CommandResult:
        """Coroutine version of ``run``; the process is killed on timeout."""
        name = self._resolve(args)
        started = time.monotonic()
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(name) from e

        try:
            out, err = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise CommandTimeoutError(name, timeout or 0.0) from e

        return self._finish(
            name,
            CommandResult(
                process.returncode or 0,
                out.decode("utf-8", errors="replace"),
                err.decode("utf-8", errors="replace"),
                time.monotonic() - started,
            ),
            check,
        )


class FFprobeRunner:
    """ffprobe invocation returning the decoded JSON report.

    Attributes:
        ffprobe_path: ffprobe executable.
    """

    def __init__(
        self,
        ffprobe_path: str = "ffprobe",
        command_runner: CommandRunner | None = None,
    ) -> None:
        self.ffprobe_path = ffprobe_path
        self._runner = command_runner if command_runner is not None else CommandRunner()

    def build_args(self, path: Path) -> list[str]:
        report_flags = ["-print_format", "json", "-show_format", "-show_streams"]
        return [self.ffprobe_path, "-v", "error", *report_flags, str(path)]

    async def probe_async(self, path: Path, *, timeout: float = 30.0) -> dict[str, Any]:
        """Probe a media file.

        Returns:
            The report, with ``format`` and ``streams`` keys.

        Raises:
            CommandNotFoundError: ffprobe is missing.
            CommandTimeoutError: The probe took longer than ``timeout``.
            CommandExecutionError: ffprobe failed or printed something other than JSON.
        """
        result = await self._runner.run_async(self.build_args(path), timeout=timeout, check=True)
        try:
            report: dict[str, Any] = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise CommandExecutionError(
                self.ffprobe_path, result.returncode, f"invalid JSON output: {e}"
            ) from e
        return report


__all__ = [
    "CommandError",
    "CommandExecutionError",
    "CommandNotFoundError",
    "CommandResult",
    "CommandRunner",
    "CommandTimeoutError",
    "FFprobeRunner",
]
