"""Adapter for the external transcoding engine.

The job executor talks to the engine through ``MediaEngine``: ``run()`` is an
async iterator of ``EngineEvent`` objects and ``probe()`` returns the raw
metadata report. Events always arrive as START, zero or more PROGRESS, then
exactly one END or ERROR.

``FFmpegEngine`` implements the interface with ffmpeg and ffprobe
subprocesses.

Example:
    >>> engine = FFmpegEngine(ffmpeg_path="ffmpeg", ffprobe_path="ffprobe")
    >>> async for event in engine.run(src, dst, directives, overwrite=True):
    ...     print(event.type, event.percent)
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import shlex
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import AsyncIterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from video_mcp.converters.progress import LineSplitter, ProgressParser
from video_mcp.utils.command_runner import CommandError, FFprobeRunner
from video_mcp.utils.constants import PROBE_TIMEOUT

if TYPE_CHECKING:
    from video_mcp.converters.formats import CompiledDirectives

logger = logging.getLogger(__name__)

STDERR_CHUNK_SIZE = 4096
STDERR_TAIL_LINES = 20


class EngineEventType(Enum):
    START = "start"
    PROGRESS = "progress"
    END = "end"
    ERROR = "error"


@dataclass(frozen=True)
class EngineEvent:
    """One lifecycle event of an engine run.

    Attributes:
        type: Event kind.
        command_line: Full invocation, set on START.
        percent: Completion percentage, set on PROGRESS.
        message: Raw failure message, set on ERROR.
        cancelled: True when the ERROR was caused by cancellation.
    """

    type: EngineEventType
    command_line: str | None = None
    percent: float | None = None
    message: str | None = None
    cancelled: bool = False


class CancellationToken:
    """Signal that a running job should stop.

    The engine terminates its subprocess once the token is set.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()


class MediaEngine(ABC):
    """Interface of a transcoding engine."""

    @abstractmethod
    def run(
        self,
        input_path: Path,
        output_path: Path,
        directives: CompiledDirectives,
        *,
        overwrite: bool,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[EngineEvent]:
        """Convert ``input_path`` into ``output_path``, yielding events."""

    @abstractmethod
    async def probe(self, path: Path) -> dict[str, Any]:
        """Return the raw metadata report for a media file.

        The report has a ``format`` mapping and a ``streams`` list, as
        printed by ``ffprobe -print_format json``.
        """


class FFmpegEngine(MediaEngine):
    """Run conversions with ffmpeg and probes with ffprobe.

    Attributes:
        ffmpeg_path: ffmpeg executable.
        ffprobe_path: ffprobe executable.
        probe_timeout: Seconds allowed for one probe.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        probe_timeout: float = PROBE_TIMEOUT,
        ffprobe_runner: FFprobeRunner | None = None,
    ) -> None:
        self.ffmpeg_path = ffmpeg_path
        self.ffprobe_path = ffprobe_path
        self.probe_timeout = probe_timeout
        self._ffprobe = ffprobe_runner or FFprobeRunner(ffprobe_path)

    def build_command(
        self,
        input_path: Path,
        output_path: Path,
        directives: CompiledDirectives,
        *,
        overwrite: bool,
    ) -> list[str]:
        """Assemble the ffmpeg argument list."""
        return [
            self.ffmpeg_path,
            "-hide_banner",
            "-nostdin",
            "-y" if overwrite else "-n",
            *directives.input_args(),
            "-i",
            str(input_path),
            *directives.output_args(),
            str(output_path),
        ]

    async def probe(self, path: Path) -> dict[str, Any]:
        return await self._ffprobe.probe_async(path, timeout=self.probe_timeout)

    async def _input_duration(self, path: Path) -> float:
        try:
            report = await self.probe(path)
            return float(report.get("format", {}).get("duration") or 0.0)
        except (CommandError, ValueError) as e:
            logger.debug("Could not read duration of %s: %s", path, e)
            return 0.0

    async def run(
        self,
        input_path: Path,
        output_path: Path,
        directives: CompiledDirectives,
        *,
        overwrite: bool,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[EngineEvent]:
        command = self.build_command(input_path, output_path, directives, overwrite=overwrite)
        command_line = shlex.join(command)
        parser = ProgressParser(await self._input_duration(input_path))

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Cannot start %s: %s", self.ffmpeg_path, e)
            yield EngineEvent(EngineEventType.ERROR, message=f"Cannot start ffmpeg: {e}")
            return

        logger.debug("Started ffmpeg (pid %s): %s", process.pid, command_line)
        yield EngineEvent(EngineEventType.START, command_line=command_line)

        splitter = LineSplitter()
        # A multi-byte character may straddle two reads
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)
        cancelled = False
        cancel_waiter = asyncio.ensure_future(cancel_token.wait()) if cancel_token else None

        try:
            while process.stderr is not None:
                read = asyncio.ensure_future(process.stderr.read(STDERR_CHUNK_SIZE))
                waiting = {read} if cancel_waiter is None else {read, cancel_waiter}
                done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)

                if read not in done:
                    read.cancel()
                    cancelled = True
                    break

                chunk = read.result()
                if not chunk:
                    break

                for line in splitter.feed(decoder.decode(chunk)):
                    stats = parser.parse_line(line)
                    if stats is None:
                        tail.append(line.strip())
                    elif parser.total_duration > 0:
                        yield EngineEvent(EngineEventType.PROGRESS, percent=stats.percentage)

            if cancelled:
                logger.info("Cancelling ffmpeg (pid %s)", process.pid)
                process.terminate()
            await process.wait()
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()
            if process.returncode is None:
                process.kill()
                await process.wait()

        tail.extend(line.strip() for line in splitter.feed(decoder.decode(b"", final=True)))
        tail.extend(line.strip() for line in splitter.flush())

        if cancelled:
            yield EngineEvent(EngineEventType.ERROR, message="Conversion cancelled", cancelled=True)
        elif process.returncode == 0:
            yield EngineEvent(EngineEventType.END)
        else:
            detail = "\n".join(tail) or "no error output"
            yield EngineEvent(
                EngineEventType.ERROR,
                message=f"ffmpeg exited with code {process.returncode}: {detail}",
            )


__all__ = [
    "CancellationToken",
    "EngineEvent",
    "EngineEventType",
    "FFmpegEngine",
    "MediaEngine",
]
