"""Parsing of ffmpeg's stderr statistics lines.

ffmpeg rewrites its stats line in place, ending each update with ``\\r``
instead of ``\\n``. ``LineSplitter`` turns raw stderr chunks into lines on
either terminator and ``ProgressParser`` extracts the encode position from
each stats line.

Example:
    >>> parser = ProgressParser(total_duration=10.0)
    >>> line = "frame=  150 fps= 60 q=28.0 size=512kB time=00:00:05.00 speed=2.0x"
    >>> stats = parser.parse_line(line)
    >>> stats.percentage
    50.0
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass
class EncodeStats:
    """One ffmpeg stats update.

    Attributes:
        frame: Frames encoded so far.
        fps: Encoding frames per second.
        current_time: Output position in seconds.
        total_time: Input duration in seconds, 0 when unknown.
        current_size: Bytes written so far.
        bitrate: Current bitrate in kbps.
        speed: Realtime multiplier.
    """

    frame: int = 0
    fps: float = 0.0
    current_time: float = 0.0
    total_time: float = 0.0
    current_size: int = 0
    bitrate: float = 0.0
    speed: float = 0.0

    @property
    def percentage(self) -> float:
        """Completion from 0.0 to 100.0, 0.0 when the duration is unknown."""
        if self.total_time <= 0:
            return 0.0
        return max(0.0, min(100.0, self.current_time / self.total_time * 100))


class ProgressParser:
    """Extract ``EncodeStats`` from ffmpeg stats lines."""

    _FRAME_PATTERN = re.compile(r"frame=\s*(\d+)")
    _FPS_PATTERN = re.compile(r"fps=\s*([\d.]+)")
    _SIZE_PATTERN = re.compile(r"L?size=\s*(\d+)(kB|KiB)")
    _TIME_PATTERN = re.compile(r"time=\s*(-?)(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")
    _BITRATE_PATTERN = re.compile(r"bitrate=\s*([\d.]+)kbits/s")
    _SPEED_PATTERN = re.compile(r"speed=\s*([\d.]+)x")

    def __init__(self, total_duration: float = 0.0) -> None:
        self.total_duration = max(0.0, total_duration)
        self._last_stats: EncodeStats | None = None

    def parse_line(self, line: str) -> EncodeStats | None:
        """Parse one stderr line.

        Returns:
            The parsed stats, or None when the line carries no position.
        """
        time_match = self._TIME_PATTERN.search(line)
        if time_match is None:
            return None

        negative, hours, minutes, seconds = time_match.groups()
        position = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
        stats = EncodeStats(
            current_time=0.0 if negative else position,
            total_time=self.total_duration,
        )

        if match := self._FRAME_PATTERN.search(line):
            stats.frame = int(match.group(1))
        if match := self._FPS_PATTERN.search(line):
            stats.fps = float(match.group(1))
        if match := self._SIZE_PATTERN.search(line):
            stats.current_size = int(match.group(1)) * 1024
        if match := self._BITRATE_PATTERN.search(line):
            stats.bitrate = float(match.group(1))
        if match := self._SPEED_PATTERN.search(line):
            stats.speed = float(match.group(1))

        self._last_stats = stats
        return stats

    @property
    def last_stats(self) -> EncodeStats | None:
        return self._last_stats


class LineSplitter:
    """Accumulate decoded stderr chunks and emit complete lines.

    Both ``\\r`` and ``\\n`` end a line. Empty lines are dropped.
    """

    _TERMINATORS = re.compile(r"[\r\n]")

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, chunk: str) -> list[str]:
        parts = self._TERMINATORS.split(self._pending + chunk)
        self._pending = parts.pop()
        return [part for part in parts if part.strip()]

    def flush(self) -> list[str]:
        rest, self._pending = self._pending, ""
        return [rest] if rest.strip() else []


__all__ = ["EncodeStats", "LineSplitter", "ProgressParser"]
