"""Video metadata extraction.

This module turns the engine's raw probe report into a ``VideoInfo``
snapshot. Containers such as ASF/WMV often omit the container duration, so
duration is resolved by trying, in order, the container, the video stream,
the audio stream and finally frame count divided by frame rate.

Example:
    >>> extractor = InfoExtractor(FFmpegEngine())
    >>> info = await extractor.extract(Path("clip.wmv"))
    >>> format_clock(info.duration)
    '1:15'
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from video_mcp.core.errors import ProbeError
from video_mcp.core.types import AudioStreamInfo, VideoInfo, VideoStreamInfo
from video_mcp.utils.command_runner import CommandError, CommandExecutionError
from video_mcp.utils.constants import bytes_to_megabytes, format_bitrate, format_clock

if TYPE_CHECKING:
    from video_mcp.converters.engine import MediaEngine

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def parse_frame_rate(value: Any) -> float:
    """Parse an ffprobe rate such as ``"30000/1001"``.

    Returns:
        Frames per second rounded to two decimals, or 0.0 when the value is
        missing, malformed or has a zero denominator.

    Example:
        >>> parse_frame_rate("30000/1001")
        29.97
        >>> parse_frame_rate("25/0")
        0.0
    """
    if value is None or value == "":
        return 0.0

    text = str(value)
    try:
        if "/" in text:
            numerator, denominator = (float(part) for part in text.split("/", 1))
            if denominator == 0:
                return 0.0
            return round(numerator / denominator, 2)
        return float(text)
    except ValueError:
        return 0.0


def _positive_float(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if number > 0 else 0.0


def _optional_bitrate(value: Any) -> int | None:
    try:
        bitrate = int(float(value))
    except (TypeError, ValueError):
        return None
    return bitrate if bitrate > 0 else None


def _first_stream(streams: list[dict[str, Any]], codec_type: str) -> dict[str, Any] | None:
    for stream in streams:
        if stream.get("codec_type") == codec_type:
            return stream
    return None


def resolve_duration(
    format_info: dict[str, Any],
    video_stream: dict[str, Any] | None,
    audio_stream: dict[str, Any] | None,
) -> float:
    """Return the first positive duration among the fallback sources."""
    duration = _positive_float(format_info.get("duration"))
    if duration:
        return duration

    for stream in (video_stream, audio_stream):
        if stream is not None:
            duration = _positive_float(stream.get("duration"))
            if duration:
                return duration

    if video_stream is not None:
        frames = _positive_float(video_stream.get("nb_frames"))
        fps = parse_frame_rate(video_stream.get("r_frame_rate"))
        if frames and fps > 0:
            return frames / fps

    return 0.0


class InfoExtractor:
    """Probe files through a ``MediaEngine`` and normalise the result."""

    def __init__(self, engine: MediaEngine) -> None:
        self._engine = engine

    async def extract(self, path: Path) -> VideoInfo:
        """Probe a file and build its ``VideoInfo``.

        Raises:
            ProbeError: If the probe fails or the file cannot be read.
        """
        path = Path(path)
        try:
            report = await self._engine.probe(path)
        except CommandExecutionError as e:
            raise ProbeError(path, e.stderr.strip() or str(e)) from e
        except CommandError as e:
            raise ProbeError(path, str(e)) from e

        try:
            size = path.stat().st_size
        except OSError as e:
            raise ProbeError(path, str(e)) from e

        return self.from_report(path, report, size)

    @staticmethod
    def from_report(path: Path, report: dict[str, Any], size: int) -> VideoInfo:
        """Build a ``VideoInfo`` from a raw probe report."""
        format_info = report.get("format") or {}
        streams = report.get("streams") or []
        video_stream = _first_stream(streams, "video")
        audio_stream = _first_stream(streams, "audio")

        video = None
        if video_stream is not None:
            video = VideoStreamInfo(
                codec=video_stream.get("codec_name") or UNKNOWN,
                width=int(video_stream.get("width") or 0),
                height=int(video_stream.get("height") or 0),
                frame_rate=parse_frame_rate(video_stream.get("r_frame_rate")),
                bitrate=_optional_bitrate(video_stream.get("bit_rate")),
            )

        audio = None
        if audio_stream is not None:
            audio = AudioStreamInfo(
                codec=audio_stream.get("codec_name") or UNKNOWN,
                sample_rate=int(_positive_float(audio_stream.get("sample_rate"))),
                channels=int(audio_stream.get("channels") or 0),
                bitrate=_optional_bitrate(audio_stream.get("bit_rate")),
            )

        duration = resolve_duration(format_info, video_stream, audio_stream)
        if duration == 0:
            logger.debug("No usable duration for %s", path)

        return VideoInfo(
            file_path=path,
            format=format_info.get("format_name") or UNKNOWN,
            size=size,
            duration=duration,
            video=video,
            audio=audio,
        )


def format_video_info(info: VideoInfo) -> dict[str, Any]:
    """Human-readable view of a ``VideoInfo``."""
    formatted: dict[str, Any] = {
        "general": {
            "file_path": str(info.file_path),
            "format": info.format,
            "size": bytes_to_megabytes(info.size),
            "duration": format_clock(info.duration),
        },
        "video": None,
        "audio": None,
    }
    if info.video is not None:
        formatted["video"] = {
            "codec": info.video.codec,
            "resolution": f"{info.video.width} x {info.video.height}",
            "frame_rate": f"{info.video.frame_rate:.2f} fps",
            "bitrate": format_bitrate(info.video.bitrate),
        }
    if info.audio is not None:
        formatted["audio"] = {
            "codec": info.audio.codec,
            "sample_rate": f"{info.audio.sample_rate} Hz",
            "channels": info.audio.channels,
            "bitrate": format_bitrate(info.audio.bitrate),
        }
    return formatted


def summarize_video_info(info: VideoInfo) -> dict[str, str]:
    """Compact view used in conversion responses."""
    return {
        "format": info.format,
        "size": bytes_to_megabytes(info.size),
        "duration": f"{round(info.duration)} s",
        "resolution": info.resolution_label,
        "video_codec": info.video.codec if info.video else UNKNOWN,
        "audio_codec": info.audio.codec if info.audio else UNKNOWN,
    }


__all__ = [
    "InfoExtractor",
    "format_video_info",
    "parse_frame_rate",
    "resolve_duration",
    "summarize_video_info",
]
