"""Centralized constants for video_mcp.

This module contains the limits, allowlists and default values used
throughout the application. Import from here to ensure consistency.

Example:
    >>> from video_mcp.utils.constants import (
    ...     MAX_INPUT_FILE_SIZE,
    ...     SUPPORTED_OUTPUT_FORMATS,
    ...     VIDEO_EXTENSIONS,
    ... )
    >>> "mp4" in SUPPORTED_OUTPUT_FORMATS
    True
"""

from __future__ import annotations

# =============================================================================
# Size Units (bytes)
# =============================================================================
BYTES_PER_KB = 1024
BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024 * 1024 * 1024

# =============================================================================
# Time Units (seconds)
# =============================================================================
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600

# =============================================================================
# Timeouts (seconds)
# =============================================================================
PROBE_TIMEOUT = 30.0
ENGINE_VERSION_CHECK_TIMEOUT = 5.0

# =============================================================================
# Formats
# =============================================================================
# Conversion targets, in the order they are advertised
SUPPORTED_OUTPUT_FORMATS = ("mp4", "avi", "mov", "wmv", "mkv", "webm", "m4v")

# The batch tool schema also advertises flv; format validation still rejects it
BATCH_ADVERTISED_FORMATS = ("mp4", "avi", "mov", "wmv", "flv", "mkv", "webm", "m4v")

FORMAT_MIME_TYPES: dict[str, tuple[str, ...]] = {
    "mp4": ("video/mp4", "video/x-mp4"),
    "avi": ("video/avi", "video/x-msvideo"),
    "mov": ("video/quicktime", "video/x-quicktime"),
    "wmv": ("video/x-ms-wmv", "video/x-ms-asf"),
    "mkv": ("video/x-matroska",),
    "webm": ("video/webm",),
    "m4v": ("video/x-m4v",),
}

QUALITY_PRESETS = ("low", "medium", "high", "ultra")

# Accepted source extensions, broader than the target set, with the MIME
# type each one is checked against
VIDEO_EXTENSION_MIME_TYPES: dict[str, str] = {
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mov": "video/quicktime",
    ".wmv": "video/x-ms-wmv",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".m4v": "video/x-m4v",
    ".mpg": "video/mpeg",
    ".mpeg": "video/mpeg",
    ".3gp": "video/3gpp",
    ".asf": "video/x-ms-asf",
    ".rm": "video/vnd.rn-realvideo",
    ".rmvb": "video/vnd.rn-realvideo",
}

VIDEO_EXTENSIONS = frozenset(VIDEO_EXTENSION_MIME_TYPES)

# =============================================================================
# Validation Limits
# =============================================================================
MAX_INPUT_FILE_SIZE = 10 * BYTES_PER_GB

MAX_WIDTH = 7680
MAX_HEIGHT = 4320

MAX_VIDEO_BITRATE_KBPS = 50_000
MAX_AUDIO_BITRATE_KBPS = 320

MAX_FRAME_RATE = 120

MAX_FILENAME_LENGTH = 255

# =============================================================================
# Encoding
# =============================================================================
DEFAULT_ENCODER_PRESET = "medium"
DEFAULT_QUALITY_FACTOR = 23
MAX_MUXING_QUEUE_SIZE = 1024

# =============================================================================
# Output naming
# =============================================================================
CONVERTED_SUFFIX = "_converted"


# =============================================================================
# Helper Functions
# =============================================================================


def bytes_to_megabytes(size_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals.

    Example:
        >>> bytes_to_megabytes(5 * 1024 * 1024)
        '5.00 MB'
    """
    return f"{size_bytes / BYTES_PER_MB:.2f} MB"


def format_clock(seconds: float) -> str:
    """Format a duration as ``H:MM:SS`` or ``M:SS``.

    Args:
        seconds: Duration in seconds.

    Returns:
        Clock-style string, or ``"unknown"`` for non-positive durations.

    Example:
        >>> format_clock(75)
        '1:15'
        >>> format_clock(3725)
        '1:02:05'
    """
    if seconds <= 0:
        return "unknown"

    hours = int(seconds // SECONDS_PER_HOUR)
    minutes = int((seconds % SECONDS_PER_HOUR) // SECONDS_PER_MINUTE)
    secs = int(seconds % SECONDS_PER_MINUTE)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_bitrate(bits_per_second: int | None) -> str:
    """Format a stream bitrate in kbps, or ``"unknown"`` when absent."""
    if bits_per_second is None or bits_per_second <= 0:
        return "unknown"
    return f"{round(bits_per_second / 1000)} kbps"


__all__ = [
    "BYTES_PER_KB",
    "BYTES_PER_MB",
    "BYTES_PER_GB",
    "SECONDS_PER_MINUTE",
    "SECONDS_PER_HOUR",
    "PROBE_TIMEOUT",
    "ENGINE_VERSION_CHECK_TIMEOUT",
    "SUPPORTED_OUTPUT_FORMATS",
    "BATCH_ADVERTISED_FORMATS",
    "FORMAT_MIME_TYPES",
    "QUALITY_PRESETS",
    "VIDEO_EXTENSIONS",
    "VIDEO_EXTENSION_MIME_TYPES",
    "MAX_INPUT_FILE_SIZE",
    "MAX_WIDTH",
    "MAX_HEIGHT",
    "MAX_VIDEO_BITRATE_KBPS",
    "MAX_AUDIO_BITRATE_KBPS",
    "MAX_FRAME_RATE",
    "MAX_FILENAME_LENGTH",
    "DEFAULT_ENCODER_PRESET",
    "DEFAULT_QUALITY_FACTOR",
    "MAX_MUXING_QUEUE_SIZE",
    "CONVERTED_SUFFIX",
    "bytes_to_megabytes",
    "format_clock",
    "format_bitrate",
]
