"""Conversion engine, per-format encoding profiles and job execution.

The engine runs ffmpeg and reports progress as an event stream; the
executor turns one ``ConversionRequest`` into a verified output file.
"""

from video_mcp.converters.engine import (
    CancellationToken,
    EngineEvent,
    EngineEventType,
    FFmpegEngine,
    MediaEngine,
)
from video_mcp.converters.executor import ActiveJobRegistry, JobExecutor, remediation_hint
from video_mcp.converters.formats import (
    FORMAT_PROFILES,
    CompiledDirectives,
    FormatProfile,
    compile_directives,
    get_profile,
)
from video_mcp.converters.progress import EncodeStats, LineSplitter, ProgressParser

__all__ = [
    # Engine
    "CancellationToken",
    "EngineEvent",
    "EngineEventType",
    "FFmpegEngine",
    "MediaEngine",
    # Execution
    "ActiveJobRegistry",
    "JobExecutor",
    "remediation_hint",
    # Format profiles
    "FORMAT_PROFILES",
    "CompiledDirectives",
    "FormatProfile",
    "compile_directives",
    "get_profile",
    # Progress parsing
    "EncodeStats",
    "LineSplitter",
    "ProgressParser",
]
