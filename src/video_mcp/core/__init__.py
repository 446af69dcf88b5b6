"""Core types, configuration, errors and logging.

Note:
    To avoid circular imports, BatchOrchestrator is imported separately:
    >>> from video_mcp.core.orchestrator import BatchOrchestrator
"""

from video_mcp.core.config import Config, ConversionConfig, EngineConfig, LoggingConfig
from video_mcp.core.errors import (
    BatchAbortedError,
    EngineInvocationError,
    EngineUnavailableError,
    FormatValidationError,
    InputValidationError,
    JobCancelledError,
    OutputPathError,
    OutputVerificationError,
    ProbeError,
    VideoMcpError,
)
from video_mcp.core.logger import configure_logging, get_logger, set_log_level
from video_mcp.core.types import (
    AudioStreamInfo,
    BatchOutcome,
    BatchReport,
    BatchTask,
    ConversionJob,
    ConversionRequest,
    FileFailure,
    InvalidFile,
    JobStatus,
    QualityPreset,
    Resolution,
    ValidationResult,
    VideoFormat,
    VideoInfo,
    VideoStreamInfo,
)

__all__ = [
    # Configuration
    "Config",
    "ConversionConfig",
    "EngineConfig",
    "LoggingConfig",
    # Errors
    "VideoMcpError",
    "InputValidationError",
    "FormatValidationError",
    "OutputPathError",
    "EngineInvocationError",
    "JobCancelledError",
    "OutputVerificationError",
    "ProbeError",
    "BatchAbortedError",
    "EngineUnavailableError",
    # Logging
    "configure_logging",
    "get_logger",
    "set_log_level",
    # Types
    "AudioStreamInfo",
    "BatchOutcome",
    "BatchReport",
    "BatchTask",
    "ConversionJob",
    "ConversionRequest",
    "FileFailure",
    "InvalidFile",
    "JobStatus",
    "QualityPreset",
    "Resolution",
    "ValidationResult",
    "VideoFormat",
    "VideoInfo",
    "VideoStreamInfo",
]
