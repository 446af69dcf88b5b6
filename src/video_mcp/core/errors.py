"""Exception hierarchy for video_mcp.

Validation errors are raised before any engine process is spawned.
Engine and verification errors are raised by the job executor after the
job has transitioned to its failed state. Handlers convert every
``VideoMcpError`` into a ``{"success": false, "error": ...}`` response.

Example:
    >>> from video_mcp.core.errors import FormatValidationError, VideoMcpError
    >>> try:
    ...     raise FormatValidationError("Unsupported output format: gif")
    ... except VideoMcpError as e:
    ...     print(e)
    Unsupported output format: gif
"""

from __future__ import annotations

from pathlib import Path


class VideoMcpError(Exception):
    """Base class for all video_mcp errors."""


class InputValidationError(VideoMcpError):
    """Raised when an input file is missing, empty, oversized or not a video.

    Attributes:
        path: Offending input path, if known.
        reason: Why the input was rejected.
    """

    def __init__(self, reason: str, path: Path | None = None) -> None:
        self.path = path
        self.reason = reason
        super().__init__(reason)


class FormatValidationError(VideoMcpError):
    """Raised when the target format or a conversion option is unsupported."""


class OutputPathError(VideoMcpError):
    """Raised when the output location cannot be used.

    Attributes:
        path: Rejected output path.
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class EngineInvocationError(VideoMcpError):
    """Raised when the transcoding engine reported a failure.

    Attributes:
        raw_message: Message reported by the engine.
        hint: Remediation hint for a recognised failure signature.
    """

    def __init__(self, raw_message: str, hint: str | None = None) -> None:
        self.raw_message = raw_message
        self.hint = hint
        message = raw_message if hint is None else f"{raw_message}. {hint}"
        super().__init__(message)


class JobCancelledError(EngineInvocationError):
    """Raised when a job was cancelled through its cancellation token."""

    def __init__(self, raw_message: str = "Conversion cancelled") -> None:
        super().__init__(raw_message)


class OutputVerificationError(VideoMcpError):
    """Raised when the engine succeeded but the output file is unusable.

    Attributes:
        path: The output file that failed verification.
        reason: Which check failed.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Conversion completed but output verification failed: {reason}")


class ProbeError(VideoMcpError):
    """Raised when the metadata probe cannot read a file.

    Attributes:
        path: Probed file.
        engine_message: Message reported by the probe.
    """

    def __init__(self, path: Path, engine_message: str) -> None:
        self.path = path
        self.engine_message = engine_message
        super().__init__(f"Failed to get video info: {engine_message}")


class BatchAbortedError(VideoMcpError):
    """Raised when a batch is rejected before any conversion ran.

    Attributes:
        invalid_files: ``(path, reason)`` pairs when no input was valid.
        conflicts: Output paths claimed by several inputs, or that already
            exist when overwrite is off.
    """

    def __init__(
        self,
        message: str,
        *,
        invalid_files: list[tuple[Path, str]] | None = None,
        conflicts: list[Path] | None = None,
    ) -> None:
        self.invalid_files = invalid_files or []
        self.conflicts = conflicts or []
        super().__init__(message)


class EngineUnavailableError(VideoMcpError):
    """Raised at startup when the ffmpeg binary is missing or broken."""


__all__ = [
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
]
