"""Core type definitions for the video conversion workflow.

This module defines the data classes shared by the validator, the format
compiler, the job executor, the batch orchestrator and the info extractor.

Example:
    >>> from video_mcp.core.types import ConversionRequest, QualityPreset
    >>> request = ConversionRequest(
    ...     input_path=Path("clip.avi"),
    ...     output_format="mp4",
    ...     quality=QualityPreset.HIGH,
    ... )
    >>> request.resolved_output_path()
    PosixPath('clip_converted.mp4')
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from video_mcp.utils.constants import CONVERTED_SUFFIX


class VideoFormat(Enum):
    """Closed set of supported conversion targets."""

    MP4 = "mp4"
    AVI = "avi"
    MOV = "mov"
    WMV = "wmv"
    MKV = "mkv"
    WEBM = "webm"
    M4V = "m4v"

    @classmethod
    def values(cls) -> list[str]:
        """Return the format tags in declaration order."""
        return [member.value for member in cls]


class QualityPreset(Enum):
    """Quality presets, ordered from lowest to highest quality.

    Attributes:
        LOW: Small files, visible compression.
        MEDIUM: Balanced default.
        HIGH: High quality.
        ULTRA: Near-transparent quality, largest files.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    ULTRA = "ultra"


class JobStatus(Enum):
    """Lifecycle state of a single conversion job.

    Attributes:
        PENDING: Job constructed, engine not started yet.
        PROCESSING: Engine reported start.
        COMPLETED: Engine finished and the output passed verification.
        FAILED: Engine error, cancellation or failed output verification.
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Check whether no further transition can happen."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class BatchOutcome(Enum):
    """Overall classification of a batch run."""

    COMPLETE_SUCCESS = "complete_success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


@dataclass(frozen=True)
class Resolution:
    """Output frame size in pixels."""

    width: int
    height: int

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a single validation check.

    Attributes:
        is_valid: Whether the value passed the check.
        error: Human-readable reason when the check failed.
        resolution: Parsed resolution, set only by resolution checks.
    """

    is_valid: bool
    error: str | None = None
    resolution: Resolution | None = None

    @classmethod
    def ok(cls, resolution: Resolution | None = None) -> ValidationResult:
        """Create a passing result."""
        return cls(is_valid=True, resolution=resolution)

    @classmethod
    def fail(cls, error: str) -> ValidationResult:
        """Create a failing result with a reason."""
        return cls(is_valid=False, error=error)

    def __bool__(self) -> bool:
        return self.is_valid


@dataclass(frozen=True)
class ConversionRequest:
    """Caller-supplied parameters for one conversion.

    Attributes:
        input_path: Source video file.
        output_format: Target format tag (e.g. "mp4").
        output_path: Explicit destination; synthesised when None.
        quality: Optional quality preset.
        resolution: Optional output frame size.
        video_bitrate: Optional video bitrate in kbps.
        audio_bitrate: Optional audio bitrate in kbps.
        frame_rate: Optional output frame rate in fps.
        overwrite: Whether an existing output file may be replaced.
    """

    input_path: Path
    output_format: str
    output_path: Path | None = None
    quality: QualityPreset | None = None
    resolution: Resolution | None = None
    video_bitrate: int | None = None
    audio_bitrate: int | None = None
    frame_rate: float | None = None
    overwrite: bool = False

    def __post_init__(self) -> None:
        """Normalize field types."""
        if isinstance(self.input_path, str):
            object.__setattr__(self, "input_path", Path(self.input_path))
        if isinstance(self.output_path, str):
            object.__setattr__(self, "output_path", Path(self.output_path))
        if isinstance(self.quality, str):
            object.__setattr__(self, "quality", QualityPreset(self.quality))
        object.__setattr__(self, "output_format", self.output_format.lower())

    def resolved_output_path(self) -> Path:
        """Return the explicit output path or ``<dir>/<stem>_converted.<fmt>``."""
        if self.output_path is not None:
            return self.output_path
        return self.input_path.parent / (
            f"{self.input_path.stem}{CONVERTED_SUFFIX}.{self.output_format}"
        )

    def to_options_dict(self) -> dict[str, Any]:
        """Return the effective conversion options as a JSON-friendly dict."""
        options: dict[str, Any] = {
            "output_format": self.output_format,
            "overwrite": self.overwrite,
        }
        if self.quality is not None:
            options["quality"] = self.quality.value
        if self.resolution is not None:
            options["resolution"] = {
                "width": self.resolution.width,
                "height": self.resolution.height,
            }
        if self.video_bitrate is not None:
            options["video_bitrate"] = self.video_bitrate
        if self.audio_bitrate is not None:
            options["audio_bitrate"] = self.audio_bitrate
        if self.frame_rate is not None:
            options["frame_rate"] = self.frame_rate
        return options


@dataclass
class ConversionJob:
    """Runtime state of one conversion, owned by the job executor.

    Attributes:
        task_id: Process-unique opaque identifier.
        input_path: Source video file.
        output_path: Destination file.
        status: Current lifecycle state.
        progress: Integer percentage 0-100.
        error: Failure reason once the job failed.
        started_at: When the job was created.
        completed_at: When the job reached a terminal state.
    """

    task_id: str
    input_path: Path
    output_path: Path
    status: JobStatus = JobStatus.PENDING
    progress: int = 0
    error: str | None = None
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None

    def mark_processing(self) -> None:
        self.status = JobStatus.PROCESSING

    def update_progress(self, percent: float) -> None:
        """Store a rounded progress value clamped to 0-100."""
        self.progress = max(0, min(100, round(percent)))

    def mark_completed(self) -> None:
        self.status = JobStatus.COMPLETED
        self.progress = 100
        self.completed_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        self.status = JobStatus.FAILED
        self.error = error
        self.completed_at = datetime.now()

    def snapshot(self) -> ConversionJob:
        """Return an independent copy of the current state."""
        return copy.copy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "task_id": self.task_id,
            "input_path": str(self.input_path),
            "output_path": str(self.output_path),
            "status": self.status.value,
            "progress": self.progress,
            "error": self.error,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


# Invoked inline for every engine event with a snapshot of the job
JobProgressCallback = Callable[[ConversionJob], None]

# Batch variant: receives the task id alongside the snapshot
BatchProgressCallback = Callable[[str, ConversionJob], None]


@dataclass(frozen=True)
class VideoStreamInfo:
    """First video stream of a probed file.

    Attributes:
        codec: Codec name (e.g. "h264").
        width: Frame width in pixels.
        height: Frame height in pixels.
        frame_rate: Frames per second, 0 when unknown.
        bitrate: Bits per second, None when unknown.
    """

    codec: str
    width: int
    height: int
    frame_rate: float
    bitrate: int | None = None


@dataclass(frozen=True)
class AudioStreamInfo:
    """First audio stream of a probed file."""

    codec: str
    sample_rate: int
    channels: int
    bitrate: int | None = None


@dataclass(frozen=True)
class VideoInfo:
    """Read-only metadata snapshot of a video file.

    Attributes:
        file_path: Probed file.
        format: Container format label reported by the probe.
        size: File size in bytes.
        duration: Best-effort duration in seconds.
        video: First video stream, if any.
        audio: First audio stream, if any.
    """

    file_path: Path
    format: str
    size: int
    duration: float
    video: VideoStreamInfo | None = None
    audio: AudioStreamInfo | None = None

    @property
    def resolution_label(self) -> str:
        if self.video is None:
            return "unknown"
        return f"{self.video.width}x{self.video.height}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        data: dict[str, Any] = {
            "file_path": str(self.file_path),
            "format": self.format,
            "size": self.size,
            "duration": self.duration,
            "video": None,
            "audio": None,
        }
        if self.video is not None:
            data["video"] = {
                "codec": self.video.codec,
                "width": self.video.width,
                "height": self.video.height,
                "frame_rate": self.video.frame_rate,
                "bitrate": self.video.bitrate,
            }
        if self.audio is not None:
            data["audio"] = {
                "codec": self.audio.codec,
                "sample_rate": self.audio.sample_rate,
                "channels": self.audio.channels,
                "bitrate": self.audio.bitrate,
            }
        return data


@dataclass(frozen=True)
class InvalidFile:
    """An input rejected by validation."""

    path: Path
    reason: str


@dataclass(frozen=True)
class FileFailure:
    """An input whose conversion failed."""

    input_path: Path
    error: str


@dataclass
class BatchTask:
    """One planned conversion inside a batch.

    Attributes:
        input_path: Source video.
        output_path: Synthesised destination.
        status: Current state of this task.
        error: Failure reason, if failed.
    """

    input_path: Path
    output_path: Path
    status: JobStatus = JobStatus.PENDING
    error: str | None = None


@dataclass
class BatchReport:
    """Aggregate result of a batch conversion.

    Attributes:
        total_requested: Number of inputs passed by the caller.
        valid_count: Number of inputs that passed validation.
        succeeded: Output paths of successful conversions.
        failures: Per-input conversion failures.
        invalid: Per-input validation rejections.
        tasks: Every planned conversion with its final state.
        started_at: When the batch started.
        completed_at: When the batch finished.
    """

    total_requested: int
    valid_count: int
    succeeded: list[Path] = field(default_factory=list)
    failures: list[FileFailure] = field(default_factory=list)
    invalid: list[InvalidFile] = field(default_factory=list)
    tasks: list[BatchTask] = field(default_factory=list)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failures)

    @property
    def invalid_count(self) -> int:
        return len(self.invalid)

    @property
    def outcome(self) -> BatchOutcome:
        """Classify the batch from its success and failure counts."""
        if self.succeeded_count == 0:
            return BatchOutcome.FAILED
        if self.failed_count == 0:
            return BatchOutcome.COMPLETE_SUCCESS
        return BatchOutcome.PARTIAL_SUCCESS

    @property
    def success(self) -> bool:
        """True for complete or partial success."""
        return self.outcome != BatchOutcome.FAILED

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


__all__ = [
    "AudioStreamInfo",
    "BatchOutcome",
    "BatchProgressCallback",
    "BatchReport",
    "BatchTask",
    "ConversionJob",
    "ConversionRequest",
    "FileFailure",
    "InvalidFile",
    "JobProgressCallback",
    "JobStatus",
    "QualityPreset",
    "Resolution",
    "ValidationResult",
    "VideoFormat",
    "VideoInfo",
    "VideoStreamInfo",
]
