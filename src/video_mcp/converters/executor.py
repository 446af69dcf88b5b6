"""Single-job conversion executor.

``JobExecutor.convert()`` drives one conversion through the job state
machine::

    pending -> processing -> completed
                          -> failed

It checks preconditions, compiles the request into ffmpeg directives,
consumes the engine's event stream and verifies the output before the job
may complete. The caller's progress callback receives a snapshot of the
job for every event.

Running jobs are visible in an ``ActiveJobRegistry`` until they reach a
terminal state.

Example:
    >>> executor = JobExecutor(engine, OutputVerifier(InfoExtractor(engine)))
    >>> output = await executor.convert(
    ...     ConversionRequest(Path("clip.avi"), "mp4"),
    ...     on_progress=lambda job: print(job.status.value, job.progress),
    ... )
"""

from __future__ import annotations

import logging
import secrets
import string
import time
from contextlib import aclosing
from pathlib import Path
from typing import TYPE_CHECKING

from video_mcp.converters.engine import EngineEventType
from video_mcp.converters.formats import compile_directives
from video_mcp.core.errors import (
    EngineInvocationError,
    InputValidationError,
    JobCancelledError,
    OutputPathError,
    OutputVerificationError,
)
from video_mcp.core.types import ConversionJob, JobStatus
from video_mcp.utils.constants import DEFAULT_ENCODER_PRESET

if TYPE_CHECKING:
    from video_mcp.converters.engine import CancellationToken, MediaEngine
    from video_mcp.core.types import ConversionRequest, JobProgressCallback
    from video_mcp.processors.verification import OutputVerifier

logger = logging.getLogger(__name__)

TASK_ID_ALPHABET = string.digits + string.ascii_lowercase
TASK_ID_SUFFIX_LENGTH = 9

# Substring of the engine message -> remediation hint
REMEDIATION_HINTS: tuple[tuple[str, str], ...] = (
    (
        "moov atom not found",
        "Hint: the input file may be truncated or corrupted, check the source file",
    ),
    (
        "Invalid data found",
        "Hint: the input format may be unsupported or the file is damaged",
    ),
    (
        "No such file or directory",
        "Hint: check that the input path is correct",
    ),
    (
        "Permission denied",
        "Hint: check file permissions and that the output directory is writable",
    ),
    (
        "codec not found",
        "Hint: a required codec is missing, check the FFmpeg installation",
    ),
)


def remediation_hint(message: str) -> str | None:
    """Return the hint for the first known signature found in ``message``."""
    for signature, hint in REMEDIATION_HINTS:
        if signature in message:
            return hint
    return None


def generate_task_id() -> str:
    """Return ``task_<epoch-ms>_<9 base36 chars>``."""
    suffix = "".join(secrets.choice(TASK_ID_ALPHABET) for _ in range(TASK_ID_SUFFIX_LENGTH))
    return f"task_{int(time.time() * 1000)}_{suffix}"


class ActiveJobRegistry:
    """In-memory map of running jobs keyed by task id.

    Jobs are removed once they terminate, so a lookup for a finished job
    returns None.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, ConversionJob] = {}

    def new_task_id(self) -> str:
        task_id = generate_task_id()
        while task_id in self._jobs:
            task_id = generate_task_id()
        return task_id

    def register(self, job: ConversionJob) -> None:
        if job.task_id in self._jobs:
            raise ValueError(f"Task id already registered: {job.task_id}")
        self._jobs[job.task_id] = job

    def get(self, task_id: str) -> ConversionJob | None:
        """Return a snapshot of a running job, or None."""
        job = self._jobs.get(task_id)
        return job.snapshot() if job is not None else None

    def remove(self, task_id: str) -> None:
        self._jobs.pop(task_id, None)

    def active(self) -> list[ConversionJob]:
        return [job.snapshot() for job in self._jobs.values()]

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._jobs


class JobExecutor:
    """Run single conversions through a ``MediaEngine``.

    Attributes:
        registry: Registry of running jobs.
        encoder_preset: x264 speed preset passed to the format compiler.
    """

    def __init__(
        self,
        engine: MediaEngine,
        verifier: OutputVerifier,
        registry: ActiveJobRegistry | None = None,
        encoder_preset: str = DEFAULT_ENCODER_PRESET,
    ) -> None:
        self._engine = engine
        self._verifier = verifier
        self.registry = registry if registry is not None else ActiveJobRegistry()
        self.encoder_preset = encoder_preset

    def _check_preconditions(self, request: ConversionRequest, output_path: Path) -> None:
        input_path = request.input_path
        if not input_path.is_file():
            raise InputValidationError(f"Input file does not exist: {input_path}", input_path)

        if output_path.resolve() == input_path.resolve():
            raise OutputPathError(f"Output path is the input file: {output_path}", output_path)

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputPathError(
                f"Cannot create output directory {output_path.parent}: {e}", output_path
            ) from e

        if not request.overwrite and output_path.exists():
            raise OutputPathError(f"Output file already exists: {output_path}", output_path)

    @staticmethod
    def _notify(on_progress: JobProgressCallback | None, job: ConversionJob) -> None:
        if on_progress is None:
            return
        try:
            on_progress(job.snapshot())
        except Exception:
            logger.debug("Progress callback raised for %s", job.task_id, exc_info=True)

    @staticmethod
    def _discard_partial_output(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove partial output %s: %s", path, e)

    async def convert(
        self,
        request: ConversionRequest,
        on_progress: JobProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Path:
        """Convert one file.

        Args:
            request: The conversion request.
            on_progress: Called inline with a job snapshot for every event.
            cancel_token: Set it to terminate the engine and fail the job.

        Returns:
            The output path.

        Raises:
            InputValidationError: If the input file does not exist.
            OutputPathError: If the output cannot be created or already exists.
            EngineInvocationError: If the engine reported a failure.
            JobCancelledError: If the job was cancelled.
            OutputVerificationError: If the output failed verification.
        """
        output_path = request.resolved_output_path()
        self._check_preconditions(request, output_path)

        directives = compile_directives(request, encoder_preset=self.encoder_preset)
        job = ConversionJob(
            task_id=self.registry.new_task_id(),
            input_path=request.input_path,
            output_path=output_path,
        )
        self.registry.register(job)
        logger.info("[%s] Converting %s -> %s", job.task_id, job.input_path, output_path)

        try:
            events = self._engine.run(
                request.input_path,
                output_path,
                directives,
                overwrite=request.overwrite,
                cancel_token=cancel_token,
            )
            async with aclosing(events):
                async for event in events:
                    if event.type is EngineEventType.START:
                        job.mark_processing()
                        logger.debug("[%s] %s", job.task_id, event.command_line)

                    elif event.type is EngineEventType.PROGRESS:
                        job.update_progress(event.percent or 0.0)

                    elif event.type is EngineEventType.END:
                        result = await self._verifier.verify(output_path)
                        if not result.passed:
                            reason = result.details or "unknown reason"
                            job.mark_failed(f"Output verification failed: {reason}")
                            self._notify(on_progress, job)
                            logger.error("[%s] %s", job.task_id, job.error)
                            raise OutputVerificationError(output_path, reason)
                        job.mark_completed()

                    elif event.type is EngineEventType.ERROR:
                        raw = event.message or "unknown engine error"
                        job.mark_failed(raw)
                        self._notify(on_progress, job)
                        self._discard_partial_output(output_path)
                        if event.cancelled:
                            logger.warning("[%s] Cancelled", job.task_id)
                            raise JobCancelledError()
                        logger.error("[%s] %s", job.task_id, raw)
                        raise EngineInvocationError(raw, remediation_hint(raw))

                    self._notify(on_progress, job)

            if job.status is not JobStatus.COMPLETED:
                job.mark_failed("Engine stopped without reporting a result")
                self._notify(on_progress, job)
                raise EngineInvocationError(job.error or "")

            logger.info("[%s] Completed %s", job.task_id, output_path)
            return output_path
        finally:
            self.registry.remove(job.task_id)


__all__ = [
    "ActiveJobRegistry",
    "JobExecutor",
    "REMEDIATION_HINTS",
    "generate_task_id",
    "remediation_hint",
]
