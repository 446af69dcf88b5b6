"""Batch conversion orchestrator.

The orchestrator validates a set of inputs, plans one output per valid
input (``<output_dir>/<input stem>.<format>``) and runs the conversions one
after another through the ``JobExecutor``. A failing file is recorded and
the batch moves on to the next one.

Three conditions abort the batch before any conversion runs: no valid
input at all, two inputs planned onto the same output, and, when
overwrite is off, any planned output that already exists.

Example:
    >>> orchestrator = BatchOrchestrator(Validator(), executor)
    >>> report = await orchestrator.run(
    ...     [Path("a.avi"), Path("b.mov")],
    ...     output_format="mp4",
    ...     output_dir=Path("converted"),
    ... )
    >>> report.outcome
    <BatchOutcome.COMPLETE_SUCCESS: 'complete_success'>
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from video_mcp.core.errors import (
    BatchAbortedError,
    FormatValidationError,
    InputValidationError,
    OutputPathError,
    VideoMcpError,
)
from video_mcp.core.types import (
    BatchReport,
    BatchTask,
    ConversionRequest,
    FileFailure,
    JobStatus,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from video_mcp.converters.engine import CancellationToken
    from video_mcp.converters.executor import JobExecutor
    from video_mcp.core.types import BatchProgressCallback, ConversionJob, QualityPreset
    from video_mcp.processors.validator import Validator

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    """Run many conversions sequentially with per-file failure isolation."""

    def __init__(self, validator: Validator, executor: JobExecutor) -> None:
        self._validator = validator
        self._executor = executor

    def plan_output_path(self, input_path: Path, output_format: str, output_dir: Path) -> Path:
        """Return ``<output_dir>/<input stem>.<format>`` with a safe file name."""
        name = self._validator.sanitize_filename(f"{input_path.stem}.{output_format}")
        return output_dir / name

    async def run(
        self,
        input_files: Sequence[Path],
        output_format: str,
        output_dir: Path,
        quality: QualityPreset | None = None,
        overwrite: bool = False,
        on_progress: BatchProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> BatchReport:
        """Convert every valid input.

        Args:
            input_files: Candidate input paths.
            output_format: Target format for all files.
            output_dir: Directory receiving the outputs.
            quality: Shared quality preset.
            overwrite: Whether existing outputs may be replaced.
            on_progress: Called with ``(task_id, job_snapshot)`` per job event.
            cancel_token: Cancels the running job and skips the rest.

        Returns:
            The batch report.

        Raises:
            InputValidationError: If ``input_files`` is empty.
            FormatValidationError: If the format is unsupported.
            BatchAbortedError: If no input is valid or outputs conflict.
            OutputPathError: If the output directory is unusable.
        """
        if not input_files:
            raise InputValidationError("Input file list must not be empty")

        output_format = output_format.lower()
        format_check = self._validator.validate_output_format(output_format)
        if not format_check:
            raise FormatValidationError(format_check.error)

        started_at = datetime.now()
        valid, invalid = self._validator.validate_input_files(input_files)
        if not valid:
            raise BatchAbortedError(
                "No valid input files",
                invalid_files=[(entry.path, entry.reason) for entry in invalid],
            )

        output_dir = Path(output_dir)
        dir_check = self._validator.validate_output_directory(output_dir)
        if not dir_check:
            raise OutputPathError(dir_check.error or "Output directory is unusable", output_dir)

        tasks = [
            BatchTask(path, self.plan_output_path(path, output_format, output_dir))
            for path in valid
        ]

        planned: set[Path] = set()
        shared: list[Path] = []
        for task in tasks:
            if task.output_path in planned and task.output_path not in shared:
                shared.append(task.output_path)
            planned.add(task.output_path)
        if shared:
            listed = ", ".join(str(path) for path in shared)
            raise BatchAbortedError(
                f"Several input files would be written to the same output: {listed}",
                conflicts=shared,
            )

        if not overwrite:
            conflicts = [task.output_path for task in tasks if task.output_path.exists()]
            if conflicts:
                listed = ", ".join(str(path) for path in conflicts)
                raise BatchAbortedError(
                    "Output files already exist, set overwrite to true or remove them: "
                    f"{listed}",
                    conflicts=conflicts,
                )

        report = BatchReport(
            total_requested=len(input_files),
            valid_count=len(valid),
            invalid=invalid,
            tasks=tasks,
            started_at=started_at,
        )

        logger.info(
            "Batch: %d file(s) to %s in %s (%d invalid)",
            len(tasks),
            output_format,
            output_dir,
            len(invalid),
        )

        for index, task in enumerate(tasks, start=1):
            if cancel_token is not None and cancel_token.is_cancelled:
                task.status = JobStatus.FAILED
                task.error = "Conversion cancelled"
                report.failures.append(FileFailure(task.input_path, task.error))
                continue

            logger.info("[%d/%d] %s", index, len(tasks), task.input_path.name)
            task.status = JobStatus.PROCESSING
            request = ConversionRequest(
                input_path=task.input_path,
                output_format=output_format,
                output_path=task.output_path,
                quality=quality,
                overwrite=overwrite,
            )

            def forward(job: ConversionJob) -> None:
                if on_progress is not None:
                    on_progress(job.task_id, job)

            try:
                output = await self._executor.convert(request, forward, cancel_token)
            except VideoMcpError as e:
                task.status = JobStatus.FAILED
                task.error = str(e)
                report.failures.append(FileFailure(task.input_path, task.error))
                logger.warning("Failed %s: %s", task.input_path, e)
            else:
                task.status = JobStatus.COMPLETED
                report.succeeded.append(output)

        report.completed_at = datetime.now()
        logger.info(
            "Batch finished: %d succeeded, %d failed, %d invalid",
            report.succeeded_count,
            report.failed_count,
            report.invalid_count,
        )
        return report


__all__ = ["BatchOrchestrator"]
