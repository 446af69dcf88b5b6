"""Formatting of batch conversion reports.

Example:
    >>> reporter = BatchReporter()
    >>> reporter.outcome_message(report)
    'Batch conversion partially completed'
    >>> print(reporter.format_summary(report))
"""

from __future__ import annotations

from typing import Any

from video_mcp.core.types import BatchOutcome, BatchReport

OUTCOME_MESSAGES = {
    BatchOutcome.COMPLETE_SUCCESS: "Batch conversion completed",
    BatchOutcome.PARTIAL_SUCCESS: "Batch conversion partially completed",
    BatchOutcome.FAILED: "Batch conversion failed",
}

MAX_LISTED_ERRORS = 10


def _format_duration(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.1f}s"
    if seconds < 3600:
        return f"{int(seconds // 60)}m {int(seconds % 60)}s"
    return f"{int(seconds // 3600)}h {int(seconds % 3600 // 60)}m"


class BatchReporter:
    """Render a ``BatchReport`` as text or as response data."""

    def outcome_message(self, report: BatchReport) -> str:
        return OUTCOME_MESSAGES[report.outcome]

    def counts(self, report: BatchReport) -> dict[str, int]:
        """Counts of the report; succeeded + failed + invalid equals total."""
        return {
            "total_files": report.total_requested,
            "valid_files": report.valid_count,
            "succeeded": report.succeeded_count,
            "failed": report.failed_count,
            "invalid": report.invalid_count,
        }

    def to_dict(self, report: BatchReport) -> dict[str, Any]:
        """Convert the report into the ``data`` section of a batch response."""
        return {
            "report": self.counts(report),
            "succeeded_files": [str(path) for path in report.succeeded],
            "failures": [
                {"file": str(failure.input_path), "error": failure.error}
                for failure in report.failures
            ],
            "invalid_files": [
                {"path": str(entry.path), "error": entry.reason} for entry in report.invalid
            ],
            "tasks": [
                {
                    "input_path": str(task.input_path),
                    "output_path": str(task.output_path),
                    "status": task.status.value,
                    "error": task.error,
                }
                for task in report.tasks
            ],
            "started_at": report.started_at.isoformat(),
            "completed_at": report.completed_at.isoformat() if report.completed_at else None,
            "duration_seconds": report.duration_seconds,
        }

    def format_summary(self, report: BatchReport) -> str:
        """Plain-text summary for terminals."""
        lines = ["=" * 50, "         Batch Conversion Report", "=" * 50, ""]

        lines.append(f"Started:      {report.started_at.strftime('%Y-%m-%d %H:%M:%S')}")
        if report.duration_seconds is not None:
            lines.append(f"Duration:     {_format_duration(report.duration_seconds)}")

        lines.extend(["", "-" * 50])
        lines.append(f"Total files:      {report.total_requested}")
        lines.append(f"Succeeded:        {report.succeeded_count}")
        lines.append(f"Failed:           {report.failed_count}")
        lines.append(f"Invalid:          {report.invalid_count}")
        lines.append(f"Status:           {report.outcome.value.replace('_', ' ').upper()}")

        problems = [f"{f.input_path.name}: {f.error}" for f in report.failures]
        problems += [f"{i.path.name}: {i.reason} (skipped)" for i in report.invalid]
        if problems:
            lines.extend(["", "-" * 50, "                 Errors", "-" * 50])
            lines.extend(f"  - {problem}" for problem in problems[:MAX_LISTED_ERRORS])
            if len(problems) > MAX_LISTED_ERRORS:
                lines.append(f"  ... and {len(problems) - MAX_LISTED_ERRORS} more")

        lines.extend(["", "=" * 50])
        return "\n".join(lines)


__all__ = ["BatchReporter", "OUTCOME_MESSAGES"]
