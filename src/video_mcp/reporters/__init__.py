"""Report generation for batch conversions."""

from video_mcp.reporters.batch_reporter import BatchReporter

__all__ = ["BatchReporter"]
