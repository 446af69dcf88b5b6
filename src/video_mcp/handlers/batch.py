"""``batch_convert`` tool handler."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from video_mcp.core.errors import BatchAbortedError, FormatValidationError, VideoMcpError
from video_mcp.core.types import QualityPreset

if TYPE_CHECKING:
    from video_mcp.converters.engine import CancellationToken
    from video_mcp.core.types import BatchProgressCallback
    from video_mcp.handlers.context import ToolContext
    from video_mcp.handlers.models import BatchConvertArgs

logger = logging.getLogger(__name__)


async def handle_batch_convert(
    ctx: ToolContext,
    args: BatchConvertArgs,
    on_progress: BatchProgressCallback | None = None,
    cancel_token: CancellationToken | None = None,
) -> dict[str, Any]:
    """Convert a set of videos and report per-file results.

    ``success`` is true for a complete or a partial success.
    """
    try:
        quality = ctx.default_quality
        if args.quality is not None:
            check = ctx.validator.validate_quality(args.quality)
            if not check:
                raise FormatValidationError(check.error)
            quality = QualityPreset(args.quality.lower())

        report = await ctx.orchestrator.run(
            [Path(path).expanduser() for path in args.input_files],
            output_format=args.output_format,
            output_dir=Path(args.output_dir).expanduser(),
            quality=quality,
            overwrite=args.overwrite,
            on_progress=on_progress,
            cancel_token=cancel_token,
        )
    except BatchAbortedError as e:
        logger.error("batch_convert aborted: %s", e)
        response: dict[str, Any] = {"success": False, "error": str(e)}
        if e.invalid_files:
            response["invalid_files"] = [
                {"path": str(path), "error": reason} for path, reason in e.invalid_files
            ]
        if e.conflicts:
            response["conflicts"] = [str(path) for path in e.conflicts]
        return response
    except VideoMcpError as e:
        logger.error("batch_convert failed: %s", e)
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception("Unexpected error in batch_convert")
        return {"success": False, "error": f"Batch conversion failed: {e}"}

    logger.info("\n%s", ctx.reporter.format_summary(report))
    return {
        "success": report.success,
        "message": ctx.reporter.outcome_message(report),
        "data": ctx.reporter.to_dict(report),
    }


__all__ = ["handle_batch_convert"]
