"""``get_video_info`` tool handler."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from video_mcp.core.errors import InputValidationError, VideoMcpError
from video_mcp.processors.info_extractor import format_video_info

if TYPE_CHECKING:
    from video_mcp.handlers.context import ToolContext
    from video_mcp.handlers.models import GetVideoInfoArgs

logger = logging.getLogger(__name__)


async def handle_get_video_info(ctx: ToolContext, args: GetVideoInfoArgs) -> dict[str, Any]:
    """Return raw and human-readable metadata of a video file."""
    path = Path(args.file_path).expanduser()
    try:
        check = ctx.validator.validate_video_file(path)
        if not check:
            raise InputValidationError(f"File validation failed: {check.error}", path)

        logger.info("Reading video info: %s", path)
        info = await ctx.info_extractor.extract(path)
    except VideoMcpError as e:
        logger.error("get_video_info failed: %s", e)
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception("Unexpected error in get_video_info")
        return {"success": False, "error": f"Failed to get video info: {e}"}

    return {
        "success": True,
        "message": "Video info retrieved",
        "data": {"raw": info.to_dict(), "formatted": format_video_info(info)},
    }


__all__ = ["handle_get_video_info"]
