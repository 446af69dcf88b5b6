"""``convert_video`` tool handler.

Validation happens in this order, stopping at the first failure: input
file, output format, output path, then the optional quality, resolution,
bitrates and frame rate. The engine is not touched until every check has
passed.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from video_mcp.core.errors import (
    FormatValidationError,
    InputValidationError,
    OutputPathError,
    VideoMcpError,
)
from video_mcp.core.types import ConversionRequest, QualityPreset, Resolution
from video_mcp.processors.info_extractor import summarize_video_info

if TYPE_CHECKING:
    from video_mcp.converters.engine import CancellationToken
    from video_mcp.core.types import JobProgressCallback
    from video_mcp.handlers.context import ToolContext
    from video_mcp.handlers.models import ConvertVideoArgs

logger = logging.getLogger(__name__)


def build_request(ctx: ToolContext, args: ConvertVideoArgs) -> ConversionRequest:
    """Validate the arguments and build a ``ConversionRequest``.

    Raises:
        InputValidationError: If the input is not a usable video file.
        FormatValidationError: If the format or an option is invalid.
        OutputPathError: If the output path cannot be used.
    """
    validator = ctx.validator
    input_path = Path(args.input_path).expanduser()

    check = validator.validate_video_file(input_path)
    if not check:
        raise InputValidationError(f"Input file validation failed: {check.error}", input_path)

    check = validator.validate_output_format(args.output_format)
    if not check:
        raise FormatValidationError(check.error)

    output_format = args.output_format.lower()
    output_path = Path(args.output_path).expanduser() if args.output_path else None
    draft = ConversionRequest(input_path, output_format, output_path=output_path)

    check = validator.validate_output_path(draft.resolved_output_path(), args.overwrite)
    if not check:
        raise OutputPathError(check.error or "Invalid output path", draft.resolved_output_path())

    quality = ctx.default_quality
    if args.quality is not None:
        check = validator.validate_quality(args.quality)
        if not check:
            raise FormatValidationError(check.error)
        quality = QualityPreset(args.quality.lower())

    resolution: Resolution | None = None
    if args.resolution is not None:
        check = validator.validate_resolution(args.resolution)
        if not check:
            raise FormatValidationError(check.error)
        resolution = check.resolution

    if args.video_bitrate is not None:
        check = validator.validate_bitrate(args.video_bitrate, "video")
        if not check:
            raise FormatValidationError(check.error)

    if args.audio_bitrate is not None:
        check = validator.validate_bitrate(args.audio_bitrate, "audio")
        if not check:
            raise FormatValidationError(check.error)

    if args.frame_rate is not None:
        check = validator.validate_frame_rate(args.frame_rate)
        if not check:
            raise FormatValidationError(check.error)

    return ConversionRequest(
        input_path=input_path,
        output_format=output_format,
        output_path=draft.resolved_output_path(),
        quality=quality,
        resolution=resolution,
        video_bitrate=args.video_bitrate,
        audio_bitrate=args.audio_bitrate,
        frame_rate=args.frame_rate,
        overwrite=args.overwrite,
    )


async def handle_convert_video(
    ctx: ToolContext,
    args: ConvertVideoArgs,
    on_progress: JobProgressCallback | None = None,
    cancel_token: CancellationToken | None = None,
) -> dict[str, Any]:
    """Convert one video and describe the input and output files."""
    try:
        request = build_request(ctx, args)
        input_info = await ctx.info_extractor.extract(request.input_path)

        output_path = await ctx.executor.convert(request, on_progress, cancel_token)
        output_info = await ctx.info_extractor.extract(output_path)
    except VideoMcpError as e:
        logger.error("convert_video failed: %s", e)
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception("Unexpected error in convert_video")
        return {"success": False, "error": f"Video conversion failed: {e}"}

    return {
        "success": True,
        "message": "Video conversion completed",
        "data": {
            "input_path": str(request.input_path),
            "output_path": str(output_path),
            "input_info": summarize_video_info(input_info),
            "output_info": summarize_video_info(output_info),
            "conversion_options": request.to_options_dict(),
        },
    }


__all__ = ["build_request", "handle_convert_video"]
