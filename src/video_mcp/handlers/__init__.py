"""Handlers for the three tools: convert_video, batch_convert, get_video_info."""

from __future__ import annotations

from video_mcp.handlers.batch import handle_batch_convert
from video_mcp.handlers.context import ToolContext, build_context
from video_mcp.handlers.convert import handle_convert_video
from video_mcp.handlers.info import handle_get_video_info
from video_mcp.handlers.models import BatchConvertArgs, ConvertVideoArgs, GetVideoInfoArgs
from video_mcp.handlers.registry import TOOLS, ToolCallError, call_tool, list_tools

__all__ = [
    "BatchConvertArgs",
    "ConvertVideoArgs",
    "GetVideoInfoArgs",
    "TOOLS",
    "ToolCallError",
    "ToolContext",
    "build_context",
    "call_tool",
    "handle_batch_convert",
    "handle_convert_video",
    "handle_get_video_info",
    "list_tools",
]
