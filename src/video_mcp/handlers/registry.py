"""Tool registry and request dispatch.

Maps tool names to their argument model and handler, renders the tool
listing and dispatches a ``(name, arguments)`` request.

Example:
    >>> response = await call_tool(ctx, "get_video_info", {"filePath": "clip.mp4"})
    >>> response["success"]
    True
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from video_mcp.handlers.batch import handle_batch_convert
from video_mcp.handlers.context import ToolContext
from video_mcp.handlers.convert import handle_convert_video
from video_mcp.handlers.info import handle_get_video_info
from video_mcp.handlers.models import BatchConvertArgs, ConvertVideoArgs, GetVideoInfoArgs

METHOD_NOT_FOUND = "method_not_found"
INVALID_PARAMS = "invalid_params"
INTERNAL_ERROR = "internal_error"


class ToolCallError(Exception):
    """Raised when a request cannot be dispatched to a handler.

    Attributes:
        code: Protocol error code.
        message: Human-readable description.
    """

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class Tool:
    """A callable tool.

    Attributes:
        name: Tool name used in requests.
        description: One-line description for listings.
        args_model: Pydantic model validating the arguments.
        handler: Coroutine function ``(ctx, args) -> response``.
    """

    name: str
    description: str
    args_model: type[BaseModel]
    handler: Callable[[ToolContext, Any], Awaitable[dict[str, Any]]]

    def input_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema(by_alias=True)


TOOLS: dict[str, Tool] = {
    tool.name: tool
    for tool in (
        Tool(
            "convert_video",
            "Convert a video file to another format (mp4, avi, mov, wmv, mkv, webm, m4v).",
            ConvertVideoArgs,
            handle_convert_video,
        ),
        Tool(
            "get_video_info",
            "Show a video's format, resolution, duration, codecs and bitrates.",
            GetVideoInfoArgs,
            handle_get_video_info,
        ),
        Tool(
            "batch_convert",
            "Convert several video files to one format, one after another.",
            BatchConvertArgs,
            handle_batch_convert,
        ),
    )
}


def list_tools() -> list[dict[str, Any]]:
    """Describe every tool with its argument schema."""
    return [
        {"name": tool.name, "description": tool.description, "input_schema": tool.input_schema()}
        for tool in TOOLS.values()
    ]


async def call_tool(ctx: ToolContext, name: str, arguments: Any) -> dict[str, Any]:
    """Validate ``arguments`` for tool ``name`` and run its handler.

    Raises:
        ToolCallError: If the tool is unknown or the arguments are invalid.
    """
    tool = TOOLS.get(name)
    if tool is None:
        raise ToolCallError(METHOD_NOT_FOUND, f"Unknown tool: {name}")

    if not isinstance(arguments, dict):
        raise ToolCallError(INVALID_PARAMS, "Tool arguments must be an object")

    try:
        args = tool.args_model.model_validate(arguments)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ToolCallError(INVALID_PARAMS, f"Invalid arguments for {name}: {details}") from e

    return await tool.handler(ctx, args)


__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "METHOD_NOT_FOUND",
    "TOOLS",
    "Tool",
    "ToolCallError",
    "call_tool",
    "list_tools",
]
