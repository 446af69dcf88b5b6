"""Video MCP - FFmpeg-backed video conversion, batch conversion and inspection."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("video-mcp")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"

__author__ = "Video MCP Team"
