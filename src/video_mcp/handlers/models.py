"""Argument models of the three tools.

Field names are snake_case; camelCase keys (``inputPath``, ``outputFormat``)
are accepted as aliases. The JSON schemas of these models, rendered with
aliases, are the declared tool schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from video_mcp.utils.constants import (
    BATCH_ADVERTISED_FORMATS,
    QUALITY_PRESETS,
    SUPPORTED_OUTPUT_FORMATS,
)


class ToolArgs(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class ConvertVideoArgs(ToolArgs):
    """Arguments of ``convert_video``."""

    input_path: str = Field(description="Full path of the input video file")
    output_format: str = Field(
        description="Target output format",
        json_schema_extra={"enum": list(SUPPORTED_OUTPUT_FORMATS)},
    )
    output_path: str | None = Field(
        default=None,
        description="Output file path; generated next to the input when omitted",
    )
    quality: str | None = Field(
        default=None,
        description="Quality preset",
        json_schema_extra={"enum": list(QUALITY_PRESETS)},
    )
    resolution: str | None = Field(
        default=None,
        description='Output resolution as "WIDTHxHEIGHT", e.g. "1920x1080"',
    )
    video_bitrate: int | None = Field(default=None, description="Video bitrate in kbps")
    audio_bitrate: int | None = Field(default=None, description="Audio bitrate in kbps")
    frame_rate: float | None = Field(default=None, description="Output frame rate in fps")
    overwrite: bool = Field(default=False, description="Replace an existing output file")


class BatchConvertArgs(ToolArgs):
    """Arguments of ``batch_convert``."""

    input_files: list[str] = Field(description="Full paths of the input video files")
    output_format: str = Field(
        description="Target output format for every file",
        json_schema_extra={"enum": list(BATCH_ADVERTISED_FORMATS)},
    )
    output_dir: str = Field(description="Directory receiving the converted files")
    quality: str | None = Field(
        default=None,
        description="Quality preset",
        json_schema_extra={"enum": list(QUALITY_PRESETS)},
    )
    overwrite: bool = Field(default=False, description="Replace existing output files")


class GetVideoInfoArgs(ToolArgs):
    """Arguments of ``get_video_info``."""

    file_path: str = Field(description="Full path of the video file")


__all__ = ["BatchConvertArgs", "ConvertVideoArgs", "GetVideoInfoArgs", "ToolArgs"]
