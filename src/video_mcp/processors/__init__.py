"""Input validation, metadata extraction and output verification."""

from video_mcp.processors.info_extractor import (
    InfoExtractor,
    format_video_info,
    summarize_video_info,
)
from video_mcp.processors.validator import Validator
from video_mcp.processors.verification import OutputCheck, OutputVerifier, VerificationResult

__all__ = [
    "InfoExtractor",
    "OutputCheck",
    "OutputVerifier",
    "Validator",
    "VerificationResult",
    "format_video_info",
    "summarize_video_info",
]
