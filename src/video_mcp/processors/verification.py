"""Post-conversion output verification.

An encoder exiting with status 0 does not guarantee a usable file. The
verifier checks that the output exists, is not empty, can be probed and
carries a video stream before a job is allowed to complete.

Example:
    >>> verifier = OutputVerifier(InfoExtractor(engine))
    >>> result = await verifier.verify(Path("out.mp4"))
    >>> if not result.passed:
    ...     print(f"{result.failed_check.value}: {result.details}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from video_mcp.core.errors import ProbeError

if TYPE_CHECKING:
    from video_mcp.core.types import VideoInfo
    from video_mcp.processors.info_extractor import InfoExtractor

logger = logging.getLogger(__name__)


class OutputCheck(Enum):
    """Checks applied to a converted file, in the order they run.

    Attributes:
        EXISTS: The file is present.
        NON_EMPTY: The file has at least one byte.
        PARSEABLE: The metadata probe can read it.
        HAS_VIDEO: The probe found at least one video stream.
    """

    EXISTS = "exists"
    NON_EMPTY = "non_empty"
    PARSEABLE = "parseable"
    HAS_VIDEO = "has_video"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying one output file.

    Attributes:
        path: Verified file.
        failed_check: First check that failed, None when all passed.
        details: Reason for the failure.
        info: Probed metadata when every check passed.
    """

    path: Path
    failed_check: OutputCheck | None = None
    details: str | None = None
    info: VideoInfo | None = None

    @property
    def passed(self) -> bool:
        return self.failed_check is None


class OutputVerifier:
    """Verify converted files using an ``InfoExtractor``."""

    def __init__(self, info_extractor: InfoExtractor) -> None:
        self._info_extractor = info_extractor

    async def verify(self, path: Path) -> VerificationResult:
        """Run all checks on ``path``, stopping at the first failure."""
        if not path.is_file():
            return VerificationResult(path, OutputCheck.EXISTS, "output file does not exist")

        try:
            size = path.stat().st_size
        except OSError as e:
            return VerificationResult(path, OutputCheck.EXISTS, str(e))
        if size == 0:
            return VerificationResult(path, OutputCheck.NON_EMPTY, "output file is empty")

        try:
            info = await self._info_extractor.extract(path)
        except ProbeError as e:
            return VerificationResult(path, OutputCheck.PARSEABLE, e.engine_message)
        if info.video is None:
            return VerificationResult(path, OutputCheck.HAS_VIDEO, "output has no video stream")

        logger.debug("Verified %s (%d bytes, %.2fs)", path, size, info.duration)
        return VerificationResult(path, info=info)


__all__ = ["OutputCheck", "OutputVerifier", "VerificationResult"]
