"""Input, output and option validation.

Every check returns a ``ValidationResult`` and never raises for invalid
input, so callers can collect reasons (batch validation) or turn the first
failure into a typed error (single conversions).

Example:
    >>> validator = Validator()
    >>> validator.validate_resolution("1920x1080").resolution
    Resolution(width=1920, height=1080)
    >>> validator.validate_bitrate(50001, "video").error
    'Video bitrate too high, maximum is 50000 kbps'
    >>> validator.sanitize_filename("CON.mp4")
    '_.mp4'
"""

from __future__ import annotations

import logging
import mimetypes
import os
import re
from collections.abc import Iterable
from pathlib import Path
from typing import Literal

from video_mcp.core.types import (
    InvalidFile,
    QualityPreset,
    Resolution,
    ValidationResult,
    VideoFormat,
)
from video_mcp.utils.constants import (
    BYTES_PER_GB,
    FORMAT_MIME_TYPES,
    MAX_AUDIO_BITRATE_KBPS,
    MAX_FILENAME_LENGTH,
    MAX_FRAME_RATE,
    MAX_HEIGHT,
    MAX_INPUT_FILE_SIZE,
    MAX_VIDEO_BITRATE_KBPS,
    MAX_WIDTH,
    VIDEO_EXTENSION_MIME_TYPES,
    VIDEO_EXTENSIONS,
)

logger = logging.getLogger(__name__)

_RESOLUTION_PATTERN = re.compile(r"^(\d+)x(\d+)$")
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_RESERVED_NAME = re.compile(r"^(CON|PRN|AUX|NUL|COM[1-9]|LPT[1-9])(\.|$)", re.IGNORECASE)


def _build_mime_table() -> mimetypes.MimeTypes:
    """MIME table with the source video types registered.

    A private table is independent of the host's mime.types files, and the
    registered entries replace stdlib guesses such as ``audio/3gpp``.
    """
    table = mimetypes.MimeTypes()
    for extension, mime_type in VIDEO_EXTENSION_MIME_TYPES.items():
        table.add_type(mime_type, extension)
    return table


VIDEO_MIME_TYPES = _build_mime_table()


class Validator:
    """Stateless validation checks."""

    @staticmethod
    def validate_file_exists(path: Path) -> bool:
        return os.access(path, os.F_OK)

    def validate_video_file(self, path: Path) -> ValidationResult:
        """Check that ``path`` looks like a readable source video.

        The file must exist, carry a recognised video extension, be non-empty
        and no larger than 10 GiB. A MIME type guessed from the name must be
        ``video/*``; an unknown MIME type is accepted.
        """
        path = Path(path)
        if not self.validate_file_exists(path):
            return ValidationResult.fail(f"File does not exist: {path}")

        extension = path.suffix.lower()
        if extension not in VIDEO_EXTENSIONS:
            return ValidationResult.fail(f"Unsupported file extension: {extension or '(none)'}")

        try:
            size = path.stat().st_size
        except OSError as e:
            return ValidationResult.fail(f"Cannot read file information: {e}")

        if size == 0:
            return ValidationResult.fail("File is empty")
        if size > MAX_INPUT_FILE_SIZE:
            return ValidationResult.fail(
                f"File too large, limit is {MAX_INPUT_FILE_SIZE // BYTES_PER_GB}GB"
            )

        mime_type, _ = VIDEO_MIME_TYPES.guess_type(path.name)
        if mime_type and not mime_type.startswith("video/"):
            return ValidationResult.fail(f"File is not a video: {mime_type}")

        return ValidationResult.ok()

    @staticmethod
    def supported_formats() -> list[str]:
        return VideoFormat.values()

    @staticmethod
    def format_mime_types(output_format: str) -> list[str]:
        return list(FORMAT_MIME_TYPES.get(output_format.lower(), ()))

    def validate_output_format(self, output_format: str) -> ValidationResult:
        if output_format.lower() not in self.supported_formats():
            return ValidationResult.fail(
                f"Unsupported output format: {output_format}. "
                f"Supported formats: {', '.join(self.supported_formats())}"
            )
        return ValidationResult.ok()

    @staticmethod
    def validate_quality(quality: str) -> ValidationResult:
        presets = [preset.value for preset in QualityPreset]
        if quality.lower() not in presets:
            return ValidationResult.fail(
                f"Unsupported quality preset: {quality}. Supported presets: {', '.join(presets)}"
            )
        return ValidationResult.ok()

    @staticmethod
    def is_valid_filename(name: str) -> bool:
        if not 0 < len(name) <= MAX_FILENAME_LENGTH:
            return False
        if _INVALID_FILENAME_CHARS.search(name):
            return False
        return _RESERVED_NAME.match(name) is None

    def validate_output_path(self, path: Path, overwrite: bool = False) -> ValidationResult:
        """Check that a conversion may write to ``path``.

        Creates the parent directory as a side effect.
        """
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            return ValidationResult.fail(f"Cannot create output directory: {path.parent}")

        if not overwrite and self.validate_file_exists(path):
            return ValidationResult.fail(f"Output file already exists: {path}")

        if not self.is_valid_filename(path.name):
            return ValidationResult.fail(f"Invalid file name: {path.name}")

        return ValidationResult.ok()

    @staticmethod
    def validate_output_directory(directory: Path) -> ValidationResult:
        """Create ``directory`` if needed and check that it is writable."""
        directory = Path(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return ValidationResult.fail(f"Cannot create output directory {directory}: {e}")

        if not directory.is_dir():
            return ValidationResult.fail(f"Output path is not a directory: {directory}")
        if not os.access(directory, os.W_OK):
            return ValidationResult.fail(f"Output directory is not writable: {directory}")
        return ValidationResult.ok()

    @staticmethod
    def validate_resolution(resolution: str) -> ValidationResult:
        match = _RESOLUTION_PATTERN.match(resolution.strip())
        if match is None:
            return ValidationResult.fail(
                'Invalid resolution, expected "WIDTHxHEIGHT" such as "1920x1080"'
            )

        width, height = int(match.group(1)), int(match.group(2))
        if width < 1 or height < 1:
            return ValidationResult.fail("Resolution must be greater than 0")
        if width > MAX_WIDTH or height > MAX_HEIGHT:
            return ValidationResult.fail(
                f"Resolution too large, maximum is {MAX_WIDTH}x{MAX_HEIGHT}"
            )
        return ValidationResult.ok(resolution=Resolution(width, height))

    @staticmethod
    def validate_bitrate(bitrate: float, kind: Literal["video", "audio"]) -> ValidationResult:
        label = "Video" if kind == "video" else "Audio"
        if bitrate <= 0:
            return ValidationResult.fail(f"{label} bitrate must be greater than 0")

        ceiling = MAX_VIDEO_BITRATE_KBPS if kind == "video" else MAX_AUDIO_BITRATE_KBPS
        if bitrate > ceiling:
            return ValidationResult.fail(f"{label} bitrate too high, maximum is {ceiling} kbps")
        return ValidationResult.ok()

    @staticmethod
    def validate_frame_rate(frame_rate: float) -> ValidationResult:
        if frame_rate <= 0:
            return ValidationResult.fail("Frame rate must be greater than 0")
        if frame_rate > MAX_FRAME_RATE:
            return ValidationResult.fail(f"Frame rate too high, maximum is {MAX_FRAME_RATE} fps")
        return ValidationResult.ok()

    def validate_input_files(self, paths: Iterable[Path]) -> tuple[list[Path], list[InvalidFile]]:
        """Split candidate inputs into valid paths and rejected files with reasons."""
        valid: list[Path] = []
        invalid: list[InvalidFile] = []
        for raw in paths:
            path = Path(raw)
            result = self.validate_video_file(path)
            if result:
                valid.append(path)
            else:
                logger.debug("Rejected input %s: %s", path, result.error)
                invalid.append(InvalidFile(path, result.error or "unknown error"))
        return valid, invalid

    @staticmethod
    def sanitize_filename(name: str) -> str:
        """Make ``name`` safe to use as an output file name.

        Disallowed characters become ``_``, a reserved device name is
        replaced by ``_`` (keeping its extension) and the result is cut to
        255 characters.
        """
        cleaned = _INVALID_FILENAME_CHARS.sub("_", name)
        cleaned = _RESERVED_NAME.sub(lambda m: f"_{m.group(2)}", cleaned, count=1)
        return cleaned[:MAX_FILENAME_LENGTH]


__all__ = ["Validator"]
