"""Unit tests for validator module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from video_mcp.core.types import Resolution
from video_mcp.processors.validator import VIDEO_MIME_TYPES, Validator
from video_mcp.utils.constants import MAX_INPUT_FILE_SIZE, VIDEO_EXTENSIONS


@pytest.fixture
def validator() -> Validator:
    return Validator()


class TestValidateVideoFile:
    """Tests for input file validation."""

    def test_valid_file(self, validator: Validator, make_video) -> None:
        assert validator.validate_video_file(make_video("clip.avi"))

    def test_missing_file(self, validator: Validator, temp_dir: Path) -> None:
        result = validator.validate_video_file(temp_dir / "missing.mp4")
        assert not result
        assert result.error is not None
        assert result.error.startswith("File does not exist")

    def test_unsupported_extension(self, validator: Validator, make_video) -> None:
        result = validator.validate_video_file(make_video("notes.txt"))
        assert result.error == "Unsupported file extension: .txt"

    def test_extension_is_case_insensitive(self, validator: Validator, make_video) -> None:
        assert validator.validate_video_file(make_video("CLIP.MOV"))

    def test_empty_file(self, validator: Validator, make_video) -> None:
        result = validator.validate_video_file(make_video("empty.mp4", content=b""))
        assert result.error == "File is empty"

    def test_file_over_size_limit(self, validator: Validator, make_video) -> None:
        """Test that files above 10 GiB are rejected without writing them."""
        path = make_video("huge.mp4")
        real_stat = Path.stat

        def fake_stat(self: Path, *args, **kwargs):
            result = real_stat(self, *args, **kwargs)
            if self == path:

                class _Stat:
                    st_size = MAX_INPUT_FILE_SIZE + 1
                    st_mode = result.st_mode

                return _Stat()
            return result

        with patch.object(Path, "stat", fake_stat):
            result = validator.validate_video_file(path)
        assert result.error == "File too large, limit is 10GB"

    def test_non_video_mime_type(self, validator: Validator, make_video) -> None:
        path = make_video("clip.mp4")
        with patch.object(VIDEO_MIME_TYPES, "guess_type", return_value=("audio/mpeg", None)):
            result = validator.validate_video_file(path)
        assert result.error == "File is not a video: audio/mpeg"

    @pytest.mark.parametrize("extension", sorted(VIDEO_EXTENSIONS))
    def test_every_accepted_extension_is_a_video(
        self, validator: Validator, make_video, extension: str
    ) -> None:
        """Test that the MIME check agrees with the extension allowlist."""
        result = validator.validate_video_file(make_video(f"clip{extension}"))
        assert result.is_valid, result.error

    @pytest.mark.parametrize(
        ("name", "mime_type"),
        [("clip.3gp", "video/3gpp"), ("clip.asf", "video/x-ms-asf"), ("clip.mpg", "video/mpeg")],
    )
    def test_mime_table_ignores_host_defaults(self, name: str, mime_type: str) -> None:
        assert VIDEO_MIME_TYPES.guess_type(name)[0] == mime_type


class TestValidateOutputFormat:
    """Tests for output format validation."""

    @pytest.mark.parametrize("fmt", ["mp4", "avi", "mov", "wmv", "mkv", "webm", "m4v", "MP4"])
    def test_supported_formats(self, validator: Validator, fmt: str) -> None:
        assert validator.validate_output_format(fmt)

    def test_flv_is_rejected(self, validator: Validator) -> None:
        result = validator.validate_output_format("flv")
        assert result.error == (
            "Unsupported output format: flv. "
            "Supported formats: mp4, avi, mov, wmv, mkv, webm, m4v"
        )

    def test_format_mime_types(self, validator: Validator) -> None:
        assert "video/x-msvideo" in validator.format_mime_types("avi")
        assert validator.format_mime_types("gif") == []


class TestValidateOutputPath:
    """Tests for output path validation."""

    def test_creates_parent_directory(self, validator: Validator, temp_dir: Path) -> None:
        target = temp_dir / "nested" / "dir" / "out.mp4"
        assert validator.validate_output_path(target)
        assert target.parent.is_dir()

    def test_existing_file_without_overwrite(self, validator: Validator, make_video) -> None:
        existing = make_video("out.mp4")
        result = validator.validate_output_path(existing)
        assert result.error == f"Output file already exists: {existing}"

    def test_existing_file_with_overwrite(self, validator: Validator, make_video) -> None:
        assert validator.validate_output_path(make_video("out.mp4"), overwrite=True)

    @pytest.mark.parametrize("name", ["bad|name.mp4", "what?.mp4", "CON.mp4", "lpt1", "a" * 256])
    def test_invalid_file_names(self, validator: Validator, temp_dir: Path, name: str) -> None:
        result = validator.validate_output_path(temp_dir / name)
        assert not result
        assert result.error is not None
        assert result.error.startswith("Invalid file name")


class TestValidateOutputDirectory:
    """Tests for output directory validation."""

    def test_creates_directory(self, validator: Validator, temp_dir: Path) -> None:
        target = temp_dir / "converted"
        assert validator.validate_output_directory(target)
        assert target.is_dir()

    def test_file_in_the_way(self, validator: Validator, make_video) -> None:
        result = validator.validate_output_directory(make_video("clip.mp4"))
        assert not result


class TestValidateResolution:
    """Tests for resolution validation."""

    def test_parses_resolution(self, validator: Validator) -> None:
        result = validator.validate_resolution("1920x1080")
        assert result.resolution == Resolution(1920, 1080)

    def test_maximum_is_accepted(self, validator: Validator) -> None:
        assert validator.validate_resolution("7680x4320")

    def test_too_large(self, validator: Validator) -> None:
        result = validator.validate_resolution("7681x4320")
        assert result.error == "Resolution too large, maximum is 7680x4320"

    def test_zero(self, validator: Validator) -> None:
        result = validator.validate_resolution("0x720")
        assert result.error == "Resolution must be greater than 0"

    @pytest.mark.parametrize("value", ["1920*1080", "1920x", "x1080", "wide", "-1x10"])
    def test_malformed(self, validator: Validator, value: str) -> None:
        result = validator.validate_resolution(value)
        assert not result
        assert result.resolution is None


class TestValidateBitrateAndFrameRate:
    """Tests for numeric option validation."""

    def test_video_bitrate_limit(self, validator: Validator) -> None:
        assert validator.validate_bitrate(50000, "video")
        result = validator.validate_bitrate(50001, "video")
        assert result.error == "Video bitrate too high, maximum is 50000 kbps"

    def test_audio_bitrate_limit(self, validator: Validator) -> None:
        assert validator.validate_bitrate(320, "audio")
        result = validator.validate_bitrate(321, "audio")
        assert result.error == "Audio bitrate too high, maximum is 320 kbps"

    def test_bitrate_must_be_positive(self, validator: Validator) -> None:
        assert not validator.validate_bitrate(0, "video")

    def test_frame_rate_limits(self, validator: Validator) -> None:
        assert validator.validate_frame_rate(120)
        assert validator.validate_frame_rate(23.976)
        assert not validator.validate_frame_rate(121)
        assert not validator.validate_frame_rate(0)


class TestValidateInputFiles:
    """Tests for batch input partitioning."""

    def test_partition(self, validator: Validator, make_video, temp_dir: Path) -> None:
        good = make_video("good.mp4")
        empty = make_video("empty.mov", content=b"")
        missing = temp_dir / "missing.avi"

        valid, invalid = validator.validate_input_files([good, empty, missing])

        assert valid == [good]
        assert [entry.path for entry in invalid] == [empty, missing]
        assert invalid[0].reason == "File is empty"


class TestSanitizeFilename:
    """Tests for file name sanitizing."""

    def test_replaces_invalid_characters(self, validator: Validator) -> None:
        assert validator.sanitize_filename('a<b>:c"d.mp4') == "a_b__c_d.mp4"

    def test_reserved_name_keeps_extension(self, validator: Validator) -> None:
        assert validator.sanitize_filename("CON.mp4") == "_.mp4"
        assert validator.sanitize_filename("com1.mkv") == "_.mkv"

    def test_truncates_long_names(self, validator: Validator) -> None:
        assert len(validator.sanitize_filename("x" * 300 + ".mp4")) == 255

    def test_sanitized_name_is_valid(self, validator: Validator) -> None:
        assert validator.is_valid_filename(validator.sanitize_filename("NUL.avi"))
