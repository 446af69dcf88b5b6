"""Unit tests for config module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from video_mcp.core.config import Config, ConversionConfig, LoggingConfig


class TestDefaults:
    """Tests for default configuration values."""

    def test_engine_defaults(self) -> None:
        config = Config()
        assert config.engine.ffmpeg_path == "ffmpeg"
        assert config.engine.ffprobe_path == "ffprobe"
        assert config.engine.probe_timeout == 30.0
        assert config.engine.version_check_timeout == 5.0

    def test_conversion_defaults(self) -> None:
        config = Config()
        assert config.conversion.encoder_preset == "medium"
        assert config.conversion.default_quality is None

    def test_logging_defaults(self) -> None:
        config = Config()
        assert config.logging.level == "INFO"
        assert config.logging.log_dir is None
        assert config.logging.file_output is True


class TestValidation:
    """Tests for field validation."""

    def test_level_is_upper_cased(self) -> None:
        assert LoggingConfig(level="debug").level == "DEBUG"

    def test_log_dir_is_expanded(self) -> None:
        config = LoggingConfig(log_dir="~/logs")
        assert config.log_dir == Path.home() / "logs"

    def test_unknown_encoder_preset(self) -> None:
        with pytest.raises(ValidationError):
            ConversionConfig(encoder_preset="warp")

    def test_unknown_default_quality(self) -> None:
        with pytest.raises(ValidationError):
            ConversionConfig(default_quality="best")

    def test_timeouts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Config(engine={"probe_timeout": 0})


class TestSources:
    """Tests for JSON file and environment sources."""

    def test_load_from_file(self, temp_dir: Path) -> None:
        config_file = temp_dir / "config.json"
        config_file.write_text(
            json.dumps(
                {"engine": {"ffmpeg_path": "/opt/bin/ffmpeg"}, "logging": {"level": "warning"}}
            )
        )

        config = Config.load(config_file)

        assert config.engine.ffmpeg_path == "/opt/bin/ffmpeg"
        assert config.engine.ffprobe_path == "ffprobe"
        assert config.logging.level == "WARNING"

    def test_environment_overrides_file(
        self, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = temp_dir / "config.json"
        config_file.write_text(json.dumps({"engine": {"ffmpeg_path": "/opt/bin/ffmpeg"}}))
        monkeypatch.setenv("VIDEO_MCP_ENGINE__FFMPEG_PATH", "/usr/local/bin/ffmpeg")

        config = Config.load(config_file)

        assert config.engine.ffmpeg_path == "/usr/local/bin/ffmpeg"

    def test_missing_default_file_uses_defaults(self) -> None:
        assert Config.load().engine.ffmpeg_path == "ffmpeg"


class TestLoadAndSave:
    """Tests for the cached instance and persistence."""

    def test_load_is_cached(self) -> None:
        assert Config.load() is Config.load()

    def test_force_reload(self) -> None:
        first = Config.load()
        assert Config.load(force_reload=True) is not first

    def test_reset(self) -> None:
        first = Config.load()
        Config.reset()
        assert Config.load() is not first

    def test_save_round_trip(self, temp_dir: Path) -> None:
        config = Config(conversion={"encoder_preset": "slow", "default_quality": "high"})
        path = config.save(temp_dir / "nested" / "config.json")

        assert path.exists()
        reloaded = Config.load(path)
        assert reloaded.conversion.encoder_preset == "slow"
        assert reloaded.conversion.default_quality == "high"

    def test_to_dict(self) -> None:
        data = Config().to_dict()
        assert set(data) >= {"version", "engine", "conversion", "logging"}
        assert data["logging"]["log_dir"] is None
