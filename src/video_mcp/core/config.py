"""Configuration for video_mcp.

Settings come from a JSON file (``~/.config/video_mcp/config.json`` by
default) and can be overridden by ``VIDEO_MCP_`` environment variables,
using ``__`` to reach nested sections.

Example:
    >>> from video_mcp.core.config import Config
    >>> config = Config.load()
    >>> config.engine.ffmpeg_path
    'ffmpeg'

    >>> # VIDEO_MCP_ENGINE__FFMPEG_PATH=/opt/ffmpeg/bin/ffmpeg
    >>> config = Config.load(force_reload=True)
    >>> config.engine.ffmpeg_path
    '/opt/ffmpeg/bin/ffmpeg'
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)
from pydantic_settings.sources import JsonConfigSettingsSource

from video_mcp import __version__
from video_mcp.utils.constants import (
    DEFAULT_ENCODER_PRESET,
    ENGINE_VERSION_CHECK_TIMEOUT,
    PROBE_TIMEOUT,
)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "video_mcp"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

_config_lock: threading.Lock = threading.Lock()
_config_instance: Config | None = None
_config_path: Path | None = None


class EngineConfig(BaseModel):
    """Location and timeouts of the external engine binaries.

    Attributes:
        ffmpeg_path: ffmpeg executable name or path.
        ffprobe_path: ffprobe executable name or path.
        probe_timeout: Seconds allowed for one metadata probe.
        version_check_timeout: Seconds allowed for the startup version check.
    """

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    probe_timeout: float = Field(default=PROBE_TIMEOUT, gt=0)
    version_check_timeout: float = Field(default=ENGINE_VERSION_CHECK_TIMEOUT, gt=0)


class ConversionConfig(BaseModel):
    """Encoding defaults.

    Attributes:
        encoder_preset: x264 speed preset used by formats that set one.
        default_quality: Quality preset applied when a request names none.
    """

    encoder_preset: Literal[
        "ultrafast",
        "superfast",
        "veryfast",
        "faster",
        "fast",
        "medium",
        "slow",
        "slower",
        "veryslow",
    ] = DEFAULT_ENCODER_PRESET
    default_quality: Literal["low", "medium", "high", "ultra"] | None = None


class LoggingConfig(BaseModel):
    """Logging settings.

    Attributes:
        level: Log level name.
        log_dir: Directory for the rotating log file, None for the default.
        file_output: Whether to write the log file at all.
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_dir: Path | None = None
    file_output: bool = True

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_dir", mode="before")
    @classmethod
    def expand_log_dir(cls, v: str | Path | None) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser()


class Config(BaseSettings):
    """Root settings object.

    Priority, highest first: constructor arguments, environment variables,
    JSON file, defaults.

    Attributes:
        version: Version that wrote the file.
        engine: Engine binaries and timeouts.
        conversion: Encoding defaults.
        logging: Logging settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="VIDEO_MCP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    version: str = Field(default_factory=lambda: __version__)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        _ = dotenv_settings
        _ = file_secret_settings

        json_file = _config_path if _config_path is not None else DEFAULT_CONFIG_FILE
        json_source = JsonConfigSettingsSource(
            settings_cls,
            json_file=json_file if json_file.exists() else None,
        )
        return (init_settings, env_settings, json_source)

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        *,
        force_reload: bool = False,
    ) -> Config:
        """Return the process-wide configuration, loading it on first use.

        Args:
            config_path: JSON file to read instead of the default location.
            force_reload: Discard the cached instance and read again.

        Raises:
            pydantic.ValidationError: If a value is out of range.
        """
        global _config_instance, _config_path

        with _config_lock:
            if _config_instance is not None and not force_reload and config_path is None:
                return _config_instance

            if config_path is not None:
                _config_path = Path(config_path).expanduser()
            _config_instance = cls()
            return _config_instance

    def save(self, config_path: Path | None = None) -> Path:
        """Write the configuration as JSON and return the file written."""
        save_path = config_path or _config_path or DEFAULT_CONFIG_FILE
        save_path.parent.mkdir(parents=True, exist_ok=True)

        with save_path.open("w", encoding="utf-8") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, ensure_ascii=False)
            f.write("\n")
        return save_path

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance and any custom file path."""
        global _config_instance, _config_path

        with _config_lock:
            _config_instance = None
            _config_path = None

    @classmethod
    def get_default_config_path(cls) -> Path:
        return DEFAULT_CONFIG_FILE

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = self.model_dump(mode="json")
        return result


__all__ = [
    "Config",
    "EngineConfig",
    "ConversionConfig",
    "LoggingConfig",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
]
