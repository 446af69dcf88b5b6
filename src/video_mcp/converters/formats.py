"""Per-format encoder and container settings.

This module turns a ``ConversionRequest`` into ``CompiledDirectives``, the
concrete ffmpeg arguments for the requested target. Every supported target
has one row in ``FORMAT_PROFILES``; adding a format means adding a row.

Quality presets go through a representative bitrate before they become a
constant-quality factor, so a preset and a bitrate share one derivation:

    low -> 1000 kbps -> crf 25
    medium -> 2500 kbps -> crf 23
    high -> 5000 kbps -> crf 21
    ultra -> 8000 kbps -> crf 18

Example:
    >>> from video_mcp.converters.formats import compile_directives
    >>> request = ConversionRequest(Path("in.avi"), "mp4", quality=QualityPreset.HIGH)
    >>> directives = compile_directives(request)
    >>> directives.quality_factor
    21
    >>> directives.output_args()[:4]
    ['-c:v', 'libx264', '-c:a', 'aac']
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from video_mcp.core.types import ConversionRequest, QualityPreset, Resolution
from video_mcp.utils.constants import (
    DEFAULT_ENCODER_PRESET,
    DEFAULT_QUALITY_FACTOR,
    MAX_MUXING_QUEUE_SIZE,
)

logger = logging.getLogger(__name__)

# (flag, value) pairs, rendered in order
Options = tuple[tuple[str, str], ...]


class RateControl(Enum):
    """How the encoder allocates bits.

    Attributes:
        QUALITY_FACTOR: One constant-quality factor (``-crf``), lower is better.
        BITRATE: Explicit average bitrate (``-b:v``).
    """

    QUALITY_FACTOR = "quality_factor"
    BITRATE = "bitrate"


@dataclass(frozen=True)
class QualityTarget:
    """Representative bitrates of a quality preset, in kbps."""

    video_bitrate: int
    audio_bitrate: int


QUALITY_TARGETS: dict[QualityPreset, QualityTarget] = {
    QualityPreset.LOW: QualityTarget(video_bitrate=1000, audio_bitrate=96),
    QualityPreset.MEDIUM: QualityTarget(video_bitrate=2500, audio_bitrate=128),
    QualityPreset.HIGH: QualityTarget(video_bitrate=5000, audio_bitrate=192),
    QualityPreset.ULTRA: QualityTarget(video_bitrate=8000, audio_bitrate=320),
}


def bitrate_to_quality_factor(video_bitrate: int) -> int:
    """Map a video bitrate in kbps onto a constant-quality factor."""
    if video_bitrate >= 8000:
        return 18
    if video_bitrate >= 5000:
        return 21
    if video_bitrate >= 2500:
        return 23
    return 25


def quality_factor_for(preset: QualityPreset) -> int:
    """Return the constant-quality factor a preset stands for."""
    return bitrate_to_quality_factor(QUALITY_TARGETS[preset].video_bitrate)


@dataclass(frozen=True)
class FormatProfile:
    """Baseline settings for one target format.

    Attributes:
        video_codec: ffmpeg video encoder name.
        audio_codec: ffmpeg audio encoder name.
        container: Muxer name passed with ``-f``.
        quality_factor: Default constant-quality factor.
        quality_factor_driven: Whether rate control uses ``-crf``. An explicit
            video bitrate is honoured only when this is False.
        encoder_preset: Whether the encoder takes an x264-style ``-preset``.
        input_options: Options placed before ``-i``.
        output_options: Container-specific output options.
    """

    video_codec: str
    audio_codec: str
    container: str
    quality_factor: int = DEFAULT_QUALITY_FACTOR
    quality_factor_driven: bool = True
    encoder_preset: bool = True
    input_options: Options = ()
    output_options: Options = ()


_MP4_COMPAT: Options = (
    ("-movflags", "+faststart+frag_keyframe+empty_moov"),
    ("-pix_fmt", "yuv420p"),
    ("-profile:v", "high"),
    ("-level", "4.0"),
)

FORMAT_PROFILES: dict[str, FormatProfile] = {
    "mp4": FormatProfile("libx264", "aac", "mp4", output_options=_MP4_COMPAT),
    "avi": FormatProfile("libx264", "aac", "avi"),
    "mov": FormatProfile(
        "libx264",
        "aac",
        "mov",
        output_options=(("-movflags", "+faststart"),),
    ),
    "webm": FormatProfile(
        "libvpx-vp9",
        "libopus",
        "webm",
        quality_factor=30,
        encoder_preset=False,
        output_options=(
            ("-b:v", "0"),
            ("-row-mt", "1"),
            ("-deadline", "good"),
            ("-cpu-used", "1"),
        ),
    ),
    "mkv": FormatProfile("libx264", "aac", "matroska"),
    "flv": FormatProfile("libx264", "aac", "flv", quality_factor=25),
    # ASF often reports no duration; regenerate and ignore source timestamps
    "wmv": FormatProfile(
        "libx264",
        "aac",
        "asf",
        quality_factor=25,
        input_options=(("-use_wallclock_as_timestamps", "1"),),
        output_options=(
            ("-avoid_negative_ts", "make_zero"),
            ("-fflags", "+genpts+igndts"),
            ("-metadata", "title="),
        ),
    ),
    "m4v": FormatProfile(
        "libx264",
        "aac",
        "mp4",
        output_options=(
            *_MP4_COMPAT,
            ("-brand", "M4V "),
            ("-write_tmcd", "0"),
        ),
    ),
}

GENERIC_PROFILE = FormatProfile("libx264", "aac", container="")

# Appended to every invocation unless the container row already sets the flag
STABILITY_OPTIONS: Options = (
    ("-avoid_negative_ts", "make_zero"),
    ("-fflags", "+genpts"),
    ("-max_muxing_queue_size", str(MAX_MUXING_QUEUE_SIZE)),
)


@dataclass(frozen=True)
class CompiledDirectives:
    """Concrete ffmpeg settings for one conversion.

    Attributes:
        video_codec: Video encoder.
        audio_codec: Audio encoder.
        container: Muxer name, empty to let ffmpeg pick from the extension.
        rate_control: Constant-quality or bitrate mode.
        quality_factor: ``-crf`` value in quality-factor mode.
        encoder_preset: ``-preset`` value, None when the encoder takes none.
        video_bitrate: Video bitrate in kbps in bitrate mode.
        audio_bitrate: Audio bitrate in kbps, None for the encoder default.
        resolution: Output frame size.
        frame_rate: Output frame rate.
        input_options: Options placed before ``-i``.
        output_options: Container-specific output options.
        stability_options: Timestamp and muxing-queue options.
    """

    video_codec: str
    audio_codec: str
    container: str
    rate_control: RateControl
    quality_factor: int | None = None
    encoder_preset: str | None = None
    video_bitrate: int | None = None
    audio_bitrate: int | None = None
    resolution: Resolution | None = None
    frame_rate: float | None = None
    input_options: Options = ()
    output_options: Options = ()
    stability_options: Options = STABILITY_OPTIONS

    def input_args(self) -> list[str]:
        """Render the options that go before ``-i``."""
        return _flatten(self.input_options)

    def output_args(self) -> list[str]:
        """Render the output options in the order ffmpeg receives them."""
        args = ["-c:v", self.video_codec, "-c:a", self.audio_codec]

        if self.encoder_preset is not None:
            args.extend(["-preset", self.encoder_preset])

        if self.rate_control is RateControl.QUALITY_FACTOR and self.quality_factor is not None:
            args.extend(["-crf", str(self.quality_factor)])
        elif self.rate_control is RateControl.BITRATE and self.video_bitrate is not None:
            args.extend(["-b:v", f"{self.video_bitrate}k"])

        if self.container:
            args.extend(["-f", self.container])
        args.extend(_flatten(self.output_options))

        if self.audio_bitrate is not None:
            args.extend(["-b:a", f"{self.audio_bitrate}k"])
        if self.resolution is not None:
            args.extend(["-s", str(self.resolution)])
        if self.frame_rate is not None:
            args.extend(["-r", _format_number(self.frame_rate)])

        args.extend(_flatten(self.stability_options))
        return args


def _flatten(options: Options) -> list[str]:
    return [item for pair in options for item in pair]


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def get_profile(
    output_format: str,
    profiles: Mapping[str, FormatProfile] = FORMAT_PROFILES,
) -> FormatProfile:
    """Return the row for a format, or the generic H.264/AAC baseline."""
    profile = profiles.get(output_format.lower())
    if profile is None:
        logger.warning("No profile for format %r, using generic H.264/AAC", output_format)
        return GENERIC_PROFILE
    return profile


def compile_directives(
    request: ConversionRequest,
    *,
    encoder_preset: str = DEFAULT_ENCODER_PRESET,
    profiles: Mapping[str, FormatProfile] = FORMAT_PROFILES,
) -> CompiledDirectives:
    """Compile a request into ffmpeg directives.

    For quality-factor formats the factor comes from the quality preset when
    one is given, else from the format default, and an explicit video
    bitrate is ignored. Audio bitrate, resolution and frame rate always
    apply; an explicit audio bitrate wins over the preset's.

    Args:
        request: The conversion request.
        encoder_preset: x264 speed preset for encoders that take one.
        profiles: Format table to consult.

    Returns:
        The compiled directives.
    """
    profile = get_profile(request.output_format, profiles)
    target = QUALITY_TARGETS.get(request.quality) if request.quality else None

    audio_bitrate = request.audio_bitrate
    if audio_bitrate is None and target is not None:
        audio_bitrate = target.audio_bitrate

    if profile.quality_factor_driven:
        rate_control = RateControl.QUALITY_FACTOR
        quality_factor: int | None = profile.quality_factor
        if target is not None:
            quality_factor = bitrate_to_quality_factor(target.video_bitrate)
        video_bitrate = None
        if request.video_bitrate is not None:
            logger.debug(
                "Ignoring video bitrate %d kbps for %s, rate control is crf %d",
                request.video_bitrate,
                request.output_format,
                quality_factor,
            )
    else:
        rate_control = RateControl.BITRATE
        quality_factor = None
        video_bitrate = request.video_bitrate
        if video_bitrate is None and target is not None:
            video_bitrate = target.video_bitrate

    overridden = {flag for flag, _ in profile.output_options}
    stability = tuple(pair for pair in STABILITY_OPTIONS if pair[0] not in overridden)

    return CompiledDirectives(
        video_codec=profile.video_codec,
        audio_codec=profile.audio_codec,
        container=profile.container,
        rate_control=rate_control,
        quality_factor=quality_factor,
        encoder_preset=encoder_preset if profile.encoder_preset else None,
        video_bitrate=video_bitrate,
        audio_bitrate=audio_bitrate,
        resolution=request.resolution,
        frame_rate=request.frame_rate,
        input_options=profile.input_options,
        output_options=profile.output_options,
        stability_options=stability,
    )


__all__ = [
    "CompiledDirectives",
    "FormatProfile",
    "FORMAT_PROFILES",
    "GENERIC_PROFILE",
    "QUALITY_TARGETS",
    "QualityTarget",
    "RateControl",
    "STABILITY_OPTIONS",
    "bitrate_to_quality_factor",
    "compile_directives",
    "get_profile",
    "quality_factor_for",
]
