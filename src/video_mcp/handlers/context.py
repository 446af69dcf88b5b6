"""Service wiring shared by the tool handlers.

``build_context()`` constructs every service once from the configuration.
Handlers receive the resulting ``ToolContext`` explicitly.

Example:
    >>> ctx = build_context(Config.load())
    >>> response = await handle_get_video_info(ctx, GetVideoInfoArgs(file_path="clip.mp4"))
"""

from __future__ import annotations

from dataclasses import dataclass

from video_mcp.converters.engine import FFmpegEngine, MediaEngine
from video_mcp.converters.executor import ActiveJobRegistry, JobExecutor
from video_mcp.core.config import Config
from video_mcp.core.orchestrator import BatchOrchestrator
from video_mcp.core.types import QualityPreset
from video_mcp.processors.info_extractor import InfoExtractor
from video_mcp.processors.validator import Validator
from video_mcp.processors.verification import OutputVerifier
from video_mcp.reporters.batch_reporter import BatchReporter


@dataclass
class ToolContext:
    """Services used by the handlers.

    Attributes:
        config: Loaded configuration.
        validator: Input and option checks.
        engine: Transcoding engine.
        info_extractor: Metadata probe normaliser.
        executor: Single-job executor.
        orchestrator: Batch orchestrator.
        reporter: Batch report formatter.
    """

    config: Config
    validator: Validator
    engine: MediaEngine
    info_extractor: InfoExtractor
    executor: JobExecutor
    orchestrator: BatchOrchestrator
    reporter: BatchReporter

    @property
    def registry(self) -> ActiveJobRegistry:
        return self.executor.registry

    @property
    def default_quality(self) -> QualityPreset | None:
        quality = self.config.conversion.default_quality
        return QualityPreset(quality) if quality else None


def build_context(config: Config, engine: MediaEngine | None = None) -> ToolContext:
    """Build the services for one process.

    Args:
        config: Configuration to read engine paths and defaults from.
        engine: Engine to use instead of an ``FFmpegEngine`` built from config.
    """
    if engine is None:
        engine = FFmpegEngine(
            ffmpeg_path=config.engine.ffmpeg_path,
            ffprobe_path=config.engine.ffprobe_path,
            probe_timeout=config.engine.probe_timeout,
        )

    validator = Validator()
    info_extractor = InfoExtractor(engine)
    executor = JobExecutor(
        engine,
        OutputVerifier(info_extractor),
        encoder_preset=config.conversion.encoder_preset,
    )
    return ToolContext(
        config=config,
        validator=validator,
        engine=engine,
        info_extractor=info_extractor,
        executor=executor,
        orchestrator=BatchOrchestrator(validator, executor),
        reporter=BatchReporter(),
    )


__all__ = ["ToolContext", "build_context"]
