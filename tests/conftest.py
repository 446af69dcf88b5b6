"""Shared pytest fixtures for video_mcp tests.

This module provides a scripted stand-in for the transcoding engine, a
factory for small placeholder video files and a ``ToolContext`` wired to
the stand-in engine, so no test needs ffmpeg installed.

Example:
    @pytest.mark.asyncio
    async def test_convert(tool_context, make_video):
        source = make_video("clip.avi")
        response = await handle_convert_video(
            tool_context, ConvertVideoArgs(input_path=str(source), output_format="mp4")
        )
        assert response["success"] is True
"""

from __future__ import annotations

import copy
import logging
import os
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from video_mcp.converters.engine import (
    CancellationToken,
    EngineEvent,
    EngineEventType,
    MediaEngine,
)
from video_mcp.core import config as config_module
from video_mcp.core.config import Config
from video_mcp.core.logger import ROOT_LOGGER_NAME
from video_mcp.handlers.context import ToolContext, build_context

if TYPE_CHECKING:
    from collections.abc import Generator

    from video_mcp.converters.formats import CompiledDirectives


SAMPLE_PROBE_REPORT: dict[str, Any] = {
    "format": {
        "filename": "clip.mp4",
        "format_name": "mov,mp4,m4a,3gp,3g2,mj2",
        "duration": "12.500000",
        "size": "1048576",
        "bit_rate": "671088",
    },
    "streams": [
        {
            "index": 0,
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1920,
            "height": 1080,
            "r_frame_rate": "30000/1001",
            "bit_rate": "4000000",
        },
        {
            "index": 1,
            "codec_type": "audio",
            "codec_name": "aac",
            "sample_rate": "48000",
            "channels": 2,
            "bit_rate": "128000",
        },
    ],
}


class StubEngine(MediaEngine):
    """Scripted engine recording every call.

    ``run`` yields START, one PROGRESS per entry of ``progress_steps`` and
    END after writing a non-empty output file. Inputs listed in
    ``fail_inputs`` end with ERROR after leaving a partial output behind.
    ``probe`` answers from ``probe_reports`` keyed by file name, falling
    back to ``SAMPLE_PROBE_REPORT``.
    """

    def __init__(self) -> None:
        self.runs: list[dict[str, Any]] = []
        self.probes: list[Path] = []
        self.progress_steps: tuple[float, ...] = (25.0, 50.0, 75.0)
        self.fail_inputs: dict[str, str] = {}
        self.probe_reports: dict[str, dict[str, Any]] = {}
        self.probe_errors: dict[str, Exception] = {}
        self.write_output = True
        self.on_progress_step: Callable[[float], None] | None = None

    async def run(
        self,
        input_path: Path,
        output_path: Path,
        directives: CompiledDirectives,
        *,
        overwrite: bool,
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[EngineEvent]:
        self.runs.append(
            {
                "input_path": input_path,
                "output_path": output_path,
                "directives": directives,
                "overwrite": overwrite,
            }
        )
        yield EngineEvent(EngineEventType.START, command_line=f"ffmpeg -i {input_path}")

        for percent in self.progress_steps:
            if self.on_progress_step is not None:
                self.on_progress_step(percent)
            if cancel_token is not None and cancel_token.is_cancelled:
                output_path.write_bytes(b"partial")
                yield EngineEvent(
                    EngineEventType.ERROR, message="Conversion cancelled", cancelled=True
                )
                return
            yield EngineEvent(EngineEventType.PROGRESS, percent=percent)

        message = self.fail_inputs.get(input_path.name)
        if message is not None:
            output_path.write_bytes(b"partial")
            yield EngineEvent(EngineEventType.ERROR, message=message)
            return

        if self.write_output:
            output_path.write_bytes(b"\x00" * 64)
        yield EngineEvent(EngineEventType.END)

    async def probe(self, path: Path) -> dict[str, Any]:
        self.probes.append(path)
        error = self.probe_errors.get(path.name)
        if error is not None:
            raise error
        return copy.deepcopy(self.probe_reports.get(path.name, SAMPLE_PROBE_REPORT))


@pytest.fixture(autouse=True)
def isolated_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Generator[None, None, None]:
    """Keep tests away from the user's config file and VIDEO_MCP_ variables."""
    config_dir = tmp_path_factory.mktemp("config")
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_FILE", config_dir / "config.json")
    for name in list(os.environ):
        if name.startswith("VIDEO_MCP_"):
            monkeypatch.delenv(name)
    Config.reset()
    yield
    Config.reset()


@pytest.fixture(autouse=True)
def restore_logging() -> Generator[None, None, None]:
    """Undo handler and propagation changes made by configure_logging."""
    yield
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.propagate = True
    root.setLevel(logging.NOTSET)


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test files.

    Args:
        tmp_path: Pytest's built-in temporary path fixture.

    Returns:
        Path: Temporary directory path.
    """
    return tmp_path


@pytest.fixture
def make_video(temp_dir: Path) -> Callable[..., Path]:
    """Factory creating placeholder video files.

    The files only need a video extension and a non-zero size to pass
    input validation; the stub engine never reads them.
    """

    def _make(name: str = "clip.mp4", content: bytes = b"\x00" * 1024) -> Path:
        path = temp_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make


@pytest.fixture
def stub_engine() -> StubEngine:
    return StubEngine()


@pytest.fixture
def tool_context(stub_engine: StubEngine) -> ToolContext:
    """Services wired to the stub engine with default configuration."""
    return build_context(Config(), engine=stub_engine)
