"""Fixtures for CLI tests."""

from __future__ import annotations

from collections.abc import Generator
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from video_mcp.handlers.context import ToolContext, build_context
from video_mcp.utils.dependency_checker import EngineStatus


@pytest.fixture
def cli_runner(isolated_config: None, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """Provide a Click CLI test runner that never writes log files."""
    monkeypatch.setenv("VIDEO_MCP_LOGGING__FILE_OUTPUT", "false")
    return CliRunner()


@pytest.fixture
def engine_check() -> Generator[MagicMock, None, None]:
    """Patch the startup ffmpeg check to report an available engine."""
    with patch(
        "video_mcp.__main__.ensure_engine_available",
        return_value=EngineStatus("ffmpeg", True, version="6.1"),
    ) as mock_check:
        yield mock_check


@pytest.fixture
def stub_tools(engine_check: MagicMock, stub_engine) -> Generator[MagicMock, None, None]:
    """Wire every CLI command to the stub engine."""

    def _build(config) -> ToolContext:
        return build_context(config, engine=stub_engine)

    with patch("video_mcp.__main__.build_context", side_effect=_build) as mock_build:
        yield mock_build
