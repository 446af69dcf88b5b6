"""CLI entrypoint for video-mcp.

``convert``, ``batch`` and ``info`` run one tool and print its JSON
response on stdout. ``serve`` answers JSON-lines requests on stdin, one
response line per request::

    {"id": 1, "tool": "get_video_info", "arguments": {"filePath": "clip.mp4"}}
    {"id": 1, "result": {"success": true, ...}}

Logs and progress bars go to stderr.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TextIO

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn

from video_mcp import __version__
from video_mcp.core.config import Config
from video_mcp.core.errors import EngineUnavailableError
from video_mcp.core.logger import configure_logging
from video_mcp.core.types import ConversionJob, JobStatus
from video_mcp.handlers import (
    BatchConvertArgs,
    ConvertVideoArgs,
    GetVideoInfoArgs,
    ToolCallError,
    ToolContext,
    build_context,
    call_tool,
    handle_batch_convert,
    handle_convert_video,
    handle_get_video_info,
    list_tools,
)
from video_mcp.handlers.registry import INTERNAL_ERROR, INVALID_PARAMS
from video_mcp.utils.constants import QUALITY_PRESETS, SUPPORTED_OUTPUT_FORMATS
from video_mcp.utils.dependency_checker import ensure_engine_available

logger = logging.getLogger("video_mcp.cli")

# Progress bars and status messages; stdout carries responses only
err_console = Console(stderr=True)


@dataclass
class CLIContext:
    """Context object passed between CLI commands."""

    config: Config
    verbose: bool
    quiet: bool
    tool_context: ToolContext | None = field(default=None, repr=False)


def _require_tools(cli_ctx: CLIContext) -> ToolContext:
    """Check the engine once and build the services, exiting 1 on failure."""
    if cli_ctx.tool_context is None:
        engine_config = cli_ctx.config.engine
        try:
            status = ensure_engine_available(
                engine_config.ffmpeg_path, engine_config.version_check_timeout
            )
        except EngineUnavailableError as e:
            err_console.print(f"[red]✗ {e}[/red]")
            sys.exit(1)
        logger.debug("Using ffmpeg %s at %s", status.version, status.path)
        cli_ctx.tool_context = build_context(cli_ctx.config)
    return cli_ctx.tool_context


def _echo_json(data: Any, *, indent: int | None = 2) -> None:
    click.echo(json.dumps(data, indent=indent, ensure_ascii=False))


def _finish(response: dict[str, Any]) -> None:
    _echo_json(response)
    if not response.get("success"):
        sys.exit(1)


class _ProgressDisplay:
    """Rich progress bar fed by job snapshots."""

    def __init__(self, enabled: bool) -> None:
        self._progress: Progress | None = None
        if enabled:
            self._progress = Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=err_console,
                transient=True,
            )
        self._tasks: dict[str, TaskID] = {}

    def __enter__(self) -> _ProgressDisplay:
        if self._progress is not None:
            self._progress.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._progress is not None:
            self._progress.stop()

    def update(self, job: ConversionJob) -> None:
        if self._progress is None:
            return
        if job.task_id not in self._tasks:
            self._tasks[job.task_id] = self._progress.add_task(
                f"Converting {job.input_path.name}", total=100
            )
        self._progress.update(self._tasks[job.task_id], completed=job.progress)
        if job.status is JobStatus.FAILED:
            self._progress.update(
                self._tasks[job.task_id], description=f"[red]Failed {job.input_path.name}"
            )

    def update_batch(self, task_id: str, job: ConversionJob) -> None:
        self.update(job)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a JSON configuration file.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output (DEBUG level logging).",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    default=False,
    help="Only log errors and hide progress bars.",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, verbose: bool, quiet: bool) -> None:
    """Video MCP - convert, batch-convert and inspect videos with FFmpeg."""
    config = Config.load(config_path, force_reload=True)

    level: int | str = config.logging.level
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    configure_logging(
        level=level,
        log_dir=config.logging.log_dir,
        console_output=True,
        file_output=config.logging.file_output,
    )

    ctx.obj = CLIContext(config=config, verbose=verbose, quiet=quiet)


@main.command()
@click.argument("input_file", type=click.Path(path_type=Path))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(SUPPORTED_OUTPUT_FORMATS, case_sensitive=False),
    required=True,
    help="Target format.",
)
@click.option("--output", "-o", "output_path", type=click.Path(path_type=Path), default=None)
@click.option("--quality", type=click.Choice(QUALITY_PRESETS), default=None)
@click.option("--resolution", default=None, help='Output size, e.g. "1280x720".')
@click.option("--video-bitrate", type=int, default=None, help="Video bitrate in kbps.")
@click.option("--audio-bitrate", type=int, default=None, help="Audio bitrate in kbps.")
@click.option("--frame-rate", type=float, default=None, help="Output frame rate.")
@click.option("--overwrite", is_flag=True, default=False, help="Replace an existing output.")
@click.pass_obj
def convert(
    cli_ctx: CLIContext,
    input_file: Path,
    output_format: str,
    output_path: Path | None,
    quality: str | None,
    resolution: str | None,
    video_bitrate: int | None,
    audio_bitrate: int | None,
    frame_rate: float | None,
    overwrite: bool,
) -> None:
    """Convert INPUT_FILE to another format.

    Examples:

        video-mcp convert clip.avi -f mp4

        video-mcp convert clip.mov -f webm --quality high -o out/clip.webm
    """
    tools = _require_tools(cli_ctx)
    args = ConvertVideoArgs(
        input_path=str(input_file),
        output_format=output_format,
        output_path=str(output_path) if output_path else None,
        quality=quality,
        resolution=resolution,
        video_bitrate=video_bitrate,
        audio_bitrate=audio_bitrate,
        frame_rate=frame_rate,
        overwrite=overwrite,
    )
    try:
        with _ProgressDisplay(enabled=not cli_ctx.quiet) as display:
            response = asyncio.run(handle_convert_video(tools, args, display.update))
    except KeyboardInterrupt:
        err_console.print("[yellow]Conversion cancelled by user.[/yellow]")
        sys.exit(130)
    _finish(response)


@main.command()
@click.argument("input_files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option(
    "--format",
    "-f",
    "output_format",
    required=True,
    help="Target format for every file.",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    required=True,
)
@click.option("--quality", type=click.Choice(QUALITY_PRESETS), default=None)
@click.option("--overwrite", is_flag=True, default=False, help="Replace existing outputs.")
@click.pass_obj
def batch(
    cli_ctx: CLIContext,
    input_files: tuple[Path, ...],
    output_format: str,
    output_dir: Path,
    quality: str | None,
    overwrite: bool,
) -> None:
    """Convert INPUT_FILES one after another into OUTPUT_DIR."""
    tools = _require_tools(cli_ctx)
    args = BatchConvertArgs(
        input_files=[str(path) for path in input_files],
        output_format=output_format,
        output_dir=str(output_dir),
        quality=quality,
        overwrite=overwrite,
    )
    try:
        with _ProgressDisplay(enabled=not cli_ctx.quiet) as display:
            response = asyncio.run(handle_batch_convert(tools, args, display.update_batch))
    except KeyboardInterrupt:
        err_console.print("[yellow]Batch cancelled by user.[/yellow]")
        sys.exit(130)
    _finish(response)


@main.command()
@click.argument("file_path", type=click.Path(path_type=Path))
@click.pass_obj
def info(cli_ctx: CLIContext, file_path: Path) -> None:
    """Show metadata of FILE_PATH."""
    tools = _require_tools(cli_ctx)
    response = asyncio.run(handle_get_video_info(tools, GetVideoInfoArgs(file_path=str(file_path))))
    _finish(response)


@main.command(name="tools")
def tools_command() -> None:
    """List the available tools and their argument schemas."""
    _echo_json(list_tools())


@main.command()
@click.argument("tool_name")
@click.argument("arguments", default="{}")
@click.pass_obj
def call(cli_ctx: CLIContext, tool_name: str, arguments: str) -> None:
    """Run TOOL_NAME with ARGUMENTS given as a JSON object."""
    try:
        parsed = json.loads(arguments)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="ARGUMENTS") from e

    tools = _require_tools(cli_ctx)
    try:
        response = asyncio.run(call_tool(tools, tool_name, parsed))
    except ToolCallError as e:
        _echo_json({"error": e.to_dict()})
        sys.exit(2)
    _finish(response)


async def _handle_request_line(tools: ToolContext, line: str) -> dict[str, Any]:
    try:
        request = json.loads(line)
    except json.JSONDecodeError as e:
        return {"id": None, "error": {"code": INVALID_PARAMS, "message": f"Invalid JSON: {e}"}}

    if not isinstance(request, dict) or not isinstance(request.get("tool"), str):
        request_id = request.get("id") if isinstance(request, dict) else None
        return {
            "id": request_id,
            "error": {"code": INVALID_PARAMS, "message": "Request must be an object with a 'tool'"},
        }

    request_id = request.get("id")
    try:
        result = await call_tool(tools, request["tool"], request.get("arguments", {}))
    except ToolCallError as e:
        return {"id": request_id, "error": e.to_dict()}
    except Exception as e:
        logger.exception("Tool %s failed", request["tool"])
        return {"id": request_id, "error": {"code": INTERNAL_ERROR, "message": str(e)}}
    return {"id": request_id, "result": result}


async def _serve(tools: ToolContext, stdin: TextIO, stdout: TextIO) -> None:
    while True:
        line = await asyncio.to_thread(stdin.readline)
        if not line:
            break
        if not line.strip():
            continue
        response = await _handle_request_line(tools, line)
        stdout.write(json.dumps(response, ensure_ascii=False) + "\n")
        stdout.flush()


@main.command()
@click.pass_obj
def serve(cli_ctx: CLIContext) -> None:
    """Answer JSON-lines tool requests on stdin until EOF."""
    tools = _require_tools(cli_ctx)
    logger.info("Serving tools: %s", ", ".join(tool["name"] for tool in list_tools()))
    stdin = click.get_text_stream("stdin")
    stdout = click.get_text_stream("stdout")
    try:
        asyncio.run(_serve(tools, stdin, stdout))
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
