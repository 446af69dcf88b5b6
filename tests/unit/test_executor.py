"""Unit tests for the single-job executor."""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from video_mcp.converters.engine import CancellationToken
from video_mcp.converters.executor import (
    ActiveJobRegistry,
    JobExecutor,
    generate_task_id,
    remediation_hint,
)
from video_mcp.core.errors import (
    EngineInvocationError,
    InputValidationError,
    JobCancelledError,
    OutputPathError,
    OutputVerificationError,
)
from video_mcp.core.types import ConversionJob, ConversionRequest, JobStatus
from video_mcp.processors.info_extractor import InfoExtractor
from video_mcp.processors.verification import OutputVerifier
from video_mcp.utils.command_runner import CommandExecutionError


@pytest.fixture
def executor(stub_engine) -> JobExecutor:
    return JobExecutor(stub_engine, OutputVerifier(InfoExtractor(stub_engine)))


class TestTaskIds:
    """Tests for task id generation."""

    def test_format(self) -> None:
        assert re.fullmatch(r"task_\d+_[0-9a-z]{9}", generate_task_id())

    def test_ids_are_distinct(self) -> None:
        registry = ActiveJobRegistry()
        ids = {registry.new_task_id() for _ in range(200)}
        assert len(ids) == 200


class TestRemediationHint:
    """Tests for remediation hints."""

    @pytest.mark.parametrize(
        ("message", "fragment"),
        [
            ("clip.mp4: moov atom not found", "truncated or corrupted"),
            ("Invalid data found when processing input", "unsupported or the file is damaged"),
            ("out/x.mp4: No such file or directory", "input path is correct"),
            ("out.mp4: Permission denied", "permissions"),
            ("Encoder codec not found", "codec is missing"),
        ],
    )
    def test_known_signatures(self, message: str, fragment: str) -> None:
        hint = remediation_hint(message)
        assert hint is not None
        assert hint.startswith("Hint:")
        assert fragment in hint

    def test_unknown_message(self) -> None:
        assert remediation_hint("something else went wrong") is None


class TestActiveJobRegistry:
    """Tests for ActiveJobRegistry."""

    def test_register_get_remove(self) -> None:
        registry = ActiveJobRegistry()
        job = ConversionJob("task_1_a", Path("a.avi"), Path("a.mp4"))
        registry.register(job)

        assert "task_1_a" in registry
        assert len(registry) == 1
        snapshot = registry.get("task_1_a")
        assert snapshot is not None
        assert snapshot is not job

        registry.remove("task_1_a")
        assert registry.get("task_1_a") is None
        assert registry.active() == []

    def test_duplicate_id_is_rejected(self) -> None:
        registry = ActiveJobRegistry()
        registry.register(ConversionJob("task_1_a", Path("a"), Path("b")))
        with pytest.raises(ValueError, match="already registered"):
            registry.register(ConversionJob("task_1_a", Path("c"), Path("d")))


class TestConvert:
    """Tests for JobExecutor.convert."""

    @pytest.mark.asyncio
    async def test_successful_conversion(self, executor, stub_engine, make_video) -> None:
        source = make_video("clip.avi")
        snapshots: list[ConversionJob] = []

        output = await executor.convert(ConversionRequest(source, "mp4"), snapshots.append)

        assert output == source.parent / "clip_converted.mp4"
        assert output.stat().st_size > 0
        assert stub_engine.runs[0]["output_path"] == output
        statuses = [snapshot.status for snapshot in snapshots]
        assert statuses[0] is JobStatus.PROCESSING
        assert statuses[-1] is JobStatus.COMPLETED
        assert [s.progress for s in snapshots] == [0, 25, 50, 75, 100]
        assert len({s.task_id for s in snapshots}) == 1

    @pytest.mark.asyncio
    async def test_progress_never_decreases(self, executor, stub_engine, make_video) -> None:
        stub_engine.progress_steps = (10.0, 40.0, 40.0, 99.6)
        progress: list[int] = []

        await executor.convert(
            ConversionRequest(make_video("clip.avi"), "mkv"),
            lambda job: progress.append(job.progress),
        )

        assert progress == sorted(progress)
        assert progress[-1] == 100

    @pytest.mark.asyncio
    async def test_job_is_registered_only_while_running(
        self, executor, stub_engine, make_video
    ) -> None:
        seen: list[int] = []
        stub_engine.on_progress_step = lambda _: seen.append(len(executor.registry))

        await executor.convert(ConversionRequest(make_video("clip.avi"), "mp4"))

        assert seen and all(count == 1 for count in seen)
        assert len(executor.registry) == 0

    @pytest.mark.asyncio
    async def test_missing_input(self, executor, stub_engine, temp_dir: Path) -> None:
        with pytest.raises(InputValidationError):
            await executor.convert(ConversionRequest(temp_dir / "missing.avi", "mp4"))
        assert stub_engine.runs == []

    @pytest.mark.asyncio
    async def test_existing_output_without_overwrite(
        self, executor, stub_engine, make_video
    ) -> None:
        source = make_video("clip.avi")
        make_video("clip_converted.mp4")

        with pytest.raises(OutputPathError, match="Output file already exists"):
            await executor.convert(ConversionRequest(source, "mp4"))
        assert stub_engine.runs == []

    @pytest.mark.asyncio
    async def test_existing_output_with_overwrite(self, executor, stub_engine, make_video) -> None:
        source = make_video("clip.avi")
        make_video("clip_converted.mp4")

        await executor.convert(ConversionRequest(source, "mp4", overwrite=True))
        assert stub_engine.runs[0]["overwrite"] is True

    @pytest.mark.asyncio
    async def test_output_equal_to_input(self, executor, make_video) -> None:
        source = make_video("clip.mp4")
        with pytest.raises(OutputPathError):
            await executor.convert(
                ConversionRequest(source, "mp4", output_path=source, overwrite=True)
            )

    @pytest.mark.asyncio
    async def test_engine_error_with_hint(self, executor, stub_engine, make_video) -> None:
        source = make_video("broken.avi")
        stub_engine.fail_inputs["broken.avi"] = "broken.avi: moov atom not found"
        snapshots: list[ConversionJob] = []

        with pytest.raises(EngineInvocationError) as exc_info:
            await executor.convert(ConversionRequest(source, "mp4"), snapshots.append)

        assert exc_info.value.raw_message == "broken.avi: moov atom not found"
        assert exc_info.value.hint is not None
        assert str(exc_info.value).startswith("broken.avi: moov atom not found. Hint:")
        assert snapshots[-1].status is JobStatus.FAILED
        assert snapshots[-1].error == "broken.avi: moov atom not found"
        # partial output is removed
        assert not (source.parent / "broken_converted.mp4").exists()
        assert len(executor.registry) == 0

    @pytest.mark.asyncio
    async def test_failed_job_keeps_last_progress(self, executor, stub_engine, make_video) -> None:
        stub_engine.fail_inputs["clip.avi"] = "boom"
        snapshots: list[ConversionJob] = []

        with pytest.raises(EngineInvocationError):
            await executor.convert(
                ConversionRequest(make_video("clip.avi"), "mp4"), snapshots.append
            )

        assert snapshots[-1].progress == 75

    @pytest.mark.asyncio
    async def test_empty_output_fails_verification(
        self, executor, stub_engine, make_video
    ) -> None:
        source = make_video("clip.avi")
        output = source.parent / "clip_converted.mp4"
        stub_engine.write_output = False
        stub_engine.on_progress_step = lambda _: output.write_bytes(b"")

        with pytest.raises(OutputVerificationError) as exc_info:
            await executor.convert(ConversionRequest(source, "mp4"))

        assert str(exc_info.value) == (
            "Conversion completed but output verification failed: output file is empty"
        )

    @pytest.mark.asyncio
    async def test_unparseable_output_fails_verification(
        self, executor, stub_engine, make_video
    ) -> None:
        source = make_video("clip.avi")
        stub_engine.probe_errors["clip_converted.mp4"] = CommandExecutionError(
            "ffprobe", 1, "Invalid data found when processing input"
        )
        snapshots: list[ConversionJob] = []

        with pytest.raises(OutputVerificationError, match="Invalid data found"):
            await executor.convert(ConversionRequest(source, "mp4"), snapshots.append)

        assert snapshots[-1].status is JobStatus.FAILED
        assert snapshots[-1].error is not None
        assert snapshots[-1].error.startswith("Output verification failed")

    @pytest.mark.asyncio
    async def test_cancellation(self, executor, stub_engine, make_video) -> None:
        source = make_video("clip.avi")
        token = CancellationToken()
        stub_engine.on_progress_step = lambda percent: token.cancel() if percent >= 50 else None

        with pytest.raises(JobCancelledError, match="Conversion cancelled"):
            await executor.convert(ConversionRequest(source, "mp4"), cancel_token=token)

        assert not (source.parent / "clip_converted.mp4").exists()
        assert len(executor.registry) == 0

    @pytest.mark.asyncio
    async def test_callback_errors_do_not_abort(self, executor, make_video) -> None:
        def explode(job: ConversionJob) -> None:
            raise RuntimeError("listener bug")

        output = await executor.convert(ConversionRequest(make_video("clip.avi"), "mp4"), explode)
        assert output.exists()

    @pytest.mark.asyncio
    async def test_encoder_preset_is_passed_to_compiler(self, stub_engine, make_video) -> None:
        executor = JobExecutor(
            stub_engine, OutputVerifier(InfoExtractor(stub_engine)), encoder_preset="veryfast"
        )
        await executor.convert(ConversionRequest(make_video("clip.avi"), "mp4"))
        assert stub_engine.runs[0]["directives"].encoder_preset == "veryfast"
