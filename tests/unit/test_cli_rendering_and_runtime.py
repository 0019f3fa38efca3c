"""Unit tests for CLI rendering helpers and built-in job wiring."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
import typer

from sparkvoice.cli_rendering import (
    echo_batch_report,
    echo_job_status,
    echo_status_report,
    exit_with_command_error,
)
from sparkvoice.config import SparkvoiceConfig
from sparkvoice.errors import CommandError, GenerationFailed, SynthesisError
from sparkvoice.io.repository import JsonContentRepository
from sparkvoice.io.storage import FilesystemArtifactStore
from sparkvoice.models.datatypes import (
    BatchReport,
    ContentItem,
    GenerationResult,
    ItemAudioStatus,
    ItemStatus,
    JobStatus,
    StatusReport,
)
from sparkvoice.pipeline import AudioPipeline
from sparkvoice.runtime import (
    GENERATE_MISSING_JOB,
    REGENERATE_OUTDATED_JOB,
    build_pipeline,
    build_scheduler,
    register_audio_jobs,
)
from sparkvoice.telemetry.logger import EventLogger
from sparkvoice.tts.synthesizer import OpenAISpeechSynthesizer

UTC = timezone.utc


def test_exit_with_command_error_prints_stage_and_hint(capsys: pytest.CaptureFixture[str]) -> None:
    """Command errors should render stage, detail, and hint on stderr and exit 1."""

    error = CommandError(stage="config", detail="Config file not found.", hint="Pass --config.")

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("status", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "status failed at stage `config`: Config file not found." in captured.err
    assert "Hint: Pass --config." in captured.err


def test_exit_with_command_error_renders_generic_exceptions(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Non-command exceptions should render their message without a stage."""

    with pytest.raises(typer.Exit):
        exit_with_command_error("generate", RuntimeError("unexpected"))

    assert "generate failed: unexpected" in capsys.readouterr().err


def test_echo_status_report_lists_counts_and_rows(capsys: pytest.CaptureFixture[str]) -> None:
    """Status output should include aggregate counts and one row per item."""

    report = StatusReport(
        total=2,
        generated=1,
        pending=1,
        outdated=0,
        items=(
            ItemStatus(id=1, title="Hope", status=ItemAudioStatus.GENERATED, audio_url="/api/audio/x.mp3"),
            ItemStatus(id=2, title="Joy", status=ItemAudioStatus.PENDING),
        ),
    )

    echo_status_report(report)

    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "Items: 2 (generated=1 pending=1 outdated=0)",
        "1. [generated] Hope /api/audio/x.mp3",
        "2. [pending] Joy -",
    ]


def test_echo_batch_report_lists_failures(capsys: pytest.CaptureFixture[str]) -> None:
    """Batch output should include counters and each failed item."""

    started = datetime(2026, 1, 19, 5, 0, tzinfo=UTC)
    failure = GenerationFailed(2, SynthesisError("provider down"))
    report = BatchReport(
        started_at=started,
        completed_at=started.replace(second=3),
        total_items=2,
        successful=1,
        skipped=0,
        failed=1,
        results=(
            GenerationResult(item_id=1, success=True),
            GenerationResult(item_id=2, success=False, error=failure),
        ),
    )

    echo_batch_report(report)

    output = capsys.readouterr().out
    assert "Items: 2 successful=1 skipped=0 failed=1 (3.0s)" in output
    assert "Item 2: failed (provider down)" in output


def test_echo_job_status_formats_rows(capsys: pytest.CaptureFixture[str]) -> None:
    """Job status rows should show next/last run, running flag, and errors."""

    echo_job_status(
        {
            "nightly": JobStatus(
                last_run_at=None,
                next_run_at=datetime(2026, 1, 20, 3, 0, tzinfo=UTC),
                is_running=False,
                error_count=2,
            )
        }
    )

    assert capsys.readouterr().out.strip() == (
        "nightly: next=2026-01-20T03:00:00+00:00 last=- running=no errors=2"
    )


def test_build_pipeline_wires_configured_collaborators(
    tmp_path: Path, event_logger: EventLogger
) -> None:
    """Runtime wiring should honor paths, naming, voices, and model settings."""

    config = SparkvoiceConfig(
        content_path=tmp_path / "content.json",
        storage_root=tmp_path / "storage",
        public_base_url="https://cdn.example/audio",
        tts_model="tts-1",
        tts_speed=1.2,
        voices=("alloy",),
    )

    pipeline = build_pipeline(config, event_logger)

    assert isinstance(pipeline.repository, JsonContentRepository)
    assert pipeline.repository.path == config.content_path
    assert isinstance(pipeline.store, FilesystemArtifactStore)
    assert pipeline.store.root == config.storage_root
    assert isinstance(pipeline.synthesizer, OpenAISpeechSynthesizer)
    assert pipeline.synthesizer.model == "tts-1"
    assert pipeline.public_base_url == "https://cdn.example/audio"
    assert [voice.provider_voice_id for voice in pipeline.voices] == ["alloy"]
    assert pipeline.voices[0].speaking_rate == pytest.approx(1.2)


def test_build_scheduler_uses_configured_timezone(event_logger: EventLogger) -> None:
    """The scheduler clock should produce times in the configured zone."""

    scheduler = build_scheduler(SparkvoiceConfig(timezone="Europe/Prague"), event_logger)

    assert str(scheduler.clock().tzinfo) == "Europe/Prague"


def test_register_audio_jobs_runs_pipeline_operations(
    pipeline: AudioPipeline,
    repository: JsonContentRepository,
    event_logger: EventLogger,
) -> None:
    """Built-in jobs should generate missing audio and repair outdated audio."""

    scheduler = build_scheduler(SparkvoiceConfig(), event_logger)
    register_audio_jobs(scheduler, pipeline, SparkvoiceConfig())

    assert scheduler.job_names() == [REGENERATE_OUTDATED_JOB, GENERATE_MISSING_JOB]

    scheduler.run_now(GENERATE_MISSING_JOB)
    assert pipeline.get_status().generated == 3

    item = repository.get_by_id(1)
    assert item is not None
    repository.save_item(ContentItem(id=1, title="Changed", full_teaching=item.full_teaching))
    scheduler.run_now(REGENERATE_OUTDATED_JOB)

    status = scheduler.get_status()
    assert pipeline.get_status().generated == 3
    assert status[GENERATE_MISSING_JOB].error_count == 0
    assert status[REGENERATE_OUTDATED_JOB].last_run_at is not None


def test_audio_job_counts_item_failures_but_not_items_without_teaching(
    write_content: Any,
    make_item: Any,
    store: FilesystemArtifactStore,
    event_logger: EventLogger,
    make_synthesizer: Any,
) -> None:
    """Provider failures should fail the job; items without teaching should not."""

    repository = JsonContentRepository(
        write_content([make_item(1), make_item(2, full_teaching=None)])
    )
    healthy = AudioPipeline(repository, make_synthesizer(), store, event_logger=event_logger)
    scheduler = build_scheduler(SparkvoiceConfig(), event_logger)
    register_audio_jobs(scheduler, healthy, SparkvoiceConfig())

    scheduler.run_now(GENERATE_MISSING_JOB)
    assert scheduler.get_status()[GENERATE_MISSING_JOB].error_count == 0

    failing = AudioPipeline(
        repository,
        make_synthesizer(fail_when=lambda _: True),
        store,
        event_logger=event_logger,
    )
    failing_scheduler = build_scheduler(SparkvoiceConfig(), event_logger)
    register_audio_jobs(failing_scheduler, failing, SparkvoiceConfig())

    failing_scheduler.run_now(GENERATE_MISSING_JOB)
    assert failing_scheduler.get_status()[GENERATE_MISSING_JOB].error_count == 0

    repository.save_item(ContentItem(id=1, title="New", full_teaching="Body"))
    failing_scheduler.run_now(GENERATE_MISSING_JOB)
    assert failing_scheduler.get_status()[GENERATE_MISSING_JOB].error_count == 1
