"""Application wiring for the audio pipeline and background jobs.

Responsibilities:
- Build the pipeline and scheduler from a validated `SparkvoiceConfig`.
- Register the built-in audio maintenance jobs on an explicit scheduler instance.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from .config import SparkvoiceConfig
from .errors import NoNarratableContent
from .io.repository import JsonContentRepository
from .io.storage import FilesystemArtifactStore
from .models.datatypes import GenerationResult
from .pipeline.audio import AudioPipeline
from .scheduler.jobs import JobScheduler
from .telemetry.logger import EventLogger
from .tts.rate_limiter import RateLimiter
from .tts.synthesizer import OpenAISpeechSynthesizer
from .tts.voices import build_voice_roster

REGENERATE_OUTDATED_JOB = "regenerate-outdated-audio"
GENERATE_MISSING_JOB = "generate-missing-audio"


def build_pipeline(config: SparkvoiceConfig, event_logger: EventLogger) -> AudioPipeline:
    """Create an `AudioPipeline` backed by the JSON repository, filesystem store, and OpenAI."""

    synthesizer = OpenAISpeechSynthesizer(
        model=config.tts_model,
        api_key=config.api_key,
        timeout_seconds=config.request_timeout_seconds,
        rate_limiter=RateLimiter(min_interval_seconds=config.min_request_interval_seconds),
    )
    return AudioPipeline(
        repository=JsonContentRepository(config.content_path),
        synthesizer=synthesizer,
        store=FilesystemArtifactStore(config.storage_root),
        storage_prefix=config.storage_prefix,
        public_base_url=config.public_base_url,
        voices=build_voice_roster(config.voices, speaking_rate=config.tts_speed),
        event_logger=event_logger,
    )


def build_scheduler(config: SparkvoiceConfig, event_logger: EventLogger) -> JobScheduler:
    """Create a scheduler whose clock runs in the configured timezone."""

    zone = config.zone()
    return JobScheduler(event_logger=event_logger, clock=lambda: datetime.now(zone))


def _raise_on_failures(results: Sequence[GenerationResult]) -> None:
    """Raise the first item failure so the scheduler counts the run as failed.

    Items without teaching content are not failures of the job.
    """

    for result in results:
        if result.error is not None and not isinstance(result.error.cause, NoNarratableContent):
            raise result.error


def register_audio_jobs(
    scheduler: JobScheduler,
    pipeline: AudioPipeline,
    config: SparkvoiceConfig,
) -> None:
    """Register the outdated-audio repair job and the missing-audio batch job."""

    def regenerate_outdated() -> None:
        results = pipeline.regenerate_outdated()
        _raise_on_failures(results)

    def generate_missing() -> None:
        report = pipeline.generate_all(force=False, concurrency=config.default_concurrency)
        _raise_on_failures(report.results)

    scheduler.register(REGENERATE_OUTDATED_JOB, config.regenerate_outdated_cron, regenerate_outdated)
    scheduler.register(GENERATE_MISSING_JOB, config.generate_missing_cron, generate_missing)
