"""Content-addressed narration audio pipeline.

Responsibilities:
- Generate one MP3 per content item, skipping items whose stored fingerprint
  already matches their current text.
- Run bounded-concurrency batches where one failing item never aborts the rest.
- Report reconciliation status, regenerate outdated items, and purge audio.

Key types:
- `AudioPipeline`: orchestrates repository, synthesizer, and artifact store.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Sequence

from ..errors import (
    ContentNotFound,
    ContentStoreError,
    GenerationFailed,
    NoNarratableContent,
    SparkvoiceError,
    StorageError,
    SynthesisError,
)
from ..io.repository import ContentRepository
from ..io.storage import (
    AUDIO_CONTENT_TYPE,
    DEFAULT_PUBLIC_BASE_URL,
    DEFAULT_STORAGE_PREFIX,
    ArtifactStore,
    audio_storage_path,
    legacy_audio_path,
    public_audio_url,
)
from ..models.datatypes import (
    AudioArtifactMetadata,
    BatchReport,
    GenerationResult,
    ItemAudioStatus,
    ItemStatus,
    PurgeReport,
    StatusReport,
)
from ..telemetry.logger import EventLogger, shared_event_logger
from ..text.fingerprint import content_fingerprint
from ..text.narration import compose_narration_script
from ..tts.synthesizer import SpeechSynthesizer
from ..tts.voices import DEFAULT_VOICE_ROSTER, VoiceProfile, select_voice_for_item

_COMPONENT = "audio"
_ITEM_ERRORS = (
    ContentNotFound,
    ContentStoreError,
    NoNarratableContent,
    SynthesisError,
    StorageError,
)


def _utc_now() -> datetime:
    """Return the current timezone-aware UTC time."""

    return datetime.now(timezone.utc)


class AudioPipeline:
    """Generate, reconcile, and purge narration audio for content items."""

    def __init__(
        self,
        repository: ContentRepository,
        synthesizer: SpeechSynthesizer,
        store: ArtifactStore,
        *,
        storage_prefix: str = DEFAULT_STORAGE_PREFIX,
        public_base_url: str = DEFAULT_PUBLIC_BASE_URL,
        voices: Sequence[VoiceProfile] = DEFAULT_VOICE_ROSTER,
        event_logger: EventLogger | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """Initialize the pipeline with its collaborators and naming settings."""

        if not voices:
            raise ValueError("At least one voice is required.")
        self.repository = repository
        self.synthesizer = synthesizer
        self.store = store
        self.storage_prefix = storage_prefix
        self.public_base_url = public_base_url
        self.voices = tuple(voices)
        self.event_logger = event_logger or shared_event_logger()
        self.clock = clock

    def get_audio_url(self, item_id: int) -> str | None:
        """Return the stored public URL for an item's audio, if generated."""

        metadata = self.repository.get_artifact_metadata(item_id)
        if metadata is None:
            return None
        return metadata.public_url

    def generate_for_item(self, item_id: int, *, force: bool = False) -> GenerationResult:
        """Generate audio for one item unless its stored audio is already current.

        Per-item problems never raise: the returned result carries a
        `GenerationFailed` whose `cause` is the triggering error.
        """

        try:
            return self._generate(item_id, force=force)
        except Exception as exc:
            context = {"failure_kind": exc.failure_kind} if isinstance(exc, SynthesisError) else {}
            self.event_logger.error(
                _COMPONENT,
                "item_failed",
                item_id=item_id,
                error_type=type(exc).__name__,
                unexpected=not isinstance(exc, _ITEM_ERRORS),
                **context,
            )
            return GenerationResult(
                item_id=item_id,
                success=False,
                error=GenerationFailed(item_id, exc),
            )

    def _generate(self, item_id: int, *, force: bool) -> GenerationResult:
        """Run one generation, raising item-level errors to the caller."""

        item = self.repository.get_by_id(item_id)
        if item is None:
            raise ContentNotFound(item_id)
        if not item.full_teaching:
            raise NoNarratableContent(item_id)

        content_hash = content_fingerprint(item)

        if not force:
            existing = self.repository.get_artifact_metadata(item_id)
            if existing is not None and existing.content_hash == content_hash:
                self.event_logger.info(
                    _COMPONENT, "item_current", item_id=item_id, content_hash=content_hash
                )
                return GenerationResult(
                    item_id=item_id, success=True, skipped=True, metadata=existing
                )

        voice = select_voice_for_item(item_id, self.voices)
        self.event_logger.info(
            _COMPONENT,
            "item_generating",
            item_id=item_id,
            content_hash=content_hash,
            voice=voice.provider_voice_id,
        )
        script = compose_narration_script(item)
        audio_bytes = self.synthesizer.synthesize(script, voice)

        storage_path = audio_storage_path(self.storage_prefix, item_id, content_hash)
        self.store.save(storage_path, audio_bytes, AUDIO_CONTENT_TYPE)

        metadata = AudioArtifactMetadata(
            content_id=item_id,
            content_hash=content_hash,
            generated_at=self.clock(),
            file_size_bytes=len(audio_bytes),
            storage_path=storage_path,
            public_url=public_audio_url(self.public_base_url, item_id, content_hash),
        )
        self.repository.save_artifact_metadata(item_id, metadata)
        self._delete_legacy_artifact(item_id)

        self.event_logger.info(
            _COMPONENT,
            "item_generated",
            item_id=item_id,
            content_hash=content_hash,
            size=len(audio_bytes),
        )
        return GenerationResult(item_id=item_id, success=True, metadata=metadata)

    def _delete_legacy_artifact(self, item_id: int) -> None:
        """Best-effort removal of the unhashed legacy artifact."""

        legacy_path = legacy_audio_path(self.storage_prefix, item_id)
        try:
            if self.store.exists(legacy_path):
                self.store.delete(legacy_path)
                self.event_logger.info(
                    _COMPONENT, "legacy_deleted", item_id=item_id, path=legacy_path
                )
        except StorageError as exc:
            self.event_logger.warning(
                _COMPONENT,
                "legacy_cleanup_failed",
                item_id=item_id,
                error_type=type(exc).__name__,
            )

    def generate_all(self, *, force: bool = False, concurrency: int = 3) -> BatchReport:
        """Generate audio for every item with at most `concurrency` in flight.

        Results are reported in submission order regardless of completion order.
        """

        if concurrency < 1:
            raise ValueError("`concurrency` must be a positive integer.")
        started_at = self.clock()
        items = self.repository.list_all()
        self.event_logger.info(
            _COMPONENT,
            "batch_start",
            force=force,
            concurrency=concurrency,
            total=len(items),
        )

        with ThreadPoolExecutor(
            max_workers=concurrency, thread_name_prefix="sparkvoice-audio"
        ) as executor:
            futures = [
                executor.submit(self.generate_for_item, item.id, force=force) for item in items
            ]
            results = tuple(future.result() for future in futures)

        successful = sum(1 for result in results if result.success and not result.skipped)
        skipped = sum(1 for result in results if result.success and result.skipped)
        failed = sum(1 for result in results if not result.success)
        completed_at = self.clock()
        self.event_logger.info(
            _COMPONENT,
            "batch_complete",
            total=len(results),
            successful=successful,
            skipped=skipped,
            failed=failed,
        )
        return BatchReport(
            started_at=started_at,
            completed_at=completed_at,
            total_items=len(items),
            successful=successful,
            skipped=skipped,
            failed=failed,
            results=results,
        )

    def get_status(self) -> StatusReport:
        """Classify every item as generated, pending, or outdated without mutating anything."""

        rows: list[ItemStatus] = []
        counts = {status: 0 for status in ItemAudioStatus}
        for item in self.repository.list_all():
            metadata = self.repository.get_artifact_metadata(item.id)
            if metadata is None:
                status = ItemAudioStatus.PENDING
            elif metadata.content_hash != content_fingerprint(item):
                status = ItemAudioStatus.OUTDATED
            else:
                status = ItemAudioStatus.GENERATED
            counts[status] += 1
            rows.append(
                ItemStatus(
                    id=item.id,
                    title=item.title,
                    status=status,
                    audio_url=metadata.public_url if metadata else None,
                    generated_at=metadata.generated_at if metadata else None,
                    content_hash=metadata.content_hash if metadata else None,
                )
            )
        return StatusReport(
            total=len(rows),
            generated=counts[ItemAudioStatus.GENERATED],
            pending=counts[ItemAudioStatus.PENDING],
            outdated=counts[ItemAudioStatus.OUTDATED],
            items=tuple(rows),
        )

    def regenerate_outdated(self) -> list[GenerationResult]:
        """Force-regenerate outdated items one at a time."""

        outdated = [
            row.id for row in self.get_status().items if row.status is ItemAudioStatus.OUTDATED
        ]
        self.event_logger.info(_COMPONENT, "regenerate_outdated_start", total=len(outdated))
        results = [self.generate_for_item(item_id, force=True) for item_id in outdated]
        self.event_logger.info(
            _COMPONENT,
            "regenerate_outdated_complete",
            total=len(results),
            failed=sum(1 for result in results if not result.success),
        )
        return results

    def delete_all_audio(self) -> PurgeReport:
        """Delete hashed and legacy audio for every item and clear stored metadata.

        Per-item errors are collected and the sweep continues.
        """

        deleted = 0
        errors: list[str] = []
        for item in self.repository.list_all():
            try:
                metadata = self.repository.get_artifact_metadata(item.id)
            except ContentStoreError as exc:
                errors.append(f"Item {item.id}: {exc}")
                metadata = None
            try:
                if metadata is not None and self.store.exists(metadata.storage_path):
                    self.store.delete(metadata.storage_path)
                    deleted += 1
                legacy_path = legacy_audio_path(self.storage_prefix, item.id)
                if self.store.exists(legacy_path):
                    self.store.delete(legacy_path)
                    deleted += 1
                self.repository.clear_artifact_metadata(item.id)
            except SparkvoiceError as exc:
                errors.append(f"Item {item.id}: {exc}")

        self.event_logger.warning(
            _COMPONENT, "purge_complete", deleted=deleted, errors=len(errors)
        )
        return PurgeReport(deleted_count=deleted, errors=tuple(errors))
