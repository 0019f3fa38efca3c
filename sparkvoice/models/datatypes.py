"""Core datatypes shared across Sparkvoice modules.

Responsibilities:
- Represent immutable records exchanged between repository, pipeline, and scheduler.
- Validate persisted payloads at the repository boundary.

Key types:
- `ContentItem`, `AudioArtifactMetadata`, `GenerationResult`, `BatchReport`,
  `ItemAudioStatus`, `ItemStatus`, `StatusReport`, `PurgeReport`, and `JobStatus`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from ..errors import GenerationFailed


_OPTIONAL_TEXT_FIELDS = (
    "scripture_ref",
    "full_passage",
    "full_teaching",
    "reflection_question",
    "today_action",
    "prayer_line",
)


@dataclass(frozen=True, slots=True)
class ContentItem:
    """Narratable projection of one devotional content record.

    Attributes:
        id: Stable integer key.
        title: Item title, always announced first in narration.
        scripture_ref: Scripture reference such as `John 3:16`.
        full_passage: Full scripture passage text.
        full_teaching: Primary teaching body; required for narration.
        reflection_question: Optional reflection prompt.
        today_action: Optional action step.
        prayer_line: Optional closing prayer line.
    """

    id: int
    title: str
    scripture_ref: str | None = None
    full_passage: str | None = None
    full_teaching: str | None = None
    reflection_question: str | None = None
    today_action: str | None = None
    prayer_line: str | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ContentItem:
        """Build an item from a persisted mapping, validating field types."""

        item_id = payload.get("id")
        if isinstance(item_id, bool) or not isinstance(item_id, int):
            raise ValueError(f"Content item `id` must be an integer, got {item_id!r}.")
        title = payload.get("title")
        if title is None:
            title = ""
        if not isinstance(title, str):
            raise ValueError(f"Content item {item_id} `title` must be a string.")
        optional: dict[str, str | None] = {}
        for name in _OPTIONAL_TEXT_FIELDS:
            value = payload.get(name)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"Content item {item_id} `{name}` must be a string or null.")
            optional[name] = value
        return cls(id=item_id, title=title, **optional)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping of the item fields."""

        payload: dict[str, Any] = {"id": self.id, "title": self.title}
        for name in _OPTIONAL_TEXT_FIELDS:
            payload[name] = getattr(self, name)
        return payload


@dataclass(frozen=True, slots=True)
class AudioArtifactMetadata:
    """Metadata describing the narration artifact generated for one item.

    Attributes:
        content_id: Id of the content item the audio belongs to.
        content_hash: Fingerprint of the item text the audio was generated from.
        generated_at: Timezone-aware generation timestamp.
        file_size_bytes: Size of the stored audio payload.
        storage_path: Artifact store path of the audio file.
        public_url: URL clients use to fetch the audio.
    """

    content_id: int
    content_hash: str
    generated_at: datetime
    file_size_bytes: int
    storage_path: str
    public_url: str

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> AudioArtifactMetadata:
        """Build metadata from a persisted mapping, validating every field."""

        content_id = payload.get("content_id")
        if isinstance(content_id, bool) or not isinstance(content_id, int):
            raise ValueError("Audio metadata `content_id` must be an integer.")
        file_size = payload.get("file_size_bytes")
        if isinstance(file_size, bool) or not isinstance(file_size, int) or file_size < 0:
            raise ValueError("Audio metadata `file_size_bytes` must be a non-negative integer.")
        strings: dict[str, str] = {}
        for name in ("content_hash", "storage_path", "public_url", "generated_at"):
            value = payload.get(name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Audio metadata `{name}` must be a non-empty string.")
            strings[name] = value
        try:
            generated_at = datetime.fromisoformat(strings["generated_at"])
        except ValueError as exc:
            raise ValueError("Audio metadata `generated_at` must be an ISO-8601 timestamp.") from exc
        return cls(
            content_id=content_id,
            content_hash=strings["content_hash"],
            generated_at=generated_at,
            file_size_bytes=file_size,
            storage_path=strings["storage_path"],
            public_url=strings["public_url"],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable mapping of the metadata."""

        return {
            "content_id": self.content_id,
            "content_hash": self.content_hash,
            "generated_at": self.generated_at.isoformat(),
            "file_size_bytes": self.file_size_bytes,
            "storage_path": self.storage_path,
            "public_url": self.public_url,
        }


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """Outcome of generating audio for one item.

    `skipped` is true when stored audio already matched the current content
    and no provider or storage call was made.
    """

    item_id: int
    success: bool
    skipped: bool = False
    metadata: AudioArtifactMetadata | None = None
    error: GenerationFailed | None = None


@dataclass(frozen=True, slots=True)
class BatchReport:
    """Aggregated outcome of one batch generation run."""

    started_at: datetime
    completed_at: datetime
    total_items: int
    successful: int
    skipped: int
    failed: int
    results: tuple[GenerationResult, ...] = field(default_factory=tuple)


class ItemAudioStatus(str, Enum):
    """Reconciliation state of an item's stored audio."""

    GENERATED = "generated"
    PENDING = "pending"
    OUTDATED = "outdated"


@dataclass(frozen=True, slots=True)
class ItemStatus:
    """Reconciliation row for one content item."""

    id: int
    title: str
    status: ItemAudioStatus
    audio_url: str | None = None
    generated_at: datetime | None = None
    content_hash: str | None = None


@dataclass(frozen=True, slots=True)
class StatusReport:
    """Read-only reconciliation view across all content items."""

    total: int
    generated: int
    pending: int
    outdated: int
    items: tuple[ItemStatus, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class PurgeReport:
    """Outcome of a best-effort purge of all stored audio."""

    deleted_count: int
    errors: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class JobStatus:
    """Bookkeeping snapshot of one scheduled job."""

    last_run_at: datetime | None
    next_run_at: datetime | None
    is_running: bool
    error_count: int
