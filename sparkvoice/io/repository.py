"""Content repository interface and JSON-file implementation.

Responsibilities:
- Define the narrow repository projection the audio pipeline reads and writes.
- Persist audio metadata alongside each content item.
- Validate persisted records at the boundary so the pipeline only sees typed data.

Document layout of `JsonContentRepository`::

    {"items": [{"id": 1, "title": "...", ..., "audio_metadata": {...} | null}]}
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from threading import RLock
from typing import Any, Protocol

from ..errors import ContentNotFound, ContentStoreError
from ..models.datatypes import AudioArtifactMetadata, ContentItem

_METADATA_KEY = "audio_metadata"


class ContentRepository(Protocol):
    """Repository operations consumed by the audio pipeline."""

    def list_all(self) -> list[ContentItem]:
        """Return every content item ordered by id."""

    def get_by_id(self, item_id: int) -> ContentItem | None:
        """Return one content item, or `None` when unknown."""

    def get_artifact_metadata(self, item_id: int) -> AudioArtifactMetadata | None:
        """Return stored audio metadata for an item, if any."""

    def save_artifact_metadata(self, item_id: int, metadata: AudioArtifactMetadata) -> None:
        """Persist audio metadata for an item, replacing any previous value."""

    def clear_artifact_metadata(self, item_id: int) -> None:
        """Remove stored audio metadata for an item."""


class JsonContentRepository:
    """Thread-safe content repository stored in a single JSON document.

    The document is re-read on every call so edits made by other processes are
    picked up on the next pass. A missing file is an empty repository.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the repository with its JSON document path."""

        self.path = path
        self._lock = RLock()

    def list_all(self) -> list[ContentItem]:
        """Return every content item ordered by id."""

        with self._lock:
            records = self._load_records()
        return sorted((self._item_from_record(record) for record in records), key=lambda item: item.id)

    def get_by_id(self, item_id: int) -> ContentItem | None:
        """Return one content item, or `None` when unknown."""

        with self._lock:
            record = self._find_record(self._load_records(), item_id)
        if record is None:
            return None
        return self._item_from_record(record)

    def get_artifact_metadata(self, item_id: int) -> AudioArtifactMetadata | None:
        """Return stored audio metadata for an item, if any."""

        with self._lock:
            record = self._find_record(self._load_records(), item_id)
        if record is None:
            return None
        raw = record.get(_METADATA_KEY)
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ContentStoreError(f"Item {item_id} `{_METADATA_KEY}` must be an object.")
        try:
            metadata = AudioArtifactMetadata.from_dict(raw)
        except ValueError as exc:
            raise ContentStoreError(f"Item {item_id} has invalid audio metadata: {exc}") from exc
        if metadata.content_id != item_id:
            raise ContentStoreError(
                f"Item {item_id} audio metadata belongs to item {metadata.content_id}."
            )
        return metadata

    def save_artifact_metadata(self, item_id: int, metadata: AudioArtifactMetadata) -> None:
        """Persist audio metadata for an item, replacing any previous value."""

        if metadata.content_id != item_id:
            raise ValueError(
                f"Metadata for item {metadata.content_id} cannot be stored on item {item_id}."
            )
        self._update_record(item_id, {_METADATA_KEY: metadata.to_dict()})

    def clear_artifact_metadata(self, item_id: int) -> None:
        """Remove stored audio metadata for an item."""

        self._update_record(item_id, {_METADATA_KEY: None})

    def save_item(self, item: ContentItem) -> None:
        """Insert or update an item's text fields, keeping its audio metadata."""

        with self._lock:
            records = self._load_records()
            record = self._find_record(records, item.id)
            if record is None:
                records.append({**item.to_dict(), _METADATA_KEY: None})
            else:
                record.update(item.to_dict())
            self._write_records(records)

    def _update_record(self, item_id: int, changes: dict[str, Any]) -> None:
        """Apply field changes to one record under the repository lock."""

        with self._lock:
            records = self._load_records()
            record = self._find_record(records, item_id)
            if record is None:
                raise ContentNotFound(item_id)
            record.update(changes)
            self._write_records(records)

    def _load_records(self) -> list[dict[str, Any]]:
        """Load and shape-check the raw item records."""

        if not self.path.exists():
            return []
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ContentStoreError(f"Failed to read content file `{self.path}`: {exc}") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("items"), list):
            raise ContentStoreError(
                f"Content file `{self.path}` must contain an object with an `items` list."
            )
        records = payload["items"]
        for record in records:
            if not isinstance(record, dict):
                raise ContentStoreError(f"Content file `{self.path}` has a non-object item.")
        return records

    def _write_records(self, records: list[dict[str, Any]]) -> None:
        """Atomically replace the JSON document."""

        text = json.dumps({"items": records}, ensure_ascii=False, indent=2, sort_keys=True)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle, temp_name = tempfile.mkstemp(prefix=".tmp-", dir=self.path.parent)
            with os.fdopen(handle, "w", encoding="utf-8") as temp_file:
                temp_file.write(text)
            os.replace(temp_name, self.path)
        except OSError as exc:
            raise ContentStoreError(f"Failed to write content file `{self.path}`: {exc}") from exc

    @staticmethod
    def _find_record(records: list[dict[str, Any]], item_id: int) -> dict[str, Any] | None:
        """Return the raw record for an id, if present."""

        for record in records:
            if record.get("id") == item_id and not isinstance(record.get("id"), bool):
                return record
        return None

    @staticmethod
    def _item_from_record(record: dict[str, Any]) -> ContentItem:
        """Validate and convert one raw record into a `ContentItem`."""

        try:
            return ContentItem.from_dict(record)
        except ValueError as exc:
            raise ContentStoreError(str(exc)) from exc
