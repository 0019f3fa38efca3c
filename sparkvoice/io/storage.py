"""Artifact storage abstraction for narration audio.

Responsibilities:
- Define the object-store protocol consumed by the audio pipeline.
- Provide a filesystem-backed store with atomic writes.
- Build hashed and legacy artifact paths and public URLs.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import Protocol

from ..errors import StorageError

AUDIO_CONTENT_TYPE = "audio/mpeg"
DEFAULT_STORAGE_PREFIX = "public/audio"
DEFAULT_PUBLIC_BASE_URL = "/api/audio"


def audio_file_name(item_id: int, content_hash: str) -> str:
    """Return the hashed artifact file name for an item."""

    return f"item-{item_id}-{content_hash}.mp3"


def audio_storage_path(prefix: str, item_id: int, content_hash: str) -> str:
    """Return the hashed artifact path written by current generation logic."""

    return f"{prefix.rstrip('/')}/{audio_file_name(item_id, content_hash)}"


def legacy_audio_path(prefix: str, item_id: int) -> str:
    """Return the pre-fingerprint artifact path, recognised only for cleanup."""

    return f"{prefix.rstrip('/')}/item-{item_id}.mp3"


def public_audio_url(base_url: str, item_id: int, content_hash: str) -> str:
    """Return the client-facing URL of a hashed artifact."""

    return f"{base_url.rstrip('/')}/{audio_file_name(item_id, content_hash)}"


class ArtifactStore(Protocol):
    """Object store operations keyed by storage path strings.

    Every operation raises `StorageError` on I/O or permission failure.
    """

    def save(self, path: str, data: bytes, content_type: str) -> None:
        """Write bytes at the given path, replacing any existing object."""

    def read(self, path: str) -> bytes:
        """Return the bytes stored at the given path."""

    def exists(self, path: str) -> bool:
        """Return whether an object exists at the given path."""

    def delete(self, path: str) -> None:
        """Delete the object at the given path."""


class FilesystemArtifactStore:
    """Filesystem-backed artifact store rooted at one directory.

    Objects carry no headers on disk; their content type is implied by the
    file suffix when served.
    """

    def __init__(self, root: Path) -> None:
        """Initialize the store with a root directory."""

        self.root = root

    def save(self, path: str, data: bytes, content_type: str = AUDIO_CONTENT_TYPE) -> None:
        """Atomically write bytes so readers never observe a partial object."""

        target = self._resolve(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            handle, temp_name = tempfile.mkstemp(prefix=".tmp-", dir=target.parent)
            try:
                with os.fdopen(handle, "wb") as temp_file:
                    temp_file.write(data)
                os.replace(temp_name, target)
            except BaseException:
                Path(temp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"Failed to save `{path}`: {exc}", path=path) from exc

    def read(self, path: str) -> bytes:
        """Read stored bytes."""

        try:
            return self._resolve(path).read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read `{path}`: {exc}", path=path) from exc

    def exists(self, path: str) -> bool:
        """Return whether the object exists."""

        try:
            return self._resolve(path).is_file()
        except OSError as exc:
            raise StorageError(f"Failed to stat `{path}`: {exc}", path=path) from exc

    def delete(self, path: str) -> None:
        """Delete the object; deleting a missing object is not an error."""

        try:
            self._resolve(path).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete `{path}`: {exc}", path=path) from exc

    def _resolve(self, path: str) -> Path:
        """Map a store path to a filesystem path, rejecting escapes from the root."""

        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise StorageError(f"Invalid storage path `{path}`.", path=path)
        return self.root.joinpath(*relative.parts)
