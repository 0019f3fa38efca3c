"""Input/output collaborators for Sparkvoice.

This package contains the artifact store and content repository interfaces
used by the audio pipeline, with filesystem-backed implementations.
"""

from .repository import ContentRepository, JsonContentRepository
from .storage import ArtifactStore, FilesystemArtifactStore

__all__ = [
    "ArtifactStore",
    "ContentRepository",
    "FilesystemArtifactStore",
    "JsonContentRepository",
]
