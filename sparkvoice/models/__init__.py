"""Shared typed data models for Sparkvoice.

This package contains dataclasses used across pipeline and scheduler modules to
avoid cross-module coupling and circular imports.
"""

from .datatypes import (
    AudioArtifactMetadata,
    BatchReport,
    ContentItem,
    GenerationResult,
    ItemAudioStatus,
    ItemStatus,
    JobStatus,
    PurgeReport,
    StatusReport,
)

__all__ = [
    "AudioArtifactMetadata",
    "BatchReport",
    "ContentItem",
    "GenerationResult",
    "ItemAudioStatus",
    "ItemStatus",
    "JobStatus",
    "PurgeReport",
    "StatusReport",
]
