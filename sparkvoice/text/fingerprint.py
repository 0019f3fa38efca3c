"""Content fingerprinting for change detection.

The fingerprint is the cache key that lets the pipeline skip regeneration when
an item's narratable text is unchanged. It is a change detector, not a
security primitive.
"""

from __future__ import annotations

from hashlib import sha256

from ..models.datatypes import ContentItem

FINGERPRINT_SEPARATOR = "|||"
FINGERPRINT_LENGTH = 16


def narratable_fields(item: ContentItem) -> tuple[str, ...]:
    """Return the narratable fields in fingerprint order, with `None` as empty text."""

    return (
        item.title or "",
        item.scripture_ref or "",
        item.full_passage or "",
        item.full_teaching or "",
        item.reflection_question or "",
        item.today_action or "",
        item.prayer_line or "",
    )


def content_fingerprint(item: ContentItem) -> str:
    """Return the 16-hex-character SHA-256 fingerprint of an item's narratable text."""

    joined = FINGERPRINT_SEPARATOR.join(narratable_fields(item))
    return sha256(joined.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
