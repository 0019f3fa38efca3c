"""Unit tests for content fingerprints and narration script composition."""

from __future__ import annotations

from dataclasses import replace
from hashlib import sha256

import pytest

from sparkvoice.models.datatypes import ContentItem
from sparkvoice.text import compose_narration_script, content_fingerprint
from sparkvoice.text.narration import (
    ACTION_TRANSITION,
    BENEDICTION,
    PRAYER_TRANSITION,
    REFLECTION_TRANSITION,
)


def _full_item() -> ContentItem:
    """Build an item with every narratable field populated."""

    return ContentItem(
        id=7,
        title="Living Water",
        scripture_ref="John 4:14",
        full_passage="Whoever drinks the water I give them will never thirst.",
        full_teaching="Jesus offers a spring that never runs dry.",
        reflection_question="Where are you looking for refreshment?",
        today_action="Share a cup of water with someone.",
        prayer_line="Lord, fill me with your living water.",
    )


def test_fingerprint_is_sixteen_hex_chars_of_sha256() -> None:
    """Fingerprint should be the first 16 hex chars of SHA-256 over `|||`-joined fields."""

    item = _full_item()
    joined = "|||".join(
        [
            item.title,
            item.scripture_ref,
            item.full_passage,
            item.full_teaching,
            item.reflection_question,
            item.today_action,
            item.prayer_line,
        ]
    )

    fingerprint = content_fingerprint(item)

    assert fingerprint == sha256(joined.encode("utf-8")).hexdigest()[:16]
    assert len(fingerprint) == 16
    assert all(char in "0123456789abcdef" for char in fingerprint)


def test_fingerprint_is_deterministic_and_ignores_id() -> None:
    """Equal text should produce equal fingerprints regardless of item id."""

    item = _full_item()

    assert content_fingerprint(item) == content_fingerprint(item)
    assert content_fingerprint(item) == content_fingerprint(replace(item, id=99))


@pytest.mark.parametrize(
    "field_name",
    [
        "title",
        "scripture_ref",
        "full_passage",
        "full_teaching",
        "reflection_question",
        "today_action",
        "prayer_line",
    ],
)
def test_fingerprint_changes_when_any_narratable_field_changes(field_name: str) -> None:
    """Editing one narratable field should change the fingerprint."""

    item = _full_item()
    edited = replace(item, **{field_name: getattr(item, field_name) + " (edited)"})

    assert content_fingerprint(edited) != content_fingerprint(item)


def test_fingerprint_treats_missing_fields_as_empty_text() -> None:
    """`None` and empty string should hash identically."""

    with_none = ContentItem(id=1, title="T", full_teaching="Body")
    with_empty = ContentItem(
        id=1,
        title="T",
        scripture_ref="",
        full_passage="",
        full_teaching="Body",
        reflection_question="",
        today_action="",
        prayer_line="",
    )

    assert content_fingerprint(with_none) == content_fingerprint(with_empty)


def test_narration_orders_every_section() -> None:
    """A full item should narrate title, reading, teaching, reflection, action, prayer, close."""

    item = _full_item()
    script = compose_narration_script(item)

    markers = [
        "Today's devotional: Living Water.",
        "Today's scripture reading is from John 4:14.",
        item.full_passage,
        item.full_teaching,
        REFLECTION_TRANSITION,
        item.reflection_question,
        ACTION_TRANSITION,
        item.today_action,
        PRAYER_TRANSITION,
        item.prayer_line,
        BENEDICTION,
    ]
    positions = [script.index(marker) for marker in markers]
    assert positions == sorted(positions)
    assert script.endswith(BENEDICTION)


def test_narration_of_minimal_item_has_title_teaching_and_benediction() -> None:
    """Only title, teaching, and the closing line should be narrated for a bare item."""

    item = ContentItem(id=1, title="Rest", full_teaching="Be still.")

    assert compose_narration_script(item) == (
        "Today's devotional: Rest.\n\nBe still.\n\n\nAmen. May this spark ignite your faith today."
    )


def test_narration_omits_sections_with_their_transitions() -> None:
    """Empty optional fields should drop both the content and the transition phrase."""

    item = replace(_full_item(), reflection_question=None, today_action="", prayer_line=None)
    script = compose_narration_script(item)

    assert REFLECTION_TRANSITION not in script
    assert ACTION_TRANSITION not in script
    assert PRAYER_TRANSITION not in script
    assert item.full_teaching in script


def test_narration_requires_both_reference_and_passage_for_reading() -> None:
    """A reference without its passage should not announce a reading."""

    item = replace(_full_item(), full_passage=None)
    script = compose_narration_script(item)

    assert "scripture reading" not in script
    assert "John 4:14" not in script
