"""Narration script composition.

Responsibilities:
- Assemble the spoken script for one content item in a fixed section order.
- Omit sections whose source field is empty, including their transition phrase.
"""

from __future__ import annotations

from ..models.datatypes import ContentItem

READING_INTRO = "Today's scripture reading is from {reference}."
REFLECTION_TRANSITION = "Take a moment to reflect."
ACTION_TRANSITION = "Here is your action step for today."
PRAYER_TRANSITION = "Let's close in prayer."
BENEDICTION = "Amen. May this spark ignite your faith today."


def compose_narration_script(item: ContentItem) -> str:
    """Compose the plain-text narration script for a content item."""

    lines: list[str] = [f"Today's devotional: {item.title}.", ""]

    if item.scripture_ref and item.full_passage:
        lines.extend(
            [READING_INTRO.format(reference=item.scripture_ref), "", item.full_passage, "", ""]
        )

    if item.full_teaching:
        lines.extend([item.full_teaching, ""])

    if item.reflection_question:
        lines.extend([REFLECTION_TRANSITION, "", item.reflection_question, ""])

    if item.today_action:
        lines.extend([ACTION_TRANSITION, "", item.today_action, ""])

    if item.prayer_line:
        lines.extend([PRAYER_TRANSITION, "", item.prayer_line])

    lines.extend(["", BENEDICTION])
    return "\n".join(lines)
