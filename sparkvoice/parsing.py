"""Shared parsing helpers for configuration and CLI value normalization."""

from __future__ import annotations


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_name_list(value: object) -> tuple[str, ...]:
    """Parse a comma-separated string or a sequence into a tuple of non-empty names.

    Blank entries are dropped; order is preserved.
    """

    if value is None:
        return ()
    if isinstance(value, str):
        raw_items: list[object] = list(value.split(","))
    elif isinstance(value, list | tuple):
        raw_items = list(value)
    else:
        raw_items = [value]
    names: list[str] = []
    for raw in raw_items:
        normalized = normalize_optional_string(raw)
        if normalized is not None:
            names.append(normalized)
    return tuple(names)
