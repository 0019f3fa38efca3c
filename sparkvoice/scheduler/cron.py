"""Five-field cron expression parsing and next-run evaluation.

Supported field forms: `*`, `n`, `n,m,...`, `*/n`, and `a-b`. Fields are
minute (0-59), hour (0-23), day-of-month (1-31), month (1-12), and
day-of-week (0-6, Sunday is 0).

The next-run search scans forward minute by minute for at most 48 hours and
falls back to one hour from now when nothing matches, so expressions that
match rarely or never (e.g. `0 0 30 2 *`) still yield a bounded delay.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..errors import InvalidCronExpression

SEARCH_WINDOW_MINUTES = 48 * 60
FALLBACK_DELAY = timedelta(hours=1)

_FIELD_BOUNDS = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day_of_month", 1, 31),
    ("month", 1, 12),
    ("day_of_week", 0, 6),
)


class CronPatterns:
    """Common cron expressions."""

    EVERY_MINUTE = "* * * * *"
    EVERY_5_MINUTES = "*/5 * * * *"
    EVERY_15_MINUTES = "*/15 * * * *"
    EVERY_30_MINUTES = "*/30 * * * *"
    EVERY_HOUR = "0 * * * *"
    EVERY_6_HOURS = "0 */6 * * *"
    DAILY_MIDNIGHT = "0 0 * * *"
    DAILY_0001 = "1 0 * * *"
    DAILY_3AM = "0 3 * * *"
    DAILY_5AM = "0 5 * * *"
    DAILY_6AM = "0 6 * * *"
    DAILY_8AM = "0 8 * * *"
    DAILY_9PM = "0 21 * * *"
    WEEKLY_SUNDAY = "0 0 * * 0"
    WEEKLY_MONDAY = "0 0 * * 1"


@dataclass(frozen=True, slots=True)
class CronExpression:
    """Parsed cron expression holding the permitted values of each field."""

    source: str
    minute: frozenset[int]
    hour: frozenset[int]
    day_of_month: frozenset[int]
    month: frozenset[int]
    day_of_week: frozenset[int]

    @classmethod
    def parse(cls, expression: str) -> CronExpression:
        """Parse a 5-field expression, raising `InvalidCronExpression` when malformed."""

        parts = expression.split()
        if len(parts) != 5:
            raise InvalidCronExpression(expression, f"expected 5 fields, got {len(parts)}")
        fields = {
            name: _parse_field(expression, name, part, low, high)
            for (name, low, high), part in zip(_FIELD_BOUNDS, parts)
        }
        return cls(source=expression, **fields)

    def matches(self, moment: datetime) -> bool:
        """Return whether a moment's minute, hour, day, month, and weekday all match."""

        return (
            moment.minute in self.minute
            and moment.hour in self.hour
            and moment.day in self.day_of_month
            and moment.month in self.month
            and (moment.weekday() + 1) % 7 in self.day_of_week
        )

    def next_after(self, now: datetime) -> datetime:
        """Return the first matching minute strictly after `now`.

        Aware times are scanned on the UTC timeline and matched against their
        wall-clock reading in `now`'s zone, so wall times skipped by a DST
        transition never match and the result is always a real instant.
        Naive times are scanned as wall-clock minutes.
        """

        zone = now.tzinfo
        if zone is None:
            candidate = now.replace(second=0, microsecond=0) + timedelta(minutes=1)
            for _ in range(SEARCH_WINDOW_MINUTES):
                if self.matches(candidate):
                    return candidate
                candidate += timedelta(minutes=1)
            return now + FALLBACK_DELAY

        candidate = now.astimezone(timezone.utc).replace(second=0, microsecond=0)
        candidate += timedelta(minutes=1)
        for _ in range(SEARCH_WINDOW_MINUTES):
            local = candidate.astimezone(zone)
            if self.matches(local):
                return local
            candidate += timedelta(minutes=1)
        return (now.astimezone(timezone.utc) + FALLBACK_DELAY).astimezone(zone)


def next_run_time(expression: str, now: datetime) -> datetime:
    """Parse `expression` and return its next run time after `now`."""

    return CronExpression.parse(expression).next_after(now)


def _parse_field(expression: str, name: str, field: str, low: int, high: int) -> frozenset[int]:
    """Expand one cron field into the set of permitted values."""

    if field == "*":
        return frozenset(range(low, high + 1))

    if field.startswith("*/"):
        step = _parse_int(expression, name, field[2:])
        if step <= 0:
            raise InvalidCronExpression(expression, f"{name} step must be positive")
        return frozenset(range(low, high + 1, step))

    values: set[int] = set()
    for token in field.split(","):
        if "-" in token:
            start_text, _, end_text = token.partition("-")
            start = _parse_int(expression, name, start_text)
            end = _parse_int(expression, name, end_text)
            if start > end:
                raise InvalidCronExpression(expression, f"{name} range `{token}` is reversed")
            _check_bounds(expression, name, start, low, high)
            _check_bounds(expression, name, end, low, high)
            values.update(range(start, end + 1))
            continue
        value = _parse_int(expression, name, token)
        _check_bounds(expression, name, value, low, high)
        values.add(value)
    return frozenset(values)


def _parse_int(expression: str, name: str, text: str) -> int:
    """Parse a decimal field token."""

    if not (text.isascii() and text.isdigit()):
        raise InvalidCronExpression(expression, f"{name} value `{text}` is not a number")
    return int(text)


def _check_bounds(expression: str, name: str, value: int, low: int, high: int) -> None:
    """Reject values outside the field's range."""

    if not low <= value <= high:
        raise InvalidCronExpression(
            expression, f"{name} value {value} is outside {low}-{high}"
        )
