"""Cron expression matching for scheduled triggers.

Fields: minute hour day-of-month month day-of-week [year]. Each field accepts
``*``, ``*/n``, ``a``, ``a-b``, ``a-b/n`` and comma-separated lists of those.
Day-of-week 0 and 7 both mean Sunday.
"""

from dataclasses import dataclass
from datetime import datetime

_FIELD_RANGES: tuple[tuple[str, int, int], ...] = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day of month", 1, 31),
    ("month", 1, 12),
    ("day of week", 0, 7),
    ("year", 1970, 2199),
)


def _parse_int(token: str, name: str) -> int:
    if not token.isdigit():
        raise ValueError(f"Invalid {name} value: {token!r}")
    return int(token)


def _parse_field(expr: str, name: str, low: int, high: int) -> frozenset[int] | None:
    """Return the allowed values, or None for an unrestricted ``*`` field."""
    if expr == "*":
        return None
    values: set[int] = set()
    for part in expr.split(","):
        base, _, step_text = part.partition("/")
        step = _parse_int(step_text, name) if step_text else 1
        if step < 1:
            raise ValueError(f"Invalid {name} step: {part!r}")
        if base == "*":
            start, end = low, high
        elif "-" in base:
            start_text, _, end_text = base.partition("-")
            start, end = _parse_int(start_text, name), _parse_int(end_text, name)
        else:
            start = _parse_int(base, name)
            end = high if step_text else start
        if start < low or end > high or start > end:
            raise ValueError(f"{name.capitalize()} out of range in {part!r} ({low}-{high})")
        values.update(range(start, end + 1, step))
    return frozenset(values)


@dataclass(frozen=True)
class CronExpression:
    """Parsed cron expression. Build with ``CronExpression.parse``."""

    source: str
    minutes: frozenset[int] | None
    hours: frozenset[int] | None
    days: frozenset[int] | None
    months: frozenset[int] | None
    weekdays: frozenset[int] | None
    years: frozenset[int] | None = None

    @classmethod
    def parse(cls, expression: str) -> "CronExpression":
        """Parse a 5- or 6-field expression.

        Raises:
            ValueError: Wrong number of fields or an invalid field.
        """
        if not isinstance(expression, str):
            raise ValueError("Cron schedule must be a string")
        parts = expression.split()
        if len(parts) not in (5, 6):
            raise ValueError(
                "Cron expression must have 5 or 6 parts (minute hour day month weekday [year])"
            )
        fields = [
            _parse_field(part, name, low, high)
            for part, (name, low, high) in zip(parts, _FIELD_RANGES)
        ]
        weekdays = fields[4]
        if weekdays is not None and 7 in weekdays:
            weekdays = frozenset((weekdays - {7}) | {0})
        return cls(
            source=expression,
            minutes=fields[0],
            hours=fields[1],
            days=fields[2],
            months=fields[3],
            weekdays=weekdays,
            years=fields[5] if len(fields) == 6 else None,
        )

    def matches(self, moment: datetime) -> bool:
        """True if the minute containing ``moment`` is selected by this expression."""
        if self.minutes is not None and moment.minute not in self.minutes:
            return False
        if self.hours is not None and moment.hour not in self.hours:
            return False
        if self.months is not None and moment.month not in self.months:
            return False
        if self.years is not None and moment.year not in self.years:
            return False
        weekday = moment.isoweekday() % 7
        day_ok = self.days is None or moment.day in self.days
        weekday_ok = self.weekdays is None or weekday in self.weekdays
        if self.days is not None and self.weekdays is not None:
            return day_ok or weekday_ok
        return day_ok and weekday_ok


def is_valid_cron(expression: str) -> bool:
    try:
        CronExpression.parse(expression)
    except ValueError:
        return False
    return True
