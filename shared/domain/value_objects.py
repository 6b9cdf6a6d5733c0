"""
Common Value Objects

Value objects used across the scheduling contexts:
- TimeRange: A half-open [start, end) range of wall-clock times within a day
- parse_date / parse_time: coerce ISO strings coming from callers
"""

from dataclasses import dataclass
from datetime import date, datetime, time

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError


def parse_date(value, field: str = 'date') -> date:
    """Accept a date or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {value!r}", field=field) from exc


def parse_time(value, field: str = 'time') -> time:
    """Accept a time or an ISO ``HH:MM[:SS]`` string."""
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except ValueError as exc:
        raise ValidationError(f"Invalid time: {value!r}", field=field) from exc


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Time range value object

    Represents a range from start (inclusive) to end (exclusive) on a single
    day. Used for booking slots and working-hours windows.
    """
    start: time
    end: time

    def __post_init__(self):
        if self.start >= self.end:
            raise ValidationError(
                f"End time ({self.end:%H:%M}) must be after start time ({self.start:%H:%M})",
                field='end_time',
            )

    def overlaps_with(self, other: 'TimeRange') -> bool:
        """
        Check if this range overlaps with another

        Note: end is exclusive, so adjacent ranges don't overlap.

        Examples:
            - TimeRange(09:00, 10:00) overlaps with TimeRange(09:30, 10:30) -> True
            - TimeRange(09:00, 10:00) overlaps with TimeRange(10:00, 11:00) -> False (adjacent)
        """
        if not isinstance(other, TimeRange):
            raise TypeError("Can only check overlap with another TimeRange")

        # Overlap formula: start1 < end2 AND start2 < end1
        return self.start < other.end and other.start < self.end

    def contains(self, moment: time) -> bool:
        """
        Check if a time is within this range

        Note: start is inclusive, end is exclusive
        """
        return self.start <= moment < self.end

    def __str__(self):
        return f"{self.start:%H:%M}-{self.end:%H:%M}"

    def __repr__(self):
        return f"TimeRange({self.start}, {self.end})"
