"""Weekly working-hours template for environments.

Stored on ``Environment.working_hours`` as JSON keyed by weekday::

    {"mon": {"start": "08:00", "end": "18:00", "closed": false}, ...}

A weekday missing from the template is closed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Any, Mapping

from shared.domain.base import ValueObject
from shared.domain.exceptions import ValidationError
from shared.domain.value_objects import TimeRange, parse_time

# Index matches date.weekday()
DAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclass(frozen=True)
class DayHours(ValueObject):
    """Opening window of one weekday. ``hours`` is None when closed."""

    closed: bool
    hours: TimeRange | None = None

    def contains(self, moment: time) -> bool:
        if self.closed or self.hours is None:
            return False
        return self.hours.contains(moment)

    def to_dict(self) -> dict[str, Any]:
        if self.closed or self.hours is None:
            return {"closed": True}
        return {
            "closed": False,
            "start": self.hours.start.strftime("%H:%M"),
            "end": self.hours.end.strftime("%H:%M"),
        }


@dataclass(frozen=True)
class WorkingHours(ValueObject):
    """Seven-day template, one optional ``DayHours`` per weekday."""

    days: tuple[DayHours | None, ...]

    def __post_init__(self):
        if len(self.days) != len(DAY_KEYS):
            raise ValidationError("Working hours must describe exactly seven weekdays", field="working_hours")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkingHours":
        if not isinstance(data, Mapping):
            raise ValidationError("Working hours must be a mapping of weekday to hours", field="working_hours")

        unknown = set(data) - set(DAY_KEYS)
        if unknown:
            raise ValidationError(
                f"Unknown weekday key(s): {', '.join(sorted(unknown))}",
                field="working_hours",
            )

        days: list[DayHours | None] = []
        for key in DAY_KEYS:
            entry = data.get(key)
            if entry is None:
                days.append(None)
                continue
            if not isinstance(entry, Mapping):
                raise ValidationError(f"Hours for '{key}' must be a mapping", field="working_hours")
            if entry.get("closed"):
                days.append(DayHours(closed=True))
                continue
            try:
                start = parse_time(entry["start"])
                end = parse_time(entry["end"])
            except KeyError as exc:
                raise ValidationError(
                    f"Hours for '{key}' need both start and end", field="working_hours"
                ) from exc
            days.append(DayHours(closed=False, hours=TimeRange(start, end)))
        return cls(days=tuple(days))

    def to_dict(self) -> dict[str, Any]:
        return {key: day.to_dict() for key, day in zip(DAY_KEYS, self.days) if day is not None}

    def for_date(self, on_date: date) -> DayHours | None:
        return self.days[on_date.weekday()]

    def is_working_day(self, on_date: date) -> bool:
        day = self.for_date(on_date)
        return day is not None and not day.closed

    def is_within(self, on_date: date, moment: time) -> bool:
        """True if ``moment`` falls in the half-open [start, end) window of that weekday."""
        day = self.for_date(on_date)
        return day is not None and day.contains(moment)
