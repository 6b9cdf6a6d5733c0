"""Conflict results returned by the booking conflict detector."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class SoftConflictWarning(ValueObject):
    """
    Participants that would be double-booked.

    Not an error: creation may proceed when an actor with the override
    right acknowledges it. ``affected_users`` holds only the user ids shared
    with the conflicting bookings.
    """
    bookings: list[Any] = field(default_factory=list)
    affected_users: set[int] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.bookings)

    @property
    def booking_ids(self) -> list[int]:
        return [booking.pk for booking in self.bookings]


@dataclass(frozen=True)
class ConflictReport(ValueObject):
    """Read-only preview of hard and soft conflicts for a requested slot."""
    hard: list[Any] = field(default_factory=list)
    soft: SoftConflictWarning = field(default_factory=SoftConflictWarning)

    @property
    def has_hard_conflicts(self) -> bool:
        return bool(self.hard)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.hard) or bool(self.soft)
