"""
Scheduling Error Taxonomy

Every rejection the scheduling core can produce is one of these.
All of them are raised before any mutation is committed.
"""

from __future__ import annotations

from typing import Any, Sequence, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from apps.bookings.domain.conflicts import SoftConflictWarning


class SchedulingError(Exception):
    """Base class for all scheduling errors."""


class ValidationError(SchedulingError):
    """Malformed input. Always recoverable by the caller."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field


class NotFoundError(SchedulingError):
    """Unknown schedule, environment, audience, user or booking id."""

    def __init__(self, entity: str, identifier: Any):
        super().__init__(f"{entity} {identifier} not found")
        self.entity = entity
        self.identifier = identifier


class PermissionDeniedError(SchedulingError):
    """The actor lacks the booking, cancel or override right."""


class ConflictError(SchedulingError):
    """Base class for booking conflicts."""


class HardConflictError(ConflictError):
    """The environment is already booked for an overlapping time range."""

    def __init__(self, message: str, bookings: Sequence[Any] = ()):
        super().__init__(message)
        self.bookings = list(bookings)


class SoftConflictError(ConflictError):
    """Participants are double-booked and the caller did not acknowledge it."""

    def __init__(self, warning: SoftConflictWarning):
        super().__init__(
            f"{len(warning.affected_users)} participant(s) already booked in "
            f"{len(warning.bookings)} overlapping booking(s)"
        )
        self.warning = warning


class AlreadyCancelledError(SchedulingError):
    """The booking is already cancelled."""


class EntityInUseError(SchedulingError):
    """The entity is referenced by booking history and cannot be deleted."""
