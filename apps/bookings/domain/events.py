"""
Booking Domain Events

Events that represent things that have happened to a booking.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import date, time

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created

    Triggers:
    - Notify the affected users and the creator (Celery task)
    """
    booking_id: int
    environment_id: int
    booking_date: date
    start_time: time
    end_time: time
    created_by_id: int

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            booking_id=self.booking_id,
            environment_id=self.environment_id,
            booking_date=self.booking_date.isoformat(),
            start_time=self.start_time.isoformat(),
            end_time=self.end_time.isoformat(),
            created_by_id=self.created_by_id,
        )
        return data


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: Booking was cancelled (ACTIVE -> CANCELLED)

    Triggers:
    - Notify the affected users and the creator (Celery task)
    """
    booking_id: int
    reason: str
    cancelled_by_id: int

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update(
            booking_id=self.booking_id,
            reason=self.reason,
            cancelled_by_id=self.cancelled_by_id,
        )
        return data
