"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from apps.audiences.services import AudienceMembershipResolver
from shared.domain.exceptions import NotFoundError

from .models import Booking
from .repositories import BookingRepository
from .signals import booking_notification_requested

logger = logging.getLogger(__name__)

CREATED = "created"
CANCELLED = "cancelled"


def booking_recipients(booking: Booking, repo: BookingRepository | None = None) -> set[int]:
    """Affected users of the booking plus its creator."""
    repo = repo or BookingRepository()
    direct_users, audiences = repo.participant_ids([booking.pk])[booking.pk]
    resolver = AudienceMembershipResolver.for_database(repo.using)
    recipients = resolver.affected_users(direct_users, audiences, include_children=True)
    recipients.add(booking.created_by_id)
    return recipients


def _request_notification(booking_id: int, kind: str) -> dict[str, int]:
    repo = BookingRepository()
    try:
        booking = repo.get(booking_id)
    except NotFoundError:
        logger.warning(f"Booking {booking_id} vanished before its {kind} notice was sent")
        return {"recipients": 0}

    schedule = booking.environment.schedule
    enabled = schedule.notify_on_booking if kind == CREATED else schedule.notify_on_cancellation
    if not enabled:
        logger.debug(f"Schedule {schedule.pk} has {kind} notices turned off")
        return {"recipients": 0}

    recipients = booking_recipients(booking, repo)
    booking_notification_requested.send(
        sender=Booking,
        booking=booking,
        kind=kind,
        recipient_ids=sorted(recipients),
        reason=booking.cancellation_reason if kind == CANCELLED else "",
    )
    logger.info(f"Requested {kind} notice for booking {booking.pk} to {len(recipients)} user(s)")
    return {"recipients": len(recipients)}


@shared_task(name="bookings.notify_booking_created")
def notify_booking_created(booking_id: int) -> dict[str, int]:
    """Ask the delivery collaborator to announce a new booking."""
    return _request_notification(booking_id, CREATED)


@shared_task(name="bookings.notify_booking_cancelled")
def notify_booking_cancelled(booking_id: int) -> dict[str, int]:
    """Ask the delivery collaborator to announce a cancellation."""
    return _request_notification(booking_id, CANCELLED)
