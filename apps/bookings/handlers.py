"""Message bus event handlers: hand booking events to Celery."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore

from .domain.events import BookingCancelled, BookingCreated

logger = logging.getLogger(__name__)


def _notifications_enabled() -> bool:
    return getattr(settings, "SCHEDULING_NOTIFICATIONS_ENABLED", True)


def on_booking_created(event: BookingCreated) -> None:
    if not _notifications_enabled():
        return
    from .tasks import notify_booking_created

    notify_booking_created.delay(event.booking_id)
    logger.debug(f"Queued creation notice for booking {event.booking_id}")


def on_booking_cancelled(event: BookingCancelled) -> None:
    if not _notifications_enabled():
        return
    from .tasks import notify_booking_cancelled

    notify_booking_cancelled.delay(event.booking_id)
    logger.debug(f"Queued cancellation notice for booking {event.booking_id}")
