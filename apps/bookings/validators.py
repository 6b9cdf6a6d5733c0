"""Input rules for booking requests and cancellations."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from django.conf import settings  # type: ignore

from shared.domain.exceptions import ValidationError

from .models import Booking


def validate_description(description: str) -> str:
    text = (description or "").strip()
    min_length = settings.SCHEDULING_DESCRIPTION_MIN_LENGTH
    max_length = settings.SCHEDULING_DESCRIPTION_MAX_LENGTH
    if len(text) < min_length:
        raise ValidationError(
            f"Description must be at least {min_length} characters",
            field="description",
        )
    if len(text) > max_length:
        raise ValidationError(
            f"Description must be at most {max_length} characters",
            field="description",
        )
    return text


def validate_cancellation_reason(reason: str) -> str:
    text = (reason or "").strip()
    if not text:
        raise ValidationError("A cancellation reason is required", field="reason")
    min_length = settings.SCHEDULING_CANCELLATION_REASON_MIN_LENGTH
    if len(text) < min_length:
        raise ValidationError(
            f"Cancellation reason must be at least {min_length} characters",
            field="reason",
        )
    return text


def validate_participants(
    booking_type: str,
    audience_ids: Sequence[int],
    user_ids: Sequence[int],
) -> None:
    if booking_type not in Booking.BookingType.values:
        raise ValidationError(f"Unknown booking type: {booking_type!r}", field="booking_type")
    if booking_type == Booking.BookingType.AUDIENCE and not audience_ids:
        raise ValidationError("Select at least one audience", field="audience_ids")
    if booking_type == Booking.BookingType.INDIVIDUAL and not user_ids:
        raise ValidationError("Select at least one user", field="user_ids")


def validate_booking_date(
    booking_date: date,
    today: date,
    future_days_limit: int | None,
    allow_past: bool = False,
    enforce_horizon: bool = True,
) -> None:
    """
    Chronology checks.

    ``allow_past`` skips the past-date rule and ``enforce_horizon=False``
    skips the future-days limit; the caller decides who gets either. A limit
    of None or 0 means no limit.
    """
    if booking_date < today and not allow_past:
        raise ValidationError("Cannot book a date in the past", field="booking_date")

    if enforce_horizon and future_days_limit:
        horizon = today + timedelta(days=future_days_limit)
        if booking_date > horizon:
            raise ValidationError(
                f"Bookings are only allowed up to {future_days_limit} day(s) ahead",
                field="booking_date",
            )
