"""Storage access for bookings and their participant join rows."""

from __future__ import annotations

import logging
from datetime import date, time
from typing import Iterable

from django.db import DEFAULT_DB_ALIAS, transaction  # type: ignore
from django.db.models import Q  # type: ignore

from shared.domain.exceptions import NotFoundError
from shared.infrastructure.locking import lock_queryset_if_possible

from .models import Booking, BookingAudience, BookingUser

logger = logging.getLogger(__name__)


def _participant_condition(user_ids: Iterable[int]) -> Q:
    """Bookings whose affected users include any of ``user_ids``."""
    ids = list(user_ids)
    return (
        Q(booking_users__user_id__in=ids)
        | Q(booking_audiences__audience__memberships__user_id__in=ids)
        | Q(booking_audiences__audience__children__memberships__user_id__in=ids)
    )


class BookingRepository:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _bookings(self):
        return Booking.objects.using(self.using)

    def get(self, booking_id: int, lock: bool = False) -> Booking:
        """
        Load a booking with its environment, schedule and participants.

        ``lock=True`` takes a row lock on the booking; call it inside a
        transaction.
        """
        queryset = self._bookings().select_related("environment__schedule")
        if lock:
            queryset = lock_queryset_if_possible(queryset, of=("self",))
        queryset = queryset.prefetch_related("audiences", "users")
        try:
            return queryset.get(pk=booking_id)
        except Booking.DoesNotExist:
            raise NotFoundError("Booking", booking_id) from None

    def list(
        self,
        environment_id: int | None = None,
        schedule_id: int | None = None,
        on_date: date | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = None,
        booking_type: str | None = None,
        created_by_id: int | None = None,
    ) -> list[Booking]:
        queryset = self._filtered(
            environment_id=environment_id,
            schedule_id=schedule_id,
            on_date=on_date,
            start_date=start_date,
            end_date=end_date,
            status=status,
            booking_type=booking_type,
            created_by_id=created_by_id,
        )
        return list(queryset.select_related("environment").prefetch_related("audiences", "users"))

    def count(self, **filters) -> int:
        return self._filtered(**filters).count()

    def _filtered(
        self,
        environment_id: int | None = None,
        schedule_id: int | None = None,
        on_date: date | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = None,
        booking_type: str | None = None,
        created_by_id: int | None = None,
    ):
        queryset = self._bookings().all()
        if environment_id:
            queryset = queryset.filter(environment_id=environment_id)
        if schedule_id:
            queryset = queryset.filter(environment__schedule_id=schedule_id)
        if on_date:
            queryset = queryset.filter(booking_date=on_date)
        if start_date:
            queryset = queryset.filter(booking_date__gte=start_date)
        if end_date:
            queryset = queryset.filter(booking_date__lte=end_date)
        if status:
            queryset = queryset.filter(status=status)
        if booking_type:
            queryset = queryset.filter(booking_type=booking_type)
        if created_by_id:
            queryset = queryset.filter(created_by_id=created_by_id)
        return queryset

    def by_participant(
        self,
        user_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
        status: str | None = Booking.Status.ACTIVE,
    ) -> list[Booking]:
        """Bookings the user takes part in, directly or through an audience."""
        queryset = self._filtered(start_date=start_date, end_date=end_date, status=status)
        queryset = queryset.filter(_participant_condition([user_id])).distinct()
        return list(queryset.select_related("environment"))

    # --- conflict primitives -------------------------------------------------

    def overlapping_on_environment(
        self,
        environment_id: int,
        booking_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: int | None = None,
        lock: bool = False,
    ) -> list[Booking]:
        """Active bookings on the environment whose [start, end) overlaps the given range."""
        queryset = self._bookings().filter(
            environment_id=environment_id,
            booking_date=booking_date,
            status=Booking.Status.ACTIVE,
            start_time__lt=end_time,
            end_time__gt=start_time,
        )
        if exclude_booking_id is not None:
            queryset = queryset.exclude(pk=exclude_booking_id)
        if lock:
            queryset = lock_queryset_if_possible(queryset)
        return list(queryset.order_by("start_time"))

    def overlapping_for_users(
        self,
        booking_date: date,
        start_time: time,
        end_time: time,
        user_ids: Iterable[int],
        exclude_booking_id: int | None = None,
    ) -> list[Booking]:
        """Active bookings on any environment overlapping the range and touching any of ``user_ids``."""
        ids = {int(user_id) for user_id in user_ids}
        if not ids:
            return []
        queryset = self._bookings().filter(
            booking_date=booking_date,
            status=Booking.Status.ACTIVE,
            start_time__lt=end_time,
            end_time__gt=start_time,
        ).filter(_participant_condition(ids))
        if exclude_booking_id is not None:
            queryset = queryset.exclude(pk=exclude_booking_id)
        return list(queryset.distinct().select_related("environment").order_by("start_time"))

    def participant_ids(self, booking_ids: Iterable[int]) -> dict[int, tuple[set[int], set[int]]]:
        """Map booking id -> (direct user ids, attached audience ids)."""
        result: dict[int, tuple[set[int], set[int]]] = {}
        ids = list(booking_ids)
        for booking_id in ids:
            result[booking_id] = (set(), set())
        if not ids:
            return result

        user_rows = BookingUser.objects.using(self.using).filter(booking_id__in=ids)
        for booking_id, user_id in user_rows.values_list("booking_id", "user_id"):
            result[booking_id][0].add(user_id)

        audience_rows = BookingAudience.objects.using(self.using).filter(booking_id__in=ids)
        for booking_id, audience_id in audience_rows.values_list("booking_id", "audience_id"):
            result[booking_id][1].add(audience_id)
        return result

    # --- writes --------------------------------------------------------------

    def create(
        self,
        environment_id: int,
        booking_date: date,
        start_time: time,
        end_time: time,
        booking_type: str,
        description: str,
        created_by_id: int,
        audience_ids: Iterable[int] = (),
        user_ids: Iterable[int] = (),
    ) -> Booking:
        """Insert the booking and its join rows together."""
        with transaction.atomic(using=self.using):
            booking = Booking(
                environment_id=environment_id,
                booking_date=booking_date,
                start_time=start_time,
                end_time=end_time,
                booking_type=booking_type,
                description=description,
                created_by_id=created_by_id,
            )
            booking.save(using=self.using)

            BookingAudience.objects.using(self.using).bulk_create(
                [BookingAudience(booking=booking, audience_id=audience_id) for audience_id in sorted(set(audience_ids))]
            )
            BookingUser.objects.using(self.using).bulk_create(
                [BookingUser(booking=booking, user_id=user_id) for user_id in sorted(set(user_ids))]
            )

        logger.debug(f"Inserted booking {booking.pk} on environment {environment_id}")
        return booking

    def save_cancellation(self, booking: Booking) -> None:
        booking.save(
            using=self.using,
            update_fields=[
                "status",
                "cancelled_by",
                "cancelled_at",
                "cancellation_reason",
                "updated_at",
            ],
        )
