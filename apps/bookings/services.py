"""Booking conflict detection."""

from __future__ import annotations

import logging
from datetime import date, time
from typing import Iterable

from django.db import DEFAULT_DB_ALIAS  # type: ignore

from apps.audiences.services import AudienceMembershipResolver
from shared.domain.value_objects import TimeRange

from .domain.conflicts import SoftConflictWarning
from .models import Booking
from .repositories import BookingRepository

logger = logging.getLogger(__name__)


class BookingConflictDetector:
    """
    Finds bookings that clash with a requested [start, end) slot.

    Hard conflicts share the environment: one resource cannot be used twice
    at once. Soft conflicts share people: an affected user would be booked
    in two places. Adjacent ranges (one ends when the other starts) never
    conflict.
    """

    def __init__(self, booking_repo: BookingRepository, membership_resolver: AudienceMembershipResolver):
        self.booking_repo = booking_repo
        self.membership_resolver = membership_resolver

    @classmethod
    def for_database(cls, using: str = DEFAULT_DB_ALIAS) -> "BookingConflictDetector":
        return cls(BookingRepository(using), AudienceMembershipResolver.for_database(using))

    def hard_conflicts(
        self,
        environment_id: int,
        booking_date: date,
        start_time: time,
        end_time: time,
        exclude_booking_id: int | None = None,
        lock: bool = False,
    ) -> list[Booking]:
        TimeRange(start_time, end_time)
        return self.booking_repo.overlapping_on_environment(
            environment_id,
            booking_date,
            start_time,
            end_time,
            exclude_booking_id=exclude_booking_id,
            lock=lock,
        )

    def soft_conflicts(
        self,
        booking_date: date,
        start_time: time,
        end_time: time,
        audience_ids: Iterable[int] = (),
        user_ids: Iterable[int] = (),
        exclude_booking_id: int | None = None,
    ) -> SoftConflictWarning:
        TimeRange(start_time, end_time)
        requested_users = self.membership_resolver.affected_users(user_ids, audience_ids, include_children=True)
        if not requested_users:
            return SoftConflictWarning()

        candidates = self.booking_repo.overlapping_for_users(
            booking_date,
            start_time,
            end_time,
            requested_users,
            exclude_booking_id=exclude_booking_id,
        )
        if not candidates:
            return SoftConflictWarning()

        participants = self.booking_repo.participant_ids([booking.pk for booking in candidates])
        conflicting: list[Booking] = []
        shared_users: set[int] = set()
        for booking in candidates:
            direct_users, attached_audiences = participants[booking.pk]
            booked_users = self.membership_resolver.affected_users(
                direct_users, attached_audiences, include_children=True
            )
            overlap = booked_users & requested_users
            if overlap:
                conflicting.append(booking)
                shared_users |= overlap

        if conflicting:
            logger.info(
                f"Soft conflict on {booking_date} {start_time:%H:%M}-{end_time:%H:%M}: "
                f"{len(shared_users)} user(s) across {len(conflicting)} booking(s)"
            )
        return SoftConflictWarning(bookings=conflicting, affected_users=shared_users)
