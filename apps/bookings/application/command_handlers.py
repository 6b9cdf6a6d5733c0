"""
Booking Command Handlers

These are the use cases of the scheduling core.
They orchestrate domain operations within transactions.

Commands:
- CreateBookingCommand: Create a new booking
- CancelBookingCommand: Cancel a booking

Queries:
- CheckConflictsQuery: Preview hard and soft conflicts for a slot
- IsOpenQuery: Is an environment open on a date (and time)
"""

from dataclasses import dataclass
from datetime import date, time
import logging

from django.db import DEFAULT_DB_ALIAS, IntegrityError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.audiences.repositories import AudienceRepository
from apps.bookings.domain.conflicts import ConflictReport
from apps.bookings.models import Booking
from apps.bookings.repositories import BookingRepository
from apps.bookings.services import BookingConflictDetector
from apps.bookings.validators import (
    validate_booking_date,
    validate_cancellation_reason,
    validate_description,
    validate_participants,
)
from apps.calendars.repositories import EnvironmentRepository
from apps.calendars.services import CalendarAvailabilityResolver, SchedulePermissionPolicy
from apps.users.repositories import UserRepository
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import (
    AlreadyCancelledError,
    HardConflictError,
    PermissionDeniedError,
    SoftConflictError,
    ValidationError,
)
from shared.domain.value_objects import TimeRange

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "booking_no_overlap_per_environment"


# ===== Commands =====

@dataclass(frozen=True)
class CreateBookingCommand:
    """
    Command to create a new booking

    ``acknowledge_conflicts`` must be set to proceed despite soft conflicts,
    and only works for actors allowed to override them. ``allow_past_date``
    only has an effect for administrators.
    """
    environment_id: int
    booking_date: date
    start_time: time
    end_time: time
    booking_type: str
    description: str
    creator_id: int
    audience_ids: tuple[int, ...] = ()
    user_ids: tuple[int, ...] = ()
    acknowledge_conflicts: bool = False
    allow_past_date: bool = False


@dataclass(frozen=True)
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: int
    actor_id: int
    reason: str


@dataclass(frozen=True)
class CheckConflictsQuery:
    environment_id: int
    booking_date: date
    start_time: time
    end_time: time
    audience_ids: tuple[int, ...] = ()
    user_ids: tuple[int, ...] = ()
    exclude_booking_id: int | None = None


@dataclass(frozen=True)
class IsOpenQuery:
    environment_id: int
    on_date: date
    at_time: time | None = None


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Order of checks (first failure wins):
    1. Time range, description, booking type and participant selection
    2. Creator, audiences and users exist
    3. Inside the unit of work, with the environment row locked:
       date chronology, environment open at the start time, no hard
       conflict, creator may book, soft conflicts acknowledged and
       overridable
    4. Insert booking + join rows, record BookingCreated

    On PostgreSQL an exclusion constraint backs step 3; a violation is
    reported as a hard conflict.
    """

    def __init__(
        self,
        booking_repo: BookingRepository,
        environment_repo: EnvironmentRepository,
        audience_repo: AudienceRepository,
        user_repo: UserRepository,
        availability: CalendarAvailabilityResolver,
        conflicts: BookingConflictDetector,
        permissions: SchedulePermissionPolicy,
        using: str = DEFAULT_DB_ALIAS,
    ):
        self.booking_repo = booking_repo
        self.environment_repo = environment_repo
        self.audience_repo = audience_repo
        self.user_repo = user_repo
        self.availability = availability
        self.conflicts = conflicts
        self.permissions = permissions
        self.using = using

    def handle(self, command: CreateBookingCommand) -> Booking:
        logger.info(
            f"Creating {command.booking_type} booking on environment {command.environment_id} "
            f"for {command.booking_date} {command.start_time:%H:%M}-{command.end_time:%H:%M} "
            f"by user {command.creator_id}"
        )

        slot = TimeRange(command.start_time, command.end_time)
        description = validate_description(command.description)
        audience_ids, user_ids = self._authoritative_participants(command)

        self.user_repo.get(command.creator_id)
        self.audience_repo.ensure_exist(audience_ids, active_only=True)
        self.user_repo.ensure_exist(user_ids)
        is_admin = self.permissions.is_administrator(command.creator_id)

        with DjangoUnitOfWork(using=self.using) as uow:
            # Serializes bookings on this environment until commit
            environment = self.environment_repo.get(command.environment_id, lock=True)
            schedule = environment.schedule

            validate_booking_date(
                command.booking_date,
                today=timezone.localdate(),
                future_days_limit=schedule.future_days_limit,
                allow_past=is_admin and command.allow_past_date,
                enforce_horizon=not is_admin,
            )

            if not self.availability.is_environment_open(environment, command.booking_date, slot.start):
                raise ValidationError(
                    f"Environment {environment.pk} is closed on {command.booking_date} at {slot.start:%H:%M}",
                    field="start_time",
                )

            hard = self.conflicts.hard_conflicts(
                environment.pk, command.booking_date, slot.start, slot.end
            )
            if hard:
                raise HardConflictError(
                    f"Environment {environment.pk} is already booked for {slot} on {command.booking_date}",
                    bookings=hard,
                )

            if not self.permissions.can_book(schedule.pk, command.creator_id):
                raise PermissionDeniedError(
                    f"User {command.creator_id} may not book on schedule {schedule.pk}"
                )

            soft = self.conflicts.soft_conflicts(
                command.booking_date, slot.start, slot.end, audience_ids, user_ids
            )
            if soft:
                if not command.acknowledge_conflicts:
                    raise SoftConflictError(soft)
                if not self.permissions.can_override_conflicts(schedule.pk, command.creator_id):
                    raise PermissionDeniedError(
                        f"User {command.creator_id} may not override participant conflicts "
                        f"on schedule {schedule.pk}"
                    )
                logger.warning(
                    f"User {command.creator_id} overrode soft conflicts with bookings {soft.booking_ids}"
                )

            try:
                booking = self.booking_repo.create(
                    environment_id=environment.pk,
                    booking_date=command.booking_date,
                    start_time=slot.start,
                    end_time=slot.end,
                    booking_type=command.booking_type,
                    description=description,
                    created_by_id=command.creator_id,
                    audience_ids=audience_ids,
                    user_ids=user_ids,
                )
            except IntegrityError as exc:
                if OVERLAP_CONSTRAINT in str(exc):
                    raise HardConflictError(
                        f"Environment {environment.pk} is already booked for {slot} on {command.booking_date}"
                    ) from exc
                raise

            if soft:
                booking.soft_conflict_warning = soft
            booking.record_created()
            uow.collect_events(booking)

        logger.info(f"Booking {booking.pk} created on environment {environment.pk}")
        return booking

    def _authoritative_participants(self, command: CreateBookingCommand) -> tuple[tuple[int, ...], tuple[int, ...]]:
        """Only the participant set matching the booking type is kept."""
        audience_ids = tuple(sorted({int(pk) for pk in command.audience_ids}))
        user_ids = tuple(sorted({int(pk) for pk in command.user_ids}))
        validate_participants(command.booking_type, audience_ids, user_ids)
        if command.booking_type == Booking.BookingType.AUDIENCE:
            return audience_ids, ()
        return (), user_ids


class CancelBookingHandler:
    """Handler for cancelling a booking"""

    def __init__(
        self,
        booking_repo: BookingRepository,
        user_repo: UserRepository,
        permissions: SchedulePermissionPolicy,
        using: str = DEFAULT_DB_ALIAS,
    ):
        self.booking_repo = booking_repo
        self.user_repo = user_repo
        self.permissions = permissions
        self.using = using

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id} by user {command.actor_id}")

        reason = validate_cancellation_reason(command.reason)
        self.user_repo.get(command.actor_id)

        with DjangoUnitOfWork(using=self.using) as uow:
            # Row lock: the loser of a concurrent double cancel sees CANCELLED
            booking = self.booking_repo.get(command.booking_id, lock=True)

            if booking.is_cancelled:
                raise AlreadyCancelledError(f"Booking {booking.pk} is already cancelled")

            schedule_id = booking.environment.schedule_id
            if not self.permissions.can_cancel(schedule_id, booking.created_by_id, command.actor_id):
                raise PermissionDeniedError(
                    f"User {command.actor_id} may not cancel booking {booking.pk}"
                )

            booking.mark_cancelled(command.actor_id, reason)
            self.booking_repo.save_cancellation(booking)
            uow.collect_events(booking)

        logger.info(f"Booking {booking.pk} cancelled by user {command.actor_id}")
        return booking


class CheckConflictsHandler:
    """Read-only conflict preview used before submitting a booking."""

    def __init__(
        self,
        environment_repo: EnvironmentRepository,
        conflicts: BookingConflictDetector,
    ):
        self.environment_repo = environment_repo
        self.conflicts = conflicts

    def handle(self, query: CheckConflictsQuery) -> ConflictReport:
        slot = TimeRange(query.start_time, query.end_time)
        environment = self.environment_repo.get(query.environment_id)

        hard = self.conflicts.hard_conflicts(
            environment.pk,
            query.booking_date,
            slot.start,
            slot.end,
            exclude_booking_id=query.exclude_booking_id,
        )
        soft = self.conflicts.soft_conflicts(
            query.booking_date,
            slot.start,
            slot.end,
            query.audience_ids,
            query.user_ids,
            exclude_booking_id=query.exclude_booking_id,
        )
        return ConflictReport(hard=hard, soft=soft)


class IsOpenHandler:
    def __init__(self, availability: CalendarAvailabilityResolver):
        self.availability = availability

    def handle(self, query: IsOpenQuery) -> bool:
        return self.availability.is_open(query.environment_id, query.on_date, query.at_time)
