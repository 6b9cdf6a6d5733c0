"""
Wiring of the scheduling core onto the message bus.

Every handler gets repositories bound to one database alias. Called from
``BookingsConfig.ready()`` for the default database; call it again with
``replace=True`` to rewire against another alias.
"""

import logging

from django.db import DEFAULT_DB_ALIAS  # type: ignore

from apps.audiences.repositories import AudienceRepository
from apps.audiences.services import AudienceMembershipResolver
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CheckConflictsHandler,
    CheckConflictsQuery,
    CreateBookingCommand,
    CreateBookingHandler,
    IsOpenHandler,
    IsOpenQuery,
)
from apps.bookings.domain.events import BookingCancelled, BookingCreated
from apps.bookings.handlers import on_booking_cancelled, on_booking_created
from apps.bookings.repositories import BookingRepository
from apps.bookings.services import BookingConflictDetector
from apps.calendars.repositories import (
    EnvironmentRepository,
    GlobalHolidayRepository,
    ScheduleRepository,
)
from apps.calendars.services import CalendarAvailabilityResolver, SchedulePermissionPolicy
from apps.users.repositories import UserRepository
from shared.application.message_bus import MessageBus, message_bus

logger = logging.getLogger(__name__)


def bootstrap(bus: MessageBus = message_bus, using: str = DEFAULT_DB_ALIAS, replace: bool = False) -> MessageBus:
    if bus.has_command_handler(CreateBookingCommand) and not replace:
        return bus

    booking_repo = BookingRepository(using)
    environment_repo = EnvironmentRepository(using)
    audience_repo = AudienceRepository(using)
    user_repo = UserRepository(using)

    availability = CalendarAvailabilityResolver(environment_repo, GlobalHolidayRepository(using))
    permissions = SchedulePermissionPolicy(ScheduleRepository(using), user_repo)
    conflicts = BookingConflictDetector(booking_repo, AudienceMembershipResolver(audience_repo))

    create_handler = CreateBookingHandler(
        booking_repo,
        environment_repo,
        audience_repo,
        user_repo,
        availability,
        conflicts,
        permissions,
        using=using,
    )
    cancel_handler = CancelBookingHandler(booking_repo, user_repo, permissions, using=using)
    check_handler = CheckConflictsHandler(environment_repo, conflicts)
    is_open_handler = IsOpenHandler(availability)

    bus.register_command_handler(CreateBookingCommand, create_handler.handle, replace=replace)
    bus.register_command_handler(CancelBookingCommand, cancel_handler.handle, replace=replace)
    bus.register_command_handler(CheckConflictsQuery, check_handler.handle, replace=replace)
    bus.register_command_handler(IsOpenQuery, is_open_handler.handle, replace=replace)

    bus.register_event_handler(BookingCreated, on_booking_created)
    bus.register_event_handler(BookingCancelled, on_booking_cancelled)

    logger.debug(f"Scheduling handlers registered for database '{using}'")
    return bus
