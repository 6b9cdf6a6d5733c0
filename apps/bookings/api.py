"""
Public entry points of the scheduling core.

Admin screens, REST views, CSV importers and notification code call these
functions instead of touching repositories. Dates and times may be given
as ``date``/``time`` objects or ISO strings.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any, Iterable

from shared.application.message_bus import message_bus
from shared.domain.value_objects import parse_date, parse_time

from .application.command_handlers import (
    CancelBookingCommand,
    CheckConflictsQuery,
    CreateBookingCommand,
    IsOpenQuery,
)
from .domain.conflicts import ConflictReport
from .models import Booking


def _dispatch(command: Any) -> Any:
    if not message_bus.has_command_handler(type(command)):
        from .application.bootstrap import bootstrap

        bootstrap()
    return message_bus.handle_command(command)


def _ids(values: Iterable[int] | None) -> tuple[int, ...]:
    return tuple(int(value) for value in (values or ()))


def create_booking(
    environment_id: int,
    booking_date: date | str,
    start_time: time | str,
    end_time: time | str,
    booking_type: str,
    description: str,
    creator_id: int,
    audience_ids: Iterable[int] = (),
    user_ids: Iterable[int] = (),
    acknowledge_conflicts: bool = False,
    allow_past_date: bool = False,
) -> Booking:
    """
    Create a booking or raise.

    Raises ValidationError, NotFoundError, HardConflictError,
    SoftConflictError (unacknowledged participant clashes) or
    PermissionDeniedError. When an acknowledged soft conflict was
    overridden, the returned booking carries it as ``soft_conflict_warning``.
    """
    command = CreateBookingCommand(
        environment_id=environment_id,
        booking_date=parse_date(booking_date, field="booking_date"),
        start_time=parse_time(start_time, field="start_time"),
        end_time=parse_time(end_time, field="end_time"),
        booking_type=booking_type,
        description=description,
        creator_id=creator_id,
        audience_ids=_ids(audience_ids),
        user_ids=_ids(user_ids),
        acknowledge_conflicts=acknowledge_conflicts,
        allow_past_date=allow_past_date,
    )
    return _dispatch(command)


def cancel_booking(booking_id: int, actor_id: int, reason: str) -> Booking:
    """Cancel an active booking. Raises AlreadyCancelledError on a second call."""
    return _dispatch(CancelBookingCommand(booking_id=booking_id, actor_id=actor_id, reason=reason))


def check_conflicts(
    environment_id: int,
    booking_date: date | str,
    start_time: time | str,
    end_time: time | str,
    audience_ids: Iterable[int] = (),
    user_ids: Iterable[int] = (),
    exclude_booking_id: int | None = None,
) -> ConflictReport:
    """Preview hard and soft conflicts without writing anything."""
    query = CheckConflictsQuery(
        environment_id=environment_id,
        booking_date=parse_date(booking_date, field="booking_date"),
        start_time=parse_time(start_time, field="start_time"),
        end_time=parse_time(end_time, field="end_time"),
        audience_ids=_ids(audience_ids),
        user_ids=_ids(user_ids),
        exclude_booking_id=exclude_booking_id,
    )
    return _dispatch(query)


def is_open(environment_id: int, on_date: date | str, at_time: time | str | None = None) -> bool:
    query = IsOpenQuery(
        environment_id=environment_id,
        on_date=parse_date(on_date, field="on_date"),
        at_time=parse_time(at_time, field="at_time") if at_time is not None else None,
    )
    return _dispatch(query)
