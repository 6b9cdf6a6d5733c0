"""Domain services for calendars: availability and schedule permissions."""

from __future__ import annotations

import logging
from datetime import date, time

from django.db import DEFAULT_DB_ALIAS  # type: ignore

from apps.users.repositories import UserRepository

from .models import Environment
from .repositories import EnvironmentRepository, GlobalHolidayRepository, ScheduleRepository

logger = logging.getLogger(__name__)


class CalendarAvailabilityResolver:
    """
    Decides whether an environment is open on a date (and optionally a time).

    Checks, in order, stopping at the first closure:
    1. organization-wide holiday
    2. holiday of the environment's schedule
    3. environment status
    4. no working-hours template -> open
    5. weekday template: closed flag, then [start, end) window when a time is given

    Reads stored configuration only; never writes.
    """

    def __init__(
        self,
        environment_repo: EnvironmentRepository,
        global_holiday_repo: GlobalHolidayRepository,
    ):
        self.environment_repo = environment_repo
        self.global_holiday_repo = global_holiday_repo

    @classmethod
    def for_database(cls, using: str = DEFAULT_DB_ALIAS) -> "CalendarAvailabilityResolver":
        return cls(EnvironmentRepository(using), GlobalHolidayRepository(using))

    def is_open(self, environment_id: int, on_date: date, at_time: time | None = None) -> bool:
        environment = self.environment_repo.get(environment_id)
        return self.is_environment_open(environment, on_date, at_time)

    def is_environment_open(
        self,
        environment: Environment,
        on_date: date,
        at_time: time | None = None,
    ) -> bool:
        """Same as ``is_open`` for an already loaded environment."""
        if self.global_holiday_repo.is_global_holiday(on_date):
            return False

        if self.environment_repo.is_holiday(environment.schedule_id, on_date):
            return False

        if not environment.is_active:
            return False

        working_hours = environment.get_working_hours()
        if working_hours is None:
            return True

        if at_time is None:
            return working_hours.is_working_day(on_date)
        return working_hours.is_within(on_date, at_time)


class SchedulePermissionPolicy:
    """
    Per-(schedule, user) authorization.

    Administrators always pass without a lookup. Everyone else needs a
    SchedulePermission row carrying the matching flag; booking additionally
    needs the schedule to be active. Visibility only governs who can see a
    calendar, never who can book on it.
    """

    def __init__(self, schedule_repo: ScheduleRepository, user_repo: UserRepository):
        self.schedule_repo = schedule_repo
        self.user_repo = user_repo

    @classmethod
    def for_database(cls, using: str = DEFAULT_DB_ALIAS) -> "SchedulePermissionPolicy":
        return cls(ScheduleRepository(using), UserRepository(using))

    def is_administrator(self, user_id: int) -> bool:
        return self.user_repo.is_administrator(user_id)

    def can_book(self, schedule_id: int, user_id: int) -> bool:
        if self.is_administrator(user_id):
            return True

        schedule = self.schedule_repo.find(schedule_id)
        if schedule is None or not schedule.is_active:
            return False

        permission = self.schedule_repo.get_user_permissions(schedule_id, user_id)
        return bool(permission and permission.can_book)

    def can_cancel_others(self, schedule_id: int, user_id: int) -> bool:
        if self.is_administrator(user_id):
            return True
        permission = self.schedule_repo.get_user_permissions(schedule_id, user_id)
        return bool(permission and permission.can_cancel_others)

    def can_override_conflicts(self, schedule_id: int, user_id: int) -> bool:
        if self.is_administrator(user_id):
            return True
        permission = self.schedule_repo.get_user_permissions(schedule_id, user_id)
        return bool(permission and permission.can_override_conflicts)

    def can_cancel(self, schedule_id: int, creator_id: int | None, user_id: int) -> bool:
        """The creator may always cancel their own booking."""
        if creator_id is not None and creator_id == user_id:
            return True
        return self.can_cancel_others(schedule_id, user_id)
