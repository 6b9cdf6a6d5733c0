"""Storage access for schedules, environments, holidays and permissions.

Each repository is bound to one database alias at construction.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from django.db import DEFAULT_DB_ALIAS, transaction  # type: ignore
from django.db.models import Exists, OuterRef, ProtectedError, Q  # type: ignore

from shared.domain.exceptions import EntityInUseError, NotFoundError, ValidationError
from shared.infrastructure.locking import lock_queryset_if_possible

from .models import Environment, GlobalHoliday, Holiday, Schedule, SchedulePermission
from .working_hours import WorkingHours

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = {
    "name",
    "description",
    "visibility",
    "future_days_limit",
    "notify_on_booking",
    "notify_on_cancellation",
    "status",
}
ENVIRONMENT_FIELDS = {"schedule_id", "name", "description", "working_hours", "status"}


def _normalize_working_hours(value: Any) -> dict | None:
    if not value:
        return None
    if isinstance(value, WorkingHours):
        return value.to_dict()
    return WorkingHours.from_dict(value).to_dict()


class ScheduleRepository:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _schedules(self):
        return Schedule.objects.using(self.using)

    def _permissions(self):
        return SchedulePermission.objects.using(self.using)

    def get(self, schedule_id: int) -> Schedule:
        try:
            return self._schedules().get(pk=schedule_id)
        except Schedule.DoesNotExist:
            raise NotFoundError("Schedule", schedule_id) from None

    def find(self, schedule_id: int) -> Schedule | None:
        return self._schedules().filter(pk=schedule_id).first()

    def list(self, status: str | None = None, visibility: str | None = None) -> list[Schedule]:
        queryset = self._schedules().all()
        if status:
            queryset = queryset.filter(status=status)
        if visibility:
            queryset = queryset.filter(visibility=visibility)
        return list(queryset)

    def accessible_to(self, user_id: int) -> list[Schedule]:
        """Active schedules the user may see: public ones plus those with a permission row."""
        has_permission = self._permissions().filter(schedule=OuterRef("pk"), user_id=user_id)
        return list(
            self._schedules()
            .filter(status=Schedule.Status.ACTIVE)
            .filter(Q(visibility=Schedule.Visibility.PUBLIC) | Exists(has_permission))
        )

    def create(self, name: str, created_by_id: int | None = None, **fields: Any) -> Schedule:
        unknown = set(fields) - SCHEDULE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown schedule field(s): {', '.join(sorted(unknown))}")
        if not name or not name.strip():
            raise ValidationError("Schedule name is required", field="name")
        schedule = Schedule(name=name.strip(), created_by_id=created_by_id, **fields)
        schedule.save(using=self.using)
        logger.info(f"Created schedule {schedule.pk} ({schedule.name})")
        return schedule

    def update(self, schedule_id: int, **fields: Any) -> Schedule:
        unknown = set(fields) - SCHEDULE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown schedule field(s): {', '.join(sorted(unknown))}")
        schedule = self.get(schedule_id)
        for name, value in fields.items():
            setattr(schedule, name, value)
        schedule.save(using=self.using, update_fields=[*fields, "updated_at"])
        return schedule

    def deactivate(self, schedule_id: int) -> Schedule:
        return self.update(schedule_id, status=Schedule.Status.INACTIVE)

    def delete(self, schedule_id: int) -> None:
        """Hard delete. Refused while any of its environments has bookings."""
        schedule = self.get(schedule_id)
        try:
            with transaction.atomic(using=self.using):
                schedule.delete(using=self.using)
        except ProtectedError as exc:
            raise EntityInUseError(
                f"Schedule {schedule_id} has booking history; deactivate it instead"
            ) from exc
        logger.info(f"Deleted schedule {schedule_id}")

    # --- permissions ---------------------------------------------------------

    def get_user_permissions(self, schedule_id: int, user_id: int) -> SchedulePermission | None:
        return self._permissions().filter(schedule_id=schedule_id, user_id=user_id).first()

    def list_permissions(self, schedule_id: int) -> list[SchedulePermission]:
        return list(self._permissions().filter(schedule_id=schedule_id).select_related("user"))

    def set_user_permissions(
        self,
        schedule_id: int,
        user_id: int,
        can_book: bool = True,
        can_cancel_others: bool = False,
        can_override_conflicts: bool = False,
    ) -> SchedulePermission:
        self.get(schedule_id)
        permission, _ = self._permissions().update_or_create(
            schedule_id=schedule_id,
            user_id=user_id,
            defaults={
                "can_book": can_book,
                "can_cancel_others": can_cancel_others,
                "can_override_conflicts": can_override_conflicts,
            },
        )
        return permission

    def remove_user_permissions(self, schedule_id: int, user_id: int) -> bool:
        deleted, _ = self._permissions().filter(schedule_id=schedule_id, user_id=user_id).delete()
        return deleted > 0


class EnvironmentRepository:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _environments(self):
        return Environment.objects.using(self.using)

    def _holidays(self):
        return Holiday.objects.using(self.using)

    def get(self, environment_id: int, lock: bool = False) -> Environment:
        """
        Load an environment with its schedule.

        ``lock=True`` takes a row lock (SELECT FOR UPDATE) and must be called
        inside a transaction; it serializes bookings on the environment.
        """
        queryset = self._environments().select_related("schedule")
        if lock:
            queryset = lock_queryset_if_possible(queryset, of=("self",))
        try:
            return queryset.get(pk=environment_id)
        except Environment.DoesNotExist:
            raise NotFoundError("Environment", environment_id) from None

    def list(self, schedule_id: int | None = None, status: str | None = None) -> list[Environment]:
        queryset = self._environments().all()
        if schedule_id:
            queryset = queryset.filter(schedule_id=schedule_id)
        if status:
            queryset = queryset.filter(status=status)
        return list(queryset)

    def create(self, schedule_id: int, name: str, working_hours: Any = None, **fields: Any) -> Environment:
        unknown = set(fields) - ENVIRONMENT_FIELDS
        if unknown:
            raise ValidationError(f"Unknown environment field(s): {', '.join(sorted(unknown))}")
        if not name or not name.strip():
            raise ValidationError("Environment name is required", field="name")
        if not Schedule.objects.using(self.using).filter(pk=schedule_id).exists():
            raise NotFoundError("Schedule", schedule_id)
        environment = Environment(
            schedule_id=schedule_id,
            name=name.strip(),
            working_hours=_normalize_working_hours(working_hours),
            **fields,
        )
        environment.save(using=self.using)
        logger.info(f"Created environment {environment.pk} in schedule {schedule_id}")
        return environment

    def update(self, environment_id: int, **fields: Any) -> Environment:
        unknown = set(fields) - ENVIRONMENT_FIELDS
        if unknown:
            raise ValidationError(f"Unknown environment field(s): {', '.join(sorted(unknown))}")
        if "working_hours" in fields:
            fields["working_hours"] = _normalize_working_hours(fields["working_hours"])
        environment = self.get(environment_id)
        for name, value in fields.items():
            setattr(environment, name, value)
        environment.save(using=self.using, update_fields=[*fields, "updated_at"])
        return environment

    def deactivate(self, environment_id: int) -> Environment:
        return self.update(environment_id, status=Environment.Status.INACTIVE)

    def delete(self, environment_id: int) -> None:
        """Hard delete. Refused while bookings reference the environment."""
        environment = self.get(environment_id)
        try:
            with transaction.atomic(using=self.using):
                environment.delete(using=self.using)
        except ProtectedError as exc:
            raise EntityInUseError(
                f"Environment {environment_id} has booking history; deactivate it instead"
            ) from exc

    def get_working_hours(self, environment_id: int) -> WorkingHours | None:
        return self.get(environment_id).get_working_hours()

    # --- schedule holidays ---------------------------------------------------

    def add_holiday(
        self,
        schedule_id: int,
        on_date: date,
        description: str = "",
        created_by_id: int | None = None,
    ) -> Holiday:
        if not Schedule.objects.using(self.using).filter(pk=schedule_id).exists():
            raise NotFoundError("Schedule", schedule_id)
        holiday, created = self._holidays().get_or_create(
            schedule_id=schedule_id,
            date=on_date,
            defaults={"description": description, "created_by_id": created_by_id},
        )
        if not created and description and holiday.description != description:
            holiday.description = description
            holiday.save(using=self.using, update_fields=["description"])
        return holiday

    def remove_holiday(self, holiday_id: int) -> bool:
        deleted, _ = self._holidays().filter(pk=holiday_id).delete()
        return deleted > 0

    def list_holidays(
        self,
        schedule_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Holiday]:
        queryset = self._holidays().filter(schedule_id=schedule_id)
        if start_date:
            queryset = queryset.filter(date__gte=start_date)
        if end_date:
            queryset = queryset.filter(date__lte=end_date)
        return list(queryset)

    def is_holiday(self, schedule_id: int, on_date: date) -> bool:
        return self._holidays().filter(schedule_id=schedule_id, date=on_date).exists()


class GlobalHolidayRepository:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _holidays(self):
        return GlobalHoliday.objects.using(self.using)

    def add(self, on_date: date, description: str = "") -> GlobalHoliday:
        holiday, _ = self._holidays().update_or_create(date=on_date, defaults={"description": description})
        return holiday

    def remove(self, on_date: date) -> bool:
        deleted, _ = self._holidays().filter(date=on_date).delete()
        return deleted > 0

    def list(self, start_date: date | None = None, end_date: date | None = None) -> list[GlobalHoliday]:
        queryset = self._holidays().all()
        if start_date:
            queryset = queryset.filter(date__gte=start_date)
        if end_date:
            queryset = queryset.filter(date__lte=end_date)
        return list(queryset)

    def is_global_holiday(self, on_date: date) -> bool:
        return self._holidays().filter(date=on_date).exists()
