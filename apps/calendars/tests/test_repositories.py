"""Tests for calendar repositories."""

from __future__ import annotations

from datetime import date

from django.test import TestCase

from apps.calendars.models import Environment, Holiday, Schedule
from apps.calendars.repositories import (
    EnvironmentRepository,
    GlobalHolidayRepository,
    ScheduleRepository,
)
from apps.users.models import User
from shared.domain.exceptions import NotFoundError, ValidationError


class ScheduleRepositoryTests(TestCase):
    def setUp(self) -> None:
        self.repo = ScheduleRepository()
        self.user = User.objects.create_user(email="member@example.com")

    def test_create_defaults(self) -> None:
        schedule = self.repo.create("  Meeting rooms ", created_by_id=self.user.pk)

        self.assertEqual(schedule.name, "Meeting rooms")
        self.assertEqual(schedule.visibility, Schedule.Visibility.PRIVATE)
        self.assertEqual(schedule.status, Schedule.Status.ACTIVE)
        self.assertIsNone(schedule.future_days_limit)
        self.assertTrue(schedule.notify_on_booking)

    def test_create_rejects_blank_name_and_unknown_fields(self) -> None:
        with self.assertRaises(ValidationError):
            self.repo.create("   ")
        with self.assertRaises(ValidationError):
            self.repo.create("Rooms", colour="red")

    def test_accessible_to_lists_public_and_permitted_active_schedules(self) -> None:
        public = self.repo.create("Public", visibility=Schedule.Visibility.PUBLIC)
        permitted = self.repo.create("Permitted")
        self.repo.create("Hidden")
        inactive = self.repo.create("Inactive", visibility=Schedule.Visibility.PUBLIC)
        self.repo.deactivate(inactive.pk)
        self.repo.set_user_permissions(permitted.pk, self.user.pk, can_book=False)

        names = {schedule.name for schedule in self.repo.accessible_to(self.user.pk)}

        self.assertEqual(names, {public.name, permitted.name})

    def test_set_user_permissions_defaults_and_upsert(self) -> None:
        schedule = self.repo.create("Rooms")

        permission = self.repo.set_user_permissions(schedule.pk, self.user.pk)
        self.assertTrue(permission.can_book)
        self.assertFalse(permission.can_cancel_others)
        self.assertFalse(permission.can_override_conflicts)

        self.repo.set_user_permissions(schedule.pk, self.user.pk, can_book=False, can_cancel_others=True)
        permission = self.repo.get_user_permissions(schedule.pk, self.user.pk)
        self.assertFalse(permission.can_book)
        self.assertTrue(permission.can_cancel_others)
        self.assertEqual(len(self.repo.list_permissions(schedule.pk)), 1)

        self.assertTrue(self.repo.remove_user_permissions(schedule.pk, self.user.pk))
        self.assertIsNone(self.repo.get_user_permissions(schedule.pk, self.user.pk))

    def test_get_unknown_schedule(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self.repo.get(424242)
        self.assertEqual(ctx.exception.entity, "Schedule")

    def test_delete_without_bookings_cascades_environments(self) -> None:
        schedule = self.repo.create("Temporary")
        EnvironmentRepository().create(schedule.pk, "Room")

        self.repo.delete(schedule.pk)

        self.assertFalse(Schedule.objects.filter(pk=schedule.pk).exists())
        self.assertEqual(Environment.objects.count(), 0)


class EnvironmentRepositoryTests(TestCase):
    def setUp(self) -> None:
        self.schedule = ScheduleRepository().create("Rooms")
        self.repo = EnvironmentRepository()

    def test_create_normalizes_working_hours(self) -> None:
        environment = self.repo.create(
            self.schedule.pk,
            "Room 1",
            working_hours={"mon": {"start": "08:00:00", "end": "18:00"}, "tue": {"closed": True}},
        )

        self.assertEqual(
            environment.working_hours,
            {"mon": {"closed": False, "start": "08:00", "end": "18:00"}, "tue": {"closed": True}},
        )
        self.assertTrue(self.repo.get_working_hours(environment.pk).is_working_day(date(2025, 12, 22)))

    def test_create_rejects_bad_template_and_unknown_schedule(self) -> None:
        with self.assertRaises(ValidationError):
            self.repo.create(self.schedule.pk, "Room", working_hours={"mon": {"start": "18:00", "end": "08:00"}})
        with self.assertRaises(NotFoundError):
            self.repo.create(987654, "Room")

    def test_list_filters_by_schedule_and_status(self) -> None:
        other = ScheduleRepository().create("Other")
        first = self.repo.create(self.schedule.pk, "A")
        self.repo.create(self.schedule.pk, "B")
        self.repo.create(other.pk, "C")
        self.repo.deactivate(first.pk)

        active = self.repo.list(schedule_id=self.schedule.pk, status=Environment.Status.ACTIVE)

        self.assertEqual([environment.name for environment in active], ["B"])

    def test_holidays_are_unique_per_schedule_and_date(self) -> None:
        first = self.repo.add_holiday(self.schedule.pk, date(2025, 12, 31), "Closed")
        second = self.repo.add_holiday(self.schedule.pk, date(2025, 12, 31), "Year end")

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Holiday.objects.get().description, "Year end")
        self.assertTrue(self.repo.is_holiday(self.schedule.pk, date(2025, 12, 31)))

        in_range = self.repo.list_holidays(self.schedule.pk, date(2025, 12, 1), date(2025, 12, 31))
        self.assertEqual(len(in_range), 1)
        self.assertEqual(self.repo.list_holidays(self.schedule.pk, start_date=date(2026, 1, 1)), [])

        self.assertTrue(self.repo.remove_holiday(first.pk))
        self.assertFalse(self.repo.is_holiday(self.schedule.pk, date(2025, 12, 31)))


class GlobalHolidayRepositoryTests(TestCase):
    def test_add_is_idempotent_per_date(self) -> None:
        repo = GlobalHolidayRepository()
        repo.add(date(2025, 12, 25), "Christmas")
        repo.add(date(2025, 12, 25), "Christmas Day")

        holidays = repo.list(date(2025, 12, 1), date(2025, 12, 31))
        self.assertEqual([holiday.description for holiday in holidays], ["Christmas Day"])
        self.assertTrue(repo.is_global_holiday(date(2025, 12, 25)))
        self.assertTrue(repo.remove(date(2025, 12, 25)))
        self.assertFalse(repo.is_global_holiday(date(2025, 12, 25)))
