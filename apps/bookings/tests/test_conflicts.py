"""Hard and soft conflict detection."""

from __future__ import annotations

from datetime import time, timedelta

from apps.bookings import api
from apps.bookings.models import Booking
from apps.bookings.services import BookingConflictDetector
from shared.domain.exceptions import NotFoundError, ValidationError

from .base import SchedulingTestCase


class HardConflictTests(SchedulingTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.detector = BookingConflictDetector.for_database()
        self.existing = self.book(start=time(9, 0), end=time(10, 0))

    def test_overlap_is_a_conflict(self) -> None:
        conflicts = self.detector.hard_conflicts(self.room.pk, self.day, time(9, 30), time(10, 30))
        self.assertEqual(conflicts, [self.existing])

    def test_touching_ranges_do_not_conflict(self) -> None:
        self.assertEqual(self.detector.hard_conflicts(self.room.pk, self.day, time(10, 0), time(11, 0)), [])
        self.assertEqual(self.detector.hard_conflicts(self.room.pk, self.day, time(8, 0), time(9, 0)), [])

    def test_containing_and_contained_ranges_conflict(self) -> None:
        self.assertEqual(
            self.detector.hard_conflicts(self.room.pk, self.day, time(8, 0), time(12, 0)),
            [self.existing],
        )
        self.assertEqual(
            self.detector.hard_conflicts(self.room.pk, self.day, time(9, 15), time(9, 45)),
            [self.existing],
        )

    def test_other_environment_or_date_does_not_conflict(self) -> None:
        self.assertEqual(self.detector.hard_conflicts(self.lab.pk, self.day, time(9, 0), time(10, 0)), [])
        next_day = self.day + timedelta(days=1)
        self.assertEqual(self.detector.hard_conflicts(self.room.pk, next_day, time(9, 0), time(10, 0)), [])

    def test_cancelled_bookings_are_ignored(self) -> None:
        api.cancel_booking(self.existing.pk, self.member.pk, "Moved online")
        self.assertEqual(self.detector.hard_conflicts(self.room.pk, self.day, time(9, 0), time(10, 0)), [])

    def test_own_booking_can_be_excluded(self) -> None:
        conflicts = self.detector.hard_conflicts(
            self.room.pk,
            self.day,
            time(9, 0),
            time(10, 0),
            exclude_booking_id=self.existing.pk,
        )
        self.assertEqual(conflicts, [])

    def test_invalid_range_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            self.detector.hard_conflicts(self.room.pk, self.day, time(10, 0), time(9, 0))


class SoftConflictTests(SchedulingTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.detector = BookingConflictDetector.for_database()
        self.parent = self.audiences.create("Faculty")
        self.child = self.audiences.create("Mathematics", parent_id=self.parent.pk)
        self.audiences.add_member(self.child.pk, self.outsider.pk)

    def test_user_in_child_audience_is_double_booked(self) -> None:
        booked = self.book(
            environment=self.room,
            booking_type=Booking.BookingType.AUDIENCE,
            audience_ids=[self.child.pk],
        )

        warning = self.detector.soft_conflicts(
            self.day, time(9, 30), time(10, 0), audience_ids=[], user_ids=[self.outsider.pk]
        )

        self.assertEqual(warning.bookings, [booked])
        self.assertEqual(warning.affected_users, {self.outsider.pk})
        self.assertTrue(warning)

    def test_booking_a_parent_exposes_child_members(self) -> None:
        booked = self.book(
            environment=self.room,
            booking_type=Booking.BookingType.AUDIENCE,
            audience_ids=[self.parent.pk],
        )

        warning = self.detector.soft_conflicts(
            self.day, time(9, 0), time(9, 30), user_ids=[self.outsider.pk]
        )

        self.assertEqual(warning.booking_ids, [booked.pk])

    def test_only_shared_users_are_reported(self) -> None:
        self.audiences.add_member(self.child.pk, self.colleague.pk)
        self.book(user_ids=[self.member.pk, self.colleague.pk])

        warning = self.detector.soft_conflicts(
            self.day, time(9, 0), time(10, 0), audience_ids=[self.child.pk]
        )

        self.assertEqual(warning.affected_users, {self.colleague.pk})

    def test_no_overlap_in_time_or_people_means_no_warning(self) -> None:
        self.book(user_ids=[self.member.pk])

        later = self.detector.soft_conflicts(self.day, time(10, 0), time(11, 0), user_ids=[self.member.pk])
        someone_else = self.detector.soft_conflicts(self.day, time(9, 0), time(10, 0), user_ids=[self.outsider.pk])

        self.assertFalse(later)
        self.assertFalse(someone_else)
        self.assertEqual(later.affected_users, set())

    def test_empty_participant_set_returns_empty(self) -> None:
        empty = self.audiences.create("Empty")
        self.book(user_ids=[self.member.pk])

        warning = self.detector.soft_conflicts(self.day, time(9, 0), time(10, 0), audience_ids=[empty.pk])

        self.assertEqual(warning.bookings, [])


class CheckConflictsApiTests(SchedulingTestCase):
    def test_preview_reports_hard_and_soft_conflicts(self) -> None:
        on_room = self.book(environment=self.room, user_ids=[self.colleague.pk])
        on_lab = self.book(environment=self.lab, start=time(9, 30), end=time(11, 0), user_ids=[self.member.pk])

        report = api.check_conflicts(
            self.room.pk,
            self.day.isoformat(),
            "09:30",
            "10:30",
            user_ids=[self.member.pk],
        )

        self.assertEqual(report.hard, [on_room])
        self.assertEqual(report.soft.bookings, [on_lab])
        self.assertEqual(report.soft.affected_users, {self.member.pk})
        self.assertTrue(report.has_conflicts)
        self.assertEqual(Booking.objects.count(), 2)

    def test_preview_can_exclude_a_booking(self) -> None:
        existing = self.book()

        report = api.check_conflicts(
            self.room.pk,
            self.day,
            "09:00",
            "10:00",
            user_ids=[self.member.pk],
            exclude_booking_id=existing.pk,
        )

        self.assertFalse(report.has_conflicts)

    def test_preview_for_unknown_environment(self) -> None:
        with self.assertRaises(NotFoundError):
            api.check_conflicts(404404, self.day, "09:00", "10:00")
