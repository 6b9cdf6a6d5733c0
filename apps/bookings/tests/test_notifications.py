"""Booking events reach the notification signal after commit, and only then."""

from __future__ import annotations

from datetime import time

from django.test import override_settings

from apps.bookings import api
from apps.bookings.models import Booking
from apps.bookings.signals import booking_notification_requested
from apps.bookings.tasks import booking_recipients, notify_booking_created
from shared.domain.exceptions import HardConflictError

from .base import SchedulingTestCase


class NotificationTests(SchedulingTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.received: list[dict] = []

        def receiver(sender, **kwargs):
            self.received.append(kwargs)

        booking_notification_requested.connect(receiver, weak=False, dispatch_uid="notification-test")
        self.addCleanup(booking_notification_requested.disconnect, dispatch_uid="notification-test")

        self.team = self.audiences.create("Team")
        self.squad = self.audiences.create("Squad", parent_id=self.team.pk)
        self.audiences.add_member(self.team.pk, self.colleague.pk)
        self.audiences.add_member(self.squad.pk, self.outsider.pk)

    def _book_team(self, **kwargs) -> Booking:
        return self.book(booking_type=Booking.BookingType.AUDIENCE, audience_ids=[self.team.pk], **kwargs)

    def test_creation_notifies_affected_users_and_creator(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            booking = self._book_team()

        self.assertEqual(len(self.received), 1)
        notice = self.received[0]
        self.assertEqual(notice["kind"], "created")
        self.assertEqual(notice["booking"].pk, booking.pk)
        self.assertEqual(
            notice["recipient_ids"],
            sorted([self.member.pk, self.colleague.pk, self.outsider.pk]),
        )
        self.assertEqual(notice["reason"], "")

    def test_cancellation_notice_carries_the_reason(self) -> None:
        booking = self._book_team()

        with self.captureOnCommitCallbacks(execute=True):
            api.cancel_booking(booking.pk, self.admin.pk, "Room flooded")

        self.assertEqual([notice["kind"] for notice in self.received], ["cancelled"])
        self.assertEqual(self.received[0]["reason"], "Room flooded")

    def test_nothing_is_published_before_commit(self) -> None:
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            self._book_team()

        self.assertEqual(len(callbacks), 1)
        self.assertEqual(self.received, [])

    def test_failed_creation_publishes_nothing(self) -> None:
        self.book()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(HardConflictError):
                self.book(start=time(9, 30), end=time(10, 30))

        self.assertEqual(callbacks, [])
        self.assertEqual(self.received, [])

    def test_schedule_can_turn_off_creation_notices(self) -> None:
        self.schedules.update(self.schedule.pk, notify_on_booking=False)

        with self.captureOnCommitCallbacks(execute=True):
            booking = self._book_team()
        self.assertEqual(self.received, [])

        with self.captureOnCommitCallbacks(execute=True):
            api.cancel_booking(booking.pk, self.member.pk, "Plans changed")
        self.assertEqual([notice["kind"] for notice in self.received], ["cancelled"])

    @override_settings(SCHEDULING_NOTIFICATIONS_ENABLED=False)
    def test_global_switch_disables_notices(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            self._book_team()
        self.assertEqual(self.received, [])

    def test_task_for_missing_booking_is_a_no_op(self) -> None:
        result = notify_booking_created.delay(424242).get()
        self.assertEqual(result, {"recipients": 0})
        self.assertEqual(self.received, [])

    def test_recipients_of_individual_booking(self) -> None:
        booking = self.book(creator=self.colleague, user_ids=[self.member.pk])
        self.assertEqual(booking_recipients(booking), {self.member.pk, self.colleague.pk})
