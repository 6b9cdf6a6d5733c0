"""Booking models: time-slot reservations of an environment."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.base import AggregateRoot
from shared.domain.exceptions import AlreadyCancelledError
from shared.domain.value_objects import TimeRange

from .domain.events import BookingCancelled, BookingCreated


class Booking(AggregateRoot, models.Model):
    """
    Reservation of one environment for [start_time, end_time) on a date.

    ``booking_type`` decides which participant set is authoritative:
    attached audiences for ``audience`` bookings, attached users for
    ``individual`` ones. ``active -> cancelled`` is the only transition.
    """

    class BookingType(models.TextChoices):
        AUDIENCE = "audience", _("Audience")
        INDIVIDUAL = "individual", _("Individual")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        CANCELLED = "cancelled", _("Cancelled")

    environment = models.ForeignKey(
        "calendars.Environment",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    booking_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    booking_type = models.CharField(
        max_length=12,
        choices=BookingType.choices,
    )
    description = models.CharField(max_length=300)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="created_bookings",
    )
    cancelled_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="cancelled_bookings",
    )
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True)
    audiences = models.ManyToManyField(
        "audiences.Audience",
        through="BookingAudience",
        related_name="bookings",
        blank=True,
    )
    users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="BookingUser",
        related_name="participating_bookings",
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Set by the create handler when an acknowledged soft conflict was overridden.
    soft_conflict_warning = None

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["booking_date", "start_time"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_valid_time_range",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(status="active")
                    | (
                        models.Q(status="cancelled")
                        & models.Q(cancelled_at__isnull=False)
                        & models.Q(cancelled_by__isnull=False)
                        & ~models.Q(cancellation_reason="")
                    )
                ),
                name="booking_cancellation_complete",
            ),
        ]
        indexes = [
            models.Index(fields=["environment", "booking_date", "status"], name="booking_env_date_status_idx"),
            models.Index(fields=["booking_date", "status"], name="booking_date_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} {self.booking_date} {self.start_time:%H:%M}-{self.end_time:%H:%M}"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    @property
    def is_cancelled(self) -> bool:
        return self.status == self.Status.CANCELLED

    @property
    def time_range(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    def record_created(self) -> None:
        self.add_event(BookingCreated(
            aggregate_id=self.pk,
            booking_id=self.pk,
            environment_id=self.environment_id,
            booking_date=self.booking_date,
            start_time=self.start_time,
            end_time=self.end_time,
            created_by_id=self.created_by_id,
        ))

    def mark_cancelled(self, actor_id: int, reason: str) -> None:
        """Transition ACTIVE -> CANCELLED. Caller persists the change."""
        if self.is_cancelled:
            raise AlreadyCancelledError(f"Booking {self.pk} is already cancelled")

        self.status = self.Status.CANCELLED
        self.cancelled_by_id = actor_id
        self.cancelled_at = timezone.now()
        self.cancellation_reason = reason
        self.add_event(BookingCancelled(
            aggregate_id=self.pk,
            booking_id=self.pk,
            reason=reason,
            cancelled_by_id=actor_id,
        ))


class BookingAudience(models.Model):
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="booking_audiences",
    )
    audience = models.ForeignKey(
        "audiences.Audience",
        on_delete=models.PROTECT,
        related_name="booking_links",
    )

    class Meta:
        verbose_name = _("Booking audience")
        verbose_name_plural = _("Booking audiences")
        constraints = [
            models.UniqueConstraint(fields=["booking", "audience"], name="booking_audience_unique"),
        ]

    def __str__(self) -> str:
        return f"{self.audience_id}@{self.booking_id}"


class BookingUser(models.Model):
    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="booking_users",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="booking_links",
    )

    class Meta:
        verbose_name = _("Booking user")
        verbose_name_plural = _("Booking users")
        constraints = [
            models.UniqueConstraint(fields=["booking", "user"], name="booking_user_unique"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.booking_id}"
