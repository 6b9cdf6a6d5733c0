"""Calendar models: schedules, bookable environments and closures."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import ValidationError

from .working_hours import WorkingHours


class Schedule(models.Model):
    """Calendar container grouping environments and access permissions."""

    class Visibility(models.TextChoices):
        PUBLIC = "public", _("Public")
        PRIVATE = "private", _("Private")

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    visibility = models.CharField(
        max_length=10,
        choices=Visibility.choices,
        default=Visibility.PRIVATE,
    )
    future_days_limit = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("How many days ahead non-administrators may book. Empty or 0 means unlimited."),
    )
    notify_on_booking = models.BooleanField(default=True)
    notify_on_cancellation = models.BooleanField(default=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_schedules",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Schedule")
        verbose_name_plural = _("Schedules")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["status", "visibility"], name="schedule_status_visibility_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE


class Environment(models.Model):
    """Bookable resource (room, location, service) inside a schedule."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")

    schedule = models.ForeignKey(
        Schedule,
        on_delete=models.CASCADE,
        related_name="environments",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    working_hours = models.JSONField(
        null=True,
        blank=True,
        help_text=_("Weekly template {mon: {start, end, closed}, ...}. Empty means always open."),
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Environment")
        verbose_name_plural = _("Environments")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["schedule", "status"], name="env_schedule_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.schedule_id})"

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    def get_working_hours(self) -> WorkingHours | None:
        if not self.working_hours:
            return None
        return WorkingHours.from_dict(self.working_hours)

    def clean(self) -> None:
        try:
            self.get_working_hours()
        except ValidationError as exc:
            raise DjangoValidationError({"working_hours": exc.message}) from exc


class Holiday(models.Model):
    """Closed date for every environment of one schedule."""

    schedule = models.ForeignKey(
        Schedule,
        on_delete=models.CASCADE,
        related_name="holidays",
    )
    date = models.DateField()
    description = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Holiday")
        verbose_name_plural = _("Holidays")
        ordering = ["date"]
        constraints = [
            models.UniqueConstraint(fields=["schedule", "date"], name="holiday_unique_schedule_date"),
        ]

    def __str__(self) -> str:
        return f"{self.date} ({self.schedule_id})"


class GlobalHoliday(models.Model):
    """Organization-wide closed date. Blocks every environment."""

    date = models.DateField(unique=True)
    description = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Global holiday")
        verbose_name_plural = _("Global holidays")
        ordering = ["date"]

    def __str__(self) -> str:
        return f"{self.date} {self.description}".strip()


class SchedulePermission(models.Model):
    """Per-(schedule, user) rights. No row means no access on a private schedule."""

    schedule = models.ForeignKey(
        Schedule,
        on_delete=models.CASCADE,
        related_name="permissions",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="schedule_permissions",
    )
    can_book = models.BooleanField(default=True)
    can_cancel_others = models.BooleanField(default=False)
    can_override_conflicts = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Schedule permission")
        verbose_name_plural = _("Schedule permissions")
        constraints = [
            models.UniqueConstraint(fields=["schedule", "user"], name="schedule_permission_unique_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.schedule_id}"
