"""Audience models: user groups with a two-level hierarchy."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError as DjangoValidationError  # type: ignore
from django.db import models, router, transaction  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.exceptions import ValidationError
from shared.infrastructure.locking import lock_queryset_if_possible


def default_audience_color() -> str:
    return getattr(settings, "SCHEDULING_DEFAULT_AUDIENCE_COLOR", "#3788d8")


class Audience(models.Model):
    """
    Named group of users.

    Hierarchy is at most two levels deep: a child (``parent`` set) may not
    have children of its own, and an audience that already has children
    may not be moved under a parent. Both rules are checked on every save.
    """

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    color = models.CharField(max_length=7, default=default_audience_color)
    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="children",
    )
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
        related_name="created_audiences",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Audience")
        verbose_name_plural = _("Audiences")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["parent", "status"], name="audience_parent_status_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    @property
    def is_active(self) -> bool:
        return self.status == self.Status.ACTIVE

    @property
    def is_child(self) -> bool:
        return self.parent_id is not None

    def validate_hierarchy(self, using: str | None = None) -> None:
        """
        Raise ValidationError when saving would break the two-level rule.

        Inside a transaction the parent row and this audience's row are
        locked first, so a concurrent re-parenting of either waits.
        """
        if self.parent_id is None:
            return

        using = using or router.db_for_write(type(self), instance=self)
        manager = type(self)._default_manager.db_manager(using)

        if self.pk is not None and self.parent_id == self.pk:
            raise ValidationError("An audience cannot be its own parent", field="parent_id")

        involved = [pk for pk in (self.parent_id, self.pk) if pk is not None]
        rows = lock_queryset_if_possible(manager.filter(pk__in=involved).order_by("pk"))
        parents = dict(rows.values_list("pk", "parent_id"))
        if self.parent_id not in parents:
            raise ValidationError(f"Parent audience {self.parent_id} does not exist", field="parent_id")
        if parents[self.parent_id] is not None:
            raise ValidationError(
                "Audiences are limited to two levels: the parent is already a child",
                field="parent_id",
            )

        if self.pk is not None and manager.filter(parent_id=self.pk).exists():
            raise ValidationError(
                "An audience with children cannot become a child",
                field="parent_id",
            )

    def clean(self) -> None:
        try:
            self.validate_hierarchy()
        except ValidationError as exc:
            raise DjangoValidationError({"parent": exc.message}) from exc

    def save(self, *args, **kwargs):
        using = kwargs.get("using") or router.db_for_write(type(self), instance=self)
        with transaction.atomic(using=using):
            self.validate_hierarchy(using=using)
            super().save(*args, **kwargs)


class AudienceMember(models.Model):
    """(audience, user) membership. A user may belong to many audiences."""

    audience = models.ForeignKey(
        Audience,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="audience_memberships",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Audience member")
        verbose_name_plural = _("Audience members")
        constraints = [
            models.UniqueConstraint(fields=["audience", "user"], name="audience_member_unique_user"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}@{self.audience_id}"
