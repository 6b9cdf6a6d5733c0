"""Storage access for audiences and their memberships."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.contrib.auth import get_user_model  # type: ignore
from django.db import DEFAULT_DB_ALIAS, transaction  # type: ignore
from django.db.models import ProtectedError, Q  # type: ignore

from shared.domain.exceptions import EntityInUseError, NotFoundError, ValidationError

from .models import Audience, AudienceMember

logger = logging.getLogger(__name__)

AUDIENCE_FIELDS = {"name", "description", "color", "parent_id", "status"}


class AudienceRepository:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _audiences(self):
        return Audience.objects.using(self.using)

    def _members(self):
        return AudienceMember.objects.using(self.using)

    def get(self, audience_id: int) -> Audience:
        try:
            return self._audiences().select_related("parent").get(pk=audience_id)
        except Audience.DoesNotExist:
            raise NotFoundError("Audience", audience_id) from None

    def ensure_exist(self, audience_ids: Iterable[int], active_only: bool = False) -> set[int]:
        """Return the ids as a set, raising NotFoundError for the first unknown one."""
        wanted = {int(audience_id) for audience_id in audience_ids}
        if not wanted:
            return wanted
        queryset = self._audiences().filter(pk__in=wanted)
        if active_only:
            queryset = queryset.filter(status=Audience.Status.ACTIVE)
        missing = sorted(wanted - set(queryset.values_list("pk", flat=True)))
        if missing:
            raise NotFoundError("Audience", missing[0])
        return wanted

    # --- listing -------------------------------------------------------------

    def list_parents(self, status: str | None = None) -> list[Audience]:
        """Top-level audiences only."""
        queryset = self._audiences().filter(parent__isnull=True)
        if status:
            queryset = queryset.filter(status=status)
        return list(queryset)

    def list_children(self, parent_id: int, status: str | None = None) -> list[Audience]:
        queryset = self._audiences().filter(parent_id=parent_id)
        if status:
            queryset = queryset.filter(status=status)
        return list(queryset)

    def hierarchical(self, status: str | None = None) -> list[tuple[Audience, list[Audience]]]:
        """Top-level audiences paired with their children, both sorted by name."""
        queryset = self._audiences().all()
        if status:
            queryset = queryset.filter(status=status)

        children: dict[int, list[Audience]] = {}
        parents: list[Audience] = []
        for audience in queryset:
            if audience.parent_id is None:
                parents.append(audience)
            else:
                children.setdefault(audience.parent_id, []).append(audience)
        return [(parent, children.get(parent.pk, [])) for parent in parents]

    def search(self, term: str, limit: int = 20) -> list[Audience]:
        term = (term or "").strip()
        if not term:
            return []
        queryset = self._audiences().filter(
            Q(name__icontains=term) | Q(description__icontains=term)
        )
        return list(queryset[:limit])

    # --- writes --------------------------------------------------------------

    def create(
        self,
        name: str,
        parent_id: int | None = None,
        created_by_id: int | None = None,
        **fields: Any,
    ) -> Audience:
        unknown = set(fields) - AUDIENCE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown audience field(s): {', '.join(sorted(unknown))}")
        if not name or not name.strip():
            raise ValidationError("Audience name is required", field="name")
        if not fields.get("color"):
            fields.pop("color", None)

        audience = Audience(
            name=name.strip(),
            parent_id=parent_id,
            created_by_id=created_by_id,
            **fields,
        )
        audience.save(using=self.using)
        logger.info(f"Created audience {audience.pk} ({audience.name}), parent={parent_id}")
        return audience

    def update(self, audience_id: int, **fields: Any) -> Audience:
        unknown = set(fields) - AUDIENCE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown audience field(s): {', '.join(sorted(unknown))}")
        if "name" in fields and (not fields["name"] or not fields["name"].strip()):
            raise ValidationError("Audience name is required", field="name")

        audience = self.get(audience_id)
        for name, value in fields.items():
            setattr(audience, name, value)
        audience.save(using=self.using, update_fields=[*fields, "updated_at"])
        return audience

    def deactivate(self, audience_id: int) -> Audience:
        return self.update(audience_id, status=Audience.Status.INACTIVE)

    def delete(self, audience_id: int) -> None:
        """
        Hard delete the audience, its children and their memberships.

        Refused while the audience or any of its children is attached to a
        booking; deactivate those instead.
        """
        audience = self.get(audience_id)
        try:
            with transaction.atomic(using=self.using):
                audience.delete(using=self.using)
        except ProtectedError as exc:
            raise EntityInUseError(
                f"Audience {audience_id} is attached to bookings; deactivate it instead"
            ) from exc
        logger.info(f"Deleted audience {audience_id}")

    # --- membership ----------------------------------------------------------

    def member_ids(self, audience_ids: Iterable[int], include_children: bool = False) -> set[int]:
        """User ids belonging to any of the audiences (optionally with their children)."""
        ids = {int(audience_id) for audience_id in audience_ids}
        if not ids:
            return set()

        condition = Q(audience_id__in=ids)
        if include_children:
            condition |= Q(audience__parent_id__in=ids)
        return set(self._members().filter(condition).values_list("user_id", flat=True).distinct())

    def get_members(self, audience_id: int, include_children: bool = False) -> list:
        self.get(audience_id)
        user_ids = self.member_ids([audience_id], include_children=include_children)
        return list(get_user_model().objects.using(self.using).filter(pk__in=user_ids).order_by("email"))

    def add_member(self, audience_id: int, user_id: int) -> bool:
        """Return True when a new membership row was created."""
        self.get(audience_id)
        _, created = self._members().get_or_create(audience_id=audience_id, user_id=user_id)
        return created

    def remove_member(self, audience_id: int, user_id: int) -> bool:
        deleted, _ = self._members().filter(audience_id=audience_id, user_id=user_id).delete()
        return deleted > 0

    def is_member(self, audience_id: int, user_id: int) -> bool:
        return self._members().filter(audience_id=audience_id, user_id=user_id).exists()

    def add_members(self, audience_id: int, user_ids: Iterable[int]) -> int:
        """Bulk add; existing memberships are left alone. Returns how many were added."""
        self.get(audience_id)
        wanted = {int(user_id) for user_id in user_ids}
        existing = set(
            self._members().filter(audience_id=audience_id, user_id__in=wanted).values_list("user_id", flat=True)
        )
        new_rows = [AudienceMember(audience_id=audience_id, user_id=user_id) for user_id in sorted(wanted - existing)]
        self._members().bulk_create(new_rows)
        return len(new_rows)

    def remove_members(self, audience_id: int, user_ids: Iterable[int]) -> int:
        wanted = {int(user_id) for user_id in user_ids}
        deleted, _ = self._members().filter(audience_id=audience_id, user_id__in=wanted).delete()
        return deleted

    def set_members(self, audience_id: int, user_ids: Iterable[int]) -> None:
        """Replace the audience's direct members with exactly ``user_ids``."""
        wanted = {int(user_id) for user_id in user_ids}
        with transaction.atomic(using=self.using):
            self._members().filter(audience_id=audience_id).exclude(user_id__in=wanted).delete()
            self.add_members(audience_id, wanted)

    def member_count(self, audience_id: int, include_children: bool = False) -> int:
        return len(self.member_ids([audience_id], include_children=include_children))

    def user_audiences(self, user_id: int, include_parents: bool = False) -> list[Audience]:
        """Audiences the user belongs to directly, plus parents of those when asked."""
        direct_ids = set(self._members().filter(user_id=user_id).values_list("audience_id", flat=True))
        if not direct_ids:
            return []

        condition = Q(pk__in=direct_ids)
        if include_parents:
            condition |= Q(children__pk__in=direct_ids)
        return list(self._audiences().filter(condition).distinct())
