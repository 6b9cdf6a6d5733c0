"""User lookups for the scheduling core."""

from __future__ import annotations

from typing import Iterable

from django.contrib.auth import get_user_model  # type: ignore
from django.db import DEFAULT_DB_ALIAS  # type: ignore

from shared.domain.exceptions import NotFoundError


class UserRepository:
    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def _users(self):
        return get_user_model().objects.using(self.using)

    def get(self, user_id: int):
        try:
            return self._users().get(pk=user_id)
        except get_user_model().DoesNotExist:
            raise NotFoundError("User", user_id) from None

    def find(self, user_id: int):
        return self._users().filter(pk=user_id).first()

    def ensure_exist(self, user_ids: Iterable[int]) -> set[int]:
        """Return the ids as a set, raising NotFoundError for the first unknown one."""
        wanted = {int(user_id) for user_id in user_ids}
        if not wanted:
            return wanted
        found = set(self._users().filter(pk__in=wanted).values_list("pk", flat=True))
        missing = sorted(wanted - found)
        if missing:
            raise NotFoundError("User", missing[0])
        return wanted

    def is_administrator(self, user_id: int) -> bool:
        user = self.find(user_id)
        return bool(user and user.is_scheduling_admin)
