"""Audience membership expansion."""

from __future__ import annotations

from typing import Iterable

from django.db import DEFAULT_DB_ALIAS  # type: ignore

from .repositories import AudienceRepository


class AudienceMembershipResolver:
    """
    Turns audience ids into flat sets of user ids.

    Expansion never walks upward: members of a child are not members of its
    parent. Walking downward is opt-in through ``include_children``, since a
    caller may pick either a parent (everyone under it) or one child.
    """

    def __init__(self, audience_repo: AudienceRepository):
        self.audience_repo = audience_repo

    @classmethod
    def for_database(cls, using: str = DEFAULT_DB_ALIAS) -> "AudienceMembershipResolver":
        return cls(AudienceRepository(using))

    def expand_members(self, audience_ids: Iterable[int], include_children: bool = False) -> set[int]:
        return self.audience_repo.member_ids(audience_ids, include_children=include_children)

    def affected_users(
        self,
        direct_user_ids: Iterable[int],
        audience_ids: Iterable[int],
        include_children: bool = True,
    ) -> set[int]:
        """Direct users plus every member of the given audiences."""
        users = {int(user_id) for user_id in direct_user_ids}
        return users | self.expand_members(audience_ids, include_children=include_children)
