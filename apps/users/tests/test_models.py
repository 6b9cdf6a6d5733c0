"""Tests for the custom user model and user lookups."""

from __future__ import annotations

from django.test import TestCase

from apps.users.models import User
from apps.users.repositories import UserRepository
from shared.domain.exceptions import NotFoundError


class CustomUserTests(TestCase):
    def test_create_user_logs_in_by_email_as_member(self) -> None:
        user = User.objects.create_user(email="Person@Example.COM", password="StrongPass123")

        self.assertEqual(user.email, "Person@example.com")
        self.assertEqual(user.role, User.RoleChoices.MEMBER)
        self.assertTrue(user.check_password("StrongPass123"))
        self.assertFalse(user.is_scheduling_admin)

    def test_email_is_required(self) -> None:
        with self.assertRaises(ValueError):
            User.objects.create_user(email="")

    def test_administrator_role_and_superuser_are_admins(self) -> None:
        admin = User.objects.create_user(email="admin@example.com", role=User.RoleChoices.ADMINISTRATOR)
        superuser = User.objects.create_superuser(email="root@example.com", password="RootPass123")
        manager = User.objects.create_user(email="manager@example.com", role=User.RoleChoices.MANAGER)

        self.assertTrue(admin.is_scheduling_admin)
        self.assertTrue(superuser.is_scheduling_admin)
        self.assertEqual(superuser.role, User.RoleChoices.ADMINISTRATOR)
        self.assertFalse(manager.is_scheduling_admin)

    def test_inactive_administrator_is_not_admin(self) -> None:
        admin = User.objects.create_user(
            email="gone@example.com",
            role=User.RoleChoices.ADMINISTRATOR,
            is_active=False,
        )
        self.assertFalse(admin.is_scheduling_admin)


class UserRepositoryTests(TestCase):
    def setUp(self) -> None:
        self.repo = UserRepository()
        self.first = User.objects.create_user(email="first@example.com")
        self.second = User.objects.create_user(email="second@example.com")

    def test_ensure_exist_returns_ids(self) -> None:
        self.assertEqual(self.repo.ensure_exist([self.first.pk, str(self.second.pk)]), {self.first.pk, self.second.pk})
        self.assertEqual(self.repo.ensure_exist([]), set())

    def test_ensure_exist_reports_first_missing_id(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            self.repo.ensure_exist([self.first.pk, 90001, 90000])
        self.assertEqual(ctx.exception.identifier, 90000)

    def test_is_administrator_for_unknown_user_is_false(self) -> None:
        self.assertFalse(self.repo.is_administrator(123456))
