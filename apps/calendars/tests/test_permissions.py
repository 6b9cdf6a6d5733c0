import pytest

from apps.calendars.repositories import ScheduleRepository
from apps.calendars.services import SchedulePermissionPolicy
from apps.users.models import User


@pytest.fixture
def schedules():
    return ScheduleRepository()


@pytest.fixture
def policy():
    return SchedulePermissionPolicy.for_database()


@pytest.fixture
def member():
    return User.objects.create_user(email="member@example.com")


@pytest.fixture
def admin():
    return User.objects.create_user(email="admin@example.com", role=User.RoleChoices.ADMINISTRATOR)


@pytest.mark.django_db
def test_booking_requires_a_permission_row_even_on_public_schedules(schedules, policy, member):
    schedule = schedules.create("Public rooms", visibility="public")

    assert not policy.can_book(schedule.pk, member.pk)

    schedules.set_user_permissions(schedule.pk, member.pk)
    assert policy.can_book(schedule.pk, member.pk)


@pytest.mark.django_db
def test_inactive_schedule_blocks_members_but_not_admins(schedules, policy, member, admin):
    schedule = schedules.create("Closed wing")
    schedules.set_user_permissions(schedule.pk, member.pk, can_book=True)
    schedules.deactivate(schedule.pk)

    assert not policy.can_book(schedule.pk, member.pk)
    assert policy.can_book(schedule.pk, admin.pk)


@pytest.mark.django_db
def test_administrators_pass_every_check_without_rows(schedules, policy):
    schedule = schedules.create("Any")
    superuser = User.objects.create_superuser(email="root@example.com", role=User.RoleChoices.MEMBER)

    assert policy.can_book(schedule.pk, superuser.pk)
    assert policy.can_cancel_others(schedule.pk, superuser.pk)
    assert policy.can_override_conflicts(schedule.pk, superuser.pk)


@pytest.mark.django_db
def test_inactive_administrator_is_not_privileged(schedules, policy):
    schedule = schedules.create("Any")
    admin = User.objects.create_user(
        email="former-admin@example.com",
        role=User.RoleChoices.ADMINISTRATOR,
        is_active=False,
    )

    assert not policy.can_book(schedule.pk, admin.pk)


@pytest.mark.django_db
def test_cancel_and_override_flags_are_independent(schedules, policy, member):
    schedule = schedules.create("Labs")
    schedules.set_user_permissions(schedule.pk, member.pk, can_cancel_others=True)

    assert policy.can_cancel_others(schedule.pk, member.pk)
    assert not policy.can_override_conflicts(schedule.pk, member.pk)

    schedules.set_user_permissions(schedule.pk, member.pk, can_override_conflicts=True)
    assert not policy.can_cancel_others(schedule.pk, member.pk)
    assert policy.can_override_conflicts(schedule.pk, member.pk)


@pytest.mark.django_db
def test_creator_can_always_cancel_own_booking(schedules, policy, member):
    schedule = schedules.create("Labs")
    other = User.objects.create_user(email="other@example.com")

    assert policy.can_cancel(schedule.pk, member.pk, member.pk)
    assert not policy.can_cancel(schedule.pk, member.pk, other.pk)
