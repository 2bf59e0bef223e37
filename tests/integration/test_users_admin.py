"""Integration tests for profile lookups and back-office listings"""

import uuid

import pytest

from digital_wallet.domain.exceptions import ErrorKind
from digital_wallet.domain.models import Role
from digital_wallet.services.admin import AdminService
from digital_wallet.services.users import UserService


@pytest.fixture
def users(session_factory) -> UserService:
    return UserService(session_factory)


@pytest.fixture
def admin_service(session_factory) -> AdminService:
    return AdminService(session_factory)


def test_get_me(session_factory, create_user, users):
    account = create_user(full_name="Karim Nabil")

    profile = users.get_me(account.caller).data

    assert profile.id == account.user_id
    assert profile.full_name == "Karim Nabil"
    assert profile.role == Role.USER.value
    assert profile.kyc_level == "basic"


def test_lookups(session_factory, create_user, users):
    account = create_user()

    assert users.get_by_id(account.user_id).data.email == account.email
    assert users.get_by_email(account.email).data.id == account.user_id
    assert users.get_by_phone(account.phone).data.id == account.user_id
    assert users.get_by_email_or_phone(account.phone).data.id == account.user_id
    assert users.get_by_email_or_phone(account.email).data.id == account.user_id


def test_lookup_misses(session_factory, users):
    assert users.get_by_id(uuid.uuid4()).error == ErrorKind.NOT_FOUND
    assert users.get_by_email("nobody@example.com").error == ErrorKind.NOT_FOUND
    assert users.get_by_phone("").error == ErrorKind.VALIDATION


def test_admin_lists_users_and_wallets(session_factory, create_user, admin_service):
    admin = create_user(role=Role.ADMIN)
    for _ in range(3):
        create_user()

    users_page = admin_service.list_users(admin.caller, page=1, page_size=2).data
    wallets_page = admin_service.list_wallets(admin.caller).data

    assert users_page.total_count == 4
    assert len(users_page.items) == 2
    assert users_page.has_next
    assert wallets_page.total_count == 4


def test_regular_user_cannot_use_admin_listings(session_factory, create_user, admin_service):
    account = create_user()

    for result in (admin_service.list_users(account.caller), admin_service.list_wallets(account.caller)):
        assert result.error == ErrorKind.FORBIDDEN
        assert result.message == "Admin access required"


def test_admin_paging_validation(session_factory, create_user, admin_service):
    admin = create_user(role=Role.ADMIN)

    assert admin_service.list_users(admin.caller, page_size=500).error == ErrorKind.VALIDATION
