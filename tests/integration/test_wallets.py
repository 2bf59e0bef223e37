"""Integration tests for wallet management and balance reads"""

import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

from digital_wallet.domain.exceptions import ErrorKind
from digital_wallet.domain.models import Role
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.ledger import WalletLedger
from digital_wallet.services.wallets import WalletService


@pytest.fixture
def wallets(session_factory) -> WalletService:
    return WalletService(session_factory)


def test_get_balance(session_factory, create_user, wallets):
    account = create_user(balance_cents=12_345)

    result = wallets.get_balance(account.caller, account.wallet_id)

    assert result.is_success
    assert result.data.balance_cents == 12_345
    assert result.data.currency == "EGP"


def test_balance_of_another_users_wallet_forbidden(session_factory, create_user, wallets):
    owner = create_user(balance_cents=100)
    other = create_user()

    assert wallets.get_balance(other.caller, owner.wallet_id).error == ErrorKind.FORBIDDEN
    assert wallets.get_wallet(other.caller, owner.wallet_id).error == ErrorKind.FORBIDDEN


def test_admin_can_view_any_wallet(session_factory, create_user, wallets):
    owner = create_user(balance_cents=100)
    admin = create_user(role=Role.ADMIN)

    assert wallets.get_wallet(admin.caller, owner.wallet_id).data.balance_cents == 100


def test_missing_wallet(session_factory, create_user, wallets):
    account = create_user()

    assert wallets.get_balance(account.caller, uuid.uuid4()).error == ErrorKind.NOT_FOUND


def test_create_wallet_in_new_currency(session_factory, create_user, wallets):
    account = create_user(currency="EGP")

    result = wallets.create_wallet(account.caller, "usd")

    assert result.is_success
    assert result.message == "Wallet created successfully"
    assert result.data.currency == "USD"
    assert result.data.balance_cents == 0
    assert result.data.daily_limit_cents == 500_000
    assert result.data.monthly_limit_cents == 2_000_000

    listed = wallets.list_user_wallets(account.caller).data
    assert [w.currency for w in listed] == ["EGP", "USD"]


def test_create_duplicate_wallet(session_factory, create_user, wallets):
    """Test a second wallet for the same currency is refused and no row is added"""
    account = create_user(currency="EGP")

    result = wallets.create_wallet(account.caller, "EGP")

    assert result.error == ErrorKind.DUPLICATE
    with UnitOfWork(session_factory) as uow:
        assert len(uow.wallets.list_by_user(account.user_id)) == 1


def test_create_wallet_race_lost_on_unique_constraint(session_factory, create_user, wallets):
    """Test a concurrent insert caught by the unique constraint still reports a duplicate"""
    account = create_user(currency="EGP")

    with patch.object(WalletLedger, "open_wallet", side_effect=IntegrityError("INSERT", {}, Exception("unique"))):
        result = wallets.create_wallet(account.caller, "USD")

    assert result.error == ErrorKind.DUPLICATE


def test_create_wallet_invalid_currency(session_factory, create_user, wallets):
    account = create_user()

    assert wallets.create_wallet(account.caller, "EURO").error == ErrorKind.VALIDATION
