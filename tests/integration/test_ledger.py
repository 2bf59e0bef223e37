"""Integration tests for wallet balance primitives and concurrent debits"""

import threading
import uuid

import pytest

from digital_wallet.domain.exceptions import (
    ConflictError,
    DuplicateError,
    InsufficientBalanceError,
    InvalidAmountError,
    LimitExceededError,
    NotFoundError,
)
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.base import run_atomically
from digital_wallet.services.ledger import WalletLedger


@pytest.fixture
def ledger() -> WalletLedger:
    return WalletLedger()


def test_debit_and_credit(session_factory, create_user, ledger, balance_of):
    account = create_user(balance_cents=10_000)

    with UnitOfWork(session_factory) as uow:
        ledger.debit(uow, account.wallet_id, 2_500)
        ledger.credit(uow, account.wallet_id, 500)
        uow.commit()

    assert balance_of(account.wallet_id) == 8_000


def test_debit_never_goes_negative(session_factory, create_user, ledger, balance_of):
    account = create_user(balance_cents=100)

    with pytest.raises(InsufficientBalanceError):
        with UnitOfWork(session_factory) as uow:
            ledger.debit(uow, account.wallet_id, 101)

    assert balance_of(account.wallet_id) == 100


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_amounts_rejected(session_factory, create_user, ledger, amount):
    account = create_user(balance_cents=100)

    with UnitOfWork(session_factory) as uow:
        with pytest.raises(InvalidAmountError):
            ledger.debit(uow, account.wallet_id, amount)
        with pytest.raises(InvalidAmountError):
            ledger.credit(uow, account.wallet_id, amount)


def test_missing_wallet(session_factory, ledger):
    with UnitOfWork(session_factory) as uow:
        with pytest.raises(NotFoundError):
            ledger.debit(uow, uuid.uuid4(), 100)
        with pytest.raises(NotFoundError):
            ledger.credit(uow, uuid.uuid4(), 100)
        with pytest.raises(NotFoundError):
            ledger.lock(uow, uuid.uuid4())


def test_daily_limit_check(session_factory, create_user, ledger):
    account = create_user(balance_cents=1_000_000, daily_limit_cents=50_000)

    with UnitOfWork(session_factory) as uow:
        wallet = ledger.get(uow, account.wallet_id)
        ledger.check_daily_limit(wallet, 50_000)
        with pytest.raises(LimitExceededError):
            ledger.check_daily_limit(wallet, 50_001)


def test_lock_returns_wallets_by_id(session_factory, create_user, ledger):
    first = create_user(balance_cents=1)
    second = create_user(balance_cents=2)

    with UnitOfWork(session_factory) as uow:
        locked = ledger.lock(uow, second.wallet_id, first.wallet_id)

    assert locked[first.wallet_id].balance_cents == 1
    assert locked[second.wallet_id].balance_cents == 2


def test_open_wallet_rejects_duplicate_currency(session_factory, create_user, ledger):
    """Test a second wallet for the same user and currency is refused and not created"""
    account = create_user(currency="EGP")

    with pytest.raises(DuplicateError):
        run_atomically(session_factory, lambda uow: ledger.open_wallet(uow, account.user_id, "EGP"))

    usd = run_atomically(session_factory, lambda uow: ledger.open_wallet(uow, account.user_id, "USD"))
    assert usd.balance_cents == 0

    with UnitOfWork(session_factory) as uow:
        wallets = uow.wallets.list_by_user(account.user_id)
    assert sorted(w.currency_code for w in wallets) == ["EGP", "USD"]


def test_stale_read_cannot_overdraw(session_factory, create_user, ledger, balance_of):
    """Test a debit based on a stale balance read fails once another debit has landed"""
    account = create_user(balance_cents=100)

    with UnitOfWork(session_factory) as slow:
        stale = slow.wallets.get_by_id(account.wallet_id)
        assert stale.balance_cents == 100

        with UnitOfWork(session_factory) as fast:
            ledger.debit(fast, account.wallet_id, 80)
            fast.commit()

        # The slow path's own check still sees 100; the conditional update does not
        ledger.check_balance(stale, 80)
        with pytest.raises(InsufficientBalanceError):
            ledger.debit(slow, account.wallet_id, 80)

    assert balance_of(account.wallet_id) == 20


def test_concurrent_debits_never_double_spend(session_factory, create_user, ledger, balance_of):
    """Test two racing 80 debits on a 100 balance: exactly one lands"""
    account = create_user(balance_cents=100)
    barrier = threading.Barrier(2)
    outcomes = []

    def debit():
        barrier.wait(timeout=5)
        try:
            run_atomically(
                session_factory,
                lambda uow: ledger.debit(uow, account.wallet_id, 80),
                max_retries=5,
                backoff_base=0.01,
            )
            outcomes.append("ok")
        except (InsufficientBalanceError, ConflictError) as e:
            outcomes.append(type(e).__name__)

    threads = [threading.Thread(target=debit) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    assert outcomes.count("ok") == 1
    assert balance_of(account.wallet_id) == 20
