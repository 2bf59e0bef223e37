"""Pytest fixtures for testing"""

import itertools
import os

# Settings are read at import time, so the test environment must be in place first
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("BANK_PROCESSING_DELAY_SECONDS", "0")
os.environ.setdefault("LEDGER_RETRY_BACKOFF_SECONDS", "0.01")
os.environ.setdefault("JWT_SECRET", "test-secret")

from types import SimpleNamespace
from typing import Callable, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from digital_wallet.api.main import create_app
from digital_wallet.config import settings
from digital_wallet.domain.models import Caller, OtpPurpose, Role, UserStatus
from digital_wallet.infrastructure.database.models import BankAccount, Base, User, Wallet
from digital_wallet.infrastructure.database.session import get_session_factory
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.notifications import NotificationDispatcher
from digital_wallet.services.otp import OtpEngine
from digital_wallet.services.transfers import TransferOrchestrator
from digital_wallet.utils.security import create_access_token, generate_account_number, hash_password

# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "Secret123"

_sequence = itertools.count(1)


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Fresh schema per test"""
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def create_user(session_factory: sessionmaker) -> Callable[..., SimpleNamespace]:
    """Factory for a user with one wallet and a funded bank account"""

    def _create(
        full_name: str = "Ahmed Hassan",
        balance_cents: int = 0,
        currency: str = "EGP",
        role: Role = Role.USER,
        status: UserStatus = UserStatus.ACTIVE,
        daily_limit_cents: Optional[int] = None,
        bank_balance_cents: Optional[int] = None,
    ) -> SimpleNamespace:
        n = next(_sequence)
        password_hash, salt = hash_password(DEFAULT_PASSWORD)
        with UnitOfWork(session_factory) as uow:
            user = uow.users.add(
                User(
                    full_name=full_name,
                    email=f"user{n}@example.com",
                    phone=f"010{n:08d}",
                    password_hash=password_hash,
                    salt=salt,
                    role=role.value,
                    status=status.value,
                )
            )
            wallet = uow.wallets.add(
                Wallet(
                    user_id=user.id,
                    currency_code=currency,
                    balance_cents=balance_cents,
                    daily_limit_cents=daily_limit_cents or settings.default_daily_limit_cents,
                    monthly_limit_cents=settings.default_monthly_limit_cents,
                )
            )
            uow.bank_accounts.add(
                BankAccount(
                    user_id=user.id,
                    account_number=generate_account_number(),
                    balance_cents=(
                        settings.bank_opening_balance_cents if bank_balance_cents is None else bank_balance_cents
                    ),
                )
            )
            uow.commit()
            return SimpleNamespace(
                user_id=user.id,
                wallet_id=wallet.id,
                email=user.email,
                phone=user.phone,
                full_name=full_name,
                password=DEFAULT_PASSWORD,
                caller=Caller(user_id=user.id, role=role),
            )

    return _create


@pytest.fixture
def balance_of(session_factory: sessionmaker) -> Callable:
    def _balance(wallet_id) -> int:
        with UnitOfWork(session_factory) as uow:
            return uow.wallets.get_by_id(wallet_id).balance_cents

    return _balance


@pytest.fixture
def otp_engine(session_factory: sessionmaker) -> OtpEngine:
    return OtpEngine(session_factory)


@pytest.fixture
def issue_transfer_otp(otp_engine: OtpEngine) -> Callable:
    def _issue(account: SimpleNamespace) -> str:
        return otp_engine.issue(account.user_id, OtpPurpose.TRANSFER)

    return _issue


@pytest.fixture
def notifier(session_factory: sessionmaker) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory)


@pytest.fixture
def orchestrator(session_factory: sessionmaker, otp_engine: OtpEngine, notifier: NotificationDispatcher) -> TransferOrchestrator:
    return TransferOrchestrator(session_factory, otp_engine, notifier)


@pytest.fixture
def client(session_factory: sessionmaker) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return TestClient(app)


def auth_headers(account: SimpleNamespace) -> dict:
    token, _ = create_access_token(account.user_id, account.caller.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for() -> Callable[[SimpleNamespace], dict]:
    return auth_headers
