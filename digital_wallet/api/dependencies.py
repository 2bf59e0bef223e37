"""Dependency injection for FastAPI endpoints"""

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import sessionmaker

from digital_wallet.domain.exceptions import ForbiddenError, UnauthorizedError
from digital_wallet.domain.models import Caller, Capability
from digital_wallet.infrastructure.database.session import get_session_factory
from digital_wallet.services.admin import AdminService
from digital_wallet.services.auth import AuthService
from digital_wallet.services.bank import BankService
from digital_wallet.services.bills import BillPaymentService
from digital_wallet.services.history import TransactionHistoryService
from digital_wallet.services.money_requests import MoneyRequestService
from digital_wallet.services.notifications import NotificationDispatcher, NotificationService
from digital_wallet.services.otp import OtpEngine
from digital_wallet.services.transfers import TransferOrchestrator
from digital_wallet.services.users import UserService
from digital_wallet.services.wallets import WalletService
from digital_wallet.utils.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Caller:
    """Resolve the bearer token into the caller identity handed to the services"""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Missing bearer token")
    return decode_access_token(credentials.credentials)


def require_capability(capability: Capability) -> Callable[..., Caller]:
    def checker(caller: Caller = Depends(get_current_caller)) -> Caller:
        if not caller.can(capability):
            raise ForbiddenError("Admin access required")
        return caller

    return checker


def get_otp_engine(session_factory: sessionmaker = Depends(get_session_factory)) -> OtpEngine:
    return OtpEngine(session_factory)


def get_notifier(session_factory: sessionmaker = Depends(get_session_factory)) -> NotificationDispatcher:
    return NotificationDispatcher(session_factory)


def get_auth_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    otp_engine: OtpEngine = Depends(get_otp_engine),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> AuthService:
    return AuthService(session_factory, otp_engine, notifier)


def get_wallet_service(session_factory: sessionmaker = Depends(get_session_factory)) -> WalletService:
    return WalletService(session_factory)


def get_history_service(session_factory: sessionmaker = Depends(get_session_factory)) -> TransactionHistoryService:
    return TransactionHistoryService(session_factory)


def get_transfer_orchestrator(
    session_factory: sessionmaker = Depends(get_session_factory),
    otp_engine: OtpEngine = Depends(get_otp_engine),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> TransferOrchestrator:
    return TransferOrchestrator(session_factory, otp_engine, notifier)


def get_bill_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    otp_engine: OtpEngine = Depends(get_otp_engine),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> BillPaymentService:
    return BillPaymentService(session_factory, otp_engine, notifier)


def get_bank_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> BankService:
    return BankService(session_factory, notifier)


def get_money_request_service(
    session_factory: sessionmaker = Depends(get_session_factory),
    otp_engine: OtpEngine = Depends(get_otp_engine),
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> MoneyRequestService:
    return MoneyRequestService(session_factory, otp_engine, notifier)


def get_notification_service(session_factory: sessionmaker = Depends(get_session_factory)) -> NotificationService:
    return NotificationService(session_factory)


def get_user_service(session_factory: sessionmaker = Depends(get_session_factory)) -> UserService:
    return UserService(session_factory)


def get_admin_service(session_factory: sessionmaker = Depends(get_session_factory)) -> AdminService:
    return AdminService(session_factory)
