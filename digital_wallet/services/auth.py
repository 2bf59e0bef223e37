"""Registration and two-step login"""

import logging
import uuid
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import (
    DuplicateError,
    ForbiddenError,
    InvalidOtpError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from digital_wallet.domain.models import (
    AuthToken,
    Caller,
    KycLevel,
    LoginChallenge,
    NotificationType,
    OtpDispatch,
    OtpPurpose,
    RegisterRequest,
    Role,
    UserStatus,
)
from digital_wallet.domain.validators import validate_registration
from digital_wallet.infrastructure.database.models import BankAccount, User
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.services.base import run_atomically, service_operation
from digital_wallet.services.ledger import WalletLedger
from digital_wallet.services.notifications import NotificationDispatcher
from digital_wallet.services.otp import OtpEngine
from digital_wallet.utils.date_utils import utc_now
from digital_wallet.utils.security import (
    create_access_token,
    generate_account_number,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


def _token_for(user: User) -> AuthToken:
    token, expires_at = create_access_token(user.id, Role(user.role))
    return AuthToken(
        user_id=user.id,
        full_name=user.full_name,
        email=user.email,
        access_token=token,
        expires_at=expires_at,
    )


class AuthService:
    """
    Registration opens a user, a default wallet and a simulated bank account
    in one unit of work. Login is password first, then a Login OTP.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        otp_engine: OtpEngine,
        notifier: NotificationDispatcher,
        ledger: Optional[WalletLedger] = None,
    ):
        self.session_factory = session_factory
        self.otp = otp_engine
        self.notifier = notifier
        self.ledger = ledger or WalletLedger()

    @service_operation("Register", "Registration successful")
    def register(self, request: RegisterRequest) -> AuthToken:
        errors = validate_registration(request)
        if errors:
            raise ValidationError(errors=errors)

        email = request.email.strip().lower()
        try:
            user_id = run_atomically(self.session_factory, lambda uow: self._create_user(uow, request, email))
        except IntegrityError as e:
            # Concurrent registration with the same email or phone
            raise DuplicateError("Email or phone number already registered") from e

        logger.info("User registered", extra={"user_id": str(user_id)})
        self.notifier.notify(
            user_id,
            "Welcome",
            "Your wallet is ready. Verify your identity to raise your limits.",
            NotificationType.SYSTEM,
        )

        with UnitOfWork(self.session_factory) as uow:
            return _token_for(uow.users.get_by_id(user_id))

    def _create_user(self, uow: UnitOfWork, request: RegisterRequest, email: str) -> uuid.UUID:
        if uow.users.email_exists(email):
            raise DuplicateError("Email already registered")
        if uow.users.phone_exists(request.phone):
            raise DuplicateError("Phone number already registered")

        password_hash, salt = hash_password(request.password)
        user = uow.users.add(
            User(
                full_name=request.full_name.strip(),
                email=email,
                phone=request.phone,
                password_hash=password_hash,
                salt=salt,
                kyc_level=KycLevel.BASIC.value,
                status=UserStatus.ACTIVE.value,
                role=Role.USER.value,
            )
        )
        self.ledger.open_wallet(uow, user.id, settings.default_currency)
        uow.bank_accounts.add(
            BankAccount(
                user_id=user.id,
                account_number=generate_account_number(),
                balance_cents=settings.bank_opening_balance_cents,
            )
        )
        return user.id

    @service_operation("Login", "OTP sent to your phone")
    def login(self, email_or_phone: str, password: str) -> LoginChallenge:
        errors = []
        if not email_or_phone:
            errors.append("Email or phone is required")
        if not password:
            errors.append("Password is required")
        if errors:
            raise ValidationError(errors=errors)

        def work(uow: UnitOfWork) -> LoginChallenge:
            user = uow.users.get_by_email_or_phone(email_or_phone)
            # Same message for unknown user and wrong password
            if user is None or not verify_password(password, user.salt, user.password_hash):
                raise UnauthorizedError("Invalid credentials")
            if user.status != UserStatus.ACTIVE.value:
                raise ForbiddenError("Account is suspended")

            code = self.otp.issue_in(uow, user.id, OtpPurpose.LOGIN)
            return LoginChallenge(
                user_id=user.id,
                full_name=user.full_name,
                email=user.email,
                requires_otp=True,
                otp_code=code,
            )

        return run_atomically(self.session_factory, work)

    @service_operation("Verify OTP", "OTP verified successfully")
    def verify_login_otp(self, user_id: uuid.UUID, code: str) -> AuthToken:
        def work(uow: UnitOfWork) -> AuthToken:
            user = uow.users.get_by_id(user_id)
            if user is None:
                raise InvalidOtpError()
            if user.status != UserStatus.ACTIVE.value:
                raise ForbiddenError("Account is suspended")
            self.otp.consume(uow, user.id, code, OtpPurpose.LOGIN)
            uow.users.touch_last_login(user.id, utc_now())
            return _token_for(user)

        token = run_atomically(self.session_factory, work)
        logger.info("User logged in", extra={"user_id": str(user_id)})
        return token

    @service_operation("Send OTP", "OTP sent successfully")
    def send_otp(self, caller: Caller, purpose: str = OtpPurpose.TRANSFER.value) -> OtpDispatch:
        """
        Issue a fresh OTP to the authenticated caller.

        Login codes come only from login(), after the password check.
        """
        try:
            otp_purpose = OtpPurpose(purpose.lower())
        except (AttributeError, ValueError) as e:
            raise ValidationError(f"Unknown OTP purpose: {purpose}") from e
        if otp_purpose == OtpPurpose.LOGIN:
            raise ValidationError("Login OTPs are issued by signing in")

        user_id = caller.user_id

        def work(uow: UnitOfWork) -> str:
            user = uow.users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")
            if user.status != UserStatus.ACTIVE.value:
                raise ForbiddenError("Account is suspended")
            return self.otp.issue_in(uow, user_id, otp_purpose)

        code = run_atomically(self.session_factory, work)
        return OtpDispatch(
            user_id=user_id,
            purpose=otp_purpose,
            expires_in_seconds=self.otp.ttl_seconds,
            otp_code=code,
        )
