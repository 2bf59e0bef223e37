"""One-time password issuance and single-use consumption"""

import logging
import uuid
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import sessionmaker

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import InvalidOtpError, ValidationError
from digital_wallet.domain.models import OtpPurpose
from digital_wallet.domain.validators import validate_otp_code
from digital_wallet.infrastructure.database.models import OtpCode
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.infrastructure.observability.metrics import otp_consumption_counter, otp_issued_counter
from digital_wallet.services.base import run_atomically
from digital_wallet.utils.date_utils import expires_after, utc_now
from digital_wallet.utils.security import generate_otp_code

logger = logging.getLogger(__name__)


class OtpEngine:
    """
    Issues and consumes short-lived 6-digit codes.

    A code authorizes exactly one operation: consume() is a single conditional
    update executed inside the caller's unit of work, so it commits or rolls
    back together with the money movement it guards.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        clock: Callable[[], datetime] = utc_now,
        ttl_seconds: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.ttl_seconds = ttl_seconds or settings.otp_ttl_seconds

    def issue(self, user_id: uuid.UUID, purpose: OtpPurpose) -> str:
        """Issue a fresh code, superseding outstanding ones of the same purpose"""
        return run_atomically(self.session_factory, lambda uow: self.issue_in(uow, user_id, purpose))

    def issue_in(self, uow: UnitOfWork, user_id: uuid.UUID, purpose: OtpPurpose) -> str:
        superseded = uow.otps.supersede_outstanding(user_id, purpose)
        code = generate_otp_code()
        uow.otps.add(
            OtpCode(
                user_id=user_id,
                code=code,
                purpose=purpose.value,
                expires_at=expires_after(self.ttl_seconds, self.clock()),
                is_used=False,
            )
        )
        otp_issued_counter.labels(purpose=purpose.value).inc()
        # Simulated SMS/email dispatch
        logger.debug(
            "OTP issued",
            extra={"user_id": str(user_id), "purpose": purpose.value, "superseded": superseded},
        )
        return code

    def verify(self, user_id: uuid.UUID, code: str, purpose: OtpPurpose) -> bool:
        """Read-only check; does not consume the code"""
        if validate_otp_code(code):
            return False
        with UnitOfWork(self.session_factory) as uow:
            return uow.otps.find_valid(user_id, code, purpose, self.clock()) is not None

    def consume(self, uow: UnitOfWork, user_id: uuid.UUID, code: str, purpose: OtpPurpose) -> None:
        """
        Atomically mark a matching, unused, unexpired code as used.

        Raises:
            ValidationError: Code is not 6 digits
            InvalidOtpError: No such code, already used, expired, wrong purpose or owner
        """
        errors = validate_otp_code(code)
        if errors:
            raise ValidationError(errors=errors)

        if not uow.otps.consume(user_id, code, purpose, self.clock()):
            otp_consumption_counter.labels(purpose=purpose.value, outcome="rejected").inc()
            raise InvalidOtpError()

        otp_consumption_counter.labels(purpose=purpose.value, outcome="accepted").inc()
