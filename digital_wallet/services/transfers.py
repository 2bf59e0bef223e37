"""Send-money orchestration"""

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.orm import sessionmaker

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import (
    DomainException,
    ForbiddenError,
    ReceiverNotFoundError,
    ValidationError,
)
from digital_wallet.domain.models import (
    Caller,
    NotificationType,
    OtpPurpose,
    SendMoneyRequest,
    TransactionStatus,
    TransferState,
    TransferSummary,
    UserStatus,
)
from digital_wallet.domain.validators import is_email, validate_send_money
from digital_wallet.infrastructure.database.models import User, Wallet
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.infrastructure.observability.logging import log_money_movement
from digital_wallet.infrastructure.observability.metrics import record_money_movement
from digital_wallet.services.base import run_atomically, service_operation
from digital_wallet.services.ledger import WalletLedger
from digital_wallet.services.notifications import NotificationDispatcher, OutgoingNotification
from digital_wallet.services.otp import OtpEngine
from digital_wallet.services.users import active_user

logger = logging.getLogger(__name__)


def resolve_receiver(uow: UnitOfWork, identifier: str, currency_code: str) -> Tuple[User, Wallet]:
    """
    Map an email or phone to the user's wallet in the given currency.

    Inactive users are treated as unknown.

    Raises:
        ReceiverNotFoundError: No such user, or no wallet in that currency
    """
    identifier = identifier.strip()
    user = uow.users.get_by_email(identifier) if is_email(identifier) else uow.users.get_by_phone(identifier)
    if user is None or user.status != UserStatus.ACTIVE.value:
        raise ReceiverNotFoundError()

    wallet = uow.wallets.get_by_user_and_currency(user.id, currency_code)
    if wallet is None:
        raise ReceiverNotFoundError(f"Receiver has no {currency_code} wallet")
    return user, wallet


class TransferRun:
    """State of one send-money attempt, logged on every transition"""

    def __init__(self, correlation_id: str, caller: Caller):
        self.correlation_id = correlation_id
        self.caller = caller
        self.state = TransferState.INITIATED

    def advance(self, state: TransferState) -> None:
        logger.info(
            f"Transfer {self.state.value} -> {state.value}",
            extra={"transfer_ref": self.correlation_id, "user_id": str(self.caller.user_id), "step": state.value},
        )
        self.state = state

    def fail(self, error: DomainException) -> None:
        logger.info(
            f"Transfer failed in state {self.state.value}: {error.message}",
            extra={
                "transfer_ref": self.correlation_id,
                "user_id": str(self.caller.user_id),
                "step": TransferState.FAILED.value,
                "error_kind": error.kind.value,
            },
        )
        self.state = TransferState.FAILED


@dataclass
class _Committed:
    transfer_id: uuid.UUID
    created_at: datetime
    currency: str
    sender_user_id: uuid.UUID
    sender_name: str
    receiver_user_id: uuid.UUID
    receiver_name: str


class TransferOrchestrator:
    """
    Moves money between two users' wallets.

    Steps from OTP consumption to the ledger records run in one unit of work
    and commit together; any failure before commit leaves balances, records
    and the OTP untouched. Notifications are sent after commit and never
    undo a transfer.
    """

    KIND = "transfer"

    def __init__(
        self,
        session_factory: sessionmaker,
        otp_engine: OtpEngine,
        notifier: NotificationDispatcher,
        ledger: Optional[WalletLedger] = None,
        max_transfer_cents: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.otp = otp_engine
        self.notifier = notifier
        self.ledger = ledger or WalletLedger()
        self.max_transfer_cents = max_transfer_cents or settings.max_transfer_cents

    @service_operation("Transfer", "Transfer successful")
    def send_money(self, caller: Caller, request: SendMoneyRequest) -> TransferSummary:
        start_time = time.time()
        run = TransferRun(str(uuid.uuid4()), caller)

        try:
            errors = validate_send_money(request, self.max_transfer_cents)
            if errors:
                raise ValidationError(errors=errors)

            committed = run_atomically(self.session_factory, lambda uow: self._apply(uow, caller, request, run))
        except DomainException as e:
            run.fail(e)
            record_money_movement(self.KIND, e.kind.value)
            raise

        amount = request.amount_cents
        self.notifier.notify_all(
            [
                OutgoingNotification(
                    committed.sender_user_id,
                    "Money Sent",
                    f"You sent {amount / 100:,.2f} {committed.currency} to {committed.receiver_name}",
                    NotificationType.TRANSACTION,
                ),
                OutgoingNotification(
                    committed.receiver_user_id,
                    "Money Received",
                    f"You received {amount / 100:,.2f} {committed.currency} from {committed.sender_name}",
                    NotificationType.TRANSACTION,
                ),
            ]
        )
        run.advance(TransferState.NOTIFICATIONS_SENT)

        record_money_movement(self.KIND, "success", amount)
        log_money_movement(
            kind=self.KIND,
            reference=str(committed.transfer_id),
            user_id=str(caller.user_id),
            amount_cents=amount,
            currency=committed.currency,
            duration_ms=(time.time() - start_time) * 1000,
        )
        run.advance(TransferState.COMPLETED)

        return TransferSummary(
            transfer_id=committed.transfer_id,
            receiver_name=committed.receiver_name,
            amount_cents=amount,
            currency=committed.currency,
            status=TransactionStatus.SUCCESS,
            transferred_at=committed.created_at,
        )

    def _apply(self, uow: UnitOfWork, caller: Caller, request: SendMoneyRequest, run: TransferRun) -> _Committed:
        # A retried unit starts over from the beginning
        run.state = TransferState.INITIATED

        sender_wallet = self.ledger.get(uow, request.sender_wallet_id)
        self.otp.consume(uow, sender_wallet.user_id, request.otp_code, OtpPurpose.TRANSFER)
        run.advance(TransferState.OTP_VERIFIED)

        if sender_wallet.user_id != caller.user_id:
            raise ForbiddenError("You can only send money from your own wallet")
        sender = active_user(uow, caller.user_id)
        run.advance(TransferState.OWNERSHIP_VERIFIED)

        receiver, receiver_wallet = resolve_receiver(uow, request.receiver_identifier, sender_wallet.currency_code)
        transfer = self.ledger.transfer(
            uow,
            sender_wallet.id,
            receiver_wallet.id,
            request.amount_cents,
            sender_description=request.description or f"Transfer to {receiver.full_name}",
            receiver_description=request.description or f"Transfer from {sender.full_name}",
            on_step=run.advance,
        )

        return _Committed(
            transfer_id=transfer.id,
            created_at=transfer.created_at,
            currency=transfer.currency_code,
            sender_user_id=sender.id,
            sender_name=sender.full_name,
            receiver_user_id=receiver.id,
            receiver_name=receiver.full_name,
        )
