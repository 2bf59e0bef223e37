"""Peer money requests: ask another user to pay you, and answer such requests"""

import logging
import time
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.orm import sessionmaker

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import (
    DomainException,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from digital_wallet.domain.models import (
    Caller,
    MoneyRequestStatus,
    MoneyRequestView,
    NotificationType,
    OtpPurpose,
)
from digital_wallet.domain.validators import validate_amount, validate_currency, validate_otp_code
from digital_wallet.infrastructure.database.models import MoneyRequest, User
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.infrastructure.observability.logging import log_money_movement
from digital_wallet.infrastructure.observability.metrics import record_money_movement
from digital_wallet.services.base import run_atomically, service_operation
from digital_wallet.services.ledger import WalletLedger
from digital_wallet.services.notifications import NotificationDispatcher, OutgoingNotification
from digital_wallet.services.otp import OtpEngine
from digital_wallet.services.users import active_user
from digital_wallet.services.views import money_request_view
from digital_wallet.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


class MoneyRequestService:
    KIND = "request"

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

    @service_operation("Create money request", "Money request sent")
    def create_request(
        self, caller: Caller, to_identifier: str, amount_cents: int, currency: Optional[str] = None
    ) -> MoneyRequestView:
        currency = (currency or settings.default_currency).upper()
        errors = validate_amount(amount_cents, settings.max_transfer_cents) + validate_currency(currency)
        if not to_identifier or not to_identifier.strip():
            errors.append("Recipient is required")
        if errors:
            raise ValidationError(errors=errors)

        view, requester_name = run_atomically(
            self.session_factory, lambda uow: self._create(uow, caller, to_identifier, amount_cents, currency)
        )
        self.notifier.notify(
            view.to_user_id,
            "Money Request",
            f"{requester_name} requested {amount_cents / 100:,.2f} {currency} from you",
            NotificationType.REQUEST,
        )
        return view

    def _create(
        self, uow: UnitOfWork, caller: Caller, to_identifier: str, amount_cents: int, currency: str
    ) -> Tuple[MoneyRequestView, str]:
        requester = self._user(uow, caller.user_id)
        recipient = uow.users.get_by_email_or_phone(to_identifier)
        if recipient is None:
            raise NotFoundError("Recipient not found")
        if recipient.id == requester.id:
            raise ValidationError("Cannot request money from yourself")

        money_request = uow.money_requests.add(
            MoneyRequest(
                from_user_id=requester.id,
                to_user_id=recipient.id,
                amount_cents=amount_cents,
                currency_code=currency,
                status=MoneyRequestStatus.PENDING.value,
            )
        )
        return money_request_view(money_request), requester.full_name

    @service_operation("List sent money requests")
    def list_sent(self, caller: Caller) -> List[MoneyRequestView]:
        with UnitOfWork(self.session_factory) as uow:
            return [money_request_view(r) for r in uow.money_requests.list_sent(caller.user_id)]

    @service_operation("List received money requests")
    def list_received(self, caller: Caller) -> List[MoneyRequestView]:
        with UnitOfWork(self.session_factory) as uow:
            return [money_request_view(r) for r in uow.money_requests.list_received(caller.user_id)]

    @service_operation("Respond to money request")
    def respond(
        self, caller: Caller, request_id: uuid.UUID, accept: bool, otp_code: Optional[str] = None
    ) -> MoneyRequestView:
        """
        Accept (pay) or reject a pending request addressed to the caller.

        Accepting consumes a Transfer OTP and moves the money in the same unit
        of work that flips the request to Accepted.
        """
        start_time = time.time()
        if accept:
            errors = validate_otp_code(otp_code)
            if errors:
                raise ValidationError(errors=errors)

        try:
            view, payer, requester = run_atomically(
                self.session_factory, lambda uow: self._respond(uow, caller, request_id, accept, otp_code)
            )
        except DomainException as e:
            if accept:
                record_money_movement(self.KIND, e.kind.value)
            raise

        amount = f"{view.amount_cents / 100:,.2f} {view.currency}"
        if not accept:
            self.notifier.notify(
                requester.id,
                "Request Rejected",
                f"{payer.full_name} rejected your request for {amount}",
                NotificationType.REQUEST,
            )
            return view

        self.notifier.notify_all(
            [
                OutgoingNotification(payer.id, "Money Sent", f"You paid {amount} to {requester.full_name}"),
                OutgoingNotification(
                    requester.id, "Request Accepted", f"{payer.full_name} paid your request for {amount}"
                ),
            ]
        )
        record_money_movement(self.KIND, "success", view.amount_cents)
        log_money_movement(
            kind=self.KIND,
            reference=str(view.id),
            user_id=str(caller.user_id),
            amount_cents=view.amount_cents,
            currency=view.currency,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return view

    def _respond(
        self, uow: UnitOfWork, caller: Caller, request_id: uuid.UUID, accept: bool, otp_code: Optional[str]
    ) -> Tuple[MoneyRequestView, User, User]:
        money_request = uow.money_requests.get_by_id(request_id)
        if money_request is None:
            raise NotFoundError("Money request not found")
        if money_request.to_user_id != caller.user_id:
            raise ForbiddenError("You can only respond to requests sent to you")
        if money_request.status != MoneyRequestStatus.PENDING.value:
            raise ValidationError("Request already processed")

        payer = self._user(uow, money_request.to_user_id)
        requester = self._user(uow, money_request.from_user_id)
        status = MoneyRequestStatus.ACCEPTED if accept else MoneyRequestStatus.REJECTED

        # Conditional Pending -> final transition; a concurrent response loses here
        now = utc_now()
        if not uow.money_requests.resolve(money_request.id, status, now):
            raise ValidationError("Request already processed")

        if accept:
            active_user(uow, payer.id)
            self.otp.consume(uow, caller.user_id, otp_code, OtpPurpose.TRANSFER)
            payer_wallet = uow.wallets.get_by_user_and_currency(payer.id, money_request.currency_code)
            payee_wallet = uow.wallets.get_by_user_and_currency(requester.id, money_request.currency_code)
            if payer_wallet is None or payee_wallet is None:
                raise NotFoundError(f"No {money_request.currency_code} wallet available for this request")

            self.ledger.transfer(
                uow,
                payer_wallet.id,
                payee_wallet.id,
                money_request.amount_cents,
                sender_description=f"Payment request from {requester.full_name}",
                receiver_description=f"Payment request paid by {payer.full_name}",
            )

        view = money_request_view(money_request)
        view.status = status.value
        view.responded_at = now
        return view, payer, requester

    @staticmethod
    def _user(uow: UnitOfWork, user_id: uuid.UUID) -> User:
        user = uow.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user
