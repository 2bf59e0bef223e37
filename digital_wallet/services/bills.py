"""Bill payments from a wallet to a registered biller"""

import logging
import time
import uuid
from typing import List, Optional, Tuple

from sqlalchemy.orm import sessionmaker

from digital_wallet.domain.exceptions import DomainException, ForbiddenError, NotFoundError, ValidationError
from digital_wallet.domain.models import (
    BillCategory,
    BillerView,
    BillPaymentSummary,
    BillPaymentView,
    Caller,
    NotificationType,
    OtpPurpose,
    PayBillRequest,
    TransactionStatus,
    TransactionType,
)
from digital_wallet.domain.validators import validate_pay_bill
from digital_wallet.infrastructure.database.models import Biller, BillPayment
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.infrastructure.observability.logging import log_money_movement
from digital_wallet.infrastructure.observability.metrics import record_money_movement
from digital_wallet.services.base import run_atomically, service_operation
from digital_wallet.services.ledger import WalletLedger
from digital_wallet.services.notifications import NotificationDispatcher
from digital_wallet.services.otp import OtpEngine
from digital_wallet.services.users import active_user
from digital_wallet.services.views import bill_payment_view, biller_view

logger = logging.getLogger(__name__)

DEFAULT_BILLERS: List[Tuple[str, BillCategory]] = [
    ("Egyptian Electricity Holding Company", BillCategory.ELECTRICITY),
    ("Holding Company for Water and Wastewater", BillCategory.WATER),
    ("Egypt Gas", BillCategory.GAS),
    ("WE Internet", BillCategory.INTERNET),
    ("Vodafone Egypt", BillCategory.MOBILE),
    ("Orange Egypt", BillCategory.MOBILE),
]


def seed_default_billers(session_factory: sessionmaker) -> int:
    """Insert any missing default billers; returns how many were added"""
    added = 0
    with UnitOfWork(session_factory) as uow:
        for name, category in DEFAULT_BILLERS:
            if uow.billers.get_by_name(name) is None:
                uow.billers.add(Biller(name=name, category=category.value, is_active=True))
                added += 1
        uow.commit()
    if added:
        logger.info(f"Seeded {added} billers")
    return added


class BillPaymentService:
    KIND = "bill"

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

    @service_operation("List billers")
    def list_billers(self) -> List[BillerView]:
        with UnitOfWork(self.session_factory) as uow:
            return [biller_view(b) for b in uow.billers.list_active()]

    @service_operation("Bill payment", "Bill paid successfully")
    def pay_bill(self, caller: Caller, request: PayBillRequest) -> BillPaymentSummary:
        """
        Debit the wallet and record the payment.

        OTP consumption, the debit, the BillPayment row and its Bill transaction
        commit together or not at all.
        """
        start_time = time.time()
        try:
            errors = validate_pay_bill(request)
            if errors:
                raise ValidationError(errors=errors)
            summary = run_atomically(self.session_factory, lambda uow: self._apply(uow, caller, request))
        except DomainException as e:
            record_money_movement(self.KIND, e.kind.value)
            raise

        self.notifier.notify(
            caller.user_id,
            "Bill Paid",
            f"You paid {summary.amount_cents / 100:,.2f} {summary.currency} to {summary.biller_name}",
            NotificationType.TRANSACTION,
        )
        record_money_movement(self.KIND, "success", summary.amount_cents)
        log_money_movement(
            kind=self.KIND,
            reference=str(summary.bill_payment_id),
            user_id=str(caller.user_id),
            amount_cents=summary.amount_cents,
            currency=summary.currency,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return summary

    def _apply(self, uow: UnitOfWork, caller: Caller, request: PayBillRequest) -> BillPaymentSummary:
        self.otp.consume(uow, caller.user_id, request.otp_code, OtpPurpose.TRANSFER)

        wallet = self.ledger.get(uow, request.wallet_id)
        if wallet.user_id != caller.user_id:
            raise ForbiddenError("You can only pay from your own wallet")
        active_user(uow, caller.user_id)

        biller = uow.billers.get_by_id(request.biller_id)
        if biller is None or not biller.is_active:
            raise NotFoundError("Biller not found or inactive")

        wallet = self.ledger.lock(uow, wallet.id)[wallet.id]
        self.ledger.check_daily_limit(wallet, request.amount_cents)
        self.ledger.debit(uow, wallet.id, request.amount_cents)

        payment_id = uuid.uuid4()
        payment = uow.bill_payments.add(
            BillPayment(
                id=payment_id,
                user_id=caller.user_id,
                wallet_id=wallet.id,
                biller_id=biller.id,
                amount_cents=request.amount_cents,
                currency_code=wallet.currency_code,
                status=TransactionStatus.SUCCESS.value,
                receipt_path=f"/receipts/bill_{payment_id}.pdf",
            )
        )
        self.ledger.record(
            uow, wallet, TransactionType.BILL, -request.amount_cents, f"Bill payment to {biller.name}", payment.id
        )

        return BillPaymentSummary(
            bill_payment_id=payment.id,
            biller_name=biller.name,
            amount_cents=payment.amount_cents,
            currency=payment.currency_code,
            status=TransactionStatus.SUCCESS,
            receipt_path=payment.receipt_path,
            paid_at=payment.created_at,
        )

    @service_operation("List bill payments")
    def list_user_bill_payments(self, caller: Caller) -> List[BillPaymentView]:
        with UnitOfWork(self.session_factory) as uow:
            names = {b.id: b.name for b in uow.billers.list_active()}
            payments = uow.bill_payments.list_by_user(caller.user_id)
            for payment in payments:
                if payment.biller_id not in names:
                    biller = uow.billers.get_by_id(payment.biller_id)
                    names[payment.biller_id] = biller.name if biller else ""
            return [bill_payment_view(p, names) for p in payments]
