"""Simulated bank: moves money between a user's bank account and default wallet"""

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import (
    DomainException,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)
from digital_wallet.domain.models import (
    BankDirection,
    BankTransactionSummary,
    Caller,
    NotificationType,
    TransactionStatus,
    TransactionType,
)
from digital_wallet.domain.validators import validate_amount
from digital_wallet.infrastructure.database.models import BankAccount, BankTransaction, Wallet
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork
from digital_wallet.infrastructure.observability.logging import log_money_movement
from digital_wallet.infrastructure.observability.metrics import record_money_movement
from digital_wallet.services.base import run_atomically, service_operation
from digital_wallet.services.ledger import WalletLedger
from digital_wallet.services.notifications import NotificationDispatcher
from digital_wallet.services.users import active_user

logger = logging.getLogger(__name__)


def default_wallet(uow: UnitOfWork, user_id: uuid.UUID) -> Wallet:
    """The user's wallet in the default currency, otherwise their oldest wallet"""
    wallet = uow.wallets.get_by_user_and_currency(user_id, settings.default_currency)
    if wallet is None:
        wallets = uow.wallets.list_by_user(user_id)
        if not wallets:
            raise NotFoundError("Wallet not found")
        wallet = wallets[0]
    return wallet


def _bank_account(uow: UnitOfWork, user_id: uuid.UUID) -> BankAccount:
    account = uow.bank_accounts.get_by_user(user_id)
    if account is None:
        raise NotFoundError("Bank account not found")
    return account


@dataclass
class _Pending:
    bank_transaction_id: uuid.UUID
    bank_account_id: uuid.UUID
    wallet_id: uuid.UUID
    currency: str


class BankService:
    """
    Deposit and withdraw through the simulated bank.

    Each call commits a Pending bank transaction, waits out the processing
    delay without holding any lock, then settles both legs in one unit of
    work. A settlement that fails marks the bank transaction Failed.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        notifier: NotificationDispatcher,
        ledger: Optional[WalletLedger] = None,
        delay_seconds: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.ledger = ledger or WalletLedger()
        self.delay_seconds = settings.bank_processing_delay_seconds if delay_seconds is None else delay_seconds

    @service_operation("Deposit", "Deposit successful")
    async def deposit(self, caller: Caller, amount_cents: int) -> BankTransactionSummary:
        return await self._execute(caller, amount_cents, BankDirection.DEPOSIT)

    @service_operation("Withdraw", "Withdrawal successful")
    async def withdraw(self, caller: Caller, amount_cents: int) -> BankTransactionSummary:
        return await self._execute(caller, amount_cents, BankDirection.WITHDRAW)

    async def _execute(self, caller: Caller, amount_cents: int, direction: BankDirection) -> BankTransactionSummary:
        start_time = time.time()
        kind = direction.value
        try:
            errors = validate_amount(amount_cents, settings.max_deposit_cents)
            if errors:
                raise ValidationError(errors=errors)

            pending = run_atomically(
                self.session_factory, lambda uow: self._open(uow, caller.user_id, amount_cents, direction)
            )
            logger.info(
                f"Bank {kind} pending",
                extra={"user_id": str(caller.user_id), "reference": str(pending.bank_transaction_id)},
            )

            await asyncio.sleep(self.delay_seconds)

            summary = self._settle_or_fail(pending, amount_cents, direction)
        except DomainException as e:
            record_money_movement(kind, e.kind.value)
            raise

        if direction == BankDirection.DEPOSIT:
            title, body = "Deposit Successful", f"{amount_cents / 100:,.2f} {pending.currency} deposited from your bank account"
        else:
            title, body = "Withdrawal Successful", f"{amount_cents / 100:,.2f} {pending.currency} withdrawn to your bank account"
        self.notifier.notify(caller.user_id, title, body, NotificationType.TRANSACTION)

        record_money_movement(kind, "success", amount_cents)
        log_money_movement(
            kind=kind,
            reference=str(pending.bank_transaction_id),
            user_id=str(caller.user_id),
            amount_cents=amount_cents,
            currency=pending.currency,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return summary

    def _open(self, uow: UnitOfWork, user_id: uuid.UUID, amount_cents: int, direction: BankDirection) -> _Pending:
        active_user(uow, user_id)
        account = _bank_account(uow, user_id)
        wallet = default_wallet(uow, user_id)

        if direction == BankDirection.DEPOSIT and account.balance_cents < amount_cents:
            raise InsufficientBalanceError("Insufficient bank balance")
        if direction == BankDirection.WITHDRAW and wallet.balance_cents < amount_cents:
            raise InsufficientBalanceError("Insufficient wallet balance")

        bank_transaction = uow.bank_transactions.add(
            BankTransaction(
                user_id=user_id,
                amount_cents=amount_cents,
                direction=direction.value,
                status=TransactionStatus.PENDING.value,
                delay_seconds=self.delay_seconds,
            )
        )
        return _Pending(bank_transaction.id, account.id, wallet.id, wallet.currency_code)

    def _settle_or_fail(self, pending: _Pending, amount_cents: int, direction: BankDirection) -> BankTransactionSummary:
        try:
            return run_atomically(self.session_factory, lambda uow: self._settle(uow, pending, amount_cents, direction))
        except (DomainException, SQLAlchemyError):
            self._mark_failed(pending.bank_transaction_id)
            raise

    def _settle(
        self, uow: UnitOfWork, pending: _Pending, amount_cents: int, direction: BankDirection
    ) -> BankTransactionSummary:
        wallet = self.ledger.lock(uow, pending.wallet_id)[pending.wallet_id]

        if direction == BankDirection.DEPOSIT:
            if not uow.bank_accounts.debit(pending.bank_account_id, amount_cents):
                raise InsufficientBalanceError("Insufficient bank balance")
            self.ledger.credit(uow, wallet.id, amount_cents)
            self.ledger.record(
                uow, wallet, TransactionType.DEPOSIT, amount_cents, "Deposit from bank", pending.bank_transaction_id
            )
        else:
            try:
                self.ledger.debit(uow, wallet.id, amount_cents)
            except InsufficientBalanceError as e:
                raise InsufficientBalanceError("Insufficient wallet balance") from e
            uow.bank_accounts.credit(pending.bank_account_id, amount_cents)
            self.ledger.record(
                uow, wallet, TransactionType.WITHDRAW, -amount_cents, "Withdraw to bank", pending.bank_transaction_id
            )

        uow.bank_transactions.complete(pending.bank_transaction_id, TransactionStatus.SUCCESS)
        bank_transaction = uow.bank_transactions.get_by_id(pending.bank_transaction_id)
        return BankTransactionSummary(
            bank_transaction_id=bank_transaction.id,
            direction=direction,
            amount_cents=amount_cents,
            status=TransactionStatus.SUCCESS,
            delay_seconds=bank_transaction.delay_seconds,
            created_at=bank_transaction.created_at,
        )

    def _mark_failed(self, bank_transaction_id: uuid.UUID) -> None:
        try:
            with UnitOfWork(self.session_factory) as uow:
                uow.bank_transactions.complete(bank_transaction_id, TransactionStatus.FAILED)
                uow.commit()
        except SQLAlchemyError:
            logger.exception("Could not mark bank transaction failed", extra={"reference": str(bank_transaction_id)})
