"""Wallet ledger: the only code path that changes wallet balances"""

import logging
import uuid
from typing import Callable, Dict, Optional

from digital_wallet.config import settings
from digital_wallet.domain.exceptions import (
    DuplicateError,
    InsufficientBalanceError,
    InvalidAmountError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from digital_wallet.domain.models import TransactionStatus, TransactionType, TransferState
from digital_wallet.infrastructure.database.models import Transaction, Transfer, Wallet
from digital_wallet.infrastructure.database.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class WalletLedger:
    """
    Balance primitives executed inside a caller-supplied unit of work.

    debit() re-checks the balance in the UPDATE itself, so a stale read taken
    earlier in the operation can never drive a balance negative. The daily
    limit is a per-operation ceiling; the monthly limit is stored but not
    enforced.
    """

    def __init__(
        self,
        default_daily_limit_cents: Optional[int] = None,
        default_monthly_limit_cents: Optional[int] = None,
    ):
        self.default_daily_limit_cents = default_daily_limit_cents or settings.default_daily_limit_cents
        self.default_monthly_limit_cents = default_monthly_limit_cents or settings.default_monthly_limit_cents

    def get(self, uow: UnitOfWork, wallet_id: uuid.UUID) -> Wallet:
        wallet = uow.wallets.get_by_id(wallet_id)
        if wallet is None:
            raise NotFoundError("Wallet not found")
        return wallet

    def lock(self, uow: UnitOfWork, *wallet_ids: uuid.UUID) -> Dict[uuid.UUID, Wallet]:
        """Row-lock the wallets taking part in a movement, in a deadlock-free order"""
        wallets = {wallet.id: wallet for wallet in uow.wallets.lock(wallet_ids)}
        if len(wallets) != len(set(wallet_ids)):
            raise NotFoundError("Wallet not found")
        return wallets

    def check_daily_limit(self, wallet: Wallet, amount_cents: int) -> None:
        if amount_cents > wallet.daily_limit_cents:
            raise LimitExceededError()

    def check_balance(self, wallet: Wallet, amount_cents: int) -> None:
        if wallet.balance_cents < amount_cents:
            raise InsufficientBalanceError()

    def debit(self, uow: UnitOfWork, wallet_id: uuid.UUID, amount_cents: int) -> None:
        """
        Raises:
            InvalidAmountError: amount <= 0
            InsufficientBalanceError: balance < amount at write time
            NotFoundError: wallet does not exist
        """
        if amount_cents <= 0:
            raise InvalidAmountError()
        if not uow.wallets.debit(wallet_id, amount_cents):
            self.get(uow, wallet_id)
            raise InsufficientBalanceError()

    def credit(self, uow: UnitOfWork, wallet_id: uuid.UUID, amount_cents: int) -> None:
        if amount_cents <= 0:
            raise InvalidAmountError()
        if not uow.wallets.credit(wallet_id, amount_cents):
            raise NotFoundError("Wallet not found")

    def move(self, uow: UnitOfWork, sender_wallet_id: uuid.UUID, receiver_wallet_id: uuid.UUID, amount_cents: int) -> None:
        """Debit then credit within the same unit; either both land or neither does"""
        self.debit(uow, sender_wallet_id, amount_cents)
        self.credit(uow, receiver_wallet_id, amount_cents)

    def record(
        self,
        uow: UnitOfWork,
        wallet: Wallet,
        transaction_type: TransactionType,
        signed_amount_cents: int,
        description: Optional[str],
        reference: uuid.UUID,
    ) -> Transaction:
        """Append one immutable ledger entry (negative amount = debit)"""
        return uow.transactions.add(
            Transaction(
                id=uuid.uuid4(),
                wallet_id=wallet.id,
                type=transaction_type.value,
                amount_cents=signed_amount_cents,
                currency_code=wallet.currency_code,
                status=TransactionStatus.SUCCESS.value,
                description=description,
                reference=str(reference),
            )
        )

    def open_wallet(self, uow: UnitOfWork, user_id: uuid.UUID, currency_code: str) -> Wallet:
        """
        Create a zero-balance wallet with default limits.

        Raises:
            DuplicateError: user already holds a wallet in this currency
        """
        if uow.wallets.get_by_user_and_currency(user_id, currency_code) is not None:
            raise DuplicateError(f"Wallet with currency {currency_code} already exists")

        wallet = uow.wallets.add(
            Wallet(
                user_id=user_id,
                currency_code=currency_code,
                balance_cents=0,
                daily_limit_cents=self.default_daily_limit_cents,
                monthly_limit_cents=self.default_monthly_limit_cents,
            )
        )
        logger.info("Wallet opened", extra={"user_id": str(user_id), "wallet_id": str(wallet.id), "currency": currency_code})
        return wallet

    def transfer(
        self,
        uow: UnitOfWork,
        sender_wallet_id: uuid.UUID,
        receiver_wallet_id: uuid.UUID,
        amount_cents: int,
        sender_description: Optional[str] = None,
        receiver_description: Optional[str] = None,
        on_step: Optional[Callable[[TransferState], None]] = None,
    ) -> Transfer:
        """
        Dual-entry movement between two wallets of the same currency.

        Flow:
        1. Lock both wallets (ascending id order)
        2. Check sender balance and daily limit against the locked row
        3. Debit sender, credit receiver
        4. Write the Transfer plus its debit and credit Transactions

        Nothing is committed here; the enclosing unit of work owns the boundary.
        """
        step = on_step or (lambda state: None)

        if sender_wallet_id == receiver_wallet_id:
            raise ValidationError("Cannot transfer to the same wallet")

        locked = self.lock(uow, sender_wallet_id, receiver_wallet_id)
        sender, receiver = locked[sender_wallet_id], locked[receiver_wallet_id]
        if sender.currency_code != receiver.currency_code:
            raise ValidationError("Wallet currencies do not match")

        self.check_balance(sender, amount_cents)
        self.check_daily_limit(sender, amount_cents)
        step(TransferState.BALANCE_CHECKED)

        self.move(uow, sender.id, receiver.id, amount_cents)
        step(TransferState.APPLIED)

        transfer = uow.transfers.add(
            Transfer(
                id=uuid.uuid4(),
                sender_wallet_id=sender.id,
                receiver_wallet_id=receiver.id,
                amount_cents=amount_cents,
                currency_code=sender.currency_code,
                status=TransactionStatus.SUCCESS.value,
                description=sender_description,
            )
        )
        self.record(uow, sender, TransactionType.TRANSFER, -amount_cents, sender_description, transfer.id)
        self.record(uow, receiver, TransactionType.TRANSFER, amount_cents, receiver_description, transfer.id)
        step(TransferState.RECORDED)
        return transfer
