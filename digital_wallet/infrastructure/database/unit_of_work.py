"""Explicit transactional scope shared by the repositories of one operation"""

import logging
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from digital_wallet.infrastructure.database.repositories import (
    BankAccountRepository,
    BankTransactionRepository,
    BillerRepository,
    BillPaymentRepository,
    MoneyRequestRepository,
    NotificationRepository,
    OtpRepository,
    TransactionRepository,
    TransferRepository,
    UserRepository,
    WalletRepository,
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    One session, one database transaction.

    Usage:
        with UnitOfWork(session_factory) as uow:
            uow.wallets.debit(...)
            uow.commit()

    Leaving the block without commit() (including via an exception) rolls back,
    so every exit path is either fully committed or leaves no trace. Closing
    an uncommitted session discards its pending writes as well.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self.session: Optional[Session] = None

    def __enter__(self) -> "UnitOfWork":
        # Objects stay readable after commit and close; results are built from them
        self.session = self._session_factory(expire_on_commit=False)

        self.users = UserRepository(self.session)
        self.wallets = WalletRepository(self.session)
        self.otps = OtpRepository(self.session)
        self.transactions = TransactionRepository(self.session)
        self.transfers = TransferRepository(self.session)
        self.notifications = NotificationRepository(self.session)
        self.billers = BillerRepository(self.session)
        self.bill_payments = BillPaymentRepository(self.session)
        self.bank_accounts = BankAccountRepository(self.session)
        self.bank_transactions = BankTransactionRepository(self.session)
        self.money_requests = MoneyRequestRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self.session.rollback()
                logger.debug("Unit of work rolled back", extra={"error": exc_type.__name__})
        finally:
            self.session.close()
            self.session = None

    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()
