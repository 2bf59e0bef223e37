"""Data access layer for wallet entities.

Every repository works on the session of the enclosing unit of work and never
commits; balance columns are only changed through conditional updates.
"""

import uuid
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from digital_wallet.domain.models import MoneyRequestStatus, OtpPurpose, TransactionStatus
from digital_wallet.infrastructure.database.models import (
    BankAccount,
    BankTransaction,
    Biller,
    BillPayment,
    MoneyRequest,
    Notification,
    OtpCode,
    Transaction,
    Transfer,
    User,
    Wallet,
)


def paginate(query: Query, page: int, page_size: int) -> Tuple[List, int]:
    """Return (items for 1-based page, total matching rows)"""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return items, total


class UserRepository:
    """Repository for users and identity lookups"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, user: User) -> User:
        self.db.add(user)
        self.db.flush()  # Surface unique violations inside the unit of work
        return user

    def get_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.lower()).first()

    def get_by_phone(self, phone: str) -> Optional[User]:
        return self.db.query(User).filter(User.phone == phone).first()

    def get_by_email_or_phone(self, identifier: str) -> Optional[User]:
        identifier = identifier.strip()
        return (
            self.db.query(User)
            .filter(or_(User.email == identifier.lower(), User.phone == identifier))
            .first()
        )

    def email_exists(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email.lower()).first() is not None

    def phone_exists(self, phone: str) -> bool:
        return self.db.query(User.id).filter(User.phone == phone).first() is not None

    def touch_last_login(self, user_id: uuid.UUID, when: datetime) -> None:
        self.db.query(User).filter(User.id == user_id).update(
            {User.last_login_at: when}, synchronize_session=False
        )

    def list_page(self, page: int, page_size: int) -> Tuple[List[User], int]:
        return paginate(self.db.query(User).order_by(User.created_at.desc(), User.id), page, page_size)


class WalletRepository:
    """Repository for wallets and their balance primitives"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, wallet: Wallet) -> Wallet:
        self.db.add(wallet)
        self.db.flush()
        return wallet

    def get_by_id(self, wallet_id: uuid.UUID) -> Optional[Wallet]:
        # Balances change through bulk updates, so never trust the identity map copy
        return self.db.get(Wallet, wallet_id, populate_existing=True)

    def lock(self, wallet_ids: Sequence[uuid.UUID]) -> List[Wallet]:
        """SELECT ... FOR UPDATE in ascending id order so opposing transfers cannot deadlock"""
        return (
            self.db.query(Wallet)
            .filter(Wallet.id.in_(list(wallet_ids)))
            .order_by(Wallet.id)
            .with_for_update()
            .populate_existing()
            .all()
        )

    def get_by_user_and_currency(self, user_id: uuid.UUID, currency_code: str) -> Optional[Wallet]:
        return (
            self.db.query(Wallet)
            .filter(Wallet.user_id == user_id, Wallet.currency_code == currency_code)
            .first()
        )

    def list_by_user(self, user_id: uuid.UUID) -> List[Wallet]:
        return (
            self.db.query(Wallet)
            .filter(Wallet.user_id == user_id)
            .order_by(Wallet.created_at, Wallet.id)
            .all()
        )

    def list_page(self, page: int, page_size: int) -> Tuple[List[Wallet], int]:
        return paginate(self.db.query(Wallet).order_by(Wallet.created_at.desc(), Wallet.id), page, page_size)

    def debit(self, wallet_id: uuid.UUID, amount_cents: int) -> bool:
        """Conditional decrement; False when the wallet is missing or the balance is short"""
        rows = (
            self.db.query(Wallet)
            .filter(Wallet.id == wallet_id, Wallet.balance_cents >= amount_cents)
            .update({Wallet.balance_cents: Wallet.balance_cents - amount_cents}, synchronize_session=False)
        )
        return rows == 1

    def credit(self, wallet_id: uuid.UUID, amount_cents: int) -> bool:
        rows = (
            self.db.query(Wallet)
            .filter(Wallet.id == wallet_id)
            .update({Wallet.balance_cents: Wallet.balance_cents + amount_cents}, synchronize_session=False)
        )
        return rows == 1


class OtpRepository:
    """Repository for one-time codes"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, otp: OtpCode) -> OtpCode:
        self.db.add(otp)
        self.db.flush()
        return otp

    def supersede_outstanding(self, user_id: uuid.UUID, purpose: OtpPurpose) -> int:
        """Retire every unused code of this purpose so only the newest one can succeed"""
        return (
            self.db.query(OtpCode)
            .filter(
                OtpCode.user_id == user_id,
                OtpCode.purpose == purpose.value,
                OtpCode.is_used.is_(False),
            )
            .update({OtpCode.is_used: True}, synchronize_session=False)
        )

    def find_valid(self, user_id: uuid.UUID, code: str, purpose: OtpPurpose, now: datetime) -> Optional[OtpCode]:
        return (
            self.db.query(OtpCode)
            .filter(
                OtpCode.user_id == user_id,
                OtpCode.code == code,
                OtpCode.purpose == purpose.value,
                OtpCode.is_used.is_(False),
                OtpCode.expires_at > now,
            )
            .first()
        )

    def consume(self, user_id: uuid.UUID, code: str, purpose: OtpPurpose, now: datetime) -> bool:
        """Mark used only if currently unused and unexpired; one statement, no read-then-write window"""
        rows = (
            self.db.query(OtpCode)
            .filter(
                OtpCode.user_id == user_id,
                OtpCode.code == code,
                OtpCode.purpose == purpose.value,
                OtpCode.is_used.is_(False),
                OtpCode.expires_at > now,
            )
            .update({OtpCode.is_used: True}, synchronize_session=False)
        )
        return rows > 0


class TransactionRepository:
    """Repository for the append-only transaction log"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, transaction: Transaction) -> Transaction:
        self.db.add(transaction)
        return transaction

    def get_by_id(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        return self.db.get(Transaction, transaction_id)

    def list_by_wallet(self, wallet_id: uuid.UUID, page: int, page_size: int) -> Tuple[List[Transaction], int]:
        """Newest first; id breaks ties between rows written in the same instant"""
        query = (
            self.db.query(Transaction)
            .filter(Transaction.wallet_id == wallet_id)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
        )
        return paginate(query, page, page_size)

    def list_by_reference(self, reference: str) -> List[Transaction]:
        return self.db.query(Transaction).filter(Transaction.reference == reference).all()


class TransferRepository:
    """Repository for wallet-to-wallet transfers"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, transfer: Transfer) -> Transfer:
        self.db.add(transfer)
        self.db.flush()  # Assign id before the paired transactions reference it
        return transfer

    def get_by_id(self, transfer_id: uuid.UUID) -> Optional[Transfer]:
        return self.db.get(Transfer, transfer_id)

    def list_by_wallets(self, wallet_ids: Sequence[uuid.UUID], limit: int = 100) -> List[Transfer]:
        if not wallet_ids:
            return []
        ids = list(wallet_ids)
        return (
            self.db.query(Transfer)
            .filter(or_(Transfer.sender_wallet_id.in_(ids), Transfer.receiver_wallet_id.in_(ids)))
            .order_by(Transfer.created_at.desc(), Transfer.id.desc())
            .limit(limit)
            .all()
        )


class NotificationRepository:
    """Repository for user notifications"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, notification: Notification) -> Notification:
        self.db.add(notification)
        return notification

    def list_by_user(self, user_id: uuid.UUID, page: int, page_size: int) -> Tuple[List[Notification], int]:
        query = (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return paginate(query, page, page_size)

    def unread_count(self, user_id: uuid.UUID) -> int:
        return (
            self.db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .count()
        )

    def mark_as_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        rows = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        return rows == 1


class BillerRepository:
    """Repository for the biller catalogue"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, biller: Biller) -> Biller:
        self.db.add(biller)
        self.db.flush()
        return biller

    def get_by_id(self, biller_id: uuid.UUID) -> Optional[Biller]:
        return self.db.get(Biller, biller_id)

    def get_by_name(self, name: str) -> Optional[Biller]:
        return self.db.query(Biller).filter(Biller.name == name).first()

    def list_active(self) -> List[Biller]:
        return self.db.query(Biller).filter(Biller.is_active.is_(True)).order_by(Biller.name).all()


class BillPaymentRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, payment: BillPayment) -> BillPayment:
        self.db.add(payment)
        self.db.flush()
        return payment

    def list_by_user(self, user_id: uuid.UUID) -> List[BillPayment]:
        return (
            self.db.query(BillPayment)
            .filter(BillPayment.user_id == user_id)
            .order_by(BillPayment.created_at.desc(), BillPayment.id.desc())
            .all()
        )


class BankAccountRepository:
    """Repository for simulated bank accounts"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, account: BankAccount) -> BankAccount:
        self.db.add(account)
        self.db.flush()
        return account

    def get_by_user(self, user_id: uuid.UUID) -> Optional[BankAccount]:
        return self.db.query(BankAccount).filter(BankAccount.user_id == user_id).first()

    def debit(self, account_id: uuid.UUID, amount_cents: int) -> bool:
        rows = (
            self.db.query(BankAccount)
            .filter(BankAccount.id == account_id, BankAccount.balance_cents >= amount_cents)
            .update({BankAccount.balance_cents: BankAccount.balance_cents - amount_cents}, synchronize_session=False)
        )
        return rows == 1

    def credit(self, account_id: uuid.UUID, amount_cents: int) -> bool:
        rows = (
            self.db.query(BankAccount)
            .filter(BankAccount.id == account_id)
            .update({BankAccount.balance_cents: BankAccount.balance_cents + amount_cents}, synchronize_session=False)
        )
        return rows == 1


class BankTransactionRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, bank_transaction: BankTransaction) -> BankTransaction:
        self.db.add(bank_transaction)
        self.db.flush()
        return bank_transaction

    def get_by_id(self, bank_transaction_id: uuid.UUID) -> Optional[BankTransaction]:
        return self.db.get(BankTransaction, bank_transaction_id)

    def complete(self, bank_transaction_id: uuid.UUID, status: TransactionStatus) -> bool:
        """Move a pending bank transaction to its final status"""
        rows = (
            self.db.query(BankTransaction)
            .filter(
                BankTransaction.id == bank_transaction_id,
                BankTransaction.status == TransactionStatus.PENDING.value,
            )
            .update({BankTransaction.status: status.value}, synchronize_session=False)
        )
        return rows == 1


class MoneyRequestRepository:
    """Repository for peer money requests"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, money_request: MoneyRequest) -> MoneyRequest:
        self.db.add(money_request)
        self.db.flush()
        return money_request

    def get_by_id(self, request_id: uuid.UUID) -> Optional[MoneyRequest]:
        return self.db.get(MoneyRequest, request_id)

    def list_sent(self, user_id: uuid.UUID) -> List[MoneyRequest]:
        return (
            self.db.query(MoneyRequest)
            .filter(MoneyRequest.from_user_id == user_id)
            .order_by(MoneyRequest.created_at.desc(), MoneyRequest.id.desc())
            .all()
        )

    def list_received(self, user_id: uuid.UUID) -> List[MoneyRequest]:
        return (
            self.db.query(MoneyRequest)
            .filter(MoneyRequest.to_user_id == user_id)
            .order_by(MoneyRequest.created_at.desc(), MoneyRequest.id.desc())
            .all()
        )

    def resolve(self, request_id: uuid.UUID, status: MoneyRequestStatus, when: datetime) -> bool:
        """Pending -> status, only once"""
        rows = (
            self.db.query(MoneyRequest)
            .filter(
                MoneyRequest.id == request_id,
                MoneyRequest.status == MoneyRequestStatus.PENDING.value,
            )
            .update({MoneyRequest.status: status.value, MoneyRequest.responded_at: when}, synchronize_session=False)
        )
        return rows == 1
