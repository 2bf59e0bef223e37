"""SQLAlchemy ORM models for the wallet ledger.

Relations are plain foreign-key ids; lookups go through the repositories.
"""

import uuid
from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base

from digital_wallet.domain.models import (
    KycLevel,
    MoneyRequestStatus,
    Role,
    TransactionStatus,
    UserStatus,
)
from digital_wallet.utils.date_utils import utc_now

Base = declarative_base()


class User(Base):
    """Registered wallet holder"""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(Text, nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(20), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    salt = Column(Text, nullable=False)
    kyc_level = Column(String(20), nullable=False, default=KycLevel.BASIC.value)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    role = Column(String(20), nullable=False, default=Role.USER.value)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class Wallet(Base):
    """Per-user, per-currency balance"""

    __tablename__ = "wallets"
    __table_args__ = (
        UniqueConstraint("user_id", "currency_code", name="uq_wallet_user_currency"),
        CheckConstraint("balance_cents >= 0", name="ck_wallet_balance_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    currency_code = Column(String(3), nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    daily_limit_cents = Column(BigInteger, nullable=False)
    monthly_limit_cents = Column(BigInteger, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class OtpCode(Base):
    """Short-lived single-use code"""

    __tablename__ = "otp_codes"
    __table_args__ = (Index("ix_otp_lookup", "user_id", "purpose", "code"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    code = Column(String(6), nullable=False)
    purpose = Column(String(20), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    is_used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class Transaction(Base):
    """Immutable signed ledger entry on one wallet"""

    __tablename__ = "transactions"
    __table_args__ = (Index("ix_transactions_wallet_created", "wallet_id", "created_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wallet_id = Column(UUID(as_uuid=True), ForeignKey("wallets.id"), nullable=False)
    type = Column(String(20), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)  # negative = debit
    currency_code = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.SUCCESS.value)
    description = Column(Text, nullable=True)
    reference = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class Transfer(Base):
    """Wallet-to-wallet movement, paired with one debit and one credit Transaction"""

    __tablename__ = "transfers"
    __table_args__ = (CheckConstraint("amount_cents > 0", name="ck_transfer_amount_positive"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    sender_wallet_id = Column(UUID(as_uuid=True), ForeignKey("wallets.id"), nullable=False, index=True)
    receiver_wallet_id = Column(UUID(as_uuid=True), ForeignKey("wallets.id"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    currency_code = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.SUCCESS.value)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class Biller(Base):
    __tablename__ = "billers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False, unique=True)
    category = Column(String(20), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)


class BillPayment(Base):
    __tablename__ = "bill_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    wallet_id = Column(UUID(as_uuid=True), ForeignKey("wallets.id"), nullable=False)
    biller_id = Column(UUID(as_uuid=True), ForeignKey("billers.id"), nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    currency_code = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.SUCCESS.value)
    receipt_path = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class BankAccount(Base):
    """Account held at the simulated bank"""

    __tablename__ = "bank_accounts"
    __table_args__ = (CheckConstraint("balance_cents >= 0", name="ck_bank_balance_non_negative"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, unique=True)
    account_number = Column(String(16), nullable=False, unique=True)
    balance_cents = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class BankTransaction(Base):
    """Simulated bank leg of a deposit or withdrawal"""

    __tablename__ = "bank_transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    direction = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default=TransactionStatus.PENDING.value)
    delay_seconds = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime, nullable=False, default=utc_now)


class MoneyRequest(Base):
    """Request from one user (from_user) to be paid by another (to_user)"""

    __tablename__ = "money_requests"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    from_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    to_user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    currency_code = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default=MoneyRequestStatus.PENDING.value)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    responded_at = Column(DateTime, nullable=True)
