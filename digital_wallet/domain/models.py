"""Domain models - pure Python dataclasses and enums representing business entities"""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from digital_wallet.domain.exceptions import ErrorKind

T = TypeVar("T")


class UserStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"


class KycLevel(str, Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    FULL = "full"


class OtpPurpose(str, Enum):
    LOGIN = "login"
    TRANSFER = "transfer"


class TransactionType(str, Enum):
    TRANSFER = "transfer"
    BILL = "bill"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    REFUND = "refund"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class NotificationType(str, Enum):
    TRANSACTION = "transaction"
    SECURITY = "security"
    SYSTEM = "system"
    REQUEST = "request"


class BillCategory(str, Enum):
    ELECTRICITY = "electricity"
    WATER = "water"
    GAS = "gas"
    INTERNET = "internet"
    MOBILE = "mobile"
    OTHER = "other"


class MoneyRequestStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class BankDirection(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class TransferState(str, Enum):
    """Lifecycle of a single send-money operation"""

    INITIATED = "initiated"
    OTP_VERIFIED = "otp_verified"
    OWNERSHIP_VERIFIED = "ownership_verified"
    BALANCE_CHECKED = "balance_checked"
    APPLIED = "applied"
    RECORDED = "recorded"
    NOTIFICATIONS_SENT = "notifications_sent"
    COMPLETED = "completed"
    FAILED = "failed"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Capability(str, Enum):
    MANAGE_OWN_WALLETS = "manage_own_wallets"
    VIEW_ANY_WALLET = "view_any_wallet"
    VIEW_ALL_USERS = "view_all_users"


ROLE_CAPABILITIES = {
    Role.USER: frozenset({Capability.MANAGE_OWN_WALLETS}),
    Role.ADMIN: frozenset(
        {Capability.MANAGE_OWN_WALLETS, Capability.VIEW_ANY_WALLET, Capability.VIEW_ALL_USERS}
    ),
}


@dataclass(frozen=True)
class Caller:
    """Verified identity handed to the core by the authentication layer"""

    user_id: uuid.UUID
    role: Role = Role.USER

    def can(self, capability: Capability) -> bool:
        return capability in ROLE_CAPABILITIES.get(self.role, frozenset())


# Requests


@dataclass
class SendMoneyRequest:
    sender_wallet_id: Optional[uuid.UUID]
    receiver_identifier: str
    amount_cents: int
    otp_code: str
    description: Optional[str] = None


@dataclass
class PayBillRequest:
    wallet_id: Optional[uuid.UUID]
    biller_id: Optional[uuid.UUID]
    amount_cents: int
    otp_code: str


@dataclass
class RegisterRequest:
    full_name: str
    email: str
    phone: str
    password: str
    confirm_password: str


# Results


@dataclass
class TransferSummary:
    """Returned to the caller of a completed transfer"""

    transfer_id: uuid.UUID
    receiver_name: str
    amount_cents: int
    currency: str
    status: TransactionStatus
    transferred_at: datetime


@dataclass
class BillPaymentSummary:
    bill_payment_id: uuid.UUID
    biller_name: str
    amount_cents: int
    currency: str
    status: TransactionStatus
    receipt_path: str
    paid_at: datetime


@dataclass
class BankTransactionSummary:
    bank_transaction_id: uuid.UUID
    direction: BankDirection
    amount_cents: int
    status: TransactionStatus
    delay_seconds: float
    created_at: datetime


@dataclass
class Balance:
    wallet_id: uuid.UUID
    balance_cents: int
    currency: str


@dataclass
class LoginChallenge:
    """Password accepted; an OTP must be verified to finish signing in"""

    user_id: uuid.UUID
    full_name: str
    email: str
    requires_otp: bool
    otp_code: Optional[str] = None  # Simulated out-of-band delivery


@dataclass
class OtpDispatch:
    user_id: uuid.UUID
    purpose: OtpPurpose
    expires_in_seconds: int
    otp_code: Optional[str] = None  # Simulated out-of-band delivery


@dataclass
class AuthToken:
    user_id: uuid.UUID
    full_name: str
    email: str
    access_token: str
    expires_at: datetime


@dataclass
class Page(Generic[T]):
    """One page of a newest-first listing"""

    items: List[T]
    total_count: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass
class ServiceResult(Generic[T]):
    """Uniform success/failure envelope returned by every public operation"""

    is_success: bool
    data: Optional[T] = None
    message: Optional[str] = None
    error: Optional[ErrorKind] = None
    errors: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, data: T, message: Optional[str] = None) -> "ServiceResult[T]":
        return cls(is_success=True, data=data, message=message)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, errors: Optional[List[str]] = None) -> "ServiceResult[T]":
        return cls(is_success=False, message=message, error=kind, errors=errors or [message])


# Read models handed out by the services; ORM rows never leave a unit of work


@dataclass
class WalletView:
    id: uuid.UUID
    user_id: uuid.UUID
    currency: str
    balance_cents: int
    daily_limit_cents: int
    monthly_limit_cents: int
    created_at: datetime


@dataclass
class TransactionView:
    id: uuid.UUID
    wallet_id: uuid.UUID
    type: str
    amount_cents: int
    currency: str
    status: str
    description: Optional[str]
    reference: Optional[str]
    created_at: datetime


@dataclass
class TransferView:
    id: uuid.UUID
    sender_wallet_id: uuid.UUID
    receiver_wallet_id: uuid.UUID
    amount_cents: int
    currency: str
    status: str
    description: Optional[str]
    created_at: datetime


@dataclass
class BillerView:
    id: uuid.UUID
    name: str
    category: str


@dataclass
class BillPaymentView:
    id: uuid.UUID
    wallet_id: uuid.UUID
    biller_id: uuid.UUID
    biller_name: str
    amount_cents: int
    currency: str
    status: str
    receipt_path: Optional[str]
    created_at: datetime


@dataclass
class MoneyRequestView:
    id: uuid.UUID
    from_user_id: uuid.UUID
    to_user_id: uuid.UUID
    amount_cents: int
    currency: str
    status: str
    created_at: datetime
    responded_at: Optional[datetime] = None


@dataclass
class UserView:
    id: uuid.UUID
    full_name: str
    email: str
    phone: str
    kyc_level: str
    status: str
    role: str
    created_at: datetime
    last_login_at: Optional[datetime] = None


@dataclass
class NotificationView:
    id: uuid.UUID
    title: str
    body: str
    type: str
    is_read: bool
    created_at: datetime
