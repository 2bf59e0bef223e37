"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, UUID4

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned by every /v1 endpoint"""

    success: bool
    message: Optional[str] = None
    data: Optional[T] = None
    errors: List[str] = Field(default_factory=list)


class OutModel(BaseModel):
    """Response models are read straight off service result objects"""

    model_config = ConfigDict(from_attributes=True)


# Auth


class RegisterBody(BaseModel):
    full_name: str = Field(..., description="At least 3 characters")
    email: str
    phone: str = Field(..., description="Egyptian mobile number, e.g. 01012345678")
    password: str
    confirm_password: str


class LoginBody(BaseModel):
    email_or_phone: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class VerifyOtpBody(BaseModel):
    user_id: UUID4
    code: str


class SendOtpBody(BaseModel):
    purpose: str = Field("transfer", description="transfer; login codes come from /auth/login")


class AuthTokenOut(OutModel):
    user_id: UUID4
    full_name: str
    email: str
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class LoginChallengeOut(OutModel):
    user_id: UUID4
    full_name: str
    email: str
    requires_otp: bool
    otp_code: Optional[str] = None


class OtpDispatchOut(OutModel):
    user_id: UUID4
    purpose: str
    expires_in_seconds: int
    otp_code: Optional[str] = None


# Wallets and history


class CreateWalletBody(BaseModel):
    currency: Optional[str] = Field(None, description="ISO 4217 code; defaults to EGP")


class WalletOut(OutModel):
    id: UUID4
    user_id: UUID4
    currency: str
    balance_cents: int
    daily_limit_cents: int
    monthly_limit_cents: int
    created_at: datetime


class BalanceOut(OutModel):
    wallet_id: UUID4
    balance_cents: int
    currency: str


class TransactionOut(OutModel):
    id: UUID4
    wallet_id: UUID4
    type: str
    amount_cents: int
    currency: str
    status: str
    description: Optional[str] = None
    reference: Optional[str] = None
    created_at: datetime


class PageOut(OutModel, Generic[T]):
    items: List[T]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool


# Transfers


class SendMoneyBody(BaseModel):
    sender_wallet_id: UUID4
    receiver_identifier: str = Field(..., description="Receiver email or phone")
    amount_cents: int = Field(..., description="Amount in minor units")
    otp_code: str
    description: Optional[str] = None


class TransferSummaryOut(OutModel):
    transfer_id: UUID4
    receiver_name: str
    amount_cents: int
    currency: str
    status: str
    transferred_at: datetime


class TransferOut(OutModel):
    id: UUID4
    sender_wallet_id: UUID4
    receiver_wallet_id: UUID4
    amount_cents: int
    currency: str
    status: str
    description: Optional[str] = None
    created_at: datetime


# Bills


class PayBillBody(BaseModel):
    wallet_id: UUID4
    biller_id: UUID4
    amount_cents: int
    otp_code: str


class BillerOut(OutModel):
    id: UUID4
    name: str
    category: str


class BillPaymentSummaryOut(OutModel):
    bill_payment_id: UUID4
    biller_name: str
    amount_cents: int
    currency: str
    status: str
    receipt_path: str
    paid_at: datetime


class BillPaymentOut(OutModel):
    id: UUID4
    wallet_id: UUID4
    biller_id: UUID4
    biller_name: str
    amount_cents: int
    currency: str
    status: str
    receipt_path: Optional[str] = None
    created_at: datetime


# Bank


class BankAmountBody(BaseModel):
    amount_cents: int


class BankTransactionOut(OutModel):
    bank_transaction_id: UUID4
    direction: str
    amount_cents: int
    status: str
    delay_seconds: float
    created_at: datetime


# Money requests


class CreateMoneyRequestBody(BaseModel):
    to_identifier: str = Field(..., description="Email or phone of the user asked to pay")
    amount_cents: int
    currency: Optional[str] = None


class RespondMoneyRequestBody(BaseModel):
    accept: bool
    otp_code: Optional[str] = None


class MoneyRequestOut(OutModel):
    id: UUID4
    from_user_id: UUID4
    to_user_id: UUID4
    amount_cents: int
    currency: str
    status: str
    created_at: datetime
    responded_at: Optional[datetime] = None


# Notifications and users


class NotificationOut(OutModel):
    id: UUID4
    title: str
    body: str
    type: str
    is_read: bool
    created_at: datetime


class UnreadCountOut(BaseModel):
    unread_count: int


class UserOut(OutModel):
    id: UUID4
    full_name: str
    email: str
    phone: str
    kyc_level: str
    status: str
    role: str
    created_at: datetime
    last_login_at: Optional[datetime] = None
