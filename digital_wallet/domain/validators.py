"""Input validation rules applied before any store access.

Each validator returns the list of human-readable problems; an empty list means
the input is acceptable. Services raise ValidationError with that list.
"""

import re
from typing import List, Optional

from digital_wallet.domain.models import PayBillRequest, RegisterRequest, SendMoneyRequest

OTP_PATTERN = re.compile(r"^\d{6}$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_PATTERN = re.compile(r"^01[0125]\d{8}$")  # Egyptian mobile numbers
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")

MAX_DESCRIPTION_LENGTH = 250
MAX_PAGE_SIZE = 100


def validate_otp_code(code: Optional[str]) -> List[str]:
    if not code:
        return ["OTP is required"]
    if not OTP_PATTERN.match(code):
        return ["OTP must be 6 digits"]
    return []


def validate_amount(amount_cents: int, max_cents: Optional[int] = None) -> List[str]:
    if amount_cents is None or amount_cents <= 0:
        return ["Amount must be greater than zero"]
    if max_cents is not None and amount_cents > max_cents:
        return [f"Amount cannot exceed {max_cents / 100:,.2f}"]
    return []


def validate_currency(currency: Optional[str]) -> List[str]:
    if not currency or not CURRENCY_PATTERN.match(currency):
        return ["Currency must be a 3-letter ISO code"]
    return []


def validate_paging(page: int, page_size: int) -> List[str]:
    errors = []
    if page < 1:
        errors.append("Page must be 1 or greater")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        errors.append(f"Page size must be between 1 and {MAX_PAGE_SIZE}")
    return errors


def validate_send_money(request: SendMoneyRequest, max_transfer_cents: int) -> List[str]:
    errors = []
    if request.sender_wallet_id is None:
        errors.append("Sender wallet is required")
    if not request.receiver_identifier or not request.receiver_identifier.strip():
        errors.append("Receiver is required")
    errors.extend(validate_amount(request.amount_cents, max_transfer_cents))
    errors.extend(validate_otp_code(request.otp_code))
    if request.description and len(request.description) > MAX_DESCRIPTION_LENGTH:
        errors.append(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")
    return errors


def validate_pay_bill(request: PayBillRequest) -> List[str]:
    errors = []
    if request.wallet_id is None:
        errors.append("Wallet is required")
    if request.biller_id is None:
        errors.append("Biller is required")
    errors.extend(validate_amount(request.amount_cents))
    errors.extend(validate_otp_code(request.otp_code))
    return errors


def validate_registration(request: RegisterRequest) -> List[str]:
    errors = []
    if not request.full_name or len(request.full_name.strip()) < 3:
        errors.append("Full name must be at least 3 characters")
    if not request.email or not EMAIL_PATTERN.match(request.email):
        errors.append("Invalid email format")
    if not request.phone or not PHONE_PATTERN.match(request.phone):
        errors.append("Invalid Egyptian phone number")

    password = request.password or ""
    if len(password) < 8:
        errors.append("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain number")
    if request.confirm_password != password:
        errors.append("Passwords do not match")
    return errors


def is_email(identifier: str) -> bool:
    """Receiver and login identifiers containing '@' are emails, anything else a phone"""
    return "@" in identifier
