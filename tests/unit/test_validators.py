"""Unit tests for input validation rules"""

import uuid

import pytest

from digital_wallet.domain.models import PayBillRequest, RegisterRequest, SendMoneyRequest
from digital_wallet.domain.validators import (
    is_email,
    validate_amount,
    validate_currency,
    validate_otp_code,
    validate_paging,
    validate_pay_bill,
    validate_registration,
    validate_send_money,
)

MAX_TRANSFER = 5_000_000


def _send(**overrides) -> SendMoneyRequest:
    fields = dict(
        sender_wallet_id=uuid.uuid4(),
        receiver_identifier="01012345678",
        amount_cents=10_000,
        otp_code="123456",
        description=None,
    )
    fields.update(overrides)
    return SendMoneyRequest(**fields)


def _register(**overrides) -> RegisterRequest:
    fields = dict(
        full_name="Mona Adel",
        email="mona@example.com",
        phone="01112345678",
        password="Passw0rd",
        confirm_password="Passw0rd",
    )
    fields.update(overrides)
    return RegisterRequest(**fields)


@pytest.mark.parametrize("code", ["123456", "000000"])
def test_otp_code_valid(code):
    assert validate_otp_code(code) == []


@pytest.mark.parametrize("code", ["", None, "12345", "1234567", "12a456", " 12345"])
def test_otp_code_rejected(code):
    assert validate_otp_code(code)


def test_amount_must_be_positive():
    """Test zero and negative amounts are rejected"""
    assert validate_amount(0) == ["Amount must be greater than zero"]
    assert validate_amount(-1) == ["Amount must be greater than zero"]
    assert validate_amount(1) == []


def test_amount_upper_bound():
    assert validate_amount(MAX_TRANSFER, MAX_TRANSFER) == []
    assert validate_amount(MAX_TRANSFER + 1, MAX_TRANSFER) == ["Amount cannot exceed 50,000.00"]


def test_currency_format():
    assert validate_currency("EGP") == []
    assert validate_currency("egp")
    assert validate_currency("EURO")
    assert validate_currency(None)


def test_paging_bounds():
    """Test page >= 1 and 1 <= page_size <= 100"""
    assert validate_paging(1, 20) == []
    assert validate_paging(1, 100) == []
    assert validate_paging(0, 20) == ["Page must be 1 or greater"]
    assert validate_paging(1, 0) == ["Page size must be between 1 and 100"]
    assert validate_paging(1, 101) == ["Page size must be between 1 and 100"]
    assert len(validate_paging(0, 0)) == 2


def test_send_money_valid():
    assert validate_send_money(_send(), MAX_TRANSFER) == []


def test_send_money_collects_every_problem():
    """Test all field errors are reported together, not just the first"""
    errors = validate_send_money(
        _send(sender_wallet_id=None, receiver_identifier=" ", amount_cents=0, otp_code="12", description="x" * 251),
        MAX_TRANSFER,
    )

    assert errors == [
        "Sender wallet is required",
        "Receiver is required",
        "Amount must be greater than zero",
        "OTP must be 6 digits",
        "Description cannot exceed 250 characters",
    ]


def test_send_money_above_maximum():
    errors = validate_send_money(_send(amount_cents=MAX_TRANSFER + 1), MAX_TRANSFER)
    assert errors == ["Amount cannot exceed 50,000.00"]


def test_pay_bill_requires_wallet_and_biller():
    errors = validate_pay_bill(PayBillRequest(wallet_id=None, biller_id=None, amount_cents=100, otp_code="123456"))
    assert errors == ["Wallet is required", "Biller is required"]


def test_registration_valid():
    assert validate_registration(_register()) == []


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"full_name": "Al"}, "Full name must be at least 3 characters"),
        ({"email": "not-an-email"}, "Invalid email format"),
        ({"phone": "01312345678"}, "Invalid Egyptian phone number"),
        ({"phone": "0101234567"}, "Invalid Egyptian phone number"),
        ({"password": "Ab1", "confirm_password": "Ab1"}, "Password must be at least 8 characters"),
        ({"password": "password1", "confirm_password": "password1"}, "Password must contain uppercase letter"),
        ({"password": "PASSWORD1", "confirm_password": "PASSWORD1"}, "Password must contain lowercase letter"),
        ({"password": "Password", "confirm_password": "Password"}, "Password must contain number"),
        ({"confirm_password": "Different1"}, "Passwords do not match"),
    ],
)
def test_registration_rules(overrides, expected):
    assert expected in validate_registration(_register(**overrides))


def test_is_email():
    """Test identifiers containing '@' are treated as emails"""
    assert is_email("someone@example.com")
    assert not is_email("01012345678")
