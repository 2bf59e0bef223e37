"""Domain-specific exceptions"""

from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    """Closed set of failure categories surfaced to callers"""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    INVALID_OTP = "invalid_otp"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    LIMIT_EXCEEDED = "limit_exceeded"
    DUPLICATE = "duplicate"
    CONFLICT = "conflict"
    UNEXPECTED = "unexpected"


class DomainException(Exception):
    """Base exception for domain layer"""

    kind = ErrorKind.UNEXPECTED
    default_message = "Operation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = errors or [self.message]
        super().__init__(self.message)


class ValidationError(DomainException):
    """Malformed or missing input, rejected before touching the ledger"""

    kind = ErrorKind.VALIDATION
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[str]] = None):
        if message is None and errors:
            message = ", ".join(errors)
        super().__init__(message, errors)


class InvalidAmountError(ValidationError):
    """Amount is zero or negative"""

    default_message = "Amount must be greater than zero"


class NotFoundError(DomainException):
    """Wallet, user, biller or record does not exist"""

    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class ReceiverNotFoundError(NotFoundError):
    """Transfer receiver cannot be resolved to a wallet"""

    default_message = "Receiver not found"


class ForbiddenError(DomainException):
    """Caller does not own the resource or lacks the capability"""

    kind = ErrorKind.FORBIDDEN
    default_message = "You are not allowed to perform this operation"


class UnauthorizedError(DomainException):
    """Credentials rejected"""

    kind = ErrorKind.UNAUTHORIZED
    default_message = "Invalid credentials"


class InvalidOtpError(DomainException):
    """Missing, wrong, expired or already used one-time code"""

    kind = ErrorKind.INVALID_OTP
    default_message = "Invalid or expired OTP"


class InsufficientBalanceError(DomainException):
    """Source balance is lower than the requested amount"""

    kind = ErrorKind.INSUFFICIENT_BALANCE
    default_message = "Insufficient balance"


class LimitExceededError(DomainException):
    """Amount is above the wallet's configured limit"""

    kind = ErrorKind.LIMIT_EXCEEDED
    default_message = "Amount exceeds daily limit"


class DuplicateError(DomainException):
    """Unique resource already exists"""

    kind = ErrorKind.DUPLICATE
    default_message = "Resource already exists"


class ConflictError(DomainException):
    """Concurrent mutation could not be resolved within the retry budget"""

    kind = ErrorKind.CONFLICT
    default_message = "The wallet is busy, please retry"
