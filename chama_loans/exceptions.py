# chama_loans/exceptions.py

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    AMOUNT_EXCEEDS_LIMIT = "AmountExceedsLimit"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_DURATION = "InvalidDuration"
    INVALID_STATUS = "InvalidStatus"
    INVALID_TRANSITION = "InvalidTransition"
    INVALID_GUARANTOR = "InvalidGuarantor"
    PENDING_LOAN_EXISTS = "PendingLoanExists"
    MISSING_FIELD = "MissingField"
    INVALID_INPUT = "InvalidInput"
    CONSTRAINT_VIOLATION = "ConstraintViolation"
    NOT_ELIGIBLE = "NotEligible"
    FORBIDDEN = "Forbidden"
    NOT_FOUND = "NotFound"
    STORE_UNAVAILABLE = "StoreUnavailable"


class ChamaLoansError(Exception):
    """Base class for every error the loan engine surfaces to its callers."""
    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ValidationError(ChamaLoansError):
    """Bad or missing input. The kind names which check failed."""


class AmountExceedsLimitError(ValidationError):
    kind = ErrorKind.AMOUNT_EXCEEDS_LIMIT


class InvalidAmountError(ValidationError):
    kind = ErrorKind.INVALID_AMOUNT


class InvalidTransitionError(ValidationError):
    kind = ErrorKind.INVALID_TRANSITION


class AuthorizationError(ChamaLoansError):
    kind = ErrorKind.FORBIDDEN


class NotEligibleError(ChamaLoansError):
    kind = ErrorKind.NOT_ELIGIBLE


class NotFoundError(ChamaLoansError):
    kind = ErrorKind.NOT_FOUND


class StoreUnavailableError(ChamaLoansError):
    kind = ErrorKind.STORE_UNAVAILABLE
