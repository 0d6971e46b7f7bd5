# chama_loans/business_logic/loan_lifecycle.py

from typing import Any, Dict, FrozenSet
from datetime import date

from chama_loans.business_logic.entities.loan_entity import LoanEntity
from chama_loans.constants import LoanStatus, DisplayStatus
from chama_loans.exceptions import ValidationError, InvalidTransitionError, ErrorKind

# pending --approve--> approved --disburse--> active --repay--> completed
# pending --reject--> rejected;  active --miss due date--> defaulted
ALLOWED_TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    LoanStatus.PENDING: frozenset({LoanStatus.APPROVED, LoanStatus.REJECTED}),
    LoanStatus.APPROVED: frozenset({LoanStatus.ACTIVE}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.COMPLETED, LoanStatus.DEFAULTED}),
    LoanStatus.REJECTED: frozenset(),
    LoanStatus.COMPLETED: frozenset(),
    LoanStatus.DEFAULTED: frozenset(),
}


def parse_status(value: Any) -> LoanStatus:
    if isinstance(value, LoanStatus):
        return value
    try:
        return LoanStatus(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in LoanStatus)
        raise ValidationError(f"Invalid loan status '{value}'. Allowed: {allowed}", ErrorKind.INVALID_STATUS)


def can_transition(current: LoanStatus, new: LoanStatus) -> bool:
    """Same-status updates are accepted as no-ops."""
    return current == new or new in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: LoanStatus, new: LoanStatus) -> None:
    if not can_transition(current, new):
        raise InvalidTransitionError(f"Cannot change loan status from '{current.value}' to '{new.value}'.")


def display_status(loan: LoanEntity, today: date) -> DisplayStatus:
    if loan.status == LoanStatus.ACTIVE and loan.due_date < today:
        return DisplayStatus.OVERDUE
    return DisplayStatus(loan.status.value)


def days_remaining(loan: LoanEntity, today: date) -> int:
    """Whole days until the due date; negative once it has passed."""
    return (loan.due_date - today).days
