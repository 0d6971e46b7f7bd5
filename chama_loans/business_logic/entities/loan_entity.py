# chama_loans/business_logic/entities/loan_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from .base_entity import BaseEntity
from chama_loans.constants import LoanStatus, DisplayStatus

@dataclass
class LoanEntity(BaseEntity):
    member_id: int
    amount: Decimal # Principal requested
    interest_rate: Decimal # Percent per period, e.g. Decimal("10.00")
    duration_months: int
    status: LoanStatus
    application_date: date
    due_date: date # Fixed at application time
    remaining_amount: Decimal
    amount_paid: Decimal = field(default=Decimal("0"))
    penalty_applied: Decimal = field(default=Decimal("0"))
    approval_date: Optional[datetime] = field(default=None)
    disbursement_date: Optional[datetime] = field(default=None)
    guarantor_id: Optional[int] = field(default=None)
    notes: Optional[str] = field(default=None)
    applied_by: Optional[int] = field(default=None) # user id of whoever submitted the application


@dataclass
class LoanView:
    """A loan as listed to callers: joined member details plus read-time derived fields."""
    loan: LoanEntity
    member_name: Optional[str]
    member_phone: Optional[str]
    guarantor_name: Optional[str]
    display_status: DisplayStatus
    days_remaining: int
