# chama_loans/business_logic/entities/amortization_entity.py
from dataclasses import dataclass, field
from typing import List
from decimal import Decimal

@dataclass(frozen=True)
class AmortizationEntry:
    """One month of a repayment schedule. Every amount is rounded to whole currency units."""
    month: int
    principal: Decimal
    interest: Decimal
    total: Decimal
    remaining: Decimal

@dataclass(frozen=True)
class AmortizationSchedule:
    amount: Decimal
    duration_months: int
    monthly_interest_rate: Decimal # fraction, e.g. Decimal("0.10")
    total_interest: Decimal
    total_repayment: Decimal
    average_monthly_payment: Decimal
    # Unrounded amount + interest, used where a stored balance must not drift from the schedule
    exact_total_repayment: Decimal
    monthly_payments: List[AmortizationEntry] = field(default_factory=list)
