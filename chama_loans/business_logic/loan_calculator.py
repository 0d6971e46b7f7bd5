# chama_loans/business_logic/loan_calculator.py

"""
Pure loan arithmetic: no database access, no clock.

- Money coercion and validation (Decimal only, never float arithmetic)
- Calendar-month date addition
- Reducing-balance amortization with straight-line principal
"""

from typing import Any, Optional, Type
from datetime import date
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from dateutil.relativedelta import relativedelta
import logging

from chama_loans.business_logic.entities.amortization_entity import AmortizationEntry, AmortizationSchedule
from chama_loans.config import (
    CURRENCY, MAX_LOAN_AMOUNT, DEFAULT_DURATION_MONTHS, MAX_DURATION_MONTHS, MONTHLY_INTEREST_RATE
)
from chama_loans.exceptions import ValidationError, InvalidAmountError, ErrorKind

logger = logging.getLogger(__name__)

CURRENCY_UNIT = Decimal("1")
CENT = Decimal("0.01")


def round_currency(value: Decimal) -> Decimal:
    """Rounds half-up to whole currency units."""
    rounded = value.quantize(CURRENCY_UNIT, rounding=ROUND_HALF_UP)
    return rounded if rounded != 0 else Decimal("0") # no "-0" in output


def to_amount(value: Any, max_amount: Decimal = MAX_LOAN_AMOUNT,
              error_cls: Type[ValidationError] = InvalidAmountError) -> Decimal:
    """
    Coerces a requested amount to Decimal and checks 0 < amount <= max_amount.
    Floats go through str() so 0.1 stays 0.1.
    """
    if value is None or isinstance(value, bool):
        raise error_cls(f"Amount is required and must be between 1 and {CURRENCY} {max_amount}.")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise error_cls(f"Amount '{value}' is not a number.")
    if not amount.is_finite() or amount <= 0:
        raise error_cls(f"Amount must be greater than zero, got {value}.")
    if amount > max_amount:
        raise error_cls(f"Maximum loan amount is {CURRENCY} {max_amount}, got {CURRENCY} {amount}.")
    return amount


def to_duration(value: Any, default: int = DEFAULT_DURATION_MONTHS,
                max_months: int = MAX_DURATION_MONTHS) -> int:
    """None means the default term; otherwise a whole number of months between 1 and max_months."""
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValidationError(f"Invalid loan duration: {value!r}", ErrorKind.INVALID_DURATION)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 1:
        raise ValidationError(f"Loan duration must be a whole number of months >= 1, got {value!r}",
                              ErrorKind.INVALID_DURATION)
    if value > max_months:
        raise ValidationError(f"Loan duration cannot exceed {max_months} months, got {value}",
                              ErrorKind.INVALID_DURATION)
    return value


def add_months(start: date, months: int) -> date:
    """Calendar-month addition; the day is clamped to the end of a shorter month (Jan 31 + 1 -> Feb 28/29)."""
    return start + relativedelta(months=months)


def calculate_amortization(amount: Any, duration_months: Any = None,
                           monthly_interest_rate: Decimal = MONTHLY_INTEREST_RATE,
                           max_amount: Decimal = MAX_LOAN_AMOUNT,
                           max_duration_months: int = MAX_DURATION_MONTHS) -> AmortizationSchedule:
    """
    Reducing-balance interest, straight-line principal.

    Interest for a month is charged on the balance outstanding at the start of that
    month; principal is repaid in equal parts. Every monthly figure is rounded on its
    own, while total_interest is the exact sum rounded once, so the rounded monthly
    totals may differ from total_repayment by up to one unit per month.
    """
    principal_amount = to_amount(amount, max_amount=max_amount, error_cls=InvalidAmountError)
    months = to_duration(duration_months, max_months=max_duration_months)

    principal_per_month = principal_amount / Decimal(months)
    remaining = principal_amount
    total_interest = Decimal("0")
    entries = []

    for month in range(1, months + 1):
        interest = remaining * monthly_interest_rate
        total_payment = principal_per_month + interest
        entries.append(AmortizationEntry(
            month=month,
            principal=round_currency(principal_per_month),
            interest=round_currency(interest),
            total=round_currency(total_payment),
            remaining=round_currency(remaining - principal_per_month),
        ))
        total_interest += interest
        remaining -= principal_per_month

    exact_total = principal_amount + total_interest
    schedule = AmortizationSchedule(
        amount=principal_amount,
        duration_months=months,
        monthly_interest_rate=monthly_interest_rate,
        total_interest=round_currency(total_interest),
        total_repayment=round_currency(exact_total),
        average_monthly_payment=round_currency(exact_total / Decimal(months)),
        exact_total_repayment=exact_total.quantize(CENT, rounding=ROUND_HALF_UP),
        monthly_payments=entries,
    )
    logger.debug(f"Amortization for {principal_amount} over {months} months: "
                 f"interest={schedule.total_interest}, repayment={schedule.total_repayment}")
    return schedule
