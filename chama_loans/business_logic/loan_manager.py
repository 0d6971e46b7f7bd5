# chama_loans/business_logic/loan_manager.py

from typing import Optional, List, Callable, Any
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
import logging

from chama_loans.business_logic.entities.loan_entity import LoanEntity, LoanView
from chama_loans.business_logic.entities.amortization_entity import AmortizationSchedule
from chama_loans.business_logic.entities.user_entity import Actor
from chama_loans.business_logic.member_ledger import MemberLedger
from chama_loans.business_logic import loan_calculator, loan_lifecycle
from chama_loans.data_access.loans_repository import LoansRepository
from chama_loans import config
from chama_loans.constants import LoanStatus
from chama_loans.exceptions import (
    ValidationError, AmountExceedsLimitError, AuthorizationError,
    NotEligibleError, NotFoundError, ErrorKind
)

logger = logging.getLogger(__name__)

REMAINING_BASIS_AMORTIZATION = "amortization"
REMAINING_BASIS_FLAT = "flat"


@dataclass(frozen=True)
class LoanPolicy:
    max_loan_amount: Decimal = config.MAX_LOAN_AMOUNT
    default_duration_months: int = config.DEFAULT_DURATION_MONTHS
    max_duration_months: int = config.MAX_DURATION_MONTHS
    monthly_interest_rate: Decimal = config.MONTHLY_INTEREST_RATE
    interest_rate_percent: Decimal = config.DEFAULT_INTEREST_RATE_PERCENT
    flat_interest_multiplier: Decimal = config.FLAT_INTEREST_MULTIPLIER
    eligibility_min_paid_payments: int = config.ELIGIBILITY_MIN_PAID_PAYMENTS
    eligibility_window_months: int = config.ELIGIBILITY_WINDOW_MONTHS
    remaining_amount_basis: str = config.REMAINING_AMOUNT_BASIS
    strict_member_validation: bool = config.STRICT_MEMBER_VALIDATION
    one_pending_loan_per_member: bool = config.ONE_PENDING_LOAN_PER_MEMBER

    def __post_init__(self):
        if self.remaining_amount_basis not in (REMAINING_BASIS_AMORTIZATION, REMAINING_BASIS_FLAT):
            raise ValueError(f"Unknown remaining_amount_basis: {self.remaining_amount_basis!r}")


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    paid_count: int
    since: date
    reason: Optional[str] = field(default=None)


class LoanManager:
    def __init__(self,
                 loans_repository: LoansRepository,
                 member_ledger: MemberLedger,
                 policy: Optional[LoanPolicy] = None,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        :param clock: returns the current datetime; every "today" the manager uses comes from it.
        """
        if loans_repository is None: raise ValueError("loans_repository cannot be None")
        if member_ledger is None: raise ValueError("member_ledger cannot be None")

        self.loans_repository = loans_repository
        self.member_ledger = member_ledger
        self.policy = policy if policy is not None else LoanPolicy()
        self.clock = clock if clock is not None else datetime.now

    def _now(self) -> datetime:
        return self.clock().replace(microsecond=0)

    def _today(self) -> date:
        return self.clock().date()

    # --- Eligibility ---

    def check_eligibility(self, member_id: int) -> EligibilityResult:
        """
        A member qualifies with at least N paid payments dated inside the trailing window
        (3 and 3 months by default). It is a count: three payments in one week qualify.
        """
        since = loan_calculator.add_months(self._today(), -self.policy.eligibility_window_months)
        paid_count = self.member_ledger.count_paid_payments_since(member_id, since)
        required = self.policy.eligibility_min_paid_payments
        if paid_count >= required:
            return EligibilityResult(eligible=True, paid_count=paid_count, since=since)
        reason = (f"Must have {required} qualifying payments in the last "
                  f"{self.policy.eligibility_window_months} months to apply for a loan "
                  f"(found {paid_count}).")
        return EligibilityResult(eligible=False, paid_count=paid_count, since=since, reason=reason)

    # --- Calculation ---

    def calculate_amortization(self, amount: Any, duration_months: Any = None) -> AmortizationSchedule:
        if duration_months is None:
            duration_months = self.policy.default_duration_months
        return loan_calculator.calculate_amortization(
            amount, duration_months,
            monthly_interest_rate=self.policy.monthly_interest_rate,
            max_amount=self.policy.max_loan_amount,
            max_duration_months=self.policy.max_duration_months,
        )

    def _initial_remaining_amount(self, amount: Decimal, months: int) -> Decimal:
        if self.policy.remaining_amount_basis == REMAINING_BASIS_FLAT:
            return (amount * self.policy.flat_interest_multiplier).quantize(loan_calculator.CENT, rounding=ROUND_HALF_UP)
        return self.calculate_amortization(amount, months).exact_total_repayment

    # --- Application ---

    def _validate_parties(self, member_id: int, guarantor_id: Optional[int]) -> None:
        if not self.member_ledger.member_exists(member_id):
            raise NotFoundError(f"Member with ID {member_id} not found.")
        if guarantor_id is None:
            return
        if guarantor_id == member_id:
            raise ValidationError("A member cannot guarantee their own loan.", ErrorKind.INVALID_GUARANTOR)
        if not self.member_ledger.member_exists(guarantor_id):
            raise ValidationError(f"Guarantor with ID {guarantor_id} not found.", ErrorKind.INVALID_GUARANTOR)

    def apply_for_loan(self,
                       member_id: int,
                       amount: Any,
                       duration_months: Any = None,
                       guarantor_id: Optional[int] = None,
                       notes: Optional[str] = None,
                       applied_by: Optional[int] = None) -> LoanEntity:
        """
        Validates and records a pending loan application.
        Checks run in order and the first failure is raised: amount limit, duration,
        member/guarantor (strict mode only), eligibility, one pending loan (when enabled).
        """
        if member_id is None:
            raise ValidationError("member_id is required.", ErrorKind.MISSING_FIELD)
        principal = loan_calculator.to_amount(amount, max_amount=self.policy.max_loan_amount,
                                              error_cls=AmountExceedsLimitError)
        months = loan_calculator.to_duration(duration_months, default=self.policy.default_duration_months,
                                             max_months=self.policy.max_duration_months)

        if self.policy.strict_member_validation:
            self._validate_parties(member_id, guarantor_id)

        eligibility = self.check_eligibility(member_id)
        if not eligibility.eligible:
            logger.warning(f"Loan application refused for member {member_id}: {eligibility.reason}")
            raise NotEligibleError(eligibility.reason)

        if self.policy.one_pending_loan_per_member and self.loans_repository.has_pending_loan(member_id):
            logger.warning(f"Loan application refused for member {member_id}: a pending loan exists.")
            raise ValidationError("Member already has a pending loan application.", ErrorKind.PENDING_LOAN_EXISTS)

        today = self._today()
        loan = LoanEntity(
            member_id=member_id,
            amount=principal,
            interest_rate=self.policy.interest_rate_percent,
            duration_months=months,
            status=LoanStatus.PENDING,
            application_date=today,
            due_date=loan_calculator.add_months(today, months),
            remaining_amount=self._initial_remaining_amount(principal, months),
            guarantor_id=guarantor_id,
            notes=notes,
            applied_by=applied_by,
        )
        created = self.loans_repository.add(loan)
        logger.info(f"Loan ID {created.id} created for member {member_id}: amount={principal}, "
                    f"months={months}, due={created.due_date}, remaining={created.remaining_amount}.")
        return created

    # --- Lifecycle ---

    def get_loan(self, loan_id: int) -> LoanEntity:
        loan = self.loans_repository.get_by_id(loan_id)
        if loan is None:
            raise NotFoundError(f"Loan with ID {loan_id} not found.")
        return loan

    def update_loan_status(self, loan_id: int, new_status: Any, actor: Optional[Actor]) -> LoanEntity:
        if actor is None or not actor.is_admin:
            logger.warning(f"Status change on loan {loan_id} refused for non-admin actor {actor}.")
            raise AuthorizationError("Admin access required")

        status = loan_lifecycle.parse_status(new_status)
        loan = self.get_loan(loan_id)
        previous = loan.status
        loan_lifecycle.ensure_transition(previous, status)

        if previous == status:
            logger.info(f"Loan ID {loan_id} already '{status.value}', nothing to change.")
            return loan

        now = self._now()
        if status == LoanStatus.APPROVED:
            loan.approval_date = now
        elif status == LoanStatus.ACTIVE:
            loan.disbursement_date = now
        loan.status = status

        self.loans_repository.update(loan)
        logger.info(f"Loan ID {loan_id} status changed {previous.value} -> {status.value} by user {actor.user_id}.")
        return loan

    # --- Read path ---

    def list_loans(self, member_id: Optional[int] = None) -> List[LoanView]:
        today = self._today()
        views = []
        for loan, member_name, member_phone, guarantor_name in self.loans_repository.list_with_members(member_id):
            views.append(LoanView(
                loan=loan,
                member_name=member_name,
                member_phone=member_phone,
                guarantor_name=guarantor_name,
                display_status=loan_lifecycle.display_status(loan, today),
                days_remaining=loan_lifecycle.days_remaining(loan, today),
            ))
        return views

    def get_loans_by_member(self, member_id: int) -> List[LoanEntity]:
        return self.loans_repository.get_by_member_id(member_id)
