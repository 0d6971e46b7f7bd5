"""
Test suite for LoanManager

Eligibility, loan application, status lifecycle and the loan listing, run against
a temporary SQLite database with a fixed clock.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from chama_loans.business_logic.loan_manager import LoanPolicy
from chama_loans.constants import LoanStatus, PaymentStatus, DisplayStatus
from chama_loans.exceptions import (
    AmountExceedsLimitError, NotEligibleError, NotFoundError, AuthorizationError,
    ValidationError, InvalidTransitionError, ErrorKind
)
from tests.conftest import FIXED_NOW


class TestEligibility:

    def test_two_paid_payments_are_not_enough(self, loan_manager, add_member, add_payment):
        member = add_member()
        add_payment(member.id, datetime(2025, 12, 1))
        add_payment(member.id, datetime(2026, 1, 2))

        result = loan_manager.check_eligibility(member.id)

        assert not result.eligible
        assert result.paid_count == 2
        assert "3 qualifying payments" in result.reason

    def test_three_paid_payments_qualify(self, loan_manager, eligible_member):
        result = loan_manager.check_eligibility(eligible_member.id)

        assert result.eligible
        assert result.paid_count == 3
        assert result.reason is None
        assert result.since == date(2025, 10, 15)

    def test_three_payments_in_one_week_qualify(self, loan_manager, add_member, add_payment):
        """The rule counts payments; it does not look for consecutive months"""
        member = add_member()
        for day in (5, 7, 9):
            add_payment(member.id, datetime(2026, 1, day))

        assert loan_manager.check_eligibility(member.id).eligible

    def test_window_boundary(self, loan_manager, add_member, add_payment):
        member = add_member()
        add_payment(member.id, datetime(2025, 10, 14, 23, 59))  # one day too old
        add_payment(member.id, datetime(2025, 10, 15))          # first day of the window
        add_payment(member.id, datetime(2025, 12, 1))

        assert loan_manager.check_eligibility(member.id).paid_count == 2

    def test_only_paid_status_counts(self, loan_manager, add_member, add_payment):
        member = add_member()
        add_payment(member.id, datetime(2025, 11, 1))
        add_payment(member.id, datetime(2025, 12, 1), status=PaymentStatus.PENDING)
        add_payment(member.id, datetime(2026, 1, 1), status=PaymentStatus.FAILED)
        add_payment(member.id, datetime(2026, 1, 2), status=PaymentStatus.OVERDUE)

        assert loan_manager.check_eligibility(member.id).paid_count == 1

    def test_other_members_payments_do_not_count(self, loan_manager, eligible_member, add_member):
        other = add_member("Lydia Katungi")
        assert not loan_manager.check_eligibility(other.id).eligible

    def test_window_follows_the_clock(self, loan_manager, eligible_member, clock):
        clock.advance(days=120)
        assert not loan_manager.check_eligibility(eligible_member.id).eligible

    def test_policy_thresholds(self, make_manager, eligible_member):
        manager = make_manager(eligibility_min_paid_payments=4)
        assert not manager.check_eligibility(eligible_member.id).eligible


class TestApplyForLoan:

    def test_creates_pending_loan(self, loan_manager, eligible_member):
        loan = loan_manager.apply_for_loan(eligible_member.id, 9000, notes="school fees", applied_by=7)

        assert loan.id is not None
        assert loan.status == LoanStatus.PENDING
        assert loan.amount == Decimal("9000")
        assert loan.interest_rate == Decimal("10.00")
        assert loan.duration_months == 3
        assert loan.application_date == date(2026, 1, 15)
        assert loan.due_date == date(2026, 4, 15)
        assert loan.amount_paid == Decimal("0")
        assert loan.penalty_applied == Decimal("0")
        assert loan.approval_date is None
        assert loan.disbursement_date is None

        stored = loan_manager.get_loan(loan.id)
        assert stored == loan
        assert stored.notes == "school fees"
        assert stored.applied_by == 7

    def test_remaining_amount_follows_amortization_by_default(self, loan_manager, eligible_member):
        loan = loan_manager.apply_for_loan(eligible_member.id, 9000)
        assert loan.remaining_amount == Decimal("10800.00")

    def test_remaining_amount_uses_duration(self, loan_manager, eligible_member):
        loan = loan_manager.apply_for_loan(eligible_member.id, 9000, duration_months=6)

        assert loan.due_date == date(2026, 7, 15)
        assert loan.remaining_amount == Decimal("12150.00")

    def test_flat_remaining_amount(self, make_manager, eligible_member):
        manager = make_manager(remaining_amount_basis="flat")

        loan = manager.apply_for_loan(eligible_member.id, 9000, duration_months=6)

        assert loan.remaining_amount == Decimal("11700.00")

    def test_maximum_amount_succeeds(self, loan_manager, eligible_member):
        loan = loan_manager.apply_for_loan(eligible_member.id, 50000)
        assert loan.remaining_amount == Decimal("60000.00")

    @pytest.mark.parametrize("amount", [50001, 0, -100, None, "lots"])
    def test_amount_outside_limit(self, loan_manager, eligible_member, loans_repo, amount):
        with pytest.raises(AmountExceedsLimitError) as exc_info:
            loan_manager.apply_for_loan(eligible_member.id, amount)
        assert exc_info.value.kind == ErrorKind.AMOUNT_EXCEEDS_LIMIT
        assert loans_repo.get_all() == []

    def test_amount_is_checked_before_eligibility(self, loan_manager, add_member):
        member = add_member()
        with pytest.raises(AmountExceedsLimitError):
            loan_manager.apply_for_loan(member.id, 50001)

    def test_not_eligible(self, loan_manager, add_member, add_payment, loans_repo):
        member = add_member()
        add_payment(member.id, datetime(2026, 1, 2))

        with pytest.raises(NotEligibleError) as exc_info:
            loan_manager.apply_for_loan(member.id, 5000)

        assert exc_info.value.kind == ErrorKind.NOT_ELIGIBLE
        assert loans_repo.get_all() == []

    def test_invalid_duration(self, loan_manager, eligible_member):
        with pytest.raises(ValidationError) as exc_info:
            loan_manager.apply_for_loan(eligible_member.id, 5000, duration_months=0)
        assert exc_info.value.kind == ErrorKind.INVALID_DURATION

    def test_duration_above_maximum(self, loan_manager, eligible_member, loans_repo):
        with pytest.raises(ValidationError) as exc_info:
            loan_manager.apply_for_loan(eligible_member.id, 5000, duration_months=100000)

        assert exc_info.value.kind == ErrorKind.INVALID_DURATION
        assert loans_repo.get_all() == []

    def test_maximum_duration_succeeds(self, loan_manager, eligible_member):
        loan = loan_manager.apply_for_loan(eligible_member.id, 5000, duration_months=120)
        assert loan.due_date == date(2036, 1, 15)

    def test_policy_maximum_duration(self, make_manager, eligible_member):
        manager = make_manager(max_duration_months=12)

        with pytest.raises(ValidationError):
            manager.apply_for_loan(eligible_member.id, 5000, duration_months=13)
        with pytest.raises(ValidationError):
            manager.calculate_amortization(5000, 13)
        assert len(manager.calculate_amortization(5000, 12).monthly_payments) == 12

    def test_missing_member_id(self, loan_manager):
        with pytest.raises(ValidationError) as exc_info:
            loan_manager.apply_for_loan(None, 5000)
        assert exc_info.value.kind == ErrorKind.MISSING_FIELD

    def test_due_date_clamps_to_month_end(self, loan_manager, eligible_member, clock):
        clock.now = datetime(2026, 1, 31, 8, 0)

        loan = loan_manager.apply_for_loan(eligible_member.id, 3000, duration_months=1)

        assert loan.due_date == date(2026, 2, 28)

    def test_concurrent_applications_are_not_deduplicated(self, loan_manager, eligible_member):
        first = loan_manager.apply_for_loan(eligible_member.id, 3000)
        second = loan_manager.apply_for_loan(eligible_member.id, 3000)

        assert first.id != second.id
        assert len(loan_manager.get_loans_by_member(eligible_member.id)) == 2

    def test_one_pending_loan_per_member(self, make_manager, eligible_member):
        manager = make_manager(one_pending_loan_per_member=True)
        manager.apply_for_loan(eligible_member.id, 3000)

        with pytest.raises(ValidationError) as exc_info:
            manager.apply_for_loan(eligible_member.id, 3000)
        assert exc_info.value.kind == ErrorKind.PENDING_LOAN_EXISTS

    def test_lenient_mode_accepts_unknown_guarantor(self, loan_manager, eligible_member):
        loan = loan_manager.apply_for_loan(eligible_member.id, 3000, guarantor_id=999)
        assert loan_manager.get_loan(loan.id).guarantor_id == 999


class TestStrictMemberValidation:

    @pytest.fixture
    def strict_manager(self, make_manager):
        return make_manager(strict_member_validation=True)

    def test_unknown_member(self, strict_manager):
        with pytest.raises(NotFoundError):
            strict_manager.apply_for_loan(404, 3000)

    def test_member_cannot_guarantee_own_loan(self, strict_manager, eligible_member):
        with pytest.raises(ValidationError) as exc_info:
            strict_manager.apply_for_loan(eligible_member.id, 3000, guarantor_id=eligible_member.id)
        assert exc_info.value.kind == ErrorKind.INVALID_GUARANTOR

    def test_unknown_guarantor(self, strict_manager, eligible_member):
        with pytest.raises(ValidationError) as exc_info:
            strict_manager.apply_for_loan(eligible_member.id, 3000, guarantor_id=999)
        assert exc_info.value.kind == ErrorKind.INVALID_GUARANTOR

    def test_valid_guarantor(self, strict_manager, eligible_member, add_member):
        guarantor = add_member("Joel Mwetu")
        loan = strict_manager.apply_for_loan(eligible_member.id, 3000, guarantor_id=guarantor.id)
        assert loan.guarantor_id == guarantor.id


class TestUpdateLoanStatus:

    @pytest.fixture
    def loan(self, loan_manager, eligible_member):
        return loan_manager.apply_for_loan(eligible_member.id, 9000)

    def test_requires_admin(self, loan_manager, loan, member_actor):
        with pytest.raises(AuthorizationError) as exc_info:
            loan_manager.update_loan_status(loan.id, "approved", member_actor)

        assert exc_info.value.kind == ErrorKind.FORBIDDEN
        assert loan_manager.get_loan(loan.id).status == LoanStatus.PENDING

    def test_requires_an_actor(self, loan_manager, loan):
        with pytest.raises(AuthorizationError):
            loan_manager.update_loan_status(loan.id, "approved", None)

    def test_authorization_is_checked_before_lookup(self, loan_manager, member_actor):
        with pytest.raises(AuthorizationError):
            loan_manager.update_loan_status(12345, "approved", member_actor)

    def test_unknown_loan(self, loan_manager, admin):
        with pytest.raises(NotFoundError):
            loan_manager.update_loan_status(12345, "approved", admin)

    def test_unknown_status(self, loan_manager, loan, admin):
        with pytest.raises(ValidationError) as exc_info:
            loan_manager.update_loan_status(loan.id, "overdue", admin)
        assert exc_info.value.kind == ErrorKind.INVALID_STATUS

    def test_approve_sets_approval_date(self, loan_manager, loan, admin):
        updated = loan_manager.update_loan_status(loan.id, "approved", admin)

        assert updated.status == LoanStatus.APPROVED
        stored = loan_manager.get_loan(loan.id)
        assert stored.approval_date == FIXED_NOW
        assert stored.disbursement_date is None

    def test_reapproving_keeps_first_approval_date(self, loan_manager, loan, admin, clock):
        loan_manager.update_loan_status(loan.id, "approved", admin)
        clock.advance(days=2)
        loan_manager.update_loan_status(loan.id, "approved", admin)

        assert loan_manager.get_loan(loan.id).approval_date == FIXED_NOW

    def test_full_lifecycle(self, loan_manager, loan, admin, clock):
        loan_manager.update_loan_status(loan.id, "approved", admin)
        clock.advance(days=1)
        loan_manager.update_loan_status(loan.id, "active", admin)
        disbursed = loan_manager.get_loan(loan.id)
        assert disbursed.disbursement_date == datetime(2026, 1, 16, 9, 30)

        clock.advance(days=30)
        loan_manager.update_loan_status(loan.id, LoanStatus.COMPLETED, admin)

        stored = loan_manager.get_loan(loan.id)
        assert stored.status == LoanStatus.COMPLETED
        assert stored.approval_date == FIXED_NOW
        assert stored.disbursement_date == datetime(2026, 1, 16, 9, 30)
        assert stored.due_date == date(2026, 4, 15)

    def test_reject(self, loan_manager, loan, admin):
        loan_manager.update_loan_status(loan.id, "rejected", admin)

        stored = loan_manager.get_loan(loan.id)
        assert stored.status == LoanStatus.REJECTED
        assert stored.approval_date is None

    def test_illegal_transition(self, loan_manager, loan, admin):
        with pytest.raises(InvalidTransitionError):
            loan_manager.update_loan_status(loan.id, "active", admin)
        assert loan_manager.get_loan(loan.id).status == LoanStatus.PENDING

    def test_rejected_is_final(self, loan_manager, loan, admin):
        loan_manager.update_loan_status(loan.id, "rejected", admin)
        with pytest.raises(InvalidTransitionError):
            loan_manager.update_loan_status(loan.id, "approved", admin)


class TestListLoans:

    def test_overdue_is_derived_not_stored(self, loan_manager, eligible_member, admin, clock):
        loan = loan_manager.apply_for_loan(eligible_member.id, 9000)
        loan_manager.update_loan_status(loan.id, "approved", admin)
        loan_manager.update_loan_status(loan.id, "active", admin)

        clock.now = datetime(2026, 4, 25, 9, 30)
        [view] = loan_manager.list_loans()

        assert view.display_status == DisplayStatus.OVERDUE
        assert view.days_remaining == -10
        assert view.loan.status == LoanStatus.ACTIVE
        assert loan_manager.get_loan(loan.id).status == LoanStatus.ACTIVE

    def test_pending_past_due_is_not_overdue(self, loan_manager, eligible_member, clock):
        loan_manager.apply_for_loan(eligible_member.id, 9000)
        clock.now = datetime(2026, 5, 1)

        [view] = loan_manager.list_loans()

        assert view.display_status == DisplayStatus.PENDING

    def test_days_remaining_before_due(self, loan_manager, eligible_member):
        loan_manager.apply_for_loan(eligible_member.id, 9000)
        [view] = loan_manager.list_loans()
        assert view.days_remaining == (date(2026, 4, 15) - date(2026, 1, 15)).days

    def test_joins_member_and_guarantor(self, loan_manager, eligible_member, add_member):
        guarantor = add_member("Joel Mwetu")
        loan_manager.apply_for_loan(eligible_member.id, 9000, guarantor_id=guarantor.id)

        [view] = loan_manager.list_loans()

        assert view.member_name == "Mark Masila"
        assert view.member_phone == eligible_member.phone
        assert view.guarantor_name == "Joel Mwetu"

    def test_newest_first_and_member_filter(self, loan_manager, eligible_member, add_member, add_payment, clock):
        other = add_member("Lydia Katungi")
        for paid_on in (datetime(2025, 11, 3), datetime(2025, 12, 3), datetime(2026, 1, 3)):
            add_payment(other.id, paid_on)

        first = loan_manager.apply_for_loan(eligible_member.id, 1000)
        clock.advance(days=1)
        second = loan_manager.apply_for_loan(other.id, 2000)

        assert [v.loan.id for v in loan_manager.list_loans()] == [second.id, first.id]
        assert [v.loan.id for v in loan_manager.list_loans(member_id=eligible_member.id)] == [first.id]


class TestLoanPolicy:

    def test_unknown_remaining_basis(self):
        with pytest.raises(ValueError):
            LoanPolicy(remaining_amount_basis="compound")
