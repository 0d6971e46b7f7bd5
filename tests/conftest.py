import pytest
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal

from chama_loans.constants import PaymentStatus, MemberStatus, UserRole
from chama_loans.data_access.database_manager import DatabaseManager
from chama_loans.data_access.members_repository import MembersRepository
from chama_loans.data_access.payments_repository import PaymentsRepository
from chama_loans.data_access.loans_repository import LoansRepository
from chama_loans.business_logic.member_ledger import MemberLedger
from chama_loans.business_logic.loan_manager import LoanManager, LoanPolicy
from chama_loans.business_logic.entities import MemberEntity, PaymentEntity, Actor


# "today" for every test unless a test moves the clock
FIXED_NOW = datetime(2026, 1, 15, 9, 30, 0)


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FixedClock(FIXED_NOW)


@pytest.fixture
def db_manager(tmp_path):
    manager = DatabaseManager(str(tmp_path / "chama_test.db"))
    manager.create_tables()
    return manager


@pytest.fixture
def members_repo(db_manager):
    return MembersRepository(db_manager)


@pytest.fixture
def payments_repo(db_manager):
    return PaymentsRepository(db_manager)


@pytest.fixture
def loans_repo(db_manager):
    return LoansRepository(db_manager)


@pytest.fixture
def ledger(members_repo, payments_repo):
    return MemberLedger(members_repo, payments_repo)


@pytest.fixture
def default_policy():
    """Library defaults, independent of CHAMA_* environment variables."""
    return LoanPolicy(
        max_loan_amount=Decimal("50000"),
        max_duration_months=120,
        remaining_amount_basis="amortization",
        strict_member_validation=False,
        one_pending_loan_per_member=False,
    )


@pytest.fixture
def make_manager(loans_repo, ledger, clock, default_policy):
    def factory(**policy_overrides):
        return LoanManager(loans_repo, ledger, policy=replace(default_policy, **policy_overrides), clock=clock)
    return factory


@pytest.fixture
def loan_manager(make_manager):
    return make_manager()


@pytest.fixture
def add_member(members_repo):
    counter = {"n": 0}

    def factory(name: str = "Mark Masila", **kwargs) -> MemberEntity:
        counter["n"] += 1
        phone = kwargs.pop("phone", f"07000000{counter['n']:02d}")
        return members_repo.add(MemberEntity(name=name, phone=phone, status=MemberStatus.ACTIVE, **kwargs))
    return factory


@pytest.fixture
def add_payment(payments_repo):
    def factory(member_id: int, paid_on: datetime, status: PaymentStatus = PaymentStatus.PAID,
                amount: str = "600") -> PaymentEntity:
        return payments_repo.add(PaymentEntity(
            member_id=member_id,
            amount=Decimal(amount),
            month=paid_on.strftime("%B"),
            year=str(paid_on.year),
            date_paid=paid_on,
            status=status,
        ))
    return factory


@pytest.fixture
def eligible_member(add_member, add_payment):
    """A member with three paid contributions inside the trailing three months."""
    member = add_member()
    for paid_on in (datetime(2025, 11, 1), datetime(2025, 12, 1), datetime(2026, 1, 2)):
        add_payment(member.id, paid_on)
    return member


@pytest.fixture
def admin():
    return Actor(user_id=1, role=UserRole.ADMIN)


@pytest.fixture
def member_actor():
    return Actor(user_id=2, role=UserRole.MEMBER, member_id=1)
