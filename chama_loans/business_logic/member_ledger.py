# chama_loans/business_logic/member_ledger.py

from typing import Optional, List
from datetime import date
import logging

from chama_loans.business_logic.entities.member_entity import MemberEntity
from chama_loans.business_logic.entities.payment_entity import PaymentEntity
from chama_loans.data_access.members_repository import MembersRepository
from chama_loans.data_access.payments_repository import PaymentsRepository

logger = logging.getLogger(__name__)


class MemberLedger:
    """Read-only view of members and their contribution history."""

    def __init__(self, members_repository: MembersRepository, payments_repository: PaymentsRepository):
        if members_repository is None: raise ValueError("members_repository cannot be None")
        if payments_repository is None: raise ValueError("payments_repository cannot be None")
        self.members_repository = members_repository
        self.payments_repository = payments_repository

    def get_member(self, member_id: int) -> Optional[MemberEntity]:
        member = self.members_repository.get_by_id(member_id)
        if member is None:
            logger.debug(f"Member with ID {member_id} not found.")
        return member

    def member_exists(self, member_id: int) -> bool:
        return self.get_member(member_id) is not None

    def count_paid_payments_since(self, member_id: int, since: date) -> int:
        count = self.payments_repository.count_paid_since(member_id, since)
        logger.debug(f"Member {member_id} has {count} paid payments since {since}.")
        return count

    def get_payment_history(self, member_id: int) -> List[PaymentEntity]:
        return self.payments_repository.get_by_member_id(member_id)
