# chama_loans/data_access/payments_repository.py

from typing import List
from datetime import date

from chama_loans.data_access.base_repository import BaseRepository
from chama_loans.data_access.database_manager import DatabaseManager
from chama_loans.business_logic.entities.payment_entity import PaymentEntity
from chama_loans.constants import PaymentStatus


class PaymentsRepository(BaseRepository[PaymentEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=PaymentEntity,
                         table_name="payments")

    def get_by_member_id(self, member_id: int) -> List[PaymentEntity]:
        return self.find_by_criteria({"member_id": member_id}, order_by="date_paid DESC")

    def count_paid_since(self, member_id: int, since: date) -> int:
        # date_paid is stored as ISO text, so string comparison orders chronologically
        return self.count_by_criteria({
            "member_id": member_id,
            "status": PaymentStatus.PAID,
            "date_paid": (">=", since.isoformat()),
        })
