# chama_loans/data_access/loans_repository.py

from typing import Optional, List, Tuple

from chama_loans.data_access.base_repository import BaseRepository
from chama_loans.data_access.database_manager import DatabaseManager
from chama_loans.business_logic.entities.loan_entity import LoanEntity
from chama_loans.constants import LoanStatus
import logging

logger = logging.getLogger(__name__)

# (loan, member_name, member_phone, guarantor_name)
LoanRow = Tuple[LoanEntity, Optional[str], Optional[str], Optional[str]]


class LoansRepository(BaseRepository[LoanEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=LoanEntity,
                         table_name="loans")

    def get_by_member_id(self, member_id: int) -> List[LoanEntity]:
        return self.find_by_criteria({"member_id": member_id}, order_by="application_date DESC, id DESC")

    def get_by_status(self, status: LoanStatus) -> List[LoanEntity]:
        return self.find_by_criteria({"status": status}, order_by="application_date DESC, id DESC")

    def has_pending_loan(self, member_id: int) -> bool:
        return self.count_by_criteria({"member_id": member_id, "status": LoanStatus.PENDING}) > 0

    def list_with_members(self, member_id: Optional[int] = None) -> List[LoanRow]:
        """Loans joined with the borrower's and guarantor's names, newest application first."""
        query = f"""
            SELECT l.*, m.name AS member_name, m.phone AS member_phone,
                   g.name AS guarantor_name
            FROM {self._table_name} l
            JOIN members m ON l.member_id = m.id
            LEFT JOIN members g ON l.guarantor_id = g.id
        """
        params: tuple = ()
        if member_id is not None:
            query += " WHERE l.member_id = ?"
            params = (member_id,)
        query += " ORDER BY l.application_date DESC, l.id DESC"

        rows = self.db_manager.fetch_all(query, params)
        result = []
        for row in rows:
            row_dict = dict(row)
            result.append((
                self._entity_from_row(row_dict),
                row_dict.get("member_name"),
                row_dict.get("member_phone"),
                row_dict.get("guarantor_name"),
            ))
        logger.debug(f"Fetched {len(result)} loans (member filter: {member_id}).")
        return result
