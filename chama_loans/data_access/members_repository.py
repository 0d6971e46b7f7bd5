# chama_loans/data_access/members_repository.py

from typing import Optional

from chama_loans.data_access.base_repository import BaseRepository
from chama_loans.data_access.database_manager import DatabaseManager
from chama_loans.business_logic.entities.member_entity import MemberEntity


class MembersRepository(BaseRepository[MemberEntity]):
    def __init__(self, db_manager: DatabaseManager):
        super().__init__(db_manager=db_manager,
                         model_type=MemberEntity,
                         table_name="members")

    def get_by_phone(self, phone: str) -> Optional[MemberEntity]:
        matches = self.find_by_criteria({"phone": phone})
        return matches[0] if matches else None
