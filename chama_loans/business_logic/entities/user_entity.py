# chama_loans/business_logic/entities/user_entity.py
from dataclasses import dataclass, field
from typing import Optional
from chama_loans.constants import UserRole

@dataclass(frozen=True)
class Actor:
    """The authenticated caller of an operation."""
    user_id: int
    role: UserRole
    member_id: Optional[int] = field(default=None)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
