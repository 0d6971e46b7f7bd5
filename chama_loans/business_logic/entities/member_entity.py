# chama_loans/business_logic/entities/member_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import date
from decimal import Decimal
from .base_entity import BaseEntity
from chama_loans.constants import MemberStatus

@dataclass
class MemberEntity(BaseEntity):
    name: str
    phone: str # unique per member
    email: Optional[str] = field(default=None)
    status: MemberStatus = field(default=MemberStatus.PENDING)
    joined_date: Optional[date] = field(default=None)
    total_contributions: Decimal = field(default=Decimal("0"))
    last_payment_date: Optional[date] = field(default=None)
    next_deadline: Optional[date] = field(default=None)
