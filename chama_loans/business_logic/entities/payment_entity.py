# chama_loans/business_logic/entities/payment_entity.py
from dataclasses import dataclass, field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from .base_entity import BaseEntity
from chama_loans.constants import PaymentStatus

@dataclass
class PaymentEntity(BaseEntity):
    """A monthly contribution. Read by the loan engine, never written by it."""
    member_id: int # Foreign Key to MemberEntity
    amount: Decimal
    month: str # e.g. "September"
    year: str  # e.g. "2025"
    date_paid: Optional[datetime] = field(default=None)
    status: PaymentStatus = field(default=PaymentStatus.PENDING)
    receipt_no: Optional[str] = field(default=None)
