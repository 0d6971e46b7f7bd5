# chama_loans/business_logic/entities/__init__.py
from .base_entity import BaseEntity
from .member_entity import MemberEntity
from .payment_entity import PaymentEntity
from .user_entity import Actor
from .loan_entity import LoanEntity, LoanView
from .amortization_entity import AmortizationEntry, AmortizationSchedule
__all__ = [
    "BaseEntity", "MemberEntity", "PaymentEntity", "Actor",
    "LoanEntity", "LoanView", "AmortizationEntry", "AmortizationSchedule",
]
