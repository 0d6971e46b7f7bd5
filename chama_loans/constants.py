# chama_loans/constants.py

from enum import Enum


class LoanStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"        # disbursed
    COMPLETED = "completed"  # repaid in full
    DEFAULTED = "defaulted"


class DisplayStatus(Enum):
    """Status shown to callers. OVERDUE is derived on read and never stored."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"
    OVERDUE = "overdue"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    FAILED = "failed"


class MemberStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class UserRole(Enum):
    ADMIN = "admin"
    MEMBER = "member"
