# chama_loans/presentation/loans_api.py

"""
Transport-neutral request handlers for the loan engine.

Every handler returns ``(http_status, payload)`` where payload is a JSON-ready dict,
so the same surface can sit behind an HTTP framework, an RPC layer or the CLI.
"""

from typing import Any, Dict, Optional, Tuple
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from dataclasses import fields
import logging

from chama_loans.business_logic.loan_manager import LoanManager
from chama_loans.business_logic.entities.loan_entity import LoanEntity, LoanView
from chama_loans.business_logic.entities.amortization_entity import AmortizationSchedule
from chama_loans.business_logic.entities.user_entity import Actor
from chama_loans.exceptions import ChamaLoansError, ErrorKind

logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, Any]]

STATUS_BY_KIND = {
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STORE_UNAVAILABLE: 503,
}


def to_json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def loan_to_dict(loan: LoanEntity) -> Dict[str, Any]:
    return {f.name: to_json_value(getattr(loan, f.name)) for f in fields(loan)}


def loan_view_to_dict(view: LoanView) -> Dict[str, Any]:
    data = loan_to_dict(view.loan)
    data.update({
        "member_name": view.member_name,
        "member_phone": view.member_phone,
        "guarantor_name": view.guarantor_name,
        "display_status": view.display_status.value,
        "days_remaining": view.days_remaining,
    })
    return data


def schedule_to_dict(schedule: AmortizationSchedule) -> Dict[str, Any]:
    rate_percent = (schedule.monthly_interest_rate * 100).normalize()
    return {
        "amount": to_json_value(schedule.amount),
        "duration_months": schedule.duration_months,
        "monthly_interest_rate": f"{rate_percent:f}%",
        "total_interest": to_json_value(schedule.total_interest),
        "total_repayment": to_json_value(schedule.total_repayment),
        "monthly_payments": [
            {
                "month": entry.month,
                "principal": to_json_value(entry.principal),
                "interest": to_json_value(entry.interest),
                "total": to_json_value(entry.total),
                "remaining": to_json_value(entry.remaining),
            }
            for entry in schedule.monthly_payments
        ],
        "average_monthly_payment": to_json_value(schedule.average_monthly_payment),
    }


def error_response(error: ChamaLoansError) -> Response:
    return STATUS_BY_KIND.get(error.kind, 400), {"error": error.message, "kind": error.kind.value}


class LoansAPI:
    def __init__(self, loan_manager: LoanManager):
        if loan_manager is None: raise ValueError("loan_manager cannot be None")
        self.loan_manager = loan_manager

    def _handle(self, operation: str, func, *args) -> Response:
        try:
            return func(*args)
        except ChamaLoansError as e:
            logger.info(f"{operation} failed with {e.kind.value}: {e.message}")
            return error_response(e)
        except Exception as e:
            logger.error(f"Unexpected error in {operation}: {e}", exc_info=True)
            return 500, {"error": str(e)}

    def list_loans(self, member_id: Optional[int] = None) -> Response:
        def run():
            rows = [loan_view_to_dict(v) for v in self.loan_manager.list_loans(member_id)]
            return 200, {"message": "success", "data": rows, "count": len(rows)}
        return self._handle("list_loans", run)

    def apply(self, body: Dict[str, Any], actor: Optional[Actor] = None) -> Response:
        def run():
            loan = self.loan_manager.apply_for_loan(
                member_id=body.get("member_id"),
                amount=body.get("amount"),
                duration_months=body.get("duration_months"),
                guarantor_id=body.get("guarantor_id"),
                notes=body.get("notes"),
                applied_by=actor.user_id if actor else None,
            )
            return 200, {
                "message": "Loan application submitted successfully",
                "loanId": loan.id,
                "dueDate": loan.due_date.isoformat(),
            }
        return self._handle("apply", run)

    def calculate(self, body: Dict[str, Any]) -> Response:
        def run():
            schedule = self.loan_manager.calculate_amortization(body.get("amount"), body.get("duration_months"))
            return 200, schedule_to_dict(schedule)
        return self._handle("calculate", run)

    def update_status(self, loan_id: int, body: Dict[str, Any], actor: Optional[Actor]) -> Response:
        def run():
            self.loan_manager.update_loan_status(loan_id, body.get("status"), actor)
            return 200, {"message": "Loan status updated successfully"}
        return self._handle("update_status", run)

    def check_eligibility(self, member_id: int) -> Response:
        def run():
            result = self.loan_manager.check_eligibility(member_id)
            return 200, {"eligible": result.eligible, "reason": result.reason, "paid_count": result.paid_count}
        return self._handle("check_eligibility", run)
