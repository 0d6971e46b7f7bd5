# chama_loans/main_app.py
import sys
import json
import argparse
import logging
from typing import List, Optional

# --- Configuration and Constants ---
from chama_loans.config import DATABASE_PATH, configure_logging
from chama_loans.constants import UserRole
from chama_loans.exceptions import ChamaLoansError, StoreUnavailableError

# --- Data Access Layer (DAL) ---
from chama_loans.data_access.database_manager import DatabaseManager
from chama_loans.data_access.members_repository import MembersRepository
from chama_loans.data_access.payments_repository import PaymentsRepository
from chama_loans.data_access.loans_repository import LoansRepository

# --- Business Logic Layer (BLL) ---
from chama_loans.business_logic.member_ledger import MemberLedger
from chama_loans.business_logic.loan_manager import LoanManager
from chama_loans.business_logic.entities.user_entity import Actor

# --- Presentation Layer ---
from chama_loans.presentation.loans_api import LoansAPI, error_response

logger = logging.getLogger(__name__)


class Application:
    """Builds the layers bottom-up: database, repositories, managers, API."""

    def __init__(self, db_path: str = DATABASE_PATH):
        logger.info("Initializing Database Manager and creating tables...")
        self.db_manager = DatabaseManager(db_path)
        self.db_manager.create_tables()

        logger.info("Initializing Repositories...")
        self.members_repo = MembersRepository(self.db_manager)
        self.payments_repo = PaymentsRepository(self.db_manager)
        self.loans_repo = LoansRepository(self.db_manager)

        logger.info("Initializing Managers...")
        self.member_ledger = MemberLedger(self.members_repo, self.payments_repo)
        self.loan_manager = LoanManager(self.loans_repo, self.member_ledger)
        self.loans_api = LoansAPI(self.loan_manager)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chama-loans", description="Savings group loan administration")
    parser.add_argument("--db", default=DATABASE_PATH, help="SQLite database path")
    parser.add_argument("--user-id", type=int, default=0, help="id of the acting user")
    parser.add_argument("--role", choices=[r.value for r in UserRole], default=UserRole.MEMBER.value)
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init-db", help="create tables")
    init.add_argument("--seed", action="store_true", help="insert demo members and payments")

    lst = sub.add_parser("list", help="list loans")
    lst.add_argument("--member-id", type=int)

    elig = sub.add_parser("eligibility", help="check loan eligibility")
    elig.add_argument("--member-id", type=int, required=True)

    apply = sub.add_parser("apply", help="apply for a loan")
    apply.add_argument("--member-id", type=int, required=True)
    apply.add_argument("--amount", required=True)
    apply.add_argument("--months", type=int)
    apply.add_argument("--guarantor-id", type=int)
    apply.add_argument("--notes")

    calc = sub.add_parser("calculate", help="show a repayment schedule")
    calc.add_argument("--amount", required=True)
    calc.add_argument("--months", type=int)

    status = sub.add_parser("status", help="change a loan's status (admin)")
    status.add_argument("--loan-id", type=int, required=True)
    status.add_argument("--status", required=True)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    try:
        app = Application(args.db)
    except StoreUnavailableError as e:
        logger.error(f"FATAL: Could not initialize database: {e}", exc_info=True)
        print(json.dumps({"error": e.message, "kind": e.kind.value}, indent=2))
        return 1
    api = app.loans_api
    actor = Actor(user_id=args.user_id, role=UserRole(args.role))

    if args.command == "init-db":
        try:
            seeded = app.db_manager.seed_demo_data() if args.seed else False
            code, payload = 200, {"message": "Database ready", "seeded": seeded}
        except ChamaLoansError as e:
            logger.error(f"Seeding failed: {e}")
            code, payload = error_response(e)
    elif args.command == "list":
        code, payload = api.list_loans(args.member_id)
    elif args.command == "eligibility":
        code, payload = api.check_eligibility(args.member_id)
    elif args.command == "apply":
        code, payload = api.apply({
            "member_id": args.member_id,
            "amount": args.amount,
            "duration_months": args.months,
            "guarantor_id": args.guarantor_id,
            "notes": args.notes,
        }, actor)
    elif args.command == "calculate":
        code, payload = api.calculate({"amount": args.amount, "duration_months": args.months})
    else:
        code, payload = api.update_status(args.loan_id, {"status": args.status}, actor)

    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if code < 400 else 1


if __name__ == "__main__":
    sys.exit(main())
