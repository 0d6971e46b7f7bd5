# chama_loans/data_access/database_manager.py

import sqlite3
import logging
from datetime import date
from decimal import Decimal

from chama_loans.config import DATABASE_PATH, MONTHLY_CONTRIBUTION
from chama_loans.constants import LoanStatus, PaymentStatus, MemberStatus
from chama_loans.exceptions import StoreUnavailableError, ValidationError, ErrorKind

logger = logging.getLogger(__name__)


def _check_values(enum_cls) -> str:
    return ', '.join(f"'{member.value}'" for member in enum_cls)


class DatabaseManager:
    def __init__(self, db_path=DATABASE_PATH):
        self.db_path = db_path
        self.conn = None

    def __enter__(self):
        try:
            self.conn = sqlite3.connect(self.db_path)
            self.conn.row_factory = sqlite3.Row # Access columns by name
            self.conn.execute("PRAGMA foreign_keys = ON;") # Enforce foreign key constraints
            logger.debug(f"Database connection established to {self.db_path}")
            return self.conn
        except sqlite3.Error as e:
            logger.error(f"Error connecting to database {self.db_path}: {e}")
            raise StoreUnavailableError(f"Cannot open database {self.db_path}: {e}") from e

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Database connection closed.")

    def _translate(self, query, params, error: sqlite3.Error) -> Exception:
        if isinstance(error, sqlite3.IntegrityError):
            logger.warning(f"Constraint violated by {query} with params {params} - {error}")
            return ValidationError(f"Constraint violated: {error}", ErrorKind.CONSTRAINT_VIOLATION)
        logger.error(f"Query execution failed: {query} with params {params} - {error}", exc_info=True)
        return StoreUnavailableError(f"Database error: {error}")

    def execute_query(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                conn.commit()
                return cursor
        except sqlite3.Error as e:
            raise self._translate(query, params, e) from e

    def fetch_one(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                return cursor.fetchone()
        except sqlite3.Error as e:
            raise self._translate(query, params, e) from e

    def fetch_all(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                return cursor.fetchall()
        except sqlite3.Error as e:
            raise self._translate(query, params, e) from e

    def create_tables(self):
        queries = [
            """
            CREATE TABLE IF NOT EXISTS members (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                phone TEXT NOT NULL UNIQUE,
                email TEXT,
                status TEXT NOT NULL DEFAULT '{}' CHECK(status IN ({})),
                joined_date TEXT,
                total_contributions TEXT NOT NULL DEFAULT '0',
                last_payment_date TEXT,
                next_deadline TEXT
            );
            """.format(MemberStatus.PENDING.value, _check_values(MemberStatus)),
            """
            CREATE TABLE IF NOT EXISTS payments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                member_id INTEGER NOT NULL,
                amount TEXT NOT NULL,
                month TEXT NOT NULL,
                year TEXT NOT NULL,
                date_paid TEXT, -- ISO datetime
                status TEXT NOT NULL DEFAULT '{}' CHECK(status IN ({})),
                receipt_no TEXT,
                FOREIGN KEY (member_id) REFERENCES members(id) ON DELETE RESTRICT
            );
            """.format(PaymentStatus.PENDING.value, _check_values(PaymentStatus)),
            """
            CREATE TABLE IF NOT EXISTS loans (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                member_id INTEGER NOT NULL,
                amount TEXT NOT NULL,
                interest_rate TEXT NOT NULL,
                duration_months INTEGER NOT NULL CHECK(duration_months >= 1),
                status TEXT NOT NULL CHECK(status IN ({})),
                application_date TEXT NOT NULL,
                due_date TEXT NOT NULL,
                remaining_amount TEXT NOT NULL,
                amount_paid TEXT NOT NULL DEFAULT '0',
                penalty_applied TEXT NOT NULL DEFAULT '0',
                approval_date TEXT,
                disbursement_date TEXT,
                guarantor_id INTEGER, -- not a foreign key: unknown guarantors are accepted unless strict validation is on
                notes TEXT,
                applied_by INTEGER,
                FOREIGN KEY (member_id) REFERENCES members(id) ON DELETE RESTRICT
            );
            """.format(_check_values(LoanStatus)),
            "CREATE INDEX IF NOT EXISTS idx_payments_member_status ON payments (member_id, status, date_paid);",
            "CREATE INDEX IF NOT EXISTS idx_loans_member ON loans (member_id, status);",
        ]
        for query in queries:
            self.execute_query(query)
        logger.info(f"Database tables checked/created in {self.db_path}.")

    def seed_demo_data(self) -> bool:
        """
        Inserts demo members and a contribution history when the members table is empty.
        Runs on one connection in a single transaction: either everything is seeded or nothing is.
        """
        members = [
            ("Mark Masila", "0790723609", "2023-01-15"),
            ("Michael Kamote", "0794366274", "2023-01-20"),
            ("Lydia Katungi", "0746792834", "2023-12-15"),
            ("Joel Mwetu", "0796473760", "2023-12-15"),
        ]
        history = [
            ("September", "2025", date(2025, 9, 1)),
            ("October", "2025", date(2025, 10, 1)),
            ("November", "2025", date(2025, 11, 1)),
            ("December", "2025", date(2025, 12, 1)),
        ]
        query = None
        try:
            with self as conn:
                row = conn.execute("SELECT COUNT(*) AS count FROM members").fetchone()
                if row and row["count"] > 0:
                    logger.debug("Members already present, skipping seed.")
                    return False

                logger.info("Seeding database...")
                try:
                    query = "INSERT INTO members (name, phone, status, joined_date) VALUES (?, ?, ?, ?)"
                    conn.executemany(query, [(name, phone, MemberStatus.ACTIVE.value, joined)
                                             for name, phone, joined in members])
                    first_id = conn.execute("SELECT id FROM members WHERE phone = ?",
                                            (members[0][1],)).fetchone()["id"]

                    query = ("INSERT INTO payments (member_id, amount, month, year, date_paid, status) "
                             "VALUES (?, ?, ?, ?, ?, ?)")
                    conn.executemany(query, [(first_id, str(MONTHLY_CONTRIBUTION), month, year,
                                              paid_on.isoformat(), PaymentStatus.PAID.value)
                                             for month, year, paid_on in history])

                    query = "UPDATE members SET total_contributions = ?, last_payment_date = ? WHERE id = ?"
                    total = MONTHLY_CONTRIBUTION * Decimal(len(history))
                    conn.execute(query, (str(total), history[-1][2].isoformat(), first_id))
                    conn.commit()
                except sqlite3.Error:
                    conn.rollback()
                    logger.warning("Seeding failed, changes rolled back.")
                    raise
        except sqlite3.Error as e:
            raise self._translate(query or "seed_demo_data", None, e) from e
        logger.info("Seeding complete.")
        return True
