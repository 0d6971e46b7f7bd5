# chama_loans/config.py

import os
import logging
import logging.config
from decimal import Decimal, InvalidOperation


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_decimal(name: str, default: str) -> Decimal:
    value = os.environ.get(name, default)
    try:
        parsed = Decimal(value.strip())
    except InvalidOperation:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if not parsed.is_finite() or parsed <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return parsed


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        raise ValueError(f"{name} must be a whole number, got {value!r}") from None
    if parsed < 1:
        raise ValueError(f"{name} must be at least 1, got {value!r}")
    return parsed


# --- Database Configuration ---
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__))) # chama-loans/chama_loans/ -> chama-loans/
DATA_DIR = os.path.join(BASE_DIR, "data")
DB_NAME = "chama_loans.db"
DATABASE_PATH = os.environ.get("CHAMA_DB_PATH", os.path.join(DATA_DIR, DB_NAME))

# --- Logging Configuration ---
LOGS_DIR = os.environ.get("CHAMA_LOG_DIR", os.path.join(BASE_DIR, "logs"))
LOG_FILE_NAME = "app.log"
LOG_FILE_PATH = os.path.join(LOGS_DIR, LOG_FILE_NAME)
LOG_LEVEL = os.environ.get("CHAMA_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': LOG_FORMAT,
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'level': LOG_LEVEL,
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': LOG_FILE_PATH,
            'maxBytes': 1024*1024*5,  # 5 MB
            'backupCount': 5,
            'level': logging.INFO,
            'encoding': 'utf-8',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': logging.DEBUG,
    },
}


def configure_logging() -> None:
    """Creates the data and log directories and applies LOGGING_CONFIG."""
    for directory in (DATA_DIR, LOGS_DIR):
        if not os.path.exists(directory):
            os.makedirs(directory)
    logging.config.dictConfig(LOGGING_CONFIG)


# --- Loan Policy (defaults, overridable per LoanManager through LoanPolicy) ---
CURRENCY = "KSh"
MAX_LOAN_AMOUNT = _env_decimal("CHAMA_MAX_LOAN_AMOUNT", "50000")
DEFAULT_DURATION_MONTHS = 3
MAX_DURATION_MONTHS = _env_int("CHAMA_MAX_DURATION_MONTHS", 120) # ten years
MONTHLY_INTEREST_RATE = Decimal("0.10")
DEFAULT_INTEREST_RATE_PERCENT = Decimal("10.00")
FLAT_INTEREST_MULTIPLIER = Decimal("1.3") # principal + 30%, the legacy remaining-amount rule
ELIGIBILITY_MIN_PAID_PAYMENTS = 3
ELIGIBILITY_WINDOW_MONTHS = 3

# "amortization" derives remaining_amount from the repayment schedule, "flat" uses FLAT_INTEREST_MULTIPLIER
REMAINING_AMOUNT_BASIS = os.environ.get("CHAMA_REMAINING_AMOUNT_BASIS", "amortization")

# Off by default: the group runs on trust and never checked these
STRICT_MEMBER_VALIDATION = _env_flag("CHAMA_STRICT_MEMBER_VALIDATION", False)
ONE_PENDING_LOAN_PER_MEMBER = _env_flag("CHAMA_ONE_PENDING_LOAN_PER_MEMBER", False)

MONTHLY_CONTRIBUTION = Decimal("600")
