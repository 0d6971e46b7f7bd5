# chama_loans/__init__.py
"""Loan eligibility, amortization and lifecycle engine for a savings group."""

__version__ = "0.1.0"
