# chama_loans/business_logic/__init__.py
# Managers are imported from their modules; importing them here would cycle through data_access.
from . import loan_calculator, loan_lifecycle
