# chama_loans/presentation/__init__.py
