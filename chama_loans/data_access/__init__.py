# chama_loans/data_access/__init__.py

from .database_manager import DatabaseManager
from .base_repository import BaseRepository

from .members_repository import MembersRepository
from .payments_repository import PaymentsRepository
from .loans_repository import LoansRepository
