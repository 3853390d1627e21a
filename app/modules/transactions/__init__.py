"""Credit transactions module"""

from .models import CreditTransaction, TransactionStatus, TransactionType
from .service import TransactionsService
from .router import router

__all__ = ["CreditTransaction", "TransactionStatus", "TransactionType", "TransactionsService", "router"]
