"""
Services layer - Application business logic

Services raise terravest.services.exceptions.AppError subclasses and own
their transaction scope through terravest.services.ledger.ledger_transaction.
"""

from terravest.services.exceptions import (
    AppError,
    ForbiddenError,
    InsufficientFundsError,
    InvalidStateError,
    KycRequiredError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from terravest.services.ledger import (
    credit_wallet,
    debit_wallet,
    get_wallet,
    ledger_transaction,
)

__all__ = [
    # Errors
    "AppError",
    "ForbiddenError",
    "InsufficientFundsError",
    "InvalidStateError",
    "KycRequiredError",
    "NotFoundError",
    "UnauthorizedError",
    "ValidationError",
    # Ledger
    "credit_wallet",
    "debit_wallet",
    "get_wallet",
    "ledger_transaction",
]
