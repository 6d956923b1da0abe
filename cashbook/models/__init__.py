"""Models module - SQLModel database entities."""

from cashbook.models.account import Account, AccountType, SourceStatus, generate_id
from cashbook.models.game import Game
from cashbook.models.operator import Operator, OperatorRole
from cashbook.models.platform import Platform
from cashbook.models.transaction import (
    SourceType,
    Transaction,
    TransactionDirection,
    WithdrawSubtype,
)

__all__ = [
    # Reference data
    "Account",
    "AccountType",
    "SourceStatus",
    "Platform",
    "Game",
    "Operator",
    "OperatorRole",
    # Ledger
    "Transaction",
    "TransactionDirection",
    "SourceType",
    "WithdrawSubtype",
    "generate_id",
]
