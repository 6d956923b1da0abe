"""Schemas module - Pydantic contracts for requests and results."""

from cashbook.schemas.ledger import (
    DeleteResult,
    LedgerErrorCode,
    MonthlyAggregate,
    TransactionRequest,
    TransactionResult,
    UpdateResult,
)
from cashbook.schemas.report import (
    AccountLimitSummary,
    AtmAccount,
    AtmAccountSummary,
    LimitUsage,
    MonthlyReport,
    TodaySummary,
    TransactionHistoryItem,
    TransactionHistoryPage,
    TransactionQueryParams,
)

__all__ = [
    # Ledger
    "LedgerErrorCode",
    "TransactionRequest",
    "TransactionResult",
    "DeleteResult",
    "UpdateResult",
    "MonthlyAggregate",
    # Reports
    "LimitUsage",
    "AccountLimitSummary",
    "TodaySummary",
    "MonthlyReport",
    "AtmAccount",
    "AtmAccountSummary",
    "TransactionQueryParams",
    "TransactionHistoryItem",
    "TransactionHistoryPage",
]
