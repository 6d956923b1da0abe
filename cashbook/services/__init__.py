"""Cashbook Service Layer.

The ledger engine (write path), the monthly aggregator, the limit policy and
read-only reporting.
"""

from cashbook.services.aggregator import MonthlyAggregator
from cashbook.services.ledger_service import LedgerService
from cashbook.services.locks import AccountLockRegistry
from cashbook.services.report_service import ReportService

__all__ = [
    "AccountLockRegistry",
    "LedgerService",
    "MonthlyAggregator",
    "ReportService",
]
