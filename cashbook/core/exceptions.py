"""Cashbook Ledger - Custom exceptions."""

from typing import Any


class CashbookError(Exception):
    """Base exception for all cashbook errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ReferenceDataUnavailableError(CashbookError):
    """Reference data could not be read (transient store failure)."""

    pass


class UnknownAccountError(CashbookError, ValueError):
    """Monthly aggregation requested for something that is not an account."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account {account_id} not found", {"account_id": account_id})


class LedgerInvariantError(CashbookError):
    """Stored data violates an invariant the ledger relies on.

    This is a programming/data error, not a user-facing outcome.
    """

    pass


class LockTimeoutError(CashbookError):
    """Timed out waiting for an account lock."""

    def __init__(self, account_id: str, timeout: float) -> None:
        super().__init__(
            f"Timed out after {timeout}s waiting for account {account_id}",
            {"account_id": account_id, "timeout": timeout},
        )
