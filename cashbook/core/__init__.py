"""Core module - configuration and exceptions."""

from cashbook.core.config import Settings, get_settings
from cashbook.core.exceptions import (
    CashbookError,
    LedgerInvariantError,
    LockTimeoutError,
    ReferenceDataUnavailableError,
    UnknownAccountError,
)

__all__ = [
    "Settings",
    "get_settings",
    "CashbookError",
    "LedgerInvariantError",
    "LockTimeoutError",
    "ReferenceDataUnavailableError",
    "UnknownAccountError",
]
