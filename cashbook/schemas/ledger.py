"""Ledger schemas - Request/Result contracts for the ledger engine."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from cashbook.models.transaction import SourceType, TransactionDirection, WithdrawSubtype


class LedgerErrorCode(str, Enum):
    """Structured rejection kinds returned by the ledger engine."""

    # Validation - malformed request
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_SOURCE = "INVALID_SOURCE"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"

    # State - reference data changed since the client last looked
    SOURCE_NOT_FOUND = "SOURCE_NOT_FOUND"
    SOURCE_INACTIVE = "SOURCE_INACTIVE"
    INVALID_GAME = "INVALID_GAME"
    ATM_NOT_ENABLED = "ATM_NOT_ENABLED"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"

    # Policy
    MONTHLY_IN_LIMIT_EXCEEDED = "MONTHLY_IN_LIMIT_EXCEEDED"
    MONTHLY_OUT_LIMIT_EXCEEDED = "MONTHLY_OUT_LIMIT_EXCEEDED"

    # Authorization
    UNAUTHORIZED = "UNAUTHORIZED"

    # Infrastructure
    DATABASE_ERROR = "DATABASE_ERROR"


class TransactionRequest(BaseModel):
    """Proposed cash movement.

    Amount and source consistency are deliberately not validated here: the
    engine reports them as ``INVALID_AMOUNT`` / ``INVALID_SOURCE`` results.
    """

    direction: TransactionDirection
    amount: Decimal
    source_type: SourceType
    account_id: str | None = None
    platform_id: str | None = None
    game_id: str | None = None
    withdraw_subtype: WithdrawSubtype | None = WithdrawSubtype.NORMAL
    notes: str | None = Field(default=None, max_length=1000)
    operator_id: str


class TransactionResult(BaseModel):
    """Outcome of ``record_transaction``."""

    success: bool
    transaction_id: str | None = None
    error: LedgerErrorCode | None = None
    message: str

    # Limit context (MONTHLY_*_LIMIT_EXCEEDED only)
    current_total: Decimal | None = None
    limit: Decimal | None = None
    remaining: Decimal | None = None
    requested: Decimal | None = None

    @classmethod
    def ok(cls, transaction_id: str, message: str = "Transaction recorded") -> "TransactionResult":
        return cls(success=True, transaction_id=transaction_id, message=message)

    @classmethod
    def reject(cls, error: LedgerErrorCode, message: str, **context: Decimal) -> "TransactionResult":
        return cls(success=False, error=error, message=message, **context)


class DeleteResult(BaseModel):
    """Outcome of ``soft_delete_transaction``."""

    success: bool
    error: LedgerErrorCode | None = None
    message: str


class UpdateResult(BaseModel):
    """Outcome of ``update_transaction_details``."""

    success: bool
    error: LedgerErrorCode | None = None
    message: str


class MonthlyAggregate(BaseModel):
    """Current-month usage of one account, split by direction."""

    model_config = ConfigDict(frozen=True)

    account_id: str
    month_start: datetime
    month_end: datetime
    current_month_in: Decimal = Decimal("0")
    current_month_out: Decimal = Decimal("0")

    def total_for(self, direction: TransactionDirection) -> Decimal:
        if direction == TransactionDirection.DEPOSIT:
            return self.current_month_in
        return self.current_month_out
