"""Report schemas - read-only views over the ledger."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from cashbook.models.account import AccountType, SourceStatus
from cashbook.models.transaction import SourceType, TransactionDirection, WithdrawSubtype


class LimitUsage(BaseModel):
    """Usage of one monthly cap."""

    model_config = ConfigDict(frozen=True)

    current: Decimal
    limit: Decimal
    remaining: Decimal
    percentage: int
    is_near: bool
    is_critical: bool


class AccountLimitSummary(BaseModel):
    """Account with its current-month totals and cap usage."""

    id: str
    nickname: str
    tag: str | None = None
    type: AccountType
    status: SourceStatus
    atm_withdrawal_enabled: bool

    monthly_in_limit: Decimal
    monthly_out_limit: Decimal
    current_month_in: Decimal
    current_month_out: Decimal

    inflow: LimitUsage
    outflow: LimitUsage

    @property
    def is_near_limit(self) -> bool:
        return self.inflow.is_near or self.outflow.is_near


class TodaySummary(BaseModel):
    """Totals for the current ledger day."""

    date: str
    today_deposits: Decimal
    today_withdrawals: Decimal
    today_net: Decimal
    transaction_count: int


class MonthlyReport(BaseModel):
    """Totals for one ledger month."""

    month: str  # e.g. "2026-02"
    total_deposits: Decimal
    total_withdrawals: Decimal
    total_atm_withdrawals: Decimal
    net_flow: Decimal  # deposits - withdrawals
    current_holding: Decimal  # active accounts: initial balance + this month's in - out
    transaction_count: int


class AtmAccount(BaseModel):
    """Account that may record ATM withdrawals."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    nickname: str
    tag: str | None = None


class AtmAccountSummary(BaseModel):
    """All-time ATM withdrawal totals for one account."""

    account_id: str
    nickname: str
    tag: str | None = None
    total_withdrawals: Decimal
    withdrawal_count: int
    last_withdrawal_at: datetime | None = None


class TransactionQueryParams(BaseModel):
    """Filters for transaction history."""

    direction: TransactionDirection | None = None
    source_type: SourceType | None = None
    withdraw_subtype: WithdrawSubtype | None = None
    account_id: str | None = None
    platform_id: str | None = None
    game_id: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = Field(default=1, ge=1)
    page_size: int | None = Field(default=None, ge=1, le=500)


class TransactionHistoryItem(BaseModel):
    """Transaction row joined with display names."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    direction: TransactionDirection
    amount: Decimal
    source_type: SourceType
    account_id: str | None = None
    platform_id: str | None = None
    game_id: str | None = None
    withdraw_subtype: WithdrawSubtype
    notes: str | None = None
    operator_id: str
    created_at: datetime

    # Joined fields
    account_nickname: str | None = None
    platform_name: str | None = None
    game_name: str | None = None
    game_tag: str | None = None
    operator_name: str | None = None


class TransactionHistoryPage(BaseModel):
    """Paginated transaction history."""

    items: list[TransactionHistoryItem]
    total: int
    page: int
    page_size: int
