"""Cashbook Ledger - Transaction model.

Transactions are append-mostly ledger entries. They are never physically
removed: a soft delete sets ``deleted_at`` / ``deleted_by`` and the row drops
out of every aggregate and report. All such queries filter through
``Transaction.live()``.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import Field, SQLModel

from cashbook.models.account import generate_id
from cashbook.utils.helpers import utc_now


class TransactionDirection(str, Enum):
    """Direction of a cash movement."""

    DEPOSIT = "deposit"  # inflow
    WITHDRAW = "withdraw"  # outflow


class SourceType(str, Enum):
    """Kind of funding source a transaction moves through."""

    ACCOUNT = "account"
    PLATFORM = "platform"


class WithdrawSubtype(str, Enum):
    """Withdrawal subtype (only meaningful for account withdrawals)."""

    NORMAL = "normal"
    ATM = "atm"


class Transaction(SQLModel, table=True):
    """Ledger entry.

    Attributes:
        id: UUID primary key
        direction: deposit or withdraw
        amount: Always positive; direction encodes the sign
        source_type: account or platform
        account_id: Set iff source_type = account
        platform_id: Set iff source_type = platform
        game_id: Game the movement is attributed to
        withdraw_subtype: normal or atm
        notes: Free text
        operator_id: Actor of record

        created_at: Ordering and month-bucketing timestamp (naive UTC)
        deleted_at: Soft-delete marker
        deleted_by: Operator who soft-deleted the entry
    """

    __tablename__ = "transactions"
    __table_args__ = (
        sa.Index("ix_transactions_account_id_created_at", "account_id", "created_at"),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    direction: TransactionDirection = Field(index=True)
    amount: Decimal = Field(
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False),
        description="Positive amount",
    )
    source_type: SourceType = Field(index=True)
    account_id: str | None = Field(default=None, foreign_key="accounts.id", max_length=36)
    platform_id: str | None = Field(
        default=None, foreign_key="platforms.id", index=True, max_length=36
    )
    game_id: str | None = Field(default=None, foreign_key="games.id", index=True, max_length=36)
    withdraw_subtype: WithdrawSubtype = Field(default=WithdrawSubtype.NORMAL)
    notes: str | None = Field(default=None, max_length=1000)
    operator_id: str = Field(foreign_key="operators.id", index=True, max_length=36)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None, index=True)
    deleted_by: str | None = Field(default=None, foreign_key="operators.id", max_length=36)

    @classmethod
    def live(cls) -> ColumnElement[bool]:
        """Filter clause selecting non-deleted transactions."""
        return cls.deleted_at.is_(None)  # type: ignore[union-attr]

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
