"""Cashbook Ledger - Account model.

Accounts are capped funding sources: every non-deleted transaction against an
account counts toward its monthly inflow or outflow total.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from cashbook.utils.helpers import utc_now


def generate_id() -> str:
    """Generate a UUID4 string primary key."""
    return str(uuid.uuid4())


class AccountType(str, Enum):
    """Account type."""

    HOLDING = "holding"
    PAYING = "paying"


class SourceStatus(str, Enum):
    """Lifecycle status shared by accounts, platforms and games."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Account(SQLModel, table=True):
    """Account - funding source with monthly in/out caps.

    Attributes:
        id: UUID primary key
        nickname: Display name
        tag: Optional short label
        type: holding or paying
        status: active or inactive

        monthly_in_limit: Cap on deposits per calendar month (0 = no headroom)
        monthly_out_limit: Cap on withdrawals per calendar month (0 = no headroom)
        atm_withdrawal_enabled: Whether ATM withdrawals are allowed
        initial_balance: Informational opening balance, not maintained by the ledger

        deleted_at: Soft-delete timestamp
        deleted_by: Operator who soft-deleted the account
    """

    __tablename__ = "accounts"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    nickname: str = Field(max_length=100, index=True)
    tag: str | None = Field(default=None, max_length=50)
    type: AccountType = Field(default=AccountType.HOLDING)
    status: SourceStatus = Field(default=SourceStatus.ACTIVE, index=True)

    monthly_in_limit: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
        description="Monthly deposit cap",
    )
    monthly_out_limit: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
        description="Monthly withdrawal cap",
    )
    atm_withdrawal_enabled: bool = Field(default=False)
    initial_balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
        description="Informational opening balance",
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None, index=True)
    deleted_by: str | None = Field(default=None, max_length=36)

    @property
    def is_usable(self) -> bool:
        """Whether the account may be the target of a new transaction."""
        return self.status == SourceStatus.ACTIVE and self.deleted_at is None
