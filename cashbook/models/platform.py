"""Cashbook Ledger - Platform model."""

from datetime import datetime
from decimal import Decimal

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from cashbook.models.account import SourceStatus, generate_id
from cashbook.utils.helpers import utc_now


class Platform(SQLModel, table=True):
    """Third-party payment platform - uncapped funding source.

    Platform transactions bypass monthly limit checks entirely.
    ``balance`` is informational and never maintained by the ledger.
    """

    __tablename__ = "platforms"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    name: str = Field(max_length=100, index=True)
    tag: str | None = Field(default=None, max_length=50)
    deposit_url: str | None = Field(default=None, max_length=500)
    withdraw_url: str | None = Field(default=None, max_length=500)
    balance: Decimal = Field(
        default=Decimal("0"),
        sa_column=sa.Column(sa.DECIMAL(32, 8), nullable=False, default=Decimal("0")),
        description="Informational balance",
    )
    status: SourceStatus = Field(default=SourceStatus.ACTIVE, index=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None, index=True)
    deleted_by: str | None = Field(default=None, max_length=36)

    @property
    def is_usable(self) -> bool:
        return self.status == SourceStatus.ACTIVE and self.deleted_at is None
