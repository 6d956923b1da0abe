"""Cashbook Ledger - Game model."""

from datetime import datetime

from sqlmodel import Field, SQLModel

from cashbook.models.account import SourceStatus, generate_id
from cashbook.utils.helpers import utc_now


class Game(SQLModel, table=True):
    """Game / channel a transaction is attributed to (reporting only)."""

    __tablename__ = "games"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    name: str = Field(max_length=100, index=True)
    tag: str = Field(max_length=20)
    status: SourceStatus = Field(default=SourceStatus.ACTIVE)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = Field(default=None)

    @property
    def is_usable(self) -> bool:
        return self.status == SourceStatus.ACTIVE and self.deleted_at is None
