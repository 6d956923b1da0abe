"""Cashbook Ledger - Operator model."""

from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from cashbook.models.account import generate_id
from cashbook.utils.helpers import utc_now


class OperatorRole(str, Enum):
    """Operator roles for screen access control."""

    ADMIN = "admin"
    OPERATOR = "operator"


class Operator(SQLModel, table=True):
    """Operator - actor of record for every transaction.

    Attributes:
        id: UUID primary key
        auth_user_id: Identifier issued by the external identity provider
        name: Display name
        role: admin or operator (screen access only, no ledger effect)
        is_active: Disabled operators cannot record or delete transactions
    """

    __tablename__ = "operators"

    id: str = Field(default_factory=generate_id, primary_key=True, max_length=36)
    auth_user_id: str = Field(max_length=255, unique=True, index=True)
    name: str = Field(max_length=100)
    role: OperatorRole = Field(default=OperatorRole.OPERATOR)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
