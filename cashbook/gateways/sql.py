"""SQL implementation of the reference data gateway."""

import logging
from collections.abc import Awaitable
from decimal import Decimal
from typing import TypeVar

from sqlalchemy import update
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cashbook.core.exceptions import LedgerInvariantError, ReferenceDataUnavailableError
from cashbook.gateways.base import ReferenceDataGateway
from cashbook.models.account import Account
from cashbook.models.game import Game
from cashbook.models.operator import Operator
from cashbook.models.platform import Platform

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlReferenceGateway(ReferenceDataGateway):
    """Reads reference data through the caller's session.

    Sharing the session keeps reads (and the account row lock) inside the
    ledger engine's database transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _guard(self, operation: Awaitable[T], what: str) -> T:
        try:
            return await operation
        except (OperationalError, DBAPIError) as e:
            logger.error(f"Reference data unavailable while loading {what}: {e}")
            raise ReferenceDataUnavailableError(
                f"Could not load {what}", {"error": str(e)}
            ) from e

    async def get_account(self, account_id: str, for_update: bool = False) -> Account | None:
        query = select(Account).where(Account.id == account_id)
        if for_update:
            # Row lock held until commit/rollback (ignored by SQLite)
            query = query.with_for_update()
        result = await self._guard(self.db.execute(query), f"account {account_id}")
        account = result.scalar_one_or_none()
        if account is not None:
            _check_account(account)
        return account

    async def lock_account(self, account_id: str) -> None:
        # No-op write: row lock on MySQL, database write lock on SQLite.
        # Neither opens a read snapshot.
        query = (
            update(Account)
            .where(Account.id == account_id)
            .values(updated_at=Account.updated_at)
        )
        await self._guard(self.db.execute(query), f"lock on account {account_id}")

    async def get_platform(self, platform_id: str) -> Platform | None:
        return await self._guard(self.db.get(Platform, platform_id), f"platform {platform_id}")

    async def get_game(self, game_id: str) -> Game | None:
        return await self._guard(self.db.get(Game, game_id), f"game {game_id}")

    async def get_operator(self, operator_id: str) -> Operator | None:
        return await self._guard(self.db.get(Operator, operator_id), f"operator {operator_id}")

    async def resolve_operator(self, auth_user_id: str) -> str | None:
        query = select(Operator.id).where(
            Operator.auth_user_id == auth_user_id,
            Operator.is_active == True,  # noqa: E712
        )
        result = await self._guard(self.db.execute(query), f"operator for {auth_user_id}")
        return result.scalar_one_or_none()


def _check_account(account: Account) -> None:
    """Reject account rows the limit check cannot reason about."""
    for field in ("monthly_in_limit", "monthly_out_limit"):
        value = getattr(account, field)
        if not isinstance(value, Decimal) or not value.is_finite() or value < 0:
            raise LedgerInvariantError(
                f"Account {account.id} has invalid {field}: {value!r}",
                {"account_id": account.id, "field": field},
            )
