"""Monthly Aggregator - current-month usage per account.

Sums non-deleted transaction amounts per account and direction over a
calendar month of the ledger timezone. The ledger engine calls it with its own
session while holding the account lock, so the admission decision and the
insert see the same data.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cashbook.core.exceptions import UnknownAccountError
from cashbook.models.account import Account
from cashbook.models.transaction import SourceType, Transaction, TransactionDirection
from cashbook.schemas.ledger import MonthlyAggregate
from cashbook.utils.helpers import month_bounds, utc_now

ZERO = Decimal("0")


def to_decimal(value: Any) -> Decimal:
    """Coerce a SUM() result to Decimal (NULL -> 0)."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class MonthlyAggregator:
    """Computes monthly in/out totals from the live ledger."""

    def __init__(self, db: AsyncSession, timezone: str = "UTC"):
        self.db = db
        self.timezone = timezone

    async def get_monthly_aggregate(
        self,
        account_id: str,
        reference_instant: datetime | None = None,
    ) -> MonthlyAggregate:
        """Get current-month totals for one account.

        Args:
            account_id: Account ID (platform IDs are rejected)
            reference_instant: Any instant inside the month (default: now)

        Returns:
            MonthlyAggregate for the month containing ``reference_instant``

        Raises:
            UnknownAccountError: If ``account_id`` is not an account
        """
        account = await self.db.get(Account, account_id)
        if account is None:
            raise UnknownAccountError(account_id)
        return await self.aggregate(account_id, reference_instant)

    async def aggregate(
        self,
        account_id: str,
        reference_instant: datetime | None = None,
    ) -> MonthlyAggregate:
        """Sum live transactions of an already-verified account."""
        start, end = month_bounds(reference_instant or utc_now(), self.timezone)

        query = (
            select(Transaction.direction, func.sum(Transaction.amount))
            .where(
                Transaction.account_id == account_id,
                Transaction.source_type == SourceType.ACCOUNT,
                Transaction.live(),
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
            .group_by(Transaction.direction)
        )
        result = await self.db.execute(query)
        totals = {direction: to_decimal(total) for direction, total in result.all()}

        return MonthlyAggregate(
            account_id=account_id,
            month_start=start,
            month_end=end,
            current_month_in=totals.get(TransactionDirection.DEPOSIT, ZERO),
            current_month_out=totals.get(TransactionDirection.WITHDRAW, ZERO),
        )

    async def get_monthly_aggregates(
        self,
        reference_instant: datetime | None = None,
    ) -> dict[str, MonthlyAggregate]:
        """Get current-month totals for every account that has any (reporting).

        Accounts with no live transactions in the month are absent.
        """
        start, end = month_bounds(reference_instant or utc_now(), self.timezone)

        query = (
            select(Transaction.account_id, Transaction.direction, func.sum(Transaction.amount))
            .where(
                Transaction.source_type == SourceType.ACCOUNT,
                Transaction.account_id.is_not(None),  # type: ignore[union-attr]
                Transaction.live(),
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
            .group_by(Transaction.account_id, Transaction.direction)
        )
        result = await self.db.execute(query)

        totals: dict[str, dict[TransactionDirection, Decimal]] = defaultdict(dict)
        for account_id, direction, total in result.all():
            totals[account_id][direction] = to_decimal(total)

        return {
            account_id: MonthlyAggregate(
                account_id=account_id,
                month_start=start,
                month_end=end,
                current_month_in=by_direction.get(TransactionDirection.DEPOSIT, ZERO),
                current_month_out=by_direction.get(TransactionDirection.WITHDRAW, ZERO),
            )
            for account_id, by_direction in totals.items()
        }
