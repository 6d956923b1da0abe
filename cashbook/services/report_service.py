"""Report Service - read-only views over the ledger.

Nothing here writes or enforces limits. Every transaction query filters
through ``Transaction.live()`` so soft-deleted entries never show up.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from cashbook.core.config import get_settings
from cashbook.models.account import Account, SourceStatus
from cashbook.models.game import Game
from cashbook.models.operator import Operator
from cashbook.models.platform import Platform
from cashbook.models.transaction import SourceType, Transaction, TransactionDirection, WithdrawSubtype
from cashbook.schemas.ledger import MonthlyAggregate
from cashbook.schemas.report import (
    AccountLimitSummary,
    AtmAccount,
    AtmAccountSummary,
    MonthlyReport,
    TodaySummary,
    TransactionHistoryItem,
    TransactionHistoryPage,
    TransactionQueryParams,
)
from cashbook.services import limit_policy
from cashbook.services.aggregator import ZERO, MonthlyAggregator, to_decimal
from cashbook.utils.helpers import (
    day_bounds,
    local_date,
    month_bounds,
    month_bounds_for,
    month_key,
    to_storage_utc,
    utc_now,
)


class ReportService:
    """Service for dashboard and history queries."""

    def __init__(
        self,
        db: AsyncSession,
        timezone: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.timezone = timezone or get_settings().ledger_timezone
        self.clock = clock or utc_now

    # =========================================================================
    # Account limits
    # =========================================================================

    async def list_account_summaries(
        self,
        reference_instant: datetime | None = None,
    ) -> list[AccountLimitSummary]:
        """List non-deleted accounts with current-month totals and cap usage."""
        reference = reference_instant or self.clock()
        start, end = month_bounds(reference, self.timezone)

        result = await self.db.execute(
            select(Account).where(Account.deleted_at.is_(None)).order_by(Account.nickname)  # type: ignore[union-attr]
        )
        accounts = result.scalars().all()
        aggregates = await MonthlyAggregator(self.db, self.timezone).get_monthly_aggregates(reference)

        summaries = []
        for account in accounts:
            aggregate = aggregates.get(account.id) or MonthlyAggregate(
                account_id=account.id, month_start=start, month_end=end
            )
            summaries.append(
                AccountLimitSummary(
                    id=account.id,
                    nickname=account.nickname,
                    tag=account.tag,
                    type=account.type,
                    status=account.status,
                    atm_withdrawal_enabled=account.atm_withdrawal_enabled,
                    monthly_in_limit=account.monthly_in_limit,
                    monthly_out_limit=account.monthly_out_limit,
                    current_month_in=aggregate.current_month_in,
                    current_month_out=aggregate.current_month_out,
                    inflow=limit_policy.usage(aggregate.current_month_in, account.monthly_in_limit),
                    outflow=limit_policy.usage(aggregate.current_month_out, account.monthly_out_limit),
                )
            )
        return summaries

    async def list_near_limit_accounts(
        self,
        reference_instant: datetime | None = None,
    ) -> list[AccountLimitSummary]:
        """Active accounts at or above the near-limit threshold in either direction."""
        summaries = await self.list_account_summaries(reference_instant)
        return [s for s in summaries if s.status == SourceStatus.ACTIVE and s.is_near_limit]

    # =========================================================================
    # Totals
    # =========================================================================

    async def _totals_by_direction(
        self,
        start: datetime,
        end: datetime,
    ) -> tuple[dict[TransactionDirection, Decimal], int]:
        query = (
            select(Transaction.direction, func.sum(Transaction.amount), func.count())
            .where(
                Transaction.live(),
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
            .group_by(Transaction.direction)
        )
        result = await self.db.execute(query)
        totals: dict[TransactionDirection, Decimal] = {}
        count = 0
        for direction, total, rows in result.all():
            totals[direction] = to_decimal(total)
            count += rows
        return totals, count

    async def get_today_summary(self, reference_instant: datetime | None = None) -> TodaySummary:
        """Deposits, withdrawals and net for the ledger day containing ``reference_instant``."""
        reference = reference_instant or self.clock()
        start, end = day_bounds(reference, self.timezone)
        totals, count = await self._totals_by_direction(start, end)

        deposits = totals.get(TransactionDirection.DEPOSIT, ZERO)
        withdrawals = totals.get(TransactionDirection.WITHDRAW, ZERO)
        return TodaySummary(
            date=local_date(reference, self.timezone),
            today_deposits=deposits,
            today_withdrawals=withdrawals,
            today_net=deposits - withdrawals,
            transaction_count=count,
        )

    async def get_monthly_report(
        self,
        year: int | None = None,
        month: int | None = None,
    ) -> MonthlyReport:
        """Totals for a ledger month (default: current month).

        ATM withdrawals are included in ``total_withdrawals`` and also broken
        out in ``total_atm_withdrawals``.
        """
        if year is None or month is None:
            start, end = month_bounds(self.clock(), self.timezone)
        else:
            start, end = month_bounds_for(year, month, self.timezone)
        key = month_key(start, self.timezone)

        totals, count = await self._totals_by_direction(start, end)

        atm_result = await self.db.execute(
            select(func.sum(Transaction.amount)).where(
                Transaction.live(),
                Transaction.direction == TransactionDirection.WITHDRAW,
                Transaction.withdraw_subtype == WithdrawSubtype.ATM,
                Transaction.created_at >= start,
                Transaction.created_at < end,
            )
        )

        deposits = totals.get(TransactionDirection.DEPOSIT, ZERO)
        withdrawals = totals.get(TransactionDirection.WITHDRAW, ZERO)
        return MonthlyReport(
            month=key,
            total_deposits=deposits,
            total_withdrawals=withdrawals,
            total_atm_withdrawals=to_decimal(atm_result.scalar()),
            net_flow=deposits - withdrawals,
            current_holding=await self._current_holding(),
            transaction_count=count,
        )

    async def _current_holding(self) -> Decimal:
        """Initial balance plus this month's net flow, over active accounts."""
        result = await self.db.execute(
            select(Account.id, Account.initial_balance).where(
                Account.status == SourceStatus.ACTIVE,
                Account.deleted_at.is_(None),  # type: ignore[union-attr]
            )
        )
        accounts = result.all()
        aggregates = await MonthlyAggregator(self.db, self.timezone).get_monthly_aggregates(self.clock())

        holding = ZERO
        for account_id, initial_balance in accounts:
            holding += to_decimal(initial_balance)
            aggregate = aggregates.get(account_id)
            if aggregate is not None:
                holding += aggregate.current_month_in - aggregate.current_month_out
        return holding

    async def list_available_months(self) -> list[str]:
        """Month keys from the current month back to the earliest live transaction.

        Newest first. Always contains at least the current month.
        """
        result = await self.db.execute(select(func.min(Transaction.created_at)).where(Transaction.live()))
        earliest = result.scalar()

        cursor = self.clock()
        months = [month_key(cursor, self.timezone)]
        if earliest is None:
            return months

        earliest_key = month_key(earliest, self.timezone)
        while months[-1] > earliest_key:
            start, _ = month_bounds(cursor, self.timezone)
            cursor = start - timedelta(microseconds=1)
            months.append(month_key(cursor, self.timezone))
        return months

    # =========================================================================
    # History
    # =========================================================================

    async def list_transactions(self, params: TransactionQueryParams) -> TransactionHistoryPage:
        """List live transactions with filters and pagination, newest first."""
        query = (
            select(
                Transaction,
                Account.nickname.label("account_nickname"),
                Platform.name.label("platform_name"),
                Game.name.label("game_name"),
                Game.tag.label("game_tag"),
                Operator.name.label("operator_name"),
            )
            .outerjoin(Account, Transaction.account_id == Account.id)
            .outerjoin(Platform, Transaction.platform_id == Platform.id)
            .outerjoin(Game, Transaction.game_id == Game.id)
            .outerjoin(Operator, Transaction.operator_id == Operator.id)
            .where(Transaction.live())
        )

        # Apply filters
        if params.direction:
            query = query.where(Transaction.direction == params.direction)
        if params.withdraw_subtype:
            query = query.where(Transaction.withdraw_subtype == params.withdraw_subtype)
        if params.source_type:
            query = query.where(Transaction.source_type == params.source_type)
        if params.account_id:
            query = query.where(Transaction.account_id == params.account_id)
        if params.platform_id:
            query = query.where(Transaction.platform_id == params.platform_id)
        if params.game_id:
            query = query.where(Transaction.game_id == params.game_id)
        if params.start_date:
            query = query.where(Transaction.created_at >= to_storage_utc(params.start_date))
        if params.end_date:
            query = query.where(Transaction.created_at <= to_storage_utc(params.end_date))

        # Count total
        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar() or 0

        # Apply pagination and ordering
        page_size = params.page_size or get_settings().history_page_size
        query = query.order_by(Transaction.created_at.desc())  # type: ignore[attr-defined]
        query = query.offset((params.page - 1) * page_size).limit(page_size)

        result = await self.db.execute(query)

        items = []
        for record, nickname, platform_name, game_name, game_tag, operator_name in result.all():
            item = TransactionHistoryItem.model_validate(record)
            items.append(
                item.model_copy(
                    update={
                        "account_nickname": nickname,
                        "platform_name": platform_name,
                        "game_name": game_name,
                        "game_tag": game_tag,
                        "operator_name": operator_name,
                    }
                )
            )

        return TransactionHistoryPage(items=items, total=total, page=params.page, page_size=page_size)

    # =========================================================================
    # ATM withdrawals
    # =========================================================================

    async def list_atm_enabled_accounts(self) -> list[AtmAccount]:
        """Active, non-deleted accounts that allow ATM withdrawals."""
        result = await self.db.execute(
            select(Account)
            .where(
                Account.atm_withdrawal_enabled == True,  # noqa: E712
                Account.status == SourceStatus.ACTIVE,
                Account.deleted_at.is_(None),  # type: ignore[union-attr]
            )
            .order_by(Account.nickname)
        )
        return [AtmAccount.model_validate(account) for account in result.scalars().all()]

    async def list_atm_withdrawals(
        self,
        account_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> TransactionHistoryPage:
        """Live ATM withdrawals, newest first."""
        return await self.list_transactions(
            TransactionQueryParams(
                direction=TransactionDirection.WITHDRAW,
                source_type=SourceType.ACCOUNT,
                withdraw_subtype=WithdrawSubtype.ATM,
                account_id=account_id,
                start_date=start_date,
                end_date=end_date,
                page=page,
                page_size=page_size,
            )
        )

    async def get_atm_summary_by_account(self) -> list[AtmAccountSummary]:
        """All-time ATM total, count and latest withdrawal per account."""
        query = (
            select(
                Account.id,
                Account.nickname,
                Account.tag,
                func.sum(Transaction.amount),
                func.count(),
                func.max(Transaction.created_at),
            )
            .select_from(Transaction)
            .join(Account, Transaction.account_id == Account.id)
            .where(
                Transaction.live(),
                Transaction.direction == TransactionDirection.WITHDRAW,
                Transaction.withdraw_subtype == WithdrawSubtype.ATM,
            )
            .group_by(Account.id, Account.nickname, Account.tag)
            .order_by(Account.nickname)
        )
        result = await self.db.execute(query)

        return [
            AtmAccountSummary(
                account_id=account_id,
                nickname=nickname,
                tag=tag,
                total_withdrawals=to_decimal(total),
                withdrawal_count=count,
                last_withdrawal_at=last_at,
            )
            for account_id, nickname, tag, total, count, last_at in result.all()
        ]
