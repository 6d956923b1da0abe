"""Ledger Service - transactional write path with monthly limit enforcement."""

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal, InvalidOperation, localcontext

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cashbook.core.config import Settings, get_settings
from cashbook.core.exceptions import (
    LedgerInvariantError,
    LockTimeoutError,
    ReferenceDataUnavailableError,
)
from cashbook.gateways.base import ReferenceDataGateway
from cashbook.gateways.sql import SqlReferenceGateway
from cashbook.models.account import Account
from cashbook.models.transaction import (
    SourceType,
    Transaction,
    TransactionDirection,
    WithdrawSubtype,
)
from cashbook.schemas.ledger import (
    DeleteResult,
    LedgerErrorCode,
    MonthlyAggregate,
    TransactionRequest,
    TransactionResult,
    UpdateResult,
)
from cashbook.services import limit_policy
from cashbook.services.aggregator import MonthlyAggregator
from cashbook.services.locks import AccountLockRegistry, account_locks
from cashbook.utils.helpers import month_bounds, to_storage_utc, utc_now

logger = logging.getLogger(__name__)

# DECIMAL(32, 8)
AMOUNT_SCALE = Decimal("1e-8")
AMOUNT_MAX = Decimal("1e24")

_UNSET = object()


class LedgerService:
    """Records and soft-deletes ledger transactions.

    Every public method returns a result object; user-facing failures are never
    raised. Each call owns its database transaction, so the service takes a
    session factory instead of a session.

    Account-sourced writes run the aggregate read and the insert inside one
    database transaction while holding both the account's in-process lock and
    a database write lock on the account. The in-process lock is shared by
    every service in the process unless one is injected. The database lock is
    the transaction's first statement, so it serializes separate processes
    and every later read (the aggregate included) sees the previous holder's
    committed insert.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        *,
        locks: AccountLockRegistry | None = None,
        clock: Callable[[], datetime] | None = None,
        settings: Settings | None = None,
        gateway_factory: Callable[[AsyncSession], ReferenceDataGateway] = SqlReferenceGateway,
    ):
        if session_factory is None:
            from cashbook.db.engine import async_session_factory

            session_factory = async_session_factory
        settings = settings or get_settings()

        self.session_factory = session_factory
        self.locks = locks if locks is not None else account_locks
        self.clock = clock or utc_now
        self.gateway_factory = gateway_factory
        self.timezone = settings.ledger_timezone
        self.lock_timeout = settings.ledger_lock_timeout_seconds
        self.strict_invariants = settings.debug

    def _now(self) -> datetime:
        return to_storage_utc(self.clock())

    # =========================================================================
    # record_transaction
    # =========================================================================

    async def record_transaction(self, request: TransactionRequest) -> TransactionResult:
        """Validate a proposed movement and persist it if it fits the account's cap.

        Validation order (first failure wins):
            1. amount             -> INVALID_AMOUNT
            2. source reference   -> INVALID_SOURCE
            3. operator           -> UNAUTHORIZED
            4. source state       -> SOURCE_NOT_FOUND / SOURCE_INACTIVE
            5. game               -> INVALID_GAME
            6. ATM gate           -> ATM_NOT_ENABLED
            7. monthly cap        -> MONTHLY_IN_LIMIT_EXCEEDED / MONTHLY_OUT_LIMIT_EXCEEDED

        The operator is checked before any reference data is read so an
        unauthenticated caller cannot learn which accounts exist.

        Args:
            request: Proposed movement

        Returns:
            TransactionResult with ``transaction_id`` on success, or ``error``
            (plus limit context for cap rejections)
        """
        rejection = self._validate_request(request)
        if rejection is not None:
            logger.warning(f"Rejected transaction request: {rejection.error.value} - {rejection.message}")
            return rejection

        try:
            if request.source_type == SourceType.ACCOUNT:
                async with self.locks.hold(request.account_id, timeout=self.lock_timeout):
                    result = await self._record(request)
            else:
                result = await self._record(request)
        except LockTimeoutError as e:
            logger.error(f"Transaction not recorded: {e.message}")
            return TransactionResult.reject(
                LedgerErrorCode.DATABASE_ERROR,
                "Account is busy, please retry",
            )
        except (ReferenceDataUnavailableError, SQLAlchemyError) as e:
            logger.exception(f"Database error while recording transaction: {e}")
            return TransactionResult.reject(LedgerErrorCode.DATABASE_ERROR, "Database error, please retry")
        except LedgerInvariantError as e:
            if self.strict_invariants:
                raise
            logger.exception(f"Ledger invariant violated: {e.message}")
            return TransactionResult.reject(LedgerErrorCode.DATABASE_ERROR, "Internal data error")

        if result.success:
            logger.info(
                f"Recorded {request.direction.value} of {request.amount} via "
                f"{request.source_type.value} {request.account_id or request.platform_id} "
                f"- transaction {result.transaction_id}"
            )
        else:
            logger.warning(f"Rejected transaction: {result.error.value} - {result.message}")
        return result

    def _validate_request(self, request: TransactionRequest) -> TransactionResult | None:
        """Checks that need no data access (steps 1-2)."""
        amount = request.amount
        if not isinstance(amount, Decimal) or not amount.is_finite() or amount <= 0:
            return TransactionResult.reject(
                LedgerErrorCode.INVALID_AMOUNT, "Amount must be greater than 0"
            )
        if amount >= AMOUNT_MAX or not _fits_scale(amount):
            return TransactionResult.reject(
                LedgerErrorCode.INVALID_AMOUNT,
                "Amount is out of range or has more than 8 decimal places",
            )

        has_account = bool(request.account_id)
        has_platform = bool(request.platform_id)
        if request.source_type == SourceType.ACCOUNT:
            valid_source = has_account and not has_platform
        else:
            valid_source = has_platform and not has_account
        if not valid_source:
            return TransactionResult.reject(
                LedgerErrorCode.INVALID_SOURCE,
                f"Exactly one {request.source_type.value} ID is required",
            )
        return None

    async def _record(self, request: TransactionRequest) -> TransactionResult:
        now = self._now()
        async with self.session_factory() as db:
            async with db.begin():
                gateway = self.gateway_factory(db)
                if request.source_type == SourceType.ACCOUNT:
                    # Before any read: a snapshot taken earlier would hide the last insert
                    await gateway.lock_account(request.account_id)

                if not await self._is_active_operator(gateway, request.operator_id):
                    return TransactionResult.reject(LedgerErrorCode.UNAUTHORIZED, "Not authenticated")

                withdraw_subtype = WithdrawSubtype.NORMAL
                if request.source_type == SourceType.ACCOUNT:
                    account = await gateway.get_account(request.account_id, for_update=True)
                    if account is None:
                        return TransactionResult.reject(
                            LedgerErrorCode.SOURCE_NOT_FOUND, "Account not found"
                        )
                    if not account.is_usable:
                        return TransactionResult.reject(
                            LedgerErrorCode.SOURCE_INACTIVE,
                            f"Account {account.nickname} is not active",
                        )
                else:
                    account = None
                    platform = await gateway.get_platform(request.platform_id)
                    if platform is None:
                        return TransactionResult.reject(
                            LedgerErrorCode.SOURCE_NOT_FOUND, "Platform not found"
                        )
                    if not platform.is_usable:
                        return TransactionResult.reject(
                            LedgerErrorCode.SOURCE_INACTIVE,
                            f"Platform {platform.name} is not active",
                        )

                if request.game_id:
                    game = await gateway.get_game(request.game_id)
                    if game is None or not game.is_usable:
                        return TransactionResult.reject(
                            LedgerErrorCode.INVALID_GAME, "Game not found or inactive"
                        )

                if account is not None:
                    if request.direction == TransactionDirection.WITHDRAW:
                        withdraw_subtype = request.withdraw_subtype or WithdrawSubtype.NORMAL
                        if withdraw_subtype == WithdrawSubtype.ATM and not account.atm_withdrawal_enabled:
                            return TransactionResult.reject(
                                LedgerErrorCode.ATM_NOT_ENABLED,
                                f"ATM withdrawals are not enabled for {account.nickname}",
                            )

                    rejection = await self._check_monthly_limit(db, account, request, now)
                    if rejection is not None:
                        return rejection

                transaction = Transaction(
                    direction=request.direction,
                    amount=request.amount,
                    source_type=request.source_type,
                    account_id=request.account_id if account is not None else None,
                    platform_id=request.platform_id if account is None else None,
                    game_id=request.game_id or None,
                    withdraw_subtype=withdraw_subtype,
                    notes=request.notes or None,
                    operator_id=request.operator_id,
                    created_at=now,
                    updated_at=now,
                )
                db.add(transaction)
                await db.flush()
                transaction_id = transaction.id

        return TransactionResult.ok(transaction_id)

    async def _check_monthly_limit(
        self,
        db: AsyncSession,
        account: Account,
        request: TransactionRequest,
        now: datetime,
    ) -> TransactionResult | None:
        """Reject the request if it would push the account over its monthly cap."""
        aggregate = await MonthlyAggregator(db, self.timezone).aggregate(account.id, now)
        current = aggregate.total_for(request.direction)

        if request.direction == TransactionDirection.DEPOSIT:
            limit = account.monthly_in_limit
            error = LedgerErrorCode.MONTHLY_IN_LIMIT_EXCEEDED
            label = "deposit"
        else:
            limit = account.monthly_out_limit
            error = LedgerErrorCode.MONTHLY_OUT_LIMIT_EXCEEDED
            label = "withdrawal"

        if not limit_policy.would_exceed(current, limit, request.amount):
            return None

        headroom = limit_policy.remaining(current, limit)
        return TransactionResult.reject(
            error,
            f"Monthly {label} limit exceeded for {account.nickname}: "
            f"{current} used of {limit}, {headroom} remaining, {request.amount} requested",
            current_total=current,
            limit=limit,
            remaining=headroom,
            requested=request.amount,
        )

    async def _is_active_operator(self, gateway: ReferenceDataGateway, operator_id: str | None) -> bool:
        if not operator_id:
            return False
        operator = await gateway.get_operator(operator_id)
        return operator is not None and operator.is_active

    # =========================================================================
    # soft_delete_transaction
    # =========================================================================

    async def soft_delete_transaction(self, transaction_id: str, actor_id: str) -> DeleteResult:
        """Soft-delete a transaction.

        Idempotent: deleting an already deleted transaction succeeds without
        changing ``deleted_at`` / ``deleted_by``. Limits are not re-checked since
        deletion only frees headroom.

        Args:
            transaction_id: Transaction to delete
            actor_id: Operator performing the delete

        Returns:
            DeleteResult
        """
        now = self._now()
        try:
            async with self.session_factory() as db:
                async with db.begin():
                    gateway = self.gateway_factory(db)
                    if not await self._is_active_operator(gateway, actor_id):
                        return DeleteResult(
                            success=False,
                            error=LedgerErrorCode.UNAUTHORIZED,
                            message="Not authenticated",
                        )

                    result = await db.execute(
                        update(Transaction)
                        .where(Transaction.id == transaction_id, Transaction.live())
                        .values(deleted_at=now, deleted_by=actor_id, updated_at=now)
                    )
                    if result.rowcount == 1:
                        logger.info(f"Transaction {transaction_id} soft-deleted by {actor_id}")
                        return DeleteResult(success=True, message="Transaction deleted")

                    existing = await db.get(Transaction, transaction_id)
                    if existing is None:
                        return DeleteResult(
                            success=False,
                            error=LedgerErrorCode.TRANSACTION_NOT_FOUND,
                            message="Transaction not found",
                        )
                    return DeleteResult(success=True, message="Transaction already deleted")
        except (ReferenceDataUnavailableError, SQLAlchemyError) as e:
            logger.exception(f"Database error while deleting transaction {transaction_id}: {e}")
            return DeleteResult(
                success=False,
                error=LedgerErrorCode.DATABASE_ERROR,
                message="Database error, please retry",
            )

    # =========================================================================
    # update_transaction_details
    # =========================================================================

    async def update_transaction_details(
        self,
        transaction_id: str,
        actor_id: str,
        *,
        notes: str | None | object = _UNSET,
        created_at: datetime | None = None,
    ) -> UpdateResult:
        """Correct the notes or timestamp of a live transaction.

        Amount, direction and source cannot change here. A timestamp correction
        on an account transaction must stay inside the same ledger month, so no
        limit check is needed.

        Args:
            transaction_id: Transaction to correct
            actor_id: Operator performing the correction
            notes: New notes (``None`` clears them); omitted leaves them unchanged
            created_at: New timestamp (aware, or naive UTC)

        Returns:
            UpdateResult
        """
        try:
            async with self.session_factory() as db:
                async with db.begin():
                    gateway = self.gateway_factory(db)
                    if not await self._is_active_operator(gateway, actor_id):
                        return UpdateResult(
                            success=False,
                            error=LedgerErrorCode.UNAUTHORIZED,
                            message="Not authenticated",
                        )

                    transaction = await db.get(Transaction, transaction_id)
                    if transaction is None or transaction.is_deleted:
                        return UpdateResult(
                            success=False,
                            error=LedgerErrorCode.TRANSACTION_NOT_FOUND,
                            message="Transaction not found",
                        )

                    if created_at is not None:
                        new_created_at = to_storage_utc(created_at)
                        if transaction.source_type == SourceType.ACCOUNT and month_bounds(
                            new_created_at, self.timezone
                        ) != month_bounds(transaction.created_at, self.timezone):
                            return UpdateResult(
                                success=False,
                                error=LedgerErrorCode.INVALID_TIMESTAMP,
                                message="Timestamp can only be corrected within the same month",
                            )
                        transaction.created_at = new_created_at

                    if notes is not _UNSET:
                        if notes is not None and not isinstance(notes, str):
                            raise TypeError("notes must be a string or None")
                        transaction.notes = notes or None

                    transaction.updated_at = self._now()
                    db.add(transaction)
        except (ReferenceDataUnavailableError, SQLAlchemyError) as e:
            logger.exception(f"Database error while updating transaction {transaction_id}: {e}")
            return UpdateResult(
                success=False,
                error=LedgerErrorCode.DATABASE_ERROR,
                message="Database error, please retry",
            )

        logger.info(f"Transaction {transaction_id} details corrected by {actor_id}")
        return UpdateResult(success=True, message="Transaction updated")

    # =========================================================================
    # Monthly aggregate
    # =========================================================================

    async def get_monthly_aggregate(
        self,
        account_id: str,
        reference_instant: datetime | None = None,
    ) -> MonthlyAggregate:
        """Get the account's totals for the month containing ``reference_instant``.

        Raises:
            UnknownAccountError: If ``account_id`` is not an account
        """
        async with self.session_factory() as db:
            aggregator = MonthlyAggregator(db, self.timezone)
            return await aggregator.get_monthly_aggregate(
                account_id, reference_instant or self._now()
            )


def _fits_scale(amount: Decimal) -> bool:
    """Whether ``amount`` is representable with 8 decimal places."""
    with localcontext() as ctx:
        ctx.prec = 64
        try:
            return amount == amount.quantize(AMOUNT_SCALE)
        except InvalidOperation:
            return False
