import asyncio
from decimal import Decimal

import pytest

from cashbook.core.exceptions import LockTimeoutError
from cashbook.models.transaction import TransactionDirection
from cashbook.schemas.ledger import LedgerErrorCode
from cashbook.services.ledger_service import LedgerService
from cashbook.services.locks import AccountLockRegistry

from .conftest import NOW

WITHDRAW = TransactionDirection.WITHDRAW


async def test_concurrent_withdrawals_cannot_both_pass_cap(ledger, make_request, refs):
    # Main account: monthly_out_limit = 100, one 15 fits, two do not
    assert (await ledger.record_transaction(make_request(direction=WITHDRAW, amount="80"))).success

    results = await asyncio.gather(
        ledger.record_transaction(make_request(direction=WITHDRAW, amount="15")),
        ledger.record_transaction(make_request(direction=WITHDRAW, amount="15")),
    )

    successes = [r for r in results if r.success]
    rejections = [r for r in results if not r.success]
    assert len(successes) == 1
    assert len(rejections) == 1
    assert rejections[0].error == LedgerErrorCode.MONTHLY_OUT_LIMIT_EXCEEDED
    assert rejections[0].current_total == Decimal("95")
    assert rejections[0].remaining == Decimal("5")

    aggregate = await ledger.get_monthly_aggregate(refs.main_id)
    assert aggregate.current_month_out == Decimal("95")


async def test_many_concurrent_deposits_never_exceed_cap(ledger, make_request, refs):
    # Main account: monthly_in_limit = 1000; 20 x 60 would be 1200
    results = await asyncio.gather(
        *(ledger.record_transaction(make_request(amount="60")) for _ in range(20))
    )

    assert sum(1 for r in results if r.success) == 16
    assert all(
        r.error == LedgerErrorCode.MONTHLY_IN_LIMIT_EXCEEDED for r in results if not r.success
    )
    aggregate = await ledger.get_monthly_aggregate(refs.main_id)
    assert aggregate.current_month_in == Decimal("960")


async def test_other_accounts_are_not_blocked(ledger, make_request, refs, locks):
    async with locks.hold(refs.main_id):
        result = await asyncio.wait_for(
            ledger.record_transaction(make_request(account_id=refs.other_id)),
            timeout=5,
        )
    assert result.success


async def test_lock_timeout_is_database_error(
    session_factory, settings, make_request, refs, locks
):
    impatient = LedgerService(
        session_factory,
        locks=locks,
        clock=lambda: NOW,
        settings=settings.model_copy(update={"ledger_lock_timeout_seconds": 0.05}),
    )
    async with locks.hold(refs.main_id):
        result = await impatient.record_transaction(make_request())

    assert result.error == LedgerErrorCode.DATABASE_ERROR
    assert not locks.is_locked(refs.main_id)


async def test_platform_writes_take_no_account_lock(ledger, make_request, refs, locks):
    async with locks.hold(refs.main_id):
        result = await asyncio.wait_for(
            ledger.record_transaction(
                make_request(
                    source_type="platform", account_id=None, platform_id=refs.platform_id
                )
            ),
            timeout=5,
        )
    assert result.success


async def test_concurrent_soft_deletes_both_succeed(ledger, make_request, refs):
    recorded = await ledger.record_transaction(make_request(amount="40"))

    results = await asyncio.gather(
        ledger.soft_delete_transaction(recorded.transaction_id, refs.operator_id),
        ledger.soft_delete_transaction(recorded.transaction_id, refs.operator_id),
    )

    assert all(r.success for r in results)
    aggregate = await ledger.get_monthly_aggregate(refs.main_id)
    assert aggregate.current_month_in == Decimal("0")


async def test_concurrent_withdrawals_over_headroom_are_both_rejected(ledger, make_request, refs):
    assert (await ledger.record_transaction(make_request(direction=WITHDRAW, amount="90"))).success

    results = await asyncio.gather(
        ledger.record_transaction(make_request(direction=WITHDRAW, amount="15")),
        ledger.record_transaction(make_request(direction=WITHDRAW, amount="15")),
    )

    assert [r.error for r in results] == [LedgerErrorCode.MONTHLY_OUT_LIMIT_EXCEEDED] * 2
    aggregate = await ledger.get_monthly_aggregate(refs.main_id)
    assert aggregate.current_month_out == Decimal("90")


async def test_services_share_the_default_lock_registry(session_factory, settings):
    first = LedgerService(session_factory, settings=settings)
    second = LedgerService(session_factory, settings=settings)
    assert first.locks is second.locks


async def test_separate_services_cannot_both_pass_cap(session_factory, settings, make_request, refs):
    # Own registry each, as in two worker processes: only the database lock serializes them
    workers = [
        LedgerService(session_factory, locks=AccountLockRegistry(), clock=lambda: NOW, settings=settings)
        for _ in range(2)
    ]
    assert (await workers[0].record_transaction(make_request(direction=WITHDRAW, amount="80"))).success

    results = await asyncio.gather(
        *(worker.record_transaction(make_request(direction=WITHDRAW, amount="15")) for worker in workers)
    )

    assert sorted(r.success for r in results) == [False, True]
    aggregate = await workers[0].get_monthly_aggregate(refs.main_id)
    assert aggregate.current_month_out == Decimal("95")


async def test_lock_is_usable_after_timeout(locks):
    async with locks.hold("acct-1"):
        with pytest.raises(LockTimeoutError):
            async with locks.hold("acct-1", timeout=0.01):
                pass
    assert not locks.is_locked("acct-1")
    async with locks.hold("acct-1", timeout=1):
        assert locks.is_locked("acct-1")
