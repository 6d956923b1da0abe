from datetime import datetime
from decimal import Decimal

import pytest

from cashbook.core.exceptions import UnknownAccountError
from cashbook.gateways.sql import SqlReferenceGateway
from cashbook.models.transaction import SourceType, TransactionDirection
from cashbook.services.aggregator import MonthlyAggregator

from .conftest import NOW


async def test_resolve_operator_ignores_disabled(session_factory, refs):
    async with session_factory() as session:
        gateway = SqlReferenceGateway(session)
        assert await gateway.resolve_operator("auth|alice") == refs.operator_id
        assert await gateway.resolve_operator("auth|bob") is None
        assert await gateway.resolve_operator("auth|nobody") is None


async def test_get_account_for_update(session_factory, refs):
    async with session_factory() as session:
        async with session.begin():
            account = await SqlReferenceGateway(session).get_account(refs.main_id, for_update=True)
    assert account.nickname == "Main"
    assert account.monthly_out_limit == Decimal("100")


async def test_monthly_aggregates_for_all_accounts(ledger, make_request, refs, session_factory):
    await ledger.record_transaction(make_request(amount="100"))
    await ledger.record_transaction(make_request(direction=TransactionDirection.WITHDRAW, amount="40"))
    await ledger.record_transaction(make_request(account_id=refs.other_id, amount="25"))
    await ledger.record_transaction(
        make_request(
            amount="500",
            source_type=SourceType.PLATFORM,
            account_id=None,
            platform_id=refs.platform_id,
        )
    )

    async with session_factory() as session:
        aggregator = MonthlyAggregator(session, "UTC")
        aggregates = await aggregator.get_monthly_aggregates(NOW)
        april = await aggregator.get_monthly_aggregates(datetime(2026, 4, 2))

    assert set(aggregates) == {refs.main_id, refs.other_id}
    assert aggregates[refs.main_id].current_month_in == Decimal("100")
    assert aggregates[refs.main_id].current_month_out == Decimal("40")
    assert aggregates[refs.other_id].current_month_out == Decimal("0")
    assert aggregates[refs.main_id].month_start == datetime(2026, 3, 1)
    assert april == {}


async def test_aggregate_for_unknown_account(session_factory):
    async with session_factory() as session:
        with pytest.raises(UnknownAccountError):
            await MonthlyAggregator(session).get_monthly_aggregate("missing", NOW)
