from datetime import datetime
from decimal import Decimal

import pytest_asyncio
from sqlalchemy import update

from cashbook.models import Account, Transaction
from cashbook.models.transaction import SourceType, TransactionDirection, WithdrawSubtype
from cashbook.schemas.report import TransactionQueryParams
from cashbook.services.report_service import ReportService

from .conftest import NOW

DEPOSIT = TransactionDirection.DEPOSIT
WITHDRAW = TransactionDirection.WITHDRAW


@pytest_asyncio.fixture
async def ledger_data(ledger, make_request, refs, session_factory):
    """A small month of activity, including one deleted entry and one from February."""
    ids = {}
    ids["deposit"] = (await ledger.record_transaction(make_request(amount="850"))).transaction_id
    ids["withdraw"] = (
        await ledger.record_transaction(make_request(direction=WITHDRAW, amount="30"))
    ).transaction_id
    ids["atm"] = (
        await ledger.record_transaction(
            make_request(direction=WITHDRAW, amount="20", withdraw_subtype=WithdrawSubtype.ATM)
        )
    ).transaction_id
    ids["platform"] = (
        await ledger.record_transaction(
            make_request(
                amount="200",
                source_type=SourceType.PLATFORM,
                account_id=None,
                platform_id=refs.platform_id,
            )
        )
    ).transaction_id
    ids["deleted"] = (
        await ledger.record_transaction(make_request(account_id=refs.other_id, amount="400"))
    ).transaction_id
    await ledger.soft_delete_transaction(ids["deleted"], refs.operator_id)

    async with session_factory() as session:
        session.add(
            Transaction(
                direction=DEPOSIT,
                amount=Decimal("75"),
                source_type=SourceType.ACCOUNT,
                account_id=refs.main_id,
                operator_id=refs.operator_id,
                created_at=datetime(2026, 2, 10, 8, 0),
            )
        )
        await session.commit()
    return ids


async def test_account_summaries(session_factory, refs, ledger_data):
    async with session_factory() as session:
        summaries = await ReportService(session, "UTC").list_account_summaries(NOW)

    by_id = {s.id: s for s in summaries}
    assert refs.deleted_id not in by_id
    assert refs.inactive_id in by_id

    main = by_id[refs.main_id]
    assert main.current_month_in == Decimal("850")
    assert main.current_month_out == Decimal("50")
    assert main.inflow.percentage == 85
    assert main.inflow.is_near and not main.inflow.is_critical
    assert main.outflow.remaining == Decimal("50")

    other = by_id[refs.other_id]
    assert other.current_month_in == Decimal("0")
    assert other.inflow.percentage == 0


async def test_near_limit_accounts(session_factory, refs, ledger_data):
    async with session_factory() as session:
        near = await ReportService(session, "UTC").list_near_limit_accounts(NOW)
    assert [s.id for s in near] == [refs.main_id]


async def test_today_summary_excludes_deleted(session_factory, ledger_data):
    async with session_factory() as session:
        summary = await ReportService(session, "UTC").get_today_summary(NOW)

    assert summary.date == "2026-03-15"
    assert summary.today_deposits == Decimal("1050")
    assert summary.today_withdrawals == Decimal("50")
    assert summary.today_net == Decimal("1000")
    assert summary.transaction_count == 4


async def test_monthly_report(session_factory, ledger_data):
    async with session_factory() as session:
        service = ReportService(session, "UTC")
        march = await service.get_monthly_report(2026, 3)
        february = await service.get_monthly_report(2026, 2)

    assert march.month == "2026-03"
    assert march.total_deposits == Decimal("1050")
    assert march.total_withdrawals == Decimal("50")
    assert march.total_atm_withdrawals == Decimal("20")
    assert march.net_flow == Decimal("1000")
    assert march.transaction_count == 4

    assert february.total_deposits == Decimal("75")
    assert february.transaction_count == 1


async def test_list_transactions_joins_names(session_factory, refs, ledger_data):
    async with session_factory() as session:
        page = await ReportService(session, "UTC").list_transactions(
            TransactionQueryParams(source_type=SourceType.PLATFORM)
        )

    assert page.total == 1
    item = page.items[0]
    assert item.id == ledger_data["platform"]
    assert item.platform_name == "CashApp"
    assert item.account_nickname is None
    assert item.game_name == "Fire Kirin"
    assert item.game_tag == "FK"
    assert item.operator_name == "Alice"


async def test_list_transactions_filters_and_pages(session_factory, refs, ledger_data):
    async with session_factory() as session:
        service = ReportService(session, "UTC")
        everything = await service.list_transactions(TransactionQueryParams())
        withdrawals = await service.list_transactions(
            TransactionQueryParams(direction=WITHDRAW, account_id=refs.main_id)
        )
        march_page = await service.list_transactions(
            TransactionQueryParams(start_date=datetime(2026, 3, 1), page=2, page_size=3)
        )

    assert everything.total == 5
    assert ledger_data["deleted"] not in {item.id for item in everything.items}

    assert withdrawals.total == 2
    assert {item.id for item in withdrawals.items} == {ledger_data["withdraw"], ledger_data["atm"]}

    assert march_page.total == 4
    assert march_page.page_size == 3
    assert len(march_page.items) == 1


async def test_monthly_report_current_holding(session_factory, refs, ledger_data):
    async with session_factory() as session:
        await session.execute(
            update(Account)
            .where(Account.id.in_([refs.main_id, refs.inactive_id]))
            .values(initial_balance=Decimal("1000"))
        )
        await session.commit()

    async with session_factory() as session:
        service = ReportService(session, "UTC", clock=lambda: NOW)
        report = await service.get_monthly_report()
        february = await service.get_monthly_report(2026, 2)

    # Main only: 1000 opening + 850 in - 50 out; the inactive account is excluded
    assert report.month == "2026-03"
    assert report.current_holding == Decimal("1800")
    assert february.current_holding == Decimal("1800")


async def test_available_months(session_factory, ledger_data):
    async with session_factory() as session:
        months = await ReportService(session, "UTC", clock=lambda: NOW).list_available_months()
    assert months == ["2026-03", "2026-02"]


async def test_available_months_without_transactions(session_factory):
    async with session_factory() as session:
        service = ReportService(session, "UTC", clock=lambda: datetime(2026, 1, 5))
        assert await service.list_available_months() == ["2026-01"]


async def test_atm_enabled_accounts(session_factory, refs):
    async with session_factory() as session:
        accounts = await ReportService(session, "UTC").list_atm_enabled_accounts()
    assert [a.id for a in accounts] == [refs.main_id]
    assert accounts[0].nickname == "Main"


async def test_atm_withdrawals_and_summary(ledger, make_request, session_factory, refs, ledger_data):
    atm = {"direction": WITHDRAW, "withdraw_subtype": WithdrawSubtype.ATM}
    extra = await ledger.record_transaction(make_request(amount="10", **atm))
    removed = await ledger.record_transaction(make_request(amount="7", **atm))
    await ledger.soft_delete_transaction(removed.transaction_id, refs.operator_id)

    async with session_factory() as session:
        service = ReportService(session, "UTC")
        page = await service.list_atm_withdrawals(account_id=refs.main_id)
        history = await service.list_transactions(
            TransactionQueryParams(withdraw_subtype=WithdrawSubtype.ATM)
        )
        summary = await service.get_atm_summary_by_account()

    assert page.total == 2
    assert {item.id for item in page.items} == {ledger_data["atm"], extra.transaction_id}
    assert all(item.account_nickname == "Main" for item in page.items)
    assert history.total == 2

    assert len(summary) == 1
    assert summary[0].account_id == refs.main_id
    assert summary[0].total_withdrawals == Decimal("30")
    assert summary[0].withdrawal_count == 2
    assert summary[0].last_withdrawal_at == NOW
