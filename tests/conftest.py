"""Shared fixtures: a fresh SQLite ledger database per test."""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
import pytest_asyncio

from cashbook.core.config import Settings
from cashbook.db.engine import build_engine, build_session_factory, init_db
from cashbook.models import Account, Game, Operator, Platform, SourceStatus
from cashbook.models.transaction import SourceType, TransactionDirection
from cashbook.schemas.ledger import TransactionRequest
from cashbook.services.ledger_service import LedgerService
from cashbook.services.locks import AccountLockRegistry

# Mid-month so month boundaries are unambiguous
NOW = datetime(2026, 3, 15, 12, 0, 0)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        ledger_timezone="UTC",
        ledger_lock_timeout_seconds=2.0,
        debug=False,
    )


@pytest_asyncio.fixture
async def engine(settings):
    engine = build_engine(settings.database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def locks() -> AccountLockRegistry:
    return AccountLockRegistry()


@pytest.fixture
def ledger(session_factory, settings, locks) -> LedgerService:
    return LedgerService(session_factory, locks=locks, clock=lambda: NOW, settings=settings)


@pytest_asyncio.fixture
async def refs(session_factory) -> SimpleNamespace:
    """Reference data used across tests."""
    operator = Operator(auth_user_id="auth|alice", name="Alice")
    disabled_operator = Operator(auth_user_id="auth|bob", name="Bob", is_active=False)

    main = Account(
        nickname="Main",
        monthly_in_limit=Decimal("1000"),
        monthly_out_limit=Decimal("100"),
        atm_withdrawal_enabled=True,
    )
    no_atm = Account(
        nickname="NoATM",
        monthly_in_limit=Decimal("1000"),
        monthly_out_limit=Decimal("1000"),
        atm_withdrawal_enabled=False,
    )
    other = Account(
        nickname="Other",
        monthly_in_limit=Decimal("500"),
        monthly_out_limit=Decimal("500"),
    )
    inactive = Account(
        nickname="Dormant",
        status=SourceStatus.INACTIVE,
        monthly_in_limit=Decimal("1000"),
        monthly_out_limit=Decimal("1000"),
    )
    deleted = Account(
        nickname="Closed",
        monthly_in_limit=Decimal("1000"),
        monthly_out_limit=Decimal("1000"),
        deleted_at=datetime(2026, 1, 1),
    )

    platform = Platform(name="CashApp", tag="CA")
    inactive_platform = Platform(name="Venmo", status=SourceStatus.INACTIVE)

    game = Game(name="Fire Kirin", tag="FK")
    retired_game = Game(name="Old Game", tag="OG", status=SourceStatus.INACTIVE)

    async with session_factory() as session:
        session.add_all(
            [
                operator,
                disabled_operator,
                main,
                no_atm,
                other,
                inactive,
                deleted,
                platform,
                inactive_platform,
                game,
                retired_game,
            ]
        )
        await session.commit()

    return SimpleNamespace(
        operator_id=operator.id,
        disabled_operator_id=disabled_operator.id,
        main_id=main.id,
        no_atm_id=no_atm.id,
        other_id=other.id,
        inactive_id=inactive.id,
        deleted_id=deleted.id,
        platform_id=platform.id,
        inactive_platform_id=inactive_platform.id,
        game_id=game.id,
        retired_game_id=retired_game.id,
    )


@pytest.fixture
def make_request(refs):
    """Build a TransactionRequest against the main account by default."""

    def _make(
        direction: TransactionDirection = TransactionDirection.DEPOSIT,
        amount: str | Decimal = "10",
        **overrides,
    ) -> TransactionRequest:
        data = {
            "direction": direction,
            "amount": Decimal(str(amount)),
            "source_type": SourceType.ACCOUNT,
            "account_id": refs.main_id,
            "game_id": refs.game_id,
            "operator_id": refs.operator_id,
        }
        data.update(overrides)
        return TransactionRequest(**data)

    return _make
