"""Initialize reference data for local use.

Creates tables (if missing) and a small set of accounts, platforms, games and
an admin operator so the ledger can be exercised.

Usage:
    uv run python -m cashbook.scripts.init_reference_data --admin-auth-id <identity-provider-user-id>
"""

import argparse
import asyncio
from decimal import Decimal

from sqlmodel import select

from cashbook.db.engine import async_session_factory, close_db, init_db
from cashbook.models import Account, AccountType, Game, Operator, OperatorRole, Platform


async def init_reference_data(admin_auth_id: str) -> None:
    """Create sample reference data unless accounts already exist."""
    await init_db()

    async with async_session_factory() as session:
        result = await session.execute(select(Account))
        existing_accounts = result.scalars().all()

        if existing_accounts:
            print(f"Found {len(existing_accounts)} existing accounts:")
            for account in existing_accounts:
                print(
                    f"  - {account.nickname} ({account.status.value}) "
                    f"in {account.monthly_in_limit} / out {account.monthly_out_limit}"
                )
            print("\nSkipping initialization. Delete existing data first if you want to reset.")
            return

        accounts = [
            Account(
                nickname="Main Holding",
                type=AccountType.HOLDING,
                monthly_in_limit=Decimal("10000"),
                monthly_out_limit=Decimal("10000"),
                atm_withdrawal_enabled=True,
            ),
            Account(
                nickname="Paying A",
                type=AccountType.PAYING,
                monthly_in_limit=Decimal("5000"),
                monthly_out_limit=Decimal("5000"),
            ),
            Account(
                nickname="Paying B",
                type=AccountType.PAYING,
                monthly_in_limit=Decimal("2000"),
                monthly_out_limit=Decimal("2000"),
            ),
        ]
        platforms = [
            Platform(name="CashApp", tag="CA"),
            Platform(name="PayPal", tag="PP"),
        ]
        games = [
            Game(name="Fire Kirin", tag="FK"),
            Game(name="Orion Stars", tag="OS"),
            Game(name="Juwa", tag="JW"),
        ]
        operator = Operator(auth_user_id=admin_auth_id, name="Admin", role=OperatorRole.ADMIN)

        session.add_all([*accounts, *platforms, *games, operator])
        await session.commit()

        print("✅ Successfully created reference data:")
        for account in accounts:
            print(f"  - Account {account.nickname}: {account.id}")
        for platform in platforms:
            print(f"  - Platform {platform.name}: {platform.id}")
        for game in games:
            print(f"  - Game {game.name} [{game.tag}]: {game.id}")
        print(f"  - Operator {operator.name} ({operator.role.value}): {operator.id}")


async def main() -> None:
    """Main function with proper cleanup."""
    parser = argparse.ArgumentParser(description="Seed cashbook reference data")
    parser.add_argument(
        "--admin-auth-id",
        default="local-admin",
        help="Identity provider user ID of the admin operator",
    )
    args = parser.parse_args()

    try:
        await init_reference_data(args.admin_auth_id)
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
