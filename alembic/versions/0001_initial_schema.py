"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Initial ledger schema: reference data (accounts, platforms, games, operators)
and the transactions ledger.
"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

source_status = sa.Enum("ACTIVE", "INACTIVE", name="sourcestatus")


def upgrade() -> None:
    """Create initial database schema."""
    # Accounts table
    op.create_table(
        "accounts",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=False),
        sa.Column("nickname", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("tag", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column("type", sa.Enum("HOLDING", "PAYING", name="accounttype"), nullable=False),
        sa.Column("status", source_status, nullable=False),
        sa.Column("monthly_in_limit", sa.DECIMAL(32, 8), nullable=False),
        sa.Column("monthly_out_limit", sa.DECIMAL(32, 8), nullable=False),
        sa.Column("atm_withdrawal_enabled", sa.Boolean(), nullable=False),
        sa.Column("initial_balance", sa.DECIMAL(32, 8), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_accounts_nickname"), "accounts", ["nickname"], unique=False)
    op.create_index(op.f("ix_accounts_status"), "accounts", ["status"], unique=False)
    op.create_index(op.f("ix_accounts_deleted_at"), "accounts", ["deleted_at"], unique=False)

    # Platforms table
    op.create_table(
        "platforms",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("tag", sqlmodel.sql.sqltypes.AutoString(length=50), nullable=True),
        sa.Column("deposit_url", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("withdraw_url", sqlmodel.sql.sqltypes.AutoString(length=500), nullable=True),
        sa.Column("balance", sa.DECIMAL(32, 8), nullable=False),
        sa.Column("status", source_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_platforms_name"), "platforms", ["name"], unique=False)
    op.create_index(op.f("ix_platforms_status"), "platforms", ["status"], unique=False)
    op.create_index(op.f("ix_platforms_deleted_at"), "platforms", ["deleted_at"], unique=False)

    # Games table
    op.create_table(
        "games",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("tag", sqlmodel.sql.sqltypes.AutoString(length=20), nullable=False),
        sa.Column("status", source_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_games_name"), "games", ["name"], unique=False)

    # Operators table
    op.create_table(
        "operators",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=False),
        sa.Column("auth_user_id", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("role", sa.Enum("ADMIN", "OPERATOR", name="operatorrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_operators_auth_user_id"), "operators", ["auth_user_id"], unique=True)

    # Transactions table (ledger)
    op.create_table(
        "transactions",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=False),
        sa.Column(
            "direction", sa.Enum("DEPOSIT", "WITHDRAW", name="transactiondirection"), nullable=False
        ),
        sa.Column("amount", sa.DECIMAL(32, 8), nullable=False),
        sa.Column("source_type", sa.Enum("ACCOUNT", "PLATFORM", name="sourcetype"), nullable=False),
        sa.Column("account_id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=True),
        sa.Column("platform_id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=True),
        sa.Column("game_id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=True),
        sa.Column(
            "withdraw_subtype", sa.Enum("NORMAL", "ATM", name="withdrawsubtype"), nullable=False
        ),
        sa.Column("notes", sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=True),
        sa.Column("operator_id", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("deleted_by", sqlmodel.sql.sqltypes.AutoString(length=36), nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"]),
        sa.ForeignKeyConstraint(["platform_id"], ["platforms.id"]),
        sa.ForeignKeyConstraint(["game_id"], ["games.id"]),
        sa.ForeignKeyConstraint(["operator_id"], ["operators.id"]),
        sa.ForeignKeyConstraint(["deleted_by"], ["operators.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_transactions_account_id_created_at",
        "transactions",
        ["account_id", "created_at"],
        unique=False,
    )
    op.create_index(op.f("ix_transactions_direction"), "transactions", ["direction"], unique=False)
    op.create_index(
        op.f("ix_transactions_source_type"), "transactions", ["source_type"], unique=False
    )
    op.create_index(
        op.f("ix_transactions_platform_id"), "transactions", ["platform_id"], unique=False
    )
    op.create_index(op.f("ix_transactions_game_id"), "transactions", ["game_id"], unique=False)
    op.create_index(
        op.f("ix_transactions_operator_id"), "transactions", ["operator_id"], unique=False
    )
    op.create_index(op.f("ix_transactions_created_at"), "transactions", ["created_at"], unique=False)
    op.create_index(op.f("ix_transactions_deleted_at"), "transactions", ["deleted_at"], unique=False)


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("transactions")
    op.drop_table("operators")
    op.drop_table("games")
    op.drop_table("platforms")
    op.drop_table("accounts")
    for name in (
        "withdrawsubtype",
        "sourcetype",
        "transactiondirection",
        "operatorrole",
        "accounttype",
        "sourcestatus",
    ):
        sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
