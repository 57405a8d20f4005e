"""create current and historical coin tables

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-18 09:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1c2a9d7e10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "current_coins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("symbol", sa.String(length=30), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("market_cap", sa.Float(), nullable=False),
        sa.Column("change_24h", sa.Float(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("symbol", name="uq_current_coins_symbol"),
    )

    op.create_table(
        "historical_coins",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("symbol", sa.String(length=30), nullable=False),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("market_cap", sa.Float(), nullable=False),
        sa.Column("change_24h", sa.Float(), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_historical_coins_symbol", "historical_coins", ["symbol"])
    op.create_index("ix_historical_coins_timestamp", "historical_coins", ["timestamp"])
    op.create_index("ix_historical_coins_symbol_ts", "historical_coins", ["symbol", "timestamp"])


def downgrade() -> None:
    op.drop_index("ix_historical_coins_symbol_ts", table_name="historical_coins")
    op.drop_index("ix_historical_coins_timestamp", table_name="historical_coins")
    op.drop_index("ix_historical_coins_symbol", table_name="historical_coins")
    op.drop_table("historical_coins")
    op.drop_table("current_coins")
