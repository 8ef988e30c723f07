"""Initial schema -- categories, people, ledger entries.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    entry_type = sa.Enum("INCOME", "EXPENSE", name="entry_type")

    # 1. categories
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
    )

    # 2. people
    op.create_table(
        "people",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("active", sa.Boolean, nullable=False, server_default=sa.text("true")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # 3. ledger_entries
    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("description", sa.String(50), nullable=False),
        sa.Column("due_date", sa.Date, nullable=False),
        sa.Column("payment_date", sa.Date, nullable=True),
        sa.Column("value", sa.Numeric(12, 2), nullable=False),
        sa.Column("type", entry_type, nullable=False),
        sa.Column("category_id", sa.Integer, sa.ForeignKey("categories.id"), nullable=True),
        sa.Column("person_id", sa.Integer, sa.ForeignKey("people.id"), nullable=True),
        sa.Column("observation", sa.String(100), nullable=True),
        sa.Column("attachment", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_ledger_entries_due_date", "ledger_entries", ["due_date"])


def downgrade() -> None:
    op.drop_index("ix_ledger_entries_due_date", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_table("people")
    op.drop_table("categories")
    sa.Enum(name="entry_type").drop(op.get_bind(), checkfirst=True)
