"""create users, customers and invoices

Revision ID: 4a7c2e91d0b3
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision: str = "4a7c2e91d0b3"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    existing_tables = set(inspect(bind).get_table_names())

    if "users" not in existing_tables:
        op.create_table(
            "users",
            sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=True),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.UniqueConstraint("email", name="uq_users_email"),
        )

    if "customers" not in existing_tables:
        op.create_table(
            "customers",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=255), nullable=False),
            sa.Column("email", sa.String(length=320), nullable=False),
            sa.Column("image_url", sa.Text(), nullable=False),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
        )
        op.create_index("idx_customers_name", "customers", ["name"])
        op.create_index("idx_customers_email", "customers", ["email"])

    if "invoices" not in existing_tables:
        # No ON DELETE CASCADE: deleting a customer removes its invoices explicitly.
        op.create_table(
            "invoices",
            sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
            sa.Column("customer_id", sa.Uuid(), nullable=False),
            sa.Column("amount", sa.Integer(), nullable=False),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
            sa.Column("date", sa.Date(), nullable=False, server_default=sa.func.current_date()),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=False),
                nullable=False,
                server_default=sa.func.current_timestamp(),
            ),
            sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
            sa.CheckConstraint("status IN ('pending', 'paid')", name="ck_invoices_status"),
        )
        op.create_index("idx_invoices_customer_id", "invoices", ["customer_id"])
        op.create_index("idx_invoices_status", "invoices", ["status"])
        op.create_index("idx_invoices_date", "invoices", ["date"])


def downgrade() -> None:
    op.drop_index("idx_invoices_date", table_name="invoices")
    op.drop_index("idx_invoices_status", table_name="invoices")
    op.drop_index("idx_invoices_customer_id", table_name="invoices")
    op.drop_table("invoices")

    op.drop_index("idx_customers_email", table_name="customers")
    op.drop_index("idx_customers_name", table_name="customers")
    op.drop_table("customers")

    op.drop_table("users")
