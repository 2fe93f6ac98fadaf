"""create payments table

Revision ID: 0001_payments
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_payments"
down_revision = None
branch_labels = None
depends_on = None

payment_status = sa.Enum(
    "PENDING", "PROCESSING", "COMPLETED", "FAILED", "VOIDED", name="paymentstatus"
)


def upgrade() -> None:
    op.create_table(
        "payments",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("amount", sa.String(64)),
        sa.Column("order_service", sa.String(255)),
        sa.Column("order_id", sa.String(255)),
        sa.Column("service", sa.String(50)),
        sa.Column("service_id", sa.String(255)),
        sa.Column("status", payment_status, nullable=False),
        sa.Column("error", sa.Text()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_payments_service_order", "payments", ["service", "service_id"])


def downgrade() -> None:
    op.drop_index("ix_payments_service_order", table_name="payments")
    op.drop_table("payments")
    payment_status.drop(op.get_bind(), checkfirst=True)
