"""Add invoices, invoice line items and the monthly invoice number sequence

Revision ID: 001_add_invoices
Revises: 000_initial_schema
Create Date: 2026-10-05

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_add_invoices"
down_revision: Union[str, None] = "000_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

invoice_status = postgresql.ENUM("DRAFT", "SENT", "PAID", name="invoicestatus", create_type=False)
asset_category = postgresql.ENUM(
    "ATV", "UTV", "SEA_SPORT", "POOL_TOYS", "LINE_SPORT",
    name="assetcategory",
    create_type=False,
)


def upgrade() -> None:
    invoice_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("invoice_number", sa.String(20), nullable=False),
        sa.Column("resort_id", sa.Integer(), sa.ForeignKey("resorts.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("total_revenue", sa.Numeric(15, 2), nullable=False),
        sa.Column("dku_share", sa.Numeric(15, 2), nullable=False),
        sa.Column("resort_share", sa.Numeric(15, 2), nullable=False),
        sa.Column("status", invoice_status, nullable=False, server_default="DRAFT"),
        sa.Column("generated_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "bank_account_id",
            sa.Integer(),
            sa.ForeignKey("bank_accounts.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("start_date <= end_date", name="ck_invoices_date_range"),
    )
    op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"], unique=True)
    op.create_index("ix_invoices_resort_id", "invoices", ["resort_id"])
    op.create_index("ix_invoices_status", "invoices", ["status"])

    op.create_table(
        "invoice_line_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "invoice_id",
            sa.Integer(),
            sa.ForeignKey("invoices.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("asset_category", asset_category, nullable=False),
        sa.Column("revenue", sa.Numeric(15, 2), nullable=False),
        sa.Column("dku_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("resort_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("dku_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("resort_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("uses_fallback_config", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("record_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_invoice_line_items_invoice_id", "invoice_line_items", ["invoice_id"])

    op.create_table(
        "invoice_sequences",
        sa.Column("year_month", sa.String(6), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False, server_default="0"),
    )


def downgrade() -> None:
    op.drop_table("invoice_sequences")
    op.drop_table("invoice_line_items")
    op.drop_table("invoices")
    op.execute("DROP TYPE IF EXISTS invoicestatus")
