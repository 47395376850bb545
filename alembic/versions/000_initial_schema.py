"""Initial schema: users, audit log, resorts, bank accounts, profit sharing, revenue

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-05

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ASSET_CATEGORIES = ("ATV", "UTV", "SEA_SPORT", "POOL_TOYS", "LINE_SPORT")

user_role = postgresql.ENUM("ADMIN", "MANAGER", "ENGINEER", name="userrole", create_type=False)
audit_action = postgresql.ENUM(
    "login",
    "logout",
    "create_revenue",
    "update_revenue",
    "delete_revenue",
    "create_resort",
    "update_profit_sharing",
    "generate_invoice",
    "recompute_invoice",
    "update_invoice_status",
    "delete_invoice",
    "create_bank_account",
    name="auditaction",
    create_type=False,
)
asset_category = postgresql.ENUM(*ASSET_CATEGORIES, name="assetcategory", create_type=False)
amount_type = postgresql.ENUM("PERCENTAGE", "FIXED_AMOUNT", name="amounttype", create_type=False)


def upgrade() -> None:
    """Create all initial tables."""
    bind = op.get_bind()
    for enum_type in (user_role, audit_action, asset_category, amount_type):
        enum_type.create(bind, checkfirst=True)

    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("is_active", sa.Boolean(), default=True, nullable=False),
        sa.Column("last_active_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # Audit logs table
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("action", audit_action, nullable=False),
        sa.Column("target_type", sa.String(50), nullable=True),
        sa.Column("target_id", sa.Integer(), nullable=True),
        sa.Column("action_metadata", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    # Resorts table
    op.create_table(
        "resorts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("legal_company_name", sa.String(255), nullable=True),
        sa.Column("company_address", sa.Text(), nullable=True),
        sa.Column("contact_name", sa.String(100), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("contact_phone", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_resorts_name", "resorts", ["name"])

    # Bank accounts table
    op.create_table(
        "bank_accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("bank_name", sa.String(100), nullable=False),
        sa.Column("account_number", sa.String(50), nullable=False),
        sa.Column("account_holder", sa.String(255), nullable=False),
        sa.Column("is_default", sa.Boolean(), default=False, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )

    # Profit sharing configs table (effective-dated, history kept)
    op.create_table(
        "profit_sharing_configs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("resort_id", sa.Integer(), sa.ForeignKey("resorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("asset_category", asset_category, nullable=False),
        sa.Column("dku_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("resort_percentage", sa.Numeric(5, 2), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "resort_id",
            "asset_category",
            "effective_from",
            name="uq_profit_sharing_resort_category_effective",
        ),
    )
    op.create_index("ix_profit_sharing_configs_resort_id", "profit_sharing_configs", ["resort_id"])

    # Revenue records table
    op.create_table(
        "revenue_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("resort_id", sa.Integer(), sa.ForeignKey("resorts.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("asset_category", asset_category, nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("billing_no", sa.String(100), nullable=True),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("discount_type", amount_type, nullable=False),
        sa.Column("discount_value", sa.Numeric(15, 4), nullable=False, server_default="0"),
        sa.Column("discount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("discount_percentage", sa.Numeric(15, 4), nullable=False, server_default="0"),
        sa.Column("tax_service_type", amount_type, nullable=False),
        sa.Column("tax_service_value", sa.Numeric(15, 4), nullable=False, server_default="0"),
        sa.Column("tax_service", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("tax_service_percentage", sa.Numeric(15, 4), nullable=False, server_default="0"),
        sa.Column("recorded_by", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_revenue_records_asset_category", "revenue_records", ["asset_category"])
    op.create_index("ix_revenue_records_resort_date", "revenue_records", ["resort_id", "date"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_table("revenue_records")
    op.drop_table("profit_sharing_configs")
    op.drop_table("bank_accounts")
    op.drop_table("resorts")
    op.drop_table("audit_logs")
    op.drop_table("users")

    # Drop enums
    op.execute("DROP TYPE IF EXISTS amounttype")
    op.execute("DROP TYPE IF EXISTS assetcategory")
    op.execute("DROP TYPE IF EXISTS auditaction")
    op.execute("DROP TYPE IF EXISTS userrole")
