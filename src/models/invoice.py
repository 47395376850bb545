"""
Invoice, InvoiceLineItem and the per-month invoice number sequence.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import MONEY, PERCENT, Base, BaseModel, TimestampMixin
from src.models.revenue import AssetCategory

if TYPE_CHECKING:
    from src.models.resort import BankAccount, Resort
    from src.models.user import User


class InvoiceStatus(str, Enum):
    """Invoice lifecycle. Transitions only move forward, one step at a time."""
    DRAFT = "DRAFT"
    SENT = "SENT"
    PAID = "PAID"

    @property
    def next_status(self) -> Optional["InvoiceStatus"]:
        order = list(InvoiceStatus)
        idx = order.index(self)
        return order[idx + 1] if idx + 1 < len(order) else None


class Invoice(BaseModel):
    """
    Profit-sharing invoice for one resort over an inclusive date range.

    Totals always equal the sum of the line items. ``version`` is bumped on
    every UPDATE so two concurrent recomputes of the same invoice cannot
    both win.
    """

    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("start_date <= end_date", name="ck_invoices_date_range"),
    )

    invoice_number: Mapped[str] = mapped_column(
        String(20),
        unique=True,
        index=True,
        nullable=False,
    )
    resort_id: Mapped[int] = mapped_column(
        ForeignKey("resorts.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_revenue: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    dku_share: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    resort_share: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    status: Mapped[InvoiceStatus] = mapped_column(
        SQLAlchemyEnum(
            InvoiceStatus,
            values_callable=lambda x: [e.value for e in x],
        ),
        default=InvoiceStatus.DRAFT,
        nullable=False,
        index=True,
    )
    generated_by: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )
    bank_account_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("bank_accounts.id", ondelete="SET NULL"),
        nullable=True,
    )
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Relationships
    line_items: Mapped[List["InvoiceLineItem"]] = relationship(
        "InvoiceLineItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="InvoiceLineItem.id",
    )
    resort: Mapped["Resort"] = relationship("Resort")
    generator: Mapped["User"] = relationship("User")
    bank_account: Mapped[Optional["BankAccount"]] = relationship("BankAccount")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Invoice(id={self.id}, number='{self.invoice_number}', "
            f"status={self.status}, total={self.total_revenue})>"
        )


class InvoiceLineItem(Base, TimestampMixin):
    """
    Net revenue and split for one asset category of an invoice.

    Owned by the invoice: deleted with it and replaced wholesale on recompute.
    """

    __tablename__ = "invoice_line_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    asset_category: Mapped[AssetCategory] = mapped_column(
        SQLAlchemyEnum(
            AssetCategory,
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
    revenue: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
        comment="Net revenue for the category within the invoice range",
    )
    dku_percentage: Mapped[Decimal] = mapped_column(PERCENT, nullable=False)
    resort_percentage: Mapped[Decimal] = mapped_column(PERCENT, nullable=False)
    dku_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    resort_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    uses_fallback_config: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
        comment="True when no profit-sharing config existed and 70/30 was applied",
    )
    record_count: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="line_items")

    def __repr__(self) -> str:
        return (
            f"<InvoiceLineItem(invoice_id={self.invoice_id}, "
            f"category={self.asset_category}, revenue={self.revenue})>"
        )


class InvoiceSequence(Base):
    """
    Last issued invoice sequence number per calendar month (YYYYMM).

    Advanced with a compare-and-set UPDATE so two allocations in the same
    month can never hand out the same number.
    """

    __tablename__ = "invoice_sequences"

    year_month: Mapped[str] = mapped_column(
        String(6),
        primary_key=True,
    )
    last_value: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:
        return f"<InvoiceSequence(year_month='{self.year_month}', last_value={self.last_value})>"
