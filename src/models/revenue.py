"""
RevenueRecord model and the closed asset-category set.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.exceptions import ValidationError
from src.models.base import MONEY, RATE, BaseModel

if TYPE_CHECKING:
    from src.models.resort import Resort
    from src.models.user import User


class AssetCategory(str, Enum):
    """Rental asset categories. Declaration order is the invoice line order."""
    ATV = "ATV"
    UTV = "UTV"
    SEA_SPORT = "SEA_SPORT"
    POOL_TOYS = "POOL_TOYS"
    LINE_SPORT = "LINE_SPORT"

    @classmethod
    def parse(cls, value) -> "AssetCategory":
        """Coerce a raw value into the closed set, rejecting unknown keys."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown asset category: {value!r}",
                allowed=", ".join(c.value for c in cls),
            ) from None


class AmountType(str, Enum):
    """How a discount or tax/service value is expressed."""
    PERCENTAGE = "PERCENTAGE"
    FIXED_AMOUNT = "FIXED_AMOUNT"


def _enum_column(enum_cls):
    return SQLAlchemyEnum(
        enum_cls,
        values_callable=lambda x: [e.value for e in x],
    )


class RevenueRecord(BaseModel):
    """
    A single booking's takings for one resort and asset category.

    ``amount`` is the gross, discount- and tax-inclusive value. The entered
    discount/tax inputs (type + value) are stored alongside the amounts they
    decompose to, so every overwrite recomputes from the inputs.
    """

    __tablename__ = "revenue_records"
    __table_args__ = (
        Index("ix_revenue_records_resort_date", "resort_id", "date"),
    )

    resort_id: Mapped[int] = mapped_column(
        ForeignKey("resorts.id", ondelete="RESTRICT"),
        nullable=False,
    )
    asset_category: Mapped[AssetCategory] = mapped_column(
        _enum_column(AssetCategory),
        nullable=False,
        index=True,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    billing_no: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
        comment="External billing / booking reference",
    )

    amount: Mapped[Decimal] = mapped_column(
        MONEY,
        nullable=False,
        comment="Gross amount, discount and tax inclusive",
    )

    # Discount
    discount_type: Mapped[AmountType] = mapped_column(
        _enum_column(AmountType),
        default=AmountType.PERCENTAGE,
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(
        RATE,
        default=Decimal("0"),
        nullable=False,
        comment="Entered rate in percent or fixed amount",
    )
    discount: Mapped[Decimal] = mapped_column(
        MONEY,
        default=Decimal("0"),
        nullable=False,
    )
    discount_percentage: Mapped[Decimal] = mapped_column(
        RATE,
        default=Decimal("0"),
        nullable=False,
    )

    # Tax & service
    tax_service_type: Mapped[AmountType] = mapped_column(
        _enum_column(AmountType),
        default=AmountType.PERCENTAGE,
        nullable=False,
    )
    tax_service_value: Mapped[Decimal] = mapped_column(
        RATE,
        default=Decimal("0"),
        nullable=False,
    )
    tax_service: Mapped[Decimal] = mapped_column(
        MONEY,
        default=Decimal("0"),
        nullable=False,
    )
    tax_service_percentage: Mapped[Decimal] = mapped_column(
        RATE,
        default=Decimal("0"),
        nullable=False,
    )

    recorded_by: Mapped[int] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
    )

    # Relationships
    resort: Mapped["Resort"] = relationship("Resort")
    recorder: Mapped["User"] = relationship("User")

    @property
    def net_amount(self) -> Decimal:
        return self.amount - self.discount - self.tax_service

    def __repr__(self) -> str:
        return (
            f"<RevenueRecord(id={self.id}, resort_id={self.resort_id}, "
            f"category={self.asset_category}, date={self.date}, amount={self.amount})>"
        )
