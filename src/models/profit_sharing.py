"""
ProfitSharingConfig model.
"""

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Date, ForeignKey, UniqueConstraint
from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import PERCENT, BaseModel
from src.models.revenue import AssetCategory

if TYPE_CHECKING:
    from src.models.resort import Resort


class ProfitSharingConfig(BaseModel):
    """
    Operator ("DKU") / resort percentage split for one resort and category.

    Rows are effective-dated and never overwritten: saving a new split
    appends a row, and resolution picks the latest effective_from.
    """

    __tablename__ = "profit_sharing_configs"
    __table_args__ = (
        UniqueConstraint(
            "resort_id",
            "asset_category",
            "effective_from",
            name="uq_profit_sharing_resort_category_effective",
        ),
    )

    resort_id: Mapped[int] = mapped_column(
        ForeignKey("resorts.id", ondelete="CASCADE"),
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
    dku_percentage: Mapped[Decimal] = mapped_column(PERCENT, nullable=False)
    resort_percentage: Mapped[Decimal] = mapped_column(PERCENT, nullable=False)
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)

    resort: Mapped["Resort"] = relationship("Resort", back_populates="profit_configs")

    def __repr__(self) -> str:
        return (
            f"<ProfitSharingConfig(resort_id={self.resort_id}, category={self.asset_category}, "
            f"dku={self.dku_percentage}, resort={self.resort_percentage}, "
            f"effective_from={self.effective_from})>"
        )
