"""Revenue ledger schemas."""

from datetime import date as Date
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.models import AmountType, AssetCategory
from src.schemas.common import WarningResponse
from src.services.amounts import AmountSpec


class AmountInput(BaseModel):
    """Discount or tax/service as entered: a percent (10 = 10%) or a fixed amount."""

    type: AmountType = AmountType.PERCENTAGE
    value: Decimal = Decimal("0")

    def to_spec(self) -> AmountSpec:
        return AmountSpec(self.type, self.value)


class RevenueCreate(BaseModel):
    """Record one booking. ``amount`` is gross, discount and tax inclusive."""

    resort_id: int
    asset_category: AssetCategory
    date: Date
    amount: Decimal = Field(..., ge=0)
    billing_no: Optional[str] = Field(None, max_length=100)
    discount: AmountInput = Field(default_factory=AmountInput)
    tax_service: AmountInput = Field(default_factory=AmountInput)


class RevenueUpdate(BaseModel):
    """Overwrite a booking. Omitted fields keep their stored value."""

    resort_id: Optional[int] = None
    asset_category: Optional[AssetCategory] = None
    date: Optional[Date] = None
    amount: Optional[Decimal] = Field(None, ge=0)
    billing_no: Optional[str] = Field(None, max_length=100)
    discount: Optional[AmountInput] = None
    tax_service: Optional[AmountInput] = None


class RevenueResponse(BaseModel):
    id: int
    resort_id: int
    asset_category: AssetCategory
    date: Date
    billing_no: Optional[str]
    amount: Decimal
    discount_type: AmountType
    discount_value: Decimal
    discount: Decimal
    discount_percentage: Decimal
    tax_service_type: AmountType
    tax_service_value: Decimal
    tax_service: Decimal
    tax_service_percentage: Decimal
    net_amount: Decimal
    recorded_by: int
    created_at: datetime
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class RevenueWriteResponse(BaseModel):
    record: RevenueResponse
    warnings: List[WarningResponse] = []


class RevenueListResponse(BaseModel):
    """Paginated list of revenue records."""

    items: List[RevenueResponse]
    total: int
    page: int
    per_page: int
    pages: int


class RevenueSummaryResponse(BaseModel):
    record_count: int
    total_revenue: Decimal
    total_discount: Decimal
    total_tax_service: Decimal
    total_net: Decimal
    total_dku_share: Decimal
    total_resort_share: Decimal
    records_without_config: int
    by_category: Dict[str, Decimal]

    model_config = {"from_attributes": True}
