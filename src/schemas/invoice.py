"""
Invoice schemas.

Generation and recompute take a resort, an inclusive date range and an
optional category filter; responses always carry the line items.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from src.models import AssetCategory, InvoiceStatus
from src.schemas.common import WarningResponse


class InvoiceRangeRequest(BaseModel):
    resort_id: int
    start_date: date
    end_date: date
    categories: Optional[List[AssetCategory]] = Field(
        None,
        description="Categories to bill; omitted bills every category",
    )
    bank_account_id: Optional[int] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self


class InvoiceGenerateRequest(InvoiceRangeRequest):
    categories: List[AssetCategory] = Field(..., min_length=1)


class InvoiceRecomputeRequest(InvoiceRangeRequest):
    pass


class InvoiceStatusRequest(BaseModel):
    status: InvoiceStatus


class LineItemResponse(BaseModel):
    asset_category: AssetCategory
    revenue: Decimal
    dku_percentage: Decimal
    resort_percentage: Decimal
    dku_amount: Decimal
    resort_amount: Decimal
    uses_fallback_config: bool
    record_count: int

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    """Invoice header with its line items."""

    id: int
    invoice_number: str
    resort_id: int
    start_date: date
    end_date: date
    total_revenue: Decimal
    dku_share: Decimal
    resort_share: Decimal
    status: InvoiceStatus
    generated_by: int
    bank_account_id: Optional[int]
    version: int
    created_at: datetime
    updated_at: Optional[datetime]
    line_items: List[LineItemResponse]

    # Related info
    resort_name: Optional[str] = None

    model_config = {"from_attributes": True}


class InvoiceSummaryResponse(BaseModel):
    """Invoice header for list views."""

    id: int
    invoice_number: str
    resort_id: int
    start_date: date
    end_date: date
    total_revenue: Decimal
    dku_share: Decimal
    resort_share: Decimal
    status: InvoiceStatus
    created_at: datetime

    resort_name: Optional[str] = None

    model_config = {"from_attributes": True}


class InvoiceListResponse(BaseModel):
    """Paginated list of invoices."""

    items: List[InvoiceSummaryResponse]
    total: int
    page: int
    per_page: int
    pages: int


class InvoiceWriteResponse(BaseModel):
    invoice: InvoiceResponse
    warnings: List[WarningResponse] = []


class InvoicePreviewLine(LineItemResponse):
    gross_revenue: Decimal


class InvoicePreviewResponse(BaseModel):
    """Computed line items and totals, not persisted."""

    resort_id: int
    start_date: date
    end_date: date
    line_items: List[InvoicePreviewLine]
    total_revenue: Decimal
    total_dku_share: Decimal
    total_resort_share: Decimal
    record_count: int
    is_empty: bool
    warnings: List[WarningResponse] = []

    model_config = {"from_attributes": True}
