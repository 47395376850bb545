"""Resort, profit-sharing and bank account schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from src.models import AssetCategory
from src.schemas.common import WarningResponse


class ResortCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    legal_company_name: Optional[str] = Field(None, max_length=255)
    company_address: Optional[str] = None
    contact_name: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=50)


class ResortResponse(BaseModel):
    id: int
    name: str
    legal_company_name: Optional[str]
    company_address: Optional[str]
    contact_name: Optional[str]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class CategorySplit(BaseModel):
    asset_category: AssetCategory
    dku_percentage: Decimal = Field(..., ge=0, le=100)
    resort_percentage: Decimal = Field(..., ge=0, le=100)


class ProfitSharingUpdate(BaseModel):
    """New split per category, effective from ``effective_from`` (today when omitted)."""

    splits: List[CategorySplit] = Field(..., min_length=1)
    effective_from: Optional[date] = None


class CategorySplitResponse(CategorySplit):
    is_fallback: bool
    effective_from: Optional[date] = None


class ProfitSharingResponse(BaseModel):
    resort_id: int
    splits: List[CategorySplitResponse]
    warnings: List[WarningResponse] = []


class BankAccountCreate(BaseModel):
    bank_name: str = Field(..., min_length=1, max_length=100)
    account_number: str = Field(..., min_length=1, max_length=50)
    account_holder: str = Field(..., min_length=1, max_length=255)
    is_default: bool = False


class BankAccountResponse(BaseModel):
    id: int
    bank_name: str
    account_number: str
    account_holder: str
    is_default: bool

    model_config = {"from_attributes": True}
