"""Pydantic schemas for request/response validation."""

from src.schemas.auth import LoginRequest, LoginResponse, TokenPayload, UserResponse
from src.schemas.common import WarningResponse
from src.schemas.invoice import (
    InvoiceGenerateRequest,
    InvoiceListResponse,
    InvoicePreviewResponse,
    InvoiceRangeRequest,
    InvoiceRecomputeRequest,
    InvoiceResponse,
    InvoiceStatusRequest,
    InvoiceWriteResponse,
    LineItemResponse,
)
from src.schemas.resort import (
    BankAccountCreate,
    BankAccountResponse,
    ProfitSharingResponse,
    ProfitSharingUpdate,
    ResortCreate,
    ResortResponse,
)
from src.schemas.revenue import (
    AmountInput,
    RevenueCreate,
    RevenueListResponse,
    RevenueResponse,
    RevenueSummaryResponse,
    RevenueUpdate,
    RevenueWriteResponse,
)

__all__ = [
    # Auth
    "LoginRequest",
    "LoginResponse",
    "TokenPayload",
    "UserResponse",
    # Common
    "WarningResponse",
    # Revenue
    "AmountInput",
    "RevenueCreate",
    "RevenueUpdate",
    "RevenueResponse",
    "RevenueWriteResponse",
    "RevenueListResponse",
    "RevenueSummaryResponse",
    # Invoice
    "InvoiceRangeRequest",
    "InvoiceGenerateRequest",
    "InvoiceRecomputeRequest",
    "InvoiceStatusRequest",
    "InvoiceResponse",
    "InvoiceWriteResponse",
    "InvoiceListResponse",
    "InvoicePreviewResponse",
    "LineItemResponse",
    # Resort
    "ResortCreate",
    "ResortResponse",
    "ProfitSharingUpdate",
    "ProfitSharingResponse",
    "BankAccountCreate",
    "BankAccountResponse",
]
