"""
Database models for the resort revenue service.

All models are exported here for convenient imports:
    from src.models import Invoice, RevenueRecord, Resort, etc.
"""

from src.models.audit import AuditAction, AuditLog
from src.models.base import Base, BaseModel, TimestampMixin
from src.models.invoice import Invoice, InvoiceLineItem, InvoiceSequence, InvoiceStatus
from src.models.profit_sharing import ProfitSharingConfig
from src.models.resort import BankAccount, Resort
from src.models.revenue import AmountType, AssetCategory, RevenueRecord
from src.models.user import FINANCE_ROLES, User, UserRole

__all__ = [
    # Base
    "Base",
    "BaseModel",
    "TimestampMixin",
    # User
    "User",
    "UserRole",
    "FINANCE_ROLES",
    # Resort directory
    "Resort",
    "BankAccount",
    # Revenue
    "RevenueRecord",
    "AssetCategory",
    "AmountType",
    # Profit sharing
    "ProfitSharingConfig",
    # Invoicing
    "Invoice",
    "InvoiceLineItem",
    "InvoiceSequence",
    "InvoiceStatus",
    # Audit
    "AuditLog",
    "AuditAction",
]
