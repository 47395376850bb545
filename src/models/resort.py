"""
Resort directory and settlement bank accounts.
"""

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import BaseModel

if TYPE_CHECKING:
    from src.models.profit_sharing import ProfitSharingConfig


class Resort(BaseModel):
    """
    A partner resort where the operator runs rental assets.

    The legal name and address are printed on invoices; the engine itself
    only uses the id.
    """

    __tablename__ = "resorts"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    legal_company_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    company_address: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    contact_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    profit_configs: Mapped[List["ProfitSharingConfig"]] = relationship(
        "ProfitSharingConfig",
        back_populates="resort",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Resort(id={self.id}, name='{self.name}')>"


class BankAccount(BaseModel):
    """
    Settlement account printed on invoices.

    Opaque to the invoicing engine: only the id travels with an invoice.
    """

    __tablename__ = "bank_accounts"

    bank_name: Mapped[str] = mapped_column(String(100), nullable=False)
    account_number: Mapped[str] = mapped_column(String(50), nullable=False)
    account_holder: Mapped[str] = mapped_column(String(255), nullable=False)
    is_default: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<BankAccount(id={self.id}, bank='{self.bank_name}')>"
