"""
Revenue ledger: record, correct, remove and summarize booking takings.

Every write decomposes the gross amount from the entered discount and
tax/service inputs, so the stored discount/tax/net always match the inputs.
Records covered by an invoice that has left DRAFT are locked.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import (
    EngineWarning,
    NotFoundError,
    RevenueLockedError,
    ValidationError,
)
from src.models import (
    AssetCategory,
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    Resort,
    RevenueRecord,
)
from src.services.aggregation import decompose_record, normalize_categories
from src.services.amounts import ZERO, AmountSpec, DecomposedAmount, decompose
from src.services.config_resolver import load_profit_configs, resolve_profit_config
from src.services.profit_split import split

logger = logging.getLogger(__name__)

LOCKING_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PAID)


@dataclass
class RevenueWrite:
    """A persisted revenue record and the findings from decomposing it."""

    record: RevenueRecord
    decomposition: DecomposedAmount
    warnings: List[EngineWarning] = field(default_factory=list)


@dataclass
class RevenueSummary:
    record_count: int = 0
    total_revenue: Decimal = ZERO
    total_discount: Decimal = ZERO
    total_tax_service: Decimal = ZERO
    total_net: Decimal = ZERO
    total_dku_share: Decimal = ZERO
    total_resort_share: Decimal = ZERO
    records_without_config: int = 0
    by_category: dict = field(default_factory=dict)


def _decompose_inputs(amount, discount: AmountSpec, tax_service: AmountSpec) -> DecomposedAmount:
    parts = decompose(
        amount,
        discount,
        tax_service,
        allow_negative_rates=settings.allow_negative_rates,
    )
    if parts.net < ZERO:
        if settings.reject_negative_net:
            raise ValidationError(
                f"Discount and tax/service exceed the gross amount (net {parts.net})",
                net=parts.net,
            )
        logger.warning(f"Revenue of {parts.gross} has negative net {parts.net}")
    return parts


def _apply(record: RevenueRecord, discount: AmountSpec, tax_service: AmountSpec,
           parts: DecomposedAmount) -> None:
    record.amount = parts.gross
    record.discount_type = discount.type
    record.discount_value = discount.value
    record.discount = parts.discount
    record.discount_percentage = parts.discount_percentage
    record.tax_service_type = tax_service.type
    record.tax_service_value = tax_service.value
    record.tax_service = parts.tax_service
    record.tax_service_percentage = parts.tax_service_percentage


async def _ensure_resort(db: AsyncSession, resort_id: int) -> None:
    if await db.get(Resort, resort_id) is None:
        raise ValidationError(f"Unknown resort {resort_id}", resort_id=resort_id)


async def find_locking_invoice(
    db: AsyncSession,
    resort_id: int,
    day: date,
    category: AssetCategory,
) -> Optional[Invoice]:
    """A SENT or PAID invoice whose range and categories cover the slot, if any."""
    result = await db.execute(
        select(Invoice)
        .join(InvoiceLineItem, InvoiceLineItem.invoice_id == Invoice.id)
        .where(
            Invoice.resort_id == resort_id,
            Invoice.status.in_(LOCKING_STATUSES),
            Invoice.start_date <= day,
            Invoice.end_date >= day,
            InvoiceLineItem.asset_category == category,
        )
        .order_by(Invoice.id)
        .limit(1)
    )
    return result.scalars().first()


async def ensure_unlocked(db: AsyncSession, record: RevenueRecord) -> None:
    if not settings.lock_invoiced_revenue:
        return
    invoice = await find_locking_invoice(db, record.resort_id, record.date, record.asset_category)
    if invoice is not None:
        raise RevenueLockedError(
            f"Revenue record {record.id} is covered by invoice "
            f"{invoice.invoice_number} ({invoice.status.value})",
            record_id=record.id,
            invoice_number=invoice.invoice_number,
        )


async def get_revenue(db: AsyncSession, record_id: int) -> RevenueRecord:
    record = await db.get(RevenueRecord, record_id)
    if record is None:
        raise NotFoundError(f"Revenue record {record_id} not found", record_id=record_id)
    return record


async def record_revenue(
    db: AsyncSession,
    resort_id: int,
    asset_category,
    day: date,
    amount,
    recorded_by: int,
    discount: Optional[AmountSpec] = None,
    tax_service: Optional[AmountSpec] = None,
    billing_no: Optional[str] = None,
) -> RevenueWrite:
    """
    Record one booking's gross takings.

    Raises:
        ValidationError: unknown resort or category, negative gross, invalid
            discount/tax input, or negative net when that is disallowed
    """
    category = AssetCategory.parse(asset_category)
    discount = discount or AmountSpec()
    tax_service = tax_service or AmountSpec()
    if day is None:
        raise ValidationError("Revenue date is required")

    await _ensure_resort(db, resort_id)
    parts = _decompose_inputs(amount, discount, tax_service)

    record = RevenueRecord(
        resort_id=resort_id,
        asset_category=category,
        date=day,
        billing_no=billing_no,
        recorded_by=recorded_by,
    )
    _apply(record, discount, tax_service, parts)
    db.add(record)
    await db.flush()

    logger.info(
        f"Recorded revenue {record.id}: resort={resort_id} {category.value} "
        f"{day} gross={parts.gross} net={parts.net}"
    )
    return RevenueWrite(record=record, decomposition=parts, warnings=parts.warnings)


async def update_revenue(
    db: AsyncSession,
    record_id: int,
    resort_id: Optional[int] = None,
    asset_category=None,
    day: Optional[date] = None,
    amount=None,
    discount: Optional[AmountSpec] = None,
    tax_service: Optional[AmountSpec] = None,
    billing_no: Optional[str] = None,
) -> RevenueWrite:
    """
    Overwrite a revenue record. Omitted fields keep their stored value.

    The decomposition is recomputed from the resulting inputs. Both the old
    and the new (resort, date, category) slot must be free of sent or paid
    invoices.

    Raises:
        NotFoundError: unknown record
        RevenueLockedError: record is covered by a sent or paid invoice
        ValidationError: invalid replacement values
    """
    record = await get_revenue(db, record_id)
    await ensure_unlocked(db, record)

    if resort_id is not None and resort_id != record.resort_id:
        await _ensure_resort(db, resort_id)
        record.resort_id = resort_id
    if asset_category is not None:
        record.asset_category = AssetCategory.parse(asset_category)
    if day is not None:
        record.date = day
    if billing_no is not None:
        record.billing_no = billing_no or None

    discount = discount or AmountSpec(record.discount_type, record.discount_value)
    tax_service = tax_service or AmountSpec(record.tax_service_type, record.tax_service_value)
    gross = record.amount if amount is None else amount

    parts = _decompose_inputs(gross, discount, tax_service)
    await ensure_unlocked(db, record)
    _apply(record, discount, tax_service, parts)
    await db.flush()

    logger.info(f"Updated revenue {record.id}: gross={parts.gross} net={parts.net}")
    return RevenueWrite(record=record, decomposition=parts, warnings=parts.warnings)


async def delete_revenue(db: AsyncSession, record_id: int) -> RevenueRecord:
    record = await get_revenue(db, record_id)
    await ensure_unlocked(db, record)

    await db.delete(record)
    await db.flush()

    logger.info(f"Deleted revenue {record_id}")
    return record


def _filtered(query, resort_id, category, start_date, end_date, search):
    if resort_id is not None:
        query = query.where(RevenueRecord.resort_id == resort_id)
    if category:
        query = query.where(RevenueRecord.asset_category == AssetCategory.parse(category))
    if start_date:
        query = query.where(RevenueRecord.date >= start_date)
    if end_date:
        query = query.where(RevenueRecord.date <= end_date)
    if search:
        query = query.where(RevenueRecord.billing_no.ilike(f"%{search}%"))
    return query


async def list_revenue(
    db: AsyncSession,
    resort_id: Optional[int] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 50,
) -> Tuple[Sequence[RevenueRecord], int]:
    """Newest-first page of revenue records and the total match count."""
    query = _filtered(select(RevenueRecord), resort_id, category, start_date, end_date, search)

    total = await db.scalar(select(func.count()).select_from(query.subquery()))

    query = query.order_by(RevenueRecord.date.desc(), RevenueRecord.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)
    result = await db.execute(query)
    return result.scalars().all(), total or 0


async def summarize_revenue(
    db: AsyncSession,
    resort_id: Optional[int] = None,
    category: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
) -> RevenueSummary:
    """
    Totals over the filtered ledger, including the operator/resort shares.

    Shares are split per record with the configuration resolved for the
    record's resort and category; records that fall back to the default
    split are counted in ``records_without_config``.
    """
    query = _filtered(select(RevenueRecord), resort_id, category, start_date, end_date, search)
    result = await db.execute(query.order_by(RevenueRecord.id))
    records = result.scalars().all()

    configs_by_resort = {}
    summary = RevenueSummary()
    per_category = defaultdict(lambda: ZERO)

    for record in records:
        if record.resort_id not in configs_by_resort:
            configs_by_resort[record.resort_id] = await load_profit_configs(db, record.resort_id)

        parts = decompose_record(record, allow_negative_rates=settings.allow_negative_rates)
        resolved = resolve_profit_config(
            configs_by_resort[record.resort_id], record.resort_id, record.asset_category
        )
        shares = split(parts.net, resolved.dku_percentage, resolved.resort_percentage)

        summary.record_count += 1
        summary.total_revenue += parts.gross
        summary.total_discount += parts.discount
        summary.total_tax_service += parts.tax_service
        summary.total_net += parts.net
        summary.total_dku_share += shares.dku_amount
        summary.total_resort_share += shares.resort_amount
        if resolved.is_fallback:
            summary.records_without_config += 1
        per_category[AssetCategory.parse(record.asset_category).value] += parts.net

    summary.by_category = dict(per_category)
    return summary


async def available_categories(
    db: AsyncSession,
    resort_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[AssetCategory]:
    """Categories with at least one revenue record for the resort, in enum order."""
    query = _filtered(
        select(RevenueRecord.asset_category).distinct(),
        resort_id,
        None,
        start_date,
        end_date,
        None,
    )
    result = await db.execute(query)
    present = {AssetCategory.parse(value) for value in result.scalars().all()}
    return normalize_categories([c for c in AssetCategory if c in present]) or []
