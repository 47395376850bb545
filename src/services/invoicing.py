"""
Invoice lifecycle: generate, recompute, advance status, read, delete.

Nothing here commits. Every operation runs inside the caller's transaction
(one request = one transaction via ``get_db``), so a failure between deleting
old line items and inserting new ones rolls both back.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from src.exceptions import (
    ConcurrencyConflict,
    EmptyResultError,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
)
from src.models import BankAccount, Invoice, InvoiceLineItem, InvoiceStatus
from src.services.aggregation import AggregationResult, LineItemDraft, aggregate_for_resort
from src.services.invoice_numbers import allocate_invoice_number, year_month_of

logger = logging.getLogger(__name__)


@dataclass
class InvoiceOutcome:
    """A persisted invoice together with the aggregation that produced it."""

    invoice: Invoice
    aggregation: AggregationResult

    @property
    def warnings(self) -> list:
        return self.aggregation.warnings


def parse_status(value) -> InvoiceStatus:
    if isinstance(value, InvoiceStatus):
        return value
    try:
        return InvoiceStatus(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Unknown invoice status: {value!r}") from None


def _to_line_item(draft: LineItemDraft) -> InvoiceLineItem:
    return InvoiceLineItem(
        asset_category=draft.asset_category,
        revenue=draft.revenue,
        dku_percentage=draft.dku_percentage,
        resort_percentage=draft.resort_percentage,
        dku_amount=draft.dku_amount,
        resort_amount=draft.resort_amount,
        uses_fallback_config=draft.uses_fallback_config,
        record_count=draft.record_count,
    )


async def resolve_bank_account(
    db: AsyncSession,
    bank_account_id: Optional[int],
) -> Optional[int]:
    """Validate an explicit bank account, or fall back to the default one."""
    if bank_account_id is not None:
        account = await db.get(BankAccount, bank_account_id)
        if account is None:
            raise ValidationError(
                f"Unknown bank account {bank_account_id}",
                bank_account_id=bank_account_id,
            )
        return account.id

    return await db.scalar(
        select(BankAccount.id)
        .where(BankAccount.is_default == True)  # noqa: E712
        .order_by(BankAccount.id)
        .limit(1)
    )


async def _flush(db: AsyncSession, invoice_id: Optional[int] = None) -> None:
    """Flush, turning lost races into ConcurrencyConflict."""
    try:
        await db.flush()
    except StaleDataError:
        raise ConcurrencyConflict(
            f"Invoice {invoice_id} was modified by another user",
            invoice_id=invoice_id,
        ) from None
    except IntegrityError as e:
        raise ConcurrencyConflict(
            "Invoice write collided with another writer",
            invoice_id=invoice_id,
            error=e.orig,
        ) from None


async def _get_invoice_for_update(db: AsyncSession, invoice_id: int) -> Invoice:
    result = await db.execute(
        select(Invoice)
        .where(Invoice.id == invoice_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    invoice = result.scalar_one_or_none()
    if invoice is None:
        raise NotFoundError(f"Invoice {invoice_id} not found", invoice_id=invoice_id)
    return invoice


async def generate_invoice(
    db: AsyncSession,
    resort_id: int,
    start_date: date,
    end_date: date,
    categories: Optional[Iterable],
    generated_by: int,
    bank_account_id: Optional[int] = None,
    issued_on: Optional[date] = None,
) -> InvoiceOutcome:
    """
    Create a DRAFT invoice with one line item per category that has revenue.

    Args:
        db: Database session
        resort_id: Resort being invoiced
        start_date: First day of the billed range (inclusive)
        end_date: Last day of the billed range (inclusive)
        categories: Asset categories to bill; None bills every category
        generated_by: ID of the user generating the invoice
        bank_account_id: Settlement account; default account when omitted
        issued_on: Date whose month numbers the invoice (today by default)

    Raises:
        ValidationError: bad range, category, resort or bank account
        EmptyResultError: no revenue matched; nothing is written
        ConcurrencyConflict: invoice numbering could not be serialized
    """
    bank_account_id = await resolve_bank_account(db, bank_account_id)
    aggregation = await aggregate_for_resort(db, resort_id, start_date, end_date, categories)

    if aggregation.is_empty:
        raise EmptyResultError(
            "No revenue data found for the selected period",
            resort_id=resort_id,
            start_date=start_date,
            end_date=end_date,
        )

    invoice_number = await allocate_invoice_number(db, year_month_of(issued_on or date.today()))

    invoice = Invoice(
        invoice_number=invoice_number,
        resort_id=resort_id,
        start_date=start_date,
        end_date=end_date,
        total_revenue=aggregation.total_revenue,
        dku_share=aggregation.total_dku_share,
        resort_share=aggregation.total_resort_share,
        status=InvoiceStatus.DRAFT,
        generated_by=generated_by,
        bank_account_id=bank_account_id,
        line_items=[_to_line_item(draft) for draft in aggregation.line_items],
    )
    db.add(invoice)
    await _flush(db)

    logger.info(
        f"Generated invoice {invoice_number} for resort {resort_id} "
        f"({start_date}..{end_date}): total={invoice.total_revenue}, "
        f"lines={len(invoice.line_items)}"
    )
    return InvoiceOutcome(invoice=invoice, aggregation=aggregation)


async def recompute_invoice(
    db: AsyncSession,
    invoice_id: int,
    resort_id: int,
    start_date: date,
    end_date: date,
    bank_account_id: Optional[int] = None,
    categories: Optional[Iterable] = None,
) -> InvoiceOutcome:
    """
    Replace an invoice's line items and totals from the current ledger.

    The invoice number and status are preserved. Only DRAFT invoices can be
    recomputed. The old line items are deleted and the new ones inserted in
    the same transaction.

    Raises:
        NotFoundError: unknown invoice
        ValidationError: invoice is not a draft, or bad inputs
        EmptyResultError: new range has no revenue; the invoice is untouched
        ConcurrencyConflict: another writer updated the invoice meanwhile
    """
    invoice = await _get_invoice_for_update(db, invoice_id)
    if invoice.status != InvoiceStatus.DRAFT:
        raise ValidationError(
            f"Invoice {invoice.invoice_number} is {invoice.status.value}; only drafts can be recomputed",
            invoice_id=invoice_id,
        )

    bank_account_id = await resolve_bank_account(db, bank_account_id)
    aggregation = await aggregate_for_resort(db, resort_id, start_date, end_date, categories)

    if aggregation.is_empty:
        raise EmptyResultError(
            "No revenue data found for the selected period",
            invoice_id=invoice_id,
            start_date=start_date,
            end_date=end_date,
        )

    previous_total = invoice.total_revenue

    invoice.line_items.clear()
    await _flush(db, invoice_id)

    invoice.resort_id = resort_id
    invoice.start_date = start_date
    invoice.end_date = end_date
    invoice.bank_account_id = bank_account_id
    invoice.total_revenue = aggregation.total_revenue
    invoice.dku_share = aggregation.total_dku_share
    invoice.resort_share = aggregation.total_resort_share
    invoice.line_items.extend(_to_line_item(draft) for draft in aggregation.line_items)
    await _flush(db, invoice_id)

    logger.info(
        f"Recomputed invoice {invoice.invoice_number}: total {previous_total} -> "
        f"{invoice.total_revenue}, lines={len(invoice.line_items)}"
    )
    return InvoiceOutcome(invoice=invoice, aggregation=aggregation)


async def advance_status(db: AsyncSession, invoice_id: int, next_status) -> Invoice:
    """
    Move an invoice one step forward: DRAFT -> SENT -> PAID.

    Raises:
        InvalidStatusTransition: backward, skipped or repeated transition
    """
    target = parse_status(next_status)
    invoice = await _get_invoice_for_update(db, invoice_id)

    allowed = invoice.status.next_status
    if target != allowed:
        raise InvalidStatusTransition(
            f"Cannot move invoice {invoice.invoice_number} from "
            f"{invoice.status.value} to {target.value}",
            current=invoice.status.value,
            requested=target.value,
        )

    invoice.status = target
    await _flush(db, invoice_id)

    logger.info(f"Invoice {invoice.invoice_number} status -> {target.value}")
    return invoice


async def get_invoice_with_line_items(db: AsyncSession, invoice_id: int) -> Invoice:
    """Load an invoice with its line items, resort, generator and bank account."""
    result = await db.execute(
        select(Invoice)
        .options(
            selectinload(Invoice.line_items),
            selectinload(Invoice.resort),
            selectinload(Invoice.generator),
            selectinload(Invoice.bank_account),
        )
        .where(Invoice.id == invoice_id)
        .execution_options(populate_existing=True)
    )
    invoice = result.scalar_one_or_none()
    if invoice is None:
        raise NotFoundError(f"Invoice {invoice_id} not found", invoice_id=invoice_id)
    return invoice


async def list_invoices(
    db: AsyncSession,
    resort_id: Optional[int] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 20,
) -> Tuple[Sequence[Invoice], int]:
    """Filtered, newest-first page of invoices and the total match count."""
    query = select(Invoice).options(selectinload(Invoice.resort))

    if resort_id is not None:
        query = query.where(Invoice.resort_id == resort_id)

    if status:
        query = query.where(Invoice.status == parse_status(status))

    # Date filters apply to the start of the billed period
    if start_date:
        query = query.where(Invoice.start_date >= start_date)

    if end_date:
        query = query.where(Invoice.start_date <= end_date)

    if search:
        query = query.where(Invoice.invoice_number.ilike(f"%{search}%"))

    count_query = select(func.count()).select_from(query.subquery())
    total = await db.scalar(count_query)

    query = query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
    query = query.offset((page - 1) * per_page).limit(per_page)

    result = await db.execute(query)
    return result.scalars().all(), total or 0


async def delete_invoice(db: AsyncSession, invoice_id: int) -> Invoice:
    """
    Delete an invoice and its line items. Revenue records are untouched.

    Raises:
        ValidationError: the invoice is already PAID
    """
    invoice = await _get_invoice_for_update(db, invoice_id)
    if invoice.status == InvoiceStatus.PAID:
        raise ValidationError(
            f"Invoice {invoice.invoice_number} is paid and cannot be deleted",
            invoice_id=invoice_id,
        )

    await db.delete(invoice)
    await _flush(db, invoice_id)

    logger.info(f"Deleted invoice {invoice.invoice_number}")
    return invoice


def line_item_totals(line_items: List[InvoiceLineItem]) -> dict:
    """Re-sum persisted line items; used to reconcile against invoice totals."""
    return {
        "total_revenue": sum((item.revenue for item in line_items), start=0),
        "dku_share": sum((item.dku_amount for item in line_items), start=0),
        "resort_share": sum((item.resort_amount for item in line_items), start=0),
    }
