"""
Invoice number allocation: INV-YYYYMM-NNNN, sequential within a month.

The next number is one past the larger of the month's sequence counter and
the highest invoice number already issued with the month's prefix, so
invoices created before the counter existed are still respected.

The counter is advanced with a compare-and-set UPDATE. If another writer
moved it first (zero rows updated) or created the month's row first
(unique violation), the allocation is retried with a fresh read.
"""

import logging
import re
from datetime import date
from typing import Optional, Tuple

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import ConcurrencyConflict, ValidationError
from src.models import Invoice, InvoiceSequence

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV"
SEQUENCE_WIDTH = 4

_YEAR_MONTH_RE = re.compile(r"^(\d{4})(0[1-9]|1[0-2])$")
_INVOICE_NUMBER_RE = re.compile(r"^INV-(\d{6})-(\d+)$")


def year_month_of(day: date) -> str:
    return f"{day.year:04d}{day.month:02d}"


def validate_year_month(year_month: str) -> str:
    if not isinstance(year_month, str) or not _YEAR_MONTH_RE.match(year_month):
        raise ValidationError(f"Invalid year-month {year_month!r}, expected YYYYMM")
    return year_month


def month_prefix(year_month: str) -> str:
    return f"{INVOICE_PREFIX}-{validate_year_month(year_month)}-"


def format_invoice_number(year_month: str, sequence: int) -> str:
    """Format ``INV-YYYYMM-NNNN``. Sequences past 9999 simply grow wider."""
    if sequence < 1:
        raise ValidationError("Invoice sequence starts at 1")
    return f"{month_prefix(year_month)}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_invoice_number(invoice_number: str) -> Optional[Tuple[str, int]]:
    """Return (year_month, sequence), or None for numbers in another format."""
    match = _INVOICE_NUMBER_RE.match(invoice_number or "")
    if not match:
        return None
    return match.group(1), int(match.group(2))


async def highest_issued_sequence(db: AsyncSession, year_month: str) -> int:
    """Highest sequence among invoices already numbered in the month, 0 if none."""
    prefix = month_prefix(year_month)
    result = await db.execute(
        select(Invoice.invoice_number).where(Invoice.invoice_number.like(f"{prefix}%"))
    )
    highest = 0
    for number in result.scalars().all():
        parsed = parse_invoice_number(number)
        if parsed and parsed[0] == year_month:
            highest = max(highest, parsed[1])
    return highest


async def allocate_invoice_number(
    db: AsyncSession,
    year_month: str,
    max_attempts: Optional[int] = None,
) -> str:
    """
    Reserve the next invoice number for a month.

    The reservation is part of the caller's transaction: if the invoice is
    never committed, neither is the counter.

    Args:
        db: Database session
        year_month: Month as YYYYMM
        max_attempts: Retry budget, defaults to settings.invoice_number_max_retries

    Returns:
        Invoice number such as "INV-202501-0008"

    Raises:
        ConcurrencyConflict: every attempt lost the race to another writer
    """
    validate_year_month(year_month)
    attempts = max_attempts or settings.invoice_number_max_retries

    for attempt in range(1, attempts + 1):
        issued = await highest_issued_sequence(db, year_month)
        current = await db.scalar(
            select(InvoiceSequence.last_value)
            .where(InvoiceSequence.year_month == year_month)
            .execution_options(populate_existing=True)
        )

        if current is None:
            next_value = issued + 1
            try:
                async with db.begin_nested():
                    db.add(InvoiceSequence(year_month=year_month, last_value=next_value))
            except IntegrityError:
                logger.warning(
                    f"Invoice sequence {year_month} created concurrently "
                    f"(attempt {attempt}/{attempts}), retrying"
                )
                continue
            return format_invoice_number(year_month, next_value)

        next_value = max(current, issued) + 1
        result = await db.execute(
            update(InvoiceSequence)
            .where(
                InvoiceSequence.year_month == year_month,
                InvoiceSequence.last_value == current,
            )
            .values(last_value=next_value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return format_invoice_number(year_month, next_value)

        logger.warning(
            f"Invoice sequence {year_month} moved from {current} "
            f"(attempt {attempt}/{attempts}), retrying"
        )

    raise ConcurrencyConflict(
        f"Could not allocate an invoice number for {year_month} after {attempts} attempts",
        year_month=year_month,
    )

