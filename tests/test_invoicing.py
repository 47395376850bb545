"""
Tests for the invoice lifecycle against an in-memory database.

Covers:
- Generating a draft invoice with per-category line items
- Refusing empty ranges, unknown bank accounts and resorts
- Recompute replaces line items and keeps number and status
- Forward-only status workflow and optimistic locking
- Reading, listing and deleting invoices
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from src.exceptions import (
    ConcurrencyConflict,
    ConfigFallbackWarning,
    EmptyResultError,
    InvalidStatusTransition,
    NotFoundError,
    ValidationError,
)
from src.models import AssetCategory, Invoice, InvoiceLineItem, InvoiceStatus
from src.services import invoicing
from src.services.amounts import AmountSpec
from src.services.invoicing import (
    advance_status,
    delete_invoice,
    generate_invoice,
    get_invoice_with_line_items,
    line_item_totals,
    list_invoices,
    recompute_invoice,
)
from src.services.revenue_ledger import record_revenue

JAN_1 = date(2025, 1, 1)
JAN_31 = date(2025, 1, 31)
ISSUED = date(2025, 2, 3)


async def _add_revenue(db, resort, user, category, day, amount, discount=None, tax=None):
    written = await record_revenue(
        db,
        resort_id=resort.id,
        asset_category=category,
        day=day,
        amount=Decimal(amount),
        recorded_by=user.id,
        discount=discount,
        tax_service=tax,
    )
    return written.record


@pytest.fixture
async def january_ledger(db_session, resort, admin_user):
    await _add_revenue(db_session, resort, admin_user, AssetCategory.ATV, date(2025, 1, 5), "100000")
    await _add_revenue(db_session, resort, admin_user, AssetCategory.ATV, date(2025, 1, 20), "200000")
    await _add_revenue(
        db_session,
        resort,
        admin_user,
        AssetCategory.SEA_SPORT,
        date(2025, 1, 10),
        "1000000",
        discount=AmountSpec.percentage(10),
        tax=AmountSpec.percentage(5),
    )
    await db_session.commit()


async def _generate(db, resort, user, **kwargs):
    params = {
        "start_date": JAN_1,
        "end_date": JAN_31,
        "categories": None,
        "generated_by": user.id,
        "issued_on": ISSUED,
    }
    params.update(kwargs)
    outcome = await generate_invoice(db, resort.id, **params)
    await db.commit()
    return outcome


# ── generate ───────────────────────────────────────────


class TestGenerateInvoice:
    async def test_creates_draft_with_line_items(
        self, db_session, resort, admin_user, january_ledger, default_bank_account
    ):
        outcome = await _generate(db_session, resort, admin_user)
        invoice = outcome.invoice

        assert invoice.invoice_number == "INV-202502-0001"
        assert invoice.status == InvoiceStatus.DRAFT
        assert invoice.bank_account_id == default_bank_account.id

        atv, sea = invoice.line_items
        assert atv.asset_category == AssetCategory.ATV
        assert atv.revenue == Decimal("300000.00")
        assert atv.dku_amount == Decimal("210000.00")
        assert atv.resort_amount == Decimal("90000.00")
        assert atv.uses_fallback_config is True
        assert atv.record_count == 2

        assert sea.asset_category == AssetCategory.SEA_SPORT
        assert sea.revenue == Decimal("865800.87")
        assert sea.dku_percentage == Decimal("80")
        assert sea.uses_fallback_config is False

        assert invoice.total_revenue == Decimal("1165800.87")
        assert invoice.dku_share == atv.dku_amount + sea.dku_amount
        assert invoice.resort_share == atv.resort_amount + sea.resort_amount
        assert any(isinstance(w, ConfigFallbackWarning) for w in outcome.warnings)

    async def test_totals_match_persisted_lines(self, db_session, resort, admin_user, january_ledger):
        outcome = await _generate(db_session, resort, admin_user)

        invoice = await get_invoice_with_line_items(db_session, outcome.invoice.id)
        totals = line_item_totals(invoice.line_items)

        assert totals["total_revenue"] == invoice.total_revenue
        assert totals["dku_share"] == invoice.dku_share
        assert totals["resort_share"] == invoice.resort_share

    async def test_category_filter(self, db_session, resort, admin_user, january_ledger):
        outcome = await _generate(db_session, resort, admin_user, categories=["SEA_SPORT"])

        assert [l.asset_category for l in outcome.invoice.line_items] == [AssetCategory.SEA_SPORT]
        assert outcome.invoice.total_revenue == Decimal("865800.87")

    async def test_numbers_increase_within_month(self, db_session, resort, admin_user, january_ledger):
        first = await _generate(db_session, resort, admin_user)
        second = await _generate(db_session, resort, admin_user, categories=["ATV"])

        assert first.invoice.invoice_number == "INV-202502-0001"
        assert second.invoice.invoice_number == "INV-202502-0002"

    async def test_empty_range_creates_nothing(self, db_session, resort, admin_user, january_ledger):
        with pytest.raises(EmptyResultError):
            await generate_invoice(
                db_session,
                resort.id,
                date(2025, 3, 1),
                date(2025, 3, 31),
                None,
                generated_by=admin_user.id,
            )
        await db_session.rollback()

        count = await db_session.scalar(select(func.count()).select_from(Invoice))
        assert count == 0

    async def test_unknown_bank_account(self, db_session, resort, admin_user, january_ledger):
        with pytest.raises(ValidationError):
            await _generate(db_session, resort, admin_user, bank_account_id=999)

    async def test_unknown_resort(self, db_session, admin_user):
        with pytest.raises(ValidationError):
            await generate_invoice(db_session, 999, JAN_1, JAN_31, None, generated_by=admin_user.id)

    async def test_start_after_end(self, db_session, resort, admin_user):
        with pytest.raises(ValidationError):
            await generate_invoice(db_session, resort.id, JAN_31, JAN_1, None, generated_by=admin_user.id)


# ── recompute ──────────────────────────────────────────


class TestRecomputeInvoice:
    async def test_replaces_line_items_and_keeps_number(
        self, db_session, resort, admin_user, january_ledger
    ):
        original = (await _generate(db_session, resort, admin_user)).invoice
        number = original.invoice_number

        await _add_revenue(db_session, resort, admin_user, AssetCategory.UTV, date(2025, 1, 25), "50000")
        await db_session.commit()

        outcome = await recompute_invoice(db_session, original.id, resort.id, JAN_1, JAN_31)
        await db_session.commit()
        invoice = outcome.invoice

        assert invoice.invoice_number == number
        assert invoice.status == InvoiceStatus.DRAFT
        assert [l.asset_category for l in invoice.line_items] == [
            AssetCategory.ATV,
            AssetCategory.UTV,
            AssetCategory.SEA_SPORT,
        ]
        assert invoice.total_revenue == Decimal("1215800.87")

        stored = await db_session.scalar(
            select(func.count()).select_from(InvoiceLineItem).where(InvoiceLineItem.invoice_id == invoice.id)
        )
        assert stored == 3

    async def test_narrower_range(self, db_session, resort, admin_user, january_ledger):
        original = (await _generate(db_session, resort, admin_user)).invoice

        outcome = await recompute_invoice(
            db_session, original.id, resort.id, date(2025, 1, 1), date(2025, 1, 9)
        )
        await db_session.commit()

        assert outcome.invoice.total_revenue == Decimal("100000.00")
        assert outcome.invoice.end_date == date(2025, 1, 9)

    async def test_empty_range_leaves_invoice_untouched(
        self, db_session, resort, admin_user, january_ledger
    ):
        original = (await _generate(db_session, resort, admin_user)).invoice

        with pytest.raises(EmptyResultError):
            await recompute_invoice(db_session, original.id, resort.id, date(2025, 6, 1), date(2025, 6, 30))
        await db_session.rollback()

        invoice = await get_invoice_with_line_items(db_session, original.id)
        assert invoice.total_revenue == Decimal("1165800.87")
        assert len(invoice.line_items) == 2

    async def test_failed_insert_keeps_previous_line_items(
        self, db_session, resort, admin_user, january_ledger, monkeypatch
    ):
        original = (await _generate(db_session, resort, admin_user)).invoice

        def broken_line_item(draft):
            return InvoiceLineItem(asset_category=draft.asset_category, revenue=None)

        monkeypatch.setattr(invoicing, "_to_line_item", broken_line_item)

        # Old lines are deleted and flushed before the new ones fail to insert
        with pytest.raises(ConcurrencyConflict):
            await recompute_invoice(db_session, original.id, resort.id, JAN_1, date(2025, 1, 9))
        await db_session.rollback()

        invoice = await get_invoice_with_line_items(db_session, original.id)
        assert invoice.end_date == JAN_31
        assert invoice.total_revenue == Decimal("1165800.87")
        assert [l.asset_category for l in invoice.line_items] == [
            AssetCategory.ATV,
            AssetCategory.SEA_SPORT,
        ]
        stored = await db_session.scalar(
            select(func.count()).select_from(InvoiceLineItem).where(InvoiceLineItem.invoice_id == original.id)
        )
        assert stored == 2

    async def test_only_drafts(self, db_session, resort, admin_user, january_ledger):
        invoice = (await _generate(db_session, resort, admin_user)).invoice
        await advance_status(db_session, invoice.id, InvoiceStatus.SENT)
        await db_session.commit()

        with pytest.raises(ValidationError):
            await recompute_invoice(db_session, invoice.id, resort.id, JAN_1, JAN_31)

    async def test_unknown_invoice(self, db_session, resort):
        with pytest.raises(NotFoundError):
            await recompute_invoice(db_session, 404, resort.id, JAN_1, JAN_31)


# ── status ─────────────────────────────────────────────


class TestAdvanceStatus:
    async def test_forward_steps(self, db_session, resort, admin_user, january_ledger):
        invoice = (await _generate(db_session, resort, admin_user)).invoice
        assert invoice.version == 1

        await advance_status(db_session, invoice.id, "SENT")
        await db_session.commit()
        paid = await advance_status(db_session, invoice.id, InvoiceStatus.PAID)
        await db_session.commit()

        assert paid.status == InvoiceStatus.PAID
        assert paid.version == 3

    @pytest.mark.parametrize("target", [InvoiceStatus.PAID, InvoiceStatus.DRAFT])
    async def test_skip_or_repeat_rejected(self, db_session, resort, admin_user, january_ledger, target):
        invoice = (await _generate(db_session, resort, admin_user)).invoice

        with pytest.raises(InvalidStatusTransition):
            await advance_status(db_session, invoice.id, target)

    async def test_backward_rejected(self, db_session, resort, admin_user, january_ledger):
        invoice = (await _generate(db_session, resort, admin_user)).invoice
        await advance_status(db_session, invoice.id, InvoiceStatus.SENT)
        await db_session.commit()

        with pytest.raises(InvalidStatusTransition):
            await advance_status(db_session, invoice.id, InvoiceStatus.DRAFT)

    async def test_unknown_status(self, db_session, resort, admin_user, january_ledger):
        invoice = (await _generate(db_session, resort, admin_user)).invoice
        with pytest.raises(ValidationError):
            await advance_status(db_session, invoice.id, "ARCHIVED")

    async def test_stale_writer_loses(self, session_factory, db_session, resort, admin_user, january_ledger):
        invoice = (await _generate(db_session, resort, admin_user)).invoice

        async with session_factory() as other:
            await advance_status(other, invoice.id, InvoiceStatus.SENT)
            await other.commit()

        # db_session still holds version 1
        invoice.status = InvoiceStatus.SENT
        with pytest.raises(ConcurrencyConflict):
            await invoicing._flush(db_session, invoice.id)


# ── read / list / delete ───────────────────────────────


class TestReadAndDelete:
    async def test_get_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await get_invoice_with_line_items(db_session, 12345)

    async def test_list_filters(self, db_session, resort, admin_user, january_ledger):
        first = (await _generate(db_session, resort, admin_user)).invoice
        await _generate(db_session, resort, admin_user, categories=["ATV"])
        await advance_status(db_session, first.id, InvoiceStatus.SENT)
        await db_session.commit()

        invoices, total = await list_invoices(db_session, status="SENT")
        assert total == 1
        assert invoices[0].id == first.id

        invoices, total = await list_invoices(db_session, search="0002")
        assert total == 1

        invoices, total = await list_invoices(db_session, resort_id=resort.id, per_page=1)
        assert total == 2
        assert len(invoices) == 1

    async def test_delete_draft_removes_line_items(self, db_session, resort, admin_user, january_ledger):
        invoice = (await _generate(db_session, resort, admin_user)).invoice

        await delete_invoice(db_session, invoice.id)
        await db_session.commit()

        assert await db_session.scalar(select(func.count()).select_from(Invoice)) == 0
        assert await db_session.scalar(select(func.count()).select_from(InvoiceLineItem)) == 0

    async def test_paid_invoice_cannot_be_deleted(self, db_session, resort, admin_user, january_ledger):
        invoice = (await _generate(db_session, resort, admin_user)).invoice
        await advance_status(db_session, invoice.id, InvoiceStatus.SENT)
        await advance_status(db_session, invoice.id, InvoiceStatus.PAID)
        await db_session.commit()

        with pytest.raises(ValidationError):
            await delete_invoice(db_session, invoice.id)
