"""
Tests for the revenue ledger: writes, the invoiced-revenue lock and summaries.
"""

from datetime import date
from decimal import Decimal

import pytest

from src.config import settings
from src.exceptions import NegativeNetWarning, NotFoundError, RevenueLockedError, ValidationError
from src.models import AmountType, AssetCategory, InvoiceStatus
from src.services.aggregation import aggregate_for_resort
from src.services.amounts import AmountSpec
from src.services.invoicing import advance_status, generate_invoice
from src.services.revenue_ledger import (
    available_categories,
    delete_revenue,
    list_revenue,
    record_revenue,
    summarize_revenue,
    update_revenue,
)


async def _record(db, resort, user, category=AssetCategory.ATV, day=date(2025, 1, 15),
                  amount="100000", **kwargs):
    written = await record_revenue(
        db,
        resort_id=resort.id,
        asset_category=category,
        day=day,
        amount=Decimal(amount),
        recorded_by=user.id,
        **kwargs,
    )
    await db.commit()
    return written


async def _sent_invoice(db, resort, user, categories=None):
    outcome = await generate_invoice(
        db,
        resort.id,
        date(2025, 1, 1),
        date(2025, 1, 31),
        categories,
        generated_by=user.id,
    )
    await advance_status(db, outcome.invoice.id, InvoiceStatus.SENT)
    await db.commit()
    return outcome.invoice


# ── writes ─────────────────────────────────────────────


class TestRecordRevenue:
    async def test_stores_decomposition(self, db_session, resort, admin_user):
        written = await _record(
            db_session,
            resort,
            admin_user,
            amount="1000000",
            billing_no="BILL-001",
            discount=AmountSpec.percentage(10),
            tax_service=AmountSpec.percentage(5),
        )
        record = written.record

        assert record.discount == Decimal("90909.09")
        assert record.tax_service == Decimal("43290.04")
        assert record.net_amount == Decimal("865800.87")
        assert record.discount_type == AmountType.PERCENTAGE
        assert record.discount_value == Decimal("10")
        assert record.billing_no == "BILL-001"
        assert written.warnings == []

    async def test_unknown_resort(self, db_session, admin_user):
        with pytest.raises(ValidationError):
            await record_revenue(
                db_session,
                resort_id=999,
                asset_category="ATV",
                day=date(2025, 1, 1),
                amount=Decimal("1"),
                recorded_by=admin_user.id,
            )

    async def test_unknown_category(self, db_session, resort, admin_user):
        with pytest.raises(ValidationError):
            await _record(db_session, resort, admin_user, category="BANANA_BOAT")

    async def test_oversized_fixed_discount_kept_with_warning(self, db_session, resort, admin_user):
        written = await _record(
            db_session, resort, admin_user, amount="100", discount=AmountSpec.fixed(150)
        )

        assert written.record.discount == Decimal("150.00")
        assert written.record.net_amount == Decimal("-50.00")
        assert [type(w) for w in written.warnings] == [NegativeNetWarning]

    async def test_negative_net_rejected_when_configured(
        self, db_session, resort, admin_user, monkeypatch
    ):
        monkeypatch.setattr(settings, "reject_negative_net", True)

        with pytest.raises(ValidationError):
            await _record(
                db_session, resort, admin_user, amount="100",
                discount=AmountSpec.fixed(60), tax_service=AmountSpec.fixed(41),
            )


class TestUpdateRevenue:
    async def test_recomputes_from_stored_inputs(self, db_session, resort, admin_user):
        written = await _record(
            db_session, resort, admin_user, amount="1100", discount=AmountSpec.percentage(10)
        )

        updated = await update_revenue(db_session, written.record.id, amount=Decimal("2200"))
        await db_session.commit()

        assert updated.record.amount == Decimal("2200.00")
        assert updated.record.discount == Decimal("200.00")
        assert updated.record.net_amount == Decimal("2000.00")

    async def test_switch_to_fixed_discount(self, db_session, resort, admin_user):
        written = await _record(db_session, resort, admin_user, amount="1000")

        updated = await update_revenue(
            db_session, written.record.id, discount=AmountSpec.fixed(250)
        )

        assert updated.record.discount_type == AmountType.FIXED_AMOUNT
        assert updated.record.discount_percentage == Decimal("25.0000")
        assert updated.record.net_amount == Decimal("750.00")

    async def test_missing_record(self, db_session):
        with pytest.raises(NotFoundError):
            await update_revenue(db_session, 999, amount=Decimal("1"))


# ── lock ───────────────────────────────────────────────


class TestInvoicedRevenueLock:
    async def test_sent_invoice_locks_update_and_delete(self, db_session, resort, admin_user):
        record = (await _record(db_session, resort, admin_user)).record
        await _sent_invoice(db_session, resort, admin_user)

        with pytest.raises(RevenueLockedError):
            await update_revenue(db_session, record.id, amount=Decimal("1"))
        with pytest.raises(RevenueLockedError):
            await delete_revenue(db_session, record.id)

    async def test_moving_into_locked_slot_rejected(self, db_session, resort, admin_user):
        await _record(db_session, resort, admin_user)
        outside = (await _record(db_session, resort, admin_user, day=date(2025, 2, 10))).record
        await _sent_invoice(db_session, resort, admin_user)

        with pytest.raises(RevenueLockedError):
            await update_revenue(db_session, outside.id, day=date(2025, 1, 20))

    async def test_draft_invoice_does_not_lock(self, db_session, resort, admin_user):
        record = (await _record(db_session, resort, admin_user)).record
        await generate_invoice(
            db_session, resort.id, date(2025, 1, 1), date(2025, 1, 31), None,
            generated_by=admin_user.id,
        )
        await db_session.commit()

        updated = await update_revenue(db_session, record.id, amount=Decimal("5"))
        assert updated.record.amount == Decimal("5.00")

    async def test_other_category_not_locked(self, db_session, resort, admin_user):
        await _record(db_session, resort, admin_user, category=AssetCategory.ATV)
        utv = (await _record(db_session, resort, admin_user, category=AssetCategory.UTV)).record
        await _sent_invoice(db_session, resort, admin_user, categories=["ATV"])

        await delete_revenue(db_session, utv.id)

    async def test_lock_can_be_disabled(self, db_session, resort, admin_user, monkeypatch):
        record = (await _record(db_session, resort, admin_user)).record
        await _sent_invoice(db_session, resort, admin_user)
        monkeypatch.setattr(settings, "lock_invoiced_revenue", False)

        await delete_revenue(db_session, record.id)


# ── queries ────────────────────────────────────────────


class TestQueries:
    async def test_summary(self, db_session, resort, admin_user):
        await _record(db_session, resort, admin_user, category=AssetCategory.ATV, amount="100000")
        await _record(
            db_session,
            resort,
            admin_user,
            category=AssetCategory.SEA_SPORT,
            amount="1000000",
            discount=AmountSpec.percentage(10),
            tax_service=AmountSpec.percentage(5),
        )

        summary = await summarize_revenue(db_session, resort_id=resort.id)

        assert summary.record_count == 2
        assert summary.total_revenue == Decimal("1100000.00")
        assert summary.total_discount == Decimal("90909.09")
        assert summary.total_tax_service == Decimal("43290.04")
        assert summary.total_net == Decimal("965800.87")
        # ATV falls back to 70/30, SEA_SPORT is configured 80/20
        assert summary.total_dku_share == Decimal("70000.00") + Decimal("692640.70")
        assert summary.records_without_config == 1
        assert summary.by_category == {
            "ATV": Decimal("100000.00"),
            "SEA_SPORT": Decimal("865800.87"),
        }

    async def test_list_filters_and_search(self, db_session, resort, admin_user):
        await _record(db_session, resort, admin_user, billing_no="MNG-1001")
        await _record(db_session, resort, admin_user, billing_no="MNG-1002", day=date(2025, 2, 1))
        await _record(db_session, resort, admin_user, category=AssetCategory.UTV)

        records, total = await list_revenue(db_session, search="mng-100")
        assert total == 2

        records, total = await list_revenue(db_session, start_date=date(2025, 2, 1))
        assert total == 1
        assert records[0].billing_no == "MNG-1002"

        records, total = await list_revenue(db_session, category="UTV")
        assert total == 1

    async def test_available_categories(self, db_session, resort, admin_user):
        await _record(db_session, resort, admin_user, category=AssetCategory.LINE_SPORT)
        await _record(db_session, resort, admin_user, category=AssetCategory.ATV)
        await _record(db_session, resort, admin_user, category=AssetCategory.ATV, day=date(2025, 5, 1))

        assert await available_categories(db_session, resort.id) == [
            AssetCategory.ATV,
            AssetCategory.LINE_SPORT,
        ]
        assert await available_categories(
            db_session, resort.id, date(2025, 5, 1), date(2025, 5, 31)
        ) == [AssetCategory.ATV]

    async def test_summary_applies_negative_rate_setting(
        self, db_session, resort, admin_user, monkeypatch
    ):
        await _record(db_session, resort, admin_user, amount="900", discount=AmountSpec.percentage(-10))
        monkeypatch.setattr(settings, "allow_negative_rates", False)

        with pytest.raises(ValidationError):
            await summarize_revenue(db_session, resort_id=resort.id)
        with pytest.raises(ValidationError):
            await aggregate_for_resort(db_session, resort.id, date(2025, 1, 1), date(2025, 1, 31))
