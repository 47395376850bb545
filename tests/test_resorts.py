"""
Tests for resort setup, profit-sharing history and bank accounts.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from src.exceptions import NotFoundError, ValidationError
from src.models import AssetCategory, BankAccount, ProfitSharingConfig
from src.services.resorts import (
    create_bank_account,
    create_resort,
    get_profit_sharing,
    list_bank_accounts,
    save_profit_sharing,
)


class TestCreateResort:
    async def test_seeds_default_split_for_every_category(self, db_session):
        resort = await create_resort(
            db_session, "Nirwana Resort", effective_from=date(2025, 1, 1), contact_name="Budi"
        )
        await db_session.commit()

        splits = await get_profit_sharing(db_session, resort.id)

        assert set(splits) == set(AssetCategory)
        for split in splits.values():
            assert split.is_fallback is False
            assert split.dku_percentage == Decimal("70")
            assert split.resort_percentage == Decimal("30")

    async def test_name_required(self, db_session):
        with pytest.raises(ValidationError):
            await create_resort(db_session, "   ")

    async def test_unknown_resort(self, db_session):
        with pytest.raises(NotFoundError):
            await get_profit_sharing(db_session, 999)


class TestSaveProfitSharing:
    async def test_appends_history(self, db_session, resort):
        await save_profit_sharing(
            db_session, resort.id, {"SEA_SPORT": (75, 25)}, effective_from=date(2025, 6, 1)
        )
        await db_session.commit()

        rows = (
            await db_session.execute(
                select(ProfitSharingConfig).where(
                    ProfitSharingConfig.resort_id == resort.id,
                    ProfitSharingConfig.asset_category == AssetCategory.SEA_SPORT,
                )
            )
        ).scalars().all()
        assert len(rows) == 2

        splits = await get_profit_sharing(db_session, resort.id)
        assert splits[AssetCategory.SEA_SPORT].dku_percentage == Decimal("75")
        assert splits[AssetCategory.ATV].is_fallback is True

    async def test_same_day_save_replaces_that_days_row(self, db_session, resort):
        day = date(2025, 7, 1)
        await save_profit_sharing(db_session, resort.id, {"ATV": (60, 40)}, effective_from=day)
        await db_session.commit()
        saved, _ = await save_profit_sharing(db_session, resort.id, {"ATV": (65, 35)}, effective_from=day)
        await db_session.commit()

        rows = (
            await db_session.execute(
                select(ProfitSharingConfig).where(ProfitSharingConfig.asset_category == AssetCategory.ATV)
            )
        ).scalars().all()
        assert len(rows) == 1
        assert saved[0].dku_percentage == Decimal("65")

    async def test_mismatch_saved_with_warning(self, db_session, resort):
        saved, warnings = await save_profit_sharing(db_session, resort.id, {"UTV": (60, 30)})

        assert saved[0].dku_percentage == Decimal("60")
        assert [w.category for w in warnings] == ["UTV"]

    @pytest.mark.parametrize("dku,resort_share", [(101, 0), (-1, 50)])
    async def test_out_of_range_rejected(self, db_session, resort, dku, resort_share):
        with pytest.raises(ValidationError):
            await save_profit_sharing(db_session, resort.id, {"ATV": (dku, resort_share)})


class TestBankAccounts:
    async def test_new_default_demotes_previous(self, db_session, default_bank_account):
        created = await create_bank_account(
            db_session, "Mandiri", "9876543210", "PT Operator", is_default=True
        )
        await db_session.commit()

        defaults = (
            await db_session.execute(select(BankAccount.id).where(BankAccount.is_default == True))  # noqa: E712
        ).scalars().all()
        assert defaults == [created.id]

        accounts = await list_bank_accounts(db_session)
        assert [a.id for a in accounts][0] == created.id
