"""
Resort directory, profit-sharing configuration and settlement bank accounts.
"""

import logging
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import NotFoundError, SplitMismatchWarning, ValidationError
from src.models import AssetCategory, BankAccount, ProfitSharingConfig, Resort
from src.services.amounts import to_decimal
from src.services.config_resolver import ResolvedSplit, current_profit_configs
from src.services.profit_split import check_split_percentages

logger = logging.getLogger(__name__)


async def get_resort(db: AsyncSession, resort_id: int) -> Resort:
    resort = await db.get(Resort, resort_id)
    if resort is None:
        raise NotFoundError(f"Resort {resort_id} not found", resort_id=resort_id)
    return resort


async def list_resorts(db: AsyncSession) -> Sequence[Resort]:
    result = await db.execute(select(Resort).order_by(Resort.name, Resort.id))
    return result.scalars().all()


async def create_resort(
    db: AsyncSession,
    name: str,
    effective_from: Optional[date] = None,
    **details,
) -> Resort:
    """
    Create a resort and seed the default split for every asset category.

    Args:
        db: Database session
        name: Display name
        effective_from: Date the seeded configs take effect (today by default)
        **details: legal_company_name, company_address, contact_* fields
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Resort name is required")

    effective_from = effective_from or date.today()
    resort = Resort(name=name, **details)
    resort.profit_configs = [
        ProfitSharingConfig(
            asset_category=category,
            dku_percentage=settings.fallback_dku_percentage,
            resort_percentage=settings.fallback_resort_percentage,
            effective_from=effective_from,
        )
        for category in AssetCategory
    ]
    db.add(resort)
    await db.flush()

    logger.info(f"Created resort {resort.id} '{resort.name}' with default profit sharing")
    return resort


async def get_profit_sharing(db: AsyncSession, resort_id: int) -> Dict[AssetCategory, ResolvedSplit]:
    await get_resort(db, resort_id)
    return await current_profit_configs(db, resort_id)


async def save_profit_sharing(
    db: AsyncSession,
    resort_id: int,
    splits: Dict,
    effective_from: Optional[date] = None,
) -> Tuple[List[ProfitSharingConfig], List[SplitMismatchWarning]]:
    """
    Append a new effective-dated split for each category given.

    A second save on the same effective date replaces that day's row, since
    (resort, category, effective_from) is unique. Earlier rows are kept.

    Args:
        db: Database session
        resort_id: Resort to configure
        splits: {category: (dku_percentage, resort_percentage)}
        effective_from: Date the new split takes effect (today by default)

    Returns:
        (saved rows, split-mismatch warnings for splits not summing to 100)
    """
    await get_resort(db, resort_id)
    effective_from = effective_from or date.today()

    saved = []
    warnings = []
    for raw_category, (dku, resort_share) in splits.items():
        category = AssetCategory.parse(raw_category)
        dku = to_decimal(dku, "operator percentage")
        resort_share = to_decimal(resort_share, "resort percentage")
        for label, value in (("Operator", dku), ("Resort", resort_share)):
            if not (0 <= value <= 100):
                raise ValidationError(
                    f"{label} percentage for {category.value} must be between 0 and 100",
                    value=value,
                )

        mismatch = check_split_percentages(dku, resort_share, category.value)
        if mismatch:
            warnings.append(mismatch)

        existing = await db.scalar(
            select(ProfitSharingConfig).where(
                ProfitSharingConfig.resort_id == resort_id,
                ProfitSharingConfig.asset_category == category,
                ProfitSharingConfig.effective_from == effective_from,
            )
        )
        if existing is None:
            existing = ProfitSharingConfig(
                resort_id=resort_id,
                asset_category=category,
                effective_from=effective_from,
            )
            db.add(existing)
        existing.dku_percentage = dku
        existing.resort_percentage = resort_share
        saved.append(existing)

    await db.flush()
    for warning in warnings:
        logger.warning(f"Resort {resort_id}: [{warning.code}] {warning.message}")
    logger.info(f"Saved profit sharing for resort {resort_id}: {len(saved)} categories from {effective_from}")
    return saved, warnings


async def list_bank_accounts(db: AsyncSession) -> Sequence[BankAccount]:
    result = await db.execute(
        select(BankAccount).order_by(BankAccount.is_default.desc(), BankAccount.id)
    )
    return result.scalars().all()


async def create_bank_account(
    db: AsyncSession,
    bank_name: str,
    account_number: str,
    account_holder: str,
    is_default: bool = False,
) -> BankAccount:
    """Add a settlement account. A new default account demotes the previous one."""
    if is_default:
        await db.execute(
            update(BankAccount)
            .where(BankAccount.is_default == True)  # noqa: E712
            .values(is_default=False)
            .execution_options(synchronize_session=False)
        )

    account = BankAccount(
        bank_name=bank_name,
        account_number=account_number,
        account_holder=account_holder,
        is_default=is_default,
    )
    db.add(account)
    await db.flush()

    logger.info(f"Created bank account {account.id} ({bank_name}), default={is_default}")
    return account
