"""
Profit-sharing configuration lookup.

The latest ``effective_from`` row for the exact (resort, category) pair wins,
regardless of the revenue's own date. Historical revenue is therefore always
split with today's configuration; pass ``as_of`` to resolve point-in-time
instead.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import ConfigFallbackWarning, EngineWarning
from src.models import AssetCategory, ProfitSharingConfig
from src.services.amounts import to_decimal
from src.services.profit_split import check_split_percentages

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedSplit:
    dku_percentage: Decimal
    resort_percentage: Decimal
    is_fallback: bool
    config_id: Optional[int] = None
    effective_from: Optional[date] = None
    warnings: List[EngineWarning] = field(default_factory=list, compare=False)


def fallback_split(category: Optional[AssetCategory] = None) -> ResolvedSplit:
    """The default split applied when a resort/category has no config."""
    dku = settings.fallback_dku_percentage
    resort = settings.fallback_resort_percentage
    label = category.value if category is not None else None
    return ResolvedSplit(
        dku_percentage=dku,
        resort_percentage=resort,
        is_fallback=True,
        warnings=[
            ConfigFallbackWarning(
                f"No profit sharing config; default {dku}/{resort} applied",
                category=label,
            )
        ],
    )


def resolve_profit_config(
    configs: Iterable,
    resort_id: int,
    category,
    as_of: Optional[date] = None,
) -> ResolvedSplit:
    """
    Pick the profit split for a resort and asset category.

    Args:
        configs: Candidate rows (ProfitSharingConfig or look-alikes); rows
            for other resorts/categories are ignored
        resort_id: Resort to resolve for
        category: Asset category (validated against the closed set)
        as_of: Only consider rows effective on or before this date

    Returns:
        ResolvedSplit; ``is_fallback`` is True when no row matched
    """
    category = AssetCategory.parse(category)

    matching = [
        c for c in configs
        if c.resort_id == resort_id
        and AssetCategory.parse(c.asset_category) == category
        and (as_of is None or c.effective_from <= as_of)
    ]
    if not matching:
        logger.debug(f"No profit config for resort {resort_id}/{category.value}, using fallback")
        return fallback_split(category)

    chosen = max(matching, key=lambda c: (c.effective_from, getattr(c, "id", None) or 0))

    warnings = []
    mismatch = check_split_percentages(
        chosen.dku_percentage, chosen.resort_percentage, category.value
    )
    if mismatch:
        warnings.append(mismatch)

    return ResolvedSplit(
        dku_percentage=to_decimal(chosen.dku_percentage),
        resort_percentage=to_decimal(chosen.resort_percentage),
        is_fallback=False,
        config_id=getattr(chosen, "id", None),
        effective_from=chosen.effective_from,
        warnings=warnings,
    )


async def load_profit_configs(
    db: AsyncSession,
    resort_id: int,
) -> Sequence[ProfitSharingConfig]:
    """Load every configuration row (all history) for a resort."""
    result = await db.execute(
        select(ProfitSharingConfig)
        .where(ProfitSharingConfig.resort_id == resort_id)
        .order_by(ProfitSharingConfig.effective_from, ProfitSharingConfig.id)
    )
    return result.scalars().all()


async def current_profit_configs(db: AsyncSession, resort_id: int) -> dict:
    """Resolved split per category for a resort, fallback included."""
    configs = await load_profit_configs(db, resort_id)
    return {
        category: resolve_profit_config(configs, resort_id, category)
        for category in AssetCategory
    }
