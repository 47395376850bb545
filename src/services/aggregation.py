"""
Aggregate a resort's revenue over a date range into invoice line items.

Steps:
1. Keep records for the resort dated within [start, end] (inclusive),
   optionally restricted to a set of asset categories
2. Decompose every record from its stored discount/tax inputs
3. Sum net (and gross) per asset category
4. Resolve the profit split once per category and apply it to the summed
   net, so rounding happens once per line, not once per record
5. Totals are running sums of the emitted lines, so the invoice total is
   always exactly the sum of its line revenue

``aggregate`` is pure: identical inputs give identical results. An empty
selection is signalled through ``AggregationResult.is_empty``; it is up to
the caller to refuse to create an invoice from it.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.exceptions import EngineWarning, NegativeNetWarning, ValidationError
from src.models import AmountType, AssetCategory, Resort, RevenueRecord
from src.services.amounts import ZERO, AmountSpec, DecomposedAmount, decompose, to_decimal
from src.services.config_resolver import load_profit_configs, resolve_profit_config
from src.services.profit_split import split

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineItemDraft:
    """One computed invoice line, not yet persisted."""

    asset_category: AssetCategory
    revenue: Decimal
    gross_revenue: Decimal
    dku_percentage: Decimal
    resort_percentage: Decimal
    dku_amount: Decimal
    resort_amount: Decimal
    uses_fallback_config: bool
    record_count: int
    warnings: List[EngineWarning] = field(default_factory=list, compare=False)


@dataclass(frozen=True)
class AggregationResult:
    resort_id: int
    start_date: date
    end_date: date
    line_items: List[LineItemDraft]
    total_revenue: Decimal
    total_dku_share: Decimal
    total_resort_share: Decimal
    record_count: int
    warnings: List[EngineWarning] = field(default_factory=list, compare=False)

    @property
    def is_empty(self) -> bool:
        return not self.line_items

    @property
    def uses_fallback_config(self) -> bool:
        return any(item.uses_fallback_config for item in self.line_items)


def normalize_categories(categories: Optional[Iterable]) -> Optional[List[AssetCategory]]:
    """Validate a category filter. None or empty means every category."""
    if not categories:
        return None
    parsed = []
    for raw in categories:
        category = AssetCategory.parse(raw)
        if category not in parsed:
            parsed.append(category)
    return parsed


def validate_range(start_date: date, end_date: date) -> None:
    if start_date is None or end_date is None:
        raise ValidationError("Start and end date are required")
    if start_date > end_date:
        raise ValidationError(
            "Start date must not be after end date",
            start_date=start_date,
            end_date=end_date,
        )


def decompose_record(record, allow_negative_rates: bool = True) -> DecomposedAmount:
    """Decompose a stored revenue record from its entered discount/tax inputs."""
    discount = AmountSpec(
        AmountType(record.discount_type or AmountType.PERCENTAGE),
        to_decimal(record.discount_value, "discount"),
    )
    tax = AmountSpec(
        AmountType(record.tax_service_type or AmountType.PERCENTAGE),
        to_decimal(record.tax_service_value, "tax/service"),
    )
    return decompose(record.amount, discount, tax, allow_negative_rates=allow_negative_rates)


def aggregate(
    records: Iterable,
    configs: Iterable,
    resort_id: int,
    start_date: date,
    end_date: date,
    categories: Optional[Iterable] = None,
    allow_negative_rates: bool = True,
) -> AggregationResult:
    """
    Build invoice line items and totals for a resort and date range.

    Args:
        records: Revenue records (rows outside the resort/range/filter are ignored)
        configs: Profit-sharing config rows for the resort
        resort_id: Resort being invoiced
        start_date: First day of the range (inclusive)
        end_date: Last day of the range (inclusive)
        categories: Optional asset-category filter
        allow_negative_rates: Passed through to ``decompose``

    Returns:
        AggregationResult; ``is_empty`` when nothing matched
    """
    validate_range(start_date, end_date)
    category_filter = normalize_categories(categories)
    configs = list(configs)

    # category -> [net_sum, gross_sum, count]
    groups = OrderedDict((category, [ZERO, ZERO, 0]) for category in AssetCategory)
    matched = 0

    for record in records:
        if record.resort_id != resort_id:
            continue
        if not (start_date <= record.date <= end_date):
            continue
        category = AssetCategory.parse(record.asset_category)
        if category_filter is not None and category not in category_filter:
            continue

        parts = decompose_record(record, allow_negative_rates=allow_negative_rates)
        group = groups[category]
        group[0] += parts.net
        group[1] += parts.gross
        group[2] += 1
        matched += 1

    line_items = []
    warnings = []
    total_revenue = ZERO
    total_dku = ZERO
    total_resort = ZERO

    for category, (net, gross, count) in groups.items():
        if count == 0:
            continue

        resolved = resolve_profit_config(configs, resort_id, category)
        shares = split(net, resolved.dku_percentage, resolved.resort_percentage)

        item_warnings = list(resolved.warnings)
        if net < ZERO:
            item_warnings.append(
                NegativeNetWarning(f"Net revenue is negative ({net})", category=category.value)
            )

        line_items.append(
            LineItemDraft(
                asset_category=category,
                revenue=net,
                gross_revenue=gross,
                dku_percentage=shares.dku_percentage,
                resort_percentage=shares.resort_percentage,
                dku_amount=shares.dku_amount,
                resort_amount=shares.resort_amount,
                uses_fallback_config=resolved.is_fallback,
                record_count=count,
                warnings=item_warnings,
            )
        )
        warnings.extend(item_warnings)

        total_revenue += net
        total_dku += shares.dku_amount
        total_resort += shares.resort_amount

    for warning in warnings:
        logger.warning(f"Resort {resort_id} {start_date}..{end_date}: [{warning.code}] {warning.message}")

    return AggregationResult(
        resort_id=resort_id,
        start_date=start_date,
        end_date=end_date,
        line_items=line_items,
        total_revenue=total_revenue,
        total_dku_share=total_dku,
        total_resort_share=total_resort,
        record_count=matched,
        warnings=warnings,
    )


async def load_revenue(
    db: AsyncSession,
    resort_id: int,
    start_date: date,
    end_date: date,
    categories: Optional[Sequence[AssetCategory]] = None,
) -> Sequence[RevenueRecord]:
    """Revenue rows for a resort within an inclusive date range."""
    query = select(RevenueRecord).where(
        RevenueRecord.resort_id == resort_id,
        RevenueRecord.date >= start_date,
        RevenueRecord.date <= end_date,
    )
    if categories:
        query = query.where(RevenueRecord.asset_category.in_(categories))
    query = query.order_by(RevenueRecord.date, RevenueRecord.id)

    result = await db.execute(query)
    return result.scalars().all()


async def aggregate_for_resort(
    db: AsyncSession,
    resort_id: int,
    start_date: date,
    end_date: date,
    categories: Optional[Iterable] = None,
) -> AggregationResult:
    """Load the ledger and configuration for a resort and run ``aggregate``."""
    validate_range(start_date, end_date)
    category_filter = normalize_categories(categories)

    resort = await db.get(Resort, resort_id)
    if resort is None:
        raise ValidationError(f"Unknown resort {resort_id}", resort_id=resort_id)

    records = await load_revenue(db, resort_id, start_date, end_date, category_filter)
    configs = await load_profit_configs(db, resort_id)

    return aggregate(
        records,
        configs,
        resort_id,
        start_date,
        end_date,
        category_filter,
        allow_negative_rates=settings.allow_negative_rates,
    )
