"""
Operator ("DKU") / resort profit split.

Rules:
- Operator share = net * operator% / 100
- Resort share = net * resort% / 100
- No renormalization: a split that does not add up to 100 is applied as
  configured and reported with a SplitMismatchWarning
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from src.exceptions import SplitMismatchWarning
from src.services.amounts import HUNDRED, quantize_money, to_decimal


@dataclass(frozen=True)
class ProfitSplit:
    net: Decimal
    dku_percentage: Decimal
    resort_percentage: Decimal
    dku_amount: Decimal
    resort_amount: Decimal

    @property
    def unallocated(self) -> Decimal:
        """Rounding (or mis-configured split) remainder left with nobody."""
        return self.net - self.dku_amount - self.resort_amount


def check_split_percentages(
    dku_percentage,
    resort_percentage,
    category: Optional[str] = None,
) -> Optional[SplitMismatchWarning]:
    """Return a warning when the two percentages do not sum to 100."""
    total = to_decimal(dku_percentage) + to_decimal(resort_percentage)
    if total != HUNDRED:
        return SplitMismatchWarning(
            f"Operator {dku_percentage}% + resort {resort_percentage}% = {total}%, not 100%",
            category=category,
        )
    return None


def split(net, dku_percentage, resort_percentage) -> ProfitSplit:
    """Split a net amount between the operator and the resort.

    Args:
        net: Net revenue (after discount and tax/service)
        dku_percentage: Operator share in percent
        resort_percentage: Resort share in percent

    Returns:
        ProfitSplit with both amounts rounded half-up to 2 places
    """
    net = to_decimal(net, "net amount")
    dku_pct = to_decimal(dku_percentage, "operator percentage")
    resort_pct = to_decimal(resort_percentage, "resort percentage")

    return ProfitSplit(
        net=net,
        dku_percentage=dku_pct,
        resort_percentage=resort_pct,
        dku_amount=quantize_money(net * dku_pct / HUNDRED),
        resort_amount=quantize_money(net * resort_pct / HUNDRED),
    )
