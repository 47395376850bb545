"""
Tests for the operator/resort profit split.
"""

from decimal import Decimal

import pytest

from src.exceptions import SplitMismatchWarning
from src.services.profit_split import check_split_percentages, split


class TestSplit:
    def test_seventy_thirty(self):
        shares = split(Decimal("865800.87"), 70, 30)
        assert shares.dku_amount == Decimal("606060.61")
        assert shares.resort_amount == Decimal("259740.26")
        assert shares.unallocated == 0

    def test_percentages_kept_as_decimal(self):
        shares = split(Decimal("100"), "62.5", "37.5")
        assert shares.dku_percentage == Decimal("62.5")
        assert shares.dku_amount == Decimal("62.50")
        assert shares.resort_amount == Decimal("37.50")

    def test_mismatched_split_is_not_renormalized(self):
        shares = split(Decimal("1000"), 60, 30)
        assert shares.dku_amount == Decimal("600.00")
        assert shares.resort_amount == Decimal("300.00")
        assert shares.unallocated == Decimal("100.00")

    def test_negative_net(self):
        shares = split(Decimal("-100"), 70, 30)
        assert shares.dku_amount == Decimal("-70.00")
        assert shares.resort_amount == Decimal("-30.00")

    @pytest.mark.parametrize(
        "net",
        ["0.01", "0.05", "1.15", "333333.33", "865800.87", "12345678.91"],
    )
    def test_shares_sum_to_net_within_a_cent(self, net):
        shares = split(Decimal(net), 70, 30)
        assert abs(shares.unallocated) <= Decimal("0.01")


class TestCheckSplitPercentages:
    def test_hundred_is_fine(self):
        assert check_split_percentages(Decimal("70.00"), Decimal("30.00")) is None

    def test_mismatch_warns(self):
        warning = check_split_percentages(60, 30, "ATV")
        assert isinstance(warning, SplitMismatchWarning)
        assert warning.category == "ATV"
        assert warning.code == "SPLIT_MISMATCH"
