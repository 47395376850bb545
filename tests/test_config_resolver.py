"""
Tests for profit-sharing configuration resolution.

Covers:
- Default 70/30 split when a category has no configuration
- Latest effective_from wins, ties broken by id
- Optional point-in-time resolution
- Rows for other resorts or categories are ignored
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from src.exceptions import ConfigFallbackWarning, SplitMismatchWarning, ValidationError
from src.models import AssetCategory
from src.services.config_resolver import resolve_profit_config


def _config(**kwargs):
    defaults = {
        "id": None,
        "resort_id": 1,
        "asset_category": AssetCategory.SEA_SPORT,
        "dku_percentage": Decimal("80"),
        "resort_percentage": Decimal("20"),
        "effective_from": date(2024, 1, 1),
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── fallback ───────────────────────────────────────────


class TestFallback:
    def test_missing_category_uses_default_split(self):
        configs = [_config(asset_category=AssetCategory.SEA_SPORT)]

        resolved = resolve_profit_config(configs, 1, AssetCategory.ATV)

        assert resolved.dku_percentage == Decimal("70")
        assert resolved.resort_percentage == Decimal("30")
        assert resolved.is_fallback is True
        assert len(resolved.warnings) == 1
        assert isinstance(resolved.warnings[0], ConfigFallbackWarning)
        assert resolved.warnings[0].code == "NO_CONFIG"
        assert resolved.warnings[0].category == "ATV"

    def test_other_resort_is_ignored(self):
        configs = [_config(resort_id=2, asset_category=AssetCategory.ATV)]
        assert resolve_profit_config(configs, 1, "ATV").is_fallback is True

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            resolve_profit_config([], 1, "JET_PACK")


# ── latest wins ────────────────────────────────────────


class TestLatestWins:
    def test_exact_match(self):
        resolved = resolve_profit_config([_config()], 1, "sea_sport")
        assert resolved.dku_percentage == Decimal("80")
        assert resolved.is_fallback is False
        assert resolved.warnings == []

    def test_latest_effective_from_wins(self):
        configs = [
            _config(id=1, dku_percentage=Decimal("60"), resort_percentage=Decimal("40"),
                    effective_from=date(2024, 1, 1)),
            _config(id=2, dku_percentage=Decimal("75"), resort_percentage=Decimal("25"),
                    effective_from=date(2025, 6, 1)),
            _config(id=3, dku_percentage=Decimal("65"), resort_percentage=Decimal("35"),
                    effective_from=date(2024, 9, 1)),
        ]

        resolved = resolve_profit_config(configs, 1, AssetCategory.SEA_SPORT)

        assert resolved.dku_percentage == Decimal("75")
        assert resolved.config_id == 2
        assert resolved.effective_from == date(2025, 6, 1)

    def test_same_day_tie_goes_to_highest_id(self):
        configs = [
            _config(id=7, dku_percentage=Decimal("50"), resort_percentage=Decimal("50")),
            _config(id=4, dku_percentage=Decimal("90"), resort_percentage=Decimal("10")),
        ]
        assert resolve_profit_config(configs, 1, AssetCategory.SEA_SPORT).config_id == 7

    def test_as_of_restricts_to_rows_in_force(self):
        configs = [
            _config(id=1, dku_percentage=Decimal("60"), resort_percentage=Decimal("40"),
                    effective_from=date(2024, 1, 1)),
            _config(id=2, dku_percentage=Decimal("75"), resort_percentage=Decimal("25"),
                    effective_from=date(2025, 6, 1)),
        ]

        resolved = resolve_profit_config(configs, 1, AssetCategory.SEA_SPORT, as_of=date(2025, 1, 31))

        assert resolved.dku_percentage == Decimal("60")

    def test_as_of_before_any_row_falls_back(self):
        resolved = resolve_profit_config([_config()], 1, AssetCategory.SEA_SPORT, as_of=date(2023, 12, 31))
        assert resolved.is_fallback is True

    def test_split_not_adding_up_is_flagged(self):
        configs = [_config(dku_percentage=Decimal("60"), resort_percentage=Decimal("30"))]

        resolved = resolve_profit_config(configs, 1, AssetCategory.SEA_SPORT)

        assert resolved.dku_percentage == Decimal("60")
        assert [type(w) for w in resolved.warnings] == [SplitMismatchWarning]
