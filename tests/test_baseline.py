# =============================================================================
# BUDGET SCENARIO ENGINE - BASELINE AND CATEGORY TESTS
# =============================================================================

import dataclasses
from decimal import Decimal

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from budget_models.baseline import (
    build_baseline, to_cents, to_decimal, validate_baseline_amounts
)
from budget_models.categories import (
    CAPEX_MODEL, OPERATING_MODEL, CategorySpec, Kind, ModelSpec,
    get_model, normalize_market_condition, validate_model
)


class TestCategoryTables:
    """Tests for the built-in model variants."""

    def test_operating_categories(self):
        """Operating budget covers revenue, COGS and four expense lines."""
        assert OPERATING_MODEL.category_names == [
            "revenue", "cogs", "marketing", "sales", "rd", "ga"
        ]
        assert OPERATING_MODEL.category("cogs").kind is Kind.COGS
        assert OPERATING_MODEL.category("revenue").kind is Kind.INCOME
        assert OPERATING_MODEL.has_income

    def test_capex_has_no_income(self):
        """CAPEX plan is all expense lines."""
        assert not CAPEX_MODEL.has_income
        assert all(c.kind is Kind.EXPENSE for c in CAPEX_MODEL.categories)

    def test_builtin_models_are_consistent(self):
        """Coupling, cut, delay and trade-off tables refer to real categories."""
        assert validate_model(OPERATING_MODEL) == []
        assert validate_model(CAPEX_MODEL) == []

    def test_inconsistent_model_reported(self):
        """Tables pointing at unknown categories are reported."""
        model = ModelSpec(
            name="broken",
            label="Broken",
            categories=(CategorySpec("revenue", "Revenue", Kind.INCOME),),
            revenue_coupled=("sales",),
            cut_domains={"rd": (Decimal("10"), Decimal("0"))},
            market_conditions=("Stable", "Apocalypse"),
        )
        errors = validate_model(model)
        assert any("revenue_coupled" in e for e in errors)
        assert any("inverted" in e for e in errors)
        assert any("Apocalypse" in e for e in errors)

    def test_unknown_coupling_reported(self):
        """Coupling targets must exist and sources must have a cut driver."""
        model = dataclasses.replace(
            CAPEX_MODEL,
            cut_couplings={
                "rd": (("travel", Decimal("0.5")),),
                "facilities": (("rd", Decimal("1")),),
            },
        )
        errors = validate_model(model)
        assert "cut coupling refers to unknown category: travel" in errors
        assert "cut coupling source has no cut driver: facilities" in errors

    def test_get_model(self):
        """Model lookup is case-insensitive, unknown names raise."""
        assert get_model("Operating") is OPERATING_MODEL
        assert get_model("capex") is CAPEX_MODEL
        with pytest.raises(ValueError, match="Unknown model"):
            get_model("balance_sheet")

    def test_cost_kinds(self):
        assert Kind.COGS.is_cost
        assert Kind.EXPENSE.is_cost
        assert not Kind.INCOME.is_cost


class TestMarketConditionNames:
    """Tests for market condition normalization."""

    @pytest.mark.parametrize("raw", ["High-Inflation", "high inflation", "HIGH_INFLATION"])
    def test_spellings(self, raw):
        assert normalize_market_condition(raw) == "High-Inflation"

    def test_unknown(self):
        assert normalize_market_condition("Apocalypse") is None
        assert normalize_market_condition(3) is None


class TestAmounts:
    """Tests for Decimal conversion and rounding."""

    def test_to_decimal_avoids_float_noise(self):
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal("1,250,000") == Decimal("1250000")

    def test_to_decimal_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_decimal("abc")
        with pytest.raises(ValueError):
            to_decimal(True)

    def test_to_cents_rounds_half_up(self):
        assert to_cents(Decimal("1000.005")) == Decimal("1000.01")
        assert to_cents(Decimal("1000.004")) == Decimal("1000.00")

    def test_to_cents_beyond_default_precision(self):
        assert to_cents(Decimal("1e30")) == Decimal("1e30")
        assert to_cents(Decimal("123456789012345678901234567.891")) == Decimal(
            "123456789012345678901234567.89"
        )


class TestBuildBaseline:
    """Tests for baseline snapshot construction."""

    def test_category_order_follows_model(self, operating_model, operating_amounts):
        """Snapshot order is the model table order, not the input order."""
        shuffled = dict(reversed(list(operating_amounts.items())))
        baseline = build_baseline(operating_model, shuffled)
        assert baseline.categories == operating_model.category_names
        assert baseline.model == "operating"
        assert len(baseline) == 6

    def test_amounts_held_to_cents(self, capex_model, capex_amounts):
        amounts = dict(capex_amounts, rd="250.125")
        baseline = build_baseline(capex_model, amounts)
        assert baseline.amount("rd") == Decimal("250.13")

    def test_missing_category(self, operating_model, operating_amounts):
        amounts = dict(operating_amounts)
        del amounts["ga"]
        with pytest.raises(ValueError, match="Missing baseline category: ga"):
            build_baseline(operating_model, amounts)

    def test_unknown_category(self, operating_model, operating_amounts):
        amounts = dict(operating_amounts, travel=10)
        with pytest.raises(ValueError, match="Unknown baseline category"):
            build_baseline(operating_model, amounts)

    def test_negative_amount(self, operating_model, operating_amounts):
        amounts = dict(operating_amounts, rd=-1)
        errors = validate_baseline_amounts(operating_model, amounts)
        assert errors == ["Baseline amount for rd must be >= 0: -1"]

    def test_non_numeric_amount(self, operating_model, operating_amounts):
        amounts = dict(operating_amounts, rd="lots")
        errors = validate_baseline_amounts(operating_model, amounts)
        assert len(errors) == 1
        assert "rd" in errors[0]

    def test_amount_too_large(self, operating_model, operating_amounts):
        amounts = dict(operating_amounts, revenue="1e30")
        errors = validate_baseline_amounts(operating_model, amounts)
        assert len(errors) == 1
        assert errors[0].startswith("Baseline amount for revenue must be <")
        with pytest.raises(ValueError, match="must be <"):
            build_baseline(operating_model, amounts)


class TestSnapshot:
    """Tests for BudgetSnapshot behaviour."""

    def test_totals_by_kind(self, operating_baseline):
        assert operating_baseline.total(Kind.INCOME) == Decimal("25000000")
        assert operating_baseline.total(Kind.COGS) == Decimal("8750000")
        assert operating_baseline.total(Kind.EXPENSE) == Decimal("10500000")

    def test_replace_amounts_returns_new_snapshot(self, operating_baseline):
        changed = operating_baseline.replace_amounts({"rd": Decimal("1")})
        assert changed.amount("rd") == Decimal("1")
        assert operating_baseline.amount("rd") == Decimal("3750000")
        assert changed.categories == operating_baseline.categories

    def test_category_set_is_closed(self, operating_baseline):
        with pytest.raises(KeyError):
            operating_baseline.replace_amounts({"travel": Decimal("1")})
        with pytest.raises(KeyError):
            operating_baseline.amount("travel")

    def test_snapshot_is_immutable(self, operating_baseline):
        with pytest.raises(dataclasses.FrozenInstanceError):
            operating_baseline.model = "capex"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
