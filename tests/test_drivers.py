# =============================================================================
# BUDGET SCENARIO ENGINE - DRIVER SET TESTS
# =============================================================================

import logging
from decimal import Decimal

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from budget_models.drivers import (
    DriverSet, InvalidDriverValue, driver_specs, get_driver_spec, validate_driver_value
)


class TestDriverSpecs:
    """Tests for per-variant driver declarations."""

    def test_operating_drivers_in_stage_order(self, operating_model):
        names = [s.name for s in driver_specs(operating_model)]
        assert names == [
            "market_condition",
            "revenue_growth",
            "cost_cut.marketing",
            "cost_cut.rd",
            "cost_cut.ga",
            "investment_allocation",
            "inflation",
        ]

    def test_capex_drivers(self, capex_model):
        """CAPEX has delays and no revenue growth driver."""
        names = [s.name for s in driver_specs(capex_model)]
        assert names == [
            "market_condition",
            "cost_cut.rd",
            "cost_cut.tech_upgrades",
            "delay.facilities",
            "delay.equipment",
            "investment_allocation",
            "inflation",
        ]

    def test_domains(self, operating_model, capex_model):
        assert get_driver_spec(operating_model, "revenue_growth").domain == (
            Decimal("-20"), Decimal("20")
        )
        assert get_driver_spec(capex_model, "cost_cut.rd").domain == (
            Decimal("-50"), Decimal("20")
        )
        assert get_driver_spec(capex_model, "delay.equipment").domain == (
            Decimal("0"), Decimal("24")
        )

    def test_unknown_driver(self, capex_model):
        with pytest.raises(InvalidDriverValue, match="unknown driver"):
            get_driver_spec(capex_model, "revenue_growth")


class TestValidation:
    """Tests for clamping and rejection."""

    def test_in_range_value_kept(self, operating_model):
        spec = get_driver_spec(operating_model, "inflation")
        assert validate_driver_value(spec, 4.5) == (Decimal("4.5"), None)

    def test_cut_clamped_to_upper_bound(self, operating_model):
        """A 150 % cut becomes 50 % with a note."""
        spec = get_driver_spec(operating_model, "cost_cut.marketing")
        value, note = validate_driver_value(spec, 150)
        assert value == Decimal("50")
        assert "clamped from 150 to 50" in note

    def test_growth_clamped_to_lower_bound(self, operating_model):
        spec = get_driver_spec(operating_model, "revenue_growth")
        value, note = validate_driver_value(spec, -35)
        assert value == Decimal("-20")
        assert note is not None

    def test_clamp_logged_at_warning(self, operating_model, caplog):
        spec = get_driver_spec(operating_model, "cost_cut.marketing")
        with caplog.at_level(logging.WARNING, logger="budget_models.drivers"):
            validate_driver_value(spec, 150)
        assert any("clamped" in r.getMessage() for r in caplog.records)

    @pytest.mark.parametrize("raw", ["abc", None, True, "NaN", float("inf")])
    def test_non_numbers_rejected(self, operating_model, raw):
        spec = get_driver_spec(operating_model, "inflation")
        with pytest.raises(InvalidDriverValue):
            validate_driver_value(spec, raw)

    def test_unknown_market_condition_rejected(self, operating_model):
        spec = get_driver_spec(operating_model, "market_condition")
        with pytest.raises(InvalidDriverValue) as excinfo:
            validate_driver_value(spec, "Apocalypse")
        assert excinfo.value.driver == "market_condition"
        assert excinfo.value.value == "Apocalypse"

    def test_market_condition_normalized(self, operating_model):
        spec = get_driver_spec(operating_model, "market_condition")
        assert validate_driver_value(spec, "high inflation") == ("High-Inflation", None)

    def test_recession_not_offered_for_capex(self, capex_model):
        spec = get_driver_spec(capex_model, "market_condition")
        with pytest.raises(InvalidDriverValue):
            validate_driver_value(spec, "Recession")


class TestDriverSet:
    """Tests for the immutable driver set."""

    def test_neutral_values(self, neutral_drivers):
        assert neutral_drivers.market_condition == "Stable"
        assert neutral_drivers.revenue_growth == 0
        assert neutral_drivers.cut("marketing") == 0
        assert neutral_drivers.investment_allocation == Decimal("50")
        assert neutral_drivers.inflation == 0
        assert neutral_drivers.non_neutral() == []

    def test_with_value_does_not_modify_original(self, neutral_drivers):
        changed = neutral_drivers.with_value("revenue_growth", 10)
        assert changed.revenue_growth == Decimal("10")
        assert neutral_drivers.revenue_growth == 0
        assert changed != neutral_drivers

    def test_from_nested_mapping(self, capex_model):
        drivers = DriverSet.from_mapping(
            capex_model,
            {"cost_cuts": {"rd": -15}, "delays": {"equipment": 6}, "inflation": 4.5},
        )
        assert drivers.cut("rd") == Decimal("-15")
        assert drivers.delay("equipment") == Decimal("6")
        assert drivers.delay("facilities") == 0
        assert [s.name for s in drivers.non_neutral()] == [
            "cost_cut.rd", "delay.equipment", "inflation"
        ]

    def test_from_flat_mapping(self, operating_model):
        drivers = DriverSet.from_mapping(operating_model, {"cost_cut.ga": 5})
        assert drivers["cost_cut.ga"] == Decimal("5")

    def test_nested_section_must_be_mapping(self, operating_model):
        with pytest.raises(InvalidDriverValue):
            DriverSet.from_mapping(operating_model, {"cost_cuts": [10]})

    def test_clamp_notes_follow_latest_value(self, neutral_drivers):
        clamped = neutral_drivers.with_value("cost_cut.marketing", 150)
        assert clamped.cut("marketing") == Decimal("50")
        assert len(clamped.notes) == 1
        fixed = clamped.with_value("cost_cut.marketing", 10)
        assert fixed.notes == ()

    def test_rejected_value_leaves_set_unchanged(self, neutral_drivers):
        with pytest.raises(InvalidDriverValue):
            neutral_drivers.with_value("market_condition", "Apocalypse")
        assert neutral_drivers.market_condition == "Stable"

    def test_unknown_driver_rejected(self, neutral_drivers):
        with pytest.raises(InvalidDriverValue):
            neutral_drivers.with_value("delay.facilities", 10)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
