# =============================================================================
# BUDGET SCENARIO ENGINE - COMMAND LINE TESTS
# =============================================================================

import json

import pytest
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from budget_models.logging_config import reset_logging
from main import main, parse_overrides


@pytest.fixture(autouse=True)
def _clean_logging():
    """main() installs a stream handler; drop it after each run."""
    yield
    reset_logging()


class TestParseOverrides:
    """Tests for --set NAME=VALUE parsing."""

    def test_prefixed_names_nest(self):
        overrides = parse_overrides([
            "revenue_growth=10",
            "cost_cut.marketing=12.5",
            "delay.equipment=6",
            "market_condition=High-Inflation",
        ])
        assert overrides == {
            "revenue_growth": 10,
            "cost_cuts": {"marketing": 12.5},
            "delays": {"equipment": 6},
            "market_condition": "High-Inflation",
        }

    def test_missing_equals(self):
        with pytest.raises(ValueError):
            parse_overrides(["revenue_growth"])

    def test_empty(self):
        assert parse_overrides(None) == {}


class TestMain:
    """End-to-end CLI runs against the shipped assumptions."""

    def test_run_json(self, assumptions_dir, capsys):
        code = main([
            "run", "--scenario", "base", "--dir", str(assumptions_dir),
            "--set", "revenue_growth=10", "--set", "cost_cut.marketing=10", "--json",
        ])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["metrics"]["net_income"] == 7425000.0
        assert data["scenario"]["marketing"] == 2700000.0

    def test_run_text(self, assumptions_dir, capsys):
        code = main(["run", "--scenario", "recession", "--dir", str(assumptions_dir)])
        out = capsys.readouterr().out
        assert code == 0
        assert "KEY METRICS:" in out
        assert "Recession scenario applied" in out

    def test_run_with_bad_override(self, assumptions_dir, capsys):
        code = main([
            "run", "--dir", str(assumptions_dir), "--set", "market_condition=Apocalypse",
        ])
        assert code == 1
        assert "ERRORS:" in capsys.readouterr().out

    def test_seed_override(self, assumptions_dir, capsys):
        main(["run", "--scenario", "volatile", "--dir", str(assumptions_dir),
              "--seed", "5", "--json"])
        data = json.loads(capsys.readouterr().out)
        assert data["seed"] == 5
        assert "(seed 5)" in data["narrative"][0]

    def test_compare(self, assumptions_dir, capsys):
        assert main(["compare", "--dir", str(assumptions_dir)]) == 0
        out = capsys.readouterr().out
        assert "COMPARISON vs BASE" in out
        assert "growth" in out

    def test_validate_capex(self, capex_dir, capsys):
        assert main(["validate", "--scenario", "planned", "--dir", str(capex_dir)]) == 0
        assert "OVERALL: PASSED" in capsys.readouterr().out

    def test_validate_with_expected(self, assumptions_dir, tmp_path, capsys):
        expected = tmp_path / "expected.yaml"
        expected.write_text(
            "scenario:\n  revenue: 27500000\n  cogs: 9625000\nmetrics:\n  net_income: 7425000\n",
            encoding="utf-8",
        )
        code = main([
            "validate", "--scenario", "growth", "--dir", str(assumptions_dir),
            "--expected", str(expected),
        ])
        assert code == 0
        assert "reconcile_metrics: PASSED" in capsys.readouterr().out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
