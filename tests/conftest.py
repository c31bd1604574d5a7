# =============================================================================
# BUDGET SCENARIO ENGINE - PYTEST CONFIGURATION
# =============================================================================
# Shared fixtures and configuration for all tests.
# =============================================================================

import pytest
import sys
import os
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture
def project_root():
    """Get project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def assumptions_dir(project_root):
    """Get operating assumptions directory."""
    return project_root / "assumptions"


@pytest.fixture
def capex_dir(assumptions_dir):
    """Get CAPEX assumptions directory."""
    return assumptions_dir / "capex"


@pytest.fixture
def operating_model():
    from budget_models.categories import OPERATING_MODEL
    return OPERATING_MODEL


@pytest.fixture
def capex_model():
    from budget_models.categories import CAPEX_MODEL
    return CAPEX_MODEL


@pytest.fixture
def operating_amounts():
    """Operating budget baseline: revenue 25M with cost ratios 35/12/10/15/5 %."""
    return {
        "revenue": 25000000,
        "cogs": 8750000,
        "marketing": 3000000,
        "sales": 2500000,
        "rd": 3750000,
        "ga": 1250000,
    }


@pytest.fixture
def capex_amounts():
    return {
        "facilities": 320,
        "equipment": 470,
        "rd": 250,
        "tech_upgrades": 380,
    }


@pytest.fixture
def operating_baseline(operating_model, operating_amounts):
    from budget_models.baseline import build_baseline
    return build_baseline(operating_model, operating_amounts)


@pytest.fixture
def capex_baseline(capex_model, capex_amounts):
    from budget_models.baseline import build_baseline
    return build_baseline(capex_model, capex_amounts)


@pytest.fixture
def neutral_drivers(operating_model):
    from budget_models.drivers import DriverSet
    return DriverSet.neutral(operating_model)


@pytest.fixture
def growth_drivers(operating_model):
    """Revenue +10 %, marketing cut 10 %."""
    from budget_models.drivers import DriverSet
    return DriverSet.from_mapping(
        operating_model,
        {"revenue_growth": 10, "cost_cuts": {"marketing": 10}},
    )


@pytest.fixture
def cuttable_sales_model():
    """Two-line model where a revenue-coupled category can also be cut to 100 %."""
    from budget_models.categories import STABLE, CategorySpec, Kind, ModelSpec
    return ModelSpec(
        name="cuttable",
        label="Cuttable Sales",
        categories=(
            CategorySpec("revenue", "Revenue", Kind.INCOME),
            CategorySpec("sales", "Sales", Kind.EXPENSE),
        ),
        revenue_coupled=("sales",),
        cut_domains={"sales": (Decimal("0"), Decimal("100"))},
        revenue_growth_domain=(Decimal("-20"), Decimal("20")),
        market_conditions=(STABLE,),
    )
