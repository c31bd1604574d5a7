"""Investment trade-off split between the two sides of the investment pool."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .baseline import ZERO, BudgetSnapshot
from .categories import ModelSpec
from .drivers import DriverSet

HUNDRED = Decimal("100")
PCT = Decimal("0.01")

# Split beyond which the narrative adds a strategic warning
HEAVY_TILT = Decimal("60")


@dataclass(frozen=True)
class InvestmentAllocation:
    primary_label: str
    secondary_label: str
    primary_pct: Decimal
    secondary_pct: Decimal
    baseline_primary_pct: Decimal
    baseline_secondary_pct: Decimal

    @property
    def tilt(self) -> Decimal:
        """Positive when the slider favours the primary side."""
        return self.primary_pct - self.secondary_pct


def compute_allocation(
    model: ModelSpec,
    baseline: BudgetSnapshot,
    drivers: DriverSet,
) -> Optional[InvestmentAllocation]:
    """
    Qualitative allocation of the investment pool.

    The slider value is reported as-is; amounts are not redistributed
    between the pools. Baseline ratios come from the baseline pool amounts.
    """
    pools = model.trade_off
    if pools is None:
        return None

    primary_total = sum((baseline.amount(c) for c in pools.primary), ZERO)
    secondary_total = sum((baseline.amount(c) for c in pools.secondary), ZERO)
    pot = primary_total + secondary_total

    if pot:
        base_primary = (primary_total / pot * HUNDRED).quantize(PCT)
        base_secondary = (HUNDRED - base_primary).quantize(PCT)
    else:
        base_primary = base_secondary = ZERO

    primary = drivers.investment_allocation
    return InvestmentAllocation(
        primary_label=pools.primary_label,
        secondary_label=pools.secondary_label,
        primary_pct=primary,
        secondary_pct=HUNDRED - primary,
        baseline_primary_pct=base_primary,
        baseline_secondary_pct=base_secondary,
    )
