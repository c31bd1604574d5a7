# =============================================================================
# BUDGET SCENARIO ENGINE - VARIANCE REPORTER
# =============================================================================
# Compares baseline and scenario, per category and per derived metric.
#
# FORMULAS:
# delta = scenario - baseline
# delta_pct = delta / baseline * 100            (baseline != 0)
#           = 0                                 (baseline == 0, delta == 0)
#           = None, comparable=False ("N/A")    (baseline == 0, delta != 0)
#
# FAVORABILITY:
# Income-like (income, gross profit, net income): delta >= 0
# Cost-like (COGS, expense, total expense):       delta <= 0
# =============================================================================

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import List, Optional

from .aggregator import COST_METRICS, METRIC_LABELS, compute_metrics
from .baseline import ZERO, BudgetSnapshot
from .categories import Kind

PCT = Decimal("0.01")
HUNDRED = Decimal("100")
NOT_APPLICABLE = "N/A"


@dataclass(frozen=True)
class VarianceEntry:
    """Variance for one category or derived metric."""
    category: str
    label: str
    is_cost: bool
    baseline_amount: Decimal
    scenario_amount: Decimal
    delta: Decimal
    delta_percent: Optional[Decimal]
    comparable: bool
    favorable: bool
    is_metric: bool = False

    @property
    def delta_percent_display(self) -> str:
        if not self.comparable:
            return NOT_APPLICABLE
        return f"{self.delta_percent:+.2f}%"


def delta_percent(baseline_amount: Decimal, delta: Decimal) -> Optional[Decimal]:
    """Percentage change, or None when the baseline is 0 and the amount moved."""
    if baseline_amount == 0:
        return ZERO if delta == 0 else None
    with localcontext() as ctx:
        # A tiny baseline against a large delta can exceed the default precision
        ctx.prec = max(ctx.prec, delta.adjusted() - baseline_amount.adjusted() + 8)
        pct = delta / baseline_amount * HUNDRED
        return pct.quantize(PCT)


def is_favorable(delta: Decimal, is_cost: bool) -> bool:
    return delta <= 0 if is_cost else delta >= 0


def build_entry(
    category: str,
    label: str,
    is_cost: bool,
    baseline_amount: Decimal,
    scenario_amount: Decimal,
    is_metric: bool = False,
) -> VarianceEntry:
    delta = scenario_amount - baseline_amount
    pct = delta_percent(baseline_amount, delta)
    return VarianceEntry(
        category=category,
        label=label,
        is_cost=is_cost,
        baseline_amount=baseline_amount,
        scenario_amount=scenario_amount,
        delta=delta,
        delta_percent=pct,
        comparable=pct is not None,
        favorable=is_favorable(delta, is_cost),
        is_metric=is_metric,
    )


def variance_report(
    baseline: BudgetSnapshot,
    scenario: BudgetSnapshot,
    labels: Optional[dict] = None,
) -> List[VarianceEntry]:
    """
    Build one entry per category (snapshot order) then one per derived metric.

    Args:
        baseline: Baseline snapshot
        scenario: Scenario snapshot with the same category set
        labels: Optional category -> display label map

    Returns:
        List of VarianceEntry
    """
    if baseline.categories != scenario.categories:
        raise ValueError(
            f"Snapshots cover different categories: {baseline.categories} vs {scenario.categories}"
        )

    labels = labels or {}
    entries: List[VarianceEntry] = []

    for base_item, scen_item in zip(baseline, scenario):
        entries.append(build_entry(
            category=base_item.category,
            label=labels.get(base_item.category, base_item.category),
            is_cost=base_item.kind is not Kind.INCOME,
            baseline_amount=base_item.amount,
            scenario_amount=scen_item.amount,
        ))

    base_metrics = compute_metrics(baseline).as_dict()
    scen_metrics = compute_metrics(scenario).as_dict()
    for metric, label in METRIC_LABELS.items():
        entries.append(build_entry(
            category=metric,
            label=label,
            is_cost=metric in COST_METRICS,
            baseline_amount=base_metrics[metric],
            scenario_amount=scen_metrics[metric],
            is_metric=True,
        ))

    return entries


# =============================================================================
# END OF VARIANCE REPORTER
# =============================================================================
