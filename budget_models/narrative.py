# =============================================================================
# BUDGET SCENARIO ENGINE - NARRATIVE GENERATOR
# =============================================================================
# One statement per driver that differs from its neutral value, in pipeline
# stage order, so the text reads as a causal account of the scenario.
# =============================================================================

from decimal import Decimal
from typing import Collection, List, Tuple

from .allocation import HEAVY_TILT, HUNDRED, compute_allocation
from .baseline import BudgetSnapshot
from .categories import MARKET_CONDITIONS, Kind, MarketShock
from .drivers import (
    STAGE_ALLOCATION,
    STAGE_CUTS,
    STAGE_DELAYS,
    STAGE_GROWTH,
    STAGE_INFLATION,
    STAGE_MARKET,
    DriverSet,
    DriverSpec,
)
from .pipeline import DEFAULT_SEED, ONE, volatility_multiplier

KIND_NOUNS = {
    Kind.INCOME: "revenue",
    Kind.COGS: "COGS",
    Kind.EXPENSE: "expenses",
}


def fmt_pct(value: Decimal) -> str:
    """10 -> '10', 4.50 -> '4.5'."""
    text = format(Decimal(value).normalize(), "f")
    return "0" if text in ("-0", "") else text


def _join_labels(labels: List[str]) -> str:
    if len(labels) <= 1:
        return "".join(labels)
    return ", ".join(labels[:-1]) + " and " + labels[-1]


def _market_statement(drivers: DriverSet, seed: int) -> str:
    shock = MARKET_CONDITIONS[drivers.market_condition]
    if shock.volatile:
        multiplier = volatility_multiplier(seed, drivers.model.volatility_band)
        change = (multiplier - 1) * HUNDRED
        return (
            f"Volatile market applied: all categories scaled by "
            f"{change:+.2f}% (seed {seed})."
        )
    return _shock_statement(shock, {c.kind for c in drivers.model.categories})


def _shock_statement(shock: MarketShock, kinds: Collection[Kind]) -> str:
    """Group the kinds present in the model by multiplier, e.g. "revenue and COGS reduced by 10%"."""
    groups: List[Tuple[Decimal, List[Kind]]] = []
    for kind in Kind:
        factor = shock.multipliers.get(kind, ONE)
        if kind not in kinds or factor == ONE:
            continue
        for grouped_factor, members in groups:
            if grouped_factor == factor:
                members.append(kind)
                break
        else:
            groups.append((factor, [kind]))

    if not groups:
        return f"{shock.title} applied: no effect on this budget."

    clauses = []
    for factor, members in groups:
        if set(members) == set(kinds):
            subject = "all categories"
        else:
            subject = _join_labels([KIND_NOUNS[k] for k in members])
        change = fmt_pct(abs(factor - ONE) * HUNDRED)
        if factor > ONE:
            clauses.append(f"{subject} up {change}%")
        else:
            clauses.append(f"{subject} reduced by {change}%")
    return f"{shock.title} applied: {', '.join(clauses)}."


def _growth_statement(drivers: DriverSet) -> str:
    growth = drivers.revenue_growth
    coupled = [drivers.model.label_for(c) for c in drivers.model.revenue_coupled]
    direction = "increased" if growth > 0 else "decreased"
    text = f"Revenue {direction} by {fmt_pct(abs(growth))}%"
    if coupled:
        text += f", scaling {_join_labels(coupled)} budgets proportionally"
    return text + "."


def _cut_statement(drivers: DriverSet, spec: DriverSpec) -> str:
    label = drivers.model.label_for(spec.category)
    value = drivers[spec.name]
    if value > 0:
        text = f"{label} budget cut by {fmt_pct(value)}%"
    else:
        text = f"{label} budget increased by {fmt_pct(-value)}%"

    for target, weight in drivers.model.cut_couplings.get(spec.category, ()):
        moved = fmt_pct(abs(value) * weight)
        verb = "reducing" if value > 0 else "raising"
        text += f", {verb} {drivers.model.label_for(target)} by {moved}%"
    return text + "."


def _delay_statement(drivers: DriverSet, spec: DriverSpec) -> str:
    label = drivers.model.label_for(spec.category)
    return f"{label} spend reduced by {fmt_pct(drivers[spec.name])}% for schedule slippage."


def _allocation_statement(drivers: DriverSet, baseline: BudgetSnapshot) -> str:
    allocation = compute_allocation(drivers.model, baseline, drivers)
    text = (
        f"Investment pool tilted to {fmt_pct(allocation.primary_pct)}% "
        f"{allocation.primary_label} / {fmt_pct(allocation.secondary_pct)}% "
        f"{allocation.secondary_label}."
    )
    if allocation.primary_pct > HEAVY_TILT:
        text += (
            f" Heavy focus on {allocation.primary_label} may slow short-term growth "
            f"but builds long-term product advantage."
        )
    elif allocation.secondary_pct > HEAVY_TILT:
        text += (
            f" Heavy focus on {allocation.secondary_label} may boost short-term results "
            f"but risks future product competitiveness."
        )
    return text


def _inflation_statement(drivers: DriverSet) -> str:
    return f"Inflation overlay of {fmt_pct(drivers.inflation)}% applied to all categories."


def generate_narrative(
    baseline: BudgetSnapshot,
    drivers: DriverSet,
    seed: int = DEFAULT_SEED,
) -> List[str]:
    """
    Describe every non-neutral driver.

    Args:
        baseline: Baseline snapshot (for the trade-off baseline ratios)
        drivers: Driver set of the scenario
        seed: Seed used for the volatile market draw

    Returns:
        List of statements in stage order; empty when all drivers are neutral
    """
    statements: List[str] = []
    for spec in drivers.non_neutral():
        if spec.stage == STAGE_MARKET:
            statements.append(_market_statement(drivers, seed))
        elif spec.stage == STAGE_GROWTH:
            statements.append(_growth_statement(drivers))
        elif spec.stage == STAGE_CUTS:
            statements.append(_cut_statement(drivers, spec))
        elif spec.stage == STAGE_DELAYS:
            statements.append(_delay_statement(drivers, spec))
        elif spec.stage == STAGE_ALLOCATION:
            statements.append(_allocation_statement(drivers, baseline))
        elif spec.stage == STAGE_INFLATION:
            statements.append(_inflation_statement(drivers))
    return statements


# =============================================================================
# END OF NARRATIVE GENERATOR
# =============================================================================
