# =============================================================================
# BUDGET SCENARIO ENGINE - TRANSFORM PIPELINE
# =============================================================================
# Maps (baseline, drivers, seed) -> scenario snapshot.
#
# EXECUTION ORDER (PIPELINE_STAGES):
# 1. Market-condition shock
# 2. Revenue growth scaling (income + revenue-coupled categories)
# 3. Category cost cuts (plus coupled categories)
# 4. Delay / pause impacts (capital categories)
# 5. Investment trade-off (amounts unchanged, split reported separately)
# 6. Inflation overlay
#
# KEY PRINCIPLES:
# - Pure functions, no global state; the only randomness is seeded
# - Every stage runs, neutral drivers make it an identity
# - Each stage floors at 0 and rounds to cents, so stage order is observable
# =============================================================================

import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from .baseline import ZERO, BudgetSnapshot, to_cents
from .categories import MARKET_CONDITIONS, Kind, ModelSpec
from .drivers import (
    STAGE_ALLOCATION,
    STAGE_CUTS,
    STAGE_DELAYS,
    STAGE_GROWTH,
    STAGE_INFLATION,
    STAGE_MARKET,
    DriverSet,
)
from .logging_config import get_logger

logger = get_logger("pipeline")

ONE = Decimal("1")
HUNDRED = Decimal("100")
DEFAULT_SEED = 0


@dataclass(frozen=True)
class PipelineContext:
    """Read-only inputs shared by all stages of one run."""
    model: ModelSpec
    drivers: DriverSet
    seed: int = DEFAULT_SEED


StageFn = Callable[[BudgetSnapshot, PipelineContext], BudgetSnapshot]


def pct_factor(pct: Decimal) -> Decimal:
    """1 + pct/100."""
    return ONE + pct / HUNDRED


def cut_factor(pct: Decimal) -> Decimal:
    """1 - pct/100."""
    return ONE - pct / HUNDRED


def volatility_multiplier(seed: int, band: Decimal) -> Decimal:
    """
    Draw the volatile-market multiplier.

    Uniform in [1 - band, 1 + band] from a Random seeded with `seed`,
    rounded to 6 decimals so the Decimal result is reproducible.
    """
    rng = random.Random(seed)
    draw = rng.uniform(-float(band), float(band))
    return ONE + Decimal(str(round(draw, 6)))


def scale_categories(
    snapshot: BudgetSnapshot,
    factors: Mapping[str, Decimal],
) -> BudgetSnapshot:
    """Multiply the given categories, floor at 0 and round to cents."""
    amounts: Dict[str, Decimal] = {}
    for category, factor in factors.items():
        scaled = snapshot.amount(category) * factor
        amounts[category] = to_cents(max(scaled, ZERO))
    return snapshot.replace_amounts(amounts)


# =============================================================================
# STAGES
# =============================================================================

def apply_market_shock(snapshot: BudgetSnapshot, ctx: PipelineContext) -> BudgetSnapshot:
    shock = MARKET_CONDITIONS[ctx.drivers.market_condition]
    if shock.volatile:
        multiplier = volatility_multiplier(ctx.seed, ctx.model.volatility_band)
        factors = {item.category: multiplier for item in snapshot}
    else:
        factors = {item.category: shock.multipliers.get(item.kind, ONE) for item in snapshot}
    return scale_categories(snapshot, factors)


def apply_revenue_growth(snapshot: BudgetSnapshot, ctx: PipelineContext) -> BudgetSnapshot:
    factor = pct_factor(ctx.drivers.revenue_growth)
    targets = [item.category for item in snapshot if item.kind is Kind.INCOME]
    targets += [c for c in ctx.model.revenue_coupled if c not in targets]
    return scale_categories(snapshot, {c: factor for c in targets})


def apply_cost_cuts(snapshot: BudgetSnapshot, ctx: PipelineContext) -> BudgetSnapshot:
    factors = {c: cut_factor(ctx.drivers.cut(c)) for c in ctx.model.cut_domains}
    # Coupled categories move by weight * cut on top of their own cut
    for source, targets in ctx.model.cut_couplings.items():
        cut = ctx.drivers.cut(source)
        for target, weight in targets:
            factors[target] = factors.get(target, ONE) * cut_factor(cut * weight)
    return scale_categories(snapshot, factors)


def apply_delays(snapshot: BudgetSnapshot, ctx: PipelineContext) -> BudgetSnapshot:
    return scale_categories(
        snapshot,
        {c: cut_factor(ctx.drivers.delay(c)) for c in ctx.model.delay_domains},
    )


def apply_investment_allocation(snapshot: BudgetSnapshot, ctx: PipelineContext) -> BudgetSnapshot:
    # The split is reported by allocation.compute_allocation; amounts stay put.
    return snapshot


def apply_inflation(snapshot: BudgetSnapshot, ctx: PipelineContext) -> BudgetSnapshot:
    factor = pct_factor(ctx.drivers.inflation)
    return scale_categories(snapshot, {item.category: factor for item in snapshot})


PIPELINE_STAGES: Tuple[Tuple[str, StageFn], ...] = (
    (STAGE_MARKET, apply_market_shock),
    (STAGE_GROWTH, apply_revenue_growth),
    (STAGE_CUTS, apply_cost_cuts),
    (STAGE_DELAYS, apply_delays),
    (STAGE_ALLOCATION, apply_investment_allocation),
    (STAGE_INFLATION, apply_inflation),
)


# =============================================================================
# MAIN PIPELINE
# =============================================================================

def trace_pipeline(
    baseline: BudgetSnapshot,
    drivers: DriverSet,
    seed: int = DEFAULT_SEED,
    stages: Sequence[Tuple[str, StageFn]] = PIPELINE_STAGES,
) -> List[Tuple[str, BudgetSnapshot]]:
    """
    Run the stages and keep the snapshot produced by each one.

    Args:
        baseline: Baseline snapshot (never modified)
        drivers: Validated driver set for the same model variant
        seed: Seed for the volatile market draw
        stages: Ordered (name, function) pairs; defaults to PIPELINE_STAGES

    Returns:
        List of (stage name, snapshot after that stage)
    """
    if baseline.model != drivers.model.name:
        raise ValueError(
            f"Baseline model {baseline.model} does not match drivers model {drivers.model.name}"
        )

    ctx = PipelineContext(model=drivers.model, drivers=drivers, seed=seed)
    trace: List[Tuple[str, BudgetSnapshot]] = []
    snapshot = baseline
    for name, stage in stages:
        snapshot = stage(snapshot, ctx)
        logger.debug("stage %s -> %s", name, snapshot.as_dict())
        trace.append((name, snapshot))
    return trace


def run_pipeline(
    baseline: BudgetSnapshot,
    drivers: DriverSet,
    seed: int = DEFAULT_SEED,
    stages: Sequence[Tuple[str, StageFn]] = PIPELINE_STAGES,
) -> BudgetSnapshot:
    """Deterministically derive the scenario snapshot from the baseline."""
    trace = trace_pipeline(baseline, drivers, seed=seed, stages=stages)
    return trace[-1][1] if trace else baseline


# =============================================================================
# END OF TRANSFORM PIPELINE
# =============================================================================
