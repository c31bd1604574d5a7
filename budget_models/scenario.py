# =============================================================================
# BUDGET SCENARIO ENGINE - SCENARIO ENGINE
# =============================================================================
# Orchestrates pipeline -> aggregator -> variance -> narrative for a scenario.
#
# KEY PRINCIPLES:
# - Scenarios change DRIVERS only, never formulas
# - Every driver change recomputes from the baseline
# - Deterministic: same (baseline, drivers, seed) -> same result
# - Sessions are last-write-wins: stale computations are discarded
# =============================================================================

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from .aggregator import DerivedMetrics, compute_metrics
from .allocation import InvestmentAllocation, compute_allocation
from .assumptions import load_scenario_assumptions, validate_assumptions
from .baseline import BudgetSnapshot, build_baseline
from .categories import get_model, validate_model
from .drivers import DriverSet
from .logging_config import get_logger
from .narrative import generate_narrative
from .pipeline import DEFAULT_SEED, run_pipeline
from .variance import VarianceEntry, variance_report

logger = get_logger("scenario")


@dataclass
class ScenarioResult:
    """Complete result bundle for one scenario."""
    scenario_id: str
    description: str = ""
    model: str = ""
    seed: int = DEFAULT_SEED

    # Engine inputs and outputs
    drivers: Optional[DriverSet] = None
    baseline: Optional[BudgetSnapshot] = None
    scenario: Optional[BudgetSnapshot] = None
    baseline_metrics: Optional[DerivedMetrics] = None
    metrics: Optional[DerivedMetrics] = None
    variance: List[VarianceEntry] = field(default_factory=list)
    narrative: List[str] = field(default_factory=list)
    allocation: Optional[InvestmentAllocation] = None

    # Validation
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def gross_profit(self) -> Decimal:
        return self.metrics.gross_profit if self.metrics else Decimal("0")

    @property
    def total_expense(self) -> Decimal:
        return self.metrics.total_expense if self.metrics else Decimal("0")

    @property
    def net_income(self) -> Decimal:
        return self.metrics.net_income if self.metrics else Decimal("0")

    def to_dict(self) -> dict:
        """Plain structure for JSON and table consumers."""
        return {
            "scenario_id": self.scenario_id,
            "description": self.description,
            "model": self.model,
            "seed": self.seed,
            "drivers": {
                k: (float(v) if isinstance(v, Decimal) else v)
                for k, v in (self.drivers.as_dict() if self.drivers else {}).items()
            },
            "baseline": _floats(self.baseline.as_dict() if self.baseline else {}),
            "scenario": _floats(self.scenario.as_dict() if self.scenario else {}),
            "baseline_metrics": _floats(self.baseline_metrics.as_dict() if self.baseline_metrics else {}),
            "metrics": _floats(self.metrics.as_dict() if self.metrics else {}),
            "variance": [
                {
                    "category": e.category,
                    "label": e.label,
                    "baseline_amount": float(e.baseline_amount),
                    "scenario_amount": float(e.scenario_amount),
                    "delta": float(e.delta),
                    "delta_percent": float(e.delta_percent) if e.comparable else None,
                    "comparable": e.comparable,
                    "favorable": e.favorable,
                    "is_metric": e.is_metric,
                }
                for e in self.variance
            ],
            "narrative": list(self.narrative),
            "allocation": (
                {
                    "primary_label": self.allocation.primary_label,
                    "secondary_label": self.allocation.secondary_label,
                    "primary_pct": float(self.allocation.primary_pct),
                    "secondary_pct": float(self.allocation.secondary_pct),
                    "baseline_primary_pct": float(self.allocation.baseline_primary_pct),
                    "baseline_secondary_pct": float(self.allocation.baseline_secondary_pct),
                }
                if self.allocation else None
            ),
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


@dataclass
class ComparisonMatrix:
    """Comparison of multiple scenarios."""
    scenarios: List[str] = field(default_factory=list)
    metrics: Dict[str, Dict[str, float]] = field(default_factory=dict)
    variances: Dict[str, Dict[str, float]] = field(default_factory=dict)


def _floats(values: Dict[str, Decimal]) -> Dict[str, float]:
    return {k: float(v) for k, v in values.items()}


def run_scenario(
    baseline: BudgetSnapshot,
    drivers: DriverSet,
    seed: int = DEFAULT_SEED,
    scenario_id: str = "custom",
    description: str = "",
) -> ScenarioResult:
    """
    Execute the full chain for one driver set.

    Execution order:
    1. Transform pipeline (baseline -> scenario snapshot)
    2. Aggregator (baseline and scenario metrics)
    3. Variance reporter
    4. Investment allocation
    5. Narrative generator

    A model whose tables refer to unknown categories is not run; the
    problems are recorded in result.errors.
    """
    model = drivers.model
    labels = {c.name: c.label for c in model.categories}

    result = ScenarioResult(
        scenario_id=scenario_id,
        description=description,
        model=model.name,
        seed=seed,
        drivers=drivers,
        baseline=baseline,
    )
    result.warnings.extend(drivers.notes)

    model_errors = validate_model(model)
    if model_errors:
        result.errors.extend(model_errors)
        return result

    # 1. Pipeline
    result.scenario = run_pipeline(baseline, drivers, seed=seed)

    # 2. Aggregator
    result.baseline_metrics = compute_metrics(baseline)
    result.metrics = compute_metrics(result.scenario)

    # 3. Variance
    result.variance = variance_report(baseline, result.scenario, labels)
    for entry in result.variance:
        if not entry.comparable:
            result.warnings.append(
                f"{entry.label}: baseline is 0, percentage variance not applicable"
            )

    # 4. Allocation
    result.allocation = compute_allocation(model, baseline, drivers)

    # 5. Narrative
    result.narrative = generate_narrative(baseline, drivers, seed=seed)

    logger.debug(
        "scenario %s computed: net_income=%s", scenario_id, result.metrics.net_income
    )
    return result


def run_scenario_from_assumptions(assumptions: Dict, scenario_id: str = "custom") -> ScenarioResult:
    """Validate an assumptions dict and run it; validation errors land in result.errors."""
    result = ScenarioResult(
        scenario_id=scenario_id,
        description=str(assumptions.get("description", "")),
        model=str(assumptions.get("model", "")),
    )

    validation_errors = validate_assumptions(assumptions)
    if validation_errors:
        result.errors.extend(validation_errors)
        return result

    model = get_model(assumptions["model"])
    baseline = build_baseline(model, assumptions["baseline"])
    drivers = DriverSet.from_mapping(model, assumptions.get("drivers") or {})
    return run_scenario(
        baseline,
        drivers,
        seed=assumptions.get("seed", DEFAULT_SEED),
        scenario_id=scenario_id,
        description=result.description,
    )


def run_scenario_file(scenario_id: str, assumptions_dir: Path) -> ScenarioResult:
    """Load a scenario from the assumptions directory and run it."""
    assumptions = load_scenario_assumptions(scenario_id, assumptions_dir)
    return run_scenario_from_assumptions(assumptions, scenario_id=scenario_id)


def run_all_scenarios(
    scenarios: List[str],
    assumptions_dir: Path
) -> Dict[str, ScenarioResult]:
    """
    Run all scenarios and collect results.

    Args:
        scenarios: List of scenario IDs (e.g., ["base", "recession", "growth"])
        assumptions_dir: Path to assumptions directory

    Returns:
        Dict mapping scenario_id to ScenarioResult
    """
    results = {}
    for scenario_id in scenarios:
        results[scenario_id] = run_scenario_file(scenario_id, assumptions_dir)
    return results


def compare_scenarios(
    results: Dict[str, ScenarioResult],
    base_scenario: str = "base"
) -> ComparisonMatrix:
    """
    Generate comparison matrix and variance analysis.

    Args:
        results: Dict of scenario results
        base_scenario: Reference scenario for variance calculation

    Returns:
        ComparisonMatrix with metrics and fractional variances vs base
    """
    matrix = ComparisonMatrix()
    matrix.scenarios = list(results.keys())

    metric_names = ["gross_profit", "total_expense", "net_income"]

    base_result = results.get(base_scenario)

    for metric in metric_names:
        matrix.metrics[metric] = {}
        matrix.variances[metric] = {}

        for scenario_id, result in results.items():
            if result.errors or result.metrics is None:
                continue
            value = float(getattr(result, metric))
            matrix.metrics[metric][scenario_id] = value

            if base_result and not base_result.errors and base_result.metrics is not None:
                base_value = float(getattr(base_result, metric))
                if base_value != 0:
                    matrix.variances[metric][scenario_id] = (value - base_value) / abs(base_value)

    return matrix


# =============================================================================
# SESSION (LAST WRITE WINS)
# =============================================================================

class ScenarioSession:
    """
    Interactive what-if session over one immutable baseline.

    Each driver edit produces a new driver set and a generation ticket.
    compute(ticket) runs the chain for the drivers captured at that ticket
    and publishes the result only if no newer edit has been requested since;
    otherwise the result is discarded and None is returned.
    """

    def __init__(
        self,
        baseline: BudgetSnapshot,
        drivers: DriverSet,
        seed: int = DEFAULT_SEED,
        scenario_id: str = "session",
        description: str = "",
    ):
        if baseline.model != drivers.model.name:
            raise ValueError(
                f"Baseline model {baseline.model} does not match drivers model {drivers.model.name}"
            )
        self.baseline = baseline
        self.seed = seed
        self.scenario_id = scenario_id
        self.description = description
        self._drivers = drivers
        self._generation = 0
        self._pending: Dict[int, DriverSet] = {}
        self._latest = self._run(drivers)

    def _run(self, drivers: DriverSet) -> ScenarioResult:
        return run_scenario(
            self.baseline,
            drivers,
            seed=self.seed,
            scenario_id=self.scenario_id,
            description=self.description,
        )

    @property
    def drivers(self) -> DriverSet:
        return self._drivers

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def latest(self) -> ScenarioResult:
        """Most recently published result."""
        return self._latest

    def request(self, name: str, value) -> int:
        """
        Apply one driver edit and return its ticket.

        Raises:
            InvalidDriverValue: the edit is rejected and the session is unchanged
        """
        drivers = self._drivers.with_value(name, value)
        self._drivers = drivers
        self._generation += 1
        self._pending[self._generation] = drivers
        return self._generation

    def compute(self, ticket: int) -> Optional[ScenarioResult]:
        drivers = self._pending.pop(ticket, None)
        if drivers is None or ticket != self._generation:
            logger.debug("discarding stale ticket %s (latest %s)", ticket, self._generation)
            return None
        # Older tickets can no longer be published
        self._pending.clear()
        self._latest = self._run(drivers)
        return self._latest

    def set_driver(self, name: str, value) -> ScenarioResult:
        """Edit one driver and recompute immediately."""
        return self.compute(self.request(name, value))

    def reset(self) -> ScenarioResult:
        """Return every driver to neutral."""
        self._drivers = DriverSet.neutral(self._drivers.model)
        self._generation += 1
        self._pending = {self._generation: self._drivers}
        return self.compute(self._generation)


# =============================================================================
# END OF SCENARIO ENGINE
# =============================================================================
