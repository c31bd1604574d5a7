# =============================================================================
# BUDGET SCENARIO ENGINE - VALIDATION REPORT GENERATOR
# =============================================================================
# Checks a scenario result against the engine invariants and, optionally,
# reconciles it with an expected snapshot.
# =============================================================================

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from .aggregator import METRIC_LABELS, compute_metrics
from .baseline import to_decimal
from .categories import Kind


@dataclass
class TestResult:
    """Result of a single check."""
    name: str
    passed: bool
    message: str = ""
    variance: Optional[float] = None

    __test__ = False  # not a pytest test class


@dataclass
class ValidationReport:
    """Complete validation report."""
    timestamp: str = ""
    scenario_id: str = ""

    # Check results by area
    unit_tests: Dict[str, List[TestResult]] = field(default_factory=dict)
    reconciliation_tests: List[TestResult] = field(default_factory=list)

    # Summary
    total_passed: int = 0
    total_failed: int = 0
    overall_passed: bool = False

    # Errors and warnings
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def validate_snapshots(result) -> List[TestResult]:
    """Validate scenario snapshot shape and amounts."""
    results = []

    if result.errors:
        results.append(TestResult(
            "no_errors", False,
            f"Scenario has errors: {result.errors}"
        ))
        return results
    results.append(TestResult("no_errors", True))

    # Category set is closed
    same_categories = result.baseline.categories == result.scenario.categories
    results.append(TestResult(
        "closed_category_set", same_categories,
        "" if same_categories else "Scenario categories differ from baseline"
    ))

    # Kinds are preserved
    same_kinds = all(b.kind is s.kind for b, s in zip(result.baseline, result.scenario))
    results.append(TestResult(
        "kinds_preserved", same_kinds,
        "" if same_kinds else "A line item changed kind"
    ))

    # Amounts are non-negative
    negatives = [i.category for i in result.scenario if i.amount < 0]
    results.append(TestResult(
        "non_negative_amounts", not negatives,
        "" if not negatives else f"Negative amounts in {negatives}"
    ))

    return results


def validate_metrics(result) -> List[TestResult]:
    """Validate the aggregate identities on baseline and scenario."""
    results = []
    if result.errors:
        return results

    for name, snapshot, metrics in (
        ("baseline", result.baseline, result.baseline_metrics),
        ("scenario", result.scenario, result.metrics),
    ):
        recomputed = compute_metrics(snapshot)
        results.append(TestResult(
            f"{name}_metrics_match_snapshot", recomputed == metrics,
            "" if recomputed == metrics else f"Stored {name} metrics differ from snapshot"
        ))

        gp = snapshot.total(Kind.INCOME) - snapshot.total(Kind.COGS)
        results.append(TestResult(
            f"{name}_gross_profit_identity", metrics.gross_profit == gp,
            "" if metrics.gross_profit == gp else f"gross_profit {metrics.gross_profit} != {gp}"
        ))

        ni = metrics.gross_profit - metrics.total_expense
        results.append(TestResult(
            f"{name}_net_income_identity", metrics.net_income == ni,
            "" if metrics.net_income == ni else f"net_income {metrics.net_income} != {ni}"
        ))

    return results


def validate_variance(result) -> List[TestResult]:
    """Validate variance coverage and arithmetic."""
    results = []
    if result.errors:
        return results

    expected = result.baseline.categories + list(METRIC_LABELS)
    covered = [e.category for e in result.variance] == expected
    results.append(TestResult(
        "variance_coverage", covered,
        "" if covered else "Variance entries do not match categories + metrics"
    ))

    bad_delta = [
        e.category for e in result.variance
        if e.delta != e.scenario_amount - e.baseline_amount
    ]
    results.append(TestResult(
        "variance_delta", not bad_delta,
        "" if not bad_delta else f"Delta mismatch for {bad_delta}"
    ))

    return results


def reconcile_with_expected(
    engine_results: Dict[str, Decimal],
    expected: Dict[str, float],
    metric_name: str,
    tolerance: float = 0.001
) -> TestResult:
    """
    Reconcile engine output with an expected snapshot.

    Args:
        engine_results: Dict of category -> engine amount
        expected: Dict of category -> expected amount
        metric_name: Name of the block being tested
        tolerance: Maximum allowed relative variance (default 0.1%)

    Returns:
        TestResult with pass/fail and the largest variance seen
    """
    max_variance = 0.0
    failed = []

    for category, engine_val in engine_results.items():
        if category not in expected:
            continue
        expected_val = float(to_decimal(expected[category]))
        engine_val = float(engine_val)

        if abs(expected_val) < 0.01:  # Avoid division by zero
            variance = abs(engine_val - expected_val)
        else:
            variance = abs(engine_val - expected_val) / abs(expected_val)

        max_variance = max(max_variance, variance)
        if variance > tolerance:
            failed.append((category, variance))

    passed = len(failed) == 0
    message = "" if passed else f"Failed categories: {failed[:3]}"

    return TestResult(
        name=f"reconcile_{metric_name}",
        passed=passed,
        message=message,
        variance=max_variance
    )


def generate_validation_report(
    result,
    expected: Optional[Dict] = None
) -> ValidationReport:
    """
    Generate a validation report for one scenario result.

    Args:
        result: ScenarioResult
        expected: Optional {"scenario": {...}, "metrics": {...}} to reconcile with

    Returns:
        ValidationReport with all check results
    """
    report = ValidationReport(
        timestamp=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        scenario_id=result.scenario_id
    )
    report.errors.extend(result.errors)
    report.warnings.extend(result.warnings)

    report.unit_tests["Snapshots"] = validate_snapshots(result)
    report.unit_tests["Aggregates"] = validate_metrics(result)
    report.unit_tests["Variance"] = validate_variance(result)

    if expected and not result.errors:
        if "scenario" in expected:
            report.reconciliation_tests.append(
                reconcile_with_expected(result.scenario.as_dict(), expected["scenario"], "scenario")
            )
        if "metrics" in expected:
            report.reconciliation_tests.append(
                reconcile_with_expected(result.metrics.as_dict(), expected["metrics"], "metrics")
            )

    all_tests = []
    for tests in report.unit_tests.values():
        all_tests.extend(tests)
    all_tests.extend(report.reconciliation_tests)

    report.total_passed = sum(1 for t in all_tests if t.passed)
    report.total_failed = sum(1 for t in all_tests if not t.passed)
    report.overall_passed = report.total_failed == 0

    return report


def format_report(report: ValidationReport) -> str:
    """Format validation report as text."""
    lines = [
        "=" * 60,
        "VALIDATION REPORT",
        "=" * 60,
        f"Date: {report.timestamp}",
        f"Scenario: {report.scenario_id}",
        "",
        "INVARIANT CHECKS",
        "-" * 40
    ]

    for area, tests in report.unit_tests.items():
        passed = sum(1 for t in tests if t.passed)
        total = len(tests)
        status = "PASSED" if passed == total else "FAILED"
        lines.append(f"{area}: {passed}/{total} {status}")
        for test in tests:
            if not test.passed:
                lines.append(f"  - {test.name}: {test.message}")

    if report.reconciliation_tests:
        lines.extend([
            "",
            "EXPECTED RECONCILIATION",
            "-" * 40
        ])
        for test in report.reconciliation_tests:
            status = "PASSED" if test.passed else "FAILED"
            variance_str = f"(variance: {test.variance:.2%})" if test.variance else ""
            lines.append(f"{test.name}: {status} {variance_str}")

    lines.extend([
        "",
        "=" * 60,
        f"OVERALL: {'PASSED' if report.overall_passed else 'FAILED'}",
        f"Total: {report.total_passed} passed, {report.total_failed} failed",
        "=" * 60
    ])

    return "\n".join(lines)


# =============================================================================
# END OF VALIDATION REPORT GENERATOR
# =============================================================================
