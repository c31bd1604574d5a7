# =============================================================================
# BUDGET SCENARIO ENGINE - MAIN ENTRY POINT
# =============================================================================
# Command-line interface for running the what-if engine.
#
# Usage:
#   python main.py run --scenario growth
#   python main.py run --set revenue_growth=10 --set cost_cut.marketing=10
#   python main.py compare
#   python main.py validate --dir assumptions/capex
# =============================================================================

import argparse
from pathlib import Path
import json
import sys

import yaml

from budget_models.assumptions import (
    deep_merge, list_scenarios, load_scenario_assumptions, load_yaml_file
)
from budget_models.drivers import CUT_PREFIX, DELAY_PREFIX
from budget_models.logging_config import configure_logging
from budget_models.scenario import (
    compare_scenarios, run_all_scenarios, run_scenario_from_assumptions
)
from budget_models.validation_report import generate_validation_report, format_report


def _fmt_amount(value) -> str:
    return f"{float(value):>16,.2f}"


def parse_overrides(pairs) -> dict:
    """Turn ["revenue_growth=10", "cost_cut.marketing=5"] into a drivers mapping."""
    drivers: dict = {}
    for pair in pairs or []:
        if "=" not in pair:
            raise ValueError(f"Expected name=value, got: {pair}")
        name, raw = pair.split("=", 1)
        name = name.strip()
        value = yaml.safe_load(raw)
        for prefix, section in ((CUT_PREFIX, "cost_cuts"), (DELAY_PREFIX, "delays")):
            if name.startswith(prefix):
                drivers.setdefault(section, {})[name[len(prefix):]] = value
                break
        else:
            drivers[name] = value
    return drivers


def print_result(result) -> None:
    """Print a scenario summary."""
    if result.errors:
        print("\nERRORS:")
        for error in result.errors:
            print(f"  - {error}")
        return

    if result.warnings:
        print("\nWARNINGS:")
        for warning in result.warnings:
            print(f"  - {warning}")

    print("\nLINE ITEMS:")
    print(f"  {'Category':<16}{'Baseline':>16}{'Scenario':>16}{'Delta':>16}{'Delta %':>10}")
    for entry in result.variance:
        if entry.is_metric:
            continue
        print(
            f"  {entry.label:<16}{_fmt_amount(entry.baseline_amount)}"
            f"{_fmt_amount(entry.scenario_amount)}{_fmt_amount(entry.delta)}"
            f"{entry.delta_percent_display:>10}"
        )

    print("\nKEY METRICS:")
    for entry in result.variance:
        if not entry.is_metric:
            continue
        tag = "favorable" if entry.favorable else "unfavorable"
        print(
            f"  {entry.label:<16}{_fmt_amount(entry.scenario_amount)}"
            f"  ({entry.delta_percent_display} vs baseline, {tag})"
        )

    if result.allocation:
        a = result.allocation
        print(
            f"\nINVESTMENT SPLIT: {a.primary_pct}% {a.primary_label} / "
            f"{a.secondary_pct}% {a.secondary_label} "
            f"(baseline {a.baseline_primary_pct}% / {a.baseline_secondary_pct}%)"
        )

    if result.narrative:
        print("\nNARRATIVE:")
        for statement in result.narrative:
            print(f"  - {statement}")


def run_single_scenario(scenario_id: str, assumptions_dir: Path, overrides: dict,
                        seed=None, as_json: bool = False):
    """Run a single scenario (plus ad-hoc driver overrides) and print it."""
    assumptions = load_scenario_assumptions(scenario_id, assumptions_dir)
    if overrides:
        assumptions = deep_merge(assumptions, {"drivers": overrides})
    if seed is not None:
        assumptions["seed"] = seed

    result = run_scenario_from_assumptions(assumptions, scenario_id=scenario_id)

    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"\nRunning scenario: {scenario_id} ({result.model})")
        print("-" * 40)
        if result.description:
            print(result.description)
        print_result(result)
    return result


def run_compare(assumptions_dir: Path):
    """Run every scenario in the directory and compare against base."""
    scenarios = list_scenarios(assumptions_dir)

    print("\n" + "=" * 60)
    print("RUNNING ALL SCENARIOS")
    print("=" * 60)

    results = run_all_scenarios(scenarios, assumptions_dir)
    for scenario_id in scenarios:
        result = results[scenario_id]
        if result.errors:
            print(f"\n{scenario_id.upper()}: FAILED")
            for error in result.errors:
                print(f"  - {error}")

    print("\n" + "=" * 60)
    print("COMPARISON vs BASE")
    print("=" * 60)

    matrix = compare_scenarios(results, "base")
    for metric in ["gross_profit", "total_expense", "net_income"]:
        print(f"\n{metric}:")
        for scenario_id in scenarios:
            if scenario_id not in matrix.metrics.get(metric, {}):
                continue
            value = matrix.metrics[metric][scenario_id]
            variance = matrix.variances.get(metric, {}).get(scenario_id)
            variance_str = f"({variance:+.1%})" if variance is not None else "(n/a)"
            print(f"  {scenario_id:16}: {value:>18,.2f}  {variance_str}")

    return results


def run_validation(scenario_id: str, assumptions_dir: Path, expected_path=None):
    """Run a scenario and print its validation report."""
    print("\n" + "=" * 60)
    print("RUNNING VALIDATION")
    print("=" * 60)

    assumptions = load_scenario_assumptions(scenario_id, assumptions_dir)
    result = run_scenario_from_assumptions(assumptions, scenario_id=scenario_id)
    expected = load_yaml_file(Path(expected_path)) if expected_path else None

    report = generate_validation_report(result, expected=expected)
    print(format_report(report))
    return report


def main(argv=None):
    parser = argparse.ArgumentParser(description="Budget Scenario Engine")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Run one scenario")
    run_parser.add_argument("--scenario", "-s", default="base", help="Scenario ID to run")
    run_parser.add_argument("--dir", "-d", default="assumptions",
                            help="Assumptions directory")
    run_parser.add_argument("--set", dest="overrides", action="append", default=[],
                            metavar="NAME=VALUE", help="Override a driver")
    run_parser.add_argument("--seed", type=int, default=None,
                            help="Seed for the volatile market draw")
    run_parser.add_argument("--json", action="store_true", help="Print JSON result")

    # Compare command
    cmp_parser = subparsers.add_parser("compare", help="Run and compare all scenarios")
    cmp_parser.add_argument("--dir", "-d", default="assumptions",
                            help="Assumptions directory")

    # Validate command
    val_parser = subparsers.add_parser("validate", help="Run validation")
    val_parser.add_argument("--scenario", "-s", default="base", help="Scenario ID")
    val_parser.add_argument("--dir", "-d", default="assumptions",
                            help="Assumptions directory")
    val_parser.add_argument("--expected", help="YAML file with expected scenario/metrics")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "run":
        try:
            overrides = parse_overrides(args.overrides)
        except ValueError as exc:
            parser.error(str(exc))
        result = run_single_scenario(args.scenario, Path(args.dir), overrides,
                                     seed=args.seed, as_json=args.json)
        return 1 if result.errors else 0
    elif args.command == "compare":
        run_compare(Path(args.dir))
        return 0
    elif args.command == "validate":
        report = run_validation(args.scenario, Path(args.dir), args.expected)
        return 0 if report.overall_passed else 1
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
