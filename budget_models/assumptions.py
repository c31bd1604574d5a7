"""Assumptions loading and validation utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List
import copy

import yaml

from .baseline import validate_baseline_amounts
from .categories import get_model
from .drivers import DriverSet, InvalidDriverValue


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base; lists are replaced, not merged."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_yaml_file(path: Path) -> dict:
    """Load a YAML file and return an object (empty dict for empty files)."""
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_scenario_assumptions(scenario_id: str, assumptions_dir: Path) -> dict:
    """Load base assumptions and merge scenario override if present."""
    base = load_yaml_file(assumptions_dir / "base.yaml")
    if scenario_id == "base":
        return base

    override_path = assumptions_dir / f"{scenario_id}.yaml"
    if override_path.exists():
        return deep_merge(base, load_yaml_file(override_path))
    return base


def list_scenarios(assumptions_dir: Path) -> List[str]:
    """Scenario ids available in a directory, base first."""
    ids = sorted(p.stem for p in assumptions_dir.glob("*.yaml") if p.stem != "base")
    if (assumptions_dir / "base.yaml").exists():
        ids.insert(0, "base")
    return ids


def validate_assumptions(assumptions: Dict) -> List[str]:
    """
    Validate assumptions structure, baseline amounts and driver values.

    Driver values outside their numeric domain are not errors (they are
    clamped when the driver set is built); unknown drivers, non-numbers and
    unknown market conditions are.
    """
    errors: List[str] = []

    required = ["model", "baseline"]
    for section in required:
        if section not in assumptions:
            errors.append(f"Missing required section: {section}")
    if errors:
        return errors

    try:
        model = get_model(assumptions["model"])
    except ValueError as exc:
        return [str(exc)]

    baseline = assumptions.get("baseline") or {}
    if not isinstance(baseline, dict):
        errors.append("baseline must be a mapping of category -> amount")
    else:
        errors.extend(validate_baseline_amounts(model, baseline))

    drivers = assumptions.get("drivers") or {}
    if not isinstance(drivers, dict):
        errors.append("drivers must be a mapping of driver -> value")
    else:
        try:
            DriverSet.from_mapping(model, drivers)
        except InvalidDriverValue as exc:
            errors.append(str(exc))

    seed = assumptions.get("seed", 0)
    if isinstance(seed, bool) or not isinstance(seed, int):
        errors.append(f"seed must be an integer: {seed!r}")

    return errors
