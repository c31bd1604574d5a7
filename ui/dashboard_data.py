"""Transform scenario results into dashboard-ready tables."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Mapping

import pandas as pd

from budget_models.scenario import ComparisonMatrix, ScenarioResult


@dataclass
class DashboardSnapshot:
    line_items: pd.DataFrame
    metrics: pd.DataFrame
    chart: pd.DataFrame
    allocation: pd.DataFrame
    narrative: pd.DataFrame


LINE_ITEM_COLUMNS = [
    "category",
    "label",
    "baseline",
    "scenario",
    "delta",
    "delta_pct",
    "delta_pct_display",
    "favorable",
]


def _variance_rows(result: ScenarioResult, metrics: bool) -> List[Dict]:
    rows = []
    for entry in result.variance:
        if entry.is_metric != metrics:
            continue
        rows.append(
            {
                "category": entry.category,
                "label": entry.label,
                "baseline": float(entry.baseline_amount),
                "scenario": float(entry.scenario_amount),
                "delta": float(entry.delta),
                "delta_pct": float(entry.delta_percent) if entry.comparable else float("nan"),
                "delta_pct_display": entry.delta_percent_display,
                "favorable": bool(entry.favorable),
            }
        )
    return rows


def _chart_df(line_items: pd.DataFrame, metrics: pd.DataFrame) -> pd.DataFrame:
    """Long format (label, series, amount) for grouped baseline/scenario bars."""
    frame = pd.concat([line_items, metrics], ignore_index=True)
    if frame.empty:
        return pd.DataFrame(columns=["label", "series", "amount"])
    long = frame[["label", "baseline", "scenario"]].melt(
        id_vars=["label"], var_name="series", value_name="amount"
    )
    long["series"] = long["series"].str.title()
    return long


def _allocation_df(result: ScenarioResult) -> pd.DataFrame:
    allocation = result.allocation
    if allocation is None:
        return pd.DataFrame(columns=["pool", "baseline_pct", "scenario_pct"])
    return pd.DataFrame(
        [
            {
                "pool": allocation.primary_label,
                "baseline_pct": float(allocation.baseline_primary_pct),
                "scenario_pct": float(allocation.primary_pct),
            },
            {
                "pool": allocation.secondary_label,
                "baseline_pct": float(allocation.baseline_secondary_pct),
                "scenario_pct": float(allocation.secondary_pct),
            },
        ]
    )


def build_snapshot(result: ScenarioResult) -> DashboardSnapshot:
    line_items = pd.DataFrame(_variance_rows(result, metrics=False), columns=LINE_ITEM_COLUMNS)
    metrics = pd.DataFrame(_variance_rows(result, metrics=True), columns=LINE_ITEM_COLUMNS)
    return DashboardSnapshot(
        line_items=line_items,
        metrics=metrics,
        chart=_chart_df(line_items, metrics),
        allocation=_allocation_df(result),
        narrative=pd.DataFrame(
            {"step": range(1, len(result.narrative) + 1), "statement": result.narrative}
        ),
    )


def comparison_df(matrix: ComparisonMatrix) -> pd.DataFrame:
    """One row per scenario, one column per compared metric plus its variance."""
    rows = []
    for scenario_id in matrix.scenarios:
        row: Dict = {"scenario": scenario_id}
        for metric, values in matrix.metrics.items():
            row[metric] = values.get(scenario_id, float("nan"))
            row[f"{metric}_vs_base"] = matrix.variances.get(metric, {}).get(scenario_id, float("nan"))
        rows.append(row)
    return pd.DataFrame(rows)


def empty_snapshot() -> DashboardSnapshot:
    return DashboardSnapshot(
        line_items=pd.DataFrame(columns=LINE_ITEM_COLUMNS),
        metrics=pd.DataFrame(columns=LINE_ITEM_COLUMNS),
        chart=pd.DataFrame(columns=["label", "series", "amount"]),
        allocation=pd.DataFrame(columns=["pool", "baseline_pct", "scenario_pct"]),
        narrative=pd.DataFrame(columns=["step", "statement"]),
    )


def favorability_counts(snapshot: DashboardSnapshot) -> Mapping[str, int]:
    frame = snapshot.line_items
    if frame.empty:
        return {"favorable": 0, "unfavorable": 0}
    favorable = int(frame["favorable"].sum())
    return {"favorable": favorable, "unfavorable": int(len(frame) - favorable)}
