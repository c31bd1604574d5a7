"""Derived totals for a budget snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict

from .baseline import BudgetSnapshot
from .categories import Kind

GROSS_PROFIT = "gross_profit"
TOTAL_EXPENSE = "total_expense"
NET_INCOME = "net_income"

METRIC_LABELS: Dict[str, str] = {
    GROSS_PROFIT: "Gross Profit",
    TOTAL_EXPENSE: "Total Expenses",
    NET_INCOME: "Net Income",
}

# Metrics where a decrease is the favourable direction
COST_METRICS = frozenset({TOTAL_EXPENSE})


@dataclass(frozen=True)
class DerivedMetrics:
    gross_profit: Decimal
    total_expense: Decimal
    net_income: Decimal

    def as_dict(self) -> Dict[str, Decimal]:
        return {
            GROSS_PROFIT: self.gross_profit,
            TOTAL_EXPENSE: self.total_expense,
            NET_INCOME: self.net_income,
        }


def compute_metrics(snapshot: BudgetSnapshot) -> DerivedMetrics:
    """
    Aggregate a snapshot.

    Formula:
        gross_profit = SUM(income) - SUM(cogs)
        total_expense = SUM(expense)          (COGS excluded)
        net_income = gross_profit - total_expense
    """
    gross_profit = snapshot.total(Kind.INCOME) - snapshot.total(Kind.COGS)
    total_expense = snapshot.total(Kind.EXPENSE)
    return DerivedMetrics(
        gross_profit=gross_profit,
        total_expense=total_expense,
        net_income=gross_profit - total_expense,
    )
