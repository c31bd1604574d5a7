# =============================================================================
# BUDGET SCENARIO ENGINE - MODELS PACKAGE
# =============================================================================
# This package contains the what-if budget projection engine.
#
# Modules:
# - categories: Category tables and model variants (operating, capex)
# - baseline: Line items, snapshots and baseline construction
# - drivers: Driver definitions, validation and clamping
# - pipeline: Ordered transform stages
# - allocation: Investment trade-off split
# - aggregator: Gross profit, total expense, net income
# - variance: Baseline vs scenario variance report
# - narrative: Human-readable driver statements
# - scenario: Orchestration, sessions and comparison
# - assumptions: YAML loading and validation
# - validation_report: Invariant checks over scenario results
# =============================================================================

__version__ = "0.1.0"
