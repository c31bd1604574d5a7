from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Dict, List

import plotly.express as px
import streamlit as st

from budget_models.assumptions import list_scenarios, load_scenario_assumptions, validate_assumptions
from budget_models.baseline import build_baseline
from budget_models.categories import get_model
from budget_models.drivers import DriverSet, DriverSpec, InvalidDriverValue, driver_specs
from budget_models.logging_config import configure_logging
from budget_models.scenario import ScenarioSession, compare_scenarios, run_all_scenarios
from ui.dashboard_data import (
    DashboardSnapshot,
    build_snapshot,
    comparison_df,
    empty_snapshot,
    favorability_counts,
)


st.set_page_config(
    page_title="Scenario & What-If",
    page_icon="S",
    layout="wide",
    initial_sidebar_state="expanded",
)


THEME: Dict[str, str] = {
    "text": "#101828",
    "text_muted": "#475467",
    "primary": "#165DFF",
    "success": "#117A37",
    "critical": "#B42318",
    "grid": "#DFE6F0",
}

ASSUMPTION_DIRS = {
    "Operating budget": "assumptions",
    "CAPEX plan": "assumptions/capex",
}


def _fmt_currency(value: float) -> str:
    return f"$ {value:,.0f}"


def _chart_palette() -> List[str]:
    return [THEME["text_muted"], THEME["primary"]]


def _style_figure(fig, height: int = 320):
    fig.update_layout(
        height=height,
        margin=dict(l=10, r=10, t=30, b=10),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, x=0),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        font=dict(color=THEME["text"]),
    )
    fig.update_yaxes(gridcolor=THEME["grid"])
    return fig


def _kpi_tile(title: str, value: str, delta: str, good: bool) -> None:
    color = THEME["success"] if good else THEME["critical"]
    st.markdown(
        f"""
<div style="padding:12px 14px; border:1px solid {THEME['grid']}; border-radius:12px;">
  <div style="font-size:13px; color:{THEME['text_muted']};">{title}</div>
  <div style="font-size:24px; font-weight:700;">{value}</div>
  <div style="font-size:12px; color:{color};">{delta}</div>
</div>
""",
        unsafe_allow_html=True,
    )


def _session_key(assumptions_dir: str, scenario_id: str) -> str:
    return f"{assumptions_dir}|{scenario_id}"


def _load_session(assumptions_dir: str, scenario_id: str) -> ScenarioSession:
    assumptions = load_scenario_assumptions(scenario_id, Path(assumptions_dir))
    errors = validate_assumptions(assumptions)
    if errors:
        raise ValueError("; ".join(errors))
    model = get_model(assumptions["model"])
    baseline = build_baseline(model, assumptions["baseline"])
    drivers = DriverSet.from_mapping(model, assumptions.get("drivers") or {})
    return ScenarioSession(
        baseline,
        drivers,
        seed=int(assumptions.get("seed", 0)),
        scenario_id=scenario_id,
        description=str(assumptions.get("description", "")),
    )


def _driver_widget(spec: DriverSpec, current, key_prefix: str):
    key = f"{key_prefix}:{spec.name}"
    if spec.is_enum:
        return st.selectbox(spec.label, list(spec.choices), index=list(spec.choices).index(current), key=key)
    low, high = spec.domain
    step = 0.5 if spec.name == "inflation" else 1.0
    return st.slider(
        spec.label,
        min_value=float(low),
        max_value=float(high),
        value=float(current),
        step=step,
        key=key,
    )


def _render_drivers(session: ScenarioSession, key_prefix: str) -> None:
    st.markdown("### Key Driver Adjustments")
    for spec in driver_specs(session.drivers.model):
        current = session.drivers[spec.name]
        chosen = _driver_widget(spec, current, key_prefix)
        if not spec.is_enum:
            chosen = Decimal(str(chosen))
        if chosen != current:
            try:
                session.set_driver(spec.name, chosen)
            except InvalidDriverValue as exc:
                st.error(str(exc))


def _render_impact(snapshot: DashboardSnapshot, session: ScenarioSession) -> None:
    result = session.latest
    st.markdown("### Scenario Impact")

    tiles = st.columns(max(len(snapshot.metrics), 1))
    for column, (_, row) in zip(tiles, snapshot.metrics.iterrows()):
        with column:
            _kpi_tile(
                row["label"],
                _fmt_currency(row["scenario"]),
                f"{row['delta_pct_display']} vs baseline",
                bool(row["favorable"]),
            )

    fig = px.bar(
        snapshot.chart,
        x="label",
        y="amount",
        color="series",
        barmode="group",
        color_discrete_sequence=_chart_palette(),
    )
    st.plotly_chart(_style_figure(fig), use_container_width=True)

    counts = favorability_counts(snapshot)
    st.caption(f"{counts['favorable']} favorable / {counts['unfavorable']} unfavorable line items")
    st.dataframe(
        snapshot.line_items.assign(
            baseline=lambda df: df["baseline"].map(_fmt_currency),
            scenario=lambda df: df["scenario"].map(_fmt_currency),
            delta=lambda df: df["delta"].map(_fmt_currency),
        ).drop(columns=["category", "delta_pct"]),
        hide_index=True,
        use_container_width=True,
    )

    if not snapshot.allocation.empty:
        st.markdown("### Investment Trade-Off")
        fig = px.bar(
            snapshot.allocation.melt(id_vars=["pool"], var_name="series", value_name="pct"),
            x="pool",
            y="pct",
            color="series",
            barmode="group",
            color_discrete_sequence=_chart_palette(),
        )
        st.plotly_chart(_style_figure(fig, height=260), use_container_width=True)

    st.markdown("### Scenario Summary")
    if snapshot.narrative.empty:
        st.write("All drivers are at their neutral values; the scenario equals the baseline.")
    for statement in snapshot.narrative["statement"]:
        st.write(f"- {statement}")
    for warning in result.warnings:
        st.warning(warning)


def _render_comparison(assumptions_dir: str) -> None:
    with st.expander("Compare presets", expanded=False):
        directory = Path(assumptions_dir)
        scenarios = list_scenarios(directory)
        frame = comparison_df(compare_scenarios(run_all_scenarios(scenarios, directory)))
        if frame.empty:
            st.write("No presets found.")
            return
        st.dataframe(frame, hide_index=True, use_container_width=True)


def main() -> None:
    configure_logging("WARNING")

    with st.sidebar:
        st.markdown("## Scenario & What-If")
        variant = st.radio("Budget", list(ASSUMPTION_DIRS), index=0)
        assumptions_dir = ASSUMPTION_DIRS[variant]
        scenarios = list_scenarios(Path(assumptions_dir)) or ["base"]
        scenario_id = st.selectbox("Starting scenario", scenarios, index=0)
        reset = st.button("Reset drivers to neutral")

    key = _session_key(assumptions_dir, scenario_id)
    if st.session_state.get("session_key") != key:
        try:
            st.session_state["session"] = _load_session(assumptions_dir, scenario_id)
        except (OSError, ValueError) as exc:
            st.error(f"Failed to load assumptions from {assumptions_dir}: {exc}")
            return
        st.session_state["session_key"] = key
        st.session_state["widget_generation"] = 0

    session: ScenarioSession = st.session_state["session"]
    if reset:
        session.reset()
        # New widget keys so sliders pick up the neutral values
        st.session_state["widget_generation"] = st.session_state.get("widget_generation", 0) + 1

    st.title(session.drivers.model.label)
    if session.latest.description:
        st.caption(session.latest.description)

    left, right = st.columns([1, 2])
    with left:
        _render_drivers(session, f"{key}|{st.session_state['widget_generation']}")
    with right:
        result = session.latest
        for error in result.errors:
            st.error(error)
        snapshot = empty_snapshot() if result.errors else build_snapshot(result)
        _render_impact(snapshot, session)

    _render_comparison(assumptions_dir)


if __name__ == "__main__":
    main()
