"""Year-range, metric and chart-style selection.

The selection is an immutable value: every control-panel action returns a new
``SelectionState``. The app keeps the current one in ``st.session_state`` and
is the only place that replaces it.
"""

from dataclasses import dataclass, field, replace

from hk_school_stats.metrics import CHART_TYPES, default_chart_types, get_registry
from hk_school_stats.settings import DEFAULT_METRICS


@dataclass(frozen=True)
class SelectionState:
    start_year: int
    end_year: int
    metrics: tuple[str, ...] = ()
    chart_types: dict[str, str] = field(default_factory=dict)

    def is_selected(self, metric: str) -> bool:
        return metric in self.metrics


def default_selection(years: list[int]) -> SelectionState:
    """Full year range, the default metric(s) and each metric's default style."""
    return SelectionState(
        start_year=min(years),
        end_year=max(years),
        metrics=tuple(DEFAULT_METRICS),
        chart_types=default_chart_types(),
    )


def set_start_year(state: SelectionState, year: int) -> SelectionState:
    """Move the start year, dragging the end year along if it would fall behind."""
    end_year = max(state.end_year, year)
    return replace(state, start_year=year, end_year=end_year)


def set_end_year(state: SelectionState, year: int) -> SelectionState:
    if year < state.start_year:
        raise ValueError(f"End year {year} is before start year {state.start_year}")
    return replace(state, end_year=year)


def end_year_options(years: list[int], state: SelectionState) -> list[int]:
    """Years the end picker may offer (never before the start year)."""
    return [y for y in years if y >= state.start_year]


def toggle_metric(state: SelectionState, metric: str) -> SelectionState:
    """Add the metric at the end of the selection, or remove it."""
    if metric not in get_registry():
        raise ValueError(f"Unknown metric {metric!r}")
    if metric in state.metrics:
        metrics = tuple(m for m in state.metrics if m != metric)
    else:
        metrics = state.metrics + (metric,)
    return replace(state, metrics=metrics)


def set_chart_type(state: SelectionState, metric: str, chart_type: str) -> SelectionState:
    if metric not in get_registry():
        raise ValueError(f"Unknown metric {metric!r}")
    if chart_type not in CHART_TYPES:
        raise ValueError(f"Unknown chart type {chart_type!r}")
    return replace(state, chart_types={**state.chart_types, metric: chart_type})
