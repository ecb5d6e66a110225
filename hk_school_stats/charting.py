import math

import altair as alt
import pandas as pd

from hk_school_stats.formatting import format_value
from hk_school_stats.interaction import (
    BAR_SOURCE,
    CLICK_FIELDS,
    POINT_SOURCE,
    selection_param_name,
)
from hk_school_stats.metrics import get_registry, metrics_on_axis
from hk_school_stats.settings import CHART_HEIGHT

AUTO = "auto"

Domain = tuple[int, int] | tuple[int, str]


def compute_axis_domain(records: pd.DataFrame, metrics: list[str]) -> Domain:
    """Joint [min, max] of the given metrics over the records, padded by 10%.

    Returns (0, "auto") when there is nothing to scale. The lower bound never
    goes below zero; a single distinct value yields a zero-width domain.
    """
    if not metrics:
        return (0, AUTO)

    lo = math.inf
    hi = -math.inf
    for _, row in records.iterrows():
        for metric in metrics:
            value = row.get(metric)
            if value is None or pd.isna(value):
                continue
            lo = min(lo, value)
            hi = max(hi, value)

    if lo == math.inf or hi == -math.inf:
        return (0, AUTO)

    padding = (hi - lo) * 0.1
    final_min = lo - padding if lo - padding > 0 else 0
    return (math.floor(final_min), math.ceil(hi + padding))


def compute_axis_domains(records: pd.DataFrame, metrics: list[str]) -> dict[str, Domain]:
    return {
        "left": compute_axis_domain(records, metrics_on_axis(metrics, "left")),
        "right": compute_axis_domain(records, metrics_on_axis(metrics, "right")),
    }


def domain_scale(domain: Domain) -> alt.Scale:
    if domain[1] == AUTO:
        return alt.Scale(domainMin=domain[0])
    return alt.Scale(domain=list(domain), clamp=True, nice=False, zero=False)


def altair_colour_scale(metrics: list[str]) -> alt.Scale:
    """Colour scale mapping metric display names to their fixed colours."""
    registry = get_registry()
    return alt.Scale(
        domain=[registry[m].name for m in metrics],
        range=[registry[m].color for m in metrics],
    )


def to_long(records: pd.DataFrame, metrics: list[str]) -> pd.DataFrame:
    """(YEAR, METRIC, LABEL, VALUE) rows, absent values dropped."""
    registry = get_registry()
    long_df = records.melt(
        id_vars=["YEAR"], value_vars=list(metrics), var_name="METRIC", value_name="VALUE"
    ).dropna(subset=["VALUE"])
    long_df["YEAR"] = long_df["YEAR"].astype(int)
    long_df["LABEL"] = long_df["METRIC"].map(lambda m: registry[m].name)
    return long_df.reset_index(drop=True)


def _y_encoding(axis: str, domain: Domain, title: str, percent_only: bool) -> alt.Y:
    if axis == "left":
        y_axis = alt.Axis(orient="left", format="~s", title=title)
    elif percent_only:
        y_axis = alt.Axis(orient="right", title=title, labelExpr="datum.label + '%'")
    else:
        y_axis = alt.Axis(orient="right", title=title)
    return alt.Y("VALUE:Q", scale=domain_scale(domain), axis=y_axis)


def _series_layers(
    data: pd.DataFrame,
    metric: str,
    chart_type: str,
    highlighted: bool,
    x: alt.X,
    y: alt.Y,
    color: alt.Color,
) -> list[alt.Chart]:
    tooltip = [
        alt.Tooltip("YEAR:O", title="年份", format="d"),
        alt.Tooltip("LABEL:N", title="項目"),
        alt.Tooltip("VALUE:Q", title="數值", format=","),
    ]
    # Every selection listens to clicks on the whole chart and records the
    # clicked datum, so only bars and point overlays are flagged as targets.
    target = alt.Chart(data.assign(CLICKABLE=True)).encode(x=x, y=y, color=color)
    base = alt.Chart(data.assign(CLICKABLE=False)).encode(x=x, y=y, color=color)

    if chart_type == "bar":
        pick = alt.selection_point(
            name=selection_param_name(BAR_SOURCE, metric), fields=CLICK_FIELDS, on="click"
        )
        bar = (
            target.mark_bar(opacity=1.0 if highlighted else 0.7, cursor="pointer")
            .encode(tooltip=tooltip)
            .add_params(pick)
        )
        return [bar]

    layers = []
    if highlighted:
        # glow
        layers.append(
            base.mark_line(interpolate="monotone", strokeWidth=10, opacity=0.25)
        )
    if chart_type == "area":
        layers.append(
            base.mark_area(
                interpolate="monotone",
                opacity=0.6 if highlighted else 0.3,
                line={"strokeWidth": 3 if highlighted else 2},
            )
        )
    else:
        layers.append(
            base.mark_line(interpolate="monotone", strokeWidth=4 if highlighted else 2.5)
        )

    pick = alt.selection_point(
        name=selection_param_name(POINT_SOURCE, metric), fields=CLICK_FIELDS, on="click"
    )
    layers.append(
        target.mark_point(filled=True, size=60 if highlighted else 30, opacity=1, cursor="pointer")
        .encode(tooltip=tooltip)
        .add_params(pick)
    )
    return layers


def year_summary(records: pd.DataFrame, metrics: list[str]) -> pd.DataFrame:
    """One row per year with every plotted metric formatted by display name."""
    registry = get_registry()
    summary = pd.DataFrame({"YEAR": records["YEAR"].astype(int).tolist()})
    for metric in metrics:
        summary[registry[metric].name] = [
            "—" if pd.isna(value) else format_value(metric, value)
            for value in records[metric].tolist()
        ]
    return summary


def _year_tooltip_layer(records: pd.DataFrame, metrics: list[str], x: alt.X) -> alt.Chart:
    """Invisible full-height rule per year listing every plotted series on hover."""
    summary = year_summary(records, metrics)
    tooltip = [alt.Tooltip("YEAR:O", title="年份", format="d")] + [
        alt.Tooltip(f"{name}:N") for name in summary.columns[1:]
    ]
    return alt.Chart(summary).mark_rule(strokeWidth=12, opacity=0).encode(x=x, tooltip=tooltip)


def build_chart(
    records: pd.DataFrame,
    metrics: list[str],
    chart_types: dict[str, str],
    highlighted_metric: str | None = None,
    height: int = CHART_HEIGHT,
) -> alt.LayerChart:
    """Layered chart of the selected metrics on up to two y axes."""
    if not metrics:
        raise ValueError("At least one metric is required to build a chart")

    registry = get_registry()
    long_df = to_long(records, metrics)
    years = [int(y) for y in records["YEAR"].tolist()]
    domains = compute_axis_domains(records, metrics)

    x = alt.X("YEAR:O", title="年份", scale=alt.Scale(domain=years), axis=alt.Axis(format="d"))
    color = alt.Color(
        "LABEL:N",
        scale=altair_colour_scale(metrics),
        legend=alt.Legend(title=None, orient="bottom"),
    )

    axis_charts = []
    for axis in ("left", "right"):
        axis_metrics = metrics_on_axis(metrics, axis)
        if not axis_metrics:
            continue
        title = "、".join(registry[m].name for m in axis_metrics)
        percent_only = all(registry[m].percentage for m in axis_metrics)
        y = _y_encoding(axis, domains[axis], title, percent_only)

        layers = []
        for metric in axis_metrics:
            layers.extend(
                _series_layers(
                    long_df[long_df["METRIC"] == metric],
                    metric,
                    chart_types.get(metric, registry[metric].chart_type),
                    metric == highlighted_metric,
                    x,
                    y,
                    color,
                )
            )
        axis_charts.append(alt.layer(*layers))

    # hover column drawn first so series marks stay on top for clicks
    chart = alt.layer(_year_tooltip_layer(records, metrics, x), *axis_charts)
    if len(axis_charts) > 1:
        chart = chart.resolve_scale(y="independent")
    return chart.properties(height=height)
