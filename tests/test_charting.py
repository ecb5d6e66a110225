"""Unit tests for the layered Altair chart spec."""

from __future__ import annotations

import json

import pytest

from hk_school_stats.charting import build_chart, to_long, year_summary
from hk_school_stats.state import default_selection

pytestmark = pytest.mark.unit


def chart_json(chart) -> str:
    return json.dumps(chart.to_dict(), ensure_ascii=False)


def walk(node):
    """Every dict nested anywhere in a chart spec."""
    if isinstance(node, dict):
        yield node
        children = node.values()
    elif isinstance(node, list):
        children = node
    else:
        return
    for child in children:
        yield from walk(child)


def views(spec: dict, data: str | None = None):
    """(mark type, dataset name, view) of every leaf view; layers may hoist shared data."""
    data = spec.get("data", {}).get("name", data)
    if "layer" in spec:
        for child in spec["layer"]:
            yield from views(child, data)
    elif "mark" in spec:
        mark = spec["mark"]
        yield (mark if isinstance(mark, str) else mark["type"]), data, spec


@pytest.fixture
def chart_types() -> dict[str, str]:
    return default_selection([1990, 1994]).chart_types


def test_requires_a_metric(records, chart_types) -> None:
    with pytest.raises(ValueError):
        build_chart(records, [], chart_types)


def test_long_form_drops_absent_values(records) -> None:
    long_df = to_long(records, ["school_count", "total_staff"])

    assert len(long_df) == 5 + 3
    assert set(long_df["LABEL"]) == {"天主教學校", "教職員總人數"}


def test_single_axis_chart(records, chart_types) -> None:
    spec = build_chart(records, ["student_count"], chart_types).to_dict()

    assert "resolve" not in spec
    assert spec["height"] == 520


def test_dual_axis_chart_resolves_independent_y(records, chart_types) -> None:
    spec = build_chart(records, ["school_count", "student_count"], chart_types).to_dict()

    assert spec["resolve"] == {"scale": {"y": "independent"}}


def test_axis_domains_applied(records, chart_types) -> None:
    text = chart_json(build_chart(records, ["school_count", "student_count"], chart_types))

    assert '"domain": [249, 259]' in text
    assert '"domain": [279450, 286050]' in text


def test_x_axis_covers_every_year_in_range(records, chart_types) -> None:
    text = chart_json(build_chart(records, ["total_staff"], chart_types))

    # staff figures start in 1992 but the axis still spans the whole range
    assert '"domain": [1990, 1991, 1992, 1993, 1994]' in text


def test_each_series_has_its_own_click_target(records) -> None:
    chart_types = {"school_count": "bar", "student_count": "line", "total_staff": "area"}

    text = chart_json(
        build_chart(records, ["school_count", "student_count", "total_staff"], chart_types)
    )

    assert "bar__school_count" in text
    assert "point__student_count" in text
    assert "point__total_staff" in text
    assert '"type": "area"' in text


def test_highlight_adds_glow_and_weight(records, chart_types) -> None:
    plain = chart_json(build_chart(records, ["student_count"], chart_types))
    highlighted = chart_json(
        build_chart(records, ["student_count"], chart_types, highlighted_metric="student_count")
    )

    assert '"strokeWidth": 10' not in plain
    assert '"strokeWidth": 10' in highlighted
    assert '"strokeWidth": 4' in highlighted
    assert '"strokeWidth": 2.5' in plain


def test_percentage_axis_labels(records, chart_types) -> None:
    text = chart_json(build_chart(records, ["catholic_staff_percentage"], chart_types))

    assert "datum.label + '%'" in text


def test_auto_domain_when_nothing_to_scale(records, chart_types) -> None:
    early = records[records["YEAR"] <= 1991]

    text = chart_json(build_chart(early, ["catholic_staff"], chart_types))

    assert '"domainMin": 0' in text


def test_colours_follow_registry(records, chart_types) -> None:
    text = chart_json(build_chart(records, ["school_count", "student_count"], chart_types))

    assert '"range": ["#ef4444", "#3b82f6"]' in text


def test_fullscreen_height(records, chart_types) -> None:
    spec = build_chart(records, ["school_count"], chart_types, height=820).to_dict()

    assert spec["height"] == 820


def test_every_selection_records_the_clicked_datum(records) -> None:
    chart_types = {"school_count": "bar", "student_count": "line", "total_staff": "area"}
    spec = build_chart(
        records, ["school_count", "student_count", "total_staff"], chart_types
    ).to_dict()

    selections = {
        node["name"]: node["select"] for node in walk(spec) if "select" in node and "name" in node
    }

    assert set(selections) == {"bar__school_count", "point__student_count", "point__total_staff"}
    for select in selections.values():
        assert select["type"] == "point"
        assert select["fields"] == ["YEAR", "METRIC", "CLICKABLE"]


def test_only_bars_and_points_are_click_targets(records) -> None:
    chart_types = {"school_count": "bar", "student_count": "line", "total_staff": "area"}
    spec = build_chart(
        records,
        ["school_count", "student_count", "total_staff"],
        chart_types,
        highlighted_metric="student_count",
    ).to_dict()
    datasets = spec["datasets"]

    clickable = {}
    for mark, data, _ in views(spec):
        rows = datasets[data]
        clickable.setdefault(mark, set()).update(
            row.get("CLICKABLE") for row in rows
        )

    assert clickable["bar"] == {True}
    assert clickable["point"] == {True}
    # line covers both the glow and the series stroke
    assert clickable["line"] == {False}
    assert clickable["area"] == {False}
    assert clickable["rule"] == {None}


def test_year_tooltip_lists_every_plotted_metric(records, chart_types) -> None:
    spec = build_chart(records, ["school_count", "catholic_staff"], chart_types).to_dict()

    rules = [view for mark, _, view in views(spec) if mark == "rule"]

    assert len(rules) == 1
    fields = [t["field"] for t in rules[0]["encoding"]["tooltip"]]
    assert fields == ["YEAR", "天主教學校", "公教教職員人數"]


def test_year_summary_formats_values(records) -> None:
    summary = year_summary(records, ["school_count", "catholic_staff_percentage"])

    assert list(summary.columns) == ["YEAR", "天主教學校", "公教教職員人數百分比"]
    first, third = summary.iloc[0], summary.iloc[2]
    assert first["YEAR"] == 1990
    assert first["公教教職員人數百分比"] == "—"
    assert third["天主教學校"] == "255"
    assert third["公教教職員人數百分比"] == "40%"
