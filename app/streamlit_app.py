from pathlib import Path

import altair as alt
import pandas as pd
import streamlit as st
from pandera.errors import SchemaErrors

from hk_school_stats import settings
from hk_school_stats.charting import build_chart
from hk_school_stats.dataset import all_years, filter_years, load_dataset
from hk_school_stats.formatting import build_download_name, detail_rows
from hk_school_stats.interaction import ChartInteraction
from hk_school_stats.metrics import CHART_TYPES, get_registry
from hk_school_stats.state import (
    default_selection,
    end_year_options,
    set_chart_type,
    set_end_year,
    set_start_year,
    toggle_metric,
)

# -------------------------
# Page + data
# -------------------------
st.set_page_config(page_title=settings.PAGE_TITLE, layout="wide")

REGISTRY = get_registry()


@st.cache_data
def load_school_stats(path: str) -> pd.DataFrame:
    """Load the built statistics CSV once per path."""
    return load_dataset(Path(path))


try:
    df = load_school_stats(str(settings.data_path()))
except SchemaErrors as exc:
    st.error("資料檔案未通過驗證 (Dataset failed validation).")
    st.dataframe(exc.failure_cases)
    st.stop()

if df.empty:
    st.info(
        "Prepare the dataset first: "
        "`python -m scripts.build_school_stats`"
    )
    st.stop()

YEARS = all_years(df)

# -------------------------
# Application state
# -------------------------
if "selection" not in st.session_state:
    st.session_state.selection = default_selection(YEARS)
if "interaction" not in st.session_state:
    st.session_state.interaction = ChartInteraction()
if "fullscreen" not in st.session_state:
    st.session_state.fullscreen = False


def chart_key() -> str:
    return f"school_chart_{st.session_state.interaction.chart_key_suffix}"


def plotted_records() -> pd.DataFrame:
    sel = st.session_state.selection
    return filter_years(df, sel.start_year, sel.end_year)


def on_start_year_change() -> None:
    st.session_state.selection = set_start_year(
        st.session_state.selection, st.session_state.start_year_picker
    )


def on_end_year_change() -> None:
    st.session_state.selection = set_end_year(
        st.session_state.selection, st.session_state.end_year_picker
    )


def on_metric_toggle(metric: str) -> None:
    st.session_state.selection = toggle_metric(st.session_state.selection, metric)


def on_chart_type_change(metric: str) -> None:
    st.session_state.selection = set_chart_type(
        st.session_state.selection, metric, st.session_state[f"style_{metric}"]
    )


def on_reset() -> None:
    st.session_state.selection = default_selection(YEARS)
    st.session_state.interaction.dismiss()


def on_fullscreen() -> None:
    st.session_state.fullscreen = not st.session_state.fullscreen


def on_dismiss() -> None:
    st.session_state.interaction.dismiss()


def on_chart_select() -> None:
    event = st.session_state.get(chart_key()) or {}
    st.session_state.interaction.on_selection(event.get("selection"), plotted_records())


def sync_widgets() -> None:
    """Push the current selection into the keyed sidebar widgets."""
    sel = st.session_state.selection
    st.session_state.start_year_picker = sel.start_year
    st.session_state.end_year_picker = sel.end_year
    for metric in REGISTRY:
        st.session_state[f"metric_{metric}"] = sel.is_selected(metric)
        st.session_state[f"style_{metric}"] = sel.chart_types[metric]


# -------------------------
# Sidebar controls
# -------------------------
sync_widgets()
selection = st.session_state.selection

st.sidebar.header("年份選擇")
start_col, end_col = st.sidebar.columns(2)
start_col.selectbox(
    "開始年份", YEARS, key="start_year_picker", on_change=on_start_year_change
)
end_col.selectbox(
    "結束年份",
    end_year_options(YEARS, selection),
    key="end_year_picker",
    on_change=on_end_year_change,
)

st.sidebar.header("多選項目")
for metric, cfg in REGISTRY.items():
    box_col, style_col = st.sidebar.columns([3, 2])
    box_col.checkbox(
        cfg.name,
        key=f"metric_{metric}",
        on_change=on_metric_toggle,
        args=(metric,),
    )
    style_col.selectbox(
        "圖表類型",
        CHART_TYPES,
        format_func=settings.CHART_TYPE_LABELS.get,
        key=f"style_{metric}",
        on_change=on_chart_type_change,
        args=(metric,),
        disabled=not selection.is_selected(metric),
        label_visibility="collapsed",
    )

st.sidebar.divider()
st.sidebar.button(
    "退出全螢幕" if st.session_state.fullscreen else "全螢幕",
    on_click=on_fullscreen,
    width="stretch",
)
st.sidebar.button("重設", on_click=on_reset, type="primary", width="stretch")

# -------------------------
# Chart
# -------------------------
fullscreen = st.session_state.fullscreen
interaction = st.session_state.interaction
records = plotted_records()

if not fullscreen:
    st.title(f"{settings.PAGE_TITLE} ({YEARS[0]}-{YEARS[-1]})")

if not selection.metrics:
    st.info(settings.EMPTY_SELECTION_MESSAGE)
else:
    metric_labels = [REGISTRY[m].name for m in selection.metrics]
    dl_name = build_download_name(
        settings.PAGE_TITLE, metric_labels, selection.start_year, selection.end_year
    )
    alt.renderers.set_embed_options(
        actions={"export": True, "source": False, "compiled": False, "editor": False},
        downloadFileName=dl_name,
    )

    chart = build_chart(
        records,
        list(selection.metrics),
        selection.chart_types,
        highlighted_metric=interaction.state.highlighted_metric,
        height=settings.FULLSCREEN_CHART_HEIGHT if fullscreen else settings.CHART_HEIGHT,
    )
    st.altair_chart(chart, width="stretch", on_select=on_chart_select, key=chart_key())

    if interaction.state.is_active:
        record = interaction.state.selected_record
        with st.container(border=True):
            head_col, close_col = st.columns([6, 1])
            head_col.markdown(f"**年份: {record['YEAR']}**")
            close_col.button("✕", key="dismiss_detail", on_click=on_dismiss, help="關閉")
            for cfg, text in detail_rows(record):
                st.markdown(
                    f"<span style='color:{cfg.color}'>&#9679; <b>{cfg.name}:</b></span> "
                    f"<code>{text}</code>",
                    unsafe_allow_html=True,
                )

if not fullscreen:
    table = records.rename(columns={m: cfg.name for m, cfg in REGISTRY.items()})
    st.dataframe(table.rename(columns={"YEAR": "年份"}), hide_index=True)
    st.caption(f"{settings.SOURCE_LABEL} [{settings.SOURCE_URL}]({settings.SOURCE_URL})")
