"""Highlight / selected-point state driven by chart clicks.

Every clickable primitive in the chart owns an Altair point selection named
``<source>__<metric>``: bars are clicked directly, lines and areas through a
point overlay. Vega wires each selection to clicks anywhere in the chart, so a
single click fills every selection with the same datum, whichever mark was hit.
The datum therefore names its own metric, and carries ``CLICKABLE`` so that a
click on a line stroke, an area body or the hover column reads as a click on
the background.

Streamlit hands back the state of all selections on every rerun; the payload
is normalized into ``PointClick`` events before the state changes.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

import pandas as pd

from hk_school_stats.dataset import record_for_year

logger = logging.getLogger(__name__)

BAR_SOURCE = "bar"
POINT_SOURCE = "point"

CLICK_FIELDS = ["YEAR", "METRIC", "CLICKABLE"]


@dataclass(frozen=True)
class PointClick:
    metric: str
    year: int


@dataclass(frozen=True)
class InteractionState:
    highlighted_metric: str | None = None
    selected_record: dict | None = None

    @property
    def is_active(self) -> bool:
        return self.highlighted_metric is not None


IDLE = InteractionState()


def selection_param_name(source: str, metric: str) -> str:
    return f"{source}__{metric}"


def _parse_param_name(name: str) -> tuple[str, str] | None:
    source, sep, metric = name.partition("__")
    if not sep or source not in (BAR_SOURCE, POINT_SOURCE):
        return None
    return source, metric


def normalize_selection(selection: Mapping[str, object] | None) -> list[PointClick]:
    """Flatten a Streamlit chart selection payload into distinct point clicks."""
    clicks: list[PointClick] = []
    for name, values in (selection or {}).items():
        if _parse_param_name(name) is None:
            logger.debug("Ignoring selection parameter %r", name)
            continue
        for value in values or []:
            if not isinstance(value, Mapping) or value.get("CLICKABLE") is not True:
                continue
            if value.get("YEAR") is None or not value.get("METRIC"):
                continue
            click = PointClick(metric=str(value["METRIC"]), year=int(float(value["YEAR"])))
            if click not in clicks:
                clicks.append(click)
    return clicks


class ChartInteraction:
    """Idle/active state machine for one chart.

    ``chart_key_suffix`` changes whenever the chart must be remounted to drop
    client-side selections (after a dismiss).
    """

    def __init__(self) -> None:
        self.state = IDLE
        self.remounts = 0
        self._last_seen: tuple[PointClick, ...] = ()

    @property
    def chart_key_suffix(self) -> str:
        return str(self.remounts)

    def click_point(self, click: PointClick, records: pd.DataFrame) -> InteractionState:
        record = record_for_year(records, click.year)
        if record is None:
            logger.warning("Clicked year %s is not in the plotted records", click.year)
            return self.state
        self.state = InteractionState(highlighted_metric=click.metric, selected_record=record)
        return self.state

    def click_background(self) -> InteractionState:
        self.state = IDLE
        return self.state

    def dismiss(self) -> InteractionState:
        self.state = IDLE
        self._last_seen = ()
        self.remounts += 1
        return self.state

    def on_selection(
        self, selection: Mapping[str, object] | None, records: pd.DataFrame
    ) -> InteractionState:
        """Apply a chart selection payload.

        A payload identical to the previous one is the chart echoing its state
        on an unrelated rerun and is ignored.
        """
        clicks = tuple(normalize_selection(selection))
        if clicks == self._last_seen:
            return self.state
        previous = set(self._last_seen)
        self._last_seen = clicks

        if not clicks:
            return self.click_background()

        fresh = [c for c in clicks if c not in previous]
        return self.click_point((fresh or list(clicks))[0], records)
