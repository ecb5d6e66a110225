import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import yaml

from hk_school_stats.settings import config_path

logger = logging.getLogger(__name__)

AXES = ("left", "right")
CHART_TYPES = ("line", "bar", "area")


@dataclass(frozen=True)
class MetricConfig:
    id: str
    name: str
    color: str
    axis: str
    chart_type: str
    percentage: bool = False
    required: bool = False


def _parse_entry(entry: dict) -> MetricConfig:
    missing = [k for k in ("id", "name", "color", "axis", "chart_type") if k not in entry]
    if missing:
        raise ValueError(f"Metric entry {entry!r} is missing {', '.join(missing)}")

    if entry["axis"] not in AXES:
        raise ValueError(f"Metric {entry['id']!r} has unknown axis {entry['axis']!r}")
    if entry["chart_type"] not in CHART_TYPES:
        raise ValueError(
            f"Metric {entry['id']!r} has unknown chart type {entry['chart_type']!r}"
        )

    return MetricConfig(
        id=str(entry["id"]),
        name=str(entry["name"]),
        color=str(entry["color"]),
        axis=entry["axis"],
        chart_type=entry["chart_type"],
        percentage=bool(entry.get("percentage", False)),
        required=bool(entry.get("required", False)),
    )


def load_registry(path: Path) -> dict[str, MetricConfig]:
    """Read the metric registry YAML into an ordered id -> config mapping."""
    with open(path, "r", encoding="utf-8") as f:
        raw_cfg = yaml.safe_load(f) or {}
    entries = raw_cfg.get("metrics", raw_cfg) if isinstance(raw_cfg, dict) else raw_cfg
    if not entries:
        raise ValueError(f"No metrics defined in {path}")

    registry: dict[str, MetricConfig] = {}
    for entry in entries:
        cfg = _parse_entry(entry)
        if cfg.id in registry:
            raise ValueError(f"Duplicate metric id {cfg.id!r} in {path}")
        registry[cfg.id] = cfg

    logger.info("Loaded %d metrics from %s", len(registry), path)
    return registry


@lru_cache(maxsize=None)
def _default_registry(path: Path) -> dict[str, MetricConfig]:
    return load_registry(path)


def get_registry() -> dict[str, MetricConfig]:
    """The registry at the configured location, loaded once per path."""
    return _default_registry(config_path())


def metric_ids() -> list[str]:
    return list(get_registry())


def axis_for(metric: str) -> str:
    return get_registry()[metric].axis


def metrics_on_axis(metrics: list[str], axis: str) -> list[str]:
    """Metrics (in the given order) scaled on the given axis."""
    return [m for m in metrics if axis_for(m) == axis]


def is_percentage(metric: str) -> bool:
    return get_registry()[metric].percentage


def default_chart_types() -> dict[str, str]:
    return {m: cfg.chart_type for m, cfg in get_registry().items()}
