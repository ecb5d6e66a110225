import re

from hk_school_stats.metrics import MetricConfig, get_registry


def format_value(metric: str, value: float | int) -> str:
    """Thousands-grouped value, suffixed with % for percentage metrics."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = f"{value:,}"
    if get_registry()[metric].percentage:
        text += "%"
    return text


def detail_rows(record: dict) -> list[tuple[MetricConfig, str]]:
    """Rows of the detail panel: every metric with a present value, in registry order."""
    rows = []
    for metric, cfg in get_registry().items():
        value = record.get(metric)
        if value is None:
            continue
        rows.append((cfg, format_value(metric, value)))
    return rows


def build_download_name(
    title: str,
    metric_labels: list[str],
    yr_min: int | None,
    yr_max: int | None,
) -> str:
    """Create a friendly download filename for chart export."""
    parts: list[str] = [title]
    if metric_labels:
        parts.append(", ".join(metric_labels[:3]) + ("" if len(metric_labels) <= 3 else ", …"))
    if yr_min is not None and yr_max is not None:
        parts.append(f"{yr_min}-{yr_max}")

    name = " — ".join(parts)
    name = re.sub(r"[\\/:*?\"<>|]+", "-", name)  # illegal path chars
    name = re.sub(r"\s+", " ", name).strip()
    return name
