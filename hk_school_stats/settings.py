import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

PAGE_TITLE = "香港天主教學校統計資料"
SOURCE_LABEL = "資料來源: 香港天主教教區檔案統計資料"
SOURCE_URL = "https://archives.catholic.org.hk/Statistic/ST-Index.htm"
EMPTY_SELECTION_MESSAGE = "請選擇至少一項數據以生成統計圖"

CHART_HEIGHT = 520
FULLSCREEN_CHART_HEIGHT = 820

# Metrics plotted on first load and after a reset
DEFAULT_METRICS = ("school_count",)

CHART_TYPE_LABELS = {
    "line": "線圖",
    "bar": "長條圖",
    "area": "面積圖",
}


def data_path() -> Path:
    """Location of the built dataset CSV (SCHOOL_STATS_DATA overrides)."""
    override = os.environ.get("SCHOOL_STATS_DATA")
    if override:
        return Path(override)
    return PROJECT_ROOT / "data" / "latest" / "school_stats.csv"


def config_path() -> Path:
    """Location of the metric registry YAML (SCHOOL_STATS_CONFIG overrides)."""
    override = os.environ.get("SCHOOL_STATS_CONFIG")
    if override:
        return Path(override)
    return PROJECT_ROOT / "config" / "metrics.yml"
