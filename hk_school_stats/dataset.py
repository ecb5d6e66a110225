import logging
from pathlib import Path

import pandas as pd
import pandera as pa
from pandera import Check, Column

from hk_school_stats.metrics import get_registry

logger = logging.getLogger(__name__)


def build_schema() -> pa.DataFrameSchema:
    """Schema for the per-year statistics table, one column per metric."""
    columns = {
        "YEAR": Column(int, checks=Check.ge(1900), unique=True),
    }
    for metric, cfg in get_registry().items():
        checks = [Check.ge(0)]
        if cfg.percentage:
            checks.append(Check.le(100))
        if cfg.required:
            columns[metric] = Column(int, checks=checks)
        else:
            # Staff figures are missing for some years
            columns[metric] = Column(float, checks=checks, nullable=True)
    return pa.DataFrameSchema(columns, coerce=True)


def validate_dataset(df: pd.DataFrame) -> pd.DataFrame:
    """Validate and coerce; raises pandera SchemaErrors listing every failure."""
    return build_schema().validate(df, lazy=True)


def load_dataset(path: Path) -> pd.DataFrame:
    """Load the built statistics CSV, or return an empty DataFrame if missing."""
    if not path.exists():
        logger.warning("Dataset not found at %s", path)
        return pd.DataFrame()

    df = pd.read_csv(path)
    df.columns = [c.strip() for c in df.columns]

    df["YEAR"] = pd.to_numeric(df["YEAR"], errors="coerce")
    df = df.dropna(subset=["YEAR"]).copy()
    for metric in get_registry():
        if metric in df.columns:
            df[metric] = pd.to_numeric(df[metric], errors="coerce")
        else:
            df[metric] = float("nan")

    df = df.sort_values("YEAR").reset_index(drop=True)
    df = validate_dataset(df)
    logger.info("Loaded %d yearly records from %s", len(df), path)
    return df


def year_bounds(df: pd.DataFrame) -> tuple[int, int]:
    return int(df["YEAR"].min()), int(df["YEAR"].max())


def all_years(df: pd.DataFrame) -> list[int]:
    return [int(y) for y in df["YEAR"].tolist()]


def filter_years(df: pd.DataFrame, start: int, end: int) -> pd.DataFrame:
    """Records with start <= YEAR <= end, in their original order."""
    return df[df["YEAR"].between(start, end)].copy()


def record_for_year(df: pd.DataFrame, year: int) -> dict | None:
    """The record for a year as a plain dict, with None for absent values."""
    rows = df[df["YEAR"] == year]
    if rows.empty:
        return None
    row = rows.iloc[0]
    record = {"YEAR": int(row["YEAR"])}
    for metric, cfg in get_registry().items():
        value = row.get(metric)
        if value is None or pd.isna(value):
            record[metric] = None
        elif cfg.required:
            record[metric] = int(value)
        else:
            record[metric] = float(value)
    return record
