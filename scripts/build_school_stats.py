import sys
from pathlib import Path

import numpy as np
import pandas as pd

from hk_school_stats.dataset import validate_dataset
from hk_school_stats.metrics import get_registry
from hk_school_stats.settings import PROJECT_ROOT, data_path

# Transcribed copy of the archive's statistics table
# (https://archives.catholic.org.hk/Statistic/ST-Index.htm)
SOURCE_PATHS = [
    PROJECT_ROOT / "data" / "raw" / "st_index.xlsx",
    PROJECT_ROOT / "data" / "raw" / "st_index.csv",
]

YEAR_HEADERS = ["年份", "Year", "YEAR"]


def read_source(path: Path) -> pd.DataFrame:
    if path.suffix.lower() in {".xlsx", ".xls"}:
        return pd.read_excel(path)
    return pd.read_csv(path)


def standardize(df: pd.DataFrame) -> pd.DataFrame:
    """Rename source headers to metric ids, clean placeholders and coerce numerics."""
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]

    rename_map = {}
    for header in YEAR_HEADERS:
        if header in df.columns:
            rename_map[header] = "YEAR"
            break
    for metric, cfg in get_registry().items():
        if cfg.name in df.columns:
            rename_map[cfg.name] = metric
    df = df.rename(columns=rename_map)

    if "YEAR" not in df.columns:
        raise ValueError(
            "The source table must contain a year column "
            f"({' / '.join(YEAR_HEADERS)}). Columns found: {list(df.columns)}"
        )

    # Clean whitespace
    obj_cols = df.select_dtypes(include="object").columns
    for col in obj_cols:
        df[col] = df[col].astype(str).str.strip()

    # Replace placeholder values
    df = df.replace({"": np.nan, "..": np.nan, "nan": np.nan, "-": 0})

    for metric in get_registry():
        if metric in df.columns:
            df[metric] = pd.to_numeric(df[metric].astype(str).str.replace(",", ""), errors="coerce")
        else:
            df[metric] = np.nan

    # Clean year column
    df["YEAR"] = pd.to_numeric(df["YEAR"], errors="coerce")
    df = df.dropna(subset=["YEAR"]).copy()
    df["YEAR"] = df["YEAR"].astype(int)

    return df[["YEAR", *get_registry()]].sort_values("YEAR").reset_index(drop=True)


def derive_staff_metrics(df: pd.DataFrame) -> pd.DataFrame:
    """Fill non-catholic staff and the catholic share where the totals allow it."""
    df = df.copy()
    has_counts = df["total_staff"].notna() & df["catholic_staff"].notna()

    fill_non = has_counts & df["non_catholic_staff"].isna()
    df.loc[fill_non, "non_catholic_staff"] = (
        df.loc[fill_non, "total_staff"] - df.loc[fill_non, "catholic_staff"]
    )

    fill_pct = has_counts & df["catholic_staff_percentage"].isna() & (df["total_staff"] > 0)
    df.loc[fill_pct, "catholic_staff_percentage"] = (
        df.loc[fill_pct, "catholic_staff"] / df.loc[fill_pct, "total_staff"] * 100
    ).round(1)
    return df


def main():
    source = next((p for p in SOURCE_PATHS if p.exists()), None)
    if source is None:
        raise FileNotFoundError(
            "Source table not found. Expected one of:\n  "
            + "\n  ".join(str(p) for p in SOURCE_PATHS)
        )

    df = derive_staff_metrics(standardize(read_source(source)))
    df = validate_dataset(df)

    output_path = data_path()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, index=False)
    print(
        f"Saved school statistics dataset to:\n  {output_path.resolve()}\n"
        f"Rows: {len(df):,}\nYears: {df['YEAR'].min()}-{df['YEAR'].max()}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
