"""Table builders for tests."""

from __future__ import annotations

import numpy as np
import pandas as pd

from hk_school_stats.metrics import get_registry


def make_records(rows: list[dict]) -> pd.DataFrame:
    """Build a statistics table, filling unspecified metrics as absent."""

    df = pd.DataFrame(rows)
    for metric in get_registry():
        if metric not in df.columns:
            df[metric] = np.nan
    return df[["YEAR", *get_registry()]]
