"""Pytest fixtures shared across the dashboard tests."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from tests.factories import make_records


@pytest.fixture
def records() -> pd.DataFrame:
    """Five years with staff figures missing for the first two."""

    return make_records(
        [
            {"YEAR": 1990, "school_count": 250, "student_count": 280000},
            {"YEAR": 1991, "school_count": 252, "student_count": 281500},
            {
                "YEAR": 1992,
                "school_count": 255,
                "student_count": 283000,
                "total_staff": 11000.0,
                "catholic_staff": 4400.0,
                "non_catholic_staff": 6600.0,
                "catholic_staff_percentage": 40.0,
            },
            {
                "YEAR": 1993,
                "school_count": 256,
                "student_count": 284000,
                "total_staff": 11200.0,
                "catholic_staff": 4300.0,
                "non_catholic_staff": 6900.0,
                "catholic_staff_percentage": 38.4,
            },
            {
                "YEAR": 1994,
                "school_count": 258,
                "student_count": 285500,
                "total_staff": 11500.0,
                "catholic_staff": 4200.0,
                "non_catholic_staff": 7300.0,
                "catholic_staff_percentage": 36.5,
            },
        ]
    )


@pytest.fixture
def dataset_csv(tmp_path: Path, records: pd.DataFrame) -> Path:
    """The ``records`` fixture written where the loader expects a built CSV."""

    path = tmp_path / "school_stats.csv"
    records.to_csv(path, index=False)
    return path
