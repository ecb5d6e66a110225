import sys

import pandas as pd
from pandera.errors import SchemaErrors

from hk_school_stats.dataset import validate_dataset
from hk_school_stats.settings import data_path


def validate_file(path) -> list[str]:
    """Return a list of problems with the built dataset (empty when valid)."""
    if not path.exists():
        return [f"{path} does not exist; run `python -m scripts.build_school_stats`"]

    df = pd.read_csv(path)
    problems = []
    if "YEAR" in df.columns:
        years = df["YEAR"].dropna().astype(int).sort_values().tolist()
        gaps = [b for a, b in zip(years, years[1:]) if b - a > 1]
        if gaps:
            problems.append(f"Years missing before: {gaps}")

    try:
        validate_dataset(df)
    except SchemaErrors as e:
        for _, case in e.failure_cases.iterrows():
            problems.append(f"{case['column']}: {case['check']} failed for {case['failure_case']!r}")
    return problems


def main():
    path = data_path()
    problems = validate_file(path)
    for p in problems:
        print(f"[ERROR] {p}")
    if problems:
        return 1
    print(f"{path} is valid.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
