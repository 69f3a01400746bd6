"""Look up variables in the final table and flatten their nested tables."""

import pandas as pd

NESTED_COLUMNS = ("properties", "marginals")


def filter_variables(table: pd.DataFrame, variable_id: str) -> pd.DataFrame:
    """Rows whose id matches, case-insensitively."""
    return table[table["id"].str.lower() == variable_id.lower()]


def unnest(table: pd.DataFrame, column: str) -> pd.DataFrame:
    """One row per nested row of `column`; other columns are left out.

    Each nested row already carries its variable's id. The input table is not
    modified.
    """
    if column not in NESTED_COLUMNS:
        raise ValueError(f"'{column}' is not a nested column; choose one of {', '.join(NESTED_COLUMNS)}")
    rows = [dict(row) for nested in table[column] for row in (nested or [])]
    return pd.DataFrame(rows)
