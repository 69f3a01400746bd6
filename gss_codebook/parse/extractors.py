"""Field extractors: one variable block -> identity, text, marginals, properties."""

import re
from typing import Any, Dict, List, Tuple

from gss_codebook.models.records import TEXT_SENTINEL, Variant

from .blocks import Block, select_table
from .errors import MalformedTableError
from .grid import (
    NestedTable,
    clean_column_names,
    convert_columns,
    drop_empty_columns,
    grid_to_table,
    is_empty,
    rename_positionally,
    with_id,
)

_TRAILING_COLON_RE = re.compile(r"\s*:+\s*$")


def extract_identity(block: Block, variant: Variant) -> Tuple[str, str]:
    """Return (id, description) from the first and third columns of table 0."""
    grid = select_table(block, variant, "id")
    if grid.width < 3:
        raise MalformedTableError(f"identity table has {grid.width} columns, expected at least 3")
    row = grid.first_row()
    if row is None or is_empty(row[0]):
        raise MalformedTableError("identity table has no variable name")
    description = row[2] if row[2] is not None else ""
    return row[0], description


def extract_text(block: Block, variant: Variant) -> str:
    """Question wording on one line, or the 'None' sentinel for short-form blocks."""
    if variant is Variant.SHORT_FORM:
        return TEXT_SENTINEL
    grid = select_table(block, variant, "text")
    return grid.text.strip().replace("\r", "").replace("\n", "")


def reshape_marginals(table: NestedTable) -> NestedTable:
    if len(table.columns) == 2:
        return rename_positionally(table, ("cases", "range"))
    table = drop_empty_columns(table)
    table = clean_column_names(table)
    return convert_columns(table, keep_as_string=("value",))


def extract_marginals(block: Block, variant: Variant, variable_id: str) -> List[Dict[str, Any]]:
    grid = select_table(block, variant, "marginals")
    table = reshape_marginals(grid_to_table(grid))
    return with_id(table, variable_id).to_records()


def strip_trailing_colon(name: Any) -> Any:
    if name is None:
        return None
    return _TRAILING_COLON_RE.sub("", name)


def extract_properties(block: Block, variant: Variant, variable_id: str) -> List[Dict[str, Any]]:
    """Two-column property/value table with the owning id on every row."""
    grid = select_table(block, variant, "properties")
    table = rename_positionally(grid_to_table(grid), ("property", "value"))
    table.rows = [[strip_trailing_colon(p), v] for p, v in table.rows]
    return with_id(table, variable_id).to_records()
