"""Raw HTML tables as grids, and the reshaping steps applied to them.

A `Grid` keeps a table exactly as laid out on the page: rows of optional
cells, padded with `None` where a row is shorter than the widest one. `None`
means the cell is absent; `""` means the cell is there but blank. Reshaping
turns a grid into a `NestedTable` (named columns) through small independent
steps.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from bs4 import Tag

from .errors import MalformedTableError

Cell = Optional[str]
Row = Tuple[Cell, ...]

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?$")


@dataclass(frozen=True)
class Grid:
    """One table of a variable block."""
    rows: Tuple[Row, ...] = ()
    header: Optional[Row] = None
    text: str = ""

    @property
    def width(self) -> int:
        widths = [len(r) for r in self.rows]
        if self.header is not None:
            widths.append(len(self.header))
        return max(widths, default=0)

    def first_row(self) -> Optional[Row]:
        """First data row, or the header row when the table has nothing else."""
        if self.rows:
            return self.rows[0]
        return self.header


@dataclass
class NestedTable:
    """Named columns over a list of rows."""
    columns: List[str]
    rows: List[List[Any]] = field(default_factory=list)

    def column(self, name: str) -> List[Any]:
        i = self.columns.index(name)
        return [row[i] for row in self.rows]

    def to_records(self) -> List[Dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]


def is_empty(cell: Any) -> bool:
    return cell is None or cell == ""


def _cell_text(cell: Tag) -> str:
    return " ".join(cell.get_text(" ").split())


def _colspan(cell: Tag) -> int:
    try:
        return max(int(cell.get("colspan", 1)), 1)
    except (TypeError, ValueError):
        return 1


def _own_rows(table: Tag) -> List[Tag]:
    """Rows of this table, not of tables nested inside it."""
    return [tr for tr in table.find_all("tr") if tr.find_parent("table") is table]


def _pad(values: Sequence[Cell], width: int) -> Row:
    return tuple(values) + (None,) * (width - len(values))


def table_to_grid(table: Tag) -> Grid:
    """Read an HTML <table> into a Grid.

    The first row becomes the header when every cell in it is a <th>.
    A cell with colspan=n is repeated n times.
    """
    header: Optional[List[Cell]] = None
    rows: List[List[Cell]] = []
    for tr in _own_rows(table):
        cells = tr.find_all(["td", "th"], recursive=False)
        if not cells:
            continue
        values: List[Cell] = []
        for cell in cells:
            values.extend([_cell_text(cell)] * _colspan(cell))
        if header is None and not rows and all(c.name == "th" for c in cells):
            header = values
        else:
            rows.append(values)

    width = max([len(r) for r in rows] + [len(header or [])], default=0)
    return Grid(
        rows=tuple(_pad(r, width) for r in rows),
        header=_pad(header, width) if header is not None else None,
        text=table.get_text(),
    )


def grid_to_table(grid: Grid) -> NestedTable:
    """Name the grid's columns from its header, or x1..xn where there is none."""
    width = grid.width
    header = grid.header or ()
    names = []
    for i in range(width):
        name = header[i] if i < len(header) else None
        names.append(name if not is_empty(name) else f"x{i + 1}")
    return NestedTable(columns=names, rows=[list(_pad(r, width)) for r in grid.rows])


def drop_empty_columns(table: NestedTable) -> NestedTable:
    """Remove every column whose cells are all absent or blank."""
    keep = [
        i for i in range(len(table.columns))
        if not all(is_empty(row[i]) for row in table.rows)
    ]
    return NestedTable(
        columns=[table.columns[i] for i in keep],
        rows=[[row[i] for i in keep] for row in table.rows],
    )


def rename_positionally(table: NestedTable, names: Sequence[str]) -> NestedTable:
    """Replace column names by position; the column count must match."""
    if len(names) != len(table.columns):
        raise MalformedTableError(
            f"expected {len(names)} columns ({', '.join(names)}), found {len(table.columns)}"
        )
    return NestedTable(columns=list(names), rows=[list(r) for r in table.rows])


def clean_name(name: str) -> str:
    """'Value Label' -> 'value_label', '%' -> 'x', '2nd' -> 'x2nd'."""
    cleaned = re.sub(r"[^0-9a-zA-Z]+", "_", name or "").strip("_").lower()
    if not cleaned:
        return "x"
    if cleaned[0].isdigit():
        cleaned = "x" + cleaned
    return cleaned


def clean_column_names(table: NestedTable) -> NestedTable:
    """Lower-case/underscore column names; repeats get _2, _3 suffixes."""
    seen: Dict[str, int] = {}
    names = []
    for name in table.columns:
        base = clean_name(name)
        seen[base] = seen.get(base, 0) + 1
        names.append(base if seen[base] == 1 else f"{base}_{seen[base]}")
    return NestedTable(columns=names, rows=[list(r) for r in table.rows])


def _convert_cells(values: List[Cell]) -> List[Any]:
    present = [v for v in values if not is_empty(v)]
    if not present:
        return values
    if all(_INT_RE.match(v) for v in present):
        return [int(v) if not is_empty(v) else None for v in values]
    if all(_FLOAT_RE.match(v) for v in present):
        return [float(v) if not is_empty(v) else None for v in values]
    return values


def convert_columns(table: NestedTable, keep_as_string: Iterable[str] = ("value",)) -> NestedTable:
    """Turn purely numeric columns into ints/floats, blank cells into None.

    Columns named in `keep_as_string` are left as text.
    """
    keep = set(keep_as_string)
    columns = []
    for i, name in enumerate(table.columns):
        values = [row[i] for row in table.rows]
        columns.append(values if name in keep else _convert_cells(values))
    rows = [list(r) for r in zip(*columns)] if columns else [[] for _ in table.rows]
    return NestedTable(columns=list(table.columns), rows=rows)


def with_id(table: NestedTable, variable_id: str) -> NestedTable:
    """Set an `id` column to the same value on every row."""
    if "id" in table.columns:
        i = table.columns.index("id")
        rows = [r[:i] + [variable_id] + r[i + 1:] for r in table.rows]
        return NestedTable(columns=list(table.columns), rows=rows)
    return NestedTable(
        columns=table.columns + ["id"],
        rows=[list(r) + [variable_id] for r in table.rows],
    )
