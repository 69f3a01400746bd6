"""Save the variable table to a compressed JSON file and read it back."""

import gzip
import json
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from gss_codebook.models.records import VariableRecord

COLUMNS = ["id", "description", "text", "properties", "marginals"]


def empty_table() -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype=object) for c in COLUMNS})


def table_to_records(table: pd.DataFrame) -> List[Dict[str, Any]]:
    """Validate every row as a VariableRecord and return plain dicts."""
    records = []
    for row in table[COLUMNS].to_dict(orient="records"):
        if not isinstance(row["text"], str):
            row["text"] = None
        records.append(VariableRecord(**row).model_dump(mode="json"))
    return records


def save_variable_table(table: pd.DataFrame, output_path: Path) -> Path:
    """Write the table as gzip-compressed JSON.

    The bytes depend only on the table contents (gzip mtime is fixed), so
    parsing the same pages twice produces identical files.

    Args:
        table: Final variable table
        output_path: Target file, conventionally *.json.gz

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(table_to_records(table), ensure_ascii=False).encode("utf-8")
    with open(output_path, "wb") as raw:
        with gzip.GzipFile(filename="", mode="wb", fileobj=raw, mtime=0) as f:
            f.write(payload)
    return output_path


def load_variable_table(path: Path) -> pd.DataFrame:
    """Read a file written by save_variable_table."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Variable table not found: {path}")
    with gzip.open(path, "rt", encoding="utf-8") as f:
        records = json.load(f)
    if not records:
        return empty_table()
    return pd.DataFrame(records, columns=COLUMNS)


def iter_records(path: Path) -> List[VariableRecord]:
    """Saved table as VariableRecord models."""
    with gzip.open(Path(path), "rt", encoding="utf-8") as f:
        return [VariableRecord(**r) for r in json.load(f)]
