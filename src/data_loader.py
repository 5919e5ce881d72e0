"""
Load a CSV file into the column-oriented table sent to the table QA model.
Table: {column_name: [cell, cell, ...]} with columns in header order.
"""
import csv
import io
import logging
import os
from typing import Dict, List

import pandas as pd

logger = logging.getLogger(__name__)

Table = Dict[str, List[str]]


class MalformedInput(ValueError):
    """CSV text that cannot be turned into a table (no header row, bad quoting)."""


def parse_csv(text: str) -> Table:
    """
    Convert CSV text (first row is the header) into a column -> values mapping.
    Rows shorter than the header contribute nothing to their missing trailing columns.
    Cells are kept as-is: no trimming, no type conversion.
    """
    try:
        records = [r for r in csv.reader(io.StringIO(text, newline="")) if r]
    except csv.Error as e:
        raise MalformedInput(f"invalid CSV: {e}") from e

    if not records:
        raise MalformedInput("no data found")

    header, rows = records[0], records[1:]
    table: Table = {}
    for i, column in enumerate(header):
        table[column] = [row[i] for row in rows if i < len(row)]
    return table


def load_table(path: str) -> Table:
    """Read a CSV file from disk and parse it. OSError propagates to the caller."""
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise MalformedInput(f"{path}: not UTF-8 text: {e}") from e
    try:
        table = parse_csv(text)
    except MalformedInput as e:
        raise MalformedInput(f"{path}: {e}") from e
    n_rows = max((len(values) for values in table.values()), default=0)
    logger.info("Loaded table from %s: %d columns, %d rows", path, len(table), n_rows)
    return table


def table_to_frame(table: Table) -> pd.DataFrame:
    """Column-aligned DataFrame view of a table; cells missing from short rows become ""."""
    columns = {name: pd.Series(values, dtype=object) for name, values in table.items()}
    frame = pd.DataFrame(columns, columns=list(table.keys()))
    return frame.fillna("")


if __name__ == "__main__":
    import sys
    base = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    path = sys.argv[1] if len(sys.argv) > 1 else os.path.join(base, "data-series.csv")
    table = load_table(path)
    print(f"Columns: {list(table)}")
    print(table_to_frame(table).head(10).to_string(index=False))
