"""Row data preparation for the grid engines.

The engines work on plain ``list[dict]`` rows. This module turns the common
tabular inputs into that shape and derives column definitions from them.

Usage:
    from gridcore.data import build_column_defs, normalize_rows

    data = normalize_rows(df)
    columns = build_column_defs(data.columns, data.column_types, {"salary": "sum"})
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from .log import debug, warn
from .models import AggFunc, ColumnDef, ColumnType, Row


class GridData(BaseModel):
    """Normalized grid data from various input formats."""

    rows: list[Row]
    columns: list[str]
    # Advisory type hints inferred from dtypes or values
    column_types: dict[str, ColumnType] = Field(default_factory=dict)

    @property
    def total_rows(self) -> int:
        return len(self.rows)


# pylint: disable=R0911
def _serialize_value(value: Any) -> Any:  # noqa: PLR0911
    """Convert a single cell value to a plain Python value.

    Handles:
    - NaN/NaT → None
    - pandas Timedelta / datetime.timedelta → ``"[Nd ]HH:MM:SS"``
    - pandas Timestamp / datetime / date → ISO 8601 string
    - numpy scalars → Python native types
    """
    if value is None:
        return None

    # Check for pandas NaT and numpy NaN
    try:
        import pandas as pd  # type: ignore[import-untyped]  # pylint: disable=import-outside-toplevel

        if pd.isna(value):
            return None
    except (ImportError, TypeError, ValueError):
        if isinstance(value, float) and value != value:  # noqa: PLR0124
            return None

    # pandas Timedelta - check BEFORE isoformat (Timedelta has isoformat too)
    if hasattr(value, "total_seconds") and hasattr(value, "components"):
        c = value.components
        if c.days:
            return f"{c.days}d {c.hours:02d}:{c.minutes:02d}:{c.seconds:02d}"
        return f"{c.hours:02d}:{c.minutes:02d}:{c.seconds:02d}"

    # datetime.timedelta
    if hasattr(value, "total_seconds") and hasattr(value, "days"):
        hours, remainder = divmod(value.seconds, 3600)
        minutes, seconds = divmod(remainder, 60)
        if value.days:
            return f"{value.days}d {hours:02d}:{minutes:02d}:{seconds:02d}"
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"

    if hasattr(value, "isoformat"):
        return value.isoformat()

    # numpy scalar types → Python native
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        try:
            return value.item()
        except (AttributeError, ValueError, TypeError):
            pass

    return value


def _serialize_row(row: Mapping[str, Any]) -> Row:
    return {str(k): _serialize_value(v) for k, v in row.items()}


def _detect_column_types(data: Any) -> dict[str, ColumnType]:
    """Map pandas dtypes to column type hints.

    - datetime64 → 'date'
    - timedelta64 → 'text' (serialized as a readable string)
    - bool → 'boolean'
    - int/float → 'number'
    - object/string columns holding zero-padded digit strings → 'text'
    """
    column_types: dict[str, ColumnType] = {}
    for col, dtype in data.dtypes.items():
        dtype_str = str(dtype)
        col_str = str(col)

        if "datetime64" in dtype_str:
            column_types[col_str] = "date"
        elif "timedelta64" in dtype_str:
            column_types[col_str] = "text"
        elif dtype_str in {"bool", "boolean"}:
            column_types[col_str] = "boolean"
        elif "int" in dtype_str or "float" in dtype_str:
            column_types[col_str] = "number"
        elif dtype.kind in ("O", "U", "S") or "str" in dtype_str:
            sample = data[col].dropna().head(100)
            if any(_is_zero_padded(str(v)) for v in sample):
                column_types[col_str] = "text"

    return column_types


def _infer_column_types_from_values(rows: list[Row], columns: list[str]) -> dict[str, ColumnType]:
    """Infer column type hints from the first non-null value of each column.

    Only the first 100 rows are sampled.
    """
    column_types: dict[str, ColumnType] = {}
    sample = rows[:100]

    for col in columns:
        values = [row.get(col) for row in sample if row.get(col) is not None]
        if not values:
            continue

        first_val = values[0]
        if isinstance(first_val, bool):
            column_types[col] = "boolean"
        elif isinstance(first_val, (int, float)):
            column_types[col] = "number"
        elif isinstance(first_val, str) and any(
            isinstance(v, str) and _is_zero_padded(v) for v in values
        ):
            column_types[col] = "text"

    return column_types


def _is_zero_padded(text: str) -> bool:
    return len(text) > 1 and text[0] == "0" and text.isdigit()


def normalize_rows(data: Any) -> GridData:
    """Convert common tabular inputs to plain rows.

    Handles:
    - pandas DataFrame (duck-typed; a named index becomes regular columns)
    - list of dicts: ``[{'a': 1}, {'a': 2}]``
    - dict of lists: ``{'a': [1, 2], 'b': [3, 4]}``
    - single dict: ``{'a': 1, 'b': 2}``

    Data that cannot be converted yields an empty ``GridData`` and a warning.
    """
    rows: list[Row] = []
    columns: list[str] = []
    column_types: dict[str, ColumnType] = {}

    try:
        if hasattr(data, "to_dict") and hasattr(data, "columns"):
            index = getattr(data, "index", None)
            if index is not None and any(name is not None for name in getattr(index, "names", [])):
                data = data.reset_index()
                debug(f"Moved index levels {list(index.names)} into columns")

            column_types = _detect_column_types(data)
            rows = data.to_dict(orient="records")
            columns = [str(c) for c in data.columns]

        elif isinstance(data, dict):
            columns = [str(k) for k in data]
            first_value = next(iter(data.values()), None)
            if isinstance(first_value, (list, tuple)):
                num_rows = len(first_value)
                rows = [{col: data[col][i] for col in data} for i in range(num_rows)]
            else:
                rows = [data]
            column_types = _infer_column_types_from_values(rows, columns)

        elif data is not None:
            rows = list(data)
            if rows and isinstance(rows[0], dict):
                columns = list(rows[0].keys())
                column_types = _infer_column_types_from_values(rows, columns)
            elif rows:
                raise TypeError(f"expected rows as dicts, got {type(rows[0]).__name__}")

    except (ValueError, TypeError, IndexError, KeyError) as e:
        warn(f"Failed to convert data: {e}")
        rows = []
        columns = []
        column_types = {}

    rows = [_serialize_row(row) for row in rows]

    return GridData(rows=rows, columns=columns, column_types=column_types)


def build_column_defs(
    columns: list[str],
    column_types: Mapping[str, ColumnType] | None = None,
    agg_funcs: Mapping[str, AggFunc] | None = None,
) -> list[ColumnDef]:
    """Build a ``ColumnDef`` per column with type hints and aggregations.

    Parameters
    ----------
    columns : list[str]
        Field names in display order.
    column_types : dict, optional
        Advisory type per field, typically ``GridData.column_types``.
    agg_funcs : dict, optional
        Aggregation per field; fields without one are not aggregated.
        Entries for unknown fields are ignored with a debug message.

    Returns
    -------
    list[ColumnDef]
    """
    column_types = column_types or {}
    agg_funcs = agg_funcs or {}

    unknown = [f for f in agg_funcs if f not in columns]
    if unknown:
        debug(f"Ignoring aggregations for unknown columns: {unknown}")

    return [
        ColumnDef(field=col, type=column_types.get(col), agg_func=agg_funcs.get(col))
        for col in columns
    ]
